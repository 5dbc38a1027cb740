import csv
from datetime import date
from pathlib import Path

from hardshipdocs.domain.models.transaction import DEPOSIT_VARIANT, INCOME_VARIANT, TransactionRow
from hardshipdocs.infrastructure.ledger.csv_ledger import (
    normalize_csv_line,
    parse_date,
    parse_statement_csv,
    sort_chronologically,
    write_ledger_csv,
)

STATEMENT_CSV = "\n".join(
    [
        "Date, Transaction Detail, Deposit, Withdrawal, Skip",
        '2024-01-05, "Transfer to savings", 100.00, , true',
        "",
        '2024-01-06, "Grocery Store", , 54.30, false',
        '2024-01-07, "Smith, J rent", , 300.00, false',
    ]
)


def test_normalize_strips_space_around_quotes_and_commas() -> None:
    assert normalize_csv_line('2024-01-06, "Grocery Store", , 54.30, false') == (
        '2024-01-06,"Grocery Store",,54.30,false'
    )


def test_skip_rows_and_blank_lines_are_dropped() -> None:
    rows = parse_statement_csv(STATEMENT_CSV, "anz.txt")

    assert [r.transaction_detail for r in rows] == ["Grocery Store", "Smith,J rent"]
    grocery = rows[0]
    assert grocery.date == "2024-01-06"
    assert grocery.credit == ""
    assert grocery.debit == "54.30"
    assert grocery.filename == "anz.txt"
    assert not any(r.skip for r in rows)


def test_short_rows_are_padded() -> None:
    rows = parse_statement_csv("Date,Detail,In,Out,Skip\n2024-02-01,Salary,2500.00", "x.txt")

    assert rows == [
        TransactionRow(date="2024-02-01", transaction_detail="Salary", credit="2500.00", debit="", filename="x.txt")
    ]


def test_parse_date_accepts_common_statement_formats() -> None:
    assert parse_date("2024-03-01") == date(2024, 3, 1)
    assert parse_date("01/03/2024") == date(2024, 3, 1)
    assert parse_date("1 Mar 2024") == date(2024, 3, 1)
    assert parse_date("March 1, 2024") == date(2024, 3, 1)
    assert parse_date("opening balance") is None


def test_sort_is_chronological_and_stable() -> None:
    rows = [
        TransactionRow("2024-01-09", "c", "", "1", "b.txt"),
        TransactionRow("05/01/2024", "a", "", "1", "a.txt"),
        TransactionRow("not a date", "z", "", "1", "a.txt"),
        TransactionRow("2024-01-09", "d", "", "1", "a.txt"),
        TransactionRow("2024-01-05", "b", "", "1", "b.txt"),
    ]

    ordered = sort_chronologically(rows)

    assert [r.transaction_detail for r in ordered] == ["a", "b", "c", "d", "z"]
    parsed = [parse_date(r.date) for r in ordered if parse_date(r.date) is not None]
    assert parsed == sorted(parsed)


def test_ledger_csv_is_fully_quoted_with_variant_columns(tmp_path: Path) -> None:
    rows = [
        TransactionRow("2024-01-06", "Grocery Store", "", "54.30", "anz.txt"),
        TransactionRow("2024-01-07", "Transfer", "10", "", "anz.txt", skip=True),
    ]

    out = write_ledger_csv(rows, tmp_path / "ledger.csv", DEPOSIT_VARIANT)

    text = out.read_text(encoding="utf-8")
    assert text.splitlines()[0] == '"Date","Transaction Detail","Deposit","Withdrawal","Filename"'
    with out.open(newline="", encoding="utf-8") as handle:
        data = list(csv.DictReader(handle))
    assert data == [
        {
            "Date": "2024-01-06",
            "Transaction Detail": "Grocery Store",
            "Deposit": "",
            "Withdrawal": "54.30",
            "Filename": "anz.txt",
        }
    ]

    income = write_ledger_csv([], tmp_path / "income.csv", INCOME_VARIANT)
    assert "Income" in income.read_text(encoding="utf-8")
