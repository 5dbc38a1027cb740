from __future__ import annotations

import csv
import logging
import re
from collections.abc import Iterable
from datetime import date, datetime
from pathlib import Path

from hardshipdocs.core.files import ensure_directory
from hardshipdocs.domain.models.transaction import StatementVariant, TransactionRow

logger = logging.getLogger(__name__)

_CSV_SPACING_RE = re.compile(r'\s*(?=")|(?<=,)\s*')

_DATE_FORMATS = (
    "%Y-%m-%d",
    "%Y/%m/%d",
    "%d/%m/%Y",
    "%d/%m/%y",
    "%d-%m-%Y",
    "%d %b %Y",
    "%d %B %Y",
    "%b %d %Y",
    "%B %d %Y",
    "%b %d, %Y",
    "%B %d, %Y",
    "%d.%m.%Y",
)


def normalize_csv_line(line: str) -> str:
    """Drop whitespace before quotes and after commas in model-written CSV."""
    return _CSV_SPACING_RE.sub("", line)


def parse_csv_line(line: str) -> list[str]:
    records = list(csv.reader([normalize_csv_line(line)]))
    return records[0] if records else []


def parse_statement_csv(csv_text: str, filename: str) -> list[TransactionRow]:
    """Parse the model's statement CSV, dropping the header, blank lines and skipped rows."""
    lines = csv_text.splitlines()
    rows: list[TransactionRow] = []
    for line in lines[1:]:
        if not line.strip():
            continue
        try:
            fields = parse_csv_line(line)
        except csv.Error as exc:
            logger.warning("Unparseable CSV line in %s: %r (%s)", filename, line, exc)
            continue
        fields = (fields + [""] * 5)[:5]
        transaction_date, detail, credit, debit, skip = fields
        row = TransactionRow(
            date=transaction_date,
            transaction_detail=detail,
            credit=credit,
            debit=debit,
            filename=filename,
            skip=skip == "true",
        )
        if row.skip:
            continue
        rows.append(row)
    return rows


def parse_date(value: str) -> date | None:
    text = " ".join(value.strip().split())
    if not text:
        return None
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    try:
        return datetime.fromisoformat(text).date()
    except ValueError:
        return None


def sort_chronologically(rows: Iterable[TransactionRow]) -> list[TransactionRow]:
    """Stable sort by parsed date; rows whose date cannot be parsed go last."""

    def key(row: TransactionRow) -> tuple[bool, date]:
        parsed = parse_date(row.date)
        return (parsed is None, parsed or date.min)

    return sorted(rows, key=key)


def write_ledger_csv(rows: Iterable[TransactionRow], out_path: Path, variant: StatementVariant) -> Path:
    ensure_directory(out_path.parent)
    with out_path.open("w", encoding="utf-8", newline="") as handle:
        writer = csv.writer(handle, quoting=csv.QUOTE_ALL)
        writer.writerow(["Date", "Transaction Detail", variant.credit_column, variant.debit_column, "Filename"])
        for row in rows:
            if row.skip:
                continue
            writer.writerow([row.date, row.transaction_detail, row.credit, row.debit, row.filename])
    return out_path
