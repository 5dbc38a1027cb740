from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class StatementVariant:
    """Column naming and behaviour of one statement extraction flavour."""

    name: str
    credit_column: str
    debit_column: str
    include_taxonomy: bool
    write_per_document: bool
    max_tokens: int = 1500


DEPOSIT_VARIANT = StatementVariant(
    name="deposit",
    credit_column="Deposit",
    debit_column="Withdrawal",
    include_taxonomy=True,
    write_per_document=False,
)

INCOME_VARIANT = StatementVariant(
    name="income",
    credit_column="Income",
    debit_column="Expenditure",
    include_taxonomy=False,
    write_per_document=True,
)


@dataclass(frozen=True, slots=True)
class TransactionRow:
    date: str
    transaction_detail: str
    credit: str
    debit: str
    filename: str
    skip: bool = False
