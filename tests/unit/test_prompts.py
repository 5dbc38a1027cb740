import json

from hardshipdocs.domain.models.classification import ClassificationRecord
from hardshipdocs.domain.models.transaction import DEPOSIT_VARIANT, INCOME_VARIANT
from hardshipdocs.infrastructure.llm.prompts import (
    build_html_report_prompt,
    build_page_classification_prompt,
    build_statement_extraction_prompt,
)

RECORD = ClassificationRecord(
    page_number=10,
    category="Kiwisaver statement",
    confidence=3,
    filename="Kiwisaver_2023.pdf",
    summary="Annual member statement",
    stated_page_number="Page 2 of 4",
)


def test_classification_prompt_is_deterministic() -> None:
    first = build_page_classification_prompt(RECORD, ["a.pdf", "b.pdf"], "Page 10: \n\ntext")
    second = build_page_classification_prompt(RECORD, ["a.pdf", "b.pdf"], "Page 10: \n\ntext")

    assert first == second
    assert json.dumps(RECORD.to_payload(), indent=2) in first
    assert "Financial hardship Kiwisaver withdrawal form" in first
    assert '"pageNumber": {{ current page number }}' in first
    assert first.rstrip().endswith("Page 10: \n\ntext")


def test_classification_prompt_without_history() -> None:
    prompt = build_page_classification_prompt(None, [], "Page 1: \n\n")

    assert "No previous summary available" in prompt
    assert "Previously used filenames:\n[]" in prompt


def test_statement_prompts_follow_variant_columns() -> None:
    deposit = build_statement_extraction_prompt(DEPOSIT_VARIANT, "statement text")
    income = build_statement_extraction_prompt(INCOME_VARIANT, "statement text")

    assert "Date, Transaction Detail, Deposit, Withdrawal, Skip" in deposit
    assert "A redundancy notice" in deposit
    assert "Date, Transaction Detail, Income, Expenditure, Skip" in income
    assert "A redundancy notice" not in income
    assert '"category"' in income


def test_report_prompt_embeds_records() -> None:
    prompt = build_html_report_prompt([RECORD])

    assert '"filename": "Kiwisaver_2023.pdf"' in prompt
    assert "HTML report" in prompt
