import json

import pytest

from hardshipdocs.core.errors import SchemaViolationError
from hardshipdocs.infrastructure.llm.completion_client import extract_message_content
from hardshipdocs.infrastructure.llm.responses import parse_page_classifications, parse_statement_extraction


def test_parse_page_classifications_maps_model_keys() -> None:
    content = json.dumps(
        [
            {
                "pageNumber": 3,
                "category": "Bank account statement",
                "confidence": "4",
                "filename": "ASB_Cheque_Jan-Mar_2024.pdf",
                "summary": "Transactions for January",
                "statedPageNumber": 1,
            }
        ]
    )

    [record] = parse_page_classifications(content)

    assert record.page_number == 3
    assert record.confidence == 4
    assert record.filename == "ASB_Cheque_Jan-Mar_2024.pdf"
    assert record.stated_page_number == "1"


def test_fenced_json_is_accepted() -> None:
    content = '```json\n[{"pageNumber": 1, "category": "A payslip", "filename": "payslip.pdf"}]\n```'

    [record] = parse_page_classifications(content)

    assert record.category == "A payslip"
    assert record.confidence == 0
    assert record.summary == ""


def test_missing_filename_is_a_schema_violation() -> None:
    with pytest.raises(SchemaViolationError):
        parse_page_classifications('[{"pageNumber": 1, "category": "A payslip"}]')


def test_object_instead_of_array_is_a_schema_violation() -> None:
    with pytest.raises(SchemaViolationError):
        parse_page_classifications('{"pageNumber": 1}')


def test_invalid_json_is_a_schema_violation() -> None:
    with pytest.raises(SchemaViolationError):
        parse_page_classifications("Here are the pages: [")


def test_statement_extraction_detects_statements() -> None:
    parsed = parse_statement_extraction(
        json.dumps({"category": "Credit Card statement", "startingBalance": 10.5, "csv": "Date\n"})
    )

    assert parsed.is_statement()
    assert parsed.starting_balance == "10.5"
    assert parse_statement_extraction('{"category": "A payslip"}').is_statement() is False


def test_extract_message_content_requires_choices() -> None:
    assert extract_message_content({"choices": [{"message": {"content": "[]"}}]}) == "[]"
    with pytest.raises(SchemaViolationError):
        extract_message_content({"error": "quota"})


def test_fractional_confidence_is_rounded_and_clamped() -> None:
    content = json.dumps(
        [
            {"pageNumber": 1, "category": "A payslip", "confidence": 3.6, "filename": "payslip.pdf"},
            {"pageNumber": 2, "category": "A payslip", "confidence": "4.4", "filename": "payslip.pdf"},
            {"pageNumber": 3, "category": "A payslip", "confidence": 9.2, "filename": "payslip.pdf"},
        ]
    )

    records = parse_page_classifications(content)

    assert [r.confidence for r in records] == [4, 4, 5]


def test_non_numeric_confidence_is_rejected() -> None:
    content = json.dumps([{"pageNumber": 1, "category": "A payslip", "confidence": "high", "filename": "p.pdf"}])

    with pytest.raises(SchemaViolationError):
        parse_page_classifications(content)
