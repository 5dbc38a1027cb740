from __future__ import annotations

import json
import re

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from hardshipdocs.core.errors import SchemaViolationError
from hardshipdocs.domain.models.classification import ClassificationRecord

_FENCE_RE = re.compile(r"^\s*```[a-zA-Z]*\s*\n(?P<body>.*?)\n?\s*```\s*$", re.DOTALL)


class PageClassification(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    page_number: int = Field(alias="pageNumber")
    category: str
    confidence: int = 0
    filename: str
    summary: str = ""
    stated_page_number: str | None = Field(default=None, alias="statedPageNumber")

    @field_validator("filename", "category")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be blank")
        return value

    @field_validator("confidence", mode="before")
    @classmethod
    def _coerce_confidence(cls, value: object) -> object:
        if value is None or value == "":
            return 0
        try:
            return round(float(value))
        except (TypeError, ValueError, OverflowError):
            return value

    @field_validator("confidence")
    @classmethod
    def _clamp_confidence(cls, value: int) -> int:
        return max(0, min(5, value))

    @field_validator("stated_page_number", mode="before")
    @classmethod
    def _stringify_stated(cls, value: object) -> object:
        if value is None:
            return None
        text = str(value).strip()
        return text or None

    def to_record(self) -> ClassificationRecord:
        return ClassificationRecord(
            page_number=self.page_number,
            category=self.category,
            confidence=self.confidence,
            filename=self.filename,
            summary=self.summary,
            stated_page_number=self.stated_page_number,
        )


class StatementExtraction(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    category: str = ""
    starting_balance: str | None = Field(default=None, alias="startingBalance")
    closing_balance: str | None = Field(default=None, alias="closingBalance")
    csv: str | None = None

    @field_validator("starting_balance", "closing_balance", mode="before")
    @classmethod
    def _stringify_balance(cls, value: object) -> object:
        if value is None:
            return None
        return str(value)

    @field_validator("category", mode="before")
    @classmethod
    def _category_or_empty(cls, value: object) -> object:
        return "" if value is None else value

    def is_statement(self) -> bool:
        lowered = self.category.lower()
        return "bank" in lowered or "credit card" in lowered


def strip_code_fence(content: str) -> str:
    match = _FENCE_RE.match(content)
    if match:
        return match.group("body")
    return content


def load_json_content(content: str) -> object:
    try:
        return json.loads(strip_code_fence(content))
    except json.JSONDecodeError as exc:
        raise SchemaViolationError(f"Model response is not valid JSON: {exc}") from exc


def parse_page_classifications(content: str) -> list[ClassificationRecord]:
    payload = load_json_content(content)
    if not isinstance(payload, list):
        raise SchemaViolationError("Expected a JSON array of page classifications")

    records: list[ClassificationRecord] = []
    for index, item in enumerate(payload):
        if not isinstance(item, dict):
            raise SchemaViolationError(f"Classification #{index} is not a JSON object")
        try:
            records.append(PageClassification.model_validate(item).to_record())
        except ValidationError as exc:
            raise SchemaViolationError(f"Classification #{index} is invalid: {exc}") from exc
    return records


def parse_statement_extraction(content: str) -> StatementExtraction:
    payload = load_json_content(content)
    if not isinstance(payload, dict):
        raise SchemaViolationError("Expected a JSON object for statement extraction")
    try:
        return StatementExtraction.model_validate(payload)
    except ValidationError as exc:
        raise SchemaViolationError(f"Statement extraction response is invalid: {exc}") from exc
