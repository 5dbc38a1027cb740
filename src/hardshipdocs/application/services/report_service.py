from __future__ import annotations

import logging
from collections.abc import Sequence
from pathlib import Path

from hardshipdocs.core.errors import HardshipError
from hardshipdocs.core.files import write_text_atomic
from hardshipdocs.domain.models.classification import ClassificationRecord
from hardshipdocs.infrastructure.llm.completion_client import DEFAULT_MAX_TOKENS, CompletionModel
from hardshipdocs.infrastructure.llm.prompts import build_html_report_prompt
from hardshipdocs.infrastructure.llm.responses import strip_code_fence

logger = logging.getLogger(__name__)

REPORT_NAME = "report.html"


class ReportService:
    def __init__(self, completion: CompletionModel, max_tokens: int = DEFAULT_MAX_TOKENS) -> None:
        self.completion = completion
        self.max_tokens = max_tokens

    def generate_html(self, records: Sequence[ClassificationRecord]) -> str:
        response = self.completion.complete(build_html_report_prompt(records), max_tokens=self.max_tokens)
        return strip_code_fence(response)

    def write_report(self, records: Sequence[ClassificationRecord], output_dir: Path) -> Path | None:
        """Write ``report.html``; a failed report is logged and yields None."""
        if not records:
            return None
        try:
            html = self.generate_html(records)
        except HardshipError as exc:
            logger.error("Error generating report: %s", exc)
            return None
        out_path = output_dir / REPORT_NAME
        try:
            write_text_atomic(out_path, html)
        except OSError as exc:
            logger.error("Failed to write %s: %s", out_path.name, exc)
            return None
        return out_path
