from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path

import fitz

from hardshipdocs.core.errors import ReassemblyError


class PdfPageCopier:
    """Builds standalone PDFs from a subset of a source document's pages."""

    def __init__(self, source_bytes: bytes) -> None:
        try:
            self._source = fitz.open(stream=source_bytes, filetype="pdf")
        except Exception as exc:
            raise ReassemblyError(f"Unable to open source PDF: {exc}") from exc

    @property
    def page_count(self) -> int:
        return self._source.page_count

    def extract(self, page_numbers: Sequence[int]) -> bytes:
        """Copy the given 1-based pages, in order, into a new PDF and return its bytes."""
        if not page_numbers:
            raise ReassemblyError("No pages to extract")
        for number in page_numbers:
            if number < 1 or number > self.page_count:
                raise ReassemblyError(
                    f"Page {number} is outside the source document (1-{self.page_count})"
                )

        target = fitz.open()
        try:
            for number in page_numbers:
                target.insert_pdf(self._source, from_page=number - 1, to_page=number - 1)
            return target.tobytes()
        finally:
            target.close()

    def close(self) -> None:
        self._source.close()

    def __enter__(self) -> "PdfPageCopier":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


def extract_pdf_text(path: Path) -> str:
    """Plain text of every page of a PDF with an embedded text layer."""
    with fitz.open(str(path)) as doc:
        return "\n".join(page.get_text() for page in doc)
