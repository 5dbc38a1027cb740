from __future__ import annotations

import json
import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from pathlib import Path

from hardshipdocs.core.errors import ReassemblyError
from hardshipdocs.core.files import ensure_directory, safe_output_name, write_bytes_atomic, write_text_atomic
from hardshipdocs.domain.models.classification import (
    CategoryAnomaly,
    ClassificationRecord,
    DocumentGroup,
    ManifestEntry,
)
from hardshipdocs.infrastructure.pdf.page_copier import PdfPageCopier

logger = logging.getLogger(__name__)

COMPLETE_TRANSCRIPT_NAME = "complete_raw_ocr.txt"
MANIFEST_NAME = "manifest.json"
TRANSCRIPT_SUFFIX = "_raw_ocr.txt"

# Its transcript name would collide with COMPLETE_TRANSCRIPT_NAME.
RESERVED_PDF_NAME = COMPLETE_TRANSCRIPT_NAME[: -len(TRANSCRIPT_SUFFIX)] + ".pdf"


@dataclass(slots=True)
class CreatedArtifact:
    filename: str
    pdf_path: Path
    text_path: Path
    pages: list[int]


@dataclass(slots=True)
class ArtifactFailure:
    filename: str
    pages: list[int]
    error: str


@dataclass(slots=True)
class ReassemblyResult:
    created: list[CreatedArtifact]
    manifest: list[ManifestEntry]
    anomalies: list[CategoryAnomaly]
    failures: list[ArtifactFailure] = field(default_factory=list)
    manifest_path: Path | None = None
    transcript_path: Path | None = None


def group_classifications(
    records: Sequence[ClassificationRecord],
) -> tuple[list[DocumentGroup], list[CategoryAnomaly]]:
    """Group page classifications by filename in first-seen order.

    The first category and summary recorded for a filename are kept; a later
    page claiming a different category is reported, not applied.
    """
    groups: dict[str, DocumentGroup] = {}
    anomalies: list[CategoryAnomaly] = []

    for record in records:
        group = groups.get(record.filename)
        if group is None:
            group = DocumentGroup(filename=record.filename, category=record.category, summary=record.summary)
            groups[record.filename] = group
        elif group.category != record.category:
            logger.warning(
                "Category mismatch for %s: %s vs %s (page %d)",
                record.filename,
                group.category,
                record.category,
                record.page_number,
            )
            anomalies.append(
                CategoryAnomaly(
                    filename=record.filename,
                    page_number=record.page_number,
                    expected_category=group.category,
                    found_category=record.category,
                )
            )
        if not group.summary and record.summary:
            group.summary = record.summary
        group.page_numbers.append(record.page_number)

    return list(groups.values()), anomalies


def transcript_name_for(pdf_name: str) -> str:
    stem = pdf_name[: -len(".pdf")] if pdf_name.lower().endswith(".pdf") else pdf_name
    return f"{stem}{TRANSCRIPT_SUFFIX}"


class ReassemblyService:
    def __init__(self, copier_factory: Callable[[bytes], PdfPageCopier] = PdfPageCopier) -> None:
        self.copier_factory = copier_factory

    def reassemble(
        self,
        records: Sequence[ClassificationRecord],
        page_texts: Sequence[str],
        source_pdf: bytes,
        output_dir: Path,
    ) -> ReassemblyResult:
        groups, anomalies = group_classifications(records)
        ensure_directory(output_dir)

        created: list[CreatedArtifact] = []
        manifest: list[ManifestEntry] = []
        failures: list[ArtifactFailure] = []
        transcript_parts: list[str] = []
        taken: set[str] = {RESERVED_PDF_NAME}

        with self.copier_factory(source_pdf) as copier:
            for group in groups:
                pages = group.ordered_pages()
                pdf_name = self._unique_name(safe_output_name(group.filename), taken)
                texts = [self._page_text(page_texts, number) for number in pages]
                transcript_parts.extend(f"{text}\n\n" for text in texts)

                try:
                    pdf_bytes = copier.extract(pages)
                    pdf_path = output_dir / pdf_name
                    write_bytes_atomic(pdf_path, pdf_bytes)
                    text_path = output_dir / transcript_name_for(pdf_name)
                    write_text_atomic(text_path, "\n\n".join(texts))
                except (ReassemblyError, OSError) as exc:
                    logger.error("Failed to write %s (pages %s): %s", pdf_name, pages, exc)
                    failures.append(ArtifactFailure(filename=pdf_name, pages=pages, error=str(exc)))
                    continue

                logger.info("Wrote %s (%d page(s))", pdf_name, len(pages))
                created.append(CreatedArtifact(filename=pdf_name, pdf_path=pdf_path, text_path=text_path, pages=pages))
                manifest.append(ManifestEntry(filename=pdf_name, category=group.category, summary=group.summary))

        manifest_path = self._write_global(
            output_dir / MANIFEST_NAME,
            json.dumps([entry.to_payload() for entry in manifest], ensure_ascii=False, indent=2),
            failures,
        )
        transcript_path = self._write_global(
            output_dir / COMPLETE_TRANSCRIPT_NAME,
            "".join(transcript_parts),
            failures,
        )

        return ReassemblyResult(
            created=created,
            manifest=manifest,
            anomalies=anomalies,
            failures=failures,
            manifest_path=manifest_path,
            transcript_path=transcript_path,
        )

    @staticmethod
    def _write_global(path: Path, text: str, failures: list[ArtifactFailure]) -> Path | None:
        try:
            write_text_atomic(path, text)
        except OSError as exc:
            logger.error("Failed to write %s: %s", path.name, exc)
            failures.append(ArtifactFailure(filename=path.name, pages=[], error=str(exc)))
            return None
        return path

    @staticmethod
    def _page_text(page_texts: Sequence[str], page_number: int) -> str:
        if 1 <= page_number <= len(page_texts):
            return page_texts[page_number - 1]
        return ""

    @staticmethod
    def _unique_name(name: str, taken: set[str]) -> str:
        # Distinct model filenames can collapse to the same safe name.
        candidate = name
        counter = 2
        while candidate.lower() in taken:
            candidate = f"{name[:-4]}_{counter}.pdf"
            counter += 1
        taken.add(candidate.lower())
        return candidate
