from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path

from hardshipdocs.application.services.reassembly_service import ReassemblyResult, ReassemblyService
from hardshipdocs.application.services.report_service import ReportService
from hardshipdocs.application.services.segmentation_service import SegmentationResult, SegmentationService
from hardshipdocs.core.errors import SegmentationError
from hardshipdocs.core.files import ensure_directory
from hardshipdocs.infrastructure.ocr.layout_client import LayoutAnalysisClient, pages_from_result

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class SplitRunSummary:
    source: Path
    output_dir: Path
    page_count: int
    segmentation: SegmentationResult
    reassembly: ReassemblyResult
    report_path: Path | None = None
    warnings: list[str] = field(default_factory=list)


class SplitPdfService:
    """OCR a concatenated PDF, classify its pages and write one file per document."""

    def __init__(
        self,
        layout_client: LayoutAnalysisClient,
        segmentation_service: SegmentationService,
        reassembly_service: ReassemblyService,
        report_service: ReportService | None = None,
    ) -> None:
        self.layout_client = layout_client
        self.segmentation_service = segmentation_service
        self.reassembly_service = reassembly_service
        self.report_service = report_service

    @staticmethod
    def output_dir_for(pdf_path: Path, output_root: Path) -> Path:
        return output_root / pdf_path.stem

    @staticmethod
    def find_sources(path: Path) -> list[Path]:
        path = path.expanduser().resolve()
        if path.is_file():
            return [path]
        if path.is_dir():
            return sorted(p for p in path.iterdir() if p.is_file() and p.suffix.lower() == ".pdf")
        raise SegmentationError(f"Source not found: {path}")

    def run(
        self,
        pdf_path: Path,
        output_root: Path,
        progress_callback: Callable[[dict[str, object]], None] | None = None,
    ) -> SplitRunSummary:
        pdf_path = pdf_path.expanduser().resolve()
        if not pdf_path.is_file():
            raise SegmentationError(f"File not found: {pdf_path}")

        output_dir = self.output_dir_for(pdf_path, output_root)
        ensure_directory(output_dir)

        result = self.layout_client.analyze(pdf_path)
        pages = pages_from_result(result)
        logger.info("%s: %d page(s) analyzed", pdf_path.name, len(pages))

        segmentation = self.segmentation_service.segment(pages, progress_callback=progress_callback)
        warnings: list[str] = []
        if segmentation.error:
            warnings.append(f"Segmentation stopped early: {segmentation.error}")

        classified = {record.page_number for record in segmentation.records}
        missing = [page.page_number for page in pages if page.page_number not in classified]
        if missing:
            warnings.append(f"{len(missing)} page(s) were not classified: {missing}")

        reassembly = self.reassembly_service.reassemble(
            segmentation.records,
            [page.text for page in pages],
            pdf_path.read_bytes(),
            output_dir,
        )
        for anomaly in reassembly.anomalies:
            warnings.append(
                f"Category mismatch for {anomaly.filename} on page {anomaly.page_number}: "
                f"{anomaly.expected_category} vs {anomaly.found_category}"
            )

        report_path = None
        if self.report_service is not None:
            report_path = self.report_service.write_report(segmentation.records, output_dir)

        return SplitRunSummary(
            source=pdf_path,
            output_dir=output_dir,
            page_count=len(pages),
            segmentation=segmentation,
            reassembly=reassembly,
            report_path=report_path,
            warnings=warnings,
        )
