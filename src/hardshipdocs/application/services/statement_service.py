from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, field
from pathlib import Path

from hardshipdocs.application.services.reassembly_service import COMPLETE_TRANSCRIPT_NAME, TRANSCRIPT_SUFFIX
from hardshipdocs.core.errors import HardshipError, StatementExtractionError
from hardshipdocs.domain.models.transaction import StatementVariant, TransactionRow
from hardshipdocs.infrastructure.ledger.csv_ledger import parse_statement_csv, sort_chronologically, write_ledger_csv
from hardshipdocs.infrastructure.llm.completion_client import CompletionModel
from hardshipdocs.infrastructure.llm.prompts import build_statement_extraction_prompt
from hardshipdocs.infrastructure.llm.responses import parse_statement_extraction
from hardshipdocs.infrastructure.pdf.page_copier import extract_pdf_text

logger = logging.getLogger(__name__)

CONSOLIDATED_NAME = "consolidated_statements.csv"


@dataclass(slots=True)
class SourceDocument:
    text: str
    filename: str


@dataclass(slots=True)
class DocumentExtraction:
    filename: str
    category: str
    is_statement: bool
    starting_balance: str | None = None
    closing_balance: str | None = None
    rows: list[TransactionRow] = field(default_factory=list)
    error: str | None = None


@dataclass(slots=True)
class ConsolidationResult:
    ledger: list[TransactionRow]
    documents: list[DocumentExtraction]

    @property
    def statements(self) -> list[DocumentExtraction]:
        return [doc for doc in self.documents if doc.is_statement]

    @property
    def failed(self) -> list[DocumentExtraction]:
        return [doc for doc in self.documents if doc.error is not None]


@dataclass(slots=True)
class StatementRunSummary:
    result: ConsolidationResult
    consolidated_path: Path | None
    per_document_paths: list[Path] = field(default_factory=list)


class StatementExtractionService:
    def __init__(self, completion: CompletionModel, variant: StatementVariant) -> None:
        self.completion = completion
        self.variant = variant

    def extract_document(self, document: SourceDocument) -> DocumentExtraction:
        prompt = build_statement_extraction_prompt(self.variant, document.text)
        response = self.completion.complete(prompt, max_tokens=self.variant.max_tokens)
        extraction = parse_statement_extraction(response)

        logger.info("Category for %s: %s", document.filename, extraction.category)
        if not extraction.is_statement():
            logger.info("Skipping non-bank statement file: %s", document.filename)
            return DocumentExtraction(
                filename=document.filename,
                category=extraction.category,
                is_statement=False,
            )

        if extraction.csv is None:
            raise StatementExtractionError(f"Statement {document.filename} has no csv field")

        logger.info(
            "%s: starting balance %s, closing balance %s",
            document.filename,
            extraction.starting_balance,
            extraction.closing_balance,
        )
        return DocumentExtraction(
            filename=document.filename,
            category=extraction.category,
            is_statement=True,
            starting_balance=extraction.starting_balance,
            closing_balance=extraction.closing_balance,
            rows=parse_statement_csv(extraction.csv, document.filename),
        )

    def extract_and_consolidate(
        self,
        documents: Iterable[SourceDocument],
        progress_callback: Callable[[dict[str, object]], None] | None = None,
    ) -> ConsolidationResult:
        extractions: list[DocumentExtraction] = []
        merged: list[TransactionRow] = []

        for document in documents:
            try:
                extraction = self.extract_document(document)
            except HardshipError as exc:
                logger.error("Error processing %s: %s", document.filename, exc)
                extraction = DocumentExtraction(
                    filename=document.filename,
                    category="",
                    is_statement=False,
                    error=str(exc),
                )
            extractions.append(extraction)
            merged.extend(extraction.rows)
            if progress_callback is not None:
                progress_callback(
                    {
                        "event": "document_done",
                        "filename": document.filename,
                        "category": extraction.category,
                        "rows": len(extraction.rows),
                        "error": extraction.error,
                    }
                )

        return ConsolidationResult(ledger=sort_chronologically(merged), documents=extractions)

    def run(
        self,
        documents: Sequence[SourceDocument],
        output_dir: Path,
        progress_callback: Callable[[dict[str, object]], None] | None = None,
    ) -> StatementRunSummary:
        result = self.extract_and_consolidate(documents, progress_callback=progress_callback)

        per_document: list[Path] = []
        if self.variant.write_per_document:
            for extraction in result.statements:
                out = output_dir / f"{extraction.filename}.csv"
                per_document.append(write_ledger_csv(extraction.rows, out, self.variant))

        consolidated_path = None
        if result.ledger:
            consolidated_path = write_ledger_csv(result.ledger, output_dir / CONSOLIDATED_NAME, self.variant)
        else:
            logger.warning("No valid data to consolidate.")

        return StatementRunSummary(
            result=result,
            consolidated_path=consolidated_path,
            per_document_paths=per_document,
        )


def collect_transcripts(folder: Path) -> list[SourceDocument]:
    """Load the per-document transcripts written by the split tool.

    The whole-bundle transcript is skipped; its pages already appear in the
    per-document transcripts.
    """
    folder = _require_folder(folder)
    return [
        SourceDocument(text=path.read_text(encoding="utf-8"), filename=path.name)
        for path in sorted(folder.iterdir())
        if path.is_file()
        and path.name.endswith(TRANSCRIPT_SUFFIX)
        and path.name != COMPLETE_TRANSCRIPT_NAME
    ]


def collect_pdf_texts(folder: Path) -> list[SourceDocument]:
    """Extract the embedded text layer of every PDF in a folder."""
    folder = _require_folder(folder)
    documents: list[SourceDocument] = []
    for path in sorted(folder.iterdir()):
        if not path.is_file() or path.suffix.lower() != ".pdf":
            continue
        try:
            text = extract_pdf_text(path)
        except Exception as exc:
            logger.error("Unable to read text from %s: %s", path.name, exc)
            continue
        documents.append(SourceDocument(text=text, filename=path.name))
    return documents


def _require_folder(folder: Path) -> Path:
    folder = folder.expanduser().resolve()
    if not folder.is_dir():
        raise StatementExtractionError(f"Source folder not found: {folder}")
    return folder
