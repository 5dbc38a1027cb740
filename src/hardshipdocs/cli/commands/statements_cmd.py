from __future__ import annotations

import argparse
from pathlib import Path

from rich.progress import BarColumn, Progress, TextColumn, TimeElapsedColumn
from rich.table import Table

from hardshipdocs.application.services.statement_service import (
    SourceDocument,
    StatementExtractionService,
    StatementRunSummary,
    collect_pdf_texts,
    collect_transcripts,
)
from hardshipdocs.cli.clients import make_completion_client, make_transport, open_cache
from hardshipdocs.cli.context import CLIContext
from hardshipdocs.domain.models.transaction import DEPOSIT_VARIANT, INCOME_VARIANT, StatementVariant


def register(subparsers: argparse._SubParsersAction[argparse.ArgumentParser]) -> None:
    statements = subparsers.add_parser(
        "statements",
        help="Extract transactions from the *_raw_ocr.txt transcripts of a split run",
    )
    statements.add_argument("source", type=Path, help="Folder holding split-run transcripts")
    statements.set_defaults(handler=run_transcripts)

    scan = subparsers.add_parser(
        "scan-pdfs",
        help="Extract transactions from every text-layer PDF in a folder",
    )
    scan.add_argument("source", type=Path, help="Folder of statement PDFs")
    scan.set_defaults(handler=run_pdfs)


def run_transcripts(args: argparse.Namespace, ctx: CLIContext) -> int:
    documents = collect_transcripts(args.source)
    output_dir = args.source.expanduser().resolve()
    return _run(ctx, INCOME_VARIANT, documents, output_dir)


def run_pdfs(args: argparse.Namespace, ctx: CLIContext) -> int:
    documents = collect_pdf_texts(args.source)
    return _run(ctx, DEPOSIT_VARIANT, documents, ctx.settings.output_dir)


def _run(
    ctx: CLIContext,
    variant: StatementVariant,
    documents: list[SourceDocument],
    output_dir: Path,
) -> int:
    if not documents:
        ctx.console.print("[yellow]No documents to process[/yellow]")
        return 0

    cache = open_cache(ctx.settings)
    completion = make_completion_client(ctx.settings, cache, make_transport(ctx.settings))
    service = StatementExtractionService(completion, variant)

    progress = Progress(
        TextColumn("{task.description}"),
        BarColumn(),
        TextColumn("{task.completed}/{task.total}"),
        TimeElapsedColumn(),
        console=ctx.console,
    )
    with progress:
        task = progress.add_task("Extracting", total=len(documents))
        summary = service.run(
            documents,
            output_dir,
            progress_callback=lambda _event: progress.advance(task, 1),
        )

    _print_summary(ctx, summary)
    return 1 if summary.result.failed else 0


def _print_summary(ctx: CLIContext, summary: StatementRunSummary) -> None:
    table = Table(title="Statement Extraction")
    table.add_column("File", overflow="fold")
    table.add_column("Category", overflow="fold")
    table.add_column("Opening")
    table.add_column("Closing")
    table.add_column("Rows")
    for doc in summary.result.documents:
        if doc.error:
            table.add_row(doc.filename, f"[red]error[/red] {doc.error}", "", "", "")
            continue
        table.add_row(
            doc.filename,
            doc.category,
            doc.starting_balance or "",
            doc.closing_balance or "",
            str(len(doc.rows)) if doc.is_statement else "skipped",
        )
    ctx.console.print(table)

    if summary.consolidated_path:
        ctx.console.print(
            f"[green]Consolidated ledger written[/green] {summary.consolidated_path} "
            f"({len(summary.result.ledger)} rows)"
        )
    else:
        ctx.console.print("[yellow]No valid data to consolidate.[/yellow]")
