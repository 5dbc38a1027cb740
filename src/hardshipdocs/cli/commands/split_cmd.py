from __future__ import annotations

import argparse
from pathlib import Path

from rich.panel import Panel
from rich.progress import BarColumn, Progress, TextColumn, TimeElapsedColumn
from rich.table import Table

from hardshipdocs.application.services.reassembly_service import ReassemblyService
from hardshipdocs.application.services.report_service import ReportService
from hardshipdocs.application.services.segmentation_service import SegmentationService
from hardshipdocs.application.services.split_service import SplitPdfService, SplitRunSummary
from hardshipdocs.cli.clients import make_completion_client, make_layout_client, make_transport, open_cache
from hardshipdocs.cli.context import CLIContext
from hardshipdocs.core.errors import HardshipError


def register(subparsers: argparse._SubParsersAction[argparse.ArgumentParser]) -> None:
    parser = subparsers.add_parser(
        "split",
        help="OCR a concatenated PDF and split it into one file per document",
    )
    parser.add_argument("source", type=Path, help="PDF file, or a folder of PDF files")
    parser.set_defaults(handler=run)


def _create_service(ctx: CLIContext) -> SplitPdfService:
    cache = open_cache(ctx.settings)
    transport = make_transport(ctx.settings)
    completion = make_completion_client(ctx.settings, cache, transport)
    return SplitPdfService(
        layout_client=make_layout_client(ctx.settings, cache, transport),
        segmentation_service=SegmentationService(completion),
        reassembly_service=ReassemblyService(),
        report_service=ReportService(completion),
    )


def run(args: argparse.Namespace, ctx: CLIContext) -> int:
    service = _create_service(ctx)
    sources = SplitPdfService.find_sources(args.source)
    if not sources:
        ctx.console.print(f"[yellow]No PDF files found in[/yellow] {args.source}")
        return 0

    exit_code = 0
    for source in sources:
        progress = Progress(
            TextColumn("{task.description}"),
            BarColumn(),
            TextColumn("{task.completed}/{task.total}"),
            TimeElapsedColumn(),
            console=ctx.console,
        )
        with progress:
            task = progress.add_task(f"Classifying {source.name}", total=None)

            def on_progress(event: dict[str, object]) -> None:
                if event.get("event") == "window_start":
                    progress.update(task, total=event["total"])
                elif event.get("event") == "window_done":
                    progress.advance(task, 1)

            try:
                summary = service.run(source, ctx.settings.output_dir, progress_callback=on_progress)
            except HardshipError as exc:
                progress.stop()
                ctx.console.print(f"[red]Failed[/red] {source}: {exc}")
                exit_code = 1
                continue

        _print_summary(ctx, summary)
        if summary.segmentation.error or summary.reassembly.failures:
            exit_code = 1

    return exit_code


def _print_summary(ctx: CLIContext, summary: SplitRunSummary) -> None:
    table = Table(title=f"Split Results: {summary.source.name}")
    table.add_column("File", overflow="fold")
    table.add_column("Category", overflow="fold")
    table.add_column("Pages")
    categories = {entry.filename: entry.category for entry in summary.reassembly.manifest}
    for artifact in summary.reassembly.created:
        table.add_row(artifact.filename, categories.get(artifact.filename, ""), _page_ranges(artifact.pages))
    for failure in summary.reassembly.failures:
        table.add_row(failure.filename, f"[red]error[/red] {failure.error}", _page_ranges(failure.pages))
    ctx.console.print(table)

    segmentation = summary.segmentation
    ctx.console.print(
        f"Pages: {summary.page_count}  Windows: {segmentation.windows_completed}/{segmentation.windows_total}  "
        f"Output: {summary.output_dir}"
    )
    if summary.report_path:
        ctx.console.print(f"[green]Report written[/green] {summary.report_path}")
    if summary.warnings:
        ctx.console.print(Panel.fit("\n".join(summary.warnings), title="Warnings", border_style="yellow"))


def _page_ranges(pages: list[int]) -> str:
    if not pages:
        return "-"
    ranges: list[str] = []
    start = prev = pages[0]
    for number in pages[1:]:
        if number == prev + 1:
            prev = number
            continue
        ranges.append(str(start) if start == prev else f"{start}-{prev}")
        start = prev = number
    ranges.append(str(start) if start == prev else f"{start}-{prev}")
    return ", ".join(ranges)
