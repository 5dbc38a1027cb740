from __future__ import annotations

import argparse
import logging
from pathlib import Path

from rich.console import Console

from hardshipdocs.cli.commands import split_cmd, statements_cmd
from hardshipdocs.cli.context import CLIContext
from hardshipdocs.core.config import load_settings
from hardshipdocs.core.errors import HardshipError
from hardshipdocs.core.logging import configure_logging

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="hardship",
        description="Split and extract financial hardship evidence PDFs",
    )
    parser.add_argument(
        "--env-file",
        type=Path,
        default=None,
        help="Optional .env file with endpoint and key settings (default: ./.env if present)",
    )
    parser.add_argument("-v", "--verbose", action="count", default=0)

    subparsers = parser.add_subparsers(dest="command", required=True)
    split_cmd.register(subparsers)
    statements_cmd.register(subparsers)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    configure_logging(args.verbose)
    console = Console()

    handler = getattr(args, "handler", None)
    if handler is None:
        parser.print_help()
        return 2

    try:
        settings = load_settings(args.env_file)
        ctx = CLIContext(settings=settings, console=console)
        return handler(args, ctx)
    except HardshipError as exc:
        logger.error(str(exc))
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
