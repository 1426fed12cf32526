"""Command-line entry for ficalter."""

from __future__ import annotations

import argparse
import sys
from typing import NoReturn, Optional

from . import run_server

DEFAULT_PORT = 8080


def _create_parser() -> argparse.ArgumentParser:
    """Create argument parser for the ficalter CLI.

    Returns:
        Configured argument parser
    """
    parser = argparse.ArgumentParser(
        prog="ficalter",
        description="ficalter - filter an upstream ICS calendar by event summary",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m ficalter -u https://example.com/cal.ics --server
  python -m ficalter -u https://example.com/cal.ics --test --server --port 3000

Query parameters accepted by the server:
  include=<text>   keep events whose summary contains <text> (repeatable)
  exclude=<text>   drop events whose summary contains <text> (repeatable)
  default=true     keep events matching neither list
  insensitive=true compare summaries case-insensitively
        """,
    )

    parser.add_argument("-s", "--server", action="store_true", help="Start webserver")
    parser.add_argument(
        "-p",
        "--port",
        type=int,
        metavar="PORT",
        help=f"Webserver port (default: {DEFAULT_PORT}, or from FICALTER_WEB_PORT env var)",
    )
    parser.add_argument(
        "-u",
        "--upstream",
        metavar="UPSTREAM",
        help="Upstream calendar URL (or FICALTER_UPSTREAM_URL env var)",
    )
    parser.add_argument(
        "-t", "--test", action="store_true", help="Run test before doing anything else"
    )
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")

    return parser


def main(argv: Optional[list[str]] = None) -> NoReturn:
    """Run the ficalter CLI."""
    parser = _create_parser()
    args = parser.parse_args(argv)

    if not args.server and not args.test:
        parser.error("nothing to do: pass --server and/or --test")

    try:
        status = run_server(args)
    except ValueError as exc:
        parser.error(str(exc))

    sys.exit(status)


if __name__ == "__main__":
    main()
