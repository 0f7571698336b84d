# main.py

"""Entry point for the catalog_browser application (TUI or headless CLI)."""

import argparse
import asyncio
import logging
import sys

from catalog_browser.config.logging_config import setup_logging
from catalog_browser.config.settings import Settings
from catalog_browser.services.store_factory import backend_ids

logger = logging.getLogger("catalog_browser.main")


def _build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the CLI."""
    parser = argparse.ArgumentParser(
        prog="catalog_browser",
        description="Browse and search a product catalog.",
        epilog=f"Available backends: {', '.join(backend_ids())}",
    )
    parser.add_argument(
        "query",
        nargs="?",
        default=None,
        help="Name prefix to search. Omit to launch the interactive TUI.",
    )
    parser.add_argument(
        "-p",
        "--pages",
        type=int,
        default=None,
        help="Load this many pages headlessly instead of searching.",
    )
    parser.add_argument(
        "-b",
        "--backend",
        choices=backend_ids(),
        default=Settings.STORE_BACKEND,
        help=f"Store backend (default: {Settings.STORE_BACKEND}).",
    )
    parser.add_argument(
        "-f",
        "--format",
        choices=["json", "table"],
        default="json",
        dest="output_format",
        help="Output format (default: json).",
    )
    parser.add_argument(
        "--seed",
        default=None,
        metavar="FILE",
        help="Import a JSON array of product records into the SQLite store.",
    )
    return parser


def _run_tui(backend: str) -> None:
    """Launch the interactive Textual TUI."""
    from catalog_browser.services.store_factory import build_store
    from catalog_browser.ui.app import CatalogBrowserApp

    try:
        app = CatalogBrowserApp(store=build_store(backend))
        app.run()
    except Exception:
        logger.critical("Fatal error during TUI run", exc_info=True)
        raise
    finally:
        logger.info("catalog_browser TUI shutting down")


def _run_search(args: argparse.Namespace) -> None:
    """Run a headless prefix search and exit."""
    from catalog_browser.cli.runner import cli_search

    exit_code = asyncio.run(
        cli_search(
            query=args.query,
            backend=args.backend,
            output_format=args.output_format,
        )
    )
    sys.exit(exit_code)


def _run_browse(args: argparse.Namespace) -> None:
    """Load pages headlessly and exit."""
    from catalog_browser.cli.runner import cli_browse

    exit_code = asyncio.run(
        cli_browse(
            pages=args.pages,
            backend=args.backend,
            output_format=args.output_format,
        )
    )
    sys.exit(exit_code)


def _run_seed(path: str) -> None:
    """Seed the local SQLite catalog from a JSON file."""
    from catalog_browser.cli.runner import run_seed

    sys.exit(run_seed(path))


def main() -> None:
    """Route to TUI (no args) or a headless command."""
    log_file = setup_logging()
    logger.info("catalog_browser starting, log file: %s", log_file)

    parser = _build_parser()
    args = parser.parse_args()

    if args.pages is not None and args.pages < 1:
        parser.error("--pages must be at least 1")

    if args.seed:
        _run_seed(args.seed)
    elif args.pages is not None:
        _run_browse(args)
    elif args.query is None:
        _run_tui(args.backend)
    else:
        _run_search(args)


if __name__ == "__main__":
    main()
