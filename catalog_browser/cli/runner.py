# catalog_browser/cli/runner.py

"""Headless CLI runner driving the same fetch controller as the TUI."""

import json
import logging
from pathlib import Path
from typing import Any

from rich.console import Console
from rich.table import Table

from catalog_browser.models.fetch_state import ErrorState, FetchState
from catalog_browser.models.product import Product
from catalog_browser.services.fetch_controller import FetchController
from catalog_browser.services.store_factory import build_store
from catalog_browser.stores.base_store import ProductStore, RawRecord
from catalog_browser.stores.sqlite_store import SQLiteProductStore

logger = logging.getLogger("catalog_browser.cli")

# Stderr console for status messages so stdout stays clean for JSON
_err = Console(stderr=True)


def _products_to_dicts(products: tuple[Product, ...]) -> list[dict[str, object]]:
    """Serialise products to plain dicts for JSON output."""
    return [
        {
            "id": p.id,
            "name": p.name,
            "price": str(p.price),
            "imageUrl": p.image_url,
            "description": p.description,
            "createdAt": p.created_at.isoformat(),
        }
        for p in products
    ]


def _print_table(products: tuple[Product, ...], title: str) -> None:
    """Render a Rich table of products to stdout."""
    table = Table(
        title=title,
        show_lines=True,
        title_style="bold cyan",
    )
    table.add_column("#", style="dim", width=4)
    table.add_column("Name", max_width=50)
    table.add_column("Price", justify="right", style="green")
    table.add_column("Description", max_width=60)
    table.add_column("Added", style="magenta")

    for idx, p in enumerate(products, 1):
        table.add_row(
            str(idx),
            p.name,
            f"{p.price:,.2f}",
            p.description or "—",
            p.created_at.strftime("%Y-%m-%d %H:%M"),
        )

    Console().print(table)


def _report(
    state: FetchState, output_format: str, title: str,
) -> int:
    """Print the final state and return the process exit code."""
    if isinstance(state, ErrorState):
        _err.print(f"[red]{state.message}[/red]")
        return 1

    if output_format == "table":
        _print_table(state.items, title)
    else:
        print(json.dumps(_products_to_dicts(state.items), indent=2))

    _err.print(f"[dim]{len(state.items)} products[/dim]")
    return 0


async def cli_browse(
    pages: int,
    backend: str | None = None,
    output_format: str = "json",
    store: ProductStore | None = None,
) -> int:
    """Load *pages* pages in order and print the accumulated list."""
    store = store or build_store(backend)
    controller = FetchController(store, load_initial=False)
    try:
        for page_no in range(1, pages + 1):
            before = len(controller.state.items)
            task = controller.load_more()
            if task is not None:
                await task
            if isinstance(controller.state, ErrorState):
                logger.error("Browsing stopped at page %d", page_no)
                break
            if page_no > 1 and len(controller.state.items) == before:
                _err.print(f"[dim]No more pages after page {page_no - 1}[/dim]")
                break
        return _report(controller.state, output_format, "Latest Products")
    finally:
        controller.dispose()
        await store.close()


async def cli_search(
    query: str,
    backend: str | None = None,
    output_format: str = "json",
    store: ProductStore | None = None,
) -> int:
    """Run one prefix search and print the matches."""
    store = store or build_store(backend)
    controller = FetchController(store, load_initial=False)
    try:
        _err.print(f"[dim]Searching '{query}'...[/dim]")
        controller.search(query)
        await controller.wait_until_idle()
        return _report(
            controller.state, output_format, f"Results for '{query}'"
        )
    finally:
        controller.dispose()
        await store.close()


def _load_seed_records(path: Path) -> list[RawRecord]:
    """Read a JSON array of ``{"id": ..., <fields>}`` objects."""
    with open(path, encoding="utf-8") as f:
        raw: Any = json.load(f)
    if not isinstance(raw, list):
        raise ValueError("Seed file must contain a JSON array")

    records: list[RawRecord] = []
    for item in raw:
        fields = dict(item)
        record_id = str(fields.pop("id"))
        records.append(RawRecord(id=record_id, fields=fields))
    return records


def run_seed(path: str, db_path: Path | None = None) -> int:
    """Import seed records into the local SQLite catalog."""
    try:
        records = _load_seed_records(Path(path))
    except (OSError, ValueError, KeyError, TypeError) as exc:
        logger.error("Cannot read seed file %s", path, exc_info=True)
        _err.print(f"[red]Cannot read seed file: {exc}[/red]")
        return 1

    store = SQLiteProductStore(db_path)
    try:
        count = store.insert_records(records)
    except KeyError as exc:
        logger.error("Seed record missing field %s", exc, exc_info=True)
        _err.print(f"[red]Seed record missing field {exc}[/red]")
        return 1
    finally:
        store.disconnect()
    _err.print(f"[green]Imported {count} products[/green]")
    return 0
