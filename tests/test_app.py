# tests/test_app.py

"""Smoke tests for the TUI application using Textual's Pilot."""

import unittest
from datetime import datetime, timedelta, timezone
from typing import Any, cast

from textual.widgets import DataTable, Input, Static

from catalog_browser.models.fetch_state import ErrorState, LoadedState
from catalog_browser.stores.base_store import (
    Cursor,
    Page,
    RawRecord,
    TransientStoreError,
)
from catalog_browser.stores.memory_store import InMemoryProductStore
from catalog_browser.ui.app import CatalogBrowserApp

_BASE = datetime(2024, 1, 1, tzinfo=timezone.utc)


def _store(count: int = 25) -> InMemoryProductStore:
    """A store with *count* products named Item 00, Item 01, ..."""
    return InMemoryProductStore(
        RawRecord(
            f"p{n:02d}",
            {
                "name": f"Item {n:02d}",
                "price": 10 + n,
                "imageUrl": "",
                "description": f"Product number {n}",
                "createdAt": _BASE + timedelta(minutes=n),
            },
        )
        for n in range(count)
    )


class _DownStore(InMemoryProductStore):
    async def query_page(
        self,
        order_by: str,
        descending: bool,
        limit: int,
        after: Cursor | None = None,
    ) -> Page:
        raise TransientStoreError("offline")


async def _settle(app: CatalogBrowserApp, pilot: Any) -> None:
    """Wait for controller work and the resulting redraws."""
    await pilot.pause()
    assert app.controller is not None
    await app.controller.wait_until_idle()
    await pilot.pause()


def _table(app: CatalogBrowserApp) -> DataTable[Any]:
    return cast(DataTable[Any], app.query_one("#results_table", DataTable))


class TestCatalogBrowserApp(unittest.IsolatedAsyncioTestCase):
    """Smoke tests for the Textual TUI."""

    async def test_app_composes_without_crash(self) -> None:
        """The app starts and renders all widgets."""
        app = CatalogBrowserApp(store=_store())
        async with app.run_test() as pilot:
            app.query_one("#search_input", Input)
            app.query_one("#status", Static)
            _table(app)
            await pilot.pause()

    async def test_first_page_loaded_on_mount(self) -> None:
        """The controller's initial load fills ten rows."""
        app = CatalogBrowserApp(store=_store())
        async with app.run_test() as pilot:
            await _settle(app, pilot)
            self.assertEqual(_table(app).row_count, 10)
            assert app.controller is not None
            self.assertIsInstance(app.controller.state, LoadedState)

    async def test_load_more_appends_rows(self) -> None:
        """Loading more keeps the first page and adds the next."""
        app = CatalogBrowserApp(store=_store())
        async with app.run_test() as pilot:
            await _settle(app, pilot)
            app.action_load_more()
            await _settle(app, pilot)
            self.assertEqual(_table(app).row_count, 20)

    async def test_typing_searches(self) -> None:
        """Typing a prefix replaces the rows with matches."""
        app = CatalogBrowserApp(store=_store())
        async with app.run_test() as pilot:
            await _settle(app, pilot)
            app.query_one("#search_input", Input).value = "Item 1"
            await _settle(app, pilot)

            assert app.controller is not None
            names = [p.name for p in app.controller.state.items]
            self.assertEqual(names, [f"Item {n}" for n in range(10, 20)])
            self.assertEqual(_table(app).row_count, 10)

    async def test_clearing_search_loads_more(self) -> None:
        """An emptied search box goes back to paging."""
        store = _store()
        app = CatalogBrowserApp(store=store)
        async with app.run_test() as pilot:
            await _settle(app, pilot)
            search_input = app.query_one("#search_input", Input)
            search_input.value = "Item 2"
            await _settle(app, pilot)
            search_input.value = ""
            await _settle(app, pilot)
            self.assertEqual(store.page_queries, 2)

    async def test_store_failure_shows_error(self) -> None:
        """A failing store leaves an empty table and the error state."""
        app = CatalogBrowserApp(store=_DownStore())
        async with app.run_test(notifications=True) as pilot:
            await _settle(app, pilot)
            assert app.controller is not None
            self.assertEqual(
                app.controller.state, ErrorState("Failed to fetch products")
            )
            self.assertEqual(_table(app).row_count, 0)

    async def test_unmount_disposes_controller(self) -> None:
        """Closing the app disposes the controller."""
        app = CatalogBrowserApp(store=_store())
        async with app.run_test() as pilot:
            await _settle(app, pilot)
        assert app.controller is not None
        self.assertTrue(app.controller.disposed)


if __name__ == "__main__":
    unittest.main()
