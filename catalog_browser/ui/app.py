# catalog_browser/ui/app.py

"""Terminal UI for browsing and searching the product catalog."""

import logging
from collections.abc import Callable
from typing import cast

from rich.text import Text
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Container
from textual.css.query import NoMatches
from textual.message import Message
from textual.widgets import (
    DataTable,
    Footer,
    Header,
    Input,
    Static,
)

from catalog_browser.config.settings import Settings
from catalog_browser.models.fetch_state import (
    ErrorState,
    FetchState,
    InitialState,
)
from catalog_browser.models.product import Product
from catalog_browser.services.fetch_controller import FetchController
from catalog_browser.services.store_factory import build_store
from catalog_browser.stores.base_store import ProductStore

logger = logging.getLogger("catalog_browser.ui")


class ProductTable(DataTable[str | Text]):
    """Results table that reports when it is scrolled near the bottom."""

    class NearBottom(Message):
        """Posted when fewer than ``LOAD_MORE_THRESHOLD`` rows remain."""

    def watch_scroll_y(self, old_value: float, new_value: float) -> None:
        super().watch_scroll_y(old_value, new_value)
        if self.max_scroll_y <= 0 or new_value <= old_value:
            return
        remaining = self.max_scroll_y - new_value
        if remaining <= Settings.LOAD_MORE_THRESHOLD:
            self.post_message(self.NearBottom())


class CatalogBrowserApp(App[object]):
    """Infinite-scroll product list with prefix search."""

    BINDINGS = [
        Binding("q", "quit", "Quit"),
        Binding("l", "load_more", "Load More"),
        Binding("escape", "clear_search", "Clear Search"),
    ]

    def __init__(self, store: ProductStore | None = None) -> None:
        super().__init__()
        self.store = store
        self.controller: FetchController | None = None
        self._unsubscribe: Callable[[], None] | None = None
        self._shown: tuple[Product, ...] = ()

    def compose(self) -> ComposeResult:
        """Build the widget tree for the TUI."""
        yield Header()
        yield Container(
            Static("🛒 Product Catalog", id="title"),
            Input(
                placeholder="Search products by name...",
                id="search_input",
            ),
            Static("Ready", id="status"),
            ProductTable(
                id="results_table",
                zebra_stripes=True,
                cursor_type="row",
            ),
            id="main_container",
        )
        yield Footer()

    def on_mount(self) -> None:
        """Configure the table, then start the controller's first page."""
        table = self._table()
        table.add_columns("Name", "Price", "Description", "Added")

        if self.store is None:
            self.store = build_store()
        self.controller = FetchController(self.store)
        self._unsubscribe = self.controller.add_listener(self.render_state)

    async def on_unmount(self) -> None:
        """Stop observing and release the store."""
        if self._unsubscribe is not None:
            self._unsubscribe()
        if self.controller is not None:
            self.controller.dispose()
        if self.store is not None:
            await self.store.close()

    # ── Event sources ────────────────────────────────────

    def on_input_changed(self, event: Input.Changed) -> None:
        """Search as the user types; an empty box goes back to paging."""
        if event.input.id != "search_input" or self.controller is None:
            return
        query = event.value.strip()
        if query:
            self.controller.search(query)
        else:
            self.controller.load_more()

    def on_product_table_near_bottom(
        self, event: ProductTable.NearBottom,
    ) -> None:
        """Fetch the next page when the list is almost exhausted."""
        self.action_load_more()

    def action_load_more(self) -> None:
        """Request the next page (ignored while one is loading)."""
        if self.controller is not None:
            self.controller.load_more()

    def action_clear_search(self) -> None:
        """Empty the search box, which returns to paging."""
        self.query_one("#search_input", Input).value = ""

    # ── State sink ───────────────────────────────────────

    def _table(self) -> ProductTable:
        return cast(
            ProductTable,
            self.query_one("#results_table", DataTable),
        )

    def render_state(self, state: FetchState) -> None:
        """Redraw the table and status line for *state*.

        When the new items extend what is already shown (a page was
        appended) only the new rows are added, so the scroll position
        survives pagination.
        """
        try:
            table = self._table()
            status = self.query_one("#status", Static)
        except NoMatches:
            logger.debug("State arrived after widgets were removed")
            return
        shown = self._shown
        self._shown = state.items

        if isinstance(state, InitialState):
            table.clear()
            status.update("⏳ Loading products...")
            return
        if isinstance(state, ErrorState):
            table.clear()
            status.update(f"❌ {state.message}")
            self.notify(state.message, severity="error")
            return

        if shown and state.items[: len(shown)] == shown:
            new_items = state.items[len(shown):]
        else:
            table.clear()
            new_items = state.items

        for p in new_items:
            table.add_row(
                p.name[:50],
                Text(f"{p.price:,.2f}", style="green"),
                p.description[:60],
                p.created_at.strftime("%Y-%m-%d"),
            )
        if state.items:
            status.update(f"✅ Showing {len(state.items)} products")
        else:
            status.update("❌ No products found")
