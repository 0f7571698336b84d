# catalog_browser/services/fetch_controller.py

"""Paginated, searchable product list controller.

The controller owns the pagination cursor and the in-flight page guard,
turns ``load_more`` / ``search`` commands into store queries and publishes
the outcome as a single stream of :mod:`fetch states
<catalog_browser.models.fetch_state>`.

Commands are fire-and-forget: each one schedules an asyncio task and
returns it (or ``None`` when the command is dropped) so callers that want
to wait, such as the headless CLI, can.
"""

import asyncio
import logging
from collections.abc import AsyncIterator, Awaitable, Callable, Coroutine
from typing import Any, TypeVar

from catalog_browser.config.settings import Settings
from catalog_browser.mapping.record_mapper import MappingError, RecordMapper
from catalog_browser.models.fetch_state import (
    ErrorState,
    FetchState,
    InitialState,
    LoadedState,
)
from catalog_browser.models.product import Product
from catalog_browser.stores.base_store import Cursor, ProductStore, StoreError

logger = logging.getLogger("catalog_browser.controller")

StateListener = Callable[[FetchState], None]

_T = TypeVar("_T")

# Queue marker that ends observe_state() iterators on dispose()
_CLOSED = object()


def _describe(state: FetchState) -> str:
    if isinstance(state, ErrorState):
        return f"Error({state.message!r})"
    return f"{type(state).__name__}({len(state.items)} items)"


class FetchController:
    """Drive infinite-scroll pagination and prefix search over a store.

    Every request takes a generation number when it is issued.  With
    ``discard_stale`` enabled a completion is only applied if no newer
    request has already been applied, so a slow search cannot overwrite
    a later page (or the other way round).  With it disabled, whichever
    request finishes last decides the displayed state.
    """

    def __init__(
        self,
        store: ProductStore,
        *,
        page_size: int | None = None,
        load_initial: bool = True,
        discard_stale: bool | None = None,
        partial_batches: bool | None = None,
        query_timeout: float | None = None,
    ) -> None:
        self.store = store
        self.page_size = (
            Settings.PAGE_SIZE if page_size is None else page_size
        )
        self.discard_stale = (
            Settings.DISCARD_STALE_RESULTS
            if discard_stale is None
            else discard_stale
        )
        self.partial_batches = (
            Settings.PARTIAL_BATCHES
            if partial_batches is None
            else partial_batches
        )
        self.query_timeout = (
            Settings.QUERY_TIMEOUT if query_timeout is None else query_timeout
        )

        self._cursor: Cursor | None = None
        self._fetch_in_flight = False
        self._state: FetchState = InitialState()
        self._issued_generation = 0
        self._committed_generation = 0
        self._listeners: list[StateListener] = []
        self._queues: list[asyncio.Queue[Any]] = []
        self._tasks: set[asyncio.Task[None]] = set()
        self._disposed = False

        if load_initial:
            self.load_more()

    # ── Read-only views ──────────────────────────────────

    @property
    def state(self) -> FetchState:
        """The state most recently published."""
        return self._state

    @property
    def cursor(self) -> Cursor | None:
        return self._cursor

    @property
    def fetch_in_flight(self) -> bool:
        return self._fetch_in_flight

    @property
    def disposed(self) -> bool:
        return self._disposed

    # ── Commands ─────────────────────────────────────────

    def load_more(self) -> asyncio.Task[None] | None:
        """Fetch the next page and append it to the current items.

        Dropped (returns ``None``) while another page fetch is pending,
        so bursts of scroll events collapse into one request.
        """
        if self._disposed:
            return None
        if self._fetch_in_flight:
            logger.debug("Page fetch already in flight, load_more dropped")
            return None

        self._fetch_in_flight = True
        previous = self._state.items
        generation = self._next_generation()
        try:
            return self._spawn(self._load_page(previous, generation))
        except RuntimeError:
            self._fetch_in_flight = False
            raise

    def search(self, query: str) -> asyncio.Task[None] | None:
        """Replace the displayed items with products whose name starts
        with *query*.

        Searches share no guard with pagination and leave the page
        cursor alone.  Routing an empty query back to :meth:`load_more`
        is the caller's job.
        """
        if self._disposed:
            return None
        generation = self._next_generation()
        return self._spawn(self._run_search(query, generation))

    # ── Observation ──────────────────────────────────────

    def add_listener(
        self, listener: StateListener,
    ) -> Callable[[], None]:
        """Call *listener* now with the current state and on every change.

        Returns a callable that unregisters the listener.
        """
        self._listeners.append(listener)
        listener(self._state)

        def remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return remove

    async def observe_state(self) -> AsyncIterator[FetchState]:
        """Yield the current state, then every later transition.

        The subscription starts on the first ``__anext__``.  The
        iterator only finishes once the controller is disposed.
        """
        if self._disposed:
            return
        queue: asyncio.Queue[Any] = asyncio.Queue()
        queue.put_nowait(self._state)
        self._queues.append(queue)
        try:
            while True:
                item = await queue.get()
                if item is _CLOSED:
                    return
                yield item
        finally:
            if queue in self._queues:
                self._queues.remove(queue)

    async def wait_until_idle(self) -> None:
        """Wait for every command issued so far to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks))

    def dispose(self) -> None:
        """Drop all observers; later completions are ignored."""
        if self._disposed:
            return
        self._disposed = True
        self._listeners.clear()
        for queue in self._queues:
            queue.put_nowait(_CLOSED)
        self._queues.clear()
        logger.info(
            "Controller disposed with %d request(s) still pending",
            len(self._tasks),
        )

    # ── Request execution ────────────────────────────────

    def _next_generation(self) -> int:
        self._issued_generation += 1
        return self._issued_generation

    def _spawn(
        self, coro: Coroutine[Any, Any, None],
    ) -> asyncio.Task[None]:
        try:
            task = asyncio.get_running_loop().create_task(coro)
        except RuntimeError:
            coro.close()
            raise
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _query(self, pending: Awaitable[_T]) -> _T:
        return await asyncio.wait_for(pending, timeout=self.query_timeout)

    async def _load_page(
        self,
        previous: tuple[Product, ...],
        generation: int,
    ) -> None:
        try:
            page = await self._query(
                self.store.query_page(
                    order_by=Settings.ORDER_FIELD,
                    descending=True,
                    limit=self.page_size,
                    after=self._cursor,
                )
            )
            products, _ = RecordMapper.map_batch(
                page.records, partial=self.partial_batches,
            )
            if not self._may_commit(generation, "page"):
                return
            if page.records:
                self._cursor = page.next_cursor
            else:
                logger.info("No more pages after %d items", len(previous))
            self._commit(generation, LoadedState(previous + tuple(products)))
        except (StoreError, MappingError, asyncio.TimeoutError) as exc:
            logger.error("Page fetch failed: %s", exc, exc_info=True)
            if self._may_commit(generation, "page"):
                self._commit(
                    generation, ErrorState(Settings.FETCH_ERROR_MESSAGE)
                )
        finally:
            self._fetch_in_flight = False

    async def _run_search(self, query: str, generation: int) -> None:
        try:
            records = await self._query(
                self.store.query_prefix(Settings.SEARCH_FIELD, query)
            )
            products, _ = RecordMapper.map_batch(
                records, partial=self.partial_batches,
            )
            if self._may_commit(generation, "search"):
                logger.info(
                    "Search '%s' matched %d products", query, len(products),
                )
                self._commit(generation, LoadedState(tuple(products)))
        except (StoreError, MappingError, asyncio.TimeoutError) as exc:
            logger.error(
                "Search '%s' failed: %s", query, exc, exc_info=True,
            )
            if self._may_commit(generation, "search"):
                self._commit(
                    generation, ErrorState(Settings.FETCH_ERROR_MESSAGE)
                )

    # ── State publication ────────────────────────────────

    def _may_commit(self, generation: int, kind: str) -> bool:
        if self._disposed:
            logger.debug("Ignoring %s result after dispose", kind)
            return False
        if self.discard_stale and generation < self._committed_generation:
            logger.info(
                "Discarding stale %s result (request %d, showing %d)",
                kind,
                generation,
                self._committed_generation,
            )
            return False
        return True

    def _commit(self, generation: int, state: FetchState) -> None:
        self._committed_generation = max(
            self._committed_generation, generation
        )
        self._emit(state)

    def _emit(self, state: FetchState) -> None:
        self._state = state
        logger.debug("State -> %s", _describe(state))
        for queue in self._queues:
            queue.put_nowait(state)
        for listener in list(self._listeners):
            try:
                listener(state)
            except Exception:
                logger.exception("State listener %r failed", listener)
