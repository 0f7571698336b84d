# catalog_browser/stores/memory_store.py

"""In-process product store with the same cursor contract as the real ones."""

import asyncio
import logging
from collections.abc import Iterable
from typing import Any

from catalog_browser.stores.base_store import (
    Cursor,
    Page,
    ProductStore,
    RawRecord,
    StoreError,
    matches_prefix,
)

logger = logging.getLogger("catalog_browser.stores.memory")


class InMemoryProductStore(ProductStore):
    """Serve queries from a list of raw records held in memory.

    Ordering is keyset-based on ``(order_by value, record id)`` so that
    records sharing a timestamp are neither skipped nor repeated across
    pages.  Records without the ordering field are left out of paginated
    results, matching how document stores treat missing sort keys.
    """

    def __init__(self, records: Iterable[RawRecord] = ()) -> None:
        self._records: list[RawRecord] = list(records)
        self.page_queries = 0
        self.prefix_queries = 0

    def add(self, record: RawRecord) -> None:
        """Add a record (test and demo seeding only)."""
        self._records.append(record)

    @staticmethod
    def _sort_key(
        record: RawRecord, order_by: str,
    ) -> tuple[Any, str]:
        return record.fields[order_by], record.id

    def _ordered_after(
        self, order_by: str, descending: bool, after: Cursor | None,
    ) -> list[RawRecord]:
        ordered = sorted(
            (r for r in self._records if order_by in r.fields),
            key=lambda r: self._sort_key(r, order_by),
            reverse=descending,
        )
        if after is None:
            return ordered
        boundary = (after.sort_value, after.record_id)
        if descending:
            return [
                r for r in ordered if self._sort_key(r, order_by) < boundary
            ]
        return [
            r for r in ordered if self._sort_key(r, order_by) > boundary
        ]

    async def query_page(
        self,
        order_by: str,
        descending: bool,
        limit: int,
        after: Cursor | None = None,
    ) -> Page:
        """Return the next keyset page after *after*."""
        self.page_queries += 1
        await asyncio.sleep(0)

        try:
            ordered = self._ordered_after(order_by, descending, after)
        except TypeError as exc:
            raise StoreError(
                f"Records have incomparable '{order_by}' values"
            ) from exc

        records = ordered[:limit]
        next_cursor = after
        if records:
            last = records[-1]
            next_cursor = Cursor(last.fields[order_by], last.id)

        logger.debug(
            "Page query on '%s' returned %d records",
            order_by,
            len(records),
        )
        return Page(records=records, next_cursor=next_cursor)

    async def query_prefix(
        self, field_name: str, prefix: str,
    ) -> list[RawRecord]:
        """Return prefix matches ordered by the searched field."""
        self.prefix_queries += 1
        await asyncio.sleep(0)

        matches = [
            r for r in self._records
            if matches_prefix(r.fields.get(field_name), prefix)
        ]
        matches.sort(key=lambda r: (r.fields[field_name], r.id))
        logger.debug(
            "Prefix query '%s' on '%s' returned %d records",
            prefix,
            field_name,
            len(matches),
        )
        return matches
