# catalog_browser/stores/base_store.py

"""Abstract read-only interface to a product document store."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

from catalog_browser.config.settings import Settings


class StoreError(Exception):
    """A store query failed (permission, bad request, unreadable data)."""


class TransientStoreError(StoreError):
    """A store query failed for a reason worth retrying later.

    Covers network failures, timeouts and temporary unavailability.
    """


@dataclass(frozen=True)
class RawRecord:
    """An untyped document: store-assigned id plus its field mapping."""

    id: str
    fields: dict[str, Any] = field(default_factory=dict, hash=False)


@dataclass(frozen=True)
class Cursor:
    """Opaque position after the last record of a fetched page."""

    sort_value: Any
    record_id: str


@dataclass
class Page:
    """One page of records and the cursor to resume after it."""

    records: list[RawRecord] = field(default_factory=list)
    next_cursor: Cursor | None = None


def prefix_upper_bound(prefix: str) -> str:
    """Return the exclusive upper bound of a ``starts-with`` range."""
    return prefix + Settings.PREFIX_SENTINEL


def matches_prefix(value: Any, prefix: str) -> bool:
    """Check ``prefix <= value < prefix + sentinel`` for string values."""
    if not isinstance(value, str):
        return False
    return prefix <= value < prefix_upper_bound(prefix)


class ProductStore(ABC):
    """Read-only query surface the fetch controller depends on.

    Stores may be shared between controllers; none of these calls mutate
    anything.
    """

    @abstractmethod
    async def query_page(
        self,
        order_by: str,
        descending: bool,
        limit: int,
        after: Cursor | None = None,
    ) -> Page:
        """Return up to *limit* records ordered by *order_by*.

        When *after* is given the page resumes strictly after that
        cursor.  Raises :class:`StoreError` on failure.
        """
        ...

    @abstractmethod
    async def query_prefix(
        self, field_name: str, prefix: str,
    ) -> list[RawRecord]:
        """Return records whose *field_name* starts with *prefix*.

        Implemented as the range ``[prefix, prefix + sentinel)``.
        Raises :class:`StoreError` on failure.
        """
        ...

    async def close(self) -> None:
        """Release any connection held by the store."""
        return None
