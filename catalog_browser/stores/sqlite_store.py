# catalog_browser/stores/sqlite_store.py

"""SQLite-backed product document store for local browsing."""

import asyncio
import logging
import sqlite3
import threading
from collections.abc import Iterable
from datetime import datetime
from decimal import Decimal
from pathlib import Path
from typing import Any

from catalog_browser.config.settings import Settings
from catalog_browser.stores.base_store import (
    Cursor,
    Page,
    ProductStore,
    RawRecord,
    StoreError,
    TransientStoreError,
    prefix_upper_bound,
)

logger = logging.getLogger("catalog_browser.stores.sqlite")

_SCHEMA = """\
CREATE TABLE IF NOT EXISTS products (
    id          TEXT PRIMARY KEY,
    name        TEXT NOT NULL,
    price       REAL NOT NULL,
    image_url   TEXT NOT NULL DEFAULT '',
    description TEXT NOT NULL DEFAULT '',
    created_at  TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_products_created
    ON products(created_at, id);

CREATE INDEX IF NOT EXISTS idx_products_name
    ON products(name);
"""

# Document field name -> column name
_COLUMNS: dict[str, str] = {
    "name": "name",
    "price": "price",
    "imageUrl": "image_url",
    "description": "description",
    "createdAt": "created_at",
}

_SELECT = (
    "SELECT id, name, price, image_url, description, created_at "
    "FROM products "
)


def _column(field_name: str) -> str:
    try:
        return _COLUMNS[field_name]
    except KeyError:
        raise StoreError(f"Unknown field '{field_name}'") from None


def _row_to_record(row: tuple[Any, ...]) -> RawRecord:
    return RawRecord(
        id=row[0],
        fields={
            "name": row[1],
            "price": row[2],
            "imageUrl": row[3],
            "description": row[4],
            "createdAt": row[5],
        },
    )


def _to_db_value(value: Any) -> Any:
    """Normalise seed values to what SQLite stores."""
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, Decimal):
        return float(value)
    return value


class SQLiteProductStore(ProductStore):
    """Product documents in a local SQLite file.

    Timestamps are stored as ISO-8601 text, which sorts in time order as
    long as all values share one format and offset.
    """

    def __init__(
        self, db_path: Path | None = None,
    ) -> None:
        path = db_path or Settings.DB_PATH
        path.parent.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()
        self._conn = sqlite3.connect(
            str(path), check_same_thread=False,
        )
        self._conn.execute("PRAGMA journal_mode=WAL")
        self._conn.executescript(_SCHEMA)
        logger.debug(
            "SQLiteProductStore opened at %s", path,
        )

    def disconnect(self) -> None:
        """Close the database connection."""
        with self._lock:
            self._conn.close()

    async def close(self) -> None:
        self.disconnect()

    # ── Querying ─────────────────────────────────────────

    def _fetch(
        self, sql: str, params: tuple[Any, ...],
    ) -> list[RawRecord]:
        """Run a read query on a worker thread."""
        try:
            with self._lock:
                rows = self._conn.execute(sql, params).fetchall()
        except sqlite3.OperationalError as exc:
            raise TransientStoreError(
                f"SQLite query failed: {exc}"
            ) from exc
        except sqlite3.Error as exc:
            raise StoreError(f"SQLite query failed: {exc}") from exc
        return [_row_to_record(r) for r in rows]

    async def query_page(
        self,
        order_by: str,
        descending: bool,
        limit: int,
        after: Cursor | None = None,
    ) -> Page:
        """Keyset page on ``(order_by, id)``."""
        column = _column(order_by)
        direction = "DESC" if descending else "ASC"
        compare = "<" if descending else ">"
        params: tuple[Any, ...]

        if after is None:
            where = ""
            params = (limit,)
        else:
            where = (
                f"WHERE ({column} {compare} ?) "
                f"OR ({column} = ? AND id {compare} ?) "
            )
            value = _to_db_value(after.sort_value)
            params = (value, value, after.record_id, limit)

        sql = (
            f"{_SELECT}{where}"
            f"ORDER BY {column} {direction}, id {direction} "
            "LIMIT ?"
        )
        records = await asyncio.to_thread(self._fetch, sql, params)

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
        """Range scan ``[prefix, prefix + sentinel)`` on *field_name*."""
        column = _column(field_name)
        sql = (
            f"{_SELECT}WHERE {column} >= ? AND {column} < ? "
            f"ORDER BY {column} ASC, id ASC"
        )
        records = await asyncio.to_thread(
            self._fetch, sql, (prefix, prefix_upper_bound(prefix)),
        )
        logger.debug(
            "Prefix query '%s' on '%s' returned %d records",
            prefix,
            field_name,
            len(records),
        )
        return records

    # ── Seeding ──────────────────────────────────────────

    def insert_records(self, records: Iterable[RawRecord]) -> int:
        """Upsert records by id.  Used for seeding local catalogs.

        Returns the number of rows written.
        """
        count = 0
        # the connection context commits the batch or rolls all of it back
        with self._lock, self._conn:
            cur = self._conn.cursor()
            for record in records:
                f = record.fields
                cur.execute(
                    "INSERT INTO products "
                    "(id, name, price, image_url, description, "
                    " created_at) "
                    "VALUES (?, ?, ?, ?, ?, ?) "
                    "ON CONFLICT(id) DO UPDATE SET "
                    "name=excluded.name, price=excluded.price, "
                    "image_url=excluded.image_url, "
                    "description=excluded.description, "
                    "created_at=excluded.created_at",
                    (
                        record.id,
                        f["name"],
                        _to_db_value(f["price"]),
                        f.get("imageUrl", ""),
                        f.get("description", ""),
                        _to_db_value(f["createdAt"]),
                    ),
                )
                count += 1
        if count:
            logger.info("Inserted %d product records", count)
        return count
