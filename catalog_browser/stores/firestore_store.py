# catalog_browser/stores/firestore_store.py

"""Cloud Firestore product store over the REST ``runQuery`` endpoint."""

import asyncio
import logging
import re
import threading
from datetime import datetime
from typing import Any

from curl_cffi import requests as curl_requests

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

logger = logging.getLogger("catalog_browser.stores.firestore")

# Firestore timestamps carry nanoseconds; datetime keeps microseconds
_FRACTION_RE = re.compile(r"\.(\d{6})\d+")

_RETRYABLE_STATUS: frozenset[int] = frozenset({429, 500, 502, 503, 504})


def parse_timestamp(raw: str) -> datetime:
    """Parse an RFC 3339 timestamp such as ``2024-05-01T10:00:00.123456789Z``."""
    trimmed = _FRACTION_RE.sub(r".\1", raw)
    return datetime.fromisoformat(trimmed.replace("Z", "+00:00"))


def decode_value(value: dict[str, Any]) -> Any:
    """Convert a typed Firestore value into a plain Python value."""
    if "nullValue" in value:
        return None
    if "booleanValue" in value:
        return bool(value["booleanValue"])
    if "integerValue" in value:
        return int(value["integerValue"])
    if "doubleValue" in value:
        return float(value["doubleValue"])
    if "stringValue" in value:
        return value["stringValue"]
    if "timestampValue" in value:
        return parse_timestamp(value["timestampValue"])
    if "mapValue" in value:
        return decode_fields(value["mapValue"].get("fields", {}))
    if "arrayValue" in value:
        return [
            decode_value(v)
            for v in value["arrayValue"].get("values", [])
        ]
    # referenceValue, geoPointValue, bytesValue: keep as sent
    return next(iter(value.values()), None)


def decode_fields(fields: dict[str, Any]) -> dict[str, Any]:
    """Decode a Firestore ``fields`` map."""
    return {k: decode_value(v) for k, v in fields.items()}


def _document_id(name: str) -> str:
    """``projects/p/databases/(default)/documents/products/abc`` → ``abc``."""
    return name.rsplit("/", 1)[-1]


class FirestoreProductStore(ProductStore):
    """Query a Firestore collection with structured queries.

    Cursors keep the raw Firestore sort value and the full document name
    so a page resumes exactly after the last document, with no precision
    lost to Python datetimes.
    """

    def __init__(
        self,
        project_id: str | None = None,
        collection: str | None = None,
        api_key: str | None = None,
    ) -> None:
        self.project_id = project_id or Settings.FIRESTORE_PROJECT_ID
        if not self.project_id:
            raise StoreError(
                "FIRESTORE_PROJECT_ID is not configured"
            )
        self.collection = collection or Settings.FIRESTORE_COLLECTION
        self._api_key = api_key or Settings.FIRESTORE_API_KEY
        self._request_timeout: int = Settings.REQUEST_TIMEOUT
        self._lock = threading.Lock()
        self.session = curl_requests.Session()

    @property
    def run_query_url(self) -> str:
        """REST endpoint for structured queries on the default database."""
        return (
            f"{Settings.FIRESTORE_BASE_URL}/projects/{self.project_id}"
            "/databases/(default)/documents:runQuery"
        )

    async def close(self) -> None:
        """Close the HTTP session."""
        with self._lock:
            self.session.close()

    # ── Transport ────────────────────────────────────────

    def _run_query(
        self, structured_query: dict[str, Any],
    ) -> list[dict[str, Any]]:
        """POST a structured query and return the matched documents."""
        params = {"key": self._api_key} if self._api_key else None
        try:
            with self._lock:
                resp = self.session.post(
                    self.run_query_url,
                    params=params,
                    json={"structuredQuery": structured_query},
                    timeout=self._request_timeout,
                )
        except Exception as exc:
            raise TransientStoreError(
                f"Firestore request failed: {exc}"
            ) from exc

        if resp.status_code != 200:
            logger.warning(
                "Firestore returned HTTP %d for collection '%s'",
                resp.status_code,
                self.collection,
            )
            msg = f"Firestore returned HTTP {resp.status_code}"
            if resp.status_code in _RETRYABLE_STATUS:
                raise TransientStoreError(msg)
            raise StoreError(msg)

        try:
            payload: list[dict[str, Any]] = resp.json()
        except ValueError as exc:
            raise StoreError(
                "Firestore response is not valid JSON"
            ) from exc
        if not isinstance(payload, list):
            raise StoreError("Unexpected Firestore response shape")

        # Entries without "document" only carry readTime / progress info
        return [
            entry["document"]
            for entry in payload
            if isinstance(entry, dict) and "document" in entry
        ]

    def _to_record(self, document: dict[str, Any]) -> RawRecord:
        try:
            return RawRecord(
                id=_document_id(document["name"]),
                fields=decode_fields(document.get("fields", {})),
            )
        except (KeyError, ValueError, AttributeError) as exc:
            raise StoreError(
                f"Undecodable Firestore document: {exc}"
            ) from exc

    # ── Queries ──────────────────────────────────────────

    def build_page_query(
        self,
        order_by: str,
        descending: bool,
        limit: int,
        after: Cursor | None,
    ) -> dict[str, Any]:
        """Structured query for one page ordered by *order_by*."""
        direction = "DESCENDING" if descending else "ASCENDING"
        query: dict[str, Any] = {
            "from": [{"collectionId": self.collection}],
            "orderBy": [
                {"field": {"fieldPath": order_by}, "direction": direction},
                {"field": {"fieldPath": "__name__"}, "direction": direction},
            ],
            "limit": limit,
        }
        if after is not None:
            query["startAt"] = {
                "values": [
                    after.sort_value,
                    {"referenceValue": after.record_id},
                ],
                "before": False,
            }
        return query

    def build_prefix_query(
        self, field_name: str, prefix: str,
    ) -> dict[str, Any]:
        """Structured query for ``prefix <= field < prefix + sentinel``."""
        def bound(op: str, value: str) -> dict[str, Any]:
            return {
                "fieldFilter": {
                    "field": {"fieldPath": field_name},
                    "op": op,
                    "value": {"stringValue": value},
                }
            }

        return {
            "from": [{"collectionId": self.collection}],
            "where": {
                "compositeFilter": {
                    "op": "AND",
                    "filters": [
                        bound("GREATER_THAN_OR_EQUAL", prefix),
                        bound("LESS_THAN", prefix_upper_bound(prefix)),
                    ],
                }
            },
            "orderBy": [
                {
                    "field": {"fieldPath": field_name},
                    "direction": "ASCENDING",
                },
            ],
        }

    async def query_page(
        self,
        order_by: str,
        descending: bool,
        limit: int,
        after: Cursor | None = None,
    ) -> Page:
        """Run one paginated query."""
        query = self.build_page_query(order_by, descending, limit, after)
        documents = await asyncio.to_thread(self._run_query, query)
        records = [self._to_record(d) for d in documents]

        next_cursor = after
        if documents:
            last = documents[-1]
            raw_value = last.get("fields", {}).get(order_by)
            if raw_value is None:
                raise StoreError(
                    f"Document {last.get('name')} has no '{order_by}'"
                )
            next_cursor = Cursor(raw_value, last["name"])

        logger.debug(
            "Firestore page on '%s' returned %d documents",
            order_by,
            len(records),
        )
        return Page(records=records, next_cursor=next_cursor)

    async def query_prefix(
        self, field_name: str, prefix: str,
    ) -> list[RawRecord]:
        """Run a ``starts-with`` range query."""
        query = self.build_prefix_query(field_name, prefix)
        documents = await asyncio.to_thread(self._run_query, query)
        records = [self._to_record(d) for d in documents]
        logger.debug(
            "Firestore prefix '%s' on '%s' returned %d documents",
            prefix,
            field_name,
            len(records),
        )
        return records
