# catalog_browser/mapping/record_mapper.py

"""Raw record validation: turn untyped documents into Products."""

import logging
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any

from catalog_browser.models.product import Product
from catalog_browser.stores.base_store import RawRecord

logger = logging.getLogger("catalog_browser.mapping")


class MappingError(ValueError):
    """A raw record is missing a required field or has a bad value."""

    def __init__(self, record_id: str, reason: str) -> None:
        super().__init__(f"Record {record_id!r}: {reason}")
        self.record_id = record_id
        self.reason = reason


_STRING_FIELDS: tuple[str, ...] = (
    "name",
    "imageUrl",
    "description",
)


def _require(record: RawRecord, key: str) -> Any:
    if key not in record.fields or record.fields[key] is None:
        raise MappingError(record.id, f"missing field '{key}'")
    return record.fields[key]


def _to_price(record: RawRecord, value: Any) -> Decimal:
    """Convert a numeric field value into a non-negative Decimal."""
    # bool is an int subclass but never a valid price
    if isinstance(value, bool) or not isinstance(
        value, (int, float, Decimal)
    ):
        raise MappingError(
            record.id,
            f"'price' must be a number, got {type(value).__name__}",
        )
    try:
        price = Decimal(str(value))
    except InvalidOperation as exc:
        raise MappingError(
            record.id, f"'price' is not a finite number: {value!r}"
        ) from exc
    if not price.is_finite():
        raise MappingError(
            record.id, f"'price' is not a finite number: {value!r}"
        )
    if price < 0:
        raise MappingError(record.id, f"negative price {price}")
    return price


def _to_timestamp(record: RawRecord, value: Any) -> datetime:
    """Accept a datetime or an ISO-8601 string."""
    if isinstance(value, datetime):
        return value
    if isinstance(value, str):
        try:
            return datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError as exc:
            raise MappingError(
                record.id, f"unparseable 'createdAt' {value!r}"
            ) from exc
    raise MappingError(
        record.id,
        f"'createdAt' must be a timestamp, got {type(value).__name__}",
    )


class RecordMapper:
    """Validate raw store records and build Product values."""

    @staticmethod
    def to_product(record: RawRecord) -> Product:
        """Map one record, raising :class:`MappingError` if malformed."""
        strings: dict[str, str] = {}
        for key in _STRING_FIELDS:
            value = _require(record, key)
            if not isinstance(value, str):
                raise MappingError(
                    record.id,
                    f"'{key}' must be a string, "
                    f"got {type(value).__name__}",
                )
            strings[key] = value

        return Product(
            id=record.id,
            name=strings["name"],
            price=_to_price(record, _require(record, "price")),
            image_url=strings["imageUrl"],
            description=strings["description"],
            created_at=_to_timestamp(
                record, _require(record, "createdAt")
            ),
        )

    @staticmethod
    def map_batch(
        records: list[RawRecord],
        partial: bool = False,
    ) -> tuple[list[Product], int]:
        """Map a whole page or search batch.

        By default the first malformed record fails the batch.  With
        *partial* the offending records are dropped instead.

        Returns the mapped products and the count of dropped records.
        """
        products: list[Product] = []
        dropped = 0

        for record in records:
            try:
                products.append(RecordMapper.to_product(record))
            except MappingError as exc:
                if not partial:
                    raise
                logger.debug("Dropped malformed record: %s", exc)
                dropped += 1

        if dropped:
            logger.info(
                "Mapping dropped %d malformed records", dropped,
            )

        return products, dropped
