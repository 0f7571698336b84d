# catalog_browser/models/product.py

"""Product value entity shown by the catalog list."""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal


@dataclass(frozen=True)
class Product:
    """A single catalog product, compared by value."""

    id: str
    name: str
    price: Decimal
    image_url: str
    description: str
    created_at: datetime
