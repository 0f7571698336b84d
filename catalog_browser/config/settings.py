# catalog_browser/config/settings.py

"""Central configuration for the catalog_browser client."""

import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()


class Settings:
    """Central configuration for the catalog_browser client."""

    # --- Pagination & search ---
    PAGE_SIZE: int = 10                 # Records per loadMore page
    ORDER_FIELD: str = "createdAt"      # Pagination sort key (descending)
    SEARCH_FIELD: str = "name"          # Field used for prefix search
    PREFIX_SENTINEL: str = "\U0010ffff"  # Highest code point; bounds prefix ranges
    LOAD_MORE_THRESHOLD: int = 3        # Rows from the bottom that trigger a fetch

    # --- Resilience ---
    QUERY_TIMEOUT: float = 15.0         # Seconds before a store query is abandoned
    REQUEST_TIMEOUT: int = 10           # HTTP timeout for remote stores
    FETCH_ERROR_MESSAGE: str = "Failed to fetch products"
    DISCARD_STALE_RESULTS: bool = True  # Drop completions older than a committed one
    PARTIAL_BATCHES: bool = False       # Drop malformed records instead of failing

    # --- Remote store ---
    FIRESTORE_PROJECT_ID: str = os.getenv("FIRESTORE_PROJECT_ID", "")
    FIRESTORE_API_KEY: str = os.getenv("FIRESTORE_API_KEY", "")
    FIRESTORE_COLLECTION: str = os.getenv(
        "FIRESTORE_COLLECTION", "products"
    )
    FIRESTORE_BASE_URL: str = "https://firestore.googleapis.com/v1"

    # --- Paths ---
    BASE_DIR: Path = Path(__file__).resolve().parent.parent.parent
    DB_PATH: Path = BASE_DIR / "data" / "products.db"
    LOGS_DIR: Path = BASE_DIR / "logs"

    # --- Store backends (registry for future extensibility) ---
    STORE_BACKEND: str = os.getenv("CATALOG_STORE_BACKEND", "sqlite")
    AVAILABLE_BACKENDS: list[dict[str, str]] = [
        {
            "id": "sqlite",
            "label": "Local SQLite",
            "store": (
                "catalog_browser.stores.sqlite_store.SQLiteProductStore"
            ),
        },
        {
            "id": "firestore",
            "label": "Cloud Firestore",
            "store": (
                "catalog_browser.stores.firestore_store"
                ".FirestoreProductStore"
            ),
        },
    ]
