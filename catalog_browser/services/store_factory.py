# catalog_browser/services/store_factory.py

"""Resolve a configured backend id to a product store instance."""

import importlib
import logging
from typing import Any

from catalog_browser.config.settings import Settings
from catalog_browser.stores.base_store import ProductStore

logger = logging.getLogger("catalog_browser.store_factory")


def _load_store_class(dotted_path: str) -> type[Any]:
    """Dynamically import a store class from its dotted module path."""
    module_path, class_name = dotted_path.rsplit(".", 1)
    module = importlib.import_module(module_path)
    cls: type[Any] = getattr(module, class_name)
    return cls


def backend_ids() -> list[str]:
    """Ids of every registered backend, in registry order."""
    return [b["id"] for b in Settings.AVAILABLE_BACKENDS]


def build_store(backend_id: str | None = None) -> ProductStore:
    """Instantiate the store registered under *backend_id*.

    Defaults to ``Settings.STORE_BACKEND``.  Raises ``ValueError`` for
    unknown ids.
    """
    wanted = backend_id or Settings.STORE_BACKEND
    for backend in Settings.AVAILABLE_BACKENDS:
        if backend["id"] == wanted:
            store_cls = _load_store_class(backend["store"])
            store: ProductStore = store_cls()
            logger.info(
                "Using %s store (%s)", backend["label"], wanted,
            )
            return store

    valid = ", ".join(backend_ids())
    raise ValueError(
        f"Unknown store backend '{wanted}' (available: {valid})"
    )
