# tests/test_settings.py

"""Tests for the Settings configuration class."""

import importlib
import sys
import unittest
from pathlib import Path

from catalog_browser.config.settings import Settings


class TestSettings(unittest.TestCase):
    """Verify Settings constants and backend registry."""

    def test_page_size_is_ten(self) -> None:
        """Pages hold ten records."""
        self.assertEqual(Settings.PAGE_SIZE, 10)

    def test_sort_and_search_fields(self) -> None:
        """Pagination sorts on createdAt, search matches on name."""
        self.assertEqual(Settings.ORDER_FIELD, "createdAt")
        self.assertEqual(Settings.SEARCH_FIELD, "name")

    def test_prefix_sentinel_is_high_codepoint(self) -> None:
        """The sentinel is the highest Unicode code point."""
        self.assertEqual(Settings.PREFIX_SENTINEL, chr(0x10FFFF))
        self.assertEqual(Settings.PREFIX_SENTINEL, chr(sys.maxunicode))

    def test_error_message(self) -> None:
        """The generic error message matches the UI copy."""
        self.assertEqual(
            Settings.FETCH_ERROR_MESSAGE, "Failed to fetch products"
        )

    def test_timeouts_positive(self) -> None:
        """Query and request timeouts must be > 0."""
        self.assertGreater(Settings.QUERY_TIMEOUT, 0)
        self.assertGreater(Settings.REQUEST_TIMEOUT, 0)

    def test_default_policies(self) -> None:
        """Stale results are discarded and batches are all-or-nothing."""
        self.assertTrue(Settings.DISCARD_STALE_RESULTS)
        self.assertFalse(Settings.PARTIAL_BATCHES)

    def test_each_backend_has_required_keys(self) -> None:
        """Every backend must have id, label, and store keys."""
        for backend in Settings.AVAILABLE_BACKENDS:
            with self.subTest(backend=backend.get("id", "?")):
                self.assertIn("id", backend)
                self.assertIn("label", backend)
                self.assertIn("store", backend)

    def test_backend_ids_are_unique(self) -> None:
        """No duplicate backend ids."""
        ids = [b["id"] for b in Settings.AVAILABLE_BACKENDS]
        self.assertEqual(len(ids), len(set(ids)))

    def test_backend_store_paths_importable(self) -> None:
        """Every dotted store path resolves to a class."""
        for backend in Settings.AVAILABLE_BACKENDS:
            with self.subTest(backend=backend["id"]):
                module_path, class_name = backend["store"].rsplit(".", 1)
                module = importlib.import_module(module_path)
                self.assertTrue(hasattr(module, class_name))

    def test_default_backend_registered(self) -> None:
        """STORE_BACKEND names a registered backend."""
        ids = {b["id"] for b in Settings.AVAILABLE_BACKENDS}
        self.assertIn(Settings.STORE_BACKEND, ids)

    def test_path_constants_are_paths(self) -> None:
        """Path-typed settings are Path instances."""
        self.assertIsInstance(Settings.BASE_DIR, Path)
        self.assertIsInstance(Settings.DB_PATH, Path)
        self.assertIsInstance(Settings.LOGS_DIR, Path)


if __name__ == "__main__":
    unittest.main()
