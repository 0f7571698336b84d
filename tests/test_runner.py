# tests/test_runner.py

"""Tests for the headless CLI runner."""

import json
import tempfile
import unittest
from datetime import datetime, timedelta, timezone
from pathlib import Path
from unittest.mock import patch

from catalog_browser.cli.runner import cli_browse, cli_search, run_seed
from catalog_browser.stores.base_store import RawRecord, TransientStoreError
from catalog_browser.stores.memory_store import InMemoryProductStore
from catalog_browser.stores.sqlite_store import SQLiteProductStore

_BASE = datetime(2024, 1, 1, tzinfo=timezone.utc)


def _record(n: int, name: str) -> RawRecord:
    return RawRecord(
        f"p{n}",
        {
            "name": name,
            "price": 5,
            "imageUrl": "",
            "description": "",
            "createdAt": _BASE + timedelta(minutes=n),
        },
    )


class _FailingStore(InMemoryProductStore):
    async def query_prefix(self, field_name: str, prefix: str) -> list[RawRecord]:
        raise TransientStoreError("offline")


class TestCliBrowse(unittest.IsolatedAsyncioTestCase):
    """cli_browse() tests."""

    async def test_loads_requested_pages_as_json(self) -> None:
        """Two pages of ten print twenty products."""
        store = InMemoryProductStore(_record(n, f"Item {n}") for n in range(25))
        with patch("builtins.print") as mock_print:
            code = await cli_browse(2, store=store)

        self.assertEqual(code, 0)
        printed = json.loads(mock_print.call_args.args[0])
        self.assertEqual(len(printed), 20)
        self.assertEqual(printed[0]["id"], "p24")
        self.assertEqual(printed[0]["price"], "5")

    async def test_stops_when_pages_run_out(self) -> None:
        """Asking for more pages than exist stops at the end."""
        store = InMemoryProductStore(_record(n, f"Item {n}") for n in range(3))
        with patch("builtins.print") as mock_print:
            code = await cli_browse(5, store=store)

        self.assertEqual(code, 0)
        self.assertEqual(len(json.loads(mock_print.call_args.args[0])), 3)
        self.assertEqual(store.page_queries, 2)


class TestCliSearch(unittest.IsolatedAsyncioTestCase):
    """cli_search() tests."""

    async def test_search_prints_matches(self) -> None:
        """Only prefix matches are printed."""
        store = InMemoryProductStore(
            [_record(1, "shoe rack"), _record(2, "shoes"), _record(3, "boot")]
        )
        with patch("builtins.print") as mock_print:
            code = await cli_search("shoe", store=store)

        self.assertEqual(code, 0)
        names = [p["name"] for p in json.loads(mock_print.call_args.args[0])]
        self.assertEqual(names, ["shoe rack", "shoes"])

    async def test_table_output(self) -> None:
        """Table format renders through Rich instead of print()."""
        store = InMemoryProductStore([_record(1, "shoe")])
        with patch("catalog_browser.cli.runner.Console") as mock_console:
            code = await cli_search("shoe", output_format="table", store=store)
        self.assertEqual(code, 0)
        mock_console.return_value.print.assert_called_once()

    async def test_failure_exit_code(self) -> None:
        """A store error makes the command exit with 1."""
        code = await cli_search("shoe", store=_FailingStore())
        self.assertEqual(code, 1)


class TestRunSeed(unittest.TestCase):
    """run_seed() tests."""

    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.tmp = Path(self._tmp.name)
        self.db_path = self.tmp / "seed.db"

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def _write(self, payload: object) -> str:
        path = self.tmp / "seed.json"
        path.write_text(json.dumps(payload), encoding="utf-8")
        return str(path)

    def test_imports_records(self) -> None:
        """Valid seed files are written to the SQLite store."""
        path = self._write([
            {
                "id": "s1",
                "name": "Sandal",
                "price": 20,
                "imageUrl": "",
                "description": "",
                "createdAt": "2024-01-01T00:00:00+00:00",
            }
        ])
        self.assertEqual(run_seed(path, self.db_path), 0)

        store = SQLiteProductStore(self.db_path)
        rows = store._conn.execute("SELECT id, name FROM products").fetchall()
        store.disconnect()
        self.assertEqual(rows, [("s1", "Sandal")])

    def test_rejects_non_array(self) -> None:
        """A JSON object instead of an array fails with exit code 1."""
        self.assertEqual(run_seed(self._write({"id": "x"}), self.db_path), 1)

    def test_missing_file(self) -> None:
        """A missing seed file fails with exit code 1."""
        self.assertEqual(run_seed(str(self.tmp / "nope.json"), self.db_path), 1)

    def test_record_missing_required_column(self) -> None:
        """Records without name fail the import."""
        path = self._write([{"id": "x", "price": 1, "createdAt": "2024"}])
        self.assertEqual(run_seed(path, self.db_path), 1)


if __name__ == "__main__":
    unittest.main()
