"""
Unit tests for adp_portal/database.py -- schema, row wrappers and query translation.
"""
import os
import sys
import pytest
from unittest.mock import MagicMock

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", ".."))
os.environ.setdefault("DATABASE_URL", "")
os.environ.setdefault("SECRET_KEY", "test-secret-key")

import adp_portal.database as database_mod
from adp_portal.database import DictRow, PostgresCursorWrapper, get_db, init_database

pytestmark = pytest.mark.unit


@pytest.fixture
def temp_db(tmp_path, monkeypatch):
    monkeypatch.setattr(database_mod, "DATABASE_PATH", tmp_path / "unit.db")
    init_database()


# ── Schema ───────────────────────────────────────────────────────────

class TestInitDatabase:
    def test_tables_created(self, temp_db):
        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT name FROM sqlite_master WHERE type = 'table'")
            tables = {row["name"] for row in cursor.fetchall()}
        assert {"users", "work_items"} <= tables

    def test_idempotent(self, temp_db):
        init_database()

    def test_rollback_on_error(self, temp_db):
        with pytest.raises(RuntimeError):
            with get_db() as conn:
                conn.cursor().execute(
                    "INSERT INTO work_items (id, position, status, payload) VALUES (?, ?, ?, ?)",
                    ("a", 0, "", "{}"),
                )
                raise RuntimeError("boom")
        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT COUNT(*) AS n FROM work_items")
            assert cursor.fetchone()["n"] == 0


# ── DictRow ──────────────────────────────────────────────────────────

class TestDictRow:
    def test_key_and_index(self):
        row = DictRow({"id": "a", "payload": "{}"})
        assert row["id"] == "a"
        assert row[1] == "{}"
        assert row.keys() == ["id", "payload"]


# ── PostgresCursorWrapper ────────────────────────────────────────────

class TestPostgresCursorWrapper:
    def test_placeholders_converted(self):
        raw = MagicMock()
        PostgresCursorWrapper(raw).execute("SELECT * FROM users WHERE id = ?", (1,))
        raw.execute.assert_called_once_with("SELECT * FROM users WHERE id = %s", (1,))

    def test_insert_or_ignore(self):
        raw = MagicMock()
        PostgresCursorWrapper(raw).execute("INSERT OR IGNORE INTO users (id) VALUES (?)", (1,))
        query = raw.execute.call_args[0][0]
        assert query.startswith("INSERT INTO users")
        assert query.endswith("ON CONFLICT DO NOTHING")

    def test_executemany(self):
        raw = MagicMock()
        PostgresCursorWrapper(raw).executemany("DELETE FROM work_items WHERE id = ?", [("a",), ("b",)])
        assert raw.execute.call_count == 2

    def test_fetchone_wraps(self):
        raw = MagicMock()
        raw.fetchone.return_value = {"id": 1}
        assert PostgresCursorWrapper(raw).fetchone()["id"] == 1
