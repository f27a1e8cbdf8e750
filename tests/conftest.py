"""
Root conftest.py -- shared fixtures for all test levels.
"""
import os
import sys
import pytest

# Ensure adp_portal and __mocks__ are importable
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))
sys.path.insert(0, os.path.dirname(__file__))

# Force SQLite for testing (never hit production PostgreSQL)
os.environ["DATABASE_URL"] = ""
os.environ["SECRET_KEY"] = "test-secret-key-for-testing-only"


@pytest.fixture
def store():
    """An in-memory store with no storage behind it."""
    from adp_portal.store import WorkItemStore
    return WorkItemStore()


@pytest.fixture
def json_backend(tmp_path):
    from adp_portal.storage import JsonFileBackend
    return JsonFileBackend(tmp_path / "works.json", max_bytes=10 * 1024 * 1024, ttl_seconds=86400)
