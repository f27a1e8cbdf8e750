"""
Integration test conftest -- test database setup and FastAPI TestClient.
"""
import os
import sys
import pytest
from pathlib import Path

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", ".."))

# Force SQLite for integration tests
os.environ["DATABASE_URL"] = ""
os.environ["SECRET_KEY"] = "integration-test-secret-key"

from starlette.testclient import TestClient

PASSWORDS = {
    "engineer": ("Venkatesh", "engineer123"),
    "Commissioner": ("Ramesh", "commissioner123"),
    "eeph": ("Priya", "eeph123"),
    "seph": ("Suresh", "seph123"),
    "encph": ("Karthik", "encph123"),
    "cdma": ("Srinivas", "cdma123"),
}


@pytest.fixture(scope="session")
def test_db(tmp_path_factory):
    """Point the database and the JSON store at fresh temp files."""
    import adp_portal.config as config
    import adp_portal.database as database_mod

    base = tmp_path_factory.mktemp("adp")
    test_db_path = Path(base) / "test_adp.db"
    config.DATABASE_PATH = test_db_path
    database_mod.DATABASE_PATH = test_db_path
    config.STORAGE_FILE = Path(base) / "forwarded_submissions.json"

    from adp_portal.database import init_database
    init_database()

    yield test_db_path


@pytest.fixture(scope="session")
def client(test_db):
    """Create a TestClient for the FastAPI app (startup seeds the default users)."""
    from adp_portal.main import app
    with TestClient(app, raise_server_exceptions=False) as c:
        yield c


@pytest.fixture(autouse=True)
def fresh_engineer_session(request):
    """Each test starts with no held engineer works."""
    if "client" in request.fixturenames:
        request.getfixturevalue("client").app.state.originators.clear()
    yield


@pytest.fixture
def login(client):
    """Return Authorization headers for a role."""
    def _login(role):
        username, password = PASSWORDS[role]
        response = client.post("/api/login", data={"username": username, "password": password})
        assert response.status_code == 200, response.text
        return {"Authorization": f"Bearer {response.json()['token']}"}
    return _login


@pytest.fixture
def seed_works(client):
    """Put works straight into the shared store; returns their ids."""
    def _seed(*items):
        client.app.state.store.append(items)
        return [item.id for item in items]
    return _seed
