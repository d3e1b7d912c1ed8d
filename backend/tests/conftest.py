"""
Point the app at a throwaway sqlite file before anything imports ``crux``,
build the schema once, and pin the clock for every test.
"""
import os
import tempfile
import uuid
from datetime import datetime, timezone

_DB_DIR = tempfile.mkdtemp(prefix="crux-tests-")
os.environ["DATABASE_URL_OVERRIDE"] = f"sqlite:///{os.path.join(_DB_DIR, 'test.db')}"

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from crux import models  # noqa: E402,F401
from crux.clock import FixedClock, get_clock  # noqa: E402
from crux.db import Base, SessionLocal, engine  # noqa: E402
from crux.main import app  # noqa: E402
from crux.repositories.item_repo import ItemRepository  # noqa: E402

Base.metadata.create_all(bind=engine)

# Sunday 1 March 2026
TODAY = datetime(2026, 3, 1, 9, 0, tzinfo=timezone.utc)
PWD = "StrongPassw0rd!"

DEFAULT_VARIABLES = {"sets": 2, "reps": 2, "durationSeconds": 5, "restSeconds": 5}


@pytest.fixture(autouse=True)
def clock():
    fixed = FixedClock(TODAY)
    app.dependency_overrides[get_clock] = lambda: fixed
    yield fixed
    app.dependency_overrides.pop(get_clock, None)


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def make_user(client):
    """Register + login a fresh user; returns (auth headers, user id)."""
    def _make(prefix="u"):
        email = f"{prefix}-{uuid.uuid4().hex[:8]}@ex.com"
        r = client.post("/auth/register", json={"email": email, "name": "Test", "password": PWD})
        assert r.status_code == 201, r.text
        tok = client.post("/auth/login", json={"email": email, "password": PWD}).json()["access_token"]
        headers = {"Authorization": f"Bearer {tok}"}
        return headers, r.json()["id"]
    return _make


@pytest.fixture
def make_item():
    """Catalog items are written straight through the repository."""
    def _make(owner_id, *, title="Half crimp hang", variables=None, categories=("fingers",)):
        with SessionLocal() as db:
            item = ItemRepository(db).create(
                owner_id,
                title=title,
                categories=list(categories),
                variables=dict(DEFAULT_VARIABLES if variables is None else variables),
            )
            db.commit()
            return item.id
    return _make


@pytest.fixture
def save_item():
    def _save(user_id, item_id):
        with SessionLocal() as db:
            ItemRepository(db).save_for(user_id, item_id)
            db.commit()
    return _save
