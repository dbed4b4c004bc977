import os
import tempfile

_TMP_DIR = tempfile.mkdtemp(prefix="ptr-tests-")
os.environ["DB_URL"] = f"sqlite:///{_TMP_DIR}/test.db"
os.environ["LOG_DIR"] = ""
os.environ["SECRET_KEY"] = "test-secret"
os.environ["ADMIN_PASSWORD"] = "Admin@123"
os.environ["ALLOW_REGISTRATION"] = "true"

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from production_tracker.db.base import Base  # noqa: E402
from production_tracker.db.session import SessionLocal, engine  # noqa: E402
from production_tracker.main import app  # noqa: E402
from production_tracker.schemas import EntryRecord  # noqa: E402

ADMIN_PASSWORD = "Admin@123"
SUPERVISOR_PASSWORD = "Sup@12345"


def make_entry(crew="A", type="X", feet=10, date="2024/06/01", username="sup1", id=None):
    return EntryRecord(id=id, date=date, crew=crew, type=type, feet=feet, username=username)


@pytest.fixture
def fresh_tables():
    Base.metadata.drop_all(engine)
    Base.metadata.create_all(engine)
    yield


@pytest.fixture
def db(fresh_tables):
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(fresh_tables):
    with TestClient(app) as c:
        yield c


def login(client, username, password):
    r = client.post("/api/login", json={"username": username, "password": password})
    assert r.status_code == 200, r.text
    return r


@pytest.fixture
def admin_client(client):
    login(client, "admin", ADMIN_PASSWORD)
    return client


@pytest.fixture
def supervisors(admin_client):
    for name in ("sup1", "sup2"):
        r = admin_client.post(
            "/api/users",
            json={"username": name, "password": SUPERVISOR_PASSWORD, "role": "supervisor", "crew": "AJS1"},
        )
        assert r.status_code == 201, r.text
    admin_client.post("/api/logout")
    admin_client.cookies.clear()
    return admin_client
