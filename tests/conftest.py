import os
import tempfile

import pytest

# must be set before library_api builds its engine
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(tempfile.mkdtemp(), 'test_library.db')}"

from fastapi.testclient import TestClient  # noqa: E402

from library_api.core.database import Base, SessionLocal, engine  # noqa: E402
from library_api.main import app  # noqa: E402


@pytest.fixture(autouse=True)
def fresh_schema():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


def _book_payload(**overrides):
    payload = {
        "title": "The Left Hand of Darkness",
        "author": "Ursula K. Le Guin",
        "genre": "FICTION",
        "isbn": "9780441478125",
        "description": "An envoy visits the planet Gethen.",
        "copies": 5,
        "available": True,
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def book_payload():
    return _book_payload


@pytest.fixture
def create_book(client):
    def _create(**overrides):
        r = client.post("/api/books", json=_book_payload(**overrides))
        assert r.status_code == 201, r.text
        return r.json()["data"]
    return _create
