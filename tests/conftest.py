import mongomock
import pytest

import database


@pytest.fixture(autouse=True)
def mock_db(monkeypatch):
    """Give every test a fresh in-memory MongoDB."""
    db = mongomock.MongoClient()["learning-hub-test"]
    monkeypatch.setattr(database, "db", db)
    yield db
