import os
import sqlite3

# Point the app at a throwaway database before anything imports it
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.pop("CORS_ORIGINS", None)

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from database import Base, get_db
from main import app


@pytest.fixture()
def db_engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


def _override_with(engine):
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    def override_get_db():
        db = TestingSession()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db


@pytest.fixture()
def client(db_engine):
    _override_with(db_engine)
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture()
def broken_engine():
    def refuse():
        raise sqlite3.OperationalError("unable to open database file")

    engine = create_engine("sqlite://", creator=refuse, poolclass=StaticPool)
    yield engine
    engine.dispose()


@pytest.fixture()
def broken_client(broken_engine):
    """Client whose every query fails at the storage layer."""
    _override_with(broken_engine)
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture()
def make_post(client):
    def _make(title="Title", description="Description"):
        resp = client.post("/posts", json={"title": title, "description": description})
        assert resp.status_code == 201
        return resp.json()["idPost"]
    return _make
