import os

# Settings and the engine are built at import time, so point them at sqlite first
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["DATA_BACKEND"] = "database"
os.environ["SESSION_BACKEND"] = "memory"
os.environ["DEMO_SEED"] = "false"

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

import tastebase.models  # noqa: E402,F401
from tastebase.database import Base, get_db  # noqa: E402
from tastebase.main import app  # noqa: E402
from tastebase.sessions import MemorySessionStore, get_session_store  # noqa: E402

# StaticPool keeps one in-memory database shared across connections
engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db():
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def sessions():
    return MemorySessionStore()


@pytest.fixture
def make_client(db, sessions):
    """Factory for clients with their own cookie jar against one app and database."""

    def override_get_db():
        session = TestingSessionLocal()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_session_store] = lambda: sessions
    yield lambda: TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def client(make_client):
    return make_client()
