import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from capture_studio.db.base import Base, get_db
from capture_studio.api.endpoints import get_spotify
from capture_studio.services.hub import StudioHub
from capture_studio.services.spotify import SpotifyClient
from capture_studio.main import app

# 1. In-Memory Database Setup
SQLALCHEMY_DATABASE_URL = "sqlite://"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


class FakeWebSocket:
    """Stands in for a client connection; records what the server sends."""

    def __init__(self, name: str = "socket", fail: bool = False):
        self.name = name
        self.fail = fail
        self.sent = []

    async def send_json(self, message):
        if self.fail:
            raise RuntimeError("connection closed")
        self.sent.append(message)

    def events(self, name=None):
        return [m for m in self.sent if name is None or m["event"] == name]

    def last(self, name):
        matching = self.events(name)
        return matching[-1]["data"] if matching else None

    def clear(self):
        self.sent.clear()

    def __repr__(self):
        return f"FakeWebSocket({self.name})"


@pytest.fixture(scope="function")
def test_db():
    # Create tables
    Base.metadata.create_all(bind=engine)

    # Create session
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        # Drop tables after test
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def hub():
    return StudioHub()


@pytest.fixture
def make_socket():
    return FakeWebSocket


@pytest.fixture
def offline_spotify():
    return SpotifyClient(None, None)


@pytest.fixture(scope="function")
def client(test_db, offline_spotify):
    # Override the dependencies
    def override_get_db():
        try:
            yield test_db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_spotify] = lambda: offline_spotify

    with TestClient(app) as c:
        yield c

    # Reset overrides
    app.dependency_overrides.clear()
