import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from gated_notes_backend.src.api.auth import get_db
from gated_notes_backend.src.api.main import app
from gated_notes_database.entities import EntityStore
from gated_notes_database.init_db import init_db
from gated_notes_database.models import Base
from gated_notes_database.store import KeyValueStore

@pytest.fixture
def engine():
    """Fixture for a fresh in-memory SQLite partition per test."""
    engine = create_engine(
        "sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool
    )
    init_db(engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()

@pytest.fixture
def db_session(engine):
    """Provide a SQLAlchemy session for isolated test usage."""
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()

@pytest.fixture
def store(db_session):
    """Entity store over the test session."""
    return EntityStore(KeyValueStore(db_session))

@pytest.fixture
def client(db_session):
    """Fixture for FastAPI TestClient with test DB dependency override."""
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as c:
        yield c

    app.dependency_overrides.clear()

@pytest.fixture
def user_data():
    """Returns default credentials for registration."""
    return {"username": "alice", "password": "secret1"}

@pytest.fixture
def second_user_data():
    """Returns a second user's credentials."""
    return {"username": "bob", "password": "bobpassword456"}

def register(client, creds):
    r = client.post("/api/auth/register", json=creds)
    assert r.status_code == 200
    return creds

def create_note(client, creds):
    r = client.post("/api/notes", json=creds)
    assert r.status_code == 200
    return r.json()

def delete_note(client, note_id, creds):
    """DELETE with a JSON body; httpx only allows that through request()."""
    return client.request("DELETE", f"/api/notes/{note_id}", json=creds)

@pytest.fixture
def alice(client, user_data):
    return register(client, user_data)

@pytest.fixture
def bob(client, second_user_data):
    return register(client, second_user_data)
