"""
Test configuration and fixtures.

Provides:
- A fresh SQLite database per test (file under tmp_path)
- An EntityStore bound to it
- An in-memory PDF blob store
- HTTPX AsyncClient factories, anonymous or authenticated as a given user
"""
import os
from typing import Generator

# Settings are read at import time
os.environ["METRICS_ENABLED"] = "false"
os.environ["STORAGE_PROVIDER"] = "memory"
os.environ["AUTO_CREATE_DB"] = "false"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["JWT_SECRET"] = "test-secret"

import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy.orm import Session, sessionmaker

from permithub.auth.security import create_access_token
from permithub.db import Base, build_engine, get_db
from permithub.main import create_app
from permithub.models.models import User
from permithub.services.entity_store import EntityStore
from permithub.storage.memory_provider import MemoryBlobStore


CLIENT_PAYLOAD = {
    "passport_number": "P1234567",
    "full_name": "Fatima Al Sayed",
    "phone_number": "+97312345678",
    "email": "fatima@example.com",
    "national_id": "880112345",
    "passport_image": "aGVsbG8gcGFzc3BvcnQ=",
    "work_type": "Nurse",
    "workplace": "Bahrain",
    "gender": "female",
}

PDF_BYTES = b"%PDF-1.4\n1 0 obj<<>>endobj\ntrailer<<>>\n%%EOF\n"


# =============================================================================
# Database Fixtures
# =============================================================================

@pytest.fixture(scope="function")
def engine(tmp_path):
    eng = build_engine(f"sqlite:///{tmp_path / 'test.db'}")
    Base.metadata.create_all(bind=eng)
    yield eng
    eng.dispose()


@pytest.fixture(scope="function")
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)


@pytest.fixture(scope="function")
def db(session_factory) -> Generator[Session, None, None]:
    session = session_factory()
    yield session
    session.close()


@pytest.fixture(scope="function")
def store(db: Session) -> EntityStore:
    return EntityStore(db)


@pytest.fixture(scope="function")
def blob_store() -> MemoryBlobStore:
    return MemoryBlobStore()


# =============================================================================
# Domain Fixtures
# =============================================================================

@pytest.fixture(scope="function")
def admin(store: EntityStore) -> User:
    return store.create_user(username="root", password="root-pass", role="admin")


@pytest.fixture(scope="function")
def team(store: EntityStore, admin: User):
    return store.create_team(name="Ops", created_by=admin.id)


@pytest.fixture(scope="function")
def collector(store: EntityStore, admin: User, team) -> User:
    return store.create_user(
        username="alice", password="p1", role="collector", created_by=admin.id, team_id=team.id
    )


@pytest.fixture(scope="function")
def approver(store: EntityStore, admin: User, team) -> User:
    return store.create_user(
        username="bob", password="p2", role="approver", created_by=admin.id, team_id=team.id
    )


@pytest.fixture(scope="function")
def client_record(store: EntityStore):
    return store.create_client(**CLIENT_PAYLOAD)


# =============================================================================
# HTTP Fixtures
# =============================================================================

@pytest.fixture(scope="function")
def app(session_factory, blob_store):
    application = create_app(blob_store=blob_store)

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    application.dependency_overrides[get_db] = override_get_db
    return application


@pytest.fixture(scope="function")
def anon_client(app) -> AsyncClient:
    return AsyncClient(transport=ASGITransport(app=app), base_url="http://test")


@pytest.fixture(scope="function")
def client_for(app):
    """Build an AsyncClient that carries a bearer token for ``user``."""

    def _make(user: User) -> AsyncClient:
        token = create_access_token(user.id, user.role)
        return AsyncClient(
            transport=ASGITransport(app=app),
            base_url="http://test",
            headers={"Authorization": f"Bearer {token}"},
        )

    return _make
