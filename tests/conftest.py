# tests/conftest.py
import os
import tempfile

# must be set before app.core.database builds its engine
_DB_DIR = tempfile.mkdtemp(prefix="tracker-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_DB_DIR, 'test.db')}"

import pytest

from app.blobs.models import Blob  # noqa: F401
from app.core.config import Settings, get_settings
from app.core.database import Base, SessionLocal, engine


@pytest.fixture(autouse=True)
def fresh_store():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def other_db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def settings() -> Settings:
    return get_settings()
