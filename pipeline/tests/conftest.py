"""Shared pytest fixtures for the pipeline test suite."""

import os

# Set required env vars before any backend module is imported so that the
# pydantic-settings singleton initialises without external credentials.
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("AI_PROVIDER", "openai")
os.environ.setdefault("OPENAI_API_KEY", "test-api-key")

import pytest
from sqlmodel import Session as DBSession
from sqlmodel import SQLModel, create_engine
from sqlmodel.pool import StaticPool

from backend.models.chat import ChatRoom
from backend.models.user import User


@pytest.fixture(name="engine")
def engine_fixture():
    """In-memory SQLite engine with all tables created."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)


@pytest.fixture(name="db")
def db_fixture(engine):
    with DBSession(engine) as session:
        yield session


@pytest.fixture(name="user")
def user_fixture(db):
    u = User(email="test@example.com", username="tester")
    db.add(u)
    db.commit()
    db.refresh(u)
    return u


@pytest.fixture(name="chat_room")
def chat_room_fixture(db, user):
    room = ChatRoom(name="General", created_by=user.id)
    db.add(room)
    db.commit()
    db.refresh(room)
    return room


@pytest.fixture(name="ai_settings")
def ai_settings_fixture(mocker):
    """Patch the settings singleton with fast, deterministic assistant config."""
    from backend.core.settings import settings

    mocker.patch.object(settings, "AI_PROVIDER", "openai")
    mocker.patch.object(settings, "OPENAI_API_KEY", "test-api-key")
    mocker.patch.object(settings, "PERPLEXITY_API_KEY", "test-pplx-key")
    mocker.patch.object(settings, "GEMINI_API_KEY", "test-gemini-key")
    mocker.patch.object(settings, "AI_MAX_ATTEMPTS", 3)
    mocker.patch.object(settings, "AI_RETRY_BASE_DELAY", 1.0)
    mocker.patch.object(settings, "AI_HISTORY_LIMIT", 10)
    mocker.patch("pipeline.utils.time.sleep")
    return settings
