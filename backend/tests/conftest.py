"""Shared pytest fixtures for the backend test suite."""

import os

# Set required env vars before any backend module is imported so that the
# pydantic-settings singleton initialises without external credentials.
os.environ.setdefault("DATABASE_URL", "sqlite://")  # overridden by fixture
os.environ.setdefault("AI_PROVIDER", "openai")
os.environ.setdefault("OPENAI_API_KEY", "test-api-key")

import pytest
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool
from sqlmodel import Session, SQLModel, create_engine

from backend.models.chat import ChatRoom, ChatRoomMember
from backend.models.user import User


@pytest.fixture(name="db_path")
def db_path_fixture(tmp_path):
    """Temporary file-based SQLite database path shared between sync and async engines."""
    return str(tmp_path / "test.db")


@pytest.fixture(name="engine")
def engine_fixture(db_path):
    """Sync SQLite engine with all tables created."""
    engine = create_engine(
        f"sqlite:///{db_path}",
        connect_args={"check_same_thread": False},
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture(name="async_engine")
def async_engine_fixture(db_path, engine):  # noqa: ARG001
    """Async SQLite engine sharing the same file-based database as the sync engine.

    NullPool keeps no connection bound to the TestClient's event loop, so
    nothing needs disposing afterwards.
    """
    return create_async_engine(f"sqlite+aiosqlite:///{db_path}", poolclass=NullPool)


@pytest.fixture(name="db")
def db_fixture(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture(name="user")
def user_fixture(db):
    u = User(email="test@example.com", username="tester")
    db.add(u)
    db.commit()
    db.refresh(u)
    return u


@pytest.fixture(name="other_user")
def other_user_fixture(db):
    u = User(email="other@example.com", username="other", avatar_url="https://example.com/a.png")
    db.add(u)
    db.commit()
    db.refresh(u)
    return u


@pytest.fixture(name="chat_room")
def chat_room_fixture(db, user):
    room = ChatRoom(name="General", description="Anything goes", created_by=user.id)
    db.add(room)
    db.add(ChatRoomMember(chat_room_id=room.id, user_id=user.id, role="admin"))
    db.commit()
    db.refresh(room)
    return room


@pytest.fixture(name="app")
def app_fixture(engine, async_engine):
    """FastAPI app with DB dependencies overridden to use the test SQLite file."""
    from backend.core.database import get_async_session, get_session
    from backend.main import app

    def override_get_session():
        with Session(engine) as session:
            yield session

    async def override_get_async_session():
        async_session_factory = async_sessionmaker(async_engine, expire_on_commit=False)
        async with async_session_factory() as session:
            yield session

    app.dependency_overrides[get_session] = override_get_session
    app.dependency_overrides[get_async_session] = override_get_async_session
    yield app
    app.dependency_overrides.clear()


@pytest.fixture()
def client(app):
    from fastapi.testclient import TestClient

    with TestClient(app) as c:
        yield c
