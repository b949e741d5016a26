from __future__ import annotations

from collections.abc import AsyncGenerator, Generator

from fastapi import HTTPException, status
from sqlalchemy import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlmodel import Session, create_engine

from backend.core.settings import settings

_engine: Engine | None = None


def get_engine() -> Engine:
    global _engine
    if _engine is None:
        _engine = create_engine(settings.DATABASE_URL, pool_pre_ping=True)
    return _engine


def get_session() -> Generator[Session, None, None]:
    with Session(get_engine()) as session:
        yield session


_async_engine: AsyncEngine | None = None


def get_async_engine() -> AsyncEngine:
    global _async_engine
    if _async_engine is None:
        _async_engine = create_async_engine(settings.ASYNC_DATABASE_URL, pool_pre_ping=True)
    return _async_engine


async def get_async_session() -> AsyncGenerator[AsyncSession, None]:
    async_session_factory = async_sessionmaker(get_async_engine(), expire_on_commit=False)
    async with async_session_factory() as session:
        yield session


def db_error_message(err: SQLAlchemyError) -> str:
    """Return the driver's message for a failed statement.

    SQLAlchemy wraps DBAPI errors and prefixes the SQL and parameters; the
    client only needs what the database said.
    """
    orig = getattr(err, "orig", None)
    return str(orig) if orig is not None else str(err)


async def commit_or_400(db: AsyncSession) -> None:
    """Commit, translating a database rejection into a 400 with its message."""
    try:
        await db.commit()
    except SQLAlchemyError as err:
        await db.rollback()
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=db_error_message(err),
        ) from err


def commit_sync_or_400(db: Session) -> None:
    """Sync-session twin of commit_or_400 for routers that use get_session."""
    try:
        db.commit()
    except SQLAlchemyError as err:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=db_error_message(err),
        ) from err
