"""SQLModel engine and session management."""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator

from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from cityweather.core.config import settings


def build_engine(database_url: str) -> Engine:
    """Create an engine usable from the refresh worker threads.

    SQLite connections are shared across threads, and in-memory databases are
    pinned to a single connection so every session sees the same tables.
    """
    if database_url.startswith("sqlite"):
        connect_args = {"check_same_thread": False}
        if database_url in {"sqlite://", "sqlite:///:memory:"}:
            return create_engine(database_url, connect_args=connect_args, poolclass=StaticPool)
        return create_engine(database_url, connect_args=connect_args)
    return create_engine(database_url, echo=False, pool_pre_ping=True)


engine = build_engine(settings.database_url)


def init_db(bind: Engine | None = None) -> None:
    # Register table models on the metadata before create_all.
    import cityweather.models  # noqa: F401

    SQLModel.metadata.create_all(bind or engine)


@contextmanager
def get_session(bind: Engine | None = None) -> Iterator[Session]:
    """Get a database session as a context manager."""
    session = Session(bind or engine)
    try:
        yield session
    finally:
        session.close()
