"""Database infrastructure for the local and remote stores."""

from __future__ import annotations

from contextlib import contextmanager
from typing import Callable, ContextManager, Iterator

from sqlalchemy.engine import Engine
from sqlmodel import Session, SQLModel, create_engine

from ..config import BaseConfig
from ..models import LOCAL_TABLES, REMOTE_TABLES

SessionFactory = Callable[[], ContextManager[Session]]


def create_db_engine(url: str, config: BaseConfig) -> Engine:
    """Create SQLModel engine for ``url`` using configured options."""
    return create_engine(url, **config.sqlalchemy_engine_options(url))


def init_local_database(engine: Engine) -> None:
    """Create the key/value table only; entity tables live remotely."""
    SQLModel.metadata.create_all(engine, tables=LOCAL_TABLES)


def init_remote_database(engine: Engine) -> None:
    """Create counters, sessions and daily_stats if missing."""
    SQLModel.metadata.create_all(engine, tables=REMOTE_TABLES)


def create_session_factory(engine: Engine) -> SessionFactory:
    """Create a session factory function."""

    @contextmanager
    def factory() -> Iterator[Session]:
        """Create a new session."""
        session = Session(engine, expire_on_commit=False)
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    return factory


__all__ = [
    "SessionFactory",
    "create_db_engine",
    "create_session_factory",
    "init_local_database",
    "init_remote_database",
]
