"""Engine, schema and session factory for the deposit store."""

from __future__ import annotations

from contextlib import contextmanager
from typing import Callable, ContextManager, Iterator

from sqlalchemy import event
from sqlalchemy.engine import Engine
from sqlmodel import Session, SQLModel, create_engine

from ..config import BaseConfig

SessionFactory = Callable[[], ContextManager[Session]]


def _enable_sqlite_wal(dbapi_connection, _record) -> None:
    # Settlement workers read while another worker holds the write lock.
    cursor = dbapi_connection.cursor()
    try:
        cursor.execute("PRAGMA journal_mode=WAL")
    finally:
        cursor.close()


def create_db_engine(config: BaseConfig) -> Engine:
    engine = create_engine(config.DATABASE_URL, **config.sqlalchemy_engine_options())
    if engine.dialect.name == "sqlite" and ":memory:" not in config.DATABASE_URL:
        event.listen(engine, "connect", _enable_sqlite_wal)
    return engine


def init_database(engine: Engine) -> None:
    """Create the investment, schedule, movement and ledger tables."""
    from .. import models  # noqa: F401  registers the tables

    SQLModel.metadata.create_all(engine)


def create_session_factory(engine: Engine) -> SessionFactory:
    """Each call opens a session that commits on clean exit and rolls back on error."""

    @contextmanager
    def session_scope() -> Iterator[Session]:
        session = Session(engine, expire_on_commit=False)
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    return session_scope

