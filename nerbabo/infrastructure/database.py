"""Database configuration and session management."""

from __future__ import annotations

from collections.abc import Generator

import logging

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker
from sqlalchemy.pool import StaticPool

from nerbabo.config import get_settings


class Base(DeclarativeBase):
    """Base class for SQLAlchemy models."""


logger = logging.getLogger(__name__)


def _is_memory_sqlite(url: str) -> bool:
    return url in {"sqlite://", "sqlite:///:memory:"} or "mode=memory" in url


def _enable_sqlite_savepoints(engine: Engine) -> None:
    """Let pysqlite honour SAVEPOINT by emitting ``BEGIN`` ourselves.

    The driver otherwise defers ``BEGIN`` until the first DML statement, so a
    leading SAVEPOINT would open (and its RELEASE would commit) the outer
    transaction.
    """

    @event.listens_for(engine, "connect")
    def _disable_pysqlite_transactions(dbapi_connection, _connection_record) -> None:
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _emit_begin(connection) -> None:
        connection.exec_driver_sql("BEGIN")


def build_engine(database_url: str, *, echo: bool = False) -> Engine:
    """Create an engine for ``database_url`` with the dialect specific tweaks."""

    options: dict[str, object] = {"echo": echo, "pool_pre_ping": True}
    if database_url.startswith("sqlite"):
        options["connect_args"] = {"check_same_thread": False}
        if _is_memory_sqlite(database_url):
            options["poolclass"] = StaticPool

    engine = create_engine(database_url, **options)
    if engine.dialect.name == "sqlite":
        _enable_sqlite_savepoints(engine)
    logger.debug("Created %s engine", engine.dialect.name)
    return engine


def build_session_factory(bind: Engine) -> sessionmaker[Session]:
    """Return the session factory used for request and script sessions."""

    return sessionmaker(bind=bind, autoflush=False, expire_on_commit=False)


settings = get_settings()
engine = build_engine(settings.database_url, echo=settings.database_echo)
SessionLocal = build_session_factory(engine)


def initialize_database(bind: Engine | None = None) -> None:
    """Ensure all ORM models have corresponding database tables."""

    from nerbabo.infrastructure import models  # noqa: F401  # ensure models are imported

    Base.metadata.create_all(bind=bind or engine, checkfirst=True)


def get_db() -> Generator[Session, None, None]:
    """Yield a database session and close it afterwards."""

    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
