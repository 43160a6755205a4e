"""
Database connection and session management module.

This module provides the SQLAlchemy declarative base, engine construction with
a bounded connection pool, and the session factory used by the API layer.
"""

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from core.config import Settings

# Base class for models
Base = declarative_base()


def create_db_engine(settings: Settings) -> Engine:
    """
    Create the SQLAlchemy engine for the relational store.

    For server databases the pool holds DB_POOL_SIZE connections plus
    DB_MAX_OVERFLOW extra ones; a caller that cannot get a connection within
    DB_POOL_TIMEOUT seconds gets sqlalchemy.exc.TimeoutError instead of
    queueing forever.

    In-memory SQLite (used by the test-suite) shares a single connection
    across threads.

    Args:
        settings: Application settings

    Returns:
        Engine: configured engine
    """
    url = make_url(settings.database_url)

    if url.get_backend_name() == "sqlite":
        engine = create_engine(
            url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )

        @event.listens_for(engine, "connect")
        def _enable_foreign_keys(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

        return engine

    return create_engine(
        url,
        pool_pre_ping=True,
        pool_size=settings.DB_POOL_SIZE,
        max_overflow=settings.DB_MAX_OVERFLOW,
        pool_timeout=settings.DB_POOL_TIMEOUT,
        pool_recycle=settings.DB_POOL_RECYCLE,
    )


def create_session_factory(engine: Engine) -> sessionmaker:
    """Session factory bound to the given engine."""
    return sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)


def init_models(engine: Engine) -> None:
    """Create all tables registered on Base if they don't exist."""
    # Import models to ensure they are registered with Base
    import models  # noqa: F401

    Base.metadata.create_all(bind=engine)
