"""Engine, session and schema helpers for Workboard.

The database URL comes from ``Settings.database_url`` (``DATABASE_URL`` in
the environment). SQLite is used for local runs and tests, PostgreSQL
through psycopg in deployments.
"""

from typing import Generator, Optional

import structlog
from sqlalchemy import Engine, create_engine
from sqlalchemy.engine.url import make_url
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker
from sqlalchemy.pool import StaticPool

from ..config import get_settings

logger = structlog.get_logger()


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""

    pass


def get_database_url(raw_url: Optional[str] = None) -> str:
    """Resolve the database URL, falling back to the configured one."""
    url = make_url(raw_url or get_settings().database_url)
    # str(url) would mask the password with ***
    return url.render_as_string(hide_password=False)


_engine: Optional[Engine] = None


def get_engine() -> Engine:
    """Create the engine on first use and cache it."""
    global _engine
    if _engine is not None:
        return _engine

    url = make_url(get_database_url())
    if url.get_backend_name() == "sqlite":
        kwargs = {"connect_args": {"check_same_thread": False}}
        if url.database in (None, "", ":memory:"):
            # One shared connection, otherwise every checkout sees an empty db
            kwargs["poolclass"] = StaticPool
        _engine = create_engine(url, **kwargs)
    else:
        _engine = create_engine(url, pool_size=10, max_overflow=20, pool_pre_ping=True)

    logger.info("database_engine_created", backend=url.get_backend_name())
    return _engine


def get_session_local() -> sessionmaker:
    """Get a sessionmaker bound to the current engine."""
    return sessionmaker(autocommit=False, autoflush=False, bind=get_engine())


def get_db() -> Generator[Session, None, None]:
    """Dependency to get database session."""
    session_local = get_session_local()
    db = session_local()
    try:
        yield db
    finally:
        db.close()


async def init_database() -> None:
    """Initialize the database with all tables."""
    # Import all models to ensure they're registered with Base
    from . import models  # noqa: F401

    Base.metadata.create_all(bind=get_engine())
    logger.info("database_initialized")


async def drop_database() -> None:
    """Drop all database tables. Use with caution!"""
    from . import models  # noqa: F401

    Base.metadata.drop_all(bind=get_engine())
    logger.warning("database_dropped")
