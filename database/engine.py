"""
Database Persistence Layer - Core Engine.

============================================================
RESPONSIBILITY
============================================================
Builds SQLAlchemy engines and sessions for the durable
stores (recap cache, scored records, archive markers).

- Database URL from environment (python-dotenv)
- Explicit transaction management
- Hard failures on persistence errors

============================================================
CONFIGURATION
============================================================
DATABASE_URL    SQLAlchemy URL (default: sqlite:///clearance_scoring.db)

In-memory SQLite URLs share one connection so that every
session sees the same database.

============================================================
"""

import os
import logging
from typing import Callable, Generator, Optional
from contextlib import contextmanager

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.pool import StaticPool

from dotenv import load_dotenv

# Load environment variables
load_dotenv()

logger = logging.getLogger(__name__)


DEFAULT_DATABASE_URL = "sqlite:///clearance_scoring.db"

SessionFactory = Callable[[], Session]


# =============================================================
# DATABASE ENGINE
# =============================================================


def get_database_url() -> str:
    """Get database URL from environment."""
    url = os.getenv("DATABASE_URL")
    if not url:
        url = DEFAULT_DATABASE_URL
        logger.info(f"DATABASE_URL not set, using default: {url}")
    return url


def _is_memory_sqlite(url: str) -> bool:
    return url in ("sqlite://", "sqlite:///:memory:") or "mode=memory" in url


def create_database_engine(url: Optional[str] = None, echo: bool = False) -> Engine:
    """
    Create a SQLAlchemy engine.

    Args:
        url: Database URL (defaults to get_database_url())
        echo: Log SQL statements

    Returns:
        SQLAlchemy Engine

    Raises:
        DatabaseInitializationError: If the URL cannot be parsed or its
            driver is not installed
    """
    database_url = url or get_database_url()

    logger.info(f"Creating database engine for: {database_url.split('@')[-1]}")

    try:
        if _is_memory_sqlite(database_url):
            return create_engine(
                database_url,
                connect_args={"check_same_thread": False},
                poolclass=StaticPool,
                echo=echo,
            )
        return create_engine(database_url, echo=echo, pool_pre_ping=True)
    except (SQLAlchemyError, ImportError) as e:
        logger.error(f"Failed to create database engine: {e}")
        raise DatabaseInitializationError(f"Invalid database URL: {e}") from e


def get_session_factory(engine: Engine) -> sessionmaker:
    """Build a session factory bound to engine."""
    return sessionmaker(
        bind=engine,
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
    )


# =============================================================
# SESSION MANAGEMENT
# =============================================================


@contextmanager
def transaction_scope(session_factory: SessionFactory) -> Generator[Session, None, None]:
    """
    Context manager for explicit transaction boundaries.

    Commits only if no exception occurs.
    Rolls back on ANY exception.

    Usage:
        with transaction_scope(factory) as session:
            repository = RecapCacheRepository(session)
            repository.replace_all(rows)
            # Commits automatically at end
    """
    session = session_factory()
    try:
        yield session
        session.commit()
        logger.debug("Database transaction committed successfully")
    except SQLAlchemyError as e:
        logger.error(f"Database transaction failed, rolling back: {e}")
        session.rollback()
        raise DatabasePersistenceError(f"Transaction failed: {e}") from e
    except Exception as e:
        logger.error(f"Transaction failed with unexpected error: {e}")
        session.rollback()
        raise
    finally:
        session.close()


# =============================================================
# DATABASE INITIALIZATION
# =============================================================


def create_all_tables(engine: Engine) -> None:
    """
    Create all tables defined in ORM models.

    Raises:
        DatabaseInitializationError if table creation fails
    """
    # Importing the models registers them with Base.metadata
    from storage.models import Base

    try:
        logger.info("Creating database tables...")
        Base.metadata.create_all(bind=engine)
        logger.info("Database tables created successfully")
    except SQLAlchemyError as e:
        logger.error(f"Failed to create database tables: {e}")
        raise DatabaseInitializationError(f"Table creation failed: {e}") from e


def initialize_database(url: Optional[str] = None) -> sessionmaker:
    """
    Full database initialization sequence.

    1. Create engine
    2. Create tables if not exist
    3. Return a session factory

    Raises:
        DatabaseInitializationError if table creation fails
    """
    engine = create_database_engine(url)
    create_all_tables(engine)
    return get_session_factory(engine)


# =============================================================
# CUSTOM EXCEPTIONS
# =============================================================


class DatabasePersistenceError(Exception):
    """Raised when database persistence fails."""
    pass


class DatabaseInitializationError(DatabasePersistenceError):
    """Raised when database initialization fails."""
    pass


__all__ = [
    "DEFAULT_DATABASE_URL",
    "SessionFactory",
    "get_database_url",
    "create_database_engine",
    "get_session_factory",
    "transaction_scope",
    "create_all_tables",
    "initialize_database",
    "DatabasePersistenceError",
    "DatabaseInitializationError",
]
