"""
Database Package Initialization.

Engine and session management for the durable stores.
Every write goes through an explicit transaction with
commit/rollback.
"""

from .engine import (
    DEFAULT_DATABASE_URL,
    SessionFactory,
    get_database_url,
    create_database_engine,
    get_session_factory,
    transaction_scope,
    create_all_tables,
    initialize_database,
    DatabasePersistenceError,
    DatabaseInitializationError,
)

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
