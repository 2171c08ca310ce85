"""
Recap Cache - Durable Stores.

============================================================
RESPONSIBILITY
============================================================
Durable tier of the recap cache. A store reads every entry at
run start and replaces every entry at run end.

- SqlRecapCacheStore: company_recap_cache table (SQLAlchemy)
- InMemoryRecapCacheStore: process-local store for dry runs
  and tests

Store failures surface as CacheIOError. The cache decides
whether a failure degrades (load) or propagates (save).

============================================================
"""

import logging
from abc import ABC, abstractmethod
from typing import Dict, Iterable, List, Optional

from sqlalchemy.exc import SQLAlchemyError

from core.clock import ensure_utc
from core.exceptions import CacheIOError
from database.engine import DatabasePersistenceError, SessionFactory, transaction_scope
from storage.repositories import RecapCacheRepository, RepositoryException
from .types import RecapCacheEntry


logger = logging.getLogger(__name__)


class DurableCacheStore(ABC):
    """Persistent backing for RecapCache."""

    @abstractmethod
    def read_all(self) -> List[RecapCacheEntry]:
        """
        Read every persisted entry.

        Returns:
            Entries in storage order (may contain duplicate keys)

        Raises:
            CacheIOError: If the store cannot be read
        """
        pass

    @abstractmethod
    def write_all(self, entries: Iterable[RecapCacheEntry]) -> None:
        """
        Replace the persisted contents with entries.

        Raises:
            CacheIOError: If the store cannot be written
        """
        pass


# ============================================================
# SQL STORE
# ============================================================


class SqlRecapCacheStore(DurableCacheStore):
    """
    Recap store backed by the company_recap_cache table.

    Usage:
        store = SqlRecapCacheStore(initialize_database(url))
        cache.load(store)
        ...
        cache.save(store)
    """

    def __init__(self, session_factory: SessionFactory):
        self._session_factory = session_factory

    def read_all(self) -> List[RecapCacheEntry]:
        try:
            with transaction_scope(self._session_factory) as session:
                rows = RecapCacheRepository(session).list_all()
                return [
                    # SQLite drops tzinfo on the way back
                    RecapCacheEntry(
                        company_name_key=row.company_name_key,
                        recap_text=row.recap_text,
                        last_updated=ensure_utc(row.last_updated) if row.last_updated else None,
                    )
                    for row in rows
                ]
        except (RepositoryException, DatabasePersistenceError, SQLAlchemyError) as e:
            raise CacheIOError(
                f"Could not read recap cache: {e}",
                operation="read_all",
                cause=e,
            ) from e

    def write_all(self, entries: Iterable[RecapCacheEntry]) -> None:
        rows = [
            (entry.company_name_key, entry.recap_text, entry.last_updated)
            for entry in entries
        ]
        try:
            with transaction_scope(self._session_factory) as session:
                RecapCacheRepository(session).replace_all(rows)
        except (RepositoryException, DatabasePersistenceError, SQLAlchemyError) as e:
            raise CacheIOError(
                f"Could not write recap cache: {e}",
                operation="write_all",
                cause=e,
            ) from e


# ============================================================
# IN-MEMORY STORE
# ============================================================


class InMemoryRecapCacheStore(DurableCacheStore):
    """Keeps entries in a dict keyed by company_name_key."""

    def __init__(self, entries: Optional[Iterable[RecapCacheEntry]] = None):
        self._entries: List[RecapCacheEntry] = list(entries or [])
        self.write_count = 0

    def read_all(self) -> List[RecapCacheEntry]:
        return list(self._entries)

    def write_all(self, entries: Iterable[RecapCacheEntry]) -> None:
        latest: Dict[str, RecapCacheEntry] = {}
        for entry in entries:
            latest[entry.company_name_key] = entry
        self._entries = list(latest.values())
        self.write_count += 1
