"""
Repository Layer Package.

============================================================
PURPOSE
============================================================
The Repository Layer is the ONLY gateway to persistent storage.
All database access MUST go through repository classes.

============================================================
ARCHITECTURE PRINCIPLES
============================================================
1. Session Injection: Sessions are injected, not created internally
2. Explicit Methods: No generic 'execute', clear method names
3. Exception Handling: All DB errors wrapped in repository exceptions

============================================================
REPOSITORIES
============================================================
- RecapCacheRepository: durable company recap cache
- ScoredRecordRepository: scored clearance records per period
- ClearanceArchiveRepository: monthly archive markers

============================================================
"""

from storage.repositories.exceptions import (
    ConnectionError,
    DuplicateRecordError,
    IntegrityError,
    QueryError,
    RepositoryException,
)
from storage.repositories.base import BaseRepository
from storage.repositories.recap import RecapCacheRepository
from storage.repositories.scoring import (
    ClearanceArchiveRepository,
    ScoredRecordRepository,
)

__all__ = [
    "RepositoryException",
    "DuplicateRecordError",
    "IntegrityError",
    "ConnectionError",
    "QueryError",
    "BaseRepository",
    "RecapCacheRepository",
    "ScoredRecordRepository",
    "ClearanceArchiveRepository",
]
