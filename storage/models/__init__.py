"""
Storage Models Package.

ORM models for the clearance scoring database.

- base: Base, TimestampMixin
- recap: RecapCacheRecord
- scoring: ScoredClearanceRecord, ClearanceArchive
"""

from storage.models.base import Base, TimestampMixin
from storage.models.recap import RecapCacheRecord
from storage.models.scoring import ClearanceArchive, ScoredClearanceRecord

__all__ = [
    "Base",
    "TimestampMixin",
    "RecapCacheRecord",
    "ScoredClearanceRecord",
    "ClearanceArchive",
]
