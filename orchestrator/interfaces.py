"""
Orchestrator - Collaborator Interfaces.

============================================================
RESPONSIBILITY
============================================================
Boundaries between the pipeline and the host environment.

- DataSource: produces records, answers the archive check,
  performs the lightweight refresh on a skipped run
- DataSink: receives the scored batch, archives a period

============================================================
"""

from abc import ABC, abstractmethod
from typing import Iterable, List

from scoring_engine import InputRecord
from .models import ScoredRecord


class DataSource(ABC):
    """Source of clearance records for one run."""

    @abstractmethod
    def iter_records(self) -> Iterable[InputRecord]:
        """Yield the run's records in a stable order."""
        pass

    @abstractmethod
    def archive_exists(self, period: str) -> bool:
        """Check whether period has already been archived."""
        pass

    @abstractmethod
    def refresh_only(self) -> None:
        """Cheap refresh performed when the guard skips the full run."""
        pass


class DataSink(ABC):
    """Destination of the scored batch."""

    @abstractmethod
    def write(self, results: List[ScoredRecord], period: str) -> None:
        """
        Store the ordered results of a full run.

        Args:
            results: (record, breakdown, recap) in input order
            period: Target period (YYYY-MM)
        """
        pass

    @abstractmethod
    def archive(self, period: str) -> None:
        """Archive period. Called at most once per run."""
        pass
