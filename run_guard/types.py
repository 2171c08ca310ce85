"""
Run Guard - Type Definitions.

============================================================
PURPOSE
============================================================
The once-per-invocation decision of whether to run the full
scoring pipeline or only a lightweight data refresh.

============================================================
STATES
============================================================
SKIPPED   -> refresh only; no scoring, no archive
FULL_RUN  -> score, resolve, write, archive if required

The decision is frozen for the duration of a run.

============================================================
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional


class RunState(str, Enum):
    """Outcome of the run guard."""

    SKIPPED = "SKIPPED"
    """Only the lightweight refresh runs."""

    FULL_RUN = "FULL_RUN"
    """Full scoring pass."""


@dataclass(frozen=True)
class RunGuardDecision:
    """
    Frozen guard decision for one run.

    proceed_full = must_archive or within_grace_window or is_privileged_user
    """

    must_archive: bool
    within_grace_window: bool
    is_privileged_user: bool
    proceed_full: bool
    target_period: Optional[str] = None

    @property
    def state(self) -> RunState:
        return RunState.FULL_RUN if self.proceed_full else RunState.SKIPPED

    @property
    def reasons(self) -> list:
        """Names of the conditions that made the run full."""
        reasons = []
        if self.must_archive:
            reasons.append("archive_missing")
        if self.within_grace_window:
            reasons.append("grace_window")
        if self.is_privileged_user:
            reasons.append("privileged_user")
        return reasons

    def to_dict(self) -> Dict[str, Any]:
        return {
            "target_period": self.target_period,
            "must_archive": self.must_archive,
            "within_grace_window": self.within_grace_window,
            "is_privileged_user": self.is_privileged_user,
            "proceed_full": self.proceed_full,
            "state": self.state.value,
        }
