"""
Run Guard - Decision Engine.

============================================================
RESPONSIBILITY
============================================================
Decides once per invocation whether the full pipeline runs.

Rule:
    must_archive        = not archive_exists(target_period)
    within_grace_window = today.day <= grace_days
    proceed_full        = must_archive or within_grace_window
                          or is_privileged_user

No I/O of its own. The archive check is a collaborator.

============================================================
"""

import logging
import re
from datetime import date
from typing import Callable, Iterable, Optional

from core.exceptions import ConfigurationError
from .types import RunGuardDecision


logger = logging.getLogger(__name__)


DEFAULT_GRACE_DAYS = 5

PERIOD_PATTERN = re.compile(r"^\d{4}-(0[1-9]|1[0-2])$")

ArchiveExistenceCheck = Callable[[str], bool]


def previous_month_period(today: date) -> str:
    """
    Period ("YYYY-MM") of the month before today.

    >>> previous_month_period(date(2024, 1, 3))
    '2023-12'
    """
    if today.month == 1:
        return f"{today.year - 1:04d}-12"
    return f"{today.year:04d}-{today.month - 1:02d}"


def validate_period(period: str) -> str:
    """Return period unchanged, or raise ConfigurationError."""
    if not isinstance(period, str) or not PERIOD_PATTERN.match(period):
        raise ConfigurationError(
            f"Period must be YYYY-MM, got {period!r}",
            config_key="period",
            actual_value=period,
        )
    return period


class PrivilegedUserPolicy:
    """
    Case-insensitive allow-list of privileged users.

    Privileged users force a full run and may trigger paid
    enrichment.
    """

    def __init__(self, users: Optional[Iterable[str]] = None):
        self._users = frozenset(
            user.strip().casefold()
            for user in (users or [])
            if isinstance(user, str) and user.strip()
        )

    @classmethod
    def from_csv(cls, value: Optional[str]) -> "PrivilegedUserPolicy":
        """Build from a comma-separated string (PRIVILEGED_USERS)."""
        return cls((value or "").split(","))

    def __len__(self) -> int:
        return len(self._users)

    def is_privileged(self, user: Optional[str]) -> bool:
        if not isinstance(user, str) or not user.strip():
            return False
        return user.strip().casefold() in self._users


class RunGuard:
    """
    Pure decision function for the run guard.

    Usage:
        guard = RunGuard()
        decision = guard.decide("2024-05", source.archive_exists,
                                date.today(), policy.is_privileged(user))
        if not decision.proceed_full:
            source.refresh_only()
    """

    def __init__(self, grace_days: int = DEFAULT_GRACE_DAYS):
        if isinstance(grace_days, bool) or not isinstance(grace_days, int) or grace_days < 0:
            raise ConfigurationError(
                "grace_days must be a non-negative integer",
                config_key="grace_days",
                actual_value=grace_days,
            )
        self._grace_days = grace_days

    @property
    def grace_days(self) -> int:
        return self._grace_days

    def decide(
        self,
        target_period: str,
        archive_exists: ArchiveExistenceCheck,
        today: date,
        is_privileged_user: bool,
    ) -> RunGuardDecision:
        """
        Evaluate the guard.

        Args:
            target_period: Period whose archive is checked
            archive_exists: Archive existence collaborator
            today: Current date
            is_privileged_user: Result of the privileged-user predicate

        Returns:
            RunGuardDecision
        """
        must_archive = not archive_exists(target_period)
        within_grace_window = today.day <= self._grace_days
        privileged = bool(is_privileged_user)

        decision = RunGuardDecision(
            must_archive=must_archive,
            within_grace_window=within_grace_window,
            is_privileged_user=privileged,
            proceed_full=must_archive or within_grace_window or privileged,
            target_period=target_period,
        )

        logger.info(
            f"Run guard for {target_period}: {decision.state.value} "
            f"(must_archive={must_archive}, grace={within_grace_window}, "
            f"privileged={privileged})"
        )
        return decision
