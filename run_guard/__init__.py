"""
Run Guard Package.

Once-per-invocation decision between a full scoring run and a
lightweight refresh.
"""

from .engine import (
    DEFAULT_GRACE_DAYS,
    PrivilegedUserPolicy,
    RunGuard,
    previous_month_period,
    validate_period,
)
from .types import RunGuardDecision, RunState

__all__ = [
    "DEFAULT_GRACE_DAYS",
    "PrivilegedUserPolicy",
    "RunGuard",
    "previous_month_period",
    "validate_period",
    "RunGuardDecision",
    "RunState",
]
