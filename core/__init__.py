"""
Core Module Package.

This package contains the infrastructure components
that all other modules depend on.

Components:
- clock: Unified time abstraction
- exceptions: Custom exception hierarchy
"""

from .clock import ClockProtocol, SystemClock, MockClock
from .exceptions import (
    Severity,
    ErrorClassification,
    ClearanceScoringError,
    ConfigurationError,
    FatalLoadError,
    RecordScoringError,
    EnrichmentError,
    EnrichmentErrorKind,
    CacheIOError,
)

__all__ = [
    "ClockProtocol",
    "SystemClock",
    "MockClock",
    "Severity",
    "ErrorClassification",
    "ClearanceScoringError",
    "ConfigurationError",
    "FatalLoadError",
    "RecordScoringError",
    "EnrichmentError",
    "EnrichmentErrorKind",
    "CacheIOError",
]
