"""
Core Module - Exceptions.

============================================================
RESPONSIBILITY
============================================================
Defines all custom exceptions for the clearance scoring system.

- Provides clear exception hierarchy
- Enables specific error handling per failure unit
- Supports error categorization for the run summary
- Includes context for debugging

============================================================
EXCEPTION HIERARCHY
============================================================
ClearanceScoringError (base)
├── ConfigurationError
├── FatalLoadError
├── RecordScoringError
├── EnrichmentError
└── CacheIOError

============================================================
PROPAGATION POLICY
============================================================
- FatalLoadError aborts a run before any record is scored
- RecordScoringError is isolated to a single record
- EnrichmentError is carried inside a result, never raised
  out of a cache lookup
- CacheIOError degrades a load to an empty cache and is
  reported to the caller on save

============================================================
"""

from enum import Enum
from datetime import datetime, timezone
from typing import Any, Dict, Optional


# ============================================================
# SEVERITY LEVELS
# ============================================================

class Severity(Enum):
    """Exception severity levels for reporting."""

    LOW = "low"
    """Minor issue, informational."""

    MEDIUM = "medium"
    """Moderate issue, requires attention."""

    HIGH = "high"
    """Serious issue, the run cannot be trusted."""

    CRITICAL = "critical"
    """Critical issue, the run must stop."""


# ============================================================
# ERROR CLASSIFICATION
# ============================================================

class ErrorClassification(Enum):
    """Classification of error recoverability."""

    RECOVERABLE = "recoverable"
    """Error is absorbed at the smallest unit (record, entry)."""

    TRANSIENT = "transient"
    """Temporary error, a later run may succeed."""

    NON_RECOVERABLE = "non_recoverable"
    """Permanent error, requires intervention."""


# ============================================================
# BASE EXCEPTION
# ============================================================

class ClearanceScoringError(Exception):
    """
    Base exception for all clearance scoring errors.

    All exceptions carry:
    - severity: for reporting
    - context: for debugging
    - classification: for error handling decisions
    - timestamp: when the error occurred
    """

    default_severity: Severity = Severity.MEDIUM
    default_classification: ErrorClassification = ErrorClassification.RECOVERABLE

    def __init__(
        self,
        message: str,
        severity: Optional[Severity] = None,
        context: Optional[Dict[str, Any]] = None,
        classification: Optional[ErrorClassification] = None,
        cause: Optional[Exception] = None,
    ):
        super().__init__(message)

        self.message = message
        self.severity = severity or self.default_severity
        self.context = context or {}
        self.classification = classification or self.default_classification
        self.cause = cause
        self.timestamp = datetime.now(timezone.utc)

        if cause:
            self.context["cause_type"] = type(cause).__name__
            self.context["cause_message"] = str(cause)

    @property
    def is_recoverable(self) -> bool:
        """Check if the run can continue past this error."""
        return self.classification in (
            ErrorClassification.RECOVERABLE,
            ErrorClassification.TRANSIENT,
        )

    @property
    def should_abort_run(self) -> bool:
        """Check if error should stop the current run."""
        return (
            self.severity in (Severity.HIGH, Severity.CRITICAL) and
            self.classification == ErrorClassification.NON_RECOVERABLE
        )

    def to_dict(self) -> Dict[str, Any]:
        """Serialize exception for logging."""
        return {
            "type": type(self).__name__,
            "message": self.message,
            "severity": self.severity.value,
            "classification": self.classification.value,
            "context": self.context,
            "timestamp": self.timestamp.isoformat(),
            "cause": str(self.cause) if self.cause else None,
        }

    def to_log_format(self) -> str:
        """Format exception for structured logging."""
        ctx_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
        line = f"[{self.severity.value.upper()}] {type(self).__name__}: {self.message}"
        if ctx_str:
            line += f" | {ctx_str}"
        return line


# ============================================================
# CONFIGURATION ERRORS
# ============================================================

class ConfigurationError(ClearanceScoringError):
    """Error in runtime configuration."""

    default_severity = Severity.HIGH
    default_classification = ErrorClassification.NON_RECOVERABLE

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        actual_value: Optional[Any] = None,
        **kwargs,
    ):
        context = kwargs.pop("context", {})

        if config_key:
            context["config_key"] = config_key
        if actual_value is not None:
            context["actual_value"] = str(actual_value)[:100]

        super().__init__(message, context=context, **kwargs)


# ============================================================
# TABLE LOADING ERRORS
# ============================================================

class FatalLoadError(ClearanceScoringError):
    """
    A required weight table or keyword set is missing or malformed.

    Scoring on partial or default tables would make every record
    meaningless, so this aborts the run before scoring starts.
    """

    default_severity = Severity.CRITICAL
    default_classification = ErrorClassification.NON_RECOVERABLE

    def __init__(
        self,
        message: str,
        table_name: Optional[str] = None,
        source: Optional[str] = None,
        **kwargs,
    ):
        context = kwargs.pop("context", {})

        if table_name:
            context["table_name"] = table_name
        if source:
            context["source"] = source

        super().__init__(message, context=context, **kwargs)
        self.table_name = table_name


# ============================================================
# RECORD ERRORS
# ============================================================

class RecordScoringError(ClearanceScoringError):
    """A single record could not be scored."""

    default_severity = Severity.LOW
    default_classification = ErrorClassification.RECOVERABLE

    def __init__(
        self,
        message: str,
        record_id: Optional[str] = None,
        field_name: Optional[str] = None,
        **kwargs,
    ):
        context = kwargs.pop("context", {})

        if record_id:
            context["record_id"] = record_id
        if field_name:
            context["field_name"] = field_name

        super().__init__(message, context=context, **kwargs)
        self.record_id = record_id
        self.field_name = field_name


# ============================================================
# ENRICHMENT ERRORS
# ============================================================

class EnrichmentErrorKind(str, Enum):
    """Why an enrichment attempt produced no usable text."""

    TIMEOUT = "timeout"
    HTTP_ERROR = "http_error"
    TRANSPORT_ERROR = "transport_error"
    MALFORMED_RESPONSE = "malformed_response"
    EMPTY_RESPONSE = "empty_response"
    MISSING_CREDENTIAL = "missing_credential"
    UNEXPECTED = "unexpected"


class EnrichmentError(ClearanceScoringError):
    """
    Failure while generating a company recap.

    Returned inside an EnrichmentResult by the enrichment client.
    The recap cache branches on the result tag and never raises this.
    """

    default_severity = Severity.LOW
    default_classification = ErrorClassification.TRANSIENT

    def __init__(
        self,
        message: str,
        kind: EnrichmentErrorKind = EnrichmentErrorKind.UNEXPECTED,
        company_name: Optional[str] = None,
        status_code: Optional[int] = None,
        **kwargs,
    ):
        context = kwargs.pop("context", {})

        context["kind"] = kind.value
        if company_name:
            context["company_name"] = company_name
        if status_code is not None:
            context["status_code"] = status_code

        super().__init__(message, context=context, **kwargs)
        self.kind = kind
        self.status_code = status_code


# ============================================================
# CACHE STORE ERRORS
# ============================================================

class CacheIOError(ClearanceScoringError):
    """The durable recap store could not be read or written."""

    default_severity = Severity.MEDIUM
    default_classification = ErrorClassification.TRANSIENT

    def __init__(
        self,
        message: str,
        operation: Optional[str] = None,
        **kwargs,
    ):
        context = kwargs.pop("context", {})

        if operation:
            context["operation"] = operation

        super().__init__(message, context=context, **kwargs)
        self.operation = operation
