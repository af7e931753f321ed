"""
Structured error types for crypto-pulse.

Every failure that must abort a workflow run is raised as a
``CryptoPulseError`` subclass.  Errors carry a category, retry semantics and
an ``ErrorContext`` so the runner can log them with the workflow, step and
run identifiers attached.

Architecture:
    ::

        CryptoPulseError
          ├── TransientError (retryable)
          │     ├── NetworkError
          │     └── RateLimitError
          ├── SourceError
          ├── ValidationError
          │     └── SchemaError
          ├── ConfigError
          │     └── MissingConfigError
          └── OrchestrationError
                └── WorkflowError
                      ├── ChainValidationError
                      └── StepFailedError

Non-fatal conditions (rate limiting on the social source, notifier delivery
failure) are not exceptions at the workflow boundary: the steps that meet
them convert them into context fields.

Usage:
    from cryptopulse.core.errors import SourceError

    if response.status_code >= 400:
        raise SourceError("CoinGecko returned 500").with_context(
            source_name="coingecko", http_status=500
        )
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """Standard error categories for classification and logging."""

    NETWORK = "NETWORK"  # Connection, timeout, DNS
    SOURCE = "SOURCE"  # Upstream API returned an error
    VALIDATION = "VALIDATION"  # Shape / constraint violations
    CONFIG = "CONFIG"  # Missing or invalid settings
    ORCHESTRATION = "ORCHESTRATION"  # Workflow assembly or execution
    INTERNAL = "INTERNAL"  # Bugs, unexpected state


@dataclass
class ErrorContext:
    """
    Structured metadata attached to an error.

    Attributes:
        workflow: Name of the workflow
        step: Id of the step that was executing
        run_id: Run identifier
        source_name: Name of the collaborator (e.g. "coingecko")
        url: URL that was being accessed
        http_status: HTTP status code if applicable
        metadata: Additional key-value pairs
    """

    workflow: str | None = None
    step: str | None = None
    run_id: str | None = None
    source_name: str | None = None
    url: str | None = None
    http_status: int | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Set fields only, with metadata flattened in."""
        known = {k: v for k, v in asdict(self).items() if k != "metadata" and v is not None}
        return {**known, **self.metadata}


class CryptoPulseError(Exception):
    """
    Base exception for all crypto-pulse errors.

    Subclasses set ``default_category`` and ``default_retryable`` so callers
    rarely pass them explicitly.
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL
    default_retryable: bool = False

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        retryable: bool | None = None,
        retry_after: int | None = None,
        context: ErrorContext | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.retryable = retryable if retryable is not None else self.default_retryable
        self.retry_after = retry_after
        self.context = context or ErrorContext()
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> CryptoPulseError:
        """
        Add context to this error (fluent API).

        Usage:
            raise SourceError("Failed").with_context(source_name="coingecko")
        """
        for key, value in kwargs.items():
            if hasattr(self.context, key) and key != "metadata":
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Log-friendly form; unset optional parts are left out."""
        payload = {
            "error_type": type(self).__name__,
            "message": self.message,
            "category": self.category.value,
            "retryable": self.retryable,
            "retry_after": self.retry_after,
            "context": self.context.to_dict() or None,
            "cause": None if self.cause is None else str(self.cause),
        }
        return {key: value for key, value in payload.items() if value is not None}

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# TRANSIENT ERRORS
# =============================================================================


class TransientError(CryptoPulseError):
    """Temporary error that may succeed if attempted again later."""

    default_category = ErrorCategory.NETWORK
    default_retryable = True


class NetworkError(TransientError):
    """Connection, DNS or transport timeout failure."""


class RateLimitError(TransientError):
    """Upstream service refused the request because of rate limiting."""

    def __init__(
        self,
        message: str = "Rate limited by upstream service",
        *,
        retry_after: int | None = None,
        **kwargs: Any,
    ):
        super().__init__(message, retry_after=retry_after, **kwargs)


# =============================================================================
# SOURCE ERRORS
# =============================================================================


class SourceError(CryptoPulseError):
    """Error returned by an upstream data source."""

    default_category = ErrorCategory.SOURCE
    default_retryable = False


# =============================================================================
# VALIDATION ERRORS
# =============================================================================


class ValidationError(CryptoPulseError):
    """Bad input data: an empty id list, a malformed value, a shape violation."""

    default_category = ErrorCategory.VALIDATION
    default_retryable = False

    def __init__(
        self,
        message: str,
        *,
        field: str | None = None,
        value: Any = None,
        **kwargs: Any,
    ):
        super().__init__(message, **kwargs)
        self.field = field
        self.value = value

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        if self.field:
            result["field"] = self.field
        if self.value is not None:
            result["value"] = repr(self.value)
        return result


class SchemaError(ValidationError):
    """Data does not match a step or workflow shape."""

    def __init__(
        self,
        message: str,
        *,
        errors: list[dict[str, Any]] | None = None,
        **kwargs: Any,
    ):
        super().__init__(message, **kwargs)
        self.errors = errors or []


# =============================================================================
# CONFIGURATION ERRORS
# =============================================================================


class ConfigError(CryptoPulseError):
    """Settings are missing or invalid."""

    default_category = ErrorCategory.CONFIG
    default_retryable = False


class MissingConfigError(ConfigError):
    """A credential or setting needed before a request is absent."""

    def __init__(self, key: str, message: str | None = None):
        self.key = key
        super().__init__(message or f"{key} is not configured")


# =============================================================================
# ORCHESTRATION ERRORS
# =============================================================================


class OrchestrationError(CryptoPulseError):
    """Workflow assembly or execution error."""

    default_category = ErrorCategory.ORCHESTRATION
    default_retryable = False


class WorkflowError(OrchestrationError):
    """Workflow definition or run-state error."""


class ChainValidationError(WorkflowError):
    """A step needs fields that nothing upstream produces."""

    def __init__(
        self,
        step_id: str,
        missing: list[str] | None = None,
        mismatched: dict[str, tuple[str, str]] | None = None,
    ):
        self.step_id = step_id
        self.missing = missing or []
        self.mismatched = mismatched or {}
        parts = []
        if self.missing:
            parts.append(f"missing fields: {', '.join(self.missing)}")
        if self.mismatched:
            details = ", ".join(
                f"{name} (needs {want}, upstream has {have})"
                for name, (want, have) in self.mismatched.items()
            )
            parts.append(f"incompatible fields: {details}")
        super().__init__(f"Step '{step_id}' cannot be satisfied: {'; '.join(parts)}")


class StepFailedError(WorkflowError):
    """A step returned a failed StepResult."""

    def __init__(self, step_id: str, error: str, category: str | None = None):
        self.step_id = step_id
        self.error = error
        self.error_category = category
        super().__init__(f"Step '{step_id}' failed: {error}")


# =============================================================================
# UTILITY FUNCTIONS
# =============================================================================

_BUILTIN_CATEGORIES: tuple[tuple[type[BaseException], ErrorCategory], ...] = (
    (OSError, ErrorCategory.NETWORK),
    (ValueError, ErrorCategory.VALIDATION),
)


def categorize_error(error: BaseException) -> ErrorCategory:
    """Category for logging any exception, including ones from outside the package."""
    if isinstance(error, CryptoPulseError):
        return error.category
    for exc_type, category in _BUILTIN_CATEGORIES:
        if isinstance(error, exc_type):
            return category
    return ErrorCategory.INTERNAL


__all__ = [
    "ErrorCategory",
    "ErrorContext",
    "CryptoPulseError",
    "TransientError",
    "NetworkError",
    "RateLimitError",
    "SourceError",
    "ValidationError",
    "SchemaError",
    "ConfigError",
    "MissingConfigError",
    "OrchestrationError",
    "WorkflowError",
    "ChainValidationError",
    "StepFailedError",
    "categorize_error",
]
