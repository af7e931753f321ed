"""Core primitives: errors, logging, settings."""

from cryptopulse.core.errors import (
    ChainValidationError,
    ConfigError,
    CryptoPulseError,
    ErrorCategory,
    ErrorContext,
    MissingConfigError,
    NetworkError,
    RateLimitError,
    SchemaError,
    SourceError,
    StepFailedError,
    ValidationError,
    WorkflowError,
)
from cryptopulse.core.logging import LogContext, configure_logging, get_logger

__all__ = [
    "ChainValidationError",
    "ConfigError",
    "CryptoPulseError",
    "ErrorCategory",
    "ErrorContext",
    "MissingConfigError",
    "NetworkError",
    "RateLimitError",
    "SchemaError",
    "SourceError",
    "StepFailedError",
    "ValidationError",
    "WorkflowError",
    "LogContext",
    "configure_logging",
    "get_logger",
]
