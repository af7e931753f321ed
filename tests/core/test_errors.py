"""Tests for cryptopulse.core.errors — hierarchy, context, categorization."""

from __future__ import annotations

import pytest

from cryptopulse.core.errors import (
    ChainValidationError,
    ConfigError,
    CryptoPulseError,
    ErrorCategory,
    MissingConfigError,
    NetworkError,
    OrchestrationError,
    RateLimitError,
    SchemaError,
    SourceError,
    StepFailedError,
    TransientError,
    ValidationError,
    WorkflowError,
    categorize_error,
)


# ---------------------------------------------------------------------------
# Hierarchy and defaults
# ---------------------------------------------------------------------------


class TestHierarchy:
    @pytest.mark.parametrize(
        "exc_type,parent",
        [
            (NetworkError, TransientError),
            (RateLimitError, TransientError),
            (SchemaError, ValidationError),
            (MissingConfigError, ConfigError),
            (WorkflowError, OrchestrationError),
            (ChainValidationError, WorkflowError),
            (StepFailedError, WorkflowError),
            (SourceError, CryptoPulseError),
        ],
    )
    def test_subclassing(self, exc_type, parent):
        assert issubclass(exc_type, parent)
        assert issubclass(exc_type, CryptoPulseError)

    def test_transient_errors_are_retryable(self):
        assert NetworkError("boom").retryable is True
        assert RateLimitError().retryable is True
        assert SourceError("boom").retryable is False

    def test_default_categories(self):
        assert NetworkError("x").category == ErrorCategory.NETWORK
        assert SourceError("x").category == ErrorCategory.SOURCE
        assert ValidationError("x").category == ErrorCategory.VALIDATION
        assert MissingConfigError("k").category == ErrorCategory.CONFIG
        assert WorkflowError("x").category == ErrorCategory.ORCHESTRATION
        assert CryptoPulseError("x").category == ErrorCategory.INTERNAL

    def test_explicit_category_overrides_default(self):
        err = SourceError("x", category=ErrorCategory.NETWORK)
        assert err.category == ErrorCategory.NETWORK


# ---------------------------------------------------------------------------
# Specific error types
# ---------------------------------------------------------------------------


class TestSpecificErrors:
    def test_rate_limit_defaults(self):
        err = RateLimitError(retry_after=60)
        assert err.message == "Rate limited by upstream service"
        assert err.retry_after == 60
        assert err.to_dict()["retry_after"] == 60

    def test_missing_config_message(self):
        err = MissingConfigError("telegram_chat_id")
        assert err.key == "telegram_chat_id"
        assert "telegram_chat_id" in str(err)

    def test_missing_config_custom_message(self):
        err = MissingConfigError("openai_api_key", "Missing OPENAI_API_KEY")
        assert str(err) == "Missing OPENAI_API_KEY"

    def test_chain_validation_message(self):
        err = ChainValidationError(
            "summarize-prices",
            missing=["reason"],
            mismatched={"prices": ("dict[str, dict[str, float]]", "str")},
        )
        assert err.step_id == "summarize-prices"
        assert "missing fields: reason" in str(err)
        assert "prices (needs dict[str, dict[str, float]], upstream has str)" in str(err)

    def test_step_failed_error(self):
        err = StepFailedError("fetch-crypto-prices", "no data", "SOURCE")
        assert err.step_id == "fetch-crypto-prices"
        assert err.error == "no data"
        assert err.error_category == "SOURCE"
        assert str(err) == "Step 'fetch-crypto-prices' failed: no data"

    def test_validation_error_fields(self):
        err = ValidationError("bad ids", field="ids", value="")
        d = err.to_dict()
        assert d["field"] == "ids"
        assert d["value"] == "''"


# ---------------------------------------------------------------------------
# Context and serialization
# ---------------------------------------------------------------------------


class TestContext:
    def test_with_context_sets_known_attributes(self):
        err = SourceError("boom").with_context(source_name="coingecko", http_status=500)
        assert err.context.source_name == "coingecko"
        assert err.context.http_status == 500

    def test_with_context_unknown_keys_go_to_metadata(self):
        err = SourceError("boom").with_context(attempt=2)
        assert err.context.metadata == {"attempt": 2}

    def test_with_context_is_fluent(self):
        err = SourceError("boom")
        assert err.with_context(step="fetch-tweets") is err

    def test_to_dict(self):
        cause = ValueError("inner")
        err = SourceError("boom", cause=cause).with_context(workflow="wf", run_id="r1")
        d = err.to_dict()
        assert d["error_type"] == "SourceError"
        assert d["message"] == "boom"
        assert d["category"] == "SOURCE"
        assert d["retryable"] is False
        assert d["context"] == {"workflow": "wf", "run_id": "r1"}
        assert d["cause"] == "inner"
        assert err.__cause__ is cause

    def test_to_dict_omits_empty_context(self):
        assert "context" not in SourceError("boom").to_dict()

    def test_repr(self):
        assert repr(NetworkError("down")) == "NetworkError('down', category=NETWORK)"


class TestCategorizeError:
    def test_crypto_pulse_error(self):
        assert categorize_error(RateLimitError()) == ErrorCategory.NETWORK

    def test_builtin_errors(self):
        assert categorize_error(ConnectionError()) == ErrorCategory.NETWORK
        assert categorize_error(ValueError()) == ErrorCategory.VALIDATION
        assert categorize_error(RuntimeError()) == ErrorCategory.INTERNAL
