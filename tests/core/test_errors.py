"""Tests for timeline_hub.core.errors — hierarchy, context, classification."""

import asyncio

import pytest

from timeline_hub.core.errors import (
    ConfigError,
    ErrorCategory,
    ErrorContext,
    ProviderError,
    ProviderLoadError,
    TimelineError,
    TimelineValidationError,
    categorize_error,
    is_retryable,
)


class TestErrorContext:
    def test_to_dict_excludes_none(self):
        ctx = ErrorContext(provider_id="git")
        assert ctx.to_dict() == {"provider_id": "git"}

    def test_metadata_is_flattened(self):
        ctx = ErrorContext(uri="file:///a.py", metadata={"attempt": 2})
        assert ctx.to_dict() == {"uri": "file:///a.py", "attempt": 2}


class TestTimelineError:
    def test_defaults(self):
        err = TimelineError("boom")
        assert err.message == "boom"
        assert err.category == ErrorCategory.INTERNAL
        assert err.retryable is False
        assert err.cause is None

    def test_overrides(self):
        err = TimelineError("boom", category=ErrorCategory.PROVIDER, retryable=True)
        assert err.category == ErrorCategory.PROVIDER
        assert err.retryable is True

    def test_cause_is_chained(self):
        root = ValueError("bad")
        err = TimelineError("wrapped", cause=root)
        assert err.__cause__ is root
        assert err.to_dict()["cause"] == "bad"

    def test_with_context_sets_known_fields_and_metadata(self):
        err = ProviderError("offline").with_context(
            provider_id="git", cursor="c1", attempt=3
        )
        assert err.context.provider_id == "git"
        assert err.context.cursor == "c1"
        assert err.context.metadata == {"attempt": 3}

    def test_with_context_returns_self(self):
        err = ProviderError("offline")
        assert err.with_context(uri="file:///a.py") is err

    def test_to_dict(self):
        err = ProviderError("offline", retryable=True).with_context(provider_id="git")
        d = err.to_dict()
        assert d["error_type"] == "ProviderError"
        assert d["message"] == "offline"
        assert d["category"] == "PROVIDER"
        assert d["retryable"] is True
        assert d["context"] == {"provider_id": "git"}

    def test_repr(self):
        assert repr(ConfigError("x")) == "ConfigError('x', category=CONFIG)"


class TestSubclasses:
    def test_provider_error(self):
        err = ProviderError("x")
        assert isinstance(err, TimelineError)
        assert err.category == ErrorCategory.PROVIDER
        assert err.retryable is False

    def test_provider_load_error_default_message(self):
        err = ProviderLoadError("pkg.mod:thing")
        assert isinstance(err, ProviderError)
        assert err.ref == "pkg.mod:thing"
        assert "pkg.mod:thing" in str(err)

    def test_validation_error_field_and_value(self):
        err = TimelineValidationError("bad timestamp", field="timestamp", value="soon")
        assert err.category == ErrorCategory.VALIDATION
        d = err.to_dict()
        assert d["field"] == "timestamp"
        assert d["value"] == "'soon'"

    def test_config_error(self):
        assert ConfigError("x").category == ErrorCategory.CONFIG


class TestClassification:
    @pytest.mark.parametrize(
        "error, expected",
        [
            (ProviderError("x", retryable=True), True),
            (ProviderError("x"), False),
            (ConnectionError(), True),
            (TimeoutError(), True),
            (ValueError(), False),
        ],
    )
    def test_is_retryable(self, error, expected):
        assert is_retryable(error) is expected

    @pytest.mark.parametrize(
        "error, expected",
        [
            (TimelineValidationError("x"), ErrorCategory.VALIDATION),
            (asyncio.CancelledError(), ErrorCategory.CANCELLED),
            (ConnectionError(), ErrorCategory.PROVIDER),
            (TypeError(), ErrorCategory.VALIDATION),
            (RuntimeError(), ErrorCategory.UNKNOWN),
        ],
    )
    def test_categorize_error(self, error, expected):
        assert categorize_error(error) == expected
