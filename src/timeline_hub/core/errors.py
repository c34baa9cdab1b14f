"""
Structured error types for timeline-hub.

Instead of generic exceptions that lose context, ``TimelineError`` and its
subclasses carry:

- **Category:** What kind of error (provider, validation, config, ...)
- **Retryable:** Whether calling again has a reasonable chance to succeed
- **Context:** Provider id, resource URI, cursor and custom fields
- **Cause:** Chained underlying exception for root cause analysis

Manifesto:
    - **Typed Error Hierarchy:** Different error types for different concerns
    - **Explicit Retry Semantics:** Each error knows if it's retryable
    - **Rich Context:** Errors carry metadata for logging
    - **Error Chaining:** Preserve original exceptions while adding context

Architecture:
    ::

        ┌──────────────────────────────────────────────────────────┐
        │                     TimelineError                         │
        │   (category, retryable, context, cause)                   │
        ├──────────────────────────────────────────────────────────┤
        │  ProviderError          TimelineValidationError           │
        │  (PROVIDER)             (VALIDATION)                      │
        │       │                                                   │
        │  ProviderLoadError      ConfigError                       │
        │  (PROVIDER)             (CONFIG)                          │
        └──────────────────────────────────────────────────────────┘

    Provider fetch failures are *not* wrapped on their way through the
    request router: whatever a provider raises reaches the caller as-is.
    These types are for errors the hub itself raises, and the helpers at the
    bottom classify arbitrary exceptions for logging.

Examples:
    >>> error = ProviderError("history backend offline", retryable=True)
    >>> error.with_context(provider_id="git", uri="file:///repo/a.py")
    ProviderError('history backend offline', category=PROVIDER)
    >>> error.context.provider_id
    'git'

Tags:
    error-handling, exception-hierarchy, error-context, timeline-hub

Doc-Types:
    - API Reference
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """Standard error categories for classification and log routing."""

    PROVIDER = "PROVIDER"         # Provider fetch, disposal, loading
    VALIDATION = "VALIDATION"     # Malformed items or pages
    CONFIG = "CONFIG"             # Missing config, invalid settings
    CANCELLED = "CANCELLED"       # Work abandoned on request
    INTERNAL = "INTERNAL"         # Bugs, unexpected state
    UNKNOWN = "UNKNOWN"           # Uncategorized errors


@dataclass
class ErrorContext:
    """
    Structured metadata attached to an error.

    Typed fields cover what the hub knows at the point of failure; anything
    else goes in ``metadata``. ``to_dict()`` serializes non-None fields only.

    Attributes:
        provider_id: Provider the operation targeted
        uri: Resource URI the timeline was requested for
        cursor: Pagination cursor in flight, if any
        metadata: Additional key-value pairs
    """

    provider_id: str | None = None
    uri: str | None = None
    cursor: str | None = None

    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result = {}
        for key in ["provider_id", "uri", "cursor"]:
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.metadata:
            result.update(self.metadata)
        return result


class TimelineError(Exception):
    """
    Base exception for all timeline-hub errors.

    Subclasses set ``default_category`` and ``default_retryable`` to give
    sensible defaults for their concern.
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL
    default_retryable: bool = False

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        retryable: bool | None = None,
        context: ErrorContext | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.retryable = retryable if retryable is not None else self.default_retryable
        self.context = context or ErrorContext()
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> TimelineError:
        """
        Add context to this error (fluent API).

        Usage:
            raise ProviderError("Failed").with_context(
                provider_id="git",
                uri="file:///repo/a.py",
            )
        """
        for key, value in kwargs.items():
            if key != "metadata" and hasattr(self.context, key):
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
            "retryable": self.retryable,
        }
        context_dict = self.context.to_dict()
        if context_dict:
            result["context"] = context_dict
        if self.cause is not None:
            result["cause"] = str(self.cause)
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# PROVIDER ERRORS
# =============================================================================


class ProviderError(TimelineError):
    """
    Error raised by or about a timeline provider.

    Default not retryable; providers that know a failure is transient
    should pass ``retryable=True``.
    """

    default_category = ErrorCategory.PROVIDER
    default_retryable = False


class ProviderLoadError(ProviderError):
    """A ``module:attr`` provider reference could not be resolved."""

    def __init__(self, ref: str, message: str | None = None, **kwargs: Any):
        self.ref = ref
        super().__init__(message or f"Cannot load provider from {ref!r}", **kwargs)


# =============================================================================
# VALIDATION / CONFIG ERRORS
# =============================================================================


class TimelineValidationError(TimelineError):
    """
    Malformed timeline data.

    Never retryable - the data must be fixed.
    """

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


class ConfigError(TimelineError):
    """Configuration error. Never retryable."""

    default_category = ErrorCategory.CONFIG
    default_retryable = False


# =============================================================================
# UTILITY FUNCTIONS
# =============================================================================


def is_retryable(error: BaseException) -> bool:
    """Check if an error is retryable."""
    if isinstance(error, TimelineError):
        return error.retryable
    retryable_types = (
        ConnectionError,
        TimeoutError,
        OSError,
    )
    return isinstance(error, retryable_types)


def categorize_error(error: BaseException) -> ErrorCategory:
    """Get the category of an error."""
    if isinstance(error, TimelineError):
        return error.category
    if isinstance(error, asyncio.CancelledError):
        return ErrorCategory.CANCELLED
    if isinstance(error, (ConnectionError, TimeoutError, OSError)):
        return ErrorCategory.PROVIDER
    if isinstance(error, (ValueError, TypeError)):
        return ErrorCategory.VALIDATION
    return ErrorCategory.UNKNOWN


__all__ = [
    "ErrorCategory",
    "ErrorContext",
    "TimelineError",
    "ProviderError",
    "ProviderLoadError",
    "TimelineValidationError",
    "ConfigError",
    "is_retryable",
    "categorize_error",
]
