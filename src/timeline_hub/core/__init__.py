"""
Core primitives shared by every timeline-hub module.

Modules
-------
errors          TimelineError hierarchy and classification helpers
logging         structlog configuration and ``get_logger``
settings        ``TimelineSettings`` (pydantic-settings, ``TIMELINE_`` prefix)
events          ``Emitter`` typed broadcast channels and ``Subscription``
cancellation    Advisory ``CancellationToken``
"""

from timeline_hub.core.cancellation import CancellationToken
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
from timeline_hub.core.events import Disposable, Emitter, Subscription

__all__ = [
    "CancellationToken",
    "ConfigError",
    "Disposable",
    "Emitter",
    "ErrorCategory",
    "ErrorContext",
    "ProviderError",
    "ProviderLoadError",
    "Subscription",
    "TimelineError",
    "TimelineValidationError",
    "categorize_error",
    "is_retryable",
]
