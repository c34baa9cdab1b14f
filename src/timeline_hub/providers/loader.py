"""Resolve providers from ``'module:qualname'`` references."""

from __future__ import annotations

import importlib
from typing import Any

from timeline_hub.core.errors import ProviderLoadError
from timeline_hub.timeline.provider import TimelineProvider

__all__ = ["load_provider"]


def _is_provider(obj: Any) -> bool:
    return not isinstance(obj, type) and isinstance(obj, TimelineProvider)


def load_provider(ref: str) -> TimelineProvider:
    """Import the provider identified by ``ref``.

    The target may be a provider instance, or a class or zero-argument
    factory returning one.

    Raises:
        ProviderLoadError: malformed reference, import failure, or the
            target does not produce a provider.
    """
    module_path, _, attr_path = ref.partition(":")
    if not module_path or not attr_path:
        raise ProviderLoadError(ref, f"Invalid provider ref (expected 'module:attr'): {ref!r}")

    try:
        obj: Any = importlib.import_module(module_path)
        for part in attr_path.split("."):
            obj = getattr(obj, part)
    except (ImportError, AttributeError) as e:
        raise ProviderLoadError(ref, cause=e) from e

    if _is_provider(obj):
        return obj
    if callable(obj):
        try:
            obj = obj()
        except Exception as e:
            raise ProviderLoadError(ref, f"Provider factory {ref!r} failed: {e}", cause=e) from e
        if _is_provider(obj):
            return obj
    raise ProviderLoadError(ref, f"{ref!r} is not a timeline provider")
