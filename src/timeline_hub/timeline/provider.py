"""
Timeline provider contract.

Any object with an ``id``, a ``label``, a ``scheme`` and an async
``provide_timeline`` is a provider; the hub never looks further inside.
Two optional capabilities are picked up when present:

- ``on_did_change``: an :class:`~timeline_hub.core.events.Emitter` of
  :class:`TimelineChangeEvent`; the registry subscribes for the lifetime of
  the registration and forwards events to the timeline channel
- ``dispose()``: called when another provider registers under the same id

Usage::

    class GitHistoryProvider(BaseTimelineProvider):
        def __init__(self, repo):
            super().__init__("git-history", "Git History", scheme="file")
            self._repo = repo

        async def provide_timeline(self, uri, options, token):
            commits, cursor = await self._repo.log(uri, options.cursor, options.limit)
            return TimelinePage(source=self.id, items=commits, next_cursor=cursor)

Tags:
    timeline-hub, provider, protocol

Doc-Types:
    api-reference
"""

from __future__ import annotations

from abc import abstractmethod
from collections.abc import Sequence
from typing import Any, Protocol, runtime_checkable
from urllib.parse import urlsplit

from timeline_hub.core.cancellation import CancellationToken
from timeline_hub.core.events import Emitter
from timeline_hub.timeline.models import (
    TimelineChangeEvent,
    TimelineOptions,
    TimelinePage,
)

__all__ = [
    "WILDCARD_SCHEME",
    "TimelineProvider",
    "BaseTimelineProvider",
    "uri_scheme",
    "provider_schemes",
    "applies_to",
]

WILDCARD_SCHEME = "*"


@runtime_checkable
class TimelineProvider(Protocol):
    """Protocol every timeline provider satisfies."""

    id: str
    label: str
    scheme: str | Sequence[str]

    async def provide_timeline(
        self,
        uri: str,
        options: TimelineOptions,
        token: CancellationToken,
    ) -> TimelinePage | None:
        """Return one page of items for ``uri``, or ``None`` for no result."""
        ...


def uri_scheme(uri: Any) -> str:
    """Scheme of a URI string or URI-like object, lower-cased."""
    scheme = getattr(uri, "scheme", None)
    if isinstance(scheme, str):
        return scheme.lower()
    return urlsplit(str(uri)).scheme.lower()


def provider_schemes(provider: TimelineProvider) -> frozenset[str]:
    """The provider's scheme set; contains ``"*"`` for all schemes."""
    scheme = provider.scheme
    if isinstance(scheme, str):
        return frozenset({scheme.lower()})
    return frozenset(s.lower() for s in scheme)


def applies_to(provider: TimelineProvider, uri: Any) -> bool:
    """Whether ``provider`` serves resources with ``uri``'s scheme."""
    schemes = provider_schemes(provider)
    return WILDCARD_SCHEME in schemes or uri_scheme(uri) in schemes


class BaseTimelineProvider:
    """
    Base class for provider implementations.

    Provides:
    - ``on_did_change`` emitter and :meth:`fire_change`
    - ``dispose()`` that closes the emitter
    """

    def __init__(
        self,
        id: str,
        label: str,
        *,
        scheme: str | Sequence[str] = WILDCARD_SCHEME,
    ):
        self.id = id
        self.label = label
        self.scheme = scheme
        self.on_did_change: Emitter[TimelineChangeEvent] = Emitter(f"provider:{id}")
        self._disposed = False

    @property
    def disposed(self) -> bool:
        return self._disposed

    def fire_change(self, uri: str | None = None, *, reset: bool = False) -> None:
        """Tell listeners this provider's timeline for ``uri`` changed."""
        self.on_did_change.fire(TimelineChangeEvent(source=self.id, uri=uri, reset=reset))

    def dispose(self) -> None:
        self._disposed = True
        self.on_did_change.dispose()

    @abstractmethod
    async def provide_timeline(
        self,
        uri: str,
        options: TimelineOptions,
        token: CancellationToken,
    ) -> TimelinePage | None:
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(id={self.id!r}, scheme={self.scheme!r})"
