"""
Request router.

Given a provider id and a resource URI, decide whether the provider applies,
invoke it, and stamp provenance on what comes back.

Outcomes of :meth:`RequestRouter.request_timeline`:

==================  ==================================================
``NOT_APPLICABLE``  unknown provider, or scheme mismatch (not invoked)
``None``            the provider answered "no result"
``TimelinePage``    ``source`` and every ``item.source`` are the provider id
exception           whatever the provider raised, unchanged
==================  ==================================================

Tags:
    timeline-hub, router, providers

Doc-Types:
    api-reference
"""

from __future__ import annotations

import dataclasses
from enum import Enum
from typing import Any

from timeline_hub.core.cancellation import CancellationToken
from timeline_hub.core.logging import get_logger
from timeline_hub.timeline.models import TimelineOptions, TimelinePage, resource_key
from timeline_hub.timeline.provider import applies_to
from timeline_hub.timeline.registry import ProviderRegistry

__all__ = ["RequestRouter", "NotApplicable", "NOT_APPLICABLE"]

logger = get_logger(__name__)


class NotApplicable(Enum):
    """Sentinel: the provider contributes nothing for this resource."""

    NOT_APPLICABLE = "not_applicable"

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "NOT_APPLICABLE"


NOT_APPLICABLE = NotApplicable.NOT_APPLICABLE


class RequestRouter:
    """Routes timeline requests to registered providers."""

    def __init__(self, registry: ProviderRegistry):
        self._registry = registry

    @property
    def registry(self) -> ProviderRegistry:
        return self._registry

    def applicable_sources(self, uri: Any) -> list[str]:
        """Ids of the registered providers that serve ``uri``'s scheme."""
        return [p.id for p in self._registry.providers_for(uri)]

    async def request_timeline(
        self,
        provider_id: str,
        uri: Any,
        options: TimelineOptions | None = None,
        token: CancellationToken | None = None,
    ) -> TimelinePage | NotApplicable | None:
        """Fetch one page from ``provider_id`` for ``uri``.

        No retries, no timeouts: ``token`` is passed through for the
        provider to honour or ignore.
        """
        provider = self._registry.get(provider_id)
        if provider is None or not applies_to(provider, uri):
            logger.debug(
                "timeline_request_not_applicable",
                provider_id=provider_id,
                uri=resource_key(uri),
                registered=provider is not None,
            )
            return NOT_APPLICABLE

        options = options or TimelineOptions()
        page = await provider.provide_timeline(
            uri, options, token or CancellationToken.none()
        )
        if page is None:
            return None

        return TimelinePage(
            source=provider.id,
            items=[dataclasses.replace(item, source=provider.id) for item in page.items],
            next_cursor=page.next_cursor,
        )
