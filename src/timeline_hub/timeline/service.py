"""
Timeline service: the consumer-facing API.

``TimelineService`` wires the bus, registry, router and store together and
is the only object a rendering layer or integration needs::

    service = TimelineService.from_settings()
    service.register_provider(GitHistoryProvider(repo))
    service.on_did_load_page(render)

    await service.load_timeline("file:///repo/a.py", reset=True)
    view = service.view("file:///repo/a.py")

When a provider is unregistered its aggregates are dropped with it.

Tags:
    timeline-hub, service, facade

Doc-Types:
    api-reference
"""

from __future__ import annotations

from typing import Any

from timeline_hub.core.cancellation import CancellationToken
from timeline_hub.core.events import Subscription
from timeline_hub.core.logging import get_logger
from timeline_hub.core.settings import TimelineSettings, get_settings
from timeline_hub.timeline.aggregate import (
    DEFAULT_PAGE_SIZE,
    AggregateSnapshot,
    AggregateStore,
    LoadOutcome,
    TimelineView,
)
from timeline_hub.timeline.bus import ChangeNotificationBus
from timeline_hub.timeline.models import (
    ProvidersChangeEvent,
    TimelineChangeEvent,
    TimelineSource,
    resource_key,
)
from timeline_hub.timeline.provider import TimelineProvider
from timeline_hub.timeline.registry import ProviderRegistration, ProviderRegistry
from timeline_hub.timeline.router import RequestRouter

__all__ = ["TimelineService"]

logger = get_logger(__name__)


class TimelineService:
    """Aggregates timelines for resources from every registered provider."""

    def __init__(
        self,
        *,
        page_size: int = DEFAULT_PAGE_SIZE,
        deduplicate: bool = False,
        bus: ChangeNotificationBus | None = None,
    ):
        self.bus = bus or ChangeNotificationBus()
        self.registry = ProviderRegistry(self.bus)
        self.router = RequestRouter(self.registry)
        self.store = AggregateStore(
            self.router,
            self.bus,
            page_size=page_size,
            deduplicate=deduplicate,
        )
        self._membership = self.bus.providers.subscribe(self._on_providers_changed)
        self._closed = False

    @classmethod
    def from_settings(cls, settings: TimelineSettings | None = None) -> TimelineService:
        settings = settings or get_settings()
        return cls(page_size=settings.page_size, deduplicate=settings.deduplicate)

    # ── Providers ────────────────────────────────────────────────────

    def register_provider(self, provider: TimelineProvider) -> ProviderRegistration:
        return self.registry.register(provider)

    def unregister_provider(self, provider_id: str) -> None:
        self.registry.unregister(provider_id)

    def list_sources(self) -> list[TimelineSource]:
        return self.registry.list_sources()

    def _on_providers_changed(self, event: ProvidersChangeEvent) -> None:
        for provider_id in event.removed:
            dropped = self.store.discard_source(provider_id)
            if dropped:
                logger.debug("aggregates_discarded", provider_id=provider_id, count=dropped)

    # ── Loading ──────────────────────────────────────────────────────

    async def load_timeline(
        self,
        uri: Any,
        reset: bool = False,
        token: CancellationToken | None = None,
    ) -> dict[str, LoadOutcome]:
        return await self.store.load_timeline(uri, reset, token)

    async def load_page(
        self,
        source: str,
        uri: Any,
        reset: bool = False,
        token: CancellationToken | None = None,
    ) -> LoadOutcome:
        return await self.store.load_page(source, uri, reset, token)

    # ── Reading ──────────────────────────────────────────────────────

    def view(self, uri: Any) -> TimelineView:
        return self.store.view(uri)

    def get_aggregate(self, source: str, uri: Any) -> AggregateSnapshot | None:
        return self.store.get(source, uri)

    def has_more(self, source: str, uri: Any) -> bool:
        return self.store.has_more(source, uri)

    def forget(self, uri: Any) -> None:
        """The resource is no longer of interest: drop its aggregates."""
        self.store.discard_resource(uri)

    # ── Notifications ────────────────────────────────────────────────

    def on_did_change_providers(self, listener: Any) -> Subscription:
        return self.bus.providers.subscribe(listener)

    def on_did_change_timeline(self, listener: Any) -> Subscription:
        return self.bus.timeline.subscribe(listener)

    def on_did_load_page(self, listener: Any) -> Subscription:
        return self.bus.pages.subscribe(listener)

    def notify_changed(self, uri: Any = None, *, reset: bool = False) -> None:
        """Fire a synthesized timeline change (e.g. from a refresh action)."""
        self.bus.timeline.fire(
            TimelineChangeEvent(
                source=None,
                uri=resource_key(uri) if uri is not None else None,
                reset=reset,
            )
        )

    def close(self) -> None:
        """Release provider subscriptions, drop state and close the bus."""
        if self._closed:
            return
        self._closed = True
        self._membership.dispose()
        self.registry.close()
        self.store.clear()
        self.bus.dispose()

    async def __aenter__(self) -> TimelineService:
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.bus.drain()
        self.close()
