"""
Provider registry.

Manifesto:
    Providers come and go at runtime. The registry is the single owner of
    the active set, keyed by provider id, and of each provider's change
    subscription: acquired on register, released exactly once on
    replacement or removal. Callers get a revocable handle, never the map.

Invariants:
    - At most one active registration per id
    - Replacing a provider releases the old subscription before the new
      provider is inserted, so the old provider can no longer reach the bus
    - Every register fires exactly one ``added``; every effective removal
      fires exactly one ``removed``; unknown ids fire nothing

Tags:
    timeline-hub, registry, providers, subscriptions

Doc-Types:
    api-reference
"""

from __future__ import annotations

from collections.abc import Iterator
from typing import Any

from timeline_hub.core.events import Disposable
from timeline_hub.core.logging import get_logger
from timeline_hub.timeline.bus import ChangeNotificationBus
from timeline_hub.timeline.models import (
    ProvidersChangeEvent,
    TimelineChangeEvent,
    TimelineSource,
)
from timeline_hub.timeline.provider import TimelineProvider, applies_to

__all__ = ["ProviderRegistry", "ProviderRegistration"]

logger = get_logger(__name__)


class ProviderRegistration:
    """Handle returned by :meth:`ProviderRegistry.register`.

    ``dispose()`` unregisters the provider it was issued for. Once that
    provider has been replaced under the same id, the handle is stale and
    disposing it changes nothing.
    """

    def __init__(self, registry: ProviderRegistry, provider: TimelineProvider):
        self._registry = registry
        self.provider = provider
        self._disposed = False

    @property
    def id(self) -> str:
        return self.provider.id

    @property
    def disposed(self) -> bool:
        return self._disposed

    def dispose(self) -> None:
        if self._disposed:
            return
        self._disposed = True
        self._registry._revoke(self)

    def __repr__(self) -> str:
        return f"ProviderRegistration({self.provider.id!r}, disposed={self._disposed})"


class ProviderRegistry:
    """
    Registry of active timeline providers.

    Usage:
        registry = ProviderRegistry(bus)
        handle = registry.register(GitHistoryProvider(repo))
        registry.list_sources()   # [TimelineSource(id="git-history", ...)]
        handle.dispose()          # removes it, fires {removed: ["git-history"]}
    """

    def __init__(self, bus: ChangeNotificationBus):
        self._bus = bus
        self._providers: dict[str, TimelineProvider] = {}
        self._subscriptions: dict[str, Disposable] = {}

    def register(self, provider: TimelineProvider) -> ProviderRegistration:
        """Insert ``provider``, replacing any provider with the same id."""
        provider_id = provider.id

        existing = self._providers.get(provider_id)
        if existing is not None:
            self._release_subscription(provider_id)
            if existing is not provider:
                self._dispose_quietly(existing)
            logger.info("provider_replaced", provider_id=provider_id)

        self._providers[provider_id] = provider

        on_did_change = getattr(provider, "on_did_change", None)
        if on_did_change is not None:
            self._subscriptions[provider_id] = on_did_change.subscribe(
                self._forwarder(provider_id)
            )

        logger.info(
            "provider_registered",
            provider_id=provider_id,
            label=provider.label,
            scheme=provider.scheme,
        )
        self._bus.providers.fire(ProvidersChangeEvent(added=(provider_id,)))
        return ProviderRegistration(self, provider)

    def unregister(self, provider_id: str) -> None:
        """Remove the provider registered under ``provider_id``, if any."""
        if provider_id not in self._providers:
            return
        self._remove(provider_id)

    def _revoke(self, registration: ProviderRegistration) -> None:
        # A replaced provider's handle must not remove its successor
        if self._providers.get(registration.id) is not registration.provider:
            return
        self._remove(registration.id)

    def _remove(self, provider_id: str) -> None:
        del self._providers[provider_id]
        self._release_subscription(provider_id)
        logger.info("provider_unregistered", provider_id=provider_id)
        self._bus.providers.fire(ProvidersChangeEvent(removed=(provider_id,)))

    def _forwarder(self, provider_id: str) -> Any:
        def forward(event: TimelineChangeEvent) -> None:
            self._bus.timeline.fire(
                TimelineChangeEvent(
                    source=provider_id,
                    uri=event.uri,
                    reset=bool(event.reset),
                )
            )

        return forward

    def _release_subscription(self, provider_id: str) -> None:
        subscription = self._subscriptions.pop(provider_id, None)
        if subscription is not None:
            subscription.dispose()

    @staticmethod
    def _dispose_quietly(provider: TimelineProvider) -> None:
        dispose = getattr(provider, "dispose", None)
        if dispose is None:
            return
        try:
            dispose()
        except Exception as e:
            logger.warning(
                "provider_dispose_failed",
                provider_id=provider.id,
                error=str(e),
            )

    # ── Read-only accessors ──────────────────────────────────────────

    def get(self, provider_id: str) -> TimelineProvider | None:
        return self._providers.get(provider_id)

    def list_sources(self) -> list[TimelineSource]:
        """Snapshot of registered providers. Order is unspecified."""
        return [TimelineSource(id=p.id, label=p.label) for p in self._providers.values()]

    def providers_for(self, uri: Any) -> list[TimelineProvider]:
        """Registered providers whose scheme set matches ``uri``."""
        return [p for p in self._providers.values() if applies_to(p, uri)]

    def __contains__(self, provider_id: object) -> bool:
        return provider_id in self._providers

    def __len__(self) -> int:
        return len(self._providers)

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._providers))

    def close(self) -> None:
        """Release every change subscription without firing events."""
        for provider_id in list(self._subscriptions):
            self._release_subscription(provider_id)
        self._providers.clear()
