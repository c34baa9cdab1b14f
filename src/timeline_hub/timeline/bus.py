"""Change notification bus: the channels consumers subscribe to."""

from __future__ import annotations

from timeline_hub.core.events import Emitter
from timeline_hub.timeline.models import (
    ProvidersChangeEvent,
    TimelineChangeEvent,
    TimelinePageLoadedEvent,
)

__all__ = ["ChangeNotificationBus"]


class ChangeNotificationBus:
    """
    Three independent broadcast channels.

    - ``providers``: membership changes fired by the registry
    - ``timeline``: content changes, forwarded from providers or
      synthesized by refresh actions
    - ``pages``: a page was merged into an aggregate

    Each channel delivers in firing order to the listeners present at the
    time; nothing is replayed.
    """

    def __init__(self) -> None:
        self.providers: Emitter[ProvidersChangeEvent] = Emitter("providers")
        self.timeline: Emitter[TimelineChangeEvent] = Emitter("timeline")
        self.pages: Emitter[TimelinePageLoadedEvent] = Emitter("pages")

    async def drain(self) -> None:
        """Wait for coroutine listeners scheduled on any channel."""
        for emitter in (self.providers, self.timeline, self.pages):
            await emitter.drain()

    def dispose(self) -> None:
        self.providers.dispose()
        self.timeline.dispose()
        self.pages.dispose()
