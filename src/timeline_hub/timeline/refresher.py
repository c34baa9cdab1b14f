"""
Keeps the focused resource's timeline current.

The refresher is the reference consumer of the timeline channel. It does
not track focus itself; whoever does calls :meth:`TimelineRefresher.focus`
and supplies ``current_uri`` so change events without a URI can be
resolved.

==========================  =============================================
event / action              reaction
==========================  =============================================
change, known ``source``    ``load_page(source, uri, reset)``
change, no ``source``       ``load_timeline(uri, reset)``
change, no ``uri``          same, against ``current_uri()``; skipped if None
``focus(uri)``              forget the previous resource, reset-load ``uri``
``refresh()``               reset-load the current resource
``load_more()``             next page from every provider that has more
==========================  =============================================
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from typing import Any

from timeline_hub.core.logging import get_logger
from timeline_hub.timeline.aggregate import LoadOutcome
from timeline_hub.timeline.models import TimelineChangeEvent, resource_key
from timeline_hub.timeline.service import TimelineService

__all__ = ["TimelineRefresher"]

logger = get_logger(__name__)


class TimelineRefresher:
    def __init__(
        self,
        service: TimelineService,
        current_uri: Callable[[], Any] | None = None,
    ):
        self._service = service
        self._current_uri = current_uri or (lambda: None)
        self._focused: str | None = None
        self._tasks: set[asyncio.Task[Any]] = set()
        self._subscription = service.on_did_change_timeline(self._on_timeline_changed)

    @property
    def focused(self) -> str | None:
        return self._focused

    def current_uri(self) -> str | None:
        uri = self._current_uri()
        if uri is None:
            return self._focused
        return resource_key(uri)

    def _on_timeline_changed(self, event: TimelineChangeEvent) -> None:
        uri = event.uri if event.uri is not None else self.current_uri()
        if uri is None:
            logger.debug("timeline_change_ignored", provider_id=event.source, reason="no_resource")
            return
        if event.source is not None and event.source in self._service.registry:
            coro = self._service.load_page(event.source, uri, event.reset)
        else:
            coro = self._service.load_timeline(uri, event.reset)
        self._spawn(coro)

    def _spawn(self, coro: Any) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            coro.close()
            logger.warning("timeline_change_ignored", reason="no_running_loop")
            return
        task = loop.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._task_done)

    def _task_done(self, task: asyncio.Task[Any]) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.warning("timeline_refresh_failed", error=str(error), error_type=type(error).__name__)

    async def focus(self, uri: Any) -> dict[str, LoadOutcome]:
        """Switch to ``uri``: drop the old resource's aggregates and reset-load."""
        uri_key = resource_key(uri)
        if self._focused is not None and self._focused != uri_key:
            self._service.forget(self._focused)
        self._focused = uri_key
        return await self._service.load_timeline(uri_key, reset=True)

    async def refresh(self) -> dict[str, LoadOutcome]:
        uri = self.current_uri()
        if uri is None:
            return {}
        return await self._service.load_timeline(uri, reset=True)

    async def load_more(self) -> dict[str, LoadOutcome]:
        """Fetch the next page from every provider whose aggregate has more."""
        uri = self.current_uri()
        if uri is None:
            return {}
        sources = [s for s, more in self._service.view(uri).has_more.items() if more]
        outcomes = await asyncio.gather(
            *(self._service.load_page(s, uri) for s in sources),
            return_exceptions=True,
        )
        results: dict[str, LoadOutcome] = {}
        for source, outcome in zip(sources, outcomes):
            if isinstance(outcome, BaseException):
                logger.warning("provider_fetch_failed", provider_id=source, error=str(outcome))
                continue
            results[source] = outcome
        return results

    async def wait_idle(self) -> None:
        """Wait until every load triggered by a change event has finished."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def close(self) -> None:
        self._subscription.dispose()
        for task in list(self._tasks):
            task.cancel()
