"""
Timeline test doubles.

Usage::

    from tests._support.timeline import ScriptedProvider, make_item, page

    git = ScriptedProvider("git", {None: page("git", [300, 100], "c1")})
    git.gate = asyncio.Event()   # hold provide_timeline until gate.set()
"""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
from typing import Any

from timeline_hub.core.cancellation import CancellationToken
from timeline_hub.timeline import (
    BaseTimelineProvider,
    TimelineItem,
    TimelineOptions,
    TimelinePage,
)


def make_item(timestamp: int, handle: str | None = None, **kwargs: Any) -> TimelineItem:
    return TimelineItem(
        handle=handle or f"h{timestamp}",
        timestamp=timestamp,
        label=kwargs.pop("label", f"item {timestamp}"),
        **kwargs,
    )


def page(source: str, timestamps: list[int], cursor: str | None = None) -> TimelinePage:
    return TimelinePage(
        source=source,
        items=[make_item(ts) for ts in timestamps],
        next_cursor=cursor,
    )


class ScriptedProvider(BaseTimelineProvider):
    """Provider whose pages are keyed by the cursor they answer."""

    def __init__(
        self,
        id: str,
        pages: dict[str | None, TimelinePage | None] | None = None,
        *,
        scheme: str | Sequence[str] = "file",
        label: str | None = None,
    ):
        super().__init__(id, label or id.title(), scheme=scheme)
        self.pages = pages or {}
        self.calls: list[tuple[str, TimelineOptions]] = []
        self.gate: asyncio.Event | None = None
        self.error: Exception | None = None
        self.dispose_error: Exception | None = None
        self.dispose_count = 0

    async def provide_timeline(
        self,
        uri: str,
        options: TimelineOptions,
        token: CancellationToken,
    ) -> TimelinePage | None:
        self.calls.append((str(uri), options))
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        return self.pages.get(options.cursor)

    def dispose(self) -> None:
        self.dispose_count += 1
        super().dispose()
        if self.dispose_error is not None:
            raise self.dispose_error
