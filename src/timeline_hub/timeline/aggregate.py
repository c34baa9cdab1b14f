"""
Aggregate store: per (provider, resource) accumulation and paging.

Manifesto:
    Providers page independently and return items in whatever order they
    like. The store keeps, for every (provider, resource) pair, everything
    fetched so far sorted newest-first plus the provider's current cursor,
    and it is the only component that mutates that state. Consumers get
    immutable snapshots and a merged cross-provider view, never the lists.

Architecture:
    ::

        load_timeline(uri)
            │  one load_page per applicable provider, concurrently
            ▼
        load_page(source, uri, reset)
            │  1. reset → drop the aggregate
            │  2. cursor = aggregate.cursor (None if fresh)
            │  3. await router.request_timeline(..., {cursor, limit})
            │  4. seed a new aggregate, or append + stable re-sort
            │  5. NOT_APPLICABLE / None → aggregate untouched
            ▼
        pages channel ← TimelinePageLoadedEvent(source, uri, items, has_more)

Ordering:
    Timestamp descending; equal timestamps keep arrival order (Python's
    sort is stable, ``reverse=True`` included). The whole aggregate is
    re-sorted after each page, which is simple and fine for the item counts
    a timeline view holds.

Deduplication:
    Off by default: a provider whose pages overlap shows the overlap twice.
    With ``deduplicate=True`` an item whose ``key`` (``id``, else
    ``timestamp:handle``) is already held is dropped; the first copy wins.

Tags:
    timeline-hub, aggregation, pagination, merge

Doc-Types:
    api-reference
"""

from __future__ import annotations

import asyncio
import heapq
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from timeline_hub.core.cancellation import CancellationToken
from timeline_hub.core.errors import categorize_error, is_retryable
from timeline_hub.core.logging import LogContext, get_logger
from timeline_hub.timeline.bus import ChangeNotificationBus
from timeline_hub.timeline.models import (
    TimelineItem,
    TimelineOptions,
    TimelinePage,
    TimelinePageLoadedEvent,
    resource_key,
)
from timeline_hub.timeline.router import NOT_APPLICABLE, RequestRouter

__all__ = [
    "DEFAULT_PAGE_SIZE",
    "AggregateSnapshot",
    "AggregateStore",
    "LoadOutcome",
    "LoadStatus",
    "TimelineAggregate",
    "TimelineView",
]

logger = get_logger(__name__)

DEFAULT_PAGE_SIZE = 20


def _newest_first(item: TimelineItem) -> int:
    return item.timestamp


@dataclass(frozen=True)
class AggregateSnapshot:
    """Read-only copy of one aggregate."""

    source: str
    uri: str
    items: tuple[TimelineItem, ...]
    cursor: str | None
    pages_loaded: int

    @property
    def has_more(self) -> bool:
        return self.cursor is not None


@dataclass(frozen=True)
class TimelineView:
    """Everything known about one resource across providers.

    ``items`` is the globally newest-first merge of every provider's
    aggregate; ``has_more`` says, per provider, whether another page exists.
    """

    uri: str
    items: tuple[TimelineItem, ...] = ()
    has_more: Mapping[str, bool] = field(default_factory=dict)

    @property
    def sources(self) -> tuple[str, ...]:
        return tuple(self.has_more)

    @property
    def any_more(self) -> bool:
        return any(self.has_more.values())


class LoadStatus(str, Enum):
    LOADED = "loaded"
    NOT_APPLICABLE = "not_applicable"
    NO_RESULT = "no_result"
    STALE = "stale"
    FAILED = "failed"


@dataclass(frozen=True)
class LoadOutcome:
    """What one ``load_page`` did for one provider."""

    source: str
    status: LoadStatus
    items_added: int = 0
    snapshot: AggregateSnapshot | None = None
    error: BaseException | None = None

    @property
    def has_more(self) -> bool:
        return self.snapshot is not None and self.snapshot.has_more


class TimelineAggregate:
    """Accumulated items and cursor for one (provider, resource) pair."""

    def __init__(
        self,
        page: TimelinePage,
        uri: str,
        *,
        deduplicate: bool = False,
    ):
        self._source = page.source
        self.uri = uri
        self._deduplicate = deduplicate
        self._keys: set[str] = set()
        self._items: list[TimelineItem] = []
        self.cursor: str | None = page.next_cursor
        self.pages_loaded = 1
        self._extend(page.items)

    @property
    def source(self) -> str:
        return self._source

    @property
    def items(self) -> tuple[TimelineItem, ...]:
        return tuple(self._items)

    @property
    def has_more(self) -> bool:
        return self.cursor is not None

    def add(self, page: TimelinePage) -> int:
        """Merge a follow-up page; returns how many items were kept."""
        added = self._extend(page.items)
        self.cursor = page.next_cursor
        self.pages_loaded += 1
        return added

    def _extend(self, items: Iterable[TimelineItem]) -> int:
        before = len(self._items)
        if self._deduplicate:
            for item in items:
                if item.key in self._keys:
                    continue
                self._keys.add(item.key)
                self._items.append(item)
        else:
            self._items.extend(items)
        if len(self._items) != before:
            self._items.sort(key=_newest_first, reverse=True)
        return len(self._items) - before

    def snapshot(self) -> AggregateSnapshot:
        return AggregateSnapshot(
            source=self._source,
            uri=self.uri,
            items=tuple(self._items),
            cursor=self.cursor,
            pages_loaded=self.pages_loaded,
        )

    def __len__(self) -> int:
        return len(self._items)

    def __repr__(self) -> str:
        return (
            f"TimelineAggregate(source={self._source!r}, uri={self.uri!r}, "
            f"items={len(self._items)}, cursor={self.cursor!r})"
        )


class AggregateStore:
    """
    Owner of every (provider, resource) aggregate.

    Usage:
        store = AggregateStore(router, bus, page_size=20)
        await store.load_timeline("file:///repo/a.py", reset=True)
        view = store.view("file:///repo/a.py")
        for source, more in view.has_more.items():
            if more:
                await store.load_page(source, "file:///repo/a.py")
    """

    def __init__(
        self,
        router: RequestRouter,
        bus: ChangeNotificationBus | None = None,
        *,
        page_size: int = DEFAULT_PAGE_SIZE,
        deduplicate: bool = False,
    ):
        self._router = router
        self._bus = bus
        self.page_size = page_size
        self.deduplicate = deduplicate
        self._aggregates: dict[tuple[str, str], TimelineAggregate] = {}

    # ── Paging ───────────────────────────────────────────────────────

    async def load_page(
        self,
        source: str,
        uri: Any,
        reset: bool = False,
        token: CancellationToken | None = None,
    ) -> LoadOutcome:
        """Fetch the next page from ``source`` and merge it.

        Provider failures propagate; the aggregate is left as it was
        (except that ``reset`` has already dropped it).
        """
        uri_key = resource_key(uri)
        key = (source, uri_key)
        if reset:
            self._aggregates.pop(key, None)

        aggregate = self._aggregates.get(key)
        cursor = aggregate.cursor if aggregate is not None else None
        options = TimelineOptions(cursor=cursor, limit=self.page_size)

        provider = self._router.registry.get(source)
        result = await self._router.request_timeline(source, uri, options, token)

        if result is NOT_APPLICABLE:
            return LoadOutcome(source, LoadStatus.NOT_APPLICABLE, snapshot=self.get(source, uri))
        if result is None:
            return LoadOutcome(source, LoadStatus.NO_RESULT, snapshot=self.get(source, uri))

        current = self._aggregates.get(key)
        if aggregate is not None and current is not aggregate:
            # Reset or discarded while this continuation page was in flight
            logger.debug("timeline_page_stale", provider_id=source, uri=uri_key, cursor=cursor)
            return LoadOutcome(source, LoadStatus.STALE, snapshot=self.get(source, uri))
        if self._router.registry.get(source) is not provider:
            # Unregistered or replaced under the same id mid-fetch
            logger.debug("timeline_page_orphaned", provider_id=source, uri=uri_key)
            return LoadOutcome(source, LoadStatus.STALE)

        if aggregate is None:
            aggregate = TimelineAggregate(result, uri_key, deduplicate=self.deduplicate)
            self._aggregates[key] = aggregate
            added = len(aggregate)
        else:
            added = aggregate.add(result)

        snapshot = aggregate.snapshot()
        logger.info(
            "timeline_page_loaded",
            provider_id=source,
            uri=uri_key,
            reset=reset,
            page_items=len(result.items),
            items_added=added,
            total_items=len(snapshot.items),
            has_more=snapshot.has_more,
        )
        if self._bus is not None:
            self._bus.pages.fire(
                TimelinePageLoadedEvent(
                    source=source,
                    uri=uri_key,
                    items=snapshot.items,
                    has_more=snapshot.has_more,
                )
            )
        return LoadOutcome(source, LoadStatus.LOADED, items_added=added, snapshot=snapshot)

    async def load_timeline(
        self,
        uri: Any,
        reset: bool = False,
        token: CancellationToken | None = None,
    ) -> dict[str, LoadOutcome]:
        """Fan ``load_page`` out to every provider serving ``uri``.

        Each provider merges and notifies as soon as its own fetch resolves;
        a failing provider is logged and reported in its outcome without
        affecting the others.
        """
        sources = self._router.applicable_sources(uri)
        if not sources:
            return {}

        async with LogContext(uri=resource_key(uri)):
            outcomes = await asyncio.gather(
                *(self._load_isolated(source, uri, reset, token) for source in sources)
            )
        return dict(zip(sources, outcomes))

    async def _load_isolated(
        self,
        source: str,
        uri: Any,
        reset: bool,
        token: CancellationToken | None,
    ) -> LoadOutcome:
        try:
            return await self.load_page(source, uri, reset, token)
        except Exception as e:
            logger.warning(
                "provider_fetch_failed",
                provider_id=source,
                error=str(e),
                error_type=type(e).__name__,
                category=categorize_error(e).value,
                retryable=is_retryable(e),
            )
            return LoadOutcome(source, LoadStatus.FAILED, snapshot=self.get(source, uri), error=e)

    # ── Readers ──────────────────────────────────────────────────────

    def get(self, source: str, uri: Any) -> AggregateSnapshot | None:
        aggregate = self._aggregates.get((source, resource_key(uri)))
        return aggregate.snapshot() if aggregate is not None else None

    def has_more(self, source: str, uri: Any) -> bool:
        aggregate = self._aggregates.get((source, resource_key(uri)))
        return aggregate is not None and aggregate.has_more

    def sources_for(self, uri: Any) -> list[str]:
        uri_key = resource_key(uri)
        return [source for source, key in self._aggregates if key == uri_key]

    def view(self, uri: Any) -> TimelineView:
        """Merged newest-first view of ``uri`` across all providers."""
        uri_key = resource_key(uri)
        aggregates = [a for (_, key), a in self._aggregates.items() if key == uri_key]
        # Each run is already sorted; heapq.merge keeps run order for ties
        merged = heapq.merge(
            *(a.items for a in aggregates),
            key=_newest_first,
            reverse=True,
        )
        return TimelineView(
            uri=uri_key,
            items=tuple(merged),
            has_more={a.source: a.has_more for a in aggregates},
        )

    # ── Lifecycle ────────────────────────────────────────────────────

    def discard(self, source: str, uri: Any) -> bool:
        return self._aggregates.pop((source, resource_key(uri)), None) is not None

    def discard_source(self, source: str) -> int:
        """Drop every aggregate owned by ``source``."""
        keys = [k for k in self._aggregates if k[0] == source]
        for k in keys:
            del self._aggregates[k]
        return len(keys)

    def discard_resource(self, uri: Any) -> int:
        """Drop every provider's aggregate for ``uri``."""
        uri_key = resource_key(uri)
        keys = [k for k in self._aggregates if k[1] == uri_key]
        for k in keys:
            del self._aggregates[k]
        return len(keys)

    def clear(self) -> None:
        self._aggregates.clear()

    def __len__(self) -> int:
        return len(self._aggregates)

    def __contains__(self, key: object) -> bool:
        if not isinstance(key, tuple) or len(key) != 2:
            return False
        return (key[0], resource_key(key[1])) in self._aggregates
