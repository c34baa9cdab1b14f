"""
In-memory timeline provider.

Serves a fixed list of items with offset cursors. It backs the CLI's
``--items`` option and is handy wherever a real provider is overkill.

Paging contract:
    - Items are served newest-first
    - ``options.cursor`` is the decimal offset of the next item
    - ``options.limit`` as ``int`` caps the page, as ``Watermark`` restricts
      the page to items at or before the watermark timestamp
    - A page size below 1 raises ``ProviderError``
    - A cancelled token yields ``None`` (no result)

JSON document accepted by :meth:`InMemoryTimelineProvider.from_json`::

    {
      "id": "notes",
      "label": "Notes",
      "scheme": ["file"],
      "items": [{"handle": "n1", "timestamp": 1700000000000, "label": "Draft"}]
    }

``items`` may also map URIs to item lists.
"""

from __future__ import annotations

import json
from collections.abc import Iterable, Mapping, Sequence
from pathlib import Path
from typing import Any

from timeline_hub.core.cancellation import CancellationToken
from timeline_hub.core.errors import ProviderError, TimelineValidationError
from timeline_hub.timeline.models import (
    TimelineItem,
    TimelineOptions,
    TimelinePage,
    Watermark,
    resource_key,
)
from timeline_hub.timeline.provider import WILDCARD_SCHEME, BaseTimelineProvider

__all__ = ["InMemoryTimelineProvider"]


def _sorted(items: Iterable[TimelineItem]) -> list[TimelineItem]:
    return sorted(items, key=lambda i: i.timestamp, reverse=True)


class InMemoryTimelineProvider(BaseTimelineProvider):
    """Provider backed by lists of items held in memory.

    Items given as a plain iterable are served for every URI; a mapping
    serves items per URI.
    """

    def __init__(
        self,
        id: str,
        label: str | None = None,
        items: Iterable[TimelineItem] | Mapping[str, Iterable[TimelineItem]] = (),
        *,
        scheme: str | Sequence[str] = WILDCARD_SCHEME,
        page_size: int | None = None,
    ):
        super().__init__(id, label or id, scheme=scheme)
        self.page_size = page_size
        self._shared: list[TimelineItem] = []
        self._by_uri: dict[str, list[TimelineItem]] = {}
        self.requests: list[tuple[str, TimelineOptions]] = []
        if isinstance(items, Mapping):
            for uri, uri_items in items.items():
                self._by_uri[resource_key(uri)] = _sorted(uri_items)
        else:
            self._shared = _sorted(items)

    def items_for(self, uri: Any) -> list[TimelineItem]:
        return list(self._by_uri.get(resource_key(uri), self._shared))

    def add_items(self, items: Iterable[TimelineItem], uri: Any = None) -> None:
        """Append items and announce a (non-reset) change."""
        if uri is None:
            self._shared = _sorted([*self._shared, *items])
        else:
            key = resource_key(uri)
            self._by_uri[key] = _sorted([*self._by_uri.get(key, []), *items])
        self.fire_change(resource_key(uri) if uri is not None else None)

    def set_items(self, items: Iterable[TimelineItem], uri: Any = None) -> None:
        """Replace items and announce a reset."""
        if uri is None:
            self._shared = _sorted(items)
        else:
            self._by_uri[resource_key(uri)] = _sorted(items)
        self.fire_change(resource_key(uri) if uri is not None else None, reset=True)

    async def provide_timeline(
        self,
        uri: str,
        options: TimelineOptions,
        token: CancellationToken,
    ) -> TimelinePage | None:
        self.requests.append((resource_key(uri), options))
        if token.is_cancelled:
            return None

        items = self.items_for(uri)
        limit = options.limit
        if isinstance(limit, Watermark):
            items = [i for i in items if i.timestamp <= limit.timestamp]
            size = None
        else:
            size = limit if limit is not None else self.page_size

        if size is not None and size < 1:
            raise ProviderError(f"Invalid page size: {size!r}").with_context(
                provider_id=self.id, cursor=options.cursor
            )

        start = self._parse_cursor(options.cursor)
        if size is None:
            return TimelinePage(source=self.id, items=items[start:])

        end = start + size
        next_cursor = str(end) if end < len(items) else None
        return TimelinePage(source=self.id, items=items[start:end], next_cursor=next_cursor)

    def _parse_cursor(self, cursor: str | None) -> int:
        if cursor is None:
            return 0
        try:
            offset = int(cursor)
        except ValueError as e:
            raise ProviderError(f"Invalid cursor: {cursor!r}", cause=e).with_context(
                provider_id=self.id, cursor=cursor
            ) from e
        if offset < 0:
            raise ProviderError(f"Invalid cursor: {cursor!r}").with_context(
                provider_id=self.id, cursor=cursor
            )
        return offset

    # ── Loading ──────────────────────────────────────────────────────

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], *, default_id: str = "memory") -> InMemoryTimelineProvider:
        raw_items = data.get("items", [])
        items: Any
        if isinstance(raw_items, Mapping):
            items = {
                uri: cls._parse_items(entries, field=f"items[{uri!r}]")
                for uri, entries in raw_items.items()
            }
        elif isinstance(raw_items, list):
            items = cls._parse_items(raw_items, field="items")
        else:
            raise TimelineValidationError(
                "'items' must be a list or an object keyed by URI",
                field="items",
                value=type(raw_items).__name__,
            )
        page_size = data.get("page_size")
        if page_size is not None and (
            isinstance(page_size, bool) or not isinstance(page_size, int) or page_size < 1
        ):
            raise TimelineValidationError(
                "'page_size' must be a positive integer", field="page_size", value=page_size
            )
        provider_id = str(data.get("id") or default_id)
        return cls(
            provider_id,
            data.get("label") or provider_id,
            items,
            scheme=data.get("scheme") or WILDCARD_SCHEME,
            page_size=page_size,
        )

    @staticmethod
    def _parse_items(entries: Any, *, field: str) -> list[TimelineItem]:
        if not isinstance(entries, list):
            raise TimelineValidationError(
                f"'{field}' must be a list", field=field, value=type(entries).__name__
            )
        return [TimelineItem.from_dict(entry) for entry in entries]

    @classmethod
    def from_json(cls, path: str | Path) -> InMemoryTimelineProvider:
        """Build a provider from a JSON document (see module docstring)."""
        path = Path(path)
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise TimelineValidationError(
                f"{path}: invalid JSON ({e.msg})", cause=e
            ) from e
        except UnicodeDecodeError as e:
            raise TimelineValidationError(
                f"{path}: not valid UTF-8 ({e.reason})", cause=e
            ) from e
        if not isinstance(data, Mapping):
            raise TimelineValidationError(f"{path}: expected a JSON object")
        return cls.from_dict(data, default_id=path.stem)
