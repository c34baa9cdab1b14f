"""
Timeline value types.

Everything here is a frozen dataclass: a provider hands items to the hub,
the router stamps them with their provider id by copying, and consumers only
ever see tuples of them. No component mutates an item after it is built.

Tags:
    timeline-hub, models, dataclasses

Doc-Types:
    api-reference
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from timeline_hub.core.errors import TimelineValidationError

__all__ = [
    "Command",
    "TimelineItem",
    "TimelinePage",
    "Watermark",
    "TimelineOptions",
    "TimelineSource",
    "TimelineChangeEvent",
    "ProvidersChangeEvent",
    "TimelinePageLoadedEvent",
    "resource_key",
]


def resource_key(uri: Any) -> str:
    """Normalize a resource URI (``str`` or URI-like object) to a map key."""
    return str(uri)


@dataclass(frozen=True)
class Command:
    """
    A particular invocation of a registered command.

    Opaque to the hub; a rendering layer dispatches it when the item is
    selected.
    """

    command: str | None = None
    title: str | None = None
    tooltip: str | None = None
    arguments: tuple[Any, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {}
        for key in ["command", "title", "tooltip"]:
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.arguments:
            result["arguments"] = list(self.arguments)
        return result

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Command:
        if not isinstance(data, Mapping):
            raise TimelineValidationError(
                "Timeline item command must be an object",
                field="command",
                value=data,
            )
        return cls(
            command=data.get("command"),
            title=data.get("title"),
            tooltip=data.get("tooltip"),
            arguments=tuple(data.get("arguments") or ()),
        )


@dataclass(frozen=True)
class TimelineItem:
    """
    One chronological event about a resource.

    Attributes:
        handle: Provider-assigned identifier, unique within the source
        timestamp: Milliseconds since the epoch; primary ordering key
        label: Human-readable summary
        id: Optional stable identifier, unique within the source
        description: Less prominent detail shown next to the label
        detail: Tooltip text
        command: Command to run when the item is selected
        context_value: Classification tag (e.g. ``"commit"``) for menus
        source: Provider id; always set by the router
    """

    handle: str
    timestamp: int
    label: str
    id: str | None = None
    description: str | None = None
    detail: str | None = None
    command: Command | None = None
    context_value: str | None = None
    source: str | None = None

    @property
    def key(self) -> str:
        """Identity within a source: ``id``, else ``"{timestamp}:{handle}"``."""
        if self.id is not None:
            return self.id
        return f"{self.timestamp}:{self.handle}"

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "handle": self.handle,
            "timestamp": self.timestamp,
            "label": self.label,
        }
        for key in ["id", "description", "detail", "context_value", "source"]:
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.command is not None:
            result["command"] = self.command.to_dict()
        return result

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> TimelineItem:
        """Build an item from a plain mapping (e.g. parsed JSON).

        Raises:
            TimelineValidationError: ``data`` or its command is not an
                object, a required field is missing, or the timestamp is
                not an integer.
        """
        if not isinstance(data, Mapping):
            raise TimelineValidationError(
                "Timeline item must be an object", value=type(data).__name__
            )
        for required in ("handle", "timestamp", "label"):
            if required not in data:
                raise TimelineValidationError(
                    f"Timeline item is missing {required!r}", field=required
                )
        timestamp = data["timestamp"]
        # bool is an int subclass but never a valid timestamp
        if isinstance(timestamp, bool) or not isinstance(timestamp, int):
            raise TimelineValidationError(
                "Timeline item timestamp must be integer milliseconds",
                field="timestamp",
                value=timestamp,
            )
        command = data.get("command")
        return cls(
            handle=str(data["handle"]),
            timestamp=timestamp,
            label=str(data["label"]),
            id=data.get("id"),
            description=data.get("description"),
            detail=data.get("detail"),
            command=Command.from_dict(command) if command is not None else None,
            context_value=data.get("context_value"),
            source=data.get("source"),
        )


@dataclass(frozen=True)
class TimelinePage:
    """A provider's answer to one fetch.

    ``next_cursor`` is ``None`` when the provider has nothing more to give.
    """

    source: str
    items: list[TimelineItem] = field(default_factory=list)
    next_cursor: str | None = None


@dataclass(frozen=True)
class Watermark:
    """Only items at or before ``(timestamp, id)``."""

    timestamp: int
    id: str | None = None


@dataclass(frozen=True)
class TimelineOptions:
    """Fetch options handed to a provider untouched.

    ``limit`` is either a page size or a :class:`Watermark`; what it means
    exactly is the provider's contract.
    """

    cursor: str | None = None
    limit: int | Watermark | None = None


@dataclass(frozen=True)
class TimelineSource:
    """Registry listing entry."""

    id: str
    label: str


# ── Event payloads ───────────────────────────────────────────────────────


@dataclass(frozen=True)
class TimelineChangeEvent:
    """A provider's data changed.

    ``uri`` of ``None`` means "whatever resource is currently focused".
    ``source`` of ``None`` marks a refresh synthesized by a consumer rather
    than forwarded from a provider.
    """

    source: str | None
    uri: str | None = None
    reset: bool = False


@dataclass(frozen=True)
class ProvidersChangeEvent:
    """Provider membership changed."""

    added: tuple[str, ...] = ()
    removed: tuple[str, ...] = ()


@dataclass(frozen=True)
class TimelinePageLoadedEvent:
    """A page was merged into the ``(source, uri)`` aggregate."""

    source: str
    uri: str
    items: tuple[TimelineItem, ...]
    has_more: bool
