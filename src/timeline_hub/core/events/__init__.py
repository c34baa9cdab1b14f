"""Typed in-process event channels.

Why This Package Exists
-----------------------
The registry, the aggregate store and providers all announce changes that
consumers (a rendering layer, the refresher, tests) react to. Instead of
ad-hoc callback lists, each announcement goes through an ``Emitter[E]``: a
typed broadcast channel whose listeners are registered, fired and revoked
deterministically through ``Subscription`` handles.

Usage::

    from timeline_hub.core.events import Emitter

    changes: Emitter[TimelineChangeEvent] = Emitter("timeline")

    def on_change(event: TimelineChangeEvent) -> None:
        print(event.uri)

    subscription = changes.subscribe(on_change)
    changes.fire(TimelineChangeEvent(source="git", uri="file:///a.py"))
    subscription.dispose()

Modules
-------
emitter     Emitter -- synchronous fan-out, coroutine listeners scheduled
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, Protocol, TypeVar, runtime_checkable

from timeline_hub.core.events.emitter import Emitter, Subscription

__all__ = [
    "Disposable",
    "Emitter",
    "Listener",
    "Subscription",
]

E = TypeVar("E")

# Plain callables or coroutine functions; coroutines are scheduled
Listener = Callable[[E], Any]


@runtime_checkable
class Disposable(Protocol):
    """Anything holding a resource released by ``dispose()``."""

    def dispose(self) -> None:
        ...

