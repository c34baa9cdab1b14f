"""
In-process event emitter.

Manifesto:
    Registry and store mutations run to completion without awaiting, so the
    events they announce must be deliverable without awaiting too. ``fire``
    calls every listener synchronously, in subscription order; a listener
    that returns a coroutine has it scheduled on the running loop.

Delivery rules:
    - Fan-out to the listeners subscribed at the moment ``fire`` is called
      (a listener added during delivery sees the next event, not this one)
    - No replay: late subscribers never see earlier events
    - A failing listener is logged and does not stop delivery to the rest
    - After ``dispose()`` the emitter drops every listener and ignores fires

Tags:
    timeline-hub, events, emitter, in-memory, asyncio

Doc-Types:
    api-reference
"""

from __future__ import annotations

import asyncio
import inspect
import itertools
from collections.abc import Awaitable
from typing import Any, Generic, TypeVar

from timeline_hub.core.logging import get_logger

__all__ = ["Emitter", "Subscription"]

logger = get_logger(__name__)

E = TypeVar("E")

_ids = itertools.count(1)


class Subscription:
    """Revocable handle returned by :meth:`Emitter.subscribe`.

    ``dispose()`` removes the listener; calling it again is a no-op.
    """

    def __init__(self, emitter: Emitter[Any], sub_id: str) -> None:
        self._emitter = emitter
        self.id = sub_id
        self._disposed = False

    @property
    def disposed(self) -> bool:
        return self._disposed

    def dispose(self) -> None:
        if self._disposed:
            return
        self._disposed = True
        self._emitter._remove(self.id)

    def __repr__(self) -> str:
        state = "disposed" if self._disposed else "active"
        return f"Subscription({self.id!r}, {state})"


class Emitter(Generic[E]):
    """Typed broadcast channel.

    Example::

        emitter: Emitter[str] = Emitter("greetings")
        seen = []
        sub = emitter.subscribe(seen.append)
        emitter.fire("hello")
        sub.dispose()
        emitter.fire("ignored")
        assert seen == ["hello"]
    """

    def __init__(self, name: str = "events") -> None:
        self.name = name
        self._listeners: dict[str, Any] = {}
        self._pending: set[asyncio.Task[Any]] = set()
        self._closed = False

    def subscribe(self, listener: Any) -> Subscription:
        """Register ``listener`` and return the handle that revokes it."""
        sub_id = f"{self.name}_{next(_ids)}"
        if not self._closed:
            self._listeners[sub_id] = listener
        return Subscription(self, sub_id)

    # ``emitter(listener)`` reads like an event source property
    __call__ = subscribe

    def fire(self, event: E) -> None:
        """Deliver ``event`` to every current listener."""
        if self._closed:
            return

        for sub_id, listener in list(self._listeners.items()):
            try:
                result = listener(event)
            except Exception as e:
                logger.warning(
                    "listener_error",
                    emitter=self.name,
                    subscription_id=sub_id,
                    event_type=type(event).__name__,
                    error=str(e),
                )
                continue
            if inspect.isawaitable(result):
                self._schedule(sub_id, result, event)

    def _schedule(self, sub_id: str, awaitable: Awaitable[Any], event: E) -> None:
        async def run() -> None:
            try:
                await awaitable
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.warning(
                    "listener_error",
                    emitter=self.name,
                    subscription_id=sub_id,
                    event_type=type(event).__name__,
                    error=str(e),
                )

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # No running loop (sync context): run the listener to completion
            asyncio.run(run())
            return
        task = loop.create_task(run())
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def drain(self) -> None:
        """Wait for scheduled coroutine listeners to finish."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    def _remove(self, sub_id: str) -> None:
        self._listeners.pop(sub_id, None)

    @property
    def listener_count(self) -> int:
        """Number of active listeners."""
        return len(self._listeners)

    @property
    def closed(self) -> bool:
        return self._closed

    def dispose(self) -> None:
        """Close the emitter and drop its listeners."""
        self._closed = True
        self._listeners.clear()

    def __repr__(self) -> str:
        return f"Emitter({self.name!r}, listeners={len(self._listeners)})"
