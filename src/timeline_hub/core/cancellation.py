"""Advisory cancellation passed through to providers.

The hub never cancels an in-flight fetch itself. A caller that loses
interest calls ``cancel()``; a provider that honours the token may stop
early and return ``None`` ("no result"), which leaves aggregates untouched.
"""

from __future__ import annotations

import asyncio

__all__ = ["CancellationToken"]


class CancellationToken:
    """One-shot cancellation flag a provider can poll or await."""

    def __init__(self) -> None:
        self._cancelled = False
        self._event: asyncio.Event | None = None

    @classmethod
    def none(cls) -> CancellationToken:
        """A token nobody holds a reference to cancel."""
        return cls()

    @property
    def is_cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        self._cancelled = True
        if self._event is not None:
            self._event.set()

    async def wait(self) -> None:
        """Block until ``cancel()`` is called."""
        if self._cancelled:
            return
        if self._event is None:
            self._event = asyncio.Event()
        await self._event.wait()

    def __repr__(self) -> str:
        return f"CancellationToken(cancelled={self._cancelled})"
