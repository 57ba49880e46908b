"""One-shot and repeating timers on an asyncio event loop."""

from __future__ import annotations

import asyncio
from typing import Callable, Optional

TimerCallback = Callable[["Timer"], None]


class Timer:
    """A timer that fires after ``timeout`` ms and then every ``repeat`` ms.

    A repeat of 0 makes the timer fire once.
    """

    def __init__(
        self,
        loop: asyncio.AbstractEventLoop,
        timeout: int,
        repeat: int,
        callback: Optional[TimerCallback],
    ):
        self.loop = loop
        self.timeout = timeout
        self.repeat = repeat
        self.callback = callback
        self.started = False
        self._handle: asyncio.TimerHandle | None = None
        self._closing = False
        self._close_callback: Optional[TimerCallback] = None

    @property
    def active(self) -> bool:
        """Whether the timer is waiting to fire."""
        return self._handle is not None

    @property
    def closing(self) -> bool:
        """Whether close() has been called."""
        return self._closing

    def start(self) -> None:
        """Start the timer; later calls have no effect."""
        if self._closing:
            raise RuntimeError("timer is closed")
        if not self.started:
            self.started = True
            self._schedule(self.timeout)

    def set_repeat(self, ms: int) -> None:
        """Change the repeat interval used when the timer is next re-armed."""
        self.repeat = ms

    def close(self, callback: Optional[TimerCallback] = None) -> None:
        """Stop the timer and call callback(timer) once it is closed."""
        self._close_callback = callback
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
        if not self._closing:
            self._closing = True
            self.loop.call_soon(self._close_complete)
        else:
            self._close_complete()

    def _schedule(self, ms: int) -> None:
        self._handle = self.loop.call_later(ms / 1000, self._on_timeout)

    def _on_timeout(self) -> None:
        self._handle = None
        if self.repeat:
            self._schedule(self.repeat)
        if self.callback is not None:
            self.callback(self)

    def _close_complete(self) -> None:
        if self._close_callback is not None:
            self._close_callback(self)