"""A single TCP connection driven by an asyncio event loop."""

from __future__ import annotations

import asyncio
import logging
import weakref
from dataclasses import dataclass
from typing import Any, Callable, ClassVar, Optional

logger = logging.getLogger(__name__)


@dataclass
class WriteInfo:
    """Result of a write: a status (0 on success) and the data concerned."""

    DISCONNECTED: ClassVar[int] = -1

    status: int
    data: bytes

    @property
    def size(self) -> int:
        """Number of bytes the write carried."""
        return len(self.data)


AfterWriteCallback = Callable[[WriteInfo], None]
MessageCallback = Callable[["TcpConnection", bytes], None]
NameCallback = Callable[[str], None]


def _error_status(exc: BaseException) -> int:
    errno = getattr(exc, "errno", None)
    return -errno if errno else WriteInfo.DISCONNECTED


class TcpConnection:
    """One accepted or established TCP stream.

    Incoming data is handed to ``on_message(connection, data)``; when the
    peer goes away ``on_connect_close(name)`` is called. ``buffer`` is free
    for users that need to gather a message across several reads.
    """

    def __init__(
        self,
        loop: asyncio.AbstractEventLoop,
        name: str,
        transport: Any,
        connected: bool = True,
    ):
        self.loop = loop
        self.name = name
        self.transport = transport
        self.connected = connected
        self.buffer = bytearray()
        self.on_message: Optional[MessageCallback] = None
        self.on_connect_close: Optional[NameCallback] = None
        self._close_complete: Optional[NameCallback] = None

    def __repr__(self) -> str:
        return f"TcpConnection(name={self.name!r}, connected={self.connected})"

    def on_socket_close(self) -> None:
        """Report that the socket has gone away."""
        if self.on_connect_close is not None:
            self.on_connect_close(self.name)

    def close(self, callback: Optional[NameCallback] = None) -> None:
        """Close the connection and call callback(name) once it is closed.

        Message and close notifications stop at once.
        """
        self.on_message = None
        self.on_connect_close = None
        self._close_complete = callback
        if self.transport.is_closing():
            self._on_close_complete()
            return
        try:
            self.transport.pause_reading()
        except (RuntimeError, NotImplementedError):
            pass
        self.transport.close()
        self.loop.call_soon(self._on_close_complete)

    def write(self, data: bytes, callback: Optional[AfterWriteCallback] = None) -> int:
        """Send data and return 0, or a negative status if it cannot be sent.

        callback(WriteInfo) is called when the write has been handed over,
        or straight away when it fails.
        """
        payload = bytes(data)
        if not self.connected:
            if callback is not None:
                callback(WriteInfo(WriteInfo.DISCONNECTED, payload))
            return WriteInfo.DISCONNECTED
        try:
            if self.transport.is_closing():
                raise ConnectionError("transport is closing")
            self.transport.write(payload)
        except (OSError, RuntimeError) as exc:
            status = _error_status(exc)
            logger.error("write data error: %s", exc)
            if callback is not None:
                callback(WriteInfo(status, payload))
            return status
        if callback is not None:
            self.loop.call_soon(callback, WriteInfo(0, payload))
        return 0

    def write_in_loop(self, data: bytes, callback: Optional[AfterWriteCallback] = None) -> None:
        """Schedule a write on the connection's loop; safe from any thread."""
        payload = bytes(data)
        ref = weakref.ref(self)

        def run() -> None:
            connection = ref()
            if connection is not None:
                connection.write(payload, callback)
            elif callback is not None:
                callback(WriteInfo(WriteInfo.DISCONNECTED, payload))

        self.loop.call_soon_threadsafe(run)

    def feed(self, data: bytes) -> None:
        """Deliver bytes read from the socket."""
        if data and self.on_message is not None:
            self.on_message(self, data)

    def handle_eof(self) -> None:
        """Handle the peer closing its side: shut ours down and report it."""
        self.connected = False
        logger.error("EOF")
        if not self.transport.is_closing() and self.transport.can_write_eof():
            try:
                self.transport.write_eof()
            except (OSError, RuntimeError) as exc:
                logger.error("shutdown error: %s", exc)
        self.on_socket_close()

    def handle_error(self, exc: Optional[BaseException]) -> None:
        """Handle a read error on the socket."""
        self.connected = False
        logger.error("connection error: %s", exc)
        self.on_socket_close()

    def _on_close_complete(self) -> None:
        if self._close_complete is not None:
            self._close_complete(self.name)