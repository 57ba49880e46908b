"""UDP socket bound to an asyncio event loop."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Optional

logger = logging.getLogger(__name__)

UdpMessageCallback = Callable[[Any, bytes], None]


class _UdpProtocol(asyncio.DatagramProtocol):
    def __init__(self, owner: "Udp"):
        self._owner = owner

    def datagram_received(self, data: bytes, addr: Any) -> None:
        if data:
            self._owner._on_message(addr, data)

    def error_received(self, exc: Exception) -> None:
        logger.error("udp read error: %s", exc)

    def connection_lost(self, exc: Optional[Exception]) -> None:
        if exc is not None:
            logger.error("udp error: %s", exc)
        self._owner._on_close_completed()


class Udp:
    """A UDP endpoint delivering datagrams to ``on_message(address, data)``."""

    def __init__(self, loop: asyncio.AbstractEventLoop):
        self.loop = loop
        self.on_message: Optional[UdpMessageCallback] = None
        self._transport: asyncio.DatagramTransport | None = None
        self._closing = False
        self._on_close: Optional[Callable[[], None]] = None

    async def bind_and_read(self, host: str, port: int) -> Any:
        """Bind to host and port, start receiving, and return the bound address.

        Raises OSError if the address cannot be bound.
        """
        if self._transport is not None:
            raise RuntimeError("udp socket is already bound")
        if self._closing:
            raise RuntimeError("udp socket is closed")
        transport, _ = await self.loop.create_datagram_endpoint(
            lambda: _UdpProtocol(self), local_addr=(host, port)
        )
        self._transport = transport
        return transport.get_extra_info("sockname")

    def send(self, address: Any, data: bytes) -> None:
        """Send one datagram to address."""
        if self._transport is None or self._closing:
            raise RuntimeError("udp socket is not bound")
        self._transport.sendto(bytes(data), address)

    def close(self, callback: Optional[Callable[[], None]] = None) -> None:
        """Stop receiving and call callback() once the socket is closed."""
        self._on_close = callback
        if self._closing:
            self._on_close_completed()
            return
        self._closing = True
        if self._transport is not None:
            self._transport.close()
        else:
            self.loop.call_soon(self._on_close_completed)

    def _on_message(self, address: Any, data: bytes) -> None:
        if self.on_message is not None:
            self.on_message(address, data)

    def _on_close_completed(self) -> None:
        if self._on_close is not None:
            self._on_close()