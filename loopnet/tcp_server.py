"""TCP server keeping a table of named connections."""

from __future__ import annotations

import asyncio
import logging
import socket
from types import MappingProxyType
from typing import Any, Callable, Mapping, Optional, Union

from loopnet.tcp_connection import AfterWriteCallback, TcpConnection, WriteInfo

logger = logging.getLogger(__name__)

ConnectionCallback = Callable[[TcpConnection], None]
MessageCallback = Callable[[TcpConnection, bytes], None]
Target = Union[TcpConnection, str, None]


def _address_name(transport: Any) -> str:
    peer = transport.get_extra_info("peername")
    if not peer:
        return "unknown"
    return f"{peer[0]}:{peer[1]}"


class _ServerProtocol(asyncio.Protocol):
    def __init__(self, server: "TcpServer"):
        self._server = server
        self._connection: TcpConnection | None = None

    def connection_made(self, transport: asyncio.BaseTransport) -> None:
        self._connection = self._server._on_accept(transport)

    def data_received(self, data: bytes) -> None:
        if self._connection is not None:
            self._connection.feed(data)

    def eof_received(self) -> bool:
        if self._connection is not None:
            self._connection.handle_eof()
        return True

    def connection_lost(self, exc: Optional[Exception]) -> None:
        connection = self._connection
        if connection is None or not connection.connected:
            return
        if exc is None:
            connection.handle_eof()
        else:
            connection.handle_error(exc)


class TcpServer:
    """A listening TCP server.

    Callbacks: ``on_new_connect(connection)``, ``on_message(connection,
    data)`` and ``on_connect_close(connection)``.
    """

    def __init__(self, loop: asyncio.AbstractEventLoop, tcp_no_delay: bool = True):
        self.loop = loop
        self.tcp_no_delay = tcp_no_delay
        self.on_message: Optional[MessageCallback] = None
        self.on_new_connect: Optional[ConnectionCallback] = None
        self.on_connect_close: Optional[ConnectionCallback] = None
        self._server: asyncio.AbstractServer | None = None
        self._connections: dict[str, TcpConnection] = {}

    @property
    def connections(self) -> Mapping[str, TcpConnection]:
        """Read-only view of the open connections by name."""
        return MappingProxyType(self._connections)

    async def bind_and_listen(self, host: str, port: int) -> Any:
        """Bind, start listening and return the bound address.

        Raises OSError if the address cannot be bound.
        """
        if self._server is not None:
            raise RuntimeError("server is already listening")
        self._server = await self.loop.create_server(
            lambda: _ServerProtocol(self), host, port
        )
        return self._server.sockets[0].getsockname()

    def close(self, callback: Optional[Callable[[], None]] = None) -> None:
        """Stop listening, close every connection, then call callback()."""
        if self._server is None:
            return
        self._server.close()

        def finish() -> None:
            for connection in list(self._connections.values()):
                connection.on_socket_close()
            if callback is not None:
                callback()

        self.loop.call_soon(finish)

    def get_connection(self, name: str) -> Optional[TcpConnection]:
        """Return the connection with this name, or None."""
        return self._connections.get(name)

    def close_connection(self, name: str) -> None:
        """Close a connection, report it and drop it from the table."""
        connection = self.get_connection(name)
        if connection is None:
            return

        def closed(closed_name: str) -> None:
            current = self.get_connection(closed_name)
            if current is not None:
                if self.on_connect_close is not None:
                    self.on_connect_close(current)
                self._connections.pop(closed_name, None)

        connection.close(closed)

    def write(self, target: Target, data: bytes, callback: Optional[AfterWriteCallback] = None) -> None:
        """Write to a connection given by object or by name."""
        connection = self._resolve(target)
        if connection is not None:
            connection.write(data, callback)
        elif callback is not None:
            callback(WriteInfo(WriteInfo.DISCONNECTED, bytes(data)))

    def write_in_loop(
        self, target: Target, data: bytes, callback: Optional[AfterWriteCallback] = None
    ) -> None:
        """Schedule a write on the loop; safe to call from any thread."""
        connection = self._resolve(target)
        if connection is not None:
            connection.write_in_loop(data, callback)
        elif callback is not None:
            logger.warning("try write a disconnect connection.")
            callback(WriteInfo(WriteInfo.DISCONNECTED, bytes(data)))

    def _resolve(self, target: Target) -> Optional[TcpConnection]:
        if isinstance(target, str):
            return self.get_connection(target)
        return target

    def _on_accept(self, transport: Any) -> TcpConnection:
        sock = transport.get_extra_info("socket")
        if sock is not None:
            try:
                sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, int(self.tcp_no_delay))
            except OSError as exc:
                logger.error("set tcp no delay error: %s", exc)
        name = _address_name(transport)
        logger.debug("new connect %s", name)
        connection = TcpConnection(self.loop, name, transport)
        connection.on_message = self._on_message
        connection.on_connect_close = self.close_connection
        self._connections[name] = connection
        if self.on_new_connect is not None:
            self.on_new_connect(connection)
        return connection

    def _on_message(self, connection: TcpConnection, data: bytes) -> None:
        if self.on_message is not None:
            self.on_message(connection, data)