"""HTTP client sending one request per connection."""

from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import Callable, Optional

from loopnet.common import ParseResult
from loopnet.request import Request
from loopnet.response import Response
from loopnet.tcp_connection import TcpConnection, WriteInfo

logger = logging.getLogger(__name__)

WIRE_ENCODING = "latin-1"


class ReqResult(Enum):
    """Outcome reported to the response callback."""

    SUCCESS = 0
    CONNECT_FAIL = 1
    PARSE_FAIL = 2
    UNKNOWN = 3
    WRITE_FAIL = 4


ResponseCallback = Callable[[ReqResult, Optional[Response]], None]


class _ClientProtocol(asyncio.Protocol):
    def __init__(self, client: "HttpClient"):
        self._client = client

    def connection_made(self, transport: asyncio.BaseTransport) -> None:
        self._client._on_connected(transport)

    def data_received(self, data: bytes) -> None:
        self._client._on_message(data)

    def eof_received(self) -> bool:
        return False

    def connection_lost(self, exc: Optional[Exception]) -> None:
        self._client._on_closed()


class HttpClient:
    """Sends a Request and reports the outcome to ``on_resp(result, response)``.

    A response is reported as soon as it is complete, and parsed once more
    when the server closes the connection.
    """

    def __init__(self, loop: asyncio.AbstractEventLoop):
        self.loop = loop
        self.on_resp: Optional[ResponseCallback] = None
        self.connected = False
        self._request = Request()
        self._buffer = bytearray()
        self._connection: TcpConnection | None = None

    async def request(self, host: str, port: int, req: Request) -> None:
        """Connect to host and port and send req once connected."""
        self._request = req
        self._buffer.clear()
        try:
            await self.loop.create_connection(lambda: _ClientProtocol(self), host, port)
        except OSError as exc:
            logger.error("http connect error: %s", exc)
            self.connected = False
            self._on_resp(ReqResult.CONNECT_FAIL, None)

    def close(self) -> None:
        """Close the current connection, if any."""
        if self._connection is not None and not self._connection.transport.is_closing():
            self._connection.transport.close()

    def _on_resp(self, result: ReqResult, response: Optional[Response]) -> None:
        if self.on_resp is not None:
            self.on_resp(result, response)

    def _on_connected(self, transport: asyncio.BaseTransport) -> None:
        self.connected = True
        peer = transport.get_extra_info("peername")
        name = f"{peer[0]}:{peer[1]}" if peer else "unknown"
        self._connection = TcpConnection(self.loop, name, transport)
        payload = self._request.pack().encode(WIRE_ENCODING)

        def written(info: WriteInfo) -> None:
            if info.status != 0:
                self._on_resp(ReqResult.WRITE_FAIL, None)
                logger.error("http write error: %s", info.status)

        self._connection.write(payload, written)

    def _on_message(self, data: bytes) -> None:
        self._buffer.extend(data)
        response = Response()
        result = response.unpack_and_completed(bytes(self._buffer).decode(WIRE_ENCODING))
        if result is ParseResult.SUCCESS:
            self._on_resp(ReqResult.SUCCESS, response)
        elif result is ParseResult.ERROR:
            logger.error("parse http's response error.")
            self._buffer.clear()

    def _on_closed(self) -> None:
        self.connected = False
        if self._connection is not None:
            self._connection.connected = False
        response = Response()
        if response.unpack(bytes(self._buffer).decode(WIRE_ENCODING)) is ParseResult.SUCCESS:
            self._on_resp(ReqResult.SUCCESS, response)
        else:
            self._on_resp(ReqResult.PARSE_FAIL, None)