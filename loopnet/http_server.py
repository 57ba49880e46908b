"""HTTP server routing requests by method and path."""

from __future__ import annotations

import asyncio
import logging
from typing import Callable

from loopnet.common import Method, ParseResult
from loopnet.radix_tree import RadixTree
from loopnet.request import Request
from loopnet.response import Response
from loopnet.tcp_connection import TcpConnection, WriteInfo
from loopnet.tcp_server import TcpServer

logger = logging.getLogger(__name__)

WIRE_ENCODING = "latin-1"

HttpRequestCallback = Callable[[Request, Response], None]


class HttpServer(TcpServer):
    """A TCP server that parses HTTP requests and answers them.

    Each request is matched against the routes registered for its method;
    a route ending in ``*`` matches every path starting with what precedes
    it. The handler fills in the Response, which is sent before the
    connection is closed. Requests without a matching route get no answer.
    """

    def __init__(self, loop: asyncio.AbstractEventLoop):
        super().__init__(loop)
        self._routes: dict[Method, RadixTree] = {
            method: RadixTree() for method in Method if method is not Method.INVALID
        }
        self.on_message = self._on_http_message

    def route(self, method: Method, path: str, callback: HttpRequestCallback) -> None:
        """Register callback(request, response) for method and path."""
        try:
            tree = self._routes[Method(method)]
        except (KeyError, ValueError):
            raise ValueError(f"cannot route method {method!r}") from None
        tree.set(path, callback)

    def get(self, path: str, callback: HttpRequestCallback) -> None:
        """Register a GET handler."""
        self.route(Method.GET, path, callback)

    def post(self, path: str, callback: HttpRequestCallback) -> None:
        """Register a POST handler."""
        self.route(Method.POST, path, callback)

    def head(self, path: str, callback: HttpRequestCallback) -> None:
        """Register a HEAD handler."""
        self.route(Method.HEAD, path, callback)

    def put(self, path: str, callback: HttpRequestCallback) -> None:
        """Register a PUT handler."""
        self.route(Method.PUT, path, callback)

    def delete(self, path: str, callback: HttpRequestCallback) -> None:
        """Register a DELETE handler."""
        self.route(Method.DELETE, path, callback)

    def connect(self, path: str, callback: HttpRequestCallback) -> None:
        """Register a CONNECT handler."""
        self.route(Method.CONNECT, path, callback)

    def options(self, path: str, callback: HttpRequestCallback) -> None:
        """Register an OPTIONS handler."""
        self.route(Method.OPTIONS, path, callback)

    def trace(self, path: str, callback: HttpRequestCallback) -> None:
        """Register a TRACE handler."""
        self.route(Method.TRACE, path, callback)

    def patch(self, path: str, callback: HttpRequestCallback) -> None:
        """Register a PATCH handler."""
        self.route(Method.PATCH, path, callback)

    def _on_http_message(self, connection: TcpConnection, data: bytes) -> None:
        connection.buffer.extend(data)
        text = bytes(connection.buffer).decode(WIRE_ENCODING)
        request = Request()
        result = request.unpack_and_completed(text)
        if result is ParseResult.ERROR:
            connection.buffer.clear()
            return
        if result is not ParseResult.SUCCESS:
            return
        connection.buffer.clear()
        tree = self._routes.get(request.method)
        callback = tree.get(request.path) if tree is not None else None
        if callback is None:
            return
        response = Response()
        callback(request, response)
        payload = response.pack().encode(WIRE_ENCODING)
        name = connection.name

        def written(_info: WriteInfo) -> None:
            self.close_connection(name)

        connection.write(payload, written)