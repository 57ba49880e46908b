import asyncio
import socket

import pytest

from loopnet.common import Method
from loopnet.http_client import HttpClient, ReqResult
from loopnet.http_server import HttpServer
from loopnet.request import Request
from loopnet.response import Response, StatusCode


async def _serve_once(reply):
    received = []

    async def handle(reader, writer):
        received.append(await reader.readuntil(b"\r\n\r\n"))
        writer.write(reply)
        await writer.drain()
        writer.close()

    server = await asyncio.start_server(handle, "127.0.0.1", 0)
    return server, server.sockets[0].getsockname()[1], received


def _collect(client):
    loop = asyncio.get_running_loop()
    results = []
    first = loop.create_future()

    def on_resp(result, response):
        results.append((result, response))
        if not first.done():
            first.set_result((result, response))

    client.on_resp = on_resp
    return results, first


def _packed_response(text):
    response = Response()
    response.set_status(StatusCode.OK, "OK")
    response.heads["Content-Length"] = str(len(text))
    response.content = text
    return response.pack().encode("latin-1")


@pytest.mark.asyncio
async def test_request_receives_response():
    server, port, received = await _serve_once(_packed_response("hello"))
    client = HttpClient(asyncio.get_running_loop())
    results, first = _collect(client)
    await client.request("127.0.0.1", port, Request(path="/greet"))
    result, response = await asyncio.wait_for(first, timeout=5)
    assert result is ReqResult.SUCCESS
    assert response.content == "hello"
    assert response.status_code == StatusCode.OK
    assert received[0].startswith(b"GET /greet HTTP/1.1\r\n")
    assert b"User-Agent: " in received[0]
    await asyncio.sleep(0.05)
    assert all(item[0] is ReqResult.SUCCESS for item in results)
    server.close()


@pytest.mark.asyncio
async def test_chunked_response_is_decoded():
    reply = b"HTTP/1.1 200 OK\r\nTransfer-Encoding: chunked\r\n\r\n5\r\nhello\r\n0\r\n\r\n"
    server, port, _ = await _serve_once(reply)
    client = HttpClient(asyncio.get_running_loop())
    _, first = _collect(client)
    await client.request("127.0.0.1", port, Request())
    result, response = await asyncio.wait_for(first, timeout=5)
    assert result is ReqResult.SUCCESS
    assert response.content == "hello"
    server.close()


@pytest.mark.asyncio
async def test_garbage_reply_is_parse_fail():
    server, port, _ = await _serve_once(b"garbage")
    client = HttpClient(asyncio.get_running_loop())
    results, first = _collect(client)
    await client.request("127.0.0.1", port, Request())
    result, response = await asyncio.wait_for(first, timeout=5)
    assert result is ReqResult.PARSE_FAIL
    assert response is None
    assert client.connected is False
    assert [item[0] for item in results] == [ReqResult.PARSE_FAIL]
    server.close()


@pytest.mark.asyncio
async def test_refused_connection_is_connect_fail():
    probe = socket.socket()
    probe.bind(("127.0.0.1", 0))
    port = probe.getsockname()[1]
    probe.close()
    client = HttpClient(asyncio.get_running_loop())
    results, _ = _collect(client)
    await client.request("127.0.0.1", port, Request())
    assert results == [(ReqResult.CONNECT_FAIL, None)]
    assert client.connected is False


@pytest.mark.asyncio
async def test_post_against_http_server():
    loop = asyncio.get_running_loop()
    server = HttpServer(loop)

    def echo(request, response):
        response.set_status(StatusCode.OK, "OK")
        response.heads["Content-Length"] = str(len(request.content))
        response.content = request.content

    server.post("/echo", echo)
    address = await server.bind_and_listen("127.0.0.1", 0)
    client = HttpClient(loop)
    _, first = _collect(client)
    await client.request("127.0.0.1", address[1], Request(method=Method.POST, path="/echo", content="ping"))
    result, response = await asyncio.wait_for(first, timeout=5)
    assert result is ReqResult.SUCCESS
    assert response.content == "ping"
    client.close()
    server.close()