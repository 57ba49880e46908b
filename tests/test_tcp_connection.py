import asyncio
import errno

import pytest

from loopnet.tcp_connection import TcpConnection, WriteInfo


class FakeTransport:
    def __init__(self, fail=None):
        self.written = []
        self.closed = False
        self.paused = False
        self.eof_written = False
        self.fail = fail

    def write(self, data):
        if self.fail is not None:
            raise self.fail
        self.written.append(data)

    def is_closing(self):
        return self.closed

    def close(self):
        self.closed = True

    def pause_reading(self):
        self.paused = True

    def can_write_eof(self):
        return True

    def write_eof(self):
        self.eof_written = True


def make_connection(loop, transport=None, connected=True):
    transport = transport or FakeTransport()
    return TcpConnection(loop, "peer", transport, connected), transport


def test_write_info_size_matches_data():
    info = WriteInfo(0, b"hello")
    assert info.size == 5
    assert WriteInfo.DISCONNECTED == -1


@pytest.mark.asyncio
async def test_write_sends_and_reports_success():
    conn, transport = make_connection(asyncio.get_running_loop())
    infos = []
    assert conn.write(b"abc", infos.append) == 0
    assert transport.written == [b"abc"]
    await asyncio.sleep(0)
    assert infos == [WriteInfo(0, b"abc")]


@pytest.mark.asyncio
async def test_write_when_disconnected_reports_disconnected():
    conn, transport = make_connection(asyncio.get_running_loop(), connected=False)
    infos = []
    assert conn.write(b"xy", infos.append) == WriteInfo.DISCONNECTED
    assert infos == [WriteInfo(WriteInfo.DISCONNECTED, b"xy")]
    assert transport.written == []


@pytest.mark.asyncio
async def test_write_failure_reports_error_status():
    broken = FakeTransport(fail=OSError(errno.EPIPE, "broken pipe"))
    conn, _ = make_connection(asyncio.get_running_loop(), broken)
    infos = []
    status = conn.write(b"data", infos.append)
    assert status == -errno.EPIPE
    assert infos == [WriteInfo(-errno.EPIPE, b"data")]


@pytest.mark.asyncio
async def test_write_on_closing_transport_fails():
    conn, transport = make_connection(asyncio.get_running_loop())
    transport.closed = True
    infos = []
    assert conn.write(b"z", infos.append) < 0
    assert infos[0].status < 0
    assert transport.written == []


@pytest.mark.asyncio
async def test_write_in_loop_from_other_thread():
    loop = asyncio.get_running_loop()
    conn, transport = make_connection(loop)
    done = loop.create_future()
    await loop.run_in_executor(None, conn.write_in_loop, b"abc", done.set_result)
    info = await asyncio.wait_for(done, 2)
    assert info == WriteInfo(0, b"abc")
    assert transport.written == [b"abc"]


@pytest.mark.asyncio
async def test_feed_delivers_message():
    conn, _ = make_connection(asyncio.get_running_loop())
    received = []
    conn.on_message = lambda c, data: received.append((c, data))
    conn.feed(b"payload")
    conn.feed(b"")
    assert received == [(conn, b"payload")]


@pytest.mark.asyncio
async def test_handle_eof_shuts_down_and_reports():
    conn, transport = make_connection(asyncio.get_running_loop())
    names = []
    conn.on_connect_close = names.append
    conn.handle_eof()
    assert conn.connected is False
    assert transport.eof_written is True
    assert names == ["peer"]


@pytest.mark.asyncio
async def test_handle_error_reports_close():
    conn, _ = make_connection(asyncio.get_running_loop())
    names = []
    conn.on_connect_close = names.append
    conn.handle_error(ConnectionResetError())
    assert conn.connected is False
    assert names == ["peer"]


@pytest.mark.asyncio
async def test_close_completes_and_stops_callbacks():
    conn, transport = make_connection(asyncio.get_running_loop())
    received = []
    closed = []
    conn.on_message = lambda c, data: received.append(data)
    conn.on_connect_close = closed.append
    completed = []
    conn.close(completed.append)
    assert transport.closed is True
    assert transport.paused is True
    assert completed == []
    await asyncio.sleep(0)
    assert completed == ["peer"]
    conn.feed(b"late")
    conn.on_socket_close()
    assert received == []
    assert closed == []


@pytest.mark.asyncio
async def test_close_on_closing_transport_completes_at_once():
    conn, transport = make_connection(asyncio.get_running_loop())
    transport.closed = True
    completed = []
    conn.close(completed.append)
    assert completed == ["peer"]