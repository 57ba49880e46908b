# loopnet

`loopnet` is a small set of networking building blocks on top of an
`asyncio` event loop:

- `loopnet.tcp_server.TcpServer` listens for TCP connections, names each one
  by its peer address (`"host:port"`) and keeps them in a read-only
  `connections` mapping.
- `loopnet.tcp_connection.TcpConnection` wraps one stream and carries its
  message and close callbacks; writes report back through a `WriteInfo`.
- `loopnet.udp.Udp` binds a datagram socket, delivers what it receives, and
  sends datagrams to a given address.
- `loopnet.timer.Timer` is a one-shot or repeating timer, in milliseconds,
  with a close callback.
- `loopnet.http_server.HttpServer` is a `TcpServer` that parses HTTP/1.x
  requests and hands each one to a handler chosen by method and path.
- `loopnet.http_client.HttpClient` sends one `Request` and reports a
  `ReqResult` together with the parsed `Response`.

The protocol pieces, `loopnet.request.Request`, `loopnet.response.Response`,
`loopnet.radix_tree.RadixTree` and the helpers in `loopnet.common`, need no
event loop and can be used on their own. The package has no dependencies
outside the standard library.

## Install

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Routing

`RadixTree` maps string keys to values. A key ending in `*` matches every key
that starts with the text before the `*`:

```python
from loopnet.radix_tree import RadixTree

routes = RadixTree()
routes["/api/user"] = "user"
routes["/static/*"] = "files"

routes.get("/static/css/site.css")   # "files"
"/api/user" in routes                # True
routes["/missing"]                   # raises KeyError
```

## Serving HTTP

```python
import asyncio

from loopnet.http_server import HttpServer
from loopnet.response import StatusCode


def hello(request, response):
    response.set_status(StatusCode.OK, "OK")
    response.content = "hello " + request.url_param("name")


async def main():
    loop = asyncio.get_running_loop()
    server = HttpServer(loop)
    server.get("/hello", hello)
    server.get("/files/*", lambda req, resp: resp.set_status(StatusCode.NOT_FOUND, "Not Found"))
    print(await server.bind_and_listen("127.0.0.1", 8080))
    await asyncio.Event().wait()


asyncio.run(main())
```

There is one registration method per HTTP method (`get`, `post`, `head`,
`put`, `delete`, `connect`, `options`, `trace`, `patch`), and `route(method,
path, callback)` takes a `loopnet.common.Method`. The handler fills in the
`Response`; once it has been written the server closes the connection. A
request for which no route matches gets no answer.

## Sending a request

```python
import asyncio

from loopnet.http_client import HttpClient, ReqResult
from loopnet.request import Request


async def main():
    loop = asyncio.get_running_loop()
    client = HttpClient(loop)
    done = loop.create_future()

    def on_resp(result, resp):
        if not done.done():
            done.set_result((result, resp))

    client.on_resp = on_resp

    req = Request(path="/hello")
    req.url_params["name"] = "world"
    await client.request("127.0.0.1", 8080, req)

    result, resp = await done
    if result is ReqResult.SUCCESS:
        print(resp.status_code, resp.content)
    client.close()


asyncio.run(main())
```

`request` returns once the connection is made; the outcome arrives through
`on_resp`. A response is reported as soon as it is complete, and the buffered
data is parsed once more when the server closes the connection, so the
callback may be called a second time. `ReqResult.CONNECT_FAIL`,
`WRITE_FAIL` and `PARSE_FAIL` come with `None` instead of a response.

## TCP, UDP and timers

```python
import asyncio

from loopnet.tcp_server import TcpServer
from loopnet.timer import Timer
from loopnet.udp import Udp


async def main():
    loop = asyncio.get_running_loop()

    server = TcpServer(loop)
    server.on_message = lambda conn, data: server.write(conn, data)   # echo
    await server.bind_and_listen("127.0.0.1", 9000)

    udp = Udp(loop)
    udp.on_message = lambda address, data: udp.send(address, data)
    await udp.bind_and_read("127.0.0.1", 9001)

    ticks = Timer(loop, 1000, 500, lambda timer: print("tick"))
    ticks.start()

    await asyncio.sleep(3)
    ticks.close()
    udp.close()
    server.close()


asyncio.run(main())
```

`TcpServer.write` and `write_in_loop` take either a connection or its name;
`write_in_loop` may be called from another thread. A write to a missing or
disconnected connection calls its callback with status
`WriteInfo.DISCONNECTED`.

## Working with messages directly

```python
from loopnet.common import ParseResult
from loopnet.response import Response

resp = Response()
state = resp.unpack_and_completed(
    "HTTP/1.1 200 OK\r\nContent-Length: 5\r\n\r\nhello"
)
assert state is ParseResult.SUCCESS
assert resp.content == "hello"
```

`unpack_and_completed` returns `ParseResult.FAIL` while a message is still
incomplete, so add the data received since and call it again. It returns
`ParseResult.ERROR` when the data cannot be an HTTP message. A response sent
with `Transfer-Encoding: chunked` has its chunks joined once the final
zero-length chunk arrives. `Request.pack()` adds a `User-Agent` header when
none is set and a `Content-Length` header when there is content.

## What it does not do

- There is no command-line program; everything is used from Python.
- The HTTP server answers one request per connection and then closes it; there
  is no keep-alive, no TLS, and no automatic 404 for unmatched routes.
- The TCP server does not close idle connections on a timeout.
- The HTTP client does not follow redirects, decode compressed bodies or
  retry. Messages are handled as Latin-1 text.