import pytest

from loopnet.common import HttpVersion, Method, ParseResult
from loopnet.request import DEFAULT_USER_AGENT, Request, method_to_str, str_to_method


@pytest.mark.parametrize("method", [m for m in Method if m is not Method.INVALID])
def test_method_round_trip(method):
    assert str_to_method(method_to_str(method)) is method


def test_method_names_fixed():
    assert method_to_str(Method.GET) == "GET"
    assert method_to_str(Method.PATCH) == "PATCH"
    assert method_to_str(Method.INVALID) == ""
    assert str_to_method("get") is Method.INVALID


def test_pack_default_request():
    req = Request(path="/index")
    assert req.pack() == f"GET /index HTTP/1.1\r\nUser-Agent: {DEFAULT_USER_AGENT}\r\n\r\n"


def test_pack_adds_slash_and_sorted_params():
    req = Request(method=Method.POST, path="p")
    req.url_params["b"] = "2"
    req.url_params["a"] = "1"
    first_line = req.pack().split("\r\n")[0]
    assert first_line == "POST /p?a=1&b=2 HTTP/1.1"


def test_pack_keeps_user_agent_and_sets_content_length():
    req = Request(path="/x", content="hello")
    req.heads["User-Agent"] = "tester"
    packed = req.pack()
    assert "User-Agent: tester\r\n" in packed
    assert "Content-Length: 5\r\n" in packed
    assert packed.endswith("\r\n\r\nhello")


def test_round_trip():
    req = Request(method=Method.PUT, path="/items", content="body")
    req.url_params["id"] = "7"
    req.heads["Host"] = "example.com"
    parsed = Request()
    assert parsed.unpack_and_completed(req.pack()) is ParseResult.SUCCESS
    assert parsed.method is Method.PUT
    assert parsed.path == "/items"
    assert parsed.url_param("id") == "7"
    assert parsed.head("Host") == "example.com"
    assert parsed.content == "body"
    assert parsed.version is HttpVersion.HTTP1_1


def test_unpack_incomplete_head():
    assert Request().unpack("GET / HTTP/1.1\r\nHost: a\r\n") is ParseResult.FAIL


@pytest.mark.parametrize(
    "data",
    [
        "FETCH / HTTP/1.1\r\n\r\n",
        "GET /\r\n\r\n",
        "GET / HTTP/1.1\r\nBroken\r\n\r\n",
        "\r\n\r\n",
    ],
)
def test_unpack_errors(data):
    assert Request().unpack(data) is ParseResult.ERROR


def test_unpack_path_with_colon_value():
    req = Request()
    assert req.unpack("GET /user:42 HTTP/1.0\r\n\r\n") is ParseResult.SUCCESS
    assert req.path == "/user:"
    assert req.value == "42"
    assert req.version is HttpVersion.HTTP1_0


def test_unpack_unknown_version():
    req = Request()
    assert req.unpack("GET / HTTP/2\r\n\r\n") is ParseResult.SUCCESS
    assert req.version is HttpVersion.UNKNOWN


def test_unpack_query_params():
    req = Request()
    req.unpack("GET /search?q=cat&page=2 HTTP/1.1\r\n\r\n")
    assert req.path == "/search"
    assert req.url_params == {"q": "cat", "page": "2"}


def test_missing_head_and_param_are_empty():
    req = Request()
    assert req.head("Nope") == ""
    assert req.url_param("nope") == ""


def test_completed_waits_for_body():
    head = "POST /a HTTP/1.1\r\nContent-Length: 4\r\n\r\n"
    assert Request().unpack_and_completed(head + "ab") is ParseResult.FAIL
    assert Request().unpack_and_completed(head + "abcd") is ParseResult.SUCCESS


def test_completed_lowercase_length_header():
    data = "POST /a HTTP/1.1\r\ncontent-length: 2\r\n\r\nab"
    assert Request().unpack_and_completed(data) is ParseResult.SUCCESS


def test_completed_bad_length_counts_as_success():
    data = "POST /a HTTP/1.1\r\nContent-Length: abc\r\n\r\nxyz"
    assert Request().unpack_and_completed(data) is ParseResult.SUCCESS


def test_completed_passes_error_through():
    assert Request().unpack_and_completed("BAD / HTTP/1.1\r\n\r\n") is ParseResult.ERROR