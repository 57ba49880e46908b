"""HTTP request model with packing and incremental parsing."""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from loopnet.common import (
    CRLF,
    HttpVersion,
    Method,
    ParseResult,
    http_version_to_str,
    parse_head_line,
    parse_http_version,
    split_head_lines,
    split_on_space,
)

DEFAULT_USER_AGENT = "loopnet-http-client"

_METHOD_NAMES = {
    Method.GET: "GET",
    Method.POST: "POST",
    Method.HEAD: "HEAD",
    Method.PUT: "PUT",
    Method.DELETE: "DELETE",
    Method.CONNECT: "CONNECT",
    Method.OPTIONS: "OPTIONS",
    Method.TRACE: "TRACE",
    Method.PATCH: "PATCH",
}
_METHODS_BY_NAME = {name: method for method, name in _METHOD_NAMES.items()}

_DECIMAL = re.compile(r"\s*([+-]?\d+)")
_INT_MIN, _INT_MAX = -(2**31), 2**31 - 1


def _leading_decimal(text: str) -> int:
    """Parse the decimal integer at the start of text, ignoring the rest."""
    match = _DECIMAL.match(text)
    if match is None:
        raise ValueError(f"no number in {text!r}")
    value = int(match.group(1))
    if not _INT_MIN <= value <= _INT_MAX:
        raise ValueError(f"number out of range in {text!r}")
    return value


def method_to_str(method: Method) -> str:
    """Return the wire name of a method, or an empty string if invalid."""
    return _METHOD_NAMES.get(method, "")


def str_to_method(text: str) -> Method:
    """Map a wire method name to a Method, INVALID if unknown."""
    return _METHODS_BY_NAME.get(text, Method.INVALID)


@dataclass
class Request:
    """An HTTP request."""

    version: HttpVersion = HttpVersion.HTTP1_1
    method: Method = Method.GET
    path: str = ""
    value: str = ""
    url_params: dict[str, str] = field(default_factory=dict)
    heads: dict[str, str] = field(default_factory=dict)
    content: str = ""

    def head(self, key: str) -> str:
        """Return a header value, or an empty string if it is absent."""
        return self.heads.get(key, "")

    def url_param(self, key: str) -> str:
        """Return a URL query parameter, or an empty string if it is absent."""
        return self.url_params.get(key, "")

    def pack(self) -> str:
        """Serialise the request to its wire form.

        Adds a default User-Agent header when none is set, and a
        Content-Length header when there is content.
        """
        self.heads.setdefault("User-Agent", DEFAULT_USER_AGENT)
        if self.content:
            self.heads["Content-Length"] = str(len(self.content))
        start = (
            f"{method_to_str(self.method)} {self._packed_path()} "
            f"{http_version_to_str(self.version)}"
        )
        lines = [start]
        lines.extend(f"{key}: {value}" for key, value in sorted(self.heads.items()))
        return CRLF.join(lines) + CRLF + CRLF + self.content

    def unpack(self, data: str) -> ParseResult:
        """Parse a request head and take everything after it as content."""
        split = split_head_lines(data)
        if split is None:
            return ParseResult.FAIL
        lines, body_pos = split
        if not lines or not self._parse_start_line(lines[0]):
            return ParseResult.ERROR
        for line in lines[1:]:
            try:
                key, value = parse_head_line(line)
            except ValueError:
                return ParseResult.ERROR
            self.heads[key] = value
        self.content = data[body_pos + 4:]
        return ParseResult.SUCCESS

    def unpack_and_completed(self, data: str) -> ParseResult:
        """Parse data and report SUCCESS only once the declared body is present."""
        result = self.unpack(data)
        if result is not ParseResult.SUCCESS:
            return result
        length = self.heads.get("Content-Length", self.heads.get("content-length"))
        if length is None:
            return result
        try:
            size = _leading_decimal(length)
        except ValueError:
            return ParseResult.SUCCESS
        return ParseResult.SUCCESS if size == len(self.content) else ParseResult.FAIL

    def _packed_path(self) -> str:
        prefix = "" if self.path.startswith("/") else "/"
        text = prefix + self.path
        if self.url_params:
            query = "&".join(f"{key}={value}" for key, value in sorted(self.url_params.items()))
            text += "?" + query
        return text

    def _parse_start_line(self, line: str) -> bool:
        parts = split_on_space(line)
        if parts is None:
            return False
        method_text, path_text, version_text = parts
        self.method = str_to_method(method_text)
        if self.method is Method.INVALID:
            return False
        self._parse_path(path_text)
        self.version = parse_http_version(version_text)
        return True

    def _parse_path(self, text: str) -> None:
        self.url_params.clear()
        colon = text.find(":")
        if colon >= 0:
            self.path = text[:colon + 1]
            self.value = text[colon + 1:]
            return
        question = text.find("?")
        if question < 0:
            self.path = text
            return
        self.path = text[:question]
        i = question
        while i < len(text):
            eq = text.find("=", i)
            if eq < 0 or eq - i < 1:
                break
            key = text[i + 1:eq]
            i = eq
            amp = text.find("&", i)
            if amp < 0:
                amp = len(text)
            if amp - i < 1:
                break
            self.url_params[key] = text[i + 1:amp]
            i = amp