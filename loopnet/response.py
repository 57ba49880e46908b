"""HTTP response model with packing and incremental parsing."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import IntEnum

from loopnet.common import (
    CRLF,
    HttpVersion,
    ParseResult,
    http_version_to_str,
    parse_head_line,
    parse_http_version,
    split_head_lines,
    split_on_space,
)

_DECIMAL = re.compile(r"\s*([+-]?\d+)")
_HEX = re.compile(r"\s*([+-]?)(?:0[xX])?([0-9a-fA-F]+)")
_INT_MIN, _INT_MAX = -(2**31), 2**31 - 1


def _leading_int(text: str, base: int = 10) -> int:
    """Parse the integer at the start of text, ignoring what follows it."""
    if base == 16:
        match = _HEX.match(text)
        if match is None:
            raise ValueError(f"no number in {text!r}")
        value = int(match.group(1) + match.group(2), 16)
    else:
        match = _DECIMAL.match(text)
        if match is None:
            raise ValueError(f"no number in {text!r}")
        value = int(match.group(1))
    if not _INT_MIN <= value <= _INT_MAX:
        raise ValueError(f"number out of range in {text!r}")
    return value


class StatusCode(IntEnum):
    """Common HTTP status codes."""

    OK = 200
    BAD_REQUEST = 400
    UNAUTHORIZED = 401
    FORBIDDEN = 403
    NOT_FOUND = 404
    INTERNAL_SERVER_ERROR = 500
    SERVER_UNAVAILABLE = 503


@dataclass
class Response:
    """An HTTP response."""

    version: HttpVersion = HttpVersion.HTTP1_1
    status_code: int = StatusCode.OK
    status_info: str = ""
    heads: dict[str, str] = field(default_factory=dict)
    content: str = ""

    def set_status(self, code: int, info: str) -> None:
        """Set the status code and reason phrase."""
        self.status_code = code
        self.status_info = info

    def head(self, key: str) -> str:
        """Return a header value, or an empty string if it is absent."""
        return self.heads.get(key, "")

    def pack(self) -> str:
        """Serialise the response to its wire form."""
        lines = [f"{http_version_to_str(self.version)} {int(self.status_code)} {self.status_info}"]
        lines.extend(f"{key}: {value}" for key, value in sorted(self.heads.items()))
        return CRLF.join(lines) + CRLF + CRLF + self.content

    def unpack(self, data: str) -> ParseResult:
        """Parse a response head and take everything after it as content."""
        split = split_head_lines(data)
        if split is None:
            return ParseResult.FAIL
        lines, body_pos = split
        if not lines or not self._parse_status(lines[0]):
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
        """Parse data and report SUCCESS only once the whole body is present."""
        if self.unpack(data) is ParseResult.SUCCESS:
            length = self.heads.get("Content-Length", self.heads.get("content-length"))
            if length is not None:
                try:
                    size = _leading_int(length)
                except ValueError:
                    return ParseResult.FAIL
                return ParseResult.SUCCESS if size == len(self.content) else ParseResult.FAIL
            if self.heads.get("Transfer-Encoding") == "chunked":
                return self.is_completed_chunked()
        return ParseResult.FAIL

    def is_completed_chunked(self) -> ParseResult:
        """Decode a chunked body in place once its final chunk has arrived."""
        content = self.content
        decoded: list[str] = []
        start = 0
        while True:
            end = content.find(CRLF, start + 1)
            if end < 0:
                return ParseResult.FAIL
            try:
                size = _leading_int(content[start:end], 16)
            except ValueError:
                return ParseResult.ERROR
            if size < 0:
                return ParseResult.ERROR
            if size == 0:
                self.content = "".join(decoded)
                return ParseResult.SUCCESS
            start = end + 2 + size
            if start > len(content):
                return ParseResult.FAIL
            decoded.append(content[end + 2:start])

    def _parse_status(self, line: str) -> bool:
        parts = split_on_space(line)
        if parts is None:
            return False
        version_text, code_text, info = parts
        self.version = parse_http_version(version_text)
        try:
            code = _leading_int(code_text)
        except ValueError:
            return False
        try:
            self.status_code = StatusCode(code)
        except ValueError:
            self.status_code = code
        self.status_info = info
        return True