"""Shared HTTP definitions and small text-parsing helpers."""

from __future__ import annotations

from enum import Enum, IntEnum

CRLF = "\r\n"
HEAD_END = "\r\n\r\n"


class ParseResult(Enum):
    """Outcome of parsing an HTTP message."""

    SUCCESS = 0
    FAIL = 1
    ERROR = 2


class HttpVersion(Enum):
    """HTTP protocol versions understood by the parser."""

    UNKNOWN = 0
    HTTP1_0 = 1
    HTTP1_1 = 2


class Method(IntEnum):
    """HTTP request methods."""

    GET = 0
    POST = 1
    HEAD = 2
    PUT = 3
    DELETE = 4
    CONNECT = 5
    OPTIONS = 6
    TRACE = 7
    PATCH = 8
    INVALID = 9


_VERSION_NAMES = {
    HttpVersion.HTTP1_0: "HTTP/1.0",
    HttpVersion.HTTP1_1: "HTTP/1.1",
}
_VERSIONS_BY_NAME = {name: version for version, name in _VERSION_NAMES.items()}


def http_version_to_str(version: HttpVersion) -> str:
    """Return the wire name of a version, or an empty string if unknown."""
    return _VERSION_NAMES.get(version, "")


def parse_http_version(text: str) -> HttpVersion:
    """Map a wire version name to an HttpVersion."""
    return _VERSIONS_BY_NAME.get(text, HttpVersion.UNKNOWN)


def split_head_lines(data: str) -> tuple[list[str], int] | None:
    """Split the head of a message into lines.

    Returns the lines before the blank line together with the index of the
    terminating CRLFCRLF, or None when the head is not yet complete.
    """
    body_pos = data.find(HEAD_END)
    if body_pos < 0:
        return None
    lines: list[str] = []
    pos = 0
    while pos < body_pos:
        last = pos
        pos = data.find(CRLF, pos + 1)
        if pos < 0:
            break
        if last:
            last += 2
        lines.append(data[last:pos])
    return lines, body_pos


def split_on_space(text: str) -> list[str] | None:
    """Split a start line into three parts on its first two spaces.

    Runs of spaces between the first two parts are skipped; the third part
    keeps any spaces it contains. Returns None if the line is malformed.
    """
    parts: list[str] = []
    pos = -1
    while len(parts) < 2:
        last = pos
        pos = text.find(" ", pos + 1)
        if pos == last + 1:
            continue
        if pos < 0:
            return None
        parts.append(text[last + 1:pos])
    if pos == len(text) - 1:
        return None
    parts.append(text[pos + 1:])
    return parts


def common_prefix_length(first: str, second: str) -> int:
    """Return the length of the longest common prefix of two strings."""
    length = 0
    for a, b in zip(first, second):
        if a != b:
            break
        length += 1
    return length


def parse_head_line(line: str) -> tuple[str, str]:
    """Split a header line of the form 'Key: value'.

    Raises ValueError if the line has no ': ' separator.
    """
    key, sep, value = line.partition(": ")
    if not sep:
        raise ValueError(f"malformed header line: {line!r}")
    return key, value