"""Parser for Java-style ``.properties`` documents.

Handles:
- ``#`` and ``!`` comment lines, blank lines
- ``key=value``, ``key:value`` and ``key value`` separators
- Line continuation with a trailing (unescaped) backslash
- ``\\t \\n \\r \\f`` and ``\\uXXXX`` escapes

Documents are decoded as ISO-8859-1 unless another encoding is given.
"""

from __future__ import annotations

import re
from collections.abc import Iterator, Mapping
from typing import BinaryIO, TextIO

from propstore.errors import PropertiesSyntaxError

DEFAULT_ENCODING = "latin-1"

_WHITESPACE = " \t\f"
_SEPARATORS = "=:"
_HEX_DIGITS = frozenset("0123456789abcdefABCDEF")
_ESCAPES = {"t": "\t", "n": "\n", "r": "\r", "f": "\f"}
_NEWLINE = re.compile(r"\r\n|\r|\n")

# Diagnostic listing format
LISTING_HEADER = "-- listing properties --"
LISTING_MAX_VALUE = 40


def _logical_lines(text: str) -> Iterator[tuple[int, str]]:
    """Yield (line number, logical line) pairs, still escaped.

    Leading whitespace is dropped from every natural line. A natural line ending
    in an odd number of backslashes is joined with the next one.
    """
    pending: str | None = None
    start = 0

    for number, raw in enumerate(_NEWLINE.split(text), start=1):
        line = raw.lstrip(_WHITESPACE)

        if pending is None:
            if not line or line[0] in "#!":
                continue
            start = number

        trailing = len(line) - len(line.rstrip("\\"))
        if trailing % 2 == 1:
            pending = (pending or "") + line[:-1]
            continue

        yield start, (pending or "") + line
        pending = None

    if pending is not None:
        yield start, pending


def _unescape(text: str, line: int) -> str:
    """Resolve backslash escapes in a key or value."""
    if "\\" not in text:
        return text

    out: list[str] = []
    i = 0
    size = len(text)
    while i < size:
        c = text[i]
        i += 1
        if c != "\\":
            out.append(c)
            continue
        if i >= size:
            break
        c = text[i]
        i += 1
        if c == "u":
            digits = text[i : i + 4]
            if len(digits) < 4 or not _HEX_DIGITS.issuperset(digits):
                raise PropertiesSyntaxError("Malformed \\uxxxx encoding.", line=line)
            out.append(chr(int(digits, 16)))
            i += 4
        else:
            out.append(_ESCAPES.get(c, c))

    result = "".join(out)
    if any("\ud800" <= ch <= "\udfff" for ch in result):
        # Pair up UTF-16 surrogates written as two \u escapes
        result = result.encode("utf-16", "surrogatepass").decode("utf-16", "surrogatepass")
    return result


def _split_entry(line: str) -> tuple[str, str]:
    """Split an escaped logical line into raw key and raw value."""
    key_end = 0
    value_start = len(line)
    has_separator = False
    escaped = False

    while key_end < len(line):
        c = line[key_end]
        if not escaped and c in _SEPARATORS:
            value_start = key_end + 1
            has_separator = True
            break
        if not escaped and c in _WHITESPACE:
            value_start = key_end + 1
            break
        escaped = c == "\\" and not escaped
        key_end += 1

    while value_start < len(line):
        c = line[value_start]
        if c not in _WHITESPACE:
            if has_separator or c not in _SEPARATORS:
                break
            has_separator = True
        value_start += 1

    return line[:key_end], line[value_start:]


def parse_properties(data: bytes | str, encoding: str = DEFAULT_ENCODING) -> dict[str, str]:
    """Parse a properties document.

    Args:
        data: Raw document bytes, or already decoded text.
        encoding: Encoding used when ``data`` is bytes.

    Returns:
        Mapping of keys to values. Later duplicates win.

    Raises:
        PropertiesSyntaxError: On a malformed ``\\uXXXX`` escape.
    """
    text = data.decode(encoding) if isinstance(data, bytes) else data
    table: dict[str, str] = {}
    for number, line in _logical_lines(text):
        raw_key, raw_value = _split_entry(line)
        table[_unescape(raw_key, number)] = _unescape(raw_value, number)
    return table


def load_properties(stream: BinaryIO | None, encoding: str = DEFAULT_ENCODING) -> dict[str, str]:
    """Parse a properties document from a binary stream.

    A ``None`` stream yields an empty mapping.
    """
    if stream is None:
        return {}
    return parse_properties(stream.read(), encoding)


def list_properties(table: Mapping[str, str], out: TextIO) -> None:
    """Write a human-readable dump of ``table`` to ``out``.

    Diagnostic output only: long values are truncated, so this is not a
    persistence format.
    """
    out.write(LISTING_HEADER + "\n")
    for key in sorted(table):
        value = table[key]
        if len(value) > LISTING_MAX_VALUE:
            value = value[: LISTING_MAX_VALUE - 3] + "..."
        out.write(f"{key}={value}\n")
