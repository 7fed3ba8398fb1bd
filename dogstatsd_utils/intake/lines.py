"""
Line extraction.

Turns a lazy sequence of payload chunks into newline-delimited message
strings. A line cut by a chunk boundary is carried over and completed by the
next chunk, so no message is ever emitted in pieces. Only the trailing
partial line is buffered between chunks.
"""

from __future__ import annotations

from typing import Iterable, Iterator, Literal

_NL = b"\n"


def iter_lines(
    chunks: Iterable[bytes],
    *,
    errors: Literal["replace", "strict"] = "replace",
) -> Iterator[str]:
    """
    Split chunks on newlines and decode each complete line as UTF-8.

    - A trailing carriage return is removed ("\\r\\n" line endings).
    - Empty lines are yielded as "" (the parser classifies them).
    - A final line without a newline is yielded once the chunks run out.
    """
    carry = b""
    for chunk in chunks:
        if not chunk:
            continue
        buf = carry + chunk if carry else chunk
        parts = buf.split(_NL)
        carry = parts.pop()
        for raw in parts:
            yield _decode(raw, errors)
    if carry:
        yield _decode(carry, errors)


def _decode(raw: bytes, errors: str) -> str:
    if raw.endswith(b"\r"):
        raw = raw[:-1]
    return raw.decode("utf-8", errors=errors)
