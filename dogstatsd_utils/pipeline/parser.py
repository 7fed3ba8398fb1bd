"""
Structural parser for DogStatsD protocol lines.

Turns one raw line into either a ParsedMessage or a ParseFailure. Parsing
never raises for bad input; the failure reason says what was wrong.

Metric grammar:

    <name>:<value>[:<value>...]|<type>[|@<rate>][|#<tag>,<tag>...][|c:<id>][|T<ts>][|e:<data>]

Service check:

    _sc|<name>|<status>[|d:<ts>][|h:<host>][|#<tags>][|m:<message>]

Event:

    _e{<title_len>,<text_len>}:<title>|<text>[|d:..][|h:..][|p:..][|t:..][|s:..][|k:..][|#<tags>]

Public API:
- parse_line(line) -> ParsedMessage | ParseFailure
"""

from __future__ import annotations

import math
import re
from typing import Dict, List, Optional, Tuple

from ..dto import FailureReason, MetricType, ParsedMessage, ParseFailure, ParseResult

_TYPE_CODES: Dict[str, MetricType] = {
    "c": MetricType.COUNT,
    "g": MetricType.GAUGE,
    "h": MetricType.HISTOGRAM,
    "d": MetricType.DISTRIBUTION,
    "s": MetricType.SET,
    "ms": MetricType.TIMER,
}

# Plain decimal/scientific notation only: no nan/inf, no digit separators.
_NUMBER = re.compile(r"[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?")
_EVENT_HEAD = re.compile(r"_e\{(\d+),(\d+)\}:")

_SERVICE_CHECK_STATUSES = (0, 1, 2, 3)
_SERVICE_CHECK_FIELDS = ("d:", "h:", "m:")
_EVENT_FIELDS = ("d:", "h:", "p:", "t:", "s:", "k:")


class _Malformed(Exception):
    """Internal signal carrying a failure reason out of nested helpers."""

    def __init__(self, reason: FailureReason, detail: str) -> None:
        super().__init__(detail)
        self.reason = reason
        self.detail = detail


def parse_line(line: str) -> ParseResult:
    """
    Parse one raw message line.

    Returns
    -------
    ParsedMessage
        On success.
    ParseFailure
        On any structural problem. An empty (or whitespace-only) line gives
        reason EMPTY_LINE; callers skip those rather than count them.
    """
    text = line.rstrip()
    if not text:
        return ParseFailure(FailureReason.EMPTY_LINE, line)

    try:
        if text.startswith("_sc|"):
            return _parse_service_check(text)
        if text.startswith("_e{"):
            return _parse_event(text)
        return _parse_metric(text)
    except _Malformed as m:
        return ParseFailure(m.reason, line, m.detail)


def parse_number(token: str) -> Optional[float]:
    """Strict numeric parse; None if `token` is not a plain number."""
    if not _NUMBER.fullmatch(token):
        return None
    v = float(token)
    # "1e999" matches the pattern but overflows
    return v if math.isfinite(v) else None


# === Metrics ===


def _parse_metric(text: str) -> ParsedMessage:
    sections = text.split("|")
    head = sections[0]

    name, sep, raw_values = head.partition(":")
    if not name:
        raise _Malformed(FailureReason.MISSING_NAME, "empty metric name")
    if not sep or not raw_values:
        raise _Malformed(FailureReason.MISSING_VALUE, f"no value for {name!r}")

    values: List[float] = []
    for token in raw_values.split(":"):
        if not token:
            raise _Malformed(FailureReason.MISSING_VALUE, f"empty value in {raw_values!r}")
        v = parse_number(token)
        if v is None:
            raise _Malformed(FailureReason.BAD_NUMERIC_VALUE, f"not a number: {token!r}")
        values.append(v)

    if len(sections) < 2:
        raise _Malformed(FailureReason.UNKNOWN_TYPE, "missing type section")
    mtype = _TYPE_CODES.get(sections[1])
    if mtype is None:
        raise _Malformed(FailureReason.UNKNOWN_TYPE, f"unknown type code {sections[1]!r}")

    ext = _parse_metric_extensions(sections[2:])
    return ParsedMessage(
        name=name,
        values=tuple(values),
        type=mtype,
        sample_rate=ext.get("rate"),  # type: ignore[arg-type]
        tags=ext.get("tags", ()),  # type: ignore[arg-type]
        container_id=ext.get("container"),  # type: ignore[arg-type]
        timestamp=ext.get("timestamp"),  # type: ignore[arg-type]
    )


def _parse_metric_extensions(sections: List[str]) -> Dict[str, object]:
    out: Dict[str, object] = {}

    def _once(key: str, section: str) -> None:
        if key in out:
            raise _Malformed(FailureReason.MALFORMED_TAG_SECTION, f"repeated section {section!r}")

    for section in sections:
        if section.startswith("@"):
            _once("rate", section)
            out["rate"] = _sample_rate(section[1:])
        elif section.startswith("#"):
            _once("tags", section)
            out["tags"] = _tags(section[1:])
        elif section.startswith("c:"):
            _once("container", section)
            out["container"] = section[2:]
        elif section.startswith("T"):
            _once("timestamp", section)
            out["timestamp"] = _timestamp(section[1:])
        elif section.startswith("e:"):
            _once("external", section)
            out["external"] = section[2:]
        else:
            raise _Malformed(FailureReason.MALFORMED_TAG_SECTION, f"unrecognized section {section!r}")
    return out


def _sample_rate(token: str) -> float:
    rate = parse_number(token)
    if rate is None or not 0.0 < rate <= 1.0:
        raise _Malformed(FailureReason.MALFORMED_TAG_SECTION, f"bad sample rate {token!r}")
    return rate


def _tags(body: str) -> Tuple[str, ...]:
    tags = tuple(body.split(","))
    if any(not t for t in tags):
        raise _Malformed(FailureReason.MALFORMED_TAG_SECTION, f"empty tag in {body!r}")
    return tags


def _timestamp(token: str) -> int:
    if not token.isdigit():
        raise _Malformed(FailureReason.MALFORMED_TAG_SECTION, f"bad timestamp {token!r}")
    return int(token)


# === Service checks ===


def _parse_service_check(text: str) -> ParsedMessage:
    sections = text.split("|")
    if len(sections) < 2 or not sections[1]:
        raise _Malformed(FailureReason.MISSING_NAME, "service check without a name")
    name = sections[1]
    if len(sections) < 3 or not sections[2]:
        raise _Malformed(FailureReason.MISSING_VALUE, f"service check {name!r} without a status")

    status = sections[2]
    if not status.isdigit() or int(status) not in _SERVICE_CHECK_STATUSES:
        raise _Malformed(FailureReason.BAD_NUMERIC_VALUE, f"bad service check status {status!r}")

    tags: Tuple[str, ...] = ()
    seen = set()
    for section in sections[3:]:
        if section.startswith("m:"):
            # the message is last and may itself contain '|'
            break
        key = "#" if section.startswith("#") else section[:2]
        if key in seen or (key != "#" and key not in _SERVICE_CHECK_FIELDS):
            raise _Malformed(FailureReason.MALFORMED_TAG_SECTION, f"bad service check section {section!r}")
        seen.add(key)
        if key == "#":
            tags = _tags(section[1:])

    return ParsedMessage(
        name=name,
        values=(float(status),),
        type=MetricType.SERVICE_CHECK,
        tags=tags,
    )


# === Events ===


def _parse_event(text: str) -> ParsedMessage:
    m = _EVENT_HEAD.match(text)
    if m is None:
        raise _Malformed(FailureReason.MALFORMED_TAG_SECTION, "bad event length header")
    title_len, text_len = int(m.group(1)), int(m.group(2))

    body = text[m.end():].encode("utf-8")
    title = body[:title_len]
    if len(title) < title_len or body[title_len : title_len + 1] != b"|":
        raise _Malformed(FailureReason.MALFORMED_TAG_SECTION, "event title length mismatch")
    rest = body[title_len + 1 :]
    event_text = rest[:text_len]
    if len(event_text) < text_len or rest[text_len : text_len + 1] not in (b"", b"|"):
        raise _Malformed(FailureReason.MALFORMED_TAG_SECTION, "event text length mismatch")
    if not title:
        raise _Malformed(FailureReason.MISSING_NAME, "event without a title")

    try:
        title_str = title.decode("utf-8")
        trailer = rest[text_len + 1 :].decode("utf-8")
    except UnicodeDecodeError:
        raise _Malformed(FailureReason.MALFORMED_TAG_SECTION, "event length splits a character") from None

    tags: Tuple[str, ...] = ()
    seen = set()
    for section in trailer.split("|") if trailer else ():
        key = "#" if section.startswith("#") else section[:2]
        if key in seen or (key != "#" and key not in _EVENT_FIELDS):
            raise _Malformed(FailureReason.MALFORMED_TAG_SECTION, f"bad event section {section!r}")
        seen.add(key)
        if key == "#":
            tags = _tags(section[1:])

    return ParsedMessage(
        name=title_str,
        values=(1.0,),
        type=MetricType.EVENT,
        tags=tags,
    )
