"""
Data Transfer Objects (DTOs) used across the reading and analysis pipeline.

These are intentionally small, immutable (where sensible), and independent
of any I/O or decoding libraries.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Dict, Optional, Tuple, Union

if TYPE_CHECKING:
    from .pipeline.sketch import Sketch


# === Intake ===
@dataclass(frozen=True)
class Frame:
    """One framed unit of a replay container."""
    timestamp: int           # source monotonic clock, nanoseconds
    oob_len: int
    payload_len: int
    payload: bytes           # oob bytes are skipped, never kept


# === Parsed protocol message ===
class MetricType(str, Enum):
    COUNT = "count"
    GAUGE = "gauge"
    HISTOGRAM = "histogram"
    DISTRIBUTION = "distribution"
    SET = "set"
    TIMER = "timer"
    SERVICE_CHECK = "service_check"
    EVENT = "event"


class FailureReason(str, Enum):
    MISSING_NAME = "missing_name"
    MISSING_VALUE = "missing_value"
    BAD_NUMERIC_VALUE = "bad_numeric_value"
    UNKNOWN_TYPE = "unknown_type"
    MALFORMED_TAG_SECTION = "malformed_tag_section"
    EMPTY_LINE = "empty_line"


@dataclass(frozen=True)
class ParsedMessage:
    name: str
    values: Tuple[float, ...]              # at least one
    type: MetricType
    sample_rate: Optional[float] = None
    tags: Tuple[str, ...] = ()             # verbatim, order preserved, not deduplicated
    container_id: Optional[str] = None     # "|c:" extension
    timestamp: Optional[int] = None        # "|T" extension, unix seconds


@dataclass(frozen=True)
class ParseFailure:
    reason: FailureReason
    raw_text: str
    detail: Optional[str] = None


ParseResult = Union[ParsedMessage, ParseFailure]


# === Final immutable summary handed to the report renderer ===
@dataclass(frozen=True)
class AggregateSnapshot:
    total_count: int
    valid_count: int
    failure_count: int
    count_by_type: Dict[MetricType, int]
    failure_count_by_reason: Dict[FailureReason, int]

    # per-message structure (each sketch also carries count/min/max/sum)
    name_length_sketch: "Sketch"
    tag_count_sketch: "Sketch"
    value_count_sketch: "Sketch"

    # finer-grained distributions
    value_sketch: "Sketch"                 # every numeric value of metric messages
    tag_length_sketch: "Sketch"            # byte length of every tag
    unicode_tag_sketch: "Sketch"           # non-ASCII tags per message

    multivalue_count: int = 0
    float_value_count: int = 0
    sampled_count: int = 0

    # HyperLogLog estimates over metric messages
    context_count: int = 0                 # distinct name + tag set combinations
    unique_tag_count: int = 0

    # set only for best-effort runs cut short by a fatal error
    partial: bool = False
    error: Optional[str] = field(default=None)

    def attributes(self) -> Dict[str, "Sketch"]:
        """Tracked numeric attributes in report order."""
        return {
            "name_length": self.name_length_sketch,
            "tags_per_message": self.tag_count_sketch,
            "values_per_message": self.value_count_sketch,
            "value": self.value_sketch,
            "tag_length": self.tag_length_sketch,
            "unicode_tags_per_message": self.unicode_tag_sketch,
        }
