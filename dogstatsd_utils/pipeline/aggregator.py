"""
Streaming statistics aggregator.

Responsibilities (kept minimal):
- Count every observed event as valid or failed, by type and by reason.
- Feed per-message structure (name length, tag count, value count) and a few
  finer distributions into fixed-size sketches.
- Estimate distinct contexts (name + tag set) and distinct tags with
  HyperLogLog counters, so neither needs memory proportional to the input.
- Merge with another aggregator built from a disjoint sub-stream.
- Hand out frozen snapshots; later observations never change a snapshot.

Every observe() call is O(1) amortized and memory does not grow with the
number of messages seen.
"""

from __future__ import annotations

from typing import Dict, Optional

from datasketch import HyperLogLog

from ..config import AnalysisConfig
from ..dto import (
    AggregateSnapshot,
    FailureReason,
    MetricType,
    ParsedMessage,
    ParseFailure,
    ParseResult,
)
from .sketch import Sketch

# Event kinds that have numeric values worth sketching.
_VALUED_TYPES = frozenset(
    {
        MetricType.COUNT,
        MetricType.GAUGE,
        MetricType.HISTOGRAM,
        MetricType.DISTRIBUTION,
        MetricType.SET,
        MetricType.TIMER,
    }
)


class StatsAggregator:
    """
    Single-pass accumulator over parsed messages and parse failures.

    Usage:
        agg = StatsAggregator(cfg)
        for event in events:
            agg.observe(event)
        snap = agg.snapshot()
    """

    def __init__(self, cfg: Optional[AnalysisConfig] = None) -> None:
        self._cfg = cfg or AnalysisConfig()

        self.total_count = 0
        self.valid_count = 0
        self.failure_count = 0
        self.count_by_type: Dict[MetricType, int] = {t: 0 for t in MetricType}
        self.failure_count_by_reason: Dict[FailureReason, int] = {
            r: 0 for r in FailureReason if r is not FailureReason.EMPTY_LINE
        }

        self.name_length = self._new_sketch()
        self.tag_count = self._new_sketch()
        self.value_count = self._new_sketch()
        self.values = self._new_sketch()
        self.tag_length = self._new_sketch()
        self.unicode_tags = self._new_sketch()

        self.multivalue_count = 0
        self.float_value_count = 0
        self.sampled_count = 0

        # metric messages only, like the value sketch
        self.contexts = self._new_counter()
        self.unique_tags = self._new_counter()

    # --- observation ---

    def observe(self, event: ParseResult) -> None:
        """
        Fold one parsed message or parse failure into the running state.

        Empty-line failures are not messages; they are rejected here so a
        caller cannot skew the totals by forwarding them.
        """
        if isinstance(event, ParseFailure):
            if event.reason is FailureReason.EMPTY_LINE:
                raise ValueError("empty lines are not messages and must not be observed")
            self.total_count += 1
            self.failure_count += 1
            self.failure_count_by_reason[event.reason] += 1
            return

        self.total_count += 1
        self.valid_count += 1
        self.count_by_type[event.type] += 1
        self._observe_structure(event)

    def _observe_structure(self, msg: ParsedMessage) -> None:
        self.name_length.add(len(msg.name.encode("utf-8")))
        self.tag_count.add(len(msg.tags))
        # one observation per message, however many values it packs
        self.value_count.add(len(msg.values))

        if len(msg.values) > 1:
            self.multivalue_count += 1
        if msg.sample_rate is not None and msg.sample_rate < 1.0:
            self.sampled_count += 1

        if msg.type in _VALUED_TYPES:
            for v in msg.values:
                self.values.add(v)
                if v != round(v):
                    self.float_value_count += 1
            self.contexts.update(_context_key(msg))
            for tag in msg.tags:
                self.unique_tags.update(tag.encode("utf-8"))

        non_ascii = 0
        for tag in msg.tags:
            self.tag_length.add(len(tag.encode("utf-8")))
            if not tag.isascii():
                non_ascii += 1
        self.unicode_tags.add(non_ascii)

    # --- combination ---

    def merge(self, other: "StatsAggregator") -> None:
        """
        Fold an aggregator built from a disjoint sub-stream into this one.
        Counters add and sketches merge; the result does not depend on
        which shard is merged into which.
        """
        self.total_count += other.total_count
        self.valid_count += other.valid_count
        self.failure_count += other.failure_count
        for t, n in other.count_by_type.items():
            self.count_by_type[t] += n
        for r, n in other.failure_count_by_reason.items():
            self.failure_count_by_reason[r] += n

        self.name_length.merge(other.name_length)
        self.tag_count.merge(other.tag_count)
        self.value_count.merge(other.value_count)
        self.values.merge(other.values)
        self.tag_length.merge(other.tag_length)
        self.unicode_tags.merge(other.unicode_tags)

        self.multivalue_count += other.multivalue_count
        self.float_value_count += other.float_value_count
        self.sampled_count += other.sampled_count
        self.contexts.merge(other.contexts)
        self.unique_tags.merge(other.unique_tags)

    # --- output ---

    def snapshot(self, *, partial: bool = False, error: Optional[str] = None) -> AggregateSnapshot:
        """
        Copy the current state into an immutable AggregateSnapshot. The
        aggregator stays usable; the snapshot does not follow later changes.
        """
        return AggregateSnapshot(
            total_count=self.total_count,
            valid_count=self.valid_count,
            failure_count=self.failure_count,
            count_by_type=dict(self.count_by_type),
            failure_count_by_reason=dict(self.failure_count_by_reason),
            name_length_sketch=self.name_length.copy(),
            tag_count_sketch=self.tag_count.copy(),
            value_count_sketch=self.value_count.copy(),
            value_sketch=self.values.copy(),
            tag_length_sketch=self.tag_length.copy(),
            unicode_tag_sketch=self.unicode_tags.copy(),
            multivalue_count=self.multivalue_count,
            float_value_count=self.float_value_count,
            sampled_count=self.sampled_count,
            context_count=_estimate(self.contexts),
            unique_tag_count=_estimate(self.unique_tags),
            partial=partial,
            error=error,
        )

    def _new_sketch(self) -> Sketch:
        return Sketch(self._cfg.relative_accuracy, self._cfg.bin_limit)

    def _new_counter(self) -> HyperLogLog:
        return HyperLogLog(p=self._cfg.cardinality_precision)


def _context_key(msg: ParsedMessage) -> bytes:
    """Name plus the sorted, deduplicated tag set; a newline occurs in neither."""
    return "\n".join((msg.name, *sorted(set(msg.tags)))).encode("utf-8")


def _estimate(counter: HyperLogLog) -> int:
    return int(round(counter.count()))
