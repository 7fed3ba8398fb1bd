from __future__ import annotations

import io

import pytest

from dogstatsd_utils.dto import AggregateSnapshot, MetricType, ParsedMessage
from dogstatsd_utils.errors import DecompressionError, FramingError
from dogstatsd_utils.intake.replay_writer import encode_replay
from dogstatsd_utils.orchestration.runner import analyze_stream, copy_messages, iter_messages
from dogstatsd_utils.pipeline.aggregator import StatsAggregator

CORRUPT_ZSTD = bytes.fromhex("28b52ffd") + b"\x00\x00" + b"\x07\x00\x00" + b"\x00" * 16


class _Collector:
    def __init__(self) -> None:
        self.lines = []

    def on_line(self, line: str) -> None:
        self.lines.append(line)


class _RecordingObserver:
    def __init__(self) -> None:
        self.events = []

    def observe(self, event) -> None:
        self.events.append(event)

    def snapshot(self) -> AggregateSnapshot:
        return StatsAggregator().snapshot()


def test_empty_input():
    snap = analyze_stream(io.BytesIO(b""))

    assert (snap.total_count, snap.valid_count, snap.failure_count) == (0, 0, 0)
    assert set(snap.count_by_type.values()) == {0}
    assert not snap.partial


def test_blank_lines_are_not_messages():
    snap = analyze_stream(io.BytesIO(b"a:1|c\n\n   \r\nb:2|g\n\n"))

    assert snap.total_count == 2
    assert snap.failure_count == 0


def test_text_and_replay_agree(sample_messages, replay_bytes):
    text = analyze_stream(io.BytesIO("\n".join(sample_messages).encode()))
    replay = analyze_stream(io.BytesIO(replay_bytes))

    assert text.total_count == replay.total_count == len(sample_messages)
    assert text.count_by_type == replay.count_by_type


def test_iter_messages_drops_blank_lines():
    assert list(iter_messages(io.BytesIO(b"a:1|c\n\nb:2|c"))) == ["a:1|c", "b:2|c"]


def test_copy_messages(sample_messages, replay_bytes):
    sink = _Collector()

    assert copy_messages(io.BytesIO(replay_bytes), sink) == len(sample_messages)
    assert sink.lines == sample_messages


def test_custom_observer_sees_events_in_order():
    obs = _RecordingObserver()
    analyze_stream(io.BytesIO(b"a:1|c\n\nbad\nb:2|g\n"), observer=obs)

    assert [getattr(e, "name", None) for e in obs.events] == ["a", None, "b"]
    assert isinstance(obs.events[2], ParsedMessage)
    assert obs.events[2].type is MetricType.GAUGE


def test_truncated_container_raises():
    blob = encode_replay(["a:1|c", "b:2|c", "c:3|c"])

    with pytest.raises(FramingError):
        analyze_stream(io.BytesIO(blob[:-2]))


def test_best_effort_returns_partial_snapshot():
    blob = encode_replay(["a:1|c", "b:2|c", "c:3|c"])
    snap = analyze_stream(io.BytesIO(blob[:-2]), best_effort=True)

    assert snap.partial
    assert snap.error
    assert snap.total_count == 2


def test_corrupt_compression():
    with pytest.raises(DecompressionError):
        analyze_stream(io.BytesIO(CORRUPT_ZSTD))

    assert analyze_stream(io.BytesIO(CORRUPT_ZSTD), best_effort=True).partial


def test_shards_merge_like_one_stream():
    lines = [f"m.{i % 5}:{i}|d|#k:{i % 3}" for i in range(10_000)]

    whole = StatsAggregator()
    analyze_stream(io.BytesIO("\n".join(lines).encode()), observer=whole)

    left, right = StatsAggregator(), StatsAggregator()
    analyze_stream(io.BytesIO(encode_replay(lines[:5_000])), observer=left)
    analyze_stream(io.BytesIO(encode_replay(lines[5_000:], compress=True)), observer=right)
    left.merge(right)

    a, b = whole.snapshot(), left.snapshot()
    assert a.total_count == b.total_count == 10_000
    for q in (0.5, 0.9, 0.99):
        assert a.value_sketch.quantile(q) == b.value_sketch.quantile(q)
