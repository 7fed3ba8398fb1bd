from __future__ import annotations

import json
from dataclasses import replace

from dogstatsd_utils.pipeline.aggregator import StatsAggregator
from dogstatsd_utils.pipeline.parser import parse_line
from dogstatsd_utils.reporting.renderer import render_report, snapshot_to_dict

LINES = [
    "page.views:1|c",
    "page.views:1:2:3|c|#env:prod",
    "fuel.level:0.5|g|@0.5",
    "bad",
]


def _snapshot(lines=LINES):
    agg = StatsAggregator()
    for line in lines:
        agg.observe(parse_line(line))
    return agg.snapshot()


def test_empty_report():
    text = render_report(StatsAggregator().snapshot())

    assert "Total messages: 0" in text
    assert "n/a" in text
    assert "Failures by reason" not in text
    assert "PARTIAL" not in text


def test_report_contents():
    text = render_report(_snapshot())

    assert "Total messages: 4" in text
    assert "Valid messages: 3" in text
    assert "Failed messages: 1" in text
    assert "Failures by reason:" in text
    assert "missing_value" in text
    assert "Multi-value messages: 1" in text
    assert "Sampled messages: 1" in text
    assert "Fractional values: 1" in text
    assert "p50=" in text and "p99=" in text


def test_rendering_is_deterministic():
    assert render_report(_snapshot()) == render_report(_snapshot())


def test_partial_report_is_labelled():
    snap = replace(_snapshot(), partial=True, error="truncated frame")
    text = render_report(snap)

    assert text.startswith("PARTIAL REPORT (stream aborted: truncated frame)")


def test_dict_is_json_ready():
    data = snapshot_to_dict(_snapshot(), (0.5, 0.999))

    json.dumps(data)
    assert data["total"] == 4
    assert data["by_type"]["count"] == 2
    assert data["by_type"]["gauge"] == 1
    assert data["failures_by_reason"]["missing_value"] == 1
    assert "empty_line" not in data["failures_by_reason"]

    values = data["attributes"]["values_per_message"]
    assert values["count"] == 3
    assert values["max"] == 3
    assert list(values["quantiles"]) == ["p50", "p99.9"]


def test_unobserved_attributes_are_none():
    data = snapshot_to_dict(_snapshot(["page.views:1|c"]))

    assert data["attributes"]["tag_length"] is None
    assert data["attributes"]["name_length"]["min"] == 10


def test_contexts_and_unique_tags_are_reported():
    snap = _snapshot(["a:1|c|#x", "a:2|c|#x", "b:1|c|#y"])
    data = snapshot_to_dict(snap)

    assert data["contexts"] == 2
    assert data["unique_tags"] == 2
    text = render_report(snap)
    assert "Contexts: 2" in text
    assert "Unique tags: 2" in text


def test_overflowing_sum_is_not_written_as_infinity():
    snap = _snapshot(["a:1e308|g", "b:1e308|g"])
    data = snapshot_to_dict(snap)

    value = data["attributes"]["value"]
    assert value["sum"] is None
    assert value["mean"] is None
    assert value["max"] == 1e308
    json.dumps(data, allow_nan=False)
    assert "mean=n/a" in render_report(snap)
