"""
Report rendering for an AggregateSnapshot.

Two pure functions over the same data:
- snapshot_to_dict(snapshot, quantiles) -> JSON-serializable dict
- render_report(snapshot, quantiles)    -> human-readable text

Output depends only on the snapshot: keys and rows are emitted in a fixed
order and every float is rounded the same way, so equal snapshots render to
identical text.
"""

from __future__ import annotations

import math
from typing import Any, Dict, List, Optional, Sequence

from ..dto import AggregateSnapshot, FailureReason, MetricType
from ..pipeline.sketch import Sketch

DEFAULT_QUANTILES = (0.5, 0.9, 0.99)

_ATTRIBUTE_LABELS = {
    "name_length": "Name length",
    "tags_per_message": "Tags per message",
    "values_per_message": "Values per message",
    "value": "Metric value",
    "tag_length": "Tag length",
    "unicode_tags_per_message": "Unicode tags per message",
}


def snapshot_to_dict(
    snapshot: AggregateSnapshot, quantiles: Sequence[float] = DEFAULT_QUANTILES
) -> Dict[str, Any]:
    """
    Flatten a snapshot into plain dicts/ints/floats (stable key order).
    """
    return {
        "partial": snapshot.partial,
        "error": snapshot.error,
        "total": snapshot.total_count,
        "valid": snapshot.valid_count,
        "failed": snapshot.failure_count,
        "by_type": {t.value: snapshot.count_by_type.get(t, 0) for t in MetricType},
        "failures_by_reason": {
            r.value: snapshot.failure_count_by_reason.get(r, 0)
            for r in FailureReason
            if r is not FailureReason.EMPTY_LINE
        },
        "multivalue_messages": snapshot.multivalue_count,
        "float_values": snapshot.float_value_count,
        "sampled_messages": snapshot.sampled_count,
        "unique_tags": snapshot.unique_tag_count,
        "contexts": snapshot.context_count,
        "attributes": {
            name: _summarize(sketch, quantiles) for name, sketch in snapshot.attributes().items()
        },
    }


def render_report(
    snapshot: AggregateSnapshot, quantiles: Sequence[float] = DEFAULT_QUANTILES
) -> str:
    """Plain-text summary of a snapshot."""
    data = snapshot_to_dict(snapshot, quantiles)
    lines: List[str] = []

    if data["partial"]:
        lines.append(f"PARTIAL REPORT (stream aborted: {data['error']})")
        lines.append("")

    lines.append(f"Total messages: {data['total']}")
    lines.append(f"Valid messages: {data['valid']}")
    lines.append(f"Failed messages: {data['failed']}")
    lines.append("")

    lines.append("Messages by type:")
    for name, n in data["by_type"].items():
        lines.append(f"  {name:<14} {n}")
    lines.append("")

    if data["failed"]:
        lines.append("Failures by reason:")
        for name, n in data["failures_by_reason"].items():
            if n:
                lines.append(f"  {name:<22} {n}")
        lines.append("")

    lines.append(f"Multi-value messages: {data['multivalue_messages']}")
    lines.append(f"Sampled messages: {data['sampled_messages']}")
    lines.append(f"Fractional values: {data['float_values']}")
    lines.append(f"Unique tags: {data['unique_tags']}")
    lines.append(f"Contexts: {data['contexts']}")

    for name, summary in data["attributes"].items():
        lines.append("")
        lines.append(f"{_ATTRIBUTE_LABELS.get(name, name)}:")
        if summary is None:
            lines.append("  n/a")
            continue
        lines.append(
            f"  count={summary['count']} min={_fmt(summary['min'])} "
            f"max={_fmt(summary['max'])} mean={_fmt(summary['mean'])}"
        )
        lines.append(
            "  " + " ".join(f"{label}={_fmt(v)}" for label, v in summary["quantiles"].items())
        )

    return "\n".join(lines) + "\n"


# === helpers ===


def _summarize(sketch: Sketch, quantiles: Sequence[float]) -> Optional[Dict[str, Any]]:
    if sketch.count == 0:
        return None
    return {
        "count": sketch.count,
        "min": _round(sketch.min),
        "max": _round(sketch.max),
        "sum": _round(sketch.sum),
        "mean": _round(sketch.mean),
        "quantiles": {_label(q): _round(sketch.quantile(q)) for q in quantiles},
    }


def _label(q: float) -> str:
    """0.5 -> 'p50', 0.999 -> 'p99.9'."""
    pct = round(q * 100, 6)
    return f"p{pct:g}"


def _round(v: Optional[float]) -> Optional[float]:
    # a sum of large finite values can overflow; JSON has no inf
    if v is None or not math.isfinite(v):
        return None
    return round(float(v), 4)


def _fmt(v: Optional[float]) -> str:
    if v is None:
        return "n/a"
    if float(v).is_integer():
        return str(int(v))
    return f"{v:.4f}".rstrip("0").rstrip(".")
