"""
Relative-error quantile sketch.

Thin wrapper over `ddsketch.LogCollapsingLowestDenseDDSketch`: values are
binned on a logarithmic scale so every quantile estimate lies within
relative error `a` of the true value, and at most `bin_limit` bins are kept
per sign (the lowest-magnitude bins collapse first, which only degrades the
lowest quantiles).

On top of the library sketch this keeps exact count/sum/min/max, clamps
estimates to [min, max], and hands out independent copies for snapshots.
Merging adds bin counts, so it is deterministic and does not depend on the
order in which sub-streams are combined.

Public API:
- Sketch(relative_accuracy, bin_limit)
- Sketch.add(value), Sketch.merge(other), Sketch.quantile(q), Sketch.copy()
"""

from __future__ import annotations

import copy
import math
from typing import Iterable, Optional

from ddsketch import LogCollapsingLowestDenseDDSketch


class Sketch:
    """
    Mergeable quantile sketch with exact count/sum/min/max.

    Parameters
    ----------
    relative_accuracy : float
        Relative error bound `a` of every quantile estimate, 0 < a < 1.
    bin_limit : int
        Maximum bins kept per sign before the lowest ones are collapsed.
    """

    def __init__(self, relative_accuracy: float = 0.01, bin_limit: int = 2048) -> None:
        if not 0.0 < relative_accuracy < 1.0:
            raise ValueError("relative_accuracy must be in (0, 1)")
        if bin_limit < 1:
            raise ValueError("bin_limit must be >= 1")
        self.relative_accuracy = float(relative_accuracy)
        self.bin_limit = int(bin_limit)
        self._sketch = LogCollapsingLowestDenseDDSketch(
            relative_accuracy=self.relative_accuracy, bin_limit=self.bin_limit
        )

        self.count = 0
        self.sum = 0.0
        self.min = math.inf
        self.max = -math.inf

    # --- observation ---

    def add(self, value: float) -> None:
        """Record one observation."""
        value = float(value)
        if not math.isfinite(value):
            raise ValueError(f"cannot add non-finite value {value!r}")
        self._sketch.add(value)

        self.count += 1
        self.sum += value
        if value < self.min:
            self.min = value
        if value > self.max:
            self.max = value

    def extend(self, values: Iterable[float]) -> None:
        for v in values:
            self.add(v)

    def merge(self, other: "Sketch") -> None:
        """
        Fold `other` into this sketch in place. Both must share the same
        relative accuracy.
        """
        if not math.isclose(self.relative_accuracy, other.relative_accuracy):
            raise ValueError("cannot merge sketches with different relative accuracy")
        if other.count == 0:
            return

        self._sketch.merge(other._sketch)
        self.count += other.count
        self.sum += other.sum
        self.min = min(self.min, other.min)
        self.max = max(self.max, other.max)

    def copy(self) -> "Sketch":
        out = Sketch(self.relative_accuracy, self.bin_limit)
        out._sketch = copy.deepcopy(self._sketch)
        out.count = self.count
        out.sum = self.sum
        out.min = self.min
        out.max = self.max
        return out

    # --- queries ---

    @property
    def mean(self) -> Optional[float]:
        return self.sum / self.count if self.count else None

    def quantile(self, q: float) -> Optional[float]:
        """
        Estimate the q-quantile (0 <= q <= 1). Returns None when empty.

        q=0 and q=1 return the exact extremes; every other estimate is
        clamped to [min, max].
        """
        if not 0.0 <= q <= 1.0:
            raise ValueError(f"quantile {q} outside [0, 1]")
        if self.count == 0:
            return None
        if q == 0.0:
            return self.min
        if q == 1.0:
            return self.max

        v = self._sketch.get_quantile_value(q)
        if v is None:
            return None
        return min(max(v, self.min), self.max)

    def __repr__(self) -> str:
        return (
            f"Sketch(count={self.count}, min={self.min}, max={self.max}, "
            f"relative_accuracy={self.relative_accuracy}, bin_limit={self.bin_limit})"
        )
