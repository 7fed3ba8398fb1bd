from __future__ import annotations

import math
import random

import pytest

from dogstatsd_utils.pipeline.sketch import Sketch

QUANTILES = (0.01, 0.25, 0.5, 0.75, 0.9, 0.99)


def _exact(sorted_values, q):
    return sorted_values[int(math.floor(q * (len(sorted_values) - 1)))]


def _assert_within(sketch: Sketch, values, accuracy: float) -> None:
    ordered = sorted(values)
    for q in QUANTILES:
        exact = _exact(ordered, q)
        assert abs(sketch.quantile(q) - exact) <= accuracy * abs(exact) + 1e-9, q


def test_empty_sketch():
    s = Sketch()

    assert s.count == 0
    assert s.quantile(0.5) is None
    assert s.mean is None


def test_quantiles_within_relative_accuracy():
    rng = random.Random(7)
    values = [rng.lognormvariate(3, 1.5) for _ in range(10_000)]
    s = Sketch(0.01)
    s.extend(values)

    _assert_within(s, values, 0.01)
    assert s.count == len(values)
    assert s.min == min(values)
    assert s.max == max(values)
    assert s.sum == pytest.approx(sum(values))


def test_extremes_are_exact():
    s = Sketch(0.05)
    s.extend([3.3, 17.0, 1234.5])

    assert s.quantile(0.0) == 3.3
    assert s.quantile(1.0) == 1234.5


def test_single_value():
    s = Sketch()
    s.add(42)

    for q in QUANTILES:
        assert s.quantile(q) == 42


def test_negative_and_zero_values():
    s = Sketch(0.01)
    s.extend([-5, -1, 0, 0, 3])

    assert s.quantile(0.5) == 0.0
    assert s.quantile(0.25) == pytest.approx(-1, rel=0.02)
    assert s.quantile(0.0) == -5
    assert s.quantile(1.0) == 3


def test_merge_matches_single_pass():
    rng = random.Random(11)
    values = [rng.uniform(0, 500) for _ in range(10_000)]
    whole = Sketch()
    whole.extend(values)

    left, right = Sketch(), Sketch()
    left.extend(values[:3_000])
    right.extend(values[3_000:])
    left.merge(right)

    assert left.count == whole.count
    assert left.min == whole.min
    assert left.max == whole.max
    assert left.sum == pytest.approx(whole.sum)
    for q in QUANTILES:
        assert left.quantile(q) == whole.quantile(q)


def test_merge_order_does_not_matter():
    a, b = Sketch(), Sketch()
    a.extend(range(1, 100))
    b.extend(range(50, 5_000, 7))

    ab = a.copy()
    ab.merge(b)
    ba = b.copy()
    ba.merge(a)

    for q in QUANTILES:
        assert ab.quantile(q) == ba.quantile(q)


def test_merging_an_empty_sketch_changes_nothing():
    s = Sketch()
    s.extend([1, 2, 3])
    s.merge(Sketch())

    assert (s.count, s.min, s.max) == (3, 1, 3)


def test_same_input_same_answers():
    values = [float(i % 97) for i in range(5_000)]
    a, b = Sketch(), Sketch()
    a.extend(values)
    b.extend(values)

    assert [a.quantile(q) for q in QUANTILES] == [b.quantile(q) for q in QUANTILES]


def test_small_bin_limit_keeps_high_quantiles():
    values = [1.01 ** i for i in range(2_000)]
    s = Sketch(0.01, bin_limit=64)
    s.extend(values)

    assert s.count == 2_000
    # collapsing only touches the lowest bins
    ordered = sorted(values)
    for q in (0.97, 0.99):
        assert s.quantile(q) == pytest.approx(_exact(ordered, q), rel=0.011)


def test_copy_is_independent():
    s = Sketch()
    s.extend([1, 2, 3])
    c = s.copy()
    s.add(1000)

    assert c.count == 3
    assert c.max == 3


def test_invalid_arguments():
    with pytest.raises(ValueError):
        Sketch(0)
    with pytest.raises(ValueError):
        Sketch(1.5)
    with pytest.raises(ValueError):
        Sketch().add(float("nan"))
    with pytest.raises(ValueError):
        Sketch().quantile(1.5)
    with pytest.raises(ValueError):
        Sketch(0.01).merge(Sketch(0.05))
