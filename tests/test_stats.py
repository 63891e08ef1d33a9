from __future__ import annotations

import math

import numpy as np
import pytest

from gridstats.core.stats import StatisticsAccumulator, median_by_selection
from gridstats.methods.variable_stats import compute_statistics


def _feed(values, valid=None) -> StatisticsAccumulator:
    acc = StatisticsAccumulator()
    valid = [True] * len(values) if valid is None else valid
    for v, ok in zip(values, valid):
        acc.add(v, ok)
    return acc


def test_row_grid_statistics(row_grid) -> None:
    res = compute_statistics(row_grid)
    assert res.values == 16
    assert res.valid == 16
    assert res.min == 0.0
    assert res.max == 3.0
    assert res.mean == pytest.approx(1.5)
    assert res.stdev == pytest.approx(math.sqrt(1.25))
    assert res.median == pytest.approx(1.5)


def test_no_valid_values_gives_nan() -> None:
    res = _feed([5.0, 7.0], [False, False]).result()
    assert res.values == 2
    assert res.valid == 0
    assert not res.has_data
    for field in (res.min, res.max, res.mean, res.stdev, res.median, res.adev):
        assert math.isnan(field)
    assert res.histogram == ()


def test_empty_accumulator() -> None:
    res = StatisticsAccumulator().result()
    assert res.values == 0 and res.valid == 0
    assert math.isnan(res.mean)


def test_invalid_values_are_counted_but_ignored() -> None:
    res = _feed([1.0, 1000.0, 3.0], [True, False, True]).result()
    assert res.values == 3
    assert res.valid == 2
    assert res.max == 3.0
    assert res.mean == pytest.approx(2.0)


def test_nan_flagged_valid_is_treated_as_invalid() -> None:
    res = _feed([1.0, math.nan], [True, True]).result()
    assert res.values == 2
    assert res.valid == 1
    assert res.mean == 1.0


def test_population_stdev() -> None:
    res = _feed([2.0, 4.0, 4.0, 4.0, 5.0, 5.0, 7.0, 9.0]).result()
    assert res.mean == pytest.approx(5.0)
    assert res.stdev == pytest.approx(2.0)


def test_single_value() -> None:
    res = _feed([4.25]).result()
    assert res.stdev == 0.0
    assert res.median == 4.25
    assert res.min == res.max == 4.25


@pytest.mark.parametrize(
    "values, expected",
    [([3.0, 1.0, 2.0], 2.0), ([4.0, 1.0, 3.0, 2.0], 2.5), ([7.0], 7.0), ([-1.0, 1.0], 0.0)],
)
def test_median(values, expected) -> None:
    assert median_by_selection(np.array(values)) == expected
    assert _feed(values).result().median == expected


def test_median_of_empty_is_nan() -> None:
    assert math.isnan(median_by_selection(np.array([])))


def test_buffer_grows_past_expected_count() -> None:
    acc = StatisticsAccumulator(expected_count=1)
    for v in range(1001):
        acc.add(float(v), True)
    res = acc.result()
    assert res.valid == 1001
    assert res.median == 500.0


def test_mean_absolute_deviation() -> None:
    assert _feed([1.0, 2.0, 3.0, 4.0]).result().adev == pytest.approx(1.0)


def test_histogram_counts_every_valid_value() -> None:
    res = _feed([float(v) for v in range(250)]).result()
    assert len(res.histogram) == 100
    assert sum(res.histogram) == 250


def test_chunked_and_single_updates_agree() -> None:
    rng = np.random.default_rng(3)
    values = rng.normal(10.0, 4.0, size=1000)
    valid = rng.random(1000) > 0.2

    single = _feed(values.tolist(), valid.tolist()).result()

    acc = StatisticsAccumulator(expected_count=100)
    for start in range(0, 1000, 137):
        acc.add_many(values[start : start + 137], valid[start : start + 137])
    chunked = acc.result()

    assert chunked.values == single.values == 1000
    assert chunked.valid == single.valid
    assert chunked.min == single.min
    assert chunked.max == single.max
    assert chunked.mean == pytest.approx(single.mean)
    assert chunked.stdev == pytest.approx(single.stdev)
    assert chunked.median == pytest.approx(single.median)
    assert chunked.adev == pytest.approx(single.adev)
