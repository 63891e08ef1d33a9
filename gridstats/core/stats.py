from __future__ import annotations
"""
gridstats.core.stats

Streaming statistics over sampled grid values.

- Count of visited cells and of valid (non-missing) cells.
- Running min / max and Welford mean / M2 over valid values; chunks are
  merged with the parallel form of the same update.
- Median by selection (numpy.partition) over a buffer of valid values that
  is preallocated from the expected sample count and grown by doubling.
- Standard deviation is population style: sqrt(M2 / valid).
- Mean absolute deviation and a fixed-bin histogram are derived from the
  same buffer once the stream ends.
"""

import math
from dataclasses import dataclass, field
from typing import Tuple

import numpy as np

from gridstats.core.constants import HISTOGRAM_BINS

# Cap on the initial buffer allocation; the buffer still grows on demand.
_MAX_PREALLOC = 1 << 22
_MIN_PREALLOC = 64


@dataclass(frozen=True)
class StatisticsResult:
    """Statistics for one variable; derived fields are NaN when valid == 0."""

    values: int
    valid: int
    min: float = math.nan
    max: float = math.nan
    mean: float = math.nan
    stdev: float = math.nan
    median: float = math.nan
    adev: float = math.nan
    histogram: Tuple[int, ...] = field(default=(), repr=False)

    @property
    def has_data(self) -> bool:
        return self.valid > 0


def median_by_selection(data: np.ndarray) -> float:
    """Median of a 1D array using partial sorting; NaN for empty input."""
    n = int(data.size)
    if n == 0:
        return math.nan
    k = n // 2
    if n % 2:
        return float(np.partition(data, k)[k])
    part = np.partition(data, (k - 1, k))
    return float((part[k - 1] + part[k]) / 2.0)


class StatisticsAccumulator:
    """Consume ``(value, is_valid)`` pairs and produce a ``StatisticsResult``."""

    def __init__(self, expected_count: int = 0, *, histogram_bins: int = HISTOGRAM_BINS):
        self.values = 0
        self.valid = 0
        self._min = math.inf
        self._max = -math.inf
        self._mean = 0.0
        self._m2 = 0.0
        self._bins = int(histogram_bins)
        capacity = min(max(int(expected_count), _MIN_PREALLOC), _MAX_PREALLOC)
        self._buffer = np.empty(capacity, dtype=np.float64)
        self._size = 0

    # ---- buffer ---------------------------------------------------------

    def _reserve(self, extra: int) -> None:
        need = self._size + extra
        if need <= self._buffer.size:
            return
        grown = np.empty(max(need, 2 * self._buffer.size), dtype=np.float64)
        grown[: self._size] = self._buffer[: self._size]
        self._buffer = grown

    # ---- updates --------------------------------------------------------

    def add(self, value: float, is_valid: bool) -> None:
        """Add one sampled cell."""
        self.values += 1
        if not is_valid:
            return
        x = float(value)
        if math.isnan(x):
            return
        self.valid += 1
        delta = x - self._mean
        self._mean += delta / self.valid
        self._m2 += delta * (x - self._mean)
        if x < self._min:
            self._min = x
        if x > self._max:
            self._max = x
        self._reserve(1)
        self._buffer[self._size] = x
        self._size += 1

    def add_many(self, values: np.ndarray, valid: np.ndarray) -> None:
        """Add a chunk of sampled cells (parallel Welford merge)."""
        vals = np.asarray(values, dtype=np.float64).ravel()
        ok = np.asarray(valid, dtype=bool).ravel() & ~np.isnan(vals)
        self.values += int(vals.size)
        chunk = vals[ok]
        n_b = int(chunk.size)
        if n_b == 0:
            return

        mean_b = float(chunk.mean())
        m2_b = float(np.sum((chunk - mean_b) ** 2))
        n_a = self.valid
        n = n_a + n_b
        delta = mean_b - self._mean
        self._mean += delta * (n_b / n)
        self._m2 += m2_b + delta * delta * (n_a * n_b / n)
        self.valid = n
        self._min = min(self._min, float(chunk.min()))
        self._max = max(self._max, float(chunk.max()))

        self._reserve(n_b)
        self._buffer[self._size : self._size + n_b] = chunk
        self._size += n_b

    # ---- result ---------------------------------------------------------

    def result(self) -> StatisticsResult:
        if self.valid == 0:
            return StatisticsResult(values=self.values, valid=0)

        data = self._buffer[: self._size]
        mean = self._mean
        histogram: Tuple[int, ...] = ()
        if math.isfinite(self._min) and math.isfinite(self._max):
            counts, _ = np.histogram(data, bins=self._bins, range=(self._min, self._max))
            histogram = tuple(int(c) for c in counts)
        return StatisticsResult(
            values=self.values,
            valid=self.valid,
            min=self._min,
            max=self._max,
            mean=mean,
            stdev=math.sqrt(max(self._m2, 0.0) / self.valid),
            median=median_by_selection(data),
            adev=float(np.mean(np.abs(data - mean))),
            histogram=histogram,
        )


__all__ = ["StatisticsResult", "StatisticsAccumulator", "median_by_selection"]
