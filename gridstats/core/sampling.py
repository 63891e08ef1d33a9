"""
gridstats.core.sampling

Purpose
- Produce the grid locations to visit for one variable given a constraint
  and a sampling strategy.

Key Behaviors
- Stride: row-major nested order. The whole grid is walked on the
  ``0, s, 2s, ...`` lattice; a bounding box is first clipped to the grid
  and then walked from its (clipped) start in steps of ``s``; a polygon is walked
  on the ``0, s, 2s, ...`` lattice inside its bounding rectangle and every
  candidate is tested for containment.
- Fraction: every constrained cell is kept independently with probability
  ``f`` (Bernoulli sampling), so realised counts vary between runs unless a
  seed is given.
- Iteration is lazy and restartable: each ``iter()`` / ``iter_chunks()``
  starts from scratch with a fresh random generator.
- ``iter_chunks`` yields one index array per dimension for vectorised reads
  and visits exactly the same cells in the same order as ``__iter__``.
"""

from __future__ import annotations

import math
from typing import Iterator, List, Sequence, Tuple

import numpy as np

from gridstats.core.constants import DEFAULT_CHUNK_SIZE, GRID_TOL
from gridstats.core.contracts import GridLocation
from gridstats.core.errors import RankMismatch
from gridstats.core.types import (
    BoundingBox,
    Fraction,
    NoConstraint,
    PolygonPath,
    SamplingConstraint,
    SamplingStrategy,
    Stride,
)
from gridstats.util.geometry import effective_constraint, points_in_polygon, polygon_bounds


def _lattice_range(lo: float, hi: float, step: int, size: int) -> np.ndarray:
    """Lattice indices ``k * step`` inside [lo, hi] and the grid [0, size)."""
    first = max(0, math.ceil(lo - GRID_TOL))
    last = min(size - 1, math.floor(hi + GRID_TOL))
    if last < first:
        return np.empty(0, dtype=np.int64)
    first = -(-first // step) * step
    return np.arange(first, last + 1, step, dtype=np.int64)


class SampleIterator:
    """Lazy sequence of ``GridLocation`` tuples for one variable."""

    def __init__(
        self,
        extent: Sequence[int],
        constraint: SamplingConstraint | None = None,
        strategy: SamplingStrategy | None = None,
    ):
        self.extent: Tuple[int, ...] = tuple(int(n) for n in extent)
        self.rank = len(self.extent)
        self.constraint = effective_constraint(constraint or NoConstraint(), self.rank)
        self.strategy = strategy or Stride()
        if isinstance(self.constraint, BoundingBox) and self.constraint.rank != self.rank:
            raise RankMismatch(
                f"Bounding box rank {self.constraint.rank} does not match variable rank {self.rank}"
            )
        self._axes = self._build_axes()

    # ---- setup ----------------------------------------------------------

    def _steps(self) -> Tuple[int, ...]:
        match self.strategy:
            case Stride():
                return self.strategy.for_rank(self.rank)
            case Fraction():
                return (1,) * self.rank
        raise TypeError(f"Unsupported strategy: {self.strategy!r}")

    def _build_axes(self) -> List[np.ndarray]:
        steps = self._steps()
        match self.constraint:
            case NoConstraint():
                return [np.arange(0, n, s, dtype=np.int64) for n, s in zip(self.extent, steps)]
            case BoundingBox(start=start, end=end):
                return [
                    np.arange(max(lo, 0), min(hi, n - 1) + 1, s, dtype=np.int64)
                    for lo, hi, s, n in zip(start, end, steps, self.extent)
                ]
            case PolygonPath(vertices=vertices):
                bounds = polygon_bounds(vertices)
                if bounds is None:
                    return [np.empty(0, dtype=np.int64) for _ in self.extent]
                r0, c0, r1, c1 = bounds
                return [
                    _lattice_range(r0, r1, steps[0], self.extent[0]),
                    _lattice_range(c0, c1, steps[1], self.extent[1]),
                ]
        raise TypeError(f"Unsupported constraint: {self.constraint!r}")

    # ---- sizes ----------------------------------------------------------

    @property
    def candidate_count(self) -> int:
        """Number of cells enumerated before polygon and fraction filtering."""
        return int(np.prod([len(a) for a in self._axes], dtype=np.int64)) if self._axes else 0

    def estimate_count(self) -> int:
        """Expected number of visited cells (upper bound for polygons)."""
        n = self.candidate_count
        if isinstance(self.strategy, Fraction):
            return int(math.ceil(n * float(self.strategy.value)))
        return n

    # ---- iteration ------------------------------------------------------

    def iter_chunks(self, chunk_size: int = DEFAULT_CHUNK_SIZE) -> Iterator[Tuple[np.ndarray, ...]]:
        """Yield tuples of per-dimension index arrays, at most ``chunk_size`` long."""
        total = self.candidate_count
        if total == 0:
            return
        chunk_size = max(1, int(chunk_size))
        shape = tuple(len(a) for a in self._axes)
        polygon = self.constraint.vertices if isinstance(self.constraint, PolygonPath) else None
        rng = None
        fraction = None
        if isinstance(self.strategy, Fraction):
            fraction = float(self.strategy.value)
            rng = np.random.default_rng(self.strategy.seed)

        for begin in range(0, total, chunk_size):
            flat = np.arange(begin, min(begin + chunk_size, total), dtype=np.int64)
            positions = np.unravel_index(flat, shape)
            index = tuple(axis[pos] for axis, pos in zip(self._axes, positions))
            keep = None
            if polygon is not None:
                keep = points_in_polygon(index[0], index[1], polygon)
            if rng is not None:
                draw = rng.random(flat.size) < fraction
                keep = draw if keep is None else (keep & draw)
            if keep is not None:
                index = tuple(idx[keep] for idx in index)
            if index[0].size:
                yield index

    def __iter__(self) -> Iterator[GridLocation]:
        for index in self.iter_chunks():
            yield from zip(*(idx.tolist() for idx in index))

    def __repr__(self) -> str:
        return (
            f"SampleIterator(extent={self.extent}, constraint={self.constraint!r}, "
            f"strategy={self.strategy!r})"
        )


__all__ = ["SampleIterator"]
