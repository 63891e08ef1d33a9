"""
gridstats.core.types

Tagged variants describing *where* to sample (``SamplingConstraint``) and
*how densely* (``SamplingStrategy``). Instances are immutable and are built
once per invocation by :mod:`gridstats.core.constraints`.

Constraint variants
- ``NoConstraint``: the whole grid.
- ``BoundingBox(start, end)``: inclusive integer limits, one per dimension.
- ``PolygonPath(vertices)``: (row, col) vertices of a closed path in grid
  coordinates; the closing edge is implicit.

Strategy variants
- ``Stride(steps)``: regular subsampling, one step per dimension or a single
  step broadcast to every dimension.
- ``Fraction(value, seed)``: independent per-cell inclusion with probability
  ``value``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple, Union

from gridstats.core.constants import DEFAULT_STRIDE
from gridstats.core.errors import RankMismatch


@dataclass(frozen=True)
class NoConstraint:
    pass


@dataclass(frozen=True)
class BoundingBox:
    start: Tuple[int, ...]
    end: Tuple[int, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "start", tuple(int(v) for v in self.start))
        object.__setattr__(self, "end", tuple(int(v) for v in self.end))
        if len(self.start) != len(self.end):
            raise RankMismatch(
                f"Start/end limits have different ranks ({len(self.start)} != {len(self.end)})"
            )

    @property
    def rank(self) -> int:
        return len(self.start)


@dataclass(frozen=True)
class PolygonPath:
    vertices: Tuple[Tuple[float, float], ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(
            self,
            "vertices",
            tuple((float(r), float(c)) for r, c in self.vertices),
        )


SamplingConstraint = Union[NoConstraint, BoundingBox, PolygonPath]


@dataclass(frozen=True)
class Stride:
    steps: Tuple[int, ...] = (DEFAULT_STRIDE,)

    def __post_init__(self) -> None:
        object.__setattr__(self, "steps", tuple(int(s) for s in self.steps))

    def for_rank(self, rank: int) -> Tuple[int, ...]:
        """Return one step per dimension, broadcasting a single step."""
        if len(self.steps) == 1:
            return self.steps * rank
        if len(self.steps) != rank:
            raise RankMismatch(f"Stride has {len(self.steps)} entries for a rank-{rank} variable")
        return self.steps


@dataclass(frozen=True)
class Fraction:
    value: float
    seed: int | None = None


SamplingStrategy = Union[Stride, Fraction]


__all__ = [
    "NoConstraint",
    "BoundingBox",
    "PolygonPath",
    "SamplingConstraint",
    "Stride",
    "Fraction",
    "SamplingStrategy",
]
