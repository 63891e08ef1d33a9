"""
gridstats.core.contracts

Purpose
- Describe the collaborators the sampling engine calls into but never
  implements itself: a geographic-to-grid transform per dataset and a
  value reader per variable.

Key Behaviors
- ``Transform.project_to_grid`` returns fractional grid coordinates where
  integer values are cell centres; it raises ``ProjectionFailure`` for
  locations outside its domain.
- ``VariableAccess.read_at`` returns ``(value, is_valid)`` for one location.
- ``BulkVariableAccess.read_many`` is an optional vectorised variant that
  takes one index array per dimension; the engine prefers it when present.
"""

from __future__ import annotations

from typing import Protocol, Sequence, Tuple, runtime_checkable

import numpy as np

GridLocation = Tuple[int, ...]


@runtime_checkable
class Transform(Protocol):
    def project_to_grid(self, lat: float, lon: float) -> Tuple[float, float]:
        ...

    def grid_extent(self) -> Tuple[int, ...]:
        ...


@runtime_checkable
class VariableAccess(Protocol):
    name: str

    @property
    def rank(self) -> int:
        ...

    @property
    def extent(self) -> Tuple[int, ...]:
        ...

    def read_at(self, location: GridLocation) -> Tuple[float, bool]:
        ...


@runtime_checkable
class BulkVariableAccess(VariableAccess, Protocol):
    def read_many(self, index: Sequence[np.ndarray]) -> Tuple[np.ndarray, np.ndarray]:
        ...


__all__ = ["GridLocation", "Transform", "VariableAccess", "BulkVariableAccess"]
