"""In-memory variables backed by numpy arrays.

Useful for library callers that already hold their data in memory and for
tests. Cells are invalid when they are NaN, equal to ``nodata`` or flagged
in ``mask``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Sequence, Tuple

import numpy as np

from gridstats.core.contracts import GridLocation
from gridstats.io.transform import GeoTransform


class ArrayVariable:
    def __init__(
        self,
        name: str,
        data: np.ndarray,
        *,
        nodata: float | None = None,
        mask: np.ndarray | None = None,
    ):
        self.name = str(name)
        self._data = np.asarray(data, dtype=np.float64)
        if self._data.ndim == 0:
            raise ValueError(f"Variable '{name}' must have at least one dimension")
        invalid = np.isnan(self._data)
        if nodata is not None:
            invalid |= self._data == nodata
        if mask is not None:
            invalid |= np.asarray(mask, dtype=bool)
        self._valid = ~invalid

    @property
    def rank(self) -> int:
        return self._data.ndim

    @property
    def extent(self) -> Tuple[int, ...]:
        return tuple(int(n) for n in self._data.shape)

    def read_at(self, location: GridLocation) -> Tuple[float, bool]:
        loc = tuple(location)
        return float(self._data[loc]), bool(self._valid[loc])

    def read_many(self, index: Sequence[np.ndarray]) -> Tuple[np.ndarray, np.ndarray]:
        idx = tuple(index)
        return self._data[idx], self._valid[idx]

    def __repr__(self) -> str:
        return f"ArrayVariable(name={self.name!r}, extent={self.extent})"


@dataclass
class ArrayDataset:
    """Ordered collection of in-memory variables with an optional transform."""

    variables_list: List[ArrayVariable] = field(default_factory=list)
    transform: GeoTransform | None = None

    def variables(self) -> List[ArrayVariable]:
        return list(self.variables_list)

    @property
    def names(self) -> List[str]:
        return [v.name for v in self.variables_list]


__all__ = ["ArrayVariable", "ArrayDataset"]
