"""Containment tests in grid coordinates.

Polygons use an even-odd ray-casting rule on the first two dimensions and
count points on an edge or vertex as inside. A polygon only constrains
rank-2 grids; for any other rank it behaves like no constraint at all.
"""

from __future__ import annotations

from typing import Sequence, Tuple

import numpy as np

from gridstats.core.constants import GRID_TOL
from gridstats.core.errors import RankMismatch
from gridstats.core.types import BoundingBox, NoConstraint, PolygonPath, SamplingConstraint


def points_in_polygon(
    rows: np.ndarray,
    cols: np.ndarray,
    vertices: Sequence[Tuple[float, float]],
) -> np.ndarray:
    """Vectorised even-odd test; returns a boolean array (boundary inclusive)."""
    px = np.asarray(rows, dtype=float)
    py = np.asarray(cols, dtype=float)
    inside = np.zeros(np.broadcast(px, py).shape, dtype=bool)
    if len(vertices) == 0:
        return inside

    verts = np.asarray(vertices, dtype=float)
    on_edge = np.zeros_like(inside)
    n = len(verts)
    with np.errstate(divide="ignore", invalid="ignore"):
        for i in range(n):
            x1, y1 = verts[i]
            x2, y2 = verts[(i + 1) % n]

            cross = (x2 - x1) * (py - y1) - (y2 - y1) * (px - x1)
            scale = max(1.0, abs(x2 - x1) + abs(y2 - y1))
            on_edge |= (
                (np.abs(cross) <= GRID_TOL * scale)
                & (px >= min(x1, x2) - GRID_TOL)
                & (px <= max(x1, x2) + GRID_TOL)
                & (py >= min(y1, y2) - GRID_TOL)
                & (py <= max(y1, y2) + GRID_TOL)
            )

            straddles = (y1 > py) != (y2 > py)
            x_cross = x1 + (py - y1) * (x2 - x1) / (y2 - y1)
            inside ^= straddles & (px < x_cross)
    return inside | on_edge


def polygon_bounds(vertices: Sequence[Tuple[float, float]]) -> Tuple[float, float, float, float] | None:
    """Return (row_min, col_min, row_max, col_max) or None for an empty path."""
    if len(vertices) == 0:
        return None
    verts = np.asarray(vertices, dtype=float)
    return (
        float(verts[:, 0].min()),
        float(verts[:, 1].min()),
        float(verts[:, 0].max()),
        float(verts[:, 1].max()),
    )


def effective_constraint(constraint: SamplingConstraint, rank: int) -> SamplingConstraint:
    """Drop a polygon constraint on grids that are not two-dimensional."""
    if isinstance(constraint, PolygonPath) and rank != 2:
        return NoConstraint()
    return constraint


def contains(location: Sequence[int], constraint: SamplingConstraint, rank: int | None = None) -> bool:
    """Return True when ``location`` satisfies ``constraint``.

    ``rank`` defaults to the length of ``location`` and only matters for the
    polygon rule.
    """
    rank = len(location) if rank is None else int(rank)
    match effective_constraint(constraint, rank):
        case NoConstraint():
            return True
        case BoundingBox(start=start, end=end):
            if len(start) != len(location):
                raise RankMismatch(
                    f"Bounding box rank {len(start)} does not match location rank {len(location)}"
                )
            return all(s <= int(i) <= e for i, s, e in zip(location, start, end))
        case PolygonPath(vertices=vertices):
            hit = points_in_polygon(
                np.array([location[0]]), np.array([location[1]]), vertices
            )
            return bool(hit[0])
    raise TypeError(f"Unsupported constraint: {constraint!r}")


__all__ = ["points_in_polygon", "polygon_bounds", "effective_constraint", "contains"]
