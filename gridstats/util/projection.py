"""
gridstats.util.projection

Purpose
- Convert geographic constraints into grid-coordinate constraints using the
  dataset's :class:`~gridstats.core.contracts.Transform`.

Key Behaviors
- Circular regions are traced along their boundary with geodesic forward
  steps (pyproj.Geod on WGS84), every traced point and the centre are
  projected, and the result is the smallest box of grid cells covering all
  projected points.
- Polygons are projected vertex by vertex; order and duplicates are kept.
- No containment or clipping decisions are made here.

Assumptions
- Integer grid coordinates are cell centres, so a projected coordinate
  belongs to the cell ``floor(v + 0.5)``.
"""

from __future__ import annotations

import math
from typing import Iterable, List, Sequence, Tuple

import numpy as np
from pyproj import Geod

from gridstats.core.constants import GEOD_ELLPS, REGION_BEARING_STEP
from gridstats.core.contracts import Transform
from gridstats.core.errors import InvalidValue, ProjectionFailure
from gridstats.core.types import BoundingBox, PolygonPath


def _cell_index(coord: float) -> int:
    return int(math.floor(coord + 0.5))


def project_point(transform: Transform, lat: float, lon: float) -> Tuple[float, float]:
    """Project one geographic point, rejecting non-finite results."""
    row, col = transform.project_to_grid(float(lat), float(lon))
    if not (math.isfinite(row) and math.isfinite(col)):
        raise ProjectionFailure(f"Location ({lat}, {lon}) has no grid coordinates")
    return float(row), float(col)


def region_boundary(
    center_lat: float,
    center_lon: float,
    radius_km: float,
    *,
    bearing_step: float = REGION_BEARING_STEP,
) -> List[Tuple[float, float]]:
    """Return (lat, lon) points tracing a geodesic circle, centre first."""
    points = [(float(center_lat), float(center_lon))]
    if radius_km <= 0:
        return points
    geod = Geod(ellps=GEOD_ELLPS)
    bearings = np.arange(0.0, 360.0, float(bearing_step))
    lons, lats, _ = geod.fwd(
        np.full(bearings.shape, float(center_lon)),
        np.full(bearings.shape, float(center_lat)),
        bearings,
        np.full(bearings.shape, float(radius_km) * 1000.0),
    )
    points.extend(zip(np.atleast_1d(lats).tolist(), np.atleast_1d(lons).tolist()))
    return points


def project_region(
    center_lat: float,
    center_lon: float,
    radius_km: float,
    transform: Transform,
    *,
    bearing_step: float = REGION_BEARING_STEP,
) -> BoundingBox:
    """Return the grid bounding box enclosing a circular geographic region."""
    if radius_km < 0:
        raise InvalidValue(f"Region radius must not be negative (got {radius_km})")
    rows: list[float] = []
    cols: list[float] = []
    for lat, lon in region_boundary(center_lat, center_lon, radius_km, bearing_step=bearing_step):
        row, col = project_point(transform, lat, lon)
        rows.append(row)
        cols.append(col)
    start = (_cell_index(min(rows)), _cell_index(min(cols)))
    end = (_cell_index(max(rows)), _cell_index(max(cols)))
    return BoundingBox(start=start, end=end)


def project_polygon(
    vertices: Iterable[Sequence[float]],
    transform: Transform,
) -> PolygonPath:
    """Project (lat, lon) vertices into a grid-coordinate polygon path."""
    path: list[Tuple[float, float]] = []
    for i, vertex in enumerate(vertices):
        lat, lon = vertex
        try:
            path.append(project_point(transform, lat, lon))
        except ProjectionFailure as exc:
            raise ProjectionFailure(f"Polygon vertex {i} ({lat}, {lon}): {exc}") from exc
    return PolygonPath(vertices=tuple(path))


__all__ = ["project_point", "region_boundary", "project_region", "project_polygon"]
