"""Affine geographic-to-grid transform shared by raster and in-memory datasets.

Grid coordinates follow the cell-centre convention: the centre of cell
(row, col) has grid coordinates exactly (row, col), so the upper-left corner
of the grid is at (-0.5, -0.5).
"""

from __future__ import annotations

import math
from typing import Any, Sequence, Tuple

from pyproj import CRS, Transformer

from gridstats.core.constants import GEO_CRS
from gridstats.core.errors import ProjectionFailure


class GeoTransform:
    """Map latitude / longitude to fractional (row, col) through an affine geotransform.

    Parameters
    ----------
    affine : affine.Affine
        Pixel-corner geotransform as returned by rasterio (col, row -> x, y).
    extent : sequence of int
        Grid size (rows, cols).
    crs : Any, optional
        CRS of the affine's x/y space. Geographic EPSG:4326 needs no
        reprojection; other CRSs go through a pyproj Transformer. ``None``
        means the grid has no known CRS and every projection fails.
    """

    def __init__(self, affine: Any, extent: Sequence[int], crs: Any = GEO_CRS):
        self.affine = affine
        self.extent: Tuple[int, ...] = tuple(int(n) for n in extent)
        self._inverse = ~affine
        self._transformer: Transformer | None = None
        self._crs: CRS | None = None
        if crs is not None:
            self._crs = CRS.from_user_input(crs)
            if not self._crs.equals(CRS.from_user_input(GEO_CRS)):
                self._transformer = Transformer.from_crs(GEO_CRS, self._crs, always_xy=True)

    @property
    def crs(self) -> CRS | None:
        return self._crs

    def grid_extent(self) -> Tuple[int, ...]:
        return self.extent

    def project_to_grid(self, lat: float, lon: float) -> Tuple[float, float]:
        if self._crs is None:
            raise ProjectionFailure("Grid has no CRS; geographic locations cannot be resolved")
        if not (math.isfinite(lat) and math.isfinite(lon)) or not -90.0 <= lat <= 90.0:
            raise ProjectionFailure(f"Invalid geographic location ({lat}, {lon})")
        if self._transformer is None:
            x, y = lon, lat
        else:
            x, y = self._transformer.transform(lon, lat)
        if not (math.isfinite(x) and math.isfinite(y)):
            raise ProjectionFailure(f"Location ({lat}, {lon}) is outside the projection domain")
        col, row = self._inverse * (x, y)
        return row - 0.5, col - 0.5

    def __repr__(self) -> str:
        return f"GeoTransform(extent={self.extent}, crs={self._crs.to_string() if self._crs else None})"


__all__ = ["GeoTransform"]
