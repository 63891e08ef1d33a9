"""Shared fixtures: small in-memory grids and transforms.

The row-index grid holds ``value == row`` for every cell, so its statistics
are easy to check by hand (16 values, mean 1.5, min 0, max 3).
"""

from __future__ import annotations

import numpy as np
import pytest
from loguru import logger
from rasterio.transform import from_origin

from gridstats.core.errors import ProjectionFailure
from gridstats.io.memory import ArrayVariable
from gridstats.io.transform import GeoTransform


class IdentityTransform:
    """Maps lat to row and lon to col; latitudes above ``max_lat`` fail."""

    def __init__(self, extent=(10, 10), max_lat: float = 90.0):
        self.extent = tuple(extent)
        self.max_lat = max_lat

    def project_to_grid(self, lat, lon):
        if lat > self.max_lat:
            raise ProjectionFailure(f"latitude {lat} outside test domain")
        return float(lat), float(lon)

    def grid_extent(self):
        return self.extent


@pytest.fixture
def row_grid() -> ArrayVariable:
    data = np.repeat(np.arange(4, dtype=float)[:, None], 4, axis=1)
    return ArrayVariable("grid", data)


@pytest.fixture
def identity_transform() -> IdentityTransform:
    return IdentityTransform()


@pytest.fixture
def geo_transform() -> GeoTransform:
    # 10 x 10 cells of 0.1 degree, upper-left corner at 50N / 10E
    return GeoTransform(from_origin(10.0, 50.0, 0.1, 0.1), (10, 10), crs="EPSG:4326")


@pytest.fixture(autouse=True)
def _reset_logger():
    yield
    # CLI tests point loguru at captured streams; drop those sinks afterwards
    logger.remove()
