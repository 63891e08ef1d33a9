"""
gridstats.io.raster

Purpose
- Expose every band of a raster file (GeoTIFF, NetCDF subdataset, HDF, ...)
  as a rank-2 variable the statistics engine can sample.

Key Behaviors
- Variables keep the band order of the file; names come from the band
  descriptions and default to ``band_<n>`` (1-based).
- A band is read once, as a masked array, when the first value is
  requested; nodata, masked and NaN cells are reported invalid.
- Any rasterio/IO error while reading a band is raised as ``ReadFailure``
  so the caller can skip that variable and continue.
- The dataset transform maps lat/lon into the raster CRS with pyproj and
  then into cell-centre grid coordinates through the inverse geotransform.
"""

from __future__ import annotations

from pathlib import Path
from typing import Iterator, List, Sequence, Tuple

import numpy as np
import rasterio
from loguru import logger
from rasterio.errors import RasterioError

from gridstats.core.contracts import GridLocation
from gridstats.core.errors import ReadFailure
from gridstats.io.transform import GeoTransform


class BandVariable:
    """Lazy rank-2 view of one raster band."""

    def __init__(self, dataset: "RasterDataset", band: int, name: str):
        self._dataset = dataset
        self.band = int(band)
        self.name = name
        self._values: np.ndarray | None = None
        self._valid: np.ndarray | None = None

    @property
    def rank(self) -> int:
        return 2

    @property
    def extent(self) -> Tuple[int, ...]:
        return self._dataset.shape

    def _load(self) -> Tuple[np.ndarray, np.ndarray]:
        if self._values is None:
            masked = self._dataset.read_band(self.band, self.name)
            values = np.ma.getdata(masked).astype(np.float64, copy=False)
            self._valid = ~np.ma.getmaskarray(masked) & ~np.isnan(values)
            self._values = values
            logger.debug("Loaded band {} ({}) with shape {}", self.band, self.name, values.shape)
        return self._values, self._valid

    def read_at(self, location: GridLocation) -> Tuple[float, bool]:
        values, valid = self._load()
        loc = tuple(location)
        return float(values[loc]), bool(valid[loc])

    def read_many(self, index: Sequence[np.ndarray]) -> Tuple[np.ndarray, np.ndarray]:
        values, valid = self._load()
        idx = tuple(index)
        return values[idx], valid[idx]

    def __repr__(self) -> str:
        return f"BandVariable(name={self.name!r}, band={self.band})"


class RasterDataset:
    """Context manager around a rasterio dataset.

    Examples
    --------
    >>> with RasterDataset("scene.tif") as ds:
    ...     for var in ds.variables():
    ...         print(var.name, var.extent)
    """

    def __init__(self, path: Path | str):
        self.path = Path(path)
        self._src = None

    def __enter__(self) -> "RasterDataset":
        self.open()
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def open(self) -> None:
        if self._src is None:
            self._src = rasterio.open(self.path)
            logger.debug(
                "Opened {} ({} band(s), {}x{}, crs={})",
                self.path.name,
                self._src.count,
                self._src.height,
                self._src.width,
                self._src.crs,
            )

    def close(self) -> None:
        if self._src is not None:
            self._src.close()
            self._src = None

    @property
    def src(self):
        if self._src is None:
            raise RuntimeError(f"Raster {self.path} is not open")
        return self._src

    @property
    def shape(self) -> Tuple[int, int]:
        return int(self.src.height), int(self.src.width)

    @property
    def names(self) -> List[str]:
        descriptions = self.src.descriptions or ()
        names: list[str] = []
        for i in range(1, self.src.count + 1):
            desc = descriptions[i - 1] if i - 1 < len(descriptions) else None
            names.append(str(desc) if desc else f"band_{i}")
        return names

    @property
    def transform(self) -> GeoTransform:
        return GeoTransform(self.src.transform, self.shape, crs=self.src.crs)

    def variables(self) -> Iterator[BandVariable]:
        for i, name in enumerate(self.names, start=1):
            yield BandVariable(self, i, name)

    def read_band(self, band: int, name: str) -> np.ma.MaskedArray:
        try:
            return self.src.read(band, masked=True)
        except (RasterioError, OSError) as exc:
            raise ReadFailure(name, str(exc)) from exc


__all__ = ["BandVariable", "RasterDataset"]
