"""Polygon vertex sources for ``--polygon``.

Two inputs are accepted:

- A plain text file with latitude / longitude pairs. Values may be separated
  by spaces, tabs, commas or newlines; ``#`` starts a comment.
- A vector file (GPKG/GeoJSON/Shapefile) with exactly one polygon feature,
  reprojected to geographic coordinates.

Vertices are returned as an ordered list of ``(lat, lon)`` tuples. No ordering
or closure checks are made; the path is closed implicitly downstream.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import List, Tuple

import geopandas as gpd
from shapely.geometry import Polygon

from gridstats.core.constants import GEO_CRS, VECTOR_SUFFIXES
from gridstats.core.errors import InvalidValue

_TOKEN_SPLIT = re.compile(r"[\s,;]+")


def parse_vertex_text(text: str) -> List[Tuple[float, float]]:
    """Parse ``lat lon`` pairs from text."""
    tokens: list[str] = []
    for line in text.splitlines():
        line = line.split("#", 1)[0].strip()
        if line:
            tokens.extend(t for t in _TOKEN_SPLIT.split(line) if t)
    try:
        numbers = [float(t) for t in tokens]
    except ValueError as exc:
        raise InvalidValue(f"Error parsing polygon points: {exc}") from exc
    if len(numbers) % 2 != 0:
        raise InvalidValue(f"Polygon points must come in lat/lon pairs (got {len(numbers)} values)")
    return list(zip(numbers[0::2], numbers[1::2]))


def _read_single_polygon(path: Path) -> Polygon:
    # Default engine (pyogrio) first, Fiona when its GDAL data is missing
    try:
        gdf = gpd.read_file(path)
    except Exception as e:
        msg = str(e)
        if "GDAL data directory" in msg or "pyogrio" in msg:
            gdf = gpd.read_file(path, engine="fiona")
        else:
            raise
    if len(gdf) != 1:
        raise InvalidValue(f"Polygon file must contain exactly one feature (got {len(gdf)})")
    if gdf.crs is None:
        raise InvalidValue(f"Polygon file {path.name} has no CRS")
    geom = gdf.to_crs(GEO_CRS).geometry.iloc[0]
    if not isinstance(geom, Polygon):
        raise InvalidValue(f"Polygon file must hold a single Polygon (got {geom.geom_type})")
    return geom


def read_polygon_vertices(path: Path | str) -> List[Tuple[float, float]]:
    """Read ordered (lat, lon) vertices from a text or vector file."""
    path = Path(path)
    if not path.is_file():
        raise FileNotFoundError(f"Polygon file not found: {path}")
    if path.suffix.lower() in VECTOR_SUFFIXES:
        polygon = _read_single_polygon(path)
        return [(float(y), float(x)) for x, y, *_ in polygon.exterior.coords]
    return parse_vertex_text(path.read_text(encoding="utf-8"))


__all__ = ["parse_vertex_text", "read_polygon_vertices"]
