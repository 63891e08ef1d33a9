"""
gridstats.core.constraints

Purpose
- Turn user-supplied sampling options into exactly one
  ``SamplingConstraint`` and one ``SamplingStrategy``.

Key Behaviors
- At most one of limit / region / polygon (``ConflictingConstraint``).
- At most one of stride / fraction (``ConflictingStrategy``).
- Range checks raise ``InvalidValue``: fraction outside (0, 1], stride entries
  below 1, box ends preceding starts, negative region radius.
- Defaults: ``NoConstraint()`` (whole grid) and ``Stride((1,))`` (every cell).
- Geographic options (region, polygon) are projected through the dataset
  transform; everything is validated before any grid value is read.

Inputs
- Options arrive either as text (CLI / config file) or as already-typed
  Python values (library use). Text is parsed by the ``parse_*`` helpers.
"""

from __future__ import annotations

import math
import re
from pathlib import Path
from typing import Any, Optional, Tuple

from loguru import logger

from gridstats.core.constants import SPLIT_REGEX
from gridstats.core.contracts import Transform
from gridstats.core.errors import (
    ConflictingConstraint,
    ConflictingStrategy,
    InvalidValue,
    ProjectionFailure,
)
from gridstats.core.types import (
    BoundingBox,
    Fraction,
    NoConstraint,
    PolygonPath,
    SamplingConstraint,
    SamplingStrategy,
    Stride,
)
from gridstats.util.projection import project_polygon, project_region
from gridstats.util.roi import read_polygon_vertices


# ---- Text parsers -----------------------------------------------------------

def _split(text: str, what: str) -> list[str]:
    parts = [p for p in re.split(SPLIT_REGEX, str(text).strip()) if p]
    if not parts:
        raise InvalidValue(f"Invalid {what} '{text}'")
    return parts


def _to_float(token: str, what: str) -> float:
    try:
        value = float(token)
    except ValueError as exc:
        raise InvalidValue(f"Invalid {what} value '{token}'") from exc
    if not math.isfinite(value):
        raise InvalidValue(f"Invalid {what} value '{token}'")
    return value


def _to_int(token: str, what: str) -> int:
    value = _to_float(token, what)
    if not value.is_integer():
        raise InvalidValue(f"Invalid {what} value '{token}' (expected an integer)")
    return int(value)


def parse_limit(text: str) -> BoundingBox:
    """Parse ``START.../END...`` limits, e.g. ``10/20/100/200`` for rank 2."""
    values = [_to_int(t, "limit") for t in _split(text, "limit")]
    if len(values) < 2 or len(values) % 2 != 0:
        raise InvalidValue(f"Invalid limit '{text}' (expected start and end indices per dimension)")
    half = len(values) // 2
    return BoundingBox(start=tuple(values[:half]), end=tuple(values[half:]))


def parse_region(text: str) -> Tuple[float, float, float]:
    """Parse ``LAT/LON/RADIUS_KM``."""
    parts = _split(text, "region")
    if len(parts) != 3:
        raise InvalidValue(f"Invalid region '{text}' (expected LAT/LON/RADIUS)")
    lat, lon, radius = (_to_float(p, "region") for p in parts)
    return lat, lon, radius


def parse_stride(text: str | int) -> Stride:
    """Parse ``N`` or ``N/M/...`` into a stride."""
    if isinstance(text, int):
        return Stride(steps=(text,))
    return Stride(steps=tuple(_to_int(t, "stride") for t in _split(str(text), "stride")))


def parse_fraction(text: str | float) -> float:
    if isinstance(text, (int, float)):
        return float(text)
    return _to_float(str(text).strip(), "sample")


# ---- Validation -------------------------------------------------------------

def validate_box(box: BoundingBox) -> BoundingBox:
    for i, (s, e) in enumerate(zip(box.start, box.end)):
        if e < s:
            raise InvalidValue(f"Bounding box end precedes start in dimension {i} ({e} < {s})")
    return box


def validate_stride(stride: Stride) -> Stride:
    if not stride.steps:
        raise InvalidValue("Stride must have at least one entry")
    bad = [s for s in stride.steps if s <= 0]
    if bad:
        raise InvalidValue(f"Stride entries must be positive (got {list(stride.steps)})")
    return stride


def validate_fraction(value: float) -> float:
    if not 0.0 < value <= 1.0:
        raise InvalidValue(f"Sample fraction must be in (0, 1] (got {value})")
    return value


def validate_region(lat: float, lon: float, radius_km: float) -> None:
    if radius_km < 0:
        raise InvalidValue(f"Region radius must not be negative (got {radius_km})")
    if not -90.0 <= lat <= 90.0:
        raise InvalidValue(f"Region latitude out of range [-90, 90] (got {lat})")


def check_option_conflicts(
    *,
    limit: Any = None,
    region: Any = None,
    polygon: Any = None,
    stride: Any = None,
    fraction: Any = None,
) -> None:
    """Raise when mutually exclusive options are combined."""
    given = [name for name, v in (("limit", limit), ("region", region), ("polygon", polygon)) if v is not None]
    if len(given) > 1:
        raise ConflictingConstraint(f"Only one of limit, region or polygon may be given (got {', '.join(given)})")
    if stride is not None and fraction is not None:
        raise ConflictingStrategy("Only one of stride or sample fraction may be given")


# ---- Resolution -------------------------------------------------------------

def _coerce_limit(limit: Any) -> BoundingBox:
    if isinstance(limit, BoundingBox):
        return limit
    if isinstance(limit, (str, int, float)):
        return parse_limit(str(limit))
    try:
        values = list(limit)
        if all(isinstance(v, (int, float)) for v in values):
            return parse_limit("/".join(str(v) for v in values))
        start, end = values
        return BoundingBox(start=tuple(start), end=tuple(end))
    except (TypeError, ValueError) as exc:
        raise InvalidValue(f"Invalid limit {limit!r} (expected START.../END...)") from exc


def _coerce_region(region: Any) -> Tuple[float, float, float]:
    if isinstance(region, (str, int, float)):
        return parse_region(str(region))
    try:
        lat, lon, radius = region
        return float(lat), float(lon), float(radius)
    except (TypeError, ValueError) as exc:
        raise InvalidValue(f"Invalid region {region!r} (expected LAT/LON/RADIUS)") from exc


def _coerce_vertices(polygon: Any) -> list[Tuple[float, float]]:
    if isinstance(polygon, (str, Path)):
        return read_polygon_vertices(polygon)
    try:
        return [(float(lat), float(lon)) for lat, lon in polygon]
    except (TypeError, ValueError) as exc:
        raise InvalidValue(f"Invalid polygon {polygon!r} (expected a file or (lat, lon) pairs)") from exc


def resolve_strategy(
    stride: Any = None,
    fraction: Any = None,
    *,
    seed: Optional[int] = None,
) -> SamplingStrategy:
    if stride is not None and fraction is not None:
        raise ConflictingStrategy("Only one of stride or sample fraction may be given")
    if fraction is not None:
        return Fraction(value=validate_fraction(parse_fraction(fraction)), seed=seed)
    if stride is None:
        return Stride()
    if isinstance(stride, Stride):
        return validate_stride(stride)
    if isinstance(stride, int):
        return validate_stride(parse_stride(stride))
    if isinstance(stride, (str, float)):
        return validate_stride(parse_stride(str(stride)))
    try:
        steps = Stride(steps=tuple(stride))
    except (TypeError, ValueError) as exc:
        raise InvalidValue(f"Invalid stride {stride!r} (expected N or N/M/...)") from exc
    return validate_stride(steps)


def resolve_options(
    *,
    limit: Any = None,
    region: Any = None,
    polygon: Any = None,
    stride: Any = None,
    fraction: Any = None,
    seed: Optional[int] = None,
    transform: Optional[Transform] = None,
) -> Tuple[SamplingConstraint, SamplingStrategy]:
    """Validate and merge options into (constraint, strategy).

    Parameters
    ----------
    limit : str | BoundingBox | (start, end), optional
        Grid-coordinate limits.
    region : str | (lat, lon, radius_km), optional
        Circular geographic region; projected to a bounding box.
    polygon : path | sequence of (lat, lon), optional
        Polygon vertex file or vertices; projected to a grid path.
    stride : str | int | sequence of int | Stride, optional
        Regular sampling step(s).
    fraction : str | float, optional
        Random sampling fraction in (0, 1].
    seed : int, optional
        Seed for fractional sampling.
    transform : Transform, optional
        Dataset transform; required for region and polygon options.
    """
    check_option_conflicts(limit=limit, region=region, polygon=polygon, stride=stride, fraction=fraction)
    strategy = resolve_strategy(stride, fraction, seed=seed)

    constraint: SamplingConstraint = NoConstraint()
    if limit is not None:
        constraint = validate_box(_coerce_limit(limit))
    elif region is not None:
        lat, lon, radius = _coerce_region(region)
        validate_region(lat, lon, radius)
        if transform is None:
            raise ProjectionFailure("A transform is required to resolve a geographic region")
        constraint = project_region(lat, lon, radius, transform)
        logger.debug("Region {}/{}/{}km -> rows {}..{} cols {}..{}", lat, lon, radius,
                     constraint.start[0], constraint.end[0], constraint.start[1], constraint.end[1])
    elif polygon is not None:
        vertices = _coerce_vertices(polygon)
        if transform is None:
            raise ProjectionFailure("A transform is required to resolve a geographic polygon")
        constraint = project_polygon(vertices, transform)
        logger.debug("Polygon with {} vertices projected to grid coordinates", len(constraint.vertices))

    return constraint, strategy


__all__ = [
    "parse_limit",
    "parse_region",
    "parse_stride",
    "parse_fraction",
    "validate_box",
    "validate_stride",
    "validate_fraction",
    "validate_region",
    "check_option_conflicts",
    "resolve_strategy",
    "resolve_options",
]
