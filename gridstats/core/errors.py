"""Exception taxonomy for constraint resolution, projection and sampling."""

from __future__ import annotations


class GridStatsError(Exception):
    """Base class for all gridstats errors."""


class ConflictingConstraint(GridStatsError):
    """More than one spatial constraint (limit, region, polygon) was given."""


class ConflictingStrategy(GridStatsError):
    """Both a stride and a sampling fraction were given."""


class InvalidValue(GridStatsError, ValueError):
    """Malformed or out-of-range option value."""


class RankMismatch(GridStatsError):
    """Bounding box and variable (or start and end) differ in rank."""


class ProjectionFailure(GridStatsError):
    """A geographic location could not be resolved to grid coordinates."""


class ReadFailure(GridStatsError):
    """A variable could not be read from its data source."""

    def __init__(self, variable: str, reason: str):
        super().__init__(f"Failed reading variable '{variable}': {reason}")
        self.variable = variable
        self.reason = reason


__all__ = [
    "GridStatsError",
    "ConflictingConstraint",
    "ConflictingStrategy",
    "InvalidValue",
    "RankMismatch",
    "ProjectionFailure",
    "ReadFailure",
]
