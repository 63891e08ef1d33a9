"""Per-variable statistics driver.

Walks the variables of a dataset in declaration order and computes one
``StatisticsResult`` per variable:

- An optional regular expression (full match) excludes variables before any
  data is touched.
- A bounding box whose rank differs from the variable rank is ignored for
  that variable, which is then sampled over its whole extent.
- A polygon only applies to rank-2 variables and is ignored otherwise.
- A ``ReadFailure`` on one variable is logged and the variable is skipped;
  processing continues with the next one.

Variables are processed strictly one after another; each computation owns
its iterator and accumulator.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable, List

from loguru import logger

from gridstats.core.constants import DEFAULT_CHUNK_SIZE
from gridstats.core.contracts import BulkVariableAccess, VariableAccess
from gridstats.core.errors import InvalidValue, ReadFailure
from gridstats.core.sampling import SampleIterator
from gridstats.core.stats import StatisticsAccumulator, StatisticsResult
from gridstats.core.types import (
    BoundingBox,
    NoConstraint,
    PolygonPath,
    SamplingConstraint,
    SamplingStrategy,
    Stride,
)


@dataclass(frozen=True)
class VariableStatistics:
    name: str
    result: StatisticsResult


def constraint_for_variable(constraint: SamplingConstraint, rank: int) -> SamplingConstraint:
    """Return the constraint that applies to a variable of the given rank."""
    if isinstance(constraint, BoundingBox) and constraint.rank != rank:
        logger.debug("Limit rank {} != variable rank {}; using whole-variable bounds", constraint.rank, rank)
        return NoConstraint()
    if isinstance(constraint, PolygonPath) and rank != 2:
        logger.debug("Polygon ignored for rank-{} variable", rank)
        return NoConstraint()
    return constraint


def compute_statistics(
    variable: VariableAccess,
    constraint: SamplingConstraint | None = None,
    strategy: SamplingStrategy | None = None,
    *,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> StatisticsResult:
    """Sample one variable and aggregate its values."""
    iterator = SampleIterator(variable.extent, constraint or NoConstraint(), strategy or Stride())
    acc = StatisticsAccumulator(expected_count=iterator.estimate_count())

    if isinstance(variable, BulkVariableAccess):
        for index in iterator.iter_chunks(chunk_size):
            values, valid = variable.read_many(index)
            acc.add_many(values, valid)
    else:
        for location in iterator:
            value, is_valid = variable.read_at(location)
            acc.add(value, is_valid)
    return acc.result()


def compile_match(match: str | None) -> re.Pattern | None:
    if not match:
        return None
    try:
        return re.compile(match)
    except re.error as exc:
        raise InvalidValue(f"Invalid match pattern '{match}': {exc}") from exc


def compute_variable_statistics(
    variables: Iterable[VariableAccess],
    constraint: SamplingConstraint | None = None,
    strategy: SamplingStrategy | None = None,
    *,
    match: str | None = None,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> List[VariableStatistics]:
    """Compute statistics for every (matching) variable, in order.

    Parameters
    ----------
    variables : iterable of VariableAccess
        Variables in declaration order.
    constraint, strategy
        Resolved sampling options (see :func:`gridstats.core.constraints.resolve_options`).
    match : str, optional
        Regular expression that variable names must fully match.
    chunk_size : int, optional
        Cells per vectorised read for variables that support ``read_many``.
    """
    pattern = compile_match(match)
    constraint = constraint or NoConstraint()
    strategy = strategy or Stride()

    rows: list[VariableStatistics] = []
    for var in variables:
        if pattern is not None and not pattern.fullmatch(var.name):
            logger.debug("Skipping {} (no match for '{}')", var.name, match)
            continue
        try:
            applied = constraint_for_variable(constraint, var.rank)
            result = compute_statistics(var, applied, strategy, chunk_size=chunk_size)
        except ReadFailure as exc:
            logger.warning("Skipping {}: {}", var.name, exc)
            continue
        logger.info("{}: values={} valid={}", var.name, result.values, result.valid)
        rows.append(VariableStatistics(name=var.name, result=result))
    return rows


__all__ = [
    "VariableStatistics",
    "constraint_for_variable",
    "compute_statistics",
    "compile_match",
    "compute_variable_statistics",
]
