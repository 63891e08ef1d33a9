"""Tabular rendering of per-variable statistics.

The text report has one header row and one row per variable with
left-aligned fixed-width columns::

    Variable       Count     Valid     Min        Max        Mean       Stdev      Median

Numbers carry at most six fractional digits with trailing zeros removed.
Variables without valid values show ``NaN`` for every derived column. The
same rows can be exported as a pandas DataFrame / CSV, and the per-variable
histograms as a long-format CSV (one record per bin).
"""

from __future__ import annotations

import math
from pathlib import Path
from typing import Iterable, List, Sequence

import numpy as np
import pandas as pd
from loguru import logger

from gridstats.core.constants import NAN_TEXT, REPORT_COLUMNS, REPORT_DECIMALS
from gridstats.core.stats import StatisticsResult
from gridstats.methods.variable_stats import VariableStatistics


def format_number(value: float, decimals: int = REPORT_DECIMALS) -> str:
    """Fixed-point text with trailing zeros trimmed (1.5, 0, -2.25)."""
    if math.isnan(value):
        return NAN_TEXT
    if math.isinf(value):
        return "Infinity" if value > 0 else "-Infinity"
    text = f"{value:.{decimals}f}"
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    if text == "-0":
        text = "0"
    return text


def format_row(cells: Sequence[str]) -> str:
    return " ".join(f"{cell:<{width}}" for cell, (_, width) in zip(cells, REPORT_COLUMNS))


def format_header() -> str:
    return format_row([name for name, _ in REPORT_COLUMNS])


def result_cells(name: str, result: StatisticsResult) -> List[str]:
    if result.valid == 0:
        derived = [NAN_TEXT] * 5
    else:
        derived = [
            format_number(v)
            for v in (result.min, result.max, result.mean, result.stdev, result.median)
        ]
    return [name, str(result.values), str(result.valid), *derived]


def render_report(rows: Iterable[VariableStatistics]) -> str:
    """Return the full report text, newline terminated."""
    lines = [format_header()]
    lines.extend(format_row(result_cells(row.name, row.result)) for row in rows)
    return "\n".join(lines) + "\n"


def results_to_frame(rows: Iterable[VariableStatistics]) -> pd.DataFrame:
    records = [
        {
            "variable": row.name,
            "count": row.result.values,
            "valid": row.result.valid,
            "min": row.result.min,
            "max": row.result.max,
            "mean": row.result.mean,
            "stdev": row.result.stdev,
            "median": row.result.median,
            "adev": row.result.adev,
        }
        for row in rows
    ]
    columns = ["variable", "count", "valid", "min", "max", "mean", "stdev", "median", "adev"]
    return pd.DataFrame(records, columns=columns)


def write_results_csv(rows: Iterable[VariableStatistics], out_csv: Path) -> Path:
    out_csv = Path(out_csv)
    out_csv.parent.mkdir(parents=True, exist_ok=True)
    df = results_to_frame(rows)
    df.to_csv(out_csv, index=False)
    logger.info("Wrote statistics for {} variable(s) -> {}", len(df), out_csv)
    return out_csv


def histogram_to_frame(rows: Iterable[VariableStatistics]) -> pd.DataFrame:
    """One record per histogram bin; bins span [min, max] of each variable."""
    records = []
    for row in rows:
        counts = row.result.histogram
        if not counts:
            continue
        lo, hi = row.result.min, row.result.max
        if lo == hi:
            # numpy widens a zero-width range by 0.5 on each side
            lo, hi = lo - 0.5, hi + 0.5
        edges = np.linspace(lo, hi, len(counts) + 1)
        for i, count in enumerate(counts):
            records.append(
                {
                    "variable": row.name,
                    "bin": i,
                    "lower": float(edges[i]),
                    "upper": float(edges[i + 1]),
                    "count": count,
                }
            )
    return pd.DataFrame(records, columns=["variable", "bin", "lower", "upper", "count"])


def write_histogram_csv(rows: Iterable[VariableStatistics], out_csv: Path) -> Path:
    out_csv = Path(out_csv)
    out_csv.parent.mkdir(parents=True, exist_ok=True)
    df = histogram_to_frame(rows)
    df.to_csv(out_csv, index=False)
    logger.info("Wrote {} histogram bin(s) -> {}", len(df), out_csv)
    return out_csv


__all__ = [
    "format_number",
    "format_row",
    "format_header",
    "result_cells",
    "render_report",
    "results_to_frame",
    "write_results_csv",
    "histogram_to_frame",
    "write_histogram_csv",
]
