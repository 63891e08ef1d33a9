from __future__ import annotations

import math

import numpy as np
import pandas as pd
import pytest

from gridstats.core.stats import StatisticsResult
from gridstats.io.memory import ArrayVariable
from gridstats.methods.report import (
    format_header,
    format_number,
    format_row,
    histogram_to_frame,
    render_report,
    result_cells,
    results_to_frame,
    write_histogram_csv,
    write_results_csv,
)
from gridstats.methods.variable_stats import VariableStatistics, compute_statistics


@pytest.mark.parametrize(
    "value, text",
    [
        (1.5, "1.5"),
        (0.0, "0"),
        (-2.25, "-2.25"),
        (2.0, "2"),
        (1 / 3, "0.333333"),
        (1000000.0, "1000000"),
        (-1e-7, "0"),
        (math.nan, "NaN"),
        (math.inf, "Infinity"),
    ],
)
def test_format_number(value, text) -> None:
    assert format_number(value) == text


def test_header_layout() -> None:
    header = format_header()
    assert header.startswith("Variable       Count     Valid     Min")
    assert len(header) == 14 + 9 + 9 + 5 * 10 + 7
    assert header.split() == ["Variable", "Count", "Valid", "Min", "Max", "Mean", "Stdev", "Median"]


def test_row_columns_are_left_aligned() -> None:
    row = format_row(["a", "1", "1", "2", "3", "4", "5", "6"])
    assert row[:15] == "a" + " " * 14
    assert row[15:25] == "1" + " " * 9


def test_report_for_row_grid(row_grid) -> None:
    text = render_report([VariableStatistics("grid", compute_statistics(row_grid))])
    lines = text.splitlines()
    assert text.endswith("\n")
    assert len(lines) == 2
    assert lines[1].split() == ["grid", "16", "16", "0", "3", "1.5", "1.118034", "1.5"]


def test_row_without_valid_values() -> None:
    cells = result_cells("empty", StatisticsResult(values=4, valid=0))
    assert cells == ["empty", "4", "0", "NaN", "NaN", "NaN", "NaN", "NaN"]


def test_empty_report_has_header_only() -> None:
    assert render_report([]) == format_header() + "\n"


def test_frame_and_csv(tmp_path, row_grid) -> None:
    rows = [
        VariableStatistics("grid", compute_statistics(row_grid)),
        VariableStatistics("empty", StatisticsResult(values=0, valid=0)),
    ]
    df = results_to_frame(rows)
    assert list(df.columns) == ["variable", "count", "valid", "min", "max", "mean", "stdev", "median", "adev"]
    assert df.loc[0, "mean"] == pytest.approx(1.5)

    out = write_results_csv(rows, tmp_path / "out" / "stats.csv")
    back = pd.read_csv(out)
    assert back["variable"].tolist() == ["grid", "empty"]
    assert back.loc[0, "count"] == 16
    assert math.isnan(back.loc[1, "mean"])


def test_histogram_frame_spans_min_to_max(row_grid) -> None:
    rows = [
        VariableStatistics("grid", compute_statistics(row_grid)),
        VariableStatistics("empty", StatisticsResult(values=0, valid=0)),
    ]
    df = histogram_to_frame(rows)
    assert list(df.columns) == ["variable", "bin", "lower", "upper", "count"]
    assert set(df["variable"]) == {"grid"}
    assert len(df) == 100
    assert df["count"].sum() == 16
    assert df["lower"].iloc[0] == pytest.approx(0.0)
    assert df["upper"].iloc[-1] == pytest.approx(3.0)
    assert df["count"].iloc[0] == 4
    assert df["count"].iloc[-1] == 4


def test_histogram_of_constant_values() -> None:
    result = compute_statistics(ArrayVariable("flat", np.full((2, 2), 2.0)))
    df = histogram_to_frame([VariableStatistics("flat", result)])
    assert df["lower"].iloc[0] == pytest.approx(1.5)
    assert df["upper"].iloc[-1] == pytest.approx(2.5)
    hit = df[df["count"] > 0]
    assert len(hit) == 1
    assert hit["lower"].iloc[0] <= 2.0 < hit["upper"].iloc[0]


def test_histogram_csv(tmp_path, row_grid) -> None:
    rows = [VariableStatistics("grid", compute_statistics(row_grid))]
    out = write_histogram_csv(rows, tmp_path / "out" / "hist.csv")
    back = pd.read_csv(out)
    assert back["bin"].tolist() == list(range(100))
    assert back["count"].sum() == 16
