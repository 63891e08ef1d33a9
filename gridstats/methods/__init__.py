"""
Methods: per-variable statistics over a dataset and their tabular report.
"""

from gridstats.methods.report import render_report, write_results_csv
from gridstats.methods.variable_stats import compute_variable_statistics

__all__ = [
    "compute_variable_statistics",
    "render_report",
    "write_results_csv",
]
