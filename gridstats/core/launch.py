from __future__ import annotations
"""
gridstats.core.launch

Purpose
- CLI entry point: calculate statistics for each variable of a gridded data
  file, optionally restricted to a subset of cells and a subset of variables.

Key Behaviors
- Options come from the command line layered over an optional
  ``gridstats.yml`` (see core.config).
- Conflicting or malformed options are rejected before the input is read.
- The report goes to stdout; logs go to stderr.

Exit status
- 0 on success, 1 when the input cannot be opened, 2 for invalid options.
"""

import argparse
import sys
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path
from typing import Iterable

from loguru import logger
from rasterio.errors import RasterioError

from gridstats.core.config import load_options
from gridstats.core.constants import (
    LOG_LEVEL,
    LOGURU_FORMAT,
    OPT_CHUNK_SIZE,
    OPT_HISTOGRAM,
    OPT_LIMIT,
    OPT_MATCH,
    OPT_OUTPUT,
    OPT_POLYGON,
    OPT_REGION,
    OPT_SAMPLE,
    OPT_SEED,
    OPT_STRIDE,
    PROG,
)
from gridstats.core.constraints import check_option_conflicts, resolve_options
from gridstats.core.errors import GridStatsError
from gridstats.io.raster import RasterDataset
from gridstats.methods.report import render_report, write_histogram_csv, write_results_csv
from gridstats.methods.variable_stats import compute_variable_statistics


def _version() -> str:
    try:
        return version(PROG)
    except PackageNotFoundError:
        return "unknown"


def parse_args(argv: Iterable[str] | None = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        prog=PROG,
        description="Calculate count, valid, min, max, mean, stdev and median for each variable in a gridded data file.",
        epilog="Only one of --limit, --region or --polygon and one of --stride or --sample may be given. "
        "Use --region=LAT/LON/RADIUS for negative latitudes.",
    )
    p.add_argument("input", type=Path, help="Input data file (any raster format readable by rasterio)")
    p.add_argument("-i", "--region", help="LAT/LON/RADIUS: only sample within RADIUS km of a location")
    p.add_argument("-l", "--limit", help="STARTROW/STARTCOL/ENDROW/ENDCOL: only sample between grid limits")
    p.add_argument("-m", "--match", help="Only process variables whose name matches this regular expression")
    p.add_argument("-p", "--polygon", type=Path, help="File with lat/lon polygon vertices (text or single-feature vector)")
    p.add_argument("-s", "--stride", help="Sample every Nth value in each dimension (N or N/M/...)")
    p.add_argument("-S", "--sample", type=float, help="Sample only this fraction (0..1] of the data values")
    p.add_argument("--seed", type=int, help="Random seed for --sample")
    p.add_argument("-o", "--output", type=Path, help="Also write the statistics table to this CSV file")
    p.add_argument("--histogram", type=Path, help="Also write per-variable value histograms (100 bins) to this CSV file")
    p.add_argument("--chunk-size", type=int, help="Cells read per vectorised chunk")
    p.add_argument("--config", type=Path, help="Config YAML (default: ./gridstats.yml if present)")
    p.add_argument("--log-level", choices=("DEBUG", "INFO", "WARNING", "ERROR"), help="Log level (default: WARNING)")
    p.add_argument("--version", action="version", version=f"{PROG} {_version()}")
    return p.parse_args(list(argv) if argv is not None else None)


def main(argv: Iterable[str] | None = None) -> int:
    args = parse_args(argv)
    cli_cfg = {
        OPT_REGION: args.region,
        OPT_LIMIT: args.limit,
        OPT_MATCH: args.match,
        OPT_POLYGON: args.polygon,
        OPT_STRIDE: args.stride,
        OPT_SAMPLE: args.sample,
        OPT_SEED: args.seed,
        OPT_OUTPUT: args.output,
        OPT_CHUNK_SIZE: args.chunk_size,
        OPT_HISTOGRAM: args.histogram,
        LOG_LEVEL: args.log_level,
    }

    try:
        opts = load_options(cli_cfg, config_path=args.config)
    except (OSError, ValueError) as exc:
        logger.error("Failed to read configuration: {}", exc)
        return 2

    logger.remove()
    logger.add(sys.stderr, level=str(opts[LOG_LEVEL]).upper(), colorize=True, format=LOGURU_FORMAT)

    try:
        check_option_conflicts(
            limit=opts[OPT_LIMIT],
            region=opts[OPT_REGION],
            polygon=opts[OPT_POLYGON],
            stride=opts[OPT_STRIDE],
            fraction=opts[OPT_SAMPLE],
        )
    except GridStatsError as exc:
        logger.error("{}", exc)
        return 2

    try:
        dataset = RasterDataset(args.input)
        dataset.open()
    except (RasterioError, OSError) as exc:
        logger.error("Cannot open {}: {}", args.input, exc)
        return 1

    with dataset:
        try:
            constraint, strategy = resolve_options(
                limit=opts[OPT_LIMIT],
                region=opts[OPT_REGION],
                polygon=opts[OPT_POLYGON],
                stride=opts[OPT_STRIDE],
                fraction=opts[OPT_SAMPLE],
                seed=opts[OPT_SEED],
                transform=dataset.transform,
            )
            logger.info("Sampling {} with {} / {}", args.input.name, constraint, strategy)
            rows = compute_variable_statistics(
                dataset.variables(),
                constraint,
                strategy,
                match=opts[OPT_MATCH],
                chunk_size=int(opts[OPT_CHUNK_SIZE]),
            )
        except (GridStatsError, OSError) as exc:
            logger.error("{}", exc)
            return 2

    sys.stdout.write(render_report(rows))
    if opts[OPT_OUTPUT]:
        write_results_csv(rows, Path(opts[OPT_OUTPUT]))
    if opts[OPT_HISTOGRAM]:
        write_histogram_csv(rows, Path(opts[OPT_HISTOGRAM]))
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
