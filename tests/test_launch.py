"""End-to-end runs of the command line on a small GeoTIFF."""

from __future__ import annotations

import numpy as np
import pandas as pd
import pytest
import rasterio
from rasterio.transform import from_origin

from gridstats.core.launch import main
from gridstats.io.raster import RasterDataset
from gridstats.methods.variable_stats import compute_variable_statistics


@pytest.fixture
def raster_path(tmp_path):
    """4 x 4 GeoTIFF at 0.1 degree: band 'rows' holds the row index, band 2 has one nodata cell."""
    rows = np.repeat(np.arange(4, dtype="float32")[:, None], 4, axis=1)
    other = np.full((4, 4), 2.0, dtype="float32")
    other[0, 0] = -9999.0
    path = tmp_path / "grid.tif"
    with rasterio.open(
        path,
        "w",
        driver="GTiff",
        height=4,
        width=4,
        count=2,
        dtype="float32",
        crs="EPSG:4326",
        transform=from_origin(10.0, 50.0, 0.1, 0.1),
        nodata=-9999.0,
    ) as dst:
        dst.write(rows, 1)
        dst.write(other, 2)
        dst.set_band_description(1, "rows")
    return path


def _table(text: str) -> dict[str, list[str]]:
    lines = text.splitlines()
    assert lines[0].split()[0] == "Variable"
    return {line.split()[0]: line.split()[1:] for line in lines[1:]}


def test_raster_dataset_variables(raster_path) -> None:
    with RasterDataset(raster_path) as ds:
        assert ds.names == ["rows", "band_2"]
        assert ds.shape == (4, 4)
        assert ds.transform.project_to_grid(49.95, 10.05) == pytest.approx((0.0, 0.0))
        rows = compute_variable_statistics(ds.variables())
    assert rows[0].result.mean == pytest.approx(1.5)
    assert rows[1].result.values == 16
    assert rows[1].result.valid == 15


def test_whole_file(raster_path, capsys) -> None:
    assert main([str(raster_path)]) == 0
    table = _table(capsys.readouterr().out)
    assert table["rows"] == ["16", "16", "0", "3", "1.5", "1.118034", "1.5"]
    assert table["band_2"][:2] == ["16", "15"]


def test_limit_and_match(raster_path, capsys) -> None:
    assert main([str(raster_path), "-l", "1/1/2/2", "-m", "rows"]) == 0
    table = _table(capsys.readouterr().out)
    assert list(table) == ["rows"]
    assert table["rows"][:2] == ["4", "4"]


def test_region_centre_cell(raster_path, capsys) -> None:
    # centre of cell (2, 1)
    assert main([str(raster_path), "--region=49.75/10.15/0", "-m", "rows"]) == 0
    table = _table(capsys.readouterr().out)
    assert table["rows"] == ["1", "1", "2", "2", "2", "0", "2"]


def test_polygon_file(raster_path, tmp_path, capsys) -> None:
    # cell centres of rows 0..1, cols 0..1
    poly = tmp_path / "poly.txt"
    poly.write_text("49.95 10.05\n49.95 10.15\n49.85 10.15\n49.85 10.05\n", encoding="utf-8")
    assert main([str(raster_path), "-p", str(poly), "-m", "rows"]) == 0
    table = _table(capsys.readouterr().out)
    assert table["rows"][:2] == ["4", "4"]


def test_stride_and_csv(raster_path, tmp_path, capsys) -> None:
    out = tmp_path / "stats.csv"
    assert main([str(raster_path), "-s", "2", "-o", str(out)]) == 0
    table = _table(capsys.readouterr().out)
    assert table["rows"][:2] == ["4", "4"]
    df = pd.read_csv(out)
    assert df["variable"].tolist() == ["rows", "band_2"]


def test_seeded_sample_is_reproducible(raster_path, capsys) -> None:
    assert main([str(raster_path), "-S", "0.5", "--seed", "3"]) == 0
    first = capsys.readouterr().out
    assert main([str(raster_path), "-S", "0.5", "--seed", "3"]) == 0
    assert capsys.readouterr().out == first


def test_conflicts_rejected_before_reading(tmp_path) -> None:
    missing = tmp_path / "missing.tif"
    assert main([str(missing), "-s", "2", "-S", "0.5"]) == 2
    assert main([str(missing), "-l", "0/0/1/1", "--region=49/10/1"]) == 2


def test_invalid_values(raster_path) -> None:
    assert main([str(raster_path), "-S", "1.5"]) == 2
    assert main([str(raster_path), "-s", "0"]) == 2
    assert main([str(raster_path), "-l", "2/2/1/1"]) == 2


def test_missing_input(tmp_path) -> None:
    assert main([str(tmp_path / "missing.tif")]) == 1


def test_config_file(raster_path, tmp_path, capsys) -> None:
    cfg = tmp_path / "run.yml"
    cfg.write_text("gridstats:\n  limit: [0, 0, 1, 1]\n  match: rows\n", encoding="utf-8")
    assert main([str(raster_path), "--config", str(cfg)]) == 0
    table = _table(capsys.readouterr().out)
    assert table["rows"][:2] == ["4", "4"]
    assert main([str(raster_path), "--config", str(tmp_path / "none.yml")]) == 2


def test_malformed_config_value_exits_with_option_error(raster_path, tmp_path) -> None:
    cfg = tmp_path / "bad.yml"
    cfg.write_text("limit: 5\n", encoding="utf-8")
    assert main([str(raster_path), "--config", str(cfg)]) == 2


def test_histogram_csv(raster_path, tmp_path, capsys) -> None:
    out = tmp_path / "hist.csv"
    assert main([str(raster_path), "-m", "rows", "--histogram", str(out)]) == 0
    capsys.readouterr()
    df = pd.read_csv(out)
    assert set(df["variable"]) == {"rows"}
    assert df["count"].sum() == 16
    assert df["upper"].iloc[-1] == pytest.approx(3.0)
