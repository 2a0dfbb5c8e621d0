"""Functional tests for the popjoin CLI.

These test the CLI commands that users run directly.
Run with: pytest tests/functional/test_cli.py -v -s
"""

import pandas as pd
from click.testing import CliRunner

from popjoin.cli.commands import cli


class TestCLICompare:
    """User can compare strategies via command line."""

    def test_compare_all(self, data_dir):
        """All strategies run and agree."""
        runner = CliRunner()
        result = runner.invoke(cli, ["--data-dir", str(data_dir), "compare"])

        assert result.exit_code == 0, result.output
        assert "Found 6 population centers." in result.output
        assert "Found 4 county polygons." in result.output
        assert "Found 2 state envelopes." in result.output
        assert "Calculating with brute force took" in result.output
        assert "Calculating with rtree took" in result.output
        assert "with 3 counties populated" in result.output
        assert result.output.count("Population counts are the same") == 3

    def test_compare_subset_without_state_file(self, data_dir):
        """Selected strategies run with derived state envelopes."""
        runner = CliRunner()
        result = runner.invoke(
            cli,
            [
                "--data-dir", str(data_dir),
                "compare",
                "-s", "index",
                "-s", "hierarchical",
                "--no-state-file",
            ],
        )

        assert result.exit_code == 0, result.output
        assert "state envelopes." not in result.output
        assert "Population counts are the same for index and hierarchical." in result.output

    def test_compare_writes_totals(self, data_dir, tmp_path):
        """Agreed totals are saved as CSV."""
        output_path = tmp_path / "totals.csv"
        runner = CliRunner()
        result = runner.invoke(
            cli,
            ["--data-dir", str(data_dir), "compare", "-o", str(output_path)],
        )

        assert result.exit_code == 0, result.output
        df = pd.read_csv(output_path, dtype={"region_id": str})
        assert list(df.columns) == ["region_id", "weight"]
        assert dict(zip(df["region_id"], df["weight"])) == {
            "06-001": 150.5,
            "06-003": 29.0,
            "36-001": 300.0,
        }

    def test_compare_missing_data(self, tmp_path):
        """Missing source files fail with a readable error."""
        runner = CliRunner()
        result = runner.invoke(cli, ["--data-dir", str(tmp_path), "compare"])

        assert result.exit_code != 0
        assert "population data not found" in result.output

    def test_compare_detects_divergence(self, data_dir, geojson_writer, make_feature):
        """A state file that misses a county stops the run."""
        geojson_writer(
            data_dir / "gz_2010_us_040_00_5m.json.gz",
            [
                make_feature(
                    {"STATE": "06"},
                    {"type": "Polygon", "coordinates": [[[0, 0], [4, 0], [4, 4], [0, 4], [0, 0]]]},
                ),
                make_feature(
                    {"STATE": "36"},
                    {"type": "Polygon", "coordinates": [[[20, 0], [24, 0], [24, 4], [20, 4], [20, 0]]]},
                ),
            ],
        )
        runner = CliRunner()
        result = runner.invoke(cli, ["--data-dir", str(data_dir), "compare"])

        assert result.exit_code != 0
        assert "Population counts differ" in result.output

    def test_compare_missing_parent(self, data_dir, geojson_writer, make_feature):
        """A county id with no state part stops the hierarchical run."""
        geojson_writer(
            data_dir / "gz_2010_us_050_00_5m.json.gz",
            [
                make_feature(
                    {"STATE": "06"},
                    {"type": "Polygon", "coordinates": [[[0, 0], [4, 0], [4, 4], [0, 4], [0, 0]]]},
                ),
            ],
        )
        runner = CliRunner()
        result = runner.invoke(
            cli, ["--data-dir", str(data_dir), "compare", "--no-state-file"]
        )

        assert result.exit_code == 1
        assert "Missing parent" in result.output
        assert "Calculating with brute force took" in result.output


class TestCLIJoin:
    """User can run a single strategy via command line."""

    def test_join_prints_top_counties(self, data_dir):
        """Largest totals are printed first."""
        runner = CliRunner()
        result = runner.invoke(cli, ["--data-dir", str(data_dir), "join", "--top", "2"])

        assert result.exit_code == 0, result.output
        assert "Calculating with rtree took" in result.output
        lines = [line.strip() for line in result.output.splitlines() if line.startswith("  ")]
        assert lines == ["36-001: 300.0", "06-001: 150.5"]

    def test_join_with_strategy(self, data_dir, tmp_path):
        """Any strategy can be chosen and its totals saved."""
        output_path = tmp_path / "totals.csv"
        runner = CliRunner()
        result = runner.invoke(
            cli,
            [
                "--data-dir", str(data_dir),
                "join",
                "-s", "hierarchical",
                "--state-file",
                "-o", str(output_path),
            ],
        )

        assert result.exit_code == 0, result.output
        assert "Calculating with state and county envelopes took" in result.output
        assert len(pd.read_csv(output_path)) == 3

    def test_join_invalid_strategy(self, data_dir):
        """Unknown strategy names are rejected by click."""
        runner = CliRunner()
        result = runner.invoke(cli, ["--data-dir", str(data_dir), "join", "-s", "quadtree"])

        assert result.exit_code == 2


class TestCLIInfo:
    """User can inspect the data directory."""

    def test_info(self, data_dir):
        """Present files are reported."""
        runner = CliRunner()
        result = runner.invoke(cli, ["--data-dir", str(data_dir), "info"])

        assert result.exit_code == 0, result.output
        assert "counties: gz_2010_us_050_00_5m.json.gz (ok)" in result.output

    def test_info_env_var(self, tmp_path):
        """The data directory can come from POPJOIN_DATA_DIR."""
        runner = CliRunner()
        result = runner.invoke(cli, ["info"], env={"POPJOIN_DATA_DIR": str(tmp_path)})

        assert result.exit_code == 0, result.output
        assert str(tmp_path) in result.output
        assert "population: us_popdens_z14.csv.gz (missing)" in result.output
