"""CLI tests via Typer's CliRunner."""
import json
import pytest
from typer.testing import CliRunner

from chartengine.cli.main import app


@pytest.fixture
def runner():
    return CliRunner()


class TestInfoCommands:
    """Commands that only read the registry."""

    def test_version(self, runner):
        result = runner.invoke(app, ["--version"])

        assert result.exit_code == 0
        assert "1.0.0" in result.stdout

    def test_list(self, runner):
        result = runner.invoke(app, ["list"])

        assert result.exit_code == 0
        assert "sma" in result.stdout
        assert "ichimoku" in result.stdout

    def test_describe(self, runner):
        result = runner.invoke(app, ["describe", "sma"])

        assert result.exit_code == 0
        assert "period" in result.stdout

    def test_describe_unknown(self, runner):
        result = runner.invoke(app, ["describe", "nonexistent"])

        assert result.exit_code == 1
        assert "Unknown indicator" in result.stdout

    def test_layout(self, runner):
        result = runner.invoke(app, ["layout", "macd", "rsi"])

        assert result.exit_code == 0
        assert "macd" in result.stdout
        assert "rsi" in result.stdout


class TestCompute:
    """compute over a CSV file."""

    def test_compute_writes_payload(self, runner, ohlc_csv, tmp_path):
        output = tmp_path / "out.json"

        result = runner.invoke(app, [
            "compute", str(ohlc_csv),
            "-i", "sma", "-i", "rsi",
            "-p", "sma.period=5",
            "-o", str(output),
        ])

        assert result.exit_code == 0
        payload = json.loads(output.read_text())
        assert payload["configuration"]["sma"]["period"] == 5
        assert payload["configuration"]["rsi"]["period"] == 14
        assert [pane["id"] for pane in payload["panes"]] == ["main", "rsi"]
        assert len(payload["close"]) == 60

    def test_compute_with_config_file(self, runner, ohlc_csv, tmp_path):
        config = tmp_path / "config.json"
        config.write_text(json.dumps({"ema": {"period": 3}, "gone": {}}))
        output = tmp_path / "out.json"

        result = runner.invoke(app, ["compute", str(ohlc_csv), "-c", str(config), "-o", str(output)])

        assert result.exit_code == 0
        assert "gone" in result.stdout
        assert list(json.loads(output.read_text())["configuration"]) == ["ema"]

    def test_compute_missing_file(self, runner, tmp_path):
        result = runner.invoke(app, ["compute", str(tmp_path / "missing.csv"), "-i", "sma"])

        assert result.exit_code == 1

    def test_compute_bad_param(self, runner, ohlc_csv):
        result = runner.invoke(app, ["compute", str(ohlc_csv), "-p", "period=5"])

        assert result.exit_code != 0

    def test_compute_bad_cell_reports_error(self, runner, tmp_path):
        bad = tmp_path / "bad.csv"
        bad.write_text(
            "time,open,high,low,close\n"
            "2025-01-02 09:30:00,1.0,2.0,0.5,1.5\n"
            "2025-01-02 09:31:00,1.0,2.0,0.5,abc\n"
        )

        result = runner.invoke(app, ["compute", str(bad), "-i", "sma"])

        assert result.exit_code == 1
        assert result.exception is None or isinstance(result.exception, SystemExit)
        assert "Error" in result.stdout
