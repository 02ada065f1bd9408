"""Test the command-line interface."""

from typer.testing import CliRunner

from arbitrage_engine.cli import app

runner = CliRunner()


def test_version():
    """Test the version command."""
    result = runner.invoke(app, ["version"])
    assert result.exit_code == 0
    assert "Arbitrage Engine v" in result.stdout


def test_init_backtest_report(tmp_path):
    """Test the bundle workflow from sample days to a rendered report."""
    bundle = str(tmp_path / "bundle")

    result = runner.invoke(app, ["init-bundle", bundle, "--sample", "jun07_2023", "--days", "2"])
    assert result.exit_code == 0, result.output

    result = runner.invoke(app, ["validate", bundle])
    assert result.exit_code == 0, result.output

    result = runner.invoke(app, ["backtest", bundle, "--one-shot"])
    assert result.exit_code == 0, result.output

    result = runner.invoke(app, ["report", bundle])
    assert result.exit_code == 0, result.output
    assert "Foresight gap" in result.stdout
    assert "2023-06-07 00:00" in result.stdout


def test_backtest_reports_aborted_run(tmp_path):
    """Test an infeasible run exits non-zero."""
    bundle = str(tmp_path / "bundle")
    runner.invoke(app, ["init-bundle", bundle, "--days", "2", "--max-energy", "1.0"])

    # Reaching 100 kWh in a 1 kWh battery is impossible
    run_config = tmp_path / "bundle" / "run_config.yaml"
    run_config.write_text(run_config.read_text().replace("end_energy_kwh: 0.0", "end_energy_kwh: 100.0"))

    result = runner.invoke(app, ["backtest", bundle])
    assert result.exit_code == 1


def test_report_without_results(tmp_path):
    """Test report refuses a bundle that was never backtested."""
    result = runner.invoke(app, ["report", str(tmp_path)])
    assert result.exit_code == 1


def test_init_bundle_unknown_sample(tmp_path):
    """Test an unknown sample day exits non-zero."""
    result = runner.invoke(app, ["init-bundle", str(tmp_path / "b"), "--sample", "nope"])
    assert result.exit_code == 1
