"""Command-line interface for the arbitrage engine."""

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Optional

import pandas as pd
import typer

from arbitrage_engine import __version__
from arbitrage_engine.core.constants import (
    COL_CHARGE_KWH,
    COL_DISCHARGE_KWH,
    COL_END_SOC_KWH,
    COL_GRID_PRICE,
)

app = typer.Typer(
    help="Rolling-horizon battery arbitrage optimizer",
    no_args_is_help=True,
)

GRAPH_WIDTH = 15


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Log window progress")):
    """Configure logging for all commands."""
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@app.command()
def version():
    """Show engine version."""
    typer.echo(f"Arbitrage Engine v{__version__}")


@app.command()
def validate(bundle_path: str):
    """Validate a run bundle.

    Args:
        bundle_path: Path to bundle directory
    """
    from arbitrage_engine.core.errors import ScheduleError
    from arbitrage_engine.io.bundle import validate_bundle

    try:
        validate_bundle(bundle_path)
        typer.secho(f"✓ Bundle at {bundle_path} is valid", fg=typer.colors.GREEN)
    except (ScheduleError, OSError) as e:
        typer.secho(f"✗ Bundle validation failed: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(1)


@app.command()
def init_bundle(
    bundle_path: str,
    sample: Optional[str] = typer.Option(None, help="Sample day to repeat (default: alternate all)"),
    days: int = typer.Option(3, min=1, help="Number of sample days"),
    start_date: str = typer.Option("2023-06-07", help="Date of the first sample day"),
    json_path: Optional[str] = typer.Option(None, "--json", help="Public price dump to import instead"),
    max_energy: float = typer.Option(5.0, help="Battery capacity in kWh"),
    max_charge: float = typer.Option(2.2, help="Charger power in kW"),
    max_discharge: float = typer.Option(1.7, help="Inverter power in kW"),
    roundtrip_full: float = typer.Option(0.9, help="Round-trip efficiency at full power"),
    roundtrip_half: float = typer.Option(0.9, help="Round-trip efficiency at half power"),
    surcharge: float = typer.Option(0.0, help="Energy tax per kWh added to each price"),
    vat: float = typer.Option(0.0, help="VAT fraction applied after the surcharge"),
):
    """Initialize a new run bundle from sample days or a JSON price dump.

    Args:
        bundle_path: Path to new bundle directory
    """
    from arbitrage_engine.core.errors import ScheduleError
    from arbitrage_engine.core.schemas import BatteryConfig, RunConfig, TariffConfig, TierSpec
    from arbitrage_engine.io.bundle import init_bundle as write_bundle
    from arbitrage_engine.io.formats import read_tariffs_json
    from arbitrage_engine.tariffs.providers import sample_provider, tariffs_to_frame

    battery = BatteryConfig(
        max_energy_kwh=max_energy,
        max_charge_kw=max_charge,
        max_discharge_kw=max_discharge,
        tiers=[
            TierSpec(power_fraction=1.0, roundtrip_efficiency=roundtrip_full),
            TierSpec(power_fraction=0.5, roundtrip_efficiency=roundtrip_half),
        ],
    )
    run_config = RunConfig(
        run_id=Path(bundle_path).name,
        tariff=TariffConfig(surcharge_per_kwh=surcharge, vat_rate=vat),
    )

    try:
        if json_path is not None:
            tariffs = read_tariffs_json(json_path)
        else:
            start = datetime.fromisoformat(start_date)
            tariffs = tariffs_to_frame(sample_provider(sample, days, start).tariffs())
    except (ScheduleError, ValueError, OSError) as e:
        typer.secho(f"✗ Could not load tariffs: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(1)

    write_bundle(bundle_path, battery, run_config, tariffs)
    typer.secho(f"✓ Bundle with {len(tariffs)} slots written to {bundle_path}", fg=typer.colors.GREEN)


@app.command()
def backtest(
    bundle_path: str,
    one_shot: bool = typer.Option(False, help="Also solve the whole series at once for comparison"),
):
    """Run rolling-horizon backtest on a bundle.

    Args:
        bundle_path: Path to bundle directory
    """
    from arbitrage_engine.core.errors import ScheduleError
    from arbitrage_engine.runners.backtest import run_backtest

    try:
        _, metrics, result = run_backtest(bundle_path, one_shot=one_shot)
    except (ScheduleError, ValueError, OSError) as e:
        typer.secho(f"\n✗ Backtest failed: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(1)

    if not result.complete:
        typer.secho(
            f"\n✗ Run aborted after {len(result.states)} committed slots: {result.error}",
            fg=typer.colors.RED,
            err=True,
        )
        raise typer.Exit(1)

    typer.secho(
        f"\n✓ Backtest completed: profit {metrics['total_profit']:.4f}, "
        f"{metrics['cycles']:.2f} cycles",
        fg=typer.colors.GREEN,
    )


def _graph_cell(value: float, low: float, high: float) -> str:
    """Fixed-width bar for one value scaled between low and high."""
    span = high - low
    part = GRAPH_WIDTH * ((value - low) / span) if span > 0 else 0.0
    bar = "*" * max(0, min(GRAPH_WIDTH, round(part)))
    return f"{value + 0.0001:5.2f} {bar:<{GRAPH_WIDTH}} | "


def render_schedule(schedule: pd.DataFrame, max_energy: float) -> str:
    """Render a schedule as one text row of bar graphs per slot."""
    low = schedule[COL_GRID_PRICE].min()
    high = schedule[COL_GRID_PRICE].max()

    lines = ["Slot             | Price                   | Charged                 | Discharged              | SoC"]
    for timestamp, row in schedule.iterrows():
        lines.append(
            f"{timestamp:%Y-%m-%d %H:%M} | "
            + _graph_cell(row[COL_GRID_PRICE], low, high)
            + _graph_cell(row[COL_CHARGE_KWH], 0, max_energy)
            + _graph_cell(row[COL_DISCHARGE_KWH], 0, max_energy)
            + _graph_cell(row[COL_END_SOC_KWH], 0, max_energy)
        )
    return "\n".join(lines)


@app.command()
def report(
    bundle_path: str,
    graph: bool = typer.Option(True, help="Print the per-slot schedule graph"),
):
    """Generate report from backtest results.

    Args:
        bundle_path: Path to bundle directory
    """
    from arbitrage_engine.io.bundle import load_bundle
    from arbitrage_engine.io.formats import read_parquet_timeseries

    bundle_path_obj = Path(bundle_path)

    metrics_file = bundle_path_obj / "metrics.json"
    if not metrics_file.exists():
        typer.secho(
            "✗ No results found in bundle. Run backtest first.",
            fg=typer.colors.RED,
            err=True,
        )
        raise typer.Exit(1)

    with open(metrics_file) as f:
        metrics = json.load(f)

    typer.echo("\n" + "=" * 60)
    typer.echo("BACKTEST RESULTS")
    typer.echo("=" * 60)

    typer.echo("\nEconomics:")
    typer.echo(f"  Profit:           {metrics['total_profit']:.4f}")
    typer.echo(f"  Avg buy price:    {metrics['avg_buy_price']:.4f}")
    typer.echo(f"  Avg sell price:   {metrics['avg_sell_price']:.4f}")
    if "one_shot_profit" in metrics:
        typer.echo(f"  One-shot profit:  {metrics['one_shot_profit']:.4f}")
        typer.echo(f"  Foresight gap:    {metrics['foresight_gap']:.4f}")

    typer.echo("\nBattery Utilization:")
    typer.echo(f"  Charged:          {metrics['charged_kwh']:.2f} kWh")
    typer.echo(f"  Discharged:       {metrics['discharged_kwh']:.2f} kWh")
    typer.echo(f"  Cycles:           {metrics['cycles']:.2f}")

    if not metrics.get("complete", True):
        typer.secho("\n  Run was aborted; figures cover committed slots only", fg=typer.colors.YELLOW)

    if graph:
        battery, _, _ = load_bundle(bundle_path)
        schedule = read_parquet_timeseries(str(bundle_path_obj / "schedule.parquet"))
        typer.echo("")
        typer.echo(render_schedule(schedule, battery.max_energy_kwh))

    typer.echo("\n" + "=" * 60 + "\n")

    typer.secho("✓ Report generated", fg=typer.colors.GREEN)


if __name__ == "__main__":
    app()
