"""Backtest runner for historical evaluation.

Runs the rolling-horizon optimizer over a bundle's full tariff history, with
perfect foresight inside each window, and optionally a one-shot solve over
the whole series as the perfect-foresight reference.
"""

import logging
from pathlib import Path

import pandas as pd

from arbitrage_engine.core.metrics import compute_metrics
from arbitrage_engine.core.validate import validate_schedule
from arbitrage_engine.io.bundle import load_bundle, write_results
from arbitrage_engine.runners.rolling import RollingResult, optimize_rolling
from arbitrage_engine.runners.window import optimize_window
from arbitrage_engine.tariffs.providers import FrameTariffProvider

logger = logging.getLogger(__name__)


def run_backtest(
    bundle_path: str | Path, one_shot: bool = False
) -> tuple[pd.DataFrame, dict, RollingResult]:
    """Run backtest on a bundle and write the results back into it.

    The one-shot reference builds one LP over the entire series; its SoC
    constraints grow quadratically with the series length, so keep it for
    series of a few weeks at most.

    Args:
        bundle_path: Path to run bundle
        one_shot: Also solve the whole series at once for comparison

    Returns:
        Tuple of (schedule_df, metrics, rolling_result)
    """
    logger.info("Loading bundle from %s", bundle_path)
    battery, run_config, tariff_frame = load_bundle(bundle_path)

    tariffs = FrameTariffProvider(tariff_frame, run_config.horizon.slot_minutes).tariffs()
    logger.info(
        "Run %s: %d slots from %s to %s",
        run_config.run_id,
        len(tariffs),
        tariffs[0].timestamp if tariffs else None,
        tariffs[-1].timestamp if tariffs else None,
    )

    result = optimize_rolling(tariffs, battery, run_config)
    schedule = result.to_frame()

    validate_schedule(schedule, battery, run_config.horizon.slot_hours)
    logger.info("Schedule validation passed")

    reference_profit = None
    if one_shot and result.complete:
        logger.info("Solving one-shot reference over %d slots", len(tariffs))
        reference_profit = optimize_window(tariffs, battery, run_config).profit

    metrics = compute_metrics(result.states, battery.max_energy_kwh, reference_profit)
    metrics["complete"] = result.complete

    logger.info(
        "Backtest %s: profit %.4f over %d windows, %.2f cycles",
        "completed" if result.complete else "aborted",
        metrics["total_profit"],
        len(result.windows),
        metrics["cycles"],
    )

    write_results(
        bundle_path,
        schedule,
        result.windows,
        metrics,
        solver_name=run_config.solver_name,
        error=str(result.error) if result.error is not None else None,
    )

    return schedule, metrics, result
