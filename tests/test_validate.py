"""Test tariff series and schedule validation."""

from datetime import datetime, timedelta

import pandas as pd
import pytest

from arbitrage_engine.core.errors import ValidationError
from arbitrage_engine.core.schemas import BatteryConfig, RunConfig
from arbitrage_engine.core.validate import validate_schedule, validate_tariffs
from arbitrage_engine.runners.rolling import RollingHorizonOptimizer
from arbitrage_engine.runners.window import optimize_window


@pytest.fixture
def battery():
    return BatteryConfig(max_energy_kwh=5.0, max_charge_kw=2.0, max_discharge_kw=2.0)


def test_valid_series_passes(make_tariffs):
    validate_tariffs(make_tariffs([0.1, 0.2, 0.3]), 60)
    validate_tariffs(make_tariffs([0.1, 0.2], slot_minutes=15), 15)
    validate_tariffs([], 60)


def test_gap_rejected(make_tariffs):
    """Test a missing slot is caught."""
    tariffs = make_tariffs([0.1, 0.2, 0.3, 0.4])
    del tariffs[2]

    with pytest.raises(ValidationError, match="Inconsistent slot"):
        validate_tariffs(tariffs, 60)


def test_out_of_order_rejected(make_tariffs):
    """Test swapped timestamps are caught."""
    tariffs = make_tariffs([0.1, 0.2, 0.3])
    tariffs[1], tariffs[2] = tariffs[2], tariffs[1]

    with pytest.raises(ValidationError):
        validate_tariffs(tariffs, 60)


@pytest.mark.parametrize("price", [float("nan"), float("inf"), float("-inf")])
def test_non_finite_price_rejected(make_tariffs, price):
    """Test NaN and infinite prices are caught."""
    tariffs = make_tariffs([0.1, price, 0.3])

    with pytest.raises(ValidationError, match="Non-finite"):
        validate_tariffs(tariffs, 60)


def test_wrong_slot_length_rejected(make_tariffs):
    """Test hourly tariffs fail against a quarter-hour configuration."""
    with pytest.raises(ValidationError):
        validate_tariffs(make_tariffs([0.1, 0.2]), 15)


def test_rolling_driver_rejects_gaps_before_solving(battery, make_tariffs):
    """Test a gapped series fails at construction, not mid-run."""
    tariffs = make_tariffs([0.1] * 48)
    del tariffs[30]

    with pytest.raises(ValidationError):
        RollingHorizonOptimizer(battery, RunConfig(run_id="test_run"), tariffs)


def test_window_rejects_slot_mismatch(battery, make_tariffs):
    """Test a window refuses tariffs at a different slot length than configured."""
    tariffs = make_tariffs([0.1, 0.2, 0.3], start=datetime(2024, 1, 1), slot_minutes=30)

    with pytest.raises(ValidationError):
        optimize_window(tariffs, battery, RunConfig(run_id="test_run"))


def test_schedule_bounds(battery):
    """Test a schedule overfilling the battery is rejected."""
    index = pd.DatetimeIndex([datetime(2024, 1, 1) + timedelta(hours=h) for h in range(2)])
    schedule = pd.DataFrame(
        {"charge_kwh": [2.0, 2.0], "discharge_kwh": [0.0, 0.0], "end_soc_kwh": [4.0, 6.0]},
        index=index,
    )

    with pytest.raises(ValidationError, match="SoC above capacity"):
        validate_schedule(schedule, battery)
