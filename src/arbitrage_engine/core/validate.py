"""Input validation beyond Pydantic schemas."""

import math
from datetime import timedelta
from typing import Sequence

import pandas as pd

from arbitrage_engine.core.constants import (
    COL_CHARGE_KWH,
    COL_DISCHARGE_KWH,
    COL_END_SOC_KWH,
    NUMERICAL_TOLERANCE,
    REQUIRED_TARIFF_COLUMNS,
)
from arbitrage_engine.core.errors import ValidationError
from arbitrage_engine.core.schemas import BatteryConfig, Tariff


def validate_tariffs(tariffs: Sequence[Tariff], slot_minutes: int) -> None:
    """Validate a tariff series is ordered, gapless and finite.

    Args:
        tariffs: Tariff slots
        slot_minutes: Expected slot length in minutes

    Raises:
        ValidationError: If validation fails
    """
    expected = timedelta(minutes=slot_minutes)

    for i, tariff in enumerate(tariffs):
        if not math.isfinite(tariff.unit_price):
            raise ValidationError(f"Non-finite price at {tariff.timestamp}")
        if i == 0:
            continue
        step = tariff.timestamp - tariffs[i - 1].timestamp
        if step != expected:
            raise ValidationError(
                f"Inconsistent slot at {tariff.timestamp}. Expected {slot_minutes} minutes, "
                f"found {step}"
            )


def validate_tariff_frame(df: pd.DataFrame, slot_minutes: int) -> None:
    """Validate a tariff DataFrame before converting it to Tariff records.

    Raises:
        ValidationError: If validation fails
    """
    missing_cols = set(REQUIRED_TARIFF_COLUMNS) - set(df.columns)
    if missing_cols:
        raise ValidationError(f"Missing required columns: {missing_cols}")

    if not isinstance(df.index, pd.DatetimeIndex):
        raise ValidationError("Tariffs must have DatetimeIndex")

    if not df.index.is_monotonic_increasing:
        raise ValidationError("Timestamps must be monotonic increasing")

    if df.index.has_duplicates:
        raise ValidationError("Duplicate timestamps found")

    if len(df) > 1:
        time_diffs = df.index.to_series().diff().dropna()
        expected_delta = pd.Timedelta(minutes=slot_minutes)

        if not (time_diffs == expected_delta).all():
            raise ValidationError(
                f"Inconsistent slot length. Expected {slot_minutes} minutes. "
                f"Found: {time_diffs.value_counts().to_dict()}"
            )

    if df[REQUIRED_TARIFF_COLUMNS].isna().any().any():
        raise ValidationError("NaN values found in tariff prices")


def validate_schedule(df: pd.DataFrame, battery: BatteryConfig, slot_hours: float = 1.0) -> None:
    """Validate a committed schedule satisfies the physical constraints.

    Args:
        df: Schedule dataframe (see RollingResult.to_frame)
        battery: Battery configuration
        slot_hours: Slot length in hours

    Raises:
        ValidationError: If constraints are violated
    """
    for col in [COL_CHARGE_KWH, COL_DISCHARGE_KWH]:
        if (df[col] < -NUMERICAL_TOLERANCE).any():
            raise ValidationError(f"{col} has negative values")

    if (df[COL_END_SOC_KWH] < -NUMERICAL_TOLERANCE).any():
        raise ValidationError("SoC below zero")

    if (df[COL_END_SOC_KWH] > battery.max_energy_kwh + NUMERICAL_TOLERANCE).any():
        raise ValidationError(f"SoC above capacity: {battery.max_energy_kwh} kWh")

    max_charge = battery.max_charge_kw * slot_hours
    if (df[COL_CHARGE_KWH] > max_charge + NUMERICAL_TOLERANCE).any():
        raise ValidationError(f"Charge exceeds limit: {max_charge} kWh per slot")

    max_discharge = battery.max_discharge_kw * slot_hours
    if (df[COL_DISCHARGE_KWH] > max_discharge + NUMERICAL_TOLERANCE).any():
        raise ValidationError(f"Discharge exceeds limit: {max_discharge} kWh per slot")
