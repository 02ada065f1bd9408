"""Build the per-window arbitrage LP using linopy."""

import logging
from dataclasses import dataclass
from typing import Optional

import linopy
import numpy as np
import pandas as pd
import xarray as xr

from arbitrage_engine.core.constants import (
    DIM_CHARGE_TIER,
    DIM_DISCHARGE_TIER,
    DIM_HOUR,
    VAR_CHARGE,
    VAR_DISCHARGE,
)
from arbitrage_engine.core.errors import ValidationError
from arbitrage_engine.core.schemas import BatteryConfig, EfficiencyTier
from arbitrage_engine.model.prices import TierPrices

logger = logging.getLogger(__name__)


@dataclass
class WindowModel:
    """LP for one planning window plus what is needed to read it back.

    ``model`` is None for an empty window; such a window is trivially optimal
    with zero objective.
    """

    model: Optional[linopy.Model]
    prices: TierPrices
    charge_tiers: list[EfficiencyTier]
    discharge_tiers: list[EfficiencyTier]
    start_energy: float
    end_energy: float
    max_energy: float
    slot_hours: float

    @property
    def hours(self) -> int:
        return self.prices.hours

    @property
    def is_empty(self) -> bool:
        return self.model is None


def _tier_bounds(tiers: list[EfficiencyTier], dim: str, hours: int, slot_hours: float) -> xr.DataArray:
    """Per-slot energy bound of every tier, broadcast over the window."""
    caps = np.array([tier.max_power * slot_hours for tier in tiers], dtype=float)
    return xr.DataArray(
        np.repeat(caps[:, np.newaxis], hours, axis=1),
        coords=[pd.RangeIndex(len(tiers), name=dim), pd.RangeIndex(hours, name=DIM_HOUR)],
    )


def build_model(
    battery: BatteryConfig,
    prices: TierPrices,
    start_energy: float,
    end_energy: float,
    slot_hours: float = 1.0,
) -> WindowModel:
    """Build the LP for one window.

    Feasibility of start/end energy against the capacity is not checked here;
    an unreachable target surfaces as an infeasible solve.

    Args:
        battery: Battery configuration (capacity, power caps, tiers)
        prices: Per-tier coefficients, shaped to the battery's tier sets
        start_energy: SoC before the first slot
        end_energy: Floor on the SoC after the last slot
        slot_hours: Slot length in hours

    Returns:
        WindowModel ready for solving

    Raises:
        ValidationError: If the price matrices do not match the tier sets
    """
    charge_tiers = battery.resolved_charge_tiers()
    discharge_tiers = battery.resolved_discharge_tiers()
    hours = prices.hours

    if prices.charge_cost.shape != (len(charge_tiers), hours):
        raise ValidationError(
            f"Charge cost shape {prices.charge_cost.shape} does not match "
            f"{len(charge_tiers)} charge tiers x {hours} slots"
        )
    if prices.discharge_revenue.shape != (len(discharge_tiers), hours):
        raise ValidationError(
            f"Discharge revenue shape {prices.discharge_revenue.shape} does not match "
            f"{len(discharge_tiers)} discharge tiers x {hours} slots"
        )

    window = WindowModel(
        model=None,
        prices=prices,
        charge_tiers=charge_tiers,
        discharge_tiers=discharge_tiers,
        start_energy=start_energy,
        end_energy=end_energy,
        max_energy=battery.max_energy_kwh,
        slot_hours=slot_hours,
    )

    if hours == 0:
        logger.debug("Empty window, skipping model construction")
        return window

    model = linopy.Model()

    # Decision variables: energy per slot, one row per tier
    charge_upper = _tier_bounds(charge_tiers, DIM_CHARGE_TIER, hours, slot_hours)
    discharge_upper = _tier_bounds(discharge_tiers, DIM_DISCHARGE_TIER, hours, slot_hours)
    charge = model.add_variables(lower=xr.zeros_like(charge_upper), upper=charge_upper, name=VAR_CHARGE)
    discharge = model.add_variables(
        lower=xr.zeros_like(discharge_upper), upper=discharge_upper, name=VAR_DISCHARGE
    )

    from arbitrage_engine.model.constraints import (
        add_power_caps,
        add_soc_constraints,
        add_strict_slot_bounds,
    )

    add_power_caps(
        model,
        charge,
        discharge,
        battery.max_charge_kw * slot_hours,
        battery.max_discharge_kw * slot_hours,
    )
    add_soc_constraints(
        model, hours, charge, discharge, start_energy, end_energy, battery.max_energy_kwh
    )
    if battery.strict_slot_bounds:
        add_strict_slot_bounds(
            model, hours, charge, discharge, start_energy, battery.max_energy_kwh
        )

    from arbitrage_engine.model.objective import add_objective

    add_objective(model, charge, discharge, prices)

    window.model = model
    logger.debug(
        "Built window model: %d slots, %d charge tiers, %d discharge tiers",
        hours,
        len(charge_tiers),
        len(discharge_tiers),
    )
    return window
