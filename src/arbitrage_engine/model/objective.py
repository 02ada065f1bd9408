"""Optimization objective function."""

import linopy
import pandas as pd
import xarray as xr

from arbitrage_engine.core.constants import DIM_CHARGE_TIER, DIM_DISCHARGE_TIER, DIM_HOUR
from arbitrage_engine.model.prices import TierPrices


def add_objective(
    model: linopy.Model,
    charge: linopy.Variable,
    discharge: linopy.Variable,
    prices: TierPrices,
) -> None:
    """Add profit maximization objective.

    Objective = sum over tiers and slots of discharge_revenue * discharge - charge_cost * charge

    Args:
        model: linopy Model
        charge: Charge variable over (charge_tier, hour)
        discharge: Discharge variable over (discharge_tier, hour)
        prices: Per-tier coefficients for the window
    """
    hour_index = pd.RangeIndex(prices.hours, name=DIM_HOUR)
    charge_cost = xr.DataArray(
        prices.charge_cost,
        coords=[pd.RangeIndex(prices.charge_cost.shape[0], name=DIM_CHARGE_TIER), hour_index],
    )
    discharge_revenue = xr.DataArray(
        prices.discharge_revenue,
        coords=[pd.RangeIndex(prices.discharge_revenue.shape[0], name=DIM_DISCHARGE_TIER), hour_index],
    )

    revenue = (discharge * discharge_revenue).sum()
    cost = (charge * charge_cost).sum()

    model.add_objective(revenue - cost, sense="max")
