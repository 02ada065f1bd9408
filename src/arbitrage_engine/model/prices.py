"""AC tariff to DC-side charge cost / discharge revenue transform.

A kWh stored in the battery costs ``ac_price / charge_efficiency`` at the
meter, and a kWh taken out of it earns ``ac_price * discharge_efficiency``.
"""

from dataclasses import dataclass
from typing import Optional, Sequence

import numpy as np
from pydantic import BaseModel, ConfigDict

from arbitrage_engine.core.errors import ValidationError
from arbitrage_engine.core.schemas import EfficiencyTier, Tariff, TariffConfig


class HourPrice(BaseModel):
    """DC-side economics of one slot for one charge/discharge efficiency pair."""

    model_config = ConfigDict(frozen=True)

    charge_cost: float
    discharge_revenue: float

    @classmethod
    def from_ac_price(
        cls, ac_price: float, charge_efficiency: float, discharge_efficiency: float
    ) -> "HourPrice":
        return cls(
            charge_cost=ac_price / charge_efficiency,
            discharge_revenue=ac_price * discharge_efficiency,
        )


@dataclass(frozen=True)
class TierPrices:
    """Per-tier, per-slot coefficients for one window.

    Attributes:
        ac_prices: Consumer price per slot, shape (hours,)
        charge_cost: Cost per kWh charged, shape (charge tiers, hours)
        discharge_revenue: Revenue per kWh discharged, shape (discharge tiers, hours)
    """

    ac_prices: np.ndarray
    charge_cost: np.ndarray
    discharge_revenue: np.ndarray

    @property
    def hours(self) -> int:
        return len(self.ac_prices)

    def hour_price(self, charge_tier: int, discharge_tier: int, hour: int) -> HourPrice:
        return HourPrice(
            charge_cost=float(self.charge_cost[charge_tier, hour]),
            discharge_revenue=float(self.discharge_revenue[discharge_tier, hour]),
        )


def ac_prices(tariffs: Sequence[Tariff], tariff_config: Optional[TariffConfig] = None) -> np.ndarray:
    """Apply surcharge and VAT to raw tariffs."""
    tariff_config = tariff_config or TariffConfig()
    return np.array(
        [tariff_config.consumer_price(t.unit_price) for t in tariffs], dtype=float
    )


def hour_prices(
    prices: Sequence[float], charge_efficiency: float, discharge_efficiency: float
) -> list[HourPrice]:
    """Convert AC prices for a single efficiency pair."""
    charge_tier = EfficiencyTier(efficiency=charge_efficiency)
    discharge_tier = EfficiencyTier(efficiency=discharge_efficiency)
    return [
        HourPrice.from_ac_price(p, charge_tier.efficiency, discharge_tier.efficiency)
        for p in prices
    ]


def transform_prices(
    tariffs: Sequence[Tariff],
    charge_tiers: Sequence[EfficiencyTier],
    discharge_tiers: Sequence[EfficiencyTier],
    tariff_config: Optional[TariffConfig] = None,
) -> TierPrices:
    """Build charge cost and discharge revenue matrices for every tier and slot.

    Args:
        tariffs: Ordered tariff slots of the window
        charge_tiers: Bands available for charging
        discharge_tiers: Bands available for discharging
        tariff_config: Surcharge/VAT applied before the efficiency split

    Returns:
        TierPrices for the window

    Raises:
        ValidationError: If either tier set is empty
    """
    if not charge_tiers or not discharge_tiers:
        raise ValidationError("At least one charge tier and one discharge tier are required")

    prices = ac_prices(tariffs, tariff_config)
    charge_eff = np.array([tier.efficiency for tier in charge_tiers], dtype=float)
    discharge_eff = np.array([tier.efficiency for tier in discharge_tiers], dtype=float)

    return TierPrices(
        ac_prices=prices,
        charge_cost=prices[np.newaxis, :] / charge_eff[:, np.newaxis],
        discharge_revenue=prices[np.newaxis, :] * discharge_eff[:, np.newaxis],
    )
