"""Pydantic schemas for tariffs, tiers, configuration and run metadata."""

import math
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from arbitrage_engine.core.constants import DEFAULT_TIME_LIMIT_SECONDS
from arbitrage_engine.core.errors import ValidationError


class Tariff(BaseModel):
    """Grid price for one fixed-length slot starting at ``timestamp``."""

    model_config = ConfigDict(frozen=True)

    timestamp: datetime
    unit_price: float = Field(..., description="Raw grid price per kWh")


class EfficiencyTier(BaseModel):
    """One power band with its own one-way efficiency.

    Charge and discharge tier sets are independent; a tier used for charging
    carries the charge efficiency, a tier used for discharging the discharge
    efficiency.
    """

    model_config = ConfigDict(frozen=True)

    max_power: float = Field(default=math.inf, description="Band power limit in kW")
    efficiency: float = Field(..., description="One-way efficiency in (0, 1]")

    @model_validator(mode="after")
    def check_bounds(self) -> "EfficiencyTier":
        """Reject efficiencies outside (0, 1] and negative power."""
        if not 0 < self.efficiency <= 1:
            raise ValidationError(f"Tier efficiency {self.efficiency} must be in (0, 1]")
        if not self.max_power >= 0:
            raise ValidationError(f"Tier max_power {self.max_power} must be >= 0")
        return self


def split_roundtrip(roundtrip_efficiency: float) -> float:
    """Split a round-trip efficiency evenly into one charge/discharge leg."""
    if not 0 < roundtrip_efficiency <= 1:
        raise ValidationError(
            f"Round-trip efficiency {roundtrip_efficiency} must be in (0, 1]"
        )
    return math.sqrt(roundtrip_efficiency)


class TierSpec(BaseModel):
    """Shared band given as a fraction of the converter power and a round-trip efficiency."""

    power_fraction: float = Field(default=1.0, gt=0, le=1, description="Fraction of max power")
    roundtrip_efficiency: float = Field(default=0.9, gt=0, le=1, description="Round-trip efficiency")


class BatteryConfig(BaseModel):
    """Battery asset configuration."""

    max_energy_kwh: float = Field(..., gt=0, description="Usable capacity in kWh")
    max_charge_kw: float = Field(..., gt=0, description="Max charge power in kW (DC side)")
    max_discharge_kw: float = Field(..., gt=0, description="Max discharge power in kW (DC side)")
    tiers: list[TierSpec] = Field(default_factory=lambda: [TierSpec()], min_length=1)
    charge_tiers: Optional[list[EfficiencyTier]] = None
    discharge_tiers: Optional[list[EfficiencyTier]] = None
    strict_slot_bounds: bool = Field(
        default=False,
        description="Also bound SoC within each slot (no same-slot charge funding discharge)",
    )

    @model_validator(mode="after")
    def check_tier_sets(self) -> "BatteryConfig":
        """Explicit tier sets must not be empty."""
        for name in ("charge_tiers", "discharge_tiers"):
            if getattr(self, name) == []:
                raise ValueError(f"{name} must contain at least one tier when given")
        return self

    def resolved_charge_tiers(self) -> list[EfficiencyTier]:
        """Charge tiers, explicit or derived from the shared tier specs."""
        if self.charge_tiers is not None:
            return list(self.charge_tiers)
        return [
            EfficiencyTier(
                max_power=tier.power_fraction * self.max_charge_kw,
                efficiency=split_roundtrip(tier.roundtrip_efficiency),
            )
            for tier in self.tiers
        ]

    def resolved_discharge_tiers(self) -> list[EfficiencyTier]:
        """Discharge tiers, explicit or derived from the shared tier specs."""
        if self.discharge_tiers is not None:
            return list(self.discharge_tiers)
        return [
            EfficiencyTier(
                max_power=tier.power_fraction * self.max_discharge_kw,
                efficiency=split_roundtrip(tier.roundtrip_efficiency),
            )
            for tier in self.tiers
        ]


class TariffConfig(BaseModel):
    """AC-side markup applied to raw grid prices."""

    surcharge_per_kwh: float = Field(default=0.0, ge=0, description="Energy tax per kWh")
    vat_rate: float = Field(default=0.0, ge=0, description="VAT as a fraction, e.g. 0.21")

    def consumer_price(self, unit_price: float) -> float:
        return (unit_price + self.surcharge_per_kwh) * (1 + self.vat_rate)


class HorizonConfig(BaseModel):
    """Rolling-horizon window and commit policy."""

    slot_minutes: int = Field(default=60, gt=0, description="Tariff slot length in minutes")
    publication_hour: int = Field(
        default=12, ge=0, le=23, description="Local hour at which next-day prices are published"
    )
    timezone: str = Field(
        default="Europe/Amsterdam",
        description="Zone of publication_hour; timezone-aware tariffs are converted to it",
    )
    initial_commit_hours: Optional[int] = Field(
        default=None, gt=0, description="First commit length; derived from publication_hour if unset"
    )
    commit_hours: int = Field(default=24, gt=0, description="Steady-state commit length")
    lookahead_hours: int = Field(default=12, ge=0, description="Extra hours solved past each commit")

    @field_validator("slot_minutes")
    @classmethod
    def validate_slot(cls, v: int) -> int:
        """Ensure slot length divides 60 evenly."""
        if 60 % v != 0:
            raise ValueError(f"Slot length {v} must divide 60 evenly")
        return v

    @property
    def slots_per_hour(self) -> int:
        return 60 // self.slot_minutes

    @property
    def slot_hours(self) -> float:
        return self.slot_minutes / 60.0


class RunConfig(BaseModel):
    """Run-specific configuration."""

    run_id: str = Field(..., description="Unique run identifier")
    start_energy_kwh: float = Field(default=0.0, ge=0, description="SoC before the first slot")
    end_energy_kwh: float = Field(default=0.0, ge=0, description="SoC floor after the last slot")
    tariff: TariffConfig = Field(default_factory=TariffConfig)
    horizon: HorizonConfig = Field(default_factory=HorizonConfig)
    solver_name: str = Field(default="highs")
    solver_time_limit_seconds: float = Field(default=DEFAULT_TIME_LIMIT_SECONDS, gt=0)


class WindowReport(BaseModel):
    """Outcome of one rolling-horizon window."""

    window_index: int
    start: datetime
    slots: int
    committed_slots: int
    start_energy_kwh: float
    end_soc_kwh: float
    status: str
    objective_value: float
    solve_time_seconds: float


class BundleMetadata(BaseModel):
    """Metadata for reproducibility tracking."""

    created_at: datetime = Field(default_factory=datetime.utcnow)
    engine_version: str
    solver_name: str = Field(default="highs")
    solver_version: Optional[str] = None
    complete: bool = True
    error: Optional[str] = None
