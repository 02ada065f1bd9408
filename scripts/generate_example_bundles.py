"""Generate example tariff bundles for testing and demonstration."""

from datetime import datetime
from pathlib import Path

import numpy as np
import pandas as pd

from arbitrage_engine.core.schemas import (
    BatteryConfig,
    HorizonConfig,
    RunConfig,
    TariffConfig,
    TierSpec,
)
from arbitrage_engine.io.bundle import init_bundle
from arbitrage_engine.tariffs.providers import SampleDayProvider, tariffs_to_frame

BUNDLE_ROOT = Path(__file__).parent.parent / "examples" / "bundles"


def home_battery() -> BatteryConfig:
    """5 kWh home battery that loses efficiency at full power."""
    return BatteryConfig(
        max_energy_kwh=5.0,
        max_charge_kw=2.2,
        max_discharge_kw=1.7,
        tiers=[
            TierSpec(power_fraction=0.5, roundtrip_efficiency=0.92),
            TierSpec(power_fraction=0.5, roundtrip_efficiency=0.85),
        ],
    )


def generate_sample_week():
    """Generate a week alternating the two reference days, with Dutch taxes."""
    print("Generating sample_week bundle...")

    names = ["jun07_2023", "oct31_2022"] * 3 + ["jun07_2023"]
    tariffs = SampleDayProvider(names, datetime(2023, 6, 5)).tariffs()

    run_config = RunConfig(
        run_id="sample_week",
        start_energy_kwh=1.0,
        tariff=TariffConfig(surcharge_per_kwh=0.15, vat_rate=0.21),
    )

    bundle_path = BUNDLE_ROOT / "sample_week"
    init_bundle(bundle_path, home_battery(), run_config, tariffs_to_frame(tariffs))
    print(f"✓ Created {bundle_path}")


def generate_quarter_hour_negative():
    """Generate three days of 15-minute prices dipping below zero around midday."""
    print("Generating quarter_hour_negative bundle...")

    rng = np.random.default_rng(7)
    num_days = 3
    slot_minutes = 15
    num_slots = num_days * 24 * 60 // slot_minutes

    dates = pd.date_range("2024-05-01", periods=num_slots, freq=f"{slot_minutes}min")
    hour = dates.hour + dates.minute / 60.0

    # Evening peak with a solar trough that goes negative
    price = 0.10 + 0.08 * np.exp(-((hour - 19.0) ** 2) / 4.0) - 0.14 * np.exp(-((hour - 13.0) ** 2) / 3.0)
    price += rng.normal(0, 0.01, num_slots)

    tariffs = pd.DataFrame({"unit_price": price}, index=dates)
    tariffs.index.name = "timestamp"

    run_config = RunConfig(
        run_id="quarter_hour_negative",
        horizon=HorizonConfig(slot_minutes=slot_minutes),
        end_energy_kwh=2.5,
    )

    bundle_path = BUNDLE_ROOT / "quarter_hour_negative"
    init_bundle(bundle_path, home_battery(), run_config, tariffs)
    print(f"✓ Created {bundle_path}")


if __name__ == "__main__":
    print("Generating example bundles...\n")
    generate_sample_week()
    generate_quarter_hour_negative()
    print("\n✓ All example bundles generated")
