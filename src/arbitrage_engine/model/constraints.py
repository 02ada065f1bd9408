"""Optimization model constraints."""

import linopy

from arbitrage_engine.core.constants import DIM_CHARGE_TIER, DIM_DISCHARGE_TIER, DIM_HOUR


def add_power_caps(
    model: linopy.Model,
    charge: linopy.Variable,
    discharge: linopy.Variable,
    max_charge_energy: float,
    max_discharge_energy: float,
) -> None:
    """Cap the sum over tiers of charge and discharge in every slot.

    Individual tier bounds may add up to more than the converter can carry,
    so the aggregate is bounded explicitly.

    Args:
        model: linopy Model
        charge: Charge variable over (charge_tier, hour)
        discharge: Discharge variable over (discharge_tier, hour)
        max_charge_energy: Charger limit per slot in kWh
        max_discharge_energy: Inverter limit per slot in kWh
    """
    model.add_constraints(
        charge.sum(DIM_CHARGE_TIER) <= max_charge_energy, name="charge_power_cap"
    )
    model.add_constraints(
        discharge.sum(DIM_DISCHARGE_TIER) <= max_discharge_energy, name="discharge_power_cap"
    )


def add_soc_constraints(
    model: linopy.Model,
    hours: int,
    charge: linopy.Variable,
    discharge: linopy.Variable,
    start_energy: float,
    end_energy: float,
    max_energy: float,
) -> None:
    """Bound the state of charge at the end of every slot.

    SoC[h] = start_energy + sum_{k<=h} (charge_total[k] - discharge_total[k]) is
    written as a prefix sum over the decision variables, so no SoC variable is
    needed. The terminal SoC is a floor, not an equality.

    Args:
        model: linopy Model
        hours: Number of slots in the window
        charge: Charge variable over (charge_tier, hour)
        discharge: Discharge variable over (discharge_tier, hour)
        start_energy: SoC before the first slot
        end_energy: Floor on the SoC after the last slot
        max_energy: Battery capacity
    """
    net = charge.sum(DIM_CHARGE_TIER) - discharge.sum(DIM_DISCHARGE_TIER)

    for h in range(hours):
        soc_change = net.isel({DIM_HOUR: slice(0, h + 1)}).sum()
        model.add_constraints(soc_change <= max_energy - start_energy, name=f"soc_max_{h}")
        model.add_constraints(soc_change >= -start_energy, name=f"soc_min_{h}")

        if h == hours - 1:
            model.add_constraints(soc_change >= end_energy - start_energy, name="soc_terminal")


def add_strict_slot_bounds(
    model: linopy.Model,
    hours: int,
    charge: linopy.Variable,
    discharge: linopy.Variable,
    start_energy: float,
    max_energy: float,
) -> None:
    """Keep the SoC in bounds within each slot, not only at its end.

    SoC[h-1] + charge_total[h] <= max_energy and SoC[h-1] - discharge_total[h] >= 0,
    so energy charged in a slot cannot fund a discharge in that same slot.
    """
    charge_total = charge.sum(DIM_CHARGE_TIER)
    discharge_total = discharge.sum(DIM_DISCHARGE_TIER)
    net = charge_total - discharge_total

    for h in range(hours):
        slot_charge = charge_total.isel({DIM_HOUR: h})
        slot_discharge = discharge_total.isel({DIM_HOUR: h})

        if h == 0:
            model.add_constraints(slot_charge <= max_energy - start_energy, name="slot_fill_0")
            model.add_constraints(slot_discharge <= start_energy, name="slot_drain_0")
            continue

        prior_change = net.isel({DIM_HOUR: slice(0, h)}).sum()
        model.add_constraints(
            prior_change + slot_charge <= max_energy - start_energy, name=f"slot_fill_{h}"
        )
        model.add_constraints(
            prior_change - slot_discharge >= -start_energy, name=f"slot_drain_{h}"
        )
