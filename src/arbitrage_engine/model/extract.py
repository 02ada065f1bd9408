"""Map a solved window back to per-slot schedule states."""

from datetime import datetime, timedelta

import numpy as np
from pydantic import BaseModel, ConfigDict, model_validator

from arbitrage_engine.core.constants import VAR_CHARGE, VAR_DISCHARGE
from arbitrage_engine.core.errors import LengthMismatchError
from arbitrage_engine.model.build import WindowModel
from arbitrage_engine.model.solve import SolveResult


class OptimizedState(BaseModel):
    """Schedule for one slot.

    ``cost`` is the net spend of the slot (charge cost minus discharge
    revenue) and ``end_soc`` the state of charge once the slot is over.
    """

    model_config = ConfigDict(frozen=True)

    timestamp: datetime
    slot_duration: timedelta = timedelta(hours=1)
    grid_price: float
    charge: float
    discharge: float
    cost: float
    end_soc: float

    @property
    def start_soc(self) -> float:
        return self.end_soc + self.discharge - self.charge


class PartialSolution(BaseModel):
    """Parallel per-slot arrays of one solved window."""

    model_config = ConfigDict(frozen=True)

    prices: list[float]
    socs: list[float]
    costs: list[float]
    charge: list[float]
    discharge: list[float]

    @model_validator(mode="after")
    def check_lengths(self) -> "PartialSolution":
        lengths = {
            "prices": len(self.prices),
            "socs": len(self.socs),
            "costs": len(self.costs),
            "charge": len(self.charge),
            "discharge": len(self.discharge),
        }
        if len(set(lengths.values())) > 1:
            raise LengthMismatchError(f"Length mismatch: {lengths}")
        return self

    def __len__(self) -> int:
        return len(self.prices)

    def to_states(
        self, start: datetime, slot_duration: timedelta = timedelta(hours=1)
    ) -> list[OptimizedState]:
        """Attach timestamps walking forward from ``start`` one slot at a time."""
        states = []
        timestamp = start
        for i in range(len(self.prices)):
            states.append(
                OptimizedState(
                    timestamp=timestamp,
                    slot_duration=slot_duration,
                    grid_price=self.prices[i],
                    charge=self.charge[i],
                    discharge=self.discharge[i],
                    cost=self.costs[i],
                    end_soc=self.socs[i],
                )
            )
            timestamp += slot_duration
        return states


def extract_solution(window: WindowModel, result: SolveResult) -> PartialSolution:
    """Evaluate per-slot totals, cost and running SoC at the solved assignment.

    Args:
        window: The window model that was solved
        result: Solve result with a usable assignment

    Returns:
        PartialSolution for the window
    """
    result.raise_for_status()

    charge = result.values[VAR_CHARGE]
    discharge = result.values[VAR_DISCHARGE]

    charge_total = charge.sum(axis=0)
    discharge_total = discharge.sum(axis=0)
    costs = (window.prices.charge_cost * charge).sum(axis=0) - (
        window.prices.discharge_revenue * discharge
    ).sum(axis=0)
    socs = window.start_energy + np.cumsum(charge_total - discharge_total)

    return PartialSolution(
        prices=window.prices.ac_prices.tolist(),
        socs=socs.tolist(),
        costs=costs.tolist(),
        charge=charge_total.tolist(),
        discharge=discharge_total.tolist(),
    )
