"""Rolling-horizon driver.

Re-optimizes a window of known prices, commits only the slots that precede
the next price publication, and carries the committed end SoC into the next
window. The uncommitted tail of each window exists only so the optimizer can
see past the commit boundary and does not drain or fill the battery at the
edge of what it knows.
"""

import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Sequence

import pandas as pd

from arbitrage_engine.core.constants import (
    COL_CHARGE_KWH,
    COL_COST,
    COL_DISCHARGE_KWH,
    COL_END_SOC_KWH,
    COL_GRID_PRICE,
    COL_TIMESTAMP,
    SCHEDULE_COLUMNS,
)
from arbitrage_engine.core.errors import ScheduleError
from arbitrage_engine.core.schemas import BatteryConfig, RunConfig, Tariff, WindowReport
from arbitrage_engine.core.validate import validate_tariffs
from arbitrage_engine.model.extract import OptimizedState
from arbitrage_engine.runners.window import optimize_window

logger = logging.getLogger(__name__)


class DriverState(str, Enum):
    ADVANCING = "advancing"
    DONE = "done"


@dataclass
class RollingResult:
    """Concatenated committed prefixes of every window."""

    states: list[OptimizedState]
    windows: list[WindowReport]
    max_energy: float
    complete: bool = True
    error: Optional[ScheduleError] = None

    @property
    def total_profit(self) -> float:
        return -sum(state.cost for state in self.states)

    @property
    def cycles(self) -> float:
        return sum(state.charge for state in self.states) / self.max_energy

    def to_frame(self) -> pd.DataFrame:
        """Schedule as a DataFrame indexed by slot timestamp."""
        frame = pd.DataFrame(
            {
                COL_GRID_PRICE: [s.grid_price for s in self.states],
                COL_CHARGE_KWH: [s.charge for s in self.states],
                COL_DISCHARGE_KWH: [s.discharge for s in self.states],
                COL_COST: [s.cost for s in self.states],
                COL_END_SOC_KWH: [s.end_soc for s in self.states],
            },
            index=pd.DatetimeIndex([s.timestamp for s in self.states], name=COL_TIMESTAMP),
            columns=SCHEDULE_COLUMNS,
        )
        return frame


@dataclass
class RollingHorizonOptimizer:
    """State machine over a full tariff series.

    Each ``step`` solves one window and commits its prefix; ``run`` steps
    until the series is exhausted or a window fails.
    """

    battery: BatteryConfig
    run_config: RunConfig
    tariffs: Sequence[Tariff]
    cursor: int = 0
    energy: float = field(init=False)
    states: list[OptimizedState] = field(default_factory=list, init=False)
    windows: list[WindowReport] = field(default_factory=list, init=False)
    error: Optional[ScheduleError] = field(default=None, init=False)
    state: DriverState = field(init=False)

    def __post_init__(self):
        self.tariffs = list(self.tariffs)
        validate_tariffs(self.tariffs, self.run_config.horizon.slot_minutes)
        self.energy = self.run_config.start_energy_kwh
        self.state = DriverState.ADVANCING if self.tariffs else DriverState.DONE

    @property
    def remaining(self) -> int:
        return len(self.tariffs) - self.cursor

    def initial_commit_slots(self) -> int:
        """Slots committed by the first window.

        Unless configured, this runs from the first slot up to the next
        price publication, when the following day's prices become known.
        """
        horizon = self.run_config.horizon
        if horizon.initial_commit_hours is not None:
            return horizon.initial_commit_hours * horizon.slots_per_hour

        first = self.tariffs[0].timestamp
        if first.tzinfo is not None:
            first = pd.Timestamp(first).tz_convert(horizon.timezone)
        hour_of_day = first.hour + first.minute / 60.0
        hours_to_publication = (horizon.publication_hour - hour_of_day) % 24
        if hours_to_publication == 0:
            return horizon.commit_hours * horizon.slots_per_hour
        return math.ceil(hours_to_publication * horizon.slots_per_hour)

    def commit_slots(self, window_index: int) -> int:
        horizon = self.run_config.horizon
        if window_index == 0:
            return self.initial_commit_slots()
        return horizon.commit_hours * horizon.slots_per_hour

    def lookahead_slots(self) -> int:
        horizon = self.run_config.horizon
        return horizon.lookahead_hours * horizon.slots_per_hour

    def recoverable_floor(self, window_end: int) -> float:
        """Lowest SoC after ``window_end`` from which the run target stays reachable.

        Charging at full rate over every slot after the window must be able to
        lift the battery to ``end_energy_kwh``. The floor is capped at the
        capacity; a target above it is left for the final window to report.
        """
        horizon = self.run_config.horizon
        charge_rate = min(
            self.battery.max_charge_kw,
            sum(tier.max_power for tier in self.battery.resolved_charge_tiers()),
        )
        slots_after = len(self.tariffs) - window_end
        floor = self.run_config.end_energy_kwh - slots_after * charge_rate * horizon.slot_hours
        return min(self.battery.max_energy_kwh, max(0.0, floor))

    def step(self) -> WindowReport:
        """Solve the next window and commit its prefix.

        Driver state is only advanced once the window has solved, so a
        failure leaves cursor, energy and committed states untouched.

        Raises:
            RuntimeError: If the driver is already done
            ScheduleError: If the window cannot be built or solved
        """
        if self.state is DriverState.DONE:
            raise RuntimeError("Rolling horizon has no tariff data left")

        index = len(self.windows)
        commit = self.commit_slots(index)
        window_tariffs = self.tariffs[self.cursor : self.cursor + commit + self.lookahead_slots()]
        window_end = self.cursor + len(window_tariffs)
        is_final = window_end >= len(self.tariffs)
        floor = self.run_config.end_energy_kwh if is_final else self.recoverable_floor(window_end)

        logger.info(
            "Window %d: %d slots from %s, committing %d, start SoC %.3f kWh, floor %.3f kWh",
            index,
            len(window_tariffs),
            window_tariffs[0].timestamp,
            len(window_tariffs) if is_final else commit,
            self.energy,
            floor,
        )

        result = optimize_window(
            window_tariffs,
            self.battery,
            self.run_config,
            start_energy=self.energy,
            end_energy=floor,
        )

        # Nothing past the end of the series will ever be published
        committed = result.states if is_final else result.states[:commit]

        report = WindowReport(
            window_index=index,
            start=window_tariffs[0].timestamp,
            slots=len(window_tariffs),
            committed_slots=len(committed),
            start_energy_kwh=self.energy,
            end_soc_kwh=committed[-1].end_soc,
            status=result.solve.status.value,
            objective_value=result.objective_value,
            solve_time_seconds=result.solve.solve_time_seconds,
        )

        self.states.extend(committed)
        self.energy = committed[-1].end_soc
        self.cursor += len(committed)
        self.windows.append(report)

        if self.remaining <= 0:
            self.state = DriverState.DONE

        return report

    def run(self) -> RollingResult:
        """Step until done; a failing window aborts the run but keeps earlier commits."""
        logger.info(
            "Rolling horizon over %d slots (run %s)", len(self.tariffs), self.run_config.run_id
        )

        while self.state is DriverState.ADVANCING:
            try:
                self.step()
            except ScheduleError as e:
                logger.error(
                    "Window %d at %s failed, aborting run: %s",
                    len(self.windows),
                    self.tariffs[self.cursor].timestamp,
                    e,
                )
                self.error = e
                self.state = DriverState.DONE

        result = self.result()
        logger.info(
            "Committed %d slots over %d windows, profit %.4f, %.2f cycles",
            len(result.states),
            len(result.windows),
            result.total_profit,
            result.cycles,
        )
        return result

    def result(self) -> RollingResult:
        return RollingResult(
            states=list(self.states),
            windows=list(self.windows),
            max_energy=self.battery.max_energy_kwh,
            complete=self.error is None and self.remaining <= 0,
            error=self.error,
        )


def optimize_rolling(
    tariffs: Sequence[Tariff], battery: BatteryConfig, run: RunConfig
) -> RollingResult:
    """Run the rolling-horizon optimizer over a full tariff series."""
    return RollingHorizonOptimizer(battery=battery, run_config=run, tariffs=tariffs).run()
