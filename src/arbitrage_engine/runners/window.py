"""Single-window pipeline: prices -> LP -> solve -> schedule states."""

import logging
from dataclasses import dataclass
from datetime import timedelta
from typing import Optional, Sequence

from arbitrage_engine.core.schemas import BatteryConfig, RunConfig, Tariff
from arbitrage_engine.core.validate import validate_tariffs
from arbitrage_engine.model.build import build_model
from arbitrage_engine.model.extract import OptimizedState, PartialSolution, extract_solution
from arbitrage_engine.model.prices import transform_prices
from arbitrage_engine.model.solve import SolveResult, solve_model

logger = logging.getLogger(__name__)


@dataclass
class WindowResult:
    """Full-window schedule plus the solve that produced it."""

    states: list[OptimizedState]
    solution: PartialSolution
    solve: SolveResult
    start_energy: float

    @property
    def objective_value(self) -> float:
        return self.solve.objective_value

    @property
    def end_soc(self) -> float:
        return self.states[-1].end_soc if self.states else self.start_energy

    @property
    def profit(self) -> float:
        return -sum(state.cost for state in self.states)


def optimize_window(
    tariffs: Sequence[Tariff],
    battery: BatteryConfig,
    run: RunConfig,
    start_energy: Optional[float] = None,
    end_energy: Optional[float] = None,
) -> WindowResult:
    """Optimize one contiguous window of tariffs.

    Args:
        tariffs: Ordered, gapless tariff slots
        battery: Battery configuration
        run: Run configuration (markup, slot length, solver settings)
        start_energy: SoC before the first slot (defaults to run.start_energy_kwh)
        end_energy: SoC floor after the last slot (defaults to run.end_energy_kwh)

    Returns:
        WindowResult with one OptimizedState per slot

    Raises:
        ValidationError: If the tariffs have gaps, or tiers or price shapes are malformed
        InfeasibleError: If the window has no feasible schedule
        UnboundedError: If the objective is unbounded
        SolverTimeoutError: If the time budget ran out without an assignment
    """
    start_energy = run.start_energy_kwh if start_energy is None else start_energy
    end_energy = run.end_energy_kwh if end_energy is None else end_energy
    slot_hours = run.horizon.slot_hours
    validate_tariffs(tariffs, run.horizon.slot_minutes)

    prices = transform_prices(
        tariffs,
        battery.resolved_charge_tiers(),
        battery.resolved_discharge_tiers(),
        run.tariff,
    )
    window = build_model(battery, prices, start_energy, end_energy, slot_hours)
    result = solve_model(window, run.solver_name, run.solver_time_limit_seconds)
    solution = extract_solution(window, result)

    states = []
    if tariffs:
        states = solution.to_states(tariffs[0].timestamp, timedelta(minutes=run.horizon.slot_minutes))

    return WindowResult(states=states, solution=solution, solve=result, start_energy=start_energy)
