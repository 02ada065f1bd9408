"""Solver adapter: run the external LP backend under a time budget."""

import logging
import time
from enum import Enum

import numpy as np
from pydantic import BaseModel, ConfigDict

from arbitrage_engine.core.constants import (
    DEFAULT_TIME_LIMIT_SECONDS,
    VAR_CHARGE,
    VAR_DISCHARGE,
)
from arbitrage_engine.core.errors import (
    InfeasibleError,
    SolverError,
    SolverTimeoutError,
    UnboundedError,
)
from arbitrage_engine.model.build import WindowModel

logger = logging.getLogger(__name__)

# Option name of the wall-clock limit (seconds) for each backend
TIME_LIMIT_OPTIONS = {
    "highs": "time_limit",
    "gurobi": "TimeLimit",
    "cbc": "sec",
    "glpk": "tmlim",
}

LIMIT_TERMINATIONS = {
    "time_limit",
    "iteration_limit",
    "terminated_by_limit",
    "suboptimal",
    "imprecise",
}


class SolveStatus(str, Enum):
    OPTIMAL = "optimal"
    FEASIBLE = "feasible"
    INFEASIBLE = "infeasible"
    TIMEOUT = "timeout"
    UNBOUNDED = "unbounded"


class SolveResult(BaseModel):
    """Status, assignment and objective of one solve.

    ``values`` maps each variable name to its solved array, shaped
    (tier, hour).
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    status: SolveStatus
    termination_condition: str
    objective_value: float
    solve_time_seconds: float
    values: dict[str, np.ndarray]

    @property
    def has_assignment(self) -> bool:
        return self.status in (SolveStatus.OPTIMAL, SolveStatus.FEASIBLE)

    def raise_for_status(self) -> None:
        """Raise the matching ScheduleError unless an assignment is usable.

        Raises:
            InfeasibleError: No feasible point exists
            UnboundedError: Objective is unbounded
            SolverTimeoutError: Time budget ran out without an incumbent
        """
        if self.status == SolveStatus.INFEASIBLE:
            raise InfeasibleError(f"Window LP is infeasible ({self.termination_condition})")
        if self.status == SolveStatus.UNBOUNDED:
            raise UnboundedError("Window LP objective is unbounded")
        if self.status == SolveStatus.TIMEOUT:
            raise SolverTimeoutError(
                f"Solver stopped after {self.solve_time_seconds:.2f}s without a feasible assignment"
            )


def _read_values(window: WindowModel) -> dict[str, np.ndarray]:
    """Solved arrays per variable; NaN where the backend produced no assignment."""
    values = {}
    for name, tiers in (
        (VAR_CHARGE, window.charge_tiers),
        (VAR_DISCHARGE, window.discharge_tiers),
    ):
        try:
            values[name] = np.asarray(window.model.solution[name].values, dtype=float)
        except (AttributeError, KeyError):
            values[name] = np.full((len(tiers), window.hours), np.nan)
    return values


def _classify(termination: str, values: dict[str, np.ndarray]) -> SolveStatus:
    if termination == "optimal":
        return SolveStatus.OPTIMAL
    if termination in LIMIT_TERMINATIONS:
        usable = all(v.size == 0 or np.isfinite(v).all() for v in values.values())
        return SolveStatus.FEASIBLE if usable else SolveStatus.TIMEOUT
    if termination == "unbounded":
        return SolveStatus.UNBOUNDED
    # Every variable is bounded, so an ambiguous verdict can only be infeasibility
    if termination in ("infeasible", "infeasible_or_unbounded"):
        return SolveStatus.INFEASIBLE
    raise SolverError(f"Solver returned unexpected termination condition: {termination}")


def solve_model(
    window: WindowModel,
    solver_name: str = "highs",
    time_limit_seconds: float = DEFAULT_TIME_LIMIT_SECONDS,
) -> SolveResult:
    """Solve a window model and collect the assignment.

    Args:
        window: Built window model
        solver_name: linopy solver backend
        time_limit_seconds: Wall-clock safety bound for the solve

    Returns:
        SolveResult; callers decide via raise_for_status whether it is usable

    Raises:
        SolverError: If the backend fails or reports an unknown condition
    """
    if window.is_empty:
        return SolveResult(
            status=SolveStatus.OPTIMAL,
            termination_condition="empty",
            objective_value=0.0,
            solve_time_seconds=0.0,
            values={
                VAR_CHARGE: np.zeros((len(window.charge_tiers), 0)),
                VAR_DISCHARGE: np.zeros((len(window.discharge_tiers), 0)),
            },
        )

    options = {}
    if solver_name in TIME_LIMIT_OPTIONS:
        options[TIME_LIMIT_OPTIONS[solver_name]] = time_limit_seconds

    start_time = time.time()

    try:
        _, termination = window.model.solve(solver_name=solver_name, **options)
    except Exception as e:
        raise SolverError(f"Solver failed: {e}") from e

    solve_time = time.time() - start_time

    values = _read_values(window)
    status = _classify(str(termination), values)

    objective_value = float("nan")
    if status in (SolveStatus.OPTIMAL, SolveStatus.FEASIBLE):
        objective_value = float(window.model.objective.value)

    logger.info(
        "Solved %d-slot window in %.3fs: %s (objective %.4f)",
        window.hours,
        solve_time,
        status.value,
        objective_value,
    )
    if status == SolveStatus.FEASIBLE:
        logger.warning(
            "Solver hit its %.2fs limit (%s); using best-found assignment",
            time_limit_seconds,
            termination,
        )

    return SolveResult(
        status=status,
        termination_condition=str(termination),
        objective_value=objective_value,
        solve_time_seconds=solve_time,
        values=values,
    )
