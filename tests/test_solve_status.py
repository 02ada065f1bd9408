"""Test solver status classification and error propagation."""

import numpy as np
import pytest

from arbitrage_engine.core.constants import VAR_CHARGE, VAR_DISCHARGE
from arbitrage_engine.core.errors import (
    InfeasibleError,
    SolverError,
    SolverTimeoutError,
    UnboundedError,
)
from arbitrage_engine.model.solve import SolveResult, SolveStatus, _classify


def make_result(status, fill=0.0):
    """Create a solve result with 1x3 arrays filled with ``fill``."""
    return SolveResult(
        status=status,
        termination_condition=status.value,
        objective_value=0.0,
        solve_time_seconds=0.01,
        values={VAR_CHARGE: np.full((1, 3), fill), VAR_DISCHARGE: np.full((1, 3), fill)},
    )


@pytest.mark.parametrize(
    "status,error",
    [
        (SolveStatus.INFEASIBLE, InfeasibleError),
        (SolveStatus.UNBOUNDED, UnboundedError),
        (SolveStatus.TIMEOUT, SolverTimeoutError),
    ],
)
def test_terminal_statuses_raise(status, error):
    """Test statuses without a usable assignment raise their error."""
    result = make_result(status, fill=np.nan)
    assert not result.has_assignment
    with pytest.raises(error):
        result.raise_for_status()


@pytest.mark.parametrize("status", [SolveStatus.OPTIMAL, SolveStatus.FEASIBLE])
def test_usable_statuses_pass(status):
    """Test optimal and feasible-but-unproven results are accepted."""
    result = make_result(status)
    assert result.has_assignment
    result.raise_for_status()


def test_time_limit_with_incumbent_is_feasible():
    """Test a time limit with a finite assignment is a feasible result."""
    values = {VAR_CHARGE: np.ones((1, 3)), VAR_DISCHARGE: np.zeros((1, 3))}
    assert _classify("time_limit", values) == SolveStatus.FEASIBLE


def test_time_limit_without_incumbent_is_timeout():
    """Test a time limit with no assignment is a timeout."""
    values = {VAR_CHARGE: np.full((1, 3), np.nan), VAR_DISCHARGE: np.full((1, 3), np.nan)}
    assert _classify("time_limit", values) == SolveStatus.TIMEOUT


@pytest.mark.parametrize(
    "termination,status",
    [
        ("optimal", SolveStatus.OPTIMAL),
        ("infeasible", SolveStatus.INFEASIBLE),
        ("infeasible_or_unbounded", SolveStatus.INFEASIBLE),
        ("unbounded", SolveStatus.UNBOUNDED),
    ],
)
def test_termination_mapping(termination, status):
    """Test solver termination conditions map onto the status set."""
    assert _classify(termination, {}) == status


def test_unknown_termination_is_solver_error():
    """Test an unrecognised verdict is reported as a backend failure."""
    with pytest.raises(SolverError):
        _classify("error", {})


def test_imprecise_with_assignment_is_feasible():
    """Test an imprecise verdict that still assigned values is used as feasible."""
    values = {VAR_CHARGE: np.full((1, 3), 0.5), VAR_DISCHARGE: np.zeros((1, 3))}
    assert _classify("imprecise", values) == SolveStatus.FEASIBLE
