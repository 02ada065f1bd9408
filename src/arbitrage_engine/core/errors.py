"""Exception taxonomy shared by every stage of the optimizer."""


class ScheduleError(Exception):
    """Base class for errors that abort a window (and the rolling run)."""


class ValidationError(ScheduleError):
    """Raised when an input is malformed before any solve is attempted."""


class LengthMismatchError(ValidationError):
    """Raised when parallel solution arrays disagree in length."""


class InfeasibleError(ScheduleError):
    """Raised when a window's LP has no feasible point."""


class UnboundedError(ScheduleError):
    """Raised when a window's objective is unbounded.

    Every decision variable carries a finite upper bound through the aggregate
    power caps, so this always points at a modeling defect.
    """


class SolverTimeoutError(ScheduleError):
    """Raised when the time budget ran out before any usable assignment."""


class SolverError(ScheduleError):
    """Raised when the solver backend itself fails."""
