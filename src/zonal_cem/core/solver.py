"""
Solver interface.

Hands a built Pyomo model to a ``SolverFactory`` plugin and reports the
outcome as one of five statuses. Solutions are only loaded into the model
when the solve is optimal; infeasible, unbounded, numerical and time-limit
outcomes are reported as-is with the solver's termination condition and are
never retried or relaxed.
"""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from pyomo.environ import value
from pyomo.opt import SolverFactory, TerminationCondition

from .exceptions import SolverUnavailableError

logger = logging.getLogger(__name__)


class SolveStatus(str, Enum):
    OPTIMAL = "optimal"
    INFEASIBLE = "infeasible"
    UNBOUNDED = "unbounded"
    NUMERICAL_ERROR = "numerical_error"
    TIMEOUT = "timeout"


_STATUS_MAP = {
    TerminationCondition.optimal: SolveStatus.OPTIMAL,
    TerminationCondition.globallyOptimal: SolveStatus.OPTIMAL,
    TerminationCondition.locallyOptimal: SolveStatus.OPTIMAL,
    TerminationCondition.infeasible: SolveStatus.INFEASIBLE,
    # HiGHS presolve cannot always tell the two apart; every cost in the
    # objective is bounded below by construction, so treat it as infeasible.
    TerminationCondition.infeasibleOrUnbounded: SolveStatus.INFEASIBLE,
    TerminationCondition.unbounded: SolveStatus.UNBOUNDED,
    TerminationCondition.maxTimeLimit: SolveStatus.TIMEOUT,
    TerminationCondition.feasible: SolveStatus.TIMEOUT,
}


@dataclass(frozen=True)
class SolveOutcome:
    """
    Result of a single solve call.

    Attributes
    ----------
    status : SolveStatus
        Normalised outcome
    termination : str
        Solver termination condition, verbatim
    message : str
        Solver message, if any
    objective : float, optional
        Objective value, only set when optimal
    solve_time : float
        Wall-clock seconds spent in the solver call
    """
    status: SolveStatus
    termination: str
    message: str = ""
    objective: Optional[float] = None
    solve_time: float = 0.0

    @property
    def ok(self) -> bool:
        return self.status is SolveStatus.OPTIMAL


def to_status(termination) -> SolveStatus:
    return _STATUS_MAP.get(termination, SolveStatus.NUMERICAL_ERROR)


def make_solver(name: str, time_limit: Optional[float] = None, options: Optional[dict] = None):
    """Create a solver plugin and apply options, failing early if it is missing."""
    opt = SolverFactory(name)
    if opt is None or not opt.available(exception_flag=False):
        raise SolverUnavailableError(f"Solver '{name}' is not available")
    for key, val in (options or {}).items():
        opt.options[key] = val
    if time_limit is not None and name == "gurobi":
        opt.options["TimeLimit"] = time_limit
    return opt


def solve_model(model, solver: str = "appsi_highs", time_limit: Optional[float] = None,
                options: Optional[dict] = None, tee: bool = False) -> SolveOutcome:
    """Solve ``model`` and load the solution only if it is optimal."""
    opt = make_solver(solver, time_limit, options)
    kwargs = {"tee": tee, "load_solutions": False}
    if time_limit is not None and solver != "gurobi":
        kwargs["timelimit"] = time_limit

    logger.info("Solving %s with %s", model.name, solver)
    start = time.perf_counter()
    results = opt.solve(model, **kwargs)
    elapsed = time.perf_counter() - start

    termination = results.solver.termination_condition
    status = to_status(termination)
    message = str(getattr(results.solver, "message", None) or "")

    if status is SolveStatus.OPTIMAL:
        model.solutions.load_from(results)
        objective = value(model.obj)
        logger.info("Optimal solution found in %.2fs, objective %.2f", elapsed, objective)
        return SolveOutcome(status, str(termination), message, objective, elapsed)

    logger.warning("Solver terminated with condition %s (%s) after %.2fs",
                   termination, status.value, elapsed)
    return SolveOutcome(status, str(termination), message, None, elapsed)
