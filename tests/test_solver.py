# tests/test_solver.py

import pytest
from pyomo.opt import TerminationCondition

from zonal_cem.core.exceptions import CEMError, SolverUnavailableError
from zonal_cem.core.solver import SolveOutcome, SolveStatus, make_solver, to_status


class TestStatusMapping:

    @pytest.mark.parametrize("termination, expected", [
        (TerminationCondition.optimal, SolveStatus.OPTIMAL),
        (TerminationCondition.infeasible, SolveStatus.INFEASIBLE),
        (TerminationCondition.infeasibleOrUnbounded, SolveStatus.INFEASIBLE),
        (TerminationCondition.unbounded, SolveStatus.UNBOUNDED),
        (TerminationCondition.maxTimeLimit, SolveStatus.TIMEOUT),
        (TerminationCondition.feasible, SolveStatus.TIMEOUT),
        (TerminationCondition.error, SolveStatus.NUMERICAL_ERROR),
        (TerminationCondition.solverFailure, SolveStatus.NUMERICAL_ERROR),
        (TerminationCondition.invalidProblem, SolveStatus.NUMERICAL_ERROR),
    ])
    def test_termination_to_status(self, termination, expected):
        assert to_status(termination) is expected

    def test_only_optimal_is_ok(self):
        assert SolveOutcome(SolveStatus.OPTIMAL, "optimal").ok
        assert not SolveOutcome(SolveStatus.TIMEOUT, "maxTimeLimit").ok

    def test_status_values(self):
        assert {s.value for s in SolveStatus} == {
            "optimal", "infeasible", "unbounded", "numerical_error", "timeout",
        }


class TestMakeSolver:

    def test_unknown_solver(self):
        with pytest.raises(SolverUnavailableError, match="no_such_solver"):
            make_solver("no_such_solver")

    def test_unavailable_solver_is_cem_error(self):
        with pytest.raises(CEMError):
            make_solver("no_such_solver")

    def test_options_applied(self, highs):
        opt = make_solver(highs, options={"presolve": "off"})
        assert opt.options["presolve"] == "off"
