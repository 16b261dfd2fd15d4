"""
Tests for the simplex engine and the solve_lp entry point.

Includes the small textbook problems and a degenerate (Beale) problem
known to cycle under the most-negative-cost rule.
"""

import itertools

import numpy as np
import pytest
from mpmath import mp, mpf

from exact_lp.config import EPSILON
from exact_lp.problem import LPProblem
from exact_lp.simplex.engine import SimplexEngine, solve_lp
from exact_lp.simplex.result import InvalidBasisError, PivotingRule, SimplexResult


# max 3x + 5y  s.t.  x <= 4, 2y <= 12, 3x + 2y <= 18  (optimum 36 at (2, 6))
WYNDOR_A = [[1, 0, 1, 0, 0], [0, 2, 0, 1, 0], [3, 2, 0, 0, 1]]
WYNDOR_B = [4, 12, 18]
WYNDOR_C = [3, 5, 0, 0, 0]

# Beale's cycling example, slack columns 0..2
BEALE_A = [
    [1, 0, 0, "0.25", -60, "-0.04", 9],
    [0, 1, 0, "0.5", -90, "-0.02", 3],
    [0, 0, 1, 0, 0, 1, 0],
]
BEALE_B = [0, 0, 1]
BEALE_C = [0, 0, 0, "0.75", -150, "0.02", -6]


def assert_point(x, expected, tol=1e-9):
    assert len(x) == len(expected)
    for value, target in zip(x, expected):
        assert float(value) == pytest.approx(target, abs=tol)


# ============================================================================
# Small problems with known optima
# ============================================================================

class TestKnownOptima:
    """Equality-form problems with a unique optimum."""

    def test_maximize_first_variable(self):
        """x + y = 1, max x."""
        sol = solve_lp([[1, 1]], [1], [1, 0], seed=1)
        assert sol.status is SimplexResult.OPTIMAL
        assert_point(sol.x, [1, 0])
        assert float(sol.value) == pytest.approx(1)

    def test_maximize_second_variable(self):
        """x + y = 1, max y."""
        sol = solve_lp([[1, 1]], [1], [0, 1], seed=1)
        assert_point(sol.x, [0, 1])
        assert float(sol.value) == pytest.approx(1)

    def test_negative_objective(self):
        """x + y = 1, max -y."""
        sol = solve_lp([[1, 1]], [1], [0, -1], seed=1)
        assert_point(sol.x, [1, 0])
        assert float(sol.value) == pytest.approx(0)

    def test_two_equations(self):
        """x + y + z = 1, x - y = 0, max -x."""
        sol = solve_lp([[1, 1, 1], [1, -1, 0]], [1, 0], [-1, 0, 0], seed=1)
        assert sol.status is SimplexResult.OPTIMAL
        assert_point(sol.x, [0, 0, 1])
        assert float(sol.value) == pytest.approx(0)

    def test_production_problem(self):
        """2x1 + x2 <= 64, x1 + 3x2 <= 72, x2 <= 20, max 4x1 + 6x2."""
        A = [[2, 1, 1, 0, 0], [1, 3, 0, 1, 0], [0, 1, 0, 0, 1]]
        sol = solve_lp(A, [64, 72, 20], [4, 6, 0, 0, 0], seed=1)
        assert sol.status is SimplexResult.OPTIMAL
        assert_point(sol.x, [24, 16, 0, 0, 4])
        assert float(sol.value) == pytest.approx(192)

    def test_mixed_constraints(self):
        """3x1 + 4x2 - x3 = 6, x1 + 3x2 = 3, 2x1 + x2 + x4 = 4, max 4x1 + 16x2."""
        A = [[3, 4, -1, 0], [1, 3, 0, 0], [2, 1, 0, 1]]
        sol = solve_lp(A, [6, 3, 4], [4, 16, 0, 0], seed=1)
        assert sol.status is SimplexResult.OPTIMAL
        assert float(sol.value) == pytest.approx(72 / 5)
        assert_point(sol.x, [6 / 5, 3 / 5, 0, 1])

    def test_value_is_exact_at_high_precision(self):
        sol = solve_lp(WYNDOR_A, WYNDOR_B, WYNDOR_C, dps=60, seed=3)
        with mp.workdps(60):
            assert abs(sol.value - 36) < mpf("1e-50")

    def test_decimal_strings_are_exact(self):
        """0.1 x = 0.3 gives x = 3 without binary rounding."""
        sol = solve_lp([["0.1"]], ["0.3"], [1], start_basis=[0])
        with mp.workdps(50):
            assert abs(sol.x[0] - 3) < mpf("1e-45")


class TestPivotingRules:
    """Every rule reaches the same optimum."""

    @pytest.mark.parametrize("rule", list(PivotingRule))
    def test_wyndor(self, rule):
        sol = solve_lp(WYNDOR_A, WYNDOR_B, WYNDOR_C, pivoting_rule=rule, seed=0)
        assert sol.status is SimplexResult.OPTIMAL
        assert float(sol.value) == pytest.approx(36)
        assert_point(sol.x[:2], [2, 6])

    @pytest.mark.parametrize("rule", ["min_cost", "bland", "reverse_bland"])
    def test_rule_by_name(self, rule):
        sol = solve_lp(WYNDOR_A, WYNDOR_B, WYNDOR_C, start_basis=[2, 3, 4], pivoting_rule=rule)
        assert float(sol.value) == pytest.approx(36)

    def test_unknown_rule_raises(self):
        with pytest.raises(ValueError):
            solve_lp(WYNDOR_A, WYNDOR_B, WYNDOR_C, pivoting_rule="largest_step")


# ============================================================================
# Start basis
# ============================================================================

class TestStartBasis:
    """Caller-supplied bases."""

    def test_slack_basis(self):
        sol = solve_lp(WYNDOR_A, WYNDOR_B, WYNDOR_C, start_basis=[2, 3, 4])
        assert sol.status is SimplexResult.OPTIMAL
        assert float(sol.value) == pytest.approx(36)
        assert sorted(sol.basis) == [0, 1, 2]

    def test_optimal_basis_needs_no_pivots(self):
        sol = solve_lp(WYNDOR_A, WYNDOR_B, WYNDOR_C, start_basis=[0, 1, 2])
        assert sol.status is SimplexResult.OPTIMAL
        assert sol.iterations == 0
        assert float(sol.value) == pytest.approx(36)

    def test_reused_basis(self):
        first = solve_lp(WYNDOR_A, WYNDOR_B, WYNDOR_C, seed=5)
        second = solve_lp(WYNDOR_A, WYNDOR_B, WYNDOR_C, start_basis=first.basis)
        assert second.iterations == 0
        assert float(second.value) == pytest.approx(float(first.value))

    def test_wrong_size(self):
        with pytest.raises(InvalidBasisError, match="Insufficient"):
            solve_lp(WYNDOR_A, WYNDOR_B, WYNDOR_C, start_basis=[2, 3])

    def test_duplicate_columns(self):
        with pytest.raises(InvalidBasisError):
            solve_lp(WYNDOR_A, WYNDOR_B, WYNDOR_C, start_basis=[2, 2, 3])

    def test_out_of_range(self):
        with pytest.raises(InvalidBasisError, match="out of range"):
            solve_lp(WYNDOR_A, WYNDOR_B, WYNDOR_C, start_basis=[2, 3, 9])

    def test_singular_basis(self):
        with pytest.raises(InvalidBasisError, match="Invalid start basis"):
            solve_lp([[1, 1], [2, 2]], [1, 2], [1, 1], start_basis=[0, 1])

    def test_infeasible_basis(self):
        """Basis {x, y, s3} puts s3 at -6."""
        with pytest.raises(InvalidBasisError, match="not a valid basis"):
            solve_lp(WYNDOR_A, WYNDOR_B, WYNDOR_C, start_basis=[0, 1, 4])

    def test_invalid_basis_is_value_error(self):
        with pytest.raises(ValueError):
            solve_lp(WYNDOR_A, WYNDOR_B, WYNDOR_C, start_basis=[0])


# ============================================================================
# Terminal states
# ============================================================================

class TestTerminalStates:
    """Unbounded, infeasible and cycling problems."""

    def test_unbounded_from_basis(self):
        """max x s.t. x - y = 1."""
        sol = solve_lp([[1, -1]], [1], [1, 0], start_basis=[0])
        assert sol.status is SimplexResult.FUNCTIONAL_UNBOUND
        assert sol.x == []
        assert sol.value is None

    def test_unbounded_after_feasibility(self):
        sol = solve_lp([[1, -1]], [1], [1, 0], seed=2)
        assert sol.status is SimplexResult.FUNCTIONAL_UNBOUND

    def test_infeasible_negative_rhs(self):
        """x + y = -1 has no non-negative solution."""
        sol = solve_lp([[1, 1]], [-1], [1, 1], seed=2)
        assert sol.status is SimplexResult.HULL_IS_EMPTY
        assert sol.status is SimplexResult.INFEASIBLE

    def test_infeasible_contradictory_rows(self):
        sol = solve_lp([[1, 1], [1, 1]], [1, 2], [1, 0], seed=2)
        assert sol.status is SimplexResult.HULL_IS_EMPTY

    def test_infeasible_opposite_values(self):
        """x = 1 and x = -1 simultaneously."""
        sol = solve_lp([[1], [1]], [1, -1], [1], seed=2)
        assert sol.status is SimplexResult.HULL_IS_EMPTY

    def test_unbounded_single_variable(self):
        """max x s.t. x - s = 0: only x >= 0 bounds x."""
        sol = solve_lp([[1, -1]], [0], [1, 0], seed=2)
        assert sol.status is SimplexResult.FUNCTIONAL_UNBOUND

    def test_redundant_rows_are_tolerated(self):
        sol = solve_lp([[1, 1], [2, 2]], [1, 2], [1, 0], seed=2)
        assert sol.status is SimplexResult.OPTIMAL
        assert_point(sol.x, [1, 0])

    def test_iteration_cap_reports_cycle(self):
        """A selection that alternates between two columns never terminates."""
        engine = SimplexEngine(LPProblem.from_arrays(WYNDOR_A, WYNDOR_B, WYNDOR_C))
        engine.prepare([2, 3, 4])
        engine.compute_initial_value()
        choices = itertools.cycle([0, 2])
        engine._find_entering = lambda row: next(choices)
        assert engine.optimize() is SimplexResult.CYCLE_DETECTED
        assert engine.iterations == 3 * 5

    def test_beale_with_bland(self):
        sol = solve_lp(BEALE_A, BEALE_B, BEALE_C, start_basis=[0, 1, 2], pivoting_rule="bland")
        assert sol.status is SimplexResult.OPTIMAL
        assert float(sol.value) == pytest.approx(0.05)
        assert float(sol.x[5]) == pytest.approx(1)

    def test_beale_with_min_cost_terminates(self):
        sol = solve_lp(BEALE_A, BEALE_B, BEALE_C, start_basis=[0, 1, 2])
        assert sol.status in (SimplexResult.OPTIMAL, SimplexResult.CYCLE_DETECTED)
        assert sol.iterations <= 3 * 7
        if sol.is_optimal:
            assert float(sol.value) == pytest.approx(0.05)


# ============================================================================
# Invariants
# ============================================================================

class TestInvariants:
    """Properties that hold for every successful solve."""

    def test_identity_basis_after_solve(self):
        engine = SimplexEngine(LPProblem.from_arrays(WYNDOR_A, WYNDOR_B, WYNDOR_C))
        assert engine.solve(rng=np.random.default_rng(0)) is SimplexResult.OPTIMAL
        assert engine.tableau.check_identity()
        assert all(v >= 0 for v in engine.tableau.rhs[1:])

    def test_solution_is_feasible(self):
        problem = LPProblem.from_arrays(WYNDOR_A, WYNDOR_B, WYNDOR_C)
        sol = solve_lp(WYNDOR_A, WYNDOR_B, WYNDOR_C, seed=4)
        assert all(abs(r) < EPSILON for r in problem.residual(sol.x))
        assert all(v >= 0 for v in sol.x)

    def test_inputs_unchanged(self):
        A = np.array(WYNDOR_A, dtype=float)
        b = np.array(WYNDOR_B, dtype=float)
        c = np.array(WYNDOR_C, dtype=float)
        A0, b0, c0 = A.copy(), b.copy(), c.copy()
        solve_lp(A, b, c, seed=0)
        np.testing.assert_array_equal(A, A0)
        np.testing.assert_array_equal(b, b0)
        np.testing.assert_array_equal(c, c0)

    def test_resolving_same_problem(self):
        problem = LPProblem.from_arrays(WYNDOR_A, WYNDOR_B, WYNDOR_C)
        results = []
        for _ in range(3):
            engine = SimplexEngine(problem)
            status = engine.solve(rng=np.random.default_rng(9))
            results.append((status, engine.result(status)))
        assert problem == LPProblem.from_arrays(WYNDOR_A, WYNDOR_B, WYNDOR_C)
        for status, sol in results:
            assert status is SimplexResult.OPTIMAL
            assert sol.x == results[0][1].x
            assert sol.value == results[0][1].value

    def test_precision_restored(self):
        before = mp.dps
        solve_lp(WYNDOR_A, WYNDOR_B, WYNDOR_C, dps=80, seed=0)
        assert mp.dps == before

    def test_precision_restored_after_error(self):
        before = mp.dps
        with pytest.raises(ValueError):
            solve_lp([[1, 2]], [1, 2], [1, 1], dps=80)
        assert mp.dps == before

    def test_seed_is_reproducible(self):
        first = solve_lp(WYNDOR_A, WYNDOR_B, WYNDOR_C, seed=11)
        second = solve_lp(WYNDOR_A, WYNDOR_B, WYNDOR_C, seed=11)
        assert first.basis == second.basis
        assert first.iterations == second.iterations

    def test_threaded_solve_matches(self):
        sequential = solve_lp(WYNDOR_A, WYNDOR_B, WYNDOR_C, seed=6)
        threaded = solve_lp(WYNDOR_A, WYNDOR_B, WYNDOR_C, seed=6, workers=4)
        assert threaded.basis == sequential.basis
        assert float(threaded.value) == pytest.approx(float(sequential.value))

    def test_as_floats(self):
        sol = solve_lp(WYNDOR_A, WYNDOR_B, WYNDOR_C, start_basis=[2, 3, 4])
        floats = sol.as_floats()
        assert all(isinstance(v, float) for v in floats)
        assert floats[:2] == pytest.approx([2, 6])
