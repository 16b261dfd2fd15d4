"""
Tests for entering-column rules and the ratio test.
"""

import pytest
from mpmath import mpf

from exact_lp.simplex.pivoting import (
    ENTERING_RULES,
    find_entering_bland,
    find_entering_min_cost,
    find_entering_reverse_bland,
    find_leaving_row,
    get_entering_rule,
    resolve_pivoting_rule,
)
from exact_lp.simplex.result import PivotingRule
from exact_lp.simplex.tableau import NumericTableau


def as_mpf(values):
    return [mpf(v) for v in values]


class TestEnteringRules:
    """Column selection on a fixed objective row."""

    ROW = as_mpf([-1, -3, 2, -3, 0])

    def test_min_cost_picks_most_negative(self):
        assert find_entering_min_cost(self.ROW) == 1

    def test_min_cost_tie_goes_to_lowest_index(self):
        assert find_entering_min_cost(as_mpf([-2, -2])) == 0

    def test_bland_picks_lowest_index(self):
        assert find_entering_bland(self.ROW) == 0

    def test_reverse_bland_picks_highest_index(self):
        assert find_entering_reverse_bland(self.ROW) == 3

    @pytest.mark.parametrize("rule", list(PivotingRule))
    def test_optimal_row_returns_minus_one(self, rule):
        select = get_entering_rule(rule)
        assert select(as_mpf([0, 1, 2])) == -1

    @pytest.mark.parametrize("rule", list(PivotingRule))
    def test_tiny_negative_is_ignored(self, rule):
        """Reduced costs above -EPSILON_FUNCTIONAL count as non-negative."""
        select = get_entering_rule(rule)
        assert select([mpf("-1e-14"), mpf(0)]) == -1

    def test_every_rule_registered(self):
        assert set(ENTERING_RULES) == set(PivotingRule)


class TestResolveRule:
    """Rule lookup from enum members and names."""

    def test_enum_passes_through(self):
        assert resolve_pivoting_rule(PivotingRule.BLAND) is PivotingRule.BLAND

    @pytest.mark.parametrize("name,rule", [
        ("min_cost", PivotingRule.MIN_COST),
        ("bland", PivotingRule.BLAND),
        ("reverse_bland", PivotingRule.REVERSE_BLAND),
    ])
    def test_by_name(self, name, rule):
        assert resolve_pivoting_rule(name) is rule

    def test_unknown_name_raises(self):
        with pytest.raises(ValueError, match="Invalid pivoting rule"):
            resolve_pivoting_rule("steepest_edge")


class TestLeavingRow:
    """Minimum-ratio test."""

    def make_tableau(self):
        # column 0 ratios: 2/1, 4/2, 3/1 -> tie between rows 1 and 2
        # column 1: no positive coefficient
        A = [as_mpf([1, -1]), as_mpf([2, 0]), as_mpf([1, -2])]
        return NumericTableau.from_problem(A, as_mpf([2, 4, 3]), as_mpf([1, 1]))

    def test_tie_goes_to_first_row(self):
        assert find_leaving_row(self.make_tableau(), 0) == 1

    def test_unbounded_column(self):
        assert find_leaving_row(self.make_tableau(), 1) == -1

    def test_smallest_ratio_wins(self):
        A = [as_mpf([1]), as_mpf([4]), as_mpf([1])]
        tableau = NumericTableau.from_problem(A, as_mpf([2, 4, 3]), as_mpf([1]))
        assert find_leaving_row(tableau, 0) == 2

    def test_tiny_coefficient_is_skipped(self):
        A = [[mpf("1e-14")], [mpf(1)]]
        tableau = NumericTableau.from_problem(A, as_mpf([0, 5]), as_mpf([1]))
        assert find_leaving_row(tableau, 0) == 2
