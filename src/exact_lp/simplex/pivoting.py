"""
Entering-column rules and the leaving-row ratio test.

Each rule is a plain function of the objective row returning the entering
column index, or -1 when no reduced cost is below -EPSILON_FUNCTIONAL
(the current basis is optimal). Rules are looked up from PivotingRule.
"""

from typing import Callable, Dict, Sequence, Union

from mpmath import mpf

from ..config import EPSILON_FUNCTIONAL
from .result import PivotingRule
from .tableau import NumericTableau


EnteringRule = Callable[[Sequence[mpf]], int]


def find_entering_min_cost(objective_row: Sequence[mpf]) -> int:
    """Column with the most negative reduced cost; ties go to the lowest index."""
    min_index = -1
    min_value = None
    for i, value in enumerate(objective_row):
        if min_value is None or value < min_value:
            min_value = value
            min_index = i
    if min_value is None or min_value >= -EPSILON_FUNCTIONAL:
        return -1
    return min_index


def find_entering_bland(objective_row: Sequence[mpf]) -> int:
    """Lowest-index column with a negative reduced cost."""
    for i, value in enumerate(objective_row):
        if value < -EPSILON_FUNCTIONAL:
            return i
    return -1


def find_entering_reverse_bland(objective_row: Sequence[mpf]) -> int:
    """Highest-index column with a negative reduced cost."""
    for i in range(len(objective_row) - 1, -1, -1):
        if objective_row[i] < -EPSILON_FUNCTIONAL:
            return i
    return -1


ENTERING_RULES: Dict[PivotingRule, EnteringRule] = {
    PivotingRule.MIN_COST: find_entering_min_cost,
    PivotingRule.BLAND: find_entering_bland,
    PivotingRule.REVERSE_BLAND: find_entering_reverse_bland,
}


def resolve_pivoting_rule(rule: Union[PivotingRule, str]) -> PivotingRule:
    """Accept a PivotingRule or its string value."""
    if isinstance(rule, PivotingRule):
        return rule
    try:
        return PivotingRule(rule)
    except ValueError:
        valid = ", ".join(r.value for r in PivotingRule)
        raise ValueError(
            f"Invalid pivoting rule {rule!r} (expected one of: {valid})"
        ) from None


def get_entering_rule(rule: Union[PivotingRule, str]) -> EnteringRule:
    """Return the selection function for a rule."""
    return ENTERING_RULES[resolve_pivoting_rule(rule)]


def find_leaving_row(tableau: NumericTableau, column: int) -> int:
    """
    Minimum-ratio test over rows with a positive coefficient in ``column``.

    Returns the tableau row index (1..m), or -1 if no coefficient exceeds
    EPSILON_FUNCTIONAL (the objective is unbounded along ``column``).
    Ties keep the first row in ascending order.
    """
    index = -1
    min_ratio = None
    for i in tableau.basic_rows():
        v = tableau.rows[i][column]
        if v <= EPSILON_FUNCTIONAL:
            continue
        ratio = tableau.rhs[i] / v
        if min_ratio is not None and ratio >= min_ratio:
            continue
        index = i
        min_ratio = ratio
    return index
