"""
Status codes, pivoting-rule names and the solution record shared by all solvers.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from mpmath import mpf


class SimplexResult(Enum):
    """Terminal state of a simplex (or Seidel) solve."""

    OPTIMAL = "optimal"
    HULL_IS_EMPTY = "hull_is_empty"
    FUNCTIONAL_UNBOUND = "functional_unbound"
    CYCLE_DETECTED = "cycle_detected"
    ROUNDING_ERROR = "rounding_error"

    # Aliases used by callers that speak in success/infeasible terms
    SUCCESS = "optimal"
    INFEASIBLE = "hull_is_empty"


class PivotingRule(Enum):
    """Entering-column selection rule."""

    MIN_COST = "min_cost"
    """Most negative reduced cost, ties to the lowest column index."""

    BLAND = "bland"
    """Lowest column index with negative reduced cost."""

    REVERSE_BLAND = "reverse_bland"
    """Highest column index with negative reduced cost."""


class InvalidBasisError(ValueError):
    """A supplied start basis is malformed, singular or infeasible."""


@dataclass
class LPSolution:
    """
    Result of an LP solve.

    Attributes
    ----------
    status : SimplexResult
        Terminal state.
    x : list of mpf
        Optimal point (empty unless status is OPTIMAL).
    value : mpf or None
        Objective value c^T x (None unless status is OPTIMAL).
    basis : list of int or None
        Final basis, basis[i] is the column basic in constraint row i.
    iterations : int
        Number of simplex pivots (or cuts, for integer programs).
    """
    status: SimplexResult
    x: List[mpf] = field(default_factory=list)
    value: Optional[mpf] = None
    basis: Optional[List[int]] = None
    iterations: int = 0

    @property
    def is_optimal(self) -> bool:
        return self.status is SimplexResult.OPTIMAL

    def as_floats(self) -> List[float]:
        """Return x converted to Python floats."""
        return [float(v) for v in self.x]
