"""
exact_lp: extended-precision linear and integer programming.

Tableau primal simplex in mpmath arithmetic with a randomized
feasibility phase, Gomory cutting planes for pure integer programs, and
Seidel's randomized constraint elimination for systems with many more
constraints than variables.

Main entry points:
- `solve_lp(A, b, c)`: max c^T x, A x = b, x >= 0
- `find_feasible_basis(A, b)`: a feasible start basis of A x = b, x >= 0
- `solve_ilp(A, b, c)`: the same with x integer
- `solve_by_seidel(A, b, c)`: max c^T x, A x <= b, x >= 0
"""

from . import config
from .problem import LPProblem
from .simplex import (
    InvalidBasisError,
    LPSolution,
    PivotingRule,
    SimplexResult,
    find_feasible_basis,
    solve_ilp,
    solve_lp,
)
from .seidel import solve_by_seidel

__version__ = "0.1.0"
__all__ = [
    "config",
    "LPProblem",
    "InvalidBasisError",
    "LPSolution",
    "PivotingRule",
    "SimplexResult",
    "solve_lp",
    "find_feasible_basis",
    "solve_ilp",
    "solve_by_seidel",
]
