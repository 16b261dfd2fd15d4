"""
Primal simplex engine on a dense mpmath tableau.

Implements:
- NumericTableau and the pivot primitive (optionally threaded row updates)
- Entering-column rules (min cost, Bland, reverse Bland) and the ratio test
- SimplexEngine with an m*n iteration cap
- Randomized penalty method for the starting basis
- Gomory fractional cuts for pure integer programs
"""

from .result import (
    InvalidBasisError,
    LPSolution,
    PivotingRule,
    SimplexResult,
)

from .tableau import (
    NumericTableau,
    pivot_executor,
)

from .pivoting import (
    find_entering_bland,
    find_entering_min_cost,
    find_entering_reverse_bland,
    find_leaving_row,
    get_entering_rule,
)

from .engine import (
    SimplexEngine,
    find_feasible_basis,
    solve_lp,
)

from .feasibility import FeasibilitySynthesizer

from .integer import (
    IntegerProgram,
    solve_ilp,
)

__all__ = [
    # Results
    "InvalidBasisError",
    "LPSolution",
    "PivotingRule",
    "SimplexResult",
    # Tableau
    "NumericTableau",
    "pivot_executor",
    # Pivoting
    "find_entering_bland",
    "find_entering_min_cost",
    "find_entering_reverse_bland",
    "find_leaving_row",
    "get_entering_rule",
    # Engine
    "SimplexEngine",
    "solve_lp",
    "find_feasible_basis",
    "FeasibilitySynthesizer",
    # Integer programs
    "IntegerProgram",
    "solve_ilp",
]
