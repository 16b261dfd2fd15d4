"""
Seidel's randomized constraint elimination for A x <= b, x >= 0.
"""

from .state import LazyState, RowRemovalFrame, VariableRemovalFrame
from .solver import SeidelSolver, solve_by_seidel

__all__ = [
    "LazyState",
    "RowRemovalFrame",
    "VariableRemovalFrame",
    "SeidelSolver",
    "solve_by_seidel",
]
