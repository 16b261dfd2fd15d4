"""
Pure integer programming by Gomory fractional cuts.

Solves

    maximize    c^T x
    subject to  A x = b,  x >= 0,  x integer

by repeatedly solving the LP relaxation and, while the optimum has a
fractional basic variable, appending the cut derived from its tableau row

    x_B + sum_j a_j x_j = b_B    =>    sum_j frac(a_j) x_j - s = frac(b_B),  s >= 0

The surplus s is integral for integral x when A and b are integral, so
the cuts compose. There is no branching: cuts are applied one after the
other and termination is not guaranteed for every program. MAX_CUTS bounds
the loop.
"""

from concurrent.futures import Executor
from typing import List, Optional, Tuple, Union

import numpy as np
from mpmath import mp, mpf, floor, nint

from ..config import DEFAULT_PIVOTING_RULE, EPSILON_INTEGRAL, MAX_CUTS, MPMATH_PRECISION
from ..logging import get_logger
from ..problem import LPProblem
from .engine import SimplexEngine
from .result import LPSolution, PivotingRule, SimplexResult
from .tableau import NumericTableau, pivot_executor


logger = get_logger(__name__)


def fractional_part(value: mpf) -> mpf:
    """value - floor(value), in [0, 1)."""
    return value - floor(value)


def is_integral(value: mpf, tolerance: mpf = EPSILON_INTEGRAL) -> bool:
    f = fractional_part(value)
    return f <= tolerance or f >= 1 - tolerance


class IntegerProgram:
    """
    Cutting-plane wrapper around SimplexEngine.

    Parameters
    ----------
    problem : LPProblem
        Equality-form integer program. Every column is an integer variable.
    pivoting_rule : PivotingRule or str
        Entering-column rule for every relaxation.
    rng : numpy.random.Generator, optional
        Random source for the feasibility phase of each relaxation.
    executor : Executor, optional
        Pool for concurrent pivot row updates.
    max_cuts : int
        Number of cuts after which the loop stops with CYCLE_DETECTED.
    """

    def __init__(
        self,
        problem: LPProblem,
        pivoting_rule: Union[PivotingRule, str] = DEFAULT_PIVOTING_RULE,
        rng: Optional[np.random.Generator] = None,
        executor: Optional[Executor] = None,
        max_cuts: int = MAX_CUTS,
    ):
        if max_cuts < 0:
            raise ValueError(f"max_cuts must be non-negative, got {max_cuts}")
        self.original = problem
        self.problem = problem
        self.pivoting_rule = pivoting_rule
        self.rng = rng if rng is not None else np.random.default_rng()
        self.executor = executor
        self.max_cuts = max_cuts
        self.cuts = 0

    def solve(self) -> LPSolution:
        """Solve relaxations and add cuts until the optimum is integral."""
        n = self.original.columns
        while True:
            engine = SimplexEngine(self.problem, self.pivoting_rule, executor=self.executor)
            status = engine.solve(rng=self.rng)
            if status is not SimplexResult.OPTIMAL:
                logger.debug("Relaxation after %d cuts ended with %s", self.cuts, status.value)
                return LPSolution(status=status, iterations=self.cuts)

            cut = self.generate_cut(engine.tableau)
            if cut is None:
                x = [
                    mpf(nint(v)) for v in engine.tableau.solution(self.problem.columns)[:n]
                ]
                return LPSolution(
                    status=SimplexResult.OPTIMAL,
                    x=x,
                    value=self.original.objective_value(x),
                    iterations=self.cuts,
                )

            if self.cuts >= self.max_cuts:
                logger.warning(
                    "No integral optimum after %d cuts, giving up", self.cuts
                )
                return LPSolution(status=SimplexResult.CYCLE_DETECTED, iterations=self.cuts)

            coefficients, rhs = cut
            self.problem = self.add_cut(self.problem, coefficients, rhs)
            self.cuts += 1
            logger.debug(
                "Added cut %d (relaxation value %s)", self.cuts, engine.tableau.value
            )

    @staticmethod
    def generate_cut(tableau: NumericTableau) -> Optional[Tuple[List[mpf], mpf]]:
        """
        Gomory cut from the most fractional basic row.

        Returns
        -------
        (coefficients, rhs) or None
            Cut  coefficients^T x >= rhs  over all tableau columns, or None
            when every basic value is integral. Ties on fractionality go to
            the lowest row.
        """
        best_row = -1
        best_score = mpf(0)
        for i in tableau.basic_rows():
            if is_integral(tableau.rhs[i]):
                continue
            f0 = fractional_part(tableau.rhs[i])
            score = min(f0, 1 - f0)
            if score > best_score:
                best_score = score
                best_row = i
        if best_row == -1:
            return None

        row = tableau.rows[best_row]
        coefficients = []
        for j in range(tableau.n_columns):
            if j in tableau.free_columns and not is_integral(row[j]):
                coefficients.append(fractional_part(row[j]))
            else:
                coefficients.append(mpf(0))
        return coefficients, fractional_part(tableau.rhs[best_row])

    @staticmethod
    def add_cut(problem: LPProblem, coefficients: List[mpf], rhs: mpf) -> LPProblem:
        """Append  coefficients^T x - s = rhs  with a new surplus column s."""
        zero = mpf(0)
        A = tuple(row + (zero,) for row in problem.A)
        A += (tuple(coefficients) + (mpf(-1),),)
        return LPProblem(A=A, b=problem.b + (rhs,), c=problem.c + (zero,))


def solve_ilp(
    A,
    b,
    c,
    pivoting_rule: Union[PivotingRule, str] = DEFAULT_PIVOTING_RULE,
    dps: int = MPMATH_PRECISION,
    rng: Optional[np.random.Generator] = None,
    seed: Optional[int] = None,
    workers: int = 1,
    max_cuts: int = MAX_CUTS,
) -> LPSolution:
    """
    Solve max c^T x subject to A x = b, x >= 0, x integer.

    Returns
    -------
    LPSolution
        ``x`` is rounded to the nearest integers on success and covers only
        the caller's columns; ``iterations`` is the number of cuts added.
        ``basis`` is None, since the final basis belongs to the problem
        extended by the cut rows and surplus columns.

    Examples
    --------
    >>> sol = solve_ilp([[2, 1]], [3], [1, 0])
    >>> [float(v) for v in sol.x]
    [1.0, 1.0]
    """
    saved_dps = mp.dps
    mp.dps = dps
    try:
        problem = LPProblem.from_arrays(A, b, c)
        if rng is None:
            rng = np.random.default_rng(seed)
        with pivot_executor(workers) as executor:
            program = IntegerProgram(
                problem, pivoting_rule, rng=rng, executor=executor, max_cuts=max_cuts,
            )
            return program.solve()
    finally:
        mp.dps = saved_dps
