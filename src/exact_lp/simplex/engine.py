"""
Tableau-based primal simplex engine in mpmath extended precision.

Solves

    maximize    c^T x
    subject to  A x = b,  x >= 0

either from a caller-supplied feasible basis or, when none is given, from
a basis synthesized by the randomized penalty method in ``feasibility``.

Architecture:
    - IdentifyBasis pivots the start-basis columns to an identity submatrix
    - ComputeInitialValue checks feasibility of the basis and sets rhs[0]
    - Optimize runs the pivot loop with an m*n iteration cap
"""

from concurrent.futures import Executor
from typing import Optional, Sequence, Union

import numpy as np
from mpmath import mp, mpf

from ..config import EPSILON, MPMATH_PRECISION, DEFAULT_PIVOTING_RULE
from ..logging import get_logger
from ..problem import LPProblem, to_mpf_matrix
from .feasibility import FeasibilitySynthesizer
from .pivoting import find_leaving_row, get_entering_rule, resolve_pivoting_rule
from .result import InvalidBasisError, LPSolution, PivotingRule, SimplexResult
from .tableau import NumericTableau, pivot_executor


logger = get_logger(__name__)


class SimplexEngine:
    """
    Primal simplex on a dense NumericTableau.

    Parameters
    ----------
    problem : LPProblem
        Equality-form problem. Never mutated.
    pivoting_rule : PivotingRule or str
        Entering-column rule.
    executor : Executor, optional
        Pool for concurrent row updates inside each pivot.

    Notes
    -----
    The engine computes at the mpmath precision active when its methods
    run (``mp.dps = 15`` unless changed). Only ``solve_lp`` and the other
    ``solve_*`` entry points set ``mp.dps`` themselves; direct users wrap
    the calls in ``mp.workdps(...)``.
    """

    def __init__(
        self,
        problem: LPProblem,
        pivoting_rule: Union[PivotingRule, str] = DEFAULT_PIVOTING_RULE,
        executor: Optional[Executor] = None,
    ):
        self.problem = problem
        self.pivoting_rule = resolve_pivoting_rule(pivoting_rule)
        self._find_entering = get_entering_rule(self.pivoting_rule)
        self.executor = executor
        self.tableau: Optional[NumericTableau] = None
        self.iterations = 0

    def spawn(self, problem: LPProblem) -> "SimplexEngine":
        """Engine for another problem with the same rule and executor."""
        return type(self)(problem, self.pivoting_rule, executor=self.executor)

    # -------------------------------------------------------------------------
    # Preparation
    # -------------------------------------------------------------------------

    def prepare(
        self,
        start_basis: Sequence[int],
        extra_objective: Optional[Sequence[mpf]] = None,
    ) -> None:
        """Build the initial tableau and pivot the start basis into identity form."""
        self.tableau = NumericTableau.from_problem(
            self.problem.A, self.problem.b, self.problem.c,
            extra_objective=extra_objective, executor=self.executor,
        )
        self.iterations = 0
        self.identify_basis(start_basis)

    def identify_basis(self, start_basis: Sequence[int]) -> None:
        """
        Reduce the start-basis columns to an identity submatrix.

        Each column is pivoted in the not-yet-used row where its coefficient
        has the largest magnitude (first row on ties).

        Raises
        ------
        InvalidBasisError
            If the basis has the wrong size, repeats or is out of range, or
            if a basis column has only zeros in the remaining rows.
        """
        m, n = self.problem.rows, self.problem.columns
        start_basis = [int(col) for col in start_basis]
        if len(start_basis) != m or len(set(start_basis)) != m:
            raise InvalidBasisError("Insufficient number of basis columns")
        for col in start_basis:
            if not 0 <= col < n:
                raise InvalidBasisError(f"Basis column {col} is out of range [0, {n})")

        tableau = self.tableau
        unused_rows = list(tableau.basic_rows())
        for col in start_basis:
            best_row = -1
            best_value = mpf(0)
            for i in unused_rows:
                value = abs(tableau.rows[i][col])
                if value > best_value:
                    best_value = value
                    best_row = i
            if best_row == -1:
                raise InvalidBasisError("Invalid start basis")
            tableau.pivot(best_row, col, clamp=False)
            unused_rows.remove(best_row)

    def adopt(self, tableau: NumericTableau) -> None:
        """Install a tableau prepared elsewhere (the feasibility phase) as the working state."""
        tableau.executor = self.executor
        self.tableau = tableau

    def compute_initial_value(self) -> mpf:
        """
        Set rhs[0] to c^T x of the current basic solution.

        Raises
        ------
        InvalidBasisError
            If a basic variable is below -EPSILON (the basis is not feasible).
        """
        tableau = self.tableau
        c = self.problem.c
        value = mpf(0)
        for i, col in enumerate(tableau.basis):
            v = tableau.rhs[i + 1]
            if v < -EPSILON:
                raise InvalidBasisError("Supplied basis is not a valid basis")
            if v < 0:
                v = mpf(0)
                tableau.rhs[i + 1] = v
            value += c[col] * v
        tableau.rhs[0] = value
        return value

    # -------------------------------------------------------------------------
    # Optimization
    # -------------------------------------------------------------------------

    def optimize(self) -> SimplexResult:
        """Run pivots until optimal, unbounded, or the m*n cap is hit."""
        tableau = self.tableau
        limit = tableau.n_constraints * tableau.n_columns
        pivots = 0
        while True:
            entering = self._find_entering(tableau.objective_row)
            if entering == -1:
                return SimplexResult.OPTIMAL
            leaving = find_leaving_row(tableau, entering)
            if leaving == -1:
                return SimplexResult.FUNCTIONAL_UNBOUND
            if pivots >= limit:
                logger.debug("Iteration limit %d reached, reporting a cycle", limit)
                return SimplexResult.CYCLE_DETECTED
            tableau.pivot(leaving, entering)
            pivots += 1
            self.iterations += 1

    def solve(
        self,
        start_basis: Optional[Sequence[int]] = None,
        rng: Optional[np.random.Generator] = None,
    ) -> SimplexResult:
        """
        Solve the problem.

        With ``start_basis`` the basis is identified and used directly;
        otherwise a feasible basis is synthesized first.
        """
        if start_basis is not None:
            self.prepare(start_basis)
        else:
            result = FeasibilitySynthesizer(self, rng=rng).run()
            if result is not SimplexResult.OPTIMAL:
                return result
        self.compute_initial_value()
        return self.optimize()

    def result(self, status: SimplexResult) -> LPSolution:
        """Package the current state as an LPSolution."""
        if status is not SimplexResult.OPTIMAL:
            return LPSolution(status=status, iterations=self.iterations)
        tableau = self.tableau
        return LPSolution(
            status=status,
            x=tableau.solution(self.problem.columns),
            value=tableau.value,
            basis=list(tableau.basis),
            iterations=self.iterations,
        )


def solve_lp(
    A,
    b,
    c,
    start_basis: Optional[Sequence[int]] = None,
    pivoting_rule: Union[PivotingRule, str] = DEFAULT_PIVOTING_RULE,
    dps: int = MPMATH_PRECISION,
    rng: Optional[np.random.Generator] = None,
    seed: Optional[int] = None,
    workers: int = 1,
) -> LPSolution:
    """
    Solve max c^T x subject to A x = b, x >= 0.

    Parameters
    ----------
    A, b, c : array-like
        Problem data (nested sequences, numpy arrays, strings or mpf).
    start_basis : sequence of int, optional
        Feasible start basis (one column per row). Skips the feasibility
        phase; an infeasible or singular basis raises InvalidBasisError.
    pivoting_rule : PivotingRule or str
        Entering-column rule.
    dps : int
        mpmath decimal places used for the whole solve.
    rng : numpy.random.Generator, optional
        Random source for the penalty coefficients.
    seed : int, optional
        Seed for a fresh generator when ``rng`` is not given.
    workers : int
        Threads used for the row updates of each pivot.

    Returns
    -------
    LPSolution
        ``basis`` is populated whenever the status is OPTIMAL.

    Examples
    --------
    >>> sol = solve_lp([[1, 1]], [1], [1, 0])
    >>> sol.status
    <SimplexResult.OPTIMAL: 'optimal'>
    >>> [float(v) for v in sol.x]
    [1.0, 0.0]
    """
    saved_dps = mp.dps
    mp.dps = dps
    try:
        problem = LPProblem.from_arrays(A, b, c)
        if rng is None:
            rng = np.random.default_rng(seed)
        with pivot_executor(workers) as executor:
            engine = SimplexEngine(problem, pivoting_rule, executor=executor)
            status = engine.solve(start_basis, rng=rng)
            logger.debug(
                "Solved %dx%d problem: %s after %d pivots",
                problem.rows, problem.columns, status.value, engine.iterations,
            )
            return engine.result(status)
    finally:
        mp.dps = saved_dps


def find_feasible_basis(
    A,
    b,
    dps: int = MPMATH_PRECISION,
    rng: Optional[np.random.Generator] = None,
    seed: Optional[int] = None,
    workers: int = 1,
) -> LPSolution:
    """
    Find a basic feasible solution of A x = b, x >= 0.

    Runs only the randomized penalty phase, with a zero objective, so the
    returned basis can be passed to ``solve_lp(..., start_basis=...)``
    for any objective on the same constraints.

    Returns
    -------
    LPSolution
        On OPTIMAL, ``x`` is feasible, ``value`` is 0 and ``basis`` lists
        the basic column of each remaining row. Redundant equations are
        dropped during the search, so ``basis`` may be shorter than the
        number of rows. HULL_IS_EMPTY when the system has no solution.

    Examples
    --------
    >>> sol = find_feasible_basis([[1, 1, 1]], [2])
    >>> sol.status
    <SimplexResult.OPTIMAL: 'optimal'>
    >>> len(sol.basis)
    1
    """
    saved_dps = mp.dps
    mp.dps = dps
    try:
        matrix = to_mpf_matrix(A)
        width = len(matrix[0]) if matrix else 0
        problem = LPProblem.from_arrays(matrix, b, [0] * width)
        if rng is None:
            rng = np.random.default_rng(seed)
        with pivot_executor(workers) as executor:
            engine = SimplexEngine(problem, executor=executor)
            status = FeasibilitySynthesizer(engine, rng=rng).run()
            if status is SimplexResult.OPTIMAL:
                engine.compute_initial_value()
            logger.debug(
                "Feasibility search on %dx%d system: %s",
                problem.rows, problem.columns, status.value,
            )
            return engine.result(status)
    finally:
        mp.dps = saved_dps
