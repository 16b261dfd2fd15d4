"""
Starting-basis synthesis with randomized artificial-variable penalties.

To find a basic feasible solution of A x = b, x >= 0 the engine solves

    maximize    -sum_i K_i y_i
    subject to  D A x + y = |b|,   x >= 0, y >= 0

where D flips the sign of every row with negative b. The artificial
columns y form a trivial start basis. If the original system is feasible
the auxiliary optimum is 0 with every y out of the basis, and the
resulting tableau (minus the y columns) is a feasible start for the
original problem. The caller's objective is carried through the pivots as
an extra tableau row so that it is already expressed in the final basis.

The penalties K_i are drawn uniformly from [K, 2K) with K doubling on
each retry.
"""

from typing import List, Optional, Tuple

import numpy as np
from mpmath import mpf

from ..config import EPSILON, PENALTY_LIMIT, PENALTY_START
from ..logging import get_logger
from ..problem import LPProblem
from .result import SimplexResult
from .tableau import NumericTableau


logger = get_logger(__name__)


class FeasibilitySynthesizer:
    """
    Finds a feasible start basis for ``engine`` and installs it.

    Parameters
    ----------
    engine : SimplexEngine
        Engine whose problem needs a start basis. On success its tableau is
        replaced with the feasible one, row 0 holding its own objective.
    rng : numpy.random.Generator, optional
        Source of the penalty coefficients.
    """

    def __init__(
        self,
        engine,
        rng: Optional[np.random.Generator] = None,
    ):
        self.engine = engine
        self.rng = rng if rng is not None else np.random.default_rng()

    def build_auxiliary_system(self) -> Tuple[Tuple, Tuple, List[int]]:
        """
        Return (A1, b1, start_basis) of the extended system D A x + y = |b|.

        Rows with negative b are negated together with b, so every
        artificial column enters with coefficient +1.
        """
        problem = self.engine.problem
        m, n = problem.rows, problem.columns
        zero, one = mpf(0), mpf(1)
        A1 = []
        b1 = []
        for i, (row, bi) in enumerate(zip(problem.A, problem.b)):
            if bi < 0:
                row = tuple(-v for v in row)
                bi = -bi
            artificial = tuple(one if k == i else zero for k in range(m))
            A1.append(row + artificial)
            b1.append(bi)
        start_basis = [n + i for i in range(m)]
        return tuple(A1), tuple(b1), start_basis

    def run(self) -> SimplexResult:
        """
        Search for a feasible basis.

        Returns
        -------
        SimplexResult
            OPTIMAL when a basis was installed into the engine, HULL_IS_EMPTY
            when the constraints are inconsistent, ROUNDING_ERROR when every
            penalty scale produced an unbounded auxiliary problem, or the
            auxiliary solve's own status otherwise.
        """
        engine = self.engine
        problem = engine.problem
        m, n = problem.rows, problem.columns
        A1, b1, start_basis = self.build_auxiliary_system()
        carried_objective = tuple(problem.c) + (mpf(0),) * m
        logger.debug("Solving a feasibility problem of a size %dx%d", m, n + m)

        result = SimplexResult.OPTIMAL
        K = PENALTY_START
        while K < PENALTY_LIMIT:
            K *= 2
            penalties = self.rng.integers(K, 2 * K, size=m)
            c1 = (mpf(0),) * n + tuple(-mpf(int(p)) for p in penalties)
            auxiliary = engine.spawn(LPProblem(A=A1, b=b1, c=c1))
            auxiliary.prepare(start_basis, extra_objective=carried_objective)
            auxiliary.compute_initial_value()
            result = auxiliary.optimize()
            engine.iterations += auxiliary.iterations

            if result is SimplexResult.OPTIMAL:
                tableau = auxiliary.tableau
                if not self.expel_artificials(tableau, n):
                    return SimplexResult.HULL_IS_EMPTY
                tableau.truncate_columns(n)
                tableau.promote_extra_row()
                engine.adopt(tableau)
                return SimplexResult.OPTIMAL
            if result is not SimplexResult.FUNCTIONAL_UNBOUND:
                return result
            # Unbounded is impossible for the auxiliary problem except through rounding
            logger.debug("Auxiliary problem unbounded with K=%d, retrying", K)

        return SimplexResult.ROUNDING_ERROR

    @staticmethod
    def expel_artificials(tableau: NumericTableau, n_real: int) -> bool:
        """
        Remove artificial columns (index >= n_real) from the optimal basis.

        An artificial at a positive value proves the system infeasible and
        False is returned. One at zero is exchanged for the real column with
        the largest coefficient in its row; when the row has no nonzero real
        coefficient it is a redundant equation and is dropped.
        """
        row = 1
        while row <= tableau.n_constraints:
            col = tableau.basis[row - 1]
            if col < n_real:
                row += 1
                continue
            if tableau.rhs[row] > EPSILON:
                logger.debug(
                    "Artificial column %d stays basic at %s: hull is empty",
                    col, tableau.rhs[row],
                )
                return False
            tableau.rhs[row] = mpf(0)

            entering = -1
            best = EPSILON
            values = tableau.rows[row]
            for j in range(n_real):
                if j in tableau.free_columns and abs(values[j]) > best:
                    best = abs(values[j])
                    entering = j
            if entering == -1:
                logger.debug("Dropping redundant constraint row %d", row)
                tableau.drop_row(row)
                continue
            tableau.pivot(row, entering, clamp=False)
            row += 1
        return True
