"""
Seidel's randomized incremental LP algorithm on top of the simplex engine.

Solves

    maximize    c^T x
    subject to  A x <= b,  x >= 0

for systems with many more constraints than variables. Constraints are
removed in random order until the remaining system is small enough for
the simplex engine. On the way back each removed constraint is checked
against the candidate optimum; a violated constraint must be tight at the
optimum of the larger system, so one variable is eliminated along it and
the reduced problem is solved the same way.

The recursion of the textbook algorithm is run on an explicit stack of
RowRemovalFrame / VariableRemovalFrame records.
"""

from concurrent.futures import Executor
from typing import List, Optional, Tuple, Union

import numpy as np
from mpmath import mp, mpf

from ..config import DEFAULT_PIVOTING_RULE, EPSILON, MPMATH_PRECISION, SEIDEL_MIN_EXCESS
from ..logging import get_logger
from ..problem import LPProblem
from ..simplex.engine import SimplexEngine
from ..simplex.pivoting import resolve_pivoting_rule
from ..simplex.result import LPSolution, PivotingRule, SimplexResult
from ..simplex.tableau import pivot_executor
from .state import (
    LazyState,
    RowRemovalFrame,
    VariableRemovalFrame,
    eliminate_variable,
)


logger = get_logger(__name__)

Frame = Union[RowRemovalFrame, VariableRemovalFrame]
Outcome = Tuple[SimplexResult, Optional[List[mpf]]]

# Statuses after which a larger constraint set may still be solvable
_ROLLBACK_STATUSES = (SimplexResult.FUNCTIONAL_UNBOUND, SimplexResult.HULL_IS_EMPTY)


class SeidelSolver:
    """
    Constraint-elimination solver for  max c^T x, A x <= b, x >= 0.

    Parameters
    ----------
    problem : LPProblem
        Inequality system. ``problem.A x <= problem.b`` is read as is, no
        slack columns are expected.
    rng : numpy.random.Generator, optional
        Random source for the constraint order and the feasibility phase.
    pivoting_rule : PivotingRule or str
        Entering-column rule of the base-case simplex solves.
    executor : Executor, optional
        Pool for concurrent pivot row updates.
    min_excess : int
        Constraints are removed while ``rows - columns >= min_excess``.
    """

    def __init__(
        self,
        problem: LPProblem,
        rng: Optional[np.random.Generator] = None,
        pivoting_rule: Union[PivotingRule, str] = DEFAULT_PIVOTING_RULE,
        executor: Optional[Executor] = None,
        min_excess: int = SEIDEL_MIN_EXCESS,
    ):
        if min_excess < 1:
            raise ValueError(f"min_excess must be >= 1, got {min_excess}")
        self.problem = problem
        self.rng = rng if rng is not None else np.random.default_rng()
        self.pivoting_rule = resolve_pivoting_rule(pivoting_rule)
        self.executor = executor
        self.min_excess = min_excess
        self.stack: List[Frame] = []
        self.direct_solves = 0
        self.rollbacks = 0

    def is_base_case(self, state: LazyState) -> bool:
        return state.rows - state.columns < self.min_excess

    # -------------------------------------------------------------------------
    # Main loop
    # -------------------------------------------------------------------------

    def solve(self) -> LPSolution:
        """Run the elimination and return the optimum of the full system."""
        self.stack = []
        status, x = self._descend(LazyState.from_problem(self.problem))

        while True:
            if status is not SimplexResult.OPTIMAL:
                if status not in _ROLLBACK_STATUSES:
                    return self._finish(status)
                frame = self._rollback()
                if frame is None:
                    return self._finish(status)
                status, x = self._solve_directly(frame.before)
                continue

            if not self.stack:
                return self._finish(status, x)

            frame = self.stack.pop()
            if isinstance(frame, VariableRemovalFrame):
                x = frame.restore(x)
                continue
            if frame.before.is_satisfied(frame.removed_index, x):
                continue
            status, x = self._tighten(frame)

    def _descend(self, state: LazyState) -> Outcome:
        """Remove random constraints from ``state`` down to a base case and solve it."""
        while not self.is_base_case(state):
            index = int(self.rng.integers(state.rows))
            after = state.without_row(index)
            self.stack.append(RowRemovalFrame(before=state, removed_index=index, after=after))
            state = after
        return self._solve_directly(state)

    def _tighten(self, frame: RowRemovalFrame) -> Outcome:
        """
        Optimum of ``frame.before`` given that its removed constraint is violated
        by the optimum of ``frame.after``: the constraint is tight at the answer.
        """
        row = frame.removed_row
        rhs = frame.removed_rhs

        column = -1
        largest = mpf(0)
        for j, v in enumerate(row):
            if abs(v) > largest:
                largest = abs(v)
                column = j
        if largest < EPSILON:
            logger.debug("Violated constraint has no usable coefficient: hull is empty")
            return SimplexResult.HULL_IS_EMPTY, None

        if frame.before.columns == 1:
            v = rhs / row[column]
            if v < -EPSILON:
                return SimplexResult.HULL_IS_EMPTY, None
            x = [max(v, mpf(0))]
            if not frame.before.all_satisfied(x):
                return SimplexResult.HULL_IS_EMPTY, None
            return SimplexResult.OPTIMAL, x

        reduced = eliminate_variable(frame.after, row, rhs, column)
        self.stack.append(VariableRemovalFrame(
            before=frame.before,
            removed_index=frame.removed_index,
            removed_column=column,
            after=reduced,
        ))
        logger.debug(
            "Eliminated column %d, reduced problem %dx%d",
            column, reduced.rows, reduced.columns,
        )
        return self._descend(reduced)

    def _rollback(self) -> Optional[RowRemovalFrame]:
        """Pop frames through the nearest RowRemovalFrame and return it."""
        while self.stack:
            frame = self.stack.pop()
            if isinstance(frame, RowRemovalFrame):
                self.rollbacks += 1
                logger.debug(
                    "Rolling back to a %dx%d state", frame.before.rows, frame.before.columns
                )
                return frame
        return None

    # -------------------------------------------------------------------------
    # Base case
    # -------------------------------------------------------------------------

    def _solve_directly(self, state: LazyState) -> Outcome:
        """Solve ``state`` with the simplex engine on its slack equality form."""
        self.direct_solves += 1
        n = state.columns
        problem = state.materialize().with_slacks()
        engine = SimplexEngine(problem, self.pivoting_rule, executor=self.executor)
        if all(v >= 0 for v in problem.b):
            status = engine.solve(start_basis=[n + i for i in range(state.rows)])
        else:
            status = engine.solve(rng=self.rng)
        if status is not SimplexResult.OPTIMAL:
            return status, None
        return status, engine.tableau.solution(problem.columns)[:n]

    def _finish(self, status: SimplexResult, x: Optional[List[mpf]] = None) -> LPSolution:
        if status is not SimplexResult.OPTIMAL:
            return LPSolution(status=status, iterations=self.direct_solves)
        return LPSolution(
            status=status,
            x=list(x),
            value=self.problem.objective_value(x),
            iterations=self.direct_solves,
        )


def solve_by_seidel(
    A,
    b,
    c,
    pivoting_rule: Union[PivotingRule, str] = DEFAULT_PIVOTING_RULE,
    dps: int = MPMATH_PRECISION,
    rng: Optional[np.random.Generator] = None,
    seed: Optional[int] = None,
    workers: int = 1,
) -> LPSolution:
    """
    Solve max c^T x subject to A x <= b, x >= 0 by constraint elimination.

    Parameters
    ----------
    A, b, c : array-like
        Inequality system with m rows and n columns, typically m >> n.
    pivoting_rule : PivotingRule or str
        Entering-column rule for the base-case solves.
    dps : int
        mpmath decimal places used for the whole solve.
    rng : numpy.random.Generator, optional
        Random source for the elimination order.
    seed : int, optional
        Seed for a fresh generator when ``rng`` is not given.
    workers : int
        Threads used for the row updates of each pivot.

    Returns
    -------
    LPSolution
        ``basis`` is always None; ``iterations`` counts base-case solves.

    Examples
    --------
    >>> sol = solve_by_seidel([[1, 0], [0, 1], [1, 1], [1, 2], [2, 1]],
    ...                       [4, 4, 6, 10, 10], [1, 1], seed=0)
    >>> float(sol.value)
    6.0
    """
    saved_dps = mp.dps
    mp.dps = dps
    try:
        problem = LPProblem.from_arrays(A, b, c)
        if rng is None:
            rng = np.random.default_rng(seed)
        with pivot_executor(workers) as executor:
            solver = SeidelSolver(problem, rng=rng, pivoting_rule=pivoting_rule, executor=executor)
            solution = solver.solve()
            logger.debug(
                "Seidel solve of %dx%d: %s after %d direct solves, %d rollbacks",
                problem.rows, problem.columns, solution.status.value,
                solver.direct_solves, solver.rollbacks,
            )
            return solution
    finally:
        mp.dps = saved_dps
