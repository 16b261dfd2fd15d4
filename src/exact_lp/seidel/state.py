"""
Lazy constraint sets and the frames of the Seidel elimination stack.

A LazyState describes the inequality system

    A x <= b,  x >= 0,  maximize c^T x

as a view onto shared backing rows: removing a constraint only shrinks
the tuple of live row indices, the rows themselves are never copied.
Eliminating a variable creates a fresh backing store, since every row
changes.
"""

from dataclasses import dataclass
from typing import List, Sequence, Tuple

from mpmath import mpf

from ..config import EPSILON
from ..problem import LPProblem, MpfRow


@dataclass(frozen=True)
class LazyState:
    """
    Constraint set given by live indices into shared rows.

    Attributes
    ----------
    A : tuple of tuple of mpf
        Backing constraint rows. Shared between states.
    b : tuple of mpf
        Backing right-hand side.
    c : tuple of mpf
        Objective of this state.
    live : tuple of int
        Indices into ``A`` and ``b`` of the constraints in this state.
    """
    A: Tuple[MpfRow, ...]
    b: MpfRow
    c: MpfRow
    live: Tuple[int, ...]

    @classmethod
    def from_rows(cls, A: Sequence[MpfRow], b: Sequence[mpf], c: Sequence[mpf]) -> "LazyState":
        """State with every backing row live."""
        return cls(A=tuple(A), b=tuple(b), c=tuple(c), live=tuple(range(len(A))))

    @classmethod
    def from_problem(cls, problem: LPProblem) -> "LazyState":
        return cls.from_rows(problem.A, problem.b, problem.c)

    @property
    def rows(self) -> int:
        return len(self.live)

    @property
    def columns(self) -> int:
        return len(self.c)

    def row(self, index: int) -> MpfRow:
        return self.A[self.live[index]]

    def rhs(self, index: int) -> mpf:
        return self.b[self.live[index]]

    def without_row(self, index: int) -> "LazyState":
        """Same backing arrays, constraint ``index`` no longer live."""
        live = self.live[:index] + self.live[index + 1:]
        return LazyState(A=self.A, b=self.b, c=self.c, live=live)

    def is_satisfied(self, index: int, x: Sequence[mpf], tolerance: mpf = EPSILON) -> bool:
        """True if constraint ``index`` holds at ``x`` up to ``tolerance``."""
        return dot(self.row(index), x) <= self.rhs(index) + tolerance

    def all_satisfied(self, x: Sequence[mpf], tolerance: mpf = EPSILON) -> bool:
        return all(self.is_satisfied(i, x, tolerance) for i in range(self.rows))

    def materialize(self) -> LPProblem:
        """Pack the live rows into an LPProblem (still in A x <= b form)."""
        return LPProblem(
            A=tuple(self.row(i) for i in range(self.rows)),
            b=tuple(self.rhs(i) for i in range(self.rows)),
            c=self.c,
        )


def dot(row: Sequence[mpf], x: Sequence[mpf]) -> mpf:
    return sum((a * v for a, v in zip(row, x)), mpf(0))


def eliminate_variable(
    state: LazyState,
    tight_row: Sequence[mpf],
    tight_rhs: mpf,
    column: int,
) -> LazyState:
    """
    Restrict ``state`` to the hyperplane  tight_row . x = tight_rhs.

    The hyperplane is solved for x_k (k = ``column``)::

        x_k = tight_rhs / a_k - sum_{j != k} (a_j / a_k) x_j

    and substituted into every constraint and the objective. The bound
    x_k >= 0 becomes the extra constraint  sum_{j != k} (a_j / a_k) x_j <=
    tight_rhs / a_k, appended last. The constant term of the objective is
    dropped.
    """
    lead = tight_row[column]
    ratios = [v / lead for j, v in enumerate(tight_row) if j != column]
    lead_rhs = tight_rhs / lead

    A = []
    b = []
    for i in range(state.rows):
        row = state.row(i)
        coeff = row[column]
        rest = [v for j, v in enumerate(row) if j != column]
        if coeff == 0:
            A.append(tuple(rest))
            b.append(state.rhs(i))
            continue
        A.append(tuple(v - coeff * r for v, r in zip(rest, ratios)))
        b.append(state.rhs(i) - coeff * lead_rhs)

    A.append(tuple(ratios))
    b.append(lead_rhs)

    c_k = state.c[column]
    c = tuple(v - c_k * r for v, r in zip(
        (v for j, v in enumerate(state.c) if j != column), ratios
    ))
    return LazyState.from_rows(A, b, c)


def restore_variable(
    x: Sequence[mpf],
    tight_row: Sequence[mpf],
    tight_rhs: mpf,
    column: int,
) -> List[mpf]:
    """Insert x_k solved from the tight row into a point of the reduced space."""
    others = list(tight_row[:column]) + list(tight_row[column + 1:])
    x_k = (tight_rhs - dot(others, x)) / tight_row[column]
    if x_k < 0:
        x_k = mpf(0)
    return list(x[:column]) + [x_k] + list(x[column:])


# =============================================================================
# Stack Frames
# =============================================================================

@dataclass(frozen=True)
class RowRemovalFrame:
    """``after`` is ``before`` without constraint ``removed_index``."""
    before: LazyState
    removed_index: int
    after: LazyState

    @property
    def removed_row(self) -> MpfRow:
        return self.before.row(self.removed_index)

    @property
    def removed_rhs(self) -> mpf:
        return self.before.rhs(self.removed_index)


@dataclass(frozen=True)
class VariableRemovalFrame:
    """
    ``after`` is ``before`` restricted to constraint ``removed_index`` made
    tight, with ``removed_column`` substituted out.
    """
    before: LazyState
    removed_index: int
    removed_column: int
    after: LazyState

    def restore(self, x: Sequence[mpf]) -> List[mpf]:
        """Lift a point of ``after`` back to the space of ``before``."""
        return restore_variable(
            x,
            self.before.row(self.removed_index),
            self.before.rhs(self.removed_index),
            self.removed_column,
        )
