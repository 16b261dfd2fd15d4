"""
Dense simplex tableau with the elementary pivot operation.

Layout::

    row 0        : -c^T (reduced costs after pivoting)   | rhs[0] = objective value
    rows 1..m    : constraint coefficients                | rhs[i] = basic variable value
    row m+1      : optional extra objective carried along (feasibility phase)

basis[i] is the column that is basic in tableau row i + 1.
"""

from concurrent.futures import Executor, ThreadPoolExecutor
from contextlib import contextmanager
from typing import Iterable, Iterator, List, Optional, Sequence, Set

from mpmath import mpf

from ..config import EPSILON, EPSILON_BASIS
from ..logging import get_logger


logger = get_logger(__name__)


@contextmanager
def pivot_executor(workers: int = 1) -> Iterator[Optional[Executor]]:
    """
    Thread pool for the per-row updates of a pivot, scoped to one solve.

    Yields None for ``workers == 1`` (rows are updated sequentially).
    """
    if workers < 1:
        raise ValueError(f"workers must be >= 1, got {workers}")
    if workers == 1:
        yield None
        return
    with ThreadPoolExecutor(max_workers=workers) as executor:
        yield executor


class NumericTableau:
    """
    Simplex table, right-hand side, basis and non-basic column set.

    Parameters
    ----------
    rows : list of list of mpf
        Objective row followed by the m constraint rows and, optionally,
        one extra objective row. Rows are owned and mutated in place.
    rhs : list of mpf
        Right-hand side, same length as ``rows``.
    n_constraints : int
        Number of constraint rows m.
    basis : list of int or None
        Basic column per constraint row. Entries may be None while the
        start basis is being identified.
    executor : Executor, optional
        Pool used to update rows concurrently inside one pivot.

    Notes
    -----
    Arithmetic runs at the mpmath precision active at call time; the
    tableau never sets ``mp.dps`` itself.
    """

    def __init__(
        self,
        rows: List[List[mpf]],
        rhs: List[mpf],
        n_constraints: int,
        basis: Optional[List[Optional[int]]] = None,
        executor: Optional[Executor] = None,
    ):
        if len(rows) != len(rhs):
            raise ValueError("Tableau rows and rhs have different lengths")
        if len(rows) < n_constraints + 1:
            raise ValueError("Tableau has fewer rows than constraints")
        self.rows = rows
        self.rhs = rhs
        self.n_constraints = n_constraints
        self.n_columns = len(rows[0])
        if basis is None:
            self.basis: List[Optional[int]] = [None] * n_constraints
            self.free_columns: Set[int] = set(range(self.n_columns))
        else:
            if len(basis) != n_constraints:
                raise ValueError("Basis size does not match the number of constraints")
            self.basis = list(basis)
            self.free_columns = set(range(self.n_columns)) - set(basis)
        self.executor = executor

    @classmethod
    def from_problem(
        cls,
        A: Sequence[Sequence[mpf]],
        b: Sequence[mpf],
        c: Sequence[mpf],
        extra_objective: Optional[Sequence[mpf]] = None,
        executor: Optional[Executor] = None,
    ) -> "NumericTableau":
        """Build the initial table: row 0 = -c, rows 1..m = A, rhs = (0, b)."""
        zero = mpf(0)
        rows = [[-v for v in c]]
        rows.extend(list(row) for row in A)
        rhs = [zero] + list(b)
        if extra_objective is not None:
            rows.append([-v for v in extra_objective])
            rhs.append(zero)
        return cls(rows, rhs, len(A), executor=executor)

    @property
    def objective_row(self) -> List[mpf]:
        return self.rows[0]

    @property
    def value(self) -> mpf:
        return self.rhs[0]

    @property
    def has_extra_row(self) -> bool:
        return len(self.rows) > self.n_constraints + 1

    def pivot(self, row_index: int, column: int, clamp: bool = True) -> None:
        """
        Exchange the basic variable of ``row_index`` for ``column``.

        ``row_index`` is a tableau row in 1..m. When ``clamp`` is set,
        negative right-hand sides produced in constraint rows are reset to
        zero; residue beyond EPSILON_BASIS is logged as a rounding warning.
        """
        leaving = self.basis[row_index - 1]
        self.free_columns.discard(column)
        if leaving is not None:
            self.free_columns.add(leaving)
        self.basis[row_index - 1] = column

        lead_row = self.rows[row_index]
        lead_value = lead_row[column]
        lead_rhs = self.rhs[row_index]
        if lead_value != 1:
            if lead_rhs != 0:
                lead_rhs /= lead_value
                self.rhs[row_index] = lead_rhs
            lead_row[column] = mpf(1)
            for j in self.free_columns:
                j_value = lead_row[j]
                if j_value != 0:
                    lead_row[j] = j_value / lead_value

        free = sorted(self.free_columns)
        targets = [k for k in range(len(self.rows)) if k != row_index]

        def eliminate(k: int) -> None:
            current = self.rows[k]
            coeff = current[column]
            if coeff == 0:
                return
            for j in free:
                j_value = lead_row[j]
                if j_value != 0:
                    current[j] -= j_value * coeff
            current[column] = mpf(0)
            if lead_rhs != 0:
                v = self.rhs[k] - lead_rhs * coeff
                if clamp and 0 < k <= self.n_constraints and v < 0:
                    if v < -EPSILON_BASIS:
                        logger.warning(
                            "Rounding error. Got %s as a new basis var value", v
                        )
                    v = mpf(0)
                self.rhs[k] = v

        if self.executor is None:
            for k in targets:
                eliminate(k)
        else:
            # list() waits for every row: no pivot may start before this one finishes
            list(self.executor.map(eliminate, targets))

    def drop_row(self, row_index: int) -> None:
        """Remove a redundant constraint row (tableau index 1..m) and its basic column."""
        removed = self.basis.pop(row_index - 1)
        del self.rows[row_index]
        del self.rhs[row_index]
        self.n_constraints -= 1
        if removed is not None:
            self.free_columns.add(removed)

    def truncate_columns(self, n_columns: int) -> None:
        """Drop every column with index >= n_columns (all must be non-basic)."""
        if any(col is not None and col >= n_columns for col in self.basis):
            raise ValueError("Cannot drop a basic column")
        for row in self.rows:
            del row[n_columns:]
        self.n_columns = n_columns
        self.free_columns = {j for j in self.free_columns if j < n_columns}

    def promote_extra_row(self) -> None:
        """Replace row 0 by the extra objective row and drop the latter."""
        if not self.has_extra_row:
            raise ValueError("Tableau has no extra objective row")
        self.rows[0] = self.rows.pop()
        self.rhs.pop()
        self.rhs[0] = mpf(0)

    def solution(self, n_columns: Optional[int] = None) -> List[mpf]:
        """Read x from the basis: basic columns take their rhs, the rest are zero."""
        n = self.n_columns if n_columns is None else n_columns
        x = [mpf(0)] * n
        for i, col in enumerate(self.basis):
            if col is not None and col < n:
                x[col] = self.rhs[i + 1]
        return x

    def basic_rows(self) -> Iterable[int]:
        """Tableau row indices 1..m."""
        return range(1, self.n_constraints + 1)

    def check_identity(self, tolerance: mpf = EPSILON) -> bool:
        """True if the basis columns form an identity submatrix over rows 1..m."""
        for i, col in enumerate(self.basis):
            if col is None:
                return False
            for k in self.basic_rows():
                expected = 1 if k == i + 1 else 0
                if abs(self.rows[k][col] - expected) > tolerance:
                    return False
            if abs(self.rows[0][col]) > tolerance:
                return False
        return True
