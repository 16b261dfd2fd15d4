"""
Problem container and input coercion for the exact LP engine.

An LPProblem is the immutable triple (A, b, c) describing

    maximize c^T x   subject to   A x = b,  x >= 0

with every coefficient stored as an mpmath ``mpf``. Inequality systems
``A x <= b`` are brought to this form with ``with_slacks``.
"""

from dataclasses import dataclass
from numbers import Integral, Real
from typing import List, Sequence, Tuple

import numpy as np
from mpmath import mpf


MpfRow = Tuple[mpf, ...]


def to_mpf(value) -> mpf:
    """
    Convert a scalar to ``mpf`` at the current working precision.

    Accepts Python and numpy ints/floats, decimal strings and mpf.
    Strings are parsed in decimal, so ``"0.1"`` is exact to the working
    precision while the float ``0.1`` keeps its binary rounding.
    """
    if isinstance(value, mpf):
        return +value
    if isinstance(value, (bool, np.bool_)):
        raise TypeError(f"Boolean coefficient {value!r} is not a number")
    if isinstance(value, np.integer):
        return mpf(int(value))
    if isinstance(value, np.floating):
        return mpf(float(value))
    if isinstance(value, (Integral, Real, str)):
        return mpf(value)
    raise TypeError(f"Cannot convert {type(value).__name__} to mpf")


def to_mpf_vector(values) -> List[mpf]:
    """Convert a 1-D sequence or array to a list of mpf."""
    if isinstance(values, np.ndarray):
        if values.ndim != 1:
            raise ValueError(f"Expected a 1-D array, got shape {values.shape}")
        values = values.tolist()
    return [to_mpf(v) for v in values]


def to_mpf_matrix(rows) -> List[List[mpf]]:
    """
    Convert a 2-D sequence or array to a list of mpf rows.

    Raises
    ------
    ValueError
        If the rows have different lengths.
    """
    if isinstance(rows, np.ndarray):
        if rows.ndim != 2:
            raise ValueError(f"Expected a 2-D array, got shape {rows.shape}")
        rows = rows.tolist()
    matrix = [to_mpf_vector(row) for row in rows]
    if matrix:
        width = len(matrix[0])
        for i, row in enumerate(matrix):
            if len(row) != width:
                raise ValueError(
                    f"Row {i} has {len(row)} entries, expected {width}"
                )
    return matrix


@dataclass(frozen=True)
class LPProblem:
    """
    Equality-form linear program  max c^T x, A x = b, x >= 0.

    Attributes
    ----------
    A : tuple of tuple of mpf
        Constraint matrix, shape (m, n).
    b : tuple of mpf
        Right-hand side, length m.
    c : tuple of mpf
        Objective coefficients, length n.
    """
    A: Tuple[MpfRow, ...]
    b: MpfRow
    c: MpfRow

    def __post_init__(self):
        if len(self.A) == 0:
            raise ValueError("A must have at least one row")
        if len(self.A) != len(self.b):
            raise ValueError(
                f"Dimensions of A and b are incompatible: "
                f"{len(self.A)} rows vs {len(self.b)} entries"
            )
        if len(self.c) == 0:
            raise ValueError("c must have at least one entry")
        for i, row in enumerate(self.A):
            if len(row) != len(self.c):
                raise ValueError(
                    f"Dimensions of A and c are incompatible: "
                    f"row {i} has {len(row)} columns vs {len(self.c)} entries"
                )

    @classmethod
    def from_arrays(cls, A, b, c) -> "LPProblem":
        """Build a problem from nested sequences or numpy arrays."""
        return cls(
            A=tuple(tuple(row) for row in to_mpf_matrix(A)),
            b=tuple(to_mpf_vector(b)),
            c=tuple(to_mpf_vector(c)),
        )

    @property
    def rows(self) -> int:
        return len(self.A)

    @property
    def columns(self) -> int:
        return len(self.c)

    def with_slacks(self) -> "LPProblem":
        """
        Equality form of the inequality system A x <= b.

        Appends one identity slack column per row with zero objective
        coefficient, giving an (m, n + m) problem whose last m columns are
        a valid start basis whenever b >= 0.
        """
        m = self.rows
        zero, one = mpf(0), mpf(1)
        A = tuple(
            row + tuple(one if k == i else zero for k in range(m))
            for i, row in enumerate(self.A)
        )
        c = self.c + (zero,) * m
        return LPProblem(A=A, b=self.b, c=c)

    def objective_value(self, x: Sequence[mpf]) -> mpf:
        """Evaluate c^T x for a point of length n."""
        if len(x) != self.columns:
            raise ValueError(f"Point has {len(x)} entries, expected {self.columns}")
        return sum((ci * xi for ci, xi in zip(self.c, x)), mpf(0))

    def residual(self, x: Sequence[mpf]) -> List[mpf]:
        """Return A x - b."""
        return [
            sum((aij * xj for aij, xj in zip(row, x)), mpf(0)) - bi
            for row, bi in zip(self.A, self.b)
        ]
