"""
Double-precision reference solves with scipy.optimize.linprog (HiGHS backend).

Used to cross-validate the exact engines on random problems: the
reference answer is only float64 accurate, so comparisons against it
should use a tolerance of about 1e-6 relative to the problem scale.
"""

from typing import Optional

import numpy as np
from scipy.optimize import linprog

from .problem import to_mpf
from .simplex.result import LPSolution, SimplexResult


# scipy.optimize.linprog status codes
_LINPROG_STATUS = {
    0: SimplexResult.OPTIMAL,
    1: SimplexResult.CYCLE_DETECTED,     # iteration limit reached
    2: SimplexResult.HULL_IS_EMPTY,
    3: SimplexResult.FUNCTIONAL_UNBOUND,
}


def reference_solve(
    A,
    b,
    c,
    equality: bool = True,
    method: str = "highs",
    options: Optional[dict] = None,
) -> LPSolution:
    """
    Solve max c^T x subject to A x = b (or A x <= b), x >= 0 in float64.

    Parameters
    ----------
    A : array-like
        Constraint matrix of shape (m, n).
    b : array-like
        Right-hand side of length m.
    c : array-like
        Objective of length n (maximized).
    equality : bool
        If True the rows are equations, otherwise ``<=`` inequalities.
    method : str
        linprog method (default "highs").
    options : dict, optional
        Solver options passed to linprog, e.g. ``{"presolve": False}``
        so that HiGHS separates unbounded from infeasible problems.

    Returns
    -------
    LPSolution
        ``x`` and ``value`` converted to mpf; ``iterations`` is the solver's
        iteration count. Numerical trouble maps to ROUNDING_ERROR.
    """
    A = np.asarray(A, dtype=float)
    b = np.asarray(b, dtype=float)
    c = np.asarray(c, dtype=float)
    if A.ndim != 2 or A.shape[0] != b.shape[0] or A.shape[1] != c.shape[0]:
        raise ValueError(
            f"Incompatible shapes: A {A.shape}, b {b.shape}, c {c.shape}"
        )

    # linprog minimizes, so negate the objective
    if equality:
        res = linprog(-c, A_eq=A, b_eq=b, bounds=(0, None),
                      method=method, options=options)
    else:
        res = linprog(-c, A_ub=A, b_ub=b, bounds=(0, None),
                      method=method, options=options)

    status = _LINPROG_STATUS.get(res.status, SimplexResult.ROUNDING_ERROR)
    iterations = int(getattr(res, "nit", 0) or 0)
    if status is not SimplexResult.OPTIMAL:
        return LPSolution(status=status, iterations=iterations)
    return LPSolution(
        status=status,
        x=[to_mpf(v) for v in res.x],
        value=to_mpf(-res.fun),
        iterations=iterations,
    )
