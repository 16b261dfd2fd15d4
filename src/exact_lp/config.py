"""
Global configuration and numerical constants for the exact LP engine.

All tolerances are compared against mpmath ``mpf`` values computed at
``MPMATH_PRECISION`` decimal places.
"""

from mpmath import mpf


# =============================================================================
# Numerical Parameters
# =============================================================================

MPMATH_PRECISION = 50
"""Number of decimal digits for mpmath extended precision."""

EPSILON = mpf("1e-10")
"""Tolerance for constraint satisfaction and basis validity checks."""

EPSILON_FUNCTIONAL = mpf("1e-12")
"""Tolerance on reduced costs and on pivot-column coefficients in the ratio test."""

EPSILON_BASIS = mpf("1e-6")
"""Negative basic-variable residue above this magnitude is logged as a rounding warning."""

EPSILON_INTEGRAL = mpf("1e-9")
"""Values closer than this to an integer are treated as integral."""


# =============================================================================
# Feasibility Phase
# =============================================================================

PENALTY_START = 8
"""Initial half-scale K of the randomized artificial-variable penalties."""

PENALTY_LIMIT = 1_000_000
"""Penalty scale at which the feasibility search gives up (RoundingError)."""


# =============================================================================
# Seidel Elimination
# =============================================================================

SEIDEL_MIN_EXCESS = 3
"""Constraints are eliminated while rows - columns is at least this value."""


# =============================================================================
# Integer Programming
# =============================================================================

MAX_CUTS = 200
"""Maximum number of Gomory cuts added before the loop reports CycleDetected."""


DEFAULT_PIVOTING_RULE = "min_cost"
"""Name of the default entering-column rule (see PivotingRule)."""
