"""
Shared pytest fixtures.
"""

import pytest
from mpmath import mp

from exact_lp.config import MPMATH_PRECISION


@pytest.fixture(autouse=True)
def working_precision():
    """Run every test at the package's working precision, restored afterwards."""
    with mp.workdps(MPMATH_PRECISION):
        yield
