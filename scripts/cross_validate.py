#!/usr/bin/env python3
"""
Cross-validation of the exact solvers against scipy's HiGHS.

Usage:
    python scripts/cross_validate.py
    python scripts/cross_validate.py --trials 50 --rows 30 --cols 4
    python scripts/cross_validate.py --seed 7 --rule bland --json report.json

For each trial a random inequality system  A x <= b, x >= 0  with positive
integer data is generated and solved three ways:
- solve_lp on the slack equality form
- solve_by_seidel on the inequality form
- reference_solve (float64 HiGHS)

A trial fails when the statuses disagree or an optimal value differs from
the reference by more than --tol. Exit status is 1 if any trial fails.
"""

import argparse
import json
import sys
import time
from dataclasses import dataclass, asdict
from pathlib import Path
from typing import List, Optional

# Add project to path when run from a checkout
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

import numpy as np

from exact_lp import LPProblem, solve_by_seidel, solve_lp
from exact_lp.config import MPMATH_PRECISION
from exact_lp.logging import set_log_level
from exact_lp.reference import reference_solve


@dataclass
class TrialResult:
    """Outcome of one random problem."""
    trial: int
    rows: int
    cols: int
    reference_status: str
    simplex_status: str
    seidel_status: str
    reference_value: Optional[float]
    simplex_value: Optional[float]
    seidel_value: Optional[float]
    simplex_seconds: float
    seidel_seconds: float
    passed: bool


def random_problem(rng: np.random.Generator, rows: int, cols: int):
    """Random bounded feasible system: A in [1, 9], b in [10, 50], c in [-5, 10]."""
    A = rng.integers(1, 10, size=(rows, cols))
    b = rng.integers(10, 51, size=rows)
    c = rng.integers(-5, 11, size=cols)
    return A, b, c


def _value(solution) -> Optional[float]:
    return float(solution.value) if solution.is_optimal else None


def run_trial(
    trial: int,
    rng: np.random.Generator,
    rows: int,
    cols: int,
    rule: str,
    dps: int,
    tol: float,
) -> TrialResult:
    A, b, c = random_problem(rng, rows, cols)
    slack_form = LPProblem.from_arrays(A, b, c).with_slacks()

    reference = reference_solve(A, b, c, equality=False)

    t0 = time.time()
    simplex = solve_lp(slack_form.A, slack_form.b, slack_form.c,
                       pivoting_rule=rule, dps=dps, rng=rng)
    simplex_seconds = time.time() - t0

    t0 = time.time()
    seidel = solve_by_seidel(A, b, c, pivoting_rule=rule, dps=dps, rng=rng)
    seidel_seconds = time.time() - t0

    passed = simplex.status is reference.status and seidel.status is reference.status
    if passed and reference.is_optimal:
        expected = float(reference.value)
        scale = max(1.0, abs(expected))
        passed = (abs(_value(simplex) - expected) <= tol * scale
                  and abs(_value(seidel) - expected) <= tol * scale)

    return TrialResult(
        trial=trial,
        rows=rows,
        cols=cols,
        reference_status=reference.status.value,
        simplex_status=simplex.status.value,
        seidel_status=seidel.status.value,
        reference_value=_value(reference),
        simplex_value=_value(simplex),
        seidel_value=_value(seidel),
        simplex_seconds=simplex_seconds,
        seidel_seconds=seidel_seconds,
        passed=passed,
    )


def print_summary(results: List[TrialResult]) -> None:
    failures = [r for r in results if not r.passed]
    print(f"\n{'='*70}")
    print("Cross-validation against scipy HiGHS")
    print(f"{'='*70}\n")
    print(f"  Trials:             {len(results)}")
    print(f"  Passed:             {len(results) - len(failures)}")
    print(f"  Failed:             {len(failures)}")
    if results:
        print(f"  Mean simplex time:  {np.mean([r.simplex_seconds for r in results]):.3f}s")
        print(f"  Mean Seidel time:   {np.mean([r.seidel_seconds for r in results]):.3f}s")
    print()
    for r in failures[:20]:
        print(f"  Trial {r.trial}: reference {r.reference_status} {r.reference_value}, "
              f"simplex {r.simplex_status} {r.simplex_value}, "
              f"seidel {r.seidel_status} {r.seidel_value}")
    if len(failures) > 20:
        print(f"  ... and {len(failures) - 20} more")


def main():
    parser = argparse.ArgumentParser(description="Cross-validate exact LP solvers against HiGHS")
    parser.add_argument("--trials", type=int, default=20, help="Number of random problems")
    parser.add_argument("--rows", type=int, default=20, help="Constraints per problem")
    parser.add_argument("--cols", type=int, default=3, help="Variables per problem")
    parser.add_argument("--seed", type=int, default=0, help="Random seed")
    parser.add_argument("--rule", choices=["min_cost", "bland", "reverse_bland"],
                        default="min_cost", help="Pivoting rule")
    parser.add_argument("--dps", type=int, default=MPMATH_PRECISION,
                        help="mpmath decimal places")
    parser.add_argument("--tol", type=float, default=1e-6,
                        help="Relative tolerance on optimal values")
    parser.add_argument("--json", help="Save JSON report")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")

    args = parser.parse_args()

    if args.verbose:
        set_log_level("DEBUG")

    rng = np.random.default_rng(args.seed)
    results = []
    for trial in range(args.trials):
        result = run_trial(trial, rng, args.rows, args.cols, args.rule, args.dps, args.tol)
        results.append(result)
        if args.verbose:
            mark = "ok" if result.passed else "FAIL"
            print(f"  [{trial:3d}] {mark}  value={result.reference_value}")

    print_summary(results)

    if args.json:
        with open(args.json, 'w') as f:
            json.dump([asdict(r) for r in results], f, indent=2)
        print(f"\nJSON report saved to: {args.json}")

    sys.exit(0 if all(r.passed for r in results) else 1)


if __name__ == "__main__":
    main()
