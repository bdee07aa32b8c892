"""Exhaustive grid search for all-discrete controls."""

from __future__ import annotations

import itertools
import logging
import math
from typing import List, Sequence

import numpy as np

from econ_dp.core.exceptions import DegenerateSolutionError, InfeasibleControlError
from econ_dp.core.types import NUMPY_DTYPE, Array
from econ_dp.vfi.optim.base import SolveResult, check_finite
from econ_dp.vfi.subproblem import DiscreteProblem, is_admissible, q_value

logger = logging.getLogger(__name__)


def admissible_grids(
    grids: Sequence[Array], lb: Array, ub: Array
) -> List[np.ndarray]:
    """Restrict every coordinate grid to its box ``[lb_i, ub_i]``.

    Raises
    ------
    InfeasibleControlError
        If some coordinate has no grid node inside its bounds.
    """
    kept = []
    for i, (grid, lo, hi) in enumerate(zip(grids, lb, ub)):
        inside = np.asarray(grid)[(grid >= lo) & (grid <= hi)]
        if inside.size == 0:
            raise InfeasibleControlError(
                f"No grid node of discrete control {i} lies in "
                f"[{lo:.6g}, {hi:.6g}]."
            )
        kept.append(inside)
    return kept


def solve_discrete(problem: DiscreteProblem) -> SolveResult:
    """Return the exact argmax of Q over the Cartesian product of grids.

    Points violating ``g <= 0`` are skipped.  Ties keep the first point in
    lexicographic grid order.

    Raises
    ------
    InfeasibleControlError
        If no admissible grid point exists.
    DegenerateSolutionError
        If Q evaluates to NaN at some admissible point, or the best
        admissible value is infinite.
    """
    params = problem.params
    grids = admissible_grids(problem.grids, problem.lb, problem.ub)

    best_value = -math.inf
    best_control = None
    for combo in itertools.product(*grids):
        c = np.fromiter(combo, dtype=NUMPY_DTYPE, count=len(combo))
        if not is_admissible(params, c):
            continue
        value = q_value(params, c)
        if math.isnan(value):
            raise DegenerateSolutionError(
                "Q evaluated to NaN on the control grid.",
                {"x": params.x.tolist(), "z": params.z.tolist(),
                 "control": c.tolist()},
            )
        if best_control is None or value > best_value:
            best_value = value
            best_control = c

    if best_control is None:
        raise InfeasibleControlError(
            "No grid point satisfies g(x, z, c) <= 0.",
            {"x": params.x.tolist(), "z": params.z.tolist()},
        )
    check_finite(
        best_value, "Grid search",
        x=params.x.tolist(), z=params.z.tolist(), control=best_control.tolist(),
    )
    return SolveResult(float(best_value), best_control, True)
