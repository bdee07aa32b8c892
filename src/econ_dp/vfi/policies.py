"""Point updates of the Bellman operator.

Two ways to produce the sweep-t results at one (x, z_iz) node:

* :func:`solve_point` re-solves the Q maximization (policy improvement);
* :func:`replay_point` keeps the stored control and only recomputes the
  value, next state and statistics (policy evaluation).

Both return a :class:`PointOutcome` and never touch shared arrays.
"""

from __future__ import annotations

from typing import NamedTuple

import numpy as np

from econ_dp.config.vfi_config import VFIOptions
from econ_dp.core.types import NUMPY_DTYPE, Array
from econ_dp.vfi.optim.base import check_finite
from econ_dp.vfi.optim.dispatch import solve
from econ_dp.vfi.problem import ProblemSpec
from econ_dp.vfi.protocols import Interpolant
from econ_dp.vfi.subproblem import QParams, build_subproblem, q_value


class PointOutcome(NamedTuple):
    """Results of one point update."""

    value: float
    next_state: np.ndarray
    control: np.ndarray
    statistics: np.ndarray
    success: bool


def _outcome(
    problem: ProblemSpec,
    x: np.ndarray,
    z: np.ndarray,
    c: np.ndarray,
    value: float,
    success: bool,
) -> PointOutcome:
    return PointOutcome(
        value=value,
        next_state=problem.next_state(x, z, c),
        control=c,
        statistics=problem.statistic_values(x, z, c),
        success=success,
    )


def solve_point(
    problem: ProblemSpec,
    x: Array,
    z: Array,
    ev: Interpolant,
    options: VFIOptions,
) -> PointOutcome:
    """Maximize Q at (x, z) with the algorithm selected in *options*."""
    x = np.asarray(x, dtype=NUMPY_DTYPE)
    z = np.asarray(z, dtype=NUMPY_DTYPE)
    subproblem = build_subproblem(problem, x, z, ev, options.continuation)
    result = solve(subproblem, options)
    return _outcome(problem, x, z, result.control, result.value, result.success)


def replay_point(
    problem: ProblemSpec,
    x: Array,
    z: Array,
    c: Array,
    ev: Interpolant,
    continuation: str = "next_state",
) -> PointOutcome:
    """Evaluate the fixed control *c* at (x, z).

    Raises
    ------
    DegenerateSolutionError
        If the replayed value is NaN or infinite.
    """
    x = np.asarray(x, dtype=NUMPY_DTYPE)
    z = np.asarray(z, dtype=NUMPY_DTYPE)
    c = np.asarray(c, dtype=NUMPY_DTYPE).reshape(-1)
    value = q_value(QParams(problem, x, z, ev, continuation), c)
    check_finite(value, "Policy replay", x=x.tolist(), control=c.tolist())
    return _outcome(problem, x, z, c, value, True)
