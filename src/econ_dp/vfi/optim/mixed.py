"""Outer enumeration for mixed continuous/discrete controls.

Each admissible assignment of the discrete controls fixes a continuous
child problem; the children are solved independently and the best
successful one wins.  Children that are infeasible or do not report
success are dropped; a specification error or a NaN/Inf optimum in any
child aborts the enumeration.
"""

from __future__ import annotations

import itertools
import logging

import numpy as np

from econ_dp.config.vfi_config import VFIOptions
from econ_dp.core.exceptions import (
    DegenerateSolutionError,
    DPSolverError,
    InfeasibleControlError,
    SpecificationError,
)
from econ_dp.core.types import NUMPY_DTYPE
from econ_dp.vfi.optim.base import SolveResult
from econ_dp.vfi.optim.continuous import solve_continuous
from econ_dp.vfi.optim.discrete import admissible_grids
from econ_dp.vfi.subproblem import ContinuousProblem, Embedding, MixedProblem

logger = logging.getLogger(__name__)


def child_problem(problem: MixedProblem, assignment: np.ndarray) -> ContinuousProblem:
    """Continuous problem with the discrete controls set to *assignment*."""
    continuous = list(problem.continuous)
    embedding = Embedding(
        n_controls=problem.params.problem.n_controls,
        free=tuple(problem.continuous),
        fixed=tuple(problem.discrete),
        fixed_values=assignment,
    )
    return ContinuousProblem(
        problem.params,
        problem.lb[continuous],
        problem.ub[continuous],
        embedding,
    )


def solve_mixed(problem: MixedProblem, options: VFIOptions) -> SolveResult:
    """Solve a small MINLP by enumerating the discrete assignments.

    Raises
    ------
    SpecificationError
        If the algorithm cannot handle the continuous block.
    DegenerateSolutionError
        If some child converges to a NaN or infinite objective.
    InfeasibleControlError
        If no child problem yields a successful solution.
    """
    discrete_lb = problem.lb[list(problem.discrete)]
    discrete_ub = problem.ub[list(problem.discrete)]
    grids = admissible_grids(problem.grids, discrete_lb, discrete_ub)

    best = None
    n_children = 0
    n_failed = 0
    for combo in itertools.product(*grids):
        n_children += 1
        assignment = np.fromiter(combo, dtype=NUMPY_DTYPE, count=len(combo))
        child = child_problem(problem, assignment)
        try:
            result = solve_continuous(child, options)
        except (SpecificationError, DegenerateSolutionError):
            raise
        except DPSolverError as exc:
            logger.debug("Child problem %s failed: %s", assignment.tolist(), exc)
            n_failed += 1
            continue
        if not result.success:
            n_failed += 1
            continue
        if best is None or result.value > best.value:
            best = result

    if best is None:
        raise InfeasibleControlError(
            f"All {n_children} discrete assignments failed.",
            {"x": problem.params.x.tolist(), "z": problem.params.z.tolist()},
        )
    if n_failed:
        logger.debug("%d of %d child problems dropped.", n_failed, n_children)
    return SolveResult(best.value, best.control, True)
