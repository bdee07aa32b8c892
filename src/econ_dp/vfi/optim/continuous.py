"""Solvers for all-continuous Q maximization problems.

Every control is box-constrained; unconstrained methods are excluded.

=========================  ==========  ==============  =====================
algorithm                  dims        honours g       start point
=========================  ==========  ==============  =====================
``bounded`` (Brent)        1           no              none
``golden``                 1           no              none
``differential_evolution`` any         no              none (population)
``alterdirect``            any         no              box midpoint
``cobyla``                 any         yes             5% in from lb
=========================  ==========  ==============  =====================

All solvers minimize ``-Q`` and flip the sign of the optimum back.
"""

from __future__ import annotations

import logging

import numpy as np
from scipy import optimize

from econ_dp.config.vfi_config import SCALAR_ALGORITHMS, VFIOptions
from econ_dp.core.exceptions import SpecificationError
from econ_dp.core.types import NUMPY_DTYPE
from econ_dp.vfi.optim.base import SolveResult, check_finite
from econ_dp.vfi.optim.line_search import alterdirect, golden_section
from econ_dp.vfi.subproblem import (
    ContinuousProblem,
    child_constraints,
    negated_objective,
)

logger = logging.getLogger(__name__)

# Relative position of the COBYLA start point inside the box.
COBYLA_START_FRACTION = 0.05


def solve_continuous(
    problem: ContinuousProblem, options: VFIOptions
) -> SolveResult:
    """Maximize Q over the free continuous coordinates of *problem*.

    Coordinates whose bounds coincide are pinned before the search.

    Raises
    ------
    SpecificationError
        If a scalar algorithm is asked to handle several controls.
    DegenerateSolutionError
        If the optimum is NaN or infinite.
    """
    algorithm = options.algorithm
    if algorithm in SCALAR_ALGORITHMS and problem.n_free != 1:
        raise SpecificationError(
            f"Algorithm '{algorithm}' handles exactly one continuous "
            f"control, got {problem.n_free}."
        )

    pinned = problem.lb == problem.ub
    if np.all(pinned):
        c = problem.full(problem.lb)
        value = -negated_objective(problem, problem.lb)
        check_finite(value, "Point evaluation", x=problem.params.x.tolist())
        return SolveResult(value, c, True)
    if np.any(pinned):
        problem = problem.pin(pinned, problem.lb)

    if algorithm == "bounded":
        result = _solve_bounded(problem, options)
    elif algorithm == "golden":
        result = _solve_golden(problem, options)
    elif algorithm == "differential_evolution":
        result = _solve_differential_evolution(problem, options)
    elif algorithm == "alterdirect":
        result = _solve_alterdirect(problem, options)
    elif algorithm == "cobyla":
        result = _solve_cobyla(problem, options)
    else:
        raise SpecificationError(f"Unknown algorithm '{algorithm}'.")

    check_finite(
        result.value,
        f"Optimizer '{algorithm}'",
        x=problem.params.x.tolist(),
        z=problem.params.z.tolist(),
        control=result.control.tolist(),
    )
    return result


# ----------------------------------------------------------------------
# 1-D searches
# ----------------------------------------------------------------------

def _solve_bounded(problem: ContinuousProblem, options: VFIOptions) -> SolveResult:
    """Brent's bounded scalar search; tolerance is on the argument only."""
    lo, hi = float(problem.lb[0]), float(problem.ub[0])
    res = optimize.minimize_scalar(
        lambda t: negated_objective(problem, np.array([t], dtype=NUMPY_DTYPE)),
        bounds=(lo, hi),
        method="bounded",
        options={"xatol": options.bounded_xatol,
                 "maxiter": options.bounded_maxiter},
    )
    c = np.array([min(max(float(res.x), lo), hi)], dtype=NUMPY_DTYPE)
    return SolveResult(
        -negated_objective(problem, c), problem.full(c), bool(res.success)
    )


def _solve_golden(problem: ContinuousProblem, options: VFIOptions) -> SolveResult:
    """Golden-section search; always reports success."""
    t_min, f_min = golden_section(
        lambda t: negated_objective(problem, np.array([t], dtype=NUMPY_DTYPE)),
        float(problem.lb[0]),
        float(problem.ub[0]),
        tol=options.golden_tol,
    )
    c = np.array([t_min], dtype=NUMPY_DTYPE)
    return SolveResult(-f_min, problem.full(c), True)


# ----------------------------------------------------------------------
# N-D box searches
# ----------------------------------------------------------------------

def _solve_differential_evolution(
    problem: ContinuousProblem, options: VFIOptions
) -> SolveResult:
    """Population search; its convergence flag is not reliable, so the
    result is taken as best effort and always reported successful."""
    res = optimize.differential_evolution(
        lambda c: negated_objective(problem, c),
        bounds=list(zip(problem.lb, problem.ub)),
        tol=options.de_tol,
        maxiter=options.de_maxiter,
        popsize=options.de_popsize,
        seed=options.de_seed,
        polish=False,
    )
    c = np.clip(np.asarray(res.x, dtype=NUMPY_DTYPE), problem.lb, problem.ub)
    return SolveResult(-negated_objective(problem, c), problem.full(c), True)


def _solve_alterdirect(
    problem: ContinuousProblem, options: VFIOptions
) -> SolveResult:
    """Alternating coordinate search started at the box midpoint."""
    x0 = 0.5 * (problem.lb + problem.ub)
    c, f_min, converged = alterdirect(
        lambda c: negated_objective(problem, c),
        x0,
        problem.lb,
        problem.ub,
        tol=options.alterdirect_tol,
        maxiter=options.alterdirect_maxiter,
    )
    return SolveResult(-f_min, problem.full(c), bool(converged))


# ----------------------------------------------------------------------
# Constrained direct search
# ----------------------------------------------------------------------

def _solve_cobyla(problem: ContinuousProblem, options: VFIOptions) -> SolveResult:
    """COBYLA on the unit box, the only family honouring g <= 0.

    The search runs in coordinates ``u`` with ``c = lb + u * (ub - lb)``
    so that ``cobyla_rhobeg`` and ``cobyla_tol`` are relative to the box
    width.  Iterates are clipped into the box before every evaluation.
    Success requires convergence and admissibility of the final point.
    """
    lb, ub = problem.lb, problem.ub
    width = ub - lb
    n_free = problem.n_free

    def to_control(u: np.ndarray) -> np.ndarray:
        return lb + np.clip(u, 0.0, 1.0) * width

    constraints = []
    if problem.params.problem.n_constraints > 0:
        constraints.append({
            "type": "ineq",
            "fun": lambda u: -child_constraints(problem, to_control(u)),
        })

    u0 = np.full(n_free, COBYLA_START_FRACTION, dtype=NUMPY_DTYPE)
    res = optimize.minimize(
        lambda u: negated_objective(problem, to_control(u)),
        u0,
        method="COBYLA",
        bounds=[(0.0, 1.0)] * n_free,
        constraints=constraints,
        tol=options.cobyla_tol,
        options={
            "rhobeg": options.cobyla_rhobeg,
            "maxiter": options.cobyla_maxiter,
            "catol": options.cobyla_catol,
        },
    )
    c = to_control(np.asarray(res.x, dtype=NUMPY_DTYPE))
    g = child_constraints(problem, c)
    admissible = g.size == 0 or bool(np.max(g) <= options.cobyla_catol)
    return SolveResult(
        -negated_objective(problem, c),
        problem.full(c),
        bool(res.success) and admissible,
    )
