"""Per-point Q-function maximization problems.

At one (state x, exogenous state z) pair the solver maximizes

    Q(c) = u(x, z, c) + beta * EV_z(y)    s.t.  lb <= c <= ub,  g(x, z, c) <= 0

where ``y = f(x, z, c)`` (``continuation="next_state"``) or ``y = x``
(``continuation="current_state"``).

Everything a point-solve needs is carried by plain frozen value objects:
:class:`QParams` bundles (x, z, the expectation interpolant, the model),
and one of three problem variants classifies the control vector:

* :class:`ContinuousProblem` : all (free) controls continuous;
* :class:`DiscreteProblem` : all controls on fixed grids;
* :class:`MixedProblem` : some of each (a small MINLP).

The objective and constraint are pure functions of a problem and a
control vector, so each subproblem can be built and evaluated in
isolation.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple, Union

import numpy as np

from econ_dp.core.exceptions import SpecificationError
from econ_dp.core.types import NUMPY_DTYPE, Array
from econ_dp.vfi.problem import (
    SHAPE_CONTINUOUS,
    SHAPE_DISCRETE,
    ProblemSpec,
)
from econ_dp.vfi.protocols import Interpolant


@dataclass(frozen=True)
class QParams:
    """Parameter bundle of the Q-function at one (x, z) pair."""

    problem: ProblemSpec
    x: Array
    z: Array
    ev: Interpolant
    continuation: str = "next_state"


def q_value(params: QParams, c: Array) -> float:
    """Flow payoff plus discounted expected continuation value."""
    problem = params.problem
    u = problem.flow_payoff(params.x, params.z, c)
    if params.continuation == "next_state":
        at = problem.next_state(params.x, params.z, c)
    else:
        at = params.x
    return u + problem.beta * params.ev(at)


def constraint_value(params: QParams, c: Array) -> np.ndarray:
    """``g(x, z, c)``; admissible when every entry is ``<= 0``."""
    return params.problem.constraint_values(params.x, params.z, c)


def is_admissible(params: QParams, c: Array, tol: float = 0.0) -> bool:
    g = constraint_value(params, c)
    return g.size == 0 or bool(np.max(g) <= tol)


@dataclass(frozen=True)
class Embedding:
    """Map from the free coordinates of a child problem to a full control.

    Attributes:
        n_controls: Length of the full control vector.
        free: Positions of the free (optimized) coordinates.
        fixed: Positions of the pinned coordinates.
        fixed_values: Values of the pinned coordinates, aligned with
            ``fixed``.
    """

    n_controls: int
    free: Tuple[int, ...]
    fixed: Tuple[int, ...]
    fixed_values: Array

    def expand(self, c_free: Array) -> np.ndarray:
        full = np.empty(self.n_controls, dtype=NUMPY_DTYPE)
        full[list(self.free)] = c_free
        if self.fixed:
            full[list(self.fixed)] = self.fixed_values
        return full


@dataclass(frozen=True)
class ContinuousProblem:
    """All-continuous Q maximization over the free coordinates.

    ``lb``/``ub`` refer to the free coordinates only.  Without an
    embedding the free coordinates are the full control vector.
    """

    params: QParams
    lb: Array
    ub: Array
    embedding: Optional[Embedding] = None

    @property
    def n_free(self) -> int:
        return int(self.lb.size)

    def full(self, c: Array) -> np.ndarray:
        c = np.asarray(c, dtype=NUMPY_DTYPE).reshape(-1)
        if self.embedding is None:
            return c
        return self.embedding.expand(c)

    def pin(self, mask: np.ndarray, values: Array) -> "ContinuousProblem":
        """Child problem with the free coordinates under *mask* fixed."""
        n_controls = self.params.problem.n_controls
        if self.embedding is None:
            free = tuple(range(n_controls))
            fixed: Tuple[int, ...] = ()
            fixed_values = np.empty(0, dtype=NUMPY_DTYPE)
        else:
            free = self.embedding.free
            fixed = self.embedding.fixed
            fixed_values = np.asarray(self.embedding.fixed_values)
        keep = ~mask
        embedding = Embedding(
            n_controls=n_controls,
            free=tuple(f for f, k in zip(free, keep) if k),
            fixed=fixed + tuple(f for f, k in zip(free, keep) if not k),
            fixed_values=np.concatenate([fixed_values, np.asarray(values)[mask]]),
        )
        return ContinuousProblem(
            self.params, self.lb[keep], self.ub[keep], embedding
        )


@dataclass(frozen=True)
class DiscreteProblem:
    """All-discrete Q maximization by exhaustive search over ``grids``."""

    params: QParams
    lb: Array
    ub: Array
    grids: Tuple[Array, ...]


@dataclass(frozen=True)
class MixedProblem:
    """Mixed continuous/discrete Q maximization (MINLP).

    ``grids`` are the coordinate grids of the controls listed in
    ``discrete``, in the same order.
    """

    params: QParams
    lb: Array
    ub: Array
    continuous: Tuple[int, ...]
    discrete: Tuple[int, ...]
    grids: Tuple[Array, ...]


Subproblem = Union[ContinuousProblem, DiscreteProblem, MixedProblem]


def negated_objective(problem: ContinuousProblem, c: Array) -> float:
    """``-Q`` at the free coordinates *c* (solvers minimize)."""
    return -q_value(problem.params, problem.full(c))


def child_constraints(problem: ContinuousProblem, c: Array) -> np.ndarray:
    """``g`` at the free coordinates *c*, fixed coordinates substituted."""
    return constraint_value(problem.params, problem.full(c))


def validate_bounds(
    lb: np.ndarray,
    ub: np.ndarray,
    n_controls: int,
    x: Array,
    z: Array,
) -> None:
    """Check that control bounds are finite, ordered and of full length.

    Raises
    ------
    SpecificationError
        On any violation; this is a model-specification error.
    """
    context = {"x": np.asarray(x).tolist(), "z": np.asarray(z).tolist(),
               "lb": lb.tolist(), "ub": ub.tolist()}
    if lb.size != n_controls or ub.size != n_controls:
        raise SpecificationError(
            f"Control bounds must have {n_controls} entries.", context
        )
    if not (np.all(np.isfinite(lb)) and np.all(np.isfinite(ub))):
        raise SpecificationError("Control bounds must be finite.", context)
    if np.any(lb > ub):
        raise SpecificationError(
            "Lower control bound exceeds upper bound.", context
        )


def build_subproblem(
    problem: ProblemSpec,
    x: Array,
    z: Array,
    ev: Interpolant,
    continuation: str = "next_state",
) -> Subproblem:
    """Assemble the Q maximization at (x, z) and classify its shape.

    Parameters
    ----------
    problem : ProblemSpec
        The model.
    x, z : np.ndarray
        Endogenous state point and exogenous state vector.
    ev : Interpolant
        Expectation interpolant E[V(., z') | z] of the current sweep.
    continuation : str
        Where the continuation value is evaluated (see module docs).

    Returns
    -------
    ContinuousProblem, DiscreteProblem or MixedProblem

    Raises
    ------
    SpecificationError
        If the bounds at (x, z) are not finite or not ordered.
    """
    x = np.asarray(x, dtype=NUMPY_DTYPE)
    z = np.asarray(z, dtype=NUMPY_DTYPE)
    lb, ub = problem.controls.bounds(x, z)
    validate_bounds(lb, ub, problem.n_controls, x, z)

    params = QParams(problem, x, z, ev, continuation)
    controls = problem.controls
    shape = controls.shape
    if shape == SHAPE_CONTINUOUS:
        return ContinuousProblem(params, lb, ub)
    if shape == SHAPE_DISCRETE:
        return DiscreteProblem(params, lb, ub, tuple(controls.grids))
    return MixedProblem(
        params,
        lb,
        ub,
        controls.continuous_indices,
        controls.discrete_indices,
        tuple(controls.grids[i] for i in controls.discrete_indices),
    )
