r"""Infinite-horizon dynamic-programming problem definition.

A :class:`ProblemSpec` describes the Bellman equation

.. math::

    v(x, z) = \max_{c} \; u(x, z, c) + \beta \, E[v(x', z') \mid z]

    \text{s.t.} \quad x' = f(x, z, c), \quad
    lb(x, z) \le c \le ub(x, z), \quad g(x, z, c) \le 0

with x on a tensor grid, z a finite-state Markov chain and c a vector of
continuous and/or discrete controls.  Equality constraints are not
supported: substitute them out with auxiliary controls.

All user functions take ``(x, z, c)`` as 1-D NumPy arrays.  In a
deterministic model z is an empty array; user functions must accept it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional, Tuple

import numpy as np

from econ_dp.core.exceptions import SpecificationError
from econ_dp.core.types import (
    NUMPY_DTYPE,
    Array,
    BoundFunction,
    ModelFunction,
)
from econ_dp.vfi.grids.markov_chain import MarkovChain
from econ_dp.vfi.protocols import ExogenousProcess, GridDomain

logger = logging.getLogger(__name__)

SHAPE_CONTINUOUS = "continuous"
SHAPE_DISCRETE = "discrete"
SHAPE_MIXED = "mixed"


def as_vector(value, name: str) -> np.ndarray:
    """Coerce a scalar or sequence returned by a user function to 1-D."""
    arr = np.atleast_1d(np.asarray(value, dtype=NUMPY_DTYPE))
    if arr.ndim != 1:
        raise SpecificationError(
            f"{name} must return a scalar or a 1-D vector, "
            f"got shape {arr.shape}."
        )
    return arr


@dataclass(frozen=True)
class ControlSpec:
    """
    Continuity flags, bounds and discrete grids of the control vector.

    Attributes:
        continuous: One flag per control; False marks a discrete control.
        lower: ``lower(x, z)`` -> lower bounds of all controls.
        upper: ``upper(x, z)`` -> upper bounds of all controls.
        grids: Per-control coordinate grid; required (and fixed, i.e. not
            state-dependent) for every discrete control, ignored for
            continuous ones.  May be omitted when all controls are
            continuous.
    """

    continuous: Tuple[bool, ...]
    lower: BoundFunction
    upper: BoundFunction
    grids: Tuple[Optional[Array], ...] = ()

    def __post_init__(self) -> None:
        flags = tuple(bool(f) for f in self.continuous)
        if not flags:
            raise SpecificationError("At least one control is required.")
        object.__setattr__(self, "continuous", flags)

        grids = tuple(self.grids)
        if grids and len(grids) != len(flags):
            raise SpecificationError(
                f"grids must have one entry per control ({len(flags)}), "
                f"got {len(grids)}."
            )
        if not grids:
            grids = (None,) * len(flags)

        checked = []
        for ic, (is_cont, grid) in enumerate(zip(flags, grids)):
            if is_cont:
                checked.append(None)
                continue
            if grid is None:
                raise SpecificationError(
                    f"Discrete control {ic} has no coordinate grid."
                )
            arr = np.asarray(grid, dtype=NUMPY_DTYPE)
            if arr.ndim != 1 or arr.size == 0:
                raise SpecificationError(
                    f"Grid of discrete control {ic} must be a non-empty "
                    f"1-D array, got shape {arr.shape}."
                )
            if not np.all(np.isfinite(arr)):
                raise SpecificationError(
                    f"Grid of discrete control {ic} has non-finite values."
                )
            arr = np.unique(arr)
            arr.setflags(write=False)
            checked.append(arr)
        object.__setattr__(self, "grids", tuple(checked))

    @property
    def n_controls(self) -> int:
        return len(self.continuous)

    @property
    def shape(self) -> str:
        """``"continuous"``, ``"discrete"`` or ``"mixed"``."""
        if all(self.continuous):
            return SHAPE_CONTINUOUS
        if not any(self.continuous):
            return SHAPE_DISCRETE
        return SHAPE_MIXED

    @property
    def continuous_indices(self) -> Tuple[int, ...]:
        return tuple(i for i, f in enumerate(self.continuous) if f)

    @property
    def discrete_indices(self) -> Tuple[int, ...]:
        return tuple(i for i, f in enumerate(self.continuous) if not f)

    def bounds(self, x: Array, z: Array) -> Tuple[np.ndarray, np.ndarray]:
        """Raw ``(lb, ub)`` at a state; see ``subproblem.validate_bounds``."""
        lb = as_vector(self.lower(x, z), "lower bound function")
        ub = as_vector(self.upper(x, z), "upper bound function")
        return lb, ub


@dataclass(frozen=True)
class ProblemSpec:
    """
    Immutable infinite-horizon, time-homogeneous Bellman problem.

    Attributes:
        grid: Tensor grid of the endogenous states x (Dx dimensions).
        controls: Control specification (Dc controls).
        payoff: ``u(x, z, c)`` -> flow payoff (scalar).
        transition: ``f(x, z, c)`` -> next endogenous state (Dx vector).
        beta: Discount factor, >= 0.
        constraint: ``g(x, z, c)`` -> Dg inequality constraints ``<= 0``;
            ``None`` means Dg = 0.
        statistics: ``s(x, z, c)`` -> Ds ex-post statistics; ``None``
            means Ds = 0.
        process: Markov chain of the exogenous states; ``None`` means a
            deterministic model (NZ = 1, Dz = 0).

    The output dimensions Dg and Ds are probed once at construction by
    evaluating g and s at the first grid node, the first exogenous state
    and the midpoint of the control bounds there.

    Raises
    ------
    SpecificationError
        If beta is negative, or a model function returns a vector of the
        wrong length.
    """

    grid: GridDomain
    controls: ControlSpec
    payoff: ModelFunction
    transition: ModelFunction
    beta: float
    constraint: Optional[ModelFunction] = None
    statistics: Optional[ModelFunction] = None
    process: Optional[ExogenousProcess] = None

    n_constraints: int = field(init=False, default=0)
    n_statistics: int = field(init=False, default=0)

    def __post_init__(self) -> None:
        if self.process is None:
            object.__setattr__(self, "process", MarkovChain.deterministic())
        if not self.beta >= 0.0:
            raise SpecificationError(
                f"Discount factor must be >= 0, got {self.beta}."
            )
        if self.beta > 1.0:
            logger.warning(
                "Discount factor beta=%.4f > 1; the Bellman operator is not "
                "a contraction and iteration may diverge.",
                self.beta,
            )
        self._probe_dimensions()

    def _probe_dimensions(self) -> None:
        """Evaluate f, g and s once to learn and check output lengths."""
        x0 = self.grid[(0,) * self.grid.ndim]
        z0 = self.process.states[0]
        lb, ub = self.controls.bounds(x0, z0)
        if lb.size != self.n_controls or ub.size != self.n_controls:
            raise SpecificationError(
                f"Bound functions must return {self.n_controls} values, "
                f"got {lb.size} and {ub.size}."
            )
        c0 = 0.5 * (lb + ub)

        xp = self.next_state(x0, z0, c0)
        if xp.size != self.n_states:
            raise SpecificationError(
                f"transition must return {self.n_states} values, "
                f"got {xp.size}."
            )
        object.__setattr__(
            self, "n_constraints", self.constraint_values(x0, z0, c0).size
        )
        object.__setattr__(
            self, "n_statistics", self.statistic_values(x0, z0, c0).size
        )

    # ------------------------------------------------------------------
    # Dimensions
    # ------------------------------------------------------------------

    @property
    def n_states(self) -> int:
        """Dx, number of endogenous states."""
        return self.grid.ndim

    @property
    def n_shocks(self) -> int:
        """Dz, dimension of the exogenous state vector."""
        return self.process.states.shape[1]

    @property
    def n_exogenous(self) -> int:
        """NZ, number of Markov states (1 when deterministic)."""
        return self.process.n_states

    @property
    def n_controls(self) -> int:
        """Dc, number of controls."""
        return self.controls.n_controls

    @property
    def shape(self) -> str:
        return self.controls.shape

    # ------------------------------------------------------------------
    # Model primitives
    # ------------------------------------------------------------------

    def flow_payoff(self, x: Array, z: Array, c: Array) -> float:
        return float(self.payoff(x, z, c))

    def next_state(self, x: Array, z: Array, c: Array) -> np.ndarray:
        return as_vector(self.transition(x, z, c), "transition")

    def constraint_values(self, x: Array, z: Array, c: Array) -> np.ndarray:
        if self.constraint is None:
            return np.empty(0, dtype=NUMPY_DTYPE)
        res = np.asarray(self.constraint(x, z, c), dtype=NUMPY_DTYPE)
        return res.reshape(-1)

    def statistic_values(self, x: Array, z: Array, c: Array) -> np.ndarray:
        if self.statistics is None:
            return np.empty(0, dtype=NUMPY_DTYPE)
        res = np.asarray(self.statistics(x, z, c), dtype=NUMPY_DTYPE)
        return res.reshape(-1)

    def summary(self) -> str:
        """Short multi-line description of the problem."""
        shape = self.grid.shape
        return "\n".join([
            "Infinite-horizon Dynamic Programming "
            f"(#x = {self.n_states}, #z = {self.n_shocks}, "
            f"#c = {self.n_controls})",
            f"- control type  : {self.shape}",
            f"- size(x nodes) : {shape}, total = {int(np.prod(shape))}",
            f"- size(z states): {self.n_exogenous}",
            f"- #constraints  : {self.n_constraints}",
            f"- #statistics   : {self.n_statistics}",
            f"- discounting   : {self.beta}",
        ])

