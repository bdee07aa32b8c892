r"""Conditional expectations of the value function and their interpolants.

Once per sweep, and for every exogenous state z, the solver forms

.. math::

    EV_z(x) = \sum_{z'} P[z, z'] \, V[z'](x)

on the state grid and wraps it in a multilinear interpolant with flat
extrapolation.  Because multilinear interpolation is linear in the node
values and the expectation is a finite convex combination over a shared
grid, evaluating the interpolant of EV_z at any point equals the
P-weighted average of the interpolants of each V[z'] at that point.
The solver therefore builds NZ interpolants per sweep instead of
interpolating NZ value functions at every optimizer evaluation.  The
identity fails for schemes that are nonlinear in the node values, such
as shape-preserving (PCHIP) interpolation.
"""

from __future__ import annotations

import logging
from typing import List, Sequence

import numpy as np
import tensorflow as tf

from econ_dp.core.exceptions import SpecificationError
from econ_dp.core.types import NUMPY_DTYPE, TENSORFLOW_DTYPE
from econ_dp.vfi.grids.grid_utils import (
    grid_strides,
    interp_nd_batch,
    interp_nd_point,
)
from econ_dp.vfi.kernels.bellman_kernels import compute_ev, compute_ev_row
from econ_dp.vfi.problem import ProblemSpec

logger = logging.getLogger(__name__)


class MultilinearInterpolant:
    """
    Multilinear interpolant of gridded values with flat extrapolation.

    Parameters
    ----------
    marginals : sequence of np.ndarray
        Sorted marginal grids of the tensor grid.
    values : np.ndarray
        Node values, shaped like the grid.  The array is copied, so the
        interpolant stays valid after the caller mutates its buffer.
    """

    def __init__(
        self,
        marginals: Sequence[np.ndarray],
        values: np.ndarray,
    ) -> None:
        self.marginals = tuple(np.asarray(m, dtype=NUMPY_DTYPE) for m in marginals)
        self.values = np.array(values, dtype=NUMPY_DTYPE, copy=True)
        expected = tuple(m.size for m in self.marginals)
        if self.values.shape != expected:
            raise SpecificationError(
                f"Values of shape {self.values.shape} do not match grid "
                f"shape {expected}."
            )
        self._flat = self.values.reshape(-1)
        self._strides = grid_strides(expected)

    @property
    def ndim(self) -> int:
        return len(self.marginals)

    def __call__(self, point: Sequence[float]) -> float:
        """Evaluate at a single point."""
        return interp_nd_point(self.marginals, self._flat, self._strides, point)

    def batch(self, points: np.ndarray) -> np.ndarray:
        """Evaluate at ``(Batch, D)`` points with the XLA kernel."""
        points = np.asarray(points, dtype=NUMPY_DTYPE).reshape(-1, self.ndim)
        result = interp_nd_batch(
            [tf.constant(m, dtype=TENSORFLOW_DTYPE) for m in self.marginals],
            tf.constant(self.values, dtype=TENSORFLOW_DTYPE),
            tf.constant(points, dtype=TENSORFLOW_DTYPE),
        )
        return result.numpy()


class ExpectationOperator:
    """
    Conditional expectations of a value stacking over a Markov chain.

    Parameters
    ----------
    problem : ProblemSpec
        Supplies the state grid and the transition matrix.
    """

    def __init__(self, problem: ProblemSpec) -> None:
        self.marginals = tuple(problem.grid.marginals)
        self.n_exogenous: int = problem.n_exogenous
        self.P: tf.Tensor = tf.constant(
            problem.process.transition, dtype=TENSORFLOW_DTYPE
        )

    def _check_stack(self, v_stack: np.ndarray) -> None:
        if v_stack.shape[0] != self.n_exogenous:
            raise SpecificationError(
                f"Value stacking has {v_stack.shape[0]} exogenous states, "
                f"expected {self.n_exogenous}."
            )

    def expect(self, v_stack: np.ndarray, iz: int) -> np.ndarray:
        """E[V(x, z') | z = z_iz] on the grid.

        Raises
        ------
        SpecificationError
            If *iz* is outside ``[0, NZ)``.
        """
        self._check_stack(v_stack)
        if not 0 <= iz < self.n_exogenous:
            raise SpecificationError(
                f"Invalid exogenous index {iz}; must be in "
                f"[0, {self.n_exogenous})."
            )
        if self.n_exogenous == 1:
            return np.array(v_stack[0], dtype=NUMPY_DTYPE, copy=True)
        ev = compute_ev_row(
            tf.constant(v_stack, dtype=TENSORFLOW_DTYPE), self.P[iz]
        )
        return ev.numpy()

    def expect_all(self, v_stack: np.ndarray) -> np.ndarray:
        """Every conditional expectation, ``(NZ, *grid)``."""
        self._check_stack(v_stack)
        if self.n_exogenous == 1:
            return np.array(v_stack, dtype=NUMPY_DTYPE, copy=True)
        ev = compute_ev(tf.constant(v_stack, dtype=TENSORFLOW_DTYPE), self.P)
        return ev.numpy()

    def interpolate(self, values: np.ndarray) -> MultilinearInterpolant:
        """Multilinear interpolant of any grid-shaped array."""
        return MultilinearInterpolant(self.marginals, values)

    def build(self, v_stack: np.ndarray) -> List[MultilinearInterpolant]:
        """One expectation interpolant per exogenous state.

        Called once per sweep, before any point-solve of that sweep.
        """
        ev_all = self.expect_all(v_stack)
        return [self.interpolate(ev_all[iz]) for iz in range(self.n_exogenous)]
