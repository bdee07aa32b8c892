"""Bellman-iteration XLA kernels: expectations and sweep-error norms.

Contains three small XLA kernels:
- ``compute_ev``: conditional expectations E[V(x, z') | z] for every z
- ``compute_ev_row``: the same for a single conditioning state
- ``sweep_error``: max over z of an L^p distance between two stackings

Value stackings have shape ``(NZ, *grid)``; the transition matrix has
shape ``(NZ, NZ)`` with rows indexed by the conditioning state.
"""

from __future__ import annotations

import math

import tensorflow as tf

from econ_dp.core.types import TENSORFLOW_DTYPE

ACCUM_DTYPE: tf.DType = TENSORFLOW_DTYPE


def compute_ev_core(v_stack: tf.Tensor, P: tf.Tensor) -> tf.Tensor:
    """Compute every conditional expectation (undecorated).

    Returns ``EV[iz] = sum_j P[iz, j] * V[j]`` elementwise over the grid.

    Parameters
    ----------
    v_stack : tf.Tensor
        Value stacking, ``(NZ, *grid)``.
    P : tf.Tensor
        Markov transition matrix, ``(NZ, NZ)``.

    Returns
    -------
    tf.Tensor
        Expected values, same shape as *v_stack*.
    """
    v_stack = tf.cast(v_stack, ACCUM_DTYPE)
    P = tf.cast(P, ACCUM_DTYPE)
    return tf.tensordot(P, v_stack, axes=[[1], [0]])


@tf.function(jit_compile=True)
def compute_ev(v_stack: tf.Tensor, P: tf.Tensor) -> tf.Tensor:
    """Compute every conditional expectation (XLA-compiled).

    See :func:`compute_ev_core` for parameter documentation.
    """
    return compute_ev_core(v_stack, P)


def compute_ev_row_core(v_stack: tf.Tensor, p_row: tf.Tensor) -> tf.Tensor:
    """Expectation conditional on one state (undecorated).

    Parameters
    ----------
    v_stack : tf.Tensor
        Value stacking, ``(NZ, *grid)``.
    p_row : tf.Tensor
        Row of the transition matrix, ``(NZ,)``.

    Returns
    -------
    tf.Tensor
        ``(*grid)`` expected value.
    """
    v_stack = tf.cast(v_stack, ACCUM_DTYPE)
    p_row = tf.cast(p_row, ACCUM_DTYPE)
    return tf.tensordot(p_row, v_stack, axes=[[0], [0]])


@tf.function(jit_compile=True)
def compute_ev_row(v_stack: tf.Tensor, p_row: tf.Tensor) -> tf.Tensor:
    """Expectation conditional on one state (XLA-compiled).

    See :func:`compute_ev_row_core` for parameter documentation.
    """
    return compute_ev_row_core(v_stack, p_row)


def sweep_error_core(
    v_new: tf.Tensor,
    v_old: tf.Tensor,
    pnorm: float = math.inf,
) -> tf.Tensor:
    """Compute ``max_z ‖V_new[z] − V_old[z]‖_p`` (undecorated).

    Parameters
    ----------
    v_new, v_old : tf.Tensor
        Value stackings, ``(NZ, *grid)``.
    pnorm : float
        Norm order, ``>= 1`` or ``math.inf``.

    Returns
    -------
    tf.Tensor
        Scalar sweep error.
    """
    diff = tf.abs(tf.cast(v_new, ACCUM_DTYPE) - tf.cast(v_old, ACCUM_DTYPE))
    diff = tf.reshape(diff, [tf.shape(diff)[0], -1])
    if math.isinf(pnorm):
        per_state = tf.reduce_max(diff, axis=1)
    else:
        per_state = tf.pow(tf.reduce_sum(tf.pow(diff, pnorm), axis=1), 1.0 / pnorm)
    return tf.reduce_max(per_state)


@tf.function(jit_compile=True)
def sweep_error(
    v_new: tf.Tensor,
    v_old: tf.Tensor,
    pnorm: float = math.inf,
) -> tf.Tensor:
    """Compute ``max_z ‖V_new[z] − V_old[z]‖_p`` (XLA-compiled).

    See :func:`sweep_error_core` for parameter documentation.
    """
    return sweep_error_core(v_new, v_old, pnorm)
