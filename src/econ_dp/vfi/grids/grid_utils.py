# econ_dp/vfi/grids/grid_utils.py
"""
Grid utility functions for VFI solvers.

Contains:
    * ``interp_nd_batch`` / ``_interp_nd_batch_core`` – N-D multilinear (XLA)
    * ``interp_nd_point``                             – N-D multilinear (NumPy)
    * ``tauchen_discretization``                      – AR(1) -> Markov chain

Both interpolation routines implement the same tensor-product-linear
rule with flat extrapolation: queries are clamped to the grid box before
the bracketing cell is located.  The TensorFlow kernel serves batched
queries (whole grids of points at once); the NumPy routine serves the
single-point queries issued from inside scalar optimizer loops, where
per-call TensorFlow dispatch would dominate the cost.

Multilinear interpolation is linear in the node values, which is what
lets the solver interpolate E[V] once instead of interpolating every
V[z'] and averaging.  Nothing here may be swapped for a scheme that is
nonlinear in the node values without giving that up.
"""

import itertools
import logging
from typing import Sequence, Tuple

import numpy as np
import tensorflow as tf
import tensorflow_probability as tfp

from econ_dp.core.types import NUMPY_DTYPE, TENSORFLOW_DTYPE

ACCUM_DTYPE = TENSORFLOW_DTYPE
tfd = tfp.distributions

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════════════
#  XLA-compiled N-D Multilinear Interpolation
# ═══════════════════════════════════════════════════════════════════════════

def _interp_nd_batch_core(
    grids: Sequence[tf.Tensor],
    values: tf.Tensor,
    queries: tf.Tensor,
) -> tf.Tensor:
    """
    Core multilinear interpolation on a tensor grid (undecorated).

    Called from inside other ``@tf.function(jit_compile=True)`` methods
    so XLA can fuse the computation without nested-compilation overhead.
    The loop over the ``2**D`` cell corners is unrolled at trace time.

    Args:
        grids: D sorted marginal grids, the d-th of shape (N_d,), N_d >= 2.
        values: (N_1, ..., N_D) values on the tensor grid.
        queries: (Batch, D) query points.

    Returns:
        (Batch,) interpolated values.
    """
    n_dims = len(grids)
    values = tf.cast(values, ACCUM_DTYPE)
    queries = tf.cast(queries, ACCUM_DTYPE)
    values_flat = tf.reshape(values, [-1])

    sizes = [int(g.shape[0]) for g in grids]
    strides = [1] * n_dims
    for d in range(n_dims - 2, -1, -1):
        strides[d] = strides[d + 1] * sizes[d + 1]

    eps = tf.constant(1e-12, dtype=ACCUM_DTYPE)
    lo_idx = []
    weights = []
    for d in range(n_dims):
        g = tf.cast(grids[d], ACCUM_DTYPE)
        # Flat extrapolation: clamp queries to the grid bounds
        q = tf.clip_by_value(queries[:, d], g[0], g[-1])
        idx = tf.searchsorted(g, q, side='right') - 1
        idx = tf.clip_by_value(idx, 0, sizes[d] - 2)
        idx = tf.cast(idx, tf.int32)
        g_lo = tf.gather(g, idx)
        g_hi = tf.gather(g, idx + 1)
        w = (q - g_lo) / tf.maximum(g_hi - g_lo, eps)
        lo_idx.append(idx)
        weights.append(tf.clip_by_value(w, 0.0, 1.0))

    result = tf.zeros_like(queries[:, 0])
    for corner in itertools.product((0, 1), repeat=n_dims):
        flat = tf.zeros_like(lo_idx[0])
        corner_weight = tf.ones_like(weights[0])
        for d, bit in enumerate(corner):
            flat = flat + (lo_idx[d] + bit) * strides[d]
            corner_weight = corner_weight * (
                weights[d] if bit else 1.0 - weights[d]
            )
        result = result + corner_weight * tf.gather(values_flat, flat)
    return result


@tf.function(jit_compile=True)
def interp_nd_batch(
    grids: Sequence[tf.Tensor],
    values: tf.Tensor,
    queries: tf.Tensor,
) -> tf.Tensor:
    """
    XLA-compiled multilinear interpolation for batched queries.

    Standalone wrapper for use outside other ``@tf.function`` scopes.
    Inside an XLA-compiled method, call ``_interp_nd_batch_core`` directly.

    Args:
        grids: D sorted marginal grids.
        values: (N_1, ..., N_D) values on the tensor grid.
        queries: (Batch, D) query points.

    Returns:
        (Batch,) interpolated values.
    """
    return _interp_nd_batch_core(grids, values, queries)


# ═══════════════════════════════════════════════════════════════════════════
#  NumPy single-point Multilinear Interpolation
# ═══════════════════════════════════════════════════════════════════════════

def grid_strides(shape: Tuple[int, ...]) -> np.ndarray:
    """Return C-order strides (in elements) of an array of ``shape``."""
    strides = np.ones(len(shape), dtype=np.int64)
    for d in range(len(shape) - 2, -1, -1):
        strides[d] = strides[d + 1] * shape[d + 1]
    return strides


def interp_nd_point(
    grids: Sequence[np.ndarray],
    values_flat: np.ndarray,
    strides: np.ndarray,
    point: np.ndarray,
) -> float:
    """
    Multilinear interpolation at a single point with flat extrapolation.

    Args:
        grids: D sorted marginal grids, each with at least two nodes.
        values_flat: C-order flattened node values.
        strides: C-order strides of the value array (see ``grid_strides``).
        point: (D,) query point.

    Returns:
        Interpolated value.
    """
    if len(grids) == 1:
        g = grids[0]
        q = min(max(float(point[0]), g[0]), g[-1])
        i = int(np.searchsorted(g, q, side='right')) - 1
        i = min(max(i, 0), len(g) - 2)
        w = (q - g[i]) / (g[i + 1] - g[i])
        return float((1.0 - w) * values_flat[i] + w * values_flat[i + 1])

    lo_idx = []
    weights = []
    for d, g in enumerate(grids):
        q = min(max(float(point[d]), g[0]), g[-1])
        i = int(np.searchsorted(g, q, side='right')) - 1
        i = min(max(i, 0), len(g) - 2)
        lo_idx.append(i)
        weights.append((q - g[i]) / (g[i + 1] - g[i]))

    total = 0.0
    for corner in itertools.product((0, 1), repeat=len(grids)):
        flat = 0
        corner_weight = 1.0
        for d, bit in enumerate(corner):
            flat += (lo_idx[d] + bit) * strides[d]
            corner_weight *= weights[d] if bit else 1.0 - weights[d]
        if corner_weight != 0.0:
            total += corner_weight * values_flat[flat]
    return float(total)


# ═══════════════════════════════════════════════════════════════════════════
#  Tauchen AR(1) Discretization
# ═══════════════════════════════════════════════════════════════════════════

def tauchen_discretization(
    n: int,
    rho: float,
    sigma: float,
    mean: float = 0.0,
    m: float = 3.0,
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Discretize an AR(1) process using Tauchen's method.

    The AR(1) process: z' = (1 - rho) * mean + rho * z + epsilon
    where epsilon ~ N(0, sigma^2)

    Args:
        n: Number of grid points (>= 2).
        rho: Persistence parameter, |rho| < 1.
        sigma: Standard deviation of the innovation term.
        mean: Long-run mean of the process.
        m: Width of the grid in unconditional standard deviations.

    Returns:
        Tuple containing:
            - z: (n,) discretized states (same units as the process).
            - p_matrix: (n, n) transition matrix P[i,j] = Pr(z'=j|z=i).
    """
    n_int = int(n)
    rho_t = tf.cast(rho, TENSORFLOW_DTYPE)
    sigma_t = tf.cast(sigma, TENSORFLOW_DTYPE)
    m_t = tf.cast(m, TENSORFLOW_DTYPE)
    one = tf.cast(1.0, TENSORFLOW_DTYPE)

    # Unconditional standard deviation
    std_y = sigma_t / tf.sqrt(one - rho_t ** 2)
    x_max = m_t * std_y

    # Equally-spaced grid in deviations from the mean
    x = tf.cast(tf.linspace(-x_max, x_max, n_int), TENSORFLOW_DTYPE)
    step = x[1] - x[0]

    # Standard normal distribution for CDF calculations
    dist = tfd.Normal(loc=tf.cast(0.0, TENSORFLOW_DTYPE), scale=one)

    p_matrix = _build_transition_matrix(x, rho_t, sigma_t, step, dist)

    z = x + tf.cast(mean, TENSORFLOW_DTYPE)
    return (
        z.numpy().astype(NUMPY_DTYPE),
        p_matrix.numpy().astype(NUMPY_DTYPE),
    )


def _build_transition_matrix(
    x: tf.Tensor,
    rho: tf.Tensor,
    sigma: tf.Tensor,
    step: tf.Tensor,
    dist: tfd.Normal
) -> tf.Tensor:
    """
    Build the Markov transition matrix for the discretized process.

    Args:
        x: Grid points in deviations from the mean.
        rho: Persistence parameter.
        sigma: Innovation standard deviation.
        step: Grid spacing.
        dist: Standard normal distribution for CDF.

    Returns:
        Row-normalized transition probability matrix.
    """
    one = tf.cast(1.0, TENSORFLOW_DTYPE)

    # Broadcasting: x_j is next state, x_i is current state
    x_j = x[None, :]  # Shape: (1, n)
    x_i = x[:, None]  # Shape: (n, 1)

    # Standardized upper and lower bounds
    upper = (x_j + step / 2.0 - rho * x_i) / sigma
    lower = (x_j - step / 2.0 - rho * x_i) / sigma

    # Middle columns: probability between bounds
    p_middle = dist.cdf(upper) - dist.cdf(lower)

    # First column: cumulative up to first state + half step
    p_col0 = dist.cdf((x[0] + step / 2.0 - rho * x_i) / sigma)

    # Last column: 1 - CDF up to last state - half step
    p_coln = one - dist.cdf((x[-1] - step / 2.0 - rho * x_i) / sigma)

    p_matrix = tf.concat([p_col0, p_middle[:, 1:-1], p_coln], axis=1)

    # Normalize rows to ensure valid probability distribution
    row_sums = tf.reduce_sum(p_matrix, axis=1, keepdims=True)
    return p_matrix / row_sums
