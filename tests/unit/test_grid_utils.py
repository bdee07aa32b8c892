"""Unit tests for grid_utils: interpolation and Tauchen discretisation."""

from __future__ import annotations

import numpy as np
import tensorflow as tf

tf.config.set_visible_devices([], 'GPU')

import pytest

from econ_dp.vfi.grids.grid_utils import (
    _interp_nd_batch_core,
    grid_strides,
    interp_nd_batch,
    interp_nd_point,
    tauchen_discretization,
)


def _tf_grids(*marginals):
    return [tf.constant(m, dtype=tf.float64) for m in marginals]


class TestInterpNdBatch:
    """Tests for the XLA multilinear interpolation kernel."""

    def test_at_grid_points(self):
        """Interpolation at grid points returns exact values."""
        x = [1.0, 2.0, 3.0, 4.0]
        y = tf.constant([10.0, 20.0, 30.0, 40.0], dtype=tf.float64)
        q = tf.constant([[1.0], [2.0], [3.0], [4.0]], dtype=tf.float64)
        result = interp_nd_batch(_tf_grids(x), y, q).numpy()
        np.testing.assert_allclose(result, [10.0, 20.0, 30.0, 40.0], atol=1e-12)

    def test_midpoints(self):
        """Interpolation at midpoints returns mean of neighbors."""
        x = [0.0, 1.0, 2.0]
        y = tf.constant([0.0, 10.0, 20.0], dtype=tf.float64)
        q = tf.constant([[0.5], [1.5]], dtype=tf.float64)
        result = interp_nd_batch(_tf_grids(x), y, q).numpy()
        np.testing.assert_allclose(result, [5.0, 15.0], atol=1e-12)

    def test_extrapolation_is_flat(self):
        """Out-of-bounds queries take the boundary value."""
        x = [1.0, 2.0, 3.0]
        y = tf.constant([10.0, 20.0, 30.0], dtype=tf.float64)
        q = tf.constant([[0.0], [4.0]], dtype=tf.float64)
        result = interp_nd_batch(_tf_grids(x), y, q).numpy()
        assert result[0] == pytest.approx(10.0)
        assert result[1] == pytest.approx(30.0)

    def test_bilinear_reproduces_bilinear_function(self):
        """f(a, b) = 1 + 2a - b + 3ab is reproduced exactly off-grid."""
        ga = np.array([0.0, 0.5, 2.0])
        gb = np.array([-1.0, 1.0, 4.0, 5.0])
        A, B = np.meshgrid(ga, gb, indexing='ij')
        values = 1.0 + 2.0 * A - B + 3.0 * A * B
        q = np.array([[0.2, 0.0], [1.3, 4.5], [2.0, -1.0]])
        expected = 1.0 + 2.0 * q[:, 0] - q[:, 1] + 3.0 * q[:, 0] * q[:, 1]
        result = interp_nd_batch(
            _tf_grids(ga, gb), tf.constant(values), tf.constant(q)
        ).numpy()
        np.testing.assert_allclose(result, expected, atol=1e-12)

    def test_core_matches_compiled(self):
        """Core (undecorated) and compiled versions give same result."""
        grids = _tf_grids([0.0, 1.0, 2.0, 3.0])
        y = tf.constant([1.0, 4.0, 2.0, 7.0], dtype=tf.float64)
        q = tf.constant([[0.25], [1.75], [2.5]], dtype=tf.float64)
        r1 = _interp_nd_batch_core(grids, y, q).numpy()
        r2 = interp_nd_batch(grids, y, q).numpy()
        np.testing.assert_allclose(r1, r2, atol=1e-12)


class TestInterpNdPoint:
    """Tests for the NumPy single-point evaluator."""

    def test_strides_c_order(self):
        """Strides match NumPy's C-order element strides."""
        shape = (4, 3, 5)
        expected = np.array(np.zeros(shape).strides) // 8
        np.testing.assert_array_equal(grid_strides(shape), expected)

    def test_matches_batch_kernel_3d(self):
        """Point evaluator and TF kernel implement the same rule."""
        rng = np.random.default_rng(0)
        grids = [np.array([0.0, 1.0, 3.0]), np.array([0.0, 2.0]),
                 np.array([-1.0, 0.0, 1.0, 4.0])]
        values = rng.normal(size=(3, 2, 4))
        queries = rng.uniform(-1.5, 4.5, size=(20, 3))
        batch = interp_nd_batch(
            _tf_grids(*grids), tf.constant(values), tf.constant(queries)
        ).numpy()
        strides = grid_strides(values.shape)
        point = [interp_nd_point(grids, values.reshape(-1), strides, q)
                 for q in queries]
        np.testing.assert_allclose(point, batch, atol=1e-12)

    def test_1d_fast_path_flat_extrapolation(self):
        """1-D evaluator clamps to the end values."""
        g = np.array([0.0, 1.0, 2.0])
        v = np.array([3.0, 5.0, 4.0])
        s = grid_strides(v.shape)
        assert interp_nd_point([g], v, s, [-10.0]) == pytest.approx(3.0)
        assert interp_nd_point([g], v, s, [1.5]) == pytest.approx(4.5)
        assert interp_nd_point([g], v, s, [10.0]) == pytest.approx(4.0)


class TestTauchenDiscretization:
    """Tests for tauchen_discretization."""

    def test_shape(self):
        z, P = tauchen_discretization(7, rho=0.9, sigma=0.1)
        assert z.shape == (7,)
        assert P.shape == (7, 7)

    def test_rows_sum_to_one(self):
        """Every row of the transition matrix is a distribution."""
        _, P = tauchen_discretization(5, rho=0.7, sigma=0.2)
        np.testing.assert_allclose(P.sum(axis=1), 1.0, atol=1e-12)
        assert np.all(P >= 0.0)

    def test_symmetric_around_mean(self):
        """States are symmetric around the long-run mean."""
        z, _ = tauchen_discretization(5, rho=0.5, sigma=0.1, mean=2.0)
        np.testing.assert_allclose(z + z[::-1], 4.0, atol=1e-12)

    def test_width(self):
        """Outer states sit m unconditional std devs from the mean."""
        rho, sigma, m = 0.6, 0.2, 2.5
        z, _ = tauchen_discretization(9, rho=rho, sigma=sigma, m=m)
        assert z[-1] == pytest.approx(m * sigma / np.sqrt(1.0 - rho ** 2))
