"""Unit tests for ResultStore and .npz persistence."""

from __future__ import annotations

import numpy as np
import tensorflow as tf

tf.config.set_visible_devices([], 'GPU')

import pytest

from econ_dp.core.exceptions import SpecificationError
from econ_dp.io.artifacts import load_vfi_results, save_vfi_results
from econ_dp.vfi.result import ResultStore

from conftest import make_crra_problem


class TestResultStore:
    """Tests for allocation, initialisation and accessors."""

    def test_shapes(self, stochastic_crra_problem):
        problem = make_crra_problem(
            n_nodes=8,
            process=stochastic_crra_problem.process,
            statistics=lambda x, z, c: [c[0], x[0]],
        )
        store = ResultStore(problem)
        assert store.V.shape == (3, 8)
        assert store.X_next.shape == (3, 1, 8)
        assert store.C.shape == (3, 1, 8)
        assert store.S.shape == (3, 2, 8)
        assert store.grid_shape == (8,)
        assert store.n_exogenous == 3

    def test_constant_initial_value(self, crra_problem):
        store = ResultStore(crra_problem, v0=-3.0)
        np.testing.assert_array_equal(store.V, -3.0)

    def test_callable_initial_value(self, stochastic_crra_problem):
        store = ResultStore(
            stochastic_crra_problem, v0=lambda x, z: x[0] + 10.0 * z[0]
        )
        grid = stochastic_crra_problem.grid
        states = stochastic_crra_problem.process.states
        expected = grid.marginals[0][None, :] + 10.0 * states[:, :1]
        np.testing.assert_allclose(store.V, expected)

    def test_non_finite_initial_value_raises(self, crra_problem):
        with pytest.raises(SpecificationError):
            ResultStore(crra_problem, v0=np.nan)

    def test_initialize_policy(self, crra_problem):
        store = ResultStore(crra_problem)
        store.initialize_policy(lambda x, z: [0.5 * x[0]])
        x = crra_problem.grid.marginals[0]
        np.testing.assert_allclose(store.policy(0, 0), 0.5 * x)
        np.testing.assert_allclose(
            store.next_state(0, 0), 1.02 * 0.5 * x + 1.0
        )
        np.testing.assert_allclose(store.controls_at(0, (3,)), [0.5 * x[3]])

    def test_initialize_policy_wrong_length(self, crra_problem):
        store = ResultStore(crra_problem)
        with pytest.raises(SpecificationError):
            store.initialize_policy(lambda x, z: [1.0, 2.0])

    def test_nbytes_and_summary(self, crra_problem):
        store = ResultStore(crra_problem)
        assert store.nbytes == (12 + 12 + 12) * 8
        assert "RAM usage" in store.summary()


class TestPersistence:
    """Tests for to_dict / save / load round trips."""

    def test_roundtrip(self, tmp_path, stochastic_crra_problem):
        store = ResultStore(stochastic_crra_problem, v0=lambda x, z: x[0])
        store.initialize_policy(lambda x, z: [0.25 * x[0]])
        path = str(tmp_path / "results.npz")
        save_vfi_results(store.to_dict(), path)

        arrays = load_vfi_results(path)
        assert "x_grid_0" in arrays
        assert "transition_matrix" in arrays
        assert float(arrays["beta"]) == pytest.approx(0.9)

        fresh = ResultStore(stochastic_crra_problem)
        fresh.load_arrays(arrays)
        np.testing.assert_array_equal(fresh.V, store.V)
        np.testing.assert_array_equal(fresh.C, store.C)
        np.testing.assert_array_equal(fresh.X_next, store.X_next)

    def test_load_shape_mismatch(self, crra_problem, stochastic_crra_problem):
        arrays = ResultStore(stochastic_crra_problem).to_dict()
        with pytest.raises(SpecificationError):
            ResultStore(crra_problem).load_arrays(arrays)
