"""Unit tests for ExpectationOperator and MultilinearInterpolant.

Covers exactness in the deterministic case, linearity, and the
commutation of multilinear interpolation with the expectation.
"""

from __future__ import annotations

import numpy as np
import tensorflow as tf

tf.config.set_visible_devices([], 'GPU')

import pytest
from scipy.interpolate import PchipInterpolator

from econ_dp.core.exceptions import SpecificationError
from econ_dp.vfi.expectation import ExpectationOperator, MultilinearInterpolant
from econ_dp.vfi.grids import MarkovChain, TensorGrid
from econ_dp.vfi.problem import ControlSpec, ProblemSpec
from econ_dp.vfi.protocols import Interpolant
from econ_dp.vfi.result import ResultStore


def _problem_2d(process=None):
    return ProblemSpec(
        grid=TensorGrid([[0.0, 0.4, 1.0, 2.5, 3.0], [-1.0, 0.0, 1.0, 3.0]]),
        controls=ControlSpec(
            (True,), lower=lambda x, z: [0.0], upper=lambda x, z: [1.0]
        ),
        payoff=lambda x, z, c: 0.0,
        transition=lambda x, z, c: x,
        beta=0.9,
        process=process,
    )


@pytest.fixture
def four_state_chain():
    rng = np.random.default_rng(1)
    P = rng.uniform(size=(4, 4))
    return MarkovChain(np.arange(4.0), P, normalize=True)


class TestDeterministicExpectation:
    """NZ = 1: the expectation is V itself."""

    def test_identity(self):
        problem = _problem_2d()
        op = ExpectationOperator(problem)
        v = np.random.default_rng(0).normal(size=(1, 5, 4))
        ev = op.expect(v, 0)
        np.testing.assert_array_equal(ev, v[0])

    def test_does_not_alias(self):
        op = ExpectationOperator(_problem_2d())
        v = np.ones((1, 5, 4))
        ev = op.expect(v, 0)
        ev[0, 0] = 5.0
        assert v[0, 0, 0] == 1.0


class TestExpectation:
    """Stochastic expectations."""

    def test_matches_numpy(self, four_state_chain):
        op = ExpectationOperator(_problem_2d(four_state_chain))
        v = np.random.default_rng(2).normal(size=(4, 5, 4))
        P = four_state_chain.transition
        for iz in range(4):
            expected = np.tensordot(P[iz], v, axes=1)
            np.testing.assert_allclose(op.expect(v, iz), expected, atol=1e-13)
        np.testing.assert_allclose(
            op.expect_all(v), np.tensordot(P, v, axes=1), atol=1e-13
        )

    def test_reads_store_values(self, four_state_chain):
        """expect takes the store's value stacking and leaves it unchanged."""
        problem = _problem_2d(four_state_chain)
        store = ResultStore(problem)
        store.initialize_value(lambda x, z: x[0] + 2.0 * x[1] + z[0])
        before = store.V.copy()
        op = ExpectationOperator(problem)
        ev = op.expect(store.V, 2)
        np.testing.assert_allclose(
            ev, np.tensordot(four_state_chain.transition[2], before, axes=1),
            atol=1e-13,
        )
        np.testing.assert_array_equal(store.V, before)

    def test_linearity(self, four_state_chain):
        """E[aV + bW] = a E[V] + b E[W]."""
        op = ExpectationOperator(_problem_2d(four_state_chain))
        rng = np.random.default_rng(3)
        v, w = rng.normal(size=(2, 4, 5, 4))
        a, b = 1.7, -0.4
        for iz in range(4):
            np.testing.assert_allclose(
                op.expect(a * v + b * w, iz),
                a * op.expect(v, iz) + b * op.expect(w, iz),
                atol=1e-12,
            )

    def test_invalid_index_raises(self, four_state_chain):
        op = ExpectationOperator(_problem_2d(four_state_chain))
        v = np.zeros((4, 5, 4))
        with pytest.raises(SpecificationError):
            op.expect(v, 4)
        with pytest.raises(SpecificationError):
            op.expect(v, -1)

    def test_wrong_stack_raises(self, four_state_chain):
        op = ExpectationOperator(_problem_2d(four_state_chain))
        with pytest.raises(SpecificationError):
            op.expect(np.zeros((3, 5, 4)), 0)


class TestInterpolationCommutes:
    """Interpolating E[V] equals averaging interpolated V[z']."""

    def test_multilinear_commutes(self, four_state_chain):
        problem = _problem_2d(four_state_chain)
        op = ExpectationOperator(problem)
        rng = np.random.default_rng(4)
        v = rng.normal(size=(4, 5, 4))
        P = four_state_chain.transition
        points = rng.uniform([-0.5, -1.5], [3.5, 3.5], size=(25, 2))

        interpolants = op.build(v)
        per_state = [op.interpolate(v[j]) for j in range(4)]
        for iz in range(4):
            for pt in points:
                averaged = sum(P[iz, j] * per_state[j](pt) for j in range(4))
                assert interpolants[iz](pt) == pytest.approx(averaged, abs=1e-12)

    def test_pchip_does_not_commute(self, four_state_chain):
        """A scheme nonlinear in the data breaks the identity."""
        x = np.linspace(0.0, 3.0, 7)
        rng = np.random.default_rng(5)
        v = rng.normal(size=(4, 7))
        P = four_state_chain.transition
        points = np.linspace(0.05, 2.95, 50)

        ev = P[0] @ v
        interp_of_mean = PchipInterpolator(x, ev)(points)
        mean_of_interp = sum(
            P[0, j] * PchipInterpolator(x, v[j])(points) for j in range(4)
        )
        assert np.max(np.abs(interp_of_mean - mean_of_interp)) > 1e-6

    def test_interpolant_protocol(self):
        interp = MultilinearInterpolant([np.array([0.0, 1.0])], np.array([1.0, 3.0]))
        assert isinstance(interp, Interpolant)
        assert interp([0.25]) == pytest.approx(1.5)
        np.testing.assert_allclose(interp.batch(np.array([[0.5], [2.0]])), [2.0, 3.0])
