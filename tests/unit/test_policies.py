"""Unit tests for point updates: solve_point and replay_point."""

from __future__ import annotations

import numpy as np
import tensorflow as tf

tf.config.set_visible_devices([], 'GPU')

import pytest

from econ_dp.config.vfi_config import VFIOptions
from econ_dp.core.exceptions import DegenerateSolutionError
from econ_dp.vfi.expectation import MultilinearInterpolant
from econ_dp.vfi.policies import replay_point, solve_point

from conftest import make_crra_problem


def _ev(problem, slope=0.0):
    grid = problem.grid.marginals[0]
    return MultilinearInterpolant([grid], slope * grid)


class TestSolvePoint:
    """Tests for solve_point."""

    def test_zero_continuation_eats_everything(self, crra_problem):
        """With EV = 0 the optimum is the upper bound of consumption."""
        x = np.array([2.0])
        out = solve_point(
            crra_problem, x, np.empty(0), _ev(crra_problem),
            VFIOptions(algorithm="bounded"),
        )
        assert out.control[0] == pytest.approx(2.0 - 1e-4, abs=1e-6)
        np.testing.assert_allclose(
            out.next_state, 1.02 * (2.0 - out.control[0]) + 1.0
        )
        assert out.statistics.shape == (0,)
        assert out.success

    def test_statistics_recorded(self):
        problem = make_crra_problem(statistics=lambda x, z, c: [c[0] / x[0]])
        out = solve_point(
            problem, [2.0], [], _ev(problem), VFIOptions(algorithm="golden"),
        )
        assert out.statistics[0] == pytest.approx(out.control[0] / 2.0)


class TestReplayPoint:
    """Tests for replay_point."""

    def test_value_of_fixed_control(self, crra_problem):
        ev = _ev(crra_problem, slope=1.0)
        out = replay_point(crra_problem, [2.0], [], [0.5], ev)
        x_next = 1.02 * 1.5 + 1.0
        assert out.value == pytest.approx(-2.0 + 0.9 * x_next)
        np.testing.assert_allclose(out.next_state, [x_next])
        np.testing.assert_array_equal(out.control, [0.5])
        assert out.success

    def test_current_state_continuation(self, crra_problem):
        ev = _ev(crra_problem, slope=1.0)
        out = replay_point(
            crra_problem, [2.0], [], [0.5], ev, continuation="current_state"
        )
        assert out.value == pytest.approx(-2.0 + 0.9 * 2.0)

    def test_degenerate_value_raises(self, crra_problem):
        with pytest.raises(DegenerateSolutionError):
            replay_point(crra_problem, [2.0], [], [0.0], _ev(crra_problem))
