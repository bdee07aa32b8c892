"""Unit tests for golden-section and alternating direct search."""

from __future__ import annotations

import numpy as np
import pytest

from econ_dp.vfi.optim.line_search import alterdirect, golden_section


class TestGoldenSection:
    """Tests for golden_section."""

    def test_quadratic(self):
        x, fx = golden_section(lambda t: (t - 0.3) ** 2, 0.0, 1.0, tol=1e-10)
        assert x == pytest.approx(0.3, abs=1e-8)
        assert fx == pytest.approx(0.0, abs=1e-14)

    def test_boundary_minimum(self):
        """A monotone function is minimized at the interval end."""
        x, _ = golden_section(lambda t: t, 2.0, 5.0, tol=1e-9)
        assert x == pytest.approx(2.0, abs=1e-8)

    def test_degenerate_interval(self):
        x, fx = golden_section(lambda t: t ** 2, 1.5, 1.5)
        assert x == 1.5
        assert fx == pytest.approx(2.25)

    def test_invalid_arguments(self):
        with pytest.raises(ValueError):
            golden_section(lambda t: t, 1.0, 0.0)
        with pytest.raises(ValueError):
            golden_section(lambda t: t, 0.0, 1.0, tol=0.0)


class TestAlterDirect:
    """Tests for alterdirect."""

    def test_one_dimension_is_golden(self):
        x, fx, converged = alterdirect(
            lambda c: (c[0] - 0.3) ** 2, [0.5], [0.0], [1.0], tol=1e-10
        )
        assert converged
        assert x[0] == pytest.approx(0.3, abs=1e-8)

    def test_separable(self):
        f = lambda c: (c[0] - 0.2) ** 2 + (c[1] - 0.7) ** 2
        x, fx, converged = alterdirect(f, [0.5, 0.5], [0.0, 0.0], [1.0, 1.0])
        assert converged
        np.testing.assert_allclose(x, [0.2, 0.7], atol=1e-6)

    def test_coupled(self):
        f = lambda c: ((c[0] - 0.2) ** 2 + (c[1] - 0.7) ** 2
                       + 0.5 * (c[0] - 0.2) * (c[1] - 0.7))
        x, fx, converged = alterdirect(
            f, [0.5, 0.5], [0.0, 0.0], [1.0, 1.0], tol=1e-12
        )
        assert converged
        np.testing.assert_allclose(x, [0.2, 0.7], atol=1e-4)

    def test_box_active(self):
        f = lambda c: (c[0] - 2.0) ** 2 + (c[1] + 1.0) ** 2
        x, _, _ = alterdirect(f, [0.5, 0.5], [0.0, 0.0], [1.0, 1.0])
        np.testing.assert_allclose(x, [1.0, 0.0], atol=1e-6)

    def test_start_outside_box_raises(self):
        with pytest.raises(ValueError):
            alterdirect(lambda c: 0.0, [2.0, 0.0], [0.0, 0.0], [1.0, 1.0])
