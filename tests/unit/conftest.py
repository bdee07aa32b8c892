"""Shared test fixtures and helper utilities for VFI unit tests."""

from __future__ import annotations

import numpy as np
import pytest
import tensorflow as tf

# Force CPU for CI; must be called before any TF ops
tf.config.set_visible_devices([], 'GPU')

from econ_dp.vfi.grids import MarkovChain, TensorGrid
from econ_dp.vfi.problem import ControlSpec, ProblemSpec


def make_crra_problem(
    n_nodes: int = 12,
    beta: float = 0.9,
    gamma: float = 2.0,
    income: float = 1.0,
    gross_rate: float = 1.02,
    process: MarkovChain = None,
    **overrides,
) -> ProblemSpec:
    """Consumption-savings model on cash-on-hand w.

    u(c) = c^(1 - gamma) / (1 - gamma), w' = R (w - c) + y * exp(z),
    c in [1e-4, w - 1e-4].
    """
    grid = TensorGrid.uniform([0.5], [4.0], [n_nodes])

    def payoff(x, z, c):
        return c[0] ** (1.0 - gamma) / (1.0 - gamma)

    def transition(x, z, c):
        shock = np.exp(z[0]) if z.size else 1.0
        return [gross_rate * (x[0] - c[0]) + income * shock]

    controls = ControlSpec(
        continuous=(True,),
        lower=lambda x, z: [1e-4],
        upper=lambda x, z: [x[0] - 1e-4],
    )
    kwargs = dict(
        grid=grid,
        controls=controls,
        payoff=payoff,
        transition=transition,
        beta=beta,
        process=process,
    )
    kwargs.update(overrides)
    return ProblemSpec(**kwargs)


@pytest.fixture
def crra_problem() -> ProblemSpec:
    """Deterministic CRRA consumption-savings problem on 12 nodes."""
    return make_crra_problem()


@pytest.fixture
def stochastic_crra_problem() -> ProblemSpec:
    """CRRA problem with a 3-state Tauchen income shock."""
    return make_crra_problem(
        n_nodes=8, process=MarkovChain.tauchen(3, rho=0.8, sigma=0.1)
    )


@pytest.fixture
def two_state_chain() -> MarkovChain:
    """Asymmetric two-state chain with scalar states."""
    return MarkovChain([-0.1, 0.1], [[0.8, 0.2], [0.3, 0.7]])


@pytest.fixture
def grid_2d() -> TensorGrid:
    """Non-uniform 2-D grid of shape (4, 3)."""
    return TensorGrid([[0.0, 0.5, 1.5, 3.0], [-1.0, 0.0, 2.0]])
