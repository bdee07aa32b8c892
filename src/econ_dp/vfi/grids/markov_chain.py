# econ_dp/vfi/grids/markov_chain.py
"""
Finite-state Markov chains for exogenous shocks.

The solver only needs the number of states, the state vectors and a
row-stochastic transition matrix.  A deterministic model uses the
one-state sentinel returned by :meth:`MarkovChain.deterministic`
(NZ = 1, Dz = 0), so every loop over exogenous states still runs once.
"""

from __future__ import annotations

from typing import Sequence, Union

import numpy as np

from econ_dp.core.exceptions import SpecificationError
from econ_dp.core.types import NUMPY_DTYPE
from econ_dp.vfi.grids.grid_utils import tauchen_discretization

_STOCHASTIC_TOL = 1e-8


class MarkovChain:
    """
    Finite-state Markov chain of (possibly multivariate) shock vectors.

    Parameters
    ----------
    states : array-like
        ``(NZ, Dz)`` state vectors; a 1-D array is read as ``Dz = 1``.
    transition : array-like
        ``(NZ, NZ)`` matrix with ``transition[i, j] = Pr(z' = j | z = i)``.
    normalize : bool
        Rescale rows to sum to one instead of rejecting them.

    Raises
    ------
    SpecificationError
        On shape mismatch, negative probabilities or rows that do not
        sum to one (when ``normalize`` is False).
    """

    def __init__(
        self,
        states: Union[Sequence, np.ndarray],
        transition: Union[Sequence, np.ndarray],
        normalize: bool = False,
    ) -> None:
        states_arr = np.asarray(states, dtype=NUMPY_DTYPE)
        if states_arr.ndim == 1:
            states_arr = states_arr[:, None]
        if states_arr.ndim != 2 or states_arr.shape[0] < 1:
            raise SpecificationError(
                f"states must be (NZ, Dz), got shape {states_arr.shape}."
            )
        n_states = states_arr.shape[0]

        p = np.array(transition, dtype=NUMPY_DTYPE)
        if p.shape != (n_states, n_states):
            raise SpecificationError(
                f"transition must be ({n_states}, {n_states}), "
                f"got {p.shape}."
            )
        if np.any(p < 0.0) or not np.all(np.isfinite(p)):
            raise SpecificationError(
                "transition contains negative or non-finite entries."
            )
        row_sums = p.sum(axis=1)
        if normalize:
            if np.any(row_sums <= 0.0):
                raise SpecificationError(
                    "Cannot normalize a transition row summing to zero."
                )
            p = p / row_sums[:, None]
        elif np.any(np.abs(row_sums - 1.0) > _STOCHASTIC_TOL):
            raise SpecificationError(
                "transition matrix is not row-stochastic.",
                {"row_sums": np.round(row_sums, 10).tolist()},
            )

        states_arr.setflags(write=False)
        p.setflags(write=False)
        self._states = states_arr
        self._transition = p

    @classmethod
    def deterministic(cls) -> "MarkovChain":
        """The NZ = 1, Dz = 0 sentinel for models without shocks."""
        return cls(np.empty((1, 0), dtype=NUMPY_DTYPE), [[1.0]])

    @classmethod
    def tauchen(
        cls,
        n: int,
        rho: float,
        sigma: float,
        mean: float = 0.0,
        width: float = 3.0,
    ) -> "MarkovChain":
        """Tauchen (1986) discretisation of a univariate AR(1) process."""
        if n < 2:
            raise SpecificationError(f"Tauchen needs n >= 2, got {n}.")
        if not abs(rho) < 1.0:
            raise SpecificationError(f"|rho| must be < 1, got {rho}.")
        if sigma <= 0.0:
            raise SpecificationError(f"sigma must be positive, got {sigma}.")
        z, p = tauchen_discretization(n, rho, sigma, mean=mean, m=width)
        return cls(z[:, None], p, normalize=True)

    @property
    def states(self) -> np.ndarray:
        return self._states

    @property
    def transition(self) -> np.ndarray:
        return self._transition

    @property
    def n_states(self) -> int:
        return self._states.shape[0]

    @property
    def ndim(self) -> int:
        return self._states.shape[1]

    @property
    def is_deterministic(self) -> bool:
        return self.ndim == 0

    def __len__(self) -> int:
        return self.n_states

    def __getitem__(self, iz: int) -> np.ndarray:
        return self._states[iz]

    def __repr__(self) -> str:
        return f"MarkovChain(n_states={self.n_states}, ndim={self.ndim})"
