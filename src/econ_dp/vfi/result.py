"""Result arrays of an infinite-horizon dynamic-programming problem.

A :class:`ResultStore` is allocated once from a :class:`ProblemSpec` and
then mutated in place by the VFI loop, once per sweep.  Every array is
a stacking over exogenous states of arrays shaped like the state grid:

=============  ==========================  =====================
attribute      shape                       content
=============  ==========================  =====================
``V``          ``(NZ, *grid)``             value v(x, z)
``X_next``     ``(NZ, Dx, *grid)``         next state f(x, z, c*)
``C``          ``(NZ, Dc, *grid)``         policy c*(x, z)
``S``          ``(NZ, Ds, *grid)``         statistics s(x, z, c*)
=============  ==========================  =====================
"""

from __future__ import annotations

import logging
from typing import Callable, Dict, Union

import numpy as np

from econ_dp.core.exceptions import SpecificationError
from econ_dp.core.types import NUMPY_DTYPE, Array
from econ_dp.vfi.problem import ProblemSpec

logger = logging.getLogger(__name__)

ValueInitializer = Union[float, Callable[[Array, Array], float]]


class ResultStore:
    """
    Value, policy, next-state and statistic stackings of a problem.

    Parameters
    ----------
    problem : ProblemSpec
        The problem whose results are stored.
    v0 : float or callable, optional
        Initial value guess: a constant, or ``v0(x, z)`` evaluated at
        every node.  Defaults to zero.
    """

    def __init__(
        self,
        problem: ProblemSpec,
        v0: ValueInitializer = 0.0,
    ) -> None:
        self.problem: ProblemSpec = problem

        nz = problem.n_exogenous
        grid_shape = tuple(problem.grid.shape)

        self.V: np.ndarray = np.zeros((nz,) + grid_shape, dtype=NUMPY_DTYPE)
        self.X_next: np.ndarray = np.zeros(
            (nz, problem.n_states) + grid_shape, dtype=NUMPY_DTYPE
        )
        self.C: np.ndarray = np.zeros(
            (nz, problem.n_controls) + grid_shape, dtype=NUMPY_DTYPE
        )
        self.S: np.ndarray = np.zeros(
            (nz, problem.n_statistics) + grid_shape, dtype=NUMPY_DTYPE
        )

        self.initialize_value(v0)

    # ------------------------------------------------------------------
    # Shape
    # ------------------------------------------------------------------

    @property
    def grid_shape(self):
        return self.V.shape[1:]

    @property
    def n_exogenous(self) -> int:
        return self.V.shape[0]

    @property
    def nbytes(self) -> int:
        """Memory held by all result arrays, in bytes."""
        return self.V.nbytes + self.X_next.nbytes + self.C.nbytes + self.S.nbytes

    # ------------------------------------------------------------------
    # Initialisation
    # ------------------------------------------------------------------

    def initialize_value(self, v0: ValueInitializer = 0.0) -> None:
        """Fill every V[z] with a constant or with ``v0(x, z)``."""
        if callable(v0):
            grid = self.problem.grid
            states = self.problem.process.states
            for iz in range(self.n_exogenous):
                for idx in grid.indices():
                    self.V[(iz,) + tuple(idx)] = float(v0(grid[idx], states[iz]))
        else:
            self.V.fill(float(v0))

        if not np.all(np.isfinite(self.V)):
            raise SpecificationError("Initial value guess is not finite.")

    def initialize_policy(
        self, c0: Callable[[Array, Array], Array]
    ) -> None:
        """Fill the policy stacking with ``c0(x, z)`` for policy replay.

        Next states and statistics are recomputed from the new policy.
        """
        problem = self.problem
        grid = problem.grid
        states = problem.process.states
        for iz in range(self.n_exogenous):
            z = states[iz]
            for idx in grid.indices():
                x = grid[idx]
                c = np.asarray(c0(x, z), dtype=NUMPY_DTYPE).reshape(-1)
                if c.size != problem.n_controls:
                    raise SpecificationError(
                        f"Policy initializer must return {problem.n_controls} "
                        f"controls, got {c.size}."
                    )
                slot = (iz, slice(None)) + tuple(idx)
                self.C[slot] = c
                self.X_next[slot] = problem.next_state(x, z, c)
                self.S[slot] = problem.statistic_values(x, z, c)

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    def value(self, iz: int) -> np.ndarray:
        """v(x, z_iz) on the grid."""
        return self.V[iz]

    def policy(self, ic: int, iz: int) -> np.ndarray:
        """c_ic(x, z_iz) on the grid."""
        return self.C[iz, ic]

    def next_state(self, ix: int, iz: int) -> np.ndarray:
        """x'_ix(x, z_iz) on the grid."""
        return self.X_next[iz, ix]

    def statistic(self, js: int, iz: int) -> np.ndarray:
        """s_js(x, z_iz) on the grid."""
        return self.S[iz, js]

    def controls_at(self, iz: int, index) -> np.ndarray:
        """Stored control vector at one node."""
        return self.C[(iz, slice(None)) + tuple(index)].copy()

    # ------------------------------------------------------------------
    # Reporting & persistence
    # ------------------------------------------------------------------

    def summary(self) -> str:
        """Short multi-line description of the stored results."""
        p = self.problem
        return "\n".join([
            "Results of Infinite Horizon Dynamic Programming",
            f"- dimensionalities: #x = {p.n_states}, #z = {p.n_shocks}, "
            f"#c = {p.n_controls}",
            f"- size(x nodes)   : {self.grid_shape}, "
            f"total = {int(np.prod(self.grid_shape))}",
            f"- size(z states)  : {self.n_exogenous}",
            f"- RAM usage       : {self.nbytes / 1024 ** 2:.3f} MB",
        ])

    def to_dict(self) -> Dict[str, np.ndarray]:
        """Package all arrays, grids and the transition matrix."""
        out: Dict[str, np.ndarray] = {
            "V": self.V.copy(),
            "X_next": self.X_next.copy(),
            "C": self.C.copy(),
            "S": self.S.copy(),
            "Z": np.asarray(self.problem.process.states),
            "transition_matrix": np.asarray(self.problem.process.transition),
            "beta": np.asarray(self.problem.beta),
        }
        for d, marginal in enumerate(self.problem.grid.marginals):
            out[f"x_grid_{d}"] = np.asarray(marginal)
        return out

    def load_arrays(self, arrays: Dict[str, np.ndarray]) -> None:
        """Restore V, X_next, C and S (e.g. from ``load_vfi_results``)."""
        for name in ("V", "X_next", "C", "S"):
            current = getattr(self, name)
            incoming = np.asarray(arrays[name], dtype=NUMPY_DTYPE)
            if incoming.shape != current.shape:
                raise SpecificationError(
                    f"Stored '{name}' has shape {incoming.shape}, "
                    f"expected {current.shape}."
                )
            current[...] = incoming
