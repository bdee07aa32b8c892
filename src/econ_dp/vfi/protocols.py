"""Protocol definitions for VFI solver components.

Defines ``typing.Protocol`` classes that formalise the interfaces the
solver consumes from its collaborators.  Contains no implementation;
only type signatures.

:class:`~econ_dp.vfi.grids.TensorGrid` and
:class:`~econ_dp.vfi.grids.MarkovChain` satisfy ``GridDomain`` and
``ExogenousProcess``; any other object with the same surface (e.g. a
grid type from another package) can be passed to ``ProblemSpec``.
"""

from __future__ import annotations

from typing import Iterator, Protocol, Sequence, Tuple, runtime_checkable

import numpy as np


@runtime_checkable
class GridDomain(Protocol):
    """Interface for tensor grids of continuous states."""

    @property
    def marginals(self) -> Tuple[np.ndarray, ...]:
        """Sorted coordinate array of every dimension."""
        ...

    @property
    def shape(self) -> Tuple[int, ...]:
        """Number of nodes along every dimension."""
        ...

    @property
    def ndim(self) -> int:
        """Number of dimensions."""
        ...

    @property
    def size(self) -> int:
        """Total number of nodes."""
        ...

    def __getitem__(self, index: Sequence[int]) -> np.ndarray:
        """Coordinates of the node at a multi-index."""
        ...

    def indices(self) -> Iterator[Tuple[int, ...]]:
        """All multi-indices in C order."""
        ...

    def unravel(self, flat_index: int) -> Tuple[int, ...]:
        """Multi-index of a C-order flat index."""
        ...

    def points(self) -> np.ndarray:
        """All nodes as a ``(size, ndim)`` array in C order."""
        ...


@runtime_checkable
class ExogenousProcess(Protocol):
    """Interface for finite-state Markov chains of shocks."""

    @property
    def states(self) -> np.ndarray:
        """``(NZ, Dz)`` state vectors."""
        ...

    @property
    def transition(self) -> np.ndarray:
        """``(NZ, NZ)`` row-stochastic transition matrix."""
        ...

    @property
    def n_states(self) -> int:
        """Number of states NZ."""
        ...


@runtime_checkable
class Interpolant(Protocol):
    """Interface for continuous evaluators of gridded values."""

    def __call__(self, point: Sequence[float]) -> float:
        """Evaluate at one point."""
        ...
