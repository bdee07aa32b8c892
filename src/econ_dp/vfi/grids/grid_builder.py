# econ_dp/vfi/grids/grid_builder.py
"""
Tensor-product grids for continuous states and discrete controls.

A :class:`TensorGrid` is the Cartesian product of sorted 1-D marginal
coordinate arrays.  Every array held by a result store is shaped like
the state grid, and multi-indices into the grid double as indices into
those arrays.  :class:`GridBuilder` collects the usual ways of spacing
the marginals.
"""

from __future__ import annotations

from typing import Iterator, List, Sequence, Tuple

import numpy as np
import tensorflow as tf

from econ_dp.core.exceptions import SpecificationError
from econ_dp.core.types import NUMPY_DTYPE, TENSORFLOW_DTYPE, Tensor


class TensorGrid:
    """
    Cartesian-product grid of sorted marginal coordinate arrays.

    Parameters
    ----------
    marginals : sequence of array-like
        One strictly increasing coordinate array per dimension, each
        with at least two nodes.

    Raises
    ------
    SpecificationError
        If a marginal is empty, too short, not 1-D, non-finite, or not
        strictly increasing.
    """

    def __init__(self, marginals: Sequence[Sequence[float]]) -> None:
        arrays: List[np.ndarray] = []
        for d, m in enumerate(marginals):
            arr = np.asarray(m, dtype=NUMPY_DTYPE)
            if arr.ndim != 1 or arr.size < 2:
                raise SpecificationError(
                    f"Marginal grid {d} must be 1-D with >= 2 nodes, "
                    f"got shape {arr.shape}."
                )
            if not np.all(np.isfinite(arr)):
                raise SpecificationError(
                    f"Marginal grid {d} contains non-finite nodes."
                )
            if np.any(np.diff(arr) <= 0.0):
                raise SpecificationError(
                    f"Marginal grid {d} must be strictly increasing."
                )
            arr.setflags(write=False)
            arrays.append(arr)
        if not arrays:
            raise SpecificationError("A grid needs at least one dimension.")
        self._marginals: Tuple[np.ndarray, ...] = tuple(arrays)

    # ------------------------------------------------------------------
    # Constructors
    # ------------------------------------------------------------------

    @classmethod
    def uniform(
        cls,
        lower: Sequence[float],
        upper: Sequence[float],
        n_points: Sequence[int],
    ) -> "TensorGrid":
        """Build an evenly spaced grid on the box [lower, upper]."""
        return cls([
            GridBuilder.linear(lo, hi, n)
            for lo, hi, n in zip(lower, upper, n_points)
        ])

    @classmethod
    def log_spaced(
        cls,
        lower: Sequence[float],
        upper: Sequence[float],
        n_points: Sequence[int],
    ) -> "TensorGrid":
        """Build a grid evenly spaced in logs on the box [lower, upper]."""
        return cls([
            GridBuilder.log_spaced(lo, hi, n)
            for lo, hi, n in zip(lower, upper, n_points)
        ])

    # ------------------------------------------------------------------
    # Shape & bounds
    # ------------------------------------------------------------------

    @property
    def marginals(self) -> Tuple[np.ndarray, ...]:
        return self._marginals

    @property
    def ndim(self) -> int:
        return len(self._marginals)

    @property
    def shape(self) -> Tuple[int, ...]:
        return tuple(m.size for m in self._marginals)

    @property
    def size(self) -> int:
        return int(np.prod(self.shape))

    @property
    def lower(self) -> np.ndarray:
        return np.array([m[0] for m in self._marginals], dtype=NUMPY_DTYPE)

    @property
    def upper(self) -> np.ndarray:
        return np.array([m[-1] for m in self._marginals], dtype=NUMPY_DTYPE)

    def __len__(self) -> int:
        return self.size

    def __repr__(self) -> str:
        return f"TensorGrid(shape={self.shape})"

    # ------------------------------------------------------------------
    # Enumeration & lookup
    # ------------------------------------------------------------------

    def __getitem__(self, index: Sequence[int]) -> np.ndarray:
        """Coordinates of the node at multi-index ``index``."""
        if len(index) != self.ndim:
            raise IndexError(
                f"Expected a {self.ndim}-D index, got {tuple(index)}."
            )
        return np.array(
            [m[i] for m, i in zip(self._marginals, index)],
            dtype=NUMPY_DTYPE,
        )

    def indices(self) -> Iterator[Tuple[int, ...]]:
        """Iterate over all multi-indices in C order."""
        return np.ndindex(*self.shape)

    def unravel(self, flat_index: int) -> Tuple[int, ...]:
        """Convert a C-order flat index into a multi-index."""
        return tuple(int(i) for i in np.unravel_index(flat_index, self.shape))

    def points(self) -> np.ndarray:
        """All nodes as a ``(size, ndim)`` array in C order."""
        mesh = np.meshgrid(*self._marginals, indexing='ij')
        return np.stack([m.reshape(-1) for m in mesh], axis=1)

    def as_tensors(self) -> List[Tensor]:
        """Marginals as TensorFlow tensors (for the batched kernels)."""
        return [tf.constant(m, dtype=TENSORFLOW_DTYPE) for m in self._marginals]


class GridBuilder:
    """
    Utility class for constructing 1-D marginal grids.
    """

    @staticmethod
    def linear(min_val: float, max_val: float, n_points: int) -> np.ndarray:
        """Build a linearly-spaced grid."""
        if not min_val < max_val:
            raise SpecificationError(
                f"Grid lower bound ({min_val}) must be less than upper "
                f"({max_val})."
            )
        return np.linspace(min_val, max_val, int(n_points), dtype=NUMPY_DTYPE)

    @staticmethod
    def log_spaced(min_val: float, max_val: float, n_points: int) -> np.ndarray:
        """Build a logarithmically-spaced grid."""
        if not 0.0 < min_val < max_val:
            raise SpecificationError(
                f"Log-spaced grid needs 0 < min ({min_val}) < max ({max_val})."
            )
        return np.geomspace(min_val, max_val, int(n_points), dtype=NUMPY_DTYPE)
