# econ_dp/core/types.py
"""
Global type definitions for TensorFlow and NumPy precision.

This module establishes a single source of truth for numerical precision
across the entire codebase, ensuring consistency between TensorFlow
kernels and the NumPy arrays held by result stores and optimizers.

Example:
    >>> from econ_dp.core.types import TENSORFLOW_DTYPE, NUMPY_DTYPE
    >>> import tensorflow as tf
    >>> tensor = tf.constant([1.0, 2.0], dtype=TENSORFLOW_DTYPE)
"""

from typing import Callable, Sequence, Union

import numpy as np
import tensorflow as tf

# -----------------------------------------------------------------------------
# Global Precision Settings
# -----------------------------------------------------------------------------
# Value function iteration compares successive iterates against tolerances
# around 1e-5 and below, and the expectation/interpolation identity is
# checked to machine precision, so everything runs in float64.

TENSORFLOW_DTYPE = tf.float64
NUMPY_DTYPE = np.float64

# -----------------------------------------------------------------------------
# Type Aliases
# -----------------------------------------------------------------------------

Tensor = tf.Tensor
Array = np.ndarray
Numeric = Union[float, np.float64, tf.Tensor]
Vector = Union[Sequence[float], np.ndarray]

# (x, z, c) -> scalar / vector model primitives
ModelFunction = Callable[[Array, Array, Array], Union[float, Vector]]
# (x, z) -> vector of control bounds
BoundFunction = Callable[[Array, Array], Vector]
