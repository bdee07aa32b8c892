"""Core utilities shared by every solver component.

Provide the global precision settings, type aliases, and the exception
hierarchy used to separate fatal model-specification errors from soft
numerical diagnostics.
"""

from econ_dp.core.types import TENSORFLOW_DTYPE, NUMPY_DTYPE, Tensor, Array
from econ_dp.core.exceptions import (
    DegenerateSolutionError,
    DPSolverError,
    InfeasibleControlError,
    SpecificationError,
)
