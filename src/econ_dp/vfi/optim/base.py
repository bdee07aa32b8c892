"""Shared result type and sanity checks of the optimization family."""

from __future__ import annotations

import math
from typing import NamedTuple, Optional

import numpy as np

from econ_dp.config.vfi_config import (
    ALGORITHMS,
    CONSTRAINED_ALGORITHMS,
    SCALAR_ALGORITHMS,
)
from econ_dp.core.exceptions import DegenerateSolutionError, SpecificationError
from econ_dp.vfi.problem import SHAPE_DISCRETE


class SolveResult(NamedTuple):
    """Outcome of one Q maximization.

    ``success`` has solver-specific meaning and must not be pooled
    naively across families:

    * grid search: True once any admissible point exists;
    * bounded / alternating search: True if the search converged within
      its iteration cap;
    * COBYLA: True only if converged *and* constraint-admissible;
    * golden-section and differential evolution: always True.
    """

    value: float
    control: np.ndarray
    success: bool


def check_finite(value: float, where: str, **context) -> float:
    """Raise :class:`DegenerateSolutionError` for a NaN/Inf optimum."""
    if math.isnan(value):
        raise DegenerateSolutionError(
            f"{where} converged to a NaN objective.", context
        )
    if math.isinf(value):
        raise DegenerateSolutionError(
            f"{where} converged to an infinite objective.", context
        )
    return value


def check_algorithm(
    shape: str,
    n_continuous: int,
    n_constraints: int,
    algorithm: str,
) -> Optional[str]:
    """Validate an algorithm tag against a problem shape.

    Parameters
    ----------
    shape : str
        ``"continuous"``, ``"discrete"`` or ``"mixed"``.
    n_continuous : int
        Number of continuous controls.
    n_constraints : int
        Number of nonlinear inequality constraints Dg.
    algorithm : str
        Algorithm tag.

    Returns
    -------
    str or None
        A warning message when the algorithm silently ignores the
        nonlinear constraints, else None.

    Raises
    ------
    SpecificationError
        For unknown tags, or a scalar search on more than one
        continuous control.
    """
    if algorithm not in ALGORITHMS:
        raise SpecificationError(
            f"Unknown algorithm '{algorithm}'.",
            {"supported": ", ".join(ALGORITHMS)},
        )
    if shape == SHAPE_DISCRETE:
        return None
    if algorithm in SCALAR_ALGORITHMS and n_continuous != 1:
        raise SpecificationError(
            f"Algorithm '{algorithm}' handles exactly one continuous "
            f"control, the problem has {n_continuous}.",
            {"suggestion": "use 'alterdirect', 'differential_evolution' "
                           "or 'cobyla'"},
        )
    if n_constraints > 0 and algorithm not in CONSTRAINED_ALGORITHMS:
        return (
            f"Algorithm '{algorithm}' ignores the {n_constraints} nonlinear "
            f"constraint(s) g(x, z, c) <= 0; only "
            f"{', '.join(CONSTRAINED_ALGORITHMS)} honours them."
        )
    return None
