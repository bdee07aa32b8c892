# econ_dp/core/exceptions.py
"""
Exception hierarchy for the dynamic-programming solvers.

Three kinds of failure are fatal and raise immediately:

* :class:`SpecificationError`: the model or the options are malformed
  (bad bounds, algorithm/shape mismatch, missing discrete grid, ...).
  Raised at construction or at the first solve; never retried.
* :class:`InfeasibleControlError`: no admissible control exists at some
  state, so the Bellman operator is undefined there.
* :class:`DegenerateSolutionError`: an optimizer returned a NaN or
  infinite objective value.

Non-convergence of a single point-solve, or of the sweep loop as a whole,
is *not* an exception: it is reported through success flags and the
returned error trace.
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class DPSolverError(Exception):
    """Base exception carrying optional diagnostic context.

    Parameters
    ----------
    message : str
        Human-readable description of the failure.
    diagnostic_data : dict, optional
        Extra key/value pairs appended to the message, e.g. the state
        point and exogenous index at which the failure occurred.
    """

    def __init__(
        self,
        message: str,
        diagnostic_data: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.diagnostic_data: Dict[str, Any] = dict(diagnostic_data or {})

        full_message = message
        if self.diagnostic_data:
            full_message += "\nDiagnostic Information:"
            for key, value in self.diagnostic_data.items():
                full_message += f"\n   - {key}: {value}"

        super().__init__(full_message)


class SpecificationError(DPSolverError, ValueError):
    """The model specification or solver configuration is invalid."""


class InfeasibleControlError(DPSolverError):
    """No admissible control exists for a (state, exogenous-state) pair."""


class DegenerateSolutionError(DPSolverError, FloatingPointError):
    """An optimizer converged to a NaN or infinite objective value."""
