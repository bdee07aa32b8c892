# econ_dp/config/vfi_config.py
"""
Configuration for Value Function Iteration (VFI) solvers.

This module provides the immutable option bundle threaded through every
component of a VFI run (engine, subproblem dispatch, individual
optimizers), together with a JSON loader.

Example:
    >>> from econ_dp.config.vfi_config import load_vfi_options
    >>> options = load_vfi_options("config/vfi.json", "growth")
    >>> print(f"Max sweeps: {options.maxiter}")
"""

import dataclasses
import math
import os
import logging
from dataclasses import dataclass, fields
from typing import Any, Optional

from econ_dp.core.exceptions import SpecificationError
from econ_dp.io.file_utils import load_json_file

logger = logging.getLogger(__name__)

# Algorithm tags understood by the optimization dispatcher.
ALGORITHMS = (
    "bounded",
    "golden",
    "differential_evolution",
    "alterdirect",
    "cobyla",
)
# Tags restricted to a single continuous control.
SCALAR_ALGORITHMS = ("bounded", "golden")
# Tags that honour generic nonlinear constraints g(x, z, c) <= 0.
CONSTRAINED_ALGORITHMS = ("cobyla",)

CONTINUATION_MODES = ("next_state", "current_state")


@dataclass(frozen=True)
class VFIOptions:
    """
    Options for value function iteration and the per-point optimizers.

    The same instance is passed by value into every call of a run and is
    never mutated; use :meth:`replace` to derive a modified copy.

    Attributes:
        maxiter: Maximum number of Bellman sweeps.
        tol: Convergence tolerance on the sweep error.
        pnorm: Order of the norm between successive value arrays
            (``math.inf`` for the sup-norm).
        parallel: Whether point-solves run on a worker pool.
        n_workers: Size of the worker pool (``None`` -> ``os.cpu_count()``).
        optimization: Re-solve every point (True) or replay the stored
            policy (False, policy-evaluation mode).
        algorithm: Optimizer family for continuous controls.
        continuation: Where the expected continuation value is evaluated:
            ``"next_state"`` uses x' = f(x, z, c); ``"current_state"`` uses x.
        use_current_value_guess: Resume from the value arrays already in
            the result store instead of re-initialising them.
        verbose: Report progress at INFO level (DEBUG otherwise).
        progressbar: Show a tqdm bar over the point updates of every
            sweep.  Display only; results are unaffected.
        show_every: Report every ``show_every`` sweeps.
        bounded_xatol: Argument tolerance of the bounded scalar search.
        bounded_maxiter: Iteration cap of the bounded scalar search.
        golden_tol: Bracket-width tolerance of golden-section search.
        alterdirect_tol: Stopping tolerance of alternating direct search.
        alterdirect_maxiter: Maximum coordinate cycles.
        de_tol: Relative tolerance of differential evolution.
        de_maxiter: Generations of differential evolution.
        de_popsize: Population multiplier of differential evolution.
        de_seed: Seed making differential evolution reproducible.
        cobyla_rhobeg: Initial trust-region radius of COBYLA.
        cobyla_tol: Final trust-region radius of COBYLA.
        cobyla_catol: Constraint-violation tolerance for admissibility.
        cobyla_maxiter: Function-evaluation cap of COBYLA.
    """

    maxiter: int = 500
    tol: float = 1e-5
    pnorm: float = math.inf
    parallel: bool = False
    n_workers: Optional[int] = None
    optimization: bool = True
    algorithm: str = "cobyla"
    continuation: str = "next_state"
    use_current_value_guess: bool = False
    verbose: bool = False
    progressbar: bool = False
    show_every: int = 10

    bounded_xatol: float = 1e-8
    bounded_maxiter: int = 500

    golden_tol: float = 1e-8

    alterdirect_tol: float = 1e-8
    alterdirect_maxiter: int = 1000

    de_tol: float = 1e-8
    de_maxiter: int = 1000
    de_popsize: int = 15
    de_seed: Optional[int] = 0

    cobyla_rhobeg: float = 0.1
    cobyla_tol: float = 1e-8
    cobyla_catol: float = 1e-6
    cobyla_maxiter: int = 2000

    def __post_init__(self) -> None:
        """Validate options after initialization."""
        if self.maxiter <= 0:
            raise SpecificationError(
                f"maxiter must be positive, got {self.maxiter}."
            )
        if self.tol <= 0.0:
            raise SpecificationError(f"tol must be positive, got {self.tol}.")
        if not self.pnorm >= 1.0:
            raise SpecificationError(
                f"pnorm must be >= 1 or inf, got {self.pnorm}."
            )
        if self.n_workers is not None and self.n_workers <= 0:
            raise SpecificationError(
                f"n_workers must be positive, got {self.n_workers}."
            )
        if self.algorithm not in ALGORITHMS:
            raise SpecificationError(
                f"Unknown algorithm '{self.algorithm}'.",
                {"supported": ", ".join(ALGORITHMS)},
            )
        if self.continuation not in CONTINUATION_MODES:
            raise SpecificationError(
                f"Unknown continuation mode '{self.continuation}'.",
                {"supported": ", ".join(CONTINUATION_MODES)},
            )
        if self.show_every <= 0:
            raise SpecificationError(
                f"show_every must be positive, got {self.show_every}."
            )

    @property
    def worker_count(self) -> int:
        """Number of workers actually used for a sweep."""
        if not self.parallel:
            return 1
        return self.n_workers or os.cpu_count() or 1

    def replace(self, **changes: Any) -> "VFIOptions":
        """Return a copy with the given fields replaced."""
        return dataclasses.replace(self, **changes)


def _coerce_pnorm(value: Any) -> float:
    if isinstance(value, str) and value.lower() in ("inf", "infinity"):
        return math.inf
    return float(value)


def load_vfi_options(filename: str, key: str) -> VFIOptions:
    """
    Load VFI options from a JSON file for a specific model.

    Args:
        filename: Path to the JSON configuration file.
        key: Top-level key in the JSON file naming the option section.

    Returns:
        Populated VFIOptions instance (defaults when the file or the
        section is missing).
    """
    if not os.path.exists(filename):
        logger.warning(
            f"VFI config file '{filename}' not found. Using defaults."
        )
        return VFIOptions()

    full_data = load_json_file(filename)

    if key not in full_data:
        logger.warning(f"Key '{key}' not in {filename}. Using defaults.")
        return VFIOptions()

    section = full_data[key]
    valid_keys = {f.name for f in fields(VFIOptions)}
    unknown = sorted(set(section) - valid_keys)
    if unknown:
        logger.warning(
            f"Ignoring unknown VFI options in {filename}[{key}]: {unknown}"
        )
    filtered_data = {k: v for k, v in section.items() if k in valid_keys}
    if "pnorm" in filtered_data:
        filtered_data["pnorm"] = _coerce_pnorm(filtered_data["pnorm"])

    return VFIOptions(**filtered_data)
