"""Route a classified subproblem to its solver family."""

from __future__ import annotations

from econ_dp.config.vfi_config import VFIOptions
from econ_dp.vfi.optim.base import SolveResult
from econ_dp.vfi.optim.continuous import solve_continuous
from econ_dp.vfi.optim.discrete import solve_discrete
from econ_dp.vfi.optim.mixed import solve_mixed
from econ_dp.vfi.subproblem import (
    ContinuousProblem,
    DiscreteProblem,
    MixedProblem,
    Subproblem,
)


def solve(subproblem: Subproblem, options: VFIOptions) -> SolveResult:
    """Maximize Q for one state point.

    The algorithm tag in *options* applies to continuous controls; the
    discrete family always uses exhaustive search.
    """
    if isinstance(subproblem, ContinuousProblem):
        return solve_continuous(subproblem, options)
    if isinstance(subproblem, DiscreteProblem):
        return solve_discrete(subproblem)
    if isinstance(subproblem, MixedProblem):
        return solve_mixed(subproblem, options)
    raise TypeError(f"Unsupported subproblem type {type(subproblem).__name__}.")
