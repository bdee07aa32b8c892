"""Q-function maximizers for continuous, discrete and mixed controls."""

from econ_dp.vfi.optim.base import SolveResult, check_algorithm, check_finite
from econ_dp.vfi.optim.continuous import solve_continuous
from econ_dp.vfi.optim.discrete import admissible_grids, solve_discrete
from econ_dp.vfi.optim.dispatch import solve
from econ_dp.vfi.optim.line_search import alterdirect, golden_section
from econ_dp.vfi.optim.mixed import child_problem, solve_mixed

__all__ = [
    "SolveResult",
    "admissible_grids",
    "alterdirect",
    "check_algorithm",
    "check_finite",
    "child_problem",
    "golden_section",
    "solve",
    "solve_continuous",
    "solve_discrete",
    "solve_mixed",
]
