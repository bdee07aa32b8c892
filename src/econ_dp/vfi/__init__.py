"""Value function iteration (VFI) for infinite-horizon dynamic programs.

This package provides:

* :class:`ProblemSpec` and :class:`ControlSpec`: model description
  (payoff, transition, bounds, constraints, statistics, discount).
* :class:`ResultStore`: value, policy, next-state and statistic arrays.
* :class:`ExpectationOperator`: conditional expectations over the
  exogenous Markov chain and their multilinear interpolants.
* :class:`VFIEngine`: generic Bellman fixed-point iterator.

Sub-packages
------------
kernels
    XLA-compiled kernels (expectations, sweep-error norms).
grids
    Tensor grids, Markov chains and interpolation utilities.
optim
    Q-function maximizers for continuous, discrete and mixed controls.
chunking
    Work partitioning and fork-join sweep execution.

Modules
-------
protocols
    Protocols of the grid, process and interpolant collaborators.
subproblem
    Per-point Q maximization problems.
policies
    Point updates: re-solve or replay the stored policy.
engine
    Generic Bellman fixed-point iterator.
"""

from econ_dp.vfi.engine import VFIEngine, VFIResult, solve_vfi
from econ_dp.vfi.expectation import ExpectationOperator, MultilinearInterpolant
from econ_dp.vfi.grids import MarkovChain, TensorGrid
from econ_dp.vfi.problem import ControlSpec, ProblemSpec
from econ_dp.vfi.result import ResultStore

__all__ = [
    "ControlSpec",
    "ExpectationOperator",
    "MarkovChain",
    "MultilinearInterpolant",
    "ProblemSpec",
    "ResultStore",
    "TensorGrid",
    "VFIEngine",
    "VFIResult",
    "solve_vfi",
]
