"""XLA-compiled numerical kernels for VFI solvers.

Each module contains pure numerical functions decorated with
``@tf.function(jit_compile=True)``.  Corresponding ``_core`` variants
(undecorated) are provided for nesting inside other XLA scopes.

Modules
-------
bellman_kernels
    Conditional expectations over the Markov chain and sweep-error norms.
"""

from econ_dp.vfi.kernels.bellman_kernels import (
    compute_ev,
    compute_ev_core,
    compute_ev_row,
    compute_ev_row_core,
    sweep_error,
    sweep_error_core,
)

__all__ = [
    "compute_ev",
    "compute_ev_core",
    "compute_ev_row",
    "compute_ev_row_core",
    "sweep_error",
    "sweep_error_core",
]
