"""Value function iteration driver.

:class:`VFIEngine` iterates the Bellman operator of a
:class:`~econ_dp.vfi.problem.ProblemSpec` on the arrays of a
:class:`~econ_dp.vfi.result.ResultStore` until the sweep error drops
below tolerance or the sweep limit is reached.  It is agnostic to the
economic model being solved.

Each sweep is Gauss-Jacobi: the expectation interpolants are built from
the sweep-(t-1) values before any point update, every point update
writes into fresh sweep buffers, and the live arrays are replaced only
after all workers have joined.

Example::

    >>> store = ResultStore(problem)
    >>> result = VFIEngine(problem, store, VFIOptions(tol=1e-6)).run()
    >>> result.converged, store.V.shape
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

import numpy as np
from tqdm import tqdm

from econ_dp.config.vfi_config import VFIOptions
from econ_dp.core.types import NUMPY_DTYPE
from econ_dp.vfi.chunking import SweepBuffers, execute_sweep, unit_index
from econ_dp.vfi.expectation import ExpectationOperator, MultilinearInterpolant
from econ_dp.vfi.kernels import sweep_error
from econ_dp.vfi.optim.base import check_algorithm
from econ_dp.vfi.policies import PointOutcome, replay_point, solve_point
from econ_dp.vfi.problem import SHAPE_MIXED, ProblemSpec
from econ_dp.vfi.result import ResultStore, ValueInitializer

logger = logging.getLogger(__name__)

INITIALIZING = "INITIALIZING"
ITERATING = "ITERATING"
CONVERGED = "CONVERGED"
EXHAUSTED = "EXHAUSTED"


@dataclass
class VFIResult:
    """Outcome of a VFI run.

    Attributes:
        status: ``"CONVERGED"`` or ``"EXHAUSTED"``.
        iterations: Number of sweeps performed.
        error_trace: Sweep error after every sweep.
        success_share_trace: Share of point updates reporting success,
            after every sweep.
        elapsed: Wall-clock seconds spent in the sweep loop.
    """

    status: str
    iterations: int
    error_trace: List[float] = field(default_factory=list)
    success_share_trace: List[float] = field(default_factory=list)
    elapsed: float = 0.0

    @property
    def converged(self) -> bool:
        return self.status == CONVERGED

    @property
    def final_error(self) -> float:
        return self.error_trace[-1] if self.error_trace else float("nan")


class VFIEngine:
    """Fixed-point iterator for infinite-horizon Bellman equations.

    Iterates :math:`V_{t+1} = T(V_t)` until
    :math:`\\max_z \\|V_{t+1}(\\cdot, z) - V_t(\\cdot, z)\\|_p < \\text{tol}`.

    Parameters
    ----------
    problem : ProblemSpec
        The model.
    store : ResultStore
        Arrays updated in place; after :meth:`run` they hold the last
        iterate.
    options : VFIOptions, optional
        Iteration settings, fixed for the whole run.

    Raises
    ------
    SpecificationError
        If the algorithm does not fit the problem shape.
    """

    def __init__(
        self,
        problem: ProblemSpec,
        store: ResultStore,
        options: Optional[VFIOptions] = None,
    ) -> None:
        self.problem = problem
        self.store = store
        self.options = options if options is not None else VFIOptions()
        self.state = INITIALIZING
        self.expectation = ExpectationOperator(problem)

        controls = problem.controls
        self._constraint_warning = check_algorithm(
            problem.shape,
            len(controls.continuous_indices),
            problem.n_constraints,
            self.options.algorithm,
        )
        self._points = problem.grid.points()
        self._states = np.asarray(problem.process.states, dtype=NUMPY_DTYPE)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def run(self, v0: ValueInitializer = 0.0) -> VFIResult:
        """Iterate until convergence or ``options.maxiter`` sweeps.

        Parameters
        ----------
        v0 : float or callable
            Initial value guess, ignored with
            ``options.use_current_value_guess``.

        Returns
        -------
        VFIResult
            Status and per-sweep diagnostics.  Exhausting the sweep
            limit is not an error.
        """
        opts = self.options
        self.state = INITIALIZING
        if not opts.use_current_value_guess:
            self.store.initialize_value(v0)
        if self._constraint_warning is not None and opts.optimization:
            logger.warning(self._constraint_warning)
        self._log_header()

        result = VFIResult(status=ITERATING, iterations=0)
        self.state = ITERATING
        start = time.perf_counter()
        for t in range(1, opts.maxiter + 1):
            buffers = self.sweep()
            v_new = buffers.value.reshape(self.store.V.shape)
            error = float(sweep_error(v_new, self.store.V, opts.pnorm))
            share = float(np.mean(buffers.success)) if len(buffers) else 1.0

            self._commit(buffers)
            result.iterations = t
            result.error_trace.append(error)
            result.success_share_trace.append(share)

            if t % opts.show_every == 0 or t == 1:
                self._log_progress(t, error, share, time.perf_counter() - start)

            if error < opts.tol:
                self.state = CONVERGED
                break
        else:
            self.state = EXHAUSTED

        result.status = self.state
        result.elapsed = time.perf_counter() - start
        self._log_footer(result)
        return result

    def sweep(self) -> SweepBuffers:
        """One application of the Bellman operator to the live values.

        Returns fresh buffers ordered by work unit; the store is not
        modified.
        """
        interpolants = self.expectation.build(self.store.V)
        n_units = self.store.n_exogenous * self.problem.grid.size

        def unit_fn(unit: int) -> PointOutcome:
            return self.update_point(unit, interpolants)

        with tqdm(
            total=n_units,
            desc="Bellman sweep",
            unit="point",
            leave=False,
            disable=not self.options.progressbar,
        ) as pbar:
            lock = threading.Lock()

            def advance(n: int) -> None:
                with lock:
                    pbar.update(n)

            return execute_sweep(
                n_units,
                unit_fn,
                self.problem.n_states,
                self.problem.n_controls,
                self.problem.n_statistics,
                n_workers=self.options.worker_count,
                progress=advance if self.options.progressbar else None,
            )

    def update_point(
        self, unit: int, interpolants: List[MultilinearInterpolant]
    ) -> PointOutcome:
        """Solve or replay the Bellman update of one work unit."""
        iz, flat = unit_index(unit, self.problem.grid.size)
        x = self._points[flat]
        z = self._states[iz]
        if self.options.optimization:
            return solve_point(self.problem, x, z, interpolants[iz], self.options)
        c = self.store.C[(iz, slice(None)) + self.problem.grid.unravel(flat)]
        return replay_point(
            self.problem, x, z, c, interpolants[iz], self.options.continuation
        )

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _commit(self, buffers: SweepBuffers) -> None:
        """Move a sweep's results into the live arrays (single writer)."""
        store = self.store
        nz = store.n_exogenous
        grid_shape = store.grid_shape

        def stacked(rows: np.ndarray) -> np.ndarray:
            # (NZ * size, k) -> (NZ, k, *grid)
            k = rows.shape[1]
            return np.moveaxis(rows.reshape((nz,) + grid_shape + (k,)), -1, 1)

        store.V[...] = buffers.value.reshape(store.V.shape)
        store.X_next[...] = stacked(buffers.next_state)
        store.C[...] = stacked(buffers.control)
        store.S[...] = stacked(buffers.statistics)

    def _report(self, msg: str, *args) -> None:
        level = logging.INFO if self.options.verbose else logging.DEBUG
        logger.log(level, msg, *args)

    def _log_header(self) -> None:
        p = self.problem
        shape = "mixed (MINLP)" if p.shape == SHAPE_MIXED else p.shape
        self._report(
            "VFI: %s controls; Dx=%d Dz=%d Dc=%d Dg=%d Ds=%d; NZ=%d; "
            "%d grid nodes; %d worker(s); %s.",
            shape, p.n_states, p.n_shocks, p.n_controls, p.n_constraints,
            p.n_statistics, p.n_exogenous, p.grid.size,
            self.options.worker_count,
            self.options.algorithm if self.options.optimization
            else "policy replay",
        )

    def _log_progress(
        self, t: int, error: float, share: float, elapsed: float
    ) -> None:
        per_sweep = elapsed / t
        remaining = per_sweep * (self.options.maxiter - t)
        self._report(
            "Sweep %d/%d: error=%.3e (tol=%.1e), elapsed %.2fs, "
            "%.3fs/sweep, <= %.2fs left, %.1f%% points converged.",
            t, self.options.maxiter, error, self.options.tol, elapsed,
            per_sweep, remaining, 100.0 * share,
        )

    def _log_footer(self, result: VFIResult) -> None:
        if result.converged:
            self._report(
                "VFI converged in %d sweeps (error=%.3e, %.2fs).",
                result.iterations, result.final_error, result.elapsed,
            )
        else:
            logger.warning(
                "VFI NOT converged after %d sweeps (error=%.3e, tol=%.1e).",
                result.iterations, result.final_error, self.options.tol,
            )


def solve_vfi(
    problem: ProblemSpec,
    options: Optional[VFIOptions] = None,
    v0: ValueInitializer = 0.0,
    store: Optional[ResultStore] = None,
) -> Tuple[ResultStore, VFIResult]:
    """Allocate (or reuse) a ResultStore and run VFI on it.

    Returns
    -------
    (ResultStore, VFIResult)
    """
    if store is None:
        store = ResultStore(problem, v0)
    result = VFIEngine(problem, store, options).run(v0)
    return store, result
