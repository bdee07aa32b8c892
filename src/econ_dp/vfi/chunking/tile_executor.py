"""Fork-join execution of one sweep's point updates.

Each worker fills its own pre-sized :class:`SweepBuffers` for the units
it owns.  The join waits for every worker (hard barrier), re-raises the
first failure in partition order, and only then copies the worker
buffers into the sweep buffer, single-threaded and in partition order.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, wait
from dataclasses import dataclass
from typing import Callable, List, Optional

import numpy as np

from econ_dp.core.types import NUMPY_DTYPE
from econ_dp.vfi.chunking.tile_strategy import compute_partitions
from econ_dp.vfi.policies import PointOutcome

logger = logging.getLogger(__name__)

UnitFn = Callable[[int], PointOutcome]
ProgressFn = Callable[[int], None]


@dataclass
class SweepBuffers:
    """Flat per-unit results of a sweep (or of one worker's range).

    Attributes:
        value: ``(n,)`` updated values.
        next_state: ``(n, Dx)`` next states.
        control: ``(n, Dc)`` controls.
        statistics: ``(n, Ds)`` statistics.
        success: ``(n,)`` solver success flags.
    """

    value: np.ndarray
    next_state: np.ndarray
    control: np.ndarray
    statistics: np.ndarray
    success: np.ndarray

    @classmethod
    def allocate(
        cls, n: int, n_states: int, n_controls: int, n_statistics: int
    ) -> "SweepBuffers":
        return cls(
            value=np.full(n, np.nan, dtype=NUMPY_DTYPE),
            next_state=np.full((n, n_states), np.nan, dtype=NUMPY_DTYPE),
            control=np.full((n, n_controls), np.nan, dtype=NUMPY_DTYPE),
            statistics=np.full((n, n_statistics), np.nan, dtype=NUMPY_DTYPE),
            success=np.zeros(n, dtype=bool),
        )

    def __len__(self) -> int:
        return self.value.shape[0]

    def write(self, i: int, outcome: PointOutcome) -> None:
        self.value[i] = outcome.value
        self.next_state[i] = outcome.next_state
        self.control[i] = outcome.control
        self.statistics[i] = outcome.statistics
        self.success[i] = outcome.success

    def merge(self, offset: int, part: "SweepBuffers") -> None:
        """Copy *part* into rows ``offset .. offset + len(part) - 1``."""
        rows = slice(offset, offset + len(part))
        self.value[rows] = part.value
        self.next_state[rows] = part.next_state
        self.control[rows] = part.control
        self.statistics[rows] = part.statistics
        self.success[rows] = part.success


def _run_partition(
    units: range,
    unit_fn: UnitFn,
    n_states: int,
    n_controls: int,
    n_statistics: int,
    progress: Optional[ProgressFn] = None,
) -> SweepBuffers:
    buffers = SweepBuffers.allocate(len(units), n_states, n_controls, n_statistics)
    for i, unit in enumerate(units):
        buffers.write(i, unit_fn(unit))
        if progress is not None:
            progress(1)
    return buffers


def execute_sweep(
    n_units: int,
    unit_fn: UnitFn,
    n_states: int,
    n_controls: int,
    n_statistics: int,
    n_workers: int = 1,
    progress: Optional[ProgressFn] = None,
) -> SweepBuffers:
    """Evaluate ``unit_fn`` on every unit and gather the results.

    Parameters
    ----------
    n_units : int
        Number of work units.
    unit_fn : callable
        ``unit -> PointOutcome``; must only read shared state.
    n_states, n_controls, n_statistics : int
        Row widths Dx, Dc and Ds of the result buffers.
    n_workers : int
        Worker count.  With 1 the sweep runs on the calling thread.
    progress : callable, optional
        Called with 1 after every finished unit, from the worker thread
        that ran it; must be thread-safe when *n_workers* > 1.

    Returns
    -------
    SweepBuffers
        Results ordered by unit index, independent of *n_workers*.
    """
    partitions = compute_partitions(n_units, n_workers)
    out = SweepBuffers.allocate(n_units, n_states, n_controls, n_statistics)
    args = (n_states, n_controls, n_statistics, progress)

    if len(partitions) <= 1:
        for units in partitions:
            out.merge(units.start, _run_partition(units, unit_fn, *args))
        return out

    with ThreadPoolExecutor(max_workers=len(partitions)) as executor:
        futures = [
            executor.submit(_run_partition, units, unit_fn, *args)
            for units in partitions
        ]
        wait(futures)

    # Barrier passed: surface the first failure before any merge.
    for units, future in zip(partitions, futures):
        exc = future.exception()
        if exc is not None:
            logger.debug("Worker for units %s failed: %s", units, exc)
            raise exc

    for units, future in zip(partitions, futures):
        out.merge(units.start, future.result())
    return out
