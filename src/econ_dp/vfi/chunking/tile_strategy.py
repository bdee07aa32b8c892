"""Split a sweep's work units into contiguous per-worker ranges.

A work unit is one (grid node, exogenous state) pair, numbered
``unit = iz * grid.size + flat_node``.  Every worker owns one contiguous
range, so worker buffers never alias.
"""

from __future__ import annotations

import logging
from typing import List, Tuple

logger = logging.getLogger(__name__)


def compute_partitions(n_units: int, n_workers: int) -> List[range]:
    """Balanced contiguous partition of ``range(n_units)``.

    Sizes differ by at most one; the first ``n_units % n_workers``
    ranges get the extra unit.  Never returns empty ranges, so fewer
    than *n_workers* partitions come back when units are scarce.

    Parameters
    ----------
    n_units : int
        Total number of work units in a sweep.
    n_workers : int
        Worker count, at least 1.

    Returns
    -------
    list of range
        Ranges covering ``0 .. n_units - 1`` in order.
    """
    if n_units < 0:
        raise ValueError(f"n_units must be non-negative, got {n_units}.")
    if n_workers < 1:
        raise ValueError(f"n_workers must be at least 1, got {n_workers}.")

    n_parts = min(n_workers, n_units)
    if n_parts == 0:
        return []
    base, extra = divmod(n_units, n_parts)

    partitions = []
    start = 0
    for i in range(n_parts):
        stop = start + base + (1 if i < extra else 0)
        partitions.append(range(start, stop))
        start = stop

    logger.debug(
        "Partitioned %d units into %d ranges of ~%d.", n_units, n_parts, base
    )
    return partitions


def unit_index(unit: int, grid_size: int) -> Tuple[int, int]:
    """Map a work unit to ``(iz, flat_node)``."""
    return divmod(unit, grid_size)
