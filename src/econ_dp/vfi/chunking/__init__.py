"""Work partitioning and fork-join execution of VFI sweeps.

Modules
-------
tile_strategy
    Contiguous per-worker ranges over (grid node, exogenous state) units.
tile_executor
    Worker pool with per-worker buffers and an ordered single-threaded merge.
"""

from econ_dp.vfi.chunking.tile_executor import SweepBuffers, execute_sweep
from econ_dp.vfi.chunking.tile_strategy import compute_partitions, unit_index

__all__ = [
    "SweepBuffers",
    "compute_partitions",
    "execute_sweep",
    "unit_index",
]
