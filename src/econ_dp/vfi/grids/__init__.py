# econ_dp/vfi/grids/__init__.py
"""
Grid management for VFI models.

This package provides the tensor-product state grid, the finite-state
Markov chain of exogenous shocks, and the interpolation kernels used to
evaluate continuation values off the grid.
"""

from econ_dp.vfi.grids.grid_builder import GridBuilder, TensorGrid
from econ_dp.vfi.grids.markov_chain import MarkovChain
from econ_dp.vfi.grids.grid_utils import (
    # N-D multilinear interpolation (XLA)
    _interp_nd_batch_core,
    interp_nd_batch,
    # N-D multilinear interpolation (NumPy, single point)
    grid_strides,
    interp_nd_point,
    # AR(1) discretisation
    tauchen_discretization,
)

__all__ = [
    'GridBuilder',
    'TensorGrid',
    'MarkovChain',
    '_interp_nd_batch_core',
    'interp_nd_batch',
    'grid_strides',
    'interp_nd_point',
    'tauchen_discretization',
]
