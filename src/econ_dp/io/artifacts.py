# econ_dp/io/artifacts.py
"""
Utilities for saving and loading numerical artifacts.

This module handles persistence of VFI results (value, policy,
next-state and statistic stackings plus the grids they live on) using
NumPy's compressed format.

Example:
    >>> from econ_dp.io.artifacts import save_vfi_results, load_vfi_results
    >>> save_vfi_results(store.to_dict(), "results.npz")
    >>> arrays = load_vfi_results("results.npz")
"""

import logging
from typing import Dict, Any

import numpy as np

logger = logging.getLogger(__name__)


def save_vfi_results(results: Dict[str, Any], filename: str) -> None:
    """
    Save VFI results to a compressed NumPy file.

    Args:
        results: Dictionary of arrays, e.g. from ``ResultStore.to_dict()``.
        filename: Target file path (should end with .npz).
    """
    with open(filename, "wb") as f:
        np.savez_compressed(f, **results)
    logger.info(f"Saved VFI results to {filename}")


def load_vfi_results(filename: str) -> Dict[str, np.ndarray]:
    """
    Load VFI results from a compressed NumPy file.

    Args:
        filename: Path to the .npz file.

    Returns:
        Dictionary containing loaded arrays.
    """
    with np.load(filename) as data:
        return {key: data[key] for key in data.files}
