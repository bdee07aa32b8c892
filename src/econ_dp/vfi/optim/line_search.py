"""Derivative-free direct searches on boxes.

* :func:`golden_section` : golden-section search of a unimodal function
  on an interval.
* :func:`alterdirect` : coordinate-wise alternating direct search: each
  cycle minimizes along every coordinate in turn with golden-section
  search, holding the others fixed.
"""

from __future__ import annotations

import math
from typing import Callable, Tuple

import numpy as np

from econ_dp.core.types import NUMPY_DTYPE, Array

_INV_PHI = (math.sqrt(5.0) - 1.0) / 2.0


def golden_section(
    f: Callable[[float], float],
    a: float,
    b: float,
    tol: float = 1e-8,
    max_iter: int = 500,
) -> Tuple[float, float]:
    """Minimize a unimodal ``f`` on ``[a, b]``.

    About ``2 + log(2 * tol / (b - a)) / log(0.618)`` evaluations are
    needed.

    Returns
    -------
    (x_min, f_min)
    """
    if tol <= 0.0:
        raise ValueError(f"tol must be positive, got {tol}.")
    if a > b:
        raise ValueError(f"Invalid interval [{a}, {b}].")

    c = b - _INV_PHI * (b - a)
    d = a + _INV_PHI * (b - a)
    fc = f(c)
    fd = f(d)
    for _ in range(max_iter):
        if abs(b - a) <= tol:
            break
        if fc < fd:
            b, d, fd = d, c, fc
            c = b - _INV_PHI * (b - a)
            fc = f(c)
        else:
            a, c, fc = c, d, fd
            d = a + _INV_PHI * (b - a)
            fd = f(d)
    x_min = 0.5 * (a + b)
    return x_min, f(x_min)


def alterdirect(
    f: Callable[[Array], float],
    x0: Array,
    lb: Array,
    ub: Array,
    tol: float = 1e-8,
    maxiter: int = 1000,
) -> Tuple[np.ndarray, float, bool]:
    """Coordinate-wise alternating direct search on ``[lb, ub]``.

    Stops when the largest coordinate change or the change in the
    objective over a full cycle falls below *tol*.  With one coordinate
    this is a single golden-section search.

    Returns
    -------
    (x_min, f_min, converged)
    """
    x = np.array(x0, dtype=NUMPY_DTYPE)
    lb = np.asarray(lb, dtype=NUMPY_DTYPE)
    ub = np.asarray(ub, dtype=NUMPY_DTYPE)
    if x.size == 0:
        raise ValueError("x0 must have at least one element.")
    if not np.all((lb <= x) & (x <= ub)):
        raise ValueError("x0 is not inside the [lb, ub] box.")
    if tol <= 0.0:
        raise ValueError(f"tol must be positive, got {tol}.")
    if maxiter <= 0:
        raise ValueError(f"maxiter must be positive, got {maxiter}.")

    if x.size == 1:
        x_min, f_min = golden_section(
            lambda t: f(np.array([t], dtype=NUMPY_DTYPE)),
            float(lb[0]), float(ub[0]), tol=tol,
        )
        return np.array([x_min], dtype=NUMPY_DTYPE), f_min, True

    f_prev = f(x)
    f_curr = f_prev
    for _ in range(maxiter):
        x_old = x.copy()
        for j in range(x.size):
            def along(t: float, j: int = j) -> float:
                trial = x.copy()
                trial[j] = t
                return f(trial)

            x[j], _ = golden_section(along, float(lb[j]), float(ub[j]), tol=tol)
        f_curr = f(x)
        if np.max(np.abs(x - x_old)) < tol or abs(f_curr - f_prev) < tol:
            return x, f_curr, True
        f_prev = f_curr
    return x, f_curr, False
