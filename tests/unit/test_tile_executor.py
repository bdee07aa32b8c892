"""Unit tests for sweep partitioning and the fork-join executor.

Uses a synthetic unit function so no model is needed.
"""

from __future__ import annotations

import threading

import numpy as np
import tensorflow as tf

tf.config.set_visible_devices([], 'GPU')

import pytest

from econ_dp.core.exceptions import InfeasibleControlError
from econ_dp.vfi.chunking import (
    SweepBuffers,
    compute_partitions,
    execute_sweep,
    unit_index,
)
from econ_dp.vfi.policies import PointOutcome


def _unit_fn(unit: int) -> PointOutcome:
    """Deterministic outcome encoding the unit index."""
    return PointOutcome(
        value=float(unit) ** 2,
        next_state=np.array([unit + 0.5]),
        control=np.array([unit, -unit], dtype=float),
        statistics=np.empty(0),
        success=unit % 3 != 0,
    )


class TestComputePartitions:
    """Tests for compute_partitions."""

    @pytest.mark.parametrize("n_units, n_workers", [
        (10, 1), (10, 3), (10, 10), (7, 4), (100, 8),
    ])
    def test_cover_in_order(self, n_units, n_workers):
        """Ranges are contiguous, ordered, disjoint and cover every unit."""
        parts = compute_partitions(n_units, n_workers)
        covered = [u for part in parts for u in part]
        assert covered == list(range(n_units))
        sizes = [len(p) for p in parts]
        assert max(sizes) - min(sizes) <= 1

    def test_more_workers_than_units(self):
        parts = compute_partitions(3, 8)
        assert len(parts) == 3
        assert all(len(p) == 1 for p in parts)

    def test_empty(self):
        assert compute_partitions(0, 4) == []

    def test_invalid(self):
        with pytest.raises(ValueError):
            compute_partitions(5, 0)

    def test_unit_index(self):
        assert unit_index(0, 5) == (0, 0)
        assert unit_index(7, 5) == (1, 2)


class TestExecuteSweep:
    """Tests for execute_sweep."""

    def test_sequential_results(self):
        out = execute_sweep(9, _unit_fn, 1, 2, 0, n_workers=1)
        np.testing.assert_array_equal(out.value, np.arange(9.0) ** 2)
        np.testing.assert_array_equal(out.control[:, 1], -np.arange(9.0))
        assert out.statistics.shape == (9, 0)
        assert out.success.sum() == 6

    @pytest.mark.parametrize("n_workers", [2, 3, 4, 16])
    def test_parallel_equals_sequential(self, n_workers):
        """Merged results do not depend on the worker count."""
        seq = execute_sweep(23, _unit_fn, 1, 2, 0, n_workers=1)
        par = execute_sweep(23, _unit_fn, 1, 2, 0, n_workers=n_workers)
        np.testing.assert_array_equal(par.value, seq.value)
        np.testing.assert_array_equal(par.next_state, seq.next_state)
        np.testing.assert_array_equal(par.control, seq.control)
        np.testing.assert_array_equal(par.success, seq.success)

    def test_first_failure_propagates(self):
        """A fatal error in one worker is re-raised after the join."""
        def fn(unit):
            if unit == 5:
                raise InfeasibleControlError("no admissible control")
            return _unit_fn(unit)

        with pytest.raises(InfeasibleControlError):
            execute_sweep(12, fn, 1, 2, 0, n_workers=3)

    @pytest.mark.parametrize("n_workers", [1, 4])
    def test_progress_counts_every_unit(self, n_workers):
        """The progress callback fires once per finished unit."""
        lock = threading.Lock()
        ticks = []

        def progress(n):
            with lock:
                ticks.append(n)

        execute_sweep(
            17, _unit_fn, 1, 2, 0, n_workers=n_workers, progress=progress
        )
        assert ticks == [1] * 17

    def test_buffers_merge(self):
        out = SweepBuffers.allocate(4, 1, 1, 0)
        part = SweepBuffers.allocate(2, 1, 1, 0)
        part.value[:] = [7.0, 8.0]
        out.merge(2, part)
        np.testing.assert_array_equal(out.value[2:], [7.0, 8.0])
        assert np.all(np.isnan(out.value[:2]))
