"""
Unit tests for the SequentialEngine baseline.

These tests verify:
1. Exactly n³ steps to FINISHED
2. Loop order: k fastest, then j, then i
3. Numeric result matches A @ B
4. Progress reporting and reset
"""

import numpy as np
import pytest

from npusim.engine import EngineStatus
from npusim.sequential import SequentialEngine


class TestSequentialEngine:
    """Test suite for SequentialEngine."""

    @pytest.fixture
    def engine(self):
        return SequentialEngine()

    def test_initial_state(self, engine):
        assert engine.status is EngineStatus.IDLE
        assert engine.progress == 0.0
        assert engine.cycle_count == 0

    def test_load_matrices(self, engine):
        """Test load_matrices arms the engine."""
        engine.load_matrices(np.eye(3), np.eye(3))

        assert engine.status is EngineStatus.READY
        assert engine.size == 3
        assert engine.total_ops == 27
        assert engine.done_ops == 0
        assert (engine.i, engine.j, engine.k) == (0, 0, 0)
        np.testing.assert_array_equal(engine.result, np.zeros((3, 3)))
        assert engine.log[0].action == "INIT"

    def test_operands_are_copied(self, engine):
        """Test later mutation of the caller's lists does not leak in."""
        A = [[1.0, 2.0], [3.0, 4.0]]
        B = [[1.0, 0.0], [0.0, 1.0]]
        engine.load_matrices(A, B)
        A[0][0] = 100.0

        engine.run_to_completion()
        np.testing.assert_array_equal(engine.result, [[1.0, 2.0], [3.0, 4.0]])

    @pytest.mark.parametrize("n", [1, 2, 3, 4, 5])
    def test_exactly_n_cubed_steps(self, engine, n):
        """Test FINISHED is reached after exactly n³ step calls."""
        engine.load_matrices(np.ones((n, n)), np.ones((n, n)))

        for _ in range(n**3 - 1):
            engine.step()
            assert engine.status is EngineStatus.RUNNING

        engine.step()
        assert engine.status is EngineStatus.FINISHED
        assert engine.cycle_count == n**3
        assert engine.progress == 1.0

        engine.step()
        assert engine.cycle_count == n**3

    def test_loop_order(self, engine):
        """Test the cursor visits (i, j, k) with k fastest-varying."""
        n = 2
        engine.load_matrices(np.ones((n, n)), np.ones((n, n)))

        visited = []
        while engine.status is not EngineStatus.FINISHED:
            visited.append((engine.i, engine.j, engine.k))
            engine.step()

        expected = [(i, j, k) for i in range(n) for j in range(n) for k in range(n)]
        assert visited == expected

    def test_active_cells(self, engine):
        """Test the three touched cells after the first MAC."""
        engine.load_matrices(np.ones((3, 3)), np.ones((3, 3)))
        engine.step()
        engine.step()

        assert engine.active_a == (0, 1)
        assert engine.active_b == (1, 0)
        assert engine.active_c == (0, 0)
        assert engine.last_accum == 2.0

    def test_result_matches_numpy(self, engine):
        """Test the completed product against numpy."""
        rng = np.random.default_rng(3)
        A = rng.uniform(-4.0, 4.0, size=(4, 4))
        B = rng.uniform(-4.0, 4.0, size=(4, 4))
        engine.load_matrices(A, B)
        cycles = engine.run_to_completion()

        assert cycles == 64
        np.testing.assert_allclose(engine.result, A @ B, atol=1e-5)
        assert engine.active_c is None
        assert engine.log[-1].action == "DONE"

    def test_progress(self, engine):
        engine.load_matrices(np.ones((2, 2)), np.ones((2, 2)))
        for _ in range(4):
            engine.step()
        assert engine.progress == 0.5

    def test_empty_operands(self, engine):
        """Test zero-sized operands finish on the first step."""
        engine.load_matrices([], [])
        assert engine.total_ops == 0
        engine.step()
        assert engine.status is EngineStatus.FINISHED
        assert engine.cycle_count == 0

    def test_rejects_bad_shapes(self, engine):
        with pytest.raises(ValueError):
            engine.load_matrices(np.ones((2, 3)), np.ones((3, 2)))
        with pytest.raises(ValueError):
            engine.load_matrices(np.ones((2, 2)), np.ones((3, 3)))

    def test_log_bounded(self, engine):
        """Test the MAC log keeps the newest 100 entries."""
        engine.load_matrices(np.ones((5, 5)), np.ones((5, 5)))
        engine.run_to_completion()

        assert len(engine.log) == 100
        assert engine.log[-1].action == "DONE"
        assert engine.log[-2].action == "MAC"

    def test_reset(self, engine):
        engine.load_matrices(np.ones((2, 2)), np.ones((2, 2)))
        engine.run_to_completion()
        engine.reset()

        assert engine.status is EngineStatus.IDLE
        assert engine.total_ops == 0
        assert engine.cycle_count == 0
        assert len(engine.log) == 0
        assert engine.result.shape == (0, 0)

    def test_independent_of_npu(self):
        """Test two baseline engines step independently."""
        first = SequentialEngine()
        second = SequentialEngine()
        first.load_matrices(np.ones((2, 2)), np.ones((2, 2)))
        second.load_matrices(np.ones((2, 2)), np.ones((2, 2)))

        first.run_to_completion()
        assert second.cycle_count == 0
        assert second.status is EngineStatus.READY
