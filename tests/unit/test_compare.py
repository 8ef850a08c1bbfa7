"""
Unit tests for the systolic vs. sequential comparison.
"""

import numpy as np
import pytest

from npusim.compare import compare_engines
from npusim.config import NpuConfig


class TestCompareEngines:
    """Tests for compare_engines()."""

    def test_sparse_operands(self):
        """Test the 2x2-in-4x4 preset: both engines agree."""
        A = [[1, 2, 0, 0], [3, 4, 0, 0], [0, 0, 0, 0], [0, 0, 0, 0]]
        B = [[5, 6, 0, 0], [7, 8, 0, 0], [0, 0, 0, 0], [0, 0, 0, 0]]

        result = compare_engines(A, B)

        # LOAD + LOAD + GEMM(7) + STORE
        assert result.npu_cycles == 10
        assert result.sequential_cycles == 64
        assert result.speedup == pytest.approx(6.4)
        assert result.results_match()
        np.testing.assert_allclose(result.npu_result[:2, :2], [[19, 22], [43, 50]])

    def test_dense_operands_with_drain(self):
        """Test a dense 4x4 product agrees when the wavefront is drained."""
        A = [[1, 2, 3, 4], [5, 6, 7, 8], [1, 3, 5, 7], [2, 4, 6, 8]]
        B = [[8, 6, 4, 2], [7, 5, 3, 1], [1, 2, 3, 4], [5, 6, 7, 8]]

        result = compare_engines(A, B, NpuConfig(drain_wavefront=True))

        assert result.npu_cycles == 3 + 10
        assert result.results_match()
        np.testing.assert_allclose(result.sequential_result, np.array(A) @ np.array(B))

    def test_dense_operands_default_schedule_differs(self):
        """Test the 2n-1 schedule leaves the far corner incomplete."""
        A = np.ones((4, 4))
        result = compare_engines(A, A)

        assert not result.results_match()
        assert result.npu_result[0, 0] == 4.0
        assert result.npu_result[3, 3] == 1.0

    def test_rejects_wrong_size(self):
        with pytest.raises(ValueError):
            compare_engines(np.ones((3, 3)), np.ones((3, 3)))

    def test_rejects_small_banks(self):
        with pytest.raises(ValueError):
            compare_engines(np.ones((4, 4)), np.ones((4, 4)), NpuConfig(buffer_size=32))
