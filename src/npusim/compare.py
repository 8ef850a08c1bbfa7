"""
Systolic vs. sequential cycle comparison.

Runs the same C = A @ B on an NpuEngine (LOAD A, LOAD B, GEMM, STORE) and on
a SequentialEngine, and reports cycle counts for both.
"""

from dataclasses import dataclass

import numpy as np

from .config import NpuConfig
from .engine import NpuEngine
from .instruction import gemm, load, store
from .sequential import SequentialEngine


@dataclass
class ComparisonResult:
    """
    Outcome of one side-by-side run.

    Attributes:
        npu_cycles: Cycles for the full NPU program (including data movement)
        sequential_cycles: Cycles for the scalar triple loop (n³)
        npu_result: C read back from NPU main memory
        sequential_result: C computed by the scalar engine
    """

    npu_cycles: int
    sequential_cycles: int
    npu_result: np.ndarray
    sequential_result: np.ndarray

    @property
    def speedup(self) -> float:
        """Sequential cycles per NPU cycle."""
        return self.sequential_cycles / max(1, self.npu_cycles)

    def results_match(self, atol: float = 1e-5) -> bool:
        """Check both engines produced the same product."""
        return bool(np.allclose(self.npu_result, self.sequential_result, atol=atol))


def compare_engines(A, B, config: NpuConfig | None = None) -> ComparisonResult:
    """
    Multiply A and B on both engines.

    Memory layout (nn = n * n):
        main memory: A at 0, B at nn, C written back at 3 * nn
        buffer:      A at 0, B at nn, C at 2 * nn

    Args:
        A: Left operand, n × n with n equal to the array size
        B: Right operand, n × n
        config: NPU configuration (default: NpuConfig())

    Returns:
        ComparisonResult with cycle counts and both products

    Raises:
        ValueError: If the operands do not match the array size
    """
    if config is None:
        config = NpuConfig()
    n = config.array_size
    nn = config.matrix_elems

    a = np.asarray(A, dtype=np.float64)
    b = np.asarray(B, dtype=np.float64)
    if a.shape != (n, n) or b.shape != (n, n):
        raise ValueError(f"operands must be {n}x{n}, got {a.shape} and {b.shape}")
    if 4 * nn > config.memory_size or 3 * nn > config.buffer_size:
        raise ValueError("memory banks too small for the comparison layout")

    npu = NpuEngine(config)
    npu.memory.bulk_load(0, a.flatten())
    npu.memory.bulk_load(nn, b.flatten())
    npu.load_program(
        [
            load(0, 0, nn),
            load(nn, nn, nn),
            gemm(0, nn, 2 * nn),
            store(2 * nn, 3 * nn, nn),
        ]
    )
    npu_cycles = npu.run_to_completion()
    npu_result = np.array(npu.memory.dump(3 * nn, nn)).reshape(n, n)

    seq = SequentialEngine(log_capacity=config.log_capacity)
    seq.load_matrices(a, b)
    seq_cycles = seq.run_to_completion()

    return ComparisonResult(
        npu_cycles=npu_cycles,
        sequential_cycles=seq_cycles,
        npu_result=npu_result,
        sequential_result=seq.result,
    )
