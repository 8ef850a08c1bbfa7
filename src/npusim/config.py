"""
npusim Configuration Module

This module defines the configuration dataclass for the NPU simulator.
All machine parameters are specified here and propagate through the engine,
its memory banks and the systolic array.

Note: The array is square and output-stationary. Each GEMM multiplies two
array_size × array_size operands held row-major in the on-chip buffer.
"""

from dataclasses import dataclass


@dataclass
class NpuConfig:
    """
    Configuration for the NPU simulator.

    Example:
        >>> config = NpuConfig(array_size=8)
        >>> print(config.gemm_ticks)  # 15
        >>> print(config.matrix_elems)  # 64
    """

    # =========================================================================
    # Memory Hierarchy
    # =========================================================================
    memory_size: int = 1024
    """Main memory (off-chip) capacity in scalar cells."""

    buffer_size: int = 256
    """On-chip buffer capacity in scalar cells."""

    # =========================================================================
    # Systolic Array
    # =========================================================================
    array_size: int = 4
    """Side length n of the square systolic array (n × n PEs)."""

    drain_wavefront: bool = False
    """
    If True, GEMM runs 3n-2 ticks so the last operand pair reaches the
    bottom-right PE. The default 2n-1 schedule completes the products whose
    reduction index satisfies r + c + k <= 2n-2.
    """

    # =========================================================================
    # Trace
    # =========================================================================
    log_capacity: int = 100
    """Maximum number of execution log entries retained (oldest evicted)."""

    # =========================================================================
    # Computed Properties
    # =========================================================================
    @property
    def matrix_elems(self) -> int:
        """Elements in one n × n operand."""
        return self.array_size * self.array_size

    @property
    def total_pes(self) -> int:
        """Total number of processing elements."""
        return self.array_size * self.array_size

    @property
    def gemm_ticks(self) -> int:
        """Number of wavefront ticks one GEMM instruction occupies."""
        n = self.array_size
        return 3 * n - 2 if self.drain_wavefront else 2 * n - 1

    def __post_init__(self):
        """Validate configuration parameters."""
        if self.memory_size <= 0:
            raise ValueError("memory_size must be positive")
        if self.buffer_size <= 0:
            raise ValueError("buffer_size must be positive")
        if self.array_size <= 0:
            raise ValueError("array_size must be positive")
        if self.log_capacity <= 0:
            raise ValueError("log_capacity must be positive")


# Pre-defined configurations
DEFAULT_NPU_CONFIG = NpuConfig()
"""Default configuration: 4x4 array, 1024-cell memory, 256-cell buffer."""

SMALL_NPU_CONFIG = NpuConfig(
    memory_size=256,
    buffer_size=64,
    array_size=2,
)
"""Small configuration for quick traces."""

LARGE_NPU_CONFIG = NpuConfig(
    memory_size=4096,
    buffer_size=1024,
    array_size=8,
)
"""Large configuration: 8x8 array with room for three operands in the buffer."""
