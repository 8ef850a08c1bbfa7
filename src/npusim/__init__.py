"""
npusim - A cycle-accurate simulator of a simplified neural processing unit.

This package models an instruction-driven NPU with a two-level memory
hierarchy (main memory + on-chip buffer) driving an output-stationary
systolic array, plus a sequential one-MAC-per-cycle baseline engine.
"""

from .compare import ComparisonResult, compare_engines
from .config import (
    DEFAULT_NPU_CONFIG,
    LARGE_NPU_CONFIG,
    SMALL_NPU_CONFIG,
    NpuConfig,
)
from .engine import EngineStatus, MultiCycleOp, NpuEngine
from .instruction import (
    ACTIVATIONS,
    Instruction,
    Opcode,
    activate,
    apply_activation,
    gemm,
    load,
    store,
    wait,
)
from .memory import MemoryBank
from .sequential import SequentialEngine
from .systolic_array import ProcessingElement, SystolicArray
from .trace import AccessTrace, ExecutionLog, LogEntry

__version__ = "0.1.0"
__all__ = [
    # Engines
    "NpuEngine",
    "SequentialEngine",
    "EngineStatus",
    "MultiCycleOp",
    # Components
    "MemoryBank",
    "SystolicArray",
    "ProcessingElement",
    # Configuration
    "NpuConfig",
    "DEFAULT_NPU_CONFIG",
    "SMALL_NPU_CONFIG",
    "LARGE_NPU_CONFIG",
    # Instructions
    "Instruction",
    "Opcode",
    "ACTIVATIONS",
    "apply_activation",
    "load",
    "store",
    "gemm",
    "activate",
    "wait",
    # Trace
    "ExecutionLog",
    "LogEntry",
    "AccessTrace",
    # Comparison
    "compare_engines",
    "ComparisonResult",
    "__version__",
]
