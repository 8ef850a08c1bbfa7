"""
Sequential (scalar) matrix multiply baseline.

Models how a traditional CPU core computes C = A @ B: one multiply-accumulate
per cycle in the classic triple loop

    for i in range(n):          # output row
        for j in range(n):      # output column
            for k in range(n):  # reduction
                C[i][j] += A[i][k] * B[k][j]

An n × n product therefore takes exactly n³ cycles, against the 2n-1 ticks
the systolic array needs with n² MACs per tick.
"""

from collections.abc import Sequence
from dataclasses import dataclass, field

import numpy as np

from .engine import EngineStatus
from .trace import ExecutionLog

Cell = tuple[int, int]


@dataclass
class SequentialEngine:
    """
    One-MAC-per-cycle reference engine.

    Attributes:
        size: Operand side length n
        status: Execution state
        cycle_count: Cycles executed
        active_a / active_b / active_c: (row, col) cells touched by the last
            MAC, None when idle or finished
        last_accum: Value of C[i][j] after the last MAC
    """

    log_capacity: int = 100

    size: int = 0
    mat_a: np.ndarray = field(init=False, repr=False, compare=False)
    mat_b: np.ndarray = field(init=False, repr=False, compare=False)
    mat_c: np.ndarray = field(init=False, repr=False, compare=False)
    log: ExecutionLog = field(init=False, repr=False)

    status: EngineStatus = EngineStatus.IDLE
    cycle_count: int = 0

    # Loop cursor, k fastest
    i: int = 0
    j: int = 0
    k: int = 0
    total_ops: int = 0
    done_ops: int = 0

    active_a: Cell | None = None
    active_b: Cell | None = None
    active_c: Cell | None = None
    last_accum: float = 0.0

    def __post_init__(self) -> None:
        self.log = ExecutionLog(self.log_capacity)
        self._clear_matrices()

    def _clear_matrices(self) -> None:
        self.mat_a = np.zeros((0, 0), dtype=np.float64)
        self.mat_b = np.zeros((0, 0), dtype=np.float64)
        self.mat_c = np.zeros((0, 0), dtype=np.float64)

    def load_matrices(self, A: Sequence[Sequence[float]], B: Sequence[Sequence[float]]) -> None:
        """
        Copy n × n operands and arm the engine.

        Args:
            A: Left operand (n × n)
            B: Right operand (n × n)

        Raises:
            ValueError: If the operands are not square matrices of equal size
        """
        a = np.array(A, dtype=np.float64)
        b = np.array(B, dtype=np.float64)
        if a.size == 0 and b.size == 0:
            a = a.reshape(0, 0)
            b = b.reshape(0, 0)
        if a.ndim != 2 or a.shape[0] != a.shape[1]:
            raise ValueError(f"A must be square, got shape {a.shape}")
        if b.shape != a.shape:
            raise ValueError(f"B shape {b.shape} does not match A shape {a.shape}")

        n = a.shape[0]
        self.size = n
        self.mat_a = a
        self.mat_b = b
        self.mat_c = np.zeros((n, n), dtype=np.float64)
        self.i = self.j = self.k = 0
        self.total_ops = n * n * n
        self.done_ops = 0
        self.cycle_count = 0
        self.status = EngineStatus.READY
        self.log.clear()
        self.active_a = self.active_b = self.active_c = None
        self.last_accum = 0.0
        self._log("INIT", f"Loaded {n}x{n} matrices. Total ops: {self.total_ops}")

    def reset(self) -> None:
        """Return to IDLE and drop the operands."""
        self.size = 0
        self._clear_matrices()
        self.status = EngineStatus.IDLE
        self.cycle_count = 0
        self.log.clear()
        self.i = self.j = self.k = 0
        self.total_ops = 0
        self.done_ops = 0
        self.active_a = self.active_b = self.active_c = None
        self.last_accum = 0.0

    def step(self) -> None:
        """Perform one multiply-accumulate."""
        if self.status is EngineStatus.FINISHED:
            return
        if self.done_ops >= self.total_ops:
            self._finish()
            return

        self.status = EngineStatus.RUNNING
        i, j, k = self.i, self.j, self.k

        a_val = float(self.mat_a[i, k])
        b_val = float(self.mat_b[k, j])
        product = a_val * b_val
        self.mat_c[i, j] += product

        self.active_a = (i, k)
        self.active_b = (k, j)
        self.active_c = (i, j)
        self.last_accum = float(self.mat_c[i, j])

        self._log(
            "MAC",
            f"C[{i}][{j}] += A[{i}][{k}]({a_val:g}) x B[{k}][{j}]({b_val:g}) = {product:g}"
            f" -> acc={self.last_accum:.2f}",
        )

        self.done_ops += 1
        self.cycle_count += 1

        # Advance k -> j -> i
        self.k += 1
        if self.k >= self.size:
            self.k = 0
            self.j += 1
            if self.j >= self.size:
                self.j = 0
                self.i += 1

        if self.done_ops >= self.total_ops:
            self._finish()

    def _finish(self) -> None:
        self.status = EngineStatus.FINISHED
        self.active_a = self.active_b = self.active_c = None
        self._log("DONE", f"Matrix multiply complete in {self.cycle_count} cycles")

    def run_to_completion(self, max_cycles: int = 1_000_000) -> int:
        """
        Step until FINISHED.

        Returns:
            Total cycles executed
        """
        while self.status is not EngineStatus.FINISHED and self.cycle_count < max_cycles:
            self.step()
        return self.cycle_count

    @property
    def progress(self) -> float:
        """Fraction of MACs completed."""
        if self.total_ops == 0:
            return 0.0
        return self.done_ops / self.total_ops

    @property
    def result(self) -> np.ndarray:
        """Copy of the (possibly partial) result matrix."""
        return self.mat_c.copy()

    def _log(self, action: str, detail: str) -> None:
        # No program counter here; the pc slot carries the MAC index
        self.log.record(self.cycle_count, self.done_ops, action, detail)

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"SequentialEngine({self.size}x{self.size}, ops={self.done_ops}/{self.total_ops}, "
            f"{self.status.value})"
        )
