"""
NPU engine: instruction fetch/execute over a two-level memory hierarchy.

The engine owns main memory, the on-chip buffer and a square systolic
array, and advances by exactly one cycle per step() call:

    ┌──────────────┐  LOAD/STORE  ┌──────────────┐   GEMM feed   ┌────────────────┐
    │ main memory  │ ◄──────────► │    buffer    │ ────────────► │ systolic array │
    └──────────────┘              └──────────────┘ ◄──────────── └────────────────┘
                                     ▲   ACTIVATE     results
                                     └── in place

Timing:
- LOAD, STORE, ACTIVATE, WAIT: 1 cycle each
- GEMM: config.gemm_ticks cycles (2n-1 by default), first tick issued in
  the cycle the instruction is fetched

GEMM wavefront feed (tick t, array side n):
- row r left input    = A[r][t-r] if 0 <= t-r < n else 0
- column c top input  = B[t-c][c] if 0 <= t-c < n else 0

so PE(r,c) multiplies A[r][k] by B[k][c] at tick t = r + c + k.

Example usage:
    engine = NpuEngine(NpuConfig(array_size=4))
    engine.memory.bulk_load(0, A.flatten())
    engine.memory.bulk_load(16, B.flatten())
    engine.load_program([load(0, 0, 16), load(16, 16, 16), gemm(0, 16, 32), store(32, 48, 16)])
    cycles = engine.run_to_completion()
"""

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from enum import Enum

from .config import NpuConfig
from .instruction import DEFAULT_ACTIVATION, Instruction, Opcode, apply_activation
from .memory import MemoryBank
from .systolic_array import SystolicArray
from .trace import AccessTrace, ExecutionLog

logger = logging.getLogger(__name__)


class EngineStatus(Enum):
    """Execution state of an engine."""

    IDLE = "IDLE"  # No program loaded
    READY = "READY"  # Program loaded, not yet stepped
    RUNNING = "RUNNING"  # At least one cycle executed
    FINISHED = "FINISHED"  # Program exhausted (terminal until reload)


@dataclass
class MultiCycleOp:
    """
    In-flight multi-cycle instruction.

    Attributes:
        kind: Opcode being executed
        total: Ticks the operation occupies
        operands: Resolved operand addresses (GEMM: addr_a, addr_b, addr_c)
        tick: Next tick to execute (0-based)
    """

    kind: Opcode
    total: int
    operands: tuple[int, ...]
    tick: int = 0

    @property
    def remaining(self) -> int:
        """Ticks left, including the next one."""
        return self.total - self.tick


def _span(start: int, count: int) -> str:
    return f"{start}..{start + count - 1}"


@dataclass
class NpuEngine:
    """
    Cycle-accurate NPU simulator.

    Coordinates instruction fetch, the memory banks and the systolic array.
    Every anomaly (out-of-range address, unknown opcode, unknown activation)
    degrades to a diagnostic or log entry; stepping never halts on bad input.
    """

    config: NpuConfig = field(default_factory=NpuConfig)

    # Components
    memory: MemoryBank = field(init=False)
    buffer: MemoryBank = field(init=False)
    systolic_array: SystolicArray = field(init=False)
    log: ExecutionLog = field(init=False)

    # Architectural state
    program: tuple[Instruction, ...] = ()
    pc: int = 0
    cycle_count: int = 0
    status: EngineStatus = EngineStatus.IDLE
    pending: MultiCycleOp | None = None

    # Observability (replaced every cycle)
    access: AccessTrace = field(default_factory=AccessTrace)

    # Statistics
    instructions_retired: int = 0
    gemm_ticks: int = 0
    macs_issued: int = 0
    unknown_opcodes: int = 0

    def __post_init__(self) -> None:
        """Initialize engine components."""
        self.memory = MemoryBank(self.config.memory_size, name="DRAM")
        self.buffer = MemoryBank(self.config.buffer_size, name="SRAM")
        n = self.config.array_size
        self.systolic_array = SystolicArray(n, n)
        self.log = ExecutionLog(self.config.log_capacity)
        self._tick_handlers: dict[Opcode, Callable[[MultiCycleOp], None]] = {
            Opcode.GEMM: self._step_gemm,
        }

    @property
    def array_size(self) -> int:
        return self.config.array_size

    @property
    def gemm_active(self) -> bool:
        """True while a GEMM wavefront is in flight."""
        return self.pending is not None and self.pending.kind == Opcode.GEMM

    @property
    def is_finished(self) -> bool:
        return self.status is EngineStatus.FINISHED

    # =========================================================================
    # Control
    # =========================================================================

    def load_program(self, instructions: Iterable[Instruction]) -> None:
        """
        Load a program and arm the engine.

        Clears the buffer, the array and the log. Main memory is left as
        staged so the same data can feed several programs.
        """
        self.program = tuple(instructions)
        self.pc = 0
        self.cycle_count = 0
        self.status = EngineStatus.READY
        self.pending = None
        self.access = AccessTrace()
        self.log.clear()
        self.systolic_array.reset()
        self.buffer.reset()
        self._reset_statistics()
        self._log("PROGRAM", f"Program loaded: {len(self.program)} instructions")
        logger.debug("loaded program with %d instructions", len(self.program))

    def reset(self) -> None:
        """Return to IDLE, zeroing both memory banks and the array."""
        self.memory.reset()
        self.buffer.reset()
        self.systolic_array.reset()
        self.program = ()
        self.pc = 0
        self.cycle_count = 0
        self.status = EngineStatus.IDLE
        self.pending = None
        self.access = AccessTrace()
        self.log.clear()
        self._reset_statistics()

    def step(self) -> None:
        """
        Execute one cycle.

        Once the program is exhausted (and no multi-cycle op is in flight)
        the engine moves to FINISHED; further calls do nothing.
        """
        if self.status is EngineStatus.FINISHED or (
            self.pending is None and self.pc >= len(self.program)
        ):
            self.status = EngineStatus.FINISHED
            return

        self.status = EngineStatus.RUNNING
        self.access = AccessTrace()

        if self.pending is not None:
            self._tick_handlers[self.pending.kind](self.pending)
        else:
            self._execute(self.program[self.pc])

        self.cycle_count += 1

    def run_to_completion(self, max_cycles: int = 100_000) -> int:
        """
        Step until FINISHED.

        Args:
            max_cycles: Maximum cycles before forced stop

        Returns:
            Total cycles executed
        """
        while self.status is not EngineStatus.FINISHED and self.cycle_count < max_cycles:
            self.step()
        return self.cycle_count

    # =========================================================================
    # Instruction Execution
    # =========================================================================

    def _execute(self, instr: Instruction) -> None:
        op = instr.opcode

        if op == Opcode.LOAD:
            self._exec_load(instr)
        elif op == Opcode.STORE:
            self._exec_store(instr)
        elif op == Opcode.GEMM:
            self._exec_gemm_start(instr)
        elif op == Opcode.ACTIVATE:
            self._exec_activate(instr)
        elif op == Opcode.WAIT:
            self._log("WAIT", "No-op")
            self._retire()
        else:
            self.unknown_opcodes += 1
            logger.warning("unknown opcode %r at pc=%d", op, self.pc)
            self._log("ERROR", f"Unknown instruction: {instr.mnemonic}")
            self.pc += 1

    def _exec_load(self, instr: Instruction) -> None:
        """LOAD: main memory -> buffer."""
        src, dest, size = instr.src, instr.dest, instr.size or 0
        for i in range(size):
            value = self.memory.read(src + i)
            self.buffer.write(dest + i, value)
            self.access.memory_reads.add(src + i)
            self.access.buffer_writes.add(dest + i)
        self._log("LOAD", f"DRAM[{_span(src, size)}] -> SRAM[{_span(dest, size)}]")
        self._retire()

    def _exec_store(self, instr: Instruction) -> None:
        """STORE: buffer -> main memory."""
        src, dest, size = instr.src, instr.dest, instr.size or 0
        for i in range(size):
            value = self.buffer.read(src + i)
            self.memory.write(dest + i, value)
            self.access.buffer_reads.add(src + i)
            self.access.memory_writes.add(dest + i)
        self._log("STORE", f"SRAM[{_span(src, size)}] -> DRAM[{_span(dest, size)}]")
        self._retire()

    def _exec_activate(self, instr: Instruction) -> None:
        """ACTIVATE: elementwise transform in place over a buffer range."""
        fn = instr.fn or DEFAULT_ACTIVATION
        addr = 0 if instr.addr is None else instr.addr
        size = self.config.matrix_elems if instr.size is None else instr.size

        for a in range(addr, addr + size):
            value = self.buffer.read(a)
            self.buffer.write(a, apply_activation(fn, value))
            self.access.buffer_reads.add(a)
            self.access.buffer_writes.add(a)

        self._log("ACTIVATE", f"{fn.upper()} on SRAM[{_span(addr, size)}]")
        self._retire()

    # =========================================================================
    # GEMM (multi-cycle wavefront)
    # =========================================================================

    def _exec_gemm_start(self, instr: Instruction) -> None:
        """Resolve operands, reset the array and issue the first tick."""
        nn = self.config.matrix_elems
        addr_a = 0 if instr.addr_a is None else instr.addr_a
        addr_b = nn if instr.addr_b is None else instr.addr_b
        addr_c = 2 * nn if instr.addr_c is None else instr.addr_c

        self.pending = MultiCycleOp(
            kind=Opcode.GEMM,
            total=self.config.gemm_ticks,
            operands=(addr_a, addr_b, addr_c),
        )
        self.systolic_array.reset()
        self._log(
            "GEMM START",
            f"A@{addr_a} x B@{addr_b} -> C@{addr_c} ({self.pending.total} cycles)",
        )
        self._step_gemm(self.pending)

    def _step_gemm(self, op: MultiCycleOp) -> None:
        """Feed one anti-diagonal of A and B into the array."""
        n = self.config.array_size
        t = op.tick
        addr_a, addr_b, addr_c = op.operands

        left_inputs = [0.0] * n
        top_inputs = [0.0] * n

        # Row r streams A[r][t-r] from the left
        for r in range(n):
            col = t - r
            if 0 <= col < n:
                addr = addr_a + r * n + col
                left_inputs[r] = self.buffer.read(addr)
                self.access.buffer_reads.add(addr)

        # Column c streams B[t-c][c] from the top
        for c in range(n):
            row = t - c
            if 0 <= row < n:
                addr = addr_b + row * n + c
                top_inputs[c] = self.buffer.read(addr)
                self.access.buffer_reads.add(addr)

        self.systolic_array.step(left_inputs, top_inputs)
        self.gemm_ticks += 1
        self.macs_issued += n * n

        left = ", ".join(f"{v:.1f}" for v in left_inputs)
        top = ", ".join(f"{v:.1f}" for v in top_inputs)
        self._log("GEMM CYCLE", f"Wavefront t={t}: left=[{left}] top=[{top}]")

        op.tick += 1
        if op.tick >= op.total:
            self._finish_gemm(addr_c)

    def _finish_gemm(self, addr_c: int) -> None:
        """Write the array outputs row-major to the buffer and retire."""
        n = self.config.array_size
        outputs = self.systolic_array.get_outputs()
        for r in range(n):
            for c in range(n):
                addr = addr_c + r * n + c
                self.buffer.write(addr, float(outputs[r, c]))
                self.access.buffer_writes.add(addr)

        self.pending = None
        self._log("GEMM DONE", f"Results written to SRAM[{_span(addr_c, n * n)}]")
        logger.debug("GEMM complete at cycle %d, C@%d", self.cycle_count, addr_c)
        self._retire()

    # =========================================================================
    # Helpers
    # =========================================================================

    def _retire(self) -> None:
        self.instructions_retired += 1
        self.pc += 1

    def _log(self, action: str, detail: str) -> None:
        self.log.record(self.cycle_count, self.pc, action, detail)

    def _reset_statistics(self) -> None:
        self.instructions_retired = 0
        self.gemm_ticks = 0
        self.macs_issued = 0
        self.unknown_opcodes = 0

    def get_statistics(self) -> dict:
        """
        Get execution statistics.

        Returns:
            Dictionary with execution statistics
        """
        return {
            "cycles": self.cycle_count,
            "instructions_retired": self.instructions_retired,
            "gemm_ticks": self.gemm_ticks,
            "macs_issued": self.macs_issued,
            "unknown_opcodes": self.unknown_opcodes,
            "memory_oob": self.memory.oob_reads + self.memory.oob_writes,
            "buffer_oob": self.buffer.oob_reads + self.buffer.oob_writes,
        }

    def __repr__(self) -> str:
        """String representation."""
        n = self.config.array_size
        return (
            f"NpuEngine({n}x{n}, pc={self.pc}/{len(self.program)}, "
            f"cycle={self.cycle_count}, {self.status.value})"
        )
