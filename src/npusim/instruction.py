"""
NPU instruction set definitions.

This module defines the opcodes and instruction format consumed by the
NpuEngine. Instructions are plain data: the engine decides how many cycles
each one takes.

Instruction Categories:
- Data movement: LOAD (main memory -> buffer), STORE (buffer -> main memory)
- Compute: GEMM (multi-cycle systolic matrix multiply)
- Elementwise: ACTIVATE (relu / sigmoid / tanh over a buffer range)
- Control: WAIT (no-op)
"""

import math
from collections.abc import Callable
from dataclasses import dataclass
from enum import IntEnum


class Opcode(IntEnum):
    """NPU instruction opcodes."""

    WAIT = 0x00  # No-op
    LOAD = 0x01  # buffer[dest..] = memory[src..]
    STORE = 0x02  # memory[dest..] = buffer[src..]
    GEMM = 0x03  # buffer[C] = buffer[A] @ buffer[B] (2n-1 cycles)
    ACTIVATE = 0x04  # buffer[addr..] = fn(buffer[addr..])


# =============================================================================
# Activation Functions
# =============================================================================


def relu(x: float) -> float:
    return max(0.0, x)


def sigmoid(x: float) -> float:
    # Split on sign so exp() never overflows
    if x >= 0:
        return 1.0 / (1.0 + math.exp(-x))
    e = math.exp(x)
    return e / (1.0 + e)


ACTIVATIONS: dict[str, Callable[[float], float]] = {
    "relu": relu,
    "sigmoid": sigmoid,
    "tanh": math.tanh,
}

DEFAULT_ACTIVATION = "relu"


def apply_activation(fn: str, x: float) -> float:
    """
    Apply a named activation function.

    Unrecognized names fall back to relu.
    """
    return ACTIVATIONS.get(fn, relu)(x)


# =============================================================================
# Instruction Format
# =============================================================================


@dataclass(frozen=True)
class Instruction:
    """
    NPU instruction.

    Which fields are meaningful depends on the opcode:

        LOAD / STORE   src, dest, size
        GEMM           addr_a, addr_b, addr_c
        ACTIVATE       fn, addr, size
        WAIT           (none)

    GEMM addresses and ACTIVATE addr/size left as None are resolved by the
    engine against the array side n (A at 0, B at n*n, C at 2*n*n; ACTIVATE
    over n*n cells starting at 0).

    Attributes:
        opcode: Operation to perform. Values outside Opcode are accepted
            here and reported by the engine at execution time.
    """

    opcode: Opcode | int = Opcode.WAIT
    src: int = 0
    dest: int = 0
    size: int | None = None
    addr_a: int | None = None
    addr_b: int | None = None
    addr_c: int | None = None
    fn: str = DEFAULT_ACTIVATION
    addr: int | None = None

    @property
    def mnemonic(self) -> str:
        """Opcode name, or a hex tag for unknown opcodes."""
        try:
            return Opcode(self.opcode).name
        except ValueError:
            return f"OP_{self.opcode}"

    def is_known(self) -> bool:
        """Check whether the opcode is part of the instruction set."""
        return self.opcode in Opcode.__members__.values()

    def is_multi_cycle(self) -> bool:
        """Check whether this instruction spans several engine cycles."""
        return self.opcode == Opcode.GEMM

    def __str__(self) -> str:
        """Format instruction as assembly-like string."""
        op = self.opcode
        if op == Opcode.WAIT:
            return "WAIT"
        elif op in (Opcode.LOAD, Opcode.STORE):
            return f"{self.mnemonic} {self.src} -> {self.dest}, {self.size}"
        elif op == Opcode.GEMM:
            a = "default" if self.addr_a is None else self.addr_a
            b = "default" if self.addr_b is None else self.addr_b
            c = "default" if self.addr_c is None else self.addr_c
            return f"GEMM A@{a} B@{b} C@{c}"
        elif op == Opcode.ACTIVATE:
            addr = "default" if self.addr is None else self.addr
            size = "default" if self.size is None else self.size
            return f"ACTIVATE {self.fn} @{addr}, {size}"
        else:
            return self.mnemonic


# =============================================================================
# Instruction Builders
# =============================================================================


def load(src: int, dest: int, size: int) -> Instruction:
    """
    Create a LOAD instruction (main memory -> buffer).

    Args:
        src: First main-memory address
        dest: First buffer address
        size: Number of cells to copy
    """
    return Instruction(opcode=Opcode.LOAD, src=src, dest=dest, size=size)


def store(src: int, dest: int, size: int) -> Instruction:
    """
    Create a STORE instruction (buffer -> main memory).

    Args:
        src: First buffer address
        dest: First main-memory address
        size: Number of cells to copy
    """
    return Instruction(opcode=Opcode.STORE, src=src, dest=dest, size=size)


def gemm(
    addr_a: int | None = None,
    addr_b: int | None = None,
    addr_c: int | None = None,
) -> Instruction:
    """Create a GEMM instruction: C = A @ B on row-major buffer operands."""
    return Instruction(opcode=Opcode.GEMM, addr_a=addr_a, addr_b=addr_b, addr_c=addr_c)


def activate(
    fn: str = DEFAULT_ACTIVATION,
    addr: int | None = None,
    size: int | None = None,
) -> Instruction:
    """Create an ACTIVATE instruction applied in place over a buffer range."""
    return Instruction(opcode=Opcode.ACTIVATE, fn=fn, addr=addr, size=size)


def wait() -> Instruction:
    """Create a WAIT (no-op) instruction."""
    return Instruction(opcode=Opcode.WAIT)
