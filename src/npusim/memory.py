"""
Memory bank model for the NPU simulator.

Both levels of the memory hierarchy use the same bank model:

    ┌──────────────────────────┐  LOAD   ┌──────────────────────┐
    │  MAIN MEMORY (off-chip)  │ ──────► │  BUFFER (on-chip)    │
    │  1024 cells by default   │ ◄────── │  256 cells by default│
    └──────────────────────────┘  STORE  └──────────────────────┘

Each cell holds one scalar. Addresses are cell indices, valid in
[0, capacity). Out-of-range accesses never raise: reads return 0.0 and
writes are dropped, and the fault is reported on the module logger and
counted on the bank.
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field

import numpy as np

logger = logging.getLogger(__name__)


@dataclass
class MemoryBank:
    """
    Bounds-checked addressable scalar store.

    Attributes:
        capacity: Number of scalar cells
        name: Label used in diagnostics (e.g. "DRAM", "SRAM")
        data: Backing float64 array
        oob_reads: Out-of-range reads seen since construction
        oob_writes: Out-of-range writes seen since construction
    """

    capacity: int
    name: str = "MEM"

    data: np.ndarray = field(init=False, repr=False, compare=False)

    # Diagnostics
    oob_reads: int = 0
    oob_writes: int = 0

    def __post_init__(self) -> None:
        """Allocate zeroed storage."""
        if self.capacity <= 0:
            raise ValueError("capacity must be positive")
        self.data = np.zeros(self.capacity, dtype=np.float64)

    def in_range(self, addr: int) -> bool:
        """Check whether an address is valid for this bank."""
        return 0 <= addr < self.capacity

    def read(self, addr: int) -> float:
        """
        Read one cell.

        Args:
            addr: Cell address

        Returns:
            Cell value, or 0.0 if the address is out of range
        """
        if not self.in_range(addr):
            self.oob_reads += 1
            logger.warning("%s read out of bounds: %d (capacity %d)", self.name, addr, self.capacity)
            return 0.0
        return float(self.data[addr])

    def write(self, addr: int, value: float) -> None:
        """
        Write one cell. Out-of-range writes are dropped.

        Args:
            addr: Cell address
            value: Scalar to store
        """
        if not self.in_range(addr):
            self.oob_writes += 1
            logger.warning(
                "%s write out of bounds: %d (capacity %d)", self.name, addr, self.capacity
            )
            return
        self.data[addr] = value

    def bulk_load(self, offset: int, values: Iterable[float]) -> None:
        """
        Write consecutive cells starting at offset.

        Each value goes through write(), so cells past either end of the
        bank are dropped individually while in-range cells are still stored.

        Args:
            offset: Address of the first value
            values: Scalars to store
        """
        for i, value in enumerate(values):
            self.write(offset + i, value)

    def dump(self, offset: int = 0, count: int | None = None) -> list[float]:
        """
        Inspect a range of cells without raising diagnostics.

        Cells outside the bank read as 0.0.
        """
        if count is None:
            count = self.capacity - offset
        return [
            float(self.data[addr]) if self.in_range(addr) else 0.0
            for addr in range(offset, offset + count)
        ]

    def reset(self) -> None:
        """Zero every cell."""
        self.data.fill(0.0)

    def __len__(self) -> int:
        return self.capacity

    def __repr__(self) -> str:
        """String representation."""
        return f"MemoryBank({self.name}, capacity={self.capacity})"
