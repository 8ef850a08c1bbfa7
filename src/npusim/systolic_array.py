"""
Output-stationary systolic array model.

The array is a rows × cols grid of multiply-accumulate PEs. Operands enter
from the left edge (A, one value per row) and the top edge (B, one value per
column) and move one PE per tick:

                 top[0]   top[1]   top[2]
                   │        │        │
                   ▼        ▼        ▼
    left[0] ──► PE(0,0) ─► PE(0,1) ─► PE(0,2)
                   │        │        │
                   ▼        ▼        ▼
    left[1] ──► PE(1,0) ─► PE(1,1) ─► PE(1,2)
                   │        │        │
                   ▼        ▼        ▼

Each tick every PE computes

    a_in  = left[r]        if c == 0 else a(r, c-1)   (pre-tick value)
    b_in  = top[c]         if r == 0 else b(r-1, c)   (pre-tick value)
    value = value + a_in * b_in
    a, b  = a_in, b_in

All PEs update together from one pre-tick snapshot, like registers clocked
on the same edge. The model keeps two preallocated copies of each register
grid (value, a, b) and flips between them by index, so a tick never reads
state written earlier in the same tick.
"""

from collections.abc import Sequence
from dataclasses import dataclass

import numpy as np


@dataclass(frozen=True)
class ProcessingElement:
    """
    Snapshot of one PE's registers.

    Attributes:
        value: Accumulated partial sum
        a: Last horizontal input (passed east next tick)
        b: Last vertical input (passed south next tick)
    """

    value: float = 0.0
    a: float = 0.0
    b: float = 0.0


def _edge_vector(inputs: Sequence[float], length: int) -> np.ndarray:
    """Pad or truncate edge inputs to the array side, missing entries read as 0."""
    vec = np.zeros(length, dtype=np.float64)
    count = min(len(inputs), length)
    if count:
        vec[:count] = np.asarray(inputs[:count], dtype=np.float64)
    return vec


class SystolicArray:
    """
    rows × cols grid of MAC cells advancing one wavefront tick per step().

    Attributes:
        rows: Number of PE rows
        cols: Number of PE columns
        ticks: Steps taken since the last reset
    """

    def __init__(self, rows: int, cols: int):
        if rows <= 0 or cols <= 0:
            raise ValueError("array dimensions must be positive")
        self.rows = rows
        self.cols = cols
        self.ticks = 0

        # Double-buffered register grids, indexed [buffer][row, col]
        self._value = np.zeros((2, rows, cols), dtype=np.float64)
        self._a = np.zeros((2, rows, cols), dtype=np.float64)
        self._b = np.zeros((2, rows, cols), dtype=np.float64)
        self._cur = 0

    def reset(self) -> None:
        """Zero every PE."""
        self._value.fill(0.0)
        self._a.fill(0.0)
        self._b.fill(0.0)
        self._cur = 0
        self.ticks = 0

    def step(self, left_inputs: Sequence[float], top_inputs: Sequence[float]) -> None:
        """
        Advance one tick.

        Args:
            left_inputs: One value per row entering column 0
            top_inputs: One value per column entering row 0
        """
        cur = self._cur
        nxt = 1 - cur

        cur_a, nxt_a = self._a[cur], self._a[nxt]
        cur_b, nxt_b = self._b[cur], self._b[nxt]

        # Horizontal operands: edge input in column 0, west neighbor elsewhere
        nxt_a[:, 0] = _edge_vector(left_inputs, self.rows)
        nxt_a[:, 1:] = cur_a[:, :-1]

        # Vertical operands: edge input in row 0, north neighbor elsewhere
        nxt_b[0, :] = _edge_vector(top_inputs, self.cols)
        nxt_b[1:, :] = cur_b[:-1, :]

        # MAC
        np.add(self._value[cur], nxt_a * nxt_b, out=self._value[nxt])

        self._cur = nxt
        self.ticks += 1

    def get_outputs(self) -> np.ndarray:
        """Return a copy of the accumulated values as a rows × cols array."""
        return self._value[self._cur].copy()

    def get_pe(self, row: int, col: int) -> ProcessingElement:
        """Get a snapshot of the PE at (row, col)."""
        cur = self._cur
        return ProcessingElement(
            value=float(self._value[cur, row, col]),
            a=float(self._a[cur, row, col]),
            b=float(self._b[cur, row, col]),
        )

    def get_grid(self) -> list[list[ProcessingElement]]:
        """Snapshot every PE, row by row."""
        return [[self.get_pe(r, c) for c in range(self.cols)] for r in range(self.rows)]

    def dump_values(self) -> str:
        """
        Dump accumulated values for debugging.

        Returns:
            Formatted string with one line per PE row
        """
        lines = []
        for r, row in enumerate(self._value[self._cur]):
            values = [f"{v:8.2f}" for v in row]
            lines.append(f"Row {r:2d}: " + " ".join(values))
        return "\n".join(lines)

    def __repr__(self) -> str:
        """String representation."""
        return f"SystolicArray({self.rows}x{self.cols}, ticks={self.ticks})"
