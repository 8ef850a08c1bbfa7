"""
Execution trace records for the NPU simulator.

Observers (renderers, tests) read two kinds of trace state:

- ExecutionLog: bounded, append-only history of what each cycle did
- AccessTrace: which addresses each memory bank touched in the latest cycle

Neither is consulted by the engine's scheduling logic.
"""

from collections import deque
from collections.abc import Iterator
from dataclasses import dataclass, field


@dataclass(frozen=True)
class LogEntry:
    """
    One execution log record.

    Attributes:
        cycle: Engine cycle counter when the entry was recorded
        pc: Program counter when the entry was recorded
        action: Short tag (LOAD, GEMM CYCLE, ERROR, ...)
        detail: Human-readable description
    """

    cycle: int
    pc: int
    action: str
    detail: str


class ExecutionLog:
    """
    Fixed-capacity ring buffer of LogEntry records.

    Appending past capacity evicts the oldest entry in O(1). Iteration
    and indexing run oldest to newest.
    """

    def __init__(self, capacity: int = 100):
        if capacity <= 0:
            raise ValueError("capacity must be positive")
        self.capacity = capacity
        self._entries: deque[LogEntry] = deque(maxlen=capacity)
        self.total_appended = 0

    def append(self, entry: LogEntry) -> None:
        self._entries.append(entry)
        self.total_appended += 1

    def record(self, cycle: int, pc: int, action: str, detail: str) -> LogEntry:
        """Build and append an entry."""
        entry = LogEntry(cycle=cycle, pc=pc, action=action, detail=detail)
        self.append(entry)
        return entry

    def clear(self) -> None:
        self._entries.clear()
        self.total_appended = 0

    def entries(self) -> list[LogEntry]:
        """Copy of the retained entries, oldest first."""
        return list(self._entries)

    @property
    def evicted(self) -> int:
        """Number of entries dropped to respect the capacity."""
        return self.total_appended - len(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[LogEntry]:
        return iter(self._entries)

    def __getitem__(self, index: int) -> LogEntry:
        return self._entries[index]

    def __repr__(self) -> str:
        return f"ExecutionLog({len(self)}/{self.capacity})"


@dataclass
class AccessTrace:
    """
    Addresses touched during the most recent cycle, per bank and direction.

    Replaced wholesale at the start of every engine cycle.
    """

    memory_reads: set[int] = field(default_factory=set)
    memory_writes: set[int] = field(default_factory=set)
    buffer_reads: set[int] = field(default_factory=set)
    buffer_writes: set[int] = field(default_factory=set)

    def is_empty(self) -> bool:
        return not (self.memory_reads or self.memory_writes or self.buffer_reads or self.buffer_writes)
