"""
Common CLI argument definitions for npusim examples.

This module provides shared argument groups that can be added to argparse
parsers in example scripts, ensuring consistent CLI interfaces.

Usage:
    from examples.common.cli import add_simulation_args, add_npu_args

    parser = argparse.ArgumentParser()
    add_npu_args(parser)         # Adds --size, --drain
    add_simulation_args(parser)  # Adds --trace, --max-cycles, --verbose
    args = parser.parse_args()

    config = SimulationArgs.from_namespace(args).npu_config()
"""

import logging
from argparse import ArgumentParser, Namespace
from dataclasses import dataclass

from npusim import NpuConfig


@dataclass
class SimulationArgs:
    """
    Parsed simulation arguments with computed properties.

    This provides a cleaner interface than accessing raw argparse Namespace.
    """

    size: int
    drain: bool
    trace: bool
    max_cycles: int
    verbose: bool

    @property
    def log_level(self) -> int:
        """Logging level for logging.basicConfig."""
        return logging.DEBUG if self.verbose else logging.WARNING

    def npu_config(self) -> NpuConfig:
        """Build an NpuConfig with room for three operands in the buffer."""
        nn = self.size * self.size
        return NpuConfig(
            memory_size=max(1024, 4 * nn),
            buffer_size=max(256, 3 * nn),
            array_size=self.size,
            drain_wavefront=self.drain,
        )

    @classmethod
    def from_namespace(cls, args: Namespace) -> "SimulationArgs":
        """Create from argparse Namespace with defaults for missing attrs."""
        return cls(
            size=getattr(args, "size", 4),
            drain=getattr(args, "drain", False),
            trace=getattr(args, "trace", False),
            max_cycles=getattr(args, "max_cycles", 10000),
            verbose=getattr(args, "verbose", False),
        )


def add_npu_args(parser: ArgumentParser, *, default_size: int = 4) -> None:
    """
    Add NPU configuration arguments to a parser.

    Adds these arguments:
        --size N    Systolic array side (operands are N x N)
        --drain     Run GEMM for 3N-2 ticks instead of 2N-1
    """
    group = parser.add_argument_group("NPU Configuration")

    group.add_argument(
        "--size",
        type=int,
        default=default_size,
        metavar="N",
        help=f"Systolic array side, operands are NxN (default: {default_size})",
    )

    group.add_argument(
        "--drain",
        action="store_true",
        help="Drain the wavefront (3N-2 GEMM ticks) so dense products complete",
    )


def add_simulation_args(parser: ArgumentParser, *, default_max_cycles: int = 10000) -> None:
    """
    Add simulation control arguments to a parser.

    Adds these arguments:
        --trace         Print the execution log after the run
        --max-cycles N  Maximum cycles to run before stopping
        --verbose       Enable DEBUG logging
    """
    group = parser.add_argument_group("Simulation Control")

    group.add_argument(
        "--trace",
        action="store_true",
        help="Print the execution log after the run",
    )

    group.add_argument(
        "--max-cycles",
        type=int,
        default=default_max_cycles,
        metavar="N",
        help=f"Maximum cycles to run before stopping (default: {default_max_cycles})",
    )

    group.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable DEBUG logging from the simulator",
    )
