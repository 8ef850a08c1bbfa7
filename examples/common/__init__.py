"""
Common utilities for npusim examples.

This module provides shared infrastructure for demonstration scripts,
currently the common CLI argument definitions.
"""

from .cli import SimulationArgs, add_npu_args, add_simulation_args

__all__ = [
    "SimulationArgs",
    "add_npu_args",
    "add_simulation_args",
]
