#!/usr/bin/env python3
"""
NPU Matrix Multiply Demo.

This example runs C = relu(A @ B) on the NPU simulator and compares the
cycle count against the sequential one-MAC-per-cycle baseline. It shows:

1. Problem Setup
   - Build random operands with NumPy
   - Stage them in simulated main memory

2. Program
   - LOAD A and B from main memory to the buffer
   - GEMM on the systolic array (2N-1 wavefront ticks)
   - ACTIVATE relu in place
   - STORE C back to main memory

3. Execution
   - Step the engine to completion

4. Verification
   - Compare against NumPy and against the sequential engine

Usage:
    python 01_npu_matmul.py [--size N] [--drain] [--trace] [--seed S]
"""

import argparse
import logging
import sys
from pathlib import Path

import numpy as np

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from examples.common import SimulationArgs, add_npu_args, add_simulation_args
from npusim import NpuEngine, SequentialEngine, activate, gemm, load, store


def build_operands(n: int, seed: int, dense: bool) -> tuple[np.ndarray, np.ndarray]:
    """
    Random integer-valued operands.

    Without --drain only the leading block fully covered by the 2N-1
    wavefront is populated, so the result can be checked exactly.
    """
    rng = np.random.default_rng(seed)
    m = n if dense else max(1, (2 * n + 1) // 3)
    A = np.zeros((n, n))
    B = np.zeros((n, n))
    A[:m, :m] = rng.integers(-4, 5, size=(m, m))
    B[:m, :m] = rng.integers(-4, 5, size=(m, m))
    return A, B


def main() -> int:
    parser = argparse.ArgumentParser(description="Run a GEMM program on the NPU simulator")
    add_npu_args(parser)
    add_simulation_args(parser)
    parser.add_argument("--seed", type=int, default=0, help="Random seed (default: 0)")
    args = parser.parse_args()

    sim_args = SimulationArgs.from_namespace(args)
    logging.basicConfig(level=sim_args.log_level, format="%(levelname)s %(name)s: %(message)s")

    config = sim_args.npu_config()
    n = config.array_size
    nn = config.matrix_elems

    A, B = build_operands(n, args.seed, dense=config.drain_wavefront)
    expected = np.maximum(A @ B, 0.0)

    # Memory layout: A at 0, B at nn, C stored back at 3*nn
    engine = NpuEngine(config)
    engine.memory.bulk_load(0, A.flatten())
    engine.memory.bulk_load(nn, B.flatten())

    program = [
        load(0, 0, nn),
        load(nn, nn, nn),
        gemm(0, nn, 2 * nn),
        activate("relu", 2 * nn, nn),
        store(2 * nn, 3 * nn, nn),
    ]

    print("=" * 60)
    print(f"NPU GEMM: {n}x{n} array, {config.gemm_ticks} wavefront ticks")
    print("=" * 60)
    for idx, instr in enumerate(program):
        print(f"  {idx:2d}: {instr}")

    engine.load_program(program)
    cycles = engine.run_to_completion(max_cycles=sim_args.max_cycles)
    C = np.array(engine.memory.dump(3 * nn, nn)).reshape(n, n)

    if sim_args.trace:
        print("\nExecution log:")
        for entry in engine.log:
            print(f"  [{entry.cycle:4d}] pc={entry.pc:2d} {entry.action:<11} {entry.detail}")

    baseline = SequentialEngine(log_capacity=config.log_capacity)
    baseline.load_matrices(A, B)
    seq_cycles = baseline.run_to_completion(max_cycles=sim_args.max_cycles * n * n)

    print(f"\nResult:\n{C}")
    print(f"\nNPU cycles:        {cycles}")
    print(f"Sequential cycles: {seq_cycles}")
    print(f"Speedup:           {seq_cycles / max(1, cycles):.2f}x")

    stats = engine.get_statistics()
    print(f"MACs issued:       {stats['macs_issued']}")

    if np.allclose(C, expected, atol=1e-5):
        print("\nPASS: result matches NumPy reference")
        return 0
    print("\nFAIL: result differs from NumPy reference")
    return 1


if __name__ == "__main__":
    sys.exit(main())
