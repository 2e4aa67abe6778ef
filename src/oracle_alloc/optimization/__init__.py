"""
Allocation search layer for Oracle-Alloc.

Greedy batched warm start followed by pairwise-transfer local search
over an integer point budget.
"""

from oracle_alloc.optimization.allocator import (
    AllocationOptimizer,
    run_optimization,
)
from oracle_alloc.optimization.greedy import (
    allocate_greedy,
    distribute_points,
    select_top_vars,
)
from oracle_alloc.optimization.rebalance import (
    RebalanceOutcome,
    optimize_by_swap,
    rebalance,
    try_zero_vars,
)
from oracle_alloc.optimization.state import OptimizationResult, RunState
from oracle_alloc.optimization.utility import measure_utilities

__all__ = [
    "AllocationOptimizer",
    "run_optimization",
    "OptimizationResult",
    "RunState",
    "measure_utilities",
    "allocate_greedy",
    "select_top_vars",
    "distribute_points",
    "rebalance",
    "optimize_by_swap",
    "try_zero_vars",
    "RebalanceOutcome",
]
