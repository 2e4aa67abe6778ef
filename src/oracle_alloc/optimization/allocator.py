"""
Point allocation optimizer.

Sequences a run end to end: reset the oracle to the all-zero
allocation, greedy warm start (Phase 1), local search rebalancing
(Phase 2), and collects the scores and oracle call count of each stage.
"""

from __future__ import annotations

import time
import numbers

from loguru import logger

from oracle_alloc.config import SearchConfig
from oracle_alloc.exceptions import InvalidBudgetError, NonPositiveBaselineError
from oracle_alloc.optimization.greedy import allocate_greedy
from oracle_alloc.optimization.rebalance import rebalance
from oracle_alloc.optimization.state import OptimizationResult, RunState
from oracle_alloc.oracle import Oracle


class AllocationOptimizer:
    """
    Allocate an integer point budget to maximize a black-box oracle.

    Example:
        >>> oracle = CallableOracle(lambda v: 1 + 2 * v[0] + v[0] * v[1], 3)
        >>> optimizer = AllocationOptimizer(oracle)
        >>> result = optimizer.run(total_points=10)
        >>> result.allocation
        (9, 1, 0)
    """

    def __init__(
        self,
        oracle: Oracle,
        config: SearchConfig | None = None,
    ):
        """
        Initialize optimizer.

        Args:
            oracle: Adapter to the objective being maximized
            config: Search tunables; defaults when omitted
        """
        self.oracle = oracle
        self.config = config or SearchConfig()

    def _validate(self, total_points: int) -> None:
        if self.oracle.num_variables < 1:
            raise InvalidBudgetError("Oracle exposes no variables to allocate")

        if (
            isinstance(total_points, bool)
            or not isinstance(total_points, numbers.Integral)
            or total_points <= 0
        ):
            raise InvalidBudgetError(
                f"total_points must be a positive integer, got {total_points!r}",
                total_points=total_points,
            )

    def run(self, total_points: int) -> OptimizationResult:
        """
        Allocate ``total_points`` across the oracle's variables.

        Args:
            total_points: Size of the point budget

        Returns:
            OptimizationResult with phase scores and the final allocation

        Raises:
            InvalidBudgetError: budget is not a positive integer
            NonPositiveBaselineError: the all-zero allocation scores <= 0
        """
        self._validate(total_points)
        total_points = int(total_points)
        started = time.perf_counter()

        state = RunState.empty(self.oracle.num_variables)
        self.oracle.set_allocation(state.allocation.tolist())
        initial_score = self.oracle.read_score()

        if initial_score <= 0:
            raise NonPositiveBaselineError(initial_score)

        logger.info(
            f"Allocating {total_points} points across {self.oracle.num_variables} "
            f"variables of {self.oracle.oracle_name} oracle (initial score {initial_score:.6g})"
        )

        # Phase 1
        allocation, utilities, calls = allocate_greedy(
            self.oracle, state.allocation, total_points, self.config
        )
        state = state.advance(allocation, oracle_calls=calls, probe_calls=calls)
        rough_score = self.oracle.read_score()
        logger.debug(f"Phase 1 placed {state.total_allocated} points, score {rough_score:.6g}")

        # Phase 2
        outcome = rebalance(self.oracle, state.allocation, utilities, self.config)
        state = state.advance(outcome.allocation, probe_calls=outcome.probe_calls)
        final_score = self.oracle.read_score()

        result = OptimizationResult(
            oracle_calls=state.oracle_calls,
            probe_calls=state.probe_calls,
            initial_score=initial_score,
            rough_score=rough_score,
            final_score=final_score,
            improvements=outcome.improvements,
            allocation=tuple(int(v) for v in state.allocation),
            variable_names=tuple(self.oracle.variable_names),
            total_points=total_points,
            elapsed_seconds=time.perf_counter() - started,
            utilities=tuple(float(u) for u in utilities),
        )

        logger.info(
            f"Optimization complete. Score {initial_score:.6g} -> {rough_score:.6g} "
            f"-> {final_score:.6g} (+{result.increase_pct:.2f}%), "
            f"{result.improvements} improvements, {result.oracle_calls} oracle calls "
            f"({result.probe_calls} probes in total)"
        )

        return result


def run_optimization(
    oracle: Oracle,
    total_points: int,
    config: SearchConfig | None = None,
) -> OptimizationResult:
    """
    Convenience function for a single allocation run.

    Args:
        oracle: Adapter to the objective being maximized
        total_points: Size of the point budget
        config: Search tunables

    Returns:
        OptimizationResult
    """
    return AllocationOptimizer(oracle, config).run(total_points)
