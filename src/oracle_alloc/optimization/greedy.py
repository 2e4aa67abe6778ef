"""
Greedy batched warm start (Phase 1).

Points are handed out in batches. Before each batch the marginal
utilities are re-measured and the batch is split across the most
useful variables in proportion to their utility, so a variable whose
value only appears once another crosses a threshold can still catch up.

The procedure is myopic: variables that look useless at the start are
never funded here. Phase 2 exists to repair that.
"""

from __future__ import annotations

import math

import numpy as np
from loguru import logger

from oracle_alloc.config import SearchConfig
from oracle_alloc.optimization.utility import measure_utilities
from oracle_alloc.oracle import Oracle


def _round_half_up(x: float) -> int:
    return int(math.floor(x + 0.5))


def select_top_vars(utilities: np.ndarray, top_vars: int) -> list[tuple[int, float]]:
    """
    Pick up to ``top_vars`` variables with positive utility.

    Returns:
        (index, utility) pairs, highest utility first, lower index on ties
    """
    ranked = [(i, float(u)) for i, u in enumerate(utilities) if u > 0]
    ranked.sort(key=lambda item: (-item[1], item[0]))
    return ranked[:top_vars]


def distribute_points(
    allocation: np.ndarray,
    top: list[tuple[int, float]],
    batch: int,
) -> np.ndarray:
    """
    Split ``batch`` points across ``top`` in proportion to utility.

    Shares are rounded half-up and capped by what is left of the batch;
    any remainder goes to the first (highest-utility) entry. With no
    candidates the whole batch lands on variable 0.
    """
    new_allocation = np.array(allocation, dtype=np.int64, copy=True)

    if not top:
        new_allocation[0] += batch
        return new_allocation

    total_utility = sum(u for _, u in top)
    remaining = batch

    for index, utility in top:
        points = min(_round_half_up(batch * utility / total_utility), remaining)
        new_allocation[index] += points
        remaining -= points

    if remaining > 0:
        new_allocation[top[0][0]] += remaining

    return new_allocation


def allocate_greedy(
    oracle: Oracle,
    allocation: np.ndarray,
    total_points: int,
    config: SearchConfig | None = None,
) -> tuple[np.ndarray, np.ndarray, int]:
    """
    Allocate ``total_points`` on top of ``allocation`` batch by batch.

    Args:
        oracle: Oracle currently set to ``allocation``
        allocation: Starting allocation (usually all zeros)
        total_points: Points to hand out
        config: Search tunables (batch_size and top_vars are used)

    Returns:
        (allocation, last_utilities, oracle_calls). The oracle is left
        set to the returned allocation.
    """
    config = config or SearchConfig()

    current = np.array(allocation, dtype=np.int64, copy=True)
    utilities = np.zeros(len(current), dtype=float)
    oracle_calls = 0
    allocated = 0
    n_batches = 0

    while allocated < total_points:
        batch = min(config.batch_size, total_points - allocated)

        utilities, calls = measure_utilities(oracle, current)
        oracle_calls += calls

        top = select_top_vars(utilities, config.top_vars)
        if not top:
            logger.warning(
                f"No variable has positive utility at {current.tolist()}; "
                f"assigning batch of {batch} to variable 0"
            )

        current = distribute_points(current, top, batch)
        allocated += batch
        n_batches += 1

        oracle.set_allocation(current.tolist())
        logger.debug(f"Batch {n_batches} ({batch} pts): {current.tolist()}")

    logger.info(
        f"Greedy allocation placed {allocated} points in {n_batches} batches "
        f"({oracle_calls} oracle calls)"
    )

    return current, utilities, oracle_calls
