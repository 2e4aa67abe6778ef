"""
Marginal utility measurement.

The utility of a variable is the score gained by adding one point to
it while holding every other variable fixed. Measuring all N
utilities costs N oracle calls, which dominates the run time of a
greedy round.
"""

from __future__ import annotations

import numpy as np
from loguru import logger

from oracle_alloc.oracle import Oracle


def measure_utilities(
    oracle: Oracle,
    allocation: np.ndarray,
) -> tuple[np.ndarray, int]:
    """
    Measure the gain of one extra point for every variable.

    The oracle must currently hold ``allocation``; its score is read once
    and every probe is compared against that single baseline. Negative
    gains are clamped to zero. The oracle is set back to ``allocation``
    before returning.

    Args:
        oracle: Oracle currently set to ``allocation``
        allocation: Allocation to probe around

    Returns:
        (utilities, oracle_calls) where oracle_calls == len(allocation)
    """
    allocation = np.asarray(allocation, dtype=np.int64)
    base_score = oracle.read_score()
    utilities = np.zeros(len(allocation), dtype=float)

    for i in range(len(allocation)):
        probe = allocation.copy()
        probe[i] += 1
        utilities[i] = max(0.0, oracle.evaluate(probe.tolist()) - base_score)

    oracle.set_allocation(allocation.tolist())

    logger.debug(f"Utilities at {allocation.tolist()}: {np.round(utilities, 6).tolist()}")

    return utilities, len(allocation)
