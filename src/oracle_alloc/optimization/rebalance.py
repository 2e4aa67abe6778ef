"""
Local search rebalancing (Phase 2).

Refines the greedy allocation with one-point transfers, in two steps:

  1. ``optimize_by_swap`` moves points between variables that are already
     funded, trying the transfers the Phase 1 utilities rank highest and
     accepting the first one that beats the current score.
  2. ``try_zero_vars`` checks whether a variable Phase 1 never funded is
     worth one point taken from a low-utility funded variable, keeping
     the best such move across all pairs.

Swap optimization runs first so zero-allocation variables are judged
against an allocation that is already locally tuned.

Every probe is either accepted or undone before the next decision, so
the oracle always ends a step holding the allocation that was returned.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
from loguru import logger

from oracle_alloc.config import SearchConfig
from oracle_alloc.oracle import Oracle


@dataclass(frozen=True)
class SwapCandidate:
    """A one-point transfer from ``source`` to ``target``."""

    source: int
    target: int
    priority: float

    def apply(self, allocation: np.ndarray) -> np.ndarray:
        moved = allocation.copy()
        moved[self.source] -= 1
        moved[self.target] += 1
        return moved


@dataclass(frozen=True)
class RebalanceOutcome:
    """What Phase 2 did to the allocation."""

    allocation: np.ndarray
    improvements: int
    probe_calls: int
    swap_improvements: int = 0
    zero_injections: int = 0


def create_swap_candidates(
    active: list[int],
    utilities: np.ndarray,
) -> list[SwapCandidate]:
    """
    Every ordered pair of distinct active variables, best priority first.

    Priority is ``utilities[target] - utilities[source]``; the sort is
    stable so equal priorities keep generation order.
    """
    candidates = [
        SwapCandidate(source, target, float(utilities[target] - utilities[source]))
        for source in active
        for target in active
        if source != target
    ]
    candidates.sort(key=lambda c: -c.priority)
    return candidates


def _try_candidates(
    oracle: Oracle,
    allocation: np.ndarray,
    candidates: list[SwapCandidate],
    config: SearchConfig,
) -> tuple[np.ndarray | None, int]:
    """Accept the first candidate that beats the baseline, or restore."""
    baseline = oracle.read_score()
    probe_calls = 0

    for candidate in candidates[: config.max_candidates]:
        trial = candidate.apply(allocation)
        score = oracle.evaluate(trial.tolist())
        probe_calls += 1

        if score > baseline + config.threshold:
            logger.debug(
                f"Swap {candidate.source}->{candidate.target} accepted: "
                f"{baseline:.6g} -> {score:.6g}"
            )
            return trial, probe_calls

    oracle.set_allocation(allocation.tolist())
    return None, probe_calls


def optimize_by_swap(
    oracle: Oracle,
    allocation: np.ndarray,
    utilities: np.ndarray,
    config: SearchConfig | None = None,
) -> tuple[np.ndarray, int, int]:
    """
    Hill-climb with one-point transfers among funded variables.

    The utilities only rank candidates; acceptance is always decided by
    the oracle. Stops when fewer than two variables are funded, when no
    candidate has positive priority, when none of the top
    ``max_candidates`` improves on the current score, or after
    ``max_iterations`` accepted rounds.

    Args:
        oracle: Oracle currently set to ``allocation``
        allocation: Allocation to improve
        utilities: Phase 1 utility snapshot used for ranking
        config: Search tunables

    Returns:
        (allocation, improvements, probe_calls)
    """
    config = config or SearchConfig()

    current = np.array(allocation, dtype=np.int64, copy=True)
    improvements = 0
    probe_calls = 0

    for _ in range(config.max_iterations):
        active = np.flatnonzero(current > 0).tolist()
        if len(active) < 2:
            break

        candidates = create_swap_candidates(active, utilities)
        if candidates[0].priority <= 0:
            break

        accepted, calls = _try_candidates(oracle, current, candidates, config)
        probe_calls += calls
        if accepted is None:
            break

        current = accepted
        improvements += 1

    return current, improvements, probe_calls


def select_low_vars(
    allocation: np.ndarray,
    utilities: np.ndarray,
    top_vars: int,
) -> list[int]:
    """Funded variables with the lowest utility, at most ``top_vars``."""
    funded = np.flatnonzero(allocation > 0)
    order = np.argsort(utilities[funded], kind="stable")
    return funded[order][:top_vars].tolist()


def try_zero_vars(
    oracle: Oracle,
    allocation: np.ndarray,
    utilities: np.ndarray,
    config: SearchConfig | None = None,
) -> tuple[np.ndarray, int, int]:
    """
    Try funding one unallocated variable from a low-utility donor.

    Every (zero, donor) pair is evaluated and the single best gain is
    kept. The move is committed only if that gain exceeds the threshold.

    Returns:
        (allocation, improvement_applied, probe_calls) with
        improvement_applied in {0, 1}
    """
    config = config or SearchConfig()

    current = np.array(allocation, dtype=np.int64, copy=True)
    zero_vars = np.flatnonzero(current == 0).tolist()
    low_vars = select_low_vars(current, np.asarray(utilities, dtype=float), config.top_vars)

    if not zero_vars or not low_vars:
        return current, 0, 0

    oracle.set_allocation(current.tolist())
    baseline = oracle.read_score()

    best: SwapCandidate | None = None
    best_gain = 0.0
    probe_calls = 0

    for zero in zero_vars:
        for donor in low_vars:
            move = SwapCandidate(donor, zero, 0.0)
            gain = oracle.evaluate(move.apply(current).tolist()) - baseline
            probe_calls += 1

            if gain > best_gain:
                best_gain = gain
                best = move

    if best is not None and best_gain > config.threshold:
        current = best.apply(current)
        oracle.set_allocation(current.tolist())
        logger.debug(
            f"Injected point into variable {best.target} from {best.source} "
            f"(+{best_gain:.6g})"
        )
        return current, 1, probe_calls

    oracle.set_allocation(current.tolist())
    return current, 0, probe_calls


def rebalance(
    oracle: Oracle,
    allocation: np.ndarray,
    utilities: np.ndarray,
    config: SearchConfig | None = None,
) -> RebalanceOutcome:
    """
    Run swap optimization, then one round of zero-variable injection.

    Args:
        oracle: Oracle currently set to ``allocation``
        allocation: Phase 1 allocation
        utilities: Phase 1 utility snapshot (read only)
        config: Search tunables

    Returns:
        RebalanceOutcome with the refined allocation
    """
    config = config or SearchConfig()
    utilities = np.asarray(utilities, dtype=float)

    swapped, swap_improvements, swap_calls = optimize_by_swap(
        oracle, allocation, utilities, config
    )
    injected, zero_injections, zero_calls = try_zero_vars(
        oracle, swapped, utilities, config
    )

    logger.info(
        f"Rebalance: {swap_improvements} swaps, {zero_injections} zero injections "
        f"({swap_calls + zero_calls} probe calls)"
    )

    return RebalanceOutcome(
        allocation=injected,
        improvements=swap_improvements + zero_injections,
        probe_calls=swap_calls + zero_calls,
        swap_improvements=swap_improvements,
        zero_injections=zero_injections,
    )
