"""Tests for local search rebalancing."""

import numpy as np
import pytest

from oracle_alloc.config import SearchConfig
from oracle_alloc.optimization import optimize_by_swap, rebalance, try_zero_vars
from oracle_alloc.optimization.rebalance import create_swap_candidates, select_low_vars

from conftest import RecordingOracle


def _set(oracle, allocation):
    allocation = np.array(allocation)
    oracle.set_allocation(allocation.tolist())
    return allocation


def _committed_states(oracle, start, threshold):
    """
    Replay recorded writes and keep the ones that became the new current.

    A write is committed when it beats the current allocation by more
    than the threshold; rejected trials and restoring writes are skipped.
    """
    current = list(start)
    committed = []
    for values in oracle.writes:
        if values != current and oracle.score_of(values) > oracle.score_of(current) + threshold:
            committed.append(values)
            current = values
    return committed


class TestSwapCandidates:
    """Test candidate generation and ranking."""

    def test_ordering(self):
        """Low-utility -> high-utility transfers come first."""
        utilities = np.array([3.0, 2.0, 1.0])

        candidates = create_swap_candidates([0, 1, 2], utilities)

        assert [(c.source, c.target) for c in candidates] == [
            (2, 0), (1, 0), (2, 1), (0, 1), (1, 2), (0, 2),
        ]
        assert candidates[0].priority == pytest.approx(2.0)

    def test_only_active_pairs(self):
        """Unfunded variables never appear."""
        candidates = create_swap_candidates([0, 2], np.array([1.0, 9.0, 2.0]))

        assert {(c.source, c.target) for c in candidates} == {(0, 2), (2, 0)}


class TestOptimizeBySwap:
    """Test hill climbing among funded variables."""

    def test_moves_toward_best(self, linear_oracle):
        """Linear objective drains everything into variable 0."""
        allocation = _set(linear_oracle, [5, 3, 2])

        result, improvements, calls = optimize_by_swap(
            linear_oracle, allocation, np.array([3.0, 2.0, 1.0])
        )

        np.testing.assert_array_equal(result, [10, 0, 0])
        assert improvements == 5
        assert calls == 5
        assert linear_oracle.values == [10, 0, 0]

    @pytest.mark.parametrize(
        "threshold, expected",
        [
            (0.5, [[6, 3, 1], [7, 3, 0], [8, 2, 0], [9, 1, 0], [10, 0, 0]]),
            (1.5, [[6, 3, 1], [7, 3, 0]]),
        ],
    )
    def test_each_swap_improves(self, linear_oracle, threshold, expected):
        """Every committed transfer beats its round's baseline by the threshold."""
        config = SearchConfig(threshold=threshold)
        allocation = _set(linear_oracle, [5, 3, 2])
        linear_oracle.writes.clear()

        result, improvements, _ = optimize_by_swap(
            linear_oracle, allocation, np.array([3.0, 2.0, 1.0]), config
        )

        committed = _committed_states(linear_oracle, [5, 3, 2], threshold)

        assert committed == expected
        assert improvements == len(committed)
        assert committed[-1] == result.tolist()

        chain = [[5, 3, 2]] + committed
        for before, after in zip(chain, chain[1:]):
            moved = np.subtract(after, before)
            assert sorted(moved.tolist()) == [-1, 0, 1]
            gain = linear_oracle.score_of(after) - linear_oracle.score_of(before)
            assert gain > threshold

    def test_single_active_stops(self, coupled_oracle):
        """Fewer than two funded variables means nothing to swap."""
        allocation = _set(coupled_oracle, [10, 0, 0])
        coupled_oracle.writes.clear()

        result, improvements, calls = optimize_by_swap(
            coupled_oracle, allocation, np.array([2.0, 0.0, 0.0])
        )

        np.testing.assert_array_equal(result, [10, 0, 0])
        assert (improvements, calls) == (0, 0)
        assert coupled_oracle.writes == []

    def test_no_positive_priority_stops(self, linear_oracle):
        """Equal utilities give no promising transfer."""
        allocation = _set(linear_oracle, [3, 3, 4])

        _, improvements, calls = optimize_by_swap(
            linear_oracle, allocation, np.array([1.0, 1.0, 1.0])
        )

        assert (improvements, calls) == (0, 0)

    def test_restores_when_stuck(self):
        """Failed probes are undone before returning."""
        oracle = RecordingOracle(lambda v: 1 + 5 * v[0] + 4 * v[1], 2)
        allocation = _set(oracle, [2, 2])

        # Stale utilities point the wrong way
        result, improvements, calls = optimize_by_swap(
            oracle, allocation, np.array([0.0, 1.0]), SearchConfig(max_candidates=1)
        )

        np.testing.assert_array_equal(result, [2, 2])
        assert improvements == 0
        assert calls == 1
        assert oracle.values == [2, 2]

    def test_tries_lower_priority_candidates(self):
        """Candidates inside the window are tried even with negative priority."""
        oracle = RecordingOracle(lambda v: 1 + 5 * v[0] + 4 * v[1], 2)
        allocation = _set(oracle, [2, 2])

        result, improvements, calls = optimize_by_swap(
            oracle, allocation, np.array([0.0, 1.0]), SearchConfig(max_iterations=1)
        )

        np.testing.assert_array_equal(result, [3, 1])
        assert improvements == 1
        assert calls == 2

    def test_iteration_cap(self, linear_oracle):
        """Accepted rounds stop at max_iterations."""
        allocation = _set(linear_oracle, [5, 3, 2])

        result, improvements, _ = optimize_by_swap(
            linear_oracle,
            allocation,
            np.array([3.0, 2.0, 1.0]),
            SearchConfig(max_iterations=2),
        )

        assert improvements == 2
        np.testing.assert_array_equal(result, [7, 3, 0])
        assert result.sum() == 10


class TestTryZeroVars:
    """Test zero-allocation injection."""

    def test_select_low_vars(self):
        """Funded variables, lowest utility first, capped."""
        allocation = np.array([4, 0, 2, 1, 3])
        utilities = np.array([0.5, 0.0, 0.1, 0.9, 0.1])

        assert select_low_vars(allocation, utilities, 3) == [2, 4, 0]

    def test_coupled_injection(self, coupled_oracle):
        """Funding variable 1 unlocks the product term."""
        allocation = _set(coupled_oracle, [10, 0, 0])

        result, applied, calls = try_zero_vars(
            coupled_oracle, allocation, np.array([2.0, 0.0, 0.0])
        )

        np.testing.assert_array_equal(result, [9, 1, 0])
        assert applied == 1
        assert calls == 2
        assert coupled_oracle.values == [9, 1, 0]

    def test_picks_best_not_first(self):
        """The best gain across all pairs wins."""
        oracle = RecordingOracle(lambda v: 1 + v[0] + 2 * v[1] + 5 * v[2], 3)
        allocation = _set(oracle, [4, 0, 0])

        result, applied, _ = try_zero_vars(oracle, allocation, np.array([1.0, 0.0, 0.0]))

        np.testing.assert_array_equal(result, [3, 0, 1])
        assert applied == 1

    def test_no_improvement_unchanged(self, linear_oracle):
        """Non-improving moves leave the allocation and oracle untouched."""
        allocation = _set(linear_oracle, [10, 0, 0])

        result, applied, calls = try_zero_vars(
            linear_oracle, allocation, np.array([3.0, 2.0, 1.0])
        )

        np.testing.assert_array_equal(result, [10, 0, 0])
        assert applied == 0
        assert calls == 2
        assert linear_oracle.values == [10, 0, 0]

    def test_gain_below_threshold_rejected(self):
        """A gain that does not exceed the threshold is not applied."""
        oracle = RecordingOracle(lambda v: 1 + v[0] + 1.001 * v[1], 2)
        allocation = _set(oracle, [5, 0])

        result, applied, _ = try_zero_vars(
            oracle, allocation, np.array([1.0, 1.0]), SearchConfig(threshold=0.01)
        )

        np.testing.assert_array_equal(result, [5, 0])
        assert applied == 0

    def test_nothing_to_try(self, linear_oracle):
        """All variables funded: no probes at all."""
        allocation = _set(linear_oracle, [1, 1, 1])

        _, applied, calls = try_zero_vars(linear_oracle, allocation, np.ones(3))

        assert (applied, calls) == (0, 0)


class TestRebalance:
    """Test the full Phase 2 sequence."""

    def test_counts_combined(self, coupled_oracle):
        """Improvements and calls add up across both steps."""
        allocation = _set(coupled_oracle, [10, 0, 0])

        outcome = rebalance(coupled_oracle, allocation, np.array([2.0, 0.0, 0.0]))

        np.testing.assert_array_equal(outcome.allocation, [9, 1, 0])
        assert outcome.swap_improvements == 0
        assert outcome.zero_injections == 1
        assert outcome.improvements == 1
        assert outcome.probe_calls == 2

    def test_second_pass_is_fixed_point(self, linear_oracle):
        """Rebalancing a local optimum again finds nothing."""
        utilities = np.array([3.0, 2.0, 1.0])
        allocation = _set(linear_oracle, [5, 3, 2])

        first = rebalance(linear_oracle, allocation, utilities)
        second = rebalance(linear_oracle, first.allocation, utilities)

        assert first.improvements > 0
        assert second.improvements == 0
        np.testing.assert_array_equal(second.allocation, first.allocation)
