"""
Run state and result records for allocation search.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from pathlib import Path
import json

import numpy as np
import pandas as pd


@dataclass(frozen=True)
class RunState:
    """
    Allocation and oracle call counts handed from phase to phase.

    ``oracle_calls`` counts utility measurement probes only; ``probe_calls``
    counts every scored probe, including Phase 2 transfers.

    Each phase receives a state and returns a new one; the allocation
    array is copied on the way in so no two phases share it.
    """

    allocation: np.ndarray
    oracle_calls: int = 0
    probe_calls: int = 0

    def __post_init__(self):
        object.__setattr__(
            self, "allocation", np.array(self.allocation, dtype=np.int64, copy=True)
        )

    @classmethod
    def empty(cls, num_variables: int) -> "RunState":
        return cls(allocation=np.zeros(num_variables, dtype=np.int64))

    def advance(
        self,
        allocation: np.ndarray,
        oracle_calls: int = 0,
        probe_calls: int = 0,
    ) -> "RunState":
        """Next state after a phase that spent the given calls."""
        return replace(
            self,
            allocation=allocation,
            oracle_calls=self.oracle_calls + oracle_calls,
            probe_calls=self.probe_calls + probe_calls,
        )

    @property
    def total_allocated(self) -> int:
        return int(self.allocation.sum())


@dataclass(frozen=True)
class OptimizationResult:
    """
    Results from a complete allocation run.
    """

    # Cost: utility measurement probes
    oracle_calls: int

    # Scores at each phase boundary
    initial_score: float
    rough_score: float
    final_score: float

    # Phase 2 accepted moves
    improvements: int

    # Every scored probe, Phase 2 included
    probe_calls: int = 0

    allocation: tuple[int, ...] = ()
    variable_names: tuple[str, ...] = ()
    total_points: int = 0
    elapsed_seconds: float = 0.0

    # Last Phase 1 utility snapshot, per variable
    utilities: tuple[float, ...] = field(default=(), repr=False)

    @property
    def increase_pct(self) -> float:
        """Final score relative to the all-zero baseline, in percent."""
        return (self.final_score / self.initial_score - 1) * 100

    def to_dict(self) -> dict:
        return {
            "oracle_calls": self.oracle_calls,
            "probe_calls": self.probe_calls,
            "initial_score": self.initial_score,
            "rough_score": self.rough_score,
            "final_score": self.final_score,
            "increase_pct": self.increase_pct,
            "improvements": self.improvements,
            "allocation": dict(zip(self.variable_names, self.allocation)),
            "total_points": self.total_points,
            "elapsed_seconds": self.elapsed_seconds,
        }

    def to_frame(self) -> pd.DataFrame:
        """Per-variable allocation table."""
        utilities = self.utilities or (0.0,) * len(self.allocation)
        df = pd.DataFrame({
            "variable": list(self.variable_names),
            "points": list(self.allocation),
            "phase1_utility": list(utilities),
        })
        df["share_pct"] = (
            df["points"] / self.total_points * 100 if self.total_points > 0 else 0.0
        )
        return df

    def save(self, path: Path | str) -> None:
        """Save results to JSON, with the per-variable table alongside as CSV."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)

        with open(path, "w") as f:
            json.dump(self.to_dict(), f, indent=2, default=str)

        self.to_frame().to_csv(path.with_suffix(".csv"), index=False)
