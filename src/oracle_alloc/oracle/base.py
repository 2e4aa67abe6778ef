"""
Base class for all oracle adapters.

Every oracle adapter must:
  1. Implement ``set_allocation(values)`` to write the full allocation
     vector and force the objective to recompute before returning.
  2. Implement ``read_score()`` to return the objective's current output
     for whatever allocation was last written.
  3. Report ``num_variables`` so the optimizer can size its vectors.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Sequence

from oracle_alloc.exceptions import InvalidBudgetError


class Oracle(ABC):
    """Abstract base for black-box scoring oracles."""

    oracle_name: str = "unknown"

    def __init__(
        self,
        num_variables: int,
        variable_names: Sequence[str] | None = None,
    ):
        if num_variables < 1:
            raise InvalidBudgetError(
                f"An oracle needs at least one variable, got {num_variables}"
            )
        if variable_names is not None and len(variable_names) != num_variables:
            raise ValueError(
                f"Got {len(variable_names)} variable names for {num_variables} variables"
            )
        self.num_variables = num_variables
        self.variable_names = (
            list(variable_names)
            if variable_names is not None
            else [f"var_{i}" for i in range(num_variables)]
        )

    @abstractmethod
    def set_allocation(self, values: Sequence[int]) -> None:
        """Write the full allocation vector and recompute synchronously."""
        ...

    @abstractmethod
    def read_score(self) -> float:
        """Return the score for the last written allocation."""
        ...

    def evaluate(self, values: Sequence[int]) -> float:
        """Write ``values`` and read back the resulting score."""
        self.set_allocation(values)
        return self.read_score()
