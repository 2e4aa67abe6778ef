"""
In-process oracle adapters.

``CallableOracle`` wraps any Python function that scores a full
allocation vector, which is enough to drive the optimizer from a
script, a notebook or the CLI without a host application.
"""

from __future__ import annotations

import importlib
from typing import Callable, Sequence

from loguru import logger

from oracle_alloc.exceptions import OracleBindingError
from oracle_alloc.oracle.base import Oracle


class CallableOracle(Oracle):
    """
    Oracle backed by a plain Python scoring function.

    The function receives the allocation as a list of ints and must be
    deterministic. It is evaluated eagerly on every write, so
    ``read_score`` never triggers work of its own.

    Example:
        >>> oracle = CallableOracle(lambda v: 1 + 2 * v[0] + v[0] * v[1], 3)
        >>> oracle.evaluate([2, 1, 0])
        7.0
    """

    oracle_name = "callable"

    def __init__(
        self,
        objective: Callable[[list[int]], float],
        num_variables: int,
        variable_names: Sequence[str] | None = None,
    ):
        super().__init__(num_variables, variable_names)
        self.objective = objective
        self._values = [0] * num_variables
        self._score = float(objective(list(self._values)))

    def set_allocation(self, values: Sequence[int]) -> None:
        if len(values) != self.num_variables:
            raise ValueError(
                f"Expected {self.num_variables} values, got {len(values)}"
            )
        self._values = [int(v) for v in values]
        self._score = float(self.objective(list(self._values)))

    def read_score(self) -> float:
        return self._score

    @property
    def values(self) -> list[int]:
        """Allocation most recently written to the oracle."""
        return list(self._values)


def load_objective(target: str) -> Callable[[list[int]], float]:
    """
    Resolve a ``module:function`` reference into a scoring function.

    Args:
        target: Import path such as ``mypkg.scoring:damage``

    Returns:
        The referenced callable
    """
    module_name, sep, attr = target.partition(":")
    if not sep or not module_name or not attr:
        raise OracleBindingError(
            f"Objective must look like 'module:function', got '{target}'",
            target=target,
        )

    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise OracleBindingError(f"Cannot import '{module_name}': {e}", target=target) from e

    objective = module
    for part in attr.split("."):
        objective = getattr(objective, part, None)
        if objective is None:
            raise OracleBindingError(
                f"'{module_name}' has no attribute '{attr}'", target=target
            )

    if not callable(objective):
        raise OracleBindingError(f"'{target}' is not callable", target=target)

    logger.debug(f"Loaded objective {target}")
    return objective
