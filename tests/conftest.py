"""Shared fixtures for Oracle-Alloc tests."""

import pytest
from loguru import logger

from oracle_alloc.oracle import CallableOracle


class RecordingOracle(CallableOracle):
    """CallableOracle that remembers every write and counts reads."""

    def __init__(self, objective, num_variables, variable_names=None):
        super().__init__(objective, num_variables, variable_names)
        self.writes: list[list[int]] = []
        self.reads = 0

    def set_allocation(self, values):
        super().set_allocation(values)
        self.writes.append(self.values)

    def read_score(self):
        self.reads += 1
        return super().read_score()

    def score_of(self, values) -> float:
        """Score without touching the oracle's state."""
        return float(self.objective(list(values)))


def linear_score(v):
    return 1 + 3 * v[0] + 2 * v[1] + v[2]


def coupled_score(v):
    return 1 + 2 * v[0] + v[0] * v[1]


@pytest.fixture
def linear_oracle():
    """Separable linear objective; optimum puts everything on variable 0."""
    return RecordingOracle(linear_score, 3)


@pytest.fixture
def coupled_oracle():
    """Variable 1 is worthless until variable 0 is funded."""
    return RecordingOracle(coupled_score, 3)


@pytest.fixture
def constant_oracle():
    return RecordingOracle(lambda v: 1.0, 3)


@pytest.fixture
def log_messages():
    """Collect loguru messages emitted during a test."""
    messages = []
    handler_id = logger.add(
        lambda message: messages.append(message.record["message"]),
        level="DEBUG",
    )
    yield messages
    logger.remove(handler_id)


@pytest.fixture(autouse=True)
def reset_global_config(monkeypatch):
    """Keep set_config/load_config from leaking between tests."""
    monkeypatch.setattr("oracle_alloc.config._config", None)
