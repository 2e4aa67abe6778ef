"""
Configuration management for Oracle-Alloc.

Centralised configuration with YAML loading and sensible defaults.
The search section carries the five tunables that bound how many
oracle calls a run can make.
"""

from __future__ import annotations

from pathlib import Path

import yaml
from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Section configs
# ---------------------------------------------------------------------------

class SearchConfig(BaseModel):
    """Allocation search tunables."""

    batch_size: int = Field(
        default=10, gt=0, description="Points allocated per greedy round"
    )
    top_vars: int = Field(
        default=3, gt=0, description="Variables sharing a batch / donor candidates for zero injection"
    )
    max_iterations: int = Field(
        default=30, gt=0, description="Maximum accepted swap rounds"
    )
    max_candidates: int = Field(
        default=10, gt=0, description="Swap candidates evaluated per round"
    )
    threshold: float = Field(
        default=1e-5, ge=0.0, description="Minimum score gain that counts as an improvement"
    )


class OutputConfig(BaseModel):
    """Where results go and how loudly runs report."""

    results_path: Path = Field(default=Path("outputs/optimization.json"))
    log_level: str = Field(default="INFO")


# ---------------------------------------------------------------------------
# Root config
# ---------------------------------------------------------------------------

class OracleAllocConfig(BaseModel):
    """Root configuration for Oracle-Alloc."""

    project_name: str = Field(default="Oracle-Alloc")

    search: SearchConfig = Field(default_factory=SearchConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)

    @classmethod
    def from_yaml(cls, path: Path | str) -> "OracleAllocConfig":
        """Load config from a YAML file."""
        with open(Path(path)) as f:
            data = yaml.safe_load(f) or {}
        return cls(**data)

    def to_yaml(self, path: Path | str) -> None:
        """Write config to a YAML file."""
        with open(Path(path), "w") as f:
            yaml.dump(self.model_dump(mode="json"), f, default_flow_style=False, sort_keys=False)


# ---------------------------------------------------------------------------
# Global singleton
# ---------------------------------------------------------------------------

_config: OracleAllocConfig | None = None


def get_config() -> OracleAllocConfig:
    """Return the global config instance (creates default if needed)."""
    global _config
    if _config is None:
        _config = OracleAllocConfig()
    return _config


def set_config(config: OracleAllocConfig) -> None:
    """Override the global config instance."""
    global _config
    _config = config


def load_config(path: Path | str | None = None) -> OracleAllocConfig:
    """
    Load config from file, falling back to standard locations, then defaults.
    """
    global _config

    if path is not None:
        _config = OracleAllocConfig.from_yaml(path)
    else:
        for candidate in [Path("config.yaml"), Path("config/config.yaml")]:
            if candidate.exists():
                _config = OracleAllocConfig.from_yaml(candidate)
                break
        else:
            _config = OracleAllocConfig()

    return _config
