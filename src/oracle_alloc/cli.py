"""
Command-line interface for Oracle-Alloc.

Runs an allocation against a Python scoring function and reports
the result.
"""

from pathlib import Path
from typing import Optional
import sys

import typer
from loguru import logger

from oracle_alloc.config import OracleAllocConfig, load_config

app = typer.Typer(
    name="oracle-alloc",
    help="Integer point allocation against a black-box objective",
    add_completion=False,
)


def _configure_logging(level: str) -> None:
    logger.remove()
    logger.add(sys.stderr, level=level.upper())


@app.command()
def optimize(
    objective: str = typer.Option(
        ..., "--objective", "-f", help="Scoring function as module:function"
    ),
    points: int = typer.Option(..., "--points", "-p", help="Total points to allocate"),
    variables: Optional[int] = typer.Option(
        None, "--variables", "-n", help="Number of variables (defaults to len(--names))"
    ),
    names: Optional[str] = typer.Option(
        None, "--names", help="Comma-separated variable names"
    ),
    config_path: Optional[Path] = typer.Option(
        None, "--config", "-c", help="Path to config file"
    ),
    output: Optional[Path] = typer.Option(
        None, "--output", "-o", help="Output file (defaults to config output path)"
    ),
    log_level: Optional[str] = typer.Option(
        None, "--log-level", help="Log level override"
    ),
):
    """Allocate points to maximize the objective."""
    from oracle_alloc.exceptions import OracleAllocError
    from oracle_alloc.optimization import AllocationOptimizer
    from oracle_alloc.oracle import CallableOracle, load_objective

    config = load_config(config_path)
    _configure_logging(log_level or config.output.log_level)

    variable_names = [n.strip() for n in names.split(",")] if names else None
    if variables is None:
        if variable_names is None:
            raise typer.BadParameter("Pass --variables or --names")
        variables = len(variable_names)

    try:
        oracle = CallableOracle(load_objective(objective), variables, variable_names)
        result = AllocationOptimizer(oracle, config.search).run(points)
    except (OracleAllocError, ValueError) as e:
        logger.error(f"Optimization failed: {e}")
        raise typer.Exit(code=1)

    output = output or config.output.results_path
    result.save(output)

    logger.info(f"Execution time: {result.elapsed_seconds:.1f}s")
    logger.info(f"Oracle calls: {result.oracle_calls} ({result.probe_calls} probes in total)")
    logger.info(f"Initial score: {result.initial_score:.2f}")
    logger.info(f"After greedy: {result.rough_score:.2f}")
    logger.info(f"Final score: {result.final_score:.2f}")
    logger.info(f"Increase: +{result.increase_pct:.2f}%")
    logger.info(f"Rebalance improvements: {result.improvements}")
    for name, value in zip(result.variable_names, result.allocation):
        logger.info(f"  {name}: {value}")
    logger.info(f"Saved results to {output}")


@app.command()
def init_config(
    output: Path = typer.Option(
        Path("config.yaml"), "--output", "-o", help="Where to write the config"
    ),
):
    """Write a config file with default settings."""
    output.parent.mkdir(parents=True, exist_ok=True)
    OracleAllocConfig().to_yaml(output)
    logger.info(f"Wrote default config to {output}")


if __name__ == "__main__":
    app()
