"""
Oracle layer for Oracle-Alloc.

The optimizer only ever talks to the objective through the two
operations of ``Oracle``: write an allocation, read the score.
"""

from oracle_alloc.oracle.base import Oracle
from oracle_alloc.oracle.adapters import CallableOracle, load_objective

__all__ = [
    "Oracle",
    "CallableOracle",
    "load_objective",
]
