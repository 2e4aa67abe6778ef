"""
Custom exception types for Oracle-Alloc.

Every exception carries a machine-readable code so callers can
handle specific failure modes programmatically.
"""


class OracleAllocError(Exception):
    """Base exception for all Oracle-Alloc errors."""

    def __init__(self, message: str, code: str = "ORACLE_ALLOC_ERROR"):
        self.code = code
        super().__init__(message)


class NonPositiveBaselineError(OracleAllocError):
    """Raised when the all-zero allocation does not score above zero."""

    def __init__(self, score: float):
        self.score = score
        msg = f"Initial score must be positive, got {score}"
        super().__init__(msg, code="NON_POSITIVE_BASELINE")


class InvalidBudgetError(OracleAllocError):
    """Raised when the point budget or variable count cannot be allocated."""

    def __init__(self, message: str, total_points: object = None):
        self.total_points = total_points
        super().__init__(message, code="INVALID_BUDGET")


class OracleBindingError(OracleAllocError):
    """Raised when an objective cannot be resolved into an oracle."""

    def __init__(self, message: str, target: str = ""):
        self.target = target
        super().__init__(message, code="ORACLE_BINDING_ERROR")
