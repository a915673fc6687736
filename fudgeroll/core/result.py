"""
Result object for error handling at the service boundary.

Operations that take user input (fudge requests, API calls) return a Result
instead of raising, so the CLI and web layers can report failures uniformly.
The dice layer itself raises FormulaError subclasses.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional


class ErrorCode(Enum):
    """Machine-readable error classification for Result objects."""

    # Input errors
    INVALID_INPUT = "invalid_input"
    SCHEMA_VALIDATION_FAILED = "schema_validation_failed"
    MISSING_REQUIRED_FIELD = "missing_required_field"

    # Formula errors
    FORMULA_ERROR = "formula_error"
    UNBOUND_VARIABLE = "unbound_variable"

    # Lookup errors
    NOT_FOUND = "not_found"

    # State errors
    OPERATION_NOT_ALLOWED = "operation_not_allowed"

    def __str__(self) -> str:
        return self.value


@dataclass
class Result:
    """
    Represents the result of an operation that can succeed or fail.

    Attributes:
        success: Whether the operation succeeded
        data: The result data if successful
        error: Error message if failed
        error_code: Machine-readable error code if failed

    Examples:
        >>> result = Result.ok({"total": 17})
        >>> if result.success:
        ...     print(result.data)

        >>> result = Result.fail("Unknown skill 'xyz'", ErrorCode.NOT_FOUND)
        >>> if not result:
        ...     print(f"Error: {result.error}")
    """
    success: bool
    data: Any = None
    error: Optional[str] = None
    error_code: Optional[str] = None

    @staticmethod
    def ok(data: Any = None) -> 'Result':
        """Create a successful result."""
        return Result(success=True, data=data)

    @staticmethod
    def fail(error: str, code: Optional[str | ErrorCode] = None) -> 'Result':
        """
        Create a failed result.

        Args:
            error: Human-readable error message
            code: Machine-readable error code (ErrorCode enum or string)

        Returns:
            Result with success=False
        """
        error_code_str = code.value if isinstance(code, ErrorCode) else code
        return Result(success=False, error=error, error_code=error_code_str)

    def __bool__(self) -> bool:
        """Allow using Result in boolean context: if result: ..."""
        return self.success
