"""Custom exceptions for geometry operations.

The kernel raises these at the point of invalid input and never catches
them itself; recovery is left to the caller.
"""

from typing import Any


class GeometryError(Exception):
    """Base exception for all geometry kernel errors."""


class MalformedSourceError(GeometryError):
    """Raised when input cannot be coerced into the required shape.

    This error is raised when:
    - A point, rect or line source has the wrong arity or missing fields
    - Point/Rect/Path text cannot be parsed into enough numeric tokens
    - A point sequence is empty where at least one point is required
    - A Path does not start with a move or close command
    """

    def __init__(self, message: str, source: Any = None) -> None:
        """Initialize with the offending source value.

        Args:
            message: Human-readable error description.
            source: The value that failed conversion.
        """
        self.source = source
        super().__init__(message)


class SingularMatrixError(GeometryError, ArithmeticError):
    """Raised when inverting or dividing by a non-invertible matrix."""

    def __init__(self, determinant: float) -> None:
        """Initialize with the determinant that failed the check.

        Args:
            determinant: Determinant of the offending matrix.
        """
        self.determinant = determinant
        super().__init__(f"Matrix not invertible (determinant={determinant!r})")
