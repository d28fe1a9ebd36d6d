"""
Error handling for csrrelax.

Every failure raised by the library is a ``CSRError`` carrying an
``ErrorKind`` code. Concrete subclasses also derive from the closest builtin
exception, so callers can catch either ``InvalidArgumentError`` or plain
``ValueError``.
"""

from __future__ import annotations

from enum import IntEnum
from typing import Optional


# =============================================================================
# Error Codes
# =============================================================================

class ErrorKind(IntEnum):
    """Error codes shared by all csrrelax exceptions."""

    OK = 0

    # Argument errors (10-19)
    INVALID_ARGUMENT = 10
    DIMENSION_MISMATCH = 11
    INDEX_OUT_OF_BOUNDS = 14

    # State errors (20-29)
    INVALID_STATE = 20
    ELEMENT_NOT_FOUND = 21

    # Type errors (30-39)
    TYPE_MISMATCH = 30

    # Numerical errors (50-59)
    NUMERICAL_ERROR = 50
    DIVISION_BY_ZERO = 51


# Error code to message mapping
_ERROR_MESSAGES = {
    ErrorKind.OK: "Success",
    ErrorKind.INVALID_ARGUMENT: "Invalid argument",
    ErrorKind.DIMENSION_MISMATCH: "Dimension mismatch",
    ErrorKind.INDEX_OUT_OF_BOUNDS: "Index out of bounds",
    ErrorKind.INVALID_STATE: "Invalid state",
    ErrorKind.ELEMENT_NOT_FOUND: "Element not found",
    ErrorKind.TYPE_MISMATCH: "Type mismatch",
    ErrorKind.NUMERICAL_ERROR: "Numerical error",
    ErrorKind.DIVISION_BY_ZERO: "Division by zero",
}


# =============================================================================
# Exception Classes
# =============================================================================

class CSRError(Exception):
    """
    Base exception for all csrrelax errors.

    Attributes:
        kind: ``ErrorKind`` code of the failure.
        message: Human readable detail.
    """

    kind: ErrorKind = ErrorKind.INVALID_ARGUMENT

    def __init__(self, message: Optional[str] = None, kind: Optional[ErrorKind] = None):
        if kind is not None:
            self.kind = ErrorKind(kind)
        if message is None:
            message = _ERROR_MESSAGES.get(self.kind, f"Unknown error (code={int(self.kind)})")
        self.message = message
        super().__init__(message)

    @property
    def code(self) -> int:
        """Integer value of ``kind``."""
        return int(self.kind)

    def __str__(self) -> str:
        return f"[{self.kind.name}] {self.message}"

    @classmethod
    def from_kind(cls, kind: ErrorKind, context: str = "") -> "CSRError":
        """Create the exception class registered for ``kind``.

        Args:
            kind: Error code.
            context: Optional prefix describing the failing operation.

        Returns:
            Instance of the matching ``CSRError`` subclass.
        """
        base_msg = _ERROR_MESSAGES.get(kind, "Unknown error")
        msg = f"{context}: {base_msg}" if context else base_msg
        exc_type = _KIND_TO_CLASS.get(ErrorKind(kind))
        if exc_type is None:
            return cls(msg, kind=kind)
        return exc_type(msg)


class InvalidArgumentError(CSRError, ValueError):
    """Malformed construction arguments or operation inputs."""
    kind = ErrorKind.INVALID_ARGUMENT


class DimensionMismatchError(InvalidArgumentError):
    """Vector length does not match the matrix order."""
    kind = ErrorKind.DIMENSION_MISMATCH


class IndexOutOfBoundsError(InvalidArgumentError, IndexError):
    """Row or column index outside ``[0, nrow)``."""
    kind = ErrorKind.INDEX_OUT_OF_BOUNDS


class InvalidStateError(CSRError, RuntimeError):
    """Operation not allowed in the current build state."""
    kind = ErrorKind.INVALID_STATE


class ElementNotFoundError(CSRError, KeyError):
    """Mutable access to an entry outside the frozen sparsity pattern."""
    kind = ErrorKind.ELEMENT_NOT_FOUND

    def __init__(self, row: int, col: int, message: Optional[str] = None):
        self.row = row
        self.col = col
        if message is None:
            message = f"Element ({row}, {col}) does not exist in the sparsity pattern"
        super().__init__(message)

    # KeyError.__str__ would repr() the message
    __str__ = CSRError.__str__


class TypeMismatchError(CSRError, TypeError):
    """Unsupported dtype, or a value that cannot be represented in it."""
    kind = ErrorKind.TYPE_MISMATCH


class NumericalError(CSRError, ArithmeticError):
    """Non-finite result produced by a kernel."""
    kind = ErrorKind.NUMERICAL_ERROR


class ZeroDiagonalError(NumericalError, ZeroDivisionError):
    """Relaxation requested on a matrix with a zero or missing diagonal."""
    kind = ErrorKind.DIVISION_BY_ZERO

    def __init__(self, rows, message: Optional[str] = None):
        self.rows = [int(r) for r in rows]
        if message is None:
            shown = ", ".join(str(r) for r in self.rows[:8])
            if len(self.rows) > 8:
                shown += ", ..."
            message = f"Zero or missing diagonal in row(s) {shown}"
        super().__init__(message)


_KIND_TO_CLASS = {
    ErrorKind.INVALID_ARGUMENT: InvalidArgumentError,
    ErrorKind.DIMENSION_MISMATCH: DimensionMismatchError,
    ErrorKind.INDEX_OUT_OF_BOUNDS: IndexOutOfBoundsError,
    ErrorKind.INVALID_STATE: InvalidStateError,
    ErrorKind.TYPE_MISMATCH: TypeMismatchError,
    ErrorKind.NUMERICAL_ERROR: NumericalError,
}


def check_index(value: int, bound: int, name: str = "index") -> int:
    """
    Validate ``0 <= value < bound`` and return it as ``int``.

    Raises:
        IndexOutOfBoundsError: If the index is out of range or not integral.
    """
    try:
        idx = int(value)
    except (TypeError, ValueError):
        raise IndexOutOfBoundsError(f"{name} must be an integer, got {value!r}") from None
    if idx != value or idx < 0 or idx >= bound:
        raise IndexOutOfBoundsError(f"{name} {value!r} out of range [0, {bound})")
    return idx


__all__ = [
    "ErrorKind",
    "CSRError",
    "InvalidArgumentError",
    "DimensionMismatchError",
    "IndexOutOfBoundsError",
    "InvalidStateError",
    "ElementNotFoundError",
    "TypeMismatchError",
    "NumericalError",
    "ZeroDiagonalError",
    "check_index",
]
