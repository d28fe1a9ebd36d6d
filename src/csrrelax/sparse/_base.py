"""
Sparse Matrix Base Class

Defines the abstract interface shared by csrrelax sparse matrices: the
structural properties every square sparse operator exposes and the
operations the relaxation kernels rely on.

Type Hierarchy:

    SparseBase (ABC)
    └── SparseCSRMatrix - square CSR matrix with a two-phase build lifecycle
"""

from abc import ABC, abstractmethod
from typing import Tuple, Any, TYPE_CHECKING

import numpy as np

if TYPE_CHECKING:
    from ._vector import Vector

__all__ = [
    'SparseBase',
    'SparseFormat',
]


class SparseFormat:
    """Enumeration of sparse matrix formats."""
    CSR = 'csr'


class SparseBase(ABC):
    """
    Abstract base class for square sparse matrices.

    Required Properties (subclasses must implement):
        shape: Matrix dimensions (nrow, nrow)
        dtype: Element type string
        nnz: Number of stored entries
        format: Sparse format

    Required Methods (subclasses must implement):
        at(i, j): Read one element (zero if not stored)
        multiply(x, y, scalar): y = scalar * A * x
        to_dense(): Dense numpy copy
        copy(): Deep copy
    """

    # =========================================================================
    # Abstract Properties
    # =========================================================================

    @property
    @abstractmethod
    def shape(self) -> Tuple[int, int]:
        """Matrix dimensions (rows, cols)."""
        ...

    @property
    @abstractmethod
    def dtype(self) -> str:
        """Element type string."""
        ...

    @property
    @abstractmethod
    def nnz(self) -> int:
        """Number of stored entries."""
        ...

    @property
    @abstractmethod
    def format(self) -> str:
        """Sparse format."""
        ...

    # =========================================================================
    # Derived Properties
    # =========================================================================

    @property
    def rows(self) -> int:
        """Number of rows."""
        return self.shape[0]

    @property
    def cols(self) -> int:
        """Number of columns."""
        return self.shape[1]

    @property
    def ndim(self) -> int:
        """Number of dimensions (always 2)."""
        return 2

    @property
    def size(self) -> int:
        """Total number of elements (rows * cols)."""
        return self.shape[0] * self.shape[1]

    @property
    def density(self) -> float:
        """Fraction of stored elements."""
        total = self.size
        return self.nnz / total if total > 0 else 0.0

    # =========================================================================
    # Abstract Methods
    # =========================================================================

    @abstractmethod
    def at(self, i: int, j: int) -> Any:
        """Value of A(i, j), or zero when the entry is not stored."""
        ...

    @abstractmethod
    def multiply(self, x: Any, y: Any, scalar: Any = 1) -> None:
        """Overwrite ``y`` with ``scalar * A * x``."""
        ...

    @abstractmethod
    def to_dense(self) -> np.ndarray:
        """Dense copy of the matrix."""
        ...

    @abstractmethod
    def copy(self) -> 'SparseBase':
        """Deep copy."""
        ...

    # =========================================================================
    # Default Implementations
    # =========================================================================

    def matvec(self, x: Any, scalar: Any = 1) -> 'Vector':
        """Return ``scalar * A * x`` as a new Vector."""
        from ._vector import Vector
        y = Vector(self.rows, dtype=self.dtype)
        self.multiply(x, y, scalar)
        return y

    def __matmul__(self, x: Any) -> 'Vector':
        return self.matvec(x)
