"""Square CSR (Compressed Sparse Row) Matrix with Relaxation Kernels.

This module provides SparseCSRMatrix, a square sparse matrix that:
- Is built either from ready CSR arrays or incrementally with set()/close()
- Freezes its sparsity pattern once closed; stored values stay mutable
- Performs y = scalar * A * x and one-step Jacobi, SOR and SSOR relaxation

Lifecycle:
    OPEN   -> created by row count, populated by set(i, j, value) in any order
    CLOSED -> after close(), or when built from arrays; pattern immutable

Storage:
    row_ptr[i] .. row_ptr[i+1] is the half-open range of row i in
    col_ind / val. Entries inside a row keep their insertion order. A
    per-row diagonal offset (diag_ptr) is computed when the pattern is
    frozen, so the diagonal does not have to be stored first.

Example:
    >>> A = SparseCSRMatrix.empty(3)
    >>> for i, j, v in [(0, 0, 4.0), (0, 1, -1.0), (1, 0, -1.0), (1, 1, 4.0),
    ...                 (1, 2, -1.0), (2, 1, -1.0), (2, 2, 4.0)]:
    ...     A.set(i, j, v)
    >>> A.close()
    >>> x = Vector.zeros(3)
    >>> b = Vector.from_list([3.0, 2.0, 3.0])
    >>> while A.sor_step(x, b, 1.0) > 1e-10:
    ...     pass
"""

import logging
from typing import Tuple, Any, Optional, Union

import numpy as np

from .._config import config
from .._errors import (
    InvalidArgumentError,
    DimensionMismatchError,
    IndexOutOfBoundsError,
    InvalidStateError,
    ElementNotFoundError,
    TypeMismatchError,
    NumericalError,
    ZeroDiagonalError,
    check_index,
)
from .._kernel.spmv import row_ids_csr, spmv_csr
from .._kernel.relax import diagonal_values, jacobi_csr, sor_sweep_csr, ssor_csr
from ._base import SparseBase, SparseFormat
from ._builder import BuildState, TripletBuffer
from ._dtypes import DType, resolve_dtype, coerce_scalar, cast_array, zero_of, sqrt_as
from ._vector import Vector, norm

__all__ = ['SparseCSRMatrix', 'CSR', 'ElementRef']

logger = logging.getLogger("csrrelax.sparse")


# =============================================================================
# Mutable Element Handle
# =============================================================================

class ElementRef:
    """Writable handle to one stored entry of a closed matrix.

    Returned by ``SparseCSRMatrix.at_mut``. The handle is bound to the
    storage offset of the entry, which stays valid because the sparsity
    pattern of a closed matrix never changes.

    Example:
        >>> ref = A.at_mut(1, 2)
        >>> ref.value
        -1.0
        >>> ref.value = -2.0
        >>> ref.add(0.5)
        >>> A.at(1, 2)
        -1.5
    """

    __slots__ = ('_matrix', '_offset', 'row', 'col')

    def __init__(self, matrix: 'SparseCSRMatrix', offset: int, row: int, col: int):
        self._matrix = matrix
        self._offset = offset
        self.row = row
        self.col = col

    @property
    def offset(self) -> int:
        """Position of the entry in ``col_ind`` / ``val``."""
        return self._offset

    @property
    def value(self):
        """Current stored value."""
        return self._matrix._val[self._offset]

    @value.setter
    def value(self, new_value):
        self._matrix._val[self._offset] = coerce_scalar(new_value, self._matrix._dtype)

    def get(self):
        """Current stored value."""
        return self.value

    def set(self, new_value) -> None:
        """Overwrite the stored value."""
        self.value = new_value

    def add(self, delta) -> None:
        """Add ``delta`` to the stored value in place."""
        self._matrix._val[self._offset] += coerce_scalar(delta, self._matrix._dtype, "delta")

    def __repr__(self) -> str:
        return f"ElementRef(row={self.row}, col={self.col}, value={self.value!r})"


# =============================================================================
# Matrix
# =============================================================================

class SparseCSRMatrix(SparseBase):
    """Square CSR sparse matrix with a two-phase build lifecycle.

    Attributes:
        nrow: Number of rows (== number of columns).
        shape: (nrow, nrow).
        dtype: Element type ('int32', 'int64', 'float32', 'float64').
        nnz: Number of stored entries (buffered entries while OPEN).
        state: BuildState.OPEN or BuildState.CLOSED.

    Example:
        >>> # From arrays (3x3 identity), already closed
        >>> eye = SparseCSRMatrix([0, 1, 2, 3], [0, 1, 2], [1.0, 1.0, 1.0])
        >>> eye.state
        <BuildState.CLOSED: 'closed'>

        >>> # Incremental build
        >>> A = SparseCSRMatrix.empty(2, dtype='float64')
        >>> A.set(1, 1, 2.0)
        >>> A.set(0, 0, 1.0)
        >>> A.close()
        >>> A.at(1, 1)
        2.0

    Note:
        Instances are not thread-safe. ``set``/``close`` and the in-place
        kernels must be serialized by the caller.
    """

    __slots__ = (
        '_nrow', '_dtype', '_state', '_builder',
        '_row_ptr', '_col_ind', '_val',
        '_diag_ptr', '_row_ids',
    )

    # =========================================================================
    # Initialization
    # =========================================================================

    def __init__(
        self,
        row_ptr: Optional[Any] = None,
        col_ind: Optional[Any] = None,
        val: Optional[Any] = None,
        *,
        nrow: Optional[int] = None,
        dtype: Union[str, DType, None] = None,
    ):
        """Initialize SparseCSRMatrix.

        Either pass the three CSR arrays (the matrix is CLOSED immediately),
        or pass only ``nrow`` to get an OPEN matrix for incremental build.

        Note:
            Prefer the factory methods ``from_arrays`` and ``empty``.

        Args:
            row_ptr: Row offsets, length nrow + 1.
            col_ind: Column index of each stored entry.
            val: Value of each stored entry.
            nrow: Row count for an OPEN matrix.
            dtype: Element type. Inferred from ``val`` for array construction,
                ``config.dtype.default`` for incremental construction.

        Raises:
            InvalidArgumentError: Inconsistent or malformed arguments.
            IndexOutOfBoundsError: A column index outside [0, nrow).
            TypeMismatchError: Unsupported dtype.
        """
        if row_ptr is None and col_ind is None and val is None:
            if nrow is None:
                raise InvalidArgumentError("Either CSR arrays or nrow must be given")
            self._init_open(nrow, dtype)
        else:
            if nrow is not None:
                raise InvalidArgumentError("nrow cannot be combined with CSR arrays")
            if row_ptr is None or col_ind is None or val is None:
                raise InvalidArgumentError("row_ptr, col_ind and val must all be given")
            self._init_arrays(row_ptr, col_ind, val, dtype)

    def _init_open(self, nrow: Any, dtype: Any) -> None:
        if isinstance(nrow, (bool, np.bool_)) or not isinstance(nrow, (int, np.integer)):
            raise InvalidArgumentError(f"nrow must be an integer, got {nrow!r}")
        if nrow <= 0:
            raise InvalidArgumentError(f"nrow must be positive, got {nrow}")

        self._nrow = int(nrow)
        self._dtype = resolve_dtype(dtype, config.default_dtype)
        self._state = BuildState.OPEN
        self._builder = TripletBuffer(self._nrow)
        self._row_ptr = np.zeros(self._nrow + 1, dtype=np.int64)
        self._col_ind = np.zeros(0, dtype=np.int64)
        self._val = np.zeros(0, dtype=self._dtype)
        self._diag_ptr = None
        self._row_ids = None

    def _init_arrays(self, row_ptr: Any, col_ind: Any, val: Any, dtype: Any) -> None:
        row_ptr = np.asarray(row_ptr)
        col_ind = np.asarray(col_ind)
        val = np.asarray(val)

        if row_ptr.ndim != 1 or row_ptr.shape[0] < 2:
            raise InvalidArgumentError(
                f"row_ptr must be 1-D with at least 2 entries, got shape {row_ptr.shape}"
            )
        if col_ind.ndim != 1 or col_ind.shape[0] == 0:
            raise InvalidArgumentError("col_ind must be a non-empty 1-D array")
        if val.ndim != 1:
            raise InvalidArgumentError(f"val must be 1-D, got shape {val.shape}")
        if col_ind.shape[0] != val.shape[0]:
            raise InvalidArgumentError(
                f"col_ind/val size mismatch: {col_ind.shape[0]} vs {val.shape[0]}"
            )

        target = self._validate_value_dtype(val.dtype, dtype)
        self._validate_index_array(row_ptr, "row_ptr")
        self._validate_index_array(col_ind, "col_ind")

        nrow = row_ptr.shape[0] - 1
        if row_ptr[0] != 0:
            raise InvalidArgumentError(f"row_ptr[0] must be 0, got {row_ptr[0]}")
        if np.any(np.diff(row_ptr) < 0):
            raise InvalidArgumentError("row_ptr must be non-decreasing")
        if row_ptr[-1] != val.shape[0]:
            raise InvalidArgumentError(
                f"row_ptr[{nrow}] = {row_ptr[-1]} does not match val size {val.shape[0]}"
            )
        bad = np.flatnonzero((col_ind < 0) | (col_ind >= nrow))
        if bad.size:
            d = int(bad[0])
            raise IndexOutOfBoundsError(
                f"col_ind[{d}] = {col_ind[d]} out of range [0, {nrow})"
            )

        self._set_closed(
            nrow, target,
            row_ptr.astype(np.int64),
            col_ind.astype(np.int64),
            cast_array(val, target, "val"),
        )

    @staticmethod
    def _validate_index_array(arr: np.ndarray, name: str) -> None:
        if arr.dtype.kind not in 'iu':
            raise TypeMismatchError(f"{name} must hold integers, got {arr.dtype}")

    @staticmethod
    def _validate_value_dtype(source: np.dtype, dtype: Any) -> np.dtype:
        """Resolve the element type for values of dtype ``source``."""
        target = resolve_dtype(dtype if dtype is not None else source)
        if source != target and not np.can_cast(source, target, casting='same_kind'):
            raise TypeMismatchError(f"Cannot store {source} values in a {target} matrix")
        return target

    def _set_closed(
        self,
        nrow: int,
        dtype: np.dtype,
        row_ptr: np.ndarray,
        col_ind: np.ndarray,
        val: np.ndarray,
    ) -> None:
        """Install validated CSR arrays and freeze the pattern."""
        self._nrow = int(nrow)
        self._dtype = dtype
        self._state = BuildState.CLOSED
        self._builder = None
        self._row_ptr = row_ptr
        self._col_ind = col_ind
        self._val = val
        self._row_ids = row_ids_csr(row_ptr)
        self._diag_ptr = self._find_diagonals()

    def _find_diagonals(self) -> np.ndarray:
        """Offset of the first stored A(i, i) per row, -1 where absent."""
        diag_ptr = np.full(self._nrow, -1, dtype=np.int64)
        positions = np.flatnonzero(self._col_ind == self._row_ids)
        if positions.size:
            rows, first = np.unique(self._row_ids[positions], return_index=True)
            diag_ptr[rows] = positions[first]
        return diag_ptr

    # =========================================================================
    # Factory Methods
    # =========================================================================

    @classmethod
    def from_arrays(
        cls,
        row_ptr: Any,
        col_ind: Any,
        val: Any,
        dtype: Union[str, DType, None] = None,
    ) -> 'SparseCSRMatrix':
        """Create a CLOSED matrix from CSR arrays.

        Args:
            row_ptr: Row offsets, length nrow + 1 (>= 2), starting at 0,
                non-decreasing, ending at len(val).
            col_ind: Non-empty column indices, each in [0, nrow).
            val: Values, same length as col_ind.
            dtype: Element type; inferred from ``val`` when omitted.

        Returns:
            New SparseCSRMatrix owning copies of the arrays.

        Example:
            >>> A = SparseCSRMatrix.from_arrays([0, 2, 3], [0, 1, 1], [2.0, 1.0, 3.0])
            >>> A.shape
            (2, 2)
        """
        return cls(row_ptr, col_ind, val, dtype=dtype)

    @classmethod
    def empty(cls, nrow: int, dtype: Union[str, DType, None] = None) -> 'SparseCSRMatrix':
        """Create an OPEN matrix for incremental construction.

        Args:
            nrow: Number of rows, must be positive.
            dtype: Element type (defaults to ``config.dtype.default``).

        Returns:
            OPEN SparseCSRMatrix with no stored entries.
        """
        return cls(nrow=nrow, dtype=dtype)

    @classmethod
    def from_dense(cls, dense: Any, dtype: Union[str, DType, None] = None) -> 'SparseCSRMatrix':
        """Create a CLOSED matrix from a dense square 2-D array.

        Nonzero entries are stored in row-major order. Rows without nonzeros
        are allowed.

        Example:
            >>> A = SparseCSRMatrix.from_dense([[4, -1], [-1, 4]], dtype='float64')
            >>> A.nnz
            4
        """
        arr = np.asarray(dense)
        if arr.ndim != 2 or arr.shape[0] != arr.shape[1] or arr.shape[0] == 0:
            raise InvalidArgumentError(f"Expected a non-empty square 2-D array, got shape {arr.shape}")
        target = cls._validate_value_dtype(arr.dtype, dtype)

        rows, cols = np.nonzero(arr)
        nrow = arr.shape[0]
        row_ptr = np.zeros(nrow + 1, dtype=np.int64)
        np.cumsum(np.bincount(rows, minlength=nrow), out=row_ptr[1:])

        mat = cls.__new__(cls)
        values = cast_array(arr, target, "dense")[rows, cols]
        mat._set_closed(nrow, target, row_ptr, cols.astype(np.int64), values)
        return mat

    @classmethod
    def from_scipy(cls, mat: Any) -> 'SparseCSRMatrix':
        """Create a CLOSED matrix from a square scipy sparse matrix.

        Any scipy sparse format is accepted and converted to CSR. Column
        order inside each row is kept as scipy stores it.

        Raises:
            ImportError: scipy is not installed.
        """
        try:
            import scipy.sparse as sp
        except ImportError:
            raise ImportError("scipy required for from_scipy()")

        if not sp.issparse(mat):
            raise TypeMismatchError(f"Expected a scipy sparse matrix, got {type(mat).__name__}")
        csr = mat.tocsr()
        nrow, ncol = csr.shape
        if nrow != ncol or nrow == 0:
            raise InvalidArgumentError(f"Expected a non-empty square matrix, got shape {csr.shape}")
        target = resolve_dtype(csr.dtype)

        result = cls.__new__(cls)
        result._set_closed(
            nrow, target,
            np.array(csr.indptr, dtype=np.int64),
            np.array(csr.indices, dtype=np.int64),
            np.array(csr.data, dtype=target),
        )
        return result

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def nrow(self) -> int:
        """Number of rows (== number of columns)."""
        return self._nrow

    @property
    def shape(self) -> Tuple[int, int]:
        """Matrix dimensions (nrow, nrow)."""
        return (self._nrow, self._nrow)

    @property
    def dtype(self) -> str:
        """Element type string."""
        return self._dtype.name

    @property
    def nnz(self) -> int:
        """Number of stored entries (buffered entries while OPEN)."""
        if self._state is BuildState.OPEN:
            return len(self._builder)
        return int(self._val.shape[0])

    @property
    def format(self) -> str:
        """Sparse format (always 'csr')."""
        return SparseFormat.CSR

    @property
    def state(self) -> BuildState:
        """Build lifecycle state."""
        return self._state

    @property
    def is_closed(self) -> bool:
        """True once the sparsity pattern is frozen."""
        return self._state is BuildState.CLOSED

    @property
    def row_ptr(self) -> np.ndarray:
        """Row offsets (read-only view). All zeros while OPEN."""
        return _readonly(self._row_ptr)

    @property
    def col_ind(self) -> np.ndarray:
        """Column indices (read-only view). Empty while OPEN."""
        return _readonly(self._col_ind)

    @property
    def val(self) -> np.ndarray:
        """Stored values (read-only view). Use at_mut() to change values."""
        return _readonly(self._val)

    @property
    def diag_ptr(self) -> np.ndarray:
        """Offset of A(i, i) in ``val`` per row, -1 where not stored."""
        self._require_closed("diag_ptr")
        return _readonly(self._diag_ptr)

    # =========================================================================
    # Incremental Build
    # =========================================================================

    def set(self, i: int, j: int, value: Any) -> None:
        """Insert ``value`` at (i, j) while the matrix is OPEN.

        Calls may come in any row order; entries of one row keep their
        insertion order. Each (i, j) pair should be inserted once (see
        ``config.build.check_duplicates``).

        Raises:
            InvalidStateError: The matrix is CLOSED.
            IndexOutOfBoundsError: i or j outside [0, nrow).
            TypeMismatchError: value not representable in the element type.
        """
        if self._state is not BuildState.OPEN:
            raise InvalidStateError("set() requires an OPEN matrix; the sparsity pattern is closed")
        i = check_index(i, self._nrow, "row")
        j = check_index(j, self._nrow, "col")
        self._builder.append(i, j, coerce_scalar(value, self._dtype))

    def close(self) -> None:
        """Freeze the sparsity pattern.

        Compresses the buffered entries into CSR arrays, logs a warning for
        every row that received no entries (it becomes a zero-length row),
        and moves the matrix to CLOSED. Closing a CLOSED matrix is a no-op.

        Raises:
            InvalidArgumentError: Duplicate (row, col) pairs while
                ``config.build.check_duplicates`` is enabled.
        """
        if self._state is BuildState.CLOSED:
            logger.debug("close() on a closed matrix, nothing to do")
            return

        build_cfg = config.build
        if build_cfg.check_duplicates:
            dups = self._builder.duplicates()
            if dups.shape[0]:
                shown = ", ".join(f"({r}, {c})" for r, c in dups[:8].tolist())
                raise InvalidArgumentError(f"Duplicate entries inserted: {shown}")

        compressed = self._builder.compress(self._dtype)
        if build_cfg.warn_empty_rows:
            for row in compressed.empty_rows.tolist():
                logger.warning("Row %d is empty", row)

        self._set_closed(
            self._nrow, self._dtype,
            compressed.row_ptr, compressed.col_ind, compressed.val,
        )
        logger.debug(
            "Closed %dx%d matrix: nnz=%d, empty_rows=%d",
            self._nrow, self._nrow, self.nnz, compressed.empty_rows.shape[0],
        )

    # =========================================================================
    # Element Access
    # =========================================================================

    def _require_closed(self, op: str) -> None:
        if self._state is not BuildState.CLOSED:
            raise InvalidStateError(f"{op} requires a CLOSED matrix; call close() first")

    def _row_range(self, i: int) -> Tuple[int, int]:
        return int(self._row_ptr[i]), int(self._row_ptr[i + 1])

    def find(self, i: int, j: int) -> Optional[int]:
        """Storage offset of A(i, j), or None if (i, j) is not stored."""
        self._require_closed("find()")
        i = check_index(i, self._nrow, "row")
        j = check_index(j, self._nrow, "col")
        beg, end = self._row_range(i)
        hits = np.flatnonzero(self._col_ind[beg:end] == j)
        if hits.size == 0:
            return None
        return beg + int(hits[0])

    def at(self, i: int, j: int):
        """Value of A(i, j), or zero of the element type if not stored."""
        offset = self.find(i, j)
        if offset is None:
            return zero_of(self._dtype)
        return self._val[offset]

    def at_mut(self, i: int, j: int) -> ElementRef:
        """Writable handle to the stored entry A(i, j).

        Raises:
            ElementNotFoundError: (i, j) is not part of the sparsity pattern.
        """
        offset = self.find(i, j)
        if offset is None:
            raise ElementNotFoundError(int(i), int(j))
        return ElementRef(self, offset, int(i), int(j))

    def __getitem__(self, key):
        """``A[i, j]`` is ``A.at(i, j)``."""
        if isinstance(key, tuple) and len(key) == 2:
            return self.at(*key)
        raise TypeMismatchError(f"Invalid index: {key!r}; use A[i, j]")

    def __setitem__(self, key, value) -> None:
        """``A[i, j] = v`` overwrites a stored entry (see ``at_mut``)."""
        if isinstance(key, tuple) and len(key) == 2:
            self.at_mut(*key).set(value)
            return
        raise TypeMismatchError(f"Invalid index: {key!r}; use A[i, j]")

    def diag(self, i: int):
        """Diagonal entry A(i, i), or zero if the row stores no diagonal."""
        self._require_closed("diag()")
        i = check_index(i, self._nrow, "row")
        offset = self._diag_ptr[i]
        if offset < 0:
            return zero_of(self._dtype)
        return self._val[offset]

    def diagonal(self) -> Vector:
        """All diagonal entries as a Vector."""
        self._require_closed("diagonal()")
        return Vector.from_numpy(diagonal_values(self._val, self._diag_ptr), copy=False)

    def row_length(self, i: int) -> int:
        """Number of stored entries in row i."""
        self._require_closed("row_length()")
        i = check_index(i, self._nrow, "row")
        beg, end = self._row_range(i)
        return end - beg

    def get_row(self, i: int) -> Tuple[np.ndarray, np.ndarray]:
        """Row i as ``(col_indices, values)`` copies, in storage order."""
        self._require_closed("get_row()")
        i = check_index(i, self._nrow, "row")
        beg, end = self._row_range(i)
        return self._col_ind[beg:end].copy(), self._val[beg:end].copy()

    # =========================================================================
    # Vector Operands
    # =========================================================================

    def _input_vector(self, v: Any, name: str) -> np.ndarray:
        """Read-only operand as an ndarray of the element type."""
        arr = v.to_numpy() if isinstance(v, Vector) else np.asarray(v)
        if arr.ndim != 1 or arr.shape[0] != self._nrow:
            raise DimensionMismatchError(
                f"{name} has shape {arr.shape}, expected ({self._nrow},)"
            )
        return cast_array(arr, self._dtype, name)

    def _output_vector(self, v: Any, name: str) -> np.ndarray:
        """In-place operand: Vector or writable ndarray of the element type."""
        if isinstance(v, Vector):
            arr = v.to_numpy()
        elif isinstance(v, np.ndarray):
            arr = v
        else:
            raise TypeMismatchError(
                f"{name} is updated in place and must be a Vector or numpy.ndarray, "
                f"got {type(v).__name__}"
            )
        if arr.ndim != 1 or arr.shape[0] != self._nrow:
            raise DimensionMismatchError(
                f"{name} has shape {arr.shape}, expected ({self._nrow},)"
            )
        if arr.dtype != self._dtype:
            raise TypeMismatchError(f"{name} must have dtype {self.dtype}, got {arr.dtype}")
        if not arr.flags.writeable:
            raise InvalidArgumentError(f"{name} is read-only")
        return arr

    def _rhs_vector(self, rhs: Any, x: np.ndarray) -> np.ndarray:
        ra = self._input_vector(rhs, "rhs")
        if np.may_share_memory(ra, x):
            ra = ra.copy()
        return ra

    # =========================================================================
    # Numerical Kernels
    # =========================================================================

    def multiply(self, x: Any, y: Any, scalar: Any = 1) -> None:
        """Overwrite ``y`` with ``scalar * A * x``.

        Args:
            x: Input vector of length nrow.
            y: Output Vector/ndarray of length nrow and the matrix dtype.
            scalar: Multiplier.

        Raises:
            DimensionMismatchError: x or y does not have length nrow.
        """
        self._require_closed("multiply()")
        xa = self._input_vector(x, "x")
        ya = self._output_vector(y, "y")
        s = coerce_scalar(scalar, self._dtype, "scalar")
        spmv_csr(self._val, self._col_ind, self._row_ids, xa, ya, s)

    def residual(self, x: Any, rhs: Any) -> Vector:
        """Return ``rhs - A x`` as a new Vector."""
        r = Vector(self._nrow, dtype=self.dtype)
        self.multiply(x, r, -1)
        r += self._input_vector(rhs, "rhs")
        return r

    def residual_norm(self, x: Any, rhs: Any):
        """Euclidean norm of ``rhs - A x`` in the element type."""
        return norm(self.residual(x, rhs))

    def _relaxation_diagonal(self, op: str) -> np.ndarray:
        d = diagonal_values(self._val, self._diag_ptr)
        if config.kernel.check_diagonal:
            zero_rows = np.flatnonzero(d == 0)
            if zero_rows.size:
                logger.debug("%s: zero diagonal in %d row(s)", op, zero_rows.size)
                raise ZeroDiagonalError(zero_rows.tolist())
        return d

    def _finish_norm(self, op: str, res):
        value = sqrt_as(res, self._dtype)
        if config.kernel.check_finite and not np.isfinite(value):
            raise NumericalError(f"{op}: residual norm is not finite ({value})")
        logger.debug("%s: residual norm %s", op, value)
        return value

    def jacobi_step(self, x: Any, rhs: Any):
        """One in-place Jacobi step.

        Computes ``r = rhs - A x`` from the current ``x``, then updates
        ``x(i) += r(i) / diag(i)`` for every row.

        Args:
            x: Current iterate, updated in place.
            rhs: Right-hand side.

        Returns:
            Euclidean norm of ``r`` (the residual before the update).

        Raises:
            ZeroDiagonalError: Zero or missing diagonal entry
                (with ``config.kernel.check_diagonal``).
        """
        self._require_closed("jacobi_step()")
        xa = self._output_vector(x, "x")
        ra = self._rhs_vector(rhs, xa)
        d = self._relaxation_diagonal("jacobi_step")
        res = jacobi_csr(self._val, self._col_ind, self._row_ids, d, xa, ra, self._dtype)
        return self._finish_norm("jacobi_step", res)

    def sor_step(self, x: Any, rhs: Any, omega: Any):
        """One in-place forward SOR sweep.

        Rows are visited in ascending order. Each row residual
        ``r = rhs(i) - A(i,:) x`` uses the values already updated earlier in
        the same sweep, then ``x(i) += omega * r / diag(i)``. ``omega == 1``
        is Gauss-Seidel.

        Returns:
            ``sqrt(sum r^2)`` over the row residuals seen during the sweep.
        """
        self._require_closed("sor_step()")
        xa = self._output_vector(x, "x")
        ra = self._rhs_vector(rhs, xa)
        w = coerce_scalar(omega, self._dtype, "omega")
        d = self._relaxation_diagonal("sor_step")
        res = sor_sweep_csr(self._row_ptr, self._col_ind, self._val, d, xa, ra, w,
                            range(self._nrow), self._dtype)
        return self._finish_norm("sor_step", res)

    def ssor_step(self, x: Any, rhs: Any, omega: Any):
        """One in-place symmetric SOR step.

        A forward sweep (rows ascending) followed by a backward sweep (rows
        descending) with the same update rule as ``sor_step``. The backward
        sweep sees the results of the forward sweep.

        Returns:
            ``sqrt(sum r^2)`` over the backward sweep's row residuals only.
        """
        self._require_closed("ssor_step()")
        xa = self._output_vector(x, "x")
        ra = self._rhs_vector(rhs, xa)
        w = coerce_scalar(omega, self._dtype, "omega")
        d = self._relaxation_diagonal("ssor_step")
        res = ssor_csr(self._row_ptr, self._col_ind, self._val, d, xa, ra, w, self._dtype)
        return self._finish_norm("ssor_step", res)

    # =========================================================================
    # Conversion
    # =========================================================================

    def to_dense(self) -> np.ndarray:
        """Dense copy; repeated (row, col) entries are summed."""
        self._require_closed("to_dense()")
        out = np.zeros(self.shape, dtype=self._dtype)
        np.add.at(out, (self._row_ids, self._col_ind), self._val)
        return out

    def to_scipy(self) -> Any:
        """Convert to scipy.sparse.csr_matrix (copies the arrays)."""
        self._require_closed("to_scipy()")
        try:
            import scipy.sparse as sp
        except ImportError:
            raise ImportError("scipy required for to_scipy()")
        return sp.csr_matrix(
            (self._val.copy(), self._col_ind.copy(), self._row_ptr.copy()),
            shape=self.shape,
        )

    def copy(self) -> 'SparseCSRMatrix':
        """Deep copy. An OPEN matrix is copied with its buffered entries."""
        if self._state is BuildState.OPEN:
            result = SparseCSRMatrix.empty(self._nrow, dtype=self.dtype)
            result._builder = self._builder.copy()
            return result
        result = SparseCSRMatrix.__new__(SparseCSRMatrix)
        result._set_closed(
            self._nrow, self._dtype,
            self._row_ptr.copy(), self._col_ind.copy(), self._val.copy(),
        )
        return result

    # =========================================================================
    # Representation
    # =========================================================================

    def __repr__(self) -> str:
        return (
            f"SparseCSRMatrix(shape={self.shape}, nnz={self.nnz}, "
            f"dtype={self.dtype}, state={self._state.value})"
        )

    def info(self) -> str:
        """Get detailed information string."""
        lines = [
            "SparseCSRMatrix:",
            f"  shape: {self.shape}",
            f"  nnz: {self.nnz}",
            f"  dtype: {self.dtype}",
            f"  state: {self._state.value}",
        ]
        if self.is_closed:
            lengths = np.diff(self._row_ptr)
            lines.append(f"  empty rows: {int(np.count_nonzero(lengths == 0))}")
            lines.append(f"  missing diagonals: {int(np.count_nonzero(self._diag_ptr < 0))}")
            nbytes = self._row_ptr.nbytes + self._col_ind.nbytes + self._val.nbytes
            lines.append(f"  memory: {nbytes / 1024:.2f} KB")
        return '\n'.join(lines)


def _readonly(arr: np.ndarray) -> np.ndarray:
    view = arr.view()
    view.flags.writeable = False
    return view


# Short alias
CSR = SparseCSRMatrix
