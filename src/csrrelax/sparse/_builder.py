"""Build Lifecycle and Triplet Buffering.

A matrix created by row count starts OPEN. Each ``set(i, j, value)`` call
appends one ``(row, col, value)`` triplet to a buffer owned by that matrix;
``close()`` compresses the buffer into CSR arrays in a single pass and the
matrix becomes CLOSED.

Compression is a stable counting sort by row, so

* ``set`` calls may come in any row order, and
* inside a row, entries keep the order in which they were inserted.

Example:
    >>> buf = TripletBuffer(nrow=3)
    >>> buf.append(2, 2, 4.0)
    >>> buf.append(0, 0, 1.0)
    >>> result = buf.compress(np.dtype('float64'))
    >>> result.row_ptr.tolist()
    [0, 1, 1, 2]
    >>> result.empty_rows.tolist()
    [1]
"""

from enum import Enum
from dataclasses import dataclass
from typing import List

import numpy as np

__all__ = [
    'BuildState',
    'CompressedRows',
    'TripletBuffer',
]


class BuildState(Enum):
    """Matrix build lifecycle.

    Attributes:
        OPEN: Sparsity pattern under construction; ``set`` is allowed.
        CLOSED: Pattern frozen; only stored values may change.
    """
    OPEN = 'open'
    CLOSED = 'closed'


@dataclass
class CompressedRows:
    """CSR arrays produced by ``TripletBuffer.compress``.

    Attributes:
        row_ptr: ``nrow + 1`` offsets into ``col_ind``/``val``.
        col_ind: Column index per stored entry.
        val: Value per stored entry.
        empty_rows: Rows that received no entries.
    """
    row_ptr: np.ndarray
    col_ind: np.ndarray
    val: np.ndarray
    empty_rows: np.ndarray


class TripletBuffer:
    """Per-matrix buffer of ``(row, col, value)`` insertions."""

    __slots__ = ('nrow', '_rows', '_cols', '_vals')

    def __init__(self, nrow: int):
        self.nrow = nrow
        self._rows: List[int] = []
        self._cols: List[int] = []
        self._vals: List = []

    def __len__(self) -> int:
        return len(self._rows)

    def append(self, row: int, col: int, value) -> None:
        """Record one entry. Indices are validated by the caller."""
        self._rows.append(row)
        self._cols.append(col)
        self._vals.append(value)

    def copy(self) -> "TripletBuffer":
        """Independent buffer holding the same entries."""
        other = TripletBuffer(self.nrow)
        other._rows.extend(self._rows)
        other._cols.extend(self._cols)
        other._vals.extend(self._vals)
        return other

    def duplicates(self) -> np.ndarray:
        """``(row, col)`` pairs inserted more than once, shape (k, 2)."""
        if not self._rows:
            return np.empty((0, 2), dtype=np.int64)
        keys = np.asarray(self._rows, dtype=np.int64) * self.nrow + np.asarray(self._cols, dtype=np.int64)
        uniq, counts = np.unique(keys, return_counts=True)
        repeated = uniq[counts > 1]
        return np.stack([repeated // self.nrow, repeated % self.nrow], axis=1)

    def compress(self, dtype: np.dtype) -> CompressedRows:
        """Compress the buffered triplets into CSR arrays.

        Args:
            dtype: Element type of the value array.

        Returns:
            CompressedRows with rows in ascending order and insertion order
            preserved inside each row.
        """
        rows = np.asarray(self._rows, dtype=np.int64)
        cols = np.asarray(self._cols, dtype=np.int64)
        vals = np.asarray(self._vals, dtype=dtype)

        counts = np.bincount(rows, minlength=self.nrow)
        row_ptr = np.zeros(self.nrow + 1, dtype=np.int64)
        np.cumsum(counts, out=row_ptr[1:])

        order = np.argsort(rows, kind='stable')
        return CompressedRows(
            row_ptr=row_ptr,
            col_ind=cols[order],
            val=vals[order],
            empty_rows=np.flatnonzero(counts == 0),
        )
