"""
Relaxation Kernels

One in-place sweep of the classical stationary iterations on a CSR matrix:

    Jacobi:  r = rhs - A x;  x(i) += r(i) / d(i)            (all rows at once)
    SOR:     for i ascending:  r = rhs(i) - A(i,:) x;  x(i) += omega r / d(i)
    SSOR:    SOR forward sweep, then the same update for i descending

SOR and SSOR read the partially updated ``x``: rows visited earlier in the
sweep already see their new values. Every kernel returns the sum of squared
row residuals; callers take the square root.

Arithmetic stays in the element type ``dtype``: integer types use
truncating division.
"""

import logging

import numpy as np

from ..sparse._dtypes import divide
from .spmv import spmv_csr

__all__ = [
    'diagonal_values',
    'jacobi_csr',
    'sor_sweep_csr',
    'ssor_csr',
]

logger = logging.getLogger("csrrelax.kernel")


def diagonal_values(val: np.ndarray, diag_ptr: np.ndarray) -> np.ndarray:
    """
    Gather diagonal values through per-row diagonal offsets.

    Args:
        val: CSR values
        diag_ptr: Offset of A(i, i) in ``val`` per row, -1 where not stored

    Returns:
        Array of length nrow, zero where the diagonal is not stored
    """
    out = np.zeros(diag_ptr.shape[0], dtype=val.dtype)
    present = diag_ptr >= 0
    out[present] = val[diag_ptr[present]]
    return out


def jacobi_csr(
    val: np.ndarray,
    col_ind: np.ndarray,
    row_ids: np.ndarray,
    diag: np.ndarray,
    x: np.ndarray,
    rhs: np.ndarray,
    dtype: np.dtype,
):
    """
    One Jacobi step: x += (rhs - A x) / diag

    Args:
        val, col_ind, row_ids: CSR arrays (see ``spmv_csr``)
        diag: Diagonal values, shape (nrow,)
        x: Current iterate - modified in-place
        rhs: Right-hand side
        dtype: Element type

    Returns:
        Sum of squared residual entries, computed before the update
    """
    r = np.empty_like(x)
    spmv_csr(val, col_ind, row_ids, x, r, dtype.type(-1))
    r += rhs
    x += divide(r, diag, dtype)
    res = np.dot(r, r)
    logger.debug("jacobi: nrow=%d, sum r^2=%s", x.shape[0], res)
    return res


def sor_sweep_csr(
    row_ptr: np.ndarray,
    col_ind: np.ndarray,
    val: np.ndarray,
    diag: np.ndarray,
    x: np.ndarray,
    rhs: np.ndarray,
    omega,
    rows,
    dtype: np.dtype,
    accumulate: bool = True,
):
    """
    One Gauss-Seidel style sweep over ``rows`` in the given order.

    Args:
        row_ptr, col_ind, val: CSR arrays
        diag: Diagonal values, shape (nrow,)
        x: Current iterate - modified in-place, row by row
        rhs: Right-hand side
        omega: Relaxation factor in ``dtype``
        rows: Row visiting order (ascending for forward, descending for backward)
        dtype: Element type
        accumulate: If False, skip residual accumulation and return zero

    Returns:
        Sum of squared row residuals seen during the sweep
    """
    res = dtype.type(0)
    for i in rows:
        beg = row_ptr[i]
        end = row_ptr[i + 1]
        r = rhs[i] - np.dot(val[beg:end], x[col_ind[beg:end]])
        x[i] += divide(omega * r, diag[i], dtype)
        if accumulate:
            res += r * r
    return res


def ssor_csr(
    row_ptr: np.ndarray,
    col_ind: np.ndarray,
    val: np.ndarray,
    diag: np.ndarray,
    x: np.ndarray,
    rhs: np.ndarray,
    omega,
    dtype: np.dtype,
):
    """
    One symmetric SOR step: forward sweep, then backward sweep.

    Returns:
        Sum of squared row residuals of the backward sweep only
    """
    nrow = row_ptr.shape[0] - 1
    sor_sweep_csr(row_ptr, col_ind, val, diag, x, rhs, omega,
                  range(nrow), dtype, accumulate=False)
    res = sor_sweep_csr(row_ptr, col_ind, val, diag, x, rhs, omega,
                        range(nrow - 1, -1, -1), dtype)
    logger.debug("ssor: nrow=%d, omega=%s, sum r^2=%s", nrow, omega, res)
    return res
