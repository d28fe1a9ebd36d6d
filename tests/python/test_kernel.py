"""
Tests for the numerical kernels: SpMV and Jacobi / SOR / SSOR steps.
"""

import logging
import math

import pytest
import numpy as np

from csrrelax import (
    config,
    DimensionMismatchError,
    InvalidArgumentError,
    InvalidStateError,
    TypeMismatchError,
    NumericalError,
    ZeroDiagonalError,
)
from csrrelax.sparse import SparseCSRMatrix, Vector


class TestMultiply:
    """Test y = scalar * A * x."""

    def test_identity(self, identity3):
        """I x = x."""
        x = Vector.from_list([1.0, -2.0, 3.5])
        y = Vector.zeros(3)
        identity3.multiply(x, y)
        assert y.to_list() == [1.0, -2.0, 3.5]

    def test_scalar(self, identity3):
        """The scalar multiplies every row."""
        y = Vector.zeros(3)
        identity3.multiply([1.0, 2.0, 3.0], y, 2.0)
        assert y.to_list() == [2.0, 4.0, 6.0]

    def test_overwrites_output(self, tridiag):
        """y is overwritten, not accumulated into."""
        y = Vector.from_list([100.0, 100.0, 100.0])
        tridiag.multiply([1.0, 1.0, 1.0], y)
        assert y.to_list() == [3.0, 2.0, 3.0]

    def test_matches_dense(self, random_dominant_dense):
        """Agrees with the dense product."""
        mat = SparseCSRMatrix.from_dense(random_dominant_dense)
        x = np.linspace(-1.0, 1.0, mat.nrow)
        y = np.empty(mat.nrow)
        mat.multiply(x, y, -0.5)
        np.testing.assert_allclose(y, -0.5 * random_dominant_dense @ x, rtol=1e-12)

    def test_linearity(self, tridiag):
        """A (a x + b z) = a A x + b A z."""
        x = np.array([1.0, 2.0, 3.0])
        z = np.array([-1.0, 0.5, 4.0])
        lhs = tridiag.matvec(2.0 * x + 3.0 * z)
        rhs = tridiag.matvec(x, 2.0) + tridiag.matvec(z, 3.0)
        np.testing.assert_allclose(lhs.to_numpy(), rhs.to_numpy())

    def test_in_place_alias(self, tridiag):
        """x and y may be the same array."""
        x = np.array([1.0, 1.0, 1.0])
        tridiag.multiply(x, x)
        assert x.tolist() == [3.0, 2.0, 3.0]

    def test_empty_row_gives_zero(self):
        """Rows without entries produce zero."""
        mat = SparseCSRMatrix.from_arrays([0, 1, 1], [0], [5.0])
        y = Vector.from_list([7.0, 7.0])
        mat.multiply([2.0, 3.0], y)
        assert y.to_list() == [10.0, 0.0]

    def test_matvec_and_matmul(self, tridiag):
        """matvec() and @ return new vectors."""
        y = tridiag @ Vector.from_list([1.0, 1.0, 1.0])
        assert isinstance(y, Vector)
        assert y.to_list() == [3.0, 2.0, 3.0]
        assert tridiag.matvec([1.0, 0.0, 0.0], 2).to_list() == [8.0, -2.0, 0.0]

    def test_dimension_mismatch(self, tridiag):
        """x and y must have length nrow."""
        with pytest.raises(DimensionMismatchError):
            tridiag.multiply([1.0, 1.0], Vector.zeros(3))
        with pytest.raises(DimensionMismatchError):
            tridiag.multiply([1.0, 1.0, 1.0], Vector.zeros(4))

    def test_output_requirements(self, tridiag):
        """y must be a writable array of the matrix dtype."""
        with pytest.raises(TypeMismatchError):
            tridiag.multiply([1.0, 1.0, 1.0], [0.0, 0.0, 0.0])
        with pytest.raises(TypeMismatchError):
            tridiag.multiply([1.0, 1.0, 1.0], Vector.zeros(3, dtype='float32'))
        frozen = np.zeros(3)
        frozen.flags.writeable = False
        with pytest.raises(InvalidArgumentError):
            tridiag.multiply([1.0, 1.0, 1.0], frozen)

    def test_input_casting(self, tridiag):
        """Integer input is accepted by a float matrix, not the reverse."""
        y = Vector.zeros(3)
        tridiag.multiply(np.array([1, 1, 1]), y)
        assert y.to_list() == [3.0, 2.0, 3.0]

        int_mat = SparseCSRMatrix.from_arrays([0, 1], [0], [2])
        with pytest.raises(TypeMismatchError):
            int_mat.multiply(np.array([0.5]), Vector.zeros(1, dtype='int64'))

    def test_input_narrowing_rejected(self):
        """Wide integer operands that would wrap in the element type are rejected."""
        ident = SparseCSRMatrix.from_arrays([0, 1], [0], np.array([1], dtype=np.int32))
        x = Vector.zeros(1, dtype='int32')
        with pytest.raises(TypeMismatchError):
            ident.jacobi_step(x, np.array([2**33 + 5], dtype=np.int64))
        assert x.to_list() == [0]
        with pytest.raises(TypeMismatchError):
            ident.multiply(np.array([2**33 + 5], dtype=np.int64), x)

    def test_input_narrowing_in_range(self):
        """int64 operands that fit are accepted by an int32 matrix."""
        ident = SparseCSRMatrix.from_arrays([0, 1], [0], np.array([1], dtype=np.int32))
        x = Vector.zeros(1, dtype='int32')
        ident.jacobi_step(x, np.array([5], dtype=np.int64))
        assert x.to_list() == [5]

    def test_requires_closed(self, open_matrix):
        """Kernels reject OPEN matrices."""
        open_matrix.set(0, 0, 1.0)
        with pytest.raises(InvalidStateError):
            open_matrix.multiply(Vector.zeros(3), Vector.zeros(3))


class TestResidual:
    """Test residual helpers."""

    def test_residual(self, tridiag, tridiag_rhs):
        """rhs - A x."""
        r = tridiag.residual([1.0, 1.0, 1.0], tridiag_rhs)
        assert r.to_list() == [0.0, 0.0, 0.0]
        r = tridiag.residual([0.0, 0.0, 0.0], tridiag_rhs)
        assert r.to_list() == [3.0, 2.0, 3.0]

    def test_residual_norm(self, tridiag, tridiag_rhs):
        """Euclidean norm of the residual."""
        assert tridiag.residual_norm(Vector.zeros(3), tridiag_rhs) == pytest.approx(math.sqrt(22.0))


class TestJacobi:
    """Test jacobi_step."""

    def test_first_step(self, tridiag, tridiag_rhs):
        """Returns the residual before the update."""
        x = Vector.zeros(3)
        res = tridiag.jacobi_step(x, tridiag_rhs)
        assert res == pytest.approx(math.sqrt(22.0))
        assert x.to_list() == [0.75, 0.5, 0.75]

    def test_returns_pre_update_residual(self, tridiag, tridiag_rhs):
        """The returned norm is ||rhs - A x|| for the incoming x."""
        x = Vector.from_list([0.3, -0.2, 0.9])
        expected = tridiag.residual_norm(x, tridiag_rhs)
        assert tridiag.jacobi_step(x, tridiag_rhs) == pytest.approx(expected)

    def test_residual_strictly_decreasing(self, tridiag, tridiag_rhs):
        """Diagonally dominant: every step shrinks the residual."""
        x = Vector.zeros(3)
        norms = [tridiag.jacobi_step(x, tridiag_rhs) for _ in range(25)]
        for prev, cur in zip(norms, norms[1:]):
            assert cur < prev
        np.testing.assert_allclose(x.to_numpy(), [1.0, 1.0, 1.0], atol=1e-10)

    def test_converges_random(self, random_dominant_dense):
        """Converges on a larger dominant system."""
        mat = SparseCSRMatrix.from_dense(random_dominant_dense)
        expected = np.arange(1.0, mat.nrow + 1.0)
        rhs = random_dominant_dense @ expected
        x = np.zeros(mat.nrow)
        for _ in range(500):
            if mat.jacobi_step(x, rhs) < 1e-9:
                break
        np.testing.assert_allclose(x, expected, rtol=1e-8)

    def test_rhs_alias(self, tridiag):
        """rhs may be the same array as x."""
        x = np.array([3.0, 2.0, 3.0])
        y = x.copy()
        tridiag.jacobi_step(x, x)
        tridiag.jacobi_step(y, np.array([3.0, 2.0, 3.0]))
        np.testing.assert_array_equal(x, y)

    def test_x_must_be_mutable(self, tridiag, tridiag_rhs):
        """Lists cannot be updated in place."""
        with pytest.raises(TypeMismatchError):
            tridiag.jacobi_step([0.0, 0.0, 0.0], tridiag_rhs)

    def test_logs_debug(self, tridiag, tridiag_rhs, caplog):
        """Each step logs its residual on the kernel logger."""
        with caplog.at_level(logging.DEBUG, logger="csrrelax.kernel"):
            tridiag.jacobi_step(Vector.zeros(3), tridiag_rhs)
        assert any(r.name == "csrrelax.kernel" and r.getMessage().startswith("jacobi")
                   for r in caplog.records)


class TestSOR:
    """Test sor_step."""

    def test_gauss_seidel_first_sweep(self, tridiag, tridiag_rhs):
        """omega = 1 uses freshly updated values within the sweep."""
        x = Vector.zeros(3)
        res = tridiag.sor_step(x, tridiag_rhs, 1.0)
        assert x.to_list() == pytest.approx([0.75, 0.6875, 0.921875])
        assert res == pytest.approx(math.sqrt(9.0 + 2.75 ** 2 + 3.6875 ** 2))

    @pytest.mark.parametrize("omega", [1.0, 0.8, 1.3])
    def test_matches_dense_reference(self, random_dominant_dense, dense_sor, omega):
        """Agrees with a dense row-by-row sweep."""
        mat = SparseCSRMatrix.from_dense(random_dominant_dense)
        n = mat.nrow
        rhs = np.linspace(1.0, 2.0, n)
        x = np.zeros(n)
        ref = np.zeros(n)
        for _ in range(5):
            res = mat.sor_step(x, rhs, omega)
            ref_res = dense_sor(random_dominant_dense, ref, rhs, omega, range(n))
            assert res == pytest.approx(math.sqrt(ref_res), rel=1e-10)
        np.testing.assert_allclose(x, ref, rtol=1e-10)

    def test_gauss_seidel_monotone(self, tridiag, tridiag_rhs):
        """Gauss-Seidel sweep norms decrease on a dominant system."""
        x = Vector.zeros(3)
        norms = [tridiag.sor_step(x, tridiag_rhs, 1.0) for _ in range(10)]
        for prev, cur in zip(norms, norms[1:]):
            assert cur < prev

    def test_converges(self, tridiag, tridiag_rhs):
        """Gauss-Seidel reaches the solution."""
        x = Vector.zeros(3)
        for _ in range(100):
            if tridiag.sor_step(x, tridiag_rhs, 1.0) < 1e-12:
                break
        np.testing.assert_allclose(x.to_numpy(), [1.0, 1.0, 1.0], atol=1e-12)

    def test_omega_zero_leaves_x(self, tridiag, tridiag_rhs):
        """omega = 0 reports the residual without moving x."""
        x = Vector.from_list([0.5, 0.5, 0.5])
        res = tridiag.sor_step(x, tridiag_rhs, 0.0)
        assert x.to_list() == [0.5, 0.5, 0.5]
        assert res == pytest.approx(tridiag.residual_norm(x, tridiag_rhs))

    def test_diagonal_not_first(self, dense_sor):
        """Relaxation uses the stored diagonal wherever it sits in the row."""
        mat = SparseCSRMatrix.from_arrays(
            [0, 2, 4], [1, 0, 1, 0], [-1.0, 4.0, 4.0, -1.0],
        )
        dense = mat.to_dense()
        x = np.zeros(2)
        ref = np.zeros(2)
        rhs = np.array([3.0, 3.0])
        mat.sor_step(x, rhs, 1.0)
        dense_sor(dense, ref, rhs, 1.0, range(2))
        np.testing.assert_allclose(x, ref)


class TestSSOR:
    """Test ssor_step."""

    @pytest.mark.parametrize("omega", [1.0, 1.2])
    def test_matches_dense_reference(self, random_dominant_dense, dense_sor, omega):
        """Forward then backward sweep; norm from the backward sweep only."""
        mat = SparseCSRMatrix.from_dense(random_dominant_dense)
        n = mat.nrow
        rhs = np.linspace(-1.0, 1.0, n)
        x = np.zeros(n)
        ref = np.zeros(n)
        for _ in range(3):
            res = mat.ssor_step(x, rhs, omega)
            dense_sor(random_dominant_dense, ref, rhs, omega, range(n))
            back = dense_sor(random_dominant_dense, ref, rhs, omega, range(n - 1, -1, -1))
            assert res == pytest.approx(math.sqrt(back), rel=1e-10)
        np.testing.assert_allclose(x, ref, rtol=1e-10)

    def test_converges(self, tridiag, tridiag_rhs):
        """Symmetric Gauss-Seidel reaches the solution."""
        x = Vector.zeros(3)
        for _ in range(100):
            if tridiag.ssor_step(x, tridiag_rhs, 1.0) < 1e-12:
                break
        np.testing.assert_allclose(x.to_numpy(), [1.0, 1.0, 1.0], atol=1e-12)


class TestElementTypes:
    """Test integer and float32 arithmetic."""

    def test_int_jacobi(self):
        """Integer Jacobi on 2I."""
        mat = SparseCSRMatrix.from_arrays([0, 1, 2, 3], [0, 1, 2], np.array([2, 2, 2], dtype=np.int64))
        x = Vector.zeros(3, dtype='int64')
        res = mat.jacobi_step(x, Vector.from_list([4, 6, 8], dtype='int64'))
        assert x.to_list() == [2, 3, 4]
        # trunc(sqrt(116))
        assert res == 10
        assert isinstance(res, np.int64)

    def test_int_division_truncates(self):
        """-3 / 2 truncates to -1."""
        mat = SparseCSRMatrix.from_arrays([0, 1], [0], np.array([2], dtype=np.int32))
        x = Vector.zeros(1, dtype='int32')
        res = mat.sor_step(x, Vector.from_list([-3], dtype='int32'), 1)
        assert x[0] == -1
        assert res == 3
        assert isinstance(res, np.int32)

    def test_int_fractional_omega(self):
        """omega must be representable in an integer matrix."""
        mat = SparseCSRMatrix.from_arrays([0, 1], [0], np.array([2], dtype=np.int32))
        with pytest.raises(TypeMismatchError):
            mat.sor_step(Vector.zeros(1, dtype='int32'), [1], 1.5)

    def test_float32_preserved(self, tridiag_dense):
        """float32 in, float32 out."""
        mat = SparseCSRMatrix.from_dense(tridiag_dense, dtype='float32')
        x = Vector.zeros(3, dtype='float32')
        res = mat.ssor_step(x, np.array([3.0, 2.0, 3.0], dtype=np.float32), 1.0)
        assert isinstance(res, np.float32)
        assert x.dtype == 'float32'


class TestDiagonalChecks:
    """Test zero-diagonal and finiteness checks."""

    def test_missing_diagonal(self):
        """A missing diagonal is reported before x changes."""
        mat = SparseCSRMatrix.from_arrays([0, 1, 2], [1, 0], [1.0, 1.0])
        x = Vector.from_list([5.0, 5.0])
        with pytest.raises(ZeroDiagonalError) as exc_info:
            mat.jacobi_step(x, [1.0, 1.0])
        assert exc_info.value.rows == [0, 1]
        assert x.to_list() == [5.0, 5.0]

    def test_stored_zero_diagonal(self):
        """An explicitly stored zero counts as zero."""
        mat = SparseCSRMatrix.from_arrays([0, 1, 2], [0, 1], [1.0, 0.0])
        with pytest.raises(ZeroDivisionError):
            mat.sor_step(Vector.zeros(2), [1.0, 1.0], 1.0)
        with pytest.raises(ZeroDiagonalError):
            mat.ssor_step(Vector.zeros(2), [1.0, 1.0], 1.0)

    def test_empty_row_has_no_diagonal(self):
        """Empty rows fail the diagonal check."""
        mat = SparseCSRMatrix.empty(2)
        mat.set(0, 0, 1.0)
        with config.local(build={'warn_empty_rows': False}):
            mat.close()
        with pytest.raises(ZeroDiagonalError) as exc_info:
            mat.jacobi_step(Vector.zeros(2), [1.0, 1.0])
        assert exc_info.value.rows == [1]

    def test_multiply_ignores_diagonal(self):
        """SpMV does not need a diagonal."""
        mat = SparseCSRMatrix.from_arrays([0, 1, 2], [1, 0], [1.0, 1.0])
        assert mat.matvec([1.0, 2.0]).to_list() == [2.0, 1.0]

    def test_check_finite(self, tridiag, tridiag_rhs):
        """Non-finite residuals raise when check_finite is set."""
        x = Vector.from_list([float('nan'), 0.0, 0.0])
        res = tridiag.jacobi_step(x, tridiag_rhs)
        assert np.isnan(res)

        x = Vector.from_list([float('nan'), 0.0, 0.0])
        with config.local(kernel={'check_finite': True}):
            with pytest.raises(NumericalError):
                tridiag.jacobi_step(x, tridiag_rhs)
