"""
Banded matrix storage and LU factor/solve primitives.

This module provides the small linear-algebra service used by the implicit
integrators:

- A value-owned banded matrix container addressed by (row, column) or by
  diagonal offset.
- A pure factorization function returning the LU factors plus pivots.
- A pure solve function applying a stored factorization to a right-hand side.

Design notes:
    * Storage follows the LAPACK general-band layout: entry A[i, j] lives at
      data[upper_bw + i - j, j], so each diagonal is a contiguous row slice.
    * Factorization and solves delegate to LAPACK ?gbtrf/?gbtrs through
      scipy.linalg.get_lapack_funcs (partial pivoting, O(n * bw^2) to factor,
      O(n * bw) to solve).
    * The factored buffer carries lower_bw extra rows for pivoting fill-in,
      so it is sized (2 * lower_bw + upper_bw + 1, n).
    * Failures are raised, never signalled through output parameters:
      SingularMatrixError for an exactly zero pivot, SolveFailedError for
      solve-time failures and non-finite results.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TypeAlias, cast

import numpy as np
from numpy.typing import ArrayLike, DTypeLike, NDArray
from scipy.linalg import get_lapack_funcs
from scipy.sparse import csr_matrix, diags

from .errors import (
    ErrorCode,
    SingularMatrixError,
    SolveFailedError,
    raise_dimension_mismatch,
    raise_invalid_configuration,
)

FloatArray: TypeAlias = NDArray[np.floating]
PivotArray: TypeAlias = NDArray[np.integer]


# =============================================================================
# Error message constants
# =============================================================================

_OUTSIDE_BAND_ERROR = (
    "Entry ({i}, {j}) lies outside the band (upper_bw={upper_bw}, lower_bw={lower_bw})"
)
_INDEX_OOB_ERROR = "Index ({i}, {j}) out of bounds for {n}x{n} band matrix"
_SINGULAR_ERROR = (
    "Banded LU factorization failed: U[{index}, {index}] is exactly zero, "
    "so the matrix is singular."
)
_ILLEGAL_ARGUMENT_ERROR = "LAPACK {routine} rejected argument {arg}"
_NONFINITE_SOLUTION_ERROR = "Banded solve produced non-finite values"


# =============================================================================
# Storage
# =============================================================================


def _validate_band_shape(n: int, upper_bw: int, lower_bw: int) -> None:
    if n <= 0:
        raise_invalid_configuration(name="n", detail="must be positive", got=n)
    if upper_bw < 0:
        raise_invalid_configuration(
            name="upper_bw", detail="must be non-negative", got=upper_bw
        )
    if lower_bw < 0:
        raise_invalid_configuration(
            name="lower_bw", detail="must be non-negative", got=lower_bw
        )


@dataclass(slots=True)
class BandMatrix:
    """Square banded matrix in LAPACK general-band storage.

    Attributes:
        n: Matrix size (n x n).
        upper_bw: Number of diagonals above the main diagonal.
        lower_bw: Number of diagonals below the main diagonal.
        data: Band buffer of shape (upper_bw + lower_bw + 1, n). Slots that do
            not correspond to a matrix entry (corners of the band) are unused.
    """

    n: int
    upper_bw: int
    lower_bw: int
    data: FloatArray

    def __post_init__(self) -> None:
        """Validate sizes and the band buffer shape.

        Raises:
            DimensionMismatchError: If data does not have the band shape.
        """
        _validate_band_shape(self.n, self.upper_bw, self.lower_bw)
        expected = (self.upper_bw + self.lower_bw + 1, self.n)
        if self.data.shape != expected:
            raise_dimension_mismatch(
                name="band data", expected=expected, got=self.data.shape
            )

    @classmethod
    def zeros(
        cls,
        n: int,
        upper_bw: int,
        lower_bw: int,
        dtype: DTypeLike = np.float64,
    ) -> BandMatrix:
        """
        Allocate a zero band matrix.

        Args:
            n: Matrix size.
            upper_bw: Upper bandwidth.
            lower_bw: Lower bandwidth.
            dtype: Floating dtype (e.g. np.float64).

        Returns:
            BandMatrix with all entries zero.
        """
        _validate_band_shape(n, upper_bw, lower_bw)
        data = np.zeros((upper_bw + lower_bw + 1, n), dtype=np.dtype(dtype))
        return cls(n=n, upper_bw=upper_bw, lower_bw=lower_bw, data=data)

    @classmethod
    def from_dense(
        cls,
        matrix: ArrayLike,
        upper_bw: int,
        lower_bw: int,
    ) -> BandMatrix:
        """
        Build a band matrix from a dense square array.

        Entries outside the requested band are dropped.

        Args:
            matrix: Dense square 2D array.
            upper_bw: Upper bandwidth.
            lower_bw: Lower bandwidth.

        Returns:
            BandMatrix holding the in-band entries of matrix.
        """
        dense = np.asarray(matrix, dtype=np.float64)
        if dense.ndim != 2 or dense.shape[0] != dense.shape[1]:
            raise_dimension_mismatch(
                name="dense matrix", expected="square 2D array", got=dense.shape
            )
        band = cls.zeros(dense.shape[0], upper_bw, lower_bw, dtype=dense.dtype)
        for offset in range(-lower_bw, upper_bw + 1):
            band.set_diagonal(offset, np.diagonal(dense, offset=offset))
        return band

    @classmethod
    def from_diagonals(
        cls,
        sub: ArrayLike,
        diag: ArrayLike,
        sup: ArrayLike,
    ) -> BandMatrix:
        """
        Build a tridiagonal band matrix from three length-n vectors.

        Row i of the matrix is (sub[i], diag[i], sup[i]) acting on
        (y[i-1], y[i], y[i+1]); sub[0] and sup[n-1] are ignored.

        Args:
            sub: Subdiagonal coefficients, length n.
            diag: Main diagonal coefficients, length n.
            sup: Superdiagonal coefficients, length n.

        Returns:
            BandMatrix with upper_bw = lower_bw = 1.
        """
        diag_arr = np.asarray(diag, dtype=np.float64)
        sub_arr = np.asarray(sub, dtype=np.float64)
        sup_arr = np.asarray(sup, dtype=np.float64)

        n = int(diag_arr.shape[0])
        for name, arr in (("sub", sub_arr), ("sup", sup_arr)):
            if arr.shape != (n,):
                raise_dimension_mismatch(name=name, expected=(n,), got=arr.shape)

        band = cls.zeros(n, 1, 1)
        band.set_diagonal(0, diag_arr)
        band.set_diagonal(-1, sub_arr[1:])
        band.set_diagonal(1, sup_arr[:-1])
        return band

    # ------------------------------------------------------------------
    # Element and diagonal access
    # ------------------------------------------------------------------

    @property
    def shape(self) -> tuple[int, int]:
        """Return the dense shape (n, n)."""
        return (self.n, self.n)

    def _check_index(self, i: int, j: int) -> None:
        if not (0 <= i < self.n and 0 <= j < self.n):
            raise IndexError(_INDEX_OOB_ERROR.format(i=i, j=j, n=self.n))

    def in_band(self, i: int, j: int) -> bool:
        """Return True if (i, j) is stored by this band matrix."""
        return -self.lower_bw <= j - i <= self.upper_bw

    def __getitem__(self, index: tuple[int, int]) -> float:
        """
        Return A[i, j]; entries outside the band read as zero.

        Args:
            index: (row, column) pair.

        Returns:
            Matrix entry as a float.
        """
        i, j = index
        self._check_index(i, j)
        if not self.in_band(i, j):
            return 0.0
        return float(self.data[self.upper_bw + i - j, j])

    def __setitem__(self, index: tuple[int, int], value: float) -> None:
        """
        Set A[i, j].

        Args:
            index: (row, column) pair.
            value: New entry value.

        Raises:
            IndexError: If (i, j) is outside the matrix or outside the band.
        """
        i, j = index
        self._check_index(i, j)
        if not self.in_band(i, j):
            raise IndexError(
                _OUTSIDE_BAND_ERROR.format(
                    i=i, j=j, upper_bw=self.upper_bw, lower_bw=self.lower_bw
                )
            )
        self.data[self.upper_bw + i - j, j] = value

    def _diagonal_slice(self, offset: int) -> tuple[int, slice]:
        row = self.upper_bw - offset
        if offset >= 0:
            return row, slice(min(offset, self.n), self.n)
        return row, slice(0, max(self.n + offset, 0))

    def diagonal(self, offset: int = 0) -> FloatArray:
        """
        Return a copy of the diagonal at the given offset.

        Args:
            offset: Diagonal offset (j - i); positive is above the main diagonal.

        Returns:
            1D array of length n - |offset| (zeros outside the band).
        """
        length = max(self.n - abs(offset), 0)
        if not (-self.lower_bw <= offset <= self.upper_bw):
            return np.zeros(length, dtype=self.data.dtype)
        row, cols = self._diagonal_slice(offset)
        return cast("FloatArray", self.data[row, cols].copy())

    def set_diagonal(self, offset: int, values: ArrayLike) -> None:
        """
        Overwrite the diagonal at the given offset.

        Args:
            offset: Diagonal offset (j - i) within the band.
            values: Scalar or 1D array of length n - |offset|.

        Raises:
            IndexError: If offset lies outside the band.
        """
        if not (-self.lower_bw <= offset <= self.upper_bw):
            raise IndexError(
                _OUTSIDE_BAND_ERROR.format(
                    i=max(-offset, 0),
                    j=max(offset, 0),
                    upper_bw=self.upper_bw,
                    lower_bw=self.lower_bw,
                )
            )
        vals = np.asarray(values, dtype=self.data.dtype)
        length = max(self.n - abs(offset), 0)
        if vals.ndim == 1 and vals.shape[0] != length:
            raise_dimension_mismatch(
                name=f"diagonal {offset}", expected=(length,), got=vals.shape
            )
        row, cols = self._diagonal_slice(offset)
        self.data[row, cols] = vals

    # ------------------------------------------------------------------
    # Arithmetic / conversions
    # ------------------------------------------------------------------

    def copy(self) -> BandMatrix:
        """Return a deep copy of this band matrix."""
        return BandMatrix(
            n=self.n,
            upper_bw=self.upper_bw,
            lower_bw=self.lower_bw,
            data=self.data.copy(),
        )

    def shift_diagonal(self, shift: float) -> BandMatrix:
        """
        Return A + shift * I as a new band matrix.

        Args:
            shift: Scalar added to every main-diagonal entry.

        Returns:
            New BandMatrix with the same bandwidths.
        """
        shifted = self.copy()
        shifted.data[self.upper_bw, :] += shift
        return shifted

    def matvec(self, x: ArrayLike) -> FloatArray:
        """
        Compute A @ x using only the stored diagonals.

        Args:
            x: 1D array of length n.

        Returns:
            1D array of length n.
        """
        x_arr = np.asarray(x, dtype=self.data.dtype)
        if x_arr.shape != (self.n,):
            raise_dimension_mismatch(name="x", expected=(self.n,), got=x_arr.shape)

        out = np.zeros(self.n, dtype=self.data.dtype)
        for offset in range(-self.lower_bw, self.upper_bw + 1):
            if abs(offset) >= self.n:
                continue
            row, cols = self._diagonal_slice(offset)
            vals = self.data[row, cols]
            if offset >= 0:
                out[: self.n - offset] += vals * x_arr[offset:]
            else:
                out[-offset:] += vals * x_arr[: self.n + offset]
        return out

    def to_dense(self) -> FloatArray:
        """Return the dense (n, n) representation."""
        dense = np.zeros((self.n, self.n), dtype=self.data.dtype)
        for offset in range(-self.lower_bw, self.upper_bw + 1):
            if abs(offset) >= self.n:
                continue
            row, cols = self._diagonal_slice(offset)
            idx = np.arange(self.n - abs(offset))
            if offset >= 0:
                dense[idx, idx + offset] = self.data[row, cols]
            else:
                dense[idx - offset, idx] = self.data[row, cols]
        return dense

    def to_sparse(self) -> csr_matrix:
        """Return the CSR representation of the stored band."""
        offsets = [
            k for k in range(-self.lower_bw, self.upper_bw + 1) if abs(k) < self.n
        ]
        diagonals = [self.diagonal(k).tolist() for k in offsets]
        return diags(
            diagonals,
            offsets,
            shape=(self.n, self.n),
            dtype=self.data.dtype,
        ).tocsr()


@dataclass(frozen=True, slots=True)
class BandFactorization:
    """LU factors and pivots of a banded matrix.

    Attributes:
        lu: Factored band buffer of shape (2 * lower_bw + upper_bw + 1, n).
        pivots: Row-interchange record of length n.
        upper_bw: Upper bandwidth of the original matrix.
        lower_bw: Lower bandwidth of the original matrix.
    """

    lu: FloatArray
    pivots: PivotArray
    upper_bw: int
    lower_bw: int

    @property
    def n(self) -> int:
        """Return the matrix size."""
        return int(self.lu.shape[1])

    @classmethod
    def empty(
        cls,
        n: int,
        upper_bw: int,
        lower_bw: int,
        dtype: DTypeLike = np.float64,
    ) -> BandFactorization:
        """
        Allocate zeroed LU storage and pivots, before any factorization.

        Args:
            n: Matrix size.
            upper_bw: Upper bandwidth.
            lower_bw: Lower bandwidth.
            dtype: Floating dtype (e.g. np.float64).

        Returns:
            BandFactorization with zero buffers.
        """
        _validate_band_shape(n, upper_bw, lower_bw)
        lu = np.zeros((2 * lower_bw + upper_bw + 1, n), dtype=np.dtype(dtype))
        pivots = np.zeros(n, dtype=np.int32)
        return cls(lu=lu, pivots=pivots, upper_bw=upper_bw, lower_bw=lower_bw)


# =============================================================================
# Factor / solve
# =============================================================================


def band_factorize(matrix: BandMatrix) -> BandFactorization:
    """
    Compute the LU factorization (partial pivoting) of a banded matrix.

    The input matrix is not modified.

    Args:
        matrix: Band matrix to factorize.

    Raises:
        SingularMatrixError: If a pivot is exactly zero.
        SolveFailedError: If LAPACK rejects an argument.

    Returns:
        BandFactorization usable with band_solve.
    """
    kl = matrix.lower_bw
    ku = matrix.upper_bw
    ab = np.zeros((2 * kl + ku + 1, matrix.n), dtype=matrix.data.dtype)
    ab[kl:, :] = matrix.data

    (gbtrf,) = get_lapack_funcs(("gbtrf",), (ab,))
    lu, pivots, info = gbtrf(ab, kl, ku, overwrite_ab=True)

    if info > 0:
        raise SingularMatrixError(
            _SINGULAR_ERROR.format(index=info - 1), code=ErrorCode.SINGULAR_MATRIX
        )
    if info < 0:
        raise SolveFailedError(
            _ILLEGAL_ARGUMENT_ERROR.format(routine="gbtrf", arg=-info),
            code=ErrorCode.SOLVE_FAILED,
        )

    return BandFactorization(
        lu=np.asarray(lu),
        pivots=np.asarray(pivots),
        upper_bw=ku,
        lower_bw=kl,
    )


def band_solve(factorization: BandFactorization, rhs: ArrayLike) -> FloatArray:
    """
    Solve A @ x = rhs using a stored banded LU factorization.

    Args:
        factorization: Output of band_factorize.
        rhs: 1D array of length n, or 2D array (n, k) of right-hand sides.

    Raises:
        DimensionMismatchError: If rhs does not have n rows.
        SolveFailedError: If LAPACK reports an error or the result is not finite.

    Returns:
        Solution array with the same shape as rhs.
    """
    lu = factorization.lu
    n = factorization.n
    rhs_arr = np.asarray(rhs, dtype=lu.dtype)

    if rhs_arr.ndim not in {1, 2} or rhs_arr.shape[0] != n:
        raise_dimension_mismatch(name="rhs", expected=(n,), got=rhs_arr.shape)

    (gbtrs,) = get_lapack_funcs(("gbtrs",), (lu,))
    x, info = gbtrs(
        lu,
        factorization.lower_bw,
        factorization.upper_bw,
        rhs_arr.reshape(n, -1),
        factorization.pivots,
    )

    if info != 0:
        raise SolveFailedError(
            _ILLEGAL_ARGUMENT_ERROR.format(routine="gbtrs", arg=-info),
            code=ErrorCode.SOLVE_FAILED,
        )

    out = np.asarray(x, dtype=lu.dtype).reshape(rhs_arr.shape)
    if not np.all(np.isfinite(out)):
        raise SolveFailedError(_NONFINITE_SOLUTION_ERROR, code=ErrorCode.SOLVE_FAILED)
    return out
