# src/ode_stepper/ode.py
"""ODE capability interfaces consumed by the integrators.

Three shapes of ODE description are supported:

- NonlinearODE:   explicit right-hand side, dy/dt = f(t, y).
- LinearODE:      dy/dt = A y + c with a banded A and offset vector c.
- TridiagonalODE: the bandwidth-1 case, supplied as three diagonals and an
                  offset vector k.

The interfaces are structural (typing.Protocol); any object with matching
methods works. A few small concrete implementations are provided for callers
that already hold the data in arrays.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Protocol, TypeAlias, runtime_checkable

import numpy as np
from numpy.typing import ArrayLike, NDArray

from .band_ops import BandMatrix
from .errors import raise_dimension_mismatch

FloatArray: TypeAlias = NDArray[np.floating]
RHSFunction = Callable[[float, FloatArray], ArrayLike]


# =============================================================================
# Protocols
# =============================================================================


@runtime_checkable
class NonlinearODE(Protocol):
    """ODE with an explicit right-hand side."""

    def f(self, t: float, y: FloatArray) -> ArrayLike:
        """Return dy/dt at (t, y) as a vector of length N."""
        ...


@runtime_checkable
class LinearODE(Protocol):
    """Linear ODE dy/dt = A y + c with constant banded A.

    Integrators query A and c once at the start of a stepping session.
    """

    def get_A(self) -> BandMatrix:  # noqa: N802
        """Return the banded system matrix A."""
        ...

    def get_C(self) -> ArrayLike:  # noqa: N802
        """Return the offset vector c."""
        ...


@runtime_checkable
class TridiagonalODE(Protocol):
    """Linear ODE with a tridiagonal system matrix.

    Row i reads a[i] y[i-1] + b[i] y[i] + c[i] y[i+1] + k[i].
    """

    def get_A(self) -> tuple[ArrayLike, ArrayLike, ArrayLike]:  # noqa: N802
        """Return the (sub, main, super) diagonal vectors (a, b, c)."""
        ...

    def get_k(self) -> ArrayLike:
        """Return the offset vector k."""
        ...

    def resize(self, n: int) -> None:
        """Resize internal storage for an n-point system."""
        ...


# =============================================================================
# Concrete helpers
# =============================================================================


class FunctionODE:
    """Adapt a plain rhs(t, y) callable to the NonlinearODE interface."""

    def __init__(self, rhs: RHSFunction) -> None:
        """
        Initialize FunctionODE.

        Args:
            rhs: Callable returning dy/dt for (t, y).
        """
        self.rhs = rhs

    def f(self, t: float, y: FloatArray) -> ArrayLike:
        """Evaluate the wrapped right-hand side."""
        return self.rhs(t, y)


class ConstantLinearODE:
    """LinearODE with a fixed band matrix and offset vector."""

    def __init__(self, matrix: BandMatrix, offset: ArrayLike | None = None) -> None:
        """
        Initialize ConstantLinearODE.

        Args:
            matrix: System matrix A.
            offset: Offset vector c; zeros if omitted.

        Raises:
            DimensionMismatchError: If offset length differs from matrix size.
        """
        self.matrix = matrix
        if offset is None:
            self.offset = np.zeros(matrix.n, dtype=np.float64)
        else:
            self.offset = np.asarray(offset, dtype=np.float64)
        if self.offset.shape != (matrix.n,):
            raise_dimension_mismatch(
                name="offset", expected=(matrix.n,), got=self.offset.shape
            )

    def get_A(self) -> BandMatrix:  # noqa: N802
        """Return a copy of the system matrix."""
        return self.matrix.copy()

    def get_C(self) -> FloatArray:  # noqa: N802
        """Return a copy of the offset vector."""
        return self.offset.copy()


class ConstantTridiagonalODE:
    """TridiagonalODE holding its diagonals and offset as plain arrays.

    Attributes:
        a: Subdiagonal coefficients (a[0] unused).
        b: Main diagonal coefficients.
        c: Superdiagonal coefficients (c[-1] unused).
        k: Offset vector.
    """

    def __init__(self, n: int = 0) -> None:
        """
        Initialize ConstantTridiagonalODE with zero coefficients.

        Args:
            n: Initial system size.
        """
        self.a = np.zeros(n, dtype=np.float64)
        self.b = np.zeros(n, dtype=np.float64)
        self.c = np.zeros(n, dtype=np.float64)
        self.k = np.zeros(n, dtype=np.float64)

    def get_A(self) -> tuple[FloatArray, FloatArray, FloatArray]:  # noqa: N802
        """Return copies of the (a, b, c) diagonals."""
        return self.a.copy(), self.b.copy(), self.c.copy()

    def get_k(self) -> FloatArray:
        """Return a copy of the offset vector."""
        return self.k.copy()

    def resize(self, n: int) -> None:
        """
        Resize all coefficient vectors, keeping existing leading values.

        Args:
            n: New system size.
        """
        for name in ("a", "b", "c", "k"):
            old = getattr(self, name)
            new = np.zeros(n, dtype=np.float64)
            keep = min(n, old.shape[0])
            new[:keep] = old[:keep]
            setattr(self, name, new)


class TridiagonalLinearODE:
    """Present a TridiagonalODE through the LinearODE interface."""

    def __init__(self, tridiagonal: TridiagonalODE) -> None:
        """
        Initialize TridiagonalLinearODE.

        Args:
            tridiagonal: Tridiagonal ODE to adapt.
        """
        self.tridiagonal = tridiagonal

    def get_A(self) -> BandMatrix:  # noqa: N802
        """Assemble the tridiagonal band matrix from the (a, b, c) diagonals."""
        sub, diag, sup = self.tridiagonal.get_A()
        return BandMatrix.from_diagonals(sub, diag, sup)

    def get_C(self) -> ArrayLike:  # noqa: N802
        """Return the tridiagonal offset vector k."""
        return self.tridiagonal.get_k()
