# tests/test_ode.py
"""Unit tests for ode_stepper.ode.

This module verifies:
- Structural protocol checks for the three ODE interfaces.
- ConstantLinearODE and ConstantTridiagonalODE return copies of their data.
- Tridiagonal diagonals are assembled into the right band matrix.
"""

from __future__ import annotations

import numpy as np
import pytest

from ode_stepper.band_ops import BandMatrix
from ode_stepper.errors import DimensionMismatchError
from ode_stepper.ode import (
    ConstantLinearODE,
    ConstantTridiagonalODE,
    FunctionODE,
    LinearODE,
    NonlinearODE,
    TridiagonalLinearODE,
    TridiagonalODE,
)


def test_protocols_are_structural() -> None:
    """Concrete helpers satisfy the runtime-checkable protocols."""
    linear = ConstantLinearODE(BandMatrix.zeros(3, 1, 1))
    tridiagonal = ConstantTridiagonalODE(3)

    assert isinstance(FunctionODE(lambda _t, y: y), NonlinearODE)
    assert isinstance(linear, LinearODE)
    assert isinstance(tridiagonal, TridiagonalODE)
    assert isinstance(TridiagonalLinearODE(tridiagonal), LinearODE)
    assert not isinstance(linear, NonlinearODE)


def test_function_ode_forwards_arguments() -> None:
    """FunctionODE calls the wrapped callable with (t, y)."""
    ode = FunctionODE(lambda t, y: t * y)
    np.testing.assert_allclose(ode.f(2.0, np.array([1.0, 3.0])), [2.0, 6.0])


def test_constant_linear_ode_defaults_offset_to_zero() -> None:
    """An omitted offset is a zero vector of length N."""
    ode = ConstantLinearODE(BandMatrix.zeros(4, 1, 0))
    np.testing.assert_array_equal(ode.get_C(), np.zeros(4))


def test_constant_linear_ode_returns_copies() -> None:
    """Mutating returned A or c does not change the ODE."""
    matrix = BandMatrix.from_diagonals([0.0, 1.0], [-1.0, -1.0], [2.0, 0.0])
    ode = ConstantLinearODE(matrix, [0.5, 0.25])

    a = ode.get_A()
    c = ode.get_C()
    a[0, 0] = 100.0
    c[0] = 100.0

    assert ode.get_A()[0, 0] == pytest.approx(-1.0)
    assert ode.get_C()[0] == pytest.approx(0.5)


def test_constant_linear_ode_rejects_offset_length() -> None:
    """The offset must have one entry per row of A."""
    with pytest.raises(DimensionMismatchError):
        ConstantLinearODE(BandMatrix.zeros(3, 1, 1), [1.0, 2.0])


def test_constant_tridiagonal_resize_keeps_leading_values() -> None:
    """resize grows with zeros and shrinks by truncation."""
    ode = ConstantTridiagonalODE(3)
    ode.b[:] = [1.0, 2.0, 3.0]
    ode.k[:] = [4.0, 5.0, 6.0]

    ode.resize(5)
    np.testing.assert_array_equal(ode.b, [1.0, 2.0, 3.0, 0.0, 0.0])
    np.testing.assert_array_equal(ode.k, [4.0, 5.0, 6.0, 0.0, 0.0])
    assert ode.a.shape == ode.c.shape == (5,)

    ode.resize(2)
    np.testing.assert_array_equal(ode.b, [1.0, 2.0])
    np.testing.assert_array_equal(ode.k, [4.0, 5.0])


def test_tridiagonal_linear_ode_assembles_band_matrix(
    golden_ode: ConstantTridiagonalODE,
) -> None:
    """(a, b, c) map to sub, main and super diagonals; a[0] and c[-1] are dropped."""
    adapter = TridiagonalLinearODE(golden_ode)
    matrix = adapter.get_A()

    expected = (
        np.diag(-2.0 * np.ones(5)) + np.diag(np.ones(4), 1) + np.diag(np.ones(4), -1)
    )
    assert (matrix.n, matrix.upper_bw, matrix.lower_bw) == (5, 1, 1)
    np.testing.assert_array_equal(matrix.to_dense(), expected)
    np.testing.assert_array_equal(adapter.get_C(), [0.0, 0.0, 0.0, 0.2, 0.4])


def test_tridiagonal_linear_ode_uses_asymmetric_diagonals() -> None:
    """Row i reads a[i] y[i-1] + b[i] y[i] + c[i] y[i+1]."""
    ode = ConstantTridiagonalODE(3)
    ode.a[:] = [9.0, 1.0, 2.0]
    ode.b[:] = [3.0, 4.0, 5.0]
    ode.c[:] = [6.0, 7.0, 9.0]

    dense = TridiagonalLinearODE(ode).get_A().to_dense()

    np.testing.assert_array_equal(
        dense,
        [
            [3.0, 6.0, 0.0],
            [1.0, 4.0, 7.0],
            [0.0, 2.0, 5.0],
        ],
    )
