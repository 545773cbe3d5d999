"""Global pytest configuration and shared fixtures for ode_stepper."""

from __future__ import annotations

from typing import Final

import numpy as np
import pytest

from ode_stepper.ode import ConstantTridiagonalODE

# -----------------------------------------------------------------------------
# Reference tridiagonal system
# -----------------------------------------------------------------------------

_GOLDEN_Y0: Final[tuple[float, ...]] = (0.0, 0.5, 2.0, 1.0, 0.0)

# States at steps 0..5 (BDF1 first step, BDF2 afterwards), h = 0.2.
_GOLDEN_TRACE: Final[tuple[tuple[float, ...], ...]] = (
    (0.00000000000000, 0.50000000000000, 2.00000000000000, 1.00000000000000, 0.00000000000000),  # noqa: E501
    (0.09475912852595, 0.63130024184639, 1.61199522551290, 1.01579521276719, 0.22818950052384),  # noqa: E501
    (0.17271644069234, 0.69321490131769, 1.34982270336185, 1.01014852549086, 0.38863616112939),  # noqa: E501
    (0.23179316689213, 0.71176849986673, 1.17610917328091, 0.99302967646570, 0.49567553015264),  # noqa: E501
    (0.27296869366712, 0.70706202264716, 1.05947277610782, 0.97139437597267, 0.56384834470269),  # noqa: E501
    (0.29912090096054, 0.69144453968429, 0.97840324923541, 0.94893150017619, 0.60507643387595),  # noqa: E501
)


def _fill_golden_ode(ode: ConstantTridiagonalODE) -> None:
    ode.a[:] = [0.0, 1.0, 1.0, 1.0, 1.0]
    ode.b[:] = [-2.0, -2.0, -2.0, -2.0, -2.0]
    ode.c[:] = [1.0, 1.0, 1.0, 1.0, 0.0]
    ode.k[:] = [0.0, 0.0, 0.0, 0.2, 0.4]


@pytest.fixture
def golden_ode() -> ConstantTridiagonalODE:
    """Reference 5-point tridiagonal ODE."""
    ode = ConstantTridiagonalODE(5)
    _fill_golden_ode(ode)
    return ode


@pytest.fixture
def golden_y0() -> np.ndarray:
    """Initial state of the reference system."""
    return np.array(_GOLDEN_Y0, dtype=float)


@pytest.fixture
def golden_trace() -> np.ndarray:
    """Reference states at steps 0..5, shape (6, 5)."""
    return np.array(_GOLDEN_TRACE, dtype=float)
