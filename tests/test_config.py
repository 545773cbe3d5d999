# tests/test_config.py
"""Tests for ode_stepper.config."""

from __future__ import annotations

import numpy as np
import pytest
from pydantic import ValidationError

from ode_stepper.band_ops import BandMatrix
from ode_stepper.config import IntegratorConfig, build_integrator
from ode_stepper.integrators import (
    BDFIntegrator,
    ExplicitIntegrator,
    StepRegime,
    TridiagonalIntegrator,
)
from ode_stepper.ode import ConstantLinearODE, ConstantTridiagonalODE, FunctionODE


def _heat_matrix(n: int) -> BandMatrix:
    sub = np.ones(n)
    sup = np.ones(n)
    return BandMatrix.from_diagonals(sub, -2.0 * np.ones(n), sup)


def test_config_defaults() -> None:
    """Only h is required; the rest falls back to BDF defaults."""
    cfg = IntegratorConfig(h=0.1)

    assert cfg.method == "bdf"
    assert cfg.h == pytest.approx(0.1)
    assert cfg.t0 == pytest.approx(0.0)
    assert (cfg.upper_bw, cfg.lower_bw) == (1, 1)


@pytest.mark.parametrize("h", [0.0, -1.0])
def test_config_rejects_non_positive_step(h: float) -> None:
    """Step size must be strictly positive."""
    with pytest.raises(ValidationError):
        IntegratorConfig(h=h)


def test_config_requires_step_size() -> None:
    """h has no default."""
    with pytest.raises(ValidationError):
        IntegratorConfig()  # type: ignore[call-arg]


def test_config_rejects_unknown_method() -> None:
    """Only euler, bdf and tridiagonal are accepted."""
    with pytest.raises(ValidationError):
        IntegratorConfig(method="rk4", h=0.1)  # type: ignore[arg-type]


def test_config_rejects_negative_bandwidth() -> None:
    """Bandwidths are non-negative."""
    with pytest.raises(ValidationError):
        IntegratorConfig(h=0.1, upper_bw=-1)


def test_config_tridiagonal_requires_unit_bandwidth() -> None:
    """The tridiagonal method only accepts upper_bw == lower_bw == 1."""
    with pytest.raises(ValidationError, match="tridiagonal"):
        IntegratorConfig(method="tridiagonal", h=0.1, upper_bw=2)


def test_config_allows_extra_fields() -> None:
    """Unknown fields are kept so the model can sit inside larger configs."""
    cfg = IntegratorConfig.model_validate({"h": 0.5, "label": "heat"})

    assert cfg.model_extra == {"label": "heat"}


def test_build_euler_integrator() -> None:
    """Euler configs produce a ready ExplicitIntegrator."""
    integrator = build_integrator(
        IntegratorConfig(method="euler", h=0.5, t0=1.0),
        FunctionODE(lambda _t, y: -y),
        [2.0],
    )

    assert isinstance(integrator, ExplicitIntegrator)
    assert integrator.get_t() == pytest.approx(1.0)
    assert integrator.get_h() == pytest.approx(0.5)

    integrator.step()
    assert integrator.get_y()[0] == pytest.approx(1.0)
    assert integrator.get_t() == pytest.approx(1.5)


def test_build_bdf_integrator_from_mapping() -> None:
    """Mappings are validated and BDF integrators are sized from y0."""
    ode = ConstantLinearODE(_heat_matrix(4), np.zeros(4))
    integrator = build_integrator(
        {"method": "bdf", "h": 0.1, "t0": 2.0}, ode, np.ones(4)
    )

    assert isinstance(integrator, BDFIntegrator)
    assert not isinstance(integrator, TridiagonalIntegrator)
    assert integrator.n == 4
    assert (integrator.upper_bw, integrator.lower_bw) == (1, 1)
    assert integrator.regime is StepRegime.UNINITIALIZED

    integrator.step()
    assert integrator.get_t() == pytest.approx(2.1)
    assert integrator.regime is StepRegime.FIRST_STEP


def test_build_bdf_integrator_with_wider_band() -> None:
    """Configured bandwidths are passed to set_size."""
    dense = np.diag(-np.ones(5)) + np.diag(0.5 * np.ones(3), 2)
    ode = ConstantLinearODE(BandMatrix.from_dense(dense, 2, 0))
    integrator = build_integrator(
        IntegratorConfig(h=0.1, upper_bw=2, lower_bw=0), ode, np.ones(5)
    )

    assert isinstance(integrator, BDFIntegrator)
    assert (integrator.upper_bw, integrator.lower_bw) == (2, 0)
    integrator.step()
    assert integrator.n_factorizations == 1


def test_build_tridiagonal_integrator() -> None:
    """Tridiagonal configs wrap a TridiagonalODE."""
    ode = ConstantTridiagonalODE(3)
    ode.a[:] = [0.0, 1.0, 1.0]
    ode.b[:] = [-2.0, -2.0, -2.0]
    ode.c[:] = [1.0, 1.0, 0.0]

    integrator = build_integrator(
        {"method": "tridiagonal", "h": 0.05}, ode, [1.0, 0.0, 0.0]
    )

    assert isinstance(integrator, TridiagonalIntegrator)
    integrator.step()
    assert integrator.get_t() == pytest.approx(0.05)
    assert np.all(np.isfinite(integrator.get_y()))


def test_build_rejects_invalid_mapping() -> None:
    """Invalid mappings fail validation before any integrator is built."""
    with pytest.raises(ValidationError):
        build_integrator(
            {"method": "bdf", "h": -0.1}, FunctionODE(lambda _t, y: y), [1.0]
        )
