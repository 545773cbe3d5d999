# src/ode_stepper/config.py
"""Configuration models for building ode_stepper integrators.

This module defines a pydantic configuration object that can be loaded from
YAML/JSON-style dictionaries and turned into a ready-to-step integrator.

Notes:
    - Unknown fields are allowed and ignored (`extra="allow"`) so the model can
      be embedded in larger framework configs.
    - The ODE collaborator is never part of the config; it is passed to
      build_integrator separately.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Literal, TypeAlias

from numpy.typing import ArrayLike
from pydantic import BaseModel, ConfigDict, Field, model_validator

from .integrators import BDFIntegrator, ExplicitIntegrator, TridiagonalIntegrator

if TYPE_CHECKING:
    from .ode import LinearODE, NonlinearODE, TridiagonalODE

MethodName = Literal["euler", "bdf", "tridiagonal"]
AnyIntegrator: TypeAlias = ExplicitIntegrator | BDFIntegrator | TridiagonalIntegrator


class IntegratorConfig(BaseModel):
    """Configuration schema for a fixed-step integrator."""

    model_config = ConfigDict(extra="allow")

    method: MethodName = Field(
        default="bdf",
        description="Integration method",
    )

    h: float = Field(gt=0.0, description="Fixed step size")
    t0: float = Field(default=0.0, description="Initial time")

    # Banded system shape (ignored by "euler")
    upper_bw: int = Field(default=1, ge=0)
    lower_bw: int = Field(default=1, ge=0)

    @model_validator(mode="after")
    def _validate_tridiagonal_bandwidth(self) -> IntegratorConfig:
        if self.method == "tridiagonal" and (self.upper_bw, self.lower_bw) != (1, 1):
            msg = (
                "Method 'tridiagonal' requires upper_bw == lower_bw == 1; "
                f"got ({self.upper_bw}, {self.lower_bw})."
            )
            raise ValueError(msg)
        return self


def build_integrator(
    config: IntegratorConfig | Mapping[str, object],
    ode: NonlinearODE | LinearODE | TridiagonalODE,
    y0: ArrayLike,
) -> AnyIntegrator:
    """Build and configure an integrator from a config.

    The returned integrator has its size (for banded methods), t0, h and y0
    set and is ready for step().

    Args:
        config: IntegratorConfig or a mapping validated into one.
        ode: ODE collaborator matching the configured method.
        y0: Initial state vector.

    Returns:
        Configured integrator instance.
    """
    cfg = (
        config
        if isinstance(config, IntegratorConfig)
        else IntegratorConfig.model_validate(dict(config))
    )

    if cfg.method == "euler":
        explicit = ExplicitIntegrator(ode)  # type: ignore[arg-type]
        explicit.set_y0(y0)
        explicit.set_t0(cfg.t0)
        explicit.set_h(cfg.h)
        return explicit

    integrator: BDFIntegrator
    if cfg.method == "tridiagonal":
        integrator = TridiagonalIntegrator(ode)  # type: ignore[arg-type]
    else:
        integrator = BDFIntegrator(ode)  # type: ignore[arg-type]

    integrator.set_y0(y0)
    integrator.set_size(integrator.n, cfg.upper_bw, cfg.lower_bw)
    integrator.set_t0(cfg.t0)
    integrator.set_dt(cfg.h)
    return integrator
