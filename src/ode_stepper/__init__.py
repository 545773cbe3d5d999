"""ode_stepper fixed-step ODE integrators package."""

from __future__ import annotations

from .band_ops import BandFactorization, BandMatrix, band_factorize, band_solve
from .config import IntegratorConfig, build_integrator
from .errors import (
    DimensionMismatchError,
    ErrorCode,
    InvalidConfigurationError,
    LinearSolveError,
    NotInitializedError,
    OdeStepperError,
    SingularMatrixError,
    SolveFailedError,
)
from .integrators import (
    BDFIntegrator,
    ExplicitIntegrator,
    Integrator,
    StepRegime,
    TridiagonalIntegrator,
    record_steps,
)
from .ode import (
    ConstantLinearODE,
    ConstantTridiagonalODE,
    FunctionODE,
    LinearODE,
    NonlinearODE,
    RHSFunction,
    TridiagonalLinearODE,
    TridiagonalODE,
)

__all__ = [
    "BDFIntegrator",
    "BandFactorization",
    "BandMatrix",
    "ConstantLinearODE",
    "ConstantTridiagonalODE",
    "DimensionMismatchError",
    "ErrorCode",
    "ExplicitIntegrator",
    "FunctionODE",
    "Integrator",
    "IntegratorConfig",
    "InvalidConfigurationError",
    "LinearODE",
    "LinearSolveError",
    "NonlinearODE",
    "NotInitializedError",
    "OdeStepperError",
    "RHSFunction",
    "SingularMatrixError",
    "SolveFailedError",
    "StepRegime",
    "TridiagonalIntegrator",
    "TridiagonalLinearODE",
    "TridiagonalODE",
    "band_factorize",
    "band_solve",
    "build_integrator",
    "record_steps",
]

__version__ = "0.1.0"
