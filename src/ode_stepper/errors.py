# src/ode_stepper/errors.py
"""Error types for ode_stepper integrators and banded linear algebra.

This module centralizes:
- a small error taxonomy shared by the integrators and the banded solver,
- machine-readable error codes, and
- helpers that raise the standard errors with consistent messages.

Design intent:
- configuration mistakes surface at the setter that introduces them,
- solve-time failures surface from step() with the integrator untouched,
- singular factorizations are distinguishable from other solve failures.
"""

from __future__ import annotations

from enum import StrEnum
from typing import NoReturn


class ErrorCode(StrEnum):
    """Machine-readable classification for ode_stepper failures."""

    INVALID_CONFIGURATION = "invalid_configuration"
    DIMENSION_MISMATCH = "dimension_mismatch"
    NOT_INITIALIZED = "not_initialized"
    SINGULAR_MATRIX = "singular_matrix"
    SOLVE_FAILED = "solve_failed"


class OdeStepperError(Exception):
    """Base exception for ode_stepper errors.

    Callers can catch this to handle every failure raised by the package.
    """

    def __init__(self, message: str, *, code: ErrorCode | None = None) -> None:
        """
        Initialize an OdeStepperError.

        Args:
            message: Human-readable error message.
            code: Optional machine-readable error code classifying the error.
        """
        super().__init__(message)
        self.code: ErrorCode | None = code


class InvalidConfigurationError(OdeStepperError, ValueError):
    """Raised for a non-positive step size, an empty state or bad bandwidths."""


class DimensionMismatchError(OdeStepperError, ValueError):
    """Raised when state, matrix or pivot lengths disagree."""


class NotInitializedError(OdeStepperError, RuntimeError):
    """Raised when stepping before size, state or step size are configured."""


class LinearSolveError(OdeStepperError, ArithmeticError):
    """Base class for failures of the banded factorize/solve service."""


class SingularMatrixError(LinearSolveError):
    """Raised when a banded LU factorization hits an exactly zero pivot."""


class SolveFailedError(LinearSolveError):
    """Raised when a triangular solve fails or produces non-finite values."""


def raise_invalid_configuration(*, name: str, detail: str, got: object) -> NoReturn:
    """
    Raise a standardized InvalidConfigurationError.

    Args:
        name: Name of the offending setting.
        detail: Description of the accepted values.
        got: Actual value received.

    Raises:
        InvalidConfigurationError: Always.
    """
    msg = f"Invalid {name}: {detail}. Got: {got!r}."
    raise InvalidConfigurationError(msg, code=ErrorCode.INVALID_CONFIGURATION)


def raise_dimension_mismatch(*, name: str, expected: object, got: object) -> NoReturn:
    """
    Raise a standardized DimensionMismatchError.

    Args:
        name: Name of the array or matrix with the wrong dimension.
        expected: Expected size or shape.
        got: Actual size or shape.

    Raises:
        DimensionMismatchError: Always.
    """
    msg = f"{name} has dimension {got!r}; expected {expected!r}."
    raise DimensionMismatchError(msg, code=ErrorCode.DIMENSION_MISMATCH)


def raise_not_initialized(*, missing: list[str]) -> NoReturn:
    """
    Raise a standardized NotInitializedError.

    Args:
        missing: Names of the setters that still need to be called.

    Raises:
        NotInitializedError: Always.
    """
    msg = (
        "Integrator is not ready to step. "
        f"Call {', '.join(missing)} before step()."
    )
    raise NotInitializedError(msg, code=ErrorCode.NOT_INITIALIZED)
