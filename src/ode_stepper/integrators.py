# src/ode_stepper/integrators.py
"""Fixed-step ODE integrators (explicit Euler and banded BDF1/BDF2).

Integrators own the current time t, the step size h and the state vector y.
Callers configure them with setters and then call step() repeatedly; every
step mutates t and y in place.

Supported integrators:
    - ExplicitIntegrator:    forward Euler on a NonlinearODE.
    - BDFIntegrator:         implicit BDF on a LinearODE dy/dt = A y + c with a
                             banded A. The first step of a session is BDF1
                             (backward Euler); later steps are BDF2.
    - TridiagonalIntegrator: BDFIntegrator for bandwidth-1 systems supplied as
                             three diagonals.

BDF stepping regimes:
    UNINITIALIZED  query A and c, factorize A - (m/h) I, take a BDF1 step as
                   m backward Euler substeps (m = startup_substeps).
    FIRST_STEP     factorize A - 3/(2h) I once, take a BDF2 step.
    STEADY_STATE   reuse the BDF2 factorization, take a BDF2 step.

    set_y0, set_t0 and set_dt return the integrator to UNINITIALIZED. A and c
    are queried only when a session starts, so the linear system is assumed
    time-invariant within a session.

Failure semantics:
    - Setters validate eagerly (InvalidConfigurationError,
      DimensionMismatchError).
    - step() raises NotInitializedError if a setter is missing.
    - Solve failures (SingularMatrixError, SolveFailedError) and malformed
      collaborator output propagate from step() with t, y and the regime left
      exactly as they were before the call.
"""

from __future__ import annotations

import warnings
from abc import ABC, abstractmethod
from enum import Enum
from typing import TYPE_CHECKING, TypeAlias

import numpy as np
from numpy.typing import ArrayLike, NDArray

from .band_ops import BandFactorization, BandMatrix, band_factorize, band_solve
from .errors import (
    raise_dimension_mismatch,
    raise_invalid_configuration,
    raise_not_initialized,
)
from .ode import TridiagonalLinearODE

if TYPE_CHECKING:
    from .ode import LinearODE, NonlinearODE, TridiagonalODE

FloatArray: TypeAlias = NDArray[np.floating]


# =============================================================================
# Errors / messages
# =============================================================================

_STEP_SIZE_DETAIL = "step size must be a finite number > 0"
_STATE_DETAIL = "initial state must be a non-empty 1D vector of finite values"
_TIME_DETAIL = "time must be finite"
_N_STEPS_DETAIL = "number of steps must be >= 0"
_TRIDIAGONAL_BW_DETAIL = "tridiagonal systems require upper_bw == lower_bw == 1"
_INTERNAL_ERROR_STORAGE_MSG = "Internal error: band storage missing after set_size"
_INTERNAL_ERROR_REGIME_MSG = "Internal error: unknown stepping regime {regime}"
_TARGET_REACHED_MSG = (
    "step_to_time({t_end}) called at t={t}; target already reached, no step taken."
)


# =============================================================================
# Helpers
# =============================================================================


def _as_state_vector(y0: ArrayLike) -> FloatArray:
    """Copy y0 into a fresh float64 state vector, validating its contents."""
    try:
        arr = np.array(y0, dtype=np.float64)
    except (TypeError, ValueError):
        raise_invalid_configuration(name="y0", detail=_STATE_DETAIL, got=y0)
    if arr.ndim != 1 or arr.size == 0 or not np.all(np.isfinite(arr)):
        raise_invalid_configuration(name="y0", detail=_STATE_DETAIL, got=arr.shape)
    return arr


def _as_float(value: object, *, name: str, detail: str) -> float:
    try:
        return float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        raise_invalid_configuration(name=name, detail=detail, got=value)


def _as_step_size(h: float) -> float:
    h_f = _as_float(h, name="h", detail=_STEP_SIZE_DETAIL)
    if not np.isfinite(h_f) or h_f <= 0.0:
        raise_invalid_configuration(name="h", detail=_STEP_SIZE_DETAIL, got=h)
    return h_f


def _as_time(t: float, *, name: str) -> float:
    t_f = _as_float(t, name=name, detail=_TIME_DETAIL)
    if not np.isfinite(t_f):
        raise_invalid_configuration(name=name, detail=_TIME_DETAIL, got=t)
    return t_f


class StepRegime(Enum):
    """Stepping regime of a BDFIntegrator session."""

    UNINITIALIZED = "uninitialized"
    FIRST_STEP = "first_step"
    STEADY_STATE = "steady_state"


# =============================================================================
# Base / explicit integrators
# =============================================================================


class Integrator(ABC):
    """Abstract base integrator holding time, step size and state vector.

    Subclasses implement step().
    """

    def __init__(self) -> None:
        """Initialize an unconfigured integrator at t = 0."""
        self._t = 0.0
        self._h = 0.0
        self._y: FloatArray = np.zeros(0, dtype=np.float64)

    # ------------------------------------------------------------------
    # Setters
    # ------------------------------------------------------------------

    def set_h(self, h: float) -> None:
        """
        Set the step size.

        Args:
            h: Step size, finite and > 0.

        Raises:
            InvalidConfigurationError: If h is not a positive finite number.
        """
        self._h = _as_step_size(h)

    def set_y0(self, y0: ArrayLike) -> None:
        """
        Set the initial state; its length defines N.

        Args:
            y0: Initial state vector (copied).

        Raises:
            InvalidConfigurationError: If y0 is empty, not 1D or not finite.
        """
        self._y = _as_state_vector(y0)

    def set_t0(self, t0: float) -> None:
        """
        Set the current time.

        Args:
            t0: Initial time.

        Raises:
            InvalidConfigurationError: If t0 is not finite.
        """
        self._t = _as_time(t0, name="t0")

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    def get_h(self) -> float:
        """Return the step size (0.0 until set)."""
        return self._h

    def get_y(self) -> FloatArray:
        """Return the live state vector; treat it as read-only."""
        return self._y

    def get_t(self) -> float:
        """Return the current time."""
        return self._t

    @property
    def h(self) -> float:
        """Step size."""
        return self._h

    @property
    def t(self) -> float:
        """Current time."""
        return self._t

    @property
    def y(self) -> FloatArray:
        """Current state vector."""
        return self._y

    @property
    def n(self) -> int:
        """Length of the state vector (0 until set_y0)."""
        return int(self._y.size)

    def _missing_setup(self) -> list[str]:
        missing: list[str] = []
        if self._y.size == 0:
            missing.append("set_y0")
        if self._h <= 0.0:
            missing.append("set_h")
        return missing

    @abstractmethod
    def step(self) -> None:
        """Advance the solution by one step of size h."""


class ExplicitIntegrator(Integrator):
    """Forward Euler integrator for a NonlinearODE."""

    def __init__(self, ode: NonlinearODE) -> None:
        """
        Initialize ExplicitIntegrator.

        Args:
            ode: Right-hand side provider.
        """
        super().__init__()
        self.ode = ode
        self._ydot: FloatArray = np.zeros(0, dtype=np.float64)

    def set_y0(self, y0: ArrayLike) -> None:
        """Set the initial state and reset the derivative buffer."""
        super().set_y0(y0)
        self._ydot = np.zeros_like(self._y)

    def get_ydot(self) -> FloatArray:
        """Return dy/dt evaluated during the most recent step."""
        return self._ydot

    def step(self) -> None:
        """
        Take one explicit Euler step: y <- y + h f(t, y), t <- t + h.

        Raises:
            NotInitializedError: If y0 or h has not been set.
            DimensionMismatchError: If the RHS does not return N values.
        """
        missing = self._missing_setup()
        if missing:
            raise_not_initialized(missing=missing)

        ydot = np.asarray(self.ode.f(self._t, self._y), dtype=np.float64)
        if ydot.shape != self._y.shape:
            raise_dimension_mismatch(
                name="ydot", expected=self._y.shape, got=ydot.shape
            )

        np.copyto(self._ydot, ydot)
        self._y += self._h * self._ydot
        self._t += self._h

    def step_to_time(self, t_end: float) -> int:
        """
        Take whole steps of size h while t < t_end.

        The last step is not shortened, so the final time satisfies
        t_end <= t < t_end + h.

        Args:
            t_end: Target time.

        Raises:
            InvalidConfigurationError: If t_end is not finite.

        Returns:
            Number of steps taken.
        """
        t_end_f = _as_time(t_end, name="t_end")
        if self._t >= t_end_f:
            warnings.warn(
                _TARGET_REACHED_MSG.format(t_end=t_end_f, t=self._t),
                RuntimeWarning,
                stacklevel=2,
            )
            return 0

        n_steps = 0
        while self._t < t_end_f:
            self.step()
            n_steps += 1
        return n_steps


# =============================================================================
# BDF integrators
# =============================================================================


class BDFIntegrator(Integrator):
    """Implicit BDF1 -> BDF2 integrator for a banded LinearODE.

    The factorization of A - alpha/h I is computed at the first step of a
    session (alpha = 1), recomputed once at the second step (alpha = 3/2) and
    reused for every later step while h stays fixed.

    The BDF1 step is taken as startup_substeps backward Euler substeps of
    h / startup_substeps, all sharing one factorization.
    """

    startup_substeps: int = 1

    def __init__(self, ode: LinearODE) -> None:
        """
        Initialize BDFIntegrator.

        Args:
            ode: Provider of the banded system matrix A and offset c.
        """
        super().__init__()
        self.ode = ode

        self._matrix: BandMatrix | None = None
        self._lu: BandFactorization | None = None
        self._offset: FloatArray = np.zeros(0, dtype=np.float64)
        self._y_prev: FloatArray = np.zeros(0, dtype=np.float64)

        self._regime = StepRegime.UNINITIALIZED
        self._step_count = 0
        self._n_factorizations = 0

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    def set_size(self, n: int, upper_bw: int, lower_bw: int) -> None:
        """
        (Re)allocate the system matrix, LU storage and pivots.

        A state of the same length is kept. Changing N discards the state, so
        set_y0 must be called again before step().

        Args:
            n: System size N.
            upper_bw: Number of diagonals above the main diagonal.
            lower_bw: Number of diagonals below the main diagonal.

        Raises:
            InvalidConfigurationError: If n <= 0 or a bandwidth is negative.
        """
        matrix = BandMatrix.zeros(n, upper_bw, lower_bw)
        lu = BandFactorization.empty(n, upper_bw, lower_bw)

        self._matrix = matrix
        self._lu = lu
        self._offset = np.zeros(n, dtype=np.float64)
        if self._y.size != n:
            self._y = np.zeros(0, dtype=np.float64)
            self._y_prev = np.zeros(0, dtype=np.float64)
        self._reset_session()

    def set_y0(self, y0: ArrayLike) -> None:
        """
        Set the initial state and restart the BDF1 regime.

        Raises:
            DimensionMismatchError: If len(y0) differs from set_size's n.
        """
        y0_arr = _as_state_vector(y0)
        if self._matrix is not None and y0_arr.size != self._matrix.n:
            raise_dimension_mismatch(
                name="y0", expected=self._matrix.n, got=y0_arr.size
            )
        super().set_y0(y0_arr)
        self._y_prev = self._y.copy()
        self._reset_session()

    def set_t0(self, t0: float) -> None:
        """Set the current time and restart the BDF1 regime."""
        super().set_t0(t0)
        self._reset_session()

    def set_dt(self, h: float) -> None:
        """Set the step size and restart the BDF1 regime."""
        super().set_h(h)
        self._reset_session()

    def set_h(self, h: float) -> None:
        """Alias for set_dt."""
        self.set_dt(h)

    def _reset_session(self) -> None:
        self._regime = StepRegime.UNINITIALIZED
        self._step_count = 0
        self._n_factorizations = 0

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    @property
    def regime(self) -> StepRegime:
        """Regime the next call to step() will run in."""
        return self._regime

    @property
    def step_count(self) -> int:
        """Steps taken since the last reset."""
        return self._step_count

    @property
    def n_factorizations(self) -> int:
        """Factorizations computed since the last reset."""
        return self._n_factorizations

    @property
    def system_matrix(self) -> BandMatrix | None:
        """System matrix A of the current session (None before set_size)."""
        return self._matrix

    @property
    def factorization(self) -> BandFactorization | None:
        """Live LU factorization (None before set_size)."""
        return self._lu

    @property
    def offset(self) -> FloatArray:
        """Offset vector c of the current session."""
        return self._offset

    @property
    def y_prev(self) -> FloatArray:
        """State one step behind y."""
        return self._y_prev

    @property
    def upper_bw(self) -> int:
        """Upper bandwidth (0 before set_size)."""
        return self._matrix.upper_bw if self._matrix is not None else 0

    @property
    def lower_bw(self) -> int:
        """Lower bandwidth (0 before set_size)."""
        return self._matrix.lower_bw if self._matrix is not None else 0

    # ------------------------------------------------------------------
    # Stepping
    # ------------------------------------------------------------------

    def _missing_setup(self) -> list[str]:
        missing: list[str] = []
        if self._matrix is None:
            missing.append("set_size")
        if self._y.size == 0:
            missing.append("set_y0")
        if self._h <= 0.0:
            missing.append("set_dt")
        return missing

    def _query_system(self, template: BandMatrix) -> tuple[BandMatrix, FloatArray]:
        """Fetch A and c from the ODE and check them against set_size."""
        matrix = self.ode.get_A()
        got = (matrix.n, matrix.upper_bw, matrix.lower_bw)
        expected = (template.n, template.upper_bw, template.lower_bw)
        if got != expected:
            raise_dimension_mismatch(
                name="A (n, upper_bw, lower_bw)", expected=expected, got=got
            )

        offset = np.array(self.ode.get_C(), dtype=np.float64)
        if offset.shape != (template.n,):
            raise_dimension_mismatch(name="c", expected=(template.n,), got=offset.shape)
        return matrix.copy(), offset

    def step(self) -> None:
        """
        Advance one BDF step.

        Raises:
            NotInitializedError: If set_size, set_y0 or set_dt is missing.
            DimensionMismatchError: If the ODE returns A or c of the wrong size.
            SingularMatrixError: If A - alpha/h I cannot be factorized.
            SolveFailedError: If the banded solve fails.
        """
        missing = self._missing_setup()
        if missing:
            raise_not_initialized(missing=missing)
        if self._matrix is None or self._lu is None:
            raise RuntimeError(_INTERNAL_ERROR_STORAGE_MSG)

        h = self._h
        y = self._y
        refactored = False

        if self._regime is StepRegime.UNINITIALIZED:
            # BDF1 in m substeps: (A - I/hs) y_{k+1} = -y_k/hs - c, hs = h/m
            matrix, offset = self._query_system(self._matrix)
            hs = h / self.startup_substeps
            lu = band_factorize(matrix.shift_diagonal(-1.0 / hs))
            refactored = True
            y_next = y
            for _ in range(self.startup_substeps):
                y_next = band_solve(lu, -y_next / hs - offset)
            next_regime = StepRegime.FIRST_STEP
        else:
            matrix, offset = self._matrix, self._offset
            if self._regime is StepRegime.FIRST_STEP:
                lu = band_factorize(matrix.shift_diagonal(-3.0 / (2.0 * h)))
                refactored = True
            elif self._regime is StepRegime.STEADY_STATE:
                lu = self._lu
            else:
                msg = _INTERNAL_ERROR_REGIME_MSG.format(regime=self._regime)
                raise RuntimeError(msg)
            # BDF2: (A - 3/(2h) I) y_{n+1} = -2 y_n/h + y_{n-1}/(2h) - c
            rhs = -2.0 * y / h + self._y_prev / (2.0 * h) - offset
            y_next = band_solve(lu, rhs)
            next_regime = StepRegime.STEADY_STATE

        self._matrix = matrix
        self._offset = offset
        self._lu = lu
        self._y_prev = y.copy()
        np.copyto(self._y, y_next)
        self._t += h
        self._step_count += 1
        self._n_factorizations += int(refactored)
        self._regime = next_regime


class TridiagonalIntegrator(BDFIntegrator):
    """BDFIntegrator for tridiagonal systems given as (a, b, c) and k.

    The startup step is split into 8 backward Euler substeps to limit the
    first-order error carried into the BDF2 history.
    """

    startup_substeps: int = 8

    def __init__(self, ode: TridiagonalODE) -> None:
        """
        Initialize TridiagonalIntegrator.

        Args:
            ode: Tridiagonal ODE supplying diagonals and offset.
        """
        super().__init__(TridiagonalLinearODE(ode))
        self.tridiagonal_ode = ode

    def set_size(self, n: int, upper_bw: int = 1, lower_bw: int = 1) -> None:
        """
        Allocate storage for an n-point tridiagonal system.

        Raises:
            InvalidConfigurationError: If a bandwidth other than 1 is requested.
        """
        if upper_bw != 1 or lower_bw != 1:
            raise_invalid_configuration(
                name="bandwidth",
                detail=_TRIDIAGONAL_BW_DETAIL,
                got=(upper_bw, lower_bw),
            )
        super().set_size(n, 1, 1)

    def resize(self, n: int) -> None:
        """
        Resize the integrator storage and the ODE to n points.

        The ODE is only resized once the integrator accepted n. A change of
        size discards the state (see set_size).

        Args:
            n: New system size.
        """
        self.set_size(n)
        self.tridiagonal_ode.resize(n)

    def initialize(self, t0: float, h: float) -> None:
        """
        Set the initial time and step size in one call.

        Args:
            t0: Initial time.
            h: Step size.
        """
        self.set_t0(t0)
        self.set_dt(h)

    def get_y_new(self) -> FloatArray:
        """Return the state produced by the most recent step (y0 before any)."""
        return self.get_y()


# =============================================================================
# Trajectory helper
# =============================================================================


def record_steps(integrator: Integrator, n_steps: int) -> FloatArray:
    """
    Step an integrator n_steps times and record (t, y) after every step.

    Args:
        integrator: Configured integrator.
        n_steps: Number of steps to take.

    Raises:
        InvalidConfigurationError: If n_steps is negative.

    Returns:
        Array of shape (n_steps + 1, 1 + N); column 0 is time, row 0 is the
        state before stepping.
    """
    if n_steps < 0:
        raise_invalid_configuration(name="n_steps", detail=_N_STEPS_DETAIL, got=n_steps)

    out = np.empty((n_steps + 1, 1 + integrator.n), dtype=np.float64)
    out[0, 0] = integrator.get_t()
    out[0, 1:] = integrator.get_y()
    for i in range(1, n_steps + 1):
        integrator.step()
        out[i, 0] = integrator.get_t()
        out[i, 1:] = integrator.get_y()
    return out
