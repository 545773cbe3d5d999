# ode_stepper/examples/heat_tridiagonal.py
"""1D heat equation on a tridiagonal grid, stepped with TridiagonalIntegrator.

We solve u_t = D u_xx on (0, 1) with u(0, t) = 0, u(1, t) = 1 and u(x, 0) = 0.
After a second-order finite-difference discretization on N interior points the
semi-discrete system is

    dy/dt = A y + k,   A = D/dx^2 tridiag(1, -2, 1),   k = (0, ..., 0, D/dx^2)

which is exactly the shape a TridiagonalODE describes.

The script:
- steps the system with TridiagonalIntegrator and with ExplicitIntegrator,
- compares both against the exact semi-discrete solution (matrix exponential),
- runs a step-size sweep showing the second-order BDF2 error decay.

This script saves plots to disk (no interactive windows).
"""

from __future__ import annotations

from pathlib import Path

import matplotlib.pyplot as plt
import numpy as np
from scipy.linalg import expm

from ode_stepper import (
    ConstantTridiagonalODE,
    ExplicitIntegrator,
    FunctionODE,
    TridiagonalIntegrator,
    record_steps,
)

_OUTPUT_DIR = Path(__file__).resolve().parent / "output" / "heat"


def build_heat_ode(n: int, *, diffusivity: float) -> ConstantTridiagonalODE:
    """Build the tridiagonal heat ODE on n interior points.

    Args:
        n: Number of interior grid points.
        diffusivity: Diffusion coefficient D.

    Returns:
        ConstantTridiagonalODE with Dirichlet boundaries u(0)=0, u(1)=1.
    """
    dx = 1.0 / (n + 1)
    scale = diffusivity / dx**2

    ode = ConstantTridiagonalODE(n)
    ode.a[:] = scale
    ode.b[:] = -2.0 * scale
    ode.c[:] = scale
    ode.k[-1] = scale
    return ode


def exact_solution(ode: ConstantTridiagonalODE, y0: np.ndarray, t: float) -> np.ndarray:
    """Exact solution of dy/dt = A y + k at time t.

    Args:
        ode: Tridiagonal heat ODE.
        y0: Initial state.
        t: Evaluation time.

    Returns:
        y(t) = y_ss + exp(A t) (y0 - y_ss), with y_ss = -A^{-1} k.
    """
    dense = np.diag(ode.b) + np.diag(ode.c[:-1], 1) + np.diag(ode.a[1:], -1)
    steady = -np.linalg.solve(dense, ode.k)
    return steady + expm(dense * t) @ (y0 - steady)


def run_bdf(
    ode: ConstantTridiagonalODE, y0: np.ndarray, *, h: float, t_end: float
) -> np.ndarray:
    """Step the heat ODE with TridiagonalIntegrator.

    Returns:
        record_steps output, shape (n_steps + 1, 1 + N).
    """
    integrator = TridiagonalIntegrator(ode)
    integrator.set_size(y0.size)
    integrator.set_y0(y0)
    integrator.initialize(0.0, h)
    return record_steps(integrator, round(t_end / h))


def run_euler(
    ode: ConstantTridiagonalODE, y0: np.ndarray, *, h: float, t_end: float
) -> np.ndarray:
    """Step the heat ODE with forward Euler (h must respect dx^2 / 2D).

    Returns:
        record_steps output, shape (n_steps + 1, 1 + N).
    """
    dense = np.diag(ode.b) + np.diag(ode.c[:-1], 1) + np.diag(ode.a[1:], -1)
    k = ode.k.copy()

    def rhs(_t: float, y: np.ndarray) -> np.ndarray:
        return dense @ y + k

    integrator = ExplicitIntegrator(FunctionODE(rhs))
    integrator.set_y0(y0)
    integrator.set_t0(0.0)
    integrator.set_h(h)
    return record_steps(integrator, round(t_end / h))


def save_profile_plot(
    x: np.ndarray,
    profiles: dict[str, np.ndarray],
    *,
    title: str,
    out_path: Path,
) -> None:
    """Save final temperature profiles to an image file."""
    plt.figure(figsize=(8, 5))
    for label, y in profiles.items():
        plt.plot(x, y, label=label)
    plt.grid(visible=True)
    plt.legend()
    plt.title(title)
    plt.xlabel("x")
    plt.ylabel("u")
    plt.tight_layout()

    out_path.parent.mkdir(parents=True, exist_ok=True)
    plt.savefig(out_path, dpi=150)
    plt.close()


def save_convergence_plot(
    steps: np.ndarray, errors: np.ndarray, *, out_path: Path
) -> None:
    """Save a log-log plot of final-time error against step size."""
    plt.figure(figsize=(6, 5))
    plt.loglog(steps, errors, "o-", label="TridiagonalIntegrator")
    plt.loglog(steps, errors[0] * (steps / steps[0]) ** 2, "--", label="slope 2")
    plt.grid(visible=True, which="both")
    plt.legend()
    plt.title("BDF2 error at t_end")
    plt.xlabel("h")
    plt.ylabel("max |y - y_exact|")
    plt.tight_layout()

    out_path.parent.mkdir(parents=True, exist_ok=True)
    plt.savefig(out_path, dpi=150)
    plt.close()


def main() -> None:
    """Run the heat example and save plots under examples/output/heat/."""
    # ---------------------------------------------------------------------
    # Problem setup
    # ---------------------------------------------------------------------
    n = 49
    diffusivity = 0.1
    t_end = 0.5
    x = np.linspace(0.0, 1.0, n + 2)[1:-1]
    y0 = np.zeros(n)

    ode = build_heat_ode(n, diffusivity=diffusivity)
    y_exact = exact_solution(ode, y0, t_end)

    # ---------------------------------------------------------------------
    # (1) Implicit vs explicit at the explicit stability limit
    # ---------------------------------------------------------------------
    dx = 1.0 / (n + 1)
    h_explicit = 0.4 * dx**2 / diffusivity
    h_implicit = 0.01

    bdf = run_bdf(ode, y0, h=h_implicit, t_end=t_end)
    euler = run_euler(ode, y0, h=h_explicit, t_end=t_end)

    save_profile_plot(
        x,
        {
            "exact": y_exact,
            f"BDF (h={h_implicit:g}, {bdf.shape[0] - 1} steps)": bdf[-1, 1:],
            f"Euler (h={h_explicit:.2e}, {euler.shape[0] - 1} steps)": euler[-1, 1:],
        },
        title=f"Heat equation at t={t_end:g}",
        out_path=_OUTPUT_DIR / "heat_profiles.png",
    )

    # ---------------------------------------------------------------------
    # (2) Step-size sweep for the tridiagonal BDF integrator
    # ---------------------------------------------------------------------
    steps = np.array([0.05, 0.025, 0.0125, 0.00625])
    errors = np.array(
        [
            np.max(np.abs(run_bdf(ode, y0, h=h, t_end=t_end)[-1, 1:] - y_exact))
            for h in steps
        ]
    )
    save_convergence_plot(steps, errors, out_path=_OUTPUT_DIR / "heat_convergence.png")

    rates = np.log2(errors[:-1] / errors[1:])
    for h, err in zip(steps, errors, strict=True):
        print(f"h={h:<8g} error={err:.3e}")
    print("observed orders:", np.array2string(rates, precision=2))


if __name__ == "__main__":
    main()
