# src/pkode/solvers.py
import logging
from typing import Callable, Mapping, Optional

import numpy as np
from scipy.integrate import solve_ivp

from .errors import DimensionMismatch, IntegrationCancelled, IntegrationFailed, InvalidOptions
from .types import RHS, ODESystem, SolverOptions, Trajectory

logger = logging.getLogger(__name__)

# Largest h*|lambda| on the negative real axis for which the explicit scheme stays stable
STABILITY_LIMITS = {"euler": 2.0, "rk4": 2.785}


def euler_step(rhs: RHS, t: float, y: np.ndarray, h: float, params: Mapping[str, float]) -> np.ndarray:
    """One explicit Euler step: y + h * f(t, y)."""
    return y + h * np.asarray(rhs(t, y, params), dtype=float)


def rk4_step(rhs: RHS, t: float, y: np.ndarray, h: float, params: Mapping[str, float]) -> np.ndarray:
    """One classical fourth-order Runge-Kutta step."""
    k1 = np.asarray(rhs(t, y, params), dtype=float)
    k2 = np.asarray(rhs(t + h / 2, y + h * k1 / 2, params), dtype=float)
    k3 = np.asarray(rhs(t + h / 2, y + h * k2 / 2, params), dtype=float)
    k4 = np.asarray(rhs(t + h, y + h * k3, params), dtype=float)
    return y + h * (k1 + 2 * k2 + 2 * k3 + k4) / 6


_STEPPERS = {"rk4": rk4_step, "euler": euler_step}


def step(rhs: RHS, t: float, y: np.ndarray, h: float, params: Mapping[str, float],
         method: str = "rk4") -> np.ndarray:
    """Advance y by one fixed step using `method` ("rk4" or "euler")."""
    try:
        stepper = _STEPPERS[method]
    except KeyError:
        raise InvalidOptions(f"'{method}' is not a fixed-step method; use 'rk4' or 'euler'.") from None
    return stepper(rhs, t, np.asarray(y, dtype=float), h, params)


def time_grid(options: SolverOptions) -> np.ndarray:
    """
    Sample times start + k*h for k = 0..K, with the last sample <= end_time.

    Times come from the step index rather than a running sum so long windows
    do not drift; an end_time within 1e-9 steps of the grid counts as on it
    and the last sample is clamped to it.
    """
    options.validate()
    n_steps = int(np.floor((options.end_time - options.start_time) / options.step_size + 1e-9))
    grid = options.start_time + options.step_size * np.arange(n_steps + 1, dtype=float)
    return np.minimum(grid, options.end_time)


def _check_dimensions(system: ODESystem, t0: float) -> None:
    with np.errstate(divide="ignore", invalid="ignore", over="ignore"):
        dy = np.asarray(system.rhs(t0, system.initial_state, system.parameters), dtype=float)
    if dy.shape != system.initial_state.shape:
        raise DimensionMismatch(
            f"rhs returned shape {dy.shape} for a state of shape {system.initial_state.shape}."
        )


def integrate(system: ODESystem, options: SolverOptions,
              should_stop: Optional[Callable[[], bool]] = None) -> Trajectory:
    """
    Integrate `system` over the options window.

    rk4/euler record (t, y) at every grid point and take one fixed step
    between consecutive points. Adaptive methods hand the same grid to
    scipy's solve_ivp as t_eval, so both families sample identical times.

    Division by a zero volume or overflow shows up as inf/nan in the
    returned states; callers filter those out.
    """
    t_grid = time_grid(options)
    _check_dimensions(system, float(t_grid[0]))

    if options.is_fixed_step:
        states = _integrate_fixed(system, options, t_grid, should_stop)
    else:
        states = _integrate_adaptive(system, options, t_grid)
    return Trajectory(time=t_grid, states=states)


def _integrate_fixed(system: ODESystem, options: SolverOptions, t_grid: np.ndarray,
                     should_stop: Optional[Callable[[], bool]]) -> np.ndarray:
    stepper = _STEPPERS[options.method]
    h = options.step_size
    states = np.empty((t_grid.shape[0], system.n_states), dtype=float)
    y = system.initial_state.copy()

    with np.errstate(divide="ignore", invalid="ignore", over="ignore"):
        for i, t in enumerate(t_grid):
            states[i] = y
            if i == t_grid.shape[0] - 1:
                break
            if should_stop is not None and should_stop():
                raise IntegrationCancelled(f"Integration stopped at t={t:g} h.")
            y = stepper(system.rhs, float(t), y, h, system.parameters)
    return states


def _integrate_adaptive(system: ODESystem, options: SolverOptions, t_grid: np.ndarray) -> np.ndarray:
    if t_grid.shape[0] == 1:
        return system.initial_state.reshape(1, -1).copy()

    def fun(t, y):
        return np.asarray(system.rhs(t, y, system.parameters), dtype=float)

    with np.errstate(divide="ignore", invalid="ignore", over="ignore"):
        sol = solve_ivp(fun, t_span=(float(t_grid[0]), float(t_grid[-1])), y0=system.initial_state,
                        method=options.method, t_eval=t_grid, rtol=options.rtol, atol=options.atol)
    if not sol.success:
        raise IntegrationFailed(f"solve_ivp ({options.method}) failed: {sol.message}")
    return sol.y.T.copy()


def spectral_radius(system: ODESystem, t: float = 0.0, eps: float = 1e-6) -> float:
    """
    Largest |eigenvalue| of the finite-difference Jacobian of rhs at the initial state.

    For nonlinear models this is a local estimate only.
    """
    y0 = system.initial_state
    n = system.n_states
    jac = np.empty((n, n), dtype=float)
    with np.errstate(divide="ignore", invalid="ignore", over="ignore"):
        f0 = np.asarray(system.rhs(t, y0, system.parameters), dtype=float)
        for j in range(n):
            dy = eps * max(1.0, abs(float(y0[j])))
            y1 = y0.copy()
            y1[j] += dy
            jac[:, j] = (np.asarray(system.rhs(t, y1, system.parameters), dtype=float) - f0) / dy
    if not np.all(np.isfinite(jac)):
        return float("nan")
    return float(np.max(np.abs(np.linalg.eigvals(jac))))


def check_step_size(system: ODESystem, options: SolverOptions) -> float:
    """
    Return h * spectral radius and warn when it exceeds the explicit method's stability bound.

    A large value means the fixed step is too coarse for the fastest rate
    constant in the system (e.g. a fast transit chain); the profile will be
    inaccurate or oscillate. Adaptive methods are not checked.
    """
    if not options.is_fixed_step:
        return float("nan")
    ratio = options.step_size * spectral_radius(system, options.start_time)
    limit = STABILITY_LIMITS[options.method]
    if np.isfinite(ratio) and ratio > limit:
        logger.warning(
            "step_size %.4g is outside the %s stability region (h*|lambda|=%.3g > %.3g); "
            "reduce step_size or use an adaptive method such as 'LSODA'",
            options.step_size, options.method, ratio, limit,
        )
    return ratio
