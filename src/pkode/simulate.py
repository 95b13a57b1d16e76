# src/pkode/simulate.py
from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any, Callable, Literal, Mapping, Optional, Union

import numpy as np

from .dosing import dose_times, regimen_horizon, validate_regimen
from .errors import InvalidOptions
from .helpers import add_on_grid, finite_positive, grid_offset, merge_by_tolerance
from .hooks import SolveEvent, SolveObserver
from .models.registry import get_model
from .solvers import check_step_size, integrate, time_grid
from .types import DoseRegimen, Profile, SolverOptions, resolve_options

logger = logging.getLogger(__name__)

Options = Optional[Union[SolverOptions, Mapping[str, Any]]]


def solve_model(model_id: str, parameters: Optional[Mapping[str, float]] = None, dose: float = 100.0,
                options: Options = None, *, route: Optional[str] = None,
                observer: Optional[SolveObserver] = None,
                should_stop: Optional[Callable[[], bool]] = None,
                check_stability: bool = True) -> Profile:
    """
    Single-dose concentration-time profile for a registered model.

    Resolves the model's ODE system (missing parameters defaulted),
    integrates it over the options window (default 0-24 h, step 0.1 h, RK4)
    and divides the central-compartment amount by the central volume.

    Concentrations are not clamped: a degenerate input (e.g. V=0) gives
    inf/nan samples which the caller must filter.

    route        : "iv" or "oral" for the *-combined models
    observer     : called with a SolveEvent after the solve
    should_stop  : polled between fixed steps; True cancels the integration
    """
    opts = resolve_options(options)
    definition = get_model(model_id).for_route(route)
    system = definition.build_system(parameters, dose)
    if check_stability:
        check_step_size(system, opts)

    trajectory = integrate(system, opts, should_stop=should_stop)
    concentration = definition.concentration(trajectory, system.parameters)

    logger.debug("solved %s (%s) with %s: %d samples, %d states",
                 model_id, definition.model_id, opts.method, len(trajectory), system.n_states)
    if observer is not None:
        observer(SolveEvent(model_id=model_id, method=opts.method,
                            n_samples=len(trajectory), n_states=system.n_states))
    return Profile(time=trajectory.time, concentration=concentration)


def solve_regimen(model_id: str, parameters: Optional[Mapping[str, float]], regimen: DoseRegimen,
                  options: Options = None, *, horizon: Optional[float] = None,
                  alignment: Literal["grid", "tolerance"] = "grid", route: Optional[str] = None,
                  observer: Optional[SolveObserver] = None,
                  should_stop: Optional[Callable[[], bool]] = None) -> Profile:
    """
    Multi-dose profile by superposing one single-dose solve per dose.

    Dose i is given at start_time + i * inter_dose_interval and simulated
    until start_time + horizon (default: max(24, doses * interval + 12) h).
    A one-dose regimen without an explicit horizon keeps the options window,
    so it reproduces solve_model with the same options.

    alignment="grid" sums every contribution on one shared time grid
    (exact index offsets when the interval is a multiple of step_size,
    linear interpolation otherwise). alignment="tolerance" merges shifted
    samples that land within 0.05 h of each other.

    Superposition is exact for linear models only; for saturable and TMDD
    models the result is an approximation.

    Samples with non-finite values or concentration <= 0 are dropped.
    """
    validate_regimen(regimen)
    opts = resolve_options(options)
    params = regimen.model_parameters if parameters is None else parameters
    definition = get_model(model_id).for_route(route)

    start = opts.start_time
    h = opts.step_size
    if horizon is not None:
        total_h = float(horizon)
        if not (np.isfinite(total_h) and total_h >= 0):
            raise InvalidOptions(f"horizon must be >= 0 (got {horizon}).")
        end_h = start + total_h
    elif regimen.number_of_doses == 1:
        total_h = opts.end_time - start
        end_h = opts.end_time
    else:
        total_h = regimen_horizon(regimen)
        end_h = start + total_h
    if not definition.linear and regimen.number_of_doses > 1:
        logger.info("%s is nonlinear; dose superposition is an approximation", model_id)

    shifts = [float(s) for s in dose_times(regimen) if s <= total_h]

    def solve_window(lead_h: float, first: bool) -> Profile:
        return solve_model(model_id, params, regimen.dose_amount,
                           replace(opts, end_time=max(start, end_h - lead_h)), route=route,
                           observer=observer, should_stop=should_stop, check_stability=first)

    if alignment == "grid":
        t = time_grid(replace(opts, end_time=end_h))
        C = np.zeros_like(t)
        for i, shift in enumerate(shifts):
            # an off-grid dose needs one extra step so interpolation reaches the horizon
            extra = 0.0 if grid_offset(shift, h) is not None else h
            profile = solve_window(shift - extra, i == 0)
            with np.errstate(invalid="ignore", over="ignore"):
                add_on_grid(t, C, profile.time, profile.concentration, shift, h)
    elif alignment == "tolerance":
        contributions = []
        for i, shift in enumerate(shifts):
            profile = solve_window(shift, i == 0)
            contributions.append((profile.time + shift, profile.concentration))
        t, C = merge_by_tolerance(contributions, end_h=end_h)
    else:
        raise InvalidOptions(f"alignment must be 'grid' or 'tolerance' (got '{alignment}').")

    t, C = finite_positive(t, C)
    return Profile(time=t, concentration=C)
