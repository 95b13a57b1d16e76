# src/pkode/types.py
from __future__ import annotations

import math
from dataclasses import dataclass, field, fields
from typing import Any, Callable, Literal, Mapping, Sequence

import numpy as np

from .errors import InvalidOptions

# Time is in HOURS throughout, amounts in mg, volumes in L.
Method = Literal["rk4", "euler", "RK45", "RK23", "DOP853", "Radau", "BDF", "LSODA"]
Route = Literal["iv", "oral"]

FIXED_STEP_METHODS = ("rk4", "euler")
ADAPTIVE_METHODS = ("RK45", "RK23", "DOP853", "Radau", "BDF", "LSODA")

RHS = Callable[[float, np.ndarray, Mapping[str, float]], Sequence[float]]


@dataclass(frozen=True)
class ODESystem:
    """
    A fully resolved differential system for one model and one dose.

    rhs            : f(t, y, params) -> dy/dt, one entry per state
    initial_state  : state vector at start_time (amounts, or concentrations for TMDD)
    parameters     : every parameter the rhs reads, defaults filled in and
                     derived rate constants (ke, k10, k12, ...) added
    """
    rhs: RHS
    initial_state: np.ndarray
    parameters: Mapping[str, float]

    def __post_init__(self) -> None:
        object.__setattr__(self, "initial_state", np.asarray(self.initial_state, dtype=float))

    @property
    def n_states(self) -> int:
        return int(self.initial_state.shape[0])


@dataclass(frozen=True)
class SolverOptions:
    """
    Integration window and method.

    start_time, end_time : integration window (h)
    step_size            : fixed step for rk4/euler, output spacing for adaptive methods (h)
    method               : "rk4" | "euler" or one of SciPy's solve_ivp methods
    rtol, atol           : tolerances, only used by the adaptive methods
    """
    start_time: float = 0.0
    end_time: float = 24.0
    step_size: float = 0.1
    method: Method = "rk4"
    rtol: float = 1e-6
    atol: float = 1e-9

    def validate(self) -> "SolverOptions":
        if not (math.isfinite(self.step_size) and self.step_size > 0):
            raise InvalidOptions(f"step_size must be > 0 (got {self.step_size}).")
        if not (math.isfinite(self.start_time) and math.isfinite(self.end_time)):
            raise InvalidOptions(
                f"start_time and end_time must be finite (got {self.start_time}, {self.end_time})."
            )
        if self.end_time < self.start_time:
            raise InvalidOptions(
                f"end_time must be >= start_time (got {self.end_time} < {self.start_time})."
            )
        if self.method not in FIXED_STEP_METHODS + ADAPTIVE_METHODS:
            raise InvalidOptions(f"Unknown integration method '{self.method}'.")
        return self

    @property
    def is_fixed_step(self) -> bool:
        return self.method in FIXED_STEP_METHODS


# JSON callers send camelCase keys
_OPTION_ALIASES = {
    "startTime": "start_time",
    "tStart": "start_time",
    "endTime": "end_time",
    "tEnd": "end_time",
    "stepSize": "step_size",
}


def resolve_options(options: SolverOptions | Mapping[str, Any] | None = None) -> SolverOptions:
    """Turn None, a SolverOptions or a partial mapping into validated SolverOptions."""
    if options is None:
        return SolverOptions().validate()
    if isinstance(options, SolverOptions):
        return options.validate()

    known = {f.name for f in fields(SolverOptions)}
    kwargs: dict[str, Any] = {}
    for key, value in options.items():
        name = _OPTION_ALIASES.get(key, key)
        if name not in known:
            raise InvalidOptions(f"Unknown solver option '{key}'.")
        kwargs[name] = value
    for name in ("start_time", "end_time", "step_size", "rtol", "atol"):
        if name in kwargs:
            kwargs[name] = float(kwargs[name])
    return SolverOptions(**kwargs).validate()


@dataclass(frozen=True)
class Trajectory:
    """
    Raw integrator output.

    time   : shape (N,), ascending sample times
    states : shape (N, n_states), full state vector at each sample
    """
    time: np.ndarray
    states: np.ndarray

    def __len__(self) -> int:
        return int(self.time.shape[0])


@dataclass(frozen=True)
class Profile:
    """Concentration-time profile (h, mg/L)."""
    time: np.ndarray
    concentration: np.ndarray

    def __len__(self) -> int:
        return int(self.time.shape[0])

    def __iter__(self):
        # allows `t, C = profile`
        yield self.time
        yield self.concentration


@dataclass(frozen=True)
class DoseRegimen:
    """
    Repeated equal doses.

    dose_amount         : size of each dose (mg)
    number_of_doses     : how many doses are given
    inter_dose_interval : spacing between consecutive doses (h)
    model_parameters    : parameter overrides to simulate the regimen with
    """
    dose_amount: float
    number_of_doses: int = 1
    inter_dose_interval: float = 24.0
    model_parameters: Mapping[str, float] = field(default_factory=dict)
