# src/pkode/dosing.py
from __future__ import annotations

from typing import Mapping, Optional

import numpy as np

from .errors import InvalidParameter
from .types import DoseRegimen

# Simulated time after the last dose when no horizon is given (h)
TAIL_H = 12.0
MIN_HORIZON_H = 24.0


def dose_regimen(dose_amount: float, number_of_doses: int = 1, inter_dose_interval: float = 24.0,
                 parameters: Optional[Mapping[str, float]] = None) -> DoseRegimen:
    """
    Make a repeated schedule like: 100 mg every 12 h, 5 doses.

    dose_amount         : size of each dose, mg
    number_of_doses     : how many doses in total
    inter_dose_interval : spacing between doses, hours
    parameters          : model parameter overrides carried with the regimen
    """
    _validate_positive("dose_amount", dose_amount)
    _validate_positive_int("number_of_doses", number_of_doses)
    _validate_positive("inter_dose_interval", inter_dose_interval)
    return DoseRegimen(dose_amount=float(dose_amount), number_of_doses=int(number_of_doses),
                       inter_dose_interval=float(inter_dose_interval),
                       model_parameters=dict(parameters or {}))


def single_dose(dose_amount: float, parameters: Optional[Mapping[str, float]] = None) -> DoseRegimen:
    """A regimen with exactly one dose at t=0."""
    return dose_regimen(dose_amount, 1, 24.0, parameters)


def validate_regimen(regimen: DoseRegimen) -> DoseRegimen:
    _validate_positive("dose_amount", regimen.dose_amount)
    _validate_positive_int("number_of_doses", regimen.number_of_doses)
    _validate_positive("inter_dose_interval", regimen.inter_dose_interval)
    return regimen


def dose_times(regimen: DoseRegimen, start_h: float = 0.0) -> np.ndarray:
    """Administration times: start, start + tau, start + 2*tau, ..."""
    return start_h + regimen.inter_dose_interval * np.arange(regimen.number_of_doses, dtype=float)


def regimen_horizon(regimen: DoseRegimen) -> float:
    """Total simulated time: the whole schedule plus a 12 h tail, never under 24 h."""
    return max(MIN_HORIZON_H, regimen.number_of_doses * regimen.inter_dose_interval + TAIL_H)


# --------------------------
# Small input validators
# --------------------------
def _validate_positive(name: str, x: float) -> None:
    if not (x > 0 and np.isfinite(x)):
        raise InvalidParameter(f"{name} must be > 0 (got {x}).")

def _validate_positive_int(name: str, x: int) -> None:
    if not (isinstance(x, (int, np.integer)) and not isinstance(x, bool) and x > 0):
        raise InvalidParameter(f"{name} must be a positive integer (got {x}).")
