# src/pkode/helpers.py
"""Merging single-dose profiles into one superposed profile."""
import bisect
from typing import Iterable, Tuple

import numpy as np

# Legacy matching window for shifted samples (h)
MERGE_TOLERANCE_H = 0.05


def grid_offset(shift_h: float, step_h: float, rel_tol: float = 1e-6):
    """
    Index offset k with shift == k*step, or None when the shift falls between grid points.
    """
    k = round(shift_h / step_h)
    if abs(k * step_h - shift_h) <= rel_tol * step_h:
        return int(k)
    return None


def add_on_grid(t_grid: np.ndarray, total: np.ndarray, local_t: np.ndarray, local_c: np.ndarray,
                shift_h: float, step_h: float) -> None:
    """
    Add a single-dose contribution, shifted by `shift_h`, onto the shared grid in place.

    local_t starts at the same origin as t_grid. When the shift is a whole
    number of steps the samples are added by index; otherwise the
    contribution is linearly interpolated at (t_grid - shift) and is zero
    before the dose.
    """
    k = grid_offset(shift_h, step_h)
    if k is not None:
        n = min(total.shape[0] - k, local_c.shape[0])
        if n > 0:
            total[k:k + n] += local_c[:n]
        return

    since_dose = t_grid - t_grid[0] - shift_h
    mask = since_dose >= 0.0
    total[mask] += np.interp(since_dose[mask] + local_t[0], local_t, local_c)


def merge_by_tolerance(contributions: Iterable[Tuple[np.ndarray, np.ndarray]], end_h: float,
                       tol: float = MERGE_TOLERANCE_H) -> Tuple[np.ndarray, np.ndarray]:
    """
    Merge already-shifted (t, C) contributions by nearest-time matching.

    A sample within `tol` of an already recorded time is added to the
    nearest such time; otherwise it is inserted as a new time. Samples past
    `end_h` are dropped. Recorded times are kept sorted, so each lookup is a
    bisection. Two genuinely distinct samples closer than `tol` are merged
    into one, so prefer grid alignment.
    """
    times: list[float] = []
    conc: list[float] = []
    for t_shifted, c in contributions:
        for t, value in zip(t_shifted, c):
            t = float(t)
            if t > end_h + 1e-9:
                continue
            pos = bisect.bisect_left(times, t)
            neighbours = [i for i in (pos - 1, pos) if 0 <= i < len(times) and abs(times[i] - t) < tol]
            if neighbours:
                nearest = min(neighbours, key=lambda i: abs(times[i] - t))
                conc[nearest] += float(value)
                continue
            times.insert(pos, t)
            conc.insert(pos, float(value))

    return np.asarray(times, dtype=float), np.asarray(conc, dtype=float)


def finite_positive(t: np.ndarray, C: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """Drop samples with non-finite time or concentration, or concentration <= 0."""
    with np.errstate(invalid="ignore"):
        keep = np.isfinite(t) & np.isfinite(C) & (C > 0)
    return t[keep], C[keep]
