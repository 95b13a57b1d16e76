# src/pkode/metrics.py
"""Summary metrics over a (t, C) concentration-time profile."""
import numpy as np
from scipy.integrate import trapezoid
from typing import Optional, Tuple


def cmax(C: np.ndarray) -> float:
    """Peak concentration (mg/L)."""
    return float(np.max(C))

def tmax(t: np.ndarray, C: np.ndarray) -> float:
    """Time of peak concentration (h)."""
    return float(t[int(np.argmax(C))])

def cmin(C: np.ndarray) -> float:
    """Lowest concentration (mg/L)."""
    return float(np.min(C))

def cmax_tmax(t: np.ndarray, C: np.ndarray) -> Tuple[float, float]:
    """Return Cmax (mg/L) and Tmax (h)."""
    idx = int(np.argmax(C))
    return float(C[idx]), float(t[idx])

def auc_trapz(t: np.ndarray, C: np.ndarray) -> float:
    """Area under the curve by the trapezoidal rule (mg*h/L)."""
    return float(trapezoid(C, t))

def cavg(t: np.ndarray, C: np.ndarray) -> float:
    """Time-averaged concentration, AUC / duration (mg/L)."""
    span = float(t[-1] - t[0])
    if span <= 0:
        return float(C[0])
    return auc_trapz(t, C) / span

def ctrough(t: np.ndarray, C: np.ndarray, interval_h: float) -> float:
    """
    Concentration at the end of the last complete dosing interval
    (the sample nearest k * interval_h). NaN if no interval completes.
    """
    n_intervals = int((t[-1] - t[0]) // interval_h)
    if n_intervals < 1:
        return float("nan")
    target = t[0] + n_intervals * interval_h
    return float(C[int(np.argmin(np.abs(t - target)))])

def _last_interval(t: np.ndarray, interval_h: Optional[float]) -> np.ndarray:
    """
    Boolean mask for samples in the last full dosing interval.
    Falls back to all samples when no full interval fits.
    """
    if not interval_h or interval_h <= 0:
        return np.ones_like(t, dtype=bool)
    last_edge = t[0] + ((t[-1] - t[0]) // interval_h) * interval_h
    start = last_edge - interval_h
    if start < t[0]:
        return np.ones_like(t, dtype=bool)
    return (t >= start) & (t <= last_edge)

def peak_to_trough_ratio(t: np.ndarray, C: np.ndarray, interval_h: Optional[float] = None) -> float:
    """Cmax / Cmin, over the last full dosing interval when interval_h is given."""
    Cw = C[_last_interval(t, interval_h)]
    low = float(np.min(Cw))
    if low <= 0:
        return float("inf")
    return float(np.max(Cw)) / low

def fluctuation_index(t: np.ndarray, C: np.ndarray, interval_h: Optional[float] = None) -> float:
    """(Cmax - Cmin) / Cavg, over the last full dosing interval when interval_h is given."""
    mask = _last_interval(t, interval_h)
    avg = cavg(t[mask], C[mask])
    if avg == 0.0:
        return float("inf")
    return (float(np.max(C[mask])) - float(np.min(C[mask]))) / avg

def terminal_half_life(t: np.ndarray, C: np.ndarray, n_points: int = 5) -> float:
    """
    Terminal half-life (h) from a log-linear fit of the last `n_points`
    positive samples: t1/2 = ln 2 / lambda_z.

    NaN when fewer than two usable samples remain or the tail is not declining.
    """
    t = np.asarray(t, dtype=float)
    C = np.asarray(C, dtype=float)
    keep = np.isfinite(t) & np.isfinite(C) & (C > 0)
    t_tail = t[keep][-n_points:]
    C_tail = C[keep][-n_points:]
    if t_tail.shape[0] < 2:
        return float("nan")
    slope, _ = np.polyfit(t_tail, np.log(C_tail), 1)
    if slope >= 0:
        return float("nan")
    return float(np.log(2.0) / -slope)
