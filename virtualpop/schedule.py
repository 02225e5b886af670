"""Time grid and event schedules.

  - Simulation time grid (inclusive sequence, R ``seq(from, to, by)`` style)
  - Fishing / LFQ sampling schedule matching
  - Seasonal reproduction-weight schedule, normalized per year and
    cycled across the run by modular step indexing
"""

from __future__ import annotations

from typing import Sequence

import numpy as np


# Tolerance for matching a step time against a scheduled fishing time
FISHING_TIME_TOL = 1e-8


def time_sequence(start: float, stop: float, step: float) -> np.ndarray:
    """Inclusive regular sequence from start towards stop.

    Mirrors ``seq(from, to, by)``: values ``start + k * step`` for
    k = 0..n with n = floor((stop - start) / step + 1e-10), so the
    end point is included when it lies on the grid despite rounding.

    Raises:
        ValueError: If step is not positive.
    """
    if step <= 0:
        raise ValueError(f"step must be positive, got {step}")
    if stop < start:
        return np.zeros(0, dtype=np.float64)
    n = int(np.floor((stop - start) / step + 1e-10))
    return start + np.arange(n + 1, dtype=np.float64) * step


def is_fishing_time(t: float, fished_t: Sequence[float],
                    tol: float = FISHING_TIME_TOL) -> bool:
    """True if t coincides with any scheduled fishing time."""
    fished_t = np.asarray(fished_t, dtype=np.float64)
    if fished_t.size == 0:
        return False
    return bool(np.min(np.abs(t - fished_t)) < tol)


def normalize_repro_weights(repro_wt: Sequence[float]) -> np.ndarray:
    """Scale reproduction weights to sum to 1 over one year.

    An all-zero schedule stays all-zero (no reproduction at any step).
    """
    w = np.asarray(repro_wt, dtype=np.float64)
    total = w.sum()
    if total <= 0:
        return np.zeros_like(w)
    return w / total


def repro_weight_at(repro_wt: np.ndarray, step: int) -> float:
    """Reproduction weight for a step, cycling the annual schedule."""
    if len(repro_wt) == 0:
        return 0.0
    return float(repro_wt[step % len(repro_wt)])


def peak_recruitment_time(repro_wt: Sequence[float], tincr: float) -> float:
    """Time of year (fraction) of the largest reproduction weight.

    The first maximum wins when several steps share the peak weight.
    """
    w = np.asarray(repro_wt, dtype=np.float64)
    if w.size == 0:
        return 0.0
    return float(np.argmax(w) * tincr)
