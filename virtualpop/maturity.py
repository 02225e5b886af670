"""Maturation by individual length threshold.

An individual becomes mature the first step its length exceeds its own
Lmat (drawn at birth) and stays mature. There is no per-step maturation
probability: heterogeneity comes only from the Lmat draw.
"""

from __future__ import annotations

import numpy as np
from scipy.stats import norm

from virtualpop.traits import lmat_sd


def mature_individuals(inds: np.ndarray) -> None:
    """Set mature = True where length > Lmat (in place, monotonic)."""
    if inds.size == 0:
        return
    inds['mature'] |= inds['length'] > inds['Lmat']


def expected_fraction_mature(length, Lmat: float, wmat: float):
    """Fraction of a cohort mature at a given length.

    Implied by the Normal(Lmat, sd) threshold draw: Φ((L − Lmat) / sd).
    Equals 0.25 / 0.5 / 0.75 at Lmat − wmat/2, Lmat, Lmat + wmat/2.
    """
    sd = lmat_sd(wmat)
    if sd == 0:
        return np.where(np.asarray(length) > Lmat, 1.0, 0.0)
    return norm.cdf((np.asarray(length) - Lmat) / sd)
