"""Seasonally oscillating von Bertalanffy growth.

Length increment over [t1, t2] (Somers 1988 / Pauly & Gaschütz 1979 form):

    S(t) = (C·K / 2π) · sin(2π (t − ts))
    L2   = Linf − (Linf − L1) · exp(−(K (t2 − t1) + S(t2) − S(t1)))

With C ∈ [0, 1] the exponent is non-decreasing in t2, so individuals
below Linf never shrink. Weight follows W = a · L^b.
"""

from __future__ import annotations

import numpy as np

from virtualpop.config import GrowthSection


def seasonal_offset(t, K, ts: float, C: float):
    """S(t) term of the seasonally oscillating VBGF."""
    return (C * K) / (2.0 * np.pi) * np.sin(2.0 * np.pi * (t - ts))


def dt_growth_sovb(Linf, K, ts: float, C: float, L1, t1: float, t2: float):
    """Length after growing from L1 over the interval [t1, t2].

    Vectorized over individuals (Linf, K, L1 may be arrays).
    """
    exponent = K * (t2 - t1) + seasonal_offset(t2, K, ts, C) - seasonal_offset(t1, K, ts, C)
    return Linf - (Linf - L1) * np.exp(-exponent)


def length_to_weight(length, a: float, b: float):
    """W = a · L^b."""
    return a * np.power(length, b)


def grow_individuals(
    inds: np.ndarray,
    t: float,
    tincr: float,
    growth_cfg: GrowthSection,
) -> None:
    """Advance all individuals from t − tincr to t (in place).

    Updates length, then weight from the new length, then age.
    """
    if inds.size == 0:
        return
    inds['length'] = dt_growth_sovb(
        Linf=inds['Linf'], K=inds['K'],
        ts=growth_cfg.ts, C=growth_cfg.C,
        L1=inds['length'], t1=t - tincr, t2=t,
    )
    inds['weight'] = length_to_weight(inds['length'], growth_cfg.LWa, growth_cfg.LWb)
    inds['age'] += tincr
