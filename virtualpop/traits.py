"""Trait expression at birth.

Each new individual (initial population or recruit) draws, once:
  - Linf = Linf_mu × LogNormal(0, Linf_cv)
  - K    = K_mu    × LogNormal(0, K_cv)
  - Lmat ~ Normal(Lmat, wmat / (Φ⁻¹(0.75) − Φ⁻¹(0.25)))

and derives Winf, phi-prime and the weight at its current length. This
batch draw is the only source of phenotypic heterogeneity; Linf and K
stay fixed for life.

References:
  - Vakily 1992; Munro & Pauly 1983 (phi-prime, φ' = log10 K + 2 log10 Linf)
"""

from __future__ import annotations

import numpy as np
from scipy.stats import norm

from virtualpop.config import GrowthSection, MaturitySection
from virtualpop.growth import length_to_weight


# Φ⁻¹(0.75) − Φ⁻¹(0.25): interquartile range of a standard normal
NORMAL_IQR = float(norm.ppf(0.75) - norm.ppf(0.25))


def lmat_sd(wmat: float) -> float:
    """Standard deviation of Lmat such that its IQR equals wmat."""
    return wmat / NORMAL_IQR


def phi_prime(K, Linf):
    """Growth performance index φ' = log10(K) + 2·log10(Linf)."""
    return np.log10(K) + 2.0 * np.log10(Linf)


def express_traits(
    inds: np.ndarray,
    growth_cfg: GrowthSection,
    maturity_cfg: MaturitySection,
    rng: np.random.Generator,
) -> np.ndarray:
    """Draw growth and maturity traits for a batch of new individuals.

    Modifies inds in place and returns it for chaining.
    """
    n = inds.size
    if n == 0:
        return inds
    inds['Linf'] = growth_cfg.Linf_mu * rng.lognormal(0.0, growth_cfg.Linf_cv, size=n)
    inds['Winf'] = length_to_weight(inds['Linf'], growth_cfg.LWa, growth_cfg.LWb)
    inds['K'] = growth_cfg.K_mu * rng.lognormal(0.0, growth_cfg.K_cv, size=n)
    inds['weight'] = length_to_weight(inds['length'], growth_cfg.LWa, growth_cfg.LWb)
    inds['phiprime'] = phi_prime(inds['K'], inds['Linf'])
    inds['Lmat'] = rng.normal(maturity_cfg.Lmat, lmat_sd(maturity_cfg.wmat), size=n)
    return inds
