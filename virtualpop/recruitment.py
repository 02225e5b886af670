"""Stock-recruitment and creation of recruits.

Recruits per step = ceil(R_BH(SSB) × w_step), where

    R_BH(SSB) = rmax · SSB / (beta + SSB)     (Beverton-Holt)
    SSB       = Σ weight_i over mature individuals

and w_step is this step's share of the annual reproduction schedule.
No recruits are produced when w_step is zero or nobody is mature.
Recruits enter at age 0 and length 0 with freshly expressed traits and
the next ids from the run's IdCounter.
"""

from __future__ import annotations

import math
from typing import Tuple

import numpy as np

from virtualpop.config import SimulationConfig
from virtualpop.traits import express_traits
from virtualpop.types import IdCounter, make_individuals


def srr_bh(rmax: float, beta: float, SSB: float) -> float:
    """Beverton-Holt recruitment at spawning stock biomass SSB."""
    denominator = beta + SSB
    if denominator <= 0:
        return 0.0
    return rmax * SSB / denominator


def spawning_stock_biomass(inds: np.ndarray) -> float:
    """Total weight of mature individuals (0.0 for an empty population)."""
    if inds.size == 0:
        return 0.0
    return float(np.sum(inds['weight'][inds['mature']]))


def n_recruits(rmax: float, beta: float, SSB: float, repro: float) -> int:
    """Number of recruits produced by SSB in a step with weight repro."""
    return int(math.ceil(srr_bh(rmax, beta, SSB) * repro))


def reproduce(
    inds: np.ndarray,
    repro: float,
    counter: IdCounter,
    config: SimulationConfig,
    rng: np.random.Generator,
) -> Tuple[np.ndarray, int]:
    """Add this step's recruits to the population.

    Args:
        inds: Current population.
        repro: Reproduction weight of this step (normalized schedule).
        counter: Id allocator; advanced by the number of recruits.
        config: Simulation configuration.
        rng: Trait-expression random stream.

    Returns:
        (population including recruits, number of recruits).
    """
    if repro <= 0 or inds.size == 0 or not inds['mature'].any():
        return inds, 0

    rec_cfg = config.recruitment
    n = n_recruits(rec_cfg.rmax, rec_cfg.beta, spawning_stock_biomass(inds), repro)
    if n <= 0:
        return inds, 0

    offspring = make_individuals(
        counter.allocate(n),
        age=0.0,
        length=0.0,
        K=config.growth.K_mu,
    )
    express_traits(offspring, config.growth, config.maturity, rng)
    return np.concatenate([inds, offspring]), n
