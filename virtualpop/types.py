"""Core data types for virtualpop.

This module is the SINGLE SOURCE OF TRUTH for:
  - INDIVIDUAL_DTYPE: NumPy structured array dtype for individual fish
  - IdCounter: explicit, run-owned allocator of individual ids
  - make_individuals(): creation of blank individual batches

All modules import these types from here. No other module defines
individual fields.
"""

from dataclasses import dataclass

import numpy as np


# ═══════════════════════════════════════════════════════════════════════
# INDIVIDUAL_DTYPE: canonical structured array for individual fish
# ═══════════════════════════════════════════════════════════════════════

INDIVIDUAL_DTYPE = np.dtype([
    # --- Identity ---
    ('id',        np.int64),     # unique, never reused within a run

    # --- State (growth module writes) ---
    ('age',       np.float64),   # years since creation
    ('length',    np.float64),   # cm
    ('weight',    np.float64),   # kg; LWa * length**LWb

    # --- Maturity ---
    ('Lmat',      np.float64),   # individual length at maturity (cm)
    ('mature',    np.bool_),     # monotonic: never reverts to False

    # --- Growth parameters (fixed at birth) ---
    ('K',         np.float64),   # VB growth coefficient (yr⁻¹)
    ('Linf',      np.float64),   # VB asymptotic length (cm)
    ('Winf',      np.float64),   # asymptotic weight (kg)
    ('phiprime',  np.float64),   # growth performance index

    # --- Mortality (recomputed every step) ---
    ('F',         np.float64),   # instantaneous fishing mortality
    ('Z',         np.float64),   # instantaneous total mortality

    # --- Administrative ---
    ('fished',    np.bool_),     # set only in the step of death: True = fished
    ('alive',     np.bool_),     # False = died this step, purged at end of step
])


def make_individuals(
    ids: np.ndarray,
    age: float = 1.0,
    length: float = 0.0,
    K: float = np.nan,
) -> np.ndarray:
    """Create a batch of live, immature individuals.

    Growth parameters other than K, and all derived quantities, are NaN
    until traits are expressed (see traits.express_traits).

    Args:
        ids: Individual ids (one per new individual).
        age: Starting age (years).
        length: Starting length (cm).
        K: Placeholder growth coefficient.

    Returns:
        Structured array of shape (len(ids),) with INDIVIDUAL_DTYPE.
    """
    ids = np.asarray(ids, dtype=np.int64)
    inds = np.zeros(ids.size, dtype=INDIVIDUAL_DTYPE)
    inds['id'] = ids
    inds['age'] = age
    inds['length'] = length
    for name in ('weight', 'Lmat', 'Linf', 'Winf', 'phiprime', 'F', 'Z'):
        inds[name] = np.nan
    inds['K'] = K
    inds['mature'] = False
    inds['fished'] = False
    inds['alive'] = True
    return inds


def empty_individuals() -> np.ndarray:
    """Zero-length individual array."""
    return np.zeros(0, dtype=INDIVIDUAL_DTYPE)


# ═══════════════════════════════════════════════════════════════════════
# ID ALLOCATION
# ═══════════════════════════════════════════════════════════════════════

@dataclass
class IdCounter:
    """Monotonic id allocator owned by one simulation run.

    Ids start at 1 and are never reused, even after the individual
    carrying them has been removed from the population.
    """
    last_id: int = 0

    def allocate(self, n: int) -> np.ndarray:
        """Reserve the next n ids and return them in ascending order."""
        if n < 0:
            raise ValueError(f"cannot allocate a negative number of ids ({n})")
        ids = np.arange(self.last_id + 1, self.last_id + 1 + n, dtype=np.int64)
        self.last_id += n
        return ids
