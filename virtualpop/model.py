"""Individual-based virtual fish population simulation.

Discrete-time loop over t = timemin, timemin + tincr, …, timemax.
Each step, in strict order:
  1. Fishing/sampling check: Fmax = harvest_rate if t is a scheduled
     fishing time, else 0 (and the step is not sampled)
  2. Reproduction weight of the step from the cyclic annual schedule
  3. Growth (seasonal VBGF) → Maturity (threshold) →
     Recruitment (Beverton-Holt on SSB) → Mortality (M + selective F)
  4. Fishing steps: weighted subsample of the fished dead → LFQ sample
  5. Purge dead individuals
  6. Record abundance N, biomass B and spawning stock biomass SSB

After the loop, retained samples are binned into length-frequency data.

The population is a structured array (see types.INDIVIDUAL_DTYPE) that
grows by concatenation of recruits and shrinks by boolean compaction.
Individual ids come from an IdCounter owned by the run.
"""

from __future__ import annotations

import copy
import datetime as dt
import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

import numpy as np
from tqdm import tqdm

from virtualpop.config import (
    SimulationConfig,
    default_config,
    fished_times,
    resolve_config,
    validate_config,
)
from virtualpop.dates import YearFractionCalendar
from virtualpop.growth import grow_individuals
from virtualpop.maturity import mature_individuals
from virtualpop.mortality import apply_mortality
from virtualpop.recruitment import reproduce, spawning_stock_biomass
from virtualpop.rng import create_rng_streams, rng_state_snapshot
from virtualpop.sampling import LFQBin, LengthFrequencySamples, bin_lfq, draw_lfq_sample
from virtualpop.schedule import (
    is_fishing_time,
    normalize_repro_weights,
    peak_recruitment_time,
    repro_weight_at,
    time_sequence,
)
from virtualpop.tracking import IndividualTracker
from virtualpop.traits import express_traits, phi_prime
from virtualpop.types import IdCounter, empty_individuals, make_individuals

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], None]


# ═══════════════════════════════════════════════════════════════════════
# RESULT TYPES
# ═══════════════════════════════════════════════════════════════════════

@dataclass
class PopulationTimeSeries:
    """Per-step aggregates, recorded after dead individuals are removed."""
    time: np.ndarray                 # (n_steps,) simulation time (years)
    dates: List[dt.date]             # (n_steps,) calendar dates
    N: np.ndarray                    # abundance
    B: np.ndarray                    # biomass (Σ weight)
    SSB: np.ndarray                  # spawning stock biomass (Σ weight, mature)
    recruits: np.ndarray             # recruits added this step
    natural_deaths: np.ndarray       # deaths attributed to natural mortality
    fished_deaths: np.ndarray        # deaths attributed to fishing

    @classmethod
    def allocate(cls, time: np.ndarray, dates: List[dt.date]) -> 'PopulationTimeSeries':
        n = len(time)
        return cls(
            time=np.asarray(time, dtype=np.float64),
            dates=list(dates),
            N=np.zeros(n, dtype=np.int64),
            B=np.zeros(n, dtype=np.float64),
            SSB=np.zeros(n, dtype=np.float64),
            recruits=np.zeros(n, dtype=np.int64),
            natural_deaths=np.zeros(n, dtype=np.int64),
            fished_deaths=np.zeros(n, dtype=np.int64),
        )


@dataclass
class GrowthPars:
    """Population-level ("true") growth parameters of the simulated stock."""
    K: float
    Linf: float
    C: float
    ts: float
    phiprime: float                  # φ' of the mean K and Linf
    tmaxrecr: float                  # time of year of peak recruitment


@dataclass
class VirtualPopResult:
    """Results from a virtual population simulation."""
    pop: PopulationTimeSeries
    lfqbin: LFQBin
    lfq: Dict[float, np.ndarray] = field(default_factory=dict)   # raw sampled lengths
    inds: Dict[float, np.ndarray] = field(default_factory=dict)  # sampled individual records
    growthpars: Optional[GrowthPars] = None
    tracks: Dict[int, np.ndarray] = field(default_factory=dict)
    config: Optional[SimulationConfig] = None
    seed: int = 0
    n_steps: int = 0
    last_id: int = 0                 # largest id assigned during the run
    final_population: Optional[np.ndarray] = None
    rng_state: Dict[str, dict] = field(default_factory=dict)

    @property
    def final_pop(self) -> int:
        return int(self.pop.N[-1]) if len(self.pop.N) else 0


# ═══════════════════════════════════════════════════════════════════════
# STEP HELPERS
# ═══════════════════════════════════════════════════════════════════════

def initialize_population(
    config: SimulationConfig,
    counter: IdCounter,
    rng: np.random.Generator,
) -> np.ndarray:
    """Create the starting cohort: N0 individuals at age 1, length 0."""
    if config.simulation.N0 == 0:
        return empty_individuals()
    inds = make_individuals(
        counter.allocate(config.simulation.N0),
        age=1.0,
        length=0.0,
        K=config.growth.K_mu,
    )
    return express_traits(inds, config.growth, config.maturity, rng)


def remove_dead(inds: np.ndarray) -> np.ndarray:
    """Compact the population to the individuals still alive."""
    if inds.size == 0 or inds['alive'].all():
        return inds
    return inds[inds['alive']]


def growth_parameters(config: SimulationConfig, repro_wt: np.ndarray) -> GrowthPars:
    g = config.growth
    return GrowthPars(
        K=g.K_mu,
        Linf=g.Linf_mu,
        C=g.C,
        ts=g.ts,
        phiprime=float(phi_prime(g.K_mu, g.Linf_mu)),
        tmaxrecr=peak_recruitment_time(repro_wt, config.simulation.tincr),
    )


# ═══════════════════════════════════════════════════════════════════════
# SIMULATION
# ═══════════════════════════════════════════════════════════════════════

def run_virtual_pop(
    config: Optional[SimulationConfig] = None,
    seed: Optional[int] = None,
    progress_callback: Optional[ProgressCallback] = None,
    calendar=None,
    tracker: Optional[IndividualTracker] = None,
) -> VirtualPopResult:
    """Run the individual-based population simulation.

    Args:
        config: SimulationConfig; uses default if None. Not modified.
        seed: RNG seed; overrides config.simulation.seed if given.
        progress_callback: Optional callable(current_step, n_steps),
            called once per step. If None and config.simulation.progress
            is set, a tqdm progress bar is shown on stderr.
        calendar: Object with ``times_to_dates(times)``; defaults to a
            YearFractionCalendar anchored at simulation.timemin_date.
        tracker: Optional IndividualTracker; if None, one is created for
            config.simulation.track_ids.

    Returns:
        VirtualPopResult with the population time series, binned and raw
        LFQ samples, sampled individual records and growth parameters.

    Raises:
        ValueError: If the configuration is invalid (e.g. the length of
            repro_wt differs from the number of steps per year).
    """
    config = resolve_config(copy.deepcopy(config) if config is not None else default_config())
    validate_config(config)

    sim = config.simulation
    mort = config.mortality
    seed = sim.seed if seed is None else seed

    if calendar is None:
        calendar = YearFractionCalendar(sim.timemin_date, sim.timemin)
    if tracker is None:
        tracker = IndividualTracker(sim.track_ids)

    rngs = create_rng_streams(seed)

    # ── Schedules ─────────────────────────────────────────────────────
    timeseq = time_sequence(sim.timemin, sim.timemax, sim.tincr)
    n_steps = len(timeseq)
    repro_wt = normalize_repro_weights(config.recruitment.repro_wt)
    fished_t = fished_times(config)

    # ── Initial population ────────────────────────────────────────────
    counter = IdCounter()
    inds = initialize_population(config, counter, rngs['traits'])

    pop = PopulationTimeSeries.allocate(timeseq, calendar.times_to_dates(timeseq))
    samples = LengthFrequencySamples()
    pbar = None
    if progress_callback is None and sim.progress:
        pbar = tqdm(total=n_steps, desc="virtualPop", unit="step")

    logger.info(
        "Starting virtual population run: N0=%d, %d steps (t=%g..%g by %g), "
        "%d fishing times, seed=%d",
        sim.N0, n_steps, sim.timemin, sim.timemax, sim.tincr, len(fished_t), seed,
    )

    # ── Main simulation loop ─────────────────────────────────────────
    for j, t in enumerate(timeseq):
        sampled = is_fishing_time(t, fished_t)
        Fmax = mort.harvest_rate if sampled else 0.0
        repro = repro_weight_at(repro_wt, j)

        grow_individuals(inds, t, sim.tincr, config.growth)
        mature_individuals(inds)
        inds, n_rec = reproduce(inds, repro, counter, config, rngs['traits'])
        n_nat, n_fish = apply_mortality(
            inds, Fmax, mort.M, sim.tincr, mort.L50, mort.wqs, rngs['mortality'],
        )

        if sampled:
            idx = draw_lfq_sample(inds, sim.lfq_frac, rngs['sampling'])
            if idx is not None:
                samples.record(t, inds[idx])
            else:
                logger.debug("No LFQ sample at t=%g (%d fished)", t, n_fish)

        tracker.capture(t, inds)
        inds = remove_dead(inds)

        pop.N[j] = inds.size
        pop.B[j] = float(np.sum(inds['weight'])) if inds.size else 0.0
        pop.SSB[j] = spawning_stock_biomass(inds)
        pop.recruits[j] = n_rec
        pop.natural_deaths[j] = n_nat
        pop.fished_deaths[j] = n_fish

        if progress_callback is not None:
            progress_callback(j + 1, n_steps)
        elif pbar is not None:
            pbar.update(1)

    if pbar is not None:
        pbar.close()

    # ── Length-frequency output ───────────────────────────────────────
    lfqbin = bin_lfq(
        samples.lengths,
        samples.times,
        calendar.times_to_dates(samples.times),
        sim.bin_size,
    )

    logger.info(
        "Finished virtual population run: final N=%d, %d ids assigned, "
        "%d LFQ samples",
        inds.size, counter.last_id, len(samples),
    )

    return VirtualPopResult(
        pop=pop,
        lfqbin=lfqbin,
        lfq=samples.lengths_by_time(),
        inds=samples.records_by_time(),
        growthpars=growth_parameters(config, repro_wt),
        tracks=tracker.trajectories() if tracker.enabled else {},
        config=config,
        seed=seed,
        n_steps=n_steps,
        last_id=counter.last_id,
        final_population=inds,
        rng_state=rng_state_snapshot(rngs),
    )
