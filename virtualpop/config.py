"""Configuration system for virtualpop.

Hierarchical YAML configuration with deep-merge support:
  base.yaml → scenario override → sweep overrides

Several defaults depend on other parameters (harvest_rate = M,
L50 = 0.25 * Linf_mu, wqs = 0.2 * L50, fished_t = 17..20 by tincr).
They are stored as None and filled in by ``resolve_config()``, which
``load_config()``, ``default_config()`` and the simulation engine call
before ``validate_config()``.
"""

from __future__ import annotations

import copy
import dataclasses
import datetime as dt
import warnings
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import numpy as np
import yaml

from virtualpop.dates import parse_date
from virtualpop.schedule import is_fishing_time, time_sequence


# ═══════════════════════════════════════════════════════════════════════
# CONFIGURATION DATACLASSES
# ═══════════════════════════════════════════════════════════════════════

@dataclass
class GrowthSection:
    """Seasonally oscillating von Bertalanffy growth + length-weight."""
    K_mu: float = 0.5            # Mean VB growth coefficient (yr⁻¹)
    K_cv: float = 0.1            # Lognormal sdlog of individual K
    Linf_mu: float = 80.0        # Mean asymptotic length (cm)
    Linf_cv: float = 0.1         # Lognormal sdlog of individual Linf
    ts: float = 0.0              # Summer point, [0, 1]
    C: float = 0.85              # Strength of seasonal oscillation, [0, 1]
    LWa: float = 0.01            # W = a * L^b (cm → kg)
    LWb: float = 3.0


@dataclass
class MaturitySection:
    """Length at maturity (individual thresholds drawn at birth)."""
    Lmat: float = 40.0           # Length where 50% of individuals are mature (cm)
    wmat: float = 8.0            # Width between 25% and 75% quantiles of Lmat (cm)


@dataclass
class RecruitmentSection:
    """Beverton-Holt stock-recruitment and seasonal reproduction."""
    rmax: float = 10000.0        # Maximum recruits per year
    beta: float = 1.0            # SSB at half of rmax (kg)
    repro_wt: List[float] = field(
        default_factory=lambda: [0, 0, 0, 1, 0, 0, 0, 0, 0, 0, 0, 0]
    )                            # Relative reproduction per step of one year


@dataclass
class MortalitySection:
    """Natural mortality and logistic fishing selectivity.

    None = derived default (see resolve_config).
    """
    M: float = 0.7                        # Natural mortality (yr⁻¹)
    harvest_rate: Optional[float] = None  # Fishing mortality F at fishing times (default M)
    L50: Optional[float] = None           # Length at 50% selectivity (default 0.25 * Linf_mu)
    wqs: Optional[float] = None           # Width of selectivity ogive (default 0.2 * L50)


@dataclass
class SimulationSection:
    """Time grid, initial population and sampling control."""
    tincr: float = 1.0 / 12.0             # Step length (years)
    timemin: float = 0.0
    timemax: float = 20.0
    timemin_date: Union[str, dt.date] = "1980-01-01"
    N0: int = 10000                       # Starting number of individuals
    fished_t: Optional[List[float]] = None  # Fishing/sampling times (default 17..20 by tincr)
    lfq_frac: float = 1.0                 # Fraction of fished individuals sampled
    bin_size: float = 1.0                 # LFQ bin width (cm)
    seed: int = 42
    progress: bool = False                # Console progress bar
    track_ids: List[int] = field(default_factory=list)  # Ids whose trajectories are recorded


@dataclass
class OutputSection:
    """Output control."""
    directory: str = "results/"
    write_samples: bool = True            # Write sampled individual records


@dataclass
class SimulationConfig:
    """Complete simulation configuration.

    Load from YAML via `load_config()`. Sections map 1:1 to YAML top-level keys.
    """
    growth: GrowthSection = field(default_factory=GrowthSection)
    maturity: MaturitySection = field(default_factory=MaturitySection)
    recruitment: RecruitmentSection = field(default_factory=RecruitmentSection)
    mortality: MortalitySection = field(default_factory=MortalitySection)
    simulation: SimulationSection = field(default_factory=SimulationSection)
    output: OutputSection = field(default_factory=OutputSection)


# ═══════════════════════════════════════════════════════════════════════
# YAML LOADING & MERGING
# ═══════════════════════════════════════════════════════════════════════

def deep_merge(base: Dict, override: Dict) -> Dict:
    """Recursively merge override into base. Modifies base in place.

    - Dict values are merged recursively
    - Non-dict values are replaced
    - Keys in override but not base are added

    Returns:
        The merged base dictionary.
    """
    for key, value in override.items():
        if (
            key in base
            and isinstance(base[key], dict)
            and isinstance(value, dict)
        ):
            deep_merge(base[key], value)
        else:
            base[key] = value
    return base


def _dict_to_section(section_cls, data: Dict) -> Any:
    """Convert a dict to a dataclass, ignoring unknown keys."""
    valid_fields = {f.name for f in dataclasses.fields(section_cls)}
    filtered = {k: v for k, v in data.items() if k in valid_fields}
    return section_cls(**filtered)


_SECTION_MAP = {
    'growth': GrowthSection,
    'maturity': MaturitySection,
    'recruitment': RecruitmentSection,
    'mortality': MortalitySection,
    'simulation': SimulationSection,
    'output': OutputSection,
}


def _yaml_to_config(data: Dict) -> SimulationConfig:
    """Convert a merged YAML dict to a SimulationConfig."""
    sections = {}
    for key, cls in _SECTION_MAP.items():
        if key in data and isinstance(data[key], dict):
            sections[key] = _dict_to_section(cls, data[key])
        else:
            sections[key] = cls()
    return SimulationConfig(**sections)


def config_to_dict(config: SimulationConfig) -> Dict:
    """Plain-dict form of a config, safe for ``yaml.safe_dump``."""
    data = dataclasses.asdict(config)
    sim = data['simulation']
    if isinstance(sim['timemin_date'], dt.date):
        sim['timemin_date'] = sim['timemin_date'].isoformat()
    if sim['fished_t'] is not None:
        sim['fished_t'] = [float(t) for t in sim['fished_t']]
    return data


# ═══════════════════════════════════════════════════════════════════════
# DERIVED DEFAULTS & VALIDATION
# ═══════════════════════════════════════════════════════════════════════

def resolve_config(config: SimulationConfig) -> SimulationConfig:
    """Fill parameter-dependent defaults in place. Idempotent.

    - mortality.harvest_rate ← mortality.M
    - mortality.L50          ← 0.25 × growth.Linf_mu
    - mortality.wqs          ← 0.2 × mortality.L50
    - simulation.fished_t    ← 17, 17 + tincr, …, 20

    Returns:
        The same config object.
    """
    mort = config.mortality
    if mort.harvest_rate is None:
        mort.harvest_rate = mort.M
    if mort.L50 is None:
        mort.L50 = 0.25 * config.growth.Linf_mu
    if mort.wqs is None:
        mort.wqs = 0.2 * mort.L50

    sim = config.simulation
    if sim.fished_t is None and sim.tincr > 0:
        sim.fished_t = time_sequence(17.0, 20.0, sim.tincr).tolist()
    return config


def validate_config(config: SimulationConfig) -> None:
    """Validate configuration constraints. Raises ValueError on failure.

    Checks:
      - Reproduction schedule has exactly one weight per step of a year
      - Time grid is well formed
      - Rates, CVs and sizes lie in their valid ranges
    Warns (UserWarning) when scheduled fishing times miss the time grid.
    """
    g = config.growth
    mat = config.maturity
    rec = config.recruitment
    mort = config.mortality
    sim = config.simulation

    # Time grid
    if sim.tincr <= 0:
        raise ValueError(f"simulation.tincr must be positive, got {sim.tincr}")
    if sim.timemax <= sim.timemin:
        raise ValueError(
            f"simulation.timemin ({sim.timemin}) must be < "
            f"timemax ({sim.timemax})"
        )
    try:
        parse_date(sim.timemin_date)
    except (TypeError, ValueError) as exc:
        raise ValueError(
            f"simulation.timemin_date is not a valid date: {sim.timemin_date!r}"
        ) from exc

    # Reproduction schedule granularity must match the step length
    steps_per_year = round(1.0 / sim.tincr, 7)
    if steps_per_year != len(rec.repro_wt):
        raise ValueError(
            f"length of recruitment.repro_wt ({len(rec.repro_wt)}) must equal "
            f"the number of tincr in one year ({1.0 / sim.tincr:g})"
        )
    if any(w < 0 for w in rec.repro_wt):
        raise ValueError("recruitment.repro_wt must be non-negative")

    # Growth
    if g.K_mu <= 0 or g.Linf_mu <= 0:
        raise ValueError(
            f"growth.K_mu and growth.Linf_mu must be positive, "
            f"got K_mu={g.K_mu}, Linf_mu={g.Linf_mu}"
        )
    if g.K_cv < 0 or g.Linf_cv < 0:
        raise ValueError("growth.K_cv and growth.Linf_cv must be >= 0")
    if not (0.0 <= g.C <= 1.0):
        raise ValueError(f"growth.C must be in [0, 1], got {g.C}")
    if not (0.0 <= g.ts <= 1.0):
        raise ValueError(f"growth.ts must be in [0, 1], got {g.ts}")

    # Maturity
    if mat.wmat < 0:
        raise ValueError(f"maturity.wmat must be >= 0, got {mat.wmat}")

    # Recruitment
    if rec.rmax < 0 or rec.beta < 0:
        raise ValueError(
            f"recruitment.rmax and recruitment.beta must be >= 0, "
            f"got rmax={rec.rmax}, beta={rec.beta}"
        )

    # Mortality (derived defaults must be resolved first)
    if mort.harvest_rate is None or mort.L50 is None or mort.wqs is None:
        raise ValueError(
            "mortality.harvest_rate, L50 and wqs are unresolved; "
            "call resolve_config() first"
        )
    if mort.M < 0 or mort.harvest_rate < 0:
        raise ValueError(
            f"mortality.M and mortality.harvest_rate must be >= 0, "
            f"got M={mort.M}, harvest_rate={mort.harvest_rate}"
        )
    if mort.wqs <= 0:
        raise ValueError(f"mortality.wqs must be positive, got {mort.wqs}")

    # Population & sampling
    if sim.N0 < 0:
        raise ValueError(f"simulation.N0 must be >= 0, got {sim.N0}")
    if not (0.0 < sim.lfq_frac <= 1.0):
        raise ValueError(
            f"simulation.lfq_frac must be in (0, 1], got {sim.lfq_frac}"
        )
    if sim.bin_size <= 0:
        raise ValueError(
            f"simulation.bin_size must be positive, got {sim.bin_size}"
        )
    if sim.seed < 0:
        raise ValueError("simulation.seed must be non-negative")

    # Fishing times that never coincide with a step are silently unused
    if sim.fished_t:
        grid = time_sequence(sim.timemin, sim.timemax, sim.tincr)
        missed = [t for t in sim.fished_t
                  if not is_fishing_time(t, grid)]
        if missed:
            warnings.warn(
                f"{len(missed)} of {len(sim.fished_t)} simulation.fished_t "
                f"values do not match any simulation step "
                f"(first: {missed[0]:g}); no fishing occurs at those times.",
                UserWarning,
                stacklevel=2,
            )


def load_config(
    base_path: Union[str, Path],
    scenario_path: Optional[Union[str, Path]] = None,
    sweep_overrides: Optional[Dict] = None,
) -> SimulationConfig:
    """Load and merge hierarchical YAML configuration.

    Merge order: base → scenario → sweep overrides.
    Each layer overrides only the fields it specifies.

    Args:
        base_path: Path to base configuration YAML.
        scenario_path: Optional scenario override YAML.
        sweep_overrides: Optional dict of parameter sweep overrides.

    Returns:
        Resolved and validated SimulationConfig.

    Raises:
        FileNotFoundError: If base_path doesn't exist.
        ValueError: If validation fails.
    """
    base_path = Path(base_path)
    if not base_path.exists():
        raise FileNotFoundError(f"Config file not found: {base_path}")

    with open(base_path) as f:
        config_dict = yaml.safe_load(f) or {}

    if scenario_path is not None:
        scenario_path = Path(scenario_path)
        if scenario_path.exists():
            with open(scenario_path) as f:
                scenario = yaml.safe_load(f) or {}
            deep_merge(config_dict, scenario)

    if sweep_overrides is not None:
        deep_merge(config_dict, copy.deepcopy(sweep_overrides))

    config = resolve_config(_yaml_to_config(config_dict))
    validate_config(config)
    return config


def default_config() -> SimulationConfig:
    """Return a SimulationConfig with all default values."""
    config = resolve_config(SimulationConfig())
    validate_config(config)
    return config


def fished_times(config: SimulationConfig) -> np.ndarray:
    """Resolved fishing times as a float array (empty if none)."""
    if config.simulation.fished_t is None:
        return np.zeros(0, dtype=np.float64)
    return np.asarray(config.simulation.fished_t, dtype=np.float64)
