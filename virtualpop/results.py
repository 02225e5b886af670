"""Tabular export of simulation results.

DataFrame views of a VirtualPopResult and a directory writer:

    <directory>/
        population.csv   time, date, N, B, SSB, recruits, deaths
        lfq.csv          long-format LFQ: date, time, mid_length, count
        samples.csv      sampled individual records with sample time/date
        run.yaml         seed, config hash, growth parameters, full config
"""

from __future__ import annotations

import dataclasses
import hashlib
from pathlib import Path
from typing import Optional, Union

import numpy as np
import pandas as pd
import yaml

from virtualpop.config import config_to_dict
from virtualpop.model import VirtualPopResult
from virtualpop.types import INDIVIDUAL_DTYPE


def config_hash(yaml_text: str) -> str:
    """SHA-256 of a YAML config string (for tagging outputs)."""
    return hashlib.sha256(yaml_text.encode('utf-8')).hexdigest()


def population_frame(result: VirtualPopResult) -> pd.DataFrame:
    """One row per simulation step."""
    pop = result.pop
    return pd.DataFrame({
        'time': pop.time,
        'date': pd.to_datetime(pop.dates),
        'N': pop.N,
        'B': pop.B,
        'SSB': pop.SSB,
        'recruits': pop.recruits,
        'natural_deaths': pop.natural_deaths,
        'fished_deaths': pop.fished_deaths,
    })


def lfq_frame(result: VirtualPopResult) -> pd.DataFrame:
    """Long-format binned LFQ: one row per (sample, length bin)."""
    lfq = result.lfqbin
    columns = ['sample_no', 'time', 'date', 'mid_length', 'count']
    if lfq.is_empty:
        return pd.DataFrame(columns=columns)
    n_bins, n_samples = lfq.catch.shape
    return pd.DataFrame({
        'sample_no': np.repeat(lfq.sample_no, n_bins),
        'time': np.repeat(lfq.times, n_bins),
        'date': pd.to_datetime(np.repeat(np.array(lfq.dates, dtype='datetime64[D]'), n_bins)),
        'mid_length': np.tile(lfq.mid_lengths, n_samples),
        'count': lfq.catch.T.reshape(-1),
    })[columns]


def samples_frame(result: VirtualPopResult) -> pd.DataFrame:
    """All sampled individual records, tagged with their sample time."""
    columns = ['time'] + list(INDIVIDUAL_DTYPE.names)
    if not result.inds:
        return pd.DataFrame(columns=columns)
    frames = []
    for t, records in result.inds.items():
        df = pd.DataFrame.from_records(records)
        df.insert(0, 'time', t)
        frames.append(df)
    return pd.concat(frames, ignore_index=True)[columns]


def save_result(
    result: VirtualPopResult,
    directory: Optional[Union[str, Path]] = None,
) -> Path:
    """Write result tables and run metadata to a directory.

    Args:
        result: Simulation result.
        directory: Output directory; defaults to config.output.directory.

    Returns:
        Path of the output directory.
    """
    if directory is None:
        directory = result.config.output.directory if result.config else "results/"
    out = Path(directory)
    out.mkdir(parents=True, exist_ok=True)

    population_frame(result).to_csv(out / 'population.csv', index=False)
    lfq_frame(result).to_csv(out / 'lfq.csv', index=False)
    write_samples = result.config.output.write_samples if result.config else True
    if write_samples:
        samples_frame(result).to_csv(out / 'samples.csv', index=False)

    config_dict = config_to_dict(result.config) if result.config else {}
    config_text = yaml.safe_dump(config_dict, sort_keys=True)
    meta = {
        'seed': int(result.seed),
        'n_steps': int(result.n_steps),
        'last_id': int(result.last_id),
        'config_sha256': config_hash(config_text),
        'growthpars': (dataclasses.asdict(result.growthpars)
                       if result.growthpars else None),
        'config': config_dict,
    }
    with open(out / 'run.yaml', 'w') as f:
        yaml.safe_dump(meta, f, sort_keys=False)
    return out
