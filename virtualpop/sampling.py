"""Length-frequency (LFQ) sampling of the catch and binning.

At each fishing step a subsample of the individuals that died by fishing
is drawn without replacement (size = ceil(n_fished × lfq_frac)). The raw
lengths and full individual records are retained per sample time. After
the run, all retained samples are binned into a common fixed-width
length histogram:

  - lower bound: floor(min length over all samples)
  - upper bound: (c // bin + c % bin + 1) × bin, with c = ceil(max length)
  - bins are right-closed, the lowest bin includes its lower edge
  - catch[bin, sample] counts, with bin midpoints and sample dates

A draw that cannot be made (no fished individuals, fewer positive
weights than requested) is not an error: the step simply has no sample.
"""

from __future__ import annotations

import datetime as dt
import logging
import math
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

import numpy as np

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════════
# CATCH SUBSAMPLING
# ═══════════════════════════════════════════════════════════════════════

def draw_lfq_sample(
    inds: np.ndarray,
    lfq_frac: float,
    rng: np.random.Generator,
) -> Optional[np.ndarray]:
    """Draw row indices of a catch subsample, weighted by the fished flag.

    Returns:
        Indices into inds (in draw order), or None if no sample can be
        drawn this step.
    """
    weights = inds['fished'].astype(np.float64) if inds.size else np.zeros(0)
    n_eligible = int(weights.sum())
    if n_eligible == 0:
        return None
    size = int(math.ceil(n_eligible * lfq_frac))
    try:
        return rng.choice(inds.size, size=size, replace=False,
                          p=weights / weights.sum())
    except ValueError as exc:
        logger.debug("LFQ sample of %d from %d fished skipped: %s",
                     size, n_eligible, exc)
        return None


@dataclass
class LengthFrequencySamples:
    """Sparse series of retained catch samples keyed by sample time.

    Only non-empty samples are stored, in the order they were recorded.
    """
    times: List[float] = field(default_factory=list)
    lengths: List[np.ndarray] = field(default_factory=list)
    records: List[np.ndarray] = field(default_factory=list)

    def record(self, t: float, sampled: np.ndarray) -> bool:
        """Retain a sample (structured array of individuals).

        Returns:
            True if the sample was kept, False if it was empty.
        """
        if sampled.size == 0:
            return False
        self.times.append(float(t))
        self.lengths.append(sampled['length'].copy())
        self.records.append(sampled.copy())
        return True

    def __len__(self) -> int:
        return len(self.times)

    def lengths_by_time(self) -> Dict[float, np.ndarray]:
        return dict(zip(self.times, self.lengths))

    def records_by_time(self) -> Dict[float, np.ndarray]:
        return dict(zip(self.times, self.records))


# ═══════════════════════════════════════════════════════════════════════
# BINNING
# ═══════════════════════════════════════════════════════════════════════

@dataclass
class LFQBin:
    """Binned length-frequency data.

    catch has shape (n_bins, n_samples); column j is the length histogram
    of the sample taken at dates[j] (simulation time times[j]).
    """
    sample_no: np.ndarray        # (n_samples,) 1-based sample number
    mid_lengths: np.ndarray      # (n_bins,)
    breaks: np.ndarray           # (n_bins + 1,)
    times: np.ndarray            # (n_samples,)
    dates: List[dt.date]
    catch: np.ndarray            # (n_bins, n_samples) int64

    @property
    def n_samples(self) -> int:
        return len(self.times)

    @property
    def is_empty(self) -> bool:
        return self.n_samples == 0


def empty_lfq_bin() -> LFQBin:
    """LFQ structure for a run with no retained samples."""
    return LFQBin(
        sample_no=np.zeros(0, dtype=np.int64),
        mid_lengths=np.zeros(0, dtype=np.float64),
        breaks=np.zeros(0, dtype=np.float64),
        times=np.zeros(0, dtype=np.float64),
        dates=[],
        catch=np.zeros((0, 0), dtype=np.int64),
    )


def lfq_breaks(lengths: np.ndarray, bin_size: float) -> np.ndarray:
    """Bin edges spanning all lengths.

    Runs from floor(min) by bin_size up to the extended upper bound;
    one more edge is appended if rounding would leave the maximum
    length outside the last bin.
    """
    lo = math.floor(float(np.min(lengths)))
    c = math.ceil(float(np.max(lengths)))
    hi = (c // bin_size + c % bin_size + 1) * bin_size
    n = int(np.floor((hi - lo) / bin_size + 1e-10))
    breaks = lo + np.arange(n + 1, dtype=np.float64) * bin_size
    while breaks[-1] < np.max(lengths):
        breaks = np.append(breaks, breaks[-1] + bin_size)
    return breaks


def histogram_counts(x: np.ndarray, breaks: np.ndarray) -> np.ndarray:
    """Counts in right-closed bins (b[i], b[i+1]], lowest bin [b0, b1].

    Raises:
        ValueError: If any value falls outside [breaks[0], breaks[-1]].
    """
    x = np.asarray(x, dtype=np.float64)
    if x.size and (x.min() < breaks[0] or x.max() > breaks[-1]):
        raise ValueError("values fall outside the histogram breaks")
    idx = np.searchsorted(breaks, x, side='left') - 1
    idx = np.clip(idx, 0, len(breaks) - 2)
    return np.bincount(idx, minlength=len(breaks) - 1).astype(np.int64)


def bin_lfq(
    lengths: Sequence[np.ndarray],
    times: Sequence[float],
    dates: Sequence[dt.date],
    bin_size: float,
) -> LFQBin:
    """Bin retained catch samples into a (bin × sample) count matrix.

    Empty samples are dropped; if none remain, an empty LFQBin is returned.
    """
    keep = [j for j, x in enumerate(lengths) if len(x) > 0]
    if not keep:
        return empty_lfq_bin()
    lengths = [np.asarray(lengths[j], dtype=np.float64) for j in keep]
    times = np.asarray([times[j] for j in keep], dtype=np.float64)
    dates = [dates[j] for j in keep]

    breaks = lfq_breaks(np.concatenate(lengths), bin_size)
    catch = np.column_stack([histogram_counts(x, breaks) for x in lengths])
    return LFQBin(
        sample_no=np.arange(1, len(keep) + 1, dtype=np.int64),
        mid_lengths=breaks[:-1] + bin_size / 2.0,
        breaks=breaks,
        times=times,
        dates=dates,
        catch=catch,
    )
