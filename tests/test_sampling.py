"""Tests for virtualpop.sampling — catch subsampling and LFQ binning."""

import datetime as dt

import numpy as np
import pytest

from virtualpop.sampling import (
    LengthFrequencySamples,
    bin_lfq,
    draw_lfq_sample,
    empty_lfq_bin,
    histogram_counts,
    lfq_breaks,
)
from virtualpop.types import make_individuals


@pytest.fixture
def rng():
    return np.random.default_rng(99)


def _catch(n, fished_idx, length=30.0):
    inds = make_individuals(np.arange(1, n + 1), length=length)
    inds['fished'][fished_idx] = True
    inds['alive'][fished_idx] = False
    return inds


# ── Catch subsampling ────────────────────────────────────────────────

class TestDrawLfqSample:
    def test_no_fished_returns_none(self, rng):
        assert draw_lfq_sample(_catch(10, []), 1.0, rng) is None

    def test_empty_population_returns_none(self, rng):
        assert draw_lfq_sample(_catch(0, []), 1.0, rng) is None

    def test_full_fraction_takes_all_fished(self, rng):
        fished = [1, 4, 7, 8]
        idx = draw_lfq_sample(_catch(10, fished), 1.0, rng)
        assert sorted(idx.tolist()) == fished

    def test_fraction_rounds_up(self, rng):
        fished = [0, 2, 3, 5, 9]
        idx = draw_lfq_sample(_catch(10, fished), 0.5, rng)
        assert len(idx) == 3
        assert len(set(idx.tolist())) == 3
        assert set(idx.tolist()) <= set(fished)

    def test_tiny_fraction_samples_one(self, rng):
        idx = draw_lfq_sample(_catch(1000, np.arange(0, 1000, 2)), 1e-6, rng)
        assert len(idx) == 1

    def test_only_fished_rows(self, rng):
        inds = _catch(2000, np.arange(0, 2000, 3))
        idx = draw_lfq_sample(inds, 0.3, rng)
        assert inds['fished'][idx].all()


class TestLengthFrequencySamples:
    def test_record_and_lookup(self):
        samples = LengthFrequencySamples()
        inds = _catch(3, [0, 1, 2])
        inds['length'] = [10.0, 20.0, 30.0]
        assert samples.record(2.5, inds[[0, 2]])
        assert len(samples) == 1
        np.testing.assert_allclose(samples.lengths_by_time()[2.5], [10.0, 30.0])
        np.testing.assert_array_equal(samples.records_by_time()[2.5]['id'], [1, 3])

    def test_empty_sample_not_kept(self):
        samples = LengthFrequencySamples()
        assert not samples.record(1.0, _catch(0, []))
        assert len(samples) == 0

    def test_records_are_copies(self):
        samples = LengthFrequencySamples()
        inds = _catch(2, [0, 1])
        samples.record(1.0, inds)
        inds['length'] = 99.0
        np.testing.assert_allclose(samples.lengths[0], 30.0)


# ── Binning ──────────────────────────────────────────────────────────

class TestLfqBreaks:
    def test_unit_bins(self):
        breaks = lfq_breaks(np.array([0.3, 5.2]), 1.0)
        np.testing.assert_allclose(breaks, np.arange(0.0, 8.0))

    def test_wider_bins(self):
        breaks = lfq_breaks(np.array([3.2, 10.1]), 2.0)
        np.testing.assert_allclose(breaks, [3.0, 5.0, 7.0, 9.0, 11.0, 13.0])

    @pytest.mark.parametrize("bin_size", [0.3, 0.5, 1.0, 2.0, 2.5, 7.0])
    def test_covers_all_lengths(self, bin_size):
        lengths = np.random.default_rng(1).uniform(0.05, 77.7, size=500)
        breaks = lfq_breaks(lengths, bin_size)
        assert breaks[0] <= lengths.min()
        assert breaks[-1] >= lengths.max()
        np.testing.assert_allclose(np.diff(breaks), bin_size)


class TestHistogramCounts:
    def test_right_closed_lowest_included(self):
        counts = histogram_counts([0.0, 1.0, 1.5, 2.0], np.array([0.0, 1.0, 2.0, 3.0]))
        np.testing.assert_array_equal(counts, [2, 2, 0])

    def test_upper_edge_included(self):
        counts = histogram_counts([3.0], np.array([0.0, 1.0, 2.0, 3.0]))
        np.testing.assert_array_equal(counts, [0, 0, 1])

    def test_out_of_range_raises(self):
        with pytest.raises(ValueError):
            histogram_counts([3.5], np.array([0.0, 1.0, 2.0, 3.0]))

    def test_empty_input(self):
        counts = histogram_counts([], np.array([0.0, 1.0, 2.0]))
        np.testing.assert_array_equal(counts, [0, 0])


class TestBinLfq:
    def test_catch_matrix(self):
        dates = [dt.date(1981, 1, 1), dt.date(1982, 1, 1), dt.date(1983, 1, 1)]
        lfq = bin_lfq(
            [np.array([1.2, 3.4]), np.array([]), np.array([2.2])],
            [1.0, 2.0, 3.0],
            dates,
            bin_size=1.0,
        )
        np.testing.assert_array_equal(lfq.sample_no, [1, 2])
        np.testing.assert_allclose(lfq.times, [1.0, 3.0])
        assert lfq.dates == [dates[0], dates[2]]
        np.testing.assert_allclose(lfq.breaks, [1.0, 2.0, 3.0, 4.0, 5.0])
        np.testing.assert_allclose(lfq.mid_lengths, [1.5, 2.5, 3.5, 4.5])
        np.testing.assert_array_equal(lfq.catch, [[1, 0], [0, 1], [1, 0], [0, 0]])

    def test_column_sums_equal_sample_sizes(self):
        rng = np.random.default_rng(5)
        lengths = [rng.uniform(5, 60, size=n) for n in (13, 40, 1, 250)]
        lfq = bin_lfq(lengths, [1.0, 2.0, 3.0, 4.0],
                      [dt.date(1990, 1, k + 1) for k in range(4)], bin_size=2.0)
        np.testing.assert_array_equal(lfq.catch.sum(axis=0), [13, 40, 1, 250])
        assert lfq.catch.shape == (len(lfq.mid_lengths), 4)
        assert lfq.n_samples == 4

    def test_no_samples(self):
        lfq = bin_lfq([], [], [], bin_size=1.0)
        assert lfq.is_empty
        assert lfq.catch.shape == (0, 0)

    def test_only_empty_samples(self):
        lfq = bin_lfq([np.array([])], [1.0], [dt.date(2000, 1, 1)], bin_size=1.0)
        assert lfq.is_empty

    def test_empty_lfq_bin(self):
        lfq = empty_lfq_bin()
        assert lfq.n_samples == 0
        assert lfq.dates == []
