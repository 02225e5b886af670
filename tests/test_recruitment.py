"""Tests for virtualpop.recruitment — Beverton-Holt and recruit creation."""

import numpy as np
import pytest

from virtualpop.config import RecruitmentSection, SimulationConfig, resolve_config
from virtualpop.recruitment import (
    n_recruits,
    reproduce,
    spawning_stock_biomass,
    srr_bh,
)
from virtualpop.types import IdCounter, make_individuals


@pytest.fixture
def rng():
    return np.random.default_rng(7)


@pytest.fixture
def config():
    return resolve_config(SimulationConfig(
        recruitment=RecruitmentSection(rmax=1000.0, beta=10.0),
    ))


def _adults(n, mature=True, weight=2.0):
    inds = make_individuals(np.arange(1, n + 1), age=5.0, length=50.0)
    inds['weight'] = weight
    inds['mature'] = mature
    return inds


class TestStockRecruitment:
    def test_half_saturation(self):
        assert srr_bh(rmax=1000.0, beta=10.0, SSB=10.0) == pytest.approx(500.0)

    def test_zero_stock(self):
        assert srr_bh(1000.0, 10.0, 0.0) == 0.0

    def test_degenerate_denominator(self):
        assert srr_bh(1000.0, 0.0, 0.0) == 0.0

    def test_saturates(self):
        assert srr_bh(1000.0, 1.0, 1e9) == pytest.approx(1000.0, rel=1e-6)

    def test_n_recruits_rounds_up(self):
        assert n_recruits(1000.0, 10.0, 10.0, 0.001) == 1
        assert n_recruits(1000.0, 10.0, 10.0, 0.5) == 250
        assert n_recruits(1000.0, 10.0, 10.0, 0.0) == 0


class TestSpawningStockBiomass:
    def test_mature_only(self):
        inds = _adults(4)
        inds['mature'] = [True, False, True, False]
        inds['weight'] = [1.0, 10.0, 2.0, 20.0]
        assert spawning_stock_biomass(inds) == pytest.approx(3.0)

    def test_empty(self):
        assert spawning_stock_biomass(_adults(0)) == 0.0


class TestReproduce:
    def test_recruits_appended(self, config, rng):
        inds = _adults(5)                      # SSB = 10 → R = 500
        counter = IdCounter(last_id=5)
        out, n = reproduce(inds, 0.5, counter, config, rng)

        assert n == 250
        assert out.size == 5 + 250
        recruits = out[5:]
        np.testing.assert_array_equal(recruits['id'], np.arange(6, 256))
        assert counter.last_id == 255
        np.testing.assert_allclose(recruits['age'], 0.0)
        np.testing.assert_allclose(recruits['length'], 0.0)
        assert not recruits['mature'].any()
        assert recruits['alive'].all()
        assert np.all(np.isfinite(recruits['Linf']))
        assert np.all(np.isfinite(recruits['Lmat']))

    def test_parents_untouched(self, config, rng):
        inds = _adults(5)
        out, _ = reproduce(inds, 1.0, IdCounter(last_id=5), config, rng)
        np.testing.assert_array_equal(out['id'][:5], inds['id'])
        np.testing.assert_array_equal(out['weight'][:5], inds['weight'])
        assert out['mature'][:5].all()

    def test_no_weight_no_recruits(self, config, rng):
        inds = _adults(5)
        counter = IdCounter(last_id=5)
        out, n = reproduce(inds, 0.0, counter, config, rng)
        assert n == 0 and out is inds
        assert counter.last_id == 5

    def test_no_mature_no_recruits(self, config, rng):
        inds = _adults(5, mature=False)
        out, n = reproduce(inds, 1.0, IdCounter(last_id=5), config, rng)
        assert n == 0 and out.size == 5

    def test_empty_population(self, config, rng):
        out, n = reproduce(_adults(0), 1.0, IdCounter(), config, rng)
        assert n == 0 and out.size == 0

    def test_zero_rmax(self, rng):
        cfg = resolve_config(SimulationConfig(recruitment=RecruitmentSection(rmax=0.0)))
        out, n = reproduce(_adults(5), 1.0, IdCounter(last_id=5), cfg, rng)
        assert n == 0 and out.size == 5
