"""
Tests for Spread Construction and the Cointegration Battery
============================================================
"""

import numpy as np
import pytest

from shared.kestrel_core.cointegration import (
    align_pair,
    compute_spread,
    evaluate_cointegration,
)


class TestAlignPair:
    """Tests for trailing alignment."""

    def test_trims_front_of_longer_series(self):
        a, b = align_pair([1.0, 2.0, 3.0, 4.0], [10.0, 20.0])
        assert a.tolist() == [3.0, 4.0]
        assert b.tolist() == [10.0, 20.0]


class TestComputeSpread:
    """Tests for compute_spread."""

    def test_recovers_hedge_ratio(self, cointegrated_pair):
        a, b = cointegrated_pair
        spread = compute_spread(a, b, lookback=len(a))
        assert spread.hedge_ratio == pytest.approx(1.5, rel=0.02)
        assert len(spread) == len(a)

    def test_full_window_residuals_are_centred(self, cointegrated_pair):
        """With the whole sample as window the spread is the OLS residual."""
        a, b = cointegrated_pair
        spread = compute_spread(a, b, lookback=len(a))
        assert float(np.mean(spread.values)) == pytest.approx(0.0, abs=1e-8)
        assert spread.current == pytest.approx(
            a[-1] - spread.hedge_ratio * b[-1] - spread.intercept
        )

    def test_window_applied_to_whole_series(self, cointegrated_pair):
        """Only the trailing lookback estimates the ratio; the spread spans everything."""
        a, b = cointegrated_pair
        spread = compute_spread(a, b, lookback=60)
        assert len(spread) == len(a)

    def test_short_data(self):
        assert compute_spread(np.arange(30.0), np.arange(30.0)) is None

    def test_degenerate_regression(self):
        """A flat hedge leg has no hedge ratio."""
        assert compute_spread(np.arange(80.0), [5.0] * 80) is None


class TestEvaluateCointegration:
    """Tests for evaluate_cointegration."""

    def test_cointegrated_scenario(self, cointegrated_pair):
        """Stationary spread, Johansen rank >= 1 and a short half-life."""
        a, b = cointegrated_pair
        result = evaluate_cointegration(a, b, lookback=len(a))
        assert result.is_stationary
        assert result.adf_p_value <= 0.05
        assert result.johansen_rank >= 1
        assert result.is_cointegrated
        assert result.half_life_bars is not None
        assert result.hedge_ratio == pytest.approx(1.5, rel=0.02)

    def test_trending_spread_not_stationary(self, trending_pair):
        a, b = trending_pair
        result = evaluate_cointegration(a, b, lookback=len(a))
        assert not result.is_stationary
        assert not result.is_cointegrated

    def test_insufficient_data(self):
        result = evaluate_cointegration([1.0] * 10, [2.0] * 10)
        assert not result.is_cointegrated
        assert result.adf_p_value == 1.0
        assert result.hedge_ratio is None
        assert "insufficient data" in result.reason

    def test_to_dict(self, cointegrated_pair):
        a, b = cointegrated_pair
        data = evaluate_cointegration(a, b).to_dict()
        assert {"adf_statistic", "hurst_exponent", "johansen_rank"} <= set(data)
