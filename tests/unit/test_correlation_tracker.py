"""
Tests for Correlation Tracker
=============================

Tests the correlation matrix and the diversification measures used by
portfolio Kelly and the pair scanner.
"""

import numpy as np
import pytest

from shared.kestrel_core.correlation_tracker import CorrelationConfig, CorrelationTracker
from shared.kestrel_core.exceptions import InvalidConfigError


@pytest.fixture
def tracker():
    """Create a correlation tracker with default config."""
    return CorrelationTracker()


@pytest.fixture
def universe():
    base = np.array([0.01, -0.02, 0.015, 0.0, -0.01, 0.02, 0.005, -0.005])
    return {
        "BTC": base,
        "ETH": 2 * base + 0.001,
        "GOLD": -base,
        "CASH": np.array([1, 1, -1, -1, 1, 1, -1, -1], dtype=float),
    }


class TestCorrelationMatrix:
    """Tests for matrix construction."""

    def test_symmetric_unit_diagonal(self, tracker, universe):
        matrix = tracker.correlation_matrix(universe)
        assert list(matrix.columns) == ["BTC", "ETH", "GOLD", "CASH"]
        assert np.allclose(np.diag(matrix.to_numpy()), 1.0)
        assert np.allclose(matrix.to_numpy(), matrix.to_numpy().T)

    def test_signed_values(self, tracker, universe):
        matrix = tracker.correlation_matrix(universe)
        assert matrix.loc["BTC", "ETH"] == pytest.approx(1.0)
        assert matrix.loc["BTC", "GOLD"] == pytest.approx(-1.0)

    def test_short_overlap_is_zero(self, tracker):
        matrix = tracker.correlation_matrix({"A": [1.0, 2.0, 3.0], "B": [1.0, 2.0, 3.0]})
        assert matrix.loc["A", "B"] == 0.0

    def test_pairwise_yields_each_pair_once(self, tracker, universe):
        pairs = [(a, b) for a, b, _ in tracker.pairwise(universe)]
        assert len(pairs) == 6
        assert ("BTC", "ETH") in pairs
        assert ("ETH", "BTC") not in pairs

    def test_single_pair_matches_matrix(self, tracker, universe):
        matrix = tracker.correlation_matrix(universe)
        corr = tracker.correlation(universe["BTC"], universe["CASH"])
        assert corr == pytest.approx(matrix.loc["BTC", "CASH"])
        assert tracker.correlation([1.0, 2.0], [2.0, 4.0]) == 0.0


class TestDiversification:
    """Tests for diversification measures."""

    def test_average_abs_correlation(self, tracker, universe):
        matrix = tracker.correlation_matrix({k: universe[k] for k in ("BTC", "ETH", "GOLD")})
        assert tracker.average_abs_correlation(matrix, "BTC") == pytest.approx(1.0)

    def test_factor_for_identical_series(self, tracker, universe):
        matrix = tracker.correlation_matrix({"BTC": universe["BTC"], "ETH": universe["ETH"]})
        assert tracker.diversification_factor(matrix, "BTC") == pytest.approx(1 / np.sqrt(2))

    def test_factor_bounds(self, tracker, universe):
        matrix = tracker.correlation_matrix(universe)
        for name in universe:
            assert 0.0 < tracker.diversification_factor(matrix, name) <= 1.0

    def test_single_series(self, tracker, universe):
        matrix = tracker.correlation_matrix({"BTC": universe["BTC"]})
        assert tracker.diversification_factor(matrix, "BTC") == 1.0
        assert tracker.average_abs_correlation(matrix, "BTC") == 0.0

    def test_highly_correlated(self, universe):
        tracker = CorrelationTracker(CorrelationConfig(high_correlation_threshold=0.9))
        flagged = tracker.highly_correlated(tracker.correlation_matrix(universe))
        assert ("BTC", "ETH") in flagged
        assert ("BTC", "GOLD") in flagged
        assert flagged[("BTC", "GOLD")] == pytest.approx(-1.0)


class TestCorrelationConfig:
    def test_min_length(self):
        with pytest.raises(InvalidConfigError):
            CorrelationConfig(min_length=1)
