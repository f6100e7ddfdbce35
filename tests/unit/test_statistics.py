"""
Tests for the Statistics Library
=================================

Tests OLS, ADF, half-life, Johansen and the descriptive helpers,
including their degenerate-input behaviour.
"""

import math

import numpy as np
import pytest

from shared.kestrel_core.statistics import (
    adf_p_value,
    adf_test,
    half_life,
    johansen_max_eigen_rank,
    johansen_test,
    ols_regression,
    pearson_correlation,
    simple_returns,
    z_score,
)


class TestOLS:
    """Tests for ols_regression."""

    def test_identity_fit(self):
        """y = x gives beta 1, alpha 0 and a perfect fit."""
        x = np.arange(1.0, 51.0)
        result = ols_regression(x, x)
        assert result.beta == pytest.approx(1.0)
        assert result.alpha == pytest.approx(0.0, abs=1e-9)
        assert result.r_squared == pytest.approx(1.0)
        assert np.allclose(result.residuals, 0.0)

    def test_recovers_linear_relation(self):
        """Noise-free y = 2 + 3x is recovered."""
        x = np.linspace(0, 10, 40)
        result = ols_regression(x, 2.0 + 3.0 * x)
        assert result.alpha == pytest.approx(2.0)
        assert result.beta == pytest.approx(3.0)

    def test_too_few_points(self):
        assert ols_regression([1.0, 2.0], [1.0, 2.0]) is None

    def test_constant_regressor(self):
        """A flat x has no defined slope."""
        assert ols_regression([5.0] * 10, np.arange(10.0)) is None

    def test_aligns_on_trailing_length(self):
        """Longer input is trimmed from the front."""
        x = np.arange(10.0)
        y = np.concatenate([[999.0, 999.0], 2 * x])
        assert ols_regression(x, y).beta == pytest.approx(2.0)


class TestADF:
    """Tests for the simplified ADF test."""

    def test_p_value_steps(self):
        """Statistics map onto the fixed step table."""
        assert adf_p_value(-4.0) == 0.01
        assert adf_p_value(-3.0) == 0.05
        assert adf_p_value(-2.7) == 0.10
        assert adf_p_value(-2.0) == 0.30
        assert adf_p_value(0.0) == 0.50

    def test_short_series_is_neutral(self):
        """Fewer than 20 points report statistic 0 and p-value 1."""
        result = adf_test(np.arange(19.0))
        assert result.statistic == 0.0
        assert result.p_value == 1.0
        assert not result.is_stationary

    def test_flat_series_is_neutral(self):
        result = adf_test([3.0] * 50)
        assert result.p_value == 1.0
        assert not result.is_stationary

    def test_stationary_spread(self, cointegrated_pair):
        """The AR(1) spread of a cointegrated pair is stationary."""
        a, b = cointegrated_pair
        result = adf_test(a - 1.5 * b)
        assert result.is_stationary
        assert result.statistic < -3.51
        assert result.p_value == 0.01
        assert result.n_obs == len(a)

    def test_accelerating_series_not_stationary(self):
        """A quadratic trend has a positive statistic."""
        result = adf_test(np.arange(100.0) ** 2)
        assert result.statistic > 0
        assert result.p_value == 0.50
        assert not result.is_stationary

    def test_statistic_rounded(self, cointegrated_pair):
        a, b = cointegrated_pair
        statistic = adf_test(a - 1.5 * b).statistic
        assert statistic == round(statistic, 2)

    def test_p_value_uses_unrounded_statistic(self):
        """A raw t of -2.888 reports -2.89 but stays in the 10% bucket."""
        trend = np.arange(60.0) ** 2
        alternating = (-1.0) ** np.arange(60)

        def series(log_weight):
            return trend + 10.0 ** log_weight * alternating

        # Bisect the alternating weight until the raw statistic hits -2.888
        low, high = -3.0, 6.0
        assert _raw_adf_t(series(low)) > -2.888 > _raw_adf_t(series(high))
        for _ in range(100):
            mid = (low + high) / 2
            if _raw_adf_t(series(mid)) > -2.888:
                low = mid
            else:
                high = mid
        values = series(low)
        assert -2.89 < _raw_adf_t(values) <= -2.885

        result = adf_test(values)
        assert result.statistic == -2.89
        assert result.p_value == 0.10
        assert not result.is_stationary

    def test_p_value_matches_raw_statistic(self, cointegrated_pair):
        a, b = cointegrated_pair
        spread = a - 1.5 * b
        assert adf_test(spread).p_value == adf_p_value(_raw_adf_t(spread))


def _raw_adf_t(values):
    """Dickey-Fuller t from the correlation of lagged level and change."""
    values = np.asarray(values, dtype=float)
    lagged, delta = values[:-1], np.diff(values)
    r = np.corrcoef(lagged, delta)[0, 1]
    m = len(delta)
    return r * math.sqrt(m - 2) / math.sqrt(1 - r * r)


class TestHalfLife:
    """Tests for the OU half-life."""

    def test_geometric_decay(self):
        """x_t = 0.9 x_{t-1} has theta = -0.1 exactly."""
        series = 10.0 * 0.9 ** np.arange(30)
        assert half_life(series) == pytest.approx(math.log(2) / 0.1)

    def test_short_series(self):
        assert half_life(0.5 ** np.arange(19)) is None

    def test_non_reverting_series(self):
        """A growing series has theta >= 0."""
        assert half_life(np.arange(1.0, 40.0)) is None

    def test_ar1_spread_has_short_half_life(self, cointegrated_pair):
        a, b = cointegrated_pair
        hl = half_life(a - 1.5 * b)
        assert hl is not None
        assert 0.5 < hl < 3.0


class TestJohansen:
    """Tests for the 2-variable Johansen test."""

    def test_cointegrated_pair_has_rank(self, cointegrated_pair):
        a, b = cointegrated_pair
        result = johansen_test(a, b)
        assert result.rank >= 1
        assert result.is_cointegrated
        assert result.reason is None
        assert result.trace_stats[0] >= result.trace_stats[1]
        assert johansen_max_eigen_rank(result) >= 1

    def test_short_input_reports_reason(self):
        """Fewer than 40 observations give rank 0."""
        result = johansen_test(np.arange(30.0), np.arange(30.0) * 2)
        assert result.rank == 0
        assert "insufficient data" in result.reason

    def test_singular_input(self):
        """Identical series have a singular moment matrix."""
        x = 100.0 + np.cumsum(np.random.default_rng(1).normal(0, 1, 100))
        result = johansen_test(x, x)
        assert result.rank == 0
        assert result.reason == "singular moment matrix"

    def test_eigenvalues_in_unit_interval(self, independent_walks):
        a, b = independent_walks
        result = johansen_test(a, b)
        assert all(0.0 <= lam < 1.0 for lam in result.eigenvalues)


class TestDescriptive:
    """Tests for correlation, z-score and returns."""

    def test_perfect_correlation(self):
        x = np.arange(20.0)
        assert pearson_correlation(x, 3 * x + 1) == pytest.approx(1.0)
        assert pearson_correlation(x, -x) == pytest.approx(-1.0)

    def test_correlation_undefined_cases(self):
        """Short or flat input correlates as 0."""
        assert pearson_correlation([1.0, 2.0], [1.0, 2.0]) == 0.0
        assert pearson_correlation([1.0] * 10, np.arange(10.0)) == 0.0

    def test_z_score_of_last_value(self):
        """Population std over the trailing window."""
        assert z_score([1.0, 2.0, 3.0], 3) == pytest.approx(1.0 / math.sqrt(2.0 / 3.0))

    def test_z_score_uses_trailing_window(self):
        assert z_score([100.0, 1.0, 2.0, 3.0], 3) == pytest.approx(z_score([1.0, 2.0, 3.0], 3))

    def test_z_score_edge_cases(self):
        assert z_score([1.0, 2.0], 3) is None
        assert z_score([5.0] * 10, 5) == 0.0

    def test_simple_returns(self):
        """A zero previous value yields a zero return."""
        returns = simple_returns([100.0, 110.0, 0.0, 5.0])
        assert returns.tolist() == pytest.approx([0.1, -1.0, 0.0])

    def test_simple_returns_short(self):
        assert len(simple_returns([1.0])) == 0
