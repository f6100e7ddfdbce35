"""
KESTREL Test Configuration
===========================

Pytest fixtures and configuration for KESTREL core tests.
"""

import pytest
import pandas as pd
import numpy as np

from shared.kestrel_core.models import Bar


@pytest.fixture
def rng():
    """Seeded random generator."""
    return np.random.default_rng(42)


@pytest.fixture
def sample_returns():
    """Generate sample return series for testing."""
    rng = np.random.default_rng(42)
    dates = pd.date_range(start="2024-01-01", periods=250, freq="D")
    return pd.Series(rng.normal(0.0005, 0.01, 250), index=dates)


@pytest.fixture
def sample_prices():
    """Generate a random-walk price series for testing."""
    rng = np.random.default_rng(42)
    dates = pd.date_range(start="2024-01-01", periods=250, freq="D")
    prices = 100.0 * np.cumprod(1 + rng.normal(0.0002, 0.01, 250))
    return pd.Series(prices, index=dates)


@pytest.fixture
def cointegrated_pair():
    """A random walk and a partner tied to it through an AR(1) spread (beta 1.5)."""
    rng = np.random.default_rng(7)
    n = 300
    a = 100.0 + np.cumsum(rng.normal(0, 1.0, n))
    ou = np.zeros(n)
    for t in range(1, n):
        ou[t] = 0.5 * ou[t - 1] + rng.normal(0, 0.3)
    b = (a - ou) / 1.5
    return a, b


@pytest.fixture
def independent_walks():
    """Two unrelated random walks."""
    rng = np.random.default_rng(11)
    a = 100.0 + np.cumsum(rng.normal(0, 1.0, 200))
    b = 50.0 + np.cumsum(rng.normal(0, 1.0, 200))
    return a, b


@pytest.fixture
def trending_pair():
    """A quadratic trend against noise with no trend component; the spread never reverts."""
    rng = np.random.default_rng(3)
    t = np.arange(120, dtype=float)
    basis = np.column_stack([np.ones_like(t), t, t**2])
    noise = rng.normal(0, 1.0, 120)
    coef, *_ = np.linalg.lstsq(basis, noise, rcond=None)
    a = 100.0 + 0.01 * t**2 + rng.normal(0, 0.1, 120)
    b = 50.0 + noise - basis @ coef
    return a, b


@pytest.fixture
def linear_equity():
    """Equity curve rising by a constant amount each bar (no drawdown)."""
    return list(np.linspace(100_000.0, 120_000.0, 101))


@pytest.fixture
def noisy_equity():
    """Equity curve with drawdowns and a mean return of exactly 0.1% per bar."""
    rng = np.random.default_rng(21)
    returns = rng.normal(0.0, 0.01, 250)
    returns = returns - returns.mean() + 0.001
    return list(100_000.0 * np.cumprod(1 + returns))


@pytest.fixture
def trending_bars():
    """Upward-trending daily bars with volume."""
    rng = np.random.default_rng(5)
    closes = 100.0 * np.cumprod(1 + rng.normal(0.004, 0.01, 150))
    dates = pd.date_range(start="2024-01-01", periods=150, freq="D")
    return [
        Bar(
            open=float(c * 0.999),
            high=float(c * 1.005),
            low=float(c * 0.995),
            close=float(c),
            volume=float(rng.uniform(9_000, 11_000)),
            timestamp=ts.to_pydatetime(),
        )
        for c, ts in zip(closes, dates)
    ]
