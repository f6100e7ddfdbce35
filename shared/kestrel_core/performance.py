"""
KESTREL CORE v1.0 - Performance Statistics
===========================================

Risk-adjusted statistics over an equity curve, plus a Monte Carlo
permutation test of the curve's return ordering.

All ratios are computed on bar-over-bar simple returns of the curve
and annualized with 252 bars per year. Every division is guarded: a
flat curve yields 0, never NaN. The only infinities are the documented
sentinels:

    calmar_ratio   inf when max drawdown is 0 and total return > 0
    sortino_ratio  inf when there is no downside and mean return > 0
    profit_factor  inf when there are wins and no losses

Author: KESTREL Core Development Team
Version: 1.0.0
"""

import logging
import math
from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional, Sequence

import numpy as np

from .constants import MIN_POINTS_FOR_PERMUTATION, SHARPE_TIE_TOLERANCE, TRADING_DAYS_PER_YEAR
from .statistics import simple_returns

logger = logging.getLogger("KESTREL_Performance")

# Return stdev below this is treated as a flat curve
_MIN_RETURN_STD = 1e-10


def equity_returns(equity: Sequence[float]) -> np.ndarray:
    """Bar-over-bar simple returns of an equity curve."""
    return simple_returns(equity)


def max_drawdown(equity: Sequence[float]) -> float:
    """Largest peak-to-trough decline as a fraction of the peak."""
    values = np.asarray(equity, dtype=float)
    if len(values) < 2:
        return 0.0

    peaks = np.maximum.accumulate(values)
    safe_peaks = np.where(peaks > 0, peaks, 1.0)
    drawdowns = np.where(peaks > 0, (peaks - values) / safe_peaks, 0.0)
    return float(drawdowns.max())


def sharpe_ratio(equity: Sequence[float], risk_free_rate: float = 0.0) -> float:
    """
    Annualized Sharpe ratio: mean / stdev of simple returns * sqrt(252).

    risk_free_rate is a per-bar rate. The population stdev is used;
    a flat curve returns 0.
    """
    returns = equity_returns(equity)
    if len(returns) < 2:
        return 0.0

    std = float(np.std(returns))
    if std < _MIN_RETURN_STD:
        return 0.0
    excess = float(np.mean(returns)) - risk_free_rate
    return excess / std * math.sqrt(TRADING_DAYS_PER_YEAR)


def sortino_ratio(equity: Sequence[float], risk_free_rate: float = 0.0) -> float:
    """
    Annualized Sortino ratio.

    The downside deviation is the root mean square of the excess
    returns below risk_free_rate, taken over those bars only. No
    downside bars gives inf for a positive mean, else 0.
    """
    returns = equity_returns(equity)
    if len(returns) < 2:
        return 0.0

    excess = returns - risk_free_rate
    mean_excess = float(np.mean(excess))
    shortfall = excess[excess < 0]
    if len(shortfall) == 0:
        return math.inf if mean_excess > 0 else 0.0

    downside = math.sqrt(float(np.mean(shortfall ** 2)))
    if downside < _MIN_RETURN_STD:
        return 0.0
    return mean_excess / downside * math.sqrt(TRADING_DAYS_PER_YEAR)


def calmar_ratio(equity: Sequence[float]) -> float:
    """Annualized return divided by max drawdown."""
    values = np.asarray(equity, dtype=float)
    if len(values) < 2 or values[0] == 0:
        return 0.0

    total_return = (values[-1] - values[0]) / values[0]
    drawdown = max_drawdown(values)
    if drawdown == 0:
        return math.inf if total_return > 0 else 0.0

    periods = len(values) - 1
    annualized = total_return * TRADING_DAYS_PER_YEAR / periods
    return annualized / drawdown


def profit_factor(pnls: Sequence[float]) -> float:
    """Gross profit / gross loss over closed trades."""
    values = np.asarray(list(pnls), dtype=float)
    gross_profit = float(values[values > 0].sum())
    gross_loss = float(-values[values < 0].sum())

    if gross_loss == 0:
        return math.inf if gross_profit > 0 else 0.0
    return gross_profit / gross_loss


# =============================================================================
# MONTE CARLO PERMUTATION TEST
# =============================================================================


@dataclass(frozen=True)
class PermutationTestResult:
    """Outcome of a permutation test; error is set when data is insufficient."""

    observed_sharpe: float
    p_value: float
    percentile: int
    iterations: int
    median_random_sharpe: float
    observed_max_drawdown: float
    drawdown_p_value: float
    error: Optional[str] = None

    @property
    def is_significant(self) -> bool:
        return self.error is None and self.p_value < 0.05

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _rebuild_curve(start: float, returns: np.ndarray) -> np.ndarray:
    return np.concatenate(([start], start * np.cumprod(1.0 + returns)))


def monte_carlo_permutation(
    equity: Sequence[float],
    iterations: int = 1000,
    rng: Optional[np.random.Generator] = None,
) -> PermutationTestResult:
    """
    Test whether the ordering of returns explains the result.

    Each iteration shuffles the per-bar returns (Fisher-Yates, via
    Generator.permutation), rebuilds an equity curve from the first
    equity value, and recomputes Sharpe and max drawdown.

        p_value          share of shuffles whose Sharpe is >= observed
                         (within 1e-9, so exact ties count)
        drawdown_p_value share of shuffles whose drawdown is <= observed
        percentile       round((1 - p_value) * 100)

    Args:
        equity: Equity curve, at least 10 points
        iterations: Number of shuffles
        rng: Injected generator for reproducibility

    Returns:
        PermutationTestResult (error set when fewer than 10 points)
    """
    values = np.asarray(equity, dtype=float)
    if len(values) < MIN_POINTS_FOR_PERMUTATION or iterations <= 0:
        logger.debug(f"Permutation test skipped: {len(values)} points, {iterations} iterations")
        return PermutationTestResult(
            observed_sharpe=0.0,
            p_value=1.0,
            percentile=0,
            iterations=0,
            median_random_sharpe=0.0,
            observed_max_drawdown=0.0,
            drawdown_p_value=1.0,
            error=(
                f"insufficient data: need at least {MIN_POINTS_FOR_PERMUTATION} points, "
                f"got {len(values)}"
            ),
        )

    rng = rng or np.random.default_rng()
    returns = equity_returns(values)
    observed = sharpe_ratio(values)
    observed_dd = max_drawdown(values)

    random_sharpes = np.empty(iterations)
    random_drawdowns = np.empty(iterations)
    for i in range(iterations):
        curve = _rebuild_curve(values[0], rng.permutation(returns))
        random_sharpes[i] = sharpe_ratio(curve)
        random_drawdowns[i] = max_drawdown(curve)

    p_value = float(np.mean(random_sharpes >= observed - SHARPE_TIE_TOLERANCE))
    drawdown_p = float(np.mean(random_drawdowns <= observed_dd + SHARPE_TIE_TOLERANCE))

    result = PermutationTestResult(
        observed_sharpe=observed,
        p_value=p_value,
        percentile=int(round((1.0 - p_value) * 100)),
        iterations=iterations,
        median_random_sharpe=float(np.median(random_sharpes)),
        observed_max_drawdown=observed_dd,
        drawdown_p_value=drawdown_p,
    )
    logger.debug(
        f"Permutation test: sharpe={observed:.3f}, p={p_value:.3f}, dd_p={drawdown_p:.3f}"
    )
    return result


# =============================================================================
# EXPORTS
# =============================================================================

__all__ = [
    "equity_returns",
    "max_drawdown",
    "sharpe_ratio",
    "sortino_ratio",
    "calmar_ratio",
    "profit_factor",
    "PermutationTestResult",
    "monte_carlo_permutation",
]
