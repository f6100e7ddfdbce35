"""
KESTREL CORE v1.0 - Spread Construction & Cointegration Battery
================================================================

Builds the hedged spread of a price pair and runs the stationarity
battery (ADF, Hurst, half-life, Johansen) over it.

Spread construction:
    The hedge ratio is estimated by OLS on the trailing lookback window
    only, then applied to the entire aligned series:

        spread[i] = A[i] - beta * B[i] - alpha

    The hedge ratio never sees data beyond the current bar; the spread
    history is expressed in today's hedge ratio.

Author: KESTREL Core Development Team
Version: 1.0.0
"""

import logging
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Optional, Sequence, Tuple

import numpy as np

from .constants import HURST_DEFAULT_MAX_LAG
from .hurst_regime import hurst_exponent
from .statistics import adf_test, half_life, johansen_test, ols_regression

logger = logging.getLogger("KESTREL_Cointegration")


@dataclass(frozen=True)
class SpreadSeries:
    """Hedged spread with the regression that produced it."""

    values: np.ndarray = field(repr=False, compare=False)
    hedge_ratio: float
    intercept: float
    r_squared: float

    def __len__(self) -> int:
        return len(self.values)

    @property
    def current(self) -> float:
        return float(self.values[-1])


@dataclass(frozen=True)
class CointegrationResult:
    """Stationarity battery outcome for one pair evaluation."""

    adf_statistic: float
    adf_p_value: float
    is_stationary: bool
    hurst_exponent: Optional[float]
    half_life_bars: Optional[float]
    johansen_rank: int
    is_cointegrated: bool
    hedge_ratio: Optional[float] = None
    intercept: Optional[float] = None
    r_squared: Optional[float] = None
    reason: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def align_pair(
    series_a: Sequence[float], series_b: Sequence[float]
) -> Tuple[np.ndarray, np.ndarray]:
    """Trim two price series to their trailing common length."""
    a = np.asarray(series_a, dtype=float).ravel()
    b = np.asarray(series_b, dtype=float).ravel()
    n = min(len(a), len(b))
    return a[len(a) - n :], b[len(b) - n :]


def compute_spread(
    series_a: Sequence[float],
    series_b: Sequence[float],
    lookback: int = 60,
    min_data_points: int = 60,
) -> Optional[SpreadSeries]:
    """
    Hedge A against B on the trailing window and apply it to the whole series.

    Args:
        series_a: Prices of the dependent leg
        series_b: Prices of the hedge leg
        lookback: Bars used to estimate the hedge ratio
        min_data_points: Minimum aligned length

    Returns:
        SpreadSeries, or None when data is short or the regression is degenerate
    """
    a, b = align_pair(series_a, series_b)
    if len(a) < min_data_points:
        return None

    window = slice(max(0, len(a) - lookback), len(a))
    fit = ols_regression(b[window], a[window])
    if fit is None:
        return None

    values = a - fit.beta * b - fit.alpha
    return SpreadSeries(
        values=values,
        hedge_ratio=fit.beta,
        intercept=fit.alpha,
        r_squared=fit.r_squared,
    )


def evaluate_cointegration(
    series_a: Sequence[float],
    series_b: Sequence[float],
    lookback: int = 60,
    min_data_points: int = 60,
    hurst_max_lag: int = HURST_DEFAULT_MAX_LAG,
) -> CointegrationResult:
    """
    Run ADF, Hurst, half-life and Johansen on a pair.

    is_cointegrated requires both a stationary spread (ADF p <= 0.05)
    and a Johansen rank of at least 1.
    """
    spread = compute_spread(series_a, series_b, lookback, min_data_points)
    if spread is None:
        return CointegrationResult(
            adf_statistic=0.0,
            adf_p_value=1.0,
            is_stationary=False,
            hurst_exponent=None,
            half_life_bars=None,
            johansen_rank=0,
            is_cointegrated=False,
            reason="insufficient data or degenerate hedge regression",
        )

    adf = adf_test(spread.values)
    a, b = align_pair(series_a, series_b)
    johansen = johansen_test(a, b)

    result = CointegrationResult(
        adf_statistic=adf.statistic,
        adf_p_value=adf.p_value,
        is_stationary=adf.is_stationary,
        hurst_exponent=hurst_exponent(spread.values, max_lag=hurst_max_lag),
        half_life_bars=half_life(spread.values),
        johansen_rank=johansen.rank,
        is_cointegrated=adf.is_stationary and johansen.is_cointegrated,
        hedge_ratio=spread.hedge_ratio,
        intercept=spread.intercept,
        r_squared=spread.r_squared,
        reason=johansen.reason,
    )
    logger.debug(
        f"Cointegration: adf={result.adf_statistic} p={result.adf_p_value} "
        f"rank={result.johansen_rank} cointegrated={result.is_cointegrated}"
    )
    return result


# =============================================================================
# EXPORTS
# =============================================================================

__all__ = [
    "SpreadSeries",
    "CointegrationResult",
    "align_pair",
    "compute_spread",
    "evaluate_cointegration",
]
