"""
KESTREL CORE v1.0 - Hurst Exponent Regime Classifier
=====================================================

Classifies a series as mean-reverting, borderline or trending using the
Hurst exponent.

Hurst Exponent Interpretation:
    H < 0.5:        Mean-reverting (full confidence)
    0.5 <= H < 0.6: Borderline (confidence halved)
    H >= 0.6:       Trending (pair rejected)

Uses R/S (Rescaled Range) Analysis over lags 10, 12, ... max_lag.

Author: KESTREL Core Development Team
Version: 1.0.0
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence

import numpy as np

from .constants import (
    HURST_BORDERLINE_PENALTY,
    HURST_DEFAULT_MAX_LAG,
    HURST_LAG_STEP,
    HURST_MEAN_REVERTING_THRESHOLD,
    HURST_MIN_LAG,
    HURST_TRENDING_THRESHOLD,
)
from .exceptions import require

logger = logging.getLogger("KESTREL_HurstRegime")


class HurstRegime(Enum):
    """Series regime classification."""

    MEAN_REVERTING = "MEAN_REVERTING"
    BORDERLINE = "BORDERLINE"
    TRENDING = "TRENDING"
    UNKNOWN = "UNKNOWN"


@dataclass
class HurstConfig:
    """Configuration for Hurst classification."""

    max_lag: int = HURST_DEFAULT_MAX_LAG
    use_log_returns: bool = False  # Log returns instead of relative changes

    # Regime thresholds
    mean_reverting_threshold: float = HURST_MEAN_REVERTING_THRESHOLD
    trending_threshold: float = HURST_TRENDING_THRESHOLD

    # Confidence multiplier in the borderline band
    borderline_penalty: float = HURST_BORDERLINE_PENALTY

    def __post_init__(self):
        require(
            self.max_lag >= HURST_MIN_LAG,
            f"max_lag must be >= {HURST_MIN_LAG}",
            "max_lag",
            self.max_lag,
        )
        require(
            self.mean_reverting_threshold <= self.trending_threshold,
            "mean_reverting_threshold must not exceed trending_threshold",
            "mean_reverting_threshold",
            self.mean_reverting_threshold,
        )
        require(
            0.0 <= self.borderline_penalty <= 1.0,
            "borderline_penalty must be in [0, 1]",
            "borderline_penalty",
            self.borderline_penalty,
        )


@dataclass(frozen=True)
class HurstAssessment:
    """Hurst value with its regime and confidence multiplier."""

    hurst: Optional[float]
    regime: HurstRegime
    penalty: float

    @property
    def is_tradeable(self) -> bool:
        return self.regime in (HurstRegime.MEAN_REVERTING, HurstRegime.BORDERLINE)


def _relative_changes(values: np.ndarray) -> np.ndarray:
    prev = values[:-1]
    safe_prev = np.where(prev == 0, 1.0, np.abs(prev))
    changes = (values[1:] - prev) / safe_prev
    return np.where(prev == 0, 0.0, changes)


def hurst_exponent(
    series: Sequence[float],
    max_lag: int = HURST_DEFAULT_MAX_LAG,
    use_log_returns: bool = False,
) -> Optional[float]:
    """
    Calculate the Hurst exponent using R/S (Rescaled Range) Analysis.

    Returns are taken relative to the absolute previous value (a zero
    previous value gives a zero return), so the function also works on
    spreads that cross zero.

    Args:
        series: Price or spread series
        max_lag: Largest chunk length (lags run 10, 12, ... max_lag)
        use_log_returns: Use log returns (requires positive prices)

    Returns:
        Raw R/S slope, not clipped (small samples can land outside
        [0, 1]), or None when:
            - fewer than 2 * max_lag points
            - non-positive prices in log-return mode
            - fewer than two lags with a usable R/S value (flat input)
    """
    values = np.asarray(series, dtype=float).ravel()
    if len(values) < 2 * max_lag:
        return None

    if use_log_returns:
        if np.any(values <= 0):
            logger.debug("Hurst calculation: non-positive prices in log mode")
            return None
        returns = np.diff(np.log(values))
    else:
        returns = _relative_changes(values)

    log_lags = []
    log_rs = []
    for lag in range(HURST_MIN_LAG, max_lag + 1, HURST_LAG_STEP):
        n_chunks = len(returns) // lag
        rs_values = []
        for i in range(n_chunks):
            chunk = returns[i * lag : (i + 1) * lag]
            deviations = np.cumsum(chunk - chunk.mean())
            r = float(deviations.max() - deviations.min())
            s = float(chunk.std())
            if s > 0 and np.isfinite(r):
                rs_values.append(r / s)
        if rs_values:
            mean_rs = float(np.mean(rs_values))
            if mean_rs > 0:
                log_lags.append(np.log(lag))
                log_rs.append(np.log(mean_rs))

    if len(log_lags) < 2:
        logger.debug("Hurst calculation: insufficient R/S values")
        return None

    slope, _ = np.polyfit(log_lags, log_rs, 1)
    if not np.isfinite(slope):
        return None

    return float(slope)


class HurstClassifier:
    """
    Classify series regimes from the Hurst exponent.

    Example:
        classifier = HurstClassifier()
        assessment = classifier.assess(spread)

        if assessment.is_tradeable:
            confidence *= assessment.penalty
    """

    def __init__(self, config: Optional[HurstConfig] = None):
        self.cfg = config or HurstConfig()
        logger.debug(
            f"HurstClassifier initialized: max_lag={self.cfg.max_lag}, "
            f"mean_rev<{self.cfg.mean_reverting_threshold}, "
            f"trending>={self.cfg.trending_threshold}"
        )

    def calculate_hurst(self, series: Sequence[float]) -> Optional[float]:
        return hurst_exponent(
            series, max_lag=self.cfg.max_lag, use_log_returns=self.cfg.use_log_returns
        )

    def classify(self, hurst: Optional[float]) -> HurstAssessment:
        """Map a Hurst value to its regime and confidence multiplier."""
        if hurst is None:
            return HurstAssessment(hurst=None, regime=HurstRegime.UNKNOWN, penalty=0.0)
        if hurst >= self.cfg.trending_threshold:
            return HurstAssessment(hurst=hurst, regime=HurstRegime.TRENDING, penalty=0.0)
        if hurst < self.cfg.mean_reverting_threshold:
            return HurstAssessment(
                hurst=hurst, regime=HurstRegime.MEAN_REVERTING, penalty=1.0
            )
        return HurstAssessment(
            hurst=hurst,
            regime=HurstRegime.BORDERLINE,
            penalty=self.cfg.borderline_penalty,
        )

    def assess(self, series: Sequence[float]) -> HurstAssessment:
        return self.classify(self.calculate_hurst(series))


# =============================================================================
# EXPORTS
# =============================================================================

__all__ = [
    "HurstRegime",
    "HurstConfig",
    "HurstAssessment",
    "HurstClassifier",
    "hurst_exponent",
]
