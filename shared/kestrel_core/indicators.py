"""
KESTREL CORE v1.0 - Technical Indicators
=========================================

Indicator primitives for the technical-indicator strategy.

    compute_rsi          Wilder-smoothed RSI
    compute_ema          exponential moving average seeded on the first value
    compute_macd         MACD line, signal line and histogram
    compute_bollinger    Bollinger bands (population std)
    detect_volume_spike  last volume vs the prior 19-bar mean

RSI, MACD and Bollinger return None, and the spike check False, when
the history is too short.

Author: KESTREL Core Development Team
Version: 1.0.0
"""

from dataclasses import dataclass
from typing import Optional, Sequence

import numpy as np
import pandas as pd


@dataclass(frozen=True)
class MACDResult:
    macd: float
    signal: float
    histogram: float


@dataclass(frozen=True)
class BollingerBands:
    upper: float
    middle: float
    lower: float
    bandwidth: float

    def percent_b(self, price: float) -> float:
        """Position of price within the bands (0 = lower, 1 = upper)."""
        width = self.upper - self.lower
        if width <= 0:
            return 0.5
        return (price - self.lower) / width


def compute_ema(values: Sequence[float], period: int) -> np.ndarray:
    """EMA with k = 2 / (period + 1), seeded on the first value."""
    series = pd.Series(np.asarray(values, dtype=float))
    return series.ewm(span=period, adjust=False).mean().to_numpy()


def compute_rsi(closes: Sequence[float], period: int = 14) -> Optional[float]:
    """Relative Strength Index with Wilder smoothing."""
    values = np.asarray(closes, dtype=float)
    if len(values) < period + 1:
        return None

    diffs = np.diff(values)
    avg_gain = float(np.clip(diffs[:period], 0, None).sum()) / period
    avg_loss = float(np.clip(-diffs[:period], 0, None).sum()) / period

    for diff in diffs[period:]:
        avg_gain = (avg_gain * (period - 1) + max(diff, 0.0)) / period
        avg_loss = (avg_loss * (period - 1) + max(-diff, 0.0)) / period

    if avg_loss == 0:
        return 100.0
    rs = avg_gain / avg_loss
    return 100.0 - 100.0 / (1.0 + rs)


def compute_macd(
    closes: Sequence[float], fast: int = 12, slow: int = 26, signal: int = 9
) -> Optional[MACDResult]:
    values = np.asarray(closes, dtype=float)
    if len(values) < slow:
        return None

    macd_line = compute_ema(values, fast) - compute_ema(values, slow)
    signal_line = compute_ema(macd_line[slow - fast :], signal)

    return MACDResult(
        macd=float(macd_line[-1]),
        signal=float(signal_line[-1]),
        histogram=float(macd_line[-1] - signal_line[-1]),
    )


def compute_bollinger(
    closes: Sequence[float], period: int = 20, num_std: float = 2.0
) -> Optional[BollingerBands]:
    values = np.asarray(closes, dtype=float)
    if len(values) < period:
        return None

    window = values[-period:]
    mean = float(window.mean())
    sd = float(window.std())
    return BollingerBands(
        upper=mean + num_std * sd,
        middle=mean,
        lower=mean - num_std * sd,
        bandwidth=(2 * num_std * sd) / mean if mean != 0 else 0.0,
    )


def detect_volume_spike(volumes: Sequence[float], threshold: float = 2.0) -> bool:
    values = np.asarray(volumes, dtype=float)
    if len(values) < 21:
        return False
    average = float(values[-20:-1].mean())
    return bool(values[-1] > average * threshold)


# =============================================================================
# EXPORTS
# =============================================================================

__all__ = [
    "MACDResult",
    "BollingerBands",
    "compute_ema",
    "compute_rsi",
    "compute_macd",
    "compute_bollinger",
    "detect_volume_spike",
]
