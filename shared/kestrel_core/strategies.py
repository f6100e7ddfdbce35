"""
KESTREL CORE v1.0 - Strategy Capabilities
==========================================

Capability interfaces consumed by the backtest engines, plus the
single-asset strategy variants.

Capabilities:
    Strategy       generate_signal(price_history, candles=None) -> Signal
    PairStrategy   generate_signal(series_a, series_b) -> Signal

Single-asset variants:
    TechnicalStrategy     RSI / MACD / Bollinger / volume spike scoring
    MomentumStrategy      volatility-scaled time-series momentum
    MeanReversionStrategy z-score reversion gated by the Hurst exponent
    EnsembleStrategy      regime-weighted blend of momentum and mean reversion

Strategies hold no state between calls.

Author: KESTREL Core Development Team
Version: 1.0.0
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Optional, Sequence, Tuple

import numpy as np

from .exceptions import require
from .hurst_regime import HurstClassifier, HurstConfig
from .indicators import (
    compute_bollinger,
    compute_macd,
    compute_rsi,
    detect_volume_spike,
)
from .models import Action, Bar, Signal, extract_closes
from .statistics import simple_returns, z_score

logger = logging.getLogger("KESTREL_Strategies")


class Strategy(ABC):
    """Single-asset strategy capability."""

    name: str = "strategy"

    @abstractmethod
    def generate_signal(
        self, price_history: Iterable[Any], candles: Optional[Sequence[Bar]] = None
    ) -> Signal:
        """Evaluate the latest bar of a price history."""


class PairStrategy(ABC):
    """Two-asset strategy capability."""

    name: str = "pair_strategy"

    @abstractmethod
    def generate_signal(
        self, series_a: Sequence[float], series_b: Sequence[float]
    ) -> Signal:
        """Evaluate the latest aligned bar of a price pair."""


def zscore_confidence(abs_z: float, entry: float, stop: float) -> float:
    """Linear confidence between entry and stop, scaled down below entry."""
    if abs_z >= entry:
        return min((abs_z - entry) / (stop - entry), 0.95)
    return abs_z / entry * 0.3


def _action_from(value: float, threshold: float) -> Action:
    if value > threshold:
        return Action.BUY
    if value < -threshold:
        return Action.SELL
    return Action.HOLD


def _direction(action: Action) -> int:
    return {Action.BUY: 1, Action.SELL: -1}.get(action, 0)


# =============================================================================
# TECHNICAL INDICATORS
# =============================================================================


@dataclass
class TechnicalConfig:
    rsi_period: int = 14
    macd_fast: int = 12
    macd_slow: int = 26
    macd_signal: int = 9
    bollinger_period: int = 20
    bollinger_std: float = 2.0
    volume_spike_threshold: float = 2.0
    score_threshold: int = 2  # |score| needed for BUY / SELL
    max_score: float = 10.0  # All indicators aligned

    def __post_init__(self):
        require(
            self.macd_fast < self.macd_slow,
            "macd_fast must be below macd_slow",
            "macd_fast",
            self.macd_fast,
        )


class TechnicalStrategy(Strategy):
    """
    Integer scoring over RSI, MACD, Bollinger position and volume spikes.

    RSI < 30 / < 40 score +2 / +1, > 70 / > 60 score -2 / -1.
    MACD above / below its signal line scores +1 / -1.
    Price outside the bands scores +/-2, within 20% of a band +/-1.
    A volume spike pushes a non-zero score one step further.
    """

    name = "technical"

    def __init__(self, config: Optional[TechnicalConfig] = None):
        self.cfg = config or TechnicalConfig()
        logger.debug(f"TechnicalStrategy initialized: rsi={self.cfg.rsi_period}")

    @property
    def min_history(self) -> int:
        return max(self.cfg.rsi_period + 1, self.cfg.macd_slow, self.cfg.bollinger_period)

    def generate_signal(
        self, price_history: Iterable[Any], candles: Optional[Sequence[Bar]] = None
    ) -> Signal:
        closes = extract_closes(price_history)
        if len(closes) < self.min_history:
            return Signal.hold("insufficient data")

        price = float(closes[-1])
        score = 0
        reasons = []

        rsi = compute_rsi(closes, self.cfg.rsi_period)
        if rsi is not None:
            if rsi < 30:
                score += 2
                reasons.append(f"RSI oversold ({rsi:.1f})")
            elif rsi < 40:
                score += 1
                reasons.append(f"RSI low ({rsi:.1f})")
            elif rsi > 70:
                score -= 2
                reasons.append(f"RSI overbought ({rsi:.1f})")
            elif rsi > 60:
                score -= 1
                reasons.append(f"RSI high ({rsi:.1f})")

        macd = compute_macd(
            closes, self.cfg.macd_fast, self.cfg.macd_slow, self.cfg.macd_signal
        )
        if macd is not None:
            if macd.histogram > 0:
                score += 1
                reasons.append("MACD bullish crossover")
            elif macd.histogram < 0:
                score -= 1
                reasons.append("MACD bearish crossover")

        bands = compute_bollinger(closes, self.cfg.bollinger_period, self.cfg.bollinger_std)
        if bands is not None:
            if price < bands.lower:
                score += 2
                reasons.append("Price below lower Bollinger Band")
            elif price > bands.upper:
                score -= 2
                reasons.append("Price above upper Bollinger Band")
            if bands.upper > bands.lower:
                position = bands.percent_b(price)
                if position < 0.2:
                    score += 1
                    reasons.append("Price near lower Bollinger Band")
                elif position > 0.8:
                    score -= 1
                    reasons.append("Price near upper Bollinger Band")

        if candles and detect_volume_spike(
            [bar.volume for bar in candles], self.cfg.volume_spike_threshold
        ):
            if score != 0:
                score += 1 if score > 0 else -1
            reasons.append("Volume spike detected")

        if score >= self.cfg.score_threshold:
            action = Action.BUY
        elif score <= -self.cfg.score_threshold:
            action = Action.SELL
        else:
            action = Action.HOLD

        return Signal(
            action=action,
            confidence=round(min(abs(score) / self.cfg.max_score, 1.0), 2),
            reasons=tuple(reasons),
            direction=_direction(action),
            metadata={"score": score, "rsi": rsi},
        )


# =============================================================================
# MOMENTUM
# =============================================================================


@dataclass
class MomentumConfig:
    lookback: int = 30
    vol_window: int = 20
    target_risk: float = 0.02  # Daily risk for a unit signal
    entry_threshold: float = 0.0  # Momentum beyond this takes a side
    action_threshold: float = 0.1  # |scaled signal| needed for BUY / SELL

    def __post_init__(self):
        require(self.lookback >= 1, "lookback must be >= 1", "lookback", self.lookback)
        require(
            self.vol_window >= 2, "vol_window must be >= 2", "vol_window", self.vol_window
        )


class MomentumStrategy(Strategy):
    """Time-series momentum scaled by realized volatility."""

    name = "momentum"

    def __init__(self, config: Optional[MomentumConfig] = None):
        self.cfg = config or MomentumConfig()
        logger.debug(f"MomentumStrategy initialized: lookback={self.cfg.lookback}")

    def generate_signal(
        self, price_history: Iterable[Any], candles: Optional[Sequence[Bar]] = None
    ) -> Signal:
        closes = extract_closes(price_history)
        if len(closes) < self.cfg.lookback + self.cfg.vol_window:
            return Signal.hold("insufficient data", metadata={"signal": 0.0})

        current = float(closes[-1])
        past = float(closes[-1 - self.cfg.lookback])
        if past == 0:
            return Signal.hold("zero reference price", metadata={"signal": 0.0})
        momentum = (current - past) / past

        returns = simple_returns(closes[-self.cfg.vol_window - 1 :])
        volatility = float(returns.std())

        vol_scale = min(self.cfg.target_risk / volatility, 2.0) if volatility > 0 else 1.0
        if momentum > self.cfg.entry_threshold:
            raw = 1
        elif momentum < -self.cfg.entry_threshold:
            raw = -1
        else:
            raw = 0
        scaled = raw * vol_scale

        strength = abs(momentum) / volatility if volatility > 0 else 0.0
        action = _action_from(scaled, self.cfg.action_threshold)

        return Signal(
            action=action,
            confidence=round(min(strength / 3.0, 1.0), 2),
            reasons=(
                f"{self.cfg.lookback}-bar momentum {momentum:.2%}",
                f"volatility {volatility:.2%}, scale {vol_scale:.2f}",
            ),
            direction=_direction(action),
            metadata={
                "signal": max(-1.0, min(1.0, scaled)),
                "momentum": momentum,
                "volatility": volatility,
                "vol_scale": vol_scale,
            },
        )


# =============================================================================
# MEAN REVERSION
# =============================================================================


@dataclass
class MeanReversionConfig:
    z_score_period: int = 20
    entry_z_score: float = 2.0
    exit_z_score: float = 0.5
    stop_z_score: float = 3.5
    bollinger_period: int = 20
    bollinger_std: float = 2.0
    hurst_max_lag: int = 20

    def __post_init__(self):
        require(
            0 <= self.exit_z_score < self.entry_z_score < self.stop_z_score,
            "z thresholds must satisfy 0 <= exit < entry < stop",
            "entry_z_score",
            (self.exit_z_score, self.entry_z_score, self.stop_z_score),
        )


class MeanReversionStrategy(Strategy):
    """Price z-score reversion, skipped when the Hurst exponent shows a trend."""

    name = "mean_reversion"

    def __init__(self, config: Optional[MeanReversionConfig] = None):
        self.cfg = config or MeanReversionConfig()
        self._hurst = HurstClassifier(
            HurstConfig(max_lag=self.cfg.hurst_max_lag, use_log_returns=True)
        )
        logger.debug(
            f"MeanReversionStrategy initialized: entry={self.cfg.entry_z_score}, "
            f"stop={self.cfg.stop_z_score}"
        )

    def generate_signal(
        self, price_history: Iterable[Any], candles: Optional[Sequence[Bar]] = None
    ) -> Signal:
        closes = extract_closes(price_history)
        if len(closes) < max(self.cfg.z_score_period, self.cfg.bollinger_period) + 10:
            return Signal.hold("insufficient data")

        z = z_score(closes, self.cfg.z_score_period)
        assessment = self._hurst.assess(closes)
        if not assessment.is_tradeable:
            label = "N/A" if assessment.hurst is None else f"{assessment.hurst:.2f}"
            return Signal.hold(
                f"Hurst {label}: trending or unavailable, skip mean reversion",
                z_score=z,
                metadata={"hurst": assessment.hurst},
            )

        entry = self.cfg.entry_z_score
        abs_z = abs(z)
        reasons = []
        if abs_z >= self.cfg.stop_z_score:
            direction = 0
            reasons.append(f"z={z:.2f} hit stop at {self.cfg.stop_z_score}")
        elif z <= -entry:
            direction = 1
            reasons.append(f"z={z:.2f} <= -{entry}: oversold")
        elif z >= entry:
            direction = -1
            reasons.append(f"z={z:.2f} >= {entry}: overbought")
        elif abs_z <= self.cfg.exit_z_score:
            direction = 0
            reasons.append(f"z={z:.2f} near mean")
        else:
            direction = 0
            reasons.append(f"z={z:.2f} in no-trade zone")

        bands = compute_bollinger(closes, self.cfg.bollinger_period, self.cfg.bollinger_std)
        percent_b = bands.percent_b(float(closes[-1])) if bands is not None else None
        if percent_b is not None:
            if percent_b < 0 and direction > 0:
                reasons.append("confirmed: below lower band")
            if percent_b > 1 and direction < 0:
                reasons.append("confirmed: above upper band")

        if abs_z >= self.cfg.stop_z_score:
            confidence = 0.0
        else:
            confidence = round(
                zscore_confidence(abs_z, entry, self.cfg.stop_z_score) * assessment.penalty,
                2,
            )
        reasons.append(f"Hurst {assessment.hurst:.2f} ({assessment.regime.value.lower()})")

        action = {1: Action.BUY, -1: Action.SELL}.get(direction, Action.HOLD)
        return Signal(
            action=action,
            confidence=confidence,
            z_score=z,
            reasons=tuple(reasons),
            direction=direction,
            metadata={
                "signal": float(direction),
                "hurst": assessment.hurst,
                "percent_b": percent_b,
            },
        )


# =============================================================================
# ENSEMBLE
# =============================================================================

# regime -> (momentum weight, mean reversion weight)
REGIME_WEIGHTS: Dict[str, Tuple[float, float]] = {
    "trending": (0.7, 0.3),
    "high_vol_trending": (0.7, 0.3),
    "range_bound": (0.3, 0.7),
    "low_vol_range": (0.3, 0.7),
}


@dataclass
class EnsembleConfig:
    """Configuration for the ensemble; sub-strategy configs default when None."""

    momentum: Optional[MomentumConfig] = None
    mean_reversion: Optional[MeanReversionConfig] = None
    default_weights: Tuple[float, float] = (0.5, 0.5)  # Used when the regime is unknown
    action_threshold: float = 0.15
    regime_min_history: int = 61

    def __post_init__(self):
        require(
            self.action_threshold >= 0,
            "action_threshold must be non-negative",
            "action_threshold",
            self.action_threshold,
        )
        require(
            self.regime_min_history >= 61,
            "regime_min_history must cover the 60-bar volatility window",
            "regime_min_history",
            self.regime_min_history,
        )


class EnsembleStrategy(Strategy):
    """Regime-weighted blend of momentum and mean reversion."""

    name = "ensemble"

    def __init__(self, config: Optional[EnsembleConfig] = None):
        self.cfg = config or EnsembleConfig()
        self.momentum = MomentumStrategy(self.cfg.momentum)
        self.mean_reversion = MeanReversionStrategy(self.cfg.mean_reversion)
        logger.debug("EnsembleStrategy initialized")

    def detect_regime(self, closes: Sequence[float]) -> str:
        """
        Classify the volatility regime from 20-bar vs 60-bar realized volatility
        and the 30-bar return.
        """
        values = extract_closes(closes)
        if len(values) < self.cfg.regime_min_history:
            return "unknown"

        recent_vol = float(simple_returns(values[-21:]).std())
        long_vol = float(simple_returns(values[-61:]).std())
        vol_ratio = recent_vol / (long_vol or 1.0)

        reference = float(values[-31])
        ret_30 = (float(values[-1]) - reference) / reference if reference != 0 else 0.0
        abs_ret = abs(ret_30)

        if vol_ratio > 1.5 and abs_ret > 0.15:
            return "high_vol_trending"
        if vol_ratio < 0.8 and abs_ret < 0.05:
            return "low_vol_range"
        if abs_ret > 0.10:
            return "trending"
        return "range_bound"

    def generate_signal(
        self, price_history: Iterable[Any], candles: Optional[Sequence[Bar]] = None
    ) -> Signal:
        closes = extract_closes(price_history)
        mom = self.momentum.generate_signal(closes)
        mr = self.mean_reversion.generate_signal(closes)

        regime = self.detect_regime(closes)
        w_mom, w_mr = REGIME_WEIGHTS.get(regime, self.cfg.default_weights)

        mom_value = float(mom.metadata.get("signal", 0.0))
        mr_value = float(mr.direction)
        combined = w_mom * mom_value + w_mr * mr_value
        confidence = w_mom * mom.confidence + w_mr * mr.confidence

        action = _action_from(combined, self.cfg.action_threshold)
        return Signal(
            action=action,
            confidence=round(float(np.clip(confidence, 0.0, 1.0)), 2),
            reasons=(
                f"regime {regime} (momentum {w_mom:.0%}, mean reversion {w_mr:.0%})",
                f"momentum {mom.action.value} ({mom.confidence})",
                f"mean reversion {mr.action.value} ({mr.confidence})",
            ),
            direction=_direction(action),
            metadata={"signal": combined, "regime": regime},
        )


# =============================================================================
# EXPORTS
# =============================================================================

__all__ = [
    "Strategy",
    "PairStrategy",
    "zscore_confidence",
    "TechnicalConfig",
    "TechnicalStrategy",
    "MomentumConfig",
    "MomentumStrategy",
    "MeanReversionConfig",
    "MeanReversionStrategy",
    "REGIME_WEIGHTS",
    "EnsembleConfig",
    "EnsembleStrategy",
]
