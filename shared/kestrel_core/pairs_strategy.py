"""
KESTREL CORE v1.0 - Pairs Trading Strategy
===========================================

Statistical-arbitrage signal over the hedged spread of two assets.

Evaluation order (each gate short-circuits to a zero-confidence HOLD):
    1. Enough aligned data and a non-degenerate hedge regression
    2. Spread stationary (ADF p <= 0.05)
    3. Hurst exponent available and below 0.6
    4. Z-score of the spread state machine:
        |z| >= stop   -> HOLD (cointegration assumed broken)
        z <= -entry   -> BUY  (long spread: buy A, sell beta * B)
        z >=  entry   -> SELL (short spread: sell A, buy beta * B)
        |z| <= exit   -> HOLD (spread reverted, exit zone)
        otherwise     -> HOLD (no-trade zone)

Confidence:
    |z| >= entry: min((|z| - entry) / (stop - entry), 0.95)
    |z| <  entry: |z| / entry * 0.3
    multiplied by the Hurst penalty (0.5 in the borderline band),
    rounded to two decimals.

The strategy holds no state between calls; identical inputs give
identical signals.

Author: KESTREL Core Development Team
Version: 1.0.0
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, Sequence

from .cointegration import SpreadSeries, align_pair, compute_spread
from .constants import HURST_DEFAULT_MAX_LAG
from .exceptions import require
from .hurst_regime import HurstClassifier, HurstConfig
from .kalman_filter import KalmanConfig, KalmanHedgeRatio
from .models import Action, Signal
from .statistics import adf_test, half_life, z_score
from .strategies import PairStrategy, zscore_confidence

logger = logging.getLogger("KESTREL_PairsStrategy")

# Signal zones reported in Signal.metadata["zone"]
ZONE_ENTRY = "entry"
ZONE_EXIT = "exit"
ZONE_NEUTRAL = "neutral"
ZONE_STOP = "stop"
ZONE_REJECTED = "rejected"
ZONE_NO_DATA = "no_data"


@dataclass
class PairsStrategyConfig:
    """Configuration for the pairs strategy."""

    hedge_ratio_lookback: int = 60  # Bars for the OLS hedge ratio
    z_score_period: int = 20  # Bars for the spread z-score
    min_data_points: int = 60

    # Z-score thresholds
    entry_z_score: float = 2.0
    exit_z_score: float = 0.5
    stop_z_score: float = 3.5

    hurst_max_lag: int = HURST_DEFAULT_MAX_LAG

    # Report a Kalman hedge ratio alongside the OLS one
    use_kalman: bool = False
    kalman: Optional[KalmanConfig] = None

    def __post_init__(self):
        require(
            0 <= self.exit_z_score < self.entry_z_score < self.stop_z_score,
            "z thresholds must satisfy 0 <= exit < entry < stop",
            "entry_z_score",
            (self.exit_z_score, self.entry_z_score, self.stop_z_score),
        )
        require(
            self.hedge_ratio_lookback >= 3,
            "hedge_ratio_lookback must be >= 3",
            "hedge_ratio_lookback",
            self.hedge_ratio_lookback,
        )
        require(
            self.z_score_period >= 2,
            "z_score_period must be >= 2",
            "z_score_period",
            self.z_score_period,
        )
        require(
            self.min_data_points >= self.z_score_period,
            "min_data_points must cover z_score_period",
            "min_data_points",
            self.min_data_points,
        )
        if self.kalman is None:
            self.kalman = KalmanConfig()


@dataclass(frozen=True)
class PositionLegs:
    """Quantities and sides for the two legs of a spread position."""

    side_a: Action
    quantity_a: float
    side_b: Action
    quantity_b: float
    hedge_ratio: float


class PairsTradingStrategy(PairStrategy):
    """
    Z-score state machine over a cointegrated spread.

    Example:
        strategy = PairsTradingStrategy()
        signal = strategy.generate_signal(closes_a, closes_b)

        if signal.action == Action.BUY:
            legs = strategy.get_position_legs(
                signal.direction, signal.hedge_ratio, price_a, price_b, 10_000
            )
    """

    name = "pairs_trading"

    def __init__(self, config: Optional[PairsStrategyConfig] = None):
        self.cfg = config or PairsStrategyConfig()
        self._hurst = HurstClassifier(HurstConfig(max_lag=self.cfg.hurst_max_lag))

        logger.info(
            f"PairsTradingStrategy initialized: lookback={self.cfg.hedge_ratio_lookback}, "
            f"entry={self.cfg.entry_z_score}, exit={self.cfg.exit_z_score}, "
            f"stop={self.cfg.stop_z_score}"
        )

    def compute_spread(
        self, series_a: Sequence[float], series_b: Sequence[float]
    ) -> Optional[SpreadSeries]:
        return compute_spread(
            series_a,
            series_b,
            lookback=self.cfg.hedge_ratio_lookback,
            min_data_points=self.cfg.min_data_points,
        )

    def generate_signal(
        self, series_a: Sequence[float], series_b: Sequence[float]
    ) -> Signal:
        """
        Evaluate the pair and emit a signal.

        Args:
            series_a: Close prices of asset A (dependent leg)
            series_b: Close prices of asset B (hedge leg)

        Returns:
            Signal; every rejection is a zero-confidence HOLD with a reason
        """
        a, b = align_pair(series_a, series_b)
        if len(a) < self.cfg.min_data_points:
            return Signal.hold(
                f"insufficient data: {len(a)} < {self.cfg.min_data_points} bars",
                metadata={"zone": ZONE_NO_DATA},
            )

        spread = self.compute_spread(a, b)
        if spread is None:
            return Signal.hold(
                "hedge regression degenerate", metadata={"zone": ZONE_NO_DATA}
            )

        adf = adf_test(spread.values)
        metadata: Dict[str, Any] = {
            "adf_statistic": adf.statistic,
            "adf_p_value": adf.p_value,
            "intercept": spread.intercept,
            "r_squared": spread.r_squared,
            "spread": spread.current,
        }

        if not adf.is_stationary:
            metadata["zone"] = ZONE_REJECTED
            return Signal.hold(
                f"spread not stationary (ADF {adf.statistic}, p={adf.p_value})",
                hedge_ratio=spread.hedge_ratio,
                metadata=metadata,
            )

        assessment = self._hurst.assess(spread.values)
        metadata["hurst"] = assessment.hurst
        if not assessment.is_tradeable:
            metadata["zone"] = ZONE_REJECTED
            if assessment.hurst is None:
                reason = "Hurst exponent unavailable"
            else:
                reason = f"Hurst {assessment.hurst:.3f} indicates trending spread"
            return Signal.hold(reason, hedge_ratio=spread.hedge_ratio, metadata=metadata)

        z = z_score(spread.values, self.cfg.z_score_period)
        if z is None:
            metadata["zone"] = ZONE_NO_DATA
            return Signal.hold(
                "z-score unavailable", hedge_ratio=spread.hedge_ratio, metadata=metadata
            )

        metadata["half_life"] = half_life(spread.values)
        metadata["spread_mean"] = float(
            spread.values[-self.cfg.z_score_period :].mean()
        )
        if self.cfg.use_kalman:
            kalman = KalmanHedgeRatio(self.cfg.kalman).filter(a, b)
            metadata["kalman_beta"] = kalman.final_beta
            metadata["kalman_drift"] = kalman.final_beta - spread.hedge_ratio

        reasons = [
            f"ADF {adf.statistic} (p={adf.p_value})",
            f"Hurst {assessment.hurst:.3f} ({assessment.regime.value.lower()})",
        ]
        return self.decide(
            z,
            hurst_penalty=assessment.penalty,
            hedge_ratio=spread.hedge_ratio,
            reasons=reasons,
            metadata=metadata,
        )

    def decide(
        self,
        z: float,
        hurst_penalty: float = 1.0,
        hedge_ratio: Optional[float] = None,
        reasons: Sequence[str] = (),
        metadata: Optional[Dict[str, Any]] = None,
    ) -> Signal:
        """
        Map a spread z-score to an action and confidence.

        Args:
            z: Current spread z-score
            hurst_penalty: Confidence multiplier from the Hurst assessment
            hedge_ratio: Hedge ratio carried onto the signal
            reasons: Diagnostic reasons accumulated by earlier gates
            metadata: Diagnostics carried onto the signal
        """
        metadata = dict(metadata or {})
        reasons = list(reasons)
        abs_z = abs(z)
        entry = self.cfg.entry_z_score
        exit_z = self.cfg.exit_z_score
        stop = self.cfg.stop_z_score

        if abs_z >= stop:
            metadata["zone"] = ZONE_STOP
            reasons.append(f"|z|={abs_z:.2f} >= stop {stop}: cointegration assumed broken")
            return Signal(
                action=Action.HOLD,
                confidence=0.0,
                z_score=z,
                hedge_ratio=hedge_ratio,
                reasons=tuple(reasons),
                metadata=metadata,
            )

        confidence = round(zscore_confidence(abs_z, entry, stop) * hurst_penalty, 2)

        if z <= -entry:
            action, direction = Action.BUY, 1
            metadata["zone"] = ZONE_ENTRY
            reasons.append(f"z={z:.2f} <= -{entry}: long spread")
        elif z >= entry:
            action, direction = Action.SELL, -1
            metadata["zone"] = ZONE_ENTRY
            reasons.append(f"z={z:.2f} >= {entry}: short spread")
        elif abs_z <= exit_z:
            action, direction = Action.HOLD, 0
            metadata["zone"] = ZONE_EXIT
            reasons.append(f"|z|={abs_z:.2f} <= {exit_z}: spread reverted")
        else:
            action, direction = Action.HOLD, 0
            metadata["zone"] = ZONE_NEUTRAL
            reasons.append(f"|z|={abs_z:.2f} in no-trade zone")

        return Signal(
            action=action,
            confidence=confidence,
            z_score=z,
            hedge_ratio=hedge_ratio,
            reasons=tuple(reasons),
            direction=direction,
            metadata=metadata,
        )

    @staticmethod
    def get_position_legs(
        direction: int,
        hedge_ratio: float,
        price_a: float,
        price_b: float,
        notional: float,
    ) -> Optional[PositionLegs]:
        """
        Split a notional across the two legs.

        qty_a = notional / (price_a + |beta| * price_b), qty_b = qty_a * |beta|.
        Leg B trades against leg A for a positive hedge ratio and alongside
        it for a negative one.

        Returns:
            PositionLegs, or None for a flat direction or non-positive notional
        """
        if direction == 0 or notional <= 0:
            return None

        abs_beta = abs(hedge_ratio)
        unit_cost = price_a + abs_beta * price_b
        if unit_cost <= 0:
            return None

        quantity_a = notional / unit_cost
        side_a = Action.BUY if direction > 0 else Action.SELL
        opposite = Action.SELL if side_a == Action.BUY else Action.BUY
        side_b = opposite if hedge_ratio >= 0 else side_a

        return PositionLegs(
            side_a=side_a,
            quantity_a=quantity_a,
            side_b=side_b,
            quantity_b=quantity_a * abs_beta,
            hedge_ratio=hedge_ratio,
        )


# =============================================================================
# EXPORTS
# =============================================================================

__all__ = [
    "PairsStrategyConfig",
    "PositionLegs",
    "PairsTradingStrategy",
    "ZONE_ENTRY",
    "ZONE_EXIT",
    "ZONE_NEUTRAL",
    "ZONE_STOP",
    "ZONE_REJECTED",
    "ZONE_NO_DATA",
]
