"""
KESTREL CORE v1.0 - Position Sizer
===================================

Converts a signal confidence into a capital allocation.

calculate() pipeline, in fixed order:
    1. Base estimate
        explicit win rate / avg win / avg loss  -> "kelly" or "kelly+regime"
        else strategy name (rolling or default) -> "kelly+strategy" / "kelly+regime"
        optional exponential weighting          -> "kelly+exp_weighted"
        optional adaptive fraction              -> "+adaptive"
       multiplied by the signal confidence
    2. Drawdown adjustment                      -> "+dd_adjusted"
    3. CVaR (takes precedence) or VaR cap       -> "+cvar" / "+var"
    4. Transaction-cost adjustment              -> "+cost_adj"
    5. Fallback without a Kelly estimate        -> "yolo" / "standard"
    6. Volatility scaling min(0.02 / vol, 1)    -> "+vol_adjusted"
    7. Clamp to [0, max_yolo_pct], convert to a quantity

Positions worth less than min_position_value are rejected with
method "skip"; they are never rounded up.

Author: KESTREL Core Development Team
Version: 1.0.0
"""

import logging
import math
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Sequence, Tuple

import numpy as np

from .constants import TARGET_DAILY_VOLATILITY
from .cvar_engine import CVaRConfig, CVaREngine
from .exceptions import require
from .kelly_criterion import KellyConfig, KellyCriterion
from .models import Bar, PositionSizingResult
from .statistics import simple_returns

logger = logging.getLogger("KESTREL_PositionSizer")


@dataclass
class PositionSizerConfig:
    """Configuration for the position sizer."""

    max_position_pct: float = 0.10  # Standard allocation at full confidence
    yolo_threshold: float = 0.85  # Confidence for the high-conviction allocation
    min_position_value: float = 100.0
    target_volatility: float = TARGET_DAILY_VOLATILITY
    default_avg_win: float = 0.05  # Used for cost drag when no avg win is known

    kelly: Optional[KellyConfig] = None
    tail_risk: Optional[CVaRConfig] = None

    def __post_init__(self):
        if self.kelly is None:
            self.kelly = KellyConfig()
        if self.tail_risk is None:
            self.tail_risk = CVaRConfig()
        require(
            0 < self.max_position_pct <= self.kelly.max_yolo_pct,
            "max_position_pct must be in (0, max_yolo_pct]",
            "max_position_pct",
            self.max_position_pct,
        )
        require(
            0 < self.yolo_threshold <= 1,
            "yolo_threshold must be in (0, 1]",
            "yolo_threshold",
            self.yolo_threshold,
        )
        require(
            self.min_position_value >= 0,
            "min_position_value must be non-negative",
            "min_position_value",
            self.min_position_value,
        )
        require(
            self.target_volatility > 0,
            "target_volatility must be positive",
            "target_volatility",
            self.target_volatility,
        )


class PositionSizer:
    """
    Kelly-family position sizer with tail-risk, drawdown and cost controls.

    Example:
        sizer = PositionSizer()
        result = sizer.calculate(
            portfolio_value=100_000,
            price=250.0,
            confidence=0.7,
            strategy_name="pairs_trading",
            returns=daily_returns,
            max_cvar_pct=0.03,
        )
        print(result.quantity, result.method)
    """

    def __init__(self, config: Optional[PositionSizerConfig] = None):
        self.cfg = config or PositionSizerConfig()
        self.kelly = KellyCriterion(self.cfg.kelly)
        self.tail_risk = CVaREngine(self.cfg.tail_risk)

        logger.info(
            f"PositionSizer initialized: max_position={self.cfg.max_position_pct:.0%}, "
            f"max_yolo={self.cfg.kelly.max_yolo_pct:.0%}, "
            f"min_value={self.cfg.min_position_value}"
        )

    # -------------------------------------------------------------------------
    # Market helpers
    # -------------------------------------------------------------------------

    @staticmethod
    def calculate_volatility(closes: Sequence[float]) -> float:
        """Population standard deviation of simple returns; 0 below 2 points."""
        returns = simple_returns(closes)
        if len(returns) == 0:
            return 0.0
        return float(returns.std())

    @staticmethod
    def calculate_atr(bars: Sequence[Bar], period: int = 14) -> Optional[float]:
        """Simple average of the last `period` true ranges."""
        if len(bars) < period + 1:
            return None
        true_ranges = [
            max(
                cur.high - cur.low,
                abs(cur.high - prev.close),
                abs(cur.low - prev.close),
            )
            for prev, cur in zip(bars[:-1], bars[1:])
        ]
        return float(np.mean(true_ranges[-period:]))

    @staticmethod
    def risk_parity_weights(volatilities: Mapping[str, float]) -> Dict[str, float]:
        """Inverse-volatility weights summing to 1; non-positive vols are dropped."""
        inverse = {name: 1.0 / vol for name, vol in volatilities.items() if vol > 0}
        total = sum(inverse.values())
        if total == 0:
            return {}
        return {name: value / total for name, value in inverse.items()}

    # -------------------------------------------------------------------------
    # Sizing
    # -------------------------------------------------------------------------

    def _base_estimate(
        self,
        win_rate: Optional[float],
        avg_win: Optional[float],
        avg_loss: Optional[float],
        regime: Optional[str],
        strategy_name: Optional[str],
        trade_returns: Optional[Sequence[float]],
        use_adaptive_fraction: bool,
        use_exponential_weighting: bool,
    ) -> Tuple[float, Optional[str]]:
        """Return (kelly_pct, method) or (0.0, None) when no estimate applies."""
        kelly = self.kelly
        adaptive = use_adaptive_fraction and trade_returns is not None

        if win_rate is not None and avg_win is not None and avg_loss is not None:
            if regime:
                kelly_pct = kelly.regime_adjusted_kelly(win_rate, avg_win, avg_loss, regime)
                method = "kelly+regime"
            else:
                kelly_pct = kelly.kelly_size(win_rate, avg_win, avg_loss)
                method = "kelly"
            if kelly_pct <= 0:
                return 0.0, None
            if adaptive:
                fraction = kelly.adaptive_kelly_fraction(len(trade_returns), regime)
                kelly_pct = kelly_pct / kelly.regime_fraction(regime) * fraction
                method += "+adaptive"
            return kelly_pct, method

        if not strategy_name:
            return 0.0, None

        kelly_pct = 0.0
        method = None
        if use_exponential_weighting and trade_returns is not None:
            estimate = kelly.exponential_kelly_estimate(trade_returns)
            if estimate is not None and estimate.kelly_pct > 0:
                kelly_pct = estimate.kelly_pct
                method = "kelly+exp_weighted"

        if method is None:
            kelly_pct = kelly.strategy_kelly_size(strategy_name, regime, trade_returns)
            if kelly_pct <= 0:
                return 0.0, None
            method = "kelly+regime" if regime else "kelly+strategy"

        if adaptive:
            fraction = kelly.adaptive_kelly_fraction(len(trade_returns), regime)
            kelly_pct = kelly_pct / kelly.regime_fraction(regime) * fraction
            method += "+adaptive"
        return kelly_pct, method

    def calculate(
        self,
        *,
        portfolio_value: float,
        price: float,
        confidence: float,
        volatility: Optional[float] = None,
        win_rate: Optional[float] = None,
        avg_win: Optional[float] = None,
        avg_loss: Optional[float] = None,
        regime: Optional[str] = None,
        current_drawdown: Optional[float] = None,
        strategy_name: Optional[str] = None,
        trade_returns: Optional[Sequence[float]] = None,
        returns: Optional[Sequence[float]] = None,
        max_var_pct: Optional[float] = None,
        max_cvar_pct: Optional[float] = None,
        transaction_cost_pct: Optional[float] = None,
        use_adaptive_fraction: bool = False,
        use_exponential_weighting: bool = False,
        fractional: bool = True,
    ) -> PositionSizingResult:
        """
        Size a position.

        Args:
            portfolio_value: Current equity
            price: Price of one unit
            confidence: Signal confidence in (0, 1]
            volatility: Daily return standard deviation
            win_rate / avg_win / avg_loss: Explicit trade statistics
            regime: Regime key for the Kelly fraction table
            current_drawdown: Current drawdown as a fraction
            strategy_name: Strategy key for default Kelly parameters
            trade_returns: Per-trade returns for rolling estimates
            returns: Per-bar returns for VaR / CVaR caps
            max_var_pct / max_cvar_pct: Tail caps; CVaR wins when both are given
            transaction_cost_pct: Round-trip cost as a fraction
            use_adaptive_fraction: Scale the fraction by trade count
            use_exponential_weighting: Weight recent trades more
            fractional: Allow fractional units when one unit is unaffordable

        Returns:
            PositionSizingResult with its method tag trail
        """
        if portfolio_value <= 0 or price <= 0 or confidence <= 0:
            return PositionSizingResult.empty("none", reason="invalid inputs")

        kelly_pct, method = self._base_estimate(
            win_rate,
            avg_win,
            avg_loss,
            regime,
            strategy_name,
            trade_returns,
            use_adaptive_fraction,
            use_exponential_weighting,
        )

        position_pct = 0.0
        if method is not None:
            position_pct = kelly_pct * confidence

            if current_drawdown and current_drawdown > 0:
                position_pct = self.kelly.drawdown_adjusted_kelly(position_pct, current_drawdown)
                method += "+dd_adjusted"

            enough_returns = (
                returns is not None and len(returns) >= self.tail_risk.cfg.min_observations
            )
            if enough_returns and max_cvar_pct is not None:
                position_pct = self.tail_risk.cvar_constrained(position_pct, returns, max_cvar_pct)
                method += "+cvar"
            elif enough_returns and max_var_pct is not None:
                position_pct = self.tail_risk.var_constrained(position_pct, returns, max_var_pct)
                method += "+var"

            if transaction_cost_pct and transaction_cost_pct > 0:
                position_pct = self.kelly.cost_adjusted_kelly(
                    position_pct,
                    transaction_cost_pct,
                    avg_win if avg_win else self.cfg.default_avg_win,
                )
                method += "+cost_adj"
        else:
            high_conviction = confidence >= self.cfg.yolo_threshold
            base_pct = self.cfg.kelly.max_yolo_pct if high_conviction else self.cfg.max_position_pct
            position_pct = base_pct * confidence
            method = "yolo" if high_conviction else "standard"

        if volatility and volatility > 0:
            position_pct *= min(self.cfg.target_volatility / volatility, 1.0)
            method += "+vol_adjusted"

        position_pct = max(0.0, min(position_pct, self.cfg.kelly.max_yolo_pct))
        value = portfolio_value * position_pct

        if value < self.cfg.min_position_value:
            reason = (
                f"position value {value:.2f} below minimum {self.cfg.min_position_value:.2f}"
            )
            logger.debug(f"Sizing skipped: {reason} (method={method})")
            return PositionSizingResult.empty("skip", reason=reason)

        quantity = float(math.floor(value / price))
        if quantity == 0:
            if not fractional:
                return PositionSizingResult.empty(
                    "skip", reason=f"one unit at {price:.2f} exceeds allocation {value:.2f}"
                )
            quantity = round(value / price, 8)

        return PositionSizingResult(
            quantity=quantity,
            notional_value=quantity * price,
            method=method,
            position_pct=position_pct,
        )

    def get_statistics(self) -> Dict[str, Any]:
        stats = {
            "max_position_pct": self.cfg.max_position_pct,
            "yolo_threshold": self.cfg.yolo_threshold,
            "min_position_value": self.cfg.min_position_value,
        }
        stats.update(self.kelly.get_statistics())
        stats.update(self.tail_risk.get_statistics())
        return stats


# =============================================================================
# EXPORTS
# =============================================================================

__all__ = ["PositionSizerConfig", "PositionSizer"]
