"""
KESTREL CORE v1.0 - Kelly Criterion Family
===========================================

Kelly-based capital fractions and the estimators feeding them.

Base formula:
    kelly = (W * avg_win - (1 - W) * avg_loss) / avg_win
    size  = clamp(kelly * fraction, 0, max_yolo_pct)

Variants (each a pure transform that can be chained):
    regime_adjusted_kelly   fraction taken from the regime table
    drawdown_adjusted_kelly linear scale-down to a floor at the drawdown threshold
    adaptive_kelly_fraction fraction scaled 0.60 -> 1.00 by trade count, clamped [0.20, 0.50]
    cost_adjusted_kelly     kelly - round_trip_cost / avg_win, floored at 0
    optimal_f               Ralph Vince grid search over f in [0.01, 1.00]
    exponential_kelly_estimate  trade statistics weighted by exp(-ln2 / half_life * age)
    kelly_confidence_interval   bootstrap lower / median / upper bounds
    portfolio_kelly         diversification discount 1 / sqrt(1 + (N - 1) * avg|corr|)

Trade histories are sequences of per-trade returns (0.02 = +2%).
A return of exactly zero counts as a loss.

Author: KESTREL Core Development Team
Version: 1.0.0
"""

import logging
import math
from dataclasses import dataclass
from typing import Dict, Optional, Sequence

import numpy as np

from .constants import (
    ADAPTIVE_KELLY_MAX_FRACTION,
    ADAPTIVE_KELLY_MIN_FRACTION,
    MIN_TRADES_FOR_BOOTSTRAP,
    MIN_TRADES_FOR_KELLY,
    REGIME_KELLY_FRACTIONS,
    STRATEGY_KELLY_DEFAULTS,
)
from .correlation_tracker import CorrelationTracker
from .exceptions import require

logger = logging.getLogger("KESTREL_KellySizer")


@dataclass
class KellyConfig:
    """Configuration for Kelly sizing."""

    kelly_fraction: float = 0.33  # Default fractional Kelly
    max_yolo_pct: float = 0.25  # Hard cap on any position fraction

    # Drawdown adjustment
    drawdown_threshold: float = 0.15  # Drawdown where the floor is reached
    max_drawdown_scale: float = 0.50  # Size multiplier at the threshold

    # Estimators
    rolling_window: int = 50
    exp_half_life: float = 20.0
    bootstrap_samples: int = 1000
    bootstrap_alpha: float = 0.05

    def __post_init__(self):
        require(
            0 < self.kelly_fraction <= 1,
            "kelly_fraction must be in (0, 1]",
            "kelly_fraction",
            self.kelly_fraction,
        )
        require(
            0 < self.max_yolo_pct <= 1,
            "max_yolo_pct must be in (0, 1]",
            "max_yolo_pct",
            self.max_yolo_pct,
        )
        require(
            self.drawdown_threshold > 0,
            "drawdown_threshold must be positive",
            "drawdown_threshold",
            self.drawdown_threshold,
        )
        require(
            0 <= self.max_drawdown_scale <= 1,
            "max_drawdown_scale must be in [0, 1]",
            "max_drawdown_scale",
            self.max_drawdown_scale,
        )
        require(
            0 < self.bootstrap_alpha < 1,
            "bootstrap_alpha must be in (0, 1)",
            "bootstrap_alpha",
            self.bootstrap_alpha,
        )
        require(
            self.exp_half_life > 0,
            "exp_half_life must be positive",
            "exp_half_life",
            self.exp_half_life,
        )


@dataclass(frozen=True)
class KellyEstimate:
    """Trade statistics and the Kelly size derived from them."""

    win_rate: float
    avg_win: float
    avg_loss: float
    kelly_pct: float
    sample_size: float  # Effective size for weighted estimates


@dataclass(frozen=True)
class OptimalFResult:
    optimal_f: float
    terminal_wealth: float
    worst_loss: float
    position_pct: float  # f * |worst_loss| * kelly_fraction


@dataclass(frozen=True)
class KellyInterval:
    lower: float
    median: float
    upper: float

    @property
    def spread(self) -> float:
        return self.upper - self.lower


@dataclass(frozen=True)
class PortfolioCandidate:
    """A position competing for capital in portfolio Kelly."""

    name: str
    kelly_pct: float
    returns: Sequence[float]


class KellyCriterion:
    """
    Kelly position sizing family.

    Example:
        kelly = KellyCriterion()

        size = kelly.kelly_size(win_rate=0.55, avg_win=0.04, avg_loss=0.02)
        size = kelly.drawdown_adjusted_kelly(size, current_drawdown=0.08)

        interval = kelly.kelly_confidence_interval(trade_returns, rng=rng)
    """

    def __init__(self, config: Optional[KellyConfig] = None):
        self.cfg = config or KellyConfig()
        self._correlation = CorrelationTracker()
        logger.info(
            f"KellyCriterion initialized: fraction={self.cfg.kelly_fraction}, "
            f"cap={self.cfg.max_yolo_pct}, dd_threshold={self.cfg.drawdown_threshold}"
        )

    # -------------------------------------------------------------------------
    # Base formula and transforms
    # -------------------------------------------------------------------------

    @staticmethod
    def full_kelly(win_rate: float, avg_win: float, avg_loss: float) -> float:
        """Unscaled Kelly fraction; 0 when either payoff is non-positive."""
        if avg_win <= 0 or avg_loss <= 0:
            return 0.0
        return (win_rate * avg_win - (1.0 - win_rate) * avg_loss) / avg_win

    def _clamp(self, value: float) -> float:
        return float(max(0.0, min(value, self.cfg.max_yolo_pct)))

    def kelly_size(
        self,
        win_rate: float,
        avg_win: float,
        avg_loss: float,
        fraction: Optional[float] = None,
    ) -> float:
        """
        Fractional Kelly clamped to [0, max_yolo_pct].

        Returns 0 for a non-positive edge or a zero average loss.
        """
        kelly = self.full_kelly(win_rate, avg_win, avg_loss)
        if kelly <= 0:
            return 0.0
        return self._clamp(kelly * (fraction or self.cfg.kelly_fraction))

    def regime_fraction(self, regime: Optional[str]) -> float:
        """Kelly fraction for a regime, or the default fraction."""
        return REGIME_KELLY_FRACTIONS.get(regime, self.cfg.kelly_fraction)

    def regime_adjusted_kelly(
        self, win_rate: float, avg_win: float, avg_loss: float, regime: Optional[str]
    ) -> float:
        return self.kelly_size(win_rate, avg_win, avg_loss, self.regime_fraction(regime))

    def drawdown_adjusted_kelly(self, kelly_pct: float, current_drawdown: float) -> float:
        """
        Scale linearly from 100% at zero drawdown to max_drawdown_scale at the
        threshold; deeper drawdowns stay at the floor.
        """
        if current_drawdown <= 0 or kelly_pct <= 0:
            return kelly_pct
        ratio = min(current_drawdown / self.cfg.drawdown_threshold, 1.0)
        scale = 1.0 - ratio * (1.0 - self.cfg.max_drawdown_scale)
        return kelly_pct * scale

    def adaptive_kelly_fraction(self, sample_size: int, regime: Optional[str] = None) -> float:
        """
        Regime fraction scaled by sample-size confidence, clamped to [0.20, 0.50].

        Confidence: 0.60 below 20 trades, rising linearly to 0.90 at 50 and
        1.00 at 100 trades.
        """
        if sample_size < 20:
            sample_confidence = 0.60
        elif sample_size < 50:
            sample_confidence = 0.60 + 0.30 * (sample_size - 20) / 30
        elif sample_size < 100:
            sample_confidence = 0.90 + 0.10 * (sample_size - 50) / 50
        else:
            sample_confidence = 1.0

        fraction = self.regime_fraction(regime) * sample_confidence
        return max(ADAPTIVE_KELLY_MIN_FRACTION, min(fraction, ADAPTIVE_KELLY_MAX_FRACTION))

    @staticmethod
    def cost_adjusted_kelly(
        kelly_pct: float, round_trip_cost_pct: float, avg_win: float
    ) -> float:
        """Subtract the round-trip cost drag, floored at 0."""
        if kelly_pct <= 0 or avg_win <= 0:
            return 0.0
        return max(0.0, kelly_pct - round_trip_cost_pct / avg_win)

    # -------------------------------------------------------------------------
    # Estimators from trade history
    # -------------------------------------------------------------------------

    @staticmethod
    def _trade_array(trade_returns: Optional[Sequence[float]]) -> np.ndarray:
        if trade_returns is None:
            return np.zeros(0)
        values = np.asarray(trade_returns, dtype=float).ravel()
        return values[np.isfinite(values)]

    def _estimate(self, pnls: np.ndarray) -> Optional[KellyEstimate]:
        wins = pnls[pnls > 0]
        losses = pnls[pnls <= 0]
        if len(wins) == 0 or len(losses) == 0:
            return None

        win_rate = len(wins) / len(pnls)
        avg_win = float(wins.mean())
        avg_loss = float(abs(losses.mean()))
        return KellyEstimate(
            win_rate=win_rate,
            avg_win=avg_win,
            avg_loss=avg_loss,
            kelly_pct=self.kelly_size(win_rate, avg_win, avg_loss),
            sample_size=len(pnls),
        )

    def rolling_kelly_estimate(
        self, trade_returns: Sequence[float], window: Optional[int] = None
    ) -> Optional[KellyEstimate]:
        """
        Kelly estimate from the most recent trades.

        Returns None below 10 trades or without both a win and a loss.
        """
        pnls = self._trade_array(trade_returns)
        if len(pnls) < MIN_TRADES_FOR_KELLY:
            return None
        return self._estimate(pnls[-(window or self.cfg.rolling_window) :])

    def exponential_kelly_estimate(
        self, trade_returns: Sequence[float], half_life: Optional[float] = None
    ) -> Optional[KellyEstimate]:
        """
        Kelly estimate with trade weights exp(-ln2 / half_life * age),
        age 0 being the most recent trade.
        """
        pnls = self._trade_array(trade_returns)
        if len(pnls) < MIN_TRADES_FOR_KELLY:
            return None

        decay = math.log(2) / (half_life or self.cfg.exp_half_life)
        ages = np.arange(len(pnls) - 1, -1, -1, dtype=float)
        weights = np.exp(-decay * ages)

        is_win = pnls > 0
        win_weight = float(weights[is_win].sum())
        loss_weight = float(weights[~is_win].sum())
        if win_weight == 0 or loss_weight == 0:
            return None

        total_weight = float(weights.sum())
        win_rate = win_weight / total_weight
        avg_win = float((weights[is_win] * pnls[is_win]).sum()) / win_weight
        avg_loss = float((weights[~is_win] * np.abs(pnls[~is_win])).sum()) / loss_weight

        return KellyEstimate(
            win_rate=win_rate,
            avg_win=avg_win,
            avg_loss=avg_loss,
            kelly_pct=self.kelly_size(win_rate, avg_win, avg_loss),
            sample_size=total_weight,
        )

    def optimal_f(self, trade_returns: Sequence[float]) -> Optional[OptimalFResult]:
        """
        Ralph Vince optimal-f.

        Maximizes TWR(f) = prod(1 + f * pnl / |worst_loss|) over
        f = 0.01 .. 1.00. Returns None below 10 trades, with no losing
        trade, or when no f grows wealth.
        """
        pnls = self._trade_array(trade_returns)
        if len(pnls) < MIN_TRADES_FOR_KELLY:
            return None

        worst_loss = float(pnls.min())
        if worst_loss >= 0:
            return None

        grid = np.arange(1, 101) / 100.0
        hpr = 1.0 + np.outer(grid, pnls / abs(worst_loss))
        valid = np.all(hpr > 0, axis=1)

        log_twr = np.full(len(grid), -np.inf)
        log_twr[valid] = np.log(hpr[valid]).sum(axis=1)

        best = int(np.argmax(log_twr))
        if not valid[best] or log_twr[best] <= 0:
            return None

        best_f = float(grid[best])
        return OptimalFResult(
            optimal_f=best_f,
            terminal_wealth=float(math.exp(log_twr[best])),
            worst_loss=worst_loss,
            position_pct=best_f * abs(worst_loss) * self.cfg.kelly_fraction,
        )

    def kelly_confidence_interval(
        self,
        trade_returns: Sequence[float],
        alpha: Optional[float] = None,
        n_bootstrap: Optional[int] = None,
        rng: Optional[np.random.Generator] = None,
    ) -> Optional[KellyInterval]:
        """
        Bootstrap bounds on the Kelly size.

        Resamples with replacement; a resample lacking a win or a loss
        counts as a Kelly of 0. Returns None below 15 trades.

        Args:
            trade_returns: Per-trade returns
            alpha: Two-sided significance (default 0.05)
            n_bootstrap: Number of resamples (default 1000)
            rng: Random generator; inject a seeded one for reproducibility
        """
        pnls = self._trade_array(trade_returns)
        if len(pnls) < MIN_TRADES_FOR_BOOTSTRAP:
            return None

        alpha = alpha or self.cfg.bootstrap_alpha
        n_bootstrap = n_bootstrap or self.cfg.bootstrap_samples
        rng = rng or np.random.default_rng()

        kellys = np.empty(n_bootstrap)
        for b in range(n_bootstrap):
            sample = pnls[rng.integers(0, len(pnls), size=len(pnls))]
            estimate = self._estimate(sample)
            kellys[b] = estimate.kelly_pct if estimate is not None else 0.0

        kellys.sort()
        last = n_bootstrap - 1
        lower = kellys[min(int(alpha / 2 * n_bootstrap), last)]
        median = kellys[min(int(0.5 * n_bootstrap), last)]
        upper = kellys[min(int((1 - alpha / 2) * n_bootstrap), last)]
        return KellyInterval(lower=float(lower), median=float(median), upper=float(upper))

    # -------------------------------------------------------------------------
    # Strategy and portfolio level
    # -------------------------------------------------------------------------

    def strategy_kelly_size(
        self,
        strategy_name: str,
        regime: Optional[str] = None,
        trade_returns: Optional[Sequence[float]] = None,
    ) -> float:
        """
        Kelly size from a strategy's own trades, falling back to its
        default win rate and reward/risk when the history is too thin.
        """
        estimate = self.rolling_kelly_estimate(trade_returns) if trade_returns is not None else None
        if estimate is not None and estimate.kelly_pct > 0:
            if regime:
                return self.regime_adjusted_kelly(
                    estimate.win_rate, estimate.avg_win, estimate.avg_loss, regime
                )
            return estimate.kelly_pct

        defaults = STRATEGY_KELLY_DEFAULTS.get(strategy_name)
        if defaults is None:
            return 0.0

        win_rate, reward_risk = defaults
        if regime:
            return self.regime_adjusted_kelly(win_rate, reward_risk, 1.0, regime)
        return self.kelly_size(win_rate, reward_risk, 1.0)

    def portfolio_kelly(self, candidates: Sequence[PortfolioCandidate]) -> Dict[str, float]:
        """
        Discount each candidate by its average absolute correlation with
        the others: kelly * 1 / sqrt(1 + (N - 1) * avg|corr|).
        """
        if not candidates:
            return {}
        if len(candidates) == 1:
            return {candidates[0].name: candidates[0].kelly_pct}

        matrix = self._correlation.correlation_matrix(
            {c.name: c.returns for c in candidates}
        )
        return {
            c.name: c.kelly_pct * self._correlation.diversification_factor(matrix, c.name)
            for c in candidates
        }

    def get_statistics(self) -> Dict[str, float]:
        """Get Kelly sizer configuration statistics."""
        return {
            "kelly_fraction": self.cfg.kelly_fraction,
            "max_yolo_pct": self.cfg.max_yolo_pct,
            "drawdown_threshold": self.cfg.drawdown_threshold,
            "max_drawdown_scale": self.cfg.max_drawdown_scale,
        }


# =============================================================================
# EXPORTS
# =============================================================================

__all__ = [
    "KellyConfig",
    "KellyEstimate",
    "OptimalFResult",
    "KellyInterval",
    "PortfolioCandidate",
    "KellyCriterion",
]
