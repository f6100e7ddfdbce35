"""
KESTREL CORE v1.0 - VaR / CVaR Tail-Risk Engine
================================================

Tail-risk estimators and the position constraints built on them.

All estimates are positive loss fractions (0.03 = a 3% loss).

Formulas:
    Parametric VaR(c) = -(mean - z_c * std)          z: 1.282 / 1.645 / 2.326
    Historical VaR(c) = -sorted[floor((1 - c) * n)]
    CVaR(c)           = -mean(sorted[: floor((1 - c) * n) + 1])

CVaR averages the tail up to and including the VaR observation, so
CVaR(c) >= historical VaR(c) for every series and level. Both position
constraints use the historical estimators; a CVaR cap is therefore
never looser than a VaR cap of the same size.

Constraint:
    if position_pct * tail_estimate > cap: position_pct = cap / tail_estimate

Author: KESTREL Core Development Team
Version: 1.0.0
"""

import logging
import math
from collections import deque
from dataclasses import dataclass
from typing import Any, Deque, Dict, List, Optional, Sequence

import numpy as np

from .constants import MIN_RETURNS_FOR_VAR, VAR_Z_SCORES
from .exceptions import require

logger = logging.getLogger("KESTREL_CVaREngine")

# Breaches kept for inspection; older entries are dropped
_BREACH_HISTORY_SIZE = 1000


@dataclass
class CVaRConfig:
    """Configuration for tail-risk calculations."""

    confidence: float = 0.95
    min_observations: int = MIN_RETURNS_FOR_VAR

    # Caps on position_pct * tail estimate
    max_var_pct: float = 0.02
    max_cvar_pct: float = 0.03

    log_breaches: bool = True

    def __post_init__(self):
        require(
            0.0 < self.confidence < 1.0,
            "confidence must be in (0, 1)",
            "confidence",
            self.confidence,
        )
        require(
            self.min_observations >= 2,
            "min_observations must be >= 2",
            "min_observations",
            self.min_observations,
        )
        require(self.max_var_pct > 0, "max_var_pct must be positive", "max_var_pct", self.max_var_pct)
        require(
            self.max_cvar_pct > 0, "max_cvar_pct must be positive", "max_cvar_pct", self.max_cvar_pct
        )


@dataclass
class TailRiskResult:
    """Tail risk of a proposed position."""

    var: Optional[float]
    cvar: Optional[float]
    position_var: Optional[float]
    position_cvar: Optional[float]
    var_limit_hit: bool
    cvar_limit_hit: bool
    data_sufficient: bool


class CVaREngine:
    """
    Value at Risk / Conditional Value at Risk engine.

    Example:
        engine = CVaREngine()

        cvar = engine.compute_cvar(daily_returns, 0.99)
        capped = engine.cvar_constrained(0.20, daily_returns)
    """

    def __init__(self, config: Optional[CVaRConfig] = None):
        self.cfg = config or CVaRConfig()
        self._breach_history: Deque[Dict[str, Any]] = deque(maxlen=_BREACH_HISTORY_SIZE)
        self._breach_count = 0

        logger.info(
            f"CVaREngine initialized: confidence={self.cfg.confidence:.0%}, "
            f"max_var={self.cfg.max_var_pct:.2%}, max_cvar={self.cfg.max_cvar_pct:.2%}"
        )

    def _prepare(self, returns: Optional[Sequence[float]]) -> Optional[np.ndarray]:
        if returns is None:
            return None
        values = np.asarray(returns, dtype=float).ravel()
        values = values[np.isfinite(values)]
        if len(values) < self.cfg.min_observations:
            return None
        return values

    @staticmethod
    def _tail_index(n: int, confidence: float) -> int:
        return min(int(math.floor((1.0 - confidence) * n)), n - 1)

    def compute_parametric_var(
        self, returns: Sequence[float], confidence: Optional[float] = None
    ) -> Optional[float]:
        """
        Normal-approximation VaR.

        Unknown confidence levels fall back to the 95% z-score.
        """
        values = self._prepare(returns)
        if values is None:
            return None
        confidence = confidence or self.cfg.confidence
        z = VAR_Z_SCORES.get(round(confidence, 2), VAR_Z_SCORES[0.95])
        return float(-(values.mean() - z * values.std()))

    def compute_var(
        self, returns: Sequence[float], confidence: Optional[float] = None
    ) -> Optional[float]:
        """Historical VaR from the sorted returns."""
        values = self._prepare(returns)
        if values is None:
            return None
        confidence = confidence or self.cfg.confidence
        ordered = np.sort(values)
        return float(-ordered[self._tail_index(len(ordered), confidence)])

    def compute_cvar(
        self, returns: Sequence[float], confidence: Optional[float] = None
    ) -> Optional[float]:
        """Expected shortfall: mean loss of the tail through the VaR observation."""
        values = self._prepare(returns)
        if values is None:
            return None
        confidence = confidence or self.cfg.confidence
        ordered = np.sort(values)
        idx = self._tail_index(len(ordered), confidence)
        return float(-ordered[: idx + 1].mean())

    def _constrain(
        self, position_pct: float, estimate: Optional[float], cap: float, label: str
    ) -> float:
        if position_pct <= 0:
            return 0.0
        if estimate is None or estimate <= 0:
            return position_pct
        if position_pct * estimate <= cap:
            return position_pct

        capped = cap / estimate
        if self.cfg.log_breaches:
            logger.warning(
                f"{label} cap hit: position {position_pct:.4f} x {label} {estimate:.4f} "
                f"> {cap:.4f}, scaled to {capped:.4f}"
            )
        self._breach_history.append(
            {"type": label, "position_pct": position_pct, "estimate": estimate, "cap": cap}
        )
        self._breach_count += 1
        return capped

    def var_constrained(
        self,
        position_pct: float,
        returns: Optional[Sequence[float]],
        max_var_pct: Optional[float] = None,
        confidence: Optional[float] = None,
    ) -> float:
        """Scale a position so position_pct * VaR stays within the cap."""
        cap = self.cfg.max_var_pct if max_var_pct is None else max_var_pct
        return self._constrain(position_pct, self.compute_var(returns, confidence), cap, "VaR")

    def cvar_constrained(
        self,
        position_pct: float,
        returns: Optional[Sequence[float]],
        max_cvar_pct: Optional[float] = None,
        confidence: Optional[float] = None,
    ) -> float:
        """Scale a position so position_pct * CVaR stays within the cap."""
        cap = self.cfg.max_cvar_pct if max_cvar_pct is None else max_cvar_pct
        return self._constrain(
            position_pct, self.compute_cvar(returns, confidence), cap, "CVaR"
        )

    def evaluate_limits(
        self, returns: Sequence[float], position_pct: float
    ) -> TailRiskResult:
        """Evaluate VaR and CVaR caps for a proposed position."""
        var = self.compute_var(returns)
        cvar = self.compute_cvar(returns)
        if var is None or cvar is None:
            return TailRiskResult(
                var=None,
                cvar=None,
                position_var=None,
                position_cvar=None,
                var_limit_hit=False,
                cvar_limit_hit=False,
                data_sufficient=False,
            )

        position_var = position_pct * max(var, 0.0)
        position_cvar = position_pct * max(cvar, 0.0)
        return TailRiskResult(
            var=var,
            cvar=cvar,
            position_var=position_var,
            position_cvar=position_cvar,
            var_limit_hit=position_var > self.cfg.max_var_pct,
            cvar_limit_hit=position_cvar > self.cfg.max_cvar_pct,
            data_sufficient=True,
        )

    def get_breach_history(self) -> List[Dict[str, Any]]:
        """Most recent cap breaches, oldest first."""
        return list(self._breach_history)

    def clear_breach_history(self) -> None:
        """Clear the breach history and its counter."""
        self._breach_history.clear()
        self._breach_count = 0

    def get_statistics(self) -> Dict[str, Any]:
        return {
            "confidence": self.cfg.confidence,
            "max_var_pct": self.cfg.max_var_pct,
            "max_cvar_pct": self.cfg.max_cvar_pct,
            "total_breaches": self._breach_count,
        }


# =============================================================================
# EXPORTS
# =============================================================================

__all__ = ["CVaRConfig", "TailRiskResult", "CVaREngine"]
