"""
KESTREL CORE v1.0 - Data Model
===============================

Immutable value types exchanged between the engines:

    Bar                  one OHLCV sample, the only external input
    Signal               strategy output (action, confidence, diagnostics)
    Trade                one fill recorded by a backtest
    PositionSizingResult capital allocation produced by the sizer

Author: KESTREL Core Development Team
Version: 1.0.0
"""

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple

import numpy as np
import pandas as pd

from .exceptions import DataValidationError


class Action(Enum):
    """Trading action emitted by a strategy."""

    BUY = "BUY"
    SELL = "SELL"
    HOLD = "HOLD"


@dataclass(frozen=True)
class Bar:
    """Single OHLCV bar."""

    open: float
    high: float
    low: float
    close: float
    volume: float = 0.0
    timestamp: Any = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "Bar":
        """
        Build a bar from a record.

        Accepts long (``close``) or short (``c``) keys. Only the close
        is mandatory; missing open/high/low fall back to the close.

        Raises:
            DataValidationError: If the record has no close price
        """
        close = data.get("close", data.get("c"))
        if close is None:
            raise DataValidationError(
                "Bar record has no close price", details={"keys": sorted(data)}
            )
        close = float(close)

        def _pick(long_key: str, short_key: str, default: float) -> float:
            value = data.get(long_key, data.get(short_key))
            return default if value is None else float(value)

        return cls(
            open=_pick("open", "o", close),
            high=_pick("high", "h", close),
            low=_pick("low", "l", close),
            close=close,
            volume=_pick("volume", "v", 0.0),
            timestamp=data.get("timestamp", data.get("t")),
        )


@dataclass(frozen=True)
class Signal:
    """
    Strategy decision for one evaluation.

    direction is +1 for a long (spread) position, -1 for short, 0 for flat.
    """

    action: Action
    confidence: float = 0.0
    z_score: Optional[float] = None
    hedge_ratio: Optional[float] = None
    reasons: Tuple[str, ...] = ()
    direction: int = 0
    metadata: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def hold(cls, reason: str, **kwargs) -> "Signal":
        """Zero-confidence HOLD with a single explanatory reason."""
        return cls(action=Action.HOLD, confidence=0.0, reasons=(reason,), **kwargs)

    @property
    def is_entry(self) -> bool:
        return self.action in (Action.BUY, Action.SELL)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "action": self.action.value,
            "confidence": self.confidence,
            "z_score": self.z_score,
            "hedge_ratio": self.hedge_ratio,
            "reasons": list(self.reasons),
            "direction": self.direction,
            "metadata": dict(self.metadata),
        }


@dataclass(frozen=True)
class Trade:
    """A fill. pnl, duration_bars and exit_reason are set on closing fills only."""

    symbol: str
    side: Action
    quantity: float
    price: float
    realized_price: float
    fee: float
    bar_index: int
    pnl: Optional[float] = None
    duration_bars: Optional[int] = None
    exit_reason: Optional[str] = None

    @property
    def is_closing(self) -> bool:
        return self.pnl is not None

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["side"] = self.side.value
        return data


@dataclass(frozen=True)
class PositionSizingResult:
    """Sizing decision. position_pct is a fraction of capital (0.05 = 5%)."""

    quantity: float
    notional_value: float
    method: str
    position_pct: float
    reason: Optional[str] = None

    @classmethod
    def empty(cls, method: str, reason: Optional[str] = None) -> "PositionSizingResult":
        return cls(
            quantity=0.0,
            notional_value=0.0,
            method=method,
            position_pct=0.0,
            reason=reason,
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def extract_closes(price_history: Iterable[Any]) -> np.ndarray:
    """
    Normalize a price history into a float array of closes.

    Accepts plain numbers, Bars, bar-like mappings, pandas Series or
    numpy arrays.
    """
    if isinstance(price_history, pd.Series):
        return price_history.to_numpy(dtype=float)
    if isinstance(price_history, np.ndarray):
        return price_history.astype(float, copy=False)

    closes = []
    for item in price_history:
        if isinstance(item, Bar):
            closes.append(item.close)
        elif isinstance(item, Mapping):
            closes.append(Bar.from_mapping(item).close)
        else:
            closes.append(float(item))
    return np.asarray(closes, dtype=float)


# =============================================================================
# EXPORTS
# =============================================================================

__all__ = [
    "Action",
    "Bar",
    "Signal",
    "Trade",
    "PositionSizingResult",
    "extract_closes",
]
