"""
KESTREL CORE v1.0 - Execution-Cost Model
=========================================

Turns an intended trade price into a realized fill price and fee.

Slippage models (fraction of price):
    fixed       slippage_bps / 10000
    volume      impact_coefficient * sqrt(quantity / avg_volume)
                (falls back to fixed without volume information)
    volatility  slippage_bps / 10000 * max(1, volatility / 0.02)

Buys always pay more and sells always receive less than the intended
price. Commission is a flat bps of the filled notional.

Pricing methods are pure; fill() books the slippage and commission it
charges into running totals for reporting. reset() clears the totals
before a new run.

Author: KESTREL Core Development Team
Version: 1.0.0
"""

import logging
import math
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, Dict, Optional, Union

from .constants import BPS, TARGET_DAILY_VOLATILITY
from .exceptions import InvalidConfigError, require
from .models import Action

logger = logging.getLogger("KESTREL_ExecutionModel")


class SlippageModel(Enum):
    """Available slippage model types."""

    FIXED = "fixed"
    VOLUME = "volume"
    VOLATILITY = "volatility"


@dataclass
class ExecutionConfig:
    """Configuration for execution costs."""

    slippage_bps: float = 5.0
    commission_bps: float = 10.0
    slippage_model: Union[SlippageModel, str] = SlippageModel.FIXED
    impact_coefficient: float = 0.1  # Volume model: coeff * sqrt(qty / avg_volume)

    def __post_init__(self):
        if not isinstance(self.slippage_model, SlippageModel):
            try:
                self.slippage_model = SlippageModel(str(self.slippage_model).lower())
            except ValueError:
                raise InvalidConfigError(
                    f"Unknown slippage model: {self.slippage_model}",
                    field_name="slippage_model",
                    value=self.slippage_model,
                    code="INVALID_CONFIG",
                ) from None
        require(
            self.slippage_bps >= 0, "slippage_bps must be non-negative", "slippage_bps", self.slippage_bps
        )
        require(
            self.commission_bps >= 0,
            "commission_bps must be non-negative",
            "commission_bps",
            self.commission_bps,
        )
        require(
            self.impact_coefficient >= 0,
            "impact_coefficient must be non-negative",
            "impact_coefficient",
            self.impact_coefficient,
        )


@dataclass(frozen=True)
class Fill:
    """Realized execution of one order."""

    side: Action
    quantity: float
    price: float
    realized_price: float
    fee: float

    @property
    def slippage_cost(self) -> float:
        return abs(self.realized_price - self.price) * self.quantity


@dataclass(frozen=True)
class ExecutionCostSummary:
    """Accumulated execution costs of a run."""

    total_slippage: float
    total_commission: float
    total_costs: float
    cost_pct_of_pnl: float  # total_costs / |pnl|, 0 when pnl is 0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class ExecutionModel:
    """
    Slippage and commission model.

    Example:
        model = ExecutionModel(ExecutionConfig(slippage_bps=10))
        fill = model.fill(Action.BUY, price=100.0, quantity=50)
        print(fill.realized_price, fill.fee)   # 100.10, 5.005
    """

    def __init__(self, config: Optional[ExecutionConfig] = None):
        self.cfg = config or ExecutionConfig()
        self.total_slippage = 0.0
        self.total_commission = 0.0

        logger.info(
            f"ExecutionModel initialized: model={self.cfg.slippage_model.value}, "
            f"slippage={self.cfg.slippage_bps}bps, commission={self.cfg.commission_bps}bps"
        )

    def slippage_fraction(
        self, quantity: float = 0.0, avg_volume: float = 0.0, volatility: float = 0.0
    ) -> float:
        """Slippage as a fraction of price for the configured model."""
        base = self.cfg.slippage_bps / BPS
        model = self.cfg.slippage_model

        if model == SlippageModel.VOLUME:
            if avg_volume > 0 and quantity > 0:
                return self.cfg.impact_coefficient * math.sqrt(quantity / avg_volume)
            return base
        if model == SlippageModel.VOLATILITY:
            return base * max(1.0, volatility / TARGET_DAILY_VOLATILITY)
        return base

    def get_execution_price(
        self,
        side: Action,
        price: float,
        quantity: float = 0.0,
        avg_volume: float = 0.0,
        volatility: float = 0.0,
    ) -> float:
        """Price after slippage."""
        if side not in (Action.BUY, Action.SELL):
            raise ValueError(f"Cannot execute side {side}")

        direction = 1.0 if side == Action.BUY else -1.0
        slippage = price * self.slippage_fraction(quantity, avg_volume, volatility)
        return price + direction * slippage

    def get_commission(self, price: float, quantity: float) -> float:
        """Commission on the filled notional."""
        return price * quantity * self.cfg.commission_bps / BPS

    def fill(
        self,
        side: Action,
        price: float,
        quantity: float,
        avg_volume: float = 0.0,
        volatility: float = 0.0,
    ) -> Fill:
        """Execute an order: slippage first, commission on the realized price."""
        realized = self.get_execution_price(side, price, quantity, avg_volume, volatility)
        fee = self.get_commission(realized, quantity)
        self.total_slippage += abs(realized - price) * quantity
        self.total_commission += fee
        return Fill(
            side=side, quantity=quantity, price=price, realized_price=realized, fee=fee
        )

    def round_trip_cost_bps(self) -> float:
        """(slippage_bps + commission_bps) * 2."""
        return (self.cfg.slippage_bps + self.cfg.commission_bps) * 2

    def reset(self) -> None:
        self.total_slippage = 0.0
        self.total_commission = 0.0

    def summary(self, total_pnl: float = 0.0) -> ExecutionCostSummary:
        total = self.total_slippage + self.total_commission
        return ExecutionCostSummary(
            total_slippage=self.total_slippage,
            total_commission=self.total_commission,
            total_costs=total,
            cost_pct_of_pnl=total / abs(total_pnl) if total_pnl != 0 else 0.0,
        )

    def get_statistics(self) -> Dict[str, Any]:
        return {
            "slippage_model": self.cfg.slippage_model.value,
            "slippage_bps": self.cfg.slippage_bps,
            "commission_bps": self.cfg.commission_bps,
            "round_trip_cost_bps": self.round_trip_cost_bps(),
            "total_slippage": self.total_slippage,
            "total_commission": self.total_commission,
        }


# =============================================================================
# EXPORTS
# =============================================================================

__all__ = [
    "SlippageModel",
    "ExecutionConfig",
    "Fill",
    "ExecutionCostSummary",
    "ExecutionModel",
]
