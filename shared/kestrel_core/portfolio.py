"""
KESTREL CORE v1.0 - Backtest Portfolio Ledger
==============================================

Cash balance plus signed positions for one backtest run.

- Positions are signed: quantity > 0 is long, < 0 is short
- execute() books a fill, updates the average price and returns the
  realized P&L of any quantity it reduced (gross of fees)
- Fees are taken from cash at fill time
- equity() marks every open position to the supplied prices

A Portfolio belongs to exactly one run; engines create a fresh one
per call.

Author: KESTREL Core Development Team
Version: 1.0.0
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

logger = logging.getLogger("KESTREL_Portfolio")

# Quantities below this are treated as flat
_QUANTITY_EPSILON = 1e-12


@dataclass
class Position:
    """Open position in one symbol."""

    symbol: str
    quantity: float
    avg_price: float
    opened_bar: Optional[int] = None

    @property
    def direction(self) -> int:
        """Numeric direction (+1 long, -1 short)."""
        return 1 if self.quantity > 0 else -1

    def market_value(self, price: float) -> float:
        return self.quantity * price

    def unrealized_pnl(self, price: float) -> float:
        return (price - self.avg_price) * self.quantity

    def to_dict(self) -> Dict[str, Any]:
        return {
            "symbol": self.symbol,
            "quantity": self.quantity,
            "avg_price": self.avg_price,
            "opened_bar": self.opened_bar,
        }


class Portfolio:
    """
    Cash and positions owned by a single backtest run.

    Example:
        portfolio = Portfolio(100_000)
        portfolio.execute("AAPL", 10, 150.15, fee=1.50, bar_index=30)
        pnl = portfolio.execute("AAPL", -10, 155.0, fee=1.55, bar_index=42)
        print(pnl, portfolio.equity({}))
    """

    def __init__(self, initial_cash: float):
        self.initial_cash = float(initial_cash)
        self.cash = float(initial_cash)
        self._positions: Dict[str, Position] = {}

        self._stats = {
            "fills": 0,
            "total_fees": 0.0,
            "realized_pnl": 0.0,
        }

    def position(self, symbol: str) -> Optional[Position]:
        return self._positions.get(symbol)

    def is_flat(self, symbol: str) -> bool:
        return symbol not in self._positions

    def get_all_positions(self) -> Dict[str, Position]:
        return self._positions.copy()

    def can_afford(self, cost: float) -> bool:
        return cost <= self.cash

    def execute(
        self,
        symbol: str,
        signed_qty: float,
        price: float,
        fee: float = 0.0,
        bar_index: Optional[int] = None,
    ) -> float:
        """
        Book a fill.

        Args:
            symbol: Instrument
            signed_qty: Positive to buy, negative to sell
            price: Realized fill price
            fee: Commission charged on the fill
            bar_index: Bar of the fill, recorded when a position opens

        Returns:
            Realized P&L of the reduced quantity, gross of fees
            (0.0 when the fill only adds to or opens a position)
        """
        self.cash -= signed_qty * price + fee
        self._stats["fills"] += 1
        self._stats["total_fees"] += fee

        position = self._positions.get(symbol)
        if position is None:
            if abs(signed_qty) > _QUANTITY_EPSILON:
                self._positions[symbol] = Position(symbol, signed_qty, price, bar_index)
            return 0.0

        same_side = (position.quantity > 0) == (signed_qty > 0)
        if same_side:
            total = position.quantity + signed_qty
            position.avg_price = (
                position.avg_price * position.quantity + price * signed_qty
            ) / total
            position.quantity = total
            return 0.0

        closed_qty = min(abs(signed_qty), abs(position.quantity))
        realized = (price - position.avg_price) * closed_qty * position.direction
        remaining = position.quantity + signed_qty

        if abs(remaining) <= _QUANTITY_EPSILON:
            del self._positions[symbol]
        elif (remaining > 0) == (position.quantity > 0):
            position.quantity = remaining
        else:
            # Flipped through zero: the excess opens at the fill price
            self._positions[symbol] = Position(symbol, remaining, price, bar_index)
            logger.debug(f"Position {symbol} flipped: {position.quantity} -> {remaining}")

        self._stats["realized_pnl"] += realized
        return realized

    def equity(self, marks: Mapping[str, float]) -> float:
        """Cash plus positions marked at marks (average price when unmarked)."""
        value = self.cash
        for symbol, position in self._positions.items():
            value += position.market_value(marks.get(symbol, position.avg_price))
        return value

    def get_statistics(self) -> Dict[str, Any]:
        return {
            "initial_cash": self.initial_cash,
            "cash": self.cash,
            "open_positions": len(self._positions),
            **self._stats,
        }


# =============================================================================
# EXPORTS
# =============================================================================

__all__ = ["Position", "Portfolio"]
