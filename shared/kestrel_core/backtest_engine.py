"""
KESTREL CORE v1.0 - Backtest Engine
====================================

Bar-by-bar replay of a strategy against historical data.

At each bar:
    signal -> position size -> execution-cost fill -> ledger -> equity sample

Two engines share the same reporting:
    Backtester       single-asset, long-only, any Strategy
    PairsBacktester  two-leg spread positions, any PairStrategy, with an
                     optional cointegration gate re-tested on an
                     expanding window

Pairs exit reasons:
    mean_reversion      |z| back inside the exit band
    stop_loss           |z| beyond the stop band
    signal_flip         opposite entry signal (re-enters immediately)
    cointegration_lost  spread rejected or the gate re-test failed
    end_of_data         position still open on the last bar

Every run builds its own Portfolio and equity curve; the execution
model's running totals are reset at the start of each run.

Author: KESTREL Core Development Team
Version: 1.0.0
"""

import logging
from collections import Counter
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence

import numpy as np

from .cointegration import align_pair, evaluate_cointegration
from .constants import BPS
from .exceptions import CapabilityError, require
from .execution_model import ExecutionCostSummary, ExecutionModel, Fill
from .models import Action, Bar, Trade, extract_closes
from .pairs_strategy import (
    ZONE_EXIT,
    ZONE_REJECTED,
    ZONE_STOP,
    PairsTradingStrategy,
)
from .performance import (
    calmar_ratio,
    max_drawdown,
    profit_factor,
    sharpe_ratio,
    sortino_ratio,
)
from .portfolio import Portfolio
from .position_sizer import PositionSizer
from .strategies import PairStrategy, Strategy

logger = logging.getLogger("KESTREL_Backtester")

EXIT_SIGNAL = "signal"
EXIT_MEAN_REVERSION = "mean_reversion"
EXIT_STOP_LOSS = "stop_loss"
EXIT_SIGNAL_FLIP = "signal_flip"
EXIT_COINTEGRATION_LOST = "cointegration_lost"
EXIT_END_OF_DATA = "end_of_data"


# =============================================================================
# CONFIGURATION
# =============================================================================


@dataclass
class BacktestConfig:
    """Configuration for the single-asset backtester."""

    initial_balance: float = 100_000.0
    lookback: int = 30  # Warm-up bars before the first evaluation
    min_confidence: float = 0.1  # Entries need confidence above this

    def __post_init__(self):
        require(
            self.initial_balance > 0,
            "initial_balance must be positive",
            "initial_balance",
            self.initial_balance,
        )
        require(self.lookback >= 2, "lookback must be >= 2", "lookback", self.lookback)
        require(
            0.0 <= self.min_confidence < 1.0,
            "min_confidence must be in [0, 1)",
            "min_confidence",
            self.min_confidence,
        )


@dataclass
class PairsBacktestConfig(BacktestConfig):
    """Configuration for the pairs backtester."""

    lookback: int = 60  # Rolling window handed to the strategy
    cointegration_gate: bool = True
    retest_period: int = 30  # Bars between cointegration re-tests

    def __post_init__(self):
        super().__post_init__()
        require(
            self.retest_period >= 1,
            "retest_period must be >= 1",
            "retest_period",
            self.retest_period,
        )


# =============================================================================
# REPORTS
# =============================================================================


@dataclass(frozen=True)
class PairTrade:
    """One closed spread position."""

    direction: int
    entry_bar: int
    exit_bar: int
    hedge_ratio: float
    quantity_a: float
    quantity_b: float
    entry_z_score: Optional[float]
    exit_z_score: Optional[float]
    pnl: float
    exit_reason: str

    @property
    def duration_bars(self) -> int:
        return self.exit_bar - self.entry_bar

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["duration_bars"] = self.duration_bars
        return data


@dataclass
class BacktestReport:
    """
    Performance report of one run.

    Returns, win rate and drawdown are fractions (0.05 = 5%). When the
    input is too short, error is set and every metric stays zero.
    """

    strategy: str
    symbol: str
    initial_balance: float = 0.0
    final_equity: float = 0.0
    total_pnl: float = 0.0
    total_return: float = 0.0
    total_trades: int = 0
    winning_trades: int = 0
    losing_trades: int = 0
    win_rate: float = 0.0
    sharpe_ratio: float = 0.0
    sortino_ratio: float = 0.0
    calmar_ratio: float = 0.0
    max_drawdown: float = 0.0
    profit_factor: float = 0.0
    avg_duration_bars: float = 0.0
    exit_reasons: Dict[str, int] = field(default_factory=dict)
    execution_costs: Optional[ExecutionCostSummary] = None
    equity_curve: List[float] = field(default_factory=list)
    trades: List[Trade] = field(default_factory=list)
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {
            key: value
            for key, value in self.__dict__.items()
            if key not in ("execution_costs", "trades", "round_trips")
        }
        data["exit_reasons"] = dict(self.exit_reasons)
        data["equity_curve"] = list(self.equity_curve)
        data["execution_costs"] = (
            self.execution_costs.to_dict() if self.execution_costs else None
        )
        data["trades"] = [trade.to_dict() for trade in self.trades]
        return data


@dataclass
class PairsBacktestReport(BacktestReport):
    """Pairs report; trades holds leg fills, round_trips the closed spreads."""

    symbol_b: str = ""
    round_trips: List[PairTrade] = field(default_factory=list)
    cointegration_checks: int = 0

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["round_trips"] = [trip.to_dict() for trip in self.round_trips]
        return data


def _fill_report(
    report: BacktestReport,
    equity_curve: List[float],
    pnls: Sequence[float],
    durations: Sequence[int],
    exit_reasons: Sequence[str],
    execution_model: Optional[ExecutionModel],
) -> None:
    """Populate the performance fields of a finished run."""
    initial = report.initial_balance
    final = equity_curve[-1]
    total_pnl = final - initial
    wins = sum(1 for pnl in pnls if pnl > 0)

    report.final_equity = final
    report.total_pnl = total_pnl
    report.total_return = total_pnl / initial
    report.total_trades = len(pnls)
    report.winning_trades = wins
    report.losing_trades = len(pnls) - wins
    report.win_rate = wins / len(pnls) if pnls else 0.0
    report.sharpe_ratio = sharpe_ratio(equity_curve)
    report.sortino_ratio = sortino_ratio(equity_curve)
    report.calmar_ratio = calmar_ratio(equity_curve)
    report.max_drawdown = max_drawdown(equity_curve)
    report.profit_factor = profit_factor(pnls)
    report.avg_duration_bars = float(np.mean(durations)) if durations else 0.0
    report.exit_reasons = dict(Counter(exit_reasons))
    report.equity_curve = equity_curve
    if execution_model is not None:
        report.execution_costs = execution_model.summary(total_pnl)


def _current_drawdown(equity_curve: Sequence[float], equity: float) -> float:
    peak = max(equity_curve)
    return (peak - equity) / peak if peak > 0 else 0.0


def _signed(side: Action, quantity: float) -> float:
    return quantity if side == Action.BUY else -quantity


def _opposite(side: Action) -> Action:
    return Action.SELL if side == Action.BUY else Action.BUY


class _EngineBase:
    """Sizing and execution plumbing shared by both engines."""

    def __init__(
        self,
        position_sizer: Optional[PositionSizer],
        execution_model: Optional[ExecutionModel],
    ):
        self.position_sizer = position_sizer or PositionSizer()
        self.execution_model = execution_model

    def _round_trip_cost_pct(self) -> Optional[float]:
        if self.execution_model is None:
            return None
        return self.execution_model.round_trip_cost_bps() / BPS

    def _quote_cost(
        self, price: float, quantity: float, avg_volume: float, volatility: float
    ) -> float:
        """Cash needed to buy quantity, without booking the fill."""
        if self.execution_model is None:
            return price * quantity
        realized = self.execution_model.get_execution_price(
            Action.BUY, price, quantity, avg_volume, volatility
        )
        return realized * quantity + self.execution_model.get_commission(realized, quantity)

    def _fill(
        self,
        side: Action,
        price: float,
        quantity: float,
        avg_volume: float = 0.0,
        volatility: float = 0.0,
    ) -> Fill:
        if self.execution_model is None:
            return Fill(side=side, quantity=quantity, price=price, realized_price=price, fee=0.0)
        return self.execution_model.fill(side, price, quantity, avg_volume, volatility)


# =============================================================================
# SINGLE-ASSET BACKTESTER
# =============================================================================


class Backtester(_EngineBase):
    """
    Long-only single-asset backtester.

    The strategy sees every bar up to the current one; evaluation starts
    after lookback warm-up bars. BUY above min_confidence opens a
    position when flat, SELL closes it, and any position left on the
    last bar is closed there.

    Example:
        backtester = Backtester(
            MomentumStrategy(),
            execution_model=ExecutionModel(ExecutionConfig(slippage_bps=5)),
        )
        report = backtester.run("BTC", bars)
        print(report.total_return, report.sharpe_ratio)
    """

    def __init__(
        self,
        strategy: Strategy,
        config: Optional[BacktestConfig] = None,
        position_sizer: Optional[PositionSizer] = None,
        execution_model: Optional[ExecutionModel] = None,
    ):
        if not isinstance(strategy, Strategy):
            hint = " (use PairsBacktester)" if isinstance(strategy, PairStrategy) else ""
            raise CapabilityError(
                f"{type(strategy).__name__} does not implement the single-asset "
                f"Strategy capability{hint}",
                code="CAPABILITY_MISMATCH",
            )
        super().__init__(position_sizer, execution_model)
        self.strategy = strategy
        self.cfg = config or BacktestConfig()

        logger.info(
            f"Backtester initialized: strategy={strategy.name}, "
            f"balance={self.cfg.initial_balance}, lookback={self.cfg.lookback}, "
            f"costs={'on' if execution_model else 'off'}"
        )

    def run(self, symbol: str, bars: Sequence[Any]) -> BacktestReport:
        """
        Replay the strategy over bars.

        Args:
            symbol: Instrument name used in the ledger and trades
            bars: Bars (or bar records) in ascending time order

        Returns:
            BacktestReport (error set when bars do not exceed the lookback)
        """
        cfg = self.cfg
        bars = [bar if isinstance(bar, Bar) else Bar.from_mapping(bar) for bar in bars]
        report = BacktestReport(
            strategy=self.strategy.name, symbol=symbol, initial_balance=cfg.initial_balance
        )
        n = len(bars)
        if n <= cfg.lookback:
            report.error = f"insufficient data: need more than {cfg.lookback} bars, got {n}"
            logger.debug(f"Backtest {symbol}: {report.error}")
            return report

        if self.execution_model is not None:
            self.execution_model.reset()

        portfolio = Portfolio(cfg.initial_balance)
        equity_curve = [cfg.initial_balance]
        trades: List[Trade] = []
        pnls: List[float] = []
        durations: List[int] = []
        reasons: List[str] = []
        trade_returns: List[float] = []
        entry_fee = 0.0
        entry_notional = 0.0

        for i in range(cfg.lookback, n):
            history = bars[: i + 1]
            closes = [bar.close for bar in history]
            recent = history[-cfg.lookback - 1 :]
            price = bars[i].close
            avg_volume = float(np.mean([bar.volume for bar in recent]))
            volatility = PositionSizer.calculate_volatility(closes[-cfg.lookback - 1 :])
            last_bar = i == n - 1

            signal = self.strategy.generate_signal(closes, history)
            position = portfolio.position(symbol)

            if position is not None and (signal.action == Action.SELL or last_bar):
                reason = EXIT_SIGNAL if signal.action == Action.SELL else EXIT_END_OF_DATA
                fill = self._fill(Action.SELL, price, position.quantity, avg_volume, volatility)
                realized = portfolio.execute(
                    symbol, -position.quantity, fill.realized_price, fill.fee, i
                )
                pnl = realized - entry_fee - fill.fee
                duration = i - position.opened_bar
                trades.append(
                    Trade(
                        symbol=symbol,
                        side=Action.SELL,
                        quantity=fill.quantity,
                        price=price,
                        realized_price=fill.realized_price,
                        fee=fill.fee,
                        bar_index=i,
                        pnl=pnl,
                        duration_bars=duration,
                        exit_reason=reason,
                    )
                )
                pnls.append(pnl)
                durations.append(duration)
                reasons.append(reason)
                trade_returns.append(pnl / entry_notional if entry_notional > 0 else 0.0)

            elif (
                position is None
                and not last_bar
                and signal.action == Action.BUY
                and signal.confidence > cfg.min_confidence
            ):
                equity = portfolio.equity({symbol: price})
                sizing = self.position_sizer.calculate(
                    portfolio_value=equity,
                    price=price,
                    confidence=signal.confidence,
                    volatility=volatility or None,
                    strategy_name=self.strategy.name,
                    trade_returns=trade_returns or None,
                    current_drawdown=_current_drawdown(equity_curve, equity),
                    transaction_cost_pct=self._round_trip_cost_pct(),
                )
                if sizing.quantity > 0:
                    cost = self._quote_cost(price, sizing.quantity, avg_volume, volatility)
                    if portfolio.can_afford(cost):
                        fill = self._fill(
                            Action.BUY, price, sizing.quantity, avg_volume, volatility
                        )
                        portfolio.execute(
                            symbol, fill.quantity, fill.realized_price, fill.fee, i
                        )
                        entry_fee = fill.fee
                        entry_notional = fill.quantity * fill.realized_price
                        trades.append(
                            Trade(
                                symbol=symbol,
                                side=Action.BUY,
                                quantity=fill.quantity,
                                price=price,
                                realized_price=fill.realized_price,
                                fee=fill.fee,
                                bar_index=i,
                            )
                        )
                    else:
                        logger.warning(
                            f"Backtest {symbol}: insufficient cash at bar {i} "
                            f"(cost={cost:.2f}, cash={portfolio.cash:.2f})"
                        )
                else:
                    logger.debug(f"Backtest {symbol}: bar {i} sizing {sizing.method} ({sizing.reason})")

            equity_curve.append(portfolio.equity({symbol: price}))

        report.trades = trades
        _fill_report(report, equity_curve, pnls, durations, reasons, self.execution_model)
        logger.info(
            f"Backtest {symbol} complete: trades={report.total_trades}, "
            f"return={report.total_return:.2%}, sharpe={report.sharpe_ratio:.2f}"
        )
        return report

    def run_multiple(self, bars_by_symbol: Mapping[str, Sequence[Any]]) -> Dict[str, BacktestReport]:
        """Independent run per symbol."""
        return {symbol: self.run(symbol, bars) for symbol, bars in bars_by_symbol.items()}


# =============================================================================
# PAIRS BACKTESTER
# =============================================================================


@dataclass
class _OpenSpread:
    direction: int
    entry_bar: int
    hedge_ratio: float
    side_a: Action
    quantity_a: float
    fee_a: float
    side_b: Action
    quantity_b: float
    fee_b: float
    entry_z_score: Optional[float]
    notional: float


class PairsBacktester(_EngineBase):
    """
    Spread backtester for a PairStrategy.

    The cointegration gate runs evaluate_cointegration on all history up
    to the current bar every retest_period bars; new entries are blocked
    and open spreads closed while the pair is not cointegrated.

    Example:
        backtester = PairsBacktester(execution_model=ExecutionModel())
        report = backtester.run(closes_a, closes_b, "KO", "PEP")
        for trip in report.round_trips:
            print(trip.exit_reason, trip.pnl)
    """

    def __init__(
        self,
        strategy: Optional[PairStrategy] = None,
        config: Optional[PairsBacktestConfig] = None,
        position_sizer: Optional[PositionSizer] = None,
        execution_model: Optional[ExecutionModel] = None,
    ):
        strategy = strategy if strategy is not None else PairsTradingStrategy()
        if not isinstance(strategy, PairStrategy):
            hint = " (use Backtester)" if isinstance(strategy, Strategy) else ""
            raise CapabilityError(
                f"{type(strategy).__name__} does not implement the PairStrategy "
                f"capability{hint}",
                code="CAPABILITY_MISMATCH",
            )
        super().__init__(position_sizer, execution_model)
        self.strategy = strategy
        self.cfg = config or PairsBacktestConfig()

        logger.info(
            f"PairsBacktester initialized: strategy={strategy.name}, "
            f"balance={self.cfg.initial_balance}, lookback={self.cfg.lookback}, "
            f"gate={'on' if self.cfg.cointegration_gate else 'off'} "
            f"(retest every {self.cfg.retest_period} bars)"
        )

    def run(
        self,
        closes_a: Sequence[Any],
        closes_b: Sequence[Any],
        symbol_a: str = "A",
        symbol_b: str = "B",
    ) -> PairsBacktestReport:
        """
        Replay the pair strategy.

        Args:
            closes_a / closes_b: Close prices (or bars) of the two legs;
                aligned on their trailing common length
            symbol_a / symbol_b: Leg names used in the ledger and trades

        Returns:
            PairsBacktestReport (error set when data does not exceed the lookback)
        """
        cfg = self.cfg
        a, b = align_pair(extract_closes(closes_a), extract_closes(closes_b))
        report = PairsBacktestReport(
            strategy=self.strategy.name,
            symbol=symbol_a,
            symbol_b=symbol_b,
            initial_balance=cfg.initial_balance,
        )
        n = len(a)
        if n <= cfg.lookback:
            report.error = f"insufficient data: need more than {cfg.lookback} bars, got {n}"
            logger.debug(f"Pairs backtest {symbol_a}/{symbol_b}: {report.error}")
            return report

        if self.execution_model is not None:
            self.execution_model.reset()

        portfolio = Portfolio(cfg.initial_balance)
        equity_curve = [cfg.initial_balance]
        trades: List[Trade] = []
        round_trips: List[PairTrade] = []
        trade_returns: List[float] = []
        gate_open = not cfg.cointegration_gate
        checks = 0
        spread: Optional[_OpenSpread] = None

        for i in range(cfg.lookback, n):
            price_a, price_b = float(a[i]), float(b[i])
            marks = {symbol_a: price_a, symbol_b: price_b}
            last_bar = i == n - 1

            if cfg.cointegration_gate and (i - cfg.lookback) % cfg.retest_period == 0:
                result = evaluate_cointegration(
                    a[: i + 1], b[: i + 1], lookback=cfg.lookback, min_data_points=cfg.lookback
                )
                checks += 1
                gate_open = result.is_cointegrated
                logger.debug(
                    f"Pairs gate {symbol_a}/{symbol_b} bar {i}: "
                    f"p={result.adf_p_value} rank={result.johansen_rank} open={gate_open}"
                )

            window = slice(i - cfg.lookback + 1, i + 1)
            signal = self.strategy.generate_signal(a[window], b[window])
            zone = signal.metadata.get("zone")
            unit_prices = a[window] + abs(signal.hedge_ratio or 0.0) * b[window]
            volatility = PositionSizer.calculate_volatility(unit_prices)

            if spread is not None:
                reason = None
                if last_bar:
                    reason = EXIT_END_OF_DATA
                elif zone == ZONE_STOP:
                    reason = EXIT_STOP_LOSS
                elif zone == ZONE_EXIT:
                    reason = EXIT_MEAN_REVERSION
                elif zone == ZONE_REJECTED or not gate_open:
                    reason = EXIT_COINTEGRATION_LOST
                elif signal.is_entry and signal.direction == -spread.direction:
                    reason = EXIT_SIGNAL_FLIP

                if reason is not None:
                    trip = self._close_spread(
                        spread, portfolio, trades, i, marks, symbol_a, symbol_b,
                        volatility, signal.z_score, reason,
                    )
                    round_trips.append(trip)
                    trade_returns.append(trip.pnl / spread.notional if spread.notional > 0 else 0.0)
                    spread = None

            if (
                spread is None
                and not last_bar
                and gate_open
                and signal.is_entry
                and signal.direction != 0
                and signal.hedge_ratio is not None
                and signal.confidence > cfg.min_confidence
            ):
                spread = self._open_spread(
                    signal, portfolio, trades, i, marks, symbol_a, symbol_b,
                    volatility, equity_curve, trade_returns,
                )

            equity_curve.append(portfolio.equity(marks))

        report.trades = trades
        report.round_trips = round_trips
        report.cointegration_checks = checks
        _fill_report(
            report,
            equity_curve,
            [trip.pnl for trip in round_trips],
            [trip.duration_bars for trip in round_trips],
            [trip.exit_reason for trip in round_trips],
            self.execution_model,
        )
        logger.info(
            f"Pairs backtest {symbol_a}/{symbol_b} complete: trades={report.total_trades}, "
            f"return={report.total_return:.2%}, sharpe={report.sharpe_ratio:.2f}"
        )
        return report

    def _open_spread(
        self, signal, portfolio, trades, bar_index, marks, symbol_a, symbol_b,
        volatility, equity_curve, trade_returns,
    ) -> Optional[_OpenSpread]:
        price_a, price_b = marks[symbol_a], marks[symbol_b]
        hedge = signal.hedge_ratio
        unit_price = price_a + abs(hedge) * price_b
        equity = portfolio.equity(marks)

        sizing = self.position_sizer.calculate(
            portfolio_value=equity,
            price=unit_price,
            confidence=signal.confidence,
            volatility=volatility or None,
            strategy_name=self.strategy.name,
            trade_returns=trade_returns or None,
            current_drawdown=_current_drawdown(equity_curve, equity),
            transaction_cost_pct=self._round_trip_cost_pct(),
        )
        legs = PairsTradingStrategy.get_position_legs(
            signal.direction, hedge, price_a, price_b, sizing.notional_value
        )
        if sizing.quantity <= 0 or legs is None:
            logger.debug(f"Pairs entry skipped at bar {bar_index}: {sizing.method} ({sizing.reason})")
            return None

        fees = {}
        for symbol, side, quantity, price in (
            (symbol_a, legs.side_a, legs.quantity_a, price_a),
            (symbol_b, legs.side_b, legs.quantity_b, price_b),
        ):
            fill = self._fill(side, price, quantity, volatility=volatility)
            portfolio.execute(
                symbol, _signed(side, quantity), fill.realized_price, fill.fee, bar_index
            )
            fees[symbol] = fill.fee
            trades.append(
                Trade(
                    symbol=symbol,
                    side=side,
                    quantity=quantity,
                    price=price,
                    realized_price=fill.realized_price,
                    fee=fill.fee,
                    bar_index=bar_index,
                )
            )

        logger.debug(
            f"Pairs entry bar {bar_index}: direction={signal.direction}, z={signal.z_score}, "
            f"beta={hedge:.4f}, qty_a={legs.quantity_a:.4f}, qty_b={legs.quantity_b:.4f}"
        )
        return _OpenSpread(
            direction=signal.direction,
            entry_bar=bar_index,
            hedge_ratio=hedge,
            side_a=legs.side_a,
            quantity_a=legs.quantity_a,
            fee_a=fees[symbol_a],
            side_b=legs.side_b,
            quantity_b=legs.quantity_b,
            fee_b=fees[symbol_b],
            entry_z_score=signal.z_score,
            notional=sizing.notional_value,
        )

    def _close_spread(
        self, spread, portfolio, trades, bar_index, marks, symbol_a, symbol_b,
        volatility, z, reason,
    ) -> PairTrade:
        total_pnl = 0.0
        duration = bar_index - spread.entry_bar
        for symbol, entry_side, quantity, entry_fee in (
            (symbol_a, spread.side_a, spread.quantity_a, spread.fee_a),
            (symbol_b, spread.side_b, spread.quantity_b, spread.fee_b),
        ):
            side = _opposite(entry_side)
            price = marks[symbol]
            fill = self._fill(side, price, quantity, volatility=volatility)
            realized = portfolio.execute(
                symbol, _signed(side, quantity), fill.realized_price, fill.fee, bar_index
            )
            pnl = realized - entry_fee - fill.fee
            total_pnl += pnl
            trades.append(
                Trade(
                    symbol=symbol,
                    side=side,
                    quantity=quantity,
                    price=price,
                    realized_price=fill.realized_price,
                    fee=fill.fee,
                    bar_index=bar_index,
                    pnl=pnl,
                    duration_bars=duration,
                    exit_reason=reason,
                )
            )

        logger.debug(f"Pairs exit bar {bar_index}: reason={reason}, pnl={total_pnl:.2f}")
        return PairTrade(
            direction=spread.direction,
            entry_bar=spread.entry_bar,
            exit_bar=bar_index,
            hedge_ratio=spread.hedge_ratio,
            quantity_a=spread.quantity_a,
            quantity_b=spread.quantity_b,
            entry_z_score=spread.entry_z_score,
            exit_z_score=z,
            pnl=total_pnl,
            exit_reason=reason,
        )


# =============================================================================
# EXPORTS
# =============================================================================

__all__ = [
    "BacktestConfig",
    "PairsBacktestConfig",
    "PairTrade",
    "BacktestReport",
    "PairsBacktestReport",
    "Backtester",
    "PairsBacktester",
    "EXIT_SIGNAL",
    "EXIT_MEAN_REVERSION",
    "EXIT_STOP_LOSS",
    "EXIT_SIGNAL_FLIP",
    "EXIT_COINTEGRATION_LOST",
    "EXIT_END_OF_DATA",
]
