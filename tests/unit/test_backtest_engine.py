"""
Tests for the Backtest Engines
===============================

Tests the single-asset and pairs backtesters with scripted strategies
(exact ledgers) and with the real strategies (structural properties).
"""

import pytest

from shared.kestrel_core.backtest_engine import (
    EXIT_COINTEGRATION_LOST,
    EXIT_END_OF_DATA,
    EXIT_MEAN_REVERSION,
    EXIT_SIGNAL,
    EXIT_SIGNAL_FLIP,
    EXIT_STOP_LOSS,
    BacktestConfig,
    Backtester,
    PairsBacktestConfig,
    PairsBacktester,
)
from shared.kestrel_core.exceptions import CapabilityError, InvalidConfigError
from shared.kestrel_core.execution_model import ExecutionConfig, ExecutionModel
from shared.kestrel_core.models import Action, Bar, Signal
from shared.kestrel_core.pairs_strategy import (
    ZONE_ENTRY,
    ZONE_EXIT,
    ZONE_NEUTRAL,
    ZONE_REJECTED,
    ZONE_STOP,
    PairsTradingStrategy,
)
from shared.kestrel_core.strategies import MomentumStrategy, PairStrategy, Strategy

EXIT_REASONS = {
    EXIT_SIGNAL,
    EXIT_MEAN_REVERSION,
    EXIT_STOP_LOSS,
    EXIT_SIGNAL_FLIP,
    EXIT_COINTEGRATION_LOST,
    EXIT_END_OF_DATA,
}


class ScriptedStrategy(Strategy):
    """Buys and sells when the history reaches given lengths."""

    name = "scripted"

    def __init__(self, buy_at, sell_at=None, confidence=0.5):
        self.buy_at = buy_at
        self.sell_at = sell_at
        self.confidence = confidence
        self.seen = []

    def generate_signal(self, price_history, candles=None):
        n = len(price_history)
        self.seen.append((n, len(candles)))
        if n == self.buy_at:
            return Signal(Action.BUY, self.confidence, direction=1)
        if n == self.sell_at:
            return Signal(Action.SELL, self.confidence, direction=-1)
        return Signal.hold("idle")


class ScriptedPairStrategy(PairStrategy):
    """Replays signals by call number."""

    name = "scripted_pair"

    def __init__(self, script):
        self.script = script
        self.calls = 0

    def generate_signal(self, series_a, series_b):
        self.calls += 1
        idle = Signal.hold("idle", hedge_ratio=1.0, metadata={"zone": ZONE_NEUTRAL})
        return self.script.get(self.calls, idle)


def _bars(prices):
    return [Bar(open=p, high=p, low=p, close=p, volume=1_000.0) for p in prices]


def _step_prices(n=50, step_at=35):
    return [100.0 if i < step_at else 110.0 for i in range(n)]


def _entry(direction, z):
    action = Action.BUY if direction > 0 else Action.SELL
    return Signal(
        action, 0.5, z_score=z, hedge_ratio=1.0, direction=direction, metadata={"zone": ZONE_ENTRY}
    )


def _hold(zone, z):
    return Signal(Action.HOLD, 0.0, z_score=z, hedge_ratio=1.0, metadata={"zone": zone})


class TestCapabilities:
    """Tests for strategy capability checks."""

    def test_pair_strategy_rejected_by_backtester(self):
        with pytest.raises(CapabilityError) as exc_info:
            Backtester(PairsTradingStrategy())
        assert exc_info.value.code == "CAPABILITY_MISMATCH"
        assert "PairsBacktester" in str(exc_info.value)

    def test_single_strategy_rejected_by_pairs_backtester(self):
        with pytest.raises(CapabilityError):
            PairsBacktester(MomentumStrategy())

    def test_pairs_backtester_default_strategy(self):
        assert PairsBacktester().strategy.name == "pairs_trading"


class TestBacktester:
    """Tests for the single-asset engine."""

    def test_insufficient_data(self):
        report = Backtester(ScriptedStrategy(32)).run("X", _bars([100.0] * 30))
        assert report.error.startswith("insufficient data")
        assert report.total_trades == 0
        assert report.equity_curve == []

    def test_strategy_sees_full_history(self):
        strategy = ScriptedStrategy(buy_at=0)
        Backtester(strategy).run("X", _bars(_step_prices()))
        assert strategy.seen[0] == (31, 31)
        assert strategy.seen[-1] == (50, 50)

    def test_round_trip_without_costs(self):
        """50 units at 100 sold at 110."""
        report = Backtester(ScriptedStrategy(buy_at=32, sell_at=40)).run(
            "X", _bars(_step_prices())
        )
        assert report.total_trades == 1
        assert report.total_pnl == pytest.approx(500.0)
        assert report.final_equity == pytest.approx(100_500.0)
        assert report.win_rate == 1.0
        assert report.exit_reasons == {EXIT_SIGNAL: 1}
        assert report.avg_duration_bars == 8.0
        assert report.execution_costs is None
        assert [t.side for t in report.trades] == [Action.BUY, Action.SELL]
        assert report.trades[0].quantity == 50

    def test_equity_curve_length(self):
        report = Backtester(ScriptedStrategy(buy_at=32, sell_at=40)).run(
            "X", _bars(_step_prices())
        )
        assert len(report.equity_curve) == 1 + (50 - 30)
        assert report.equity_curve[0] == 100_000.0

    def test_round_trip_with_costs(self):
        """10 bps slippage and 10 bps commission on both fills."""
        model = ExecutionModel(ExecutionConfig(slippage_bps=10, commission_bps=10))
        report = Backtester(
            ScriptedStrategy(buy_at=32, sell_at=40), execution_model=model
        ).run("X", _bars(_step_prices()))

        entry, exit_ = report.trades
        assert entry.realized_price == pytest.approx(100.10)
        assert exit_.realized_price == pytest.approx(109.89)
        expected = (109.89 - 100.10) * 50 - 100.10 * 50 * 0.001 - 109.89 * 50 * 0.001
        assert exit_.pnl == pytest.approx(expected)
        assert report.total_pnl == pytest.approx(expected)
        assert report.execution_costs.total_slippage == pytest.approx(10.5)
        assert report.execution_costs.total_commission == pytest.approx(
            100.10 * 50 * 0.001 + 109.89 * 50 * 0.001
        )

    def test_costs_reset_between_runs(self):
        model = ExecutionModel()
        backtester = Backtester(ScriptedStrategy(buy_at=32, sell_at=40), execution_model=model)
        first = backtester.run("X", _bars(_step_prices()))
        second = backtester.run("X", _bars(_step_prices()))
        assert second.execution_costs.total_costs == pytest.approx(first.execution_costs.total_costs)

    def test_closes_at_end_of_data(self):
        report = Backtester(ScriptedStrategy(buy_at=32)).run("X", _bars(_step_prices()))
        assert report.exit_reasons == {EXIT_END_OF_DATA: 1}
        assert report.trades[-1].duration_bars == 49 - 31
        assert report.total_pnl == pytest.approx(500.0)

    def test_low_confidence_ignored(self):
        report = Backtester(ScriptedStrategy(buy_at=32, confidence=0.05)).run(
            "X", _bars(_step_prices())
        )
        assert report.total_trades == 0
        assert report.trades == []
        assert report.final_equity == 100_000.0

    def test_accepts_bar_records(self):
        records = [{"c": p, "v": 1_000} for p in _step_prices()]
        report = Backtester(ScriptedStrategy(buy_at=32, sell_at=40)).run("X", records)
        assert report.total_pnl == pytest.approx(500.0)

    def test_run_multiple(self):
        backtester = Backtester(ScriptedStrategy(buy_at=32, sell_at=40))
        reports = backtester.run_multiple(
            {"X": _bars(_step_prices()), "Y": _bars([100.0] * 20)}
        )
        assert reports["X"].total_trades == 1
        assert reports["Y"].error is not None

    def test_momentum_ledger_consistency(self, trending_bars):
        """Every position is closed by the end, so P&L sums to the equity change."""
        report = Backtester(MomentumStrategy(), execution_model=ExecutionModel()).run(
            "TREND", trending_bars
        )
        assert report.error is None
        closing = [t for t in report.trades if t.is_closing]
        assert report.total_trades == len(closing)
        assert sum(t.pnl for t in closing) == pytest.approx(report.total_pnl)
        assert set(report.exit_reasons) <= EXIT_REASONS
        assert len(report.equity_curve) == 1 + len(trending_bars) - 30
        assert 0.0 <= report.max_drawdown <= 1.0

    def test_to_dict(self):
        report = Backtester(ScriptedStrategy(buy_at=32, sell_at=40)).run(
            "X", _bars(_step_prices())
        )
        data = report.to_dict()
        assert data["total_trades"] == 1
        assert data["trades"][0]["side"] == "BUY"
        assert data["execution_costs"] is None


class TestPairsBacktesterScripted:
    """Exact ledgers for scripted spread signals."""

    @staticmethod
    def _prices(n=20, jump_at=12):
        a = [100.0 if i < jump_at else 110.0 for i in range(n)]
        b = [50.0] * n
        return a, b

    @staticmethod
    def _config():
        return PairsBacktestConfig(lookback=10, cointegration_gate=False)

    def test_mean_reversion_exit(self):
        """33 units per leg: long A gains 10, short B flat."""
        a, b = self._prices()
        strategy = ScriptedPairStrategy({1: _entry(1, -2.5), 5: _hold(ZONE_EXIT, 0.2)})
        report = PairsBacktester(strategy, self._config()).run(a, b, "AAA", "BBB")

        assert report.total_trades == 1
        trip = report.round_trips[0]
        assert trip.exit_reason == EXIT_MEAN_REVERSION
        assert trip.entry_bar == 10
        assert trip.duration_bars == 4
        assert trip.quantity_a == pytest.approx(33.0)
        assert trip.quantity_b == pytest.approx(33.0)
        assert trip.pnl == pytest.approx(330.0)
        assert trip.entry_z_score == -2.5
        assert trip.exit_z_score == 0.2
        assert report.final_equity == pytest.approx(100_330.0)
        assert [t.symbol for t in report.trades] == ["AAA", "BBB", "AAA", "BBB"]
        assert report.trades[1].side == Action.SELL

    def test_stop_loss_exit(self):
        a, b = self._prices()
        strategy = ScriptedPairStrategy({1: _entry(1, -2.5), 3: _hold(ZONE_STOP, -3.8)})
        report = PairsBacktester(strategy, self._config()).run(a, b)
        assert report.exit_reasons == {EXIT_STOP_LOSS: 1}

    def test_signal_flip_reenters(self):
        """An opposite entry closes and immediately reverses."""
        a, b = self._prices()
        strategy = ScriptedPairStrategy({1: _entry(1, -2.5), 4: _entry(-1, 2.5)})
        report = PairsBacktester(strategy, self._config()).run(a, b)
        assert [t.exit_reason for t in report.round_trips] == [EXIT_SIGNAL_FLIP, EXIT_END_OF_DATA]
        assert report.round_trips[1].direction == -1
        assert report.round_trips[1].exit_bar == 19

    def test_rejected_spread_exit(self):
        a, b = self._prices()
        strategy = ScriptedPairStrategy({1: _entry(1, -2.5), 2: _hold(ZONE_REJECTED, None)})
        report = PairsBacktester(strategy, self._config()).run(a, b)
        assert report.exit_reasons == {EXIT_COINTEGRATION_LOST: 1}

    def test_no_entry_on_last_bar(self):
        a, b = self._prices()
        strategy = ScriptedPairStrategy({10: _entry(1, -2.5)})
        report = PairsBacktester(strategy, self._config()).run(a, b)
        assert report.total_trades == 0

    def test_closed_gate_blocks_entries(self):
        """With the gate on, a non-cointegrated flat pair never trades."""
        a, b = self._prices()
        config = PairsBacktestConfig(lookback=10, cointegration_gate=True, retest_period=5)
        strategy = ScriptedPairStrategy({1: _entry(1, -2.5)})
        report = PairsBacktester(strategy, config).run(a, b)
        assert report.total_trades == 0
        assert report.cointegration_checks == 2

    def test_costs_reduce_pnl(self):
        a, b = self._prices()
        strategy = ScriptedPairStrategy({1: _entry(1, -2.5), 5: _hold(ZONE_EXIT, 0.2)})
        report = PairsBacktester(
            strategy, self._config(), execution_model=ExecutionModel()
        ).run(a, b)
        assert report.round_trips[0].pnl < 330.0
        assert report.execution_costs.total_costs > 0


class TestPairsBacktester:
    """Structural properties with the real pairs strategy."""

    def test_insufficient_data(self):
        report = PairsBacktester().run([100.0] * 50, [50.0] * 50)
        assert report.error.startswith("insufficient data")

    def test_independent_walks_rarely_trade(self, independent_walks):
        a, b = independent_walks
        report = PairsBacktester().run(a, b)
        assert report.error is None
        assert report.total_trades <= 3

    def test_cointegrated_pair_ledger(self, cointegrated_pair):
        a, b = cointegrated_pair
        report = PairsBacktester(execution_model=ExecutionModel()).run(a, b, "KO", "PEP")
        assert report.error is None
        assert report.cointegration_checks == (len(a) - 60 + 29) // 30
        assert report.total_trades == len(report.round_trips)
        assert set(report.exit_reasons) <= EXIT_REASONS
        assert sum(t.pnl for t in report.round_trips) == pytest.approx(report.total_pnl)
        assert len(report.equity_curve) == 1 + len(a) - 60
        assert all(trip.exit_bar > trip.entry_bar for trip in report.round_trips)

    def test_gate_off_skips_checks(self, cointegrated_pair):
        a, b = cointegrated_pair
        config = PairsBacktestConfig(cointegration_gate=False)
        report = PairsBacktester(config=config).run(a, b)
        assert report.cointegration_checks == 0

    def test_report_to_dict(self, cointegrated_pair):
        a, b = cointegrated_pair
        data = PairsBacktester().run(a, b, "KO", "PEP").to_dict()
        assert data["symbol"] == "KO"
        assert data["symbol_b"] == "PEP"
        assert isinstance(data["round_trips"], list)


class TestBacktestConfig:
    """Tests for config validation."""

    def test_invalid_balance(self):
        with pytest.raises(InvalidConfigError):
            BacktestConfig(initial_balance=0)

    def test_invalid_retest_period(self):
        with pytest.raises(InvalidConfigError):
            PairsBacktestConfig(retest_period=0)
