"""
Tests for Core Data Models
===========================

Tests bar parsing, signal helpers and close extraction.
"""

import numpy as np
import pandas as pd
import pytest

from shared.kestrel_core.exceptions import DataValidationError
from shared.kestrel_core.models import (
    Action,
    Bar,
    PositionSizingResult,
    Signal,
    Trade,
    extract_closes,
)


class TestBar:
    """Tests for Bar construction."""

    def test_from_mapping_long_keys(self):
        """Long OHLCV keys are read."""
        bar = Bar.from_mapping(
            {"open": 1, "high": 3, "low": 0.5, "close": 2, "volume": 100, "timestamp": "t0"}
        )
        assert bar == Bar(open=1.0, high=3.0, low=0.5, close=2.0, volume=100.0, timestamp="t0")

    def test_from_mapping_short_keys(self):
        """Short o/h/l/c/v keys are read."""
        bar = Bar.from_mapping({"o": 1, "h": 3, "l": 0.5, "c": 2, "v": 10})
        assert bar.close == 2.0
        assert bar.volume == 10.0

    def test_missing_ohl_default_to_close(self):
        """Only the close is mandatory."""
        bar = Bar.from_mapping({"c": 5})
        assert bar.open == bar.high == bar.low == 5.0
        assert bar.volume == 0.0

    def test_missing_close_raises(self):
        """A record without a close is rejected."""
        with pytest.raises(DataValidationError):
            Bar.from_mapping({"open": 1.0})


class TestSignal:
    """Tests for Signal helpers."""

    def test_hold_has_zero_confidence(self):
        """hold() builds a zero-confidence HOLD with one reason."""
        signal = Signal.hold("no data", z_score=1.2)
        assert signal.action == Action.HOLD
        assert signal.confidence == 0.0
        assert signal.reasons == ("no data",)
        assert signal.z_score == 1.2
        assert not signal.is_entry

    def test_buy_and_sell_are_entries(self):
        """BUY and SELL count as entries."""
        assert Signal(Action.BUY, 0.5).is_entry
        assert Signal(Action.SELL, 0.5).is_entry

    def test_to_dict_uses_action_value(self):
        """Serialized action is the string value."""
        data = Signal(Action.SELL, 0.4, reasons=("a", "b")).to_dict()
        assert data["action"] == "SELL"
        assert data["reasons"] == ["a", "b"]


class TestTradeAndSizing:
    """Tests for Trade and PositionSizingResult."""

    def test_closing_trade_has_pnl(self):
        """Only fills carrying P&L are closing fills."""
        opening = Trade("X", Action.BUY, 10, 100.0, 100.1, 1.0, 5)
        closing = Trade("X", Action.SELL, 10, 110.0, 109.9, 1.1, 9, pnl=95.0, duration_bars=4)
        assert not opening.is_closing
        assert closing.is_closing
        assert closing.to_dict()["side"] == "SELL"

    def test_empty_sizing_result(self):
        """empty() carries the method and reason with no size."""
        result = PositionSizingResult.empty("skip", "too small")
        assert result.quantity == 0.0
        assert result.position_pct == 0.0
        assert result.to_dict()["reason"] == "too small"


class TestExtractCloses:
    """Tests for close extraction."""

    def test_numbers(self):
        assert extract_closes([1, 2, 3]).tolist() == [1.0, 2.0, 3.0]

    def test_bars_and_mappings(self):
        """Bars and bar-like mappings can be mixed."""
        history = [Bar(1, 1, 1, 1.5), {"c": 2.5}, {"close": 3.5}]
        assert extract_closes(history).tolist() == [1.5, 2.5, 3.5]

    def test_series_and_array(self):
        series = pd.Series([1.0, 2.0])
        assert extract_closes(series).tolist() == [1.0, 2.0]
        assert extract_closes(np.array([4, 5])).dtype == float
