"""
backtest/metrics.py, data/portfolio.py 단위 테스트.
"""

from datetime import datetime

import numpy as np
import pytest

from trading_bot.backtest.metrics import BacktestResult, calculate_drawdown_curve
from trading_bot.data.portfolio import Portfolio, PositionStatus


# =============================================================================
# BacktestResult
# =============================================================================

class TestBacktestResult:

    def test_record_open_and_close(self):
        result = BacktestResult()
        result.record_open()
        result.record_close(profit=500.0, return_pct=5.0)
        result.record_open()
        result.record_close(profit=-100.0, return_pct=-1.0)

        assert result.total_trades == 2
        assert result.winning_trades == 1
        assert result.losing_trades == 1
        assert result.total_profit == pytest.approx(400.0)

    def test_finalize_divides_by_total_trades(self):
        result = BacktestResult()
        for profit, pct in [(10.0, 4.0), (20.0, 2.0), (-5.0, -3.0)]:
            result.record_open()
            result.record_close(profit, pct)

        result.finalize()

        assert result.win_rate == pytest.approx(2 / 3)
        assert result.average_profit_per_trade == pytest.approx(1.0)

    def test_finalize_without_trades(self):
        result = BacktestResult()
        result.finalize()

        assert result.win_rate == 0.0
        assert result.average_profit_per_trade == 0.0

    def test_update_drawdown_keeps_maximum(self):
        result = BacktestResult()
        result.update_drawdown(100.0, 90.0)
        result.update_drawdown(100.0, 95.0)
        result.update_drawdown(200.0, 150.0)

        assert result.max_drawdown == pytest.approx(0.25)

    def test_update_drawdown_ignores_non_positive_peak(self):
        result = BacktestResult()
        result.update_drawdown(0.0, -10.0)

        assert result.max_drawdown == 0.0

    def test_summary_and_dict(self):
        result = BacktestResult(start_date=datetime(2024, 1, 2), end_date=datetime(2024, 3, 4))
        result.record_open()
        result.record_close(1000.0, 1.0)
        result.final_balance = 10_001_000
        result.finalize()

        text = result.summary()
        assert "2024-01-02" in text
        assert "10,001,000" in text
        assert "100.00%" in text
        assert result.to_dict()["winning_trades"] == 1


class TestDrawdownCurve:

    def test_curve_matches_running_peak(self):
        curve = calculate_drawdown_curve([100.0, 80.0, 120.0, 90.0], initial_cash=100.0)

        np.testing.assert_allclose(curve, [0.0, 0.2, 0.0, 0.25])

    def test_initial_cash_is_first_peak(self):
        curve = calculate_drawdown_curve([90.0], initial_cash=100.0)

        np.testing.assert_allclose(curve, [0.1])

    def test_empty_curve(self):
        assert calculate_drawdown_curve([], 100.0).size == 0


# =============================================================================
# Portfolio
# =============================================================================

class TestPortfolio:

    def test_open_long_spends_all_cash(self):
        portfolio = Portfolio(1_000_000)
        record = portfolio.open_long("005930", price=50_000, commission_rate=0.001)

        assert portfolio.cash == 0.0
        assert portfolio.position.status == PositionStatus.LONG
        assert portfolio.position.entry_price == 50_000
        assert record.commission == pytest.approx(1_000)
        assert portfolio.position.quantity == pytest.approx(999_000 / 50_000)

    def test_equity_is_mark_to_market(self):
        portfolio = Portfolio(1_000_000)
        assert portfolio.equity(123.0) == 1_000_000

        portfolio.open_long("005930", price=100, commission_rate=0)
        assert portfolio.equity(90) == pytest.approx(900_000)

    def test_close_long_records_profit_against_initial_cash(self):
        portfolio = Portfolio(1_000_000)
        portfolio.open_long("005930", price=100, commission_rate=0)
        record = portfolio.close_long("005930", price=105, commission_rate=0, forced=True)

        assert portfolio.cash == pytest.approx(1_050_000)
        assert record.profit == pytest.approx(50_000)
        assert record.profit_rate == pytest.approx(5.0)
        assert record.forced is True
        assert portfolio.position.status == PositionStatus.FLAT
        assert portfolio.position.quantity == 0.0

    def test_invalid_transitions(self):
        portfolio = Portfolio(1_000_000)
        with pytest.raises(RuntimeError):
            portfolio.close_long("005930", price=100, commission_rate=0)
        with pytest.raises(ValueError):
            portfolio.open_long("005930", price=0, commission_rate=0)

        portfolio.open_long("005930", price=100, commission_rate=0)
        with pytest.raises(RuntimeError):
            portfolio.open_long("005930", price=100, commission_rate=0)

    def test_summary(self):
        portfolio = Portfolio(1_000_000)
        portfolio.open_long("005930", price=100, commission_rate=0)

        summary = portfolio.get_summary()
        assert summary["position"] == "long"
        assert summary["num_trades"] == 1
        assert summary["current_cash"] == 0.0
