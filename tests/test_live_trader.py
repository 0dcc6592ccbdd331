"""
live/trader.py::LiveTrader 테스트.

MockDataProvider로 시세를 한 틱씩 재생하고, 단기 2 / 장기 3 / threshold 0의
MA 교차 전략으로 시그널을 만든다.
    10, 11, 12 → 세 번째 틱 BUY
    이어서 9   → SELL
"""

import logging
from unittest.mock import Mock

import pandas as pd
import pytest

from trading_bot.brokers.mock_broker import MockBroker, MockDataProvider
from trading_bot.core.broker_api import OrderRepository, OrderSide, OrderStatus
from trading_bot.core.exceptions import OrderStoreError
from trading_bot.data.order_store import InMemoryOrderRepository
from trading_bot.live.trader import LiveTrader
from trading_bot.strategies.ma_cross_strategy import MACrossStrategy

SYMBOL = "005930"


def make_trader(prices, initial_cash=1_000_000, order_store=None, sleep=None):
    provider = MockDataProvider()
    provider.load_data(SYMBOL, pd.DataFrame({
        "date": pd.bdate_range("2024-01-02", periods=len(prices)),
        "close": prices,
    }))
    broker = MockBroker(initial_cash=initial_cash, commission_rate=0.0)
    broker.connect()
    return LiveTrader(
        provider=provider,
        strategy=MACrossStrategy({"short_period": 2, "long_period": 3, "threshold": 0}),
        broker=broker,
        order_store=order_store or InMemoryOrderRepository(),
        symbol=SYMBOL,
        polling_interval=30,
        sleep=sleep or (lambda s: None),
    )


class TestTick:

    def test_buy_then_sell_round_trip(self):
        trader = make_trader([10, 11, 12, 9])

        results = [trader.tick() for _ in range(4)]

        assert results[:2] == [None, None]
        buy, sell = results[2], results[3]
        assert (buy.side, buy.status, buy.price) == (OrderSide.BUY, OrderStatus.FILLED, 12.0)
        assert (sell.side, sell.status, sell.price) == (OrderSide.SELL, OrderStatus.FILLED, 9.0)
        assert [o.order_id for o in trader.order_store.orders] == [buy.order_id, sell.order_id]
        assert not trader.position.is_long
        assert trader.broker.get_balance() == pytest.approx(1_000_000 - 3)
        assert trader.ticks == 4

    def test_buy_while_long_is_ignored(self):
        trader = make_trader([10, 11, 12, 13])
        for _ in range(3):
            trader.tick()

        assert trader.position.is_long
        assert trader.tick() is None
        assert len(trader.order_store.orders) == 1
        assert trader.broker.get_holding(SYMBOL) == 1.0

    def test_sell_while_flat_is_ignored(self):
        trader = make_trader([12, 11, 10])

        assert [trader.tick() for _ in range(3)] == [None, None, None]
        assert trader.order_store.orders == []

    def test_failed_order_is_not_saved(self, caplog):
        trader = make_trader([10, 11, 12], initial_cash=5)

        with caplog.at_level(logging.ERROR):
            results = [trader.tick() for _ in range(3)]

        assert results[2].status == OrderStatus.FAILED
        assert trader.order_store.orders == []
        assert not trader.position.is_long
        assert "주문 실패" in caplog.text

    def test_store_failure_is_logged_and_position_follows_fill(self, caplog):
        store = Mock(spec=OrderRepository)
        store.save.side_effect = OrderStoreError("disk full")
        trader = make_trader([10, 11, 12], order_store=store)

        with caplog.at_level(logging.ERROR):
            results = [trader.tick() for _ in range(3)]

        assert results[2].status == OrderStatus.FILLED
        assert trader.position.is_long
        store.save.assert_called_once_with(results[2])
        assert "disk full" in caplog.text

    def test_data_source_error_skips_tick(self, caplog):
        trader = make_trader([10])
        trader.tick()

        with caplog.at_level(logging.ERROR):
            assert trader.tick() is None

        assert trader.ticks == 2
        assert "시세 조회 실패" in caplog.text

    def test_unparsable_price_places_no_order(self):
        trader = make_trader([10, 11, "abc", 12])

        results = [trader.tick() for _ in range(4)]

        assert results[2] is None
        assert trader.strategy.price_history == [10.0, 11.0, 12.0]
        assert results[3].side == OrderSide.BUY


class TestRun:

    def test_run_sleeps_between_ticks_only(self):
        sleeps = []
        trader = make_trader([10, 11, 12, 9], sleep=sleeps.append)

        trader.run(max_ticks=4)

        assert trader.ticks == 4
        assert sleeps == [30, 30, 30]
        assert len(trader.order_store.orders) == 2

    def test_run_zero_ticks(self):
        trader = make_trader([10])

        trader.run(max_ticks=0)

        assert trader.ticks == 0
