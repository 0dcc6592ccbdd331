"""
실시간(폴링) 매매 루프.

[ 역할 ]
    백테스트와 같은 상태 전이를, 과거 시계열 대신 폴링한 현재가로 한 틱씩 수행.
        FLAT + BUY  → 매수 주문
        LONG + SELL → 매도 주문
        그 외       → 주문 없음
    체결된 주문은 OrderRepository에 저장한다.

[ 실행 흐름 ]
    run() 호출 시:
        tick() → polling_interval초 대기 → tick() → ...
    한 틱이 끝나야 다음 틱의 시세를 조회한다 (틱끼리 겹치지 않음).

[ 오류 처리 ]
    - 시세 조회 실패(DataSourceError): 로그 후 해당 틱 건너뜀
    - 가격 파싱 실패: 전략이 HOLD 반환 → 주문 없음
    - 주문 실패(FAILED): 로그, 저장하지 않음, 포지션 변경 없음
    - 저장 실패(OrderStoreError): 로그 (포지션은 체결 기준으로 갱신)

[ 호출하는 곳 ]
    - run_trader.py (진입점)
"""

import logging
import time
from typing import Callable, Optional

from trading_bot.core.broker_api import BrokerAPI, Order, OrderRepository, OrderStatus
from trading_bot.core.data_provider import DataProvider
from trading_bot.core.exceptions import DataSourceError, OrderStoreError
from trading_bot.core.trading_strategy import SignalType, TradingStrategy
from trading_bot.data.portfolio import Position, PositionStatus


class LiveTrader:
    """폴링 기반 라이브 트레이더."""

    def __init__(
        self,
        provider: DataProvider,
        strategy: TradingStrategy,
        broker: BrokerAPI,
        order_store: OrderRepository,
        symbol: str,
        polling_interval: float = 60,
        logger: logging.Logger | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.provider = provider
        self.strategy = strategy
        self.broker = broker
        self.order_store = order_store
        self.symbol = symbol
        self.polling_interval = polling_interval
        self.logger = logger or logging.getLogger("trading_bot.live")
        self._sleep = sleep

        self.position = Position()
        self.ticks = 0

    def tick(self) -> Optional[Order]:
        """시세 1회 조회 → 분석 → (필요 시) 주문 → 저장."""
        self.ticks += 1
        try:
            observation = self.provider.fetch_price(self.symbol)
        except DataSourceError as e:
            self.logger.error(f"시세 조회 실패: {e}")
            return None

        signal = self.strategy.analyze(observation)

        if signal.signal_type == SignalType.HOLD:
            self.logger.info(f"[{self.symbol}] 시그널 없음 ({signal.reason})")
            return None
        if signal.signal_type == SignalType.BUY and self.position.is_long:
            self.logger.info(f"[{self.symbol}] 이미 보유 중, 매수 시그널 무시")
            return None
        if signal.signal_type == SignalType.SELL and not self.position.is_long:
            self.logger.info(f"[{self.symbol}] 보유 없음, 매도 시그널 무시")
            return None

        self.logger.info(f"[{self.symbol}] 시그널: {signal.signal_type.value} ({signal.reason})")
        order = self.broker.place_order(signal)
        if order.status != OrderStatus.FILLED:
            self.logger.error(f"주문 실패: {order.order_id} {order.message}")
            return order

        self._apply_fill(signal.signal_type, order)
        self.logger.info(
            f"주문 체결: {order.order_id} {order.side.value} {order.quantity} @ {order.price:,.2f}"
        )

        try:
            self.order_store.save(order)
        except OrderStoreError as e:
            self.logger.error(f"주문 저장 실패: {e}")
        return order

    def _apply_fill(self, signal_type: SignalType, order: Order) -> None:
        if signal_type == SignalType.BUY:
            self.position.status = PositionStatus.LONG
            self.position.entry_price = order.price
            self.position.quantity = order.quantity
        else:
            self.position.reset()

    def run(self, max_ticks: Optional[int] = None) -> None:
        """폴링 루프. max_ticks가 None이면 중단될 때까지 반복."""
        self.logger.info(f"라이브 트레이딩 시작: {self.symbol} (주기 {self.polling_interval}초)")
        executed = 0
        while max_ticks is None or executed < max_ticks:
            self.tick()
            executed += 1
            if max_ticks is not None and executed >= max_ticks:
                break
            self.logger.debug(f"{self.polling_interval}초 대기...")
            self._sleep(self.polling_interval)
        self.logger.info(f"라이브 트레이딩 종료 ({executed}틱)")
