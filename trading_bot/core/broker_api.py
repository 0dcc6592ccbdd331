"""
증권사 API / 주문 저장소 추상 클래스 정의.

[ 역할 ]
    증권사와의 통신, 체결된 주문의 영속화를 추상화하는 인터페이스 정의.
    실제 증권사(한투, 키움 등) 교체 시 BrokerAPI만 구현하면 됨.

[ 구현체 ]
    - brokers/mock_broker.py::MockBroker                 (모의 체결)
    - data/order_store.py::InMemoryOrderRepository       (메모리)
    - data/order_store.py::ClickHouseOrderRepository     (ClickHouse orders 테이블)

[ 호출하는 곳 ]
    - live/trader.py::LiveTrader.tick()에서 place_order() → save()
    - 백테스트는 주문을 내지 않는다 (결과는 읽기 전용 요약)
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional

from trading_bot.core.trading_strategy import Signal, SignalType


# ─── 주문 관련 Enum / Dataclass ─────────────────────────────────────────────

class OrderSide(Enum):
    BUY = "buy"
    SELL = "sell"


class OrderStatus(Enum):
    """주문 상태 추적용."""
    PENDING = "pending"
    FILLED = "filled"
    CANCELLED = "cancelled"
    FAILED = "failed"


@dataclass
class Order:
    """buy_order(), sell_order()의 반환값. 주문 체결 결과를 담는다."""
    order_id: str
    symbol: str
    side: OrderSide
    quantity: float        # 요청 수량
    price: float           # 체결 가격 (실패 시 요청 가격)
    status: OrderStatus
    timestamp: datetime
    commission: float = 0.0
    message: str = ""


# ─── 추상 클래스 ────────────────────────────────────────────────────────────

class BrokerAPI(ABC):
    """증권사 API 추상 클래스.

    모든 증권사 구현체는 이 클래스를 상속받아 아래 메서드를 구현해야 한다.
    """

    @abstractmethod
    def connect(self) -> bool:
        """API 연결."""
        ...

    @abstractmethod
    def disconnect(self) -> None:
        """API 연결 해제."""
        ...

    @abstractmethod
    def get_balance(self) -> float:
        """잔고(가용 현금) 조회."""
        ...

    @abstractmethod
    def get_current_price(self, symbol: str) -> float:
        """현재가 조회."""
        ...

    @abstractmethod
    def buy_order(self, symbol: str, quantity: float, price: Optional[float] = None) -> Order:
        """매수 주문.

        Args:
            symbol: 종목 코드
            quantity: 주문 수량
            price: 주문 가격 (None이면 현재가)
        """
        ...

    @abstractmethod
    def sell_order(self, symbol: str, quantity: float, price: Optional[float] = None) -> Order:
        """매도 주문.

        Args:
            symbol: 종목 코드
            quantity: 주문 수량
            price: 주문 가격 (None이면 현재가)
        """
        ...

    def place_order(self, signal: Signal) -> Order:
        """시그널을 주문으로 변환하여 실행.

        Raises:
            ValueError: HOLD 시그널
        """
        price = signal.price or None
        if signal.signal_type == SignalType.BUY:
            return self.buy_order(signal.symbol, signal.quantity, price)
        if signal.signal_type == SignalType.SELL:
            return self.sell_order(signal.symbol, signal.quantity, price)
        raise ValueError(f"주문으로 변환할 수 없는 시그널: {signal.signal_type.value}")


class OrderRepository(ABC):
    """주문 저장소 추상 클래스."""

    @abstractmethod
    def save(self, order: Order) -> str:
        """주문 저장. 저장된 주문 ID 반환.

        Raises:
            OrderStoreError: 저장 실패
        """
        ...
