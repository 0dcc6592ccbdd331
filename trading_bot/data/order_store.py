"""
주문 저장소 구현.

[ 역할 ]
    core/broker_api.py::OrderRepository 구현체.
    라이브 트레이더가 체결된 주문을 기록할 때 사용.

[ 구현체 ]
    InMemoryOrderRepository  - 리스트에 보관 (모의 매매/테스트용)
    ClickHouseOrderRepository - ClickHouse orders 테이블에 INSERT

[ 호출하는 곳 ]
    - live/trader.py::LiveTrader.tick()
"""

import logging
from typing import Optional

from clickhouse_connect.driver import Client
from clickhouse_connect.driver.exceptions import ClickHouseError

from trading_bot.core.broker_api import Order, OrderRepository
from trading_bot.core.exceptions import OrderStoreError
from trading_bot.ingestion.clickhouse_schema import get_client

logger = logging.getLogger("trading_bot.data")

ORDER_COLUMNS = [
    "order_id", "symbol", "side", "quantity", "price",
    "commission", "status", "message", "created_at",
]


class InMemoryOrderRepository(OrderRepository):
    """메모리 주문 저장소."""

    def __init__(self):
        self.orders: list[Order] = []

    def save(self, order: Order) -> str:
        self.orders.append(order)
        return order.order_id


class ClickHouseOrderRepository(OrderRepository):
    """ClickHouse orders 테이블 저장소.

    테이블은 ingestion/clickhouse_schema.py::initialize_schema()로 생성한다.
    """

    def __init__(
        self,
        host: str = "localhost",
        port: int = 8123,
        database: str = "default",
        user: str = "default",
        password: str = "password",
        client: Optional[Client] = None,
    ):
        self.client: Client = client or get_client(host, port, database, user, password)

    def save(self, order: Order) -> str:
        row = [
            order.order_id,
            order.symbol,
            order.side.value,
            float(order.quantity),
            float(order.price),
            float(order.commission),
            order.status.value,
            order.message,
            order.timestamp,
        ]
        try:
            self.client.insert("orders", [row], column_names=ORDER_COLUMNS)
        except ClickHouseError as e:
            raise OrderStoreError(f"주문 저장 실패 ({order.order_id}): {e}") from e

        logger.debug(f"주문 저장: {order.order_id} {order.side.value} {order.symbol}")
        return order.order_id
