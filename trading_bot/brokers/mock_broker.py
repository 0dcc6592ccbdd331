"""
테스트/모의매매용 Mock 브로커 및 데이터 제공자 구현.

[ 역할 ]
    실제 증권사 API 없이 매매를 시뮬레이션.
    요청 가격 그대로 체결하고 고정 비율 수수료만 적용한다.

[ 포함 클래스 ]
    MockDataProvider - core/data_provider.py::DataProvider 구현체
                       미리 로드된 DataFrame에서 시세 제공,
                       fetch_price()는 호출마다 한 틱씩 전진

    MockBroker       - core/broker_api.py::BrokerAPI 구현체
                       가상 잔고로 매수/매도 시뮬레이션

[ 호출하는 곳 ]
    - run_trader.py에서 모의매매 브로커로 사용
    - run_backtest.py --source sample 에서 샘플 데이터 제공
    - 단위 테스트에서 MockBroker/MockDataProvider 활용
"""

import uuid
from datetime import date, datetime
from typing import Optional

import pandas as pd

from trading_bot.core.broker_api import BrokerAPI, Order, OrderSide, OrderStatus
from trading_bot.core.data_provider import DataProvider, PriceObservation
from trading_bot.core.exceptions import DataSourceError
from trading_bot.data.market_data import observations_from_frame


# ─── Mock 데이터 제공자 ──────────────────────────────────────────────────────

class MockDataProvider(DataProvider):
    """DataFrame 기반 Mock 데이터 제공자.

    사용법:
        provider = MockDataProvider()
        provider.load_data("005930", samsung_df)   # date, close 컬럼
        series = provider.fetch_history("005930", start, end)
        tick = provider.fetch_price("005930")      # 첫 행부터 한 틱씩
    """

    def __init__(self):
        self._data: dict[str, pd.DataFrame] = {}   # symbol → date/close DataFrame
        self._cursor: dict[str, int] = {}          # symbol → 다음 fetch_price 위치

    def load_data(self, symbol: str, df: pd.DataFrame) -> None:
        """데이터 로드. 날짜순 정렬 후 보관."""
        df = df.copy()
        if "date" in df.columns:
            df["date"] = pd.to_datetime(df["date"])
            df = df.sort_values("date", kind="stable")
        self._data[symbol] = df.reset_index(drop=True)
        self._cursor[symbol] = 0

    def fetch_history(
        self,
        symbol: str,
        start_date: date,
        end_date: date,
    ) -> list[PriceObservation]:
        if symbol not in self._data:
            raise DataSourceError(f"No data for {symbol}")

        df = self._data[symbol]
        mask = (df["date"].dt.date >= start_date) & (df["date"].dt.date <= end_date)
        return observations_from_frame(df[mask], symbol)

    def fetch_price(self, symbol: str) -> PriceObservation:
        if symbol not in self._data:
            raise DataSourceError(f"No data for {symbol}")

        position = self._cursor[symbol]
        df = self._data[symbol]
        if position >= len(df):
            raise DataSourceError(f"{symbol}: 더 이상 재생할 시세가 없습니다")

        self._cursor[symbol] = position + 1
        return observations_from_frame(df.iloc[[position]], symbol)[0]

    def get_tickers(self) -> list[str]:
        """로드된 종목 목록."""
        return list(self._data.keys())


# ─── Mock 브로커 ─────────────────────────────────────────────────────────────

class MockBroker(BrokerAPI):
    """Mock 브로커. 실제 주문 없이 가상 잔고로 매매 시뮬레이션.

    매수 시: 체결금액 + 체결금액 * commission_rate 만큼 현금 차감
    매도 시: 체결금액 - 체결금액 * commission_rate 만큼 현금 증가
    잔고/보유수량 부족은 예외 대신 FAILED 주문으로 반환
    """

    def __init__(
        self,
        initial_cash: float = 10_000_000,
        commission_rate: float = 0.0025,
    ):
        self.initial_cash = initial_cash
        self.cash = initial_cash
        self.commission_rate = commission_rate

        self._holdings: dict[str, float] = {}     # symbol → 보유 수량
        self._orders: dict[str, Order] = {}       # order_id → Order
        self._prices: dict[str, float] = {}       # symbol → 현재가 (set_price로 설정)
        self._connected = False

    @property
    def connected(self) -> bool:
        return self._connected

    def connect(self) -> bool:
        self._connected = True
        return True

    def disconnect(self) -> None:
        self._connected = False

    def set_price(self, symbol: str, price: float) -> None:
        """종목 현재가 설정 (시뮬레이션용)."""
        self._prices[symbol] = price

    def get_balance(self) -> float:
        return self.cash

    def get_holding(self, symbol: str) -> float:
        return self._holdings.get(symbol, 0.0)

    def get_current_price(self, symbol: str) -> float:
        return self._prices.get(symbol, 0.0)

    def _new_order(
        self,
        symbol: str,
        side: OrderSide,
        quantity: float,
        price: float,
        status: OrderStatus,
        commission: float = 0.0,
        message: str = "",
    ) -> Order:
        order = Order(
            order_id=str(uuid.uuid4())[:8],
            symbol=symbol,
            side=side,
            quantity=quantity,
            price=price,
            status=status,
            timestamp=datetime.now(),
            commission=commission,
            message=message,
        )
        self._orders[order.order_id] = order
        return order

    def buy_order(self, symbol: str, quantity: float, price: Optional[float] = None) -> Order:
        if price is None:
            price = self.get_current_price(symbol)
        if price <= 0 or quantity <= 0:
            return self._new_order(symbol, OrderSide.BUY, quantity, price, OrderStatus.FAILED,
                                   message="Invalid price or quantity")

        amount = price * quantity
        commission = amount * self.commission_rate
        if amount + commission > self.cash:
            return self._new_order(symbol, OrderSide.BUY, quantity, price, OrderStatus.FAILED,
                                   message="Insufficient cash")

        self.cash -= amount + commission
        self._holdings[symbol] = self.get_holding(symbol) + quantity
        return self._new_order(symbol, OrderSide.BUY, quantity, price, OrderStatus.FILLED,
                               commission=commission)

    def sell_order(self, symbol: str, quantity: float, price: Optional[float] = None) -> Order:
        if price is None:
            price = self.get_current_price(symbol)
        if self.get_holding(symbol) < quantity or quantity <= 0:
            return self._new_order(symbol, OrderSide.SELL, quantity, price, OrderStatus.FAILED,
                                   message="Insufficient holdings")

        amount = price * quantity
        commission = amount * self.commission_rate
        self.cash += amount - commission

        remaining = self.get_holding(symbol) - quantity
        if remaining > 0:
            self._holdings[symbol] = remaining
        else:
            del self._holdings[symbol]
        return self._new_order(symbol, OrderSide.SELL, quantity, price, OrderStatus.FILLED,
                               commission=commission)

    def get_order_status(self, order_id: str) -> Optional[Order]:
        return self._orders.get(order_id)
