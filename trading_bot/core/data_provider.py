"""
시세 데이터 제공 추상 클래스 정의.

[ 역할 ]
    현재가 / 과거 시세를 PriceObservation 단위로 제공하는 인터페이스.
    데이터 소스(파일, API, DB 등)에 독립적으로 전략/백테스트에 데이터 공급.

[ 구현체 ]
    - brokers/mock_broker.py::MockDataProvider      (DataFrame 기반, 테스트용)
    - data/csv_provider.py::CsvDataProvider         (CSV 파일)
    - data/clickhouse_provider.py::ClickHouseDataProvider
    - data/yahoo_provider.py::YahooFinanceDataProvider

[ 호출하는 곳 ]
    - run_backtest.py에서 fetch_history()로 백테스트 시계열 로드
    - live/trader.py::LiveTrader가 매 틱마다 fetch_price() 호출

[ 가격 표현 ]
    증권사 API는 가격을 문자열로 내려준다 (예: "71500").
    PriceObservation은 원문 문자열을 그대로 들고 있고,
    parse_price()로 변환할 때 검증한다.
"""

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from trading_bot.core.exceptions import PriceParseError


@dataclass(frozen=True)
class PriceObservation:
    """단일 시세 관측치. 생성 후 변경 불가."""
    symbol: str
    price: str                            # 원문 가격 문자열
    timestamp: Optional[datetime] = None  # 관측 시각 (없을 수 있음)


def parse_price(raw: str) -> float:
    """가격 문자열을 float로 변환.

    Raises:
        PriceParseError: 숫자가 아니거나, NaN/무한대이거나, 음수인 경우
    """
    try:
        price = float(str(raw).strip())
    except (TypeError, ValueError):
        raise PriceParseError(raw) from None

    if not math.isfinite(price):
        raise PriceParseError(raw, f"유한하지 않은 가격: {raw!r}")
    if price < 0:
        raise PriceParseError(raw, f"음수 가격: {raw!r}")
    return price


class DataProvider(ABC):
    """시세 데이터 제공 추상 클래스.

    모든 데이터 제공자 구현체는 이 클래스를 상속받아 아래 메서드를 구현해야 한다.
    """

    @abstractmethod
    def fetch_price(self, symbol: str) -> PriceObservation:
        """현재가 조회.

        Raises:
            DataSourceError: 조회 실패
        """
        ...

    @abstractmethod
    def fetch_history(
        self,
        symbol: str,
        start_date: date,
        end_date: date,
    ) -> list[PriceObservation]:
        """과거 시세 조회.

        Args:
            symbol: 종목 코드
            start_date: 시작일 (포함)
            end_date: 종료일 (포함)

        Returns:
            시간순으로 정렬된 PriceObservation 리스트

        Raises:
            DataSourceError: 조회 실패
        """
        ...
