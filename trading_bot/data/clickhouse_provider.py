"""
ClickHouse 기반 DataProvider 구현.

[ 역할 ]
    ClickHouse stock_ohlcv 테이블에 저장된 시세를 조회하여 백테스트/라이브에 제공.

[ 의존성 ]
    - core/data_provider.py::DataProvider (추상 클래스)
    - ingestion/clickhouse_schema.py (ClickHouse 연결 및 스키마)

[ 호출하는 곳 ]
    - run_backtest.py (--source clickhouse 옵션 사용 시)
"""

import logging
from datetime import date
from typing import Optional

import pandas as pd
from clickhouse_connect.driver import Client
from clickhouse_connect.driver.exceptions import ClickHouseError

from trading_bot.core.data_provider import DataProvider, PriceObservation
from trading_bot.core.exceptions import DataSourceError
from trading_bot.data.market_data import observations_from_frame
from trading_bot.ingestion.clickhouse_schema import get_client, get_date_range

logger = logging.getLogger("trading_bot.data")


class ClickHouseDataProvider(DataProvider):
    """ClickHouse 기반 데이터 제공자.

    사용 예:
        provider = ClickHouseDataProvider('localhost', 8123, 'default', password='password')
        series = provider.fetch_history('005930.KS', date(2024, 1, 1), date(2024, 12, 31))
    """

    def __init__(
        self,
        host: str = "localhost",
        port: int = 8123,
        database: str = "default",
        user: str = "default",
        password: str = "password",
        use_adjusted_close: bool = True,
        client: Optional[Client] = None,
    ):
        """
        Args:
            host: ClickHouse 호스트
            port: HTTP 포트 (기본값: 8123)
            database: 데이터베이스 이름
            user: 사용자 이름
            password: 비밀번호
            use_adjusted_close: True이면 adjusted_close를 사용, False이면 close 사용
            client: 이미 생성된 클라이언트 (주입 시 연결 정보 무시)
        """
        self.client: Client = client or get_client(host, port, database, user, password)
        self.use_adjusted_close = use_adjusted_close

    @property
    def close_column(self) -> str:
        return "adjusted_close" if self.use_adjusted_close else "close"

    def _query(self, query: str, parameters: dict) -> list:
        try:
            return self.client.query(query, parameters=parameters).result_rows
        except ClickHouseError as e:
            raise DataSourceError(f"ClickHouse 조회 실패: {e}") from e

    def fetch_history(
        self,
        symbol: str,
        start_date: date,
        end_date: date,
    ) -> list[PriceObservation]:
        query = f"""
            SELECT
                date,
                {self.close_column} as close
            FROM stock_ohlcv
            WHERE ticker = %(ticker)s
              AND date >= %(start_date)s
              AND date <= %(end_date)s
            ORDER BY date ASC
        """
        rows = self._query(query, {"ticker": symbol, "start_date": start_date, "end_date": end_date})
        df = pd.DataFrame(rows, columns=["date", "close"])
        series = observations_from_frame(df, symbol)
        logger.info(f"{symbol}: ClickHouse에서 {len(series)}개 관측치 로드")
        return series

    def fetch_price(self, symbol: str) -> PriceObservation:
        """ClickHouse는 실시간 데이터가 아니므로 가장 최근 날짜의 종가를 반환."""
        query = f"""
            SELECT
                date,
                {self.close_column} as close
            FROM stock_ohlcv
            WHERE ticker = %(ticker)s
            ORDER BY date DESC
            LIMIT 1
        """
        rows = self._query(query, {"ticker": symbol})
        if not rows:
            raise DataSourceError(f"No data found for ticker: {symbol}")

        row_date, close = rows[0]
        timestamp = pd.Timestamp(row_date).to_pydatetime()
        return PriceObservation(symbol=symbol, price=repr(float(close)), timestamp=timestamp)

    def get_date_range(self, symbol: str) -> Optional[tuple[date, date]]:
        """특정 종목의 저장된 날짜 범위."""
        return get_date_range(self.client, symbol)

    def close(self):
        """ClickHouse 연결 종료."""
        if hasattr(self.client, 'close'):
            self.client.close()
