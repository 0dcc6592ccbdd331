"""
Yahoo Finance 기반 DataProvider 구현.

[ 역할 ]
    yfinance로 과거 시세/최근 종가를 조회하여 PriceObservation으로 변환.
    일시적인 네트워크 오류에 대비해 max_retries번 재시도한다.

[ 호출하는 곳 ]
    - run_backtest.py (--source yahoo)
    - run_trader.py (--source yahoo, 라이브 폴링)
"""

import logging
import time
from datetime import date, timedelta
from typing import Callable

import pandas as pd
import yfinance as yf

from trading_bot.core.data_provider import DataProvider, PriceObservation
from trading_bot.core.exceptions import DataSourceError
from trading_bot.data.market_data import observations_from_frame

logger = logging.getLogger("trading_bot.data")


class YahooFinanceDataProvider(DataProvider):
    """Yahoo Finance 데이터 제공자.

    사용 예:
        provider = YahooFinanceDataProvider(max_retries=3, retry_delay=5)
        series = provider.fetch_history("005930.KS", date(2024, 1, 1), date(2024, 12, 31))
    """

    def __init__(
        self,
        max_retries: int = 3,
        retry_delay: float = 5,
        use_adjusted_close: bool = False,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.use_adjusted_close = use_adjusted_close
        self._sleep = sleep

    def _download(self, symbol: str, **history_kwargs) -> pd.DataFrame:
        """Ticker.history() 호출 + 재시도. 컬럼을 date/close로 표준화해서 반환."""
        last_error: Exception | None = None
        for attempt in range(self.max_retries):
            try:
                logger.info(f"Fetching {symbol} {history_kwargs} (attempt {attempt + 1}/{self.max_retries})")
                df = yf.Ticker(symbol).history(auto_adjust=False, actions=False, **history_kwargs)
            except Exception as e:
                last_error = e
                logger.error(f"Error fetching {symbol} (attempt {attempt + 1}/{self.max_retries}): {e}")
                if attempt < self.max_retries - 1:
                    logger.info(f"Retrying in {self.retry_delay} seconds...")
                    self._sleep(self.retry_delay)
                continue

            if df is None or df.empty:
                raise DataSourceError(f"No data found for {symbol}")
            return self._standardize(df)

        raise DataSourceError(f"Max retries reached for {symbol}: {last_error}")

    def _standardize(self, df: pd.DataFrame) -> pd.DataFrame:
        df = df.reset_index()
        date_column = "Date" if "Date" in df.columns else "Datetime"
        close_column = "Adj Close" if self.use_adjusted_close and "Adj Close" in df.columns else "Close"
        df = df.rename(columns={date_column: "date", close_column: "close"})[["date", "close"]].copy()

        # timezone 제거
        if isinstance(df["date"].dtype, pd.DatetimeTZDtype):
            df["date"] = df["date"].dt.tz_localize(None)
        return df

    def fetch_history(
        self,
        symbol: str,
        start_date: date,
        end_date: date,
    ) -> list[PriceObservation]:
        df = self._download(
            symbol,
            start=start_date,
            end=end_date + timedelta(days=1),  # end_date 포함
        )
        series = observations_from_frame(df, symbol)
        logger.info(f"Successfully fetched {len(series)} rows for {symbol}")
        return series

    def fetch_price(self, symbol: str) -> PriceObservation:
        """최근 종가를 현재가로 사용."""
        df = self._download(symbol, period="5d")
        return observations_from_frame(df.tail(1), symbol)[0]
