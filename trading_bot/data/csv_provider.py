"""
CSV 파일 기반 DataProvider 구현.

[ 역할 ]
    {data_dir}/{symbol}.csv 파일(date, close 컬럼)에서 시세를 읽는다.
    가격은 문자열 그대로 읽어서, 깨진 행도 엔진까지 전달되게 한다.

[ 호출하는 곳 ]
    - run_backtest.py (--source csv 옵션 사용 시)
"""

import logging
from datetime import date
from pathlib import Path

import pandas as pd

from trading_bot.core.data_provider import DataProvider, PriceObservation
from trading_bot.core.exceptions import DataSourceError
from trading_bot.data.market_data import observations_from_frame

logger = logging.getLogger("trading_bot.data")


class CsvDataProvider(DataProvider):
    """CSV 기반 데이터 제공자.

    사용 예:
        provider = CsvDataProvider("data")
        series = provider.fetch_history("005930", date(2024, 1, 1), date(2024, 12, 31))
    """

    def __init__(self, data_dir: str | Path, price_column: str = "close"):
        self.data_dir = Path(data_dir)
        self.price_column = price_column

    def _path(self, symbol: str) -> Path:
        return self.data_dir / f"{symbol}.csv"

    def _load(self, symbol: str) -> pd.DataFrame:
        path = self._path(symbol)
        if not path.exists():
            raise DataSourceError(f"CSV 파일 없음: {path}")

        df = pd.read_csv(path, dtype={self.price_column: str}, keep_default_na=False)
        missing = {"date", self.price_column} - set(df.columns)
        if missing:
            raise DataSourceError(f"{path}: 필수 컬럼 없음 {sorted(missing)}")

        df["date"] = pd.to_datetime(df["date"])
        return df.sort_values("date", kind="stable").reset_index(drop=True)

    def fetch_history(
        self,
        symbol: str,
        start_date: date,
        end_date: date,
    ) -> list[PriceObservation]:
        df = self._load(symbol)
        mask = (df["date"].dt.date >= start_date) & (df["date"].dt.date <= end_date)
        series = observations_from_frame(df[mask], symbol, price_column=self.price_column)
        logger.info(f"{symbol}: CSV에서 {len(series)}개 관측치 로드")
        return series

    def fetch_price(self, symbol: str) -> PriceObservation:
        """파일의 마지막 행을 현재가로 사용."""
        df = self._load(symbol)
        if df.empty:
            raise DataSourceError(f"{symbol}: CSV에 데이터 없음")
        return observations_from_frame(df.tail(1), symbol, price_column=self.price_column)[0]
