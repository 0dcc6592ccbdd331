"""
시장 데이터 관리 모듈.

[ 역할 ]
    - observations_from_frame(): date/close DataFrame → PriceObservation 리스트 변환
    - MarketDataManager: DataProvider를 감싸서 과거 시세 캐싱

[ 의존성 ]
    - core/data_provider.py::DataProvider (데이터 소스 추상화)

[ 호출하는 곳 ]
    - data/*_provider.py, brokers/mock_broker.py에서 DataFrame 변환 시
    - run_backtest.py에서 동일 데이터 반복 조회 시 (전략 비교 등)
"""

from datetime import date, datetime
from typing import Optional

import pandas as pd

from trading_bot.core.data_provider import DataProvider, PriceObservation


def _to_datetime(value) -> Optional[datetime]:
    if value is None or (not isinstance(value, str) and pd.isna(value)):
        return None
    return pd.Timestamp(value).to_pydatetime()


def _to_price_text(value) -> str:
    """가격 셀을 문자열로. 결측치는 빈 문자열 (→ 파싱 실패로 처리됨)."""
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if pd.isna(value):
        return ""
    return repr(float(value))


def observations_from_frame(
    df: pd.DataFrame,
    symbol: str,
    price_column: str = "close",
    date_column: str = "date",
) -> list[PriceObservation]:
    """DataFrame을 시간순 PriceObservation 리스트로 변환.

    가격 셀은 검증하지 않고 문자열 그대로 싣는다. 잘못된 값은
    엔진/전략의 parse_price()에서 걸러진다.
    """
    if df.empty:
        return []

    frame = df
    if date_column in frame.columns:
        frame = frame.sort_values(date_column, kind="stable")

    observations = []
    for _, row in frame.iterrows():
        timestamp = _to_datetime(row[date_column]) if date_column in frame.columns else None
        observations.append(PriceObservation(
            symbol=symbol,
            price=_to_price_text(row[price_column]),
            timestamp=timestamp,
        ))
    return observations


class MarketDataManager:
    """DataProvider 위에 캐싱 레이어를 추가한 매니저.

    사용 예:
        provider = CsvDataProvider("data/")
        manager = MarketDataManager(provider)
        series = manager.get_history("005930", start, end)
    """

    def __init__(self, data_provider: DataProvider):
        self.provider = data_provider
        self._cache: dict[str, list[PriceObservation]] = {}  # "symbol_start_end" → 관측치

    def get_history(
        self,
        symbol: str,
        start_date: date,
        end_date: date,
        use_cache: bool = True,
    ) -> list[PriceObservation]:
        """과거 시세 조회 (캐싱 지원)."""
        cache_key = f"{symbol}_{start_date}_{end_date}"

        if use_cache and cache_key in self._cache:
            return self._cache[cache_key]

        series = self.provider.fetch_history(symbol, start_date, end_date)
        if use_cache:
            self._cache[cache_key] = series
        return series

    def clear_cache(self) -> None:
        """캐시 초기화."""
        self._cache.clear()
