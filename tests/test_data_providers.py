"""
데이터 계층 테스트.

- core/data_provider.py::parse_price
- data/market_data.py (DataFrame 변환, 캐싱)
- data/csv_provider.py, data/clickhouse_provider.py, data/yahoo_provider.py
- brokers/mock_broker.py::MockDataProvider

외부 시스템(ClickHouse, Yahoo)은 가짜 클라이언트로 대체한다.
"""

from datetime import date, datetime
from types import SimpleNamespace
from unittest.mock import Mock

import pandas as pd
import pytest
from clickhouse_connect.driver.exceptions import ClickHouseError

from trading_bot.brokers.mock_broker import MockDataProvider
from trading_bot.core.data_provider import DataProvider, PriceObservation, parse_price
from trading_bot.core.exceptions import DataSourceError, PriceParseError
from trading_bot.data import yahoo_provider
from trading_bot.data.clickhouse_provider import ClickHouseDataProvider
from trading_bot.data.csv_provider import CsvDataProvider
from trading_bot.data.market_data import MarketDataManager, observations_from_frame
from trading_bot.data.yahoo_provider import YahooFinanceDataProvider


# =============================================================================
# parse_price
# =============================================================================

class TestParsePrice:

    @pytest.mark.parametrize("raw, expected", [
        ("71500", 71500.0),
        (" 71500.5 ", 71500.5),
        ("0", 0.0),
        ("1e3", 1000.0),
    ])
    def test_valid(self, raw, expected):
        assert parse_price(raw) == expected

    @pytest.mark.parametrize("raw", ["", "abc", "nan", "inf", "-1", "71,500", None])
    def test_invalid(self, raw):
        with pytest.raises(PriceParseError) as exc_info:
            parse_price(raw)
        assert exc_info.value.raw == raw

    def test_observation_is_immutable(self):
        obs = PriceObservation(symbol="005930", price="100")
        with pytest.raises(AttributeError):
            obs.price = "200"


# =============================================================================
# market_data
# =============================================================================

class TestObservationsFromFrame:

    def test_sorted_by_date_and_prices_as_text(self):
        df = pd.DataFrame({
            "date": ["2024-01-03", "2024-01-02", "2024-01-04"],
            "close": [101.0, 100.5, float("nan")],
        })

        series = observations_from_frame(df, "005930")

        assert [o.timestamp for o in series] == [
            datetime(2024, 1, 2), datetime(2024, 1, 3), datetime(2024, 1, 4),
        ]
        assert [o.price for o in series] == ["100.5", "101.0", ""]
        assert all(o.symbol == "005930" for o in series)

    def test_string_prices_pass_through(self):
        df = pd.DataFrame({"date": ["2024-01-02"], "close": ["n/a"]})

        assert observations_from_frame(df, "X")[0].price == "n/a"

    def test_empty_frame(self):
        assert observations_from_frame(pd.DataFrame(columns=["date", "close"]), "X") == []


class TestMarketDataManager:

    def test_history_is_cached_per_range(self):
        provider = Mock(spec=DataProvider)
        provider.fetch_history.return_value = [PriceObservation("005930", "100")]
        manager = MarketDataManager(provider)
        start, end = date(2024, 1, 1), date(2024, 1, 31)

        first = manager.get_history("005930", start, end)
        second = manager.get_history("005930", start, end)

        assert first is second
        provider.fetch_history.assert_called_once_with("005930", start, end)

        manager.get_history("005930", start, end, use_cache=False)
        manager.clear_cache()
        manager.get_history("005930", start, end)
        assert provider.fetch_history.call_count == 3


# =============================================================================
# CSV
# =============================================================================

@pytest.fixture
def csv_dir(tmp_path):
    (tmp_path / "005930.csv").write_text(
        "date,close\n"
        "2024-01-03,101\n"
        "2024-01-02,100\n"
        "2024-01-04,abc\n"
        "2024-01-05,\n",
        encoding="utf-8",
    )
    (tmp_path / "BROKEN.csv").write_text("day,price\n2024-01-02,1\n", encoding="utf-8")
    return tmp_path


class TestCsvDataProvider:

    def test_fetch_history_keeps_raw_text(self, csv_dir):
        provider = CsvDataProvider(csv_dir)

        series = provider.fetch_history("005930", date(2024, 1, 1), date(2024, 1, 4))

        assert [o.price for o in series] == ["100", "101", "abc"]
        assert series[0].timestamp == datetime(2024, 1, 2)

    def test_fetch_price_uses_last_row(self, csv_dir):
        obs = CsvDataProvider(csv_dir).fetch_price("005930")

        assert obs.price == ""
        assert obs.timestamp == datetime(2024, 1, 5)

    def test_missing_file(self, csv_dir):
        with pytest.raises(DataSourceError, match="CSV 파일 없음"):
            CsvDataProvider(csv_dir).fetch_price("NOPE")

    def test_missing_columns(self, csv_dir):
        with pytest.raises(DataSourceError, match="필수 컬럼"):
            CsvDataProvider(csv_dir).fetch_history("BROKEN", date(2024, 1, 1), date(2024, 12, 31))


# =============================================================================
# ClickHouse
# =============================================================================

class FakeClickHouseClient:
    """query()만 흉내내는 가짜 클라이언트."""

    def __init__(self, rows=None, error=None):
        self.rows = rows or []
        self.error = error
        self.queries = []

    def query(self, query, parameters=None):
        self.queries.append((query, parameters))
        if self.error:
            raise self.error
        return SimpleNamespace(result_rows=self.rows)


class TestClickHouseDataProvider:

    def test_fetch_history(self):
        client = FakeClickHouseClient(rows=[(date(2024, 1, 2), 100.5), (date(2024, 1, 3), 101.0)])
        provider = ClickHouseDataProvider(client=client)

        series = provider.fetch_history("005930.KS", date(2024, 1, 1), date(2024, 1, 31))

        assert [o.price for o in series] == ["100.5", "101.0"]
        assert series[0].timestamp == datetime(2024, 1, 2)
        query, params = client.queries[0]
        assert "adjusted_close" in query
        assert params["ticker"] == "005930.KS"

    def test_raw_close_column(self):
        client = FakeClickHouseClient(rows=[(date(2024, 1, 2), 100.0)])
        provider = ClickHouseDataProvider(client=client, use_adjusted_close=False)

        provider.fetch_price("005930.KS")

        assert "adjusted_close" not in client.queries[0][0]

    def test_fetch_price_latest_row(self):
        client = FakeClickHouseClient(rows=[(date(2024, 5, 31), 77800.0)])

        obs = ClickHouseDataProvider(client=client).fetch_price("005930.KS")

        assert obs.price == "77800.0"
        assert obs.timestamp == datetime(2024, 5, 31)

    def test_fetch_price_without_rows(self):
        provider = ClickHouseDataProvider(client=FakeClickHouseClient(rows=[]))

        with pytest.raises(DataSourceError):
            provider.fetch_price("005930.KS")

    def test_query_error_is_wrapped(self):
        provider = ClickHouseDataProvider(client=FakeClickHouseClient(error=ClickHouseError("boom")))

        with pytest.raises(DataSourceError, match="boom"):
            provider.fetch_history("005930.KS", date(2024, 1, 1), date(2024, 1, 31))

    def test_get_date_range(self):
        client = FakeClickHouseClient(rows=[(date(2020, 1, 2), date(2024, 5, 31))])

        assert ClickHouseDataProvider(client=client).get_date_range("005930.KS") == (
            date(2020, 1, 2), date(2024, 5, 31),
        )


# =============================================================================
# Yahoo Finance
# =============================================================================

def make_yahoo_frame():
    index = pd.DatetimeIndex(["2024-01-02", "2024-01-03"], name="Date").tz_localize("Asia/Seoul")
    return pd.DataFrame(
        {"Open": [1.0, 2.0], "Close": [78500.0, 77000.0], "Adj Close": [75000.0, 74000.0]},
        index=index,
    )


class FakeTicker:
    """yf.Ticker 대체. outcomes를 순서대로 반환(예외면 raise)."""

    calls = []
    outcomes = []

    def __init__(self, symbol):
        self.symbol = symbol

    def history(self, **kwargs):
        FakeTicker.calls.append(kwargs)
        outcome = FakeTicker.outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


@pytest.fixture
def fake_ticker(monkeypatch):
    FakeTicker.calls = []
    FakeTicker.outcomes = []
    monkeypatch.setattr(yahoo_provider.yf, "Ticker", FakeTicker)
    return FakeTicker


class TestYahooFinanceDataProvider:

    def test_fetch_history_standardizes_frame(self, fake_ticker):
        fake_ticker.outcomes = [make_yahoo_frame()]
        provider = YahooFinanceDataProvider(sleep=lambda s: None)

        series = provider.fetch_history("005930.KS", date(2024, 1, 2), date(2024, 1, 3))

        assert [o.price for o in series] == ["78500.0", "77000.0"]
        assert series[0].timestamp == datetime(2024, 1, 2)
        assert fake_ticker.calls[0]["start"] == date(2024, 1, 2)
        assert fake_ticker.calls[0]["end"] == date(2024, 1, 4)

    def test_adjusted_close(self, fake_ticker):
        fake_ticker.outcomes = [make_yahoo_frame()]
        provider = YahooFinanceDataProvider(use_adjusted_close=True, sleep=lambda s: None)

        obs = provider.fetch_price("005930.KS")

        assert obs.price == "74000.0"
        assert fake_ticker.calls[0]["period"] == "5d"

    def test_retries_then_succeeds(self, fake_ticker):
        fake_ticker.outcomes = [ConnectionError("down"), ConnectionError("down"), make_yahoo_frame()]
        sleeps = []
        provider = YahooFinanceDataProvider(max_retries=3, retry_delay=5, sleep=sleeps.append)

        obs = provider.fetch_price("005930.KS")

        assert obs.price == "77000.0"
        assert sleeps == [5, 5]

    def test_max_retries_reached(self, fake_ticker):
        fake_ticker.outcomes = [ConnectionError("down")] * 3
        sleeps = []
        provider = YahooFinanceDataProvider(max_retries=3, retry_delay=1, sleep=sleeps.append)

        with pytest.raises(DataSourceError, match="Max retries"):
            provider.fetch_price("005930.KS")
        assert sleeps == [1, 1]

    def test_empty_result_is_not_retried(self, fake_ticker):
        fake_ticker.outcomes = [pd.DataFrame()]
        provider = YahooFinanceDataProvider(sleep=lambda s: None)

        with pytest.raises(DataSourceError, match="No data"):
            provider.fetch_price("UNKNOWN")
        assert len(fake_ticker.calls) == 1


# =============================================================================
# MockDataProvider
# =============================================================================

class TestMockDataProvider:

    @pytest.fixture
    def provider(self):
        provider = MockDataProvider()
        provider.load_data("005930", pd.DataFrame({
            "date": ["2024-01-03", "2024-01-02", "2024-01-04"],
            "close": [101.0, 100.0, 102.0],
        }))
        return provider

    def test_fetch_price_replays_in_order(self, provider):
        prices = [provider.fetch_price("005930").price for _ in range(3)]

        assert prices == ["100.0", "101.0", "102.0"]
        with pytest.raises(DataSourceError):
            provider.fetch_price("005930")

    def test_fetch_history_filters_range(self, provider):
        series = provider.fetch_history("005930", date(2024, 1, 3), date(2024, 1, 4))

        assert [o.price for o in series] == ["101.0", "102.0"]

    def test_unknown_symbol(self, provider):
        with pytest.raises(DataSourceError):
            provider.fetch_history("000660", date(2024, 1, 1), date(2024, 1, 31))
        assert provider.get_tickers() == ["005930"]
