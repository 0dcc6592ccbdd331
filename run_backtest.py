"""
백테스트 실행 스크립트 (시스템 진입점).

[ 사용법 ]
    # 기본 실행 (config.yaml의 전략, 샘플 데이터)
    python run_backtest.py

    # 파라미터 오버라이드
    python run_backtest.py -p short_period=20 -p long_period=60 -p threshold=0.005

    # 데이터 소스 지정
    python run_backtest.py --source csv --csv-dir data
    python run_backtest.py --source clickhouse
    python run_backtest.py --source yahoo --symbol 005930.KS

    # 리포트 JSON 저장
    python run_backtest.py --report report.json

    # 등록된 전략 목록 확인
    python run_backtest.py --list
"""

import argparse
import json
import logging
from datetime import date
from pathlib import Path

import numpy as np
import pandas as pd

from trading_bot.backtest.engine import BacktestEngine
from trading_bot.backtest.metrics import BacktestResult
from trading_bot.brokers.mock_broker import MockDataProvider
from trading_bot.core.data_provider import DataProvider, PriceObservation
from trading_bot.core.exceptions import ConfigurationError, DataSourceError
from trading_bot.strategies import create_strategy, list_strategies
from trading_bot.utils.config import Config
from trading_bot.utils.logger import setup_logger


def generate_sample_data(
    start_date: date,
    end_date: date,
    initial_price: float = 70000,
    volatility: float = 0.02,
    seed: int = 42,
) -> pd.DataFrame:
    """백테스트용 샘플 종가 데이터 생성 (date, close)."""
    rng = np.random.default_rng(seed)

    dates = pd.bdate_range(start=start_date, end=end_date)
    returns = rng.normal(0.0002, volatility, len(dates))
    prices = initial_price * np.cumprod(1 + returns)

    return pd.DataFrame({
        "date": dates,
        "close": np.round(prices, 0),
    })


def parse_param(param_str: str) -> tuple[str, object]:
    """'key=value' 문자열을 파싱하여 (key, value) 반환. 숫자면 자동 변환."""
    key, _, value = param_str.partition("=")
    key = key.strip()
    value = value.strip()

    # 숫자 자동 변환
    try:
        if "." in value or "e" in value.lower():
            return key, float(value)
        return key, int(value)
    except ValueError:
        # bool 변환
        if value.lower() in ("true", "yes"):
            return key, True
        if value.lower() in ("false", "no"):
            return key, False
        return key, value


def build_provider(config: Config, source: str, csv_dir: str = "data") -> DataProvider:
    """데이터 소스 이름으로 DataProvider 생성."""
    if source == "sample":
        provider = MockDataProvider()
        provider.load_data(config.strategy.symbol, generate_sample_data(
            start_date=date.fromisoformat(config.backtest.start_date),
            end_date=date.fromisoformat(config.backtest.end_date),
        ))
        return provider

    if source == "csv":
        from trading_bot.data.csv_provider import CsvDataProvider
        return CsvDataProvider(csv_dir)

    if source == "clickhouse":
        from trading_bot.data.clickhouse_provider import ClickHouseDataProvider
        db = config.database
        return ClickHouseDataProvider(
            host=db.host,
            port=db.port,
            database=db.database,
            user=db.user,
            password=db.password,
            use_adjusted_close=db.use_adjusted_close,
        )

    if source == "yahoo":
        from trading_bot.data.yahoo_provider import YahooFinanceDataProvider
        return YahooFinanceDataProvider(
            max_retries=config.trader.max_retries,
            retry_delay=config.trader.retry_delay,
        )

    raise ConfigurationError(f"알 수 없는 데이터 소스: {source}")


def load_series(config: Config, provider: DataProvider) -> list[PriceObservation]:
    """설정 기간의 시세 로드."""
    start = date.fromisoformat(config.backtest.start_date)
    end = date.fromisoformat(config.backtest.end_date)
    return provider.fetch_history(config.strategy.symbol, start, end)


def run_single(
    config: Config,
    strategy_name: str,
    strategy_params: dict,
    series: list[PriceObservation],
    logger: logging.Logger | None = None,
) -> tuple[BacktestResult, dict]:
    """단일 전략 백테스트 실행. (결과, 리포트) 반환."""
    strategy = create_strategy(strategy_name, params=strategy_params, logger=logger)

    engine = BacktestEngine(
        strategy=strategy,
        series=series,
        initial_cash=config.backtest.initial_cash,
        commission_rate=config.backtest.commission_rate,
        logger=logger,
    )
    result = engine.run()
    return result, engine.generate_report()


def print_single_result(strategy_name: str, result: BacktestResult, report: dict):
    """단일 전략 결과 출력."""
    print(f"\n[전략: {strategy_name}]")
    print(result.summary())

    if report["skipped_observations"]:
        print(f"\n파싱 실패로 건너뛴 관측치: {report['skipped_observations']}개")

    sell_trades = [t for t in report["trades"] if t["side"] == "sell"]
    if sell_trades:
        print("\n최근 청산 거래 (최대 5건):")
        for t in sell_trades[-5:]:
            profit_str = f"+{t['profit']:,.0f}" if t['profit'] > 0 else f"{t['profit']:,.0f}"
            forced = " (강제 청산)" if t["forced"] else ""
            print(f"  [{t['timestamp']}] {t['symbol']} @ {t['price']:,.0f}원 -> {profit_str}원{forced}")


def main():
    parser = argparse.ArgumentParser(description="주식 백테스트 실행")
    parser.add_argument("--config", type=str, default="config.yaml", help="설정 파일 경로")
    parser.add_argument("--strategy", type=str, default=None, help="전략 이름 (config.yaml 대신 지정)")
    parser.add_argument("--symbol", type=str, default=None, help="종목 코드 (config.yaml 대신 지정)")
    parser.add_argument("-p", "--param", action="append", default=[], help="파라미터 오버라이드 (예: -p long_period=20)")
    parser.add_argument("--source", type=str, default="sample", choices=["sample", "csv", "clickhouse", "yahoo"], help="데이터 소스")
    parser.add_argument("--csv-dir", type=str, default="data", help="CSV 디렉토리 ({symbol}.csv)")
    parser.add_argument("--report", type=str, default=None, help="리포트 JSON 저장 경로")
    parser.add_argument("--list", action="store_true", help="등록된 전략 목록 출력")
    args = parser.parse_args()

    # 전략 목록 출력
    if args.list:
        print("등록된 전략:")
        for name in list_strategies():
            print(f"  - {name}")
        return

    # 설정 로드
    config_path = Path(args.config)
    if config_path.exists():
        config = Config.from_yaml(config_path)
    else:
        print(f"설정 파일 없음: {config_path}, 기본값 사용")
        config = Config()

    if args.symbol:
        config.strategy.symbol = args.symbol
    for p in args.param:
        key, value = parse_param(p)
        config.strategy.params[key] = value
    config.validate()

    # 로거
    logger = setup_logger(level=config.log_level, log_dir=config.log_dir)

    try:
        provider = build_provider(config, args.source, args.csv_dir)
        series = load_series(config, provider)
    except DataSourceError as e:
        logger.error(f"데이터 로드 실패: {e}")
        return

    if not series:
        print("\n오류: 백테스트할 데이터가 없습니다.")
        return
    print(f"\n{config.strategy.symbol}: {len(series)}개 관측치")

    strategy_name = args.strategy or config.strategy.name
    print(f"전략: {strategy_name}")
    if args.param:
        print(f"파라미터 오버라이드: {dict(parse_param(p) for p in args.param)}")

    result, report = run_single(config, strategy_name, config.strategy.params, series, logger=logger)
    print_single_result(strategy_name, result, report)

    if args.report:
        with open(args.report, "w", encoding="utf-8") as f:
            json.dump(report, f, ensure_ascii=False, indent=2, default=str)
        print(f"\n리포트 저장: {args.report}")


if __name__ == "__main__":
    main()
