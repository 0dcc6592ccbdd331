"""
실시간(모의) 매매 실행 스크립트.

[ 사용법 ]
    # Yahoo Finance 시세로 모의매매 (Ctrl+C로 종료)
    python run_trader.py --symbol 005930.KS

    # 샘플 시세를 빠르게 재생 (폴링 주기 0초, 100틱)
    python run_trader.py --source sample --ticks 100 --interval 0

    # 체결 주문을 ClickHouse orders 테이블에 저장
    python run_trader.py --store clickhouse
"""

import argparse
import logging
from datetime import date
from pathlib import Path

from run_backtest import generate_sample_data
from trading_bot.brokers.mock_broker import MockBroker, MockDataProvider
from trading_bot.core.broker_api import OrderRepository
from trading_bot.core.data_provider import DataProvider
from trading_bot.live.trader import LiveTrader
from trading_bot.strategies import create_strategy
from trading_bot.utils.config import Config
from trading_bot.utils.logger import setup_logger


def build_provider(config: Config, source: str) -> DataProvider:
    if source == "sample":
        provider = MockDataProvider()
        provider.load_data(config.strategy.symbol, generate_sample_data(
            start_date=date.fromisoformat(config.backtest.start_date),
            end_date=date.fromisoformat(config.backtest.end_date),
        ))
        return provider

    from trading_bot.data.yahoo_provider import YahooFinanceDataProvider
    return YahooFinanceDataProvider(
        max_retries=config.trader.max_retries,
        retry_delay=config.trader.retry_delay,
    )


def build_order_store(config: Config, store: str, logger: logging.Logger) -> OrderRepository:
    if store == "clickhouse":
        from trading_bot.data.order_store import ClickHouseOrderRepository
        from trading_bot.ingestion.clickhouse_schema import get_client, initialize_schema

        db = config.database
        client = get_client(db.host, db.port, db.database, db.user, db.password)
        initialize_schema(client)
        logger.info("ClickHouse 주문 저장소 연결")
        return ClickHouseOrderRepository(client=client)

    from trading_bot.data.order_store import InMemoryOrderRepository
    return InMemoryOrderRepository()


def main():
    parser = argparse.ArgumentParser(description="실시간 모의매매 실행")
    parser.add_argument("--config", type=str, default="config.yaml", help="설정 파일 경로")
    parser.add_argument("--symbol", type=str, default=None, help="종목 코드")
    parser.add_argument("--source", type=str, default="yahoo", choices=["yahoo", "sample"], help="시세 소스")
    parser.add_argument("--store", type=str, default="memory", choices=["memory", "clickhouse"], help="주문 저장소")
    parser.add_argument("--ticks", type=int, default=None, help="실행할 틱 수 (기본: 무한)")
    parser.add_argument("--interval", type=float, default=None, help="폴링 주기(초)")
    args = parser.parse_args()

    config_path = Path(args.config)
    config = Config.from_yaml(config_path) if config_path.exists() else Config()
    if args.symbol:
        config.strategy.symbol = args.symbol
    if args.interval is not None:
        config.trader.polling_interval = args.interval
    config.validate()

    logger = setup_logger(level=config.log_level, log_dir=config.log_dir)
    logger.info("Starting trading bot...")

    strategy = create_strategy(config.strategy.name, params=config.strategy.params, logger=logger)
    broker = MockBroker(
        initial_cash=config.backtest.initial_cash,
        commission_rate=config.backtest.commission_rate,
    )
    broker.connect()

    trader = LiveTrader(
        provider=build_provider(config, args.source),
        strategy=strategy,
        broker=broker,
        order_store=build_order_store(config, args.store, logger),
        symbol=config.strategy.symbol,
        polling_interval=config.trader.polling_interval,
        logger=logger,
    )

    try:
        trader.run(max_ticks=args.ticks)
    except KeyboardInterrupt:
        logger.info("사용자 중단")
    finally:
        broker.disconnect()
        logger.info(f"최종 잔고: {broker.get_balance():,.0f}원")


if __name__ == "__main__":
    main()
