"""
ClickHouse 데이터베이스 스키마 정의 및 연결 관리
"""
import logging
from typing import Optional, Tuple
from datetime import date

import clickhouse_connect
from clickhouse_connect.driver import Client

logger = logging.getLogger("trading_bot.data")


def get_client(
    host: str = "localhost",
    port: int = 8123,
    database: str = "default",
    user: str = "default",
    password: str = "password",
) -> Client:
    """
    ClickHouse 클라이언트 연결 생성

    Args:
        host: ClickHouse 호스트
        port: HTTP 포트 (기본값: 8123)
        database: 데이터베이스 이름
        user: 사용자 이름
        password: 비밀번호

    Returns:
        ClickHouse 클라이언트 객체
    """
    return clickhouse_connect.get_client(
        host=host,
        port=port,
        database=database,
        username=user,
        password=password,
    )


def initialize_schema(client: Client) -> None:
    """
    필요한 테이블 생성 (이미 존재하면 무시)

    - stock_ohlcv: 과거 시세 (ClickHouseDataProvider가 조회)
    - orders: 체결 주문 (ClickHouseOrderRepository가 저장)
    """
    create_ohlcv_table = """
    CREATE TABLE IF NOT EXISTS stock_ohlcv (
        ticker String,
        date Date,
        open Float64,
        high Float64,
        low Float64,
        close Float64,
        adjusted_close Float64,
        volume UInt64,
        source String DEFAULT 'yahoo',
        ingestion_time DateTime DEFAULT now()
    )
    ENGINE = MergeTree()
    PARTITION BY toYYYYMM(date)
    ORDER BY (ticker, date)
    SETTINGS index_granularity = 8192
    """

    create_orders_table = """
    CREATE TABLE IF NOT EXISTS orders (
        order_id String,
        symbol String,
        side String,
        quantity Float64,
        price Float64,
        commission Float64,
        status String,
        message String,
        created_at DateTime
    )
    ENGINE = ReplacingMergeTree(created_at)
    ORDER BY (symbol, order_id)
    """

    client.command(create_ohlcv_table)
    client.command(create_orders_table)
    logger.info("테이블 생성 완료 (또는 이미 존재)")


def get_date_range(client: Client, ticker: str) -> Optional[Tuple[date, date]]:
    """
    특정 티커의 날짜 범위 조회

    Returns:
        (최소 날짜, 최대 날짜) 튜플, 데이터가 없으면 None
    """
    query = """
        SELECT MIN(date) as min_date, MAX(date) as max_date
        FROM stock_ohlcv
        WHERE ticker = %(ticker)s
    """
    result = client.query(query, parameters={"ticker": ticker})

    if result.result_rows:
        min_date, max_date = result.result_rows[0]
        if min_date and max_date:
            return (min_date, max_date)

    return None
