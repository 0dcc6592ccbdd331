"""
=============================================================================
주식 자동매매 봇 (Trading Bot)
=============================================================================

[ 시스템 전체 구조 ]

    run_backtest.py / run_trader.py (진입점)
         │
         ├── utils/config.py        ← config.yaml 설정 로드/검증
         ├── utils/logger.py        ← 로깅
         │
         ├── data/                  ← 시세 소스 (CSV, ClickHouse, Yahoo), 주문 저장소
         ├── strategies/            ← 매매 전략 (시그널 생성)
         │     └── ma_cross_strategy.py
         │
         ├── backtest/engine.py     ← 백테스트 실행 엔진
         │     ├── data/portfolio.py    ← 현금/포지션/거래기록 관리
         │     └── backtest/metrics.py  ← 성과 지표 누적/계산
         │
         └── live/trader.py         ← 폴링 기반 실시간 매매 루프


[ 핵심 추상 클래스 (core/) - 모든 구현체의 부모 ]

    core/data_provider.py    → brokers/mock_broker.py::MockDataProvider
                             → data/csv_provider.py, data/clickhouse_provider.py,
                               data/yahoo_provider.py

    core/broker_api.py       → brokers/mock_broker.py::MockBroker (모의 체결)
                             → data/order_store.py (주문 저장소)

    core/trading_strategy.py → strategies/ma_cross_strategy.py (이동평균 교차 전략)


[ 데이터 흐름 - 백테스트 ]

    1. config.yaml에서 전략/백테스트 파라미터 로드
    2. DataProvider.fetch_history()가 시간순 PriceObservation 리스트 제공
    3. BacktestEngine이 관측치마다 TradingStrategy.analyze() 호출
    4. 시그널과 포지션 상태에 따라 Portfolio에 진입/청산 반영
    5. 관측치마다 최대 낙폭 갱신, 종료 시 BacktestResult 확정


[ 데이터 흐름 - 실시간 매매 ]

    1. LiveTrader가 polling_interval마다 DataProvider.fetch_price() 호출
    2. 같은 전략으로 시그널 생성
    3. 시그널 발생 시 BrokerAPI로 주문, OrderRepository에 저장
"""

__version__ = "0.1.0"
