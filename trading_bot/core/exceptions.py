"""
예외 정의.

[ 분류 ]
    ConfigurationError - 잘못된 전략/백테스트 설정. 생성 시점에 발생, 재시도 없음
    PriceParseError    - 가격 문자열 파싱 실패. 로그 후 해당 관측치 건너뜀
    DataSourceError    - 데이터 소스(API, DB, 파일) 조회 실패
    OrderStoreError    - 주문 저장소 저장 실패

[ 호출하는 곳 ]
    - strategies/, backtest/engine.py: 생성자 검증 시 ConfigurationError
    - core/data_provider.py::parse_price(): PriceParseError
    - data/*, brokers/mock_broker.py: DataSourceError
    - data/order_store.py: OrderStoreError
"""


class TradingBotError(Exception):
    """패키지 공통 베이스 예외."""


class ConfigurationError(TradingBotError, ValueError):
    """설정값 오류."""


class PriceParseError(TradingBotError, ValueError):
    """가격 문자열을 유한한 0 이상의 숫자로 변환할 수 없음."""

    def __init__(self, raw: str, message: str = ""):
        self.raw = raw
        super().__init__(message or f"가격 파싱 실패: {raw!r}")


class DataSourceError(TradingBotError):
    """데이터 조회 실패."""


class OrderStoreError(TradingBotError):
    """주문 저장 실패."""
