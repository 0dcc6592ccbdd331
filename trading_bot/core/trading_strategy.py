"""
매매 전략 추상 클래스 정의.

[ 역할 ]
    매매 로직의 인터페이스를 정의.
    시세 관측치를 하나씩 받아 매수/매도/홀드 시그널을 생성.

[ 구현체 ]
    - strategies/ma_cross_strategy.py::MACrossStrategy (이동평균 교차 전략)

[ 호출하는 곳 ]
    - backtest/engine.py::BacktestEngine.step()에서
      관측치마다 analyze()를 호출하여 시그널을 받고 포지션 전환
    - live/trader.py::LiveTrader.tick()에서 폴링한 현재가로 analyze() 호출

[ 데이터 흐름 ]
    PriceObservation → analyze() → Signal 반환
    Signal.signal_type이 BUY/SELL이면 엔진(또는 라이브 트레이더)이 처리
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any

from trading_bot.core.data_provider import PriceObservation


class SignalType(Enum):
    """전략이 반환하는 시그널 종류."""
    BUY = "buy"
    SELL = "sell"
    HOLD = "hold"


@dataclass
class Signal:
    """analyze()의 반환값. 관측치마다 새로 생성된다."""
    signal_type: SignalType
    symbol: str
    price: float = 0.0       # 시그널 발생 시점 가격
    quantity: float = 0.0    # 주문 수량 (HOLD는 0)
    reason: str = ""         # 시그널 발생 사유 (로깅용)


class TradingStrategy(ABC):
    """매매 전략 추상 클래스.

    새 전략을 만들려면 이 클래스를 상속받아 analyze()를 구현하면 된다.
    백테스트 엔진은 analyze()만 호출하므로 엔진 수정은 필요 없다.
    """

    def __init__(
        self,
        name: str,
        params: dict[str, Any] | None = None,
        logger: logging.Logger | None = None,
    ):
        self.name = name
        self.params = params or {}  # config.yaml에서 로드된 전략 파라미터
        self.logger = logger or logging.getLogger("trading_bot.strategy")

    @abstractmethod
    def analyze(self, observation: PriceObservation) -> Signal:
        """관측치 하나를 소비하고 시그널 생성.

        가격 파싱에 실패하면 HOLD를 반환하고 내부 상태는 건드리지 않는다.
        """
        ...

    def reset(self) -> None:
        """내부 상태 초기화. 상태가 없는 전략은 오버라이드 불필요."""
