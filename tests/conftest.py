"""
공용 테스트 헬퍼.

- make_series: 가격 리스트 → 일별 PriceObservation 리스트
- ScriptedStrategy: 미리 정해둔 시그널 순서를 그대로 돌려주는 전략
"""

from datetime import datetime, timedelta

from trading_bot.core.data_provider import PriceObservation
from trading_bot.core.trading_strategy import Signal, SignalType, TradingStrategy

SYMBOL = "005930"
BASE_TIME = datetime(2024, 1, 2, 15, 30)


def make_series(prices, symbol=SYMBOL, start=BASE_TIME):
    """가격 리스트를 하루 간격 관측치로 변환. 숫자는 문자열로 바꿔 싣는다."""
    return [
        PriceObservation(
            symbol=symbol,
            price=p if isinstance(p, str) else str(p),
            timestamp=start + timedelta(days=i),
        )
        for i, p in enumerate(prices)
    ]


class ScriptedStrategy(TradingStrategy):
    """signals 순서대로 시그널을 내는 테스트용 전략. 소진되면 HOLD."""

    def __init__(self, signals):
        super().__init__(name="scripted")
        self.script = list(signals)
        self.calls = 0
        self.reset_count = 0

    def analyze(self, observation):
        signal_type = self.script[self.calls] if self.calls < len(self.script) else SignalType.HOLD
        self.calls += 1
        return Signal(signal_type=signal_type, symbol=observation.symbol, quantity=1.0)

    def reset(self):
        self.calls = 0
        self.reset_count += 1


B, S, H = SignalType.BUY, SignalType.SELL, SignalType.HOLD

