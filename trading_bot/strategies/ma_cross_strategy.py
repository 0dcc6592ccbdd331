"""
이중 이동평균 교차(MA Cross) 전략 구현.

[ 역할 ]
    core/trading_strategy.py::TradingStrategy의 구현체.
    "단기 SMA가 장기 SMA보다 threshold 이상 높으면 매수, 낮으면 매도"

[ 전략 흐름 ]
    관측치마다 analyze() 호출됨 (← backtest/engine.py, live/trader.py에서)
        ├── parse_price()로 가격 변환 (실패 시 HOLD, 상태 변경 없음)
        ├── price_history에 추가, long_period 초과분은 가장 오래된 값부터 제거
        ├── 데이터가 long_period 미만이면 HOLD (데이터 부족)
        ├── short_sma / long_sma 갱신 (둘 다 최근 구간의 꼬리에서 계산)
        └── short_sma > long_sma * (1 + threshold) → BUY
            short_sma < long_sma * (1 - threshold) → SELL
            그 외 → HOLD (경계 부근 신호 깜빡임 방지 밴드)

[ 파라미터 (config.yaml의 strategy 섹션에서 로드) ]
    short_period:   단기 이동평균 기간 (양의 정수)
    long_period:    장기 이동평균 기간 (short_period보다 커야 함)
    threshold:      교차 판정 밴드 (0 이상, 0.01 = 1%)
    order_quantity: BUY/SELL 시그널에 실을 주문 수량
"""

import logging
import math
from typing import Any

from trading_bot.core.data_provider import PriceObservation, parse_price
from trading_bot.core.exceptions import ConfigurationError, PriceParseError
from trading_bot.core.trading_strategy import Signal, SignalType, TradingStrategy
from trading_bot.strategies import register


@register("ma_cross")
class MACrossStrategy(TradingStrategy):
    """이중 이동평균 교차 전략 구현체."""

    DEFAULT_PARAMS = {
        "short_period": 5,
        "long_period": 10,
        "threshold": 0.01,
        "order_quantity": 1.0,
    }

    def __init__(
        self,
        params: dict[str, Any] | None = None,
        logger: logging.Logger | None = None,
    ):
        merged = {**self.DEFAULT_PARAMS, **(params or {})}
        super().__init__(name="ma_cross", params=merged, logger=logger)
        self._validate()

        self.price_history: list[float] = []   # 최근 long_period개 가격 (오래된 순)
        self.short_sma: float = 0.0
        self.long_sma: float = 0.0

    def _validate(self) -> None:
        short_period = self.params["short_period"]
        long_period = self.params["long_period"]
        for key, value in (("short_period", short_period), ("long_period", long_period)):
            if isinstance(value, bool) or not isinstance(value, int):
                raise ConfigurationError(f"{key}는 정수여야 합니다: {value!r}")
        if short_period <= 0 or long_period <= 0:
            raise ConfigurationError("이동평균 기간은 양수여야 합니다")
        if short_period >= long_period:
            raise ConfigurationError(
                f"short_period({short_period})는 long_period({long_period})보다 작아야 합니다"
            )

        try:
            threshold = float(self.params["threshold"])
            order_quantity = float(self.params["order_quantity"])
        except (TypeError, ValueError):
            raise ConfigurationError("threshold / order_quantity는 숫자여야 합니다") from None
        if not math.isfinite(threshold) or threshold < 0:
            raise ConfigurationError(f"threshold는 0 이상이어야 합니다: {threshold}")
        if not math.isfinite(order_quantity) or order_quantity <= 0:
            raise ConfigurationError(f"order_quantity는 양수여야 합니다: {order_quantity}")

    @property
    def short_period(self) -> int:
        return int(self.params["short_period"])

    @property
    def long_period(self) -> int:
        return int(self.params["long_period"])

    @property
    def threshold(self) -> float:
        return float(self.params["threshold"])

    @property
    def order_quantity(self) -> float:
        return float(self.params["order_quantity"])

    def analyze(self, observation: PriceObservation) -> Signal:
        """관측치 하나로 시그널 생성."""
        symbol = observation.symbol
        try:
            price = parse_price(observation.price)
        except PriceParseError as e:
            self.logger.warning(f"[{symbol}] 가격 파싱 실패, 관측치 무시: {e}")
            return Signal(signal_type=SignalType.HOLD, symbol=symbol, reason=str(e))

        self.price_history.append(price)
        if len(self.price_history) > self.long_period:
            self.price_history.pop(0)

        if len(self.price_history) < self.long_period:
            self.logger.debug(
                f"[{symbol}] 이동평균 계산 데이터 부족 ({len(self.price_history)}/{self.long_period})"
            )
            return Signal(
                signal_type=SignalType.HOLD,
                symbol=symbol,
                price=price,
                reason=f"데이터 부족 (최소 {self.long_period}개 필요)",
            )

        self._update_sma()
        self.logger.debug(f"[{symbol}] ShortSMA: {self.short_sma:.2f}, LongSMA: {self.long_sma:.2f}")

        if self.short_sma > self.long_sma * (1 + self.threshold):
            return Signal(
                signal_type=SignalType.BUY,
                symbol=symbol,
                price=price,
                quantity=self.order_quantity,
                reason=f"골든크로스 (SMA{self.short_period}: {self.short_sma:,.2f} > "
                       f"SMA{self.long_period}: {self.long_sma:,.2f} * (1 + {self.threshold}))",
            )
        if self.short_sma < self.long_sma * (1 - self.threshold):
            return Signal(
                signal_type=SignalType.SELL,
                symbol=symbol,
                price=price,
                quantity=self.order_quantity,
                reason=f"데드크로스 (SMA{self.short_period}: {self.short_sma:,.2f} < "
                       f"SMA{self.long_period}: {self.long_sma:,.2f} * (1 - {self.threshold}))",
            )

        return Signal(
            signal_type=SignalType.HOLD,
            symbol=symbol,
            price=price,
            reason=f"밴드 내 (SMA{self.short_period}: {self.short_sma:,.2f}, "
                   f"SMA{self.long_period}: {self.long_sma:,.2f})",
        )

    def _update_sma(self) -> None:
        self.short_sma = self._calculate_sma(self.short_period)
        self.long_sma = self._calculate_sma(self.long_period)

    def _calculate_sma(self, period: int) -> float:
        """price_history 꼬리 period개의 산술평균."""
        if len(self.price_history) < period:
            return 0.0
        window = self.price_history[-period:]
        return sum(window) / period

    def reset(self) -> None:
        self.price_history = []
        self.short_sma = 0.0
        self.long_sma = 0.0
