"""
백테스팅 엔진 모듈.

[ 역할 ]
    과거 시세 시계열에 전략을 적용하여 가상 매매를 시뮬레이션하고 성과를 측정.
    시스템의 핵심 실행 루프를 담당.

[ 실행 흐름 ]
    run() 호출 시:
        1. 상태 초기화 (Portfolio, BacktestResult, 전략 내부 상태)
        2. 관측치마다 step() 호출 (시간순, 재정렬하지 않음)
           → parse_price() 실패 시 경고 로그 후 해당 관측치 전체 건너뜀
           → strategy.analyze()로 시그널 생성
           → 포지션 상태에 따라 진입/청산 또는 무시
           → 시가평가 자산으로 고점/최대 낙폭 갱신
        3. finalize(): 포지션이 남아 있으면 마지막 가격으로 강제 청산 후 파생 지표 계산

[ 상태 전이 ]
    FLAT + BUY  → 진입 (total_trades += 1)
    LONG + SELL → 청산 (승/패 분류, 손익 누적)
    FLAT + SELL, LONG + BUY, HOLD → 무시

[ 의존성 ]
    - core/trading_strategy.py::TradingStrategy (전략 인터페이스)
    - data/portfolio.py::Portfolio (현금/포지션/거래기록)
    - backtest/metrics.py::BacktestResult (성과 누적)

[ 호출하는 곳 ]
    - run_backtest.py (진입점)에서 생성 및 실행
"""

import logging
import math
from datetime import datetime
from typing import Any, Optional, Sequence

from trading_bot.backtest.metrics import BacktestResult, calculate_drawdown_curve
from trading_bot.core.data_provider import PriceObservation, parse_price
from trading_bot.core.exceptions import ConfigurationError, PriceParseError
from trading_bot.core.trading_strategy import SignalType, TradingStrategy
from trading_bot.data.portfolio import Portfolio


class BacktestEngine:
    """백테스팅 엔진. run()으로 시뮬레이션 실행."""

    def __init__(
        self,
        strategy: TradingStrategy,
        series: Sequence[PriceObservation],
        initial_cash: float = 10_000_000,
        commission_rate: float = 0.0025,   # 매수/매도 각각 적용
        logger: logging.Logger | None = None,
    ):
        if not math.isfinite(initial_cash) or initial_cash <= 0:
            raise ConfigurationError(f"initial_cash는 양수여야 합니다: {initial_cash}")
        if not 0 <= commission_rate < 1:
            raise ConfigurationError(f"commission_rate는 [0, 1) 범위여야 합니다: {commission_rate}")

        self.strategy = strategy
        self.series = list(series)
        self.initial_cash = initial_cash
        self.commission_rate = commission_rate
        self.logger = logger or logging.getLogger("trading_bot.backtest")

        self._reset()

    def _reset(self) -> None:
        self.portfolio = Portfolio(self.initial_cash)
        self.result = BacktestResult()
        self.equity_curve: list[float] = []   # 관측치별 시가평가 자산 (파싱 성공분만)
        self.peak_equity = self.initial_cash
        self.skipped = 0                      # 파싱 실패로 건너뛴 관측치 수
        self._last_price: Optional[float] = None
        self._last_observation: Optional[PriceObservation] = None
        self._finalized = False

    def run(self) -> BacktestResult:
        """백테스트 실행. 같은 엔진으로 다시 호출해도 처음부터 재생한다."""
        self._reset()
        self.strategy.reset()

        if not self.series:
            self.logger.warning("시세 데이터가 없습니다.")

        for observation in self.series:
            self.step(observation)

        result = self.finalize()
        self.logger.info(
            f"백테스트 완료. 거래 {result.total_trades}회, "
            f"누적 손익 {result.total_profit:,.0f}원, MDD {result.max_drawdown * 100:.2f}%"
        )
        return result

    def step(self, observation: PriceObservation) -> None:
        """관측치 하나 처리."""
        if self._finalized:
            raise RuntimeError("이미 finalize()된 백테스트입니다. run()으로 다시 실행하세요.")

        try:
            price = parse_price(observation.price)
        except PriceParseError as e:
            self.skipped += 1
            self.logger.warning(f"[{observation.timestamp}] {observation.symbol} 관측치 건너뜀: {e}")
            return

        if self.result.start_date is None:
            self.result.start_date = observation.timestamp
        self.result.end_date = observation.timestamp
        self._last_price = price
        self._last_observation = observation

        signal = self.strategy.analyze(observation)
        position = self.portfolio.position

        if signal.signal_type == SignalType.BUY and not position.is_long:
            self._open_position(observation, price)
        elif signal.signal_type == SignalType.SELL and position.is_long:
            self._close_position(observation, price)

        equity = self.portfolio.equity(price)
        self.equity_curve.append(equity)
        if equity > self.peak_equity:
            self.peak_equity = equity
        self.result.update_drawdown(self.peak_equity, equity)

    def finalize(self) -> BacktestResult:
        """남은 포지션 강제 청산 후 파생 지표 계산."""
        if self._finalized:
            return self.result

        if self.portfolio.position.is_long and self._last_observation is not None:
            self.logger.info(f"시계열 종료: 마지막 가격 {self._last_price:,.2f}으로 강제 청산")
            self._close_position(self._last_observation, self._last_price, forced=True)

        self.result.final_balance = self.portfolio.cash
        self.result.finalize()
        self._finalized = True
        return self.result

    def _open_position(self, observation: PriceObservation, price: float) -> None:
        """현금 전액 매수. 진입 즉시 total_trades 증가."""
        if price <= 0:
            self.logger.warning(f"[{observation.timestamp}] 가격 0에서는 매수할 수 없음, 시그널 무시")
            return

        record = self.portfolio.open_long(
            symbol=observation.symbol,
            price=price,
            commission_rate=self.commission_rate,
            timestamp=observation.timestamp,
        )
        self.result.record_open()
        self.logger.debug(
            f"[{observation.timestamp}] 매수: {observation.symbol} {record.quantity:,.4f}주 "
            f"@ {price:,.2f} (수수료 {record.commission:,.0f}원)"
        )

    def _close_position(self, observation: PriceObservation, price: float, forced: bool = False) -> None:
        """전량 매도. 손익은 초기 잔고 기준."""
        record = self.portfolio.close_long(
            symbol=observation.symbol,
            price=price,
            commission_rate=self.commission_rate,
            timestamp=observation.timestamp,
            forced=forced,
        )
        self.result.record_close(record.profit, record.profit_rate)
        self.logger.debug(
            f"[{observation.timestamp}] 매도: {observation.symbol} {record.quantity:,.4f}주 "
            f"@ {price:,.2f} → 잔고 {self.portfolio.cash:,.0f}원 (손익 {record.profit:+,.0f}원)"
        )

    def generate_report(self) -> dict[str, Any]:
        """백테스트 리포트 생성."""
        if not self._finalized:
            return {"error": "백테스트를 먼저 실행하세요."}

        drawdowns = calculate_drawdown_curve(self.equity_curve, self.initial_cash)
        return {
            "metrics": self.result.to_dict(),
            "portfolio_summary": self.portfolio.get_summary(),
            "skipped_observations": self.skipped,
            "equity_curve": list(self.equity_curve),
            "drawdown_curve": drawdowns.tolist(),
            "trades": [
                {
                    "timestamp": _format_timestamp(t.timestamp),
                    "symbol": t.symbol,
                    "side": t.side,
                    "quantity": t.quantity,
                    "price": t.price,
                    "commission": t.commission,
                    "profit": t.profit,
                    "profit_rate": t.profit_rate,
                    "forced": t.forced,
                }
                for t in self.portfolio.trade_history
            ],
        }


def _format_timestamp(ts: Optional[datetime]) -> Optional[str]:
    return ts.isoformat() if ts is not None else None
