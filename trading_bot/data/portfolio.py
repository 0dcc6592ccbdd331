"""
포트폴리오(단일 종목 포지션) 관리 모듈.

[ 역할 ]
    현금, 단일 포지션(Position), 거래 기록(TradeRecord)을 통합 관리.
    백테스트 엔진이 매수/매도 실행 시 이 클래스를 통해 상태를 갱신.

[ 포지션 상태 ]
    FLAT ──(open_long)──▶ LONG ──(close_long)──▶ FLAT
    LONG일 때만 entry_price / quantity가 의미를 가진다.

[ 수수료 ]
    진입 시 잔고 전액에서 commission_rate만큼 떼고 수량 환산,
    청산 시 매도 대금에서 다시 commission_rate만큼 뗀다.
    → 왕복 1회에 (1 - commission_rate)^2 가 곱해진다.

[ 호출하는 곳 ]
    - backtest/engine.py::BacktestEngine._open_position / _close_position
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Optional


class PositionStatus(Enum):
    FLAT = "flat"
    LONG = "long"


@dataclass
class Position:
    """단일 종목 포지션."""
    status: PositionStatus = PositionStatus.FLAT
    entry_price: float = 0.0    # 진입가 (LONG일 때만 유효)
    quantity: float = 0.0       # 보유 수량 (소수 단위 허용)

    @property
    def is_long(self) -> bool:
        return self.status == PositionStatus.LONG

    def market_value(self, price: float) -> float:
        """현재가 기준 평가금액."""
        return self.quantity * price

    def reset(self) -> None:
        """포지션 초기화 (FLAT)."""
        self.status = PositionStatus.FLAT
        self.entry_price = 0.0
        self.quantity = 0.0


@dataclass
class TradeRecord:
    """개별 거래 기록. engine.generate_report()에서 사용됨."""
    timestamp: Optional[datetime]
    symbol: str
    side: str               # "buy" or "sell"
    quantity: float
    price: float
    commission: float = 0.0
    profit: float = 0.0       # 초기 잔고 대비 손익 (매도 시에만)
    profit_rate: float = 0.0  # 진입가 대비 수익률 % (매도 시에만)
    forced: bool = False      # 시계열 종료 시 강제 청산 여부


class Portfolio:
    """현금 + 단일 포지션.

    BacktestEngine이 소유하며, 매수/매도 실행 결과를 반영.
    """

    def __init__(self, initial_cash: float):
        self.initial_cash = initial_cash
        self.cash = initial_cash                    # 가용 현금 (LONG 동안 0)
        self.position = Position()
        self.trade_history: list[TradeRecord] = []

    def equity(self, price: float) -> float:
        """시가평가 자산: FLAT이면 현금, LONG이면 보유수량 × 현재가."""
        if self.position.is_long:
            return self.position.market_value(price)
        return self.cash

    def open_long(
        self,
        symbol: str,
        price: float,
        commission_rate: float,
        timestamp: Optional[datetime] = None,
    ) -> TradeRecord:
        """현금 전액으로 매수. 수수료를 뗀 금액을 수량으로 환산."""
        if self.position.is_long:
            raise RuntimeError("이미 포지션 보유 중")
        if price <= 0:
            raise ValueError(f"매수 가격은 양수여야 합니다: {price}")

        commission = self.cash * commission_rate
        quantity = (self.cash - commission) / price

        self.position.status = PositionStatus.LONG
        self.position.entry_price = price
        self.position.quantity = quantity
        self.cash = 0.0

        record = TradeRecord(
            timestamp=timestamp,
            symbol=symbol,
            side="buy",
            quantity=quantity,
            price=price,
            commission=commission,
        )
        self.trade_history.append(record)
        return record

    def close_long(
        self,
        symbol: str,
        price: float,
        commission_rate: float,
        timestamp: Optional[datetime] = None,
        forced: bool = False,
    ) -> TradeRecord:
        """보유 수량 전량 매도. 손익은 초기 잔고 기준으로 기록."""
        if not self.position.is_long:
            raise RuntimeError("보유 포지션 없음")

        entry_price = self.position.entry_price
        quantity = self.position.quantity
        gross = quantity * price
        commission = gross * commission_rate
        self.cash = gross - commission

        record = TradeRecord(
            timestamp=timestamp,
            symbol=symbol,
            side="sell",
            quantity=quantity,
            price=price,
            commission=commission,
            profit=self.cash - self.initial_cash,
            profit_rate=(price - entry_price) / entry_price * 100,
            forced=forced,
        )
        self.position.reset()
        self.trade_history.append(record)
        return record

    def get_summary(self) -> dict[str, Any]:
        """포트폴리오 요약."""
        return {
            "initial_cash": self.initial_cash,
            "current_cash": self.cash,
            "position": self.position.status.value,
            "entry_price": self.position.entry_price,
            "quantity": self.position.quantity,
            "num_trades": len(self.trade_history),
        }
