"""
백테스트 성과 지표 모듈.

[ 역할 ]
    백테스트 진행 중 누적되는 카운터와, 종료 시 계산되는 파생 지표를 담는다.
    BacktestEngine이 관측치마다 갱신하고 finalize()로 마무리한다.

[ 누적 지표 ]
    - total_trades: 포지션 진입 시 1 증가 (청산 시에는 증가하지 않음)
    - winning_trades / losing_trades: 청산 시 초기 잔고 대비 손익으로 분류
    - total_profit: 청산마다 (청산 후 잔고 - 초기 잔고)를 더함
    - max_drawdown: 관측치마다 갱신되는 고점 대비 최대 낙폭 (비율)

[ 파생 지표 (finalize 후에만 유효) ]
    - win_rate = winning_trades / total_trades (비율, 0~1)
    - average_profit_per_trade = Σ(진입가 대비 수익률 %) / total_trades
    total_trades == 0이면 둘 다 0.0으로 남는다.

[ 호출하는 곳 ]
    - backtest/engine.py::BacktestEngine
    - run_backtest.py에서 summary() 출력
"""

from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Any, Optional

import numpy as np


@dataclass
class BacktestResult:
    """백테스트 성과 지표. summary()로 포맷된 리포트 출력 가능."""
    total_trades: int = 0                   # 진입 횟수
    winning_trades: int = 0                 # 수익 청산 수
    losing_trades: int = 0                  # 손실(0 포함) 청산 수
    total_profit: float = 0.0               # 누적 손익 (원)
    max_drawdown: float = 0.0               # 최대 낙폭 (비율)
    win_rate: float = 0.0                   # 승률 (비율)
    average_profit_per_trade: float = 0.0   # 거래당 평균 수익률 (%)
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    final_balance: float = 0.0              # 최종 잔고 (원)

    def record_open(self) -> None:
        self.total_trades += 1

    def record_close(self, profit: float, return_pct: float) -> None:
        """청산 기록. profit은 초기 잔고 대비 손익, return_pct는 진입가 대비 수익률(%)."""
        if profit > 0:
            self.winning_trades += 1
        else:
            self.losing_trades += 1
        self.total_profit += profit
        self.average_profit_per_trade += return_pct

    def update_drawdown(self, peak: float, equity: float) -> None:
        if peak <= 0:
            return
        drawdown = (peak - equity) / peak
        if drawdown > self.max_drawdown:
            self.max_drawdown = drawdown

    def finalize(self) -> None:
        """파생 지표 계산. 거래가 없으면 0.0 유지."""
        if self.total_trades > 0:
            self.win_rate = self.winning_trades / self.total_trades
            self.average_profit_per_trade /= self.total_trades

    def to_dict(self) -> dict[str, Any]:
        """딕셔너리 변환."""
        return asdict(self)

    def summary(self) -> str:
        """성과 요약 문자열."""
        start = self.start_date.isoformat() if self.start_date else "N/A"
        end = self.end_date.isoformat() if self.end_date else "N/A"
        lines = [
            "=" * 50,
            "백테스트 성과 리포트",
            "=" * 50,
            f"기간:            {start} ~ {end}",
            f"최종 잔고:       {self.final_balance:>14,.0f}원",
            f"누적 손익:       {self.total_profit:>14,.0f}원",
            f"최대 낙폭(MDD):  {self.max_drawdown * 100:>13.2f}%",
            "-" * 50,
            f"총 거래 횟수:    {self.total_trades:>14d}",
            f"수익 거래:       {self.winning_trades:>14d}",
            f"손실 거래:       {self.losing_trades:>14d}",
            f"승률:            {self.win_rate * 100:>13.2f}%",
            f"거래당 평균수익: {self.average_profit_per_trade:>13.2f}%",
            "=" * 50,
        ]
        return "\n".join(lines)


def calculate_drawdown_curve(equity_curve: list[float], initial_cash: float) -> np.ndarray:
    """자산 곡선의 관측치별 낙폭(비율) 계산. 고점은 초기 잔고에서 시작한다.

    generate_report()에서 낙폭 곡선을 내보낼 때 사용.
    최댓값은 BacktestResult.max_drawdown과 같아야 한다.
    """
    if not equity_curve:
        return np.array([], dtype=float)

    values = np.asarray(equity_curve, dtype=float)
    peaks = np.maximum.accumulate(np.concatenate(([initial_cash], values)))[1:]
    return (peaks - values) / peaks
