"""
설정 관리 모듈.

[ 역할 ]
    config.yaml (또는 .json) 파일을 파싱하여 Config 객체로 변환.
    전략 파라미터, 백테스트 파라미터, 라이브 트레이더, 로깅 설정 등을 통합 관리.

[ 설정 파일 구조 (config.yaml) ]
    strategy:         → StrategyConfig (전략 이름/종목/파라미터)
    backtest:         → BacktestConfig (백테스트 파라미터)
    database:         → DatabaseConfig (ClickHouse 접속 정보)
    trader:           → TraderConfig (폴링 주기/재시도)
    log_level:        → "INFO" / "DEBUG"
    log_dir:          → 로그 디렉토리 경로

[ 호출하는 곳 ]
    - run_backtest.py, run_trader.py에서 Config.from_yaml()로 로드 후 validate()
    - 전략 생성 시 config.strategy의 값을 params로 전달
    - 엔진 생성 시 config.backtest의 값을 사용
"""

import json
import math
from dataclasses import asdict, dataclass, field
from datetime import date
from pathlib import Path
from typing import Any

import yaml

from trading_bot.core.exceptions import ConfigurationError


@dataclass
class StrategyConfig:
    """전략 설정. config.yaml의 strategy 섹션에 대응.

    전략별 파라미터는 params dict에 자유롭게 넣는다.
    각 전략 클래스의 DEFAULT_PARAMS가 기본값 역할을 하므로,
    여기서는 오버라이드할 값만 지정하면 된다.
    """
    name: str = "ma_cross"
    symbol: str = "005930"
    params: dict[str, Any] = field(default_factory=dict)


@dataclass
class BacktestConfig:
    """백테스트 설정. config.yaml의 backtest 섹션에 대응."""
    start_date: str = "2024-01-01"
    end_date: str = "2024-12-31"
    initial_cash: float = 10_000_000
    commission_rate: float = 0.0025  # 매수/매도 각각 0.25%


@dataclass
class DatabaseConfig:
    """데이터베이스 설정. config.yaml의 database 섹션에 대응."""
    host: str = "localhost"
    port: int = 8123
    database: str = "default"
    user: str = "default"
    password: str = "password"
    use_adjusted_close: bool = True


@dataclass
class TraderConfig:
    """라이브 트레이더 설정. config.yaml의 trader 섹션에 대응."""
    polling_interval: float = 60     # 초
    max_retries: int = 3
    retry_delay: float = 5


@dataclass
class Config:
    """전체 설정. from_yaml() 또는 from_json()으로 파일에서 로드."""
    strategy: StrategyConfig = field(default_factory=StrategyConfig)
    backtest: BacktestConfig = field(default_factory=BacktestConfig)
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    trader: TraderConfig = field(default_factory=TraderConfig)
    log_level: str = "INFO"
    log_dir: str = "logs"

    @classmethod
    def from_yaml(cls, path: str | Path) -> "Config":
        """YAML 파일에서 설정 로드."""
        path = Path(path)
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"설정 파일 파싱 실패 ({path}): {e}") from e
        return cls._from_dict(data or {})

    @classmethod
    def from_json(cls, path: str | Path) -> "Config":
        """JSON 파일에서 설정 로드."""
        path = Path(path)
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"설정 파일 파싱 실패 ({path}): {e}") from e
        return cls._from_dict(data or {})

    @classmethod
    def _from_dict(cls, data: dict[str, Any]) -> "Config":
        """딕셔너리에서 Config 생성."""
        if not isinstance(data, dict):
            raise ConfigurationError("설정 파일 최상위는 매핑이어야 합니다")

        strategy_data = data.get("strategy") or {}
        backtest_data = data.get("backtest") or {}
        database_data = data.get("database") or {}
        trader_data = data.get("trader") or {}

        # strategy 섹션 파싱: name, symbol은 직접 필드, 나머지는 모두 params로
        # params가 명시적으로 있으면 그것을 사용
        if "params" in strategy_data:
            strategy_params = dict(strategy_data["params"] or {})
        else:
            strategy_params = {
                k: v for k, v in strategy_data.items()
                if k not in ("name", "symbol")
            }
        strategy = StrategyConfig(
            name=strategy_data.get("name", "ma_cross"),
            symbol=str(strategy_data.get("symbol", "005930")),
            params=strategy_params,
        )
        backtest = BacktestConfig(**{
            k: v for k, v in backtest_data.items()
            if k in BacktestConfig.__dataclass_fields__
        })
        database = DatabaseConfig(**{
            k: v for k, v in database_data.items()
            if k in DatabaseConfig.__dataclass_fields__
        })
        trader = TraderConfig(**{
            k: v for k, v in trader_data.items()
            if k in TraderConfig.__dataclass_fields__
        })

        return cls(
            strategy=strategy,
            backtest=backtest,
            database=database,
            trader=trader,
            log_level=data.get("log_level", "INFO"),
            log_dir=data.get("log_dir", "logs"),
        )

    def validate(self) -> None:
        """값 검증. 잘못된 값이 있으면 ConfigurationError."""
        params = self.strategy.params
        short_period = params.get("short_period")
        long_period = params.get("long_period")
        if short_period is not None and long_period is not None:
            if short_period <= 0 or long_period <= 0:
                raise ConfigurationError("strategy periods must be positive")
            if short_period >= long_period:
                raise ConfigurationError("short period must be less than long period")

        bt = self.backtest
        if not math.isfinite(bt.initial_cash) or bt.initial_cash <= 0:
            raise ConfigurationError(f"backtest.initial_cash는 양수여야 합니다: {bt.initial_cash}")
        if not 0 <= bt.commission_rate < 1:
            raise ConfigurationError(f"backtest.commission_rate는 [0, 1) 범위여야 합니다: {bt.commission_rate}")
        try:
            start = date.fromisoformat(bt.start_date)
            end = date.fromisoformat(bt.end_date)
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"backtest 날짜 형식 오류: {e}") from e
        if start > end:
            raise ConfigurationError(f"start_date({start})가 end_date({end})보다 늦습니다")

        if self.trader.polling_interval < 0:
            raise ConfigurationError("trader.polling_interval은 0 이상이어야 합니다")
        if self.trader.max_retries < 1:
            raise ConfigurationError("trader.max_retries는 1 이상이어야 합니다")

    def to_dict(self) -> dict[str, Any]:
        """딕셔너리로 변환."""
        return asdict(self)

    def save_yaml(self, path: str | Path) -> None:
        """YAML 파일로 저장."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            yaml.dump(self.to_dict(), f, allow_unicode=True, default_flow_style=False)
