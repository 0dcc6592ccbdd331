"""
로깅 모듈.

[ 역할 ]
    파일 + 콘솔 로거를 설정. 시그널, 체결 내역, 에러 등을 기록.

[ 로그 파일 위치 ]
    {log_dir}/{name}_{YYYYMMDD}.log (예: logs/trading_bot_20240601.log)

[ 호출하는 곳 ]
    - run_backtest.py, run_trader.py에서 setup_logger() 호출
    - 하위 로거(trading_bot.backtest, trading_bot.strategy, trading_bot.live,
      trading_bot.data)는 전파(propagate)로 이 핸들러를 공유
"""

import logging
import sys
from datetime import datetime
from pathlib import Path


def setup_logger(
    name: str = "trading_bot",
    level: str = "INFO",
    log_dir: str = "logs",
    console: bool = True,
) -> logging.Logger:
    """로거 설정. 파일 핸들러(일별) + 콘솔 핸들러 등록."""
    logger = logging.getLogger(name)
    log_level = getattr(logging, level.upper(), None)
    if not isinstance(log_level, int):
        raise ValueError(f"알 수 없는 로그 레벨: {level}")
    logger.setLevel(log_level)

    if logger.handlers:
        return logger

    formatter = logging.Formatter(
        "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    # 파일 핸들러
    log_path = Path(log_dir)
    log_path.mkdir(parents=True, exist_ok=True)
    today = datetime.now().strftime("%Y%m%d")
    file_handler = logging.FileHandler(
        log_path / f"{name}_{today}.log",
        encoding="utf-8",
    )
    file_handler.setFormatter(formatter)
    logger.addHandler(file_handler)

    # 콘솔 핸들러
    if console:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    return logger
