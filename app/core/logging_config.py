"""
로깅 설정 모듈 - 콘솔 + 파일 로깅
"""

import os
import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

from .config import settings

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# 외부 라이브러리는 WARNING 이상만
QUIET_LOGGERS = ("apscheduler", "sqlalchemy.engine", "urllib3", "multipart")


def _rotating_handler(path: Path, level: int, backup_count: int, formatter) -> RotatingFileHandler:
    handler = RotatingFileHandler(
        path,
        maxBytes=10 * 1024 * 1024,
        backupCount=backup_count,
        encoding="utf-8",
    )
    handler.setLevel(level)
    handler.setFormatter(formatter)
    return handler


def setup_logging(log_dir: Path | None = None):
    """애플리케이션 로깅 설정 (콘솔 + lamisys.log + error.log)"""
    log_level = getattr(logging, settings.log_level.upper(), logging.INFO)

    log_dir = log_dir or settings.BASE_DIR / "logs"
    os.makedirs(log_dir, exist_ok=True)

    formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(log_level)
    console_handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    # 기존 핸들러 제거 후 새로 추가 (uvicorn reload 시 중복 방지)
    root_logger.handlers.clear()
    root_logger.addHandler(console_handler)
    root_logger.addHandler(_rotating_handler(log_dir / "lamisys.log", log_level, 5, formatter))
    root_logger.addHandler(_rotating_handler(log_dir / "error.log", logging.ERROR, 3, formatter))

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
