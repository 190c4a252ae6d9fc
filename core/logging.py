"""
로깅 설정

CLI와 반복 거래 스케줄러가 쓰는 콘솔 + 일 단위 파일 로그.
"""

import logging
import sys
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path

from core.constants import Paths


LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
LOG_FILE_BACKUP_COUNT = 7

# 쿼리마다 로그를 남기는 라이브러리 로거
NOISY_LOGGERS = ["aiosqlite", "asyncio"]

_PROCESS_LOG_DIRS = {
    "cli": Paths.CLI_LOGS_DIR,
    "scheduler": Paths.SCHEDULER_LOGS_DIR,
}


def get_log_file_path(process_name: str) -> Path:
    """프로세스별 로그 파일 경로 (알 수 없는 이름은 logs/ 바로 아래)"""
    return _PROCESS_LOG_DIRS.get(process_name, Paths.LOGS_DIR) / f"{process_name}.log"


def _file_handler(log_file: Path, level: int) -> TimedRotatingFileHandler:
    handler = TimedRotatingFileHandler(
        filename=log_file,
        when="midnight",
        backupCount=LOG_FILE_BACKUP_COUNT,
        encoding="utf-8",
    )
    handler.suffix = "%Y-%m-%d"
    handler.setLevel(level)
    return handler


def setup_logging(
    process_name: str,
    console_level: int = logging.INFO,
    file_level: int = logging.INFO,
    log_dir: Path | None = None,
) -> logging.Logger:
    """루트 로거 초기화

    다시 호출하면 기존 핸들러를 교체한다.

    Args:
        process_name: "cli" 또는 "scheduler" (로그 파일 이름)
        console_level: 콘솔 핸들러 레벨
        file_level: 파일 핸들러 레벨
        log_dir: 로그 디렉토리 (None이면 프로세스별 기본 경로)
    """
    if log_dir is None:
        log_file = get_log_file_path(process_name)
    else:
        log_file = log_dir / f"{process_name}.log"
    log_file.parent.mkdir(parents=True, exist_ok=True)

    console = logging.StreamHandler(sys.stdout)
    console.setLevel(console_level)

    formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)
    root = logging.getLogger()
    root.setLevel(logging.DEBUG)
    root.handlers.clear()
    for handler in (console, _file_handler(log_file, file_level)):
        handler.setFormatter(formatter)
        root.addHandler(handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    root.info(
        f"로깅 초기화: {process_name} "
        f"(console={logging.getLevelName(console_level)}, file={log_file})"
    )
    return root
