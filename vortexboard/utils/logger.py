"""
Logging setup shared by every VortexBoard module.

Key Features:
    - One log file per process run, grouped in date directories
    - Size-based rotation that survives locked files
    - Console output with a shorter format
    - Old date directories removed when loggers are created
"""

import datetime
import logging
import os
import shutil
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

LOG_DIR = Path(os.getenv("LOG_DIR", "logs"))
LOG_FILE_BASENAME = "vortexboard"

LOG_FORMAT = (
    "%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s"
)
CONSOLE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
DEFAULT_LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_RETENTION_DAYS = int(os.getenv("LOG_RETENTION_DAYS", "7"))

MAX_LOG_SIZE_BYTES = 5 * 1024 * 1024
MAX_BACKUP_COUNT = 10

_shared_file_handler: logging.Handler | None = None
_cleanup_done = False


class SafeRotatingFileHandler(RotatingFileHandler):
    """Rotating handler that keeps writing to the current file when rollover fails."""

    def doRollover(self):
        try:
            super().doRollover()
        except OSError as e:
            sys.stderr.write(
                f"Log rotation failed: {e}. Continuing with current log file.\n"
            )
            sys.stderr.flush()


def _run_log_file() -> Path:
    now = datetime.datetime.now()
    date_dir = LOG_DIR / now.strftime("%Y-%m-%d")
    date_dir.mkdir(parents=True, exist_ok=True)
    return date_dir / f"{LOG_FILE_BASENAME}_{now.strftime('%Y-%m-%d_%H-%M-%S')}.log"


def _get_file_handler() -> logging.Handler:
    """Return the file handler every logger of this process writes to."""
    global _shared_file_handler
    if _shared_file_handler is None:
        handler = SafeRotatingFileHandler(
            _run_log_file(),
            maxBytes=MAX_LOG_SIZE_BYTES,
            backupCount=MAX_BACKUP_COUNT,
            encoding="utf-8",
        )
        handler.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))
        _shared_file_handler = handler
    return _shared_file_handler


def _get_log_level(level_str: str) -> int:
    level = logging.getLevelName(level_str.upper())
    return level if isinstance(level, int) else logging.INFO


def setup_logger(name: str, level: str = None) -> logging.Logger:
    """Set up a named logger writing to the console and the shared run log."""
    global _cleanup_done

    logger = logging.getLogger(name)
    log_level = _get_log_level(level or DEFAULT_LOG_LEVEL)
    logger.setLevel(log_level)

    if logger.handlers:
        return logger

    console_handler = logging.StreamHandler()
    console_handler.setLevel(log_level)
    console_handler.setFormatter(logging.Formatter(CONSOLE_FORMAT, DATE_FORMAT))
    logger.addHandler(console_handler)
    logger.addHandler(_get_file_handler())
    logger.propagate = False

    if not _cleanup_done:
        cleanup_old_logs(keep_days=LOG_RETENTION_DAYS)
        _cleanup_done = True

    return logger


def cleanup_old_logs(keep_days: int = 7) -> int:
    """Remove date directories older than keep_days. Returns how many were removed."""
    if not LOG_DIR.exists():
        return 0

    cutoff = datetime.datetime.now() - datetime.timedelta(days=keep_days)
    removed = 0
    for date_dir in LOG_DIR.iterdir():
        if not date_dir.is_dir():
            continue
        try:
            dir_date = datetime.datetime.strptime(date_dir.name, "%Y-%m-%d")
        except ValueError:
            # Not one of ours
            continue
        if dir_date < cutoff:
            try:
                shutil.rmtree(date_dir)
                removed += 1
            except OSError as e:
                sys.stderr.write(f"Could not remove old log directory {date_dir}: {e}\n")
    return removed
