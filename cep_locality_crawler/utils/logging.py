"""
Logging configuration and utilities.

Business loggers (crawler sessions, orchestrator, API) write to their own
daily-rotated files under the logs directory; log files past the retention
window are cleaned up by a background job.
"""

import logging
import logging.handlers
import os
import sys
import time
import threading
from pathlib import Path
from typing import Optional, Dict, Any
from datetime import datetime, timedelta

import schedule
import structlog


DEFAULT_LOGS_DIR = "logs"

_cleanup_started = False
_cleanup_lock = threading.Lock()


def get_logs_dir() -> Path:
    """Directory business log files are written to."""
    return Path(os.getenv("CEP_CRAWLER_LOG_DIR", DEFAULT_LOGS_DIR))


def setup_logging(
    log_level: str = "INFO",
    log_file: Optional[str] = None,
    retention_days: int = 7
) -> None:
    """
    Set up structured logging for the application.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional log file path
        retention_days: Number of days to retain log files
    """
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer()
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, log_level.upper()))
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    ))
    root_logger.addHandler(console_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.handlers.TimedRotatingFileHandler(
            log_file,
            when='midnight',
            interval=1,
            backupCount=retention_days,
            encoding='utf-8'
        )
        file_handler.suffix = "%Y-%m-%d"
        file_handler.setFormatter(logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s'
        ))
        root_logger.addHandler(file_handler)

        _start_log_cleanup_scheduler(log_path.parent, retention_days)


def get_logger(name: str) -> logging.Logger:
    """
    Get a standard logger instance.

    Args:
        name: Logger name (typically __name__)
    """
    return logging.getLogger(name)


def get_business_logger(business_name: str, log_level: str = "INFO") -> logging.Logger:
    """
    Get a logger that writes to the business-specific log file.

    Args:
        business_name: Business name (e.g. 'crawler_session', 'orchestrator')
        log_level: Logging level

    Returns:
        Configured logger
    """
    business_logs = {
        "crawler_session": "crawler_session.log",
        "crawler_browser": "crawler_browser.log",
        "orchestrator": "orchestrator.log",
        "api": "api.log",
        "result_writer": "result_writer.log",
        "system": "system.log",
    }
    log_name = business_logs.get(business_name, f"{business_name}.log")

    logger = logging.getLogger(f"business.{business_name}")
    if logger.handlers:
        return logger

    logger.setLevel(getattr(logging, log_level.upper()))

    log_path = get_logs_dir() / log_name
    log_path.parent.mkdir(parents=True, exist_ok=True)

    file_handler = logging.handlers.TimedRotatingFileHandler(
        log_path,
        when='midnight',
        interval=1,
        backupCount=7,
        encoding='utf-8',
        delay=True
    )
    file_handler.suffix = "%Y-%m-%d"
    file_handler.setFormatter(logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s'
    ))
    logger.addHandler(file_handler)

    # Console only shows errors; the root logger handles the rest.
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(logging.ERROR)
    console_handler.setFormatter(logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    ))
    logger.addHandler(console_handler)

    return logger


def _start_log_cleanup_scheduler(logs_dir: Path, retention_days: int) -> None:
    """Start the daily log cleanup job (once per process)."""
    global _cleanup_started

    with _cleanup_lock:
        if _cleanup_started:
            return
        _cleanup_started = True

    def cleanup_job():
        try:
            cleanup_old_logs(logs_dir, retention_days)
        except OSError as e:
            logging.getLogger(__name__).warning(f"Log cleanup failed: {e}")

    schedule.every().day.at("02:00").do(cleanup_job)

    def run_scheduler():
        while True:
            schedule.run_pending()
            time.sleep(60)

    scheduler_thread = threading.Thread(target=run_scheduler, name="log-cleanup", daemon=True)
    scheduler_thread.start()


def cleanup_old_logs(logs_dir: Optional[Path] = None, retention_days: int = 7) -> int:
    """
    Delete log files older than the retention window.

    Args:
        logs_dir: Logs directory
        retention_days: Days to keep

    Returns:
        Number of files removed
    """
    logs_dir = logs_dir or get_logs_dir()
    if not logs_dir.exists():
        return 0

    cleaned_count = 0
    cutoff_date = datetime.now() - timedelta(days=retention_days)

    for log_file in logs_dir.glob("*.log*"):
        if log_file.is_file():
            file_mtime = datetime.fromtimestamp(log_file.stat().st_mtime)
            if file_mtime < cutoff_date:
                log_file.unlink()
                cleaned_count += 1

    if cleaned_count > 0:
        logging.getLogger(__name__).info(f"Removed {cleaned_count} expired log files from {logs_dir}")

    return cleaned_count


def log_business_operation(business_name: str, operation_name: Optional[str] = None):
    """
    Decorator logging start, completion and duration of a business operation.

    Args:
        business_name: Business logger name
        operation_name: Operation name (defaults to the function name)
    """
    def decorator(func):
        def wrapper(*args, **kwargs):
            logger = get_business_logger(business_name)
            op_name = operation_name or func.__name__

            logger.info(f"Starting {op_name}")
            start_time = time.time()

            try:
                result = func(*args, **kwargs)
                duration = time.time() - start_time
                logger.info(f"Finished {op_name} in {duration:.2f}s")
                return result

            except Exception as e:
                duration = time.time() - start_time
                logger.error(f"{op_name} failed after {duration:.2f}s: {e}")
                raise

        wrapper.__name__ = func.__name__
        wrapper.__doc__ = func.__doc__
        wrapper.__wrapped__ = func
        return wrapper
    return decorator
