"""
Centralized logging configuration for CloudPrint.

Both the coordinator and the printer agent are multi-threaded: the
coordinator handles HTTP requests and Socket.IO events concurrently, and
the agent prints each job on its own thread. Every log line therefore
carries the name of the thread that produced it.

Everything logs under one namespace, ``cloud_print``. The coordinator and
the agent share it; they differ only in the file names their logs go to
(``cloud_print.log`` vs ``cloud_print_agent.log``).

Log Format:
    2026-10-18 10:15:30 [INFO    ] [MainThread] cloud_print.app - Starting application
    2026-10-18 10:15:31 [INFO    ] [Thread-7] cloud_print.services.job_service - Payment verified
    2026-10-18 10:15:32 [INFO    ] [Job-a1b2c3d4] cloud_print.job.a1b2c3d4 - Printing copy 1 of 3

Usage:
    from logging_config import setup_logging, get_logger

    setup_logging(app_name="cloud_print_agent", enable_file_logging=False)
    logger = get_logger(__name__)
    job_logger = get_job_logger(job_id)
"""

import logging
import sys
import threading
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional


LOGGER_NAMESPACE = "cloud_print"

LOG_FORMAT = "%(asctime)s [%(levelname)-8s] [%(thread_name)s] %(name)s - %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

MAX_LOG_BYTES = 10 * 1024 * 1024
LOG_BACKUPS = 5


class ThreadContextFilter(logging.Filter):
    """Stamps ``thread_name`` and ``thread_id`` on every record it sees."""

    def filter(self, record: logging.LogRecord) -> bool:
        current = threading.current_thread()
        record.thread_name = current.name
        record.thread_id = threading.get_ident()
        return True


def _attach(logger: logging.Logger, handler: logging.Handler, level: int) -> None:
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATE_FORMAT))
    handler.addFilter(ThreadContextFilter())
    logger.addHandler(handler)


def _rotating(path: Path) -> RotatingFileHandler:
    return RotatingFileHandler(
        filename=path,
        maxBytes=MAX_LOG_BYTES,
        backupCount=LOG_BACKUPS,
        encoding="utf-8",
    )


def setup_logging(
    app_name: str = LOGGER_NAMESPACE,
    log_level: int = logging.INFO,
    log_dir: Optional[Path] = None,
    enable_file_logging: bool = True,
) -> logging.Logger:
    """
    Configure the ``cloud_print`` logger tree.

    Handlers:
        - stdout, always
        - ``<log_dir>/<app_name>.log`` rotating, when file logging is on
        - ``<log_dir>/<app_name>_error.log`` for ERROR and above, same condition

    Calling it again replaces the previous handlers, so create_app() can
    run more than once in one process.

    Returns:
        The configured namespace logger
    """
    logger = logging.getLogger(LOGGER_NAMESPACE)
    logger.setLevel(log_level)
    logger.propagate = False

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    _attach(logger, logging.StreamHandler(sys.stdout), log_level)

    if enable_file_logging:
        log_dir = Path(log_dir) if log_dir is not None else Path(__file__).parent / "logs"
        log_dir.mkdir(parents=True, exist_ok=True)

        app_log_file = log_dir / f"{app_name}.log"
        _attach(logger, _rotating(app_log_file), log_level)
        _attach(logger, _rotating(log_dir / f"{app_name}_error.log"), logging.ERROR)

        logger.info(f"File logging enabled: {app_log_file}")

    logger.info(f"Logging configured at level {logging.getLevelName(log_level)}")
    return logger


def get_logger(name: str) -> logging.Logger:
    """
    Logger for a module, placed under the ``cloud_print`` namespace.

    ``get_logger("services.job_service")`` -> ``cloud_print.services.job_service``
    """
    if name != LOGGER_NAMESPACE and not name.startswith(f"{LOGGER_NAMESPACE}."):
        name = f"{LOGGER_NAMESPACE}.{name}"
    return logging.getLogger(name)


def get_job_logger(job_id: str) -> logging.Logger:
    """Per-job logger, named by the first 8 characters of the job id."""
    return logging.getLogger(f"{LOGGER_NAMESPACE}.job.{job_id[:8]}")


def set_thread_name(name: str) -> None:
    """Rename the current thread; the name shows up in every log line it emits."""
    threading.current_thread().name = name
