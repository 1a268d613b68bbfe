"""Logging configuration using Loguru."""

import logging
import sys
from pathlib import Path

from loguru import logger

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{extra[module]}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
    "<level>{message}</level>"
)
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {extra[module]}:{function}:{line} - {message}"

# Third-party loggers that go through the stdlib logging module
STDLIB_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access", "httpx", "openai")


class InterceptHandler(logging.Handler):
    """Forward stdlib logging records (uvicorn, httpx, openai) into Loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level: str | int = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        logger.bind(module=record.name).opt(exception=record.exc_info).log(
            level, record.getMessage()
        )


def setup_logging(
    level: str = "INFO",
    log_to_file: bool = True,
    log_dir: str = "logs",
    file_rotation: str = "10 MB",
    file_retention: str = "7 days",
    compression: str = "zip",
    serialize: bool = True,
    intercept_stdlib: bool = True,
) -> None:
    """
    Configure Loguru with a colored console sink and an optional rotating file sink.

    Args:
        level: Minimum level for all sinks
        log_to_file: Also write to ``log_dir/nexmind_<date>.log``
        log_dir: Directory for log files (created if missing)
        file_rotation: Loguru rotation rule, e.g. "10 MB"
        file_retention: Loguru retention rule, e.g. "7 days"
        compression: Archive format for rotated files
        serialize: Write file records as JSON lines
        intercept_stdlib: Route stdlib loggers (uvicorn, httpx, openai) into Loguru
    """
    logger.remove()
    logger.configure(extra={"module": "nexmind"})

    logger.add(
        sys.stderr,
        level=level,
        format=CONSOLE_FORMAT,
        colorize=True,
        serialize=False,
    )

    if log_to_file:
        log_path = Path(log_dir)
        log_path.mkdir(parents=True, exist_ok=True)

        logger.add(
            log_path / "nexmind_{time:YYYY-MM-DD}.log",
            level=level,
            format=FILE_FORMAT,
            rotation=file_rotation,
            retention=file_retention,
            compression=compression,
            serialize=serialize,
            enqueue=True,
        )

    if intercept_stdlib:
        logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)
        for name in STDLIB_LOGGERS:
            std_logger = logging.getLogger(name)
            std_logger.handlers = [InterceptHandler()]
            std_logger.propagate = False


def get_logger(name: str):
    """Get a logger bound to a module name."""
    return logger.bind(module=name)
