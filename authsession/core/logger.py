import logging
import os
import sys
import uuid
from contextvars import ContextVar
from pathlib import Path
from typing import TYPE_CHECKING, Optional

from loguru import logger

from authsession.core.config import Environment, Settings

if TYPE_CHECKING:
    from loguru import Record

# Bound by LoggingMiddleware for the duration of a request
request_id_var: ContextVar[Optional[str]] = ContextVar("request_id", default=None)

LOG_DIR = Path("logs")
LOG_FILE = LOG_DIR / "authsession.log"

# Standard library loggers routed into loguru
STD_LOGGER_PREFIXES = ("uvicorn", "redis")

RECORD_FORMAT = (
    "PID:{extra[process_id]} | ReqID:{extra[request_id]} | {name}:{function}:{line} | {message}"
)


def correlation_filter(record: "Record") -> bool:
    """
    Add the request id and process id to log records, so lines of one
    request can be followed across workers.
    """
    record["extra"]["request_id"] = request_id_var.get() or str(uuid.uuid4())[:8]
    record["extra"]["process_id"] = os.getpid()

    return True


class InterceptHandler(logging.Handler):
    """Forwards standard logging records (uvicorn, redis-py) to loguru."""

    def emit(self, record: logging.LogRecord):
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # Report the caller, not the logging module
        frame = logging.currentframe()
        depth = 2
        while frame and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def setup_logger(settings: Settings):
    """
    Replace loguru's default handler with a console sink and a rotating file sink.

    Both sinks go through a process-safe queue. Tracebacks never include
    local variables (``diagnose=False``): they may hold token values.

    Call once during application startup (FastAPI lifespan).
    """
    logger.remove()

    log_level = logging.getLevelName(settings.log_level)
    console_level = "DEBUG" if settings.current_environment == Environment.DEV else log_level

    logger.add(
        sys.stdout,
        format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
        + RECORD_FORMAT,
        level=console_level,
        colorize=True,
        enqueue=True,
        filter=correlation_filter,
        diagnose=False,
    )

    LOG_DIR.mkdir(exist_ok=True)

    logger.add(
        LOG_FILE,
        format="{time:YYYY-MM-DD HH:mm:ss!UTC} | {level: <8} | " + RECORD_FORMAT,
        level=log_level,
        rotation="10 MB",
        retention="3 months",
        compression="gz",
        enqueue=True,
        filter=correlation_filter,
        backtrace=True,
        diagnose=False,
    )

    logger.info(
        f"Logger initialized | Environment: {settings.current_environment.value} | Level: {log_level}"
    )


def configure_std_logging():
    """Route the standard library loggers through loguru. Call after setup_logger()."""
    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)

    for name in list(logging.root.manager.loggerDict):
        if name.startswith(STD_LOGGER_PREFIXES):
            std_logger = logging.getLogger(name)
            std_logger.handlers = [InterceptHandler()]
            std_logger.propagate = False


def shutdown_logger():
    """Flush queued records. Call in the FastAPI shutdown phase."""
    logger.info("Shutting down logger...")
    logger.complete()
