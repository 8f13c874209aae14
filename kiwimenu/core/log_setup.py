import logging
import os
from logging.handlers import RotatingFileHandler
from typing import List, Optional

import structlog
from rich.logging import RichHandler
from structlog.dev import ConsoleRenderer
from structlog.processors import (
    JSONRenderer,
    StackInfoRenderer,
    TimeStamper,
    add_log_level,
    format_exc_info,
)
from structlog.stdlib import BoundLogger, ProcessorFormatter, add_logger_name

from kiwimenu.shared.path_handler import PathHandler

LOGGER_NAME = "kiwimenu"
LOG_FILE_MAX_BYTES = 1024 * 1024
LOG_FILE_BACKUPS = 2


def get_log_file_path() -> str:
    return str(PathHandler(LOGGER_NAME).get_log_file())


def level_from_name(name: str, default: int = logging.INFO) -> int:
    """Maps "debug", "WARNING", ... to a logging level; unknown names give ``default``."""
    level = logging.getLevelName(str(name).upper())
    return level if isinstance(level, int) else default


class RepeatFilter(logging.Filter):
    """
    Drops a warning identical to the one right before it. A flapping D-Bus
    service otherwise logs the same failure on every menu rebuild.
    """

    def __init__(self):
        super().__init__()
        self._last_warning: Optional[str] = None

    def filter(self, record):
        if record.levelno != logging.WARNING:
            self._last_warning = None
            return True
        message = record.getMessage()
        if message == self._last_warning:
            return False
        self._last_warning = message
        return True


def _pre_chain() -> List:
    return [
        add_log_level,
        TimeStamper(fmt="%Y-%m-%d %H:%M:%S", utc=False),
        StackInfoRenderer(),
        format_exc_info,
    ]


def _json_file_handler(log_file: str, level: int) -> logging.Handler:
    os.makedirs(os.path.dirname(log_file), exist_ok=True)
    handler = RotatingFileHandler(
        log_file,
        maxBytes=LOG_FILE_MAX_BYTES,
        backupCount=LOG_FILE_BACKUPS,
        encoding="utf-8",
    )
    handler.setLevel(level)
    handler.addFilter(RepeatFilter())
    handler.setFormatter(
        ProcessorFormatter(
            foreign_pre_chain=_pre_chain() + [add_logger_name],
            processor=JSONRenderer(),
        )
    )
    return handler


def _console_handler(level: int) -> logging.Handler:
    handler = RichHandler(
        rich_tracebacks=True,
        markup=True,
        show_path=False,
        show_time=False,
    )
    handler.setLevel(level)
    handler.addFilter(RepeatFilter())
    handler.setFormatter(
        ProcessorFormatter(
            foreign_pre_chain=_pre_chain(),
            processor=ConsoleRenderer(colors=False),
            fmt="%(message)s",
        )
    )
    return handler


def setup_logging(
    level: int = logging.INFO, log_file: Optional[str] = None
) -> BoundLogger:
    """
    Routes structlog through the ``kiwimenu`` stdlib logger: JSON lines to a
    rotating file and a rich console. Calling it again replaces the handlers.
    """
    structlog.configure(
        processors=_pre_chain() + [add_logger_name, ProcessorFormatter.wrap_for_formatter],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
    std_logger = logging.getLogger(LOGGER_NAME)
    std_logger.setLevel(level)
    std_logger.propagate = False
    for handler in std_logger.handlers[:]:
        std_logger.removeHandler(handler)
        handler.close()
    std_logger.addHandler(_json_file_handler(log_file or get_log_file_path(), level))
    std_logger.addHandler(_console_handler(level))
    return structlog.get_logger(LOGGER_NAME)
