"""
Structured logging using structlog.
Provides structured logging with different output formats and a runtime
log level that can be changed while the service is running.
"""

import logging
import sys
from pathlib import Path
from typing import Optional
import structlog
from structlog.stdlib import LoggerFactory

# Root level applied by setup_logging; runtime level 0 returns to it
_base_level = logging.INFO


def setup_logging(
    log_level: str = "INFO",
    log_format: str = "json",
    log_file: Optional[str] = None,
    debug: bool = False
) -> None:
    """
    Set up structured logging with configurable output formats.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_format: Output format (json or console)
        log_file: Optional log file path
        debug: Enable debug mode for more verbose logging
    """

    global _base_level

    # Configure standard library logging
    _base_level = getattr(logging, log_level.upper())
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=_base_level,
    )
    logging.getLogger().setLevel(_base_level)

    # Configure structlog processors
    processors = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if debug:
        processors.append(structlog.processors.CallsiteParameterAdder())

    if log_format == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=True))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=LoggerFactory(),
        context_class=dict,
        cache_logger_on_first_use=True,
    )

    # Set up file logging if specified
    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(getattr(logging, log_level.upper()))
        file_handler.setFormatter(logging.Formatter('%(message)s'))
        logging.getLogger().addHandler(file_handler)

    logger = structlog.get_logger(__name__)
    logger.info(
        "Logging system initialized",
        level=log_level,
        format=log_format,
        file=str(log_file) if log_file else None,
        debug=debug
    )


def get_logger(name: str) -> structlog.BoundLogger:
    """
    Get a structured logger instance.

    Args:
        name: Logger name (usually __name__)

    Returns:
        Configured structlog logger
    """
    return structlog.get_logger(name)


class RuntimeLogLevel:
    """
    Process-wide log level that can be switched at runtime.

    Levels:
        0: normal (the LOG_LEVEL applied by ``setup_logging``, INFO before that)
        1: debug (stdlib DEBUG)
        2: verbose (stdlib DEBUG plus full payload dumps)

    The level is initialised once at startup and afterwards only changed
    through ``set_level``.
    """

    LEVELS = {0: None, 1: logging.DEBUG, 2: logging.DEBUG}

    def __init__(self, level: int = 0):
        self._level = level if level in self.LEVELS else 0

    @property
    def level(self) -> int:
        return self._level

    @property
    def verbose(self) -> bool:
        """Whether request/response payloads should be dumped to the log."""
        return self._level >= 2

    def set_level(self, level: int) -> int:
        """
        Change the runtime level and apply it to the root logger.

        Unknown levels are ignored and the current level is kept.

        Returns:
            The level in effect after the call
        """
        if level not in self.LEVELS:
            return self._level
        changed = level != self._level
        self._level = level
        logging.getLogger().setLevel(self.LEVELS[level] or _base_level)
        if changed:
            structlog.get_logger(__name__).info("Runtime log level changed", level=level)
        return self._level


# Process-wide runtime log level
runtime_log_level = RuntimeLogLevel()
