"""
Logging utilities for the command dispatch package.

Standard library handlers carry a ``test``/``prod`` environment tag, and
structlog loggers are routed through them so the processor can log dispatch
events as key/value pairs.
"""

import logging
import os
import sys
from collections.abc import Hashable
from typing import Any, Literal

import structlog

from chatcmd.core.domain.command_results import CommandFailure, command_label

DEFAULT_LOG_FORMAT = (
    "%(asctime)s [%(levelname)-8s] [%(env_tag)s] %(name)s:%(lineno)d %(message)s"
)


def environment_tag() -> str:
    """Return ``test`` when running under pytest, ``prod`` otherwise."""
    if "pytest" in sys.modules or os.getenv("PYTEST_CURRENT_TEST") is not None:
        return "test"
    return "prod"


class EnvironmentTaggingFilter(logging.Filter):
    """Logging filter that adds environment tags to log records."""

    def __init__(self) -> None:
        super().__init__()
        self._env_tag = environment_tag()

    def filter(self, record: logging.LogRecord) -> bool:  # type: ignore[override]
        record.env_tag = self._env_tag
        return True


class EnvironmentTaggingFormatter(logging.Formatter):
    """Logging formatter that includes environment tags."""

    def __init__(
        self,
        fmt: str | None = None,
        datefmt: str | None = None,
        style: Literal["%", "{", "$"] = "%",
    ) -> None:
        super().__init__(fmt or DEFAULT_LOG_FORMAT, datefmt, style=style)


def configure_structlog() -> None:
    """Route structlog through the standard library logging tree."""
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.KeyValueRenderer(key_order=["event"]),
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a structured logger, configuring structlog on first use."""
    if not structlog.is_configured():
        configure_structlog()
    return structlog.get_logger(name)  # type: ignore


def configure_logging_with_environment_tagging(
    level: int = logging.INFO,
    log_format: str | None = None,
    log_file: str | None = None,
) -> None:
    """Configure the root logger with environment-tagged handlers.

    Args:
        level: Logging level
        log_format: Optional log format string
        log_file: Optional log file path, logged to in addition to stderr
    """
    formatter = EnvironmentTaggingFormatter(fmt=log_format)
    tagging = EnvironmentTaggingFilter()

    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if log_file:
        handlers.append(logging.FileHandler(log_file))
    for handler in handlers:
        handler.setFormatter(formatter)
        handler.addFilter(tagging)

    logging.basicConfig(level=level, handlers=handlers, force=True)
    configure_structlog()


class DispatchLogContext:
    """Binds one dispatch stage and its input to a structured logger.

    Example:
        >>> with DispatchLogContext(logger, "execute", "!raid 5 at park") as log:
        ...     log.outcome("raid", outcome)
    """

    def __init__(
        self, logger: structlog.stdlib.BoundLogger, stage: str, text: str, **context: Any
    ):
        self.logger = logger
        self.context = {"stage": stage, "input": text, **context}
        self.bound_logger: structlog.stdlib.BoundLogger | None = None

    def __enter__(self) -> "DispatchLogContext":
        self.bound_logger = self.logger.bind(**self.context)
        return self

    def __exit__(self, *args: Any) -> None:
        self.bound_logger = None

    @property
    def log(self) -> structlog.stdlib.BoundLogger:
        return self.bound_logger if self.bound_logger is not None else self.logger

    def outcome(self, key: Hashable, outcome: Any) -> None:
        """Log one descriptor's outcome. No-match failures are not logged."""
        if not isinstance(outcome, CommandFailure):
            self.log.debug("Command accepted", command=command_label(key))
        elif not outcome.is_no_match:
            self.log.debug(
                "Command failed",
                command=command_label(key),
                phase=outcome.phase.value,
                error=outcome.message,
            )
