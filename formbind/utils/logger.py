"""
formbind Logger
===============

Structured logging with keyword context.

Every formbind logger writes through one shared sink, so a single
`configure_logging()` call (made for you from `FORMBIND_LOG_LEVEL` and
`FORMBIND_LOG_FORMAT`) changes the level, the output format and the
stream of all of them at once.

Example:
    logger = get_logger("formbind.walker")
    logger.debug("Applied default", field="page", value=1)
    # 2024-01-15 10:30:45 [DEBUG] formbind.walker: Applied default field=page value=1
"""

from __future__ import annotations

import logging
import sys
import traceback
from dataclasses import dataclass, field
from datetime import datetime
from enum import IntEnum
from typing import Any, Callable, Dict, Mapping, Optional, Union

import orjson


class LogLevel(IntEnum):
    """Log levels, numbered like the stdlib `logging` ones."""

    DEBUG = logging.DEBUG
    INFO = logging.INFO
    WARNING = logging.WARNING
    ERROR = logging.ERROR
    CRITICAL = logging.CRITICAL

    @classmethod
    def parse(cls, value: Union[str, int, "LogLevel"]) -> "LogLevel":
        """
        Parse a level from its name ("debug", " INFO ") or number.

        Raises:
            ValueError: Unknown level
        """
        if isinstance(value, str):
            try:
                return cls[value.strip().upper()]
            except KeyError:
                raise ValueError(f"Unknown log level '{value}'") from None
        return cls(value)


@dataclass(frozen=True)
class LogEvent:
    """
    One log line before rendering.

    Attributes:
        logger: Name of the emitting logger
        level: Severity
        message: Fixed message text
        context: Keyword context, rendered after the message
        exception: Attached exception, if any
        created: Creation time
    """

    logger: str
    level: LogLevel
    message: str
    context: Mapping[str, Any] = field(default_factory=dict)
    exception: Optional[BaseException] = None
    created: datetime = field(default_factory=datetime.now)

    def as_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "timestamp": self.created.isoformat(),
            "level": self.level.name,
            "logger": self.logger,
            "message": self.message,
        }
        if self.context:
            data["context"] = dict(self.context)
        if self.exception is not None:
            data["exception"] = {
                "type": type(self.exception).__name__,
                "message": str(self.exception),
            }
        return data


def render_text(event: LogEvent) -> str:
    """Render as `time [LEVEL] logger: message key=value ...`."""
    line = f"{event.created:%Y-%m-%d %H:%M:%S} [{event.level.name}] {event.logger}: {event.message}"

    if event.context:
        line += " " + " ".join(f"{key}={value}" for key, value in event.context.items())

    if event.exception is not None:
        exc = event.exception
        line += "\n" + "".join(traceback.format_exception(type(exc), exc, exc.__traceback__)).rstrip()

    return line


def render_json(event: LogEvent) -> str:
    """Render as a single-line JSON object."""
    return orjson.dumps(event.as_dict(), default=str).decode("utf-8")


RENDERERS: Dict[str, Callable[[LogEvent], str]] = {
    "text": render_text,
    "json": render_json,
}


class Sink:
    """
    Shared output of all formbind loggers.

    Attributes:
        level: Minimum level written
        render: Event renderer
        stream: Target stream; None means the current sys.stderr
    """

    def __init__(
        self,
        level: LogLevel = LogLevel.WARNING,
        render: Callable[[LogEvent], str] = render_text,
        stream: Any = None,
    ) -> None:
        self.level = level
        self.render = render
        self.stream = stream

    def accepts(self, level: LogLevel) -> bool:
        return level >= self.level

    def emit(self, event: LogEvent) -> None:
        stream = self.stream if self.stream is not None else sys.stderr
        stream.write(self.render(event) + "\n")
        stream.flush()


_sink = Sink()


class Logger:
    """
    Named logger carrying optional bound context.

    Example:
        log = get_logger("formbind.middleware").with_context(path="/posts")
        log.info("Request payload failed validation", errors=2)
    """

    __slots__ = ("name", "_context")

    def __init__(self, name: str, context: Optional[Mapping[str, Any]] = None) -> None:
        self.name = name
        self._context: Dict[str, Any] = dict(context or {})

    @property
    def level(self) -> LogLevel:
        return _sink.level

    def with_context(self, **context: Any) -> "Logger":
        """Create a logger with additional bound context."""
        return Logger(self.name, {**self._context, **context})

    def is_enabled_for(self, level: LogLevel) -> bool:
        return _sink.accepts(level)

    def log(
        self,
        level: LogLevel,
        message: str,
        exception: Optional[BaseException] = None,
        **context: Any,
    ) -> None:
        if not _sink.accepts(level):
            return

        _sink.emit(
            LogEvent(
                logger=self.name,
                level=level,
                message=message,
                context={**self._context, **context},
                exception=exception,
            )
        )

    def debug(self, message: str, **context: Any) -> None:
        self.log(LogLevel.DEBUG, message, **context)

    def info(self, message: str, **context: Any) -> None:
        self.log(LogLevel.INFO, message, **context)

    def warning(self, message: str, **context: Any) -> None:
        self.log(LogLevel.WARNING, message, **context)

    def error(
        self,
        message: str,
        exception: Optional[BaseException] = None,
        **context: Any,
    ) -> None:
        self.log(LogLevel.ERROR, message, exception, **context)

    def __repr__(self) -> str:
        return f"<Logger {self.name} ({_sink.level.name})>"


_loggers: Dict[str, Logger] = {}


def get_logger(name: str = "formbind") -> Logger:
    """Get the logger registered under a name, creating it on first use."""
    logger = _loggers.get(name)
    if logger is None:
        logger = _loggers[name] = Logger(name)
    return logger


def configure_logging(
    level: Union[str, int, LogLevel] = LogLevel.WARNING,
    format: str = "text",
    stream: Any = None,
) -> None:
    """
    Configure every formbind logger.

    Args:
        level: Minimum level
        format: Output format ("text" or "json")
        stream: Output stream (stderr by default)

    Raises:
        ValueError: Unknown level or format
    """
    render = RENDERERS.get(format)
    if render is None:
        raise ValueError(f"Unknown log format '{format}'")

    _sink.level = LogLevel.parse(level)
    _sink.render = render
    _sink.stream = stream
