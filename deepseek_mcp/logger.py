"""Levelled logging to a text stream."""

from __future__ import annotations

import sys
from datetime import datetime
from enum import IntEnum
from typing import Any, TextIO


class LogLevel(IntEnum):
    """Severity of a log message, ordered from most to least verbose."""

    DEBUG = 0
    INFO = 1
    WARN = 2
    ERROR = 3

    def __str__(self) -> str:
        return self.name


def _parse_level(level: LogLevel | str) -> LogLevel:
    if isinstance(level, LogLevel):
        return level
    try:
        return LogLevel[str(level).upper()]
    except KeyError:
        return LogLevel.INFO


class Logger:
    """Writes timestamped messages at or above a minimum level."""

    def __init__(self, level: LogLevel | str = LogLevel.INFO, stream: TextIO | None = None) -> None:
        self.level = _parse_level(level)
        self._stream = stream

    @property
    def stream(self) -> TextIO:
        return self._stream if self._stream is not None else sys.stderr

    def debug(self, message: str, *args: Any) -> None:
        self._log(LogLevel.DEBUG, message, args)

    def info(self, message: str, *args: Any) -> None:
        self._log(LogLevel.INFO, message, args)

    def warn(self, message: str, *args: Any) -> None:
        self._log(LogLevel.WARN, message, args)

    def error(self, message: str, *args: Any) -> None:
        self._log(LogLevel.ERROR, message, args)

    def _log(self, level: LogLevel, message: str, args: tuple[Any, ...]) -> None:
        if level < self.level:
            return
        text = message % args if args else message
        now = datetime.now()
        prefix = now.strftime("%Y/%m/%d %H:%M:%S")
        stamp = now.strftime("%Y-%m-%d %H:%M:%S.") + f"{now.microsecond // 1000:03d}"
        stream = self.stream
        stream.write(f"{prefix} [{stamp}] [{level}] {text}\n")
        stream.flush()


def new_logger(level: str) -> Logger:
    """Create a logger writing to standard error; unknown level names mean INFO."""
    return Logger(_parse_level(level))