"""Levelled logging to a text stream, configurable from the environment."""

from __future__ import annotations

import os
import sys
from datetime import datetime
from enum import IntEnum
from typing import Mapping, Optional, TextIO


class Level(IntEnum):
    """Severity of a log record; a logger writes records at or above its level."""

    DEBUG = 1
    INFO = 2
    WARN = 3
    ERROR = 4
    FATAL = 5
    PANIC = 6


_PREFIXES = {
    Level.DEBUG: "[D]",
    Level.INFO: "[I]",
    Level.WARN: "[W]",
    Level.ERROR: "[E]",
    Level.FATAL: "[F]",
    Level.PANIC: "[P]",
}

_LEVEL_NAMES = {
    name: level
    for level in Level
    for name in (level.name.lower(), level.name)
}

LEVEL_ENV = "HBEX_LOG_LEVEL"
FILE_ENV = "HBEX_LOG_FILE"


def _sprint(args: tuple) -> str:
    """Join arguments, adding a space only between two non-string operands."""
    parts: list[str] = []
    previous_is_str = True
    for position, arg in enumerate(args):
        is_str = isinstance(arg, str)
        if position and not is_str and not previous_is_str:
            parts.append(" ")
        parts.append(str(arg))
        previous_is_str = is_str
    return "".join(parts)


class Logger:
    """Writes timestamped, prefixed lines to a stream when the level allows."""

    def __init__(self, out: Optional[TextIO] = None, level: Level = Level.INFO):
        self.out = out
        self.level = Level(level)

    def set_level(self, level: Level) -> None:
        self.level = Level(level)

    def set_out(self, out: TextIO) -> None:
        self.out = out

    def _output(self, level: Level, message: str) -> None:
        if self.level > level:
            return
        stream = self.out if self.out is not None else sys.stderr
        stamp = datetime.now().strftime("%Y/%m/%d %H:%M:%S")
        stream.write(f"{stamp} {_PREFIXES[level]} {message}\n")
        stream.flush()

    def debug(self, *args) -> None:
        self._output(Level.DEBUG, _sprint(args))

    def info(self, *args) -> None:
        self._output(Level.INFO, _sprint(args))

    def warn(self, *args) -> None:
        self._output(Level.WARN, _sprint(args))

    def error(self, *args) -> None:
        self._output(Level.ERROR, _sprint(args))

    def fatal(self, *args) -> None:
        """Log and exit with status 1, unless the level is above FATAL."""
        if self.level <= Level.FATAL:
            self._output(Level.FATAL, _sprint(args))
            raise SystemExit(1)

    def panic(self, *args) -> None:
        """Log and raise RuntimeError with the message, unless filtered out."""
        if self.level <= Level.PANIC:
            message = _sprint(args)
            self._output(Level.PANIC, message)
            raise RuntimeError(message)


LOG = Logger()


def parse_level(name: str) -> Level:
    """Map an all-lower or all-upper level name to a Level; ERROR otherwise."""
    return _LEVEL_NAMES.get(name, Level.ERROR)


def configure_from_env(environ: Optional[Mapping[str, str]] = None) -> None:
    """Set the shared logger's level and output file from environment variables."""
    env = os.environ if environ is None else environ
    set_level(parse_level(env.get(LEVEL_ENV, "")))
    file_name = env.get(FILE_ENV, "")
    if not file_name:
        return
    try:
        handle = open(file_name, "w", encoding="utf-8")
    except OSError as exc:
        warn("log file not open ??? ")
        error(str(exc))
    else:
        set_out(handle)


def set_level(level: Level) -> None:
    LOG.set_level(level)


def set_out(out: TextIO) -> None:
    LOG.set_out(out)


def debug(*args) -> None:
    LOG.debug(*args)


def info(*args) -> None:
    LOG.info(*args)


def warn(*args) -> None:
    LOG.warn(*args)


def error(*args) -> None:
    LOG.error(*args)


configure_from_env()