"""Logging setup and the process-wide progress status line."""

from __future__ import annotations

import logging
import os
import threading
from contextlib import contextmanager
from typing import Callable, Iterator

from .nixlog import TRACE
from .progress import Progress

logging.addLevelName(TRACE, "TRACE")

ENV_VAR = "CODCHI_LOG"

_RESET = "\x1b[0m"
_STYLES = {
    "ERROR": "\x1b[31;1m",
    "WARN": "\x1b[33m",
    "INFO": "\x1b[32m",
    "DEBUG": "\x1b[34m",
    "TRACE": "\x1b[36m",
}

_LEVELS = {
    "off": logging.CRITICAL + 10,
    "error": logging.ERROR,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "info": logging.INFO,
    "debug": logging.DEBUG,
    "trace": TRACE,
}

_HANDLER_MARK = "_codchi_handler"


def _level_name(levelno: int) -> str:
    if levelno >= logging.ERROR:
        return "ERROR"
    if levelno >= logging.WARNING:
        return "WARN"
    if levelno >= logging.INFO:
        return "INFO"
    if levelno >= logging.DEBUG:
        return "DEBUG"
    return "TRACE"


def _parse_level(text: str) -> int:
    try:
        return _LEVELS[text.strip().lower()]
    except KeyError:
        raise ValueError(f"Unknown log level '{text}'") from None


class LevelFormatter(logging.Formatter):
    """Formats records as ``[LEVEL target] message``.

    The target is left out for the program's own loggers.
    """

    def __init__(self, color: bool = True) -> None:
        super().__init__()
        self.color = color

    def format(self, record: logging.LogRecord) -> str:
        name = _level_name(record.levelno)
        level = f"{_STYLES[name]}{name}{_RESET}" if self.color else name
        target = "" if record.name.startswith("codchi") else f" {record.name}"
        text = f"[{level}{target}] {record.getMessage()}"
        if record.exc_info:
            text = f"{text}\n{self.formatException(record.exc_info)}"
        return text


def init(level: int | str) -> logging.Handler:
    """Install the stderr handler on the root logger and return it.

    ``CODCHI_LOG`` may override levels, either globally (``debug``) or per
    logger (``nix=trace``), comma separated. Raises RuntimeError if called twice.
    """
    root = logging.getLogger()
    if any(getattr(h, _HANDLER_MARK, False) for h in root.handlers):
        raise RuntimeError("Failed initializing logger: it is already initialized")

    root.setLevel(_parse_level(level) if isinstance(level, str) else level)
    env = os.environ.get(ENV_VAR, "")
    for directive in filter(None, (d.strip() for d in env.split(","))):
        if "=" in directive:
            target, value = directive.split("=", 1)
            logging.getLogger(target.strip()).setLevel(_parse_level(value))
        else:
            root.setLevel(_parse_level(directive))

    handler = logging.StreamHandler()
    isatty = getattr(handler.stream, "isatty", None)
    handler.setFormatter(LevelFormatter(color=bool(isatty and isatty())))
    setattr(handler, _HANDLER_MARK, True)
    root.addHandler(handler)
    return handler


_lock = threading.Lock()
_progress: Progress | None = None


def _with_progress(action: Callable[[Progress], None]) -> None:
    global _progress
    with _lock:
        if _progress is None:
            _progress = Progress()
        action(_progress)


def set_progress_status(status: str) -> None:
    """Set the message of the status line, creating it if needed."""
    _with_progress(lambda progress: progress.set_status(status))


def log_progress(fallback_target: str, fallback_level: int, msg: str) -> None:
    """Feed one line of (possibly structured nix) output to the status line."""
    _with_progress(lambda progress: progress.log(fallback_target, fallback_level, msg))


def hide_progress() -> None:
    """Remove the status line."""
    global _progress
    with _lock:
        _progress = None


def current_progress() -> Progress | None:
    """The active status line, if any."""
    with _lock:
        return _progress


@contextmanager
def progress_scope() -> Iterator[None]:
    """Run a block and remove the status line when it ends."""
    try:
        yield
    finally:
        hide_progress()