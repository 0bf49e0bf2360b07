"""Parsing of nix's structured JSON log lines (``--log-format internal-json``)."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Callable, Union

NIX_PREFIX = "@nix "

# Finer than logging.DEBUG; used for nix's chattiest messages.
TRACE = 5

_I64_MIN = -(2**63)
_I64_MAX = 2**63 - 1


class Verbosity(IntEnum):
    ERROR = 0
    WARN = 1
    NOTICE = 2
    INFO = 3
    TALKATIVE = 4
    CHATTY = 5
    DEBUG = 6
    VOMIT = 7

    def to_level(self) -> int:
        """The :mod:`logging` level a nix message of this verbosity is logged at."""
        if self is Verbosity.ERROR:
            return logging.ERROR
        if self in (Verbosity.WARN, Verbosity.NOTICE):
            return logging.INFO
        if self is Verbosity.INFO:
            return logging.DEBUG
        return TRACE


class ActivityType(IntEnum):
    UNKNOWN = 0
    COPY_PATH = 100
    FILE_TRANSFER = 101
    REALISE = 102
    COPY_PATHS = 103
    BUILDS = 104
    BUILD = 105
    OPTIMISE_STORE = 106
    VERIFY_PATHS = 107
    SUBSTITUTE = 108
    QUERY_PATH_INFO = 109
    POST_BUILD_HOOK = 110
    BUILD_WAITING = 111
    FETCH_TREE = 112


class ResultType(IntEnum):
    FILE_LINKED = 100
    BUILD_LOG_LINE = 101
    UNTRUSTED_PATH = 102
    CORRUPTED_PATH = 103
    SET_PHASE = 104
    PROGRESS = 105
    SET_EXPECTED = 106
    POST_BUILD_LOG_LINE = 107
    FETCH_STATUS = 108


@dataclass(frozen=True)
class Activity:
    """A started nix activity; only the fields that belong to ``kind`` are set."""

    kind: ActivityType
    path: str | None = None
    source: str | None = None
    target: str | None = None
    uri: str | None = None
    machine: str | None = None
    round: int | None = None
    total_rounds: int | None = None


@dataclass(frozen=True)
class LogResult:
    """A result reported for an activity; only the fields that belong to ``kind`` are set."""

    kind: ResultType
    size: int | None = None
    blocks: int | None = None
    line: str | None = None
    path: str | None = None
    phase: str | None = None
    done: int | None = None
    expected: int | None = None
    running: int | None = None
    failed: int | None = None
    activity_type: ActivityType | None = None


@dataclass(frozen=True)
class Msg:
    level: Verbosity
    msg: str


@dataclass(frozen=True)
class Start:
    id: int
    level: Verbosity
    text: str
    activity: Activity


@dataclass(frozen=True)
class Stop:
    id: int


@dataclass(frozen=True)
class Result:
    id: int
    result: LogResult


@dataclass(frozen=True)
class OutputLine:
    """A plain line of output that is not a structured nix message."""

    line: str


@dataclass(frozen=True)
class UnknownItem:
    """A structured nix message that could not be understood."""

    value: Any


LogItem = Union[Msg, Start, Stop, Result, OutputLine, UnknownItem]


class _Invalid(Exception):
    pass


def _is_i64(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and _I64_MIN <= value <= _I64_MAX


def _i64(value: Any) -> int:
    if not _is_i64(value):
        raise _Invalid
    return value


def _str(value: Any) -> str:
    if not isinstance(value, str):
        raise _Invalid
    return value


def _enum(enum: type[IntEnum], value: Any) -> Any:
    try:
        return enum(_i64(value))
    except ValueError:
        raise _Invalid from None


def _fields(fields: Any, *types: Callable[[Any], Any]) -> list[Any]:
    """Decode ``fields`` as an array of exactly ``len(types)`` typed elements."""
    if not isinstance(fields, list) or len(fields) != len(types):
        raise _Invalid
    return [convert(item) for convert, item in zip(types, fields)]


def _activity(kind: ActivityType, fields: Any) -> Activity:
    if kind is ActivityType.COPY_PATH:
        path, source, target = _fields(fields, _str, _str, _str)
        return Activity(kind, path=path, source=source, target=target)
    if kind is ActivityType.FILE_TRANSFER:
        (uri,) = _fields(fields, _str)
        return Activity(kind, uri=uri)
    if kind is ActivityType.BUILD:
        path, machine, round_, total = _fields(fields, _str, _str, _i64, _i64)
        return Activity(kind, path=path, machine=machine, round=round_, total_rounds=total)
    if kind in (ActivityType.SUBSTITUTE, ActivityType.QUERY_PATH_INFO):
        path, uri = _fields(fields, _str, _str)
        return Activity(kind, path=path, uri=uri)
    if kind is ActivityType.POST_BUILD_HOOK:
        (path,) = _fields(fields, _str)
        return Activity(kind, path=path)
    return Activity(kind)


def _result(kind: ResultType, fields: Any) -> LogResult:
    if kind is ResultType.FILE_LINKED:
        blocks, size = _fields(fields, _i64, _i64)
        return LogResult(kind, size=size, blocks=blocks)
    if kind in (
        ResultType.BUILD_LOG_LINE,
        ResultType.POST_BUILD_LOG_LINE,
        ResultType.FETCH_STATUS,
    ):
        (line,) = _fields(fields, _str)
        return LogResult(kind, line=line)
    if kind in (ResultType.UNTRUSTED_PATH, ResultType.CORRUPTED_PATH):
        (path,) = _fields(fields, _str)
        return LogResult(kind, path=path)
    if kind is ResultType.SET_PHASE:
        (phase,) = _fields(fields, _str)
        return LogResult(kind, phase=phase)
    if kind is ResultType.PROGRESS:
        done, expected, running, failed = _fields(fields, _i64, _i64, _i64, _i64)
        return LogResult(kind, done=done, expected=expected, running=running, failed=failed)
    # SET_EXPECTED
    activity_type, expected = _fields(fields, lambda v: _enum(ActivityType, v), _i64)
    return LogResult(kind, activity_type=activity_type, expected=expected)


def _item(val: Any) -> Msg | Start | Stop | Result | None:
    if not isinstance(val, dict):
        raise _Invalid
    if "action" not in val:
        raise _Invalid
    action = _str(val["action"])

    def get(key: str) -> Any:
        if key not in val:
            raise _Invalid
        return val[key]

    if action == "msg":
        return Msg(level=_enum(Verbosity, get("level")), msg=_str(get("msg")))
    if action == "start":
        kind = _enum(ActivityType, get("type"))
        activity = _activity(kind, val.get("fields", []))
        return Start(
            id=_i64(get("id")),
            level=_enum(Verbosity, get("level")),
            text=_str(get("text")),
            activity=activity,
        )
    if action == "stop":
        return Stop(id=_i64(get("id")))
    if action == "result":
        kind = _enum(ResultType, get("type"))
        result = _result(kind, val.get("fields", []))
        return Result(id=_i64(get("id")), result=result)
    return None


def parse_log_item(val: Any) -> Msg | Start | Stop | Result | None:
    """Interpret a decoded JSON value as a nix log item; None if it isn't one."""
    try:
        return _item(val)
    except _Invalid:
        return None


def _reject_constant(name: str) -> Any:
    raise ValueError(f"Invalid JSON constant: {name}")


def parse_line(line: str) -> LogItem:
    """Parse one line of nix output.

    Lines without the ``@nix `` prefix are plain output. Raises ValueError if a
    prefixed line does not hold valid JSON.
    """
    if not line.startswith(NIX_PREFIX):
        return OutputLine(line)
    val = json.loads(line[len(NIX_PREFIX):], parse_constant=_reject_constant)
    item = parse_log_item(val)
    return item if item is not None else UnknownItem(val)