"""Progress tracking for nix builds, driven by nix's structured log lines."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable, Union

from . import nixlog
from .nixlog import ActivityType, ResultType

_log = logging.getLogger(__name__)
_nix_log = logging.getLogger("nix")

_U64 = 2**64

_BINARY_PREFIXES = ("Ki", "Mi", "Gi", "Ti", "Pi", "Ei", "Zi", "Yi")


def _u64(value: int) -> int:
    return value % _U64


def _store_path_base(path: str) -> str:
    """The name part of a nix store path, without directory and hash."""
    base = path.rstrip("/").rsplit("/", 1)[-1]
    _, sep, name = base.partition("-")
    return name if sep else base


def format_binary(value: float) -> tuple[float, str, int]:
    """Scale ``value`` to a binary prefix.

    Returns the scaled value, the prefix ("" below 1024, else "Ki", "Mi", ...)
    and the divider that was applied.
    """
    if value < 1024:
        return float(value), "", 1
    scaled = float(value)
    index = -1
    while scaled >= 1024 and index < len(_BINARY_PREFIXES) - 1:
        scaled /= 1024
        index += 1
    return scaled, _BINARY_PREFIXES[index], 1024 ** (index + 1)


@dataclass
class RootActivity:
    """The top level realisation, holding the total expected download / unpack bytes."""

    dl_bytes_expected: int = 0
    unpack_bytes_expected: int = 0


@dataclass
class BuildRootActivity:
    """Counts builds."""

    done: int = 0
    expected: int = 0


@dataclass
class BuildActivity:
    name: str
    phase: str | None = None


@dataclass
class UnpackActivity:
    done: int = 0


@dataclass
class DownloadActivity:
    done: int = 0


NixActivity = Union[
    RootActivity, BuildRootActivity, BuildActivity, UnpackActivity, DownloadActivity
]


class _Throttle:
    """Accepts at most one event per ``interval`` seconds."""

    def __init__(self, interval: float, clock: Callable[[], float]) -> None:
        self._interval = interval
        self._clock = clock
        self._last: float | None = None

    def accept(self) -> bool:
        now = self._clock()
        if self._last is not None and now - self._last < self._interval:
            return False
        self._last = now
        return True


def _format_count(label: str, is_bytes: bool, done: int, expected: int) -> str | None:
    if expected == 0:
        return None
    if is_bytes:
        expected_value, unit, divider = format_binary(expected)
        return f"{label} {done / divider:.1f}/{expected_value:.1f} {unit}B"
    return f"{label} {done}/{expected}"


class Progress:
    """A status line with a message and a summary of running nix activities."""

    def __init__(
        self,
        status: str = "",
        interval: float = 0.1,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.activities: dict[int, NixActivity] = {}
        self.status = status
        self.prefix = ""
        self._throttle = _Throttle(interval, clock)

    def set_status(self, msg: str) -> None:
        self.status = msg

    def log(self, fallback_target: str, fallback_level: int, msg: str) -> None:
        """Handle one line of nix output, logging it and updating the activities."""
        try:
            item = nixlog.parse_line(msg)
        except ValueError as err:
            _log.error("Failed parsing log line from nix: %s. Original line: %s", err, msg)
        else:
            self._handle(item, fallback_target, fallback_level)
        if self._throttle.accept():
            self.render()

    def _handle(self, item: nixlog.LogItem, fallback_target: str, fallback_level: int) -> None:
        if isinstance(item, nixlog.OutputLine):
            logging.getLogger(fallback_target).log(fallback_level, "%s", item.line)
        elif isinstance(item, nixlog.UnknownItem):
            _log.warning("Unknown message from nix: %s", item.value)
        elif isinstance(item, nixlog.Msg):
            text = "\r\n".join(item.msg.splitlines())
            _nix_log.log(item.level.to_level(), "%s", text)
        elif isinstance(item, nixlog.Start):
            self._start(item, fallback_level)
        elif isinstance(item, nixlog.Stop):
            if isinstance(self.activities.get(item.id), RootActivity):
                self.activities.clear()
        elif isinstance(item, nixlog.Result):
            activity = self.activities.get(item.id)
            if activity is not None:
                self._result(activity, item.result, fallback_level)

    def _start(self, item: nixlog.Start, fallback_level: int) -> None:
        kind = item.activity.kind
        if kind is ActivityType.REALISE:
            self.activities.clear()
            self.activities[item.id] = RootActivity()
            _nix_log.log(fallback_level, "%s", item.text)
        elif kind is ActivityType.BUILDS:
            self.activities[item.id] = BuildRootActivity()
        elif kind is ActivityType.BUILD:
            name = _store_path_base(item.activity.path or "")
            self.activities[item.id] = BuildActivity(name)
            _nix_log.log(fallback_level, "%s", item.text)
        elif kind is ActivityType.COPY_PATH:
            self.activities[item.id] = UnpackActivity()
            _nix_log.log(fallback_level, "%s", item.text)
        elif kind is ActivityType.FILE_TRANSFER:
            self.activities[item.id] = DownloadActivity()

    @staticmethod
    def _result(activity: NixActivity, result: nixlog.LogResult, fallback_level: int) -> None:
        kind = result.kind
        if kind is ResultType.BUILD_LOG_LINE:
            if isinstance(activity, BuildActivity):
                phase = f" ({activity.phase})" if activity.phase is not None else ""
                _nix_log.log(fallback_level, "%s%s> %s", activity.name, phase, result.line)
        elif kind is ResultType.SET_EXPECTED:
            expected = _u64(result.expected or 0)
            if isinstance(activity, RootActivity):
                if result.activity_type is ActivityType.FILE_TRANSFER:
                    activity.dl_bytes_expected = expected
                elif result.activity_type is ActivityType.COPY_PATH:
                    activity.unpack_bytes_expected = expected
            elif isinstance(activity, BuildRootActivity):
                activity.expected = expected
        elif kind is ResultType.SET_PHASE:
            if isinstance(activity, BuildActivity):
                activity.phase = result.phase
        elif kind is ResultType.PROGRESS:
            done = _u64(result.done or 0)
            if isinstance(activity, BuildRootActivity):
                activity.done = done
                activity.expected = _u64(result.expected or 0)
            elif isinstance(activity, (UnpackActivity, DownloadActivity)):
                activity.done = done

    def render(self) -> str:
        """Recompute and return the summary prefix of the status line."""
        acts = list(self.activities.values())
        build_roots = [a for a in acts if isinstance(a, BuildRootActivity)]
        roots = [a for a in acts if isinstance(a, RootActivity)]
        parts = [
            _format_count(
                "building",
                False,
                sum(a.done for a in build_roots),
                sum(a.expected for a in build_roots),
            ),
            _format_count(
                "unpacking",
                True,
                sum(a.done for a in acts if isinstance(a, UnpackActivity)),
                sum(a.unpack_bytes_expected for a in roots),
            ),
            _format_count(
                "downloading",
                True,
                sum(a.done for a in acts if isinstance(a, DownloadActivity)),
                sum(a.dl_bytes_expected for a in roots),
            ),
        ]
        joined = ", ".join(p for p in parts if p is not None)
        self.prefix = f"[{joined}]" if joined else ""
        return self.prefix