"""Human and JSON output of machine status and module lists."""

from __future__ import annotations

import json
import sys
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, Iterable

from tabulate import tabulate

_RED = "\x1b[31m"
_YELLOW = "\x1b[33m"
_GREEN = "\x1b[32m"
_RESET = "\x1b[0m"

_TABLE_FORMAT = "fancy_grid"


class ConfigStatus(Enum):
    NOT_INSTALLED = "NotInstalled"
    MODIFIED = "Modified"
    UPDATES_AVAILABLE = "UpdatesAvailable"
    UP_TO_DATE = "UpToDate"

    def __str__(self) -> str:
        return self.value


_STATUS_CELLS = {
    ConfigStatus.NOT_INSTALLED: ("Not installed yet", _RED),
    ConfigStatus.MODIFIED: ("Modified", _YELLOW),
    ConfigStatus.UPDATES_AVAILABLE: ("Updates available", _YELLOW),
    ConfigStatus.UP_TO_DATE: ("Up to date", _GREEN),
}


@dataclass(frozen=True)
class MachineStatus:
    name: str
    status: ConfigStatus
    running: bool

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "status": str(self.status), "running": self.running}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> MachineStatus:
        return cls(
            name=data["name"],
            status=ConfigStatus(data["status"]),
            running=bool(data["running"]),
        )


@dataclass(frozen=True)
class Mod:
    name: str
    url: str
    flake_module: str

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Mod:
        return cls(name=data["name"], url=data["url"], flake_module=data["flake_module"])


def _sorted_mods(mods: Iterable[Mod]) -> list[Mod]:
    return sorted(mods, key=lambda m: m.name)


def render_status_table(statuses: Iterable[MachineStatus]) -> str:
    rows = []
    for machine in statuses:
        text, color = _STATUS_CELLS[machine.status]
        rows.append(
            [machine.name, f"{color}{text}{_RESET}", "✅" if machine.running else "❌"]
        )
    return tabulate(rows, headers=["Machine", "Status", "Running?"], tablefmt=_TABLE_FORMAT)


def render_module_table(mods: Iterable[Mod]) -> str:
    rows = [[m.name, m.url, m.flake_module] for m in _sorted_mods(mods)]
    return tabulate(rows, headers=["Name", "Url", "Flake Module"], tablefmt=_TABLE_FORMAT)


def _write_json(data: Any) -> None:
    sys.stdout.write(json.dumps(data, separators=(",", ":"), ensure_ascii=False))
    sys.stdout.flush()


def print_statuses(statuses: Iterable[MachineStatus], json_mode: bool) -> None:
    statuses = list(statuses)
    if json_mode:
        _write_json([s.to_dict() for s in statuses])
    else:
        print(render_status_table(statuses))


def print_modules(mods: Iterable[Mod], json_mode: bool) -> None:
    mods = _sorted_mods(mods)
    if json_mode:
        _write_json([m.to_dict() for m in mods])
    else:
        print(render_module_table(mods))