"""Per-machine configuration files (machine/<name>/config.json)."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .consts import MACHINE_PREFIX, host_config_dir, join_machine
from .lockfile import LockedConfig

_log = logging.getLogger(__name__)

CONFIG_FILE = "config.json"


def _root(config_dir: str | Path | None) -> Path:
    return Path(config_dir) if config_dir is not None else host_config_dir()


def _str_map(data: dict[str, Any], key: str) -> dict[str, str]:
    value = data.get(key, {})
    if not isinstance(value, dict) or not all(
        isinstance(k, str) and isinstance(v, str) for k, v in value.items()
    ):
        raise ValueError(f"'{key}' must be a map of strings")
    return dict(value)


@dataclass(frozen=True)
class ConfigResult:
    """Outcome of looking up a machine's config.

    ``similar_name`` is set when a machine exists whose name differs only in case
    (paths are case insensitive on some hosts); it holds that machine's real name.
    """

    exists: bool = False
    similar_name: str | None = None


@dataclass
class MachineConfig:
    name: str
    nixpkgs_from: str | None = None
    modules: dict[str, str] = field(default_factory=dict)
    secrets: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_json(cls, name: str, text: str) -> MachineConfig:
        data = json.loads(text)
        if not isinstance(data, dict):
            raise ValueError("Machine config must be a JSON object")
        nixpkgs_from = data.get("nixpkgs_from")
        if nixpkgs_from is not None and not isinstance(nixpkgs_from, str):
            raise ValueError("'nixpkgs_from' must be a string")
        return cls(
            name=name,
            nixpkgs_from=nixpkgs_from,
            modules=_str_map(data, "modules"),
            secrets=_str_map(data, "secrets"),
        )

    def to_json(self) -> str:
        data: dict[str, Any] = {}
        if self.nixpkgs_from is not None:
            data["nixpkgs_from"] = self.nixpkgs_from
        data["modules"] = self.modules
        data["secrets"] = self.secrets
        return json.dumps(data, indent=2)

    def write(self, lock: LockedConfig) -> None:
        lock.write(self.to_json())


@dataclass(frozen=True)
class EnvSecret:
    name: str
    description: str


def _config_path(config_dir: str | Path | None, name: str) -> Path:
    return join_machine(_root(config_dir), name) / CONFIG_FILE


def find_machine(config_dir: str | Path | None, name: str) -> ConfigResult:
    path = _config_path(config_dir, name)
    try:
        size = path.stat().st_size
    except OSError:
        return ConfigResult()
    if size == 0:
        return ConfigResult()
    real = path.resolve()
    if str(real).endswith(f"{name}{os.sep}{CONFIG_FILE}"):
        return ConfigResult(exists=True)
    return ConfigResult(similar_name=real.parent.name)


def open_machine(
    config_dir: str | Path | None, name: str, write_mode: bool
) -> tuple[LockedConfig, MachineConfig | None]:
    """Open (creating if needed) the config of machine ``name``; the config is None if empty."""
    path = _config_path(config_dir, name)
    path.parent.mkdir(parents=True, exist_ok=True)

    def parse(content: str) -> MachineConfig:
        cfg = MachineConfig.from_json(name, content)
        _log.debug("Read machine config from %s: %r", path, cfg)
        return cfg

    return LockedConfig.open_parse(path, write_mode, parse, lambda: None)


def open_existing(
    config_dir: str | Path | None, name: str, write_mode: bool
) -> tuple[LockedConfig, MachineConfig]:
    """Open the config of machine ``name``; raise LookupError if the machine doesn't exist."""
    if not find_machine(config_dir, name).exists:
        raise LookupError(f"Machine '{name}' doesn't exist.")
    lock, cfg = open_machine(config_dir, name, write_mode)
    return lock, cfg if cfg is not None else MachineConfig(name)


def list_machines(config_dir: str | Path | None) -> list[MachineConfig]:
    """All machines with a non-empty config, sorted by name."""
    root = _root(config_dir) / MACHINE_PREFIX
    root.mkdir(parents=True, exist_ok=True)
    machines = []
    for entry in root.iterdir():
        if not entry.is_dir():
            continue
        _log.debug("Found possible machine %s.", entry.name)
        lock, cfg = open_machine(config_dir, entry.name, False)
        lock.close()
        if cfg is not None:
            machines.append(cfg)
    return sorted(machines, key=lambda m: m.name)


def delete_machine(config_dir: str | Path | None, name: str) -> None:
    _config_path(config_dir, name).unlink(missing_ok=True)