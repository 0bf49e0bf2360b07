"""The global codchi configuration (config.toml)."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import tomlkit
from tomlkit import TOMLDocument

from .consts import host_config_dir
from .lockfile import LockedConfig

CONFIG_FILE = "config.toml"


def _table(data: dict[str, Any], key: str) -> dict[str, Any]:
    value = data.get(key, {})
    if not isinstance(value, dict):
        raise ValueError(f"'{key}' must be a table")
    return value


def _bool(data: dict[str, Any], key: str, default: bool) -> bool:
    value = data.get(key, default)
    if not isinstance(value, bool):
        raise ValueError(f"'{key}' must be a boolean")
    return value


@dataclass
class TrayConfig:
    autostart: bool = True


@dataclass
class VcXsrvConfig:
    enable: bool = False
    tray: bool = False


@dataclass
class CodchiConfig:
    tray: TrayConfig = field(default_factory=TrayConfig)
    vcxsrv: VcXsrvConfig = field(default_factory=VcXsrvConfig)
    # Allows internet access in WSL inside some company VPNs.
    enable_wsl_vpnkit: bool = False
    # The platform's local data directory when unset.
    data_dir: str | None = None

    @classmethod
    def from_toml(cls, text: str) -> CodchiConfig:
        """Parse a config; missing keys take their defaults. Raises ValueError on bad types."""
        data = tomlkit.parse(text).unwrap()
        tray = _table(data, "tray")
        vcxsrv = _table(data, "vcxsrv")
        data_dir = data.get("data_dir")
        if data_dir is not None and not isinstance(data_dir, str):
            raise ValueError("'data_dir' must be a string")
        return cls(
            tray=TrayConfig(autostart=_bool(tray, "autostart", True)),
            vcxsrv=VcXsrvConfig(
                enable=_bool(vcxsrv, "enable", False),
                tray=_bool(vcxsrv, "tray", False),
            ),
            enable_wsl_vpnkit=_bool(data, "enable_wsl_vpnkit", False),
            data_dir=data_dir,
        )

    def to_toml(self) -> str:
        doc = tomlkit.document()
        doc["enable_wsl_vpnkit"] = self.enable_wsl_vpnkit
        if self.data_dir is not None:
            doc["data_dir"] = self.data_dir
        tray = tomlkit.table()
        tray["autostart"] = self.tray.autostart
        doc["tray"] = tray
        vcxsrv = tomlkit.table()
        vcxsrv["enable"] = self.vcxsrv.enable
        vcxsrv["tray"] = self.vcxsrv.tray
        doc["vcxsrv"] = vcxsrv
        return tomlkit.dumps(doc)


def _config_path(config_dir: str | Path | None) -> Path:
    directory = Path(config_dir) if config_dir is not None else host_config_dir()
    directory.mkdir(parents=True, exist_ok=True)
    return directory / CONFIG_FILE


def load_config(config_dir: str | Path | None = None) -> CodchiConfig:
    """Read the config, falling back to defaults when it is empty or broken."""
    lock, cfg = LockedConfig.open_parse(
        _config_path(config_dir), False, CodchiConfig.from_toml, CodchiConfig
    )
    lock.close()
    return cfg


class ConfigEditor:
    """Edits the config file in place, keeping its formatting, while holding its lock."""

    def __init__(self, lock: LockedConfig, doc: TOMLDocument) -> None:
        self._lock = lock
        self._doc = doc

    def _set(self, table: str, key: str, value: bool) -> None:
        if table not in self._doc:
            self._doc[table] = tomlkit.table()
        self._doc[table][key] = value

    def tray_autostart(self, autostart: bool) -> None:
        self._set("tray", "autostart", autostart)

    def enable_wsl_vpnkit(self, enable: bool) -> None:
        self._doc["enable_wsl_vpnkit"] = enable

    def vcxsrv_enable(self, enable: bool) -> None:
        self._set("vcxsrv", "enable", enable)

    def vcxsrv_tray(self, enable: bool) -> None:
        self._set("vcxsrv", "tray", enable)

    def write(self) -> None:
        """Store the edited document and release the lock."""
        self._lock.write(tomlkit.dumps(self._doc))

    def close(self) -> None:
        self._lock.close()

    def __enter__(self) -> ConfigEditor:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()


def open_config_editor(config_dir: str | Path | None = None) -> ConfigEditor:
    lock, doc = LockedConfig.open_parse(
        _config_path(config_dir),
        True,
        tomlkit.parse,
        lambda: tomlkit.parse(CodchiConfig().to_toml()),
    )
    return ConfigEditor(lock, doc)