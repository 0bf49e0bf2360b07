"""Names, directories and well-known paths used on the host, in the store and in machines."""

from __future__ import annotations

import os
import platform
import sys
import tempfile
from dataclasses import dataclass
from pathlib import Path

import platformdirs

APP_NAME = "codchi"

CONTAINER_STORE_NAME = "codchistore"

NIX_SYSTEM = "aarch64_linux" if platform.machine().lower() in ("aarch64", "arm64") else "x86_64-linux"

STORE_NAME = "store"
MACHINE_PREFIX = "machine"

# Markers printed by the store / machine container init.
INIT_EXIT_ERR = "INIT_ERR"
INIT_EXIT_SUCCESS = "INIT_SUCCESS"


@dataclass(frozen=True)
class LinuxPath:
    """A path inside a Linux container, joined with '/' regardless of the host."""

    path: str

    def __str__(self) -> str:
        return self.path

    def join_str(self, name: str) -> LinuxPath:
        return LinuxPath(f"{self.path}/{name}")

    def join_store(self) -> LinuxPath:
        return self.join_str(STORE_NAME)

    def join_machine(self, name: str) -> LinuxPath:
        return self.join_str(MACHINE_PREFIX).join_str(name)


def join_store(path: Path) -> Path:
    """Return the store directory inside ``path``."""
    return Path(path) / STORE_NAME


def join_machine(path: Path, name: str) -> Path:
    """Return the directory of machine ``name`` inside ``path``."""
    return Path(path) / MACHINE_PREFIX / name


# --- host -----------------------------------------------------------------


def host_config_dir() -> Path:
    return Path(platformdirs.user_config_dir(APP_NAME, appauthor=False, roaming=True))


def host_data_dir(configured: str | None = None) -> Path:
    """The data directory: the configured one, else the platform's local data dir."""
    if configured is not None:
        return Path(configured)
    return Path(platformdirs.user_data_dir(APP_NAME, appauthor=False, roaming=False))


def host_nix_dir(data_dir: Path) -> Path:
    return Path(data_dir) / "nix"


def host_runtime_dir() -> Path:
    """The runtime directory ($XDG_RUNTIME_DIR on Linux), else the temp dir."""
    runtime = os.environ.get("XDG_RUNTIME_DIR") if sys.platform.startswith("linux") else None
    if runtime and os.path.isabs(runtime):
        base = Path(runtime)
    else:
        base = Path(tempfile.gettempdir())
    return base / APP_NAME


def host_store_log(data_dir: Path) -> Path:
    return Path(data_dir) / "log" / "store.log"


def host_machine_log(data_dir: Path, name: str) -> Path:
    return Path(data_dir) / "log" / f"machine-{name}.log"


# --- store ----------------------------------------------------------------

STORE_DIR_CONFIG = LinuxPath("/config")
STORE_DIR_DATA = LinuxPath("/data")
STORE_DIR_NIX = LinuxPath("/nix")
STORE_LOGFILE = STORE_DIR_DATA.join_str("log/store.log")


def store_machine_log(name: str) -> LinuxPath:
    return STORE_DIR_DATA.join_str(f"log/machine-{name}.log")


# --- machine --------------------------------------------------------------


def machine_name(name: str) -> str:
    """The platform-level name of the machine called ``name``."""
    return f"codchi-{name}"


CODCHI_ENV = LinuxPath("/etc/codchi-env")
CODCHI_ENV_TMP = LinuxPath("/tmp/codchi-env")

# --- users ----------------------------------------------------------------

ROOT_UID = "0"
ROOT_GID = "0"
ROOT_HOME = LinuxPath("/root")

DEFAULT_NAME = "codchi"
DEFAULT_HOME = LinuxPath("/home/codchi")
DEFAULT_UID = "1000"
DEFAULT_GID = "100"

# --- files ----------------------------------------------------------------

STORE_ROOTFS_NAME = "store.tar.gz"
MACHINE_ROOTFS_NAME = "machine.tar.gz"