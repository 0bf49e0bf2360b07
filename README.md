# codchikit

A library of building blocks for managing code machines: development
environments whose software comes from a nix store container. It covers the
configuration files, the paths and names involved, nix's structured log output,
progress reporting and status tables.

## Modules

- **`codchikit.consts`**: names and paths.
  - Host directories: `host_config_dir()`, `host_data_dir(configured)`,
    `host_nix_dir(data_dir)`, `host_runtime_dir()`, `host_store_log(data_dir)`,
    `host_machine_log(data_dir, name)`.
  - Paths inside the store container as `LinuxPath`, which always joins with `/`
    (`join_str`, `join_store`, `join_machine`), with constants such as
    `STORE_DIR_DATA` and `DEFAULT_HOME`.
  - Helpers such as `join_machine(path, name)`, `machine_name(name)` (gives
    `codchi-<name>`) and `store_machine_log(name)`.
- **`codchikit.lockfile`**: `LockedConfig.open(path, write_mode)` creates the
  file if missing. It takes a shared lock (read) or an exclusive lock (write) and
  returns the lock together with the file's text. `open_parse` also parses the
  text and falls back to a default when the file is empty or cannot be parsed.
  `write` replaces the content and releases the lock. `LockedConfig` is also a
  context manager.
- **`codchikit.settings`**: the global `config.toml`.
  - `CodchiConfig.from_toml` fills in missing keys with defaults (tray autostart
    on, VcXsrv off, `enable_wsl_vpnkit` off, no `data_dir`) and raises
    `ValueError` on values of the wrong type.
  - `load_config(config_dir)` reads the file under a shared lock.
  - `open_config_editor(config_dir)` returns a `ConfigEditor`. Its methods
    `tray_autostart`, `enable_wsl_vpnkit`, `vcxsrv_enable` and `vcxsrv_tray`
    change the document in place, keeping its formatting. `write()` stores it.
- **`codchikit.machine_config`**: per-machine `machine/<name>/config.json`.
  - `MachineConfig` has `nixpkgs_from`, `modules` and `secrets`.
  - `find_machine` returns a `ConfigResult`. Its `similar_name` is set when a
    machine exists whose name differs only in case.
  - `open_existing` raises `LookupError` for unknown machines.
  - Also: `open_machine`, `list_machines` (sorted by name) and `delete_machine`.
- **`codchikit.nixlog`**: `parse_line` turns nix's `@nix {...}` internal-json
  lines into `Msg`, `Start`, `Stop`, `Result` or `UnknownItem`. Any other line
  becomes `OutputLine`. Malformed JSON raises `ValueError`. `Verbosity.to_level`
  maps nix verbosity to a `logging` level.
- **`codchikit.progress`**: `Progress.log` feeds lines of nix output, logs them
  and tracks build, unpack and download activities. `Progress.render` returns a
  summary prefix such as `[building 1/3, downloading 0.5/1.0 MiB]`.
  `format_binary` scales a byte count to a binary prefix.
- **`codchikit.logsetup`**: `init(level)` installs a stderr handler with
  `LevelFormatter` (`[LEVEL target] message`, coloured on a terminal).
  The `CODCHI_LOG` environment variable overrides levels globally (`debug`) or
  per logger (`nix=trace`). `set_progress_status`, `log_progress`,
  `hide_progress`, `current_progress` and the `progress_scope()` context
  manager manage one shared `Progress`.
- **`codchikit.output`**: `ConfigStatus`, `MachineStatus` and `Mod`.
  `render_status_table` and `render_module_table` give text tables.
  `print_statuses` and `print_modules` print a table or compact JSON.

## Installation

```
pip install codchikit
```

## Example

```python
from codchikit.nixlog import Msg, parse_line

item = parse_line('@nix {"action": "msg", "level": 0, "msg": "boom"}')
assert isinstance(item, Msg)

from codchikit.settings import CodchiConfig

cfg = CodchiConfig.from_toml("")
assert cfg.tray.autostart is True

from codchikit.output import ConfigStatus, MachineStatus, print_statuses

print_statuses([MachineStatus("dev", ConfigStatus.UP_TO_DATE, True)], json_mode=False)
```

## What it does not do

This is a library only:

- It has no command-line program.
- It does not create, start, build, clone or delete machines.
- It does not run the store container or nix itself.
- It does not provide a tray icon.

It reads and writes the configuration files and interprets the output such
tools produce. Module entries in a machine config are kept as plain strings.

## Running the tests

```
pip install -e .[test]
pytest
```