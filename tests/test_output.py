import json

import pytest

from codchikit.output import (
    ConfigStatus,
    MachineStatus,
    Mod,
    print_modules,
    print_statuses,
    render_module_table,
    render_status_table,
)


@pytest.mark.parametrize(
    "status, text",
    [
        (ConfigStatus.NOT_INSTALLED, "Not installed yet"),
        (ConfigStatus.MODIFIED, "Modified"),
        (ConfigStatus.UPDATES_AVAILABLE, "Updates available"),
        (ConfigStatus.UP_TO_DATE, "Up to date"),
    ],
)
def test_status_table_shows_status_text(status, text):
    table = render_status_table([MachineStatus("dev", status, False)])
    assert text in table
    assert "dev" in table


def test_status_table_headers_and_running_marks():
    table = render_status_table(
        [
            MachineStatus("alpha", ConfigStatus.UP_TO_DATE, True),
            MachineStatus("beta", ConfigStatus.MODIFIED, False),
        ]
    )
    for header in ("Machine", "Status", "Running?"):
        assert header in table
    alpha_line = next(line for line in table.splitlines() if "alpha" in line)
    beta_line = next(line for line in table.splitlines() if "beta" in line)
    assert "✅" in alpha_line
    assert "❌" in beta_line


def test_empty_status_table_has_headers():
    table = render_status_table([])
    assert "Machine" in table
    assert "Running?" in table


def test_module_table_is_sorted_by_name():
    table = render_module_table(
        [
            Mod("zeta", "github:org/zeta", "nixosModules.default"),
            Mod("alpha", "github:org/alpha", "nixosModules.dev"),
        ]
    )
    for header in ("Name", "Url", "Flake Module"):
        assert header in table
    assert table.index("alpha") < table.index("zeta")
    assert "nixosModules.dev" in table


def test_print_statuses_json(capsys):
    statuses = [
        MachineStatus("dev", ConfigStatus.UP_TO_DATE, True),
        MachineStatus("test", ConfigStatus.NOT_INSTALLED, False),
    ]
    print_statuses(statuses, True)
    data = json.loads(capsys.readouterr().out)
    assert data == [
        {"name": "dev", "status": str(ConfigStatus.UP_TO_DATE), "running": True},
        {"name": "test", "status": str(ConfigStatus.NOT_INSTALLED), "running": False},
    ]
    assert [MachineStatus.from_dict(d) for d in data] == statuses


def test_print_statuses_human(capsys):
    print_statuses([MachineStatus("dev", ConfigStatus.MODIFIED, False)], False)
    out = capsys.readouterr().out
    assert "dev" in out
    assert "Modified" in out


def test_print_modules_json_sorted(capsys):
    mods = [
        Mod("b", "github:org/b", "nixosModules.b"),
        Mod("a", "github:org/a", "nixosModules.a"),
    ]
    print_modules(mods, True)
    data = json.loads(capsys.readouterr().out)
    assert [d["name"] for d in data] == ["a", "b"]
    assert [Mod.from_dict(d) for d in data] == sorted(mods, key=lambda m: m.name)


def test_print_modules_human(capsys):
    print_modules([Mod("a", "github:org/a", "nixosModules.a")], False)
    out = capsys.readouterr().out
    assert "github:org/a" in out
    assert "Flake Module" in out


def test_status_round_trips_through_string():
    for status in ConfigStatus:
        assert ConfigStatus(str(status)) is status


def test_unknown_status_is_rejected():
    with pytest.raises(ValueError):
        MachineStatus.from_dict({"name": "x", "status": "Broken", "running": False})