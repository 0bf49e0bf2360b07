import pytest

from codchikit.settings import (
    CodchiConfig,
    TrayConfig,
    VcXsrvConfig,
    load_config,
    open_config_editor,
)


def test_empty_cfg_deserializes():
    assert CodchiConfig.from_toml("") == CodchiConfig()


def test_default_values():
    cfg = CodchiConfig()
    assert cfg.tray == TrayConfig(autostart=True)
    assert cfg.vcxsrv == VcXsrvConfig(enable=False, tray=False)
    assert cfg.data_dir is None


def test_partial_cfg_deserializes():
    result = CodchiConfig.from_toml("\nvcxsrv.enable = false\n")
    assert result == CodchiConfig(vcxsrv=VcXsrvConfig(enable=False, tray=False))


def test_partial_cfg_deserializes2():
    result = CodchiConfig.from_toml("\nvcxsrv.tray = true\n")
    assert result == CodchiConfig(vcxsrv=VcXsrvConfig(enable=False, tray=True))


def test_round_trip():
    cfg = CodchiConfig(
        tray=TrayConfig(autostart=False),
        vcxsrv=VcXsrvConfig(enable=True, tray=True),
        enable_wsl_vpnkit=True,
        data_dir="/tmp/somewhere",
    )
    assert CodchiConfig.from_toml(cfg.to_toml()) == cfg


def test_wrong_type_raises():
    with pytest.raises(ValueError):
        CodchiConfig.from_toml('[tray]\nautostart = "yes"\n')


def test_load_config_defaults_and_creates_file(tmp_path):
    assert load_config(tmp_path) == CodchiConfig()
    assert (tmp_path / "config.toml").exists()


def test_load_config_reads_file(tmp_path):
    (tmp_path / "config.toml").write_text("[tray]\nautostart = false\n")
    assert load_config(tmp_path).tray.autostart is False


def test_load_config_broken_falls_back(tmp_path):
    (tmp_path / "config.toml").write_text("this is = = not toml")
    assert load_config(tmp_path) == CodchiConfig()


def test_editor_on_new_file(tmp_path):
    editor = open_config_editor(tmp_path)
    editor.tray_autostart(False)
    editor.enable_wsl_vpnkit(True)
    editor.write()
    cfg = load_config(tmp_path)
    assert cfg.tray.autostart is False
    assert cfg.enable_wsl_vpnkit is True


def test_editor_keeps_comments(tmp_path):
    path = tmp_path / "config.toml"
    path.write_text("# keep me\n[tray]\nautostart = true\n")
    editor = open_config_editor(tmp_path)
    editor.vcxsrv_enable(True)
    editor.vcxsrv_tray(True)
    editor.write()
    assert "# keep me" in path.read_text()
    assert load_config(tmp_path).vcxsrv == VcXsrvConfig(enable=True, tray=True)