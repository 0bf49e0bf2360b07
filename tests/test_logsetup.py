import logging

import pytest

from codchikit import logsetup
from codchikit.logsetup import (
    LevelFormatter,
    current_progress,
    hide_progress,
    init,
    log_progress,
    progress_scope,
    set_progress_status,
)
from codchikit.nixlog import TRACE


@pytest.fixture(autouse=True)
def _clean_progress():
    hide_progress()
    yield
    hide_progress()


@pytest.fixture
def restore_root(monkeypatch):
    monkeypatch.delenv(logsetup.ENV_VAR, raising=False)
    root = logging.getLogger()
    level = root.level
    nix_level = logging.getLogger("nix").level
    before = list(root.handlers)
    yield
    for handler in list(root.handlers):
        if handler not in before:
            root.removeHandler(handler)
    root.setLevel(level)
    logging.getLogger("nix").setLevel(nix_level)


def _record(name, level, msg):
    return logging.getLogger(name).makeRecord(name, level, __file__, 1, msg, (), None)


def test_own_logger_has_no_target():
    fmt = LevelFormatter(color=False)
    assert fmt.format(_record("codchikit.module", logging.INFO, "hello")) == "[INFO] hello"


def test_foreign_logger_shows_target():
    fmt = LevelFormatter(color=False)
    assert fmt.format(_record("nix", logging.WARNING, "careful")) == "[WARN nix] careful"


@pytest.mark.parametrize(
    "level, name",
    [
        (logging.ERROR, "ERROR"),
        (logging.CRITICAL, "ERROR"),
        (logging.DEBUG, "DEBUG"),
        (TRACE, "TRACE"),
    ],
)
def test_level_names(level, name):
    fmt = LevelFormatter(color=False)
    assert fmt.format(_record("codchi", level, "x")) == f"[{name}] x"


def test_colored_output_wraps_level():
    fmt = LevelFormatter(color=True)
    text = fmt.format(_record("codchi", logging.INFO, "msg"))
    assert text.startswith("[\x1b[")
    assert "INFO" in text
    assert text.endswith("] msg")


def test_init_writes_formatted_lines(restore_root, capsys):
    handler = init(logging.INFO)
    assert handler in logging.getLogger().handlers
    logging.getLogger("codchikit.test").info("ready")
    logging.getLogger("codchikit.test").debug("hidden")
    err = capsys.readouterr().err
    assert "[INFO] ready" in err
    assert "hidden" not in err


def test_init_twice_fails(restore_root):
    init(logging.INFO)
    with pytest.raises(RuntimeError):
        init(logging.DEBUG)


def test_init_accepts_level_name(restore_root):
    handler = init("debug")
    assert handler in logging.getLogger().handlers
    assert logging.getLogger().level == logging.DEBUG


def test_init_rejects_unknown_level(restore_root):
    with pytest.raises(ValueError):
        init("loud")


def test_env_overrides_levels(restore_root, monkeypatch):
    monkeypatch.setenv(logsetup.ENV_VAR, "error,nix=trace")
    init(logging.INFO)
    assert logging.getLogger().level == logging.ERROR
    assert logging.getLogger("nix").level == TRACE


def test_set_status_creates_progress():
    assert current_progress() is None
    set_progress_status("Fetching available modules...")
    progress = current_progress()
    assert progress.status == "Fetching available modules..."
    set_progress_status("next")
    assert current_progress() is progress
    assert progress.status == "next"


def test_hide_progress_removes_it():
    set_progress_status("busy")
    hide_progress()
    assert current_progress() is None


def test_progress_scope_hides_on_error():
    with pytest.raises(KeyError):
        with progress_scope():
            set_progress_status("busy")
            raise KeyError("x")
    assert current_progress() is None


def test_progress_scope_hides_on_success():
    with progress_scope():
        set_progress_status("busy")
        assert current_progress().status == "busy"
    assert current_progress() is None


def test_log_progress_plain_line(caplog):
    caplog.set_level(logging.DEBUG)
    log_progress("git clone", logging.INFO, "Cloning into 'repo'...")
    records = [r for r in caplog.records if r.name == "git clone"]
    assert [r.getMessage() for r in records] == ["Cloning into 'repo'..."]
    assert records[0].levelno == logging.INFO


def test_log_progress_nix_message(caplog):
    caplog.set_level(logging.DEBUG)
    log_progress("git", logging.INFO, '@nix {"action":"msg","level":0,"msg":"boom"}')
    records = [r for r in caplog.records if r.name == "nix"]
    assert [(r.levelno, r.getMessage()) for r in records] == [(logging.ERROR, "boom")]