from __future__ import annotations

from pathlib import Path

import pytest

from checkup.core.errors import ERROR_BY_KIND, CheckupError, ErrorKind
from checkup.core.utils import strip_ansi


def test_every_error_kind_has_details() -> None:
    assert set(ERROR_BY_KIND) == set(ErrorKind)
    for kind in ErrorKind:
        err = CheckupError(kind)
        assert err.message
        assert err.call_to_action
        assert err.error_code != 0


def test_message_is_computed_from_options() -> None:
    err = CheckupError(ErrorKind.INVALID_CONFIG, config_path="/tmp/x/.checkuprc")
    assert str(err) == "Config in /tmp/x/.checkuprc is invalid."


def test_tasks_not_found_pluralizes() -> None:
    single = CheckupError(ErrorKind.TASKS_NOT_FOUND, task_names=["x/y"])
    many = CheckupError(ErrorKind.TASKS_NOT_FOUND, task_names=["x/y", "z/w"])

    assert single.message == "Cannot find the x/y task."
    assert many.message == "Cannot find the x/y,z/w tasks."
    assert "--listTasks" in many.call_to_action


def test_render_writes_error_log_outside_ci(tmp_path: Path) -> None:
    try:
        raise CheckupError(ErrorKind.CONFIG_FILE_EXISTS, config_destination=str(tmp_path))
    except CheckupError as exc:
        err = exc

    rendered = err.render(tmp_path)

    logs = list((tmp_path / ".checkup").glob("checkup-error-*.log"))
    assert len(logs) == 1
    assert "Checkup Error" in rendered
    assert str(logs[0]) in rendered
    content = logs[0].read_text(encoding="utf-8")
    assert content.startswith("Checkup v")
    assert "Checkup Error: Checkup config file exists in this directory" in content
    assert "\x1b[" not in content
    assert "test_render_writes_error_log_outside_ci" in content


def test_render_skips_error_log_in_ci(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CI", "true")
    err = CheckupError(ErrorKind.TASKS_NOT_FOUND, task_names=["x/y"])

    rendered = err.render(tmp_path)

    assert not (tmp_path / ".checkup").exists()
    assert strip_ansi(rendered) == (
        "Checkup Error: Cannot find the x/y task.\n"
        "Run `checkup run --listTasks` to see available tasks"
    )


def test_ci_false_is_not_ci(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CI", "false")
    CheckupError(ErrorKind.INVALID_JSON, config_path="x", error="boom").render(tmp_path)
    assert (tmp_path / ".checkup").exists()
