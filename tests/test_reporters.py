from __future__ import annotations

import io
import json
from pathlib import Path

import pytest

from checkup.core.errors import CheckupError, ErrorKind
from checkup.core.reporters import RunReport, check_output_flags, default_reporters, report
from checkup.core.types import Action, RunFlags, TaskError, TaskResult


def _report() -> RunReport:
    return RunReport(
        info=[
            TaskResult(
                {"taskName": "meta/project", "taskDisplayName": "Project"},
                {"name": "foo", "version": "1.0.0"},
            )
        ],
        results=[TaskResult({"taskName": "a/b", "taskDisplayName": "B"}, {"count": 3})],
        errors=[TaskError("a/c", ValueError("bad input"))],
        actions=[Action("fix", "Fix things", "3 things", 3, 2)],
    )


def test_check_output_flags(tmp_path: Path) -> None:
    check_output_flags(RunFlags(cwd=tmp_path))
    check_output_flags(RunFlags(cwd=tmp_path, format="json", output_file="x.json"))
    with pytest.raises(CheckupError) as excinfo:
        check_output_flags(RunFlags(cwd=tmp_path, output_file="x.json"))
    assert excinfo.value.kind == ErrorKind.OUTPUT_FILE_REQUIRES_JSON


def test_stdout_reporter(tmp_path: Path) -> None:
    stream = io.StringIO()

    report(_report(), RunFlags(cwd=tmp_path), default_reporters(), stream)

    out = stream.getvalue()
    assert "Checkup report for foo 1.0.0" in out
    assert '"count": 3' in out
    assert "  - Fix things: 3 things" in out
    assert "  a/c: bad input" in out


def test_json_reporter_to_stream(tmp_path: Path) -> None:
    stream = io.StringIO()

    report(_report(), RunFlags(cwd=tmp_path, format="json"), default_reporters(), stream)

    data = json.loads(stream.getvalue())
    assert data["errors"][0]["type"] == "ValueError"
    assert data["actions"][0]["defaultThreshold"] == 2


def test_json_reporter_to_file(tmp_path: Path) -> None:
    stream = io.StringIO()
    flags = RunFlags(cwd=tmp_path, format="json", output_file="out/report.json")

    report(_report(), flags, default_reporters(), stream)

    target = tmp_path / "out" / "report.json"
    assert json.loads(target.read_text(encoding="utf-8"))["results"][0]["result"] == {"count": 3}
    assert stream.getvalue() == f"Results have been saved to {target}\n"


def test_unknown_format(tmp_path: Path) -> None:
    with pytest.raises(CheckupError) as excinfo:
        report(_report(), RunFlags(cwd=tmp_path, format="xml"), default_reporters(), io.StringIO())
    assert excinfo.value.kind == ErrorKind.UNKNOWN_OUTPUT_FORMAT
    assert "stdout, json" in excinfo.value.call_to_action
