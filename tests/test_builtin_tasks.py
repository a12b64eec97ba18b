from __future__ import annotations

import asyncio
from pathlib import Path

from checkup.core.paths import get_file_paths, get_package_json
from checkup.core.task_runner import validate_task_result
from checkup.tasks.lines_of_code import LinesOfCodeTask
from checkup.tasks.project_meta import ProjectMetaTask
from tests.conftest import make_context


def test_project_meta_uses_package_metadata(project_dir: Path) -> None:
    context = make_context(
        project_dir,
        paths=get_file_paths(project_dir),
        pkg=get_package_json(project_dir),
    )

    result = ProjectMetaTask("meta", context).run()

    validate_task_result(result)
    assert result.task_name == "meta/project"
    assert result.result["name"] == "foo"
    assert result.result["analyzedFilesCount"] == 3
    assert result.result["config"]["plugins"] == []


def test_project_meta_falls_back_to_directory_name(tmp_path: Path) -> None:
    pkg = {"name": "bar", "urls": {"Repository": "https://example.com/bar"}}

    unnamed = ProjectMetaTask("meta", make_context(tmp_path)).run().result
    named = ProjectMetaTask("meta", make_context(tmp_path, pkg=pkg)).run().result

    assert unnamed["name"] == tmp_path.name
    assert unnamed["version"] == "0.0.0"
    assert unnamed["repository"] == ""
    assert named["repository"] == "https://example.com/bar"


def test_lines_of_code_groups_by_extension(project_dir: Path) -> None:
    context = make_context(project_dir, paths=get_file_paths(project_dir))

    result = asyncio.run(LinesOfCodeTask("meta", context).run())

    validate_task_result(result)
    assert result.task_name == "meta/lines-of-code"
    assert result.result == {
        "byExtension": {"js": {"files": 2, "lines": 11}, "json": {"files": 1, "lines": 1}},
        "totalLines": 12,
    }


def test_lines_of_code_with_no_paths(tmp_path: Path) -> None:
    result = asyncio.run(LinesOfCodeTask("meta", make_context(tmp_path)).run())

    assert result.result == {"byExtension": {}, "totalLines": 0}
