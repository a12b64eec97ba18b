from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any

import pytest

from checkup.core.config import default_config, get_task_config
from checkup.core.types import RunFlags, TaskContext, TaskResult, freeze_mapping, full_task_name
from checkup.core.utils import CI_ENV_VARS


@pytest.fixture(autouse=True)
def _no_ci(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in CI_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.delenv("CHECKUP_PLUGIN_PATH", raising=False)
    monkeypatch.delenv("CHECKUP_PROGRESS", raising=False)


def make_context(
    cwd: Path,
    config: dict[str, Any] | None = None,
    paths: list[str] | None = None,
    parsers: dict[str, Any] | None = None,
    pkg: dict[str, Any] | None = None,
) -> TaskContext:
    return TaskContext(
        cli_arguments=(),
        cli_flags=RunFlags(cwd=cwd),
        parsers=freeze_mapping(parsers or {}),
        config=freeze_mapping(config or default_config()),
        pkg=freeze_mapping(pkg or {}),
        paths=tuple(paths or ()),
    )


class FakeTask:
    """Task double; `fail` makes run() raise, `is_async` makes run() a coroutine."""

    def __init__(
        self,
        plugin_name: str,
        task_name: str,
        *,
        payload: Any = None,
        fail: bool = False,
        is_async: bool = False,
        config: dict[str, Any] | None = None,
    ) -> None:
        self.plugin_name = plugin_name
        self.task_name = task_name
        self.payload = {"value": 1} if payload is None else payload
        self.fail = fail
        self.is_async = is_async
        self.config = get_task_config(config or default_config(), self.full_name)
        self.calls = 0

    @property
    def full_name(self) -> str:
        return full_task_name(self.plugin_name, self.task_name)

    def _result(self) -> TaskResult:
        self.calls += 1
        if self.fail:
            raise RuntimeError(f"{self.full_name} exploded")
        return TaskResult(
            info={"taskName": self.full_name, "taskDisplayName": self.task_name.title()},
            result=self.payload,
        )

    def run(self):
        if not self.is_async:
            return self._result()

        async def _run() -> TaskResult:
            await asyncio.sleep(0)
            return self._result()

        return _run()


@pytest.fixture()
def project_dir(tmp_path: Path) -> Path:
    root = tmp_path / "project"
    root.mkdir()
    (root / "package.json").write_text(
        '{"name": "foo", "version": "0.0.0", "repository": "https://example.com/foo.git"}',
        encoding="utf-8",
    )
    (root / "index.js").write_text(
        "\n".join(
            [
                "// eslint-disable-line no-eval",
                "/* eslint-disable */",
                "",
                "function foo(obj) {",
                "  return {     // eslint-disable-line",
                "    ...obj",
                "  }",
                "}",
            ]
        )
        + "\n",
        encoding="utf-8",
    )
    (root / "decorator.js").write_text(
        "/* eslint-disable */\n\nexport default class Bar {}\n", encoding="utf-8"
    )
    return root


@pytest.fixture()
def plugins_dir() -> Path:
    return Path(__file__).resolve().parents[1] / "plugins"
