from __future__ import annotations

import re
from typing import Any

from checkup.core.actions import ActionRegistry, threshold_action
from checkup.core.config import get_task_config
from checkup.core.registry import NamedRegistry
from checkup.core.task_list import TaskList
from checkup.core.types import Action, TaskConfig, TaskContext, TaskResult, full_task_name


PLUGIN_NAME = "checkup-plugin-javascript"
SOURCE_EXTENSIONS = (".js", ".jsx", ".mjs", ".cjs", ".ts", ".tsx")
ESLINT_DIRECTIVES_PARSER = "eslint-directives"

_DIRECTIVE_RE = re.compile(
    r"(?://|/\*)\s*(eslint-disable(?:-next-line|-line)?)\b([^\n*]*)"
)


def parse_eslint_directives(source: str) -> list[dict[str, Any]]:
    directives: list[dict[str, Any]] = []
    for match in _DIRECTIVE_RE.finditer(source):
        line = source.count("\n", 0, match.start()) + 1
        rules = [r.strip() for r in match.group(2).split(",") if r.strip()]
        directives.append({"directive": match.group(1), "line": line, "rules": rules})
    return directives


class EslintDisableTask:
    task_name = "eslint-disables"
    task_display_name = "Number of eslint-disable Usages"
    category = "linting"

    def __init__(self, plugin_name: str, context: TaskContext) -> None:
        self.plugin_name = plugin_name
        self.context = context
        self.config = get_task_config(context.config, self.full_name)

    @property
    def full_name(self) -> str:
        return full_task_name(self.plugin_name, self.task_name)

    async def run(self) -> TaskResult:
        parse = self.context.parsers.get(ESLINT_DIRECTIVES_PARSER, parse_eslint_directives)
        locations: list[dict[str, Any]] = []
        for rel in self.context.paths:
            if not rel.endswith(SOURCE_EXTENSIONS):
                continue
            source = (self.context.cwd / rel).read_text(encoding="utf-8", errors="replace")
            for directive in parse(source):
                locations.append({"file": rel, **directive})
        return TaskResult(
            info={
                "taskName": self.full_name,
                "taskDisplayName": self.task_display_name,
                "category": self.category,
            },
            result={"count": len(locations), "locations": locations},
        )


def evaluate_actions(result: TaskResult, task_config: TaskConfig) -> list[Action]:
    count = int(result.result.get("count", 0))
    return threshold_action(
        name="reduce-eslint-disable-usages",
        summary="Reduce number of eslint-disable usages",
        details=f"{count} usages of eslint-disable",
        input=count,
        default_threshold=2,
        task_config=task_config,
        items=[f"Total eslint-disable usages: {count}"],
    )


class Plugin:
    def register_parsers(self, parsers: NamedRegistry) -> None:
        parsers.register(ESLINT_DIRECTIVES_PARSER, parse_eslint_directives)

    def register_actions(self, actions: ActionRegistry) -> None:
        actions.register(full_task_name(PLUGIN_NAME, EslintDisableTask.task_name), evaluate_actions)

    def register_tasks(self, context: TaskContext, tasks: TaskList) -> None:
        tasks.register_task(EslintDisableTask(PLUGIN_NAME, context))
