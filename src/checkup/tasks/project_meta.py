from __future__ import annotations

from typing import Any, Mapping

from checkup.core.config import get_task_config
from checkup.core.types import TaskContext, TaskResult, full_task_name, thaw


class ProjectMetaTask:
    task_name = "project"
    task_display_name = "Project"
    category = "meta"

    def __init__(self, plugin_name: str, context: TaskContext) -> None:
        self.plugin_name = plugin_name
        self.context = context
        self.config = get_task_config(context.config, self.full_name)

    @property
    def full_name(self) -> str:
        return full_task_name(self.plugin_name, self.task_name)

    def run(self) -> TaskResult:
        pkg = self.context.pkg
        repository: Any = pkg.get("repository") or (pkg.get("urls") or {}).get("Repository")
        if isinstance(repository, Mapping):
            repository = repository.get("url")
        return TaskResult(
            info={
                "taskName": self.full_name,
                "taskDisplayName": self.task_display_name,
                "category": self.category,
            },
            result={
                "name": pkg.get("name") or self.context.cwd.resolve().name,
                "version": pkg.get("version") or "0.0.0",
                "repository": repository or "",
                "cwd": str(self.context.cwd),
                "analyzedFilesCount": len(self.context.paths),
                "config": thaw(self.context.config),
            },
        )
