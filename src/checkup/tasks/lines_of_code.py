from __future__ import annotations

from collections import Counter
from pathlib import Path, PurePosixPath

from checkup.core.config import get_task_config
from checkup.core.types import TaskContext, TaskResult, full_task_name


def _count_lines(path: Path) -> int:
    try:
        with path.open("rb") as handle:
            return sum(1 for _ in handle)
    except OSError:
        return 0


class LinesOfCodeTask:
    task_name = "lines-of-code"
    task_display_name = "Lines of Code"
    category = "metrics"

    def __init__(self, plugin_name: str, context: TaskContext) -> None:
        self.plugin_name = plugin_name
        self.context = context
        self.config = get_task_config(context.config, self.full_name)

    @property
    def full_name(self) -> str:
        return full_task_name(self.plugin_name, self.task_name)

    def _collect(self) -> dict[str, dict[str, int]]:
        files: Counter[str] = Counter()
        lines: Counter[str] = Counter()
        for rel in self.context.paths:
            extension = PurePosixPath(rel).suffix.lstrip(".") or "(none)"
            files[extension] += 1
            lines[extension] += _count_lines(self.context.cwd / rel)
        return {
            ext: {"files": files[ext], "lines": lines[ext]} for ext in sorted(files)
        }

    async def run(self) -> TaskResult:
        by_extension = self._collect()
        return TaskResult(
            info={
                "taskName": self.full_name,
                "taskDisplayName": self.task_display_name,
                "category": self.category,
            },
            result={
                "byExtension": by_extension,
                "totalLines": sum(item["lines"] for item in by_extension.values()),
            },
        )
