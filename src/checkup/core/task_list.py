from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Iterable, Sequence

from .errors import CheckupError, ErrorKind
from .task_runner import run_tasks
from .types import Task, TaskError, TaskResult


@dataclass
class TaskLookup:
    tasks_found: list[Task] = field(default_factory=list)
    tasks_not_found: list[str] = field(default_factory=list)


class TaskList:
    """Ordered, name-indexed set of tasks for one run."""

    def __init__(self, tasks: Iterable[Task] = ()) -> None:
        self._tasks: dict[str, Task] = {}
        for task in tasks:
            self.register_task(task)

    def __len__(self) -> int:
        return len(self._tasks)

    def __iter__(self):
        return iter(list(self._tasks.values()))

    def __contains__(self, name: object) -> bool:
        return name in self._tasks

    def register_task(self, task: Task) -> None:
        name = task.full_name
        if name in self._tasks:
            raise CheckupError(ErrorKind.DUPLICATE_TASK, task_name=name)
        self._tasks[name] = task

    def find_task(self, name: str) -> Task | None:
        return self._tasks.get(name)

    def find_tasks(self, *names: str) -> TaskLookup:
        lookup = TaskLookup()
        for name in names:
            task = self._tasks.get(name)
            if task is None:
                lookup.tasks_not_found.append(name)
            else:
                lookup.tasks_found.append(task)
        return lookup

    @property
    def fully_qualified_task_names(self) -> list[str]:
        return list(self._tasks)

    async def run_tasks(
        self,
        tasks: Sequence[Task] | None = None,
        *,
        logger: Callable[[str], None] | None = None,
    ) -> tuple[list[TaskResult], list[TaskError]]:
        selected = list(self._tasks.values()) if tasks is None else list(tasks)
        return await run_tasks(selected, logger=logger)


class MetaTaskList(TaskList):
    """Always-run tasks supplying project metadata; never filtered by --task."""
