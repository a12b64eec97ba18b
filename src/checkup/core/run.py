from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any, Callable, Iterable

from checkup.tasks.lines_of_code import LinesOfCodeTask
from checkup.tasks.project_meta import ProjectMetaTask

from .actions import evaluate_actions
from .config import get_config_path, read_config
from .errors import CheckupError, ErrorKind
from .paths import get_file_paths, get_package_json
from .plugin_manager import (
    LoadedPlugin,
    PluginManager,
    Registries,
    default_search_paths,
    run_registration_hooks,
    run_task_hooks,
)
from .reporters import RunReport, check_output_flags, default_reporters
from .task_list import MetaTaskList, TaskList
from .types import Action, RunFlags, Task, TaskContext, TaskError, TaskResult, freeze_mapping
from .utils import null_logger


META_PLUGIN_NAME = "meta"


class CheckupRun:
    """One checkup invocation: config, plugins, context, tasks, actions, report."""

    def __init__(
        self,
        flags: RunFlags,
        *,
        cli_arguments: Iterable[str] = (),
        extra_tasks: Iterable[Callable[[TaskContext], Task] | Task] = (),
        plugin_manager: PluginManager | None = None,
        logger: Callable[[str], None] | None = None,
    ) -> None:
        self.flags = flags
        self.cli_arguments = tuple(cli_arguments)
        self.extra_tasks = list(extra_tasks)
        self.plugin_manager = plugin_manager or PluginManager(default_search_paths(flags.cwd))
        self.logger = logger or null_logger

        self.config: dict[str, Any] = {}
        self.plugins: list[LoadedPlugin] = []
        self.registries = Registries(reporters=default_reporters())
        self.context: TaskContext | None = None

        self.meta_tasks = MetaTaskList()
        self.plugin_tasks = TaskList()
        self.meta_task_results: list[TaskResult] = []
        self.meta_task_errors: list[TaskError] = []
        self.plugin_task_results: list[TaskResult] = []
        self.plugin_task_errors: list[TaskError] = []
        self.tasks_not_found: list[str] = []
        self.actions: list[Action] = []

    def load_config(self) -> dict[str, Any]:
        check_output_flags(self.flags)
        config_path = get_config_path(self.flags.config, self.flags.cwd)
        self.logger(f"[CONFIG] {config_path}")
        self.config = read_config(config_path)
        self.plugins = self.plugin_manager.load_plugins(self.config["plugins"])
        for item in self.plugins:
            self.logger(f"[PLUGIN] {item.spec.plugin_id} {item.spec.version}")
        return self.config

    def register(self) -> TaskContext:
        run_registration_hooks(self.plugins, self.registries)

        # CLI exclude paths take precedence over the config's.
        exclude_paths = self.flags.exclude_paths
        if exclude_paths is None:
            exclude_paths = tuple(self.config.get("excludePaths") or ())

        context = TaskContext(
            cli_arguments=self.cli_arguments,
            cli_flags=self.flags,
            parsers=self.registries.parsers.snapshot(),
            config=freeze_mapping(self.config),
            pkg=freeze_mapping(get_package_json(self.flags.cwd)),
            paths=tuple(get_file_paths(self.flags.cwd, self.cli_arguments, exclude_paths)),
            logger=self.logger,
        )
        self.context = context

        self.meta_tasks.register_task(ProjectMetaTask(META_PLUGIN_NAME, context))
        self.plugin_tasks.register_task(LinesOfCodeTask(META_PLUGIN_NAME, context))

        run_task_hooks(self.plugins, context, self.plugin_tasks)

        # Extra tasks are either task instances or factories taking the context.
        for extra in self.extra_tasks:
            if isinstance(extra, type) or not hasattr(extra, "run"):
                extra = extra(context)
            self.plugin_tasks.register_task(extra)
        return context

    def list_tasks(self) -> list[str]:
        return self.plugin_tasks.fully_qualified_task_names

    async def run_tasks(self) -> None:
        self.meta_task_results, self.meta_task_errors = await self.meta_tasks.run_tasks(
            logger=self.logger
        )
        if self.flags.task is None:
            self.plugin_task_results, self.plugin_task_errors = (
                await self.plugin_tasks.run_tasks(logger=self.logger)
            )
            return
        lookup = self.plugin_tasks.find_tasks(*self.flags.task)
        if lookup.tasks_found:
            self.plugin_task_results, self.plugin_task_errors = (
                await self.plugin_tasks.run_tasks(lookup.tasks_found, logger=self.logger)
            )
        self.tasks_not_found = lookup.tasks_not_found

    def run_actions(self) -> list[Action]:
        self.actions = evaluate_actions(
            self.registries.actions, self.plugin_tasks, self.plugin_task_results
        )
        return self.actions

    def build_report(self) -> RunReport:
        return RunReport(
            info=list(self.meta_task_results),
            results=list(self.plugin_task_results),
            errors=[*self.meta_task_errors, *self.plugin_task_errors],
            actions=list(self.actions),
        )

    def missing_tasks_error(self) -> CheckupError | None:
        if not self.tasks_not_found:
            return None
        return CheckupError(ErrorKind.TASKS_NOT_FOUND, task_names=list(self.tasks_not_found))

    async def execute(self) -> RunReport:
        self.load_config()
        self.register()
        await self.run_tasks()
        self.run_actions()
        return self.build_report()

    def execute_sync(self) -> RunReport:
        return asyncio.run(self.execute())


def run_checkup(
    cwd: Path | str,
    *,
    tasks: Iterable[str] | None = None,
    config: str | None = None,
    extra_tasks: Iterable[Any] = (),
) -> RunReport:
    flags = RunFlags(
        cwd=Path(cwd),
        config=config,
        task=tuple(tasks) if tasks is not None else None,
    )
    return CheckupRun(flags, extra_tasks=extra_tasks).execute_sync()
