from __future__ import annotations

from typing import Any, Iterable, Mapping

from .task_list import TaskList
from .types import Action, ActionEvaluator, TaskConfig, TaskResult


class ActionRegistry:
    """Evaluators keyed by fully-qualified task name, in registration order."""

    def __init__(self) -> None:
        self._evaluators: list[tuple[str, ActionEvaluator]] = []

    def register(self, task_name: str, evaluator: ActionEvaluator) -> None:
        self._evaluators.append((task_name, evaluator))

    def __iter__(self):
        return iter(list(self._evaluators))

    def __len__(self) -> int:
        return len(self._evaluators)


def evaluate_actions(
    registry: ActionRegistry,
    tasks: TaskList,
    results: Iterable[TaskResult],
) -> list[Action]:
    by_name: dict[str, TaskResult] = {}
    for result in results:
        by_name.setdefault(result.task_name, result)

    actions: list[Action] = []
    for task_name, evaluator in registry:
        task = tasks.find_task(task_name)
        result = by_name.get(task_name)
        if task is None or result is None:
            continue
        actions.extend(evaluator(result, task.config) or [])
    return actions


def get_threshold(task_config: TaskConfig, action_name: str, default: float) -> float:
    """Threshold for `action_name` from `options.actions.<name>.threshold`."""

    _enabled, options = task_config
    actions = options.get("actions") if isinstance(options, Mapping) else None
    entry: Any = actions.get(action_name) if isinstance(actions, Mapping) else None
    if isinstance(entry, Mapping) and entry.get("threshold") is not None:
        try:
            return float(entry["threshold"])
        except (TypeError, ValueError):
            return default
    return default


def threshold_action(
    *,
    name: str,
    summary: str,
    details: str,
    input: float,
    default_threshold: float,
    task_config: TaskConfig,
    items: list[str] | None = None,
) -> list[Action]:
    threshold = get_threshold(task_config, name, default_threshold)
    if input < threshold:
        return []
    return [
        Action(
            name=name,
            summary=summary,
            details=details,
            input=input,
            default_threshold=default_threshold,
            items=list(items or []),
        )
    ]
