from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Awaitable, Callable, Mapping, Protocol, Union


TaskConfig = tuple[bool, dict[str, Any]]


@dataclass(frozen=True)
class RunFlags:
    cwd: Path
    config: str | None = None
    task: tuple[str, ...] | None = None
    exclude_paths: tuple[str, ...] | None = None
    list_tasks: bool = False
    format: str = "stdout"
    output_file: str = ""


@dataclass(frozen=True)
class TaskContext:
    """Run-scoped inputs shared read-only by every task."""

    cli_arguments: tuple[str, ...]
    cli_flags: RunFlags
    parsers: Mapping[str, Callable[..., Any]]
    config: Mapping[str, Any]
    pkg: Mapping[str, Any]
    paths: tuple[str, ...]
    logger: Callable[[str], None] = field(default=lambda msg: None, compare=False)

    @property
    def cwd(self) -> Path:
        return self.cli_flags.cwd


def freeze(value: Any) -> Any:
    """Read-only copy of JSON-like data: mappings become proxies, lists become tuples."""

    if isinstance(value, Mapping):
        return MappingProxyType({key: freeze(item) for key, item in value.items()})
    if isinstance(value, (list, tuple)):
        return tuple(freeze(item) for item in value)
    return value


def thaw(value: Any) -> Any:
    if isinstance(value, Mapping):
        return {key: thaw(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [thaw(item) for item in value]
    return value


def freeze_mapping(value: Mapping[str, Any]) -> Mapping[str, Any]:
    return freeze(value)


@dataclass
class TaskResult:
    info: dict[str, Any]
    result: Any

    @property
    def task_name(self) -> str:
        return str(self.info.get("taskName", ""))

    def to_dict(self) -> dict[str, Any]:
        return {"info": dict(self.info), "result": self.result}


@dataclass
class TaskError:
    task_name: str
    error: BaseException
    traceback: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "taskName": self.task_name,
            "type": type(self.error).__name__,
            "message": str(self.error),
            "traceback": self.traceback,
        }


@dataclass
class Action:
    name: str
    summary: str
    details: str
    input: float
    default_threshold: float
    items: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "summary": self.summary,
            "details": self.details,
            "input": self.input,
            "defaultThreshold": self.default_threshold,
            "items": list(self.items),
        }


TaskRunReturn = Union[TaskResult, Awaitable[TaskResult]]


class Task(Protocol):
    plugin_name: str
    task_name: str
    config: TaskConfig

    @property
    def full_name(self) -> str:  # pragma: no cover - protocol
        ...

    def run(self) -> TaskRunReturn:  # pragma: no cover - protocol
        ...


ActionEvaluator = Callable[[TaskResult, TaskConfig], list[Action]]


def full_task_name(plugin_name: str, task_name: str) -> str:
    return f"{plugin_name}/{task_name}"
