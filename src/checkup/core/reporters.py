from __future__ import annotations

import sys
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Callable, TextIO

from .errors import CheckupError, ErrorKind
from .registry import NamedRegistry
from .types import Action, RunFlags, TaskError, TaskResult
from .utils import BOLD, RESET, json_dumps, write_json


class OutputFormat(str, Enum):
    STDOUT = "stdout"
    JSON = "json"


@dataclass
class RunReport:
    info: list[TaskResult] = field(default_factory=list)
    results: list[TaskResult] = field(default_factory=list)
    errors: list[TaskError] = field(default_factory=list)
    actions: list[Action] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "info": [r.to_dict() for r in self.info],
            "results": [r.to_dict() for r in self.results],
            "errors": [e.to_dict() for e in self.errors],
            "actions": [a.to_dict() for a in self.actions],
        }


Reporter = Callable[[RunReport, RunFlags, TextIO], None]


def check_output_flags(flags: RunFlags) -> None:
    if flags.output_file and flags.format != OutputFormat.JSON.value:
        raise CheckupError(ErrorKind.OUTPUT_FILE_REQUIRES_JSON)


def stdout_reporter(report: RunReport, flags: RunFlags, stream: TextIO) -> None:
    for item in report.info:
        if item.task_name.endswith("/project") and isinstance(item.result, dict):
            name = item.result.get("name", "")
            version = item.result.get("version", "")
            stream.write(f"{BOLD}Checkup report for {name} {version}{RESET}\n\n")
    for result in sorted(report.results, key=lambda r: r.task_name):
        stream.write(f"{result.info.get('taskDisplayName', result.task_name)}\n")
        stream.write(f"  {json_dumps(result.result).replace(chr(10), chr(10) + '  ')}\n")
    if report.actions:
        stream.write("\nActions\n")
        for action in report.actions:
            stream.write(f"  - {action.summary}: {action.details}\n")
    if report.errors:
        stream.write("\nErrors\n")
        for error in report.errors:
            stream.write(f"  {error.task_name}: {error.error}\n")


def json_reporter(report: RunReport, flags: RunFlags, stream: TextIO) -> None:
    if flags.output_file:
        target = Path(flags.output_file)
        if not target.is_absolute():
            target = flags.cwd / target
        write_json(target, report.to_dict())
        stream.write(f"Results have been saved to {target}\n")
        return
    stream.write(json_dumps(report.to_dict()) + "\n")


def default_reporters() -> NamedRegistry[Reporter]:
    reporters: NamedRegistry[Reporter] = NamedRegistry("reporter")
    reporters.register(OutputFormat.STDOUT.value, stdout_reporter)
    reporters.register(OutputFormat.JSON.value, json_reporter)
    return reporters


def report(
    run_report: RunReport,
    flags: RunFlags,
    reporters: NamedRegistry[Reporter],
    stream: TextIO | None = None,
) -> None:
    reporter = reporters.get(flags.format)
    if reporter is None:
        raise CheckupError(
            ErrorKind.UNKNOWN_OUTPUT_FORMAT, format=flags.format, available=list(reporters)
        )
    reporter(run_report, flags, stream or sys.stdout)
