from __future__ import annotations

import sysconfig
import textwrap
import traceback
from dataclasses import dataclass
from enum import Enum
from importlib import metadata
from pathlib import Path
from typing import Any, Callable

from .utils import BOLD, RED, RESET, ensure_dir, is_ci, strip_ansi, today_format


ERROR_LOG_DIR = ".checkup"
WRAP_WIDTH = 80


class ErrorKind(str, Enum):
    INVALID_CONFIG = "invalid_config"
    INVALID_JSON = "invalid_json"
    CONFIG_FILE_EXISTS = "config_file_exists"
    REMOTE_CONFIG_FETCH_FAILED = "remote_config_fetch_failed"
    TASKS_NOT_FOUND = "tasks_not_found"
    DUPLICATE_TASK = "duplicate_task"
    PLUGIN_NOT_FOUND = "plugin_not_found"
    INVALID_PLUGIN = "invalid_plugin"
    OUTPUT_FILE_REQUIRES_JSON = "output_file_requires_json"
    UNKNOWN_OUTPUT_FORMAT = "unknown_output_format"


@dataclass(frozen=True)
class ErrorDetails:
    message: Callable[[dict[str, Any]], str]
    call_to_action: Callable[[dict[str, Any]], str]
    error_code: int = 1


def _tasks_not_found(options: dict[str, Any]) -> str:
    names = list(options.get("task_names") or [])
    suffix = "s" if len(names) > 1 else ""
    return f"Cannot find the {','.join(names)} task{suffix}."


ERROR_BY_KIND: dict[ErrorKind, ErrorDetails] = {
    ErrorKind.INVALID_CONFIG: ErrorDetails(
        message=lambda o: f"Config in {o.get('config_path')} is invalid.",
        call_to_action=lambda o: (
            "Fix the config so that it matches the schema at "
            f"{o.get('schema_url', 'the checkup config schema')}."
        ),
    ),
    ErrorKind.INVALID_JSON: ErrorDetails(
        message=lambda o: (
            f"The checkup config at {o.get('config_path')} contains invalid JSON.\n"
            f"Error: {o.get('error')}"
        ),
        call_to_action=lambda o: "Fix the JSON syntax error in the config file.",
    ),
    ErrorKind.CONFIG_FILE_EXISTS: ErrorDetails(
        message=lambda o: "Checkup config file exists in this directory",
        call_to_action=lambda o: (
            f"Remove the existing config in {o.get('config_destination')} "
            "or edit it directly."
        ),
    ),
    ErrorKind.REMOTE_CONFIG_FETCH_FAILED: ErrorDetails(
        message=lambda o: f"Could not load the remote config from {o.get('url')}: {o.get('error')}",
        call_to_action=lambda o: "Check the config URL and your network connection.",
    ),
    ErrorKind.TASKS_NOT_FOUND: ErrorDetails(
        message=_tasks_not_found,
        call_to_action=lambda o: "Run `checkup run --listTasks` to see available tasks",
    ),
    ErrorKind.DUPLICATE_TASK: ErrorDetails(
        message=lambda o: f"A task named {o.get('task_name')} is already registered.",
        call_to_action=lambda o: (
            "Make sure each plugin registers its tasks once and that "
            "task names are unique within a plugin."
        ),
    ),
    ErrorKind.PLUGIN_NOT_FOUND: ErrorDetails(
        message=lambda o: f"Cannot find the {o.get('plugin_name')} plugin.",
        call_to_action=lambda o: (
            "Check the `plugins` entry in your config, or add the plugin's directory "
            "to ./plugins or CHECKUP_PLUGIN_PATH."
        ),
    ),
    ErrorKind.INVALID_PLUGIN: ErrorDetails(
        message=lambda o: f"The {o.get('plugin_name')} plugin could not be loaded: {o.get('error')}",
        call_to_action=lambda o: "Check the plugin's plugin.yaml manifest and entrypoint.",
    ),
    ErrorKind.OUTPUT_FILE_REQUIRES_JSON: ErrorDetails(
        message=lambda o: "Missing --format flag.",
        call_to_action=lambda o: (
            "--format=json must also be provided when using --outputFile"
        ),
    ),
    ErrorKind.UNKNOWN_OUTPUT_FORMAT: ErrorDetails(
        message=lambda o: f"Unknown output format: {o.get('format')}.",
        call_to_action=lambda o: (
            f"Use one of the registered formats: {', '.join(o.get('available') or [])}."
        ),
    ),
}


def _package_version() -> str:
    try:
        return metadata.version("checkup")
    except metadata.PackageNotFoundError:
        return "0.0.0"


def _clean_stack(exc: BaseException) -> str:
    frames = traceback.extract_tb(exc.__traceback__)
    stdlib = sysconfig.get_paths().get("stdlib", "")
    kept = [
        frame
        for frame in frames
        if not (stdlib and frame.filename.startswith(stdlib) and "site-packages" not in frame.filename)
    ]
    lines = [f"{type(exc).__name__}: {exc}"]
    lines.extend(traceback.format_list(kept))
    if len(lines) == 1:
        lines.append("No stack available")
    return "\n".join(line.rstrip("\n") for line in lines)


class CheckupError(Exception):
    """Run-level failure with a user-facing message and remediation hint."""

    def __init__(self, kind: ErrorKind, **options: Any) -> None:
        details = ERROR_BY_KIND[kind]
        self.kind = kind
        self.details = details
        self.options = options
        self.message = details.message(options)
        super().__init__(self.message)

    @property
    def call_to_action(self) -> str:
        return self.details.call_to_action(self.options)

    @property
    def error_code(self) -> int:
        return self.details.error_code

    def render(self, cwd: Path | None = None) -> str:
        """Text for stderr; outside CI also writes the error log under `cwd`.

        The exit status stays with the caller: `cli.main` returns `error_code`.
        """

        details = [
            f"{BOLD}{RED}Checkup Error{RESET}: {self.message}",
            self.call_to_action,
        ]
        if is_ci():
            return "\n".join(details)
        log_path = self.write_error_log(details, cwd=cwd)
        details.append(f"Error details written to {log_path}")
        return _wrap("\n".join(details), WRAP_WIDTH)

    def write_error_log(self, details: list[str], cwd: Path | None = None) -> Path:
        log_dir = (cwd or Path.cwd()) / ERROR_LOG_DIR
        ensure_dir(log_dir)
        log_path = log_dir / f"checkup-error-{today_format()}.log"
        output = [
            f"Checkup v{_package_version()}",
            "",
            strip_ansi("\n".join(details)),
            "",
            _clean_stack(self),
        ]
        log_path.write_text("\n".join(output), encoding="utf-8")
        return log_path


def _wrap(text: str, width: int) -> str:
    wrapped: list[str] = []
    for line in text.split("\n"):
        if len(strip_ansi(line)) <= width:
            wrapped.append(line)
            continue
        wrapped.extend(
            textwrap.wrap(line, width=width, break_long_words=False, break_on_hyphens=False)
            or [""]
        )
    return "\n".join(wrapped)
