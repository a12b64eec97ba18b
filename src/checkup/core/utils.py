from __future__ import annotations

import json
import os
import re
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Mapping


_TRUTHY = {"1", "true", "yes", "on"}
_FALSY = {"0", "false", "no", "off"}

# Variables checked by the common CI detectors; any one of them marks a CI run.
CI_ENV_VARS = (
    "BUILD_ID",
    "BUILD_NUMBER",
    "CI",
    "CI_APP_ID",
    "CI_BUILD_ID",
    "CI_BUILD_NUMBER",
    "CI_NAME",
    "CONTINUOUS_INTEGRATION",
    "RUN_ID",
    "GITHUB_ACTIONS",
    "GITLAB_CI",
    "TF_BUILD",
    "BUILDKITE",
    "CIRCLECI",
    "TRAVIS",
    "JENKINS_URL",
)

_ANSI_RE = re.compile(r"\x1b\[[0-9;]*m")

RED = "\033[31m"
BOLD = "\033[1m"
RESET = "\033[0m"


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def today_format() -> str:
    return datetime.now().strftime("%Y-%m-%d-%H_%M_%S")


def ensure_dir(path: Path) -> None:
    path.mkdir(parents=True, exist_ok=True)


def _canonicalize(value: Any) -> Any:
    if isinstance(value, Mapping):
        return {str(key): _canonicalize(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_canonicalize(item) for item in value]
    return value


def json_dumps(data: Any) -> str:
    return json.dumps(_canonicalize(data), ensure_ascii=False, indent=2, sort_keys=True)


def read_json(path: Path) -> Any:
    return json.loads(path.read_text(encoding="utf-8"))


def atomic_write_text(path: Path, text: str, encoding: str = "utf-8") -> None:
    """Atomically write `text` to `path` (temp file in the same directory, then os.replace)."""

    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_name(f".{path.name}.tmp.{uuid.uuid4().hex}")
    try:
        with tmp_path.open("w", encoding=encoding) as handle:
            handle.write(text)
            handle.flush()
            try:
                os.fsync(handle.fileno())
            except OSError:
                pass
        os.replace(tmp_path, path)
    finally:
        if tmp_path.exists():
            tmp_path.unlink()


def write_json(path: Path, data: Any) -> None:
    atomic_write_text(path, json_dumps(data) + "\n")


def env_flag(name: str, default: bool = False) -> bool:
    raw = os.environ.get(name, "").strip().lower()
    if raw in _TRUTHY:
        return True
    if raw in _FALSY:
        return False
    return default


def env_paths(name: str) -> list[Path]:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return []
    return [Path(item) for item in raw.split(os.pathsep) if item.strip()]


def is_ci() -> bool:
    if os.environ.get("CI", "").strip().lower() == "false":
        return False
    return any(os.environ.get(name) for name in CI_ENV_VARS)


def strip_ansi(text: str) -> str:
    return _ANSI_RE.sub("", text)


def make_file_logger(path: Path) -> Callable[[str], None]:
    def logger(msg: str) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("a", encoding="utf-8") as handle:
            handle.write(f"{now_iso()} {msg}\n")

    return logger


def null_logger(msg: str) -> None:
    pass
