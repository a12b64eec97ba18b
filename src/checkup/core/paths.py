from __future__ import annotations

import fnmatch
import json
import tomllib
from pathlib import Path
from typing import Any, Iterable


IGNORED_DIRS = {".git", "node_modules", ".checkup", "__pycache__", ".venv"}


def _is_ignored(rel: Path) -> bool:
    return any(part in IGNORED_DIRS for part in rel.parts)


def _matches_any(rel_posix: str, patterns: list[str]) -> bool:
    for pattern in patterns:
        candidates = [pattern]
        # `**/foo` also matches `foo` at the root, like the common glob tools.
        if pattern.startswith("**/"):
            candidates.append(pattern[3:])
        for candidate in candidates:
            if fnmatch.fnmatch(rel_posix, candidate):
                return True
            if fnmatch.fnmatch(rel_posix, candidate.rstrip("/") + "/*"):
                return True
    return False


def _expand(cwd: Path, entry: str) -> Iterable[Path]:
    candidate = cwd / entry
    if candidate.is_file():
        yield candidate
    elif candidate.is_dir():
        yield from (p for p in candidate.rglob("*") if p.is_file())
    else:
        yield from (p for p in cwd.glob(entry) if p.is_file())


def get_file_paths(
    cwd: Path, paths: Iterable[str] = (), exclude_paths: Iterable[str] = ()
) -> list[str]:
    """Files under `cwd` selected by `paths` (all files if empty) minus `exclude_paths`."""

    root = cwd.resolve()
    entries = list(paths) or ["."]
    excludes = [str(p) for p in exclude_paths]
    selected: set[str] = set()
    for entry in entries:
        for path in _expand(root, entry):
            try:
                rel = path.resolve().relative_to(root)
            except ValueError:
                continue
            if _is_ignored(rel):
                continue
            rel_posix = rel.as_posix()
            if excludes and _matches_any(rel_posix, excludes):
                continue
            selected.add(rel_posix)
    return sorted(selected)


def get_package_json(cwd: Path) -> dict[str, Any]:
    package_json = cwd / "package.json"
    if package_json.exists():
        try:
            data = json.loads(package_json.read_text(encoding="utf-8"))
        except json.JSONDecodeError:
            return {}
        return data if isinstance(data, dict) else {}
    pyproject = cwd / "pyproject.toml"
    if pyproject.exists():
        try:
            data = tomllib.loads(pyproject.read_text(encoding="utf-8"))
        except tomllib.TOMLDecodeError:
            return {}
        project = data.get("project")
        return dict(project) if isinstance(project, dict) else {}
    return {}
