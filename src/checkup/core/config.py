from __future__ import annotations

import copy
import hashlib
import json
import tempfile
from pathlib import Path
from typing import Any, Mapping
from urllib.parse import urlparse

import httpx
from jsonschema import ValidationError, validate

from .errors import CheckupError, ErrorKind
from .types import TaskConfig, thaw
from .utils import atomic_write_text, read_json, write_json


CONFIG_FILE_NAME = ".checkuprc"
CONFIG_SCHEMA_URL = (
    "https://raw.githubusercontent.com/checkupjs/checkup/master/"
    "packages/core/src/schemas/config-schema.json"
)
PLUGIN_PREFIX = "checkup-plugin"
REMOTE_CONFIG_TIMEOUT_SECONDS = 30.0
REMOTE_CONFIG_CACHE_DIR = "checkup-remote-config"

DEFAULT_CONFIG: dict[str, Any] = {
    "$schema": CONFIG_SCHEMA_URL,
    "excludePaths": [],
    "plugins": [],
    "tasks": {},
}

_SCHEMA_PATH = Path(__file__).resolve().parent / "schemas" / "config.schema.json"
_schema_cache: dict[str, Any] | None = None


def _config_schema() -> dict[str, Any]:
    global _schema_cache
    if _schema_cache is None:
        _schema_cache = read_json(_SCHEMA_PATH)
    return _schema_cache


def default_config() -> dict[str, Any]:
    return copy.deepcopy(DEFAULT_CONFIG)


def resolve_config_path(root: Path | str) -> Path:
    return Path(root) / CONFIG_FILE_NAME


def is_remote(path_or_url: str) -> bool:
    return urlparse(str(path_or_url)).scheme in {"http", "https"}


def get_config_path(
    path_or_url: str | Path | None = None,
    cwd: Path | str | None = None,
    *,
    client: httpx.Client | None = None,
) -> Path:
    """Return a local path for the config to read.

    Remote configs are fetched once and materialized in a temp file so the rest of the
    pipeline reads them exactly like a local `.checkuprc`.
    """

    if path_or_url is None or str(path_or_url) == "":
        return resolve_config_path(Path(cwd) if cwd is not None else Path.cwd())
    if not is_remote(str(path_or_url)):
        return Path(path_or_url)
    return _fetch_remote_config(str(path_or_url), client=client)


def _fetch_remote_config(url: str, *, client: httpx.Client | None = None) -> Path:
    owns_client = client is None
    http = client or httpx.Client(
        timeout=httpx.Timeout(REMOTE_CONFIG_TIMEOUT_SECONDS, connect=10.0),
        follow_redirects=True,
    )
    try:
        response = http.get(url)
        response.raise_for_status()
        body = response.text
    except httpx.HTTPError as exc:
        raise CheckupError(ErrorKind.REMOTE_CONFIG_FETCH_FAILED, url=url, error=str(exc)) from exc
    finally:
        if owns_client:
            http.close()
    target = remote_config_cache_path(url)
    atomic_write_text(target, body)
    return target


def remote_config_cache_path(url: str) -> Path:
    """One cached `.checkuprc` per URL under the temp dir, overwritten on each fetch."""

    digest = hashlib.sha256(url.encode("utf-8")).hexdigest()[:16]
    return resolve_config_path(Path(tempfile.gettempdir()) / REMOTE_CONFIG_CACHE_DIR / digest)


def read_config(path: Path | str) -> dict[str, Any]:
    config_path = Path(path)
    if config_path.is_dir():
        config_path = resolve_config_path(config_path)
    if not config_path.exists():
        return default_config()
    try:
        parsed = json.loads(config_path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise CheckupError(
            ErrorKind.INVALID_JSON, config_path=str(config_path), error=str(exc)
        ) from exc
    try:
        validate(instance=parsed, schema=_config_schema())
    except ValidationError as exc:
        raise CheckupError(
            ErrorKind.INVALID_CONFIG,
            config_path=str(config_path),
            schema_url=CONFIG_SCHEMA_URL,
            detail=exc.message,
        ) from exc
    config = default_config()
    config.update(parsed)
    config["plugins"] = normalize_plugin_names(config["plugins"])
    return config


def write_config(root: Path | str, overrides: Mapping[str, Any] | None = None) -> Path:
    config_path = resolve_config_path(root)
    if config_path.exists():
        raise CheckupError(ErrorKind.CONFIG_FILE_EXISTS, config_destination=str(Path(root)))
    config = default_config()
    for key, value in (overrides or {}).items():
        config[key] = copy.deepcopy(value)
    write_json(config_path, config)
    return config_path


def parse_config_tuple(value: Any) -> TaskConfig:
    if value is None or value == "on":
        return True, {}
    if value == "off":
        return False, {}
    state, options = value
    return state == "on", thaw(options or {})


def get_task_config(config: Mapping[str, Any], full_name: str) -> TaskConfig:
    return parse_config_tuple((config.get("tasks") or {}).get(full_name))


def normalize_plugin_name(name: str) -> str:
    """Expand plugin shorthands to the `checkup-plugin-*` package form."""

    name = name.strip()
    if name.startswith("@"):
        scope, _, rest = name.partition("/")
        if not rest:
            return f"{scope}/{PLUGIN_PREFIX}"
        if rest.startswith(PLUGIN_PREFIX):
            return name
        return f"{scope}/{PLUGIN_PREFIX}-{rest}"
    if name.startswith(f"{PLUGIN_PREFIX}-") or name == PLUGIN_PREFIX:
        return name
    return f"{PLUGIN_PREFIX}-{name}"


def normalize_plugin_names(names: list[str]) -> list[str]:
    seen: set[str] = set()
    normalized: list[str] = []
    for name in names:
        canonical = normalize_plugin_name(name)
        if canonical in seen:
            continue
        seen.add(canonical)
        normalized.append(canonical)
    return normalized
