from __future__ import annotations

import importlib.util
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Iterable

import yaml
from jsonschema import ValidationError, validate

from .actions import ActionRegistry
from .errors import CheckupError, ErrorKind
from .registry import NamedRegistry
from .task_list import TaskList
from .types import TaskContext
from .utils import env_paths, read_json


PLUGIN_PATH_ENV = "CHECKUP_PLUGIN_PATH"
MANIFEST_NAME = "plugin.yaml"

_MANIFEST_SCHEMA_PATH = (
    Path(__file__).resolve().parent / "schemas" / "plugin_manifest.schema.json"
)

# Callback names invoked on every loaded plugin, in this order.
REGISTRATION_HOOKS = (
    "register_parsers",
    "register_actions",
    "register_reporters",
)
TASK_HOOK = "register_tasks"


@dataclass
class PluginSpec:
    plugin_id: str
    name: str
    version: str
    entrypoint: str
    path: Path
    description: str = ""


@dataclass(frozen=True)
class PluginDiscoveryError:
    plugin_id: str
    path: Path
    message: str


@dataclass
class Registries:
    parsers: NamedRegistry[Callable[..., Any]] = field(
        default_factory=lambda: NamedRegistry("parser")
    )
    actions: ActionRegistry = field(default_factory=ActionRegistry)
    reporters: NamedRegistry[Callable[..., Any]] = field(
        default_factory=lambda: NamedRegistry("reporter")
    )


@dataclass
class LoadedPlugin:
    spec: PluginSpec
    plugin: Any


def default_search_paths(cwd: Path) -> list[Path]:
    return [cwd / "plugins", *env_paths(PLUGIN_PATH_ENV)]


class PluginManager:
    def __init__(self, search_paths: Iterable[Path]) -> None:
        self.search_paths = [Path(p) for p in search_paths]
        self._manifest_schema: dict[str, Any] | None = None
        self.discovery_errors: list[PluginDiscoveryError] = []

    def _record_discovery_error(self, plugin_id: str, manifest: Path, message: str) -> None:
        self.discovery_errors.append(
            PluginDiscoveryError(
                plugin_id=plugin_id or manifest.parent.name,
                path=manifest,
                message=message,
            )
        )

    def discover(self) -> list[PluginSpec]:
        specs: list[PluginSpec] = []
        self.discovery_errors = []
        schema = self._load_manifest_schema()
        seen: set[str] = set()
        for root in self.search_paths:
            if not root.is_dir():
                continue
            for manifest in sorted(root.glob(f"*/{MANIFEST_NAME}")):
                try:
                    data = yaml.safe_load(manifest.read_text(encoding="utf-8"))
                except yaml.YAMLError as exc:
                    self._record_discovery_error(
                        manifest.parent.name, manifest, f"Invalid YAML: {exc}"
                    )
                    continue
                if not isinstance(data, dict):
                    self._record_discovery_error(
                        manifest.parent.name, manifest, "Invalid manifest payload"
                    )
                    continue
                plugin_id = str(data.get("id") or manifest.parent.name)
                try:
                    validate(instance=data, schema=schema)
                except ValidationError as exc:
                    self._record_discovery_error(
                        plugin_id, manifest, f"Invalid manifest: {exc.message}"
                    )
                    continue
                # Earlier search paths shadow later ones.
                if plugin_id in seen:
                    continue
                seen.add(plugin_id)
                specs.append(
                    PluginSpec(
                        plugin_id=plugin_id,
                        name=data["name"],
                        version=str(data["version"]),
                        entrypoint=data["entrypoint"],
                        path=manifest.parent,
                        description=str(data.get("description") or ""),
                    )
                )
        return specs

    def resolve(self, plugin_ids: Iterable[str]) -> list[PluginSpec]:
        available = {spec.plugin_id: spec for spec in self.discover()}
        errors = {err.plugin_id: err for err in self.discovery_errors}
        resolved: list[PluginSpec] = []
        for plugin_id in plugin_ids:
            if plugin_id in available:
                resolved.append(available[plugin_id])
            elif plugin_id in errors:
                raise CheckupError(
                    ErrorKind.INVALID_PLUGIN,
                    plugin_name=plugin_id,
                    error=errors[plugin_id].message,
                )
            else:
                raise CheckupError(ErrorKind.PLUGIN_NOT_FOUND, plugin_name=plugin_id)
        return resolved

    def load_plugin(self, spec: PluginSpec) -> Any:
        module_file, class_name = spec.entrypoint.split(":", 1)
        module_path = spec.path / module_file
        module_name = "checkup_plugins." + "".join(
            ch if ch.isalnum() else "_" for ch in spec.plugin_id
        )
        try:
            module_spec = importlib.util.spec_from_file_location(module_name, module_path)
            if module_spec is None or module_spec.loader is None:
                raise ImportError(f"Unable to load {module_path}")
            module = importlib.util.module_from_spec(module_spec)
            sys.modules[module_name] = module
            module_spec.loader.exec_module(module)
            return getattr(module, class_name)()
        except Exception as exc:
            sys.modules.pop(module_name, None)
            raise CheckupError(
                ErrorKind.INVALID_PLUGIN,
                plugin_name=spec.plugin_id,
                error=f"{type(exc).__name__}: {exc}",
            ) from exc

    def load_plugins(self, plugin_ids: Iterable[str]) -> list[LoadedPlugin]:
        return [LoadedPlugin(spec, self.load_plugin(spec)) for spec in self.resolve(plugin_ids)]

    def _load_manifest_schema(self) -> dict[str, Any]:
        if self._manifest_schema is None:
            self._manifest_schema = read_json(_MANIFEST_SCHEMA_PATH)
        return self._manifest_schema


def run_registration_hooks(plugins: Iterable[LoadedPlugin], registries: Registries) -> None:
    targets = {
        "register_parsers": registries.parsers,
        "register_actions": registries.actions,
        "register_reporters": registries.reporters,
    }
    loaded = list(plugins)
    for hook in REGISTRATION_HOOKS:
        for item in loaded:
            _call_hook(item, hook, targets[hook])


def run_task_hooks(
    plugins: Iterable[LoadedPlugin], context: TaskContext, tasks: TaskList
) -> None:
    for item in plugins:
        _call_hook(item, TASK_HOOK, context, tasks)


def _call_hook(item: LoadedPlugin, hook: str, *args: Any) -> None:
    fn = getattr(item.plugin, hook, None)
    if not callable(fn):
        return
    try:
        fn(*args)
    except CheckupError:
        raise
    except Exception as exc:
        raise CheckupError(
            ErrorKind.INVALID_PLUGIN,
            plugin_name=item.spec.plugin_id,
            error=f"{hook}() raised {type(exc).__name__}: {exc}",
        ) from exc
