from __future__ import annotations

from types import MappingProxyType
from typing import Generic, Iterator, Mapping, TypeVar


T = TypeVar("T")


class NamedRegistry(Generic[T]):
    """Capability name -> handler, filled by plugin callbacks before any task runs."""

    def __init__(self, kind: str) -> None:
        self.kind = kind
        self._handlers: dict[str, T] = {}

    def register(self, name: str, handler: T) -> None:
        if name in self._handlers:
            raise ValueError(f"Duplicate {self.kind}: {name}")
        self._handlers[name] = handler

    def get(self, name: str) -> T | None:
        return self._handlers.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self._handlers

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._handlers))

    def snapshot(self) -> Mapping[str, T]:
        return MappingProxyType(dict(self._handlers))
