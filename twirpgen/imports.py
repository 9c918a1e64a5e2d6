"""Import alias registry and cross-package dependency collection."""

from __future__ import annotations

from typing import Dict, Set

from .logging import get_logger
from .models import Message, Schema
from .naming import base_package, go_quote

logger = get_logger("imports")

# Canonical names of every package the generated code may import.
RUNTIME_PACKAGES = (
    "bytes",
    "strings",
    "context",
    "http",
    "io",
    "json",
    "jsonpb",
    "proto",
    "twirp",
    "url",
    "fmt",
    "errors",
    "strconv",
    "ctxkit",
)


class NameRegistry:
    """Hands out collision-free import aliases for the whole generator run."""

    def __init__(self) -> None:
        self._in_use: Set[str] = set()
        self._aliases: Dict[str, str] = {}

    def register(self, name: str) -> str:
        """Reserve an alias for ``name``: ``name`` itself first, then ``name1``, ``name2``..."""
        alias = name
        suffix = 1
        while alias in self._in_use:
            alias = f"{name}{suffix}"
            suffix += 1
        self._in_use.add(alias)
        self._aliases[name] = alias
        return alias

    def alias(self, name: str) -> str:
        """Return the alias most recently registered for ``name``."""
        return self._aliases[name]

    def aliases(self) -> Dict[str, str]:
        return dict(self._aliases)

    def __contains__(self, alias: object) -> bool:
        return alias in self._in_use


def collect_dependencies(schema: Schema) -> Dict[str, str]:
    """Map short package name to quoted import path for foreign method types.

    Two import paths with the same last element share a key; the later one
    wins and earlier references end up qualified with its name.
    """
    deps: Dict[str, str] = {}
    for service in schema.services:
        for method in service.methods:
            for message in (method.input, method.output):
                if message.go_import_path == schema.go_import_path:
                    continue
                short_name = base_package(message.go_import_path)
                quoted = go_quote(message.go_import_path)
                previous = deps.get(short_name)
                if previous is not None and previous != quoted:
                    logger.warning(
                        "%s: import %s shadows %s under package name %r",
                        schema.path,
                        quoted,
                        previous,
                        short_name,
                    )
                deps[short_name] = quoted
    return deps


def qualified_type(message: Message, deps: Dict[str, str]) -> str:
    """Return the Go type expression for ``message`` inside the generated file."""
    short_name = base_package(message.go_import_path)
    if short_name in deps:
        return f"{short_name}.{message.go_name}"
    return message.go_name


__all__ = ["NameRegistry", "RUNTIME_PACKAGES", "collect_dependencies", "qualified_type"]
