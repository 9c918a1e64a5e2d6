"""Go identifier and import-path helpers shared by the loader and generator."""

from __future__ import annotations

import json
import posixpath
from typing import Tuple

_GO_KEYWORDS = {
    "break",
    "case",
    "chan",
    "const",
    "continue",
    "default",
    "defer",
    "else",
    "fallthrough",
    "for",
    "func",
    "go",
    "goto",
    "if",
    "import",
    "interface",
    "map",
    "package",
    "range",
    "return",
    "select",
    "struct",
    "switch",
    "type",
    "var",
}


def _is_lower(char: str) -> bool:
    return "a" <= char <= "z"


def _is_digit(char: str) -> bool:
    return "0" <= char <= "9"


def go_camel_case(name: str) -> str:
    """Return the exported Go name protoc-gen-go derives from a proto identifier.

    Underscores followed by a lower-case letter are dropped and the letter is
    upper-cased; a leading underscore becomes ``X``; dots become underscores
    unless they precede a lower-case letter.
    """
    out = []
    i = 0
    while i < len(name):
        char = name[i]
        if char == "." and i + 1 < len(name) and _is_lower(name[i + 1]):
            pass
        elif char == ".":
            out.append("_")
        elif char == "_" and (i == 0 or name[i - 1] == "."):
            out.append("X")
        elif char == "_" and i + 1 < len(name) and _is_lower(name[i + 1]):
            pass
        elif _is_digit(char):
            out.append(char)
        else:
            out.append(char.upper() if _is_lower(char) else char)
            while i + 1 < len(name) and _is_lower(name[i + 1]):
                i += 1
                out.append(name[i])
        i += 1
    return "".join(out)


def go_sanitized(name: str) -> str:
    """Return ``name`` as a valid Go identifier."""
    cleaned = "".join(char if char.isalnum() or char == "_" else "_" for char in name)
    if not cleaned:
        return "_"
    if cleaned in _GO_KEYWORDS or cleaned[0].isdigit():
        return "_" + cleaned
    return cleaned


def unexported(name: str) -> str:
    return name[:1].lower() + name[1:]


def go_quote(value: str) -> str:
    """Quote ``value`` as a Go interpreted string literal."""
    return json.dumps(value, ensure_ascii=False)


def base_package(import_path: str) -> str:
    """Return the last element of a Go import path."""
    return posixpath.basename(import_path.rstrip("/"))


def split_go_package(go_package: str) -> Tuple[str, str]:
    """Split a ``go_package`` option into ``(import_path, package_name)``.

    ``"example.com/foo;bar"`` names the package explicitly; otherwise the
    package name is derived from the last path element.
    """
    if ";" in go_package:
        import_path, package_name = go_package.split(";", 1)
        return import_path, go_sanitized(package_name)
    return go_package, go_sanitized(base_package(go_package))


__all__ = [
    "base_package",
    "go_camel_case",
    "go_quote",
    "go_sanitized",
    "split_go_package",
    "unexported",
]
