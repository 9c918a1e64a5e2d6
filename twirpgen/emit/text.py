"""Append-only text sink used to assemble one generated file."""

from __future__ import annotations

from typing import List


class TextEmitter:
    """Collects generated source line by line."""

    def __init__(self) -> None:
        self._chunks: List[str] = []

    def emit(self, *tokens: str) -> None:
        """Append the tokens followed by a newline."""
        self._chunks.extend(tokens)
        self._chunks.append("\n")

    def write(self, block: str) -> None:
        """Append a pre-rendered block, ensuring it ends with a newline."""
        if not block:
            return
        self._chunks.append(block)
        if not block.endswith("\n"):
            self._chunks.append("\n")

    def section_banner(self, title: str) -> None:
        """Big header comments that make a generated file easier to scan."""
        rule = "=" * len(title)
        self.emit()
        self.emit("// ", rule)
        self.emit("// ", title)
        self.emit("// ", rule)
        self.emit()

    def getvalue(self) -> str:
        return "".join(self._chunks)

    def reset(self) -> None:
        self._chunks.clear()
