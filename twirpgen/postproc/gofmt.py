"""Syntax check and reformatting of generated Go through gofmt."""

from __future__ import annotations

import subprocess
from typing import Callable, Sequence, Tuple

# runner(args, stdin_text) -> (returncode, stdout, stderr)
Runner = Callable[[Sequence[str], str], Tuple[int, str, str]]


class FormatError(RuntimeError):
    """Raised when gofmt cannot parse the generated source."""


class FormatterNotFound(RuntimeError):
    """Raised when the gofmt binary cannot be executed."""


class GoFormatter:
    """Pipes source through ``gofmt`` and returns the canonical layout."""

    def __init__(self, binary: str = "gofmt", runner: Runner | None = None) -> None:
        self.binary = binary
        self._runner = runner or self._default_runner

    def format(self, source: str) -> str:
        returncode, stdout, stderr = self._runner([self.binary], source)
        if returncode != 0:
            raise FormatError(stderr.strip() or f"{self.binary} exited with status {returncode}")
        return stdout

    @staticmethod
    def _default_runner(args: Sequence[str], stdin_text: str) -> Tuple[int, str, str]:
        try:
            completed = subprocess.run(
                list(args),
                input=stdin_text,
                capture_output=True,
                text=True,
                encoding="utf-8",
                check=False,
            )
        except FileNotFoundError as exc:
            raise FormatterNotFound(f"cannot run {args[0]!r}: is Go installed?") from exc
        return completed.returncode, completed.stdout, completed.stderr


def number_lines(source: str) -> str:
    """Prefix every line with its 1-based number for diagnostics."""
    return "".join(
        f"{number:5d}\t{line}\n" for number, line in enumerate(source.splitlines(), start=1)
    )


__all__ = ["FormatError", "FormatterNotFound", "GoFormatter", "Runner", "number_lines"]
