from __future__ import annotations

import re
from typing import List

import pytest

from twirpgen.postproc.gofmt import FormatError

_STRING_LITERAL = re.compile(r'"(?:\\.|[^"\\])*"')
_LINE_COMMENT = re.compile(r"//[^\n]*")
_PAIRS = {")": "(", "]": "[", "}": "{"}


class BracketCheckingFormatter:
    """Stand-in for gofmt: returns the source unchanged if brackets balance."""

    def __init__(self) -> None:
        self.calls: List[str] = []

    def format(self, source: str) -> str:
        self.calls.append(source)
        stripped = _LINE_COMMENT.sub("", _STRING_LITERAL.sub('""', source))
        stack: List[str] = []
        for number, line in enumerate(stripped.splitlines(), start=1):
            for char in line:
                if char in "([{":
                    stack.append(char)
                elif char in _PAIRS:
                    if not stack or stack.pop() != _PAIRS[char]:
                        raise FormatError(f"{number}: unexpected {char!r}")
        if stack:
            raise FormatError(f"unclosed {stack[-1]!r}")
        return source


@pytest.fixture
def formatter() -> BracketCheckingFormatter:
    """Provide a formatter that needs no Go toolchain."""
    return BracketCheckingFormatter()
