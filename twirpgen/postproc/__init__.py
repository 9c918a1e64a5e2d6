"""Post-processing of generated source."""

from __future__ import annotations

from .gofmt import FormatError, FormatterNotFound, GoFormatter, number_lines

__all__ = ["FormatError", "FormatterNotFound", "GoFormatter", "number_lines"]
