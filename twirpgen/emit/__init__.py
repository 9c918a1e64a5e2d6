"""Text emission helpers: the append-only emitter and the Go templates."""

from __future__ import annotations

from .templates import create_environment
from .text import TextEmitter

__all__ = ["TextEmitter", "create_environment"]
