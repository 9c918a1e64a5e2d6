"""Companion ``validate()`` methods for request messages."""

from __future__ import annotations

from typing import Protocol

from jinja2 import Environment

from . import GENERATOR_VERSION
from .emit.templates import create_environment
from .models import Schema


class ValidateRenderer(Protocol):
    """Produces the raw ``<prefix>.validate.go`` source for a schema."""

    def render(self, schema: Schema) -> str:
        """Return unformatted Go source."""


class TemplateValidateRenderer:
    """Renders one rule-free ``validate()`` method per message in the schema."""

    template_name = "validate.go.j2"

    def __init__(self, env: Environment | None = None) -> None:
        self._env = env or create_environment()

    def render(self, schema: Schema) -> str:
        template = self._env.get_template(self.template_name)
        return template.render(
            schema=schema,
            messages=schema.messages,
            version=GENERATOR_VERSION,
        )


__all__ = ["TemplateValidateRenderer", "ValidateRenderer"]
