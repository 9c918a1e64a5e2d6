"""Generates the per-field decoding code for form-encoded requests."""

from __future__ import annotations

from typing import Dict, Mapping, NamedTuple

from .emit.text import TextEmitter
from .models import Field, Message
from .naming import go_quote


class ScalarParser(NamedTuple):
    """How one scalar kind is parsed from a form string."""

    go_type: str
    call: str  # format string with {strconv} and {value}


SCALAR_PARSERS: Dict[str, ScalarParser] = {
    "bool": ScalarParser("bool", "{strconv}.ParseBool({value})"),
    "int32": ScalarParser("int32", "{strconv}.ParseInt({value}, 10, 32)"),
    "int64": ScalarParser("int64", "{strconv}.ParseInt({value}, 10, 64)"),
    "uint32": ScalarParser("uint32", "{strconv}.ParseUint({value}, 10, 32)"),
    "uint64": ScalarParser("uint64", "{strconv}.ParseUint({value}, 10, 64)"),
    "float32": ScalarParser("float32", "{strconv}.ParseFloat({value}, 32)"),
    "float64": ScalarParser("float64", "{strconv}.ParseFloat({value}, 64)"),
}


class FormDecoderGenerator:
    """Emits Go that copies ``req.Form`` values into the request message.

    Each supported field gets its own ``if v, ok := req.Form[name]`` block.
    A repeated field given as one value is split on commas first; a singular
    field only looks at the first value. The first parse failure writes an
    invalid-argument error naming the field and returns.
    """

    def __init__(self, pkgs: Mapping[str, str], target: str = "reqContent") -> None:
        self.pkgs = pkgs
        self.target = target

    def render(self, message: Message) -> str:
        emitter = TextEmitter()
        for field in message.fields:
            self.emit_field(emitter, field)
        return emitter.getvalue()

    def emit_field(self, emitter: TextEmitter, field: Field) -> None:
        if not field.supported:
            return
        emitter.emit("  if v, ok := req.Form[", go_quote(field.name), "]; ok {")
        if field.repeated:
            self._emit_repeated(emitter, field)
        else:
            self._emit_singular(emitter, field)
        emitter.emit("  }")

    def _emit_repeated(self, emitter: TextEmitter, field: Field) -> None:
        emitter.emit("    if len(v) == 1 {")
        emitter.emit("      v = ", self.pkgs["strings"], '.Split(v[0], ",")')
        emitter.emit("    }")
        if field.kind == "string":
            emitter.emit("    ", self.target, ".", field.go_name, " = v")
            return
        parser = SCALAR_PARSERS[field.kind]
        emitter.emit("    vs := make([]", parser.go_type, ", 0, len(v))")
        emitter.emit("    for _, vv := range v {")
        emitter.emit("      vvv, err := ", self._parse_call(parser, "vv"))
        self._emit_field_error(emitter, field, "      ")
        emitter.emit("      vs = append(vs, ", parser.go_type, "(vvv))")
        emitter.emit("    }")
        emitter.emit("    ", self.target, ".", field.go_name, " = vs")

    def _emit_singular(self, emitter: TextEmitter, field: Field) -> None:
        if field.kind == "string":
            emitter.emit("    ", self.target, ".", field.go_name, " = v[0]")
            return
        parser = SCALAR_PARSERS[field.kind]
        emitter.emit("    vv, err := ", self._parse_call(parser, "v[0]"))
        self._emit_field_error(emitter, field, "    ")
        emitter.emit("    ", self.target, ".", field.go_name, " = ", parser.go_type, "(vv)")

    def _emit_field_error(self, emitter: TextEmitter, field: Field, indent: str) -> None:
        twirp = self.pkgs["twirp"]
        emitter.emit(indent, "if err != nil {")
        emitter.emit(
            indent,
            "  s.writeError(ctx, resp, ",
            twirp,
            ".InvalidArgumentError(",
            go_quote(field.name),
            ", err.Error()))",
        )
        emitter.emit(indent, "  return")
        emitter.emit(indent, "}")

    def _parse_call(self, parser: ScalarParser, value: str) -> str:
        return parser.call.format(strconv=self.pkgs["strconv"], value=value)


__all__ = ["FormDecoderGenerator", "SCALAR_PARSERS", "ScalarParser"]
