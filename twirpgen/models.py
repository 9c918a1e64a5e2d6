"""Core schema models shared across twirpgen components."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

from google.protobuf import descriptor_pb2

# Scalar kinds the form decoder understands. Anything else is stored as None.
SCALAR_KINDS = ("string", "bool", "int32", "int64", "uint32", "uint64", "float32", "float64")


@dataclass(frozen=True)
class Comments:
    """Leading and trailing comment text exactly as protoc reports it."""

    leading: str = ""
    trailing: str = ""


def comment_lines(text: str) -> List[str]:
    """Render raw comment text as Go line comments.

    Mirrors protogen: every line of the comment (minus the final newline) is
    prefixed with ``//``. Blank comments render as nothing.
    """
    if not text.strip():
        return []
    if text.endswith("\n"):
        text = text[:-1]
    return ["//" + line for line in text.split("\n")]


@dataclass(frozen=True)
class Options:
    """Typed option table resolved from comments when the schema is loaded."""

    method_option: Optional[str] = None
    requires_auth: bool = False


@dataclass
class Field:
    """A message field as seen by the form decoder."""

    name: str
    go_name: str
    kind: Optional[str]
    repeated: bool = False

    @property
    def supported(self) -> bool:
        return self.kind in SCALAR_KINDS


@dataclass
class Message:
    """A message type, possibly declared in a different schema."""

    full_name: str
    go_name: str
    go_import_path: str
    fields: List[Field] = field(default_factory=list)


@dataclass
class Method:
    name: str
    go_name: str
    input: Message
    output: Message
    comments: Comments = field(default_factory=Comments)
    options: Options = field(default_factory=Options)


@dataclass
class Service:
    name: str
    go_name: str
    full_name: str
    methods: List[Method] = field(default_factory=list)
    comments: Comments = field(default_factory=Comments)
    options: Options = field(default_factory=Options)

    @property
    def path_prefix(self) -> str:
        """Base URL path for every method, with a trailing slash."""
        return "/" + self.full_name + "/"

    def path_for(self, method: Method) -> str:
        return self.path_prefix + method.go_name


@dataclass
class Schema:
    """One proto source file with its Go package coordinates."""

    path: str
    package: str
    go_package_name: str
    go_import_path: str
    filename_prefix: str
    descriptor: descriptor_pb2.FileDescriptorProto
    services: List[Service] = field(default_factory=list)
    messages: List[Message] = field(default_factory=list)


__all__ = [
    "Comments",
    "Field",
    "Message",
    "Method",
    "Options",
    "SCALAR_KINDS",
    "Schema",
    "Service",
    "comment_lines",
]
