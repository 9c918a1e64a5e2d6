"""Turns protoc descriptors into the schema models the generator consumes."""

from __future__ import annotations

import posixpath
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from google.protobuf import descriptor_pb2
from google.protobuf.compiler import plugin_pb2

from .config import GeneratorConfig
from .logging import get_logger
from .models import Comments, Field, Message, Method, Schema, Service
from .naming import go_camel_case, split_go_package
from .options import method_options, service_options

_FieldType = descriptor_pb2.FieldDescriptorProto

_SCALAR_TYPES = {
    _FieldType.TYPE_STRING: "string",
    _FieldType.TYPE_BOOL: "bool",
    _FieldType.TYPE_INT32: "int32",
    _FieldType.TYPE_INT64: "int64",
    _FieldType.TYPE_UINT32: "uint32",
    _FieldType.TYPE_UINT64: "uint64",
    _FieldType.TYPE_FLOAT: "float32",
    _FieldType.TYPE_DOUBLE: "float64",
}

# Field numbers inside FileDescriptorProto / ServiceDescriptorProto used by
# SourceCodeInfo location paths.
_SERVICE_FIELD = 6
_METHOD_FIELD = 2


class SchemaError(RuntimeError):
    """Raised when the input descriptors cannot be turned into schemas."""


@dataclass(frozen=True)
class GoPackage:
    import_path: str
    name: str


class SchemaLoader:
    """Builds :class:`Schema` objects for the files protoc asked us to generate."""

    def __init__(self, config: GeneratorConfig | None = None) -> None:
        self.config = config or GeneratorConfig()
        self.logger = get_logger("loader")

    def load_request(self, request: plugin_pb2.CodeGeneratorRequest) -> List[Schema]:
        return self.load(request.proto_file, request.file_to_generate)

    def load(
        self,
        files: Sequence[descriptor_pb2.FileDescriptorProto],
        file_to_generate: Iterable[str],
    ) -> List[Schema]:
        """Return one schema per requested file, in request order."""
        by_name = {file.name: file for file in files}
        packages: Dict[str, Optional[GoPackage]] = {
            file.name: self._go_package(file) for file in files
        }

        messages: Dict[str, Message] = {}
        declared: Dict[str, List[Message]] = {}
        for file in files:
            package = packages[file.name]
            import_path = package.import_path if package else ""
            declared[file.name] = []
            prefix = f".{file.package}" if file.package else ""
            proto3 = file.syntax == "proto3"
            for message_proto in file.message_type:
                self._index_message(
                    message_proto, prefix, "", import_path, proto3, messages, declared[file.name]
                )

        schemas: List[Schema] = []
        for name in file_to_generate:
            file = by_name.get(name)
            if file is None:
                raise SchemaError(f"{name}: requested file is missing from the descriptor set")
            package = packages[name]
            if package is None:
                raise SchemaError(
                    f"{name}: unable to determine Go import path; set option go_package "
                    f"or pass M{name}=<import path>"
                )
            schemas.append(self._build_schema(file, package, messages, declared[name]))
        return schemas

    def _go_package(self, file: descriptor_pb2.FileDescriptorProto) -> Optional[GoPackage]:
        override = self.config.go_package_overrides.get(file.name)
        go_package = override or file.options.go_package
        if not go_package:
            return None
        import_path, name = split_go_package(go_package)
        return GoPackage(import_path=import_path, name=name)

    def _index_message(
        self,
        proto: descriptor_pb2.DescriptorProto,
        scope: str,
        parent_go_name: str,
        import_path: str,
        proto3: bool,
        index: Dict[str, Message],
        declared: List[Message],
    ) -> None:
        if proto.options.map_entry:
            return
        full_name = f"{scope}.{proto.name}"
        go_name = go_camel_case(proto.name)
        if parent_go_name:
            go_name = f"{parent_go_name}_{go_name}"
        message = Message(
            full_name=full_name.lstrip("."),
            go_name=go_name,
            go_import_path=import_path,
            fields=[self._field(field, proto3) for field in proto.field],
        )
        index[full_name] = message
        declared.append(message)
        for nested in proto.nested_type:
            self._index_message(nested, full_name, go_name, import_path, proto3, index, declared)

    def _field(self, proto: descriptor_pb2.FieldDescriptorProto, proto3: bool) -> Field:
        kind = _SCALAR_TYPES.get(proto.type)
        repeated = proto.label == _FieldType.LABEL_REPEATED
        # Oneof members (proto3 optional included) are not plain struct fields in Go,
        # and singular proto2 scalars are generated as pointers.
        if proto.HasField("oneof_index") or (not proto3 and not repeated):
            kind = None
        return Field(
            name=proto.name,
            go_name=go_camel_case(proto.name),
            kind=kind,
            repeated=repeated,
        )

    def _build_schema(
        self,
        file: descriptor_pb2.FileDescriptorProto,
        package: GoPackage,
        messages: Dict[str, Message],
        declared: List[Message],
    ) -> Schema:
        comments = _collect_comments(file)
        services: List[Service] = []
        for service_index, service_proto in enumerate(file.service):
            service_comments = comments.get((_SERVICE_FIELD, service_index), Comments())
            full_name = (
                f"{file.package}.{service_proto.name}" if file.package else service_proto.name
            )
            service = Service(
                name=service_proto.name,
                go_name=go_camel_case(service_proto.name),
                full_name=full_name,
                comments=service_comments,
                options=service_options(service_comments, self.config.option_prefix),
            )
            for method_index, method_proto in enumerate(service_proto.method):
                method_comments = comments.get(
                    (_SERVICE_FIELD, service_index, _METHOD_FIELD, method_index), Comments()
                )
                service.methods.append(
                    Method(
                        name=method_proto.name,
                        go_name=go_camel_case(method_proto.name),
                        input=self._resolve(file.name, method_proto.input_type, messages),
                        output=self._resolve(file.name, method_proto.output_type, messages),
                        comments=method_comments,
                        options=method_options(
                            method_comments, service.options, self.config.option_prefix
                        ),
                    )
                )
            services.append(service)

        self.logger.debug(
            "Loaded %s: %d services, %d messages", file.name, len(services), len(declared)
        )
        return Schema(
            path=file.name,
            package=file.package,
            go_package_name=package.name,
            go_import_path=package.import_path,
            filename_prefix=self._filename_prefix(file.name, package),
            descriptor=file,
            services=services,
            messages=list(declared),
        )

    def _resolve(self, file_name: str, type_name: str, messages: Dict[str, Message]) -> Message:
        message = messages.get(type_name)
        if message is None:
            raise SchemaError(f"{file_name}: unknown message type {type_name}")
        if not message.go_import_path:
            raise SchemaError(
                f"{file_name}: message {type_name} comes from a file without a Go import path"
            )
        return message

    def _filename_prefix(self, file_name: str, package: GoPackage) -> str:
        prefix = posixpath.splitext(file_name)[0]
        if self.config.paths == "import":
            return posixpath.join(package.import_path, posixpath.basename(prefix))
        return prefix


def _collect_comments(
    file: descriptor_pb2.FileDescriptorProto,
) -> Dict[Tuple[int, ...], Comments]:
    comments: Dict[Tuple[int, ...], Comments] = {}
    for location in file.source_code_info.location:
        if location.leading_comments or location.trailing_comments:
            comments[tuple(location.path)] = Comments(
                leading=location.leading_comments,
                trailing=location.trailing_comments,
            )
    return comments


__all__ = ["GoPackage", "SchemaError", "SchemaLoader"]
