"""protoc plugin protocol glue: requests in, generated files out."""

from __future__ import annotations

from pathlib import Path
from typing import BinaryIO, Iterable, List, Sequence

from google.protobuf import descriptor_pb2
from google.protobuf.compiler import plugin_pb2

from .generator import GeneratedFile


def read_request(stream: BinaryIO) -> plugin_pb2.CodeGeneratorRequest:
    return plugin_pb2.CodeGeneratorRequest.FromString(stream.read())


def request_from_descriptor_set(
    path: Path,
    files: Sequence[str] | None = None,
    parameter: str = "",
) -> plugin_pb2.CodeGeneratorRequest:
    """Build a request from ``protoc --descriptor_set_out --include_imports`` output.

    Without ``files`` every file in the set that declares a service is generated.
    """
    descriptor_set = descriptor_pb2.FileDescriptorSet.FromString(path.read_bytes())
    request = plugin_pb2.CodeGeneratorRequest(parameter=parameter)
    request.proto_file.extend(descriptor_set.file)
    if files:
        request.file_to_generate.extend(files)
    else:
        request.file_to_generate.extend(file.name for file in descriptor_set.file if file.service)
    return request


def build_response(files: Iterable[GeneratedFile]) -> plugin_pb2.CodeGeneratorResponse:
    response = plugin_pb2.CodeGeneratorResponse(
        supported_features=plugin_pb2.CodeGeneratorResponse.FEATURE_PROTO3_OPTIONAL
    )
    for generated in files:
        response.file.add(name=generated.name, content=generated.content)
    return response


def write_files(files: Iterable[GeneratedFile], out_dir: Path) -> List[Path]:
    written: List[Path] = []
    for generated in files:
        target = out_dir / generated.name
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(generated.content, encoding="utf-8")
        written.append(target)
    return written


__all__ = ["build_response", "read_request", "request_from_descriptor_set", "write_files"]
