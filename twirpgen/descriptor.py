"""Packs a file descriptor into a gzipped byte-slice literal for embedding."""

from __future__ import annotations

import gzip
import hashlib
from dataclasses import dataclass

from google.protobuf import descriptor_pb2

from .emit.text import TextEmitter

BYTES_PER_LINE = 16


@dataclass(frozen=True)
class PackedDescriptor:
    """Compressed descriptor bytes plus the size before compression."""

    data: bytes
    raw_size: int


def strip_source_info(
    descriptor: descriptor_pb2.FileDescriptorProto,
) -> descriptor_pb2.FileDescriptorProto:
    """Return a copy of ``descriptor`` without comments and source positions."""
    clone = descriptor_pb2.FileDescriptorProto()
    clone.CopyFrom(descriptor)
    clone.ClearField("source_code_info")
    return clone


def pack_descriptor(descriptor: descriptor_pb2.FileDescriptorProto) -> PackedDescriptor:
    """Serialize and gzip ``descriptor`` at maximum compression.

    The gzip header carries a zero mtime so identical input always yields
    identical bytes.
    """
    raw = strip_source_info(descriptor).SerializeToString(deterministic=True)
    compressed = gzip.compress(raw, compresslevel=9, mtime=0)
    return PackedDescriptor(data=compressed, raw_size=len(raw))


def unpack_descriptor(data: bytes) -> descriptor_pb2.FileDescriptorProto:
    """Inverse of :func:`pack_descriptor`."""
    return descriptor_pb2.FileDescriptorProto.FromString(gzip.decompress(data))


def descriptor_var_name(files_handled: int, file_name: str) -> str:
    """Name of the generated variable holding the packed descriptor.

    protoc-gen-go and protoc-gen-gogo embed the descriptor under their own
    names, so this one is salted with the file counter and a digest of the
    proto file name.
    """
    digest = hashlib.sha1(file_name.encode("utf-8")).hexdigest()
    return f"twirpFileDescriptor{files_handled}SHA{digest}"


def emit_descriptor(emitter: TextEmitter, var_name: str, packed: PackedDescriptor) -> None:
    data = packed.data
    emitter.emit()
    emitter.emit("var ", var_name, " = []byte{")
    emitter.emit(
        f"\t// {len(data)} bytes of a gzipped FileDescriptorProto ({packed.raw_size} bytes uncompressed)"
    )
    for start in range(0, len(data), BYTES_PER_LINE):
        chunk = data[start : start + BYTES_PER_LINE]
        emitter.emit("\t", "".join(f"0x{byte:02x}," for byte in chunk))
    emitter.emit("}")


__all__ = [
    "BYTES_PER_LINE",
    "PackedDescriptor",
    "descriptor_var_name",
    "emit_descriptor",
    "pack_descriptor",
    "strip_source_info",
    "unpack_descriptor",
]
