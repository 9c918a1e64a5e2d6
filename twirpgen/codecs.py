"""Wire formats understood by generated servers and clients."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple


@dataclass(frozen=True)
class Codec:
    """Describes how one wire format decodes requests and encodes responses.

    ``request_content_type`` is the Content-Type the dispatcher routes on;
    None marks the fallback branch. ``decode_template`` and
    ``encode_template`` are the template fragments spliced into the shared
    handler body.
    """

    name: str
    request_content_type: Optional[str]
    response_content_type: str
    decode_template: str
    encode_template: str
    decodes_form: bool = False


JSON = Codec(
    name="JSON",
    request_content_type="application/json",
    response_content_type="application/json",
    decode_template="decode_json.go.j2",
    encode_template="encode_json.go.j2",
)

PROTOBUF = Codec(
    name="Protobuf",
    request_content_type="application/protobuf",
    response_content_type="application/protobuf",
    decode_template="decode_protobuf.go.j2",
    encode_template="encode_protobuf.go.j2",
)

# Form requests are answered with JSON.
FORM = Codec(
    name="Form",
    request_content_type=None,
    response_content_type="application/json",
    decode_template="decode_form.go.j2",
    encode_template="encode_json.go.j2",
    decodes_form=True,
)

# Dispatch order: explicit content types first, the fallback last.
SERVER_CODECS: Tuple[Codec, ...] = (JSON, PROTOBUF, FORM)
CLIENT_CODECS: Tuple[Codec, ...] = (PROTOBUF, JSON)

__all__ = ["CLIENT_CODECS", "Codec", "FORM", "JSON", "PROTOBUF", "SERVER_CODECS"]
