# Copyright 2026 Systemique Contributors
# SPDX-License-Identifier: Apache-2.0

"""Codecs for Systemique documents: JSON, draw.io XML and share links."""

from systemique.codecs.drawio import escape_attr, export_drawio, import_drawio
from systemique.codecs.errors import CodecError, DrawioCodecError, JsonCodecError, ShareLinkError, SharePayloadError
from systemique.codecs.json_codec import (
    DOCUMENT_FORMAT_VERSION,
    Envelope,
    decode,
    decode_envelope,
    deserialize,
    encode,
    encode_envelope,
    read_document,
    serialize,
    write_document,
)
from systemique.codecs.layout import GroupSize, PortPlacement, compute_group_size, layout_ports, partition_ports
from systemique.codecs.share_link import (
    PARAM_NAME,
    build_share_url,
    decode_share_payload,
    encode_share_payload,
    shared_payload_from_url,
    strip_share_param,
)

__all__ = [
    # Errors
    "CodecError",
    "DrawioCodecError",
    "JsonCodecError",
    "ShareLinkError",
    "SharePayloadError",
    # JSON
    "DOCUMENT_FORMAT_VERSION",
    "Envelope",
    "encode",
    "decode",
    "encode_envelope",
    "decode_envelope",
    "serialize",
    "deserialize",
    "write_document",
    "read_document",
    # draw.io
    "GroupSize",
    "PortPlacement",
    "partition_ports",
    "compute_group_size",
    "layout_ports",
    "escape_attr",
    "export_drawio",
    "import_drawio",
    # Share links
    "PARAM_NAME",
    "encode_share_payload",
    "decode_share_payload",
    "build_share_url",
    "shared_payload_from_url",
    "strip_share_param",
]
