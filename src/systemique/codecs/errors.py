# Copyright 2026 Systemique Contributors
# SPDX-License-Identifier: Apache-2.0

"""Exceptions raised by the Systemique codecs."""

# ###############
# Public Interface
# ###############


class CodecError(ValueError):
    """Raised when a document cannot be encoded or decoded."""


class JsonCodecError(CodecError):
    """Raised for malformed or structurally invalid JSON documents."""


class DrawioCodecError(CodecError):
    """Raised for malformed draw.io XML documents."""


class ShareLinkError(CodecError):
    """Raised when a share-link token cannot be decoded to bytes or text."""


class SharePayloadError(ShareLinkError):
    """Raised when a decoded share-link payload is not a valid document."""
