# Copyright 2026 Systemique Contributors
# SPDX-License-Identifier: Apache-2.0

"""Compressed, URL-safe encoding of a document for share links.

Pipeline: envelope JSON -> UTF-8 -> zlib deflate -> base64url without ``=``
padding. The token travels as the ``data`` query parameter of a share URL.
"""

from __future__ import annotations

import base64
import binascii
import json
import logging
import zlib
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from systemique.codecs.errors import CodecError, JsonCodecError, ShareLinkError, SharePayloadError
from systemique.codecs.json_codec import Envelope, decode_envelope, encode_envelope

logger = logging.getLogger(__name__)

# ###############
# Public Interface
# ###############

PARAM_NAME = "data"


def encode_share_payload(envelope: Envelope) -> str:
    """Encode *envelope* as a URL-safe token (no ``+``, ``/`` or ``=``)."""
    text = json.dumps(encode_envelope(envelope), separators=(",", ":"), ensure_ascii=False)
    compressed = zlib.compress(text.encode("utf-8"))
    return base64.urlsafe_b64encode(compressed).decode("ascii").rstrip("=")


def decode_share_payload(token: str) -> Envelope:
    """Decode a token produced by :func:`encode_share_payload`.

    Raises:
        ShareLinkError: If the token is not valid base64url or deflate data.
        SharePayloadError: If the decompressed text is not valid JSON, lacks a
            ``system`` field, or does not describe a valid document.
    """
    text = _inflate(token.strip())
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise SharePayloadError(f"Invalid share payload: not valid JSON ({exc})") from exc
    if not isinstance(data, dict) or not data.get("system"):
        raise SharePayloadError("Invalid share payload: missing system")
    try:
        return decode_envelope(data)
    except JsonCodecError as exc:
        raise SharePayloadError(f"Invalid share payload: {exc}") from exc


def build_share_url(base_url: str, token: str) -> str:
    """Append the token to *base_url* as the ``data`` query parameter."""
    separator = "&" if "?" in base_url else "?"
    return f"{base_url}{separator}{PARAM_NAME}={token}"


def shared_payload_from_url(url: str) -> Envelope | None:
    """Return the document shared in *url*, or ``None``.

    A missing, blank or undecodable ``data`` parameter is not an error for
    the caller: it simply means nothing was shared.
    """
    value = dict(parse_qsl(urlsplit(url).query)).get(PARAM_NAME, "").strip()
    if not value:
        return None
    try:
        return decode_share_payload(value)
    except CodecError as exc:
        logger.warning("Ignoring undecodable share link: %s", exc)
        return None


def strip_share_param(url: str) -> str:
    """Return *url* without the ``data`` query parameter."""
    parts = urlsplit(url)
    query = [(k, v) for k, v in parse_qsl(parts.query, keep_blank_values=True) if k != PARAM_NAME]
    return urlunsplit(parts._replace(query=urlencode(query)))


# ################
# Implementation
# ################


def _inflate(token: str) -> str:
    padded = token + "=" * (-len(token) % 4)
    try:
        compressed = base64.urlsafe_b64decode(padded)
        raw = zlib.decompress(compressed)
        return raw.decode("utf-8")
    except (binascii.Error, ValueError, zlib.error) as exc:
        raise ShareLinkError(f"Invalid share link token: {exc}") from exc
