# Copyright 2026 Systemique Contributors
# SPDX-License-Identifier: Apache-2.0

"""Canonical JSON encoding of systems and their companion data.

A document is an envelope ``{version, system, interfaceTypes?, interfaceRules?}``.
The companion fields are independently optional. The same envelope is used by
saved files and by share links.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from systemique.codecs.errors import JsonCodecError
from systemique.model.entities import System
from systemique.model.types import InterfaceType
from systemique.validation.rules import TypePairRules

logger = logging.getLogger(__name__)

# ###############
# Public Interface
# ###############

DOCUMENT_FORMAT_VERSION = "1.0"


@dataclass
class Envelope:
    """A system together with optional companion data.

    Attributes:
        system: The diagram itself.
        interface_types: Interface-type definitions to ship alongside, if any.
        interface_rules: Type-pair rule table to ship alongside, if any.
    """

    system: System
    interface_types: list[InterfaceType] | None = None
    interface_rules: TypePairRules | None = None


def encode(system: System) -> dict[str, Any]:
    """Encode a system as a tree of plain dicts, lists and scalars."""
    return system.to_json()


def decode(obj: Any) -> System:
    """Decode a system from the output of :func:`encode`.

    Raises:
        JsonCodecError: If *obj* is not a valid system object.
    """
    if not isinstance(obj, dict):
        raise JsonCodecError("System data must be a JSON object")
    try:
        return System.from_json(obj)
    except ValidationError as exc:
        raise JsonCodecError(f"Invalid system data: {exc}") from exc


def encode_envelope(envelope: Envelope) -> dict[str, Any]:
    """Encode *envelope*, omitting companion fields that are absent."""
    d: dict[str, Any] = {"version": DOCUMENT_FORMAT_VERSION, "system": encode(envelope.system)}
    if envelope.interface_types is not None:
        d["interfaceTypes"] = encode_interface_types(envelope.interface_types)
    if envelope.interface_rules is not None:
        d["interfaceRules"] = encode_interface_rules(envelope.interface_rules)
    return d


def decode_envelope(obj: Any) -> Envelope:
    """Decode an envelope, also accepting a bare system object.

    Raises:
        JsonCodecError: If the data is neither a supported envelope nor a
            bare system, or if any part fails validation.
    """
    if not isinstance(obj, dict):
        raise JsonCodecError("Document must be a JSON object")

    if "system" in obj:
        version = obj.get("version")
        if version is not None and version != DOCUMENT_FORMAT_VERSION:
            raise JsonCodecError(f"Unsupported document format version: {version!r}")
        if obj["system"] is None:
            raise JsonCodecError("Invalid document: missing system")
        system = decode(obj["system"])
    elif "id" in obj and "components" in obj:
        # A system exported on its own, without the envelope.
        return Envelope(system=decode(obj))
    else:
        raise JsonCodecError("Invalid document: missing system")

    raw_types = obj.get("interfaceTypes")
    raw_rules = obj.get("interfaceRules")
    return Envelope(
        system=system,
        interface_types=decode_interface_types(raw_types) if raw_types is not None else None,
        interface_rules=decode_interface_rules(raw_rules) if raw_rules is not None else None,
    )


def encode_interface_types(types: list[InterfaceType]) -> list[dict[str, Any]]:
    return [t.to_json() for t in types]


def decode_interface_types(data: Any) -> list[InterfaceType]:
    """Decode a list of interface-type records.

    Raises:
        JsonCodecError: If *data* is not a list of valid records.
    """
    if not isinstance(data, list):
        raise JsonCodecError("Interface types must be a JSON array")
    try:
        return [InterfaceType.from_json(t) for t in data]
    except ValidationError as exc:
        raise JsonCodecError(f"Invalid interface type: {exc}") from exc


def encode_interface_rules(rules: TypePairRules) -> dict[str, bool]:
    return rules.to_json()


def decode_interface_rules(data: Any) -> TypePairRules:
    """Decode a ``{"<a>-<b>": bool}`` rule table.

    Raises:
        JsonCodecError: If *data* is not a JSON object.
    """
    try:
        return TypePairRules.from_json(data)
    except ValueError as exc:
        raise JsonCodecError(str(exc)) from exc


def serialize(envelope: Envelope) -> str:
    """Serialize an envelope to an indented JSON string."""
    return json.dumps(encode_envelope(envelope), indent=2, ensure_ascii=False)


def deserialize(data: str) -> Envelope:
    """Deserialize an envelope from a JSON string.

    Raises:
        JsonCodecError: If *data* is not valid JSON or not a valid document.
    """
    try:
        obj = json.loads(data)
    except json.JSONDecodeError as exc:
        raise JsonCodecError(f"Invalid JSON: {exc}") from exc
    envelope = decode_envelope(obj)
    logger.debug(
        "Decoded system %r with %d component(s) and %d connection(s)",
        envelope.system.id,
        len(envelope.system.components),
        len(envelope.system.connections),
    )
    return envelope


def write_document(envelope: Envelope, path: Path) -> None:
    """Write a document to *path*, creating parent directories as needed."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(serialize(envelope), encoding="utf-8")


def read_document(path: Path) -> Envelope:
    """Read and deserialize a document from *path*."""
    return deserialize(path.read_text(encoding="utf-8"))
