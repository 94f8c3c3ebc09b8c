# Copyright 2026 Systemique Contributors
# SPDX-License-Identifier: Apache-2.0

"""Diagram model for Systemique (systems, components, interfaces, connections)."""

from systemique.model.entities import Component, Connection, Interface, System
from systemique.model.registries import InterfaceTypeRegistry, SystemRegistry, generate_id
from systemique.model.types import (
    DEFAULT_INTERFACE_TYPES,
    WILDCARD_TYPE,
    Direction,
    InterfaceType,
    PortPosition,
    Position,
    TrustLevel,
    TypeTag,
    ValidationRules,
)

__all__ = [
    # Value types
    "TypeTag",
    "WILDCARD_TYPE",
    "Direction",
    "PortPosition",
    "TrustLevel",
    "Position",
    "ValidationRules",
    "InterfaceType",
    "DEFAULT_INTERFACE_TYPES",
    # Entities
    "Interface",
    "Component",
    "Connection",
    "System",
    # Registries
    "InterfaceTypeRegistry",
    "SystemRegistry",
    "generate_id",
]
