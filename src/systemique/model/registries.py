# Copyright 2026 Systemique Contributors
# SPDX-License-Identifier: Apache-2.0

"""In-memory registries for interface types and systems.

Both registries are owned by the caller; the validation engine and the codecs
only read from them.
"""

from __future__ import annotations

import logging
import re
import uuid
from typing import Any

from systemique.model.entities import Component, System
from systemique.model.types import DEFAULT_INTERFACE_TYPES, WILDCARD_TYPE, InterfaceType, TypeTag

logger = logging.getLogger(__name__)

# ###############
# Public Interface
# ###############


def generate_id(prefix: str) -> str:
    """Return a fresh identifier such as ``system-3f2a9c0e1b7d4e55``."""
    return f"{prefix}-{uuid.uuid4().hex[:16]}"


class InterfaceTypeRegistry:
    """Editable list of interface types, seeded with the default set."""

    def __init__(self, types: list[InterfaceType] | None = None) -> None:
        source = DEFAULT_INTERFACE_TYPES if types is None else types
        self._types: list[InterfaceType] = [t.model_copy() for t in source]

    def all_types(self) -> list[InterfaceType]:
        return list(self._types)

    def has_type(self, type_id: str) -> bool:
        return any(t.id == type_id for t in self._types)

    def get_type(self, type_id: str) -> InterfaceType | None:
        """Return the type with *type_id*, falling back to the wildcard type."""
        found = self._find(type_id)
        return found if found is not None else self._find(WILDCARD_TYPE)

    def add_type(
        self,
        name: str,
        description: str = "",
        color: str = "#999999",
        icon: str | None = "⚙️",
    ) -> InterfaceType:
        """Add a type whose id is a unique slug derived from *name*.

        Slugs are joined with ``_`` so that they never contain the pair-key
        separator used by the rule tables.
        """
        base_id = re.sub(r"[^a-z0-9]+", "_", name.lower()).strip("_") or "type"
        type_id = base_id
        counter = 1
        while self.has_type(type_id):
            type_id = f"{base_id}_{counter}"
            counter += 1
        new_type = InterfaceType(id=TypeTag(type_id), name=name, color=color, icon=icon, description=description)
        self._types.append(new_type)
        logger.debug("Added interface type %r", type_id)
        return new_type

    def update_type(self, type_id: str, **updates: Any) -> InterfaceType | None:
        """Apply *updates* to the type with *type_id*; unknown ids are ignored."""
        for index, existing in enumerate(self._types):
            if existing.id == type_id:
                updated = existing.model_copy(update=updates)
                self._types[index] = updated
                return updated
        return None

    def remove_type(self, type_id: str) -> bool:
        before = len(self._types)
        self._types = [t for t in self._types if t.id != type_id]
        return len(self._types) < before

    def to_json(self) -> list[dict[str, Any]]:
        return [t.to_json() for t in self._types]

    @classmethod
    def from_json(cls, data: list[dict[str, Any]]) -> InterfaceTypeRegistry:
        return cls([InterfaceType.from_json(t) for t in data])

    def _find(self, type_id: str) -> InterfaceType | None:
        return next((t for t in self._types if t.id == type_id), None)


class SystemRegistry:
    """Lookup table of all known systems, keyed by id.

    Nested and parent references on the entities are plain ids; this registry
    resolves them lazily and tolerates dangling ids.
    """

    def __init__(self) -> None:
        self._systems: dict[str, System] = {}

    def __contains__(self, system_id: str) -> bool:
        return system_id in self._systems

    def __len__(self) -> int:
        return len(self._systems)

    def register(self, system: System) -> None:
        """Add *system* to the registry.

        Raises:
            ValueError: If a system with the same id is already registered.
        """
        if system.id in self._systems:
            raise ValueError(f"System '{system.id}' is already registered")
        self._systems[system.id] = system

    def get_system(self, system_id: str) -> System | None:
        return self._systems.get(system_id)

    def systems(self) -> list[System]:
        return list(self._systems.values())

    def create_system(self, name: str, parent_system_id: str | None = None) -> System:
        system = System(id=generate_id("system"), name=name, parent_system_id=parent_system_id)
        self.register(system)
        return system

    def create_nested_system(self, system_id: str, component_id: str, name: str) -> System | None:
        """Create a child system for a component and link the component to it.

        Returns ``None`` when either the containing system or the component is
        unknown.
        """
        parent = self.get_system(system_id)
        component = parent.get_component(component_id) if parent is not None else None
        if component is None:
            return None
        nested = self.create_system(name, parent_system_id=system_id)
        component.nested_system_id = nested.id
        return nested

    def resolve_nested(self, component: Component) -> System | None:
        if component.nested_system_id is None:
            return None
        return self.get_system(component.nested_system_id)

    def resolve_parent(self, system: System) -> System | None:
        if system.parent_system_id is None:
            return None
        return self.get_system(system.parent_system_id)
