# Copyright 2026 Systemique Contributors
# SPDX-License-Identifier: Apache-2.0

"""Core diagram entities: systems, components, interfaces and connections.

Nesting is expressed by id references (``nested_system_id`` and
``parent_system_id``) and never by containment, so the object graph is
always a tree of owned values. Constructors perform no cross-entity
validation; referential integrity is checked by :mod:`systemique.validation`.
"""

from __future__ import annotations

from typing import Any

from pydantic import Field as _Field
from pydantic import field_serializer, field_validator, model_validator

from systemique.model.types import (
    Direction,
    PortPosition,
    Position,
    TrustLevel,
    TypeTag,
    ValidationRules,
    WireModel,
    default_position,
)

# ###############
# Public Interface
# ###############


class Interface(WireModel):
    """A typed input or output port owned by exactly one component."""

    id: str
    name: str
    type: TypeTag
    direction: Direction = Direction.INPUT
    position: PortPosition = PortPosition.LEFT
    icon: str | None = None
    access: TrustLevel | None = None
    validation_rules: ValidationRules = _Field(default_factory=ValidationRules)
    metadata: dict[str, Any] = _Field(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def _position_from_direction(cls, data: Any) -> Any:
        if not isinstance(data, dict) or data.get("position"):
            return data
        direction = data.get("direction") or Direction.INPUT
        return {**data, "position": default_position(Direction(direction))}

    @field_validator("icon", "access", mode="before")
    @classmethod
    def _blank_is_unset(cls, value: Any) -> Any:
        return value or None

    @field_validator("validation_rules", "metadata", mode="before")
    @classmethod
    def _null_is_empty(cls, value: Any) -> Any:
        return {} if value is None else value

    @field_serializer("validation_rules")
    def _compact_rules(self, rules: ValidationRules) -> dict[str, Any]:
        return rules.model_dump(mode="json", by_alias=True, exclude_none=True)

    def is_input(self) -> bool:
        return self.direction is Direction.INPUT

    def is_output(self) -> bool:
        return self.direction is Direction.OUTPUT

    def to_json(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)

    @classmethod
    def from_json(cls, obj: dict[str, Any]) -> Interface:
        return cls.model_validate(obj)


class Component(WireModel):
    """A diagram block with typed ports and an optional nested system."""

    id: str
    name: str
    type: str = "generic"
    properties: dict[str, Any] = _Field(default_factory=dict)
    interfaces: list[Interface] = _Field(default_factory=list)
    nested_system_id: str | None = None
    position: Position = _Field(default_factory=Position)
    metadata: dict[str, Any] = _Field(default_factory=dict)
    icon: str | None = None
    categories: list[str] = _Field(default_factory=list)
    description: str = ""
    trust: TrustLevel | None = None

    @field_validator("nested_system_id", "icon", "trust", mode="before")
    @classmethod
    def _blank_is_unset(cls, value: Any) -> Any:
        return value or None

    @field_validator("properties", "metadata", "position", mode="before")
    @classmethod
    def _null_is_empty_map(cls, value: Any) -> Any:
        return {} if value is None else value

    @field_validator("interfaces", "categories", mode="before")
    @classmethod
    def _null_is_empty_list(cls, value: Any) -> Any:
        return [] if value is None else value

    @field_validator("type", mode="before")
    @classmethod
    def _default_type(cls, value: Any) -> Any:
        return value or "generic"

    @field_validator("description", mode="before")
    @classmethod
    def _default_description(cls, value: Any) -> Any:
        return value or ""

    def add_interface(self, interface: Interface) -> None:
        self.interfaces.append(interface)

    def remove_interface(self, interface_id: str) -> None:
        self.interfaces = [i for i in self.interfaces if i.id != interface_id]

    def get_interface(self, interface_id: str) -> Interface | None:
        return next((i for i in self.interfaces if i.id == interface_id), None)

    def get_input_interfaces(self) -> list[Interface]:
        return [i for i in self.interfaces if i.is_input()]

    def get_output_interfaces(self) -> list[Interface]:
        return [i for i in self.interfaces if i.is_output()]

    def has_nested_system(self) -> bool:
        return self.nested_system_id is not None

    def to_json(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)

    @classmethod
    def from_json(cls, obj: dict[str, Any]) -> Component:
        return cls.model_validate(obj)


class Connection(WireModel):
    """A directed edge from an output interface to an input interface.

    Direction is checked when the connection is proposed (see
    :func:`systemique.validation.validate_connection_attempt`); the entity
    itself does not re-check it when endpoints change.
    """

    id: str
    source_component_id: str
    source_interface_id: str
    target_component_id: str
    target_interface_id: str
    metadata: dict[str, Any] = _Field(default_factory=dict)
    validated: bool = False

    @field_validator("metadata", mode="before")
    @classmethod
    def _null_is_empty(cls, value: Any) -> Any:
        return {} if value is None else value

    @field_validator("validated", mode="before")
    @classmethod
    def _null_is_false(cls, value: Any) -> Any:
        return bool(value)

    def references(self, component_id: str) -> bool:
        """Return True if *component_id* is either endpoint of this connection."""
        return component_id in (self.source_component_id, self.target_component_id)

    def to_json(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)

    @classmethod
    def from_json(cls, obj: dict[str, Any]) -> Connection:
        return cls.model_validate(obj)


class System(WireModel):
    """A named graph of components and connections.

    ``parent_system_id`` is a lookup-only back-reference; child systems are
    reached through :attr:`Component.nested_system_id`.
    """

    id: str
    name: str
    parent_system_id: str | None = None
    components: list[Component] = _Field(default_factory=list)
    connections: list[Connection] = _Field(default_factory=list)
    metadata: dict[str, Any] = _Field(default_factory=dict)

    @field_validator("parent_system_id", mode="before")
    @classmethod
    def _blank_is_unset(cls, value: Any) -> Any:
        return value or None

    @field_validator("components", "connections", mode="before")
    @classmethod
    def _null_is_empty_list(cls, value: Any) -> Any:
        return [] if value is None else value

    @field_validator("metadata", mode="before")
    @classmethod
    def _null_is_empty(cls, value: Any) -> Any:
        return {} if value is None else value

    def add_component(self, component: Component) -> None:
        self.components.append(component)

    def remove_component(self, component_id: str) -> None:
        """Remove a component together with every connection touching it."""
        self.components = [c for c in self.components if c.id != component_id]
        self.connections = [c for c in self.connections if not c.references(component_id)]

    def get_component(self, component_id: str) -> Component | None:
        return next((c for c in self.components if c.id == component_id), None)

    def add_connection(self, connection: Connection) -> None:
        self.connections.append(connection)

    def remove_connection(self, connection_id: str) -> None:
        self.connections = [c for c in self.connections if c.id != connection_id]

    def get_connection(self, connection_id: str) -> Connection | None:
        return next((c for c in self.connections if c.id == connection_id), None)

    def get_nested_components(self) -> list[Component]:
        """Return the components that reference a nested system."""
        return [c for c in self.components if c.has_nested_system()]

    def to_json(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)

    @classmethod
    def from_json(cls, obj: dict[str, Any]) -> System:
        return cls.model_validate(obj)
