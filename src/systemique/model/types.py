# Copyright 2026 Systemique Contributors
# SPDX-License-Identifier: Apache-2.0

"""Value types shared by the Systemique entities."""

from __future__ import annotations

from collections.abc import Callable
from enum import Enum
from typing import Any, NewType

from pydantic import BaseModel, ConfigDict
from pydantic import Field as _Field
from pydantic.alias_generators import to_camel

# ###############
# Public Interface
# ###############

# Open-ended interface type key. New tags may be introduced at runtime, so
# this is a plain string rather than an enumeration.
TypeTag = NewType("TypeTag", str)

# Reserved tag that is compatible with every other tag.
WILDCARD_TYPE = TypeTag("custom")


class Direction(str, Enum):
    """Flow direction of an interface."""

    INPUT = "input"
    OUTPUT = "output"


class PortPosition(str, Enum):
    """Side of the component box on which an interface is drawn."""

    LEFT = "left"
    RIGHT = "right"
    TOP = "top"
    BOTTOM = "bottom"


class TrustLevel(str, Enum):
    """Trust/access classification; ``None`` on the owning entity means unset."""

    TRUSTED = "trusted"
    UNTRUSTED = "untrusted"
    IGNORED = "ignored"


def default_position(direction: Direction) -> PortPosition:
    """Return the side an interface is drawn on when none is given."""
    return PortPosition.LEFT if direction is Direction.INPUT else PortPosition.RIGHT


class WireModel(BaseModel):
    """Base for models whose JSON form uses camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Position(WireModel):
    """2D canvas coordinates of a component."""

    x: float = 0
    y: float = 0


# Signature of a custom interface predicate: (this interface, other interface) -> ok.
CustomValidator = Callable[[Any, Any], bool]


class ValidationRules(WireModel):
    """Per-interface connection constraints.

    Attributes:
        allowed_types: When set, only these peer type tags may connect.
        blocked_types: Peer type tags that may never connect.
        custom_validator: Optional predicate invoked with (this, other). It is
            never serialized.
    """

    allowed_types: list[TypeTag] | None = None
    blocked_types: list[TypeTag] | None = None
    custom_validator: CustomValidator | None = _Field(default=None, exclude=True)

    def is_empty(self) -> bool:
        """Return True if no constraint is configured."""
        return self.allowed_types is None and self.blocked_types is None and self.custom_validator is None


class InterfaceType(WireModel):
    """An entry of the interface-type registry."""

    id: TypeTag
    name: str
    color: str = "#999999"
    icon: str | None = None
    description: str = ""

    def to_json(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)

    @classmethod
    def from_json(cls, obj: dict[str, Any]) -> InterfaceType:
        return cls.model_validate(obj)


DEFAULT_INTERFACE_TYPES: tuple[InterfaceType, ...] = (
    InterfaceType(id=TypeTag("power"), name="Power", color="#FF6B6B", icon="⚡", description="Electrical power connection"),
    InterfaceType(id=TypeTag("network"), name="Network", color="#4ECDC4", icon="🌐", description="Network/data connection"),
    InterfaceType(
        id=TypeTag("data"), name="Data", color="#45B7D1", icon="💾", description="Data structure or database connection"
    ),
    InterfaceType(
        id=TypeTag("physical"), name="Physical", color="#96CEB4", icon="📦", description="Physical/spatial relationship"
    ),
    InterfaceType(id=TypeTag("api"), name="API", color="#FFEAA7", icon="🔌", description="API or service interface"),
    InterfaceType(id=WILDCARD_TYPE, name="Custom", color="#DDA0DD", icon="⚙️", description="Custom interface type"),
)
