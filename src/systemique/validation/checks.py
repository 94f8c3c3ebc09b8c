# Copyright 2026 Systemique Contributors
# SPDX-License-Identifier: Apache-2.0

"""Whole-system consistency checks.

The model tolerates dangling references and duplicate ids; these checks make
such problems visible without mutating the system (except for
:func:`refresh_validated_flags`, which exists to update the flags).
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field

from systemique.model.entities import Connection, System
from systemique.model.registries import InterfaceTypeRegistry
from systemique.validation.compatibility import CompatibilityMatrix
from systemique.validation.connection import ConnectionResult, validate_connection_attempt
from systemique.validation.rules import TypePairRules

# ###############
# Public Interface
# ###############


@dataclass(frozen=True)
class ValidationWarning:
    """A non-fatal problem, such as a dangling reference.

    Attributes:
        message: Human-readable description of the warning.
    """

    message: str


@dataclass(frozen=True)
class ValidationError:
    """A problem that makes the diagram inconsistent.

    Attributes:
        message: Human-readable description of the error.
    """

    message: str


@dataclass
class ValidationResult:
    """Result of running the system checks.

    Attributes:
        warnings: Non-fatal issues.
        errors: Issues that should be corrected.
    """

    warnings: list[ValidationWarning] = field(default_factory=list)
    errors: list[ValidationError] = field(default_factory=list)

    @property
    def has_errors(self) -> bool:
        """Return True if any errors were found."""
        return len(self.errors) > 0


def check_system(
    system: System,
    *,
    rules: TypePairRules | None = None,
    matrix: CompatibilityMatrix | None = None,
    types: InterfaceTypeRegistry | None = None,
) -> ValidationResult:
    """Run all consistency checks on *system*.

    Checks performed:

    1. **Duplicate ids** (error): component ids within the system, interface
       ids within a component and connection ids within the system must be
       unique.

    2. **Dangling endpoints** (warning): a connection whose component or
       interface cannot be found. Such connections are kept by the model and
       skipped by the compatibility check.

    3. **Incompatible connections** (error): a connection whose endpoints
       fail :func:`validate_connection_attempt` under *rules* and *matrix*.

    4. **Isolated components** (warning): components without interfaces.

    5. **Unknown interface types** (warning): only when *types* is given, an
       interface whose type tag the registry does not define.

    Returns:
        A :class:`ValidationResult`; an empty result means the system is clean.
    """
    warnings: list[ValidationWarning] = []
    errors: list[ValidationError] = []

    errors.extend(_check_duplicate_ids(system))
    for conn in system.connections:
        dangling = _dangling_endpoint(system, conn)
        if dangling is not None:
            warnings.append(ValidationWarning(message=dangling))
            continue
        result = _attempt(system, conn, rules, matrix)
        if not result.valid:
            errors.append(ValidationError(message=f"Connection '{conn.id}' is invalid: {result.reason}."))
    warnings.extend(_check_isolated_components(system))
    if types is not None:
        warnings.extend(_check_unknown_types(system, types))

    return ValidationResult(warnings=warnings, errors=errors)


def refresh_validated_flags(
    system: System,
    *,
    rules: TypePairRules | None = None,
    matrix: CompatibilityMatrix | None = None,
) -> list[Connection]:
    """Re-check every connection and store the outcome in its ``validated`` flag.

    Dangling connections are marked as not validated.

    Returns:
        The connections that did not pass.
    """
    failed: list[Connection] = []
    for conn in system.connections:
        ok = _dangling_endpoint(system, conn) is None and _attempt(system, conn, rules, matrix).valid
        conn.validated = ok
        if not ok:
            failed.append(conn)
    return failed


# ################
# Implementation
# ################


def _duplicates(ids: list[str]) -> list[str]:
    return [item for item, count in Counter(ids).items() if count > 1]


def _check_duplicate_ids(system: System) -> list[ValidationError]:
    errors: list[ValidationError] = []
    for dup in _duplicates([c.id for c in system.components]):
        errors.append(ValidationError(message=f"Duplicate component id '{dup}' in system '{system.name}'."))
    for component in system.components:
        for dup in _duplicates([i.id for i in component.interfaces]):
            errors.append(ValidationError(message=f"Duplicate interface id '{dup}' in component '{component.name}'."))
    for dup in _duplicates([c.id for c in system.connections]):
        errors.append(ValidationError(message=f"Duplicate connection id '{dup}' in system '{system.name}'."))
    return errors


def _dangling_endpoint(system: System, conn: Connection) -> str | None:
    """Return a warning message if an endpoint of *conn* cannot be resolved."""
    endpoints = (
        ("source", conn.source_component_id, conn.source_interface_id),
        ("target", conn.target_component_id, conn.target_interface_id),
    )
    for role, component_id, interface_id in endpoints:
        component = system.get_component(component_id)
        if component is None:
            return f"Connection '{conn.id}' references unknown {role} component '{component_id}'."
        if component.get_interface(interface_id) is None:
            return (
                f"Connection '{conn.id}' references unknown {role} interface '{interface_id}' "
                f"on component '{component.name}'."
            )
    return None


def _attempt(
    system: System,
    conn: Connection,
    rules: TypePairRules | None,
    matrix: CompatibilityMatrix | None,
) -> ConnectionResult:
    source = system.get_component(conn.source_component_id)
    target = system.get_component(conn.target_component_id)
    assert source is not None and target is not None
    return validate_connection_attempt(
        source,
        conn.source_interface_id,
        target,
        conn.target_interface_id,
        rules=rules,
        matrix=matrix,
    )


def _check_isolated_components(system: System) -> list[ValidationWarning]:
    return [
        ValidationWarning(message=f"Component '{c.name}' has no interfaces (isolated).")
        for c in system.components
        if not c.interfaces
    ]


def _check_unknown_types(system: System, types: InterfaceTypeRegistry) -> list[ValidationWarning]:
    return [
        ValidationWarning(
            message=f"Interface '{iface.name}' on component '{component.name}' uses unknown type '{iface.type}'."
        )
        for component in system.components
        for iface in component.interfaces
        if not types.has_type(iface.type)
    ]
