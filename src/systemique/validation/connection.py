# Copyright 2026 Systemique Contributors
# SPDX-License-Identifier: Apache-2.0

"""Admissibility checks for a prospective connection between two interfaces.

A rejected connection is an ordinary result, not an exception: every entry
point returns a :class:`ConnectionResult` whose ``reason`` explains the
rejection.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

from systemique.model.entities import Component, Interface
from systemique.model.types import WILDCARD_TYPE
from systemique.validation.compatibility import CompatibilityMatrix, default_matrix
from systemique.validation.rules import RuleDecision, TypePairRules

# ###############
# Public Interface
# ###############


@dataclass(frozen=True)
class ConnectionResult:
    """Outcome of a connection check.

    Attributes:
        valid: True if the connection may be created.
        reason: Human-readable explanation; empty on success.
    """

    valid: bool
    reason: str = ""

    @classmethod
    def success(cls) -> ConnectionResult:
        return cls(valid=True)

    @classmethod
    def failure(cls, reason: str) -> ConnectionResult:
        return cls(valid=False, reason=reason)

    def __bool__(self) -> bool:
        return self.valid


def validate_connection(
    source: Interface,
    target: Interface,
    *,
    rules: TypePairRules | None = None,
    matrix: CompatibilityMatrix | None = None,
) -> ConnectionResult:
    """Decide whether *source* may be connected to *target*.

    Layers are evaluated in order and the first decisive one wins:

    1. **Type-pair rule**: an explicit deny rejects immediately; an explicit
       allow skips straight to the custom rules.
    2. **Exact type match**: identical type tags go to the custom rules.
    3. **Compatibility matrix**: a compatible pair, or a wildcard tag on
       either side, goes to the custom rules; anything else is rejected.
    4. **Custom rules**: the ``allowed_types``, ``blocked_types`` and
       ``custom_validator`` constraints of the source, then of the target.

    Args:
        source: The output-side interface.
        target: The input-side interface.
        rules: Type-pair overrides. When omitted no overrides apply.
        matrix: Compatibility matrix. Defaults to the built-in matrix.

    Returns:
        A :class:`ConnectionResult`.
    """
    matrix = matrix if matrix is not None else default_matrix

    decision = rules.get_rule(source.type, target.type) if rules is not None else RuleDecision.UNSET
    if decision is RuleDecision.DENY:
        return ConnectionResult.failure(f"Connection from {source.type} to {target.type} is denied by a type rule")
    if decision is RuleDecision.ALLOW:
        return _check_custom_rules(source, target)

    if source.type == target.type:
        return _check_custom_rules(source, target)

    if matrix.is_compatible(source.type, target.type) or WILDCARD_TYPE in (source.type, target.type):
        return _check_custom_rules(source, target)

    return ConnectionResult.failure(f"Interface type {source.type} is not compatible with {target.type}")


def validate_connection_attempt(
    source_component: Component,
    source_interface_id: str,
    target_component: Component,
    target_interface_id: str,
    *,
    rules: TypePairRules | None = None,
    matrix: CompatibilityMatrix | None = None,
) -> ConnectionResult:
    """Resolve interface ids, enforce direction, then run :func:`validate_connection`.

    The preconditions are checked in order (source exists, target exists,
    source is an output, target is an input) before any type check.
    """
    source = source_component.get_interface(source_interface_id)
    target = target_component.get_interface(target_interface_id)

    if source is None:
        return ConnectionResult.failure(f"Source interface {source_interface_id} not found")
    if target is None:
        return ConnectionResult.failure(f"Target interface {target_interface_id} not found")
    if not source.is_output():
        return ConnectionResult.failure("Source interface must be an output")
    if not target.is_input():
        return ConnectionResult.failure("Target interface must be an input")

    return validate_connection(source, target, rules=rules, matrix=matrix)


# ################
# Implementation
# ################


def _check_custom_rules(source: Interface, target: Interface) -> ConnectionResult:
    for interface, other, role in ((source, target, "source"), (target, source, "target")):
        if interface.validation_rules.is_empty():
            continue
        result = _check_interface_rules(interface, other, role)
        if not result.valid:
            return result
    return ConnectionResult.success()


def _check_interface_rules(
    interface: Interface,
    other: Interface,
    role: Literal["source", "target"],
) -> ConnectionResult:
    rules = interface.validation_rules

    if rules.allowed_types is not None and other.type not in rules.allowed_types:
        return ConnectionResult.failure(f"{role} interface does not allow connections to type {other.type}")

    if rules.blocked_types is not None and other.type in rules.blocked_types:
        return ConnectionResult.failure(f"{role} interface blocks connections to type {other.type}")

    if rules.custom_validator is not None and not rules.custom_validator(interface, other):
        return ConnectionResult.failure("Custom validation rule failed")

    return ConnectionResult.success()
