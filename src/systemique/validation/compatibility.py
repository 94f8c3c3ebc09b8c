# Copyright 2026 Systemique Contributors
# SPDX-License-Identifier: Apache-2.0

"""Static compatibility matrix between interface type tags.

The matrix is directed: ``network -> api`` and ``api -> network`` are two
separate entries. Pairs without an entry are incompatible.
"""

from __future__ import annotations

from systemique.model.types import TypeTag

# ###############
# Public Interface
# ###############

# Keys are ambiguous when a tag itself contains the separator:
# ("my-type", "data") and ("my", "type-data") share the key "my-type-data".
# InterfaceTypeRegistry.add_type therefore mints slugs joined with "_".
PAIR_SEPARATOR = "-"


def pair_key(source_type: str, target_type: str) -> str:
    """Return the ``"<source>-<target>"`` key of an ordered type pair."""
    return f"{source_type}{PAIR_SEPARATOR}{target_type}"


class CompatibilityMatrix:
    """Mutable directed mapping from ordered type pairs to a compatibility flag."""

    def __init__(self, rules: dict[str, bool] | None = None) -> None:
        self._rules: dict[str, bool] = dict(rules or {})

    @classmethod
    def with_defaults(cls) -> CompatibilityMatrix:
        """Return a matrix seeded with the built-in compatibility table."""
        return cls(_default_rules())

    def is_compatible(self, source_type: TypeTag | str, target_type: TypeTag | str) -> bool:
        return self._rules.get(pair_key(source_type, target_type), False)

    def add_rule(self, source_type: TypeTag | str, target_type: TypeTag | str, compatible: bool = True) -> None:
        self._rules[pair_key(source_type, target_type)] = compatible

    def remove_rule(self, source_type: TypeTag | str, target_type: TypeTag | str) -> None:
        self._rules.pop(pair_key(source_type, target_type), None)

    def rules(self) -> dict[str, bool]:
        """Return every entry of the matrix, keyed by pair key."""
        return dict(self._rules)

    def copy(self) -> CompatibilityMatrix:
        return CompatibilityMatrix(self._rules)



# ################
# Implementation
# ################

_SAME_TYPE_PAIRS = ("power", "network", "data", "physical", "api")

# APIs usually ride on a network and exchange data, so both directions connect.
_CROSS_TYPE_PAIRS = (("network", "api"), ("data", "api"))


def _default_rules() -> dict[str, bool]:
    rules: dict[str, bool] = {}
    for tag in _SAME_TYPE_PAIRS:
        rules[pair_key(tag, tag)] = True
    for first, second in _CROSS_TYPE_PAIRS:
        rules[pair_key(first, second)] = True
        rules[pair_key(second, first)] = True
    for tag in (*_SAME_TYPE_PAIRS, "custom"):
        rules[pair_key("custom", tag)] = True
        rules[pair_key(tag, "custom")] = True
    return rules


# Matrix used by the validator when the caller does not supply one.
default_matrix = CompatibilityMatrix.with_defaults()
