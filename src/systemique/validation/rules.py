# Copyright 2026 Systemique Contributors
# SPDX-License-Identifier: Apache-2.0

"""User-editable type-pair rules that override the compatibility matrix."""

from __future__ import annotations

from enum import Enum
from typing import Any

from systemique.validation.compatibility import pair_key

# ###############
# Public Interface
# ###############


class RuleDecision(Enum):
    """Three-valued override for an ordered type pair."""

    ALLOW = "allow"
    DENY = "deny"
    UNSET = "unset"


class TypePairRules:
    """Table of explicit allow/deny decisions keyed by ordered type pair.

    Pairs without an entry are :attr:`RuleDecision.UNSET` and fall through to
    the compatibility matrix. The wire form is ``{"<a>-<b>": bool}``.
    """

    def __init__(self, rules: dict[str, bool] | None = None) -> None:
        self._rules: dict[str, bool] = dict(rules or {})

    def get_rule(self, source_type: str, target_type: str) -> RuleDecision:
        value = self._rules.get(pair_key(source_type, target_type))
        if value is None:
            return RuleDecision.UNSET
        return RuleDecision.ALLOW if value else RuleDecision.DENY

    def set_rule(self, source_type: str, target_type: str, decision: RuleDecision) -> None:
        key = pair_key(source_type, target_type)
        if decision is RuleDecision.UNSET:
            self._rules.pop(key, None)
        else:
            self._rules[key] = decision is RuleDecision.ALLOW

    def cycle_rule(self, source_type: str, target_type: str) -> RuleDecision:
        """Advance a pair through UNSET -> ALLOW -> DENY -> UNSET and return the new state."""
        next_decision = _CYCLE[self.get_rule(source_type, target_type)]
        self.set_rule(source_type, target_type, next_decision)
        return next_decision

    def clear(self) -> None:
        self._rules.clear()

    def rules(self) -> dict[str, bool]:
        return dict(self._rules)

    def __len__(self) -> int:
        return len(self._rules)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TypePairRules):
            return NotImplemented
        return self._rules == other._rules

    def to_json(self) -> dict[str, bool]:
        return self.rules()

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> TypePairRules:
        """Build a table from its wire form; ``null`` entries mean unset."""
        if not isinstance(data, dict):
            raise ValueError("Interface rules must be a JSON object")
        return cls({str(key): bool(value) for key, value in data.items() if value is not None})


# ################
# Implementation
# ################

_CYCLE = {
    RuleDecision.UNSET: RuleDecision.ALLOW,
    RuleDecision.ALLOW: RuleDecision.DENY,
    RuleDecision.DENY: RuleDecision.UNSET,
}
