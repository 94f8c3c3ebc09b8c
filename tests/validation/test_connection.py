# Copyright 2026 Systemique Contributors
# SPDX-License-Identifier: Apache-2.0

"""Tests for the layered connection validation."""

import pytest

from systemique.model import Component, Direction, Interface, TypeTag, ValidationRules
from systemique.validation.compatibility import CompatibilityMatrix
from systemique.validation.connection import ConnectionResult, validate_connection, validate_connection_attempt
from systemique.validation.rules import RuleDecision, TypePairRules

# ###############
# Helpers
# ###############


def _out(type_: str, iid: str = "out", **kwargs: object) -> Interface:
    return Interface(id=iid, name=iid, type=TypeTag(type_), direction=Direction.OUTPUT, **kwargs)


def _in(type_: str, iid: str = "in", **kwargs: object) -> Interface:
    return Interface(id=iid, name=iid, type=TypeTag(type_), direction=Direction.INPUT, **kwargs)


def _rules(**pairs: RuleDecision) -> TypePairRules:
    """Build a rule table from ``source__target=decision`` keyword arguments."""
    table = TypePairRules()
    for key, decision in pairs.items():
        source, target = key.split("__")
        table.set_rule(source, target, decision)
    return table


def _server_and_switch() -> tuple[Component, Component]:
    server = Component(
        id="server",
        name="Server",
        interfaces=[_out("network", "eth0"), _in("power", "psu")],
    )
    switch = Component(
        id="switch",
        name="Switch",
        interfaces=[_in("network", "port1"), _out("network", "uplink")],
    )
    return server, switch


# ###############
# ConnectionResult
# ###############


def test_result_truthiness() -> None:
    assert ConnectionResult.success()
    assert not ConnectionResult.failure("nope")
    assert ConnectionResult.success().reason == ""


# ###############
# Type layers
# ###############


def test_exact_type_match_is_valid() -> None:
    assert validate_connection(_out("power"), _in("power")).valid


def test_exact_match_of_unknown_tag_is_valid() -> None:
    assert validate_connection(_out("plasma"), _in("plasma")).valid


def test_matrix_compatible_pair_is_valid() -> None:
    assert validate_connection(_out("network"), _in("api")).valid


def test_incompatible_pair_reports_types() -> None:
    result = validate_connection(_out("power"), _in("network"))
    assert not result.valid
    assert result.reason == "Interface type power is not compatible with network"


@pytest.mark.parametrize(("source", "target"), [("custom", "plasma"), ("plasma", "custom")])
def test_wildcard_connects_to_anything(source: str, target: str) -> None:
    assert validate_connection(_out(source), _in(target)).valid


def test_custom_matrix_replaces_default() -> None:
    matrix = CompatibilityMatrix({"power-network": True})
    assert validate_connection(_out("power"), _in("network"), matrix=matrix).valid
    assert not validate_connection(_out("network"), _in("api"), matrix=matrix).valid


# ###############
# Type-pair rules
# ###############


def test_deny_rule_beats_exact_match() -> None:
    result = validate_connection(_out("data"), _in("data"), rules=_rules(data__data=RuleDecision.DENY))
    assert not result.valid
    assert result.reason == "Connection from data to data is denied by a type rule"


def test_deny_rule_beats_wildcard() -> None:
    result = validate_connection(_out("custom"), _in("power"), rules=_rules(custom__power=RuleDecision.DENY))
    assert not result.valid


def test_allow_rule_beats_matrix() -> None:
    result = validate_connection(_out("power"), _in("network"), rules=_rules(power__network=RuleDecision.ALLOW))
    assert result.valid


def test_rules_are_directed() -> None:
    rules = _rules(power__network=RuleDecision.ALLOW)
    assert not validate_connection(_out("network"), _in("power"), rules=rules).valid


def test_allow_rule_still_runs_custom_rules() -> None:
    target = _in("network", validation_rules=ValidationRules(blocked_types=[TypeTag("power")]))
    result = validate_connection(_out("power"), target, rules=_rules(power__network=RuleDecision.ALLOW))
    assert not result.valid
    assert result.reason == "target interface blocks connections to type power"


# ###############
# Custom rules
# ###############


def test_allowed_types_on_source() -> None:
    source = _out("api", validation_rules=ValidationRules(allowed_types=[TypeTag("network")]))
    assert validate_connection(source, _in("network")).valid
    result = validate_connection(source, _in("data"))
    assert result.reason == "source interface does not allow connections to type data"


def test_empty_allowed_types_blocks_everything() -> None:
    source = _out("data", validation_rules=ValidationRules(allowed_types=[]))
    assert not validate_connection(source, _in("data")).valid


def test_blocked_types_on_target() -> None:
    target = _in("api", validation_rules=ValidationRules(blocked_types=[TypeTag("data")]))
    result = validate_connection(_out("data"), target)
    assert result.reason == "target interface blocks connections to type data"


def test_source_rules_are_checked_before_target_rules() -> None:
    source = _out("data", validation_rules=ValidationRules(blocked_types=[TypeTag("data")]))
    target = _in("data", validation_rules=ValidationRules(blocked_types=[TypeTag("data")]))
    assert validate_connection(source, target).reason.startswith("source")


def test_custom_validator_receives_this_and_other() -> None:
    calls: list[tuple[str, str]] = []

    def _only_same_name(this: Interface, other: Interface) -> bool:
        calls.append((this.id, other.id))
        return this.name == other.name

    target = _in("data", iid="bus", validation_rules=ValidationRules(custom_validator=_only_same_name))
    result = validate_connection(_out("data", iid="out"), target)

    assert not result.valid
    assert result.reason == "Custom validation rule failed"
    assert calls == [("bus", "out")]


def test_custom_rules_do_not_run_for_incompatible_types() -> None:
    def _explode(this: Interface, other: Interface) -> bool:
        raise AssertionError("should not be called")

    source = _out("power", validation_rules=ValidationRules(custom_validator=_explode))
    assert not validate_connection(source, _in("network")).valid


# ###############
# Connection attempts
# ###############


def test_server_to_switch_network_connection() -> None:
    server, switch = _server_and_switch()
    result = validate_connection_attempt(server, "eth0", switch, "port1")
    assert result.valid


def test_attempt_rejects_missing_source_first() -> None:
    server, switch = _server_and_switch()
    result = validate_connection_attempt(server, "nope", switch, "also-nope")
    assert result.reason == "Source interface nope not found"


def test_attempt_rejects_missing_target() -> None:
    server, switch = _server_and_switch()
    result = validate_connection_attempt(server, "eth0", switch, "nope")
    assert result.reason == "Target interface nope not found"


def test_attempt_rejects_input_as_source() -> None:
    server, switch = _server_and_switch()
    result = validate_connection_attempt(switch, "port1", server, "psu")
    assert result.reason == "Source interface must be an output"


def test_attempt_rejects_output_as_target() -> None:
    server, switch = _server_and_switch()
    result = validate_connection_attempt(server, "eth0", switch, "uplink")
    assert result.reason == "Target interface must be an input"


def test_attempt_checks_direction_before_type_rules() -> None:
    server, switch = _server_and_switch()
    rules = _rules(network__network=RuleDecision.DENY)
    result = validate_connection_attempt(server, "eth0", switch, "uplink", rules=rules)
    assert result.reason == "Target interface must be an input"


def test_attempt_reports_incompatible_types() -> None:
    server, switch = _server_and_switch()
    result = validate_connection_attempt(switch, "uplink", server, "psu")
    assert result.reason == "Interface type network is not compatible with power"
