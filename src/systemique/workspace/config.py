# Copyright 2026 Systemique Contributors
# SPDX-License-Identifier: Apache-2.0

"""Data model and YAML parser for the Systemique workspace configuration file."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path

import yaml

from systemique.codecs.errors import JsonCodecError
from systemique.codecs.json_codec import decode_interface_rules, decode_interface_types
from systemique.model.registries import InterfaceTypeRegistry
from systemique.validation.compatibility import CompatibilityMatrix
from systemique.validation.rules import TypePairRules

logger = logging.getLogger(__name__)

# ###############
# Public Interface
# ###############

CONFIG_FILE_NAME = ".systemique.yaml"

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class WorkspaceConfigError(Exception):
    """Raised when a workspace configuration file is invalid or cannot be loaded."""


@dataclass
class CompatibilityOverride:
    """A matrix entry added on top of the built-in compatibility table."""

    source: str
    target: str
    compatible: bool = True


@dataclass
class WorkspaceConfig:
    """The parsed configuration for a Systemique workspace.

    Attributes:
        interface_types: Path (relative to the workspace root) of a JSON list
            of interface-type records replacing the default types.
        interface_rules: Path of a JSON ``{"<a>-<b>": bool}`` rule table.
        compatibility: Extra compatibility-matrix entries.
        log_level: Logging level name for the command-line tool.
    """

    interface_types: str | None = None
    interface_rules: str | None = None
    compatibility: list[CompatibilityOverride] = field(default_factory=list)
    log_level: str | None = None


@dataclass
class Companions:
    """Rule tables and type registry assembled from a workspace configuration."""

    types: InterfaceTypeRegistry
    rules: TypePairRules
    matrix: CompatibilityMatrix


def load_workspace_config(path: Path) -> WorkspaceConfig:
    """Load and parse a Systemique workspace configuration file.

    Args:
        path: Path to the ``.systemique.yaml`` file.

    Returns:
        A WorkspaceConfig instance populated from the file.

    Raises:
        WorkspaceConfigError: If the file cannot be read or the configuration is invalid.
    """
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        raise WorkspaceConfigError(f"Workspace config file not found: {path}") from None
    except OSError as exc:
        raise WorkspaceConfigError(f"Cannot read workspace config file: {exc}") from exc

    return _parse_workspace_config(text, source_label=str(path))


def load_companions(config: WorkspaceConfig, root: Path) -> Companions:
    """Build the type registry, rule table and matrix described by *config*.

    Companion file paths are resolved against *root*. Absent entries fall back
    to the defaults (built-in types, no rules, built-in matrix).

    Raises:
        WorkspaceConfigError: If a companion file cannot be read or decoded.
    """
    types = InterfaceTypeRegistry()
    if config.interface_types is not None:
        data = _read_json(root / config.interface_types)
        try:
            types = InterfaceTypeRegistry(decode_interface_types(data))
        except JsonCodecError as exc:
            raise WorkspaceConfigError(f"{config.interface_types}: {exc}") from exc

    rules = TypePairRules()
    if config.interface_rules is not None:
        data = _read_json(root / config.interface_rules)
        try:
            rules = decode_interface_rules(data)
        except JsonCodecError as exc:
            raise WorkspaceConfigError(f"{config.interface_rules}: {exc}") from exc

    matrix = CompatibilityMatrix.with_defaults()
    for override in config.compatibility:
        matrix.add_rule(override.source, override.target, override.compatible)

    logger.debug(
        "Loaded %d interface type(s), %d type rule(s), %d matrix override(s)",
        len(types.all_types()),
        len(rules),
        len(config.compatibility),
    )
    return Companions(types=types, rules=rules, matrix=matrix)


# ################
# Implementation
# ################


def _parse_workspace_config(text: str, source_label: str = "<string>") -> WorkspaceConfig:
    """Parse workspace config YAML text into a WorkspaceConfig.

    An empty document yields the default configuration.

    Raises:
        WorkspaceConfigError: If the YAML is invalid or a field has the wrong type.
    """
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise WorkspaceConfigError(f"Invalid YAML in {source_label}: {exc}") from exc

    if data is None:
        return WorkspaceConfig()
    if not isinstance(data, dict):
        raise WorkspaceConfigError(f"{source_label}: workspace config must be a YAML mapping")

    compatibility: list[CompatibilityOverride] = []
    if "compatibility" in data:
        raw_entries = data["compatibility"]
        if not isinstance(raw_entries, list):
            raise WorkspaceConfigError(f"{source_label}: 'compatibility' must be a list")
        for index, entry in enumerate(raw_entries):
            compatibility.append(_parse_override(entry, index, source_label))

    log_level = _optional_string(data, "log-level", source_label)
    if log_level is not None and log_level.upper() not in _LOG_LEVELS:
        raise WorkspaceConfigError(f"{source_label}: unknown 'log-level' {log_level!r}")

    return WorkspaceConfig(
        interface_types=_optional_string(data, "interface-types", source_label),
        interface_rules=_optional_string(data, "interface-rules", source_label),
        compatibility=compatibility,
        log_level=log_level.upper() if log_level is not None else None,
    )


def _require_string(mapping: dict[str, object], key: str, source_label: str) -> str:
    """Extract a required string field from a mapping, raising WorkspaceConfigError if missing."""
    if key not in mapping:
        raise WorkspaceConfigError(f"{source_label}: missing required field '{key}'")
    value = mapping[key]
    if not isinstance(value, str):
        raise WorkspaceConfigError(f"{source_label}: '{key}' must be a string")
    return value


def _optional_string(mapping: dict[str, object], key: str, source_label: str) -> str | None:
    if mapping.get(key) is None:
        return None
    return _require_string(mapping, key, source_label)


def _parse_override(entry: object, index: int, source_label: str) -> CompatibilityOverride:
    """Parse a single compatibility entry from the YAML list."""
    location = f"{source_label}: compatibility[{index}]"

    if not isinstance(entry, dict):
        raise WorkspaceConfigError(f"{location} must be a YAML mapping")

    compatible = entry.get("compatible", True)
    if not isinstance(compatible, bool):
        raise WorkspaceConfigError(f"{location}: 'compatible' must be true or false")

    return CompatibilityOverride(
        source=_require_string(entry, "source", location),
        target=_require_string(entry, "target", location),
        compatible=compatible,
    )


def _read_json(path: Path) -> object:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise WorkspaceConfigError(f"Cannot read companion file '{path}': {exc}") from exc
    except json.JSONDecodeError as exc:
        raise WorkspaceConfigError(f"Invalid JSON in companion file '{path}': {exc}") from exc
