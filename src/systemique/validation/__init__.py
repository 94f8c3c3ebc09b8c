# Copyright 2026 Systemique Contributors
# SPDX-License-Identifier: Apache-2.0

"""Connection compatibility rules and system consistency checks."""

from systemique.validation.checks import (
    ValidationError,
    ValidationResult,
    ValidationWarning,
    check_system,
    refresh_validated_flags,
)
from systemique.validation.compatibility import CompatibilityMatrix, default_matrix, pair_key
from systemique.validation.connection import ConnectionResult, validate_connection, validate_connection_attempt
from systemique.validation.rules import RuleDecision, TypePairRules

__all__ = [
    "CompatibilityMatrix",
    "ConnectionResult",
    "RuleDecision",
    "TypePairRules",
    "ValidationError",
    "ValidationResult",
    "ValidationWarning",
    "check_system",
    "default_matrix",
    "pair_key",
    "refresh_validated_flags",
    "validate_connection",
    "validate_connection_attempt",
]
