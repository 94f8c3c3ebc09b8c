# Copyright 2026 Systemique Contributors
# SPDX-License-Identifier: Apache-2.0

"""Workspace configuration for Systemique."""

from systemique.workspace.config import (
    CONFIG_FILE_NAME,
    Companions,
    CompatibilityOverride,
    WorkspaceConfig,
    WorkspaceConfigError,
    load_companions,
    load_workspace_config,
)

__all__ = [
    "CONFIG_FILE_NAME",
    "Companions",
    "CompatibilityOverride",
    "WorkspaceConfig",
    "WorkspaceConfigError",
    "load_companions",
    "load_workspace_config",
]
