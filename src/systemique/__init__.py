# Copyright 2026 Systemique Contributors
# SPDX-License-Identifier: Apache-2.0

"""Systemique: hierarchical block diagrams with typed ports."""
