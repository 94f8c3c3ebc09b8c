# Copyright 2026 Systemique Contributors
# SPDX-License-Identifier: Apache-2.0

"""Deterministic box-and-port layout used by the draw.io export.

A component is drawn as a group whose size grows with the number of ports on
its busiest side. Ports on one side are spaced evenly from a fixed padding,
in the order they appear on the component.
"""

from __future__ import annotations

from dataclasses import dataclass

from systemique.model.entities import Interface
from systemique.model.types import PortPosition

# ###############
# Public Interface
# ###############

MIN_GROUP_WIDTH = 240
MIN_GROUP_HEIGHT = 100
PORT_SIZE = 20
PORT_SPACING = 30
PADDING = 10
WIDTH_BASE_MARGIN = 60
HEIGHT_BASE_MARGIN = 40


@dataclass(frozen=True)
class GroupSize:
    """Width and height of a component group."""

    width: int
    height: int


@dataclass(frozen=True)
class PortPlacement:
    """Top-left corner of a port shape, relative to its group.

    Attributes:
        interface: The interface drawn at this spot.
        x: Horizontal offset inside the group.
        y: Vertical offset inside the group.
    """

    interface: Interface
    x: int
    y: int


def partition_ports(interfaces: list[Interface]) -> dict[PortPosition, list[Interface]]:
    """Group interfaces by the side they are drawn on, keeping their order."""
    sides: dict[PortPosition, list[Interface]] = {side: [] for side in PortPosition}
    for iface in interfaces:
        sides[_side_of(iface)].append(iface)
    return sides


def compute_group_size(interfaces: list[Interface]) -> GroupSize:
    """Return the group size needed to fit *interfaces*.

    ``width = max(240, 60 + 30 * max(top, bottom, 1))`` and
    ``height = max(100, 40 + 30 * max(left, right, 1))``.
    """
    sides = partition_ports(interfaces)
    horizontal = max(len(sides[PortPosition.TOP]), len(sides[PortPosition.BOTTOM]), 1)
    vertical = max(len(sides[PortPosition.LEFT]), len(sides[PortPosition.RIGHT]), 1)
    return GroupSize(
        width=max(MIN_GROUP_WIDTH, WIDTH_BASE_MARGIN + PORT_SPACING * horizontal),
        height=max(MIN_GROUP_HEIGHT, HEIGHT_BASE_MARGIN + PORT_SPACING * vertical),
    )


def layout_ports(interfaces: list[Interface], size: GroupSize) -> list[PortPlacement]:
    """Place every interface on its side of a group of the given *size*.

    The placements are returned in the order of *interfaces*.
    """
    seen: dict[PortPosition, int] = {side: 0 for side in PortPosition}
    placements: list[PortPlacement] = []
    for iface in interfaces:
        side = _side_of(iface)
        index = seen[side]
        seen[side] += 1
        x, y = _offset(side, index, size)
        placements.append(PortPlacement(interface=iface, x=x, y=y))
    return placements


# ################
# Implementation
# ################


def _side_of(iface: Interface) -> PortPosition:
    try:
        return PortPosition(iface.position)
    except ValueError:
        return PortPosition.LEFT


def _offset(side: PortPosition, index: int, size: GroupSize) -> tuple[int, int]:
    along = PADDING + PORT_SPACING * index
    if side is PortPosition.RIGHT:
        return size.width - PADDING - PORT_SIZE, along
    if side is PortPosition.TOP:
        return along, PADDING
    if side is PortPosition.BOTTOM:
        return along, size.height - PADDING - PORT_SIZE
    return PADDING, along
