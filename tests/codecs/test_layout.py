# Copyright 2026 Systemique Contributors
# SPDX-License-Identifier: Apache-2.0

"""Tests for the draw.io box-and-port layout."""

from systemique.codecs.layout import GroupSize, compute_group_size, layout_ports, partition_ports
from systemique.model import Direction, Interface, PortPosition, TypeTag

# ###############
# Helpers
# ###############


def _ports(side: PortPosition, count: int, prefix: str = "p") -> list[Interface]:
    return [
        Interface(id=f"{prefix}{i}", name=f"{prefix}{i}", type=TypeTag("data"), position=side) for i in range(count)
    ]


# ###############
# Sizing
# ###############


def test_minimum_size_without_ports() -> None:
    assert compute_group_size([]) == GroupSize(width=240, height=100)


def test_height_grows_with_busiest_vertical_side() -> None:
    interfaces = _ports(PortPosition.LEFT, 5, "l") + _ports(PortPosition.RIGHT, 2, "r")
    assert compute_group_size(interfaces) == GroupSize(width=240, height=40 + 30 * 5)


def test_width_grows_with_busiest_horizontal_side() -> None:
    interfaces = _ports(PortPosition.TOP, 3, "t") + _ports(PortPosition.BOTTOM, 8, "b")
    assert compute_group_size(interfaces) == GroupSize(width=60 + 30 * 8, height=100)


def test_partition_keeps_order() -> None:
    inputs = [Interface(id=f"i{n}", name="i", type=TypeTag("data")) for n in range(3)]
    output = Interface(id="o", name="o", type=TypeTag("data"), direction=Direction.OUTPUT)
    sides = partition_ports([inputs[0], output, inputs[1], inputs[2]])
    assert [i.id for i in sides[PortPosition.LEFT]] == ["i0", "i1", "i2"]
    assert [i.id for i in sides[PortPosition.RIGHT]] == ["o"]
    assert sides[PortPosition.TOP] == []


# ###############
# Placement
# ###############


def test_port_offsets_per_side() -> None:
    interfaces = (
        _ports(PortPosition.LEFT, 2, "l")
        + _ports(PortPosition.RIGHT, 1, "r")
        + _ports(PortPosition.TOP, 1, "t")
        + _ports(PortPosition.BOTTOM, 2, "b")
    )
    size = compute_group_size(interfaces)
    offsets = {p.interface.id: (p.x, p.y) for p in layout_ports(interfaces, size)}

    assert offsets["l0"] == (10, 10)
    assert offsets["l1"] == (10, 40)
    assert offsets["r0"] == (size.width - 30, 10)
    assert offsets["t0"] == (10, 10)
    assert offsets["b0"] == (10, size.height - 30)
    assert offsets["b1"] == (40, size.height - 30)


def test_placements_follow_component_order() -> None:
    interfaces = _ports(PortPosition.RIGHT, 1, "r") + _ports(PortPosition.LEFT, 1, "l")
    placements = layout_ports(interfaces, compute_group_size(interfaces))
    assert [p.interface.id for p in placements] == ["r0", "l0"]
