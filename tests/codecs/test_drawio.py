# Copyright 2026 Systemique Contributors
# SPDX-License-Identifier: Apache-2.0

"""Tests for the draw.io export and import."""

import base64
import xml.etree.ElementTree as ET
import zlib
from urllib.parse import quote

import pytest

from systemique.codecs import DrawioCodecError, escape_attr, export_drawio, import_drawio
from systemique.codecs.drawio import DEFAULT_SYSTEM_NAME
from systemique.model import (
    Component,
    Connection,
    Direction,
    Interface,
    PortPosition,
    Position,
    System,
    TrustLevel,
    TypeTag,
    ValidationRules,
)

# ###############
# Helpers
# ###############


def _rack() -> System:
    server = Component(
        id="server",
        name="Server <primary>",
        type="compute",
        properties={"cpu": 16},
        position=Position(x=100, y=50.5),
        categories=["infra", "hosts"],
        description='Runs "everything" & more',
        trust=TrustLevel.TRUSTED,
        interfaces=[
            Interface(id="eth0", name="eth0", type=TypeTag("network"), direction=Direction.OUTPUT),
            Interface(
                id="psu",
                name="PSU",
                type=TypeTag("power"),
                position=PortPosition.BOTTOM,
                access=TrustLevel.UNTRUSTED,
                validation_rules=ValidationRules(blocked_types=[TypeTag("data")]),
            ),
        ],
    )
    switch = Component(
        id="switch",
        name="Switch",
        nested_system_id="system-switch-internals",
        position=Position(x=400, y=50),
        interfaces=[Interface(id="port1", name="port1", type=TypeTag("network"), icon="🔌")],
    )
    return System(
        id="rack",
        name="Rack & Co",
        components=[server, switch],
        connections=[
            Connection(
                id="cable",
                source_component_id="server",
                source_interface_id="eth0",
                target_component_id="switch",
                target_interface_id="port1",
                metadata={"length": "2m"},
                validated=True,
            )
        ],
    )


def _compressed_document(inner_xml: str, name: str = "Page-1") -> str:
    compressor = zlib.compressobj(wbits=-15)
    raw = compressor.compress(quote(inner_xml).encode("utf-8")) + compressor.flush()
    payload = base64.b64encode(raw).decode("ascii")
    return f'<mxfile><diagram name="{name}" id="d">{payload}</diagram></mxfile>'


_FOREIGN_MODEL = """\
<mxGraphModel>
  <root>
    <mxCell id="0" />
    <mxCell id="layer" parent="0" />
    <UserObject name="Pump" type="hydraulic" id="pump">
      <mxCell parent="layer" style="group" vertex="1">
        <mxGeometry x="10" y="20" width="240" height="100" as="geometry" />
      </mxCell>
    </UserObject>
    <object label="bg" id="pump-bgrect">
      <mxCell parent="pump" vertex="1" />
    </object>
    <UserObject name="Out" type="data" direction="OUTPUT" id="pump-out">
      <mxCell parent="pump" vertex="1" />
    </UserObject>
    <object name="Tank" id="tank">
      <mxCell parent="layer" vertex="1" />
    </object>
    <object name="In" id="tank-in" properties="{broken">
      <mxCell parent="tank" vertex="1" />
    </object>
    <mxCell id="e1" edge="1" parent="layer" source="pump-out" target="tank-in" />
    <mxCell id="e2" edge="1" parent="layer" source="pump-out" target="nowhere" />
  </root>
</mxGraphModel>
"""


# ###############
# Escaping
# ###############


def test_escape_attr() -> None:
    assert escape_attr("a & <b> \"c\" 'd'") == "a &amp; &lt;b&gt; &quot;c&quot; &apos;d&apos;"
    assert escape_attr("&lt;") == "&amp;lt;"
    assert escape_attr(None) == ""
    assert escape_attr("a\nb\r\tc") == "a&#10;b&#13;&#9;c"


# ###############
# Export
# ###############


def test_export_is_well_formed_and_named() -> None:
    document = ET.fromstring(export_drawio(_rack()))
    diagram = document.find("diagram")
    assert document.tag == "mxfile"
    assert diagram is not None
    assert diagram.get("name") == "Rack & Co"
    assert diagram.get("id") == "systemique-rack"


def test_export_cell_structure() -> None:
    root = ET.fromstring(export_drawio(_rack())).find("diagram/mxGraphModel/root")
    assert root is not None
    ids = [child.get("id") for child in root]
    assert ids[:2] == ["0", "1"]
    assert ids[2:] == ["server", "server-bgrect", "eth0", "psu", "switch", "switch-bgrect", "port1", "cable"]

    server = root.find("object[@id='server']")
    assert server is not None
    assert server.get("name") == "Server <primary>"
    assert server.get("categories") == '["infra","hosts"]'
    geometry = server.find("mxCell/mxGeometry")
    assert geometry is not None
    assert (geometry.get("x"), geometry.get("y")) == ("100", "50.5")
    assert (geometry.get("width"), geometry.get("height")) == ("240", "100")

    psu = root.find("object[@id='psu']")
    assert psu is not None
    assert psu.get("validationRules") == '{"blockedTypes":["data"]}'
    psu_geometry = psu.find("mxCell/mxGeometry")
    assert psu_geometry is not None
    assert (psu_geometry.get("x"), psu_geometry.get("y")) == ("10", "70")

    edge = root.find("object[@id='cable']/mxCell")
    assert edge is not None
    assert (edge.get("edge"), edge.get("source"), edge.get("target")) == ("1", "eth0", "port1")


def test_export_qualifies_shared_interface_ids() -> None:
    system = System(
        id="s",
        name="S",
        components=[
            Component(id="a", name="A", interfaces=[Interface(id="p", name="p", type=TypeTag("data"))]),
            Component(id="b", name="B", interfaces=[Interface(id="p", name="p", type=TypeTag("data"))]),
        ],
    )
    root = ET.fromstring(export_drawio(system)).find("diagram/mxGraphModel/root")
    assert root is not None
    ports = [child for child in root if child.get("interfaceId") == "p"]
    assert [p.get("id") for p in ports] == ["a:p", "b:p"]


# ###############
# Round trip
# ###############


def test_round_trip_preserves_name_components_and_connections() -> None:
    system = _rack()
    restored = import_drawio(export_drawio(system))

    assert restored.name == system.name
    assert restored.components == system.components
    assert restored.connections == system.connections


def test_round_trip_assigns_fresh_parentless_system() -> None:
    restored = import_drawio(export_drawio(_rack()))
    assert restored.id != "rack"
    assert restored.id.startswith("system-")
    assert restored.parent_system_id is None
    assert import_drawio(export_drawio(_rack()), system_id="given").id == "given"


def test_round_trip_with_shared_interface_ids() -> None:
    system = System(
        id="s",
        name="S",
        components=[
            Component(
                id="a",
                name="A",
                interfaces=[Interface(id="p", name="p", type=TypeTag("data"), direction=Direction.OUTPUT)],
            ),
            Component(id="b", name="B", interfaces=[Interface(id="p", name="p", type=TypeTag("data"))]),
        ],
        connections=[
            Connection(
                id="k",
                source_component_id="a",
                source_interface_id="p",
                target_component_id="b",
                target_interface_id="p",
            )
        ],
    )
    restored = import_drawio(export_drawio(system))
    assert restored.components == system.components
    assert restored.connections == system.connections


def test_dangling_connections_are_dropped() -> None:
    system = _rack()
    system.add_connection(
        Connection(
            id="ghost",
            source_component_id="server",
            source_interface_id="eth0",
            target_component_id="missing",
            target_interface_id="nothing",
        )
    )
    restored = import_drawio(export_drawio(system))
    assert [c.id for c in restored.connections] == ["cable"]


def test_dangling_connection_is_not_rebound_to_another_component() -> None:
    """An unknown source component must not resolve through a same-named interface elsewhere."""
    system = System(
        id="s",
        name="S",
        components=[
            Component(
                id="a",
                name="A",
                interfaces=[Interface(id="out", name="out", type=TypeTag("data"), direction=Direction.OUTPUT)],
            ),
            Component(id="b", name="B", interfaces=[Interface(id="in", name="in", type=TypeTag("data"))]),
        ],
        connections=[
            Connection(
                id="k",
                source_component_id="ghost",
                source_interface_id="out",
                target_component_id="b",
                target_interface_id="in",
            )
        ],
    )
    document = export_drawio(system)
    root = ET.fromstring(document).find("diagram/mxGraphModel/root")
    assert root is not None
    assert root.find("object[@id='k']") is None
    assert import_drawio(document).connections == []


def test_multiline_text_round_trips() -> None:
    system = System(
        id="s",
        name="Plant\nFloor 2",
        components=[
            Component(
                id="a",
                name="Line1\nLine2",
                description="first\nsecond\tthird\r\nfourth",
                interfaces=[Interface(id="p", name="Port\tA", type=TypeTag("data"))],
            )
        ],
    )
    document = export_drawio(system)
    assert "&#10;" in document
    assert "&#9;" in document

    restored = import_drawio(document)
    assert restored.name == "Plant\nFloor 2"
    assert restored.components == system.components


def test_connection_id_clashing_with_shape_is_qualified() -> None:
    system = _rack()
    system.connections[0].id = "server"
    system.add_connection(
        Connection(
            id="server",
            source_component_id="server",
            source_interface_id="eth0",
            target_component_id="switch",
            target_interface_id="port1",
        )
    )
    document = export_drawio(system)
    root = ET.fromstring(document).find("diagram/mxGraphModel/root")
    assert root is not None
    ids = [child.get("id") for child in root]
    assert len(ids) == len(set(ids))
    edges = [child for child in root if child.get("connectionId") == "server"]
    assert [e.get("id") for e in edges] == ["edge-0:server", "edge-1:server"]

    restored = import_drawio(document)
    assert [c.id for c in restored.connections] == ["server", "server"]
    assert restored.connections[0].metadata == {"length": "2m"}


def test_interface_named_like_a_background_is_kept() -> None:
    system = System(
        id="s",
        name="S",
        components=[
            Component(id="a", name="A", interfaces=[Interface(id="a-bgrect", name="odd", type=TypeTag("data"))])
        ],
    )
    restored = import_drawio(export_drawio(system))
    assert restored.components == system.components


def test_empty_system_round_trip() -> None:
    restored = import_drawio(export_drawio(System(id="s", name="Empty")))
    assert restored.name == "Empty"
    assert restored.components == []
    assert restored.connections == []


# ###############
# Import
# ###############


def test_import_foreign_diagram() -> None:
    """Bare models, UserObject wrappers, custom layers and plain edge cells are understood."""
    system = import_drawio(_FOREIGN_MODEL)

    assert system.name == DEFAULT_SYSTEM_NAME
    assert [c.id for c in system.components] == ["pump", "tank"]
    pump = system.get_component("pump")
    assert pump is not None
    assert pump.type == "hydraulic"
    assert pump.position == Position(x=10, y=20)
    assert [i.id for i in pump.interfaces] == ["pump-out"]
    out = pump.interfaces[0]
    assert out.direction is Direction.OUTPUT
    assert out.position is PortPosition.RIGHT

    tank = system.get_component("tank")
    assert tank is not None
    assert tank.type == "generic"
    tank_in = tank.interfaces[0]
    assert tank_in.type == "data"
    assert tank_in.direction is Direction.INPUT

    assert len(system.connections) == 1
    conn = system.connections[0]
    assert (conn.id, conn.source_component_id, conn.target_component_id) == ("e1", "pump", "tank")
    assert conn.validated is False


def test_import_compressed_diagram() -> None:
    system = import_drawio(_compressed_document(_FOREIGN_MODEL, name="Plant"))
    assert system.name == "Plant"
    assert len(system.components) == 2
    assert len(system.connections) == 1


def test_import_rejects_malformed_xml() -> None:
    with pytest.raises(DrawioCodecError, match="Invalid draw.io file"):
        import_drawio("<mxfile><diagram>")


def test_import_rejects_document_without_root() -> None:
    with pytest.raises(DrawioCodecError, match="no root found"):
        import_drawio('<mxfile><diagram name="x"><mxGraphModel /></diagram></mxfile>')


def test_import_rejects_undecodable_compressed_payload() -> None:
    with pytest.raises(DrawioCodecError, match="compressed diagram"):
        import_drawio('<mxfile><diagram name="x">@@@not-base64@@@</diagram></mxfile>')
