# Copyright 2026 Systemique Contributors
# SPDX-License-Identifier: Apache-2.0

"""draw.io (mxGraph) XML export and import.

Each component becomes a ``group`` object carrying every component attribute,
a ``<id>-bgrect`` background rectangle and one ellipse object per interface.
Each connection becomes an edge between the two interface shapes. Structured
attribute values (maps, lists, rule objects) are stored as JSON text.

Import is tolerant: unparsable structured attributes fall back to their
defaults and edges whose endpoints do not resolve to a known interface are
dropped.
"""

from __future__ import annotations

import base64
import binascii
import json
import logging
import xml.etree.ElementTree as ET
import zlib
from collections import Counter
from dataclasses import dataclass
from enum import Enum
from typing import Any, TypeVar
from urllib.parse import unquote

from pydantic import ValidationError

from systemique.codecs.errors import DrawioCodecError
from systemique.codecs.layout import PORT_SIZE, compute_group_size, layout_ports
from systemique.model.entities import Component, Connection, Interface, System
from systemique.model.registries import generate_id
from systemique.model.types import Direction, PortPosition, Position, TrustLevel, TypeTag, ValidationRules

logger = logging.getLogger(__name__)

# ###############
# Public Interface
# ###############

DEFAULT_SYSTEM_NAME = "Imported from draw.io"
BGRECT_SUFFIX = "-bgrect"


def escape_attr(value: object) -> str:
    """Escape *value* for use inside a double-quoted XML attribute.

    ``&`` is replaced first so the entities introduced for the other
    characters are not escaped twice. Newlines, carriage returns and tabs
    become character references because XML attribute-value normalization
    would otherwise turn them into spaces on import.
    """
    if value is None:
        return ""
    return (
        str(value)
        .replace("&", "&amp;")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
        .replace('"', "&quot;")
        .replace("'", "&apos;")
        .replace("\n", "&#10;")
        .replace("\r", "&#13;")
        .replace("\t", "&#9;")
    )


def export_drawio(system: System) -> str:
    """Export *system* as an uncompressed draw.io document."""
    shape_ids = _allocate_shape_ids(system)
    cells: list[str] = ['        <mxCell id="0" />', '        <mxCell id="1" parent="0" />']
    for component in system.components:
        cells.extend(_component_cells(component, shape_ids))
    taken = _reserved_ids(system) | set(shape_ids.values())
    exported = 0
    for index, conn in enumerate(system.connections):
        source = shape_ids.get((conn.source_component_id, conn.source_interface_id))
        target = shape_ids.get((conn.target_component_id, conn.target_interface_id))
        if source is None or target is None:
            logger.debug("Skipping connection %r: an endpoint does not resolve to an interface", conn.id)
            continue
        edge_id = _allocate_edge_id(conn, index, taken)
        taken.add(edge_id)
        cells.extend(_edge_cells(conn, edge_id, source, target))
        exported += 1

    logger.debug(
        "Exported system %r: %d component(s), %d of %d connection(s)",
        system.id,
        len(system.components),
        exported,
        len(system.connections),
    )
    body = "\n".join(cells)
    return (
        '<?xml version="1.0" encoding="UTF-8"?>\n'
        '<mxfile host="app.diagrams.net" agent="Systemique">\n'
        f'  <diagram name="{escape_attr(system.name)}" id="{escape_attr("systemique-" + system.id)}">\n'
        f"    <mxGraphModel {_GRAPH_MODEL_ATTRS}>\n"
        "      <root>\n"
        f"{body}\n"
        "      </root>\n"
        "    </mxGraphModel>\n"
        "  </diagram>\n"
        "</mxfile>\n"
    )


def import_drawio(xml_text: str, *, system_id: str | None = None) -> System:
    """Import a system from a draw.io document.

    Args:
        xml_text: Full content of a ``.drawio`` file. Both uncompressed and
            compressed diagram payloads are accepted.
        system_id: Id for the new system. A fresh id is generated when omitted.

    Returns:
        A new parentless :class:`System` named after the diagram.

    Raises:
        DrawioCodecError: If the document is not well-formed XML or contains
            no graph model root.
    """
    try:
        document = ET.fromstring(xml_text)
    except ET.ParseError as exc:
        raise DrawioCodecError(f"Invalid draw.io file: {exc}") from exc

    name, graph_model = _find_graph_model(document)
    root = graph_model.find("root") if graph_model is not None else None
    if root is None:
        raise DrawioCodecError("Invalid draw.io file: no root found")

    layers, shapes, edges = _scan_cells(root)
    components = _build_components(layers, shapes)
    port_owners = _attach_ports(shapes, components)

    connections: list[Connection] = []
    for index, edge in enumerate(edges):
        conn = _build_connection(edge, index, port_owners)
        if conn is not None:
            connections.append(conn)

    system = System(
        id=system_id or generate_id("system"),
        name=name or DEFAULT_SYSTEM_NAME,
        components=list(components.values()),
        connections=connections,
    )
    logger.debug(
        "Imported system %r: %d component(s), %d connection(s), %d edge(s) dropped",
        system.id,
        len(system.components),
        len(connections),
        len(edges) - len(connections),
    )
    return system


# ################
# Implementation
# ################

_GRAPH_MODEL_ATTRS = (
    'dx="2583" dy="1351" grid="1" gridSize="10" guides="1" tooltips="1" connect="1" arrows="1" '
    'fold="1" page="1" pageScale="1" pageWidth="827" pageHeight="1169" math="0" shadow="0"'
)

_BGRECT_LABEL = '%name%<div><i><font style="font-size: 10px;">%type%</font></i></div>'
_BGRECT_STYLE = "rounded=1;whiteSpace=wrap;html=1;align=center;"
_EDGE_STYLE = "rounded=0;orthogonalLoop=1;jettySize=auto;html=1;endArrow=none;endFill=0;"
_PORT_LABEL_STYLES = {
    PortPosition.LEFT: "labelPosition=left;verticalLabelPosition=middle;align=right;verticalAlign=middle;",
    PortPosition.RIGHT: "labelPosition=right;verticalLabelPosition=middle;align=left;verticalAlign=middle;",
    PortPosition.TOP: "labelPosition=center;verticalLabelPosition=top;align=center;verticalAlign=bottom;",
    PortPosition.BOTTOM: "labelPosition=center;verticalLabelPosition=bottom;align=center;verticalAlign=top;",
}
_OBJECT_TAGS = ("object", "UserObject")

_E = TypeVar("_E", bound=Enum)


def _port_style(position: PortPosition) -> str:
    return f"ellipse;html=1;aspect=fixed;{_PORT_LABEL_STYLES[position]}spacing=20;labelBackgroundColor=default;"


def _json_text(value: Any) -> str:
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False)


def _number(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else repr(float(value))


def _attrs(pairs: list[tuple[str, object]]) -> str:
    return " ".join(f'{key}="{escape_attr(value)}"' for key, value in pairs)


def _reserved_ids(system: System) -> set[str]:
    """Return the ids of the root cells and of every component group and background."""
    groups = {c.id for c in system.components}
    return {"0", "1"} | groups | {g + BGRECT_SUFFIX for g in groups}


def _allocate_shape_ids(system: System) -> dict[tuple[str, str], str]:
    """Map (component id, interface id) to a diagram-wide unique shape id.

    Interface ids are only unique inside their component, so an id shared by
    several components (or clashing with a component id) is qualified with
    the component id.
    """
    taken = Counter(i.id for c in system.components for i in c.interfaces)
    reserved = _reserved_ids(system)
    shape_ids: dict[tuple[str, str], str] = {}
    for component in system.components:
        for iface in component.interfaces:
            if taken[iface.id] > 1 or iface.id in reserved:
                shape_ids[(component.id, iface.id)] = f"{component.id}:{iface.id}"
            else:
                shape_ids[(component.id, iface.id)] = iface.id
    return shape_ids


def _component_cells(component: Component, shape_ids: dict[tuple[str, str], str]) -> list[str]:
    size = compute_group_size(component.interfaces)
    object_attrs = _attrs(
        [
            ("label", ""),
            ("placeholders", "1"),
            ("name", component.name),
            ("type", component.type),
            ("properties", _json_text(component.properties)),
            ("nestedSystemId", component.nested_system_id),
            ("metadata", _json_text(component.metadata)),
            ("icon", component.icon),
            ("categories", _json_text(component.categories)),
            ("description", component.description),
            ("trust", component.trust.value if component.trust else None),
            ("id", component.id),
        ]
    )
    cid = escape_attr(component.id)
    cells = [
        f"        <object {object_attrs}>",
        '          <mxCell connectable="0" parent="1" style="group" vertex="1">',
        f'            <mxGeometry height="{size.height}" width="{size.width}" '
        f'x="{_number(component.position.x)}" y="{_number(component.position.y)}" as="geometry" />',
        "          </mxCell>",
        "        </object>",
        f'        <object label="{escape_attr(_BGRECT_LABEL)}" placeholders="1" id="{cid}{BGRECT_SUFFIX}">',
        f'          <mxCell parent="{cid}" style="{_BGRECT_STYLE}" vertex="1">',
        f'            <mxGeometry height="{size.height}" width="{size.width}" as="geometry" />',
        "          </mxCell>",
        "        </object>",
    ]

    for placement in layout_ports(component.interfaces, size):
        iface = placement.interface
        shape_id = shape_ids[(component.id, iface.id)]
        pairs: list[tuple[str, object]] = [
            ("label", "%name%"),
            ("placeholders", "1"),
            ("name", iface.name),
            ("type", iface.type),
            ("direction", iface.direction.value),
            ("position", iface.position.value),
            ("icon", iface.icon),
            ("access", iface.access.value if iface.access else None),
            ("validationRules", _json_text(iface.to_json()["validationRules"])),
            ("metadata", _json_text(iface.metadata)),
        ]
        if shape_id != iface.id:
            pairs.append(("interfaceId", iface.id))
        pairs.append(("id", shape_id))
        cells += [
            f"        <object {_attrs(pairs)}>",
            f'          <mxCell parent="{cid}" style="{_port_style(iface.position)}" vertex="1">',
            f'            <mxGeometry height="{PORT_SIZE}" width="{PORT_SIZE}" '
            f'x="{placement.x}" y="{placement.y}" as="geometry" />',
            "          </mxCell>",
            "        </object>",
        ]
    return cells


def _allocate_edge_id(conn: Connection, index: int, taken: set[str]) -> str:
    """Return a cell id for *conn* that no other cell uses.

    A connection id that clashes with a shape or an earlier edge is qualified
    with the edge position.
    """
    base = conn.id or f"edge-{index}"
    edge_id = base
    counter = 0
    while edge_id in taken:
        edge_id = f"edge-{index}:{base}" if counter == 0 else f"edge-{index}-{counter}:{base}"
        counter += 1
    return edge_id


def _edge_cells(conn: Connection, edge_id: str, source: str, target: str) -> list[str]:
    pairs: list[tuple[str, object]] = [
        ("label", ""),
        ("metadata", _json_text(conn.metadata)),
        ("validated", "true" if conn.validated else "false"),
    ]
    if conn.id and edge_id != conn.id:
        pairs.append(("connectionId", conn.id))
    pairs.append(("id", edge_id))
    object_attrs = _attrs(pairs)
    return [
        f"        <object {object_attrs}>",
        f'          <mxCell edge="1" parent="1" source="{escape_attr(source)}" target="{escape_attr(target)}" '
        f'style="{_EDGE_STYLE}">',
        '            <mxGeometry relative="1" as="geometry" />',
        "          </mxCell>",
        "        </object>",
    ]


@dataclass
class _Shape:
    """A vertex object found under the graph root."""

    id: str
    parent: str
    attrs: dict[str, str]
    cell: ET.Element


@dataclass
class _Edge:
    """An edge cell, with the attributes of its wrapping object if any."""

    id: str | None
    source: str | None
    target: str | None
    attrs: dict[str, str]


def _find_graph_model(document: ET.Element) -> tuple[str | None, ET.Element | None]:
    """Return the diagram name and its ``mxGraphModel`` element."""
    if document.tag == "mxGraphModel":
        return None, document
    diagram = document if document.tag == "diagram" else document.find("diagram")
    if diagram is None:
        return None, document.find(".//mxGraphModel")
    name = diagram.get("name")
    graph_model = diagram.find("mxGraphModel")
    if graph_model is None and diagram.text and diagram.text.strip():
        graph_model = _inflate_diagram(diagram.text.strip())
    return name, graph_model


def _inflate_diagram(payload: str) -> ET.Element:
    """Decode a compressed diagram: base64, raw deflate, then URL-quoting."""
    try:
        raw = zlib.decompress(base64.b64decode(payload), -15)
        return ET.fromstring(unquote(raw.decode("utf-8")))
    except (binascii.Error, zlib.error, UnicodeDecodeError, ET.ParseError) as exc:
        raise DrawioCodecError(f"Invalid draw.io file: cannot decode compressed diagram: {exc}") from exc


def _scan_cells(root: ET.Element) -> tuple[set[str], list[_Shape], list[_Edge]]:
    """Split the children of the graph root into layers, vertex objects and edges."""
    layers: set[str] = set()
    shapes: list[_Shape] = []
    edges: list[_Edge] = []
    for child in root:
        if child.tag in _OBJECT_TAGS:
            cell = child.find("mxCell")
            attrs = dict(child.attrib)
            if cell is not None and cell.get("edge") == "1":
                edges.append(_Edge(child.get("id"), cell.get("source"), cell.get("target"), attrs))
                continue
            shape_id = child.get("id")
            parent = cell.get("parent") if cell is not None else None
            if not shape_id or not parent or shape_id == parent + BGRECT_SUFFIX:
                continue
            shapes.append(_Shape(shape_id, parent, attrs, cell))
        elif child.tag == "mxCell":
            if child.get("edge") == "1":
                edges.append(_Edge(child.get("id"), child.get("source"), child.get("target"), {}))
            elif child.get("parent") == "0" and child.get("id"):
                layers.add(child.get("id", ""))
    return layers or {"1"}, shapes, edges


def _build_components(layers: set[str], shapes: list[_Shape]) -> dict[str, Component]:
    return {shape.id: _parse_component(shape) for shape in shapes if shape.parent in layers}


def _attach_ports(shapes: list[_Shape], components: dict[str, Component]) -> dict[str, tuple[str, str]]:
    """Add port shapes to their components; return shape id -> (component id, interface id)."""
    port_owners: dict[str, tuple[str, str]] = {}
    for shape in shapes:
        component = components.get(shape.parent)
        if component is None:
            continue
        iface = _parse_interface(shape)
        component.add_interface(iface)
        port_owners[shape.id] = (component.id, iface.id)
    return port_owners


def _parse_component(shape: _Shape) -> Component:
    attrs = shape.attrs
    geometry = shape.cell.find("mxGeometry")
    return Component(
        id=shape.id,
        name=attrs.get("name", "Component"),
        type=attrs.get("type") or "generic",
        properties=_json_attr(attrs.get("properties"), dict, {}),
        nested_system_id=attrs.get("nestedSystemId") or None,
        position=Position(x=_float_attr(geometry, "x"), y=_float_attr(geometry, "y")),
        metadata=_json_attr(attrs.get("metadata"), dict, {}),
        icon=attrs.get("icon") or None,
        categories=[str(c) for c in _json_attr(attrs.get("categories"), list, [])],
        description=attrs.get("description", ""),
        trust=_enum_attr(attrs.get("trust"), TrustLevel, None),
    )


def _parse_interface(shape: _Shape) -> Interface:
    attrs = shape.attrs
    direction = _enum_attr((attrs.get("direction") or "").lower(), Direction, Direction.INPUT)
    position = _enum_attr((attrs.get("position") or "").lower(), PortPosition, None)
    rules_data = _json_attr(attrs.get("validationRules"), dict, {})
    try:
        rules = ValidationRules.model_validate(rules_data)
    except ValidationError:
        logger.debug("Ignoring malformed validation rules on interface %r", shape.id)
        rules = ValidationRules()
    return Interface(
        id=attrs.get("interfaceId") or shape.id,
        name=attrs.get("name", "Interface"),
        type=TypeTag(attrs.get("type") or "data"),
        direction=direction,
        position=position,
        icon=attrs.get("icon") or None,
        access=_enum_attr(attrs.get("access"), TrustLevel, None),
        validation_rules=rules,
        metadata=_json_attr(attrs.get("metadata"), dict, {}),
    )


def _build_connection(edge: _Edge, index: int, port_owners: dict[str, tuple[str, str]]) -> Connection | None:
    source = port_owners.get(edge.source or "")
    target = port_owners.get(edge.target or "")
    if source is None or target is None:
        logger.debug("Dropping edge %r: endpoints %r -> %r do not resolve", edge.id, edge.source, edge.target)
        return None
    return Connection(
        id=edge.attrs.get("connectionId") or edge.id or f"edge-{index}",
        source_component_id=source[0],
        source_interface_id=source[1],
        target_component_id=target[0],
        target_interface_id=target[1],
        metadata=_json_attr(edge.attrs.get("metadata"), dict, {}),
        validated=edge.attrs.get("validated") == "true",
    )


def _json_attr(value: str | None, expected: type, default: Any) -> Any:
    """Parse a JSON attribute, returning *default* if absent, invalid or of the wrong type."""
    if not value:
        return default
    try:
        parsed = json.loads(value)
    except json.JSONDecodeError:
        logger.debug("Ignoring malformed JSON attribute %r", value)
        return default
    return parsed if isinstance(parsed, expected) else default


def _enum_attr(value: str | None, enum_cls: type[_E], default: _E | None) -> _E | None:
    if not value:
        return default
    try:
        return enum_cls(value)
    except ValueError:
        return default


def _float_attr(element: ET.Element | None, key: str) -> float:
    if element is None:
        return 0.0
    try:
        return float(element.get(key) or 0)
    except ValueError:
        return 0.0
