"""Structural persistence of a graph as a JSON project document."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from pydantic import BaseModel, Field, ValidationError

from grapho._graph import (
    Graph,
    GraphError,
    Link,
    LinkId,
    Node,
    NodeId,
    NodeRole,
    Pin,
    PinId,
    PinKind,
    PinType,
)
from grapho._params import NodeParams, ParamValue

if TYPE_CHECKING:
    from pathlib import Path

logger = logging.getLogger(__name__)

PROJECT_VERSION = 1


class ProjectLoadError(Exception):
    """A project document could not be turned into a graph."""


class PinRecord(BaseModel):
    id: int
    node: int
    kind: PinKind
    pin_type: PinType
    name: str


class NodeRecord(BaseModel):
    id: int
    name: str
    kind: str
    category: str = "Default"
    role: NodeRole = NodeRole.NORMAL
    inputs: list[int] = Field(default_factory=list)
    outputs: list[int] = Field(default_factory=list)
    params: dict[str, ParamValue] = Field(default_factory=dict)


class LinkRecord(BaseModel):
    id: int
    from_pin: int
    to_pin: int


class GraphDocument(BaseModel):
    next_id: int = 1
    nodes: list[NodeRecord] = Field(default_factory=list)
    pins: list[PinRecord] = Field(default_factory=list)
    links: list[LinkRecord] = Field(default_factory=list)


class ProjectDocument(BaseModel):
    """Top-level saved project. The evaluation cache is never part of it."""

    version: int = PROJECT_VERSION
    graph: GraphDocument = Field(default_factory=GraphDocument)


def graph_to_document(graph: Graph) -> GraphDocument:
    """Dump a graph's nodes, pins, links and parameters, keeping ids and order."""
    return GraphDocument(
        next_id=graph.next_id,
        nodes=[
            NodeRecord(
                id=node.id,
                name=node.name,
                kind=node.kind,
                category=node.category,
                role=node.role,
                inputs=list(node.inputs),
                outputs=list(node.outputs),
                params=dict(node.params.items()),
            )
            for node in graph.nodes()
        ],
        pins=[
            PinRecord(id=pin.id, node=pin.node, kind=pin.kind, pin_type=pin.pin_type, name=pin.name)
            for pin in graph.pins()
        ],
        links=[LinkRecord(id=link.id, from_pin=link.from_pin, to_pin=link.to_pin) for link in graph.links()],
    )


def graph_from_document(document: GraphDocument) -> Graph:
    """Rebuild a graph from a document.

    Raises:
        ProjectLoadError: If the records are structurally inconsistent.

    """
    nodes = [
        Node(
            id=NodeId(record.id),
            name=record.name,
            kind=record.kind,
            category=record.category,
            role=record.role,
            inputs=tuple(PinId(p) for p in record.inputs),
            outputs=tuple(PinId(p) for p in record.outputs),
            params=NodeParams(record.params),
        )
        for record in document.nodes
    ]
    pins = [
        Pin(PinId(record.id), NodeId(record.node), record.kind, record.pin_type, record.name)
        for record in document.pins
    ]
    links = [
        Link(LinkId(record.id), PinId(record.from_pin), PinId(record.to_pin)) for record in document.links
    ]
    try:
        return Graph.restore(nodes, pins, links, next_id=document.next_id)
    except GraphError as e:
        msg = f"Inconsistent graph in project: {e}"
        raise ProjectLoadError(msg) from e


def dumps_project(graph: Graph, *, indent: int = 2) -> str:
    document = ProjectDocument(graph=graph_to_document(graph))
    return document.model_dump_json(indent=indent)


def loads_project(data: str | bytes) -> Graph:
    """Parse a JSON project document into a graph.

    Raises:
        ProjectLoadError: If the JSON is invalid, the version is unsupported
            or the graph is inconsistent.

    """
    try:
        document = ProjectDocument.model_validate_json(data)
    except ValidationError as e:
        msg = f"Invalid project document: {e}"
        raise ProjectLoadError(msg) from e

    if document.version > PROJECT_VERSION:
        msg = f"Project version {document.version} is newer than supported version {PROJECT_VERSION}"
        raise ProjectLoadError(msg)

    return graph_from_document(document.graph)


def save_project(graph: Graph, path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(dumps_project(graph), encoding="utf-8")
    logger.info("Saved project to %s", path)


def load_project(path: Path) -> Graph:
    """Load a project file written by `save_project`.

    Raises:
        ProjectLoadError: If the file content is not a valid project.
        OSError: If the file cannot be read.

    """
    graph = loads_project(path.read_bytes())
    logger.info("Loaded project from %s (%d nodes)", path, len(graph))
    return graph
