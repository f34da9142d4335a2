"""Value types of the node graph: ids, pins, nodes, links and definitions."""

from dataclasses import dataclass, field
from enum import StrEnum, auto
from typing import NewType

from grapho._params import NodeParams

NodeId = NewType("NodeId", int)
PinId = NewType("PinId", int)
LinkId = NewType("LinkId", int)


class PinKind(StrEnum):
    """Direction of a pin."""

    INPUT = auto()
    OUTPUT = auto()


class PinType(StrEnum):
    """Data type carried by a pin. Links only connect pins of equal type."""

    MESH = auto()
    FLOAT = auto()
    INT = auto()
    BOOL = auto()
    VEC2 = auto()
    VEC3 = auto()
    STRING = auto()


class NodeRole(StrEnum):
    """Role a node plays for the host application."""

    NORMAL = auto()
    OUTPUT = auto()  # The node whose result is handed to the renderer


@dataclass(frozen=True, slots=True)
class PinDefinition:
    """Name and type of a pin to create."""

    name: str
    pin_type: PinType


@dataclass(frozen=True, slots=True)
class NodeDefinition:
    """Template used by `Graph.add_node` to create a node and its pins.

    Attributes:
        name: Display name of the new node.
        kind: Compute kind used to look up the node's compute function.
            Defaults to ``name`` when left empty.
        category: Free-form grouping label (e.g. "Sources", "Operators").
        inputs: Input pins, in order.
        outputs: Output pins, in order.
        role: Whether the node is the graph's output.

    """

    name: str
    kind: str = ""
    category: str = "Default"
    inputs: tuple[PinDefinition, ...] = ()
    outputs: tuple[PinDefinition, ...] = ()
    role: NodeRole = NodeRole.NORMAL

    @property
    def resolved_kind(self) -> str:
        return self.kind or self.name


@dataclass(frozen=True, slots=True)
class Pin:
    """A typed input or output slot owned by a node."""

    id: PinId
    node: NodeId
    kind: PinKind
    pin_type: PinType
    name: str


@dataclass(frozen=True, slots=True)
class Link:
    """A connection from an output pin to an input pin."""

    id: LinkId
    from_pin: PinId
    to_pin: PinId


@dataclass(slots=True)
class Node:
    """A unit of computation in the graph.

    Only ``name`` and ``params`` change during a node's lifetime; pins are
    fixed at creation.
    """

    id: NodeId
    name: str
    kind: str
    category: str
    role: NodeRole = NodeRole.NORMAL
    inputs: tuple[PinId, ...] = ()
    outputs: tuple[PinId, ...] = ()
    params: NodeParams = field(default_factory=NodeParams)

    @property
    def is_output(self) -> bool:
        return self.role == NodeRole.OUTPUT
