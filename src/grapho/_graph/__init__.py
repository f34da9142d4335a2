"""Graph module providing the node graph data model.

This module contains:
- Graph: A mutable graph of nodes, typed pins and links
- GraphError and its subclasses: structural errors raised by graph edits
- topological_sort: Algorithm for ordering nodes by dependencies
"""

from ._algorithms import has_path, reachable, topological_sort
from ._errors import (
    CycleDetectedError,
    DuplicateIdError,
    GraphError,
    InputAlreadyConnectedError,
    OutputNodeError,
    TypeMismatchError,
    UnknownNodeError,
    UnknownPinError,
    WouldCreateCycleError,
    WrongPinKindError,
)
from ._graph import Graph, find_output_node
from ._types import (
    Link,
    LinkId,
    Node,
    NodeDefinition,
    NodeId,
    NodeRole,
    Pin,
    PinDefinition,
    PinId,
    PinKind,
    PinType,
)

__all__ = [
    "CycleDetectedError",
    "DuplicateIdError",
    "Graph",
    "GraphError",
    "InputAlreadyConnectedError",
    "Link",
    "LinkId",
    "Node",
    "NodeDefinition",
    "NodeId",
    "NodeRole",
    "OutputNodeError",
    "Pin",
    "PinDefinition",
    "PinId",
    "PinKind",
    "PinType",
    "TypeMismatchError",
    "UnknownNodeError",
    "UnknownPinError",
    "WouldCreateCycleError",
    "WrongPinKindError",
    "find_output_node",
    "has_path",
    "reachable",
    "topological_sort",
]
