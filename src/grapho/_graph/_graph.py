"""Mutable node graph with typed pins and structural invariants."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from grapho._params import param_value

from ._algorithms import has_path, reachable, topological_sort
from ._errors import (
    CycleDetectedError,
    DuplicateIdError,
    InputAlreadyConnectedError,
    OutputNodeError,
    TypeMismatchError,
    UnknownNodeError,
    UnknownPinError,
    WouldCreateCycleError,
    WrongPinKindError,
)
from ._types import Link, LinkId, Node, NodeDefinition, NodeId, Pin, PinId, PinKind

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator

logger = logging.getLogger(__name__)


class Graph:
    """A directed graph of nodes connected through typed pins.

    The graph owns all nodes, pins and links in insertion-ordered stores.
    Ids come from a single counter and are never reused, so a stale id
    never refers to a newer object.

    Invariants maintained by every mutation:
    - links go from an output pin to an input pin of the same type;
    - an input pin has at most one incoming link;
    - the node-level dependency graph is acyclic.

    A mutation that would break an invariant raises a `GraphError` and
    leaves the graph unchanged.
    """

    def __init__(self) -> None:
        self._nodes: dict[NodeId, Node] = {}
        self._pins: dict[PinId, Pin] = {}
        self._links: dict[LinkId, Link] = {}
        # Index: input pin -> the single link feeding it
        self._input_links: dict[PinId, LinkId] = {}
        # Index: output pin -> links leaving it, in insertion order
        self._output_links: dict[PinId, dict[LinkId, None]] = {}
        self._next_id = 1

    def _allocate_id(self) -> int:
        value = self._next_id
        self._next_id += 1
        return value

    @property
    def next_id(self) -> int:
        """The id the next created node, pin or link will receive."""
        return self._next_id

    # ------------------------------------------------------------------
    # Read accessors
    # ------------------------------------------------------------------

    def node(self, node_id: NodeId) -> Node | None:
        return self._nodes.get(node_id)

    def pin(self, pin_id: PinId) -> Pin | None:
        return self._pins.get(pin_id)

    def link(self, link_id: LinkId) -> Link | None:
        return self._links.get(link_id)

    def nodes(self) -> Iterator[Node]:
        return iter(list(self._nodes.values()))

    def pins(self) -> Iterator[Pin]:
        return iter(list(self._pins.values()))

    def links(self) -> Iterator[Link]:
        return iter(list(self._links.values()))

    def input_link(self, pin_id: PinId) -> Link | None:
        """Return the link feeding an input pin, if any."""
        link_id = self._input_links.get(pin_id)
        return None if link_id is None else self._links[link_id]

    def require_node(self, node_id: NodeId) -> Node:
        """Get a node by id.

        Raises:
            UnknownNodeError: If no node has this id.

        """
        node = self._nodes.get(node_id)
        if node is None:
            raise UnknownNodeError(node_id)
        return node

    def find_pin(self, node_id: NodeId, name: str, kind: PinKind) -> Pin | None:
        """Find a pin of a node by name and direction."""
        node = self.require_node(node_id)
        pin_ids = node.inputs if kind == PinKind.INPUT else node.outputs
        for pin_id in pin_ids:
            pin = self._pins[pin_id]
            if pin.name == name:
                return pin
        return None

    def output_nodes(self) -> list[NodeId]:
        """Ids of all nodes whose role is OUTPUT, in insertion order."""
        return [node.id for node in self._nodes.values() if node.is_output]

    def __len__(self) -> int:
        """Return the number of nodes in the graph."""
        return len(self._nodes)

    def __contains__(self, node_id: object) -> bool:
        """Check if a node id is in the graph."""
        return node_id in self._nodes

    # ------------------------------------------------------------------
    # Nodes
    # ------------------------------------------------------------------

    def add_node(self, definition: NodeDefinition) -> NodeId:
        """Create a node and its pins from a definition.

        Args:
            definition: Name, kind, category and pins of the node.

        Returns:
            The id of the new node.

        """
        node_id = NodeId(self._allocate_id())

        inputs: list[PinId] = []
        for pin_def in definition.inputs:
            pin_id = PinId(self._allocate_id())
            self._pins[pin_id] = Pin(pin_id, node_id, PinKind.INPUT, pin_def.pin_type, pin_def.name)
            inputs.append(pin_id)

        outputs: list[PinId] = []
        for pin_def in definition.outputs:
            pin_id = PinId(self._allocate_id())
            self._pins[pin_id] = Pin(pin_id, node_id, PinKind.OUTPUT, pin_def.pin_type, pin_def.name)
            outputs.append(pin_id)

        self._nodes[node_id] = Node(
            id=node_id,
            name=definition.name,
            kind=definition.resolved_kind,
            category=definition.category,
            role=definition.role,
            inputs=tuple(inputs),
            outputs=tuple(outputs),
        )
        logger.debug("Added node %s (%s)", node_id, definition.name)
        return node_id

    def remove_node(self, node_id: NodeId) -> None:
        """Remove a node, its pins and every link touching them.

        Unknown ids are ignored.
        """
        node = self._nodes.pop(node_id, None)
        if node is None:
            return
        for pin_id in (*node.inputs, *node.outputs):
            self.remove_links_for_pin(pin_id)
            del self._pins[pin_id]
        logger.debug("Removed node %s (%s)", node_id, node.name)

    def rename_node(self, node_id: NodeId, name: str) -> None:
        """Change the display name of a node. Its kind and role are unaffected."""
        self.require_node(node_id).name = name

    def set_param(self, node_id: NodeId, key: str, value: Any) -> None:
        """Insert or overwrite a parameter on a node.

        The value is not checked against any schema; compute functions
        validate what they receive. Plain Python and numpy values are
        converted with `param_value`.

        Raises:
            UnknownNodeError: If the node does not exist.
            TypeError: If the value has no parameter representation
                (e.g. a mapping or a 4-element sequence).

        """
        node = self.require_node(node_id)
        node.params[key] = param_value(value)

    def remove_param(self, node_id: NodeId, key: str) -> None:
        """Delete a parameter so that the kind default applies again."""
        self.require_node(node_id).params.pop(key, None)

    # ------------------------------------------------------------------
    # Links
    # ------------------------------------------------------------------

    def _require_pin(self, pin_id: PinId) -> Pin:
        pin = self._pins.get(pin_id)
        if pin is None:
            raise UnknownPinError(pin_id)
        return pin

    def _check_link(self, from_pin: PinId, to_pin: PinId) -> tuple[Pin, Pin]:
        src = self._require_pin(from_pin)
        dst = self._require_pin(to_pin)
        if src.kind != PinKind.OUTPUT or dst.kind != PinKind.INPUT:
            msg = f"Link must go from an output to an input pin (got {src.kind} -> {dst.kind})"
            raise WrongPinKindError(msg)
        if src.pin_type != dst.pin_type:
            msg = f"Pin type mismatch: {src.pin_type} -> {dst.pin_type}"
            raise TypeMismatchError(msg)
        return src, dst

    def _check_cycle(self, src: Pin, dst: Pin) -> None:
        # src.node -> dst.node closes a cycle iff dst.node already reaches src.node
        if has_path(dst.node, src.node, self.downstream_nodes):
            msg = f"Linking node {src.node} to node {dst.node} would create a cycle"
            raise WouldCreateCycleError(msg)

    def _insert_link(self, link: Link) -> None:
        self._links[link.id] = link
        self._input_links[link.to_pin] = link.id
        self._output_links.setdefault(link.from_pin, {})[link.id] = None

    def add_link(self, from_pin: PinId, to_pin: PinId) -> LinkId:
        """Connect an output pin to an input pin.

        Args:
            from_pin: Output pin producing the value.
            to_pin: Input pin consuming it.

        Returns:
            The id of the new link.

        Raises:
            UnknownPinError: If either pin does not exist.
            WrongPinKindError: If ``from_pin`` is not an output or ``to_pin`` not an input.
            TypeMismatchError: If the pin types differ.
            InputAlreadyConnectedError: If ``to_pin`` already has an incoming link.
            WouldCreateCycleError: If the link would close a cycle between nodes.

        """
        src, dst = self._check_link(from_pin, to_pin)

        existing = self._input_links.get(to_pin)
        if existing is not None:
            raise InputAlreadyConnectedError(to_pin, existing)

        self._check_cycle(src, dst)

        link_id = LinkId(self._allocate_id())
        self._insert_link(Link(link_id, from_pin, to_pin))
        logger.debug("Added link %s: pin %s -> pin %s", link_id, from_pin, to_pin)
        return link_id

    def connect(self, from_pin: PinId, to_pin: PinId, *, replace: bool = False) -> LinkId:
        """Connect two pins, optionally replacing the link already feeding ``to_pin``.

        With ``replace=True`` the existing incoming link is severed, so the
        input ends up with exactly one link. All checks run before the old
        link is touched; a rejected link leaves the graph unchanged.
        """
        if not replace:
            return self.add_link(from_pin, to_pin)

        src, dst = self._check_link(from_pin, to_pin)
        # In a DAG no path out of dst.node re-enters it, so the link being
        # replaced cannot be part of a cycle through the new one.
        self._check_cycle(src, dst)
        previous = self.input_link(to_pin)
        if previous is not None:
            self.remove_link(previous.id)
        return self.add_link(from_pin, to_pin)

    def remove_link(self, link_id: LinkId) -> None:
        """Remove a link by id. Unknown ids are ignored."""
        link = self._links.pop(link_id, None)
        if link is None:
            return
        if self._input_links.get(link.to_pin) == link_id:
            del self._input_links[link.to_pin]
        outgoing = self._output_links.get(link.from_pin)
        if outgoing is not None:
            outgoing.pop(link_id, None)
            if not outgoing:
                del self._output_links[link.from_pin]
        logger.debug("Removed link %s", link_id)

    def remove_link_between(self, from_pin: PinId, to_pin: PinId) -> None:
        """Remove the link connecting two pins, if there is one."""
        link = self.input_link(to_pin)
        if link is not None and link.from_pin == from_pin:
            self.remove_link(link.id)

    def remove_links_for_pin(self, pin_id: PinId) -> None:
        """Remove every link touching a pin."""
        incoming = self._input_links.get(pin_id)
        if incoming is not None:
            self.remove_link(incoming)
        for link_id in list(self._output_links.get(pin_id, ())):
            self.remove_link(link_id)

    # ------------------------------------------------------------------
    # Traversal
    # ------------------------------------------------------------------

    def upstream_nodes(self, node_id: NodeId) -> list[NodeId]:
        """Nodes feeding directly into a node's inputs.

        Returned in input-pin order with duplicates removed; unconnected
        inputs are skipped.

        Raises:
            UnknownNodeError: If the node does not exist.

        """
        node = self.require_node(node_id)
        result: list[NodeId] = []
        for pin_id in node.inputs:
            link = self.input_link(pin_id)
            if link is None:
                continue
            upstream = self._pins[link.from_pin].node
            if upstream not in result:
                result.append(upstream)
        return result

    def downstream_nodes(self, node_id: NodeId) -> list[NodeId]:
        """Nodes consuming any output of a node, deduplicated.

        Returned in output-pin order, then link order.
        """
        node = self.require_node(node_id)
        result: dict[NodeId, None] = {}
        for pin_id in node.outputs:
            for link_id in self._output_links.get(pin_id, ()):
                result[self._pins[self._links[link_id].to_pin].node] = None
        return list(result)

    def ancestors(self, node_id: NodeId) -> frozenset[NodeId]:
        """All nodes a node transitively depends on."""
        return frozenset(reachable(node_id, self.upstream_nodes) - {node_id})

    def descendants(self, node_id: NodeId) -> frozenset[NodeId]:
        """All nodes that transitively depend on a node."""
        return frozenset(reachable(node_id, self.downstream_nodes) - {node_id})

    def topo_sort_from(self, node_id: NodeId) -> list[NodeId]:
        """Order a node and everything it depends on, dependencies first.

        Ties are broken by node id, so the order is deterministic.

        Raises:
            UnknownNodeError: If the node does not exist.
            CycleDetectedError: If the reachable subgraph contains a cycle.

        """
        self.require_node(node_id)
        subgraph = sorted(reachable(node_id, self.upstream_nodes))
        successors: dict[NodeId, list[NodeId]] = {n: [] for n in subgraph}
        for n in subgraph:
            for upstream in self.upstream_nodes(n):
                successors[upstream].append(n)
        try:
            return topological_sort(successors)
        except ValueError as e:
            msg = f"Cycle detected while ordering nodes upstream of {node_id}"
            raise CycleDetectedError(msg) from e

    # ------------------------------------------------------------------
    # Bulk construction
    # ------------------------------------------------------------------

    @classmethod
    def restore(
        cls,
        nodes: Iterable[Node],
        pins: Iterable[Pin],
        links: Iterable[Link],
        next_id: int = 1,
    ) -> Graph:
        """Rebuild a graph from stored records, keeping their ids.

        Ids must be unique across nodes, pins and links. Pin ownership, pin
        kinds, link types and the single-input rule are validated.
        Acyclicity is not: links are inserted as stored, and evaluation
        detects any cycle.

        Raises:
            DuplicateIdError: If two records share an id.
            GraphError: If the records are structurally inconsistent.

        """
        graph = cls()
        seen: set[int] = set()

        def claim(record_id: int, what: str) -> None:
            if record_id in seen:
                msg = f"Duplicate id {record_id} ({what})"
                raise DuplicateIdError(msg)
            seen.add(record_id)

        for node in nodes:
            claim(node.id, "node")
            graph._nodes[node.id] = node
        for pin in pins:
            claim(pin.id, "pin")
            if pin.node not in graph._nodes:
                raise UnknownNodeError(pin.node)
            graph._pins[pin.id] = pin

        for node in graph._nodes.values():
            for pin_ids, kind in ((node.inputs, PinKind.INPUT), (node.outputs, PinKind.OUTPUT)):
                for pin_id in pin_ids:
                    pin = graph._require_pin(pin_id)
                    if pin.node != node.id or pin.kind != kind:
                        msg = f"Pin {pin_id} does not belong to node {node.id} as an {kind} pin"
                        raise WrongPinKindError(msg)

        for link in links:
            claim(link.id, "link")
            graph._check_link(link.from_pin, link.to_pin)
            if link.to_pin in graph._input_links:
                raise InputAlreadyConnectedError(link.to_pin, graph._input_links[link.to_pin])
            graph._insert_link(link)

        used = [*graph._nodes, *graph._pins, *graph._links]
        graph._next_id = max(next_id, max(used, default=0) + 1)
        return graph


def find_output_node(graph: Graph) -> NodeId:
    """Locate the single node with the OUTPUT role.

    Raises:
        OutputNodeError: If there is no output node or more than one.

    """
    outputs = graph.output_nodes()
    if len(outputs) != 1:
        raise OutputNodeError(len(outputs))
    return outputs[0]
