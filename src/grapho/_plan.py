"""TOML build plans used by the headless runner to construct graphs."""

from __future__ import annotations

import logging
import tomllib
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from grapho._graph import (
    Graph,
    GraphError,
    NodeDefinition,
    NodeId,
    PinDefinition,
    PinId,
    PinKind,
    PinType,
)
from grapho._nodes import builtin_kind_from_name, node_definition

if TYPE_CHECKING:
    from pathlib import Path

logger = logging.getLogger(__name__)


class PlanError(Exception):
    """A plan is invalid or cannot be built into a graph."""


class PlanPin(BaseModel):
    name: str
    pin_type: PinType


class PlanNode(BaseModel):
    """One node of a plan.

    Builtin kinds get their standard pins. Any other kind must declare its
    pins explicitly; it can be built and saved but evaluates to an
    "unknown node type" error.
    """

    name: str
    kind: str
    category: str | None = None
    params: dict[str, Any] = Field(default_factory=dict)
    inputs: list[PlanPin] | None = None
    outputs: list[PlanPin] | None = None


class PlanLink(BaseModel):
    """A link between ``"node.pin"`` endpoints."""

    model_config = ConfigDict(populate_by_name=True)

    from_: str = Field(alias="from")
    to: str


class Plan(BaseModel):
    output_node: str | None = None
    nodes: list[PlanNode] = Field(default_factory=list)
    links: list[PlanLink] = Field(default_factory=list)


@dataclass(frozen=True, slots=True)
class BuiltPlan:
    """A graph built from a plan, with the plan's node names resolved to ids."""

    graph: Graph
    node_ids: dict[str, NodeId]
    output: NodeId | None


def default_plan() -> Plan:
    """A minimal Box -> Output plan."""
    return Plan(
        output_node="output",
        nodes=[
            PlanNode(name="box", kind="Box", params={"size": [1.0, 1.0, 1.0]}),
            PlanNode(name="output", kind="Output"),
        ],
        links=[PlanLink(from_="box.out", to="output.in")],
    )


def load_plan(path: Path) -> Plan:
    """Read and validate a plan TOML file.

    Raises:
        PlanError: If the file is not valid TOML or does not match the plan schema.

    """
    with path.open("rb") as f:
        try:
            data = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            msg = f"Invalid TOML in {path}: {e}"
            raise PlanError(msg) from e

    try:
        return Plan.model_validate(data)
    except ValidationError as e:
        msg = f"Invalid plan in {path}: {e}"
        raise PlanError(msg) from e


def plan_to_toml_data(plan: Plan) -> dict[str, Any]:
    """Convert a plan to plain data for ``tomli_w``. TOML has no null, so None fields are dropped."""
    return plan.model_dump(mode="json", by_alias=True, exclude_none=True)


def _definition_for(node: PlanNode) -> NodeDefinition:
    kind = builtin_kind_from_name(node.kind)
    if kind is not None and node.inputs is None and node.outputs is None:
        base = node_definition(kind)
        return NodeDefinition(
            name=node.name,
            kind=base.kind,
            category=node.category or base.category,
            inputs=base.inputs,
            outputs=base.outputs,
            role=base.role,
        )

    if kind is None and node.inputs is None and node.outputs is None:
        msg = f"Node '{node.name}' has unknown kind '{node.kind}' and declares no pins"
        raise PlanError(msg)

    return NodeDefinition(
        name=node.name,
        kind=node.kind,
        category=node.category or "Default",
        inputs=tuple(PinDefinition(p.name, p.pin_type) for p in node.inputs or ()),
        outputs=tuple(PinDefinition(p.name, p.pin_type) for p in node.outputs or ()),
    )


def _split_endpoint(endpoint: str) -> tuple[str, str]:
    node, sep, pin = endpoint.rpartition(".")
    if not sep or not node or not pin:
        msg = f"Invalid link endpoint '{endpoint}'. Expected format: 'node.pin'"
        raise PlanError(msg)
    return node, pin


def build_graph(plan: Plan) -> BuiltPlan:
    """Build a graph from a plan.

    Raises:
        PlanError: On duplicate or unknown node names, unknown pins, invalid
            parameter values or links the graph rejects.

    """
    graph = Graph()
    node_ids: dict[str, NodeId] = {}

    for plan_node in plan.nodes:
        if plan_node.name in node_ids:
            msg = f"Duplicate node name '{plan_node.name}'"
            raise PlanError(msg)
        node_id = graph.add_node(_definition_for(plan_node))
        node_ids[plan_node.name] = node_id
        for key, value in plan_node.params.items():
            try:
                graph.set_param(node_id, key, value)
            except TypeError as e:
                msg = f"Node '{plan_node.name}' parameter '{key}': {e}"
                raise PlanError(msg) from e

    def resolve(endpoint: str, kind: PinKind) -> PinId:
        node_name, pin_name = _split_endpoint(endpoint)
        if node_name not in node_ids:
            msg = f"Unknown node '{node_name}' in link endpoint '{endpoint}'"
            raise PlanError(msg)
        pin = graph.find_pin(node_ids[node_name], pin_name, kind)
        if pin is None:
            msg = f"Unknown {kind} pin '{pin_name}' on node '{node_name}'"
            raise PlanError(msg)
        return pin.id

    for link in plan.links:
        from_pin = resolve(link.from_, PinKind.OUTPUT)
        to_pin = resolve(link.to, PinKind.INPUT)
        try:
            graph.add_link(from_pin, to_pin)
        except GraphError as e:
            msg = f"Link {link.from_} -> {link.to} rejected: {e}"
            raise PlanError(msg) from e

    output: NodeId | None = None
    if plan.output_node is not None:
        if plan.output_node not in node_ids:
            msg = f"Output node '{plan.output_node}' not found"
            raise PlanError(msg)
        output = node_ids[plan.output_node]

    logger.debug("Built graph with %d nodes and %d links", len(graph), len(plan.links))
    return BuiltPlan(graph=graph, node_ids=node_ids, output=output)
