"""Mesh evaluation: the evaluation engine bound to the builtin node kinds."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from grapho._eval_engine import ComputeError, EvalCache, EvalReport, evaluate
from grapho._nodes import builtin_kind_from_name, compute_mesh_node

if TYPE_CHECKING:
    from grapho._graph import Graph, Node, NodeId
    from grapho._mesh import Mesh
    from grapho._params import NodeParams

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class MeshEvalState:
    """State kept between mesh evaluation passes of one graph."""

    cache: EvalCache[Mesh] = field(default_factory=EvalCache)


@dataclass(frozen=True, slots=True)
class MeshEvalResult:
    """Report of a pass plus the target's mesh.

    ``output`` is a copy owned by the caller, or None when the report is
    not ``output_valid``.
    """

    report: EvalReport
    output: Mesh | None


def compute_builtin(node: Node, params: NodeParams, inputs: list[Mesh]) -> Mesh:
    """Compute function dispatching on the node's kind."""
    kind = builtin_kind_from_name(node.kind)
    if kind is None:
        msg = f"unknown node type {node.kind}"
        raise ComputeError(msg)
    return compute_mesh_node(kind, params, inputs)


def evaluate_mesh_graph(graph: Graph, output: NodeId, state: MeshEvalState) -> MeshEvalResult:
    """Evaluate the mesh produced by ``output``.

    Raises:
        UnknownNodeError: If ``output`` is not in the graph.
        CycleDetectedError: If its dependencies contain a cycle.

    """
    report = evaluate(graph, output, state.cache, compute_builtin)
    mesh = state.cache.result(output) if report.output_valid else None

    logger.debug(
        "Mesh evaluation of %s: %d computed, %d hits, %d errors",
        output,
        len(report.computed),
        report.cache.hits,
        len(report.errors),
    )
    return MeshEvalResult(report=report, output=None if mesh is None else mesh.copy())
