"""Core incremental evaluation engine for node graphs."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from typing import TYPE_CHECKING

from ._cache import fingerprint
from ._errors import ComputeError
from ._report import EvalCacheStats, EvalNodeReport, EvalReport, NodeError, UpstreamError

if TYPE_CHECKING:
    from grapho._graph import Graph, Node, NodeId
    from grapho._params import NodeParams

    from ._cache import EvalCache
    from ._report import EvalError

logger = logging.getLogger(__name__)

type ComputeFn[R] = Callable[[Node, NodeParams, list[R]], R]

# Exceptions from a compute function that are reported against the node
# instead of aborting the pass.
_COMPUTE_ERRORS = (
    ComputeError,
    TypeError,
    ValueError,
    AttributeError,
    KeyError,
    IndexError,
    ArithmeticError,
    RuntimeError,
)


def _error_message(error: Exception) -> str:
    if isinstance(error, ComputeError):
        return error.message
    return f"Evaluation error: {error}"


def evaluate[R](
    graph: Graph,
    target: NodeId,
    cache: EvalCache[R],
    compute: ComputeFn[R],
) -> EvalReport:
    """Evaluate ``target`` and everything it depends on, reusing cached results.

    The pass:
    1. Drops cache entries of nodes no longer in the graph
    2. Orders the target's dependency subgraph topologically
    3. For each node in order, skips it if an upstream node failed;
       otherwise fingerprints it and serves it from the cache or computes it
    4. Reports which nodes ran, hit/miss counts, timings and errors

    Node failures never abort the pass. They are reported as a `NodeError`
    for the failing node and an `UpstreamError` for each descendant, which
    is not computed. Failed results are not cached.

    Args:
        graph: The graph to evaluate. Must not be mutated during the call.
        target: The node whose result is wanted.
        cache: Cache carried across passes; updated in place.
        compute: Called as ``compute(node, params, upstream_results)`` where
            ``upstream_results`` follows `Graph.upstream_nodes` order. Must be
            pure. Raises `ComputeError` on failure.

    Returns:
        The report of this pass. Successful results, including the target's,
        are available from ``cache``.

    Raises:
        UnknownNodeError: If ``target`` is not in the graph.
        CycleDetectedError: If the target's dependencies contain a cycle.
            Nothing is computed or cached in that case.

    """
    graph.require_node(target)
    cache.prune(graph)
    order = graph.topo_sort_from(target)

    logger.debug("Starting evaluation of node %s with %d nodes in order", target, len(order))

    results: dict[NodeId, R] = {}
    fingerprints: dict[NodeId, str] = {}
    # failing node -> root-cause nodes
    failed: dict[NodeId, frozenset[NodeId]] = {}
    errors: list[EvalError] = []
    computed: list[NodeId] = []
    node_reports: dict[NodeId, EvalNodeReport] = {}
    hits = 0
    misses = 0

    for node_id in order:
        node = graph.require_node(node_id)
        upstream = graph.upstream_nodes(node_id)

        roots = frozenset().union(*(failed[u] for u in upstream if u in failed))
        if roots:
            logger.debug("Skipping %s (upstream errors in %s)", node_id, sorted(roots))
            failed[node_id] = roots
            errors.append(UpstreamError(node_id, tuple(sorted(roots))))
            continue

        node_fingerprint = fingerprint(node.kind, node.params, [fingerprints[u] for u in upstream])
        fingerprints[node_id] = node_fingerprint

        entry = cache.lookup(node_id, node_fingerprint)
        if entry is not None:
            logger.debug("Cache hit for %s (%s)", node_id, node.name)
            results[node_id] = entry.result  # type: ignore[assignment]
            node_reports[node_id] = EvalNodeReport(duration_ms=0.0, cache_hit=True)
            hits += 1
            continue

        logger.debug("Evaluating %s (%s)", node_id, node.name)
        inputs = [results[u] for u in upstream]
        start = time.perf_counter()
        try:
            result = compute(node, node.params.copy(), inputs)
        except _COMPUTE_ERRORS as e:
            duration_ms = (time.perf_counter() - start) * 1000.0
            message = _error_message(e)
            logger.debug("Node %s failed: %s", node_id, message)
            cache.store_failure(node_id, node_fingerprint)
            failed[node_id] = frozenset({node_id})
            errors.append(NodeError(node_id, message))
            node_reports[node_id] = EvalNodeReport(duration_ms=duration_ms, cache_hit=False)
            computed.append(node_id)
            misses += 1
            continue
        duration_ms = (time.perf_counter() - start) * 1000.0

        cache.store_success(node_id, node_fingerprint, result)
        results[node_id] = result
        node_reports[node_id] = EvalNodeReport(duration_ms=duration_ms, cache_hit=False)
        computed.append(node_id)
        misses += 1

    output_valid = target in results and not errors

    return EvalReport(
        target=target,
        output_valid=output_valid,
        computed=tuple(computed),
        cache=EvalCacheStats(hits=hits, misses=misses),
        nodes=node_reports,
        errors=tuple(errors),
    )
