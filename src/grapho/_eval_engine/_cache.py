"""Evaluation cache persisted across passes, and node fingerprints."""

from __future__ import annotations

import hashlib
import json
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterator, Sequence

    from grapho._graph import Graph, NodeId
    from grapho._params import NodeParams

logger = logging.getLogger(__name__)


def fingerprint(kind: str, params: NodeParams, upstream: Sequence[str]) -> str:
    """Summarize everything that determines a node's result.

    The fingerprint is a SHA256 over the node kind, the key-sorted parameter
    snapshot and the ordered fingerprints of the node's direct upstream
    nodes. Because upstream fingerprints are themselves transitive, any
    change anywhere upstream changes the fingerprint.

    Args:
        kind: The node's compute kind.
        params: The node's current parameters.
        upstream: Fingerprints of the direct upstream nodes, in input order.

    Returns:
        Hex digest string.

    """
    payload = json.dumps(
        {"kind": kind, "params": params.fingerprint_data(), "upstream": list(upstream)},
        sort_keys=True,
        separators=(",", ":"),
    )
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()


@dataclass(slots=True)
class CacheEntry[R]:
    """Last computation of one node.

    Attributes:
        fingerprint: Fingerprint of the inputs of the last attempt.
        result: The last good result, or None if the last attempt failed.
        succeeded: Whether the last attempt succeeded.

    """

    fingerprint: str
    result: R | None
    succeeded: bool


class EvalCache[R]:
    """Table of cache entries keyed by node id, owned by the caller.

    One cache belongs to one graph; independent graphs need independent
    caches. It is never persisted.
    """

    def __init__(self) -> None:
        self._entries: dict[NodeId, CacheEntry[R]] = {}

    def get(self, node: NodeId) -> CacheEntry[R] | None:
        return self._entries.get(node)

    def lookup(self, node: NodeId, node_fingerprint: str) -> CacheEntry[R] | None:
        """Return the entry only if it is a success with a matching fingerprint."""
        entry = self._entries.get(node)
        if entry is None or not entry.succeeded or entry.fingerprint != node_fingerprint:
            return None
        return entry

    def result(self, node: NodeId) -> R | None:
        entry = self._entries.get(node)
        return None if entry is None else entry.result

    def store_success(self, node: NodeId, node_fingerprint: str, result: R) -> None:
        entry = self._entries.get(node)
        if entry is None:
            self._entries[node] = CacheEntry(node_fingerprint, result, succeeded=True)
        else:
            entry.fingerprint = node_fingerprint
            entry.result = result
            entry.succeeded = True

    def store_failure(self, node: NodeId, node_fingerprint: str) -> None:
        """Drop the stored result so the next pass retries the node."""
        entry = self._entries.get(node)
        if entry is None:
            return
        entry.fingerprint = node_fingerprint
        entry.result = None
        entry.succeeded = False

    def forget(self, node: NodeId) -> None:
        self._entries.pop(node, None)

    def prune(self, graph: Graph) -> list[NodeId]:
        """Remove entries of nodes that are no longer in the graph.

        Returns:
            The ids whose entries were removed.

        """
        stale = [node for node in self._entries if node not in graph]
        for node in stale:
            del self._entries[node]
        if stale:
            logger.debug("Pruned cache entries for removed nodes %s", stale)
        return stale

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, node: object) -> bool:
        return node in self._entries

    def __iter__(self) -> Iterator[NodeId]:
        return iter(self._entries)
