"""Report produced by one evaluation pass."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from grapho._graph import NodeId


@dataclass(frozen=True, slots=True)
class NodeError:
    """The node's own compute function failed."""

    node: NodeId
    message: str


@dataclass(frozen=True, slots=True)
class UpstreamError:
    """The node was skipped because ancestors failed.

    Attributes:
        node: The skipped node.
        upstream: The failing ancestors that caused the skip (root causes
            only, sorted by id).

    """

    node: NodeId
    upstream: tuple[NodeId, ...]

    @property
    def message(self) -> str:
        return f"Upstream error in nodes: {list(self.upstream)}"


type EvalError = NodeError | UpstreamError


@dataclass(frozen=True, slots=True)
class EvalCacheStats:
    hits: int = 0
    misses: int = 0


@dataclass(frozen=True, slots=True)
class EvalNodeReport:
    """Timing of one node. Cache hits report a duration of 0."""

    duration_ms: float
    cache_hit: bool


@dataclass(frozen=True, slots=True)
class EvalReport:
    """Result of one evaluation pass.

    Attributes:
        target: The node evaluation was requested for.
        output_valid: True iff the target produced a result and no error was
            recorded anywhere in its ancestry.
        computed: Nodes whose compute function ran this pass, in order.
        cache: Hit and miss counters.
        nodes: Per-node timing for every node that was served or computed.
            Nodes skipped because of upstream errors have no entry.
        errors: Errors in evaluation order.

    """

    target: NodeId
    output_valid: bool
    computed: tuple[NodeId, ...] = ()
    cache: EvalCacheStats = field(default_factory=EvalCacheStats)
    nodes: dict[NodeId, EvalNodeReport] = field(default_factory=dict)
    errors: tuple[EvalError, ...] = ()

    @property
    def success(self) -> bool:
        """Check if evaluation completed without errors."""
        return len(self.errors) == 0

    @property
    def total_ms(self) -> float:
        return sum(r.duration_ms for r in self.nodes.values())

    def error_for(self, node: NodeId) -> EvalError | None:
        """Return the error recorded for a node, if any."""
        for error in self.errors:
            if error.node == node:
                return error
        return None


def collect_error_state(report: EvalReport) -> tuple[set[NodeId], dict[NodeId, str]]:
    """Nodes to highlight and the message to show for each.

    Both nodes with upstream errors and their root-cause ancestors are
    highlighted. The first message recorded for a node wins.
    """
    nodes: set[NodeId] = set()
    messages: dict[NodeId, str] = {}
    for error in report.errors:
        nodes.add(error.node)
        messages.setdefault(error.node, error.message)
        if isinstance(error, UpstreamError):
            nodes.update(error.upstream)
    return nodes, messages
