"""Graph algorithms for dependency graph operations."""

from collections import defaultdict, deque
from collections.abc import Callable, Collection, Hashable, Iterable, Mapping


def topological_sort[T: Hashable](successors: Mapping[T, Collection[T]]) -> list[T]:
    """Sort a graph topologically (dependencies before dependents).

    Given a graph represented as a mapping from nodes to their successors
    (nodes that depend on them), return nodes in an order where each node
    appears before all nodes that depend on it. Ties are broken by the
    iteration order of ``successors``.

    Args:
        successors: Mapping from node to collection of nodes that depend on it.
            An edge (a -> b) means "b depends on a".

    Returns:
        List of nodes in topological order.

    Raises:
        ValueError: If the graph contains a cycle.

    Example:
        >>> topological_sort({"a": ["b"], "b": ["c"], "c": []})
        ['a', 'b', 'c']

    """
    indegree: defaultdict[T, int] = defaultdict(int)
    for node, deps in successors.items():
        indegree[node] = indegree.get(node, 0)
        for dep in deps:
            indegree[dep] += 1

    queue = deque([node for node, deg in indegree.items() if deg == 0])
    order: list[T] = []

    while queue:
        node = queue.popleft()
        order.append(node)
        for successor in successors.get(node, []):
            indegree[successor] -= 1
            if indegree[successor] == 0:
                queue.append(successor)

    if len(order) != len(indegree):
        msg = "Cycle detected in graph"
        raise ValueError(msg)

    return order


def reachable[T: Hashable](start: T, neighbors: Callable[[T], Iterable[T]]) -> set[T]:
    """Collect every node reachable from ``start`` (inclusive) by following ``neighbors``."""
    visited: set[T] = {start}
    stack = [start]
    while stack:
        current = stack.pop()
        for nxt in neighbors(current):
            if nxt not in visited:
                visited.add(nxt)
                stack.append(nxt)
    return visited


def has_path[T: Hashable](start: T, goal: T, neighbors: Callable[[T], Iterable[T]]) -> bool:
    """Depth-first search for a path from ``start`` to ``goal``.

    A node always reaches itself.
    """
    if start == goal:
        return True
    visited: set[T] = {start}
    stack = [start]
    while stack:
        current = stack.pop()
        for nxt in neighbors(current):
            if nxt == goal:
                return True
            if nxt not in visited:
                visited.add(nxt)
                stack.append(nxt)
    return False
