"""Dependency graph utilities.

Provides topological sorting for determining publish order in a workspace.
Packages must be published in dependency order so that when package B
depends on package A, A is already on the index when B is uploaded.

Nodes live in an arena and are referred to by integer handle; edges point
from a dependency to its dependents.
"""

from __future__ import annotations

import heapq
from collections import deque
from collections.abc import Iterator

from .errors import CircularDependencyError
from .models import Package, Workspace


class DependencyGraph:
    """Directed graph over package names.

    An edge ``a -> b`` means "b depends on a", so a topological order lists
    dependencies before dependents.
    """

    def __init__(self) -> None:
        self._names: list[str] = []
        self._handles: dict[str, int] = {}
        self._dependents: list[list[int]] = []

    def add_node(self, name: str) -> int:
        """Add ``name`` (if new) and return its handle."""
        if name in self._handles:
            return self._handles[name]
        handle = len(self._names)
        self._names.append(name)
        self._handles[name] = handle
        self._dependents.append([])
        return handle

    def add_edge(self, dependency: str, dependent: str) -> None:
        """Record that ``dependent`` must be released after ``dependency``."""
        src = self._handles[dependency]
        dst = self._handles[dependent]
        if dst not in self._dependents[src]:
            self._dependents[src].append(dst)

    def __len__(self) -> int:
        return len(self._names)

    def __contains__(self, name: object) -> bool:
        return name in self._handles

    @property
    def nodes(self) -> list[str]:
        return list(self._names)

    def edges(self) -> list[tuple[str, str]]:
        """All edges as (dependency, dependent) name pairs."""
        return [
            (self._names[src], self._names[dst])
            for src, targets in enumerate(self._dependents)
            for dst in targets
        ]

    def dependents(self, name: str) -> list[str]:
        """Names of the packages that depend directly on ``name``."""
        return [self._names[h] for h in self._dependents[self._handles[name]]]


def build_graph(workspace: Workspace) -> DependencyGraph:
    """Build the internal dependency graph of a workspace.

    Self-references and dependencies outside the workspace (third-party
    packages) do not become edges.
    """
    graph = DependencyGraph()
    for name in workspace.packages:
        graph.add_node(name)

    for name, package in workspace.packages.items():
        for dep in package.dependency_names:
            if dep == name or dep not in graph:
                continue
            graph.add_edge(dep, name)
    return graph


def topo_sort(graph: DependencyGraph) -> list[str]:
    """Topologically sort a dependency graph.

    Uses Kahn's algorithm. Whenever several packages are ready at once, the
    alphabetically smallest goes first, so the same workspace always yields
    the same order.

    Returns:
        Package names in publish order (dependencies first).

    Raises:
        CircularDependencyError: If the graph has a cycle. The error lists
            every strongly-connected component involved.

    Example:
        If A depends on B, and B depends on C:
        topo_sort(graph) → [C, B, A]
    """
    in_degree = {name: 0 for name in graph.nodes}
    for _, dependent in graph.edges():
        in_degree[dependent] += 1

    ready = [name for name, degree in in_degree.items() if degree == 0]
    heapq.heapify(ready)
    order: list[str] = []

    while ready:
        node = heapq.heappop(ready)
        order.append(node)
        for dependent in graph.dependents(node):
            in_degree[dependent] -= 1
            if in_degree[dependent] == 0:
                heapq.heappush(ready, dependent)

    if len(order) != len(graph):
        raise CircularDependencyError(find_cycles(graph))

    return order


def strongly_connected_components(graph: DependencyGraph) -> list[list[str]]:
    """Tarjan's algorithm over the graph, returning every component.

    Iterative, so deep dependency chains stay under the recursion limit.
    """
    index_of: dict[str, int] = {}
    lowlink: dict[str, int] = {}
    on_stack: set[str] = set()
    stack: list[str] = []
    components: list[list[str]] = []

    def enter(node: str) -> tuple[str, Iterator[str]]:
        index_of[node] = lowlink[node] = len(index_of)
        stack.append(node)
        on_stack.add(node)
        return node, iter(graph.dependents(node))

    for root in sorted(graph.nodes):
        if root in index_of:
            continue
        work = [enter(root)]
        while work:
            node, successors = work[-1]
            for succ in successors:
                if succ not in index_of:
                    work.append(enter(succ))
                    break
                if succ in on_stack:
                    lowlink[node] = min(lowlink[node], index_of[succ])
            else:
                work.pop()
                if work:
                    parent = work[-1][0]
                    lowlink[parent] = min(lowlink[parent], lowlink[node])
                if lowlink[node] == index_of[node]:
                    component: list[str] = []
                    while True:
                        member = stack.pop()
                        on_stack.discard(member)
                        component.append(member)
                        if member == node:
                            break
                    components.append(component)
    return components


def _shortest_path(
    graph: DependencyGraph, members: set[str], source: str, target: str
) -> list[str]:
    """Breadth-first path from ``source`` to ``target`` inside ``members``."""
    previous: dict[str, str | None] = {source: None}
    queue = deque([source])
    while queue:
        node = queue.popleft()
        if node == target:
            break
        for succ in sorted(graph.dependents(node)):
            if succ in members and succ not in previous:
                previous[succ] = node
                queue.append(succ)

    path = [target]
    while path[-1] != source:
        path.append(previous[path[-1]])
    path.reverse()
    return path


def _cycle_chain(graph: DependencyGraph, component: list[str]) -> list[str]:
    """Closed walk over a component along real edges.

    Members are visited in depth-first order from the smallest name; where
    the next member is not a direct successor, the shortest path to it is
    spliced in. Every consecutive pair in the result is an edge.
    """
    members = set(component)
    start = min(component)

    order = [start]
    seen = {start}
    work = [iter(sorted(graph.dependents(start)))]
    while work:
        for succ in work[-1]:
            if succ in members and succ not in seen:
                seen.add(succ)
                order.append(succ)
                work.append(iter(sorted(graph.dependents(succ))))
                break
        else:
            work.pop()

    chain = [start]
    walked = {start}
    for target in order[1:]:
        if target in walked:
            continue
        hops = _shortest_path(graph, members, chain[-1], target)[1:]
        chain.extend(hops)
        walked.update(hops)
    chain.extend(_shortest_path(graph, members, chain[-1], start)[1:])
    return chain


def find_cycles(graph: DependencyGraph) -> list[list[str]]:
    """Describe every dependency cycle in the graph.

    Only components with two or more packages are cycles; self-edges are
    never added to the graph.

    Returns:
        One chain per cyclic component, e.g. ``["a", "b", "c", "a"]``,
        sorted by their first package.
    """
    cycles = [
        _cycle_chain(graph, component)
        for component in strongly_connected_components(graph)
        if len(component) > 1
    ]
    return sorted(cycles)


def filter_releasable(packages: list[Package]) -> list[Package]:
    """Keep only packages that may be uploaded, preserving their order."""
    return [p for p in packages if p.releasable]


def release_order(workspace: Workspace) -> list[Package]:
    """Return every workspace package in publish order.

    Raises:
        CircularDependencyError: If the packages depend on each other in a
            cycle.
    """
    order = topo_sort(build_graph(workspace))
    return [workspace.packages[name] for name in order]
