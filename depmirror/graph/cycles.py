"""Strongly connected component search over the reference graph."""

from __future__ import annotations

from typing import Dict, Iterable, List, Mapping, Set


def strongly_connected_components(adjacency: Mapping[str, Iterable[str]]) -> List[List[str]]:
    """Return Tarjan's SCCs, visiting nodes and neighbours in sorted order.

    Iterative so that long import chains do not hit the recursion limit.
    """
    graph: Dict[str, List[str]] = {node: sorted(set(targets)) for node, targets in adjacency.items()}
    for targets in list(graph.values()):
        for target in targets:
            graph.setdefault(target, [])

    index_of: Dict[str, int] = {}
    low_link: Dict[str, int] = {}
    on_stack: Set[str] = set()
    stack: List[str] = []
    components: List[List[str]] = []
    counter = 0

    for start in sorted(graph):
        if start in index_of:
            continue
        work = [(start, 0)]
        while work:
            node, position = work.pop()
            if position == 0:
                index_of[node] = low_link[node] = counter
                counter += 1
                stack.append(node)
                on_stack.add(node)
            neighbours = graph[node]
            if position < len(neighbours):
                work.append((node, position + 1))
                target = neighbours[position]
                if target not in index_of:
                    work.append((target, 0))
                elif target in on_stack:
                    low_link[node] = min(low_link[node], index_of[target])
                continue
            if low_link[node] == index_of[node]:
                component: List[str] = []
                while True:
                    member = stack.pop()
                    on_stack.discard(member)
                    component.append(member)
                    if member == node:
                        break
                components.append(sorted(component))
            if work:
                parent = work[-1][0]
                low_link[parent] = min(low_link[parent], low_link[node])
    return components


def find_cycles(adjacency: Mapping[str, Iterable[str]]) -> List[List[str]]:
    """Return components that form a cycle: more than one node, or a node importing itself."""
    cycles: List[List[str]] = []
    for component in strongly_connected_components(adjacency):
        if len(component) > 1:
            cycles.append(component)
            continue
        node = component[0]
        if node in set(adjacency.get(node, ())):
            cycles.append(component)
    return sorted(cycles)


__all__ = ["find_cycles", "strongly_connected_components"]
