"""Dependency graphs of rules."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

import networkx as nx


def graph_from_rules(rules: Iterable[Any]) -> nx.DiGraph:
    """Build a graph of the rules and all their transitive dependencies.

    Nodes are rule node IDs, each carrying its rule under the ``rule``
    attribute. An edge runs from a rule to each rule it depends on.
    """
    graph = nx.DiGraph()
    visited: set[str] = set()

    def add(rule: Any) -> None:
        node = rule.node_id()
        if node in visited:
            return
        visited.add(node)
        if node not in graph:
            graph.add_node(node, rule=rule)
        for dep in rule.dependencies():
            dep_node = dep.node_id()
            if dep_node not in graph:
                graph.add_node(dep_node, rule=dep)
            graph.add_edge(node, dep_node)
            add(dep)

    for rule in rules:
        add(rule)
    return graph