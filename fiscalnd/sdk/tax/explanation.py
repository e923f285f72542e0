"""Explanation graph construction.

Nodes live in an arena keyed by id with the root id recorded separately, so
children are plain id references and cycles cannot be built by accident.
Ids come from a per-graph counter, which keeps repeated runs identical.
"""

from typing import Any, Dict, List, Optional, Sequence

from .schemas import ExplanationGraph, ExplanationNode


class ExplanationGraphError(ValueError):
    """Raised when a graph is not a single rooted, acyclic tree of known ids."""


class ExplanationBuilder:
    """Builds an ExplanationGraph node by node.

    Usage:
        builder = ExplanationBuilder()
        income = builder.add("Income aggregation", "sum(incomes)", outputs={"gross_income": 1.0})
        root = builder.add("Tax estimate", "federal tax + state tax", children=[income])
        graph = builder.build(root)
    """

    def __init__(self, prefix: str = "node"):
        self._prefix = prefix
        self._next = 1
        self._nodes: Dict[str, ExplanationNode] = {}

    def _new_id(self) -> str:
        node_id = f"{self._prefix}-{self._next}"
        self._next += 1
        return node_id

    def add(
        self,
        label: str,
        formula: str,
        inputs: Optional[Dict[str, Any]] = None,
        outputs: Optional[Dict[str, Any]] = None,
        children: Sequence[str] = (),
        transaction_refs: Sequence[str] = (),
    ) -> str:
        """Add a node and return its id. Children must already exist."""
        for child_id in children:
            if child_id not in self._nodes:
                raise ExplanationGraphError(f"unknown child node {child_id}")

        node_id = self._new_id()
        self._nodes[node_id] = ExplanationNode(
            node_id=node_id,
            label=label,
            formula=formula,
            inputs=dict(inputs or {}),
            outputs=dict(outputs or {}),
            children=list(children),
            transaction_refs=list(transaction_refs),
        )
        return node_id

    def build(self, root_id: str) -> ExplanationGraph:
        graph = ExplanationGraph(root_id=root_id, nodes=dict(self._nodes))
        validate_graph(graph)
        return graph


def validate_graph(graph: ExplanationGraph) -> None:
    """Check the graph is rooted, acyclic, fully reachable, and every child resolves.

    Raises:
        ExplanationGraphError: On the first violation found
    """
    if graph.root_id not in graph.nodes:
        raise ExplanationGraphError(f"root node {graph.root_id} is not in the graph")

    for node_id, node in graph.nodes.items():
        if node.node_id != node_id:
            raise ExplanationGraphError(f"node stored under {node_id} has id {node.node_id}")
        for child_id in node.children:
            if child_id not in graph.nodes:
                raise ExplanationGraphError(f"node {node_id} references unknown child {child_id}")

    visited = set()
    stack: List[str] = [graph.root_id]
    while stack:
        node_id = stack.pop()
        if node_id in visited:
            raise ExplanationGraphError(f"node {node_id} is reachable twice (cycle or shared child)")
        visited.add(node_id)
        stack.extend(graph.nodes[node_id].children)

    unreachable = set(graph.nodes) - visited
    if unreachable:
        raise ExplanationGraphError(f"nodes not reachable from root: {', '.join(sorted(unreachable))}")
