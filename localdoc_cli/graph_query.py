"""Node lookup, filtering and name search over one docpack graph."""

from __future__ import annotations

from typing import Dict, List, Optional

from .models import DocpackGraph, EdgeKind, Node, NodeId


class NodeNotFoundError(LookupError):
    """Raised when a node id is not present in the graph."""

    def __init__(self, node_id: NodeId) -> None:
        super().__init__(f"Node '{node_id}' not found in graph")
        self.node_id = node_id


def get_node(graph: DocpackGraph, node_id: NodeId) -> Node:
    try:
        return graph.nodes[node_id]
    except KeyError:
        raise NodeNotFoundError(node_id) from None


def filter_nodes(
    graph: DocpackGraph,
    kind: Optional[str] = None,
    public_only: bool = False,
) -> List[Node]:
    """Nodes matching a kind name (case-insensitive) and visibility, sorted by name.

    Args:
        graph: Graph to scan.
        kind: Kind name such as ``function`` or ``Cluster``. ``None`` keeps every kind.
        public_only: Keep only nodes whose kind reports them public.

    Returns:
        Matching nodes ordered by display name, then id.
    """
    nodes = list(graph.nodes.values())
    if kind is not None:
        wanted = kind.lower()
        nodes = [n for n in nodes if n.kind_str == wanted]
    if public_only:
        nodes = [n for n in nodes if n.is_public]
    return sorted(nodes, key=lambda n: (n.name, n.id))


def search_nodes(graph: DocpackGraph, query: str, case_sensitive: bool = False) -> List[Node]:
    """Nodes whose display name contains ``query``, sorted by name."""
    if case_sensitive:
        matches = [n for n in graph.nodes.values() if query in n.name]
    else:
        needle = query.lower()
        matches = [n for n in graph.nodes.values() if needle in n.name.lower()]
    return sorted(matches, key=lambda n: (n.name, n.id))


def group_edges(graph: DocpackGraph, node_id: NodeId, outgoing: bool = True) -> Dict[EdgeKind, List[NodeId]]:
    """Neighbours of a node grouped by edge kind, in edge order.

    With ``outgoing`` the targets of edges leaving the node are listed,
    otherwise the sources of edges arriving at it.
    """
    groups: Dict[EdgeKind, List[NodeId]] = {}
    for edge in graph.edges:
        if outgoing and edge.source == node_id:
            groups.setdefault(edge.kind, []).append(edge.target)
        elif not outgoing and edge.target == node_id:
            groups.setdefault(edge.kind, []).append(edge.source)
    return groups


def node_metrics(node: Node) -> List[str]:
    """Short ``name=value`` metric labels; empty when the node has none worth showing."""
    meta = node.metadata
    if meta.complexity is None and meta.fan_in == 0:
        return []
    metrics = []
    if meta.complexity is not None:
        metrics.append(f"complexity={meta.complexity}")
    if meta.fan_in > 0:
        metrics.append(f"fan-in={meta.fan_in}")
    if meta.fan_out > 0:
        metrics.append(f"fan-out={meta.fan_out}")
    return metrics
