"""Whole-graph statistics for the ``info`` and ``stats`` commands."""

from __future__ import annotations

from collections import Counter
from typing import Any, Dict, List, Tuple

from .models import DocpackGraph, Node


def count_node_kinds(graph: DocpackGraph) -> List[Tuple[str, int]]:
    counts = Counter(node.kind_str for node in graph.nodes.values())
    return sorted(counts.items(), key=lambda item: (-item[1], item[0]))


def count_edge_kinds(graph: DocpackGraph) -> List[Tuple[str, int]]:
    counts = Counter(edge.kind.value for edge in graph.edges)
    return sorted(counts.items(), key=lambda item: (-item[1], item[0]))


def complexity_summary(graph: DocpackGraph, top_n: int = 5) -> Dict[str, Any]:
    """Average/max complexity and the most complex nodes."""
    scored = [
        (node, node.metadata.complexity)
        for node in graph.nodes.values()
        if node.metadata.complexity is not None
    ]
    if not scored:
        return {"count": 0, "avg": 0.0, "max": 0, "top": []}

    total = sum(c for _, c in scored)
    top = sorted(scored, key=lambda item: item[1], reverse=True)[:top_n]
    return {
        "count": len(scored),
        "avg": total / len(scored),
        "max": max(c for _, c in scored),
        "top": top,
    }


def fan_in_summary(graph: DocpackGraph, top_n: int = 5) -> Dict[str, Any]:
    nodes = list(graph.nodes.values())
    if not any(n.metadata.fan_in > 0 for n in nodes):
        return {"max_fan_in": 0, "max_fan_out": 0, "top": []}

    by_fan_in = sorted(nodes, key=lambda n: n.metadata.fan_in, reverse=True)
    top: List[Node] = [n for n in by_fan_in[:top_n] if n.metadata.fan_in > 0]
    return {
        "max_fan_in": by_fan_in[0].metadata.fan_in,
        "max_fan_out": max(n.metadata.fan_out for n in nodes),
        "top": top,
    }


def public_api_breakdown(graph: DocpackGraph) -> Dict[str, int]:
    counts = Counter(node.kind_str for node in graph.nodes.values() if node.metadata.is_public_api)
    return dict(sorted(counts.items()))
