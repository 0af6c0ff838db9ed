"""Semantic cluster relationships and a coarse 2-D centroid layout."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

from . import config
from .models import ClusterNode, DocpackGraph, FunctionNode, NodeId, TypeNode

logger = logging.getLogger(__name__)

ClusterPair = Tuple[int, int]


@dataclass(frozen=True)
class ClusterInfo:
    """Summary of one cluster node and the members it resolves to."""
    id: NodeId
    name: str
    topic: Optional[str]
    keywords: List[str]
    members: List[NodeId]
    functions: int
    types: int
    avg_complexity: float
    centroid: Optional[List[float]] = None

    @property
    def member_count(self) -> int:
        return len(self.members)


@dataclass(frozen=True)
class CentroidPoint:
    cluster_index: int
    x: int
    y: int


@dataclass
class CentroidProjection:
    """Grid placement of cluster centroids. ``grid[y][x]`` is a cluster index."""
    width: int
    height: int
    points: List[CentroidPoint] = field(default_factory=list)
    grid: List[List[Optional[int]]] = field(default_factory=list)


def collect_clusters(graph: DocpackGraph) -> List[ClusterInfo]:
    """Gather every cluster node, largest first (ties by id).

    The position in the returned list is the cluster index used by the
    relationship table and the projection.
    """
    clusters: List[ClusterInfo] = []

    for node in graph.cluster_nodes():
        cluster: ClusterNode = node.kind
        functions = 0
        types = 0
        complexities: List[int] = []

        for member_id in cluster.members:
            member = graph.nodes.get(member_id)
            if member is None:
                continue
            if isinstance(member.kind, FunctionNode):
                functions += 1
            elif isinstance(member.kind, TypeNode):
                types += 1
            if member.metadata.complexity is not None:
                complexities.append(member.metadata.complexity)

        avg_complexity = sum(complexities) / len(complexities) if complexities else 0.0

        clusters.append(
            ClusterInfo(
                id=node.id,
                name=cluster.name,
                topic=cluster.topic,
                keywords=list(cluster.keywords),
                members=list(cluster.members),
                functions=functions,
                types=types,
                avg_complexity=avg_complexity,
                centroid=list(cluster.centroid) if cluster.centroid is not None else None,
            )
        )

    clusters.sort(key=lambda c: (-c.member_count, c.id))
    return clusters


def canonical_pair(a: int, b: int) -> ClusterPair:
    return (a, b) if a <= b else (b, a)


def compute_cluster_relationships(
    graph: DocpackGraph, clusters: Sequence[ClusterInfo]
) -> Dict[ClusterPair, int]:
    """Count edges that cross from one cluster to another.

    A node listed in several clusters belongs to the last one enumerated.
    Edges inside one cluster, or touching an unclustered node, are ignored.
    """
    member_to_cluster: Dict[NodeId, int] = {}
    for idx, cluster in enumerate(clusters):
        for member_id in cluster.members:
            member_to_cluster[member_id] = idx

    relationships: Dict[ClusterPair, int] = {}
    for edge in graph.edges:
        src_cluster = member_to_cluster.get(edge.source)
        dst_cluster = member_to_cluster.get(edge.target)
        if src_cluster is None or dst_cluster is None:
            continue
        if src_cluster == dst_cluster:
            continue
        key = canonical_pair(src_cluster, dst_cluster)
        relationships[key] = relationships.get(key, 0) + 1

    logger.debug("Cluster relationships: %d linked pairs across %d clusters", len(relationships), len(clusters))
    return relationships


def cluster_links(relationships: Dict[ClusterPair, int], index: int) -> List[Tuple[int, int]]:
    """(other cluster index, edge count) for every link touching ``index``, strongest first."""
    links = [
        (b if a == index else a, count)
        for (a, b), count in relationships.items()
        if index in (a, b)
    ]
    links.sort(key=lambda link: (-link[1], link[0]))
    return links


def relationship_intensity(
    count: int, buckets: Sequence[int] = config.INTENSITY_BUCKETS
) -> int:
    """Bucket an edge count: 0 none, 1 for 1-5, 2 for 6-10, 3 for 11-20, 4 above."""
    if count <= 0:
        return 0
    for level, upper in enumerate(buckets, start=1):
        if count <= upper:
            return level
    return len(buckets) + 1


def _scale(value: float, low: float, high: float, size: int) -> int:
    if not high > low:
        return size // 2
    span = high - low
    offset = value - low
    if not math.isfinite(span):
        # halved terms stay within the float range
        span = high / 2 - low / 2
        offset = value / 2 - low / 2
    ratio = offset / span
    if not math.isfinite(ratio):
        return size // 2
    position = int(ratio * (size - 1))
    return max(0, min(position, size - 1))


def project_centroids(
    clusters: Sequence[ClusterInfo],
    width: int = config.PROJECTION_WIDTH,
    height: int = config.PROJECTION_HEIGHT,
) -> CentroidProjection:
    """Place clusters on a ``width`` x ``height`` grid by their first two centroid components.

    No dimensionality reduction happens: component 0 is x, component 1 is y.
    An axis where every point shares one value is pinned to the grid's
    midpoint. Clusters landing on the same cell overwrite each other.
    """
    projection = CentroidProjection(
        width=width,
        height=height,
        grid=[[None] * width for _ in range(height)],
    )

    raw: List[Tuple[int, float, float]] = []
    for idx, cluster in enumerate(clusters):
        centroid = cluster.centroid
        if centroid is None:
            continue
        x = centroid[0] if len(centroid) > 0 else 0.0
        y = centroid[1] if len(centroid) > 1 else 0.0
        raw.append((idx, x, y))

    if not raw:
        return projection

    min_x = min(x for _, x, _ in raw)
    max_x = max(x for _, x, _ in raw)
    min_y = min(y for _, _, y in raw)
    max_y = max(y for _, _, y in raw)

    for idx, x, y in raw:
        point = CentroidPoint(
            cluster_index=idx,
            x=_scale(x, min_x, max_x, width),
            y=_scale(y, min_y, max_y, height),
        )
        projection.points.append(point)
        projection.grid[point.y][point.x] = idx

    return projection
