"""Result models produced when comparing two docpack graphs."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from .models import Node, NodeId


@dataclass(frozen=True)
class NodeDiff:
    """Node ids split into added, removed and common, each ordered by id."""
    added: Dict[NodeId, Node]
    removed: Dict[NodeId, Node]
    common: List[NodeId]


@dataclass(frozen=True)
class SignatureChange:
    node_name: str
    node_kind: str
    old_signature: str
    new_signature: str


@dataclass(frozen=True)
class KindChange:
    """A common id whose node kind variant changed between snapshots."""
    node_id: NodeId
    old_kind: str
    new_kind: str


@dataclass(frozen=True)
class ComplexityDelta:
    node_name: str
    node_kind: str
    old_complexity: int
    new_complexity: int
    delta: int


@dataclass(frozen=True)
class ClusterDrift:
    node_name: str
    node_kind: str
    old_cluster: Optional[str]
    new_cluster: Optional[str]


@dataclass(frozen=True)
class DocChange:
    node_name: str
    node_kind: str
    reason: str


@dataclass(frozen=True)
class SubtreeMutation:
    root: str
    change_count: int


@dataclass(frozen=True)
class StructureChanges:
    """Edge-count drift plus modules with many added/removed nodes."""
    old_edge_count: int
    new_edge_count: int
    heavily_mutated_subtrees: List[SubtreeMutation] = field(default_factory=list)

    @property
    def edge_delta(self) -> int:
        return self.new_edge_count - self.old_edge_count

    @property
    def has_significant_changes(self) -> bool:
        return self.edge_delta != 0 or bool(self.heavily_mutated_subtrees)


@dataclass(frozen=True)
class GraphDiff:
    """Every delta found between an old and a new docpack."""
    node_diff: NodeDiff
    signature_changes: List[SignatureChange]
    kind_changes: List[KindChange]
    complexity_deltas: List[ComplexityDelta]
    cluster_drift: List[ClusterDrift]
    doc_changes: List[DocChange]
    structure: StructureChanges
    has_documentation: bool = False

    @property
    def total_changes(self) -> int:
        """Headline change count (documentation changes are reported separately)."""
        return (
            len(self.node_diff.added)
            + len(self.node_diff.removed)
            + len(self.signature_changes)
            + len(self.complexity_deltas)
            + abs(self.structure.edge_delta)
        )
