"""Differential analysis between two docpack graph snapshots.

Every detector is a pure function over already-loaded graphs: node set
algebra, signature and kind changes, complexity deltas, semantic cluster
drift, documentation changes and structural mutation. ``diff_graphs`` runs
them all and bundles the results into a :class:`GraphDiff`.
"""

from __future__ import annotations

import logging
from collections import Counter
from typing import List, Optional, Sequence, Tuple

from . import config
from .config_manager import AnalysisSettings
from .diff_models import (
    ClusterDrift,
    ComplexityDelta,
    DocChange,
    GraphDiff,
    KindChange,
    NodeDiff,
    SignatureChange,
    StructureChanges,
    SubtreeMutation,
)
from .models import Docpack, DocpackGraph, Documentation, FunctionNode, NodeId, TypeNode, kind_tag

logger = logging.getLogger(__name__)

MODULE_SEPARATOR = "::"
SYMBOL_KIND = "symbol"


def compute_node_diff(old: DocpackGraph, new: DocpackGraph) -> NodeDiff:
    old_ids = set(old.nodes)
    new_ids = set(new.nodes)

    added = {node_id: new.nodes[node_id] for node_id in sorted(new_ids - old_ids)}
    removed = {node_id: old.nodes[node_id] for node_id in sorted(old_ids - new_ids)}
    common = sorted(old_ids & new_ids)
    return NodeDiff(added=added, removed=removed, common=common)


def detect_signature_changes(
    old: DocpackGraph, new: DocpackGraph, common: Sequence[NodeId]
) -> List[SignatureChange]:
    """Signature changes for common nodes whose kind variant did not change.

    Functions compare their signature text; types compare their ordered
    field lists and report a ``"<name> with <N> fields"`` summary. Other
    kinds, and kind changes, are never reported here.
    """
    changes: List[SignatureChange] = []

    for node_id in common:
        old_node = old.nodes[node_id]
        new_node = new.nodes[node_id]
        old_kind, new_kind = old_node.kind, new_node.kind

        if isinstance(old_kind, FunctionNode) and isinstance(new_kind, FunctionNode):
            if old_kind.signature == new_kind.signature:
                continue
            old_sig, new_sig = old_kind.signature, new_kind.signature
        elif isinstance(old_kind, TypeNode) and isinstance(new_kind, TypeNode):
            if old_kind.fields == new_kind.fields:
                continue
            old_sig = f"{old_kind.name} with {len(old_kind.fields)} fields"
            new_sig = f"{new_kind.name} with {len(new_kind.fields)} fields"
        else:
            continue

        changes.append(
            SignatureChange(
                node_name=old_node.name,
                node_kind=old_node.kind_str,
                old_signature=old_sig,
                new_signature=new_sig,
            )
        )

    return changes


def detect_kind_changes(
    old: DocpackGraph, new: DocpackGraph, common: Sequence[NodeId]
) -> List[KindChange]:
    changes: List[KindChange] = []
    for node_id in common:
        old_tag = kind_tag(old.nodes[node_id].kind)
        new_tag = kind_tag(new.nodes[node_id].kind)
        if old_tag != new_tag:
            changes.append(KindChange(node_id=node_id, old_kind=old_tag.lower(), new_kind=new_tag.lower()))
    return changes


def compute_complexity_deltas(
    old: DocpackGraph, new: DocpackGraph, common: Sequence[NodeId]
) -> List[ComplexityDelta]:
    deltas: List[ComplexityDelta] = []

    for node_id in common:
        old_node = old.nodes[node_id]
        new_node = new.nodes[node_id]
        old_complexity = old_node.metadata.complexity
        new_complexity = new_node.metadata.complexity

        if old_complexity is None or new_complexity is None:
            continue
        if old_complexity == new_complexity:
            continue

        deltas.append(
            ComplexityDelta(
                node_name=old_node.name,
                node_kind=old_node.kind_str,
                old_complexity=old_complexity,
                new_complexity=new_complexity,
                delta=new_complexity - old_complexity,
            )
        )

    return deltas


def partition_complexity_deltas(
    deltas: Sequence[ComplexityDelta],
) -> Tuple[List[ComplexityDelta], List[ComplexityDelta]]:
    """Split deltas into (increased, decreased), largest magnitude first.

    The sort is stable, so equal magnitudes keep their input order.
    """
    increased = sorted((d for d in deltas if d.delta > 0), key=lambda d: -d.delta)
    decreased = sorted((d for d in deltas if d.delta < 0), key=lambda d: d.delta)
    return increased, decreased


def detect_cluster_drift(
    old_docs: Optional[Documentation],
    new_docs: Optional[Documentation],
    common: Sequence[NodeId],
) -> List[ClusterDrift]:
    if old_docs is None or new_docs is None:
        return []

    drifts: List[ClusterDrift] = []
    for node_id in common:
        old_doc = old_docs.symbol_summaries.get(node_id)
        new_doc = new_docs.symbol_summaries.get(node_id)
        if old_doc is None or new_doc is None:
            continue
        if old_doc.semantic_cluster != new_doc.semantic_cluster:
            drifts.append(
                ClusterDrift(
                    node_name=node_id,
                    node_kind=SYMBOL_KIND,
                    old_cluster=old_doc.semantic_cluster,
                    new_cluster=new_doc.semantic_cluster,
                )
            )
    return drifts


def detect_doc_changes(
    old_docs: Optional[Documentation],
    new_docs: Optional[Documentation],
    common: Sequence[NodeId],
) -> List[DocChange]:
    """Documentation whose purpose or explanation text changed."""
    if old_docs is None or new_docs is None:
        return []

    changes: List[DocChange] = []
    for node_id in common:
        old_doc = old_docs.symbol_summaries.get(node_id)
        new_doc = new_docs.symbol_summaries.get(node_id)
        if old_doc is None or new_doc is None:
            continue

        reasons = []
        if old_doc.purpose != new_doc.purpose:
            reasons.append("purpose changed")
        if old_doc.explanation != new_doc.explanation:
            reasons.append("explanation updated")

        if reasons:
            changes.append(DocChange(node_name=node_id, node_kind=SYMBOL_KIND, reason=", ".join(reasons)))
    return changes


def extract_module_path(node_id: NodeId) -> Optional[str]:
    """Coarse module path: everything before the first ``::``, if any."""
    head, sep, _ = node_id.partition(MODULE_SEPARATOR)
    if not sep:
        return None
    return head


def analyze_graph_structure(
    old: DocpackGraph,
    new: DocpackGraph,
    threshold: int = config.HEAVY_MUTATION_THRESHOLD,
) -> StructureChanges:
    """Edge-count drift and modules with at least ``threshold`` added/removed nodes."""
    changed_ids = set(old.nodes).symmetric_difference(new.nodes)

    module_changes: Counter = Counter()
    for node_id in changed_ids:
        module = extract_module_path(node_id)
        if module is not None:
            module_changes[module] += 1

    subtrees = [
        SubtreeMutation(root=root, change_count=count)
        for root, count in module_changes.items()
        if count >= threshold
    ]
    subtrees.sort(key=lambda s: (-s.change_count, s.root))

    return StructureChanges(
        old_edge_count=len(old.edges),
        new_edge_count=len(new.edges),
        heavily_mutated_subtrees=subtrees,
    )


def diff_graphs(
    old: Docpack,
    new: Docpack,
    settings: Optional[AnalysisSettings] = None,
) -> GraphDiff:
    """Run every detector over two loaded docpacks."""
    settings = settings or AnalysisSettings()
    old_graph, new_graph = old.graph, new.graph

    node_diff = compute_node_diff(old_graph, new_graph)
    common = node_diff.common
    logger.debug(
        "Node diff: %d added, %d removed, %d common",
        len(node_diff.added),
        len(node_diff.removed),
        len(common),
    )

    signature_changes = detect_signature_changes(old_graph, new_graph, common)
    kind_changes = detect_kind_changes(old_graph, new_graph, common)
    complexity_deltas = compute_complexity_deltas(old_graph, new_graph, common)
    cluster_drift = detect_cluster_drift(old.documentation, new.documentation, common)
    doc_changes = detect_doc_changes(old.documentation, new.documentation, common)
    structure = analyze_graph_structure(old_graph, new_graph, threshold=settings.heavy_mutation_threshold)

    logger.debug(
        "Detectors: %d signature, %d kind, %d complexity, %d drift, %d doc, %d subtrees",
        len(signature_changes),
        len(kind_changes),
        len(complexity_deltas),
        len(cluster_drift),
        len(doc_changes),
        len(structure.heavily_mutated_subtrees),
    )

    return GraphDiff(
        node_diff=node_diff,
        signature_changes=signature_changes,
        kind_changes=kind_changes,
        complexity_deltas=complexity_deltas,
        cluster_drift=cluster_drift,
        doc_changes=doc_changes,
        structure=structure,
        has_documentation=old.documentation is not None and new.documentation is not None,
    )
