"""Pytest configuration and fixtures for localdoc tests."""

import json
import zipfile
from dataclasses import asdict
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional

import pytest

from localdoc_cli.models import (
    ClusterNode,
    Docpack,
    DocpackGraph,
    Documentation,
    Edge,
    EdgeKind,
    Field,
    FunctionNode,
    GraphMetadata,
    Location,
    Node,
    NodeMetadata,
    PackageMetadata,
    SymbolDocumentation,
    TypeNode,
    kind_tag,
)


@pytest.fixture(autouse=True)
def _isolated_home(tmp_path: Path, monkeypatch):
    """Point config and docpack lookup at a temporary LOCALDOC_HOME."""
    home = tmp_path / "localdoc_home"
    monkeypatch.setattr("localdoc_cli.config.BASE_DIR", home)
    monkeypatch.setattr("localdoc_cli.config.DOCPACKS_DIR", home / "docpacks")
    monkeypatch.setattr("localdoc_cli.config.CONFIG_FILE", home / "config.toml")
    return home


# ── Graph builders ───────────────────────────────────────────


def _function(node_id: str, signature: str = "f()", complexity: Optional[int] = None, **meta) -> Node:
    name = node_id.split("::")[-1]
    return Node(
        id=node_id,
        kind=FunctionNode(name=name, signature=signature, is_public=True),
        location=Location(file=f"src/{name}.rs", start_line=1, end_line=10),
        metadata=NodeMetadata(complexity=complexity, **meta),
    )


def _type(node_id: str, fields: Iterable[str] = (), complexity: Optional[int] = None) -> Node:
    name = node_id.split("::")[-1]
    return Node(
        id=node_id,
        kind=TypeNode(name=name, fields=[Field(name=f, field_type="i32", is_public=True) for f in fields]),
        location=Location(file=f"src/{name}.rs", start_line=1, end_line=5),
        metadata=NodeMetadata(complexity=complexity),
    )


def _cluster(
    node_id: str,
    members: List[str],
    centroid: Optional[List[float]] = None,
    keywords: Optional[List[str]] = None,
) -> Node:
    return Node(
        id=node_id,
        kind=ClusterNode(
            name=node_id.replace("cluster_", ""),
            topic=None,
            members=list(members),
            keywords=list(keywords or []),
            centroid=centroid,
        ),
        location=Location(file=""),
    )


def _graph(nodes: Iterable[Node], edges: Iterable[tuple] = ()) -> DocpackGraph:
    return DocpackGraph(
        nodes={n.id: n for n in nodes},
        edges=[Edge(source=s, target=t, kind=EdgeKind.CALLS) for s, t in edges],
        metadata=GraphMetadata(repository_name="demo", total_files=2, total_symbols=3, languages={"rust"}),
    )


def _docs(entries: Dict[str, Dict[str, Any]]) -> Documentation:
    summaries = {}
    for node_id, entry in entries.items():
        summaries[node_id] = SymbolDocumentation(
            node_id=node_id,
            purpose=entry.get("purpose", "does things"),
            explanation=entry.get("explanation", "it does things"),
            semantic_cluster=entry.get("cluster"),
        )
    return Documentation(symbol_summaries=summaries)


@pytest.fixture
def function_node() -> Callable[..., Node]:
    return _function


@pytest.fixture
def type_node() -> Callable[..., Node]:
    return _type


@pytest.fixture
def cluster_node() -> Callable[..., Node]:
    return _cluster


@pytest.fixture
def make_graph() -> Callable[..., DocpackGraph]:
    return _graph


@pytest.fixture
def make_docs() -> Callable[..., Documentation]:
    return _docs


@pytest.fixture
def make_docpack() -> Callable[..., Docpack]:
    def factory(graph: DocpackGraph, documentation: Optional[Documentation] = None) -> Docpack:
        return Docpack(graph=graph, metadata=PackageMetadata(source="demo.zip"), documentation=documentation)
    return factory


# ── Scenario graphs ──────────────────────────────────────────


@pytest.fixture
def old_graph() -> DocpackGraph:
    """A: Function f(x) with complexity 3, B: Type with one field."""
    return _graph(
        [_function("A", signature="f(x)", complexity=3), _type("B", fields=["p"])],
        edges=[("A", "B")],
    )


@pytest.fixture
def new_graph() -> DocpackGraph:
    """A: Function f(x,y) with complexity 5, C: Function g()."""
    return _graph(
        [_function("A", signature="f(x,y)", complexity=5), _function("C", signature="g()")],
        edges=[("A", "C"), ("C", "A")],
    )


@pytest.fixture
def clustered_graph() -> DocpackGraph:
    """Three clusters: io (3 members), parse (2), render (1)."""
    nodes = [
        _function("io::read", complexity=4),
        _function("io::write", complexity=8),
        _type("io::Buffer", fields=["data"]),
        _function("parse::lex", complexity=12),
        _function("parse::ast", complexity=2),
        _function("render::draw"),
        _function("util::free"),
        _cluster("cluster_io", ["io::read", "io::write", "io::Buffer"], centroid=[0.0, 0.0], keywords=["io", "disk"]),
        _cluster("cluster_parse", ["parse::lex", "parse::ast"], centroid=[1.0, 0.5]),
        _cluster("cluster_render", ["render::draw"], centroid=[0.5, 1.0]),
    ]
    edges = [
        ("io::read", "parse::lex"),
        ("parse::ast", "io::write"),
        ("parse::lex", "parse::ast"),
        ("render::draw", "parse::ast"),
        ("render::draw", "util::free"),
    ]
    return _graph(nodes, edges)


# ── Docpack archives on disk ─────────────────────────────────


def _plain(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, dict):
        return {k: _plain(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_plain(v) for v in value]
    if isinstance(value, set):
        return sorted(value)
    return value


def graph_to_json(graph: DocpackGraph) -> Dict[str, Any]:
    nodes = {}
    for node_id, node in graph.nodes.items():
        nodes[node_id] = {
            "id": node.id,
            "kind": {kind_tag(node.kind): _plain(asdict(node.kind))},
            "location": asdict(node.location),
            "metadata": asdict(node.metadata),
        }
    return {
        "nodes": nodes,
        "edges": [{"source": e.source, "target": e.target, "kind": e.kind.value} for e in graph.edges],
        "metadata": _plain(asdict(graph.metadata)),
    }


@pytest.fixture
def write_docpack(tmp_path: Path) -> Callable[..., Path]:
    """Write a graph (and optional documentation) into a .docpack zip."""

    def factory(
        name: str,
        graph: DocpackGraph,
        documentation: Optional[Documentation] = None,
        raw_documentation: Optional[str] = None,
        skip: Iterable[str] = (),
    ) -> Path:
        path = tmp_path / f"{name}.docpack"
        members = {
            "graph.json": json.dumps(graph_to_json(graph)),
            "metadata.json": json.dumps(
                {
                    "version": "1.0",
                    "generator": "docpack-builder",
                    "source": f"{name}.zip",
                    "generated_at": "2026-01-01T00:00:00Z",
                    "files_included": 2,
                    "total_size_bytes": 2048,
                    "format": "docpack",
                    "contents": {"graph.json": "graph"},
                }
            ),
        }
        if documentation is not None:
            members["documentation.json"] = json.dumps(_plain(asdict(documentation)))
        if raw_documentation is not None:
            members["documentation.json"] = raw_documentation

        with zipfile.ZipFile(path, "w") as archive:
            for member, text in members.items():
                if member not in skip:
                    archive.writestr(member, text)
        return path

    return factory
