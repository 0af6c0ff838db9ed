"""Open ``.docpack`` archives and decode them into graph models.

A docpack is a zip archive with three JSON members:

- ``graph.json``: nodes, edges and graph metadata (required)
- ``metadata.json``: package metadata (required)
- ``documentation.json``: AI-generated symbol docs (optional)

Node kinds and edge kinds use externally tagged variants, e.g.
``{"Function": {"name": ..., "signature": ...}}`` and ``"Calls"``.
"""

from __future__ import annotations

import json
import logging
import zipfile
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from . import config
from .models import (
    ArchitectureOverview,
    ClusterNode,
    Docpack,
    DocpackGraph,
    Documentation,
    Edge,
    EdgeKind,
    Field,
    FunctionNode,
    GraphMetadata,
    KIND_CLASSES,
    Location,
    MacroNode,
    MacroType,
    ModuleOverview,
    Node,
    NodeKind,
    NodeMetadata,
    PackageMetadata,
    Parameter,
    SymbolDocumentation,
    TypeKind,
    TypeNode,
)

logger = logging.getLogger(__name__)

GRAPH_MEMBER = "graph.json"
METADATA_MEMBER = "metadata.json"
DOCUMENTATION_MEMBER = "documentation.json"


class DocpackError(Exception):
    """Raised when a docpack cannot be opened or decoded."""

    def __init__(self, path: Path, reason: str) -> None:
        super().__init__(f"Docpack {path} is unreadable: {reason}")
        self.path = path
        self.reason = reason


def resolve_docpack_path(value: Path) -> Path:
    """Resolve a docpack argument to a file path.

    Absolute paths and anything containing a path separator are used as-is.
    A bare name is looked up in the docpacks directory, gaining the
    ``.docpack`` extension when it has none.
    """
    text = str(value)
    if value.is_absolute() or "/" in text or "\\" in text:
        return value

    resolved = config.DOCPACKS_DIR / value
    if not resolved.suffix:
        resolved = resolved.with_suffix(config.DOCPACK_SUFFIX)
    return resolved


def load_docpack(path: Path) -> Docpack:
    """Load graph, metadata and optional documentation from a docpack."""
    try:
        with zipfile.ZipFile(path) as archive:
            graph_data = _read_json(archive, GRAPH_MEMBER, path)
            metadata_data = _read_json(archive, METADATA_MEMBER, path)
            doc_text = _read_optional(archive, DOCUMENTATION_MEMBER)
    except FileNotFoundError:
        raise DocpackError(path, "file not found") from None
    except zipfile.BadZipFile as exc:
        raise DocpackError(path, f"not a zip archive ({exc})") from exc
    except OSError as exc:
        raise DocpackError(path, str(exc)) from exc

    try:
        graph = decode_graph(graph_data)
    except (AttributeError, KeyError, TypeError, ValueError) as exc:
        raise DocpackError(path, f"invalid {GRAPH_MEMBER}: {exc!r}") from exc
    try:
        metadata = decode_package_metadata(metadata_data)
    except (AttributeError, KeyError, TypeError, ValueError) as exc:
        raise DocpackError(path, f"invalid {METADATA_MEMBER}: {exc!r}") from exc

    documentation = None
    if doc_text is not None:
        try:
            documentation = decode_documentation(json.loads(doc_text))
        except (AttributeError, KeyError, TypeError, ValueError) as exc:
            logger.warning("Failed to parse %s in %s: %s", DOCUMENTATION_MEMBER, path, exc)

    logger.debug(
        "Loaded %s: %d nodes, %d edges, documentation=%s",
        path,
        len(graph.nodes),
        len(graph.edges),
        documentation is not None,
    )
    return Docpack(graph=graph, metadata=metadata, documentation=documentation, path=path)


def extract_docpack(path: Path, output_dir: Path) -> List[Tuple[str, int]]:
    """Unpack every member of a docpack into ``output_dir``.

    Member names that point outside ``output_dir`` are sanitized by
    ``zipfile``. Returns ``(member name, size in bytes)`` for each file.
    """
    try:
        archive = zipfile.ZipFile(path)
    except FileNotFoundError:
        raise DocpackError(path, "file not found") from None
    except zipfile.BadZipFile as exc:
        raise DocpackError(path, f"not a zip archive ({exc})") from exc
    except OSError as exc:
        raise DocpackError(path, str(exc)) from exc

    extracted: List[Tuple[str, int]] = []
    with archive:
        output_dir.mkdir(parents=True, exist_ok=True)
        for info in archive.infolist():
            archive.extract(info, output_dir)
            if not info.is_dir():
                extracted.append((info.filename, info.file_size))

    logger.debug("Extracted %d files from %s into %s", len(extracted), path, output_dir)
    return extracted


def _read_json(archive: zipfile.ZipFile, member: str, path: Path) -> Any:
    try:
        raw = archive.read(member)
    except KeyError:
        raise DocpackError(path, f"{member} not found in archive") from None
    try:
        return json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise DocpackError(path, f"failed to parse {member}: {exc}") from exc


def _read_optional(archive: zipfile.ZipFile, member: str) -> Optional[str]:
    try:
        raw = archive.read(member)
    except KeyError:
        return None
    return raw.decode("utf-8", errors="replace")


# ===================================================================
# Decoders
# ===================================================================


def decode_graph(data: Dict[str, Any]) -> DocpackGraph:
    nodes: Dict[str, Node] = {}
    for key, raw_node in data["nodes"].items():
        node = decode_node(raw_node)
        nodes[key] = node

    edges = [
        Edge(source=e["source"], target=e["target"], kind=EdgeKind(e["kind"]))
        for e in data.get("edges", [])
    ]

    meta = data.get("metadata", {})
    metadata = GraphMetadata(
        repository_name=meta.get("repository_name"),
        total_files=int(meta.get("total_files", 0)),
        total_symbols=int(meta.get("total_symbols", 0)),
        languages=set(meta.get("languages", [])),
        created_at=meta.get("created_at", ""),
    )
    return DocpackGraph(nodes=nodes, edges=edges, metadata=metadata)


def decode_node(data: Dict[str, Any]) -> Node:
    loc = data.get("location", {})
    meta = data.get("metadata", {})
    return Node(
        id=data["id"],
        kind=decode_kind(data["kind"]),
        location=Location(
            file=loc.get("file", ""),
            start_line=loc.get("start_line", 0),
            end_line=loc.get("end_line", 0),
            start_col=loc.get("start_col", 0),
            end_col=loc.get("end_col", 0),
        ),
        metadata=NodeMetadata(
            complexity=meta.get("complexity"),
            fan_in=meta.get("fan_in", 0),
            fan_out=meta.get("fan_out", 0),
            is_public_api=meta.get("is_public_api", False),
            docstring=meta.get("docstring"),
            tags=list(meta.get("tags", [])),
            source_snippet=meta.get("source_snippet"),
        ),
    )


def decode_kind(data: Dict[str, Any]) -> NodeKind:
    """Decode an externally tagged kind such as ``{"Function": {...}}``."""
    if not isinstance(data, dict) or len(data) != 1:
        raise ValueError(f"node kind must be a single-key object, got {data!r}")
    tag, body = next(iter(data.items()))
    if tag not in KIND_CLASSES:
        raise ValueError(f"unknown node kind '{tag}'")

    body = dict(body)
    cls = KIND_CLASSES[tag]
    if cls is FunctionNode:
        body["parameters"] = [Parameter(**p) for p in body.get("parameters", [])]
    elif cls is TypeNode:
        body["kind"] = TypeKind(body.get("kind", TypeKind.STRUCT.value))
        body["fields"] = [Field(**f) for f in body.get("fields", [])]
    elif cls is MacroNode:
        body["macro_type"] = MacroType(body.get("macro_type", MacroType.DECLARATIVE.value))
    elif cls is ClusterNode and body.get("centroid") is not None:
        body["centroid"] = [float(v) for v in body["centroid"]]
    return cls(**body)


def decode_documentation(data: Dict[str, Any]) -> Documentation:
    summaries = {
        node_id: SymbolDocumentation(**entry)
        for node_id, entry in data["symbol_summaries"].items()
    }
    overviews = {
        name: ModuleOverview(**entry)
        for name, entry in data.get("module_overviews", {}).items()
    }
    return Documentation(
        symbol_summaries=summaries,
        module_overviews=overviews,
        architecture_overview=ArchitectureOverview(**data.get("architecture_overview", {})),
        total_tokens_used=int(data.get("total_tokens_used", 0)),
    )


def decode_package_metadata(data: Dict[str, Any]) -> PackageMetadata:
    return PackageMetadata(
        version=data.get("version", ""),
        generator=data.get("generator", ""),
        source=data.get("source", ""),
        generated_at=data.get("generated_at", ""),
        files_included=int(data.get("files_included", 0)),
        total_size_bytes=int(data.get("total_size_bytes", 0)),
        format=data.get("format", ""),
        contents=dict(data.get("contents", {})),
    )
