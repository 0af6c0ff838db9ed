"""Code-knowledge graph models decoded from a docpack archive."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional, Set, Type, Union

NodeId = str


class TypeKind(str, Enum):
    STRUCT = "Struct"
    CLASS = "Class"
    ENUM = "Enum"
    INTERFACE = "Interface"
    TRAIT = "Trait"
    UNION = "Union"
    TYPE_ALIAS = "TypeAlias"


class MacroType(str, Enum):
    DECLARATIVE = "Declarative"
    PROCEDURAL = "Procedural"
    DERIVE = "Derive"
    ATTRIBUTE = "Attribute"


class EdgeKind(str, Enum):
    CALLS = "Calls"
    IMPORTS = "Imports"
    TYPE_REFERENCE = "TypeReference"
    DATA_FLOW = "DataFlow"
    MODULE_OWNERSHIP = "ModuleOwnership"
    TRAIT_IMPLEMENTATION = "TraitImplementation"
    INHERITANCE = "Inheritance"
    METHOD_OF = "MethodOf"
    DEFINED_IN = "DefinedIn"
    INFERRED_TYPE = "InferredType"
    TRAIT_METHOD_CALL = "TraitMethodCall"
    METHOD_DISPATCH = "MethodDispatch"
    MACRO_EXPANSION = "MacroExpansion"
    TRAIT_PROVIDES = "TraitProvides"


@dataclass
class Parameter:
    name: str
    param_type: Optional[str] = None
    is_mutable: bool = False


@dataclass
class Field:
    name: str
    field_type: Optional[str] = None
    is_public: bool = False


@dataclass
class Location:
    file: str
    start_line: int = 0
    end_line: int = 0
    start_col: int = 0
    end_col: int = 0

    def __str__(self) -> str:
        return f"{self.file}:{self.start_line}"


@dataclass
class NodeMetadata:
    complexity: Optional[int] = None
    fan_in: int = 0
    fan_out: int = 0
    is_public_api: bool = False
    docstring: Optional[str] = None
    tags: List[str] = field(default_factory=list)
    source_snippet: Optional[str] = None


# ── Node kind variants ───────────────────────────────────────


@dataclass
class FunctionNode:
    name: str
    signature: str
    is_public: bool = False
    is_async: bool = False
    is_method: bool = False
    parameters: List[Parameter] = field(default_factory=list)
    return_type: Optional[str] = None


@dataclass
class TypeNode:
    name: str
    kind: TypeKind = TypeKind.STRUCT
    is_public: bool = False
    fields: List[Field] = field(default_factory=list)
    methods: List[str] = field(default_factory=list)


@dataclass
class TraitNode:
    name: str
    is_public: bool = False
    methods: List[str] = field(default_factory=list)
    implementors: List[str] = field(default_factory=list)


@dataclass
class ModuleNode:
    name: str
    path: str = ""
    is_public: bool = False
    children: List[NodeId] = field(default_factory=list)


@dataclass
class ConstantNode:
    name: str
    value_type: Optional[str] = None
    is_public: bool = False


@dataclass
class FileNode:
    path: str
    language: str = ""
    size_bytes: int = 0
    line_count: int = 0
    symbols: List[NodeId] = field(default_factory=list)


@dataclass
class ClusterNode:
    name: str
    topic: Optional[str] = None
    members: List[NodeId] = field(default_factory=list)
    keywords: List[str] = field(default_factory=list)
    centroid: Optional[List[float]] = None


@dataclass
class PackageNode:
    name: str
    version: Optional[str] = None
    modules: List[NodeId] = field(default_factory=list)


@dataclass
class MacroNode:
    name: str
    is_public: bool = False
    macro_type: MacroType = MacroType.DECLARATIVE
    pattern: Optional[str] = None


NodeKind = Union[
    FunctionNode,
    TypeNode,
    TraitNode,
    ModuleNode,
    ConstantNode,
    FileNode,
    ClusterNode,
    PackageNode,
    MacroNode,
]

# Serialized tag and display name for every variant. Anything not listed here
# is outside the closed kind set and is rejected.
KIND_TAGS: Dict[Type, str] = {
    FunctionNode: "Function",
    TypeNode: "Type",
    TraitNode: "Trait",
    ModuleNode: "Module",
    ConstantNode: "Constant",
    FileNode: "File",
    ClusterNode: "Cluster",
    PackageNode: "Package",
    MacroNode: "Macro",
}
KIND_CLASSES: Dict[str, Type] = {tag: cls for cls, tag in KIND_TAGS.items()}


def kind_tag(kind: NodeKind) -> str:
    """Return the serialized tag (``"Function"``, ``"Type"``...) of a kind."""
    try:
        return KIND_TAGS[type(kind)]
    except KeyError:
        raise TypeError(f"Unknown node kind: {type(kind).__name__}") from None


@dataclass
class Node:
    id: NodeId
    kind: NodeKind
    location: Location
    metadata: NodeMetadata = field(default_factory=NodeMetadata)

    @property
    def name(self) -> str:
        kind_tag(self.kind)
        if isinstance(self.kind, FileNode):
            return self.kind.path
        return self.kind.name

    @property
    def kind_str(self) -> str:
        return kind_tag(self.kind).lower()

    @property
    def is_public(self) -> bool:
        kind_tag(self.kind)
        if isinstance(self.kind, (FileNode, ClusterNode, PackageNode)):
            return True
        return self.kind.is_public


@dataclass
class Edge:
    source: NodeId
    target: NodeId
    kind: EdgeKind


@dataclass
class GraphMetadata:
    repository_name: Optional[str] = None
    total_files: int = 0
    total_symbols: int = 0
    languages: Set[str] = field(default_factory=set)
    created_at: str = ""


@dataclass
class DocpackGraph:
    """One immutable snapshot of a codebase's graph."""

    nodes: Dict[NodeId, Node] = field(default_factory=dict)
    edges: List[Edge] = field(default_factory=list)
    metadata: GraphMetadata = field(default_factory=GraphMetadata)

    def cluster_nodes(self) -> List[Node]:
        return [node for node in self.nodes.values() if isinstance(node.kind, ClusterNode)]


# ── Documentation ────────────────────────────────────────────


@dataclass
class SymbolDocumentation:
    node_id: NodeId
    purpose: str
    explanation: str
    complexity_notes: Optional[str] = None
    usage_hints: Optional[str] = None
    caller_references: List[str] = field(default_factory=list)
    callee_references: List[str] = field(default_factory=list)
    semantic_cluster: Optional[str] = None


@dataclass
class ModuleOverview:
    module_name: str
    responsibilities: str
    key_symbols: List[str] = field(default_factory=list)
    interactions: str = ""


@dataclass
class ArchitectureOverview:
    overview: str = ""
    system_behavior: str = ""
    data_flow: str = ""
    key_components: List[str] = field(default_factory=list)


@dataclass
class Documentation:
    symbol_summaries: Dict[NodeId, SymbolDocumentation] = field(default_factory=dict)
    module_overviews: Dict[str, ModuleOverview] = field(default_factory=dict)
    architecture_overview: ArchitectureOverview = field(default_factory=ArchitectureOverview)
    total_tokens_used: int = 0


@dataclass
class PackageMetadata:
    version: str = ""
    generator: str = ""
    source: str = ""
    generated_at: str = ""
    files_included: int = 0
    total_size_bytes: int = 0
    format: str = ""
    contents: Dict[str, str] = field(default_factory=dict)


@dataclass
class Docpack:
    """Everything loaded from one ``.docpack`` archive."""

    graph: DocpackGraph
    metadata: PackageMetadata
    documentation: Optional[Documentation] = None
    path: Optional[Path] = None
