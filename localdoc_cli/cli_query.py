"""Single-docpack commands: ``nodes``, ``search``, ``inspect``, ``explain`` and ``extract``."""

from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Optional

import typer
from rich.console import Console
from rich.markup import escape

from .graph_query import (
    NodeNotFoundError,
    filter_nodes,
    get_node,
    group_edges,
    node_metrics,
    search_nodes,
)
from .loader import DocpackError, extract_docpack, load_docpack, resolve_docpack_path
from .models import (
    ClusterNode,
    ConstantNode,
    Docpack,
    DocpackGraph,
    EdgeKind,
    FileNode,
    FunctionNode,
    MacroNode,
    ModuleNode,
    Node,
    NodeId,
    PackageNode,
    TraitNode,
    TypeNode,
)

console = Console()

RULE = "=" * 80
SEARCH_LIMIT = 50
NEIGHBOUR_LIMIT = 3

KIND_STYLES = {
    "function": "bright_blue",
    "type": "bright_green",
    "module": "bright_magenta",
    "file": "bright_yellow",
    "cluster": "bright_cyan",
}


def open_docpack(docpack: Path) -> Docpack:
    """Load a docpack argument, exiting with status 1 when it is unreadable."""
    try:
        return load_docpack(resolve_docpack_path(docpack))
    except DocpackError as exc:
        console.print(f"[red]✗[/red] {escape(str(exc))}")
        raise typer.Exit(1)


def _lookup(graph: DocpackGraph, node_id: str) -> Node:
    try:
        return get_node(graph, node_id)
    except NodeNotFoundError as exc:
        console.print(f"[red]✗[/red] {escape(str(exc))}")
        raise typer.Exit(1)


def _node_line(node: Node) -> str:
    kind = node.kind_str
    style = KIND_STYLES.get(kind, "white")
    visibility = "[bright_green]pub[/bright_green] " if node.is_public else "[bright_black]priv[/bright_black]"
    return f"{visibility} [{style}]{kind:<10}[/{style}] [bright_white]{escape(node.name)}[/bright_white]"


def _location(node: Node) -> str:
    return escape(f"@ {node.location.file}:{node.location.start_line}")


# ── nodes ────────────────────────────────────────────────────


def nodes_command(
    docpack: Path = typer.Argument(..., help="Path to .docpack file (or installed docpack name)."),
    kind: Optional[str] = typer.Option(None, "--kind", "-k", help="Filter by node kind (function, type, module, file, cluster)."),
    public: bool = typer.Option(False, "--public", "-p", help="Only show public nodes."),
    limit: int = typer.Option(50, "--limit", "-l", min=1, help="Max nodes shown."),
):
    """List nodes in a docpack."""
    pack = open_docpack(docpack)
    nodes = filter_nodes(pack.graph, kind=kind, public_only=public)
    total = len(nodes)

    console.print(f"\n[bold bright_cyan]Showing {min(limit, total)} of {total} nodes[/bold bright_cyan]")
    filters = []
    if kind is not None:
        filters.append(f"kind={kind}")
    if public:
        filters.append("public")
    if filters:
        console.print(f"[bright_black]Filters: {escape(', '.join(filters))}[/bright_black]")
    console.print(f"[bright_black]{RULE}[/bright_black]")

    for node in nodes[:limit]:
        console.print(f"{_node_line(node)} [bright_black]{_location(node)}[/bright_black]")
        metrics = node_metrics(node)
        if metrics:
            console.print(f"       [bright_black]{', '.join(metrics)}[/bright_black]")

    if total > limit:
        console.print(f"\n[bright_black]... and {total - limit} more nodes (use --limit to show more)[/bright_black]")
    console.print()


# ── search ───────────────────────────────────────────────────


def search_command(
    docpack: Path = typer.Argument(..., help="Path to .docpack file (or installed docpack name)."),
    query: str = typer.Argument(..., help="Text to look for in node names."),
    case_sensitive: bool = typer.Option(False, "--case-sensitive", "-c", help="Case-sensitive search."),
):
    """Search for nodes by name."""
    pack = open_docpack(docpack)
    results = search_nodes(pack.graph, query, case_sensitive=case_sensitive)

    console.print(f"\n[bold bright_cyan]Found {len(results)} matching nodes[/bold bright_cyan]")
    console.print(f"[bright_black]Query: '{escape(query)}'[/bright_black]")
    console.print(f"[bright_black]{RULE}[/bright_black]")

    if not results:
        console.print(f"\nNo nodes found matching '{escape(query)}'")
        console.print("\nTry:")
        console.print("  - Using a shorter search term")
        console.print("  - Checking your spelling")
        console.print("  - Using case-insensitive search (default)\n")
        return

    for node in results[:SEARCH_LIMIT]:
        console.print(_node_line(node))
        console.print(f"       [bright_black]{_location(node)} ID: {escape(node.id)}[/bright_black]")

    if len(results) > SEARCH_LIMIT:
        console.print(f"\n[bright_black]... and {len(results) - SEARCH_LIMIT} more results[/bright_black]")
        console.print("[bright_black]Use a more specific query to narrow results[/bright_black]")
    console.print()


# ── inspect ──────────────────────────────────────────────────


def _kind_details(node: Node) -> List[str]:
    kind = node.kind
    lines: List[str] = []
    if isinstance(kind, FunctionNode):
        lines.append("[bright_green]Function Details[/bright_green]")
        lines.append(f"  Signature:  {escape(kind.signature)}")
        lines.append(f"  Async:      {kind.is_async}")
        lines.append(f"  Method:     {kind.is_method}")
        if kind.parameters:
            lines.append("\n  Parameters:")
            for param in kind.parameters:
                mutable = "mut " if param.is_mutable else ""
                lines.append(f"    {mutable}{escape(param.name)}: {escape(param.param_type or '?')}")
        if kind.return_type:
            lines.append(f"  Returns:    {escape(kind.return_type)}")
    elif isinstance(kind, TypeNode):
        lines.append("[bright_green]Type Details[/bright_green]")
        lines.append(f"  Type Kind:  {kind.kind.value}")
        if kind.fields:
            lines.append("\n  Fields:")
            for f in kind.fields:
                vis = "pub" if f.is_public else "priv"
                lines.append(f"    {vis} {escape(f.name)}: {escape(f.field_type or '?')}")
        if kind.methods:
            lines.append(f"\n  Methods: {len(kind.methods)} method(s)")
    elif isinstance(kind, ModuleNode):
        lines.append("[bright_green]Module Details[/bright_green]")
        lines.append(f"  Path:       {escape(kind.path)}")
        lines.append(f"  Children:   {len(kind.children)}")
    elif isinstance(kind, FileNode):
        lines.append("[bright_green]File Details[/bright_green]")
        lines.append(f"  Language:   {escape(kind.language)}")
        lines.append(f"  Size:       {kind.size_bytes} bytes")
        lines.append(f"  Lines:      {kind.line_count}")
        lines.append(f"  Symbols:    {len(kind.symbols)}")
    elif isinstance(kind, ClusterNode):
        lines.append("[bright_green]Cluster Details[/bright_green]")
        if kind.topic:
            lines.append(f"  Topic:      {escape(kind.topic)}")
        lines.append(f"  Members:    {len(kind.members)}")
        if kind.keywords:
            lines.append(f"  Keywords:   {escape(', '.join(kind.keywords))}")
    elif isinstance(kind, ConstantNode):
        lines.append("[bright_green]Constant Details[/bright_green]")
        if kind.value_type:
            lines.append(f"  Type:       {escape(kind.value_type)}")
    elif isinstance(kind, TraitNode):
        lines.append("[bright_green]Trait Details[/bright_green]")
        lines.append(f"  Methods:    {len(kind.methods)}")
        lines.append(f"  Implementors: {len(kind.implementors)}")
    elif isinstance(kind, MacroNode):
        lines.append("[bright_green]Macro Details[/bright_green]")
        lines.append(f"  Type:       {kind.macro_type.value}")
        if kind.pattern:
            lines.append(f"  Pattern:    {escape(kind.pattern)}")
    elif isinstance(kind, PackageNode):
        lines.append("[bright_green]Package Details[/bright_green]")
        if kind.version:
            lines.append(f"  Version:    {escape(kind.version)}")
        lines.append(f"  Modules:    {len(kind.modules)}")
    return lines


def _print_edges(title: str, groups: Dict[EdgeKind, List[NodeId]], graph: DocpackGraph, arrow: str, noun: str) -> None:
    if not groups:
        return
    console.print(f"\n[bright_green]{title}[/bright_green]")
    for edge_kind, neighbours in groups.items():
        console.print(f"  {edge_kind.value}: {len(neighbours)} {noun}(s)")
        for neighbour in neighbours[:NEIGHBOUR_LIMIT]:
            other = graph.nodes.get(neighbour)
            if other is not None:
                console.print(f"    {arrow} [bright_black]{escape(other.name)}[/bright_black]")
        if len(neighbours) > NEIGHBOUR_LIMIT:
            console.print(f"    ... and {len(neighbours) - NEIGHBOUR_LIMIT} more")


def inspect_command(
    docpack: Path = typer.Argument(..., help="Path to .docpack file (or installed docpack name)."),
    node_id: str = typer.Argument(..., help="Node ID to inspect."),
):
    """Inspect a specific node by ID."""
    pack = open_docpack(docpack)
    graph = pack.graph
    node = _lookup(graph, node_id)
    meta = node.metadata

    console.print(f"\n[bold bright_cyan]Node: {escape(node.name)}[/bold bright_cyan]")
    console.print(f"[bright_black]{RULE}[/bright_black]")

    console.print("\n[bright_green]Basic Info[/bright_green]")
    console.print(f"  ID:         [bright_white]{escape(node.id)}[/bright_white]")
    console.print(f"  Kind:       {node.kind_str}")
    console.print(f"  Public:     {'[bright_green]yes[/bright_green]' if node.is_public else '[bright_black]no[/bright_black]'}")
    loc = node.location
    console.print(f"  Location:   {escape(f'{loc.file}:{loc.start_line}:{loc.start_col}')}")

    details = _kind_details(node)
    if details:
        console.print()
        for line in details:
            console.print(line)

    console.print("\n[bright_green]Metadata[/bright_green]")
    if meta.complexity is not None:
        console.print(f"  Complexity: {meta.complexity}")
    console.print(f"  Fan-in:     {meta.fan_in} (depended upon by {meta.fan_in} nodes)")
    console.print(f"  Fan-out:    {meta.fan_out} (depends on {meta.fan_out} nodes)")
    console.print(f"  Public API: {meta.is_public_api}")

    if meta.docstring:
        console.print("\n[bright_green]Documentation[/bright_green]")
        console.print(f"  {escape(meta.docstring)}")
    if meta.tags:
        console.print("\n[bright_green]Tags[/bright_green]")
        console.print(f"  {escape(', '.join(meta.tags))}")

    _print_edges("Outgoing Edges", group_edges(graph, node.id, outgoing=True), graph, "->", "target")
    _print_edges("Incoming Edges", group_edges(graph, node.id, outgoing=False), graph, "<-", "source")

    if meta.source_snippet:
        console.print("\n[bright_green]Source Snippet[/bright_green]")
        console.print(f"[bright_black]{escape(meta.source_snippet)}[/bright_black]")
    console.print()


# ── explain ──────────────────────────────────────────────────


def explain_command(
    docpack: Path = typer.Argument(..., help="Path to .docpack file (or installed docpack name)."),
    node_id: str = typer.Argument(..., help="Node ID to show documentation for."),
):
    """Show the documentation recorded for a node."""
    pack = open_docpack(docpack)
    node = _lookup(pack.graph, node_id)

    console.print(f"\n[bold bright_cyan]Documentation for: {escape(node.name)}[/bold bright_cyan]")
    console.print(f"[bright_black]{RULE}[/bright_black]")

    console.print("\n[bright_green]Node Info[/bright_green]")
    console.print(f"  ID:         {escape(node.id)}")
    console.print(f"  Kind:       {node.kind_str}")
    console.print(f"  Location:   {escape(str(node.location))}")

    if node.metadata.docstring:
        console.print("\n[bright_green]Inline Documentation[/bright_green]")
        console.print(escape(node.metadata.docstring))

    docs = pack.documentation
    if docs is None:
        console.print("\n[bright_yellow]No documentation included in this docpack[/bright_yellow]")
        console.print("[bright_black]The docpack may have been built without LLM documentation generation[/bright_black]")
    elif node_id not in docs.symbol_summaries:
        console.print("\n[bright_yellow]No AI-generated documentation available for this node[/bright_yellow]")
    else:
        doc = docs.symbol_summaries[node_id]
        console.print("\n[bright_green]AI-Generated Documentation[/bright_green]")
        sections = [
            ("Purpose", doc.purpose),
            ("Explanation", doc.explanation),
            ("Complexity Notes", doc.complexity_notes),
            ("Usage Hints", doc.usage_hints),
        ]
        for title, text in sections:
            if text:
                console.print(f"\n[bright_yellow]{title}:[/bright_yellow]")
                console.print(escape(text))
        for title, refs in (("Caller References", doc.caller_references), ("Callee References", doc.callee_references)):
            if refs:
                console.print(f"\n[bright_yellow]{title}:[/bright_yellow]")
                for ref in refs:
                    console.print(f"  - {escape(ref)}")
        if doc.semantic_cluster:
            console.print("\n[bright_yellow]Semantic Cluster:[/bright_yellow]")
            console.print(escape(doc.semantic_cluster))

    if node.metadata.source_snippet:
        console.print("\n[bright_green]Source Code[/bright_green]")
        console.print(f"[bright_black]{escape(node.metadata.source_snippet)}[/bright_black]")
    console.print()


# ── extract ──────────────────────────────────────────────────


def extract_command(
    docpack: Path = typer.Argument(..., help="Path to .docpack file (or installed docpack name)."),
    output: Path = typer.Option(Path("."), "--output", "-o", help="Output directory."),
):
    """Extract the files inside a docpack."""
    created = not output.exists()
    try:
        extracted = extract_docpack(resolve_docpack_path(docpack), output)
    except DocpackError as exc:
        console.print(f"[red]✗[/red] {escape(str(exc))}")
        raise typer.Exit(1)
    except OSError as exc:
        console.print(f"[red]✗[/red] Failed to write into {escape(str(output))}: {escape(str(exc))}")
        raise typer.Exit(1)

    if created:
        console.print(f"[bright_green]Created directory: {escape(str(output))}[/bright_green]")
    console.print("\n[bold bright_cyan]Extracting files...[/bold bright_cyan]")
    console.print(f"[bright_black]{'=' * 50}[/bright_black]")
    for name, size in extracted:
        console.print(f"  [bright_green]✓[/bright_green] [bright_white]{escape(name)}[/bright_white] ([bright_black]{size}[/bright_black] bytes)")
    console.print(f"\n[bright_green]Extracted {len(extracted)} files to {escape(str(output))}[/bright_green]\n")
