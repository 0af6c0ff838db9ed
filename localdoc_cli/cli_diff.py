"""``localdoc diff``: compare two docpacks."""

from __future__ import annotations

from pathlib import Path
from typing import Dict, Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from . import config
from .diff_models import GraphDiff
from .graph_diff import diff_graphs, partition_complexity_deltas
from .loader import DocpackError, load_docpack, resolve_docpack_path
from .models import Node

console = Console()

RULE = "━" * 54


def _more(total: int, shown: int, indent: str = "  ") -> None:
    if total > shown:
        console.print(f"{indent}[dim]... and {total - shown} more[/dim]")


def _print_nodes(title: str, nodes: Dict[str, Node], marker: str, style: str, limit: int) -> None:
    if not nodes:
        return
    console.print(f"  {title}:")
    for node in list(nodes.values())[:limit]:
        console.print(f"    [{style}]{marker}[/{style}] {escape(node.name)} [dim]\\[{node.kind_str}][/dim]")
    _more(len(nodes), limit, indent="    ")
    console.print()


def render_diff(result: GraphDiff, limit: int = config.DISPLAY_LIMIT) -> None:
    """Print a GraphDiff the way `localdoc diff` shows it."""
    node_diff = result.node_diff

    console.print("[bold cyan]📊 Docpack Comparison[/bold cyan]")
    console.print(f"[dim]{RULE}[/dim]\n")

    # ── Nodes ────────────────────────────────────────────────
    console.print("[bold]📦 Node Changes:[/bold]")
    console.print(f"  ✨ Added:   [green]{len(node_diff.added)}[/green] nodes")
    console.print(f"  🗑️  Removed: [red]{len(node_diff.removed)}[/red] nodes")
    console.print(f"  🔄 Common:  {len(node_diff.common)} nodes\n")

    _print_nodes("Added nodes", node_diff.added, "+", "green", limit)
    _print_nodes("Removed nodes", node_diff.removed, "-", "red", limit)

    # ── Signatures ───────────────────────────────────────────
    if result.signature_changes:
        console.print(f"[bold]✏️  Signature Changes: {len(result.signature_changes)}[/bold]")
        for change in result.signature_changes[:limit]:
            console.print(f"  📝 {escape(change.node_name)}")
            console.print(f"     [red]Old:[/red] {escape(change.old_signature)}")
            console.print(f"     [green]New:[/green] {escape(change.new_signature)}")
        _more(len(result.signature_changes), limit)
        console.print()

    if result.kind_changes:
        console.print(f"[bold]🔀 Kind Changes: {len(result.kind_changes)}[/bold]")
        for change in result.kind_changes[:limit]:
            console.print(f"  {escape(change.node_id)}: {change.old_kind} → {change.new_kind}")
        _more(len(result.kind_changes), limit)
        console.print()

    # ── Complexity ───────────────────────────────────────────
    if result.complexity_deltas:
        increased, decreased = partition_complexity_deltas(result.complexity_deltas)
        top = max(1, limit // 2)

        console.print("[bold]🧮 Complexity Changes:[/bold]")
        console.print(f"  📈 Increased: {len(increased)} nodes")
        console.print(f"  📉 Decreased: {len(decreased)} nodes")

        if increased:
            console.print("\n  Top complexity increases:")
            for d in increased[:top]:
                console.print(
                    f"    {escape(d.node_name)} [dim]\\[{d.node_kind}][/dim]: "
                    f"{d.old_complexity} → {d.new_complexity} [red](+{d.delta})[/red]"
                )
        if decreased:
            console.print("\n  Top complexity decreases:")
            for d in decreased[:top]:
                console.print(
                    f"    {escape(d.node_name)} [dim]\\[{d.node_kind}][/dim]: "
                    f"{d.old_complexity} → {d.new_complexity} [green]({d.delta})[/green]"
                )
        console.print()

    # ── Documentation ────────────────────────────────────────
    if result.cluster_drift:
        console.print(
            f"[bold]🎯 Semantic Cluster Drift: {len(result.cluster_drift)} nodes changed clusters[/bold]"
        )
        for drift in result.cluster_drift[:limit]:
            old_cluster = escape(drift.old_cluster or "none")
            new_cluster = escape(drift.new_cluster or "none")
            console.print(
                f"  {escape(drift.node_name)} [dim]\\[{drift.node_kind}][/dim]: \"{old_cluster}\" → \"{new_cluster}\""
            )
        _more(len(result.cluster_drift), limit)
        console.print()

    if result.doc_changes:
        doc_limit = max(1, limit // 2)
        console.print(f"[bold]📚 Documentation Changed (meaning shifted): {len(result.doc_changes)}[/bold]")
        for change in result.doc_changes[:doc_limit]:
            console.print(f"  📖 {escape(change.node_name)} [dim]\\[{change.node_kind}][/dim]")
            console.print(f"     Reason: {change.reason}")
        _more(len(result.doc_changes), doc_limit)
        console.print()

    # ── Structure ────────────────────────────────────────────
    structure = result.structure
    if structure.has_significant_changes:
        console.print("[bold]🌳 Graph Structure Changes:[/bold]")
        console.print(
            f"  Edges: {structure.old_edge_count} → {structure.new_edge_count} (Δ {structure.edge_delta})"
        )
        if structure.heavily_mutated_subtrees:
            console.print("\n  🔥 Heavily mutated subtrees:")
            table = Table(show_header=True, box=None, padding=(0, 2))
            table.add_column("Module", style="cyan")
            table.add_column("Changes", justify="right")
            for subtree in structure.heavily_mutated_subtrees[: max(1, limit // 2)]:
                table.add_row(escape(subtree.root), str(subtree.change_count))
            console.print(table)
        console.print()

    console.print(f"[dim]{RULE}[/dim]")
    console.print(f"[bold]📊 Total changes detected: {result.total_changes}[/bold]")


def diff_command(
    old: Path = typer.Argument(..., help="Old .docpack file (or installed docpack name)."),
    new: Path = typer.Argument(..., help="New .docpack file (or installed docpack name)."),
    limit: Optional[int] = typer.Option(None, "--limit", "-l", min=1, help="Max entries shown per section."),
):
    """Compare two docpacks: nodes, signatures, complexity, docs and structure."""
    settings = config.current_settings()
    try:
        old_pack = load_docpack(resolve_docpack_path(old))
        new_pack = load_docpack(resolve_docpack_path(new))
    except DocpackError as exc:
        console.print(f"[red]✗[/red] {escape(str(exc))}")
        raise typer.Exit(1)

    result = diff_graphs(old_pack, new_pack, settings=settings)
    render_diff(result, limit=limit or settings.display_limit)
