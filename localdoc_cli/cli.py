"""Typer-based CLI for inspecting and comparing .docpack files."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from . import __version__
from .cli_config import config_app
from .cli_diff import diff_command
from .cli_map import map_command
from .cli_query import (
    explain_command,
    extract_command,
    inspect_command,
    nodes_command,
    open_docpack,
    search_command,
)
from .graph_stats import (
    complexity_summary,
    count_edge_kinds,
    count_node_kinds,
    fan_in_summary,
    public_api_breakdown,
)

console = Console()

app = typer.Typer(
    help="📦 localdoc — inspect, compare and map .docpack code-knowledge graphs.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

app.add_typer(config_app, name="config")
app.command("diff")(diff_command)
app.command("map")(map_command)
app.command("nodes")(nodes_command)
app.command("search")(search_command)
app.command("inspect")(inspect_command)
app.command("explain")(explain_command)
app.command("extract")(extract_command)


def version_callback(value: bool):
    """Print version and exit."""
    if value:
        typer.echo(f"localdoc v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=version_callback,
        is_eager=True,
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
):
    """localdoc: differential analysis and subsystem maps for code-knowledge graphs."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


@app.command("info")
def info(docpack: Path = typer.Argument(..., help="Path to .docpack file (or installed docpack name).")):
    """Show quick info about a docpack."""
    pack = open_docpack(docpack)
    graph, meta, docs = pack.graph, pack.metadata, pack.documentation

    table = Table(title="Docpack Info", show_header=False, title_style="bold cyan")
    table.add_column("Field", style="cyan", width=16)
    table.add_column("Value")

    table.add_row("[bold green]Package[/bold green]", "")
    table.add_row("Source", escape(meta.source))
    table.add_row("Generated", meta.generated_at)
    table.add_row("Generator", escape(meta.generator))
    table.add_row("Version", meta.version)
    table.add_row("Size", f"{meta.total_size_bytes / 1024:.2f} KB")

    table.add_row("[bold green]Graph Contents[/bold green]", "")
    table.add_row("Total Nodes", str(len(graph.nodes)))
    table.add_row("Total Edges", str(len(graph.edges)))
    table.add_row("Files", str(graph.metadata.total_files))
    table.add_row("Symbols", str(graph.metadata.total_symbols))
    if graph.metadata.languages:
        table.add_row("Languages", escape(", ".join(sorted(graph.metadata.languages))))
    if graph.metadata.repository_name:
        table.add_row("Repository", escape(graph.metadata.repository_name))

    kinds = dict(count_node_kinds(graph))
    table.add_row("[bold green]Breakdown[/bold green]", "")
    for label, kind in (("Functions", "function"), ("Types", "type"), ("Modules", "module"), ("Clusters", "cluster")):
        table.add_row(label, str(kinds.get(kind, 0)))

    if docs is not None:
        table.add_row("[bold green]Documentation[/bold green]", "")
        table.add_row("Symbol docs", str(len(docs.symbol_summaries)))
        table.add_row("Module docs", str(len(docs.module_overviews)))
        table.add_row("Tokens used", str(docs.total_tokens_used))
    else:
        table.add_row("[bold yellow]Documentation[/bold yellow]", "No documentation included")

    console.print(table)


@app.command("stats")
def stats(docpack: Path = typer.Argument(..., help="Path to .docpack file (or installed docpack name).")):
    """Show detailed graph statistics."""
    pack = open_docpack(docpack)
    graph = pack.graph

    console.print("\n[bold cyan]Detailed Statistics[/bold cyan]")

    console.print("\n[green]Node Counts[/green]")
    for kind, count in count_node_kinds(graph):
        console.print(f"  {kind:<12} {count}")

    console.print("\n[green]Edge Counts[/green]")
    edge_kinds = count_edge_kinds(graph)
    for kind, count in edge_kinds[:10]:
        console.print(f"  {kind:<20} {count}")
    if len(edge_kinds) > 10:
        console.print(f"  [dim]... and {len(edge_kinds) - 10} more edge types[/dim]")

    console.print("\n[green]Complexity Analysis[/green]")
    complexity = complexity_summary(graph)
    if complexity["count"]:
        console.print(f"  Nodes with complexity: {complexity['count']}")
        console.print(f"  Average complexity:    {complexity['avg']:.2f}")
        console.print(f"  Max complexity:        {complexity['max']}")
        console.print("\n  [yellow]Most Complex Nodes:[/yellow]")
        for node, score in complexity["top"]:
            console.print(f"    [red]{score}[/red] {escape(node.name)} [dim]({escape(node.location.file)})[/dim]")
    else:
        console.print("  No complexity data available")

    console.print("\n[green]Fan-in/Fan-out Analysis[/green]")
    fan = fan_in_summary(graph)
    if fan["top"]:
        console.print(f"  Max fan-in:  {fan['max_fan_in']} (most depended upon)")
        console.print(f"  Max fan-out: {fan['max_fan_out']} (most dependencies)")
        console.print("\n  [yellow]Highest Fan-in (most depended upon):[/yellow]")
        for node in fan["top"]:
            console.print(f"    [cyan]{node.metadata.fan_in}[/cyan] {escape(node.name)} [dim]({node.kind_str})[/dim]")
    else:
        console.print("  No fan-in/fan-out data available")

    console.print("\n[green]Public API[/green]")
    breakdown = public_api_breakdown(graph)
    console.print(f"  Public API nodes: {sum(breakdown.values())}")
    for kind, count in breakdown.items():
        console.print(f"    {kind:<12} {count}")
    console.print()


if __name__ == "__main__":
    app()
