"""``localdoc map``: semantic subsystem map of one docpack."""

from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Optional, Sequence

import typer
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from . import config
from .cluster_map import (
    ClusterInfo,
    ClusterPair,
    canonical_pair,
    cluster_links,
    collect_clusters,
    compute_cluster_relationships,
    project_centroids,
    relationship_intensity,
)
from .config_manager import AnalysisSettings
from .loader import DocpackError, load_docpack, resolve_docpack_path
from .models import Docpack

console = Console()

# Matrix cell per intensity level (0 = no edges)
INTENSITY_CELLS = [
    "[bright_black]·[/bright_black]",
    "[bright_blue]·[/bright_blue]",
    "[bright_green]█[/bright_green]",
    "[bright_yellow]██[/bright_yellow]",
    "[bright_red]███[/bright_red]",
]


def _complexity_color(avg: float) -> str:
    if avg > 10.0:
        return "bright_red"
    if avg > 5.0:
        return "bright_yellow"
    return "bright_green"


def _size_icon(member_count: int) -> str:
    if member_count > 20:
        return "████"
    if member_count > 10:
        return "███"
    if member_count > 5:
        return "██"
    return "█"


def _short(name: str, width: int) -> str:
    return name if len(name) <= width else f"{name[: width - 3]}..."


def _print_overview(pack: Docpack, clusters: Sequence[ClusterInfo]) -> None:
    graph = pack.graph
    total_nodes = len(graph.nodes)
    clustered = sum(c.member_count for c in clusters)
    coverage = int(clustered / total_nodes * 100) if total_nodes else 0
    languages = ", ".join(f"[bright_cyan]{escape(lang)}[/bright_cyan]" for lang in sorted(graph.metadata.languages))

    source = pack.metadata.source
    if len(source) > 60:
        source = f"...{source[-57:]}"

    console.print(
        Panel.fit(
            f"[bright_cyan]◆[/bright_cyan] {len(clusters)} Subsystems   "
            f"[bright_green]◇[/bright_green] {total_nodes} Nodes   "
            f"[bright_yellow]◈[/bright_yellow] {len(graph.edges)} Edges   "
            f"[dim]Coverage:[/dim] [bright_magenta]{coverage}%[/bright_magenta]\n"
            f"[dim]Languages:[/dim] {languages or '-'}",
            title="[bold bright_white]SEMANTIC SUBSYSTEM MAP[/bold bright_white]",
            subtitle=f"[dim]Source:[/dim] [cyan]{escape(source)}[/cyan]",
            border_style="bright_magenta",
        )
    )


def _print_constellation(
    clusters: Sequence[ClusterInfo],
    relationships: Dict[ClusterPair, int],
    compact: bool,
) -> None:
    console.print("  [bold bright_cyan]SUBSYSTEM CONSTELLATION[/bold bright_cyan]")
    console.print("  [dim italic]Clusters sized by member count, colored by average complexity[/dim italic]\n")

    display_count = min(len(clusters), 8 if compact else 15)
    max_size = max((c.member_count for c in clusters), default=1) or 1

    for idx, cluster in enumerate(clusters[:display_count]):
        bar_width = max(3, int(cluster.member_count / max_size * 40))
        color = _complexity_color(cluster.avg_complexity)
        console.print(
            f"  {idx + 1:>2}. [bright_cyan]{_size_icon(cluster.member_count):<4}[/bright_cyan] "
            f"[bold]{escape(_short(cluster.name, 20)):<20}[/bold] "
            f"[{color}]{'█' * bar_width}[/{color}] {cluster.member_count:>3} [dim]nodes[/dim]"
        )

        if compact:
            continue
        if cluster.keywords:
            keywords = " ".join(f"#{k}" for k in cluster.keywords[:5])
            console.print(f"      [dim]↳[/dim] [bright_blue]{escape(keywords)}[/bright_blue]")
        links = cluster_links(relationships, idx)
        if links:
            text = " ".join(f"→#{other + 1} ({count})" for other, count in links[:3])
            console.print(f"        [dim]links:[/dim] [bright_magenta]{text}[/bright_magenta]")

    if len(clusters) > display_count:
        console.print(f"\n      [dim]...[/dim] {len(clusters) - display_count} more clusters...")


def _print_composition(clusters: Sequence[ClusterInfo], compact: bool) -> None:
    table = Table(title="CLUSTER COMPOSITION", title_style="bold bright_yellow", title_justify="left")
    table.add_column("Cluster", style="bright_white", width=20)
    table.add_column("Funcs", style="bright_cyan", justify="right")
    table.add_column("Types", style="bright_green", justify="right")
    table.add_column("Total", justify="right")
    table.add_column("Complexity", justify="right")

    for cluster in clusters[: 8 if compact else 15]:
        color = _complexity_color(cluster.avg_complexity)
        table.add_row(
            escape(_short(cluster.name, 18)),
            str(cluster.functions),
            str(cluster.types),
            str(cluster.member_count),
            f"[{color}]{cluster.avg_complexity:.1f}[/{color}]",
        )
    console.print(table)


def _print_relationship_matrix(
    clusters: Sequence[ClusterInfo],
    relationships: Dict[ClusterPair, int],
    buckets: Sequence[int],
) -> None:
    display_count = min(len(clusters), 10)

    console.print("  [bold bright_magenta]INTER-CLUSTER RELATIONSHIPS[/bold bright_magenta]")
    console.print("  [dim italic]Edge counts between semantic subsystems[/dim italic]\n")

    table = Table(box=None, show_edge=False, padding=(0, 1))
    table.add_column("", justify="right", style="bright_white")
    for i in range(display_count):
        table.add_column(f"[bright_cyan]#{i + 1}[/bright_cyan]", justify="right")

    for i in range(display_count):
        name = clusters[i].name
        label = name if len(name) <= 6 else f"{name[:5]}."
        cells: List[str] = [escape(label)]
        for j in range(display_count):
            if i == j:
                cells.append("[bright_black]●[/bright_black]")
                continue
            count = relationships.get(canonical_pair(i, j), 0)
            cells.append(INTENSITY_CELLS[relationship_intensity(count, buckets)])
        table.add_row(*cells)
    console.print(table)

    low, mid, high = buckets
    console.print(
        f"\n  [dim]Legend:[/dim] {INTENSITY_CELLS[1]} [dim]1-{low}[/dim] "
        f"{INTENSITY_CELLS[2]} [dim]{low + 1}-{mid}[/dim] "
        f"{INTENSITY_CELLS[3]} [dim]{mid + 1}-{high}[/dim] "
        f"{INTENSITY_CELLS[4]} [dim]>{high} edges[/dim]"
    )


def _print_projection(clusters: Sequence[ClusterInfo], settings: AnalysisSettings) -> None:
    console.print("  [bold bright_blue]EMBEDDING SPACE PROJECTION[/bold bright_blue]")
    console.print("  [dim italic]Cluster centroids placed by their first two components[/dim italic]\n")

    projection = project_centroids(
        clusters,
        width=settings.projection_width,
        height=settings.projection_height,
    )
    if not projection.points:
        console.print("  [dim]No centroid data available[/dim]")
        return

    rows = []
    for row in reversed(projection.grid):
        cells = []
        for cell in row:
            if cell is None:
                cells.append("[bright_black]·[/bright_black]")
                continue
            size = clusters[cell].member_count
            if size > 15:
                cells.append("[bright_red]◉[/bright_red]")
            elif size > 8:
                cells.append("[bright_yellow]●[/bright_yellow]")
            else:
                cells.append("[bright_green]○[/bright_green]")
        rows.append("".join(cells))

    console.print(Panel.fit("\n".join(rows), border_style="bright_black"))
    console.print(
        "  [dim]Size:[/dim] [bright_green]○[/bright_green] [dim]1-8[/dim] "
        "[bright_yellow]●[/bright_yellow] [dim]9-15[/dim] "
        "[bright_red]◉[/bright_red] [dim]>15 nodes[/dim]"
    )


def render_map(pack: Docpack, compact: bool = False, settings: Optional[AnalysisSettings] = None) -> None:
    """Print the subsystem map for one loaded docpack."""
    settings = settings or AnalysisSettings()
    clusters = collect_clusters(pack.graph)

    console.print()
    _print_overview(pack, clusters)

    if not clusters:
        console.print("\n  [bright_yellow]No clusters found. Build the docpack with the embedding pipeline enabled.[/bright_yellow]")
        return

    relationships = compute_cluster_relationships(pack.graph, clusters)

    console.print()
    _print_constellation(clusters, relationships, compact)
    console.print()
    _print_composition(clusters, compact)

    if relationships and not compact:
        console.print()
        _print_relationship_matrix(clusters, relationships, settings.intensity_buckets)

    if any(c.centroid is not None for c in clusters) and not compact:
        console.print()
        _print_projection(clusters, settings)
    console.print()


def map_command(
    docpack: Path = typer.Argument(..., help="Path to .docpack file (or installed docpack name)."),
    compact: bool = typer.Option(False, "--compact", "-c", help="Compact output (less detail)."),
):
    """Visualize semantic subsystem clustering and architecture."""
    try:
        pack = load_docpack(resolve_docpack_path(docpack))
    except DocpackError as exc:
        console.print(f"[red]✗[/red] {escape(str(exc))}")
        raise typer.Exit(1)

    render_map(pack, compact=compact, settings=config.current_settings())
