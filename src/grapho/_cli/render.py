"""Rich rendering utilities for evaluation reports."""

from __future__ import annotations

from typing import TYPE_CHECKING

from rich.markup import escape
from rich.table import Table

from grapho._eval_engine import NodeError

if TYPE_CHECKING:
    from rich.console import Console

    from grapho._eval_engine import EvalReport
    from grapho._graph import Graph, NodeId
    from grapho._mesh import Mesh


def _node_label(graph: Graph, node_id: NodeId) -> str:
    node = graph.node(node_id)
    if node is None:
        return f"#{node_id}"
    return escape(f"{node.name} #{node_id}")


def render_report_table(graph: Graph, report: EvalReport, console: Console) -> None:
    """Render per-node timings of a report as a Rich table.

    Args:
        graph: The evaluated graph, for node names.
        report: The report to render.
        console: Rich Console to output to.

    """
    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("Node", style="bold")
    table.add_column("Kind")
    table.add_column("Status")
    table.add_column("Time (ms)", justify="right")

    for node_id in graph.topo_sort_from(report.target):
        node = graph.node(node_id)
        kind = escape(node.kind) if node is not None else "?"
        error = report.error_for(node_id)
        node_report = report.nodes.get(node_id)
        if error is not None:
            status = "[red]✗ error[/red]" if isinstance(error, NodeError) else "[yellow]skipped[/yellow]"
        elif node_report is not None and node_report.cache_hit:
            status = "[dim]cached[/dim]"
        else:
            status = "[green]✓ computed[/green]"
        duration = "-" if node_report is None else f"{node_report.duration_ms:.3f}"
        table.add_row(_node_label(graph, node_id), kind, status, duration)

    console.print(table)


def render_errors(graph: Graph, report: EvalReport, console: Console) -> None:
    """Render the report's errors, one line each."""
    for error in report.errors:
        label = _node_label(graph, error.node)
        if isinstance(error, NodeError):
            console.print(f"  [red]•[/red] {label}: {escape(error.message)}")
        else:
            causes = ", ".join(_node_label(graph, n) for n in error.upstream)
            console.print(f"  [yellow]•[/yellow] {label}: upstream error in {causes}")


def render_mesh_summary(mesh: Mesh, console: Console) -> None:
    bounds = mesh.bounds()
    console.print(f"[cyan]Vertices:[/cyan] {mesh.vertex_count}  [cyan]Triangles:[/cyan] {mesh.triangle_count}")
    if bounds is not None:
        lo = ", ".join(f"{v:g}" for v in bounds.min)
        hi = ", ".join(f"{v:g}" for v in bounds.max)
        extent = escape(f"min=[{lo}] max=[{hi}]")
        console.print(f"[cyan]Bounds:[/cyan] {extent}")
