"""Rich rendering utilities for graph commands."""

from __future__ import annotations

from typing import TYPE_CHECKING

from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.tree import Tree

if TYPE_CHECKING:
    from rich.console import Console

    from keygraph._graph import ExecutionStep

    from .graph_query import EdgeInfo, GraphSummary, TreeNode


def render_summary(summary: GraphSummary, title: str, console: Console) -> None:
    """Render a graph summary as a Rich panel.

    Args:
        summary: GraphSummary to render.
        title: Panel title, usually where the graph was loaded from.
        console: Rich Console to output to.

    """
    table = Table(show_header=False, box=None)
    table.add_column("Field", style="cyan")
    table.add_column("Value", justify="right")
    table.add_row("Nodes", str(summary.node_count))
    table.add_row("Edges", str(summary.edge_count))
    table.add_row("Dangling edges", str(len(summary.dangling_edges)))

    console.print(Panel(table, title=f"[bold]{escape(title)}[/bold]", border_style="cyan"))

    if summary.dangling_edges:
        console.print()
        console.print("[yellow]Edges referencing absent nodes:[/yellow]")
        for edge_key, missing in summary.dangling_edges.items():
            missing_str = ", ".join(sorted(missing))
            console.print(f"  [yellow]•[/yellow] {escape(edge_key)} [dim]({escape(missing_str)})[/dim]")


def render_edge_table(edges: list[EdgeInfo], console: Console) -> None:
    """Render an edge list as a Rich table.

    Args:
        edges: List of EdgeInfo to render.
        console: Rich Console to output to.

    """
    if not edges:
        console.print("[dim]No edges match the given filters[/dim]")
        return

    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("Edge", style="bold")
    table.add_column("Source")
    table.add_column("Destination")
    table.add_column("Metadata", style="dim")

    for edge in edges:
        table.add_row(escape(edge.key), escape(edge.src), escape(edge.dst), escape(str(edge.metadata)))

    console.print(table)
    console.print(f"\n[dim]Total: {len(edges)} edges[/dim]")


def render_steps_table(steps: list[ExecutionStep], console: Console) -> None:
    """Render execution steps as a Rich table.

    Args:
        steps: Execution steps in order.
        console: Rich Console to output to.

    """
    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Node", style="bold")
    table.add_column("Edges")

    for index, step in enumerate(steps, start=1):
        edge_labels = [_format_edge_visit(visit.edge_key, begins_cycle=visit.begins_cycle) for visit in step.edges]
        table.add_row(str(index), escape(step.node_key), ", ".join(edge_labels) or "[dim]-[/dim]")

    console.print(table)

    n_cycles = sum(len(step.cyclic_edge_keys) for step in steps)
    if n_cycles:
        console.print(f"\n[yellow]{n_cycles} edge(s) begin a cycle and were not followed[/yellow]")


def render_tree(tree_node: TreeNode, console: Console, max_depth: int | None = None) -> None:
    """Render a resolution tree using Rich Tree.

    Args:
        tree_node: TreeNode root to render.
        console: Rich Console to output to.
        max_depth: Number of levels to show below the root. None shows all.

    """
    rich_tree = Tree(f"[bold]{escape(tree_node.node_key)}[/bold]")
    # Subtrees are attached in order, so the stack can be drained in any order.
    stack = [(rich_tree, tree_node.children, 1)]
    while stack:
        parent, children, depth = stack.pop()
        if not children:
            continue
        if max_depth is not None and depth > max_depth:
            parent.add("[dim]… deeper levels hidden (--max-depth)[/dim]")
            continue
        for child in children:
            stack.append((parent.add(_tree_label(child)), child.children, depth + 1))
    console.print(rich_tree)


def _tree_label(child: TreeNode) -> str:
    label = f"{escape(child.node_key)} [dim]via {escape(child.edge_key or '')}[/dim]"
    if child.begins_cycle:
        label += " [yellow]↻ cycle[/yellow]"
    elif child.repeated:
        label += " [dim](resolved above)[/dim]"
    return label


def _format_edge_visit(edge_key: str, *, begins_cycle: bool) -> str:
    if begins_cycle:
        return f"[yellow]{escape(edge_key)} ↻[/yellow]"
    return escape(edge_key)
