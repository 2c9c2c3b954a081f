from __future__ import annotations

import logging
from dataclasses import replace
from pathlib import Path
from typing import TYPE_CHECKING, Annotated, Any

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from keygraph._graph import ResolutionStrategy, resolve_dependencies

from .config import ConfigError, KeygraphConfig, ScriptSource, get_config
from .discover import load_graph_from_module_path, load_graph_from_script, load_graph_from_source
from .graph_query import build_resolution_tree, list_edges, steps_to_json, summarize_graph
from .graph_render import render_edge_table, render_steps_table, render_summary, render_tree

if TYPE_CHECKING:
    from keygraph._graph import ExecutionStep, KeyedGraph

app = typer.Typer()

logger = logging.getLogger(__name__)
# Console for stderr (info/errors)
err_console = Console(stderr=True)
# Console for stdout (results)
out_console = Console()

PathArgument = Annotated[
    str | None,
    typer.Argument(help="Path to Python script or module path (e.g., examples.build_targets:graph)"),
]
GraphVarOption = Annotated[
    str | None,
    typer.Option("--graph", help="Name of the graph variable (for script paths only)"),
]
StartOption = Annotated[
    str,
    typer.Option("--start", help="Key of the node to resolve"),
]
StrategyOption = Annotated[
    ResolutionStrategy | None,
    typer.Option("--strategy", help="Traversal strategy (defaults to the configured strategy)"),
]


@app.callback()
def callback(
    *,
    verbose: bool = typer.Option(default=False, help="Enable verbose output"),
) -> None:
    """Keygraph CLI."""
    log_level = logging.DEBUG if verbose else logging.INFO

    # Configure rich logging handler to output to stderr
    logging.basicConfig(
        level=log_level,
        format="%(message)s",
        handlers=[
            RichHandler(
                console=err_console,
                show_time=False,
                show_path=verbose,
                rich_tracebacks=True,
            ),
        ],
    )


def _get_config() -> KeygraphConfig:
    try:
        return get_config()
    except ConfigError as e:
        err_console.print(f"[red]Configuration error: {escape(str(e))}[/red]")
        raise typer.Exit(code=1) from e


def _load_graph(
    path: str | None,
    config: KeygraphConfig,
    graph_var: str | None = None,
) -> tuple[KeyedGraph[Any, Any], str]:
    """Load a graph from the CLI path or config.

    Returns:
        The graph and a description of where it was loaded from.

    """
    if path is not None:
        if ":" in path:
            err_console.print(f"[cyan]Loading graph from module:[/cyan] {escape(path)}")
            return load_graph_from_module_path(path), path
        script_path = Path(path)
        err_console.print(f"[cyan]Loading graph from script:[/cyan] {escape(str(script_path))}")
        return load_graph_from_script(script_path, graph_var), str(script_path)

    source = config.graph
    if source is None:
        err_console.print(
            "[red]Error: No graph specified. Provide a path argument or configure \\[tool.keygraph].graph "
            "in pyproject.toml.[/red]",
        )
        raise typer.Exit(code=1)

    if graph_var and isinstance(source, ScriptSource):
        source = replace(source, name=graph_var)
    err_console.print(f"[cyan]Loading graph from config:[/cyan] {escape(str(source))}")
    return load_graph_from_source(source), str(source)


def _load_graph_or_exit(
    path: str | None,
    graph_var: str | None,
) -> tuple[KeyedGraph[Any, Any], str, KeygraphConfig]:
    config = _get_config()
    try:
        graph, source = _load_graph(path, config, graph_var)
    except (ImportError, ValueError, TypeError) as e:
        err_console.print(f"[red]Error: {escape(str(e))}[/red]")
        raise typer.Exit(code=1) from e
    logger.debug("Loaded %d nodes and %d edges from %s", len(graph.nodes), len(graph.edges), source)
    return graph, source, config


def _resolve_or_exit(
    graph: KeyedGraph[Any, Any],
    start: str,
    strategy: ResolutionStrategy,
) -> list[ExecutionStep]:
    try:
        return resolve_dependencies(graph, start, strategy=strategy)
    except RecursionError as e:
        err_console.print("[red]Error: graph is too deep for recursive resolution, use --strategy iterative[/red]")
        raise typer.Exit(code=1) from e


@app.command()
def check(
    path: PathArgument = None,
    *,
    graph_var: GraphVarOption = None,
) -> None:
    """Summarize a graph and report edges that reference absent nodes."""
    err_console.print()
    graph, source, _ = _load_graph_or_exit(path, graph_var)
    err_console.print()

    summary = summarize_graph(graph)
    render_summary(summary, source, out_console)

    err_console.print()
    err_console.print("[green]✓ Graph loaded[/green]")
    err_console.print()


@app.command()
def edges(
    path: PathArgument = None,
    *,
    graph_var: GraphVarOption = None,
    source: Annotated[
        str | None,
        typer.Option("--source", "-s", help="Only show edges leaving this node"),
    ] = None,
    destination: Annotated[
        str | None,
        typer.Option("--destination", "-d", help="Only show edges entering this node"),
    ] = None,
) -> None:
    """List the edges of a graph."""
    err_console.print()
    graph, _, _ = _load_graph_or_exit(path, graph_var)
    err_console.print()

    render_edge_table(list_edges(graph, source=source, destination=destination), out_console)


@app.command()
def resolve(
    path: PathArgument = None,
    *,
    start: StartOption,
    graph_var: GraphVarOption = None,
    strategy: StrategyOption = None,
    as_json: Annotated[
        bool,
        typer.Option("--json", help="Print steps as JSON instead of a table"),
    ] = False,
    indent: Annotated[
        int,
        typer.Option("--indent", help="JSON indentation spaces"),
    ] = 2,
) -> None:
    """Print the execution order for a node and its dependencies."""
    err_console.print()
    graph, _, config = _load_graph_or_exit(path, graph_var)

    effective_strategy = strategy if strategy is not None else config.strategy
    err_console.print(f"[cyan]Resolving[/cyan] [bold]{escape(start)}[/bold] [dim]({effective_strategy})[/dim]")
    err_console.print()

    steps = _resolve_or_exit(graph, start, effective_strategy)

    if as_json:
        out_console.print_json(steps_to_json(steps, indent=indent), indent=indent)
    else:
        render_steps_table(steps, out_console)


@app.command()
def tree(
    path: PathArgument = None,
    *,
    start: StartOption,
    graph_var: GraphVarOption = None,
    strategy: StrategyOption = None,
    max_depth: Annotated[
        int,
        typer.Option("--max-depth", min=1, help="Number of levels to show below the start node"),
    ] = 12,
) -> None:
    """Show the dependency tree explored while resolving a node."""
    err_console.print()
    graph, _, config = _load_graph_or_exit(path, graph_var)
    err_console.print()

    steps = _resolve_or_exit(graph, start, strategy if strategy is not None else config.strategy)
    render_tree(build_resolution_tree(graph, steps, start), out_console, max_depth=max_depth)


def main() -> None:
    app()
