import logging
from pathlib import Path
from typing import Annotated

import tomli_w
import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.panel import Panel

from grapho._graph import CycleDetectedError, Graph, GraphError, NodeId, find_output_node
from grapho._mesh_eval import MeshEvalState, evaluate_mesh_graph
from grapho._plan import PlanError, build_graph, default_plan, load_plan, plan_to_toml_data
from grapho._project import ProjectLoadError, dumps_project, load_project, save_project

from .config import ConfigError, get_config
from .render import render_errors, render_mesh_summary, render_report_table

app = typer.Typer()

logger = logging.getLogger(__name__)
# Console for stderr (info/errors)
err_console = Console(stderr=True)
# Console for stdout (results)
out_console = Console()


@app.callback()
def callback(
    *,
    verbose: bool = typer.Option(default=False, help="Enable verbose output"),
) -> None:
    """Grapho procedural modeling engine, headless runner."""
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


def _fail(message: str) -> typer.Exit:
    err_console.print(f"[red]✗ {escape(message)}[/red]")
    return typer.Exit(code=1)


def _node_by_name(graph: Graph, name: str) -> NodeId:
    for node in graph.nodes():
        if node.name == name:
            return node.id
    msg = f"Output node '{name}' not found"
    raise _fail(msg)


def _evaluate_and_report(graph: Graph, output: NodeId) -> bool:
    """Evaluate ``output`` once, print the report and return whether the output is valid."""
    err_console.print("[cyan]Evaluating graph...[/cyan]")
    try:
        result = evaluate_mesh_graph(graph, output, MeshEvalState())
    except CycleDetectedError as e:
        raise _fail(str(e)) from e

    report = result.report
    render_report_table(graph, report, err_console)
    err_console.print(
        f"[cyan]Computed:[/cyan] {len(report.computed)}  "
        f"[cyan]Cache hits:[/cyan] {report.cache.hits}  "
        f"[cyan]Misses:[/cyan] {report.cache.misses}  "
        f"[cyan]Total:[/cyan] {report.total_ms:.3f} ms",
    )

    if report.errors:
        err_console.print()
        err_console.print("[red]✗ Evaluation errors:[/red]")
        render_errors(graph, report, err_console)

    if result.output is not None:
        err_console.print()
        render_mesh_summary(result.output, err_console)

    return report.output_valid


@app.command()
def run(
    plan_path: Annotated[
        Path | None,
        typer.Argument(help="Path to a plan TOML file (defaults to [tool.grapho].plan or a Box -> Output plan)"),
    ] = None,
    *,
    save: Annotated[
        Path | None,
        typer.Option("--save", help="Save the built project to this JSON file"),
    ] = None,
    print_project: Annotated[
        bool,
        typer.Option("--print", help="Print the built project JSON to stdout"),
    ] = False,
    output_node: Annotated[
        str | None,
        typer.Option("--output-node", help="Name of the node to evaluate"),
    ] = None,
) -> None:
    """Build a graph from a plan, evaluate it and report the result."""
    err_console.print()

    try:
        config = get_config()
    except ConfigError as e:
        raise _fail(str(e)) from e

    plan_path = plan_path or config.plan
    save = save or config.save
    output_node = output_node or config.output_node

    try:
        if plan_path is None:
            err_console.print("[cyan]Using default plan[/cyan]")
            plan = default_plan()
        else:
            err_console.print(f"[cyan]Loading plan from:[/cyan] {plan_path}")
            plan = load_plan(plan_path)
        built = build_graph(plan)
    except PlanError as e:
        raise _fail(str(e)) from e

    err_console.print(f"[cyan]Nodes:[/cyan] {len(built.graph)}")

    if print_project:
        out_console.print_json(dumps_project(built.graph))

    if save is not None:
        try:
            save_project(built.graph, save)
        except OSError as e:
            raise _fail(f"Cannot save project: {e}") from e
        err_console.print(f"[cyan]Saved project to:[/cyan] {save}")

    if output_node is not None:
        output = _node_by_name(built.graph, output_node)
    elif built.output is not None:
        output = built.output
    else:
        try:
            output = find_output_node(built.graph)
        except GraphError as e:
            raise _fail(str(e)) from e

    valid = _evaluate_and_report(built.graph, output)
    err_console.print()
    if not valid:
        err_console.print("[red]✗ Output is invalid[/red]")
        raise typer.Exit(code=1)
    err_console.print("[green]✓ Evaluation complete[/green]")


@app.command(name="eval")
def eval_project(
    project_path: Annotated[
        Path,
        typer.Argument(help="Path to a project JSON file"),
    ],
    *,
    output_node: Annotated[
        str | None,
        typer.Option("--output-node", help="Name of the node to evaluate"),
    ] = None,
) -> None:
    """Load a saved project and evaluate its output node."""
    err_console.print()
    err_console.print(f"[cyan]Loading project from:[/cyan] {project_path}")
    try:
        graph = load_project(project_path)
    except (ProjectLoadError, OSError) as e:
        raise _fail(str(e)) from e

    if output_node is not None:
        output = _node_by_name(graph, output_node)
    else:
        try:
            output = find_output_node(graph)
        except GraphError as e:
            raise _fail(str(e)) from e

    valid = _evaluate_and_report(graph, output)
    err_console.print()
    if not valid:
        err_console.print("[red]✗ Output is invalid[/red]")
        raise typer.Exit(code=1)
    err_console.print("[green]✓ Evaluation complete[/green]")


@app.command()
def topo(
    plan_path: Annotated[
        Path,
        typer.Argument(help="Path to a plan TOML file"),
    ],
    *,
    output_node: Annotated[
        str | None,
        typer.Option("--output-node", help="Name of the node to order from"),
    ] = None,
) -> None:
    """Print the evaluation order of a plan's output node, dependencies first."""
    try:
        built = build_graph(load_plan(plan_path))
    except PlanError as e:
        raise _fail(str(e)) from e

    if output_node is not None:
        output = _node_by_name(built.graph, output_node)
    elif built.output is not None:
        output = built.output
    else:
        try:
            output = find_output_node(built.graph)
        except GraphError as e:
            raise _fail(str(e)) from e

    try:
        order = built.graph.topo_sort_from(output)
    except GraphError as e:
        raise _fail(str(e)) from e

    for node_id in order:
        node = built.graph.require_node(node_id)
        out_console.print(f"{node_id}\t{escape(node.name)}\t{escape(node.kind)}")


@app.command(name="init-plan")
def init_plan(
    output: Annotated[
        Path,
        typer.Option("-o", "--output", help="Path to output TOML file"),
    ],
) -> None:
    """Write a sample plan TOML file (Box -> Output)."""
    err_console.print()
    err_console.print(f"[cyan]Writing sample plan to:[/cyan] {output}")
    try:
        output.parent.mkdir(parents=True, exist_ok=True)
        with output.open("wb") as f:
            tomli_w.dump(plan_to_toml_data(default_plan()), f)
    except OSError as e:
        raise _fail(f"Cannot write plan: {e}") from e

    err_console.print(
        Panel(
            "Edit nodes, params and links, then run:\n"
            f"[bold]grapho run {escape(str(output))}[/bold]",
            title="[bold]Plan created[/bold]",
            border_style="cyan",
        ),
    )
    err_console.print()


def main() -> None:
    app()
