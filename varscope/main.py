"""varscope CLI - variable usage, scope and lifecycle analysis for JS/TS sources."""
from pathlib import Path
from typing import Dict, List, Optional

import typer
from rich.markup import escape
from rich.progress import BarColumn, Progress, SpinnerColumn, TaskProgressColumn, TextColumn
from rich.table import Table
from rich.tree import Tree

from varscope.analyzer.cross_reference import (
    files_referencing,
    find_hotspots,
    find_unused_across,
    track_cross_references,
)
from varscope.analyzer.dependency import initialization_order
from varscope.analyzer.scope import Scope, ScopedVariable
from varscope.analyzer.serialization import dumps_analysis
from varscope.analyzer.usage import usage_statistics
from varscope.analyzer.workspace import FileAnalysis, WorkspaceScanner
from varscope.config import __version__, get_config
from varscope.utils.logger import SafeConsole, configure_logging

app = typer.Typer(
    name="varscope",
    help="Variable usage, scope and lifecycle analysis for JavaScript/TypeScript",
    add_completion=False
)
console = SafeConsole()

_STATUS_STYLES = {
    'UNUSED': 'bold red',
    'WRITE-ONLY': 'yellow',
    'ACTIVE': 'green',
}


def _display_path(file_path: str, root: Path) -> str:
    try:
        return str(Path(file_path).relative_to(root if root.is_dir() else root.parent))
    except ValueError:
        return file_path


def _resolve(path: str) -> Path:
    """Resolve a CLI path argument, exiting with an error if it is missing."""
    resolved = Path(path).resolve()
    if not resolved.exists():
        console.print(f"[bold red]Error:[/bold red] Path does not exist: {escape(str(resolved))}")
        raise typer.Exit(1)
    return resolved


def run_analysis(root: Path, show_progress: bool = True) -> tuple[WorkspaceScanner, Dict[str, FileAnalysis]]:
    """Analyse a file or directory with settings from the environment.

    Args:
        root: File or directory to analyse
        show_progress: Show a progress bar while scanning directories

    Returns:
        Tuple of (scanner holding the file sources, results by file path)
    """
    config = get_config()
    scanner = WorkspaceScanner(
        patterns=config.file_patterns,
        context_width=config.context_width,
        min_block_span=config.min_block_span,
        max_dependency_variables=config.max_dependency_variables,
    )

    if not show_progress or root.is_file():
        return scanner, scanner.scan(root)

    with Progress(
        SpinnerColumn(),
        TextColumn("[bold blue]{task.description}"),
        BarColumn(),
        TaskProgressColumn(),
        console=console,
        transient=True
    ) as progress:
        task = progress.add_task("[cyan]Analysing sources...", total=None)
        results = scanner.scan(root, on_file=lambda _: progress.advance(task))

    return scanner, results


def _require_results(results: Dict[str, FileAnalysis], root: Path) -> None:
    if not results:
        console.print(f"[yellow]No source files found under {escape(str(root))}[/yellow]")
        raise typer.Exit(0)


@app.command()
def scan(
    path: str = typer.Argument(".", help="File or directory to analyse"),
):
    """List every const/let/var declaration with its inferred type."""
    root = _resolve(path)
    _, results = run_analysis(root)
    _require_results(results, root)
    value_width = get_config().value_width

    table = Table(title="Declarations")
    table.add_column("Name", style="cyan")
    table.add_column("Kind", style="magenta")
    table.add_column("Type", style="yellow")
    table.add_column("Value", no_wrap=False)
    table.add_column("File", style="blue", no_wrap=False)
    table.add_column("Line", justify="right", style="green")

    total = 0
    for file_path, analysis in results.items():
        for variable in analysis.variables:
            table.add_row(
                escape(variable.name),
                variable.kind,
                escape(variable.type_label),
                escape(variable.display_value(value_width)),
                escape(_display_path(file_path, root)),
                str(variable.line),
            )
            total += 1

    console.print(table)
    console.print(f"\n[bold]Total declarations:[/bold] {total} in {len(results)} file(s)")


@app.command()
def usage(
    path: str = typer.Argument(".", help="File or directory to analyse"),
    unused_only: bool = typer.Option(False, "--unused-only", help="Show only unused and write-only variables"),
):
    """Report how often each variable is referenced after its declaration."""
    root = _resolve(path)
    _, results = run_analysis(root)
    _require_results(results, root)

    all_usage = [info for analysis in results.values() for info in analysis.usage]
    shown = [info for info in all_usage if info.status != 'ACTIVE'] if unused_only else all_usage

    if shown:
        table = Table(title="Variable Usage")
        table.add_column("Name", style="cyan")
        table.add_column("Status")
        table.add_column("Uses", justify="right", style="yellow")
        table.add_column("File", style="blue", no_wrap=False)
        table.add_column("Line", justify="right", style="green")

        for info in shown:
            style = _STATUS_STYLES[info.status]
            table.add_row(
                escape(info.variable.name),
                f"[{style}]{info.status}[/{style}]",
                str(info.usage_count),
                escape(_display_path(info.variable.file_path, root)),
                str(info.variable.line),
            )
        console.print(table)
    else:
        console.print("[bold green]✓ No unused or write-only variables found![/bold green]")

    stats = usage_statistics(all_usage)
    console.print("\n[bold yellow]Summary:[/bold yellow]")
    console.print(f"  Total variables: {stats.total_variables}")
    console.print(f"  Unused: {stats.unused_variables}")
    console.print(f"  Write-only: {stats.write_only_variables}")
    console.print(f"  Average uses: {stats.average_usage:.2f}")
    if stats.most_used:
        most = ", ".join(f"{escape(info.variable.name)} ({info.usage_count})" for info in stats.most_used)
        console.print(f"  Most used: {most}")


def _add_scope(node: Tree, scope: Scope, by_scope: Dict[int, List[ScopedVariable]]) -> None:
    for scoped in by_scope.get(id(scope), []):
        label = f"[cyan]{escape(scoped.name)}[/cyan] [dim]{scoped.variable.kind} line {scoped.variable.line}[/dim]"
        if scoped.shadows is not None:
            label += f" [yellow]⚠ shadowed by line {scoped.shadows.line}[/yellow]"
        node.add(label)

    for child in scope.children:
        title = child.kind if child.name is None else f"{child.kind} {child.name}"
        branch = node.add(f"[bold]{escape(title)}[/bold] [dim]lines {child.start_line}-{child.end_line}[/dim]")
        _add_scope(branch, child, by_scope)


@app.command()
def scopes(
    path: str = typer.Argument(".", help="File or directory to analyse"),
):
    """Show the reconstructed scope tree and shadowed variables."""
    root = _resolve(path)
    _, results = run_analysis(root)
    _require_results(results, root)

    shadowed = 0
    for file_path, analysis in results.items():
        by_scope: Dict[int, List[ScopedVariable]] = {}
        for scoped in analysis.scoped:
            by_scope.setdefault(id(scoped.scope), []).append(scoped)
            shadowed += scoped.is_shadowed

        tree = Tree(f"[bold blue]{escape(_display_path(file_path, root))}[/bold blue] [dim](global)[/dim]")
        _add_scope(tree, analysis.scope_tree, by_scope)
        console.print(tree)

    console.print(f"\n[bold]Shadowed variables:[/bold] {shadowed}")


@app.command()
def deps(
    path: str = typer.Argument(".", help="File or directory to analyse"),
):
    """Show variable dependencies, circular chains and a safe initialization order."""
    root = _resolve(path)
    _, results = run_analysis(root)
    _require_results(results, root)

    total_cycles = 0
    for file_path, analysis in results.items():
        display = escape(_display_path(file_path, root))
        if analysis.dependencies is None:
            console.print(f"[yellow]⚠ {display}: dependency analysis skipped (too many variables)[/yellow]")
            continue

        edges = [(name, node.dependencies) for name, node in analysis.dependencies.items() if node.dependencies]
        if edges:
            table = Table(title=f"Dependencies: {display}")
            table.add_column("Variable", style="cyan")
            table.add_column("Depends On", style="yellow", no_wrap=False)
            for name, dependencies in edges:
                table.add_row(escape(name), escape(", ".join(dependencies)))
            console.print(table)

        for cycle in analysis.cycles:
            console.print(f"[bold red]↻ Circular dependency:[/bold red] {escape(' → '.join(cycle))}")
        total_cycles += len(analysis.cycles)

        order = initialization_order(analysis.dependencies)
        if order and edges:
            console.print(f"[dim]Initialization order: {escape(', '.join(order))}[/dim]")

    if total_cycles == 0:
        console.print("[bold green]✓ No circular dependencies found![/bold green]")
    else:
        console.print(f"\n[bold]Circular dependencies:[/bold] {total_cycles}")


@app.command()
def lifecycle(
    path: str = typer.Argument(".", help="File or directory to analyse"),
    name: Optional[str] = typer.Option(None, "--name", "-n", help="Only show variables with this name"),
):
    """Show the declaration, assignment, modification and usage events of variables."""
    root = _resolve(path)
    _, results = run_analysis(root)
    _require_results(results, root)

    lifecycles = [
        lc for analysis in results.values() for lc in analysis.lifecycles
        if name is None or lc.variable.name == name
    ]
    if not lifecycles:
        console.print(f"[yellow]No variables named {escape(name or '')} found[/yellow]")
        raise typer.Exit(0)

    for lc in lifecycles:
        variable = lc.variable
        table = Table(
            title=f"{escape(variable.name)} ({escape(_display_path(variable.file_path, root))}:{variable.line}, {lc.scope.kind} scope)"
        )
        table.add_column("Event", style="cyan")
        table.add_column("Line", justify="right", style="green")
        table.add_column("Column", justify="right", style="green")
        table.add_column("Value", no_wrap=False)
        for event in lc.events:
            table.add_row(event.type, str(event.line), str(event.column), escape(event.value or ""))
        console.print(table)

    unusual = [lc.variable for lc in lifecycles if lc.is_unusual]
    if unusual:
        names = ", ".join(escape(v.name) for v in unusual)
        console.print(f"\n[yellow]⚠ Never read:[/yellow] {names}")


@app.command()
def xref(
    path: str = typer.Argument(".", help="Directory (or file) to analyse"),
    threshold: Optional[int] = typer.Option(None, "--threshold", "-t", help="Reference count for a hotspot"),
):
    """Cross-reference declared names across files: hotspots and unused names."""
    root = _resolve(path)
    scanner, results = run_analysis(root)
    _require_results(results, root)
    threshold = threshold if threshold is not None else get_config().hotspot_threshold

    xrefs = track_cross_references(
        scanner.sources,
        {file_path: analysis.variables for file_path, analysis in results.items()},
    )

    hotspots = find_hotspots(xrefs, threshold)
    if hotspots:
        table = Table(title=f"Hotspots (>= {threshold} references)")
        table.add_column("Name", style="cyan")
        table.add_column("References", justify="right", style="yellow")
        table.add_column("Files", justify="right", style="green")
        for variable in hotspots:
            entry = xrefs[variable.name]
            table.add_row(escape(variable.name), str(len(entry.references)), str(len(files_referencing(entry))))
        console.print(table)
    else:
        console.print(f"[green]✓ No names with {threshold} or more references[/green]")

    unused = find_unused_across(xrefs)
    if unused:
        table = Table(title="Unused Across Files")
        table.add_column("Name", style="cyan")
        table.add_column("File", style="blue", no_wrap=False)
        table.add_column("Line", justify="right", style="green")
        for variable in unused:
            table.add_row(escape(variable.name), escape(_display_path(variable.file_path, root)), str(variable.line))
        console.print(table)
    else:
        console.print("[bold green]✓ Every declared name is referenced![/bold green]")


@app.command()
def export(
    path: str = typer.Argument(".", help="File or directory to analyse"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write JSON here instead of stdout"),
):
    """Export every analysis result as JSON."""
    root = _resolve(path)
    _, results = run_analysis(root, show_progress=output is not None)
    document = dumps_analysis(results)

    if output is None:
        typer.echo(document)
        return

    output.write_text(document, encoding='utf-8')
    console.print(f"[green]✓ Wrote analysis of {len(results)} file(s) to {escape(str(output))}[/green]")


def _version_callback(value: bool):
    if value:
        typer.echo(f"varscope {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
    version: bool = typer.Option(False, "--version", callback=_version_callback, is_eager=True,
                                 help="Show the version and exit"),
):
    """varscope - variable usage, scope and lifecycle analysis."""
    configure_logging("DEBUG" if verbose else get_config().log_level)


if __name__ == "__main__":
    app()
