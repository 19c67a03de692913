"""
Rendering functions for refwatch output.

This module handles all pretty-printing and table formatting.
Commands produce result objects, this module makes them human-readable.
"""

from rich.table import Table
from rich.console import Console
from rich import box
from typing import List, Optional

from .domain.cycle import CycleResult, CycleStatus, PollSummary
from .domain.reference import RemoteReferenceSnapshot

console = Console()

STATUS_STYLES = {
    CycleStatus.OK: "[green]✓ ok[/green]",
    CycleStatus.SKIPPED: "[yellow]⚠ skipped[/yellow]",
    CycleStatus.FAILED: "[red]✗ failed[/red]",
}


def render_table(headers: List[str], rows: List[List[str]], title: Optional[str] = None) -> None:
    """
    Render a generic table with the given headers and rows.

    Args:
        headers: List of column headers
        rows: List of rows, where each row is a list of values
        title: Optional table title
    """
    if not rows:
        console.print("[yellow]No data to display.[/yellow]")
        return

    table = Table(
        title=title,
        box=box.ROUNDED,
        show_header=True,
        header_style="bold magenta"
    )

    for header in headers:
        table.add_column(header)

    for row in rows:
        table.add_row(*[str(val) for val in row])

    console.print(table)


def render_cycle_table(results: List[CycleResult], title: Optional[str] = "Watched References") -> None:
    """
    Render the results of a polling cycle.

    Args:
        results: One CycleResult per repository
        title: Optional table title
    """
    if not results:
        console.print("[yellow]No repositories resolved.[/yellow]")
        return

    table = Table(
        title=title,
        box=box.ROUNDED,
        show_header=True,
        header_style="bold magenta"
    )
    table.add_column("Repository", style="cyan")
    table.add_column("Status")
    table.add_column("Target", style="green")
    table.add_column("Watched")
    table.add_column("Refs", justify="right", style="dim")

    for result in sorted(results, key=lambda r: r.repository):
        watched = "\n".join(result.watched) if result.watched else "[dim]none[/dim]"
        table.add_row(
            result.repository,
            STATUS_STYLES[result.status],
            result.target or "[dim]-[/dim]",
            watched,
            str(result.reference_count),
        )

    console.print(table)

    errors = [r for r in results if r.error]
    if errors:
        console.print("\n[red]Errors:[/red]")
        for result in errors:
            console.print(f"  [red]✗[/red] {result.repository}: {result.error}")


def print_poll_summary(summary: PollSummary) -> None:
    """Print summary statistics for a polling cycle."""
    if summary.total == 0:
        return

    console.print("\n[bold]Summary:[/bold]")
    console.print(f"  Repositories: {summary.total}")
    console.print(f"  [green]Resolved: {summary.ok}[/green]")
    if summary.skipped:
        console.print(f"  [yellow]Skipped: {summary.skipped}[/yellow]")
    if summary.failed:
        console.print(f"  [red]Failed: {summary.failed}[/red]")


def render_snapshot_table(snapshot: RemoteReferenceSnapshot, watched: frozenset, target: Optional[str]) -> None:
    """
    Render a remote listing, marking watched references and the target.

    Args:
        snapshot: References the remote advertised
        watched: Resolved watch set
        target: Resolved target reference, if any
    """
    rows = []
    for reference in snapshot:
        flattened = reference.flatten()
        marks = []
        if flattened in watched and not reference.is_symbolic:
            marks.append("watched")
        if flattened == target and not reference.is_symbolic:
            marks.append("target")
        name = reference.name
        if reference.is_symbolic:
            name += f" → {reference.symbolic_target}"
        rows.append([name, (reference.object_id or "")[:12], ", ".join(marks)])

    render_table(["Reference", "Object", "Role"], rows, title="Remote References")
