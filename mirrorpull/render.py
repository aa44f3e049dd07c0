"""
Rendering functions for mirrorpull output.

Core functions return data, this module makes it human-readable.
"""

from pathlib import Path

from rich.table import Table
from rich.console import Console
from rich import box

from .domain.report import MirrorReport

console = Console()


def _short(path: str) -> str:
    p = Path(path)
    return f"{p.parent.name}/{p.name}"


def render_report(report: MirrorReport) -> None:
    """
    Render a mirror run as a table of fetches plus a summary line.

    Args:
        report: Finished run report
    """
    if not report.outcomes:
        console.print("[yellow]No remotes fetched.[/yellow]")
    else:
        table = Table(
            title="Mirror Fetch",
            box=box.ROUNDED,
            show_header=True,
            header_style="bold magenta"
        )
        table.add_column("Repository", style="cyan")
        table.add_column("Remote", style="dim")
        table.add_column("Status")
        table.add_column("Error", style="red")

        for outcome in report.outcomes:
            if not outcome.success:
                status = "[red]✗ failed[/red]"
            elif outcome.changed:
                status = "[green]✓ updated[/green]"
            else:
                status = "[green]✓[/green] up to date"
            table.add_row(_short(outcome.repo_path), outcome.remote, status, outcome.error_message or "")

        console.print(table)

    for trigger in report.triggers:
        console.print(f"[blue]▶ pipeline[/blue] {trigger.namespace} on {trigger.branch}")

    summary = f"{len(report.updated_repos)} updated, {len(report.failures)} failed"
    if report.success:
        console.print(f"[green]{summary}[/green]")
    else:
        console.print(f"[yellow]{summary}[/yellow]")
