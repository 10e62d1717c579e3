"""Rich terminal summary — severity pills, per-stage table, written artifacts."""

from __future__ import annotations

from typing import Optional, Sequence

from rich.console import Console
from rich.table import Table
from rich.text import Text

from diffreview.findings.models import SEVERITIES, Report
from diffreview.output.writer import ReportOutput

_SEVERITY_STYLE = {
    "critical": "bold white on red",
    "high": "bold white on dark_orange",
    "medium": "bold black on yellow",
    "low": "bold black on bright_cyan",
}

_SEVERITY_ICON = {
    "critical": "🔴",
    "high": "🟠",
    "medium": "🟡",
    "low": "🟢",
}


def _severity_pill(severity: str) -> Text:
    style = _SEVERITY_STYLE.get(severity, "")
    icon = _SEVERITY_ICON.get(severity, "")
    return Text(f" {icon} {severity.upper()} ", style=style)


def render(
    report: Report,
    outputs: Sequence[ReportOutput] = (),
    *,
    console: Optional[Console] = None,
) -> None:
    """Print the review summary to the terminal using Rich."""
    console = console or Console(stderr=True)

    console.print()
    console.print("[bold green]✅ Review complete![/bold green]")
    console.print()

    severity_table = Table(title="Summary", title_style="bold", border_style="dim")
    severity_table.add_column("Severity", justify="center", width=14)
    severity_table.add_column("Findings", justify="right", style="green")
    for sev in SEVERITIES:
        severity_table.add_row(
            _severity_pill(sev.value), str(report.by_severity.get(sev.value, 0))
        )
    severity_table.add_row(Text("Total", style="bold"), str(report.total_findings))
    console.print(severity_table)

    stage_table = Table(title="By Stage", title_style="bold", border_style="dim")
    stage_table.add_column("Stage", style="cyan", min_width=16)
    stage_table.add_column("Findings", justify="right", style="green")
    stage_table.add_column("Time", justify="right")
    stage_table.add_column("Status")
    for result in report.stage_results:
        status = "[red]failed[/red]" if result.failed else "[green]ok[/green]"
        stage_table.add_row(
            result.stage_name,
            str(len(result.findings)),
            f"{result.elapsed_ms / 1000:.2f}s",
            status,
        )
    console.print(stage_table)

    if report.token_usage is not None:
        console.print(f"[bold]Token usage:[/bold] {report.token_usage.total:,}")

    if outputs:
        console.print()
        console.print("[bold]Reports:[/bold]")
        for output in outputs:
            console.print(f"  {output.format.upper()}: [cyan]{output.path}[/cyan]")

    console.print()
    console.print(f"[dim]Execution time: {report.elapsed_ms / 1000:.2f}s[/dim]")
