"""diffreview CLI — Typer application with review, extract, and init commands."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler

from diffreview import __version__

app = typer.Typer(
    name="diffreview",
    help="Run analysis stages over a diff and report their findings.",
    add_completion=False,
    no_args_is_help=True,
)

console = Console(stderr=True)


def _configure_logging(verbose: bool, debug: bool) -> None:
    level = logging.DEBUG if debug else logging.INFO if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False, show_time=debug)],
        force=True,
    )


def _resolve_repo_root(required: bool = True) -> Path:
    """Find the git repo root. Falls back to cwd when not *required*."""
    from diffreview.git.adapter import GitError, get_repo_root

    try:
        return get_repo_root()
    except GitError as exc:
        if not required:
            return Path.cwd()
        console.print(f"[bold red]Error:[/bold red] {exc}")
        raise typer.Exit(code=2) from exc


# ── review ────────────────────────────────────────────────────────────────────


@app.command()
def review(
    commit: str = typer.Option("HEAD", "--commit", "-c", help="Commit to review"),
    file: Optional[Path] = typer.Option(None, "--file", "-f", help="Diff file path (alternative to --commit)"),
    from_ref: Optional[str] = typer.Option(None, "--from", help="Base ref of a range"),
    to_ref: Optional[str] = typer.Option(None, "--to", help="Head ref of a range (default: HEAD)"),
    config: Optional[str] = typer.Option(None, "--config", help="Path to .diffreview.toml"),
    output: Optional[str] = typer.Option(None, "--output", "-o", help="Output directory"),
    format: Optional[str] = typer.Option(None, "--format", help="Output formats, comma separated: markdown,json,sarif"),
    disable: List[str] = typer.Option([], "--disable", help="Disable a stage (repeatable)"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Show files and stages without running"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
    debug: bool = typer.Option(False, "--debug", help="Debug output with tracebacks"),
) -> None:
    """Review the changes of a commit, a ref range, or a diff file."""
    from diffreview.config.loader import ConfigError, load_config
    from diffreview.config.schema import OUTPUT_FORMATS
    from diffreview.git.diff_parser import DiffParser
    from diffreview.git.models import DiffUnreadable
    from diffreview.output import terminal
    from diffreview.pipeline.executor import PipelineExecutor
    from diffreview.stages.models import StageSetupError
    from diffreview.stages.registry import build_registry

    _configure_logging(verbose, debug)
    repo_root = _resolve_repo_root(required=file is None)

    # --- Load config ---
    try:
        cfg = load_config(repo_root, config)
    except ConfigError as exc:
        console.print(f"[bold red]Config error:[/bold red] {exc}")
        raise typer.Exit(code=2) from exc

    # --- CLI overrides ---
    if format:
        formats = [f.strip() for f in format.split(",") if f.strip()]
        invalid = [f for f in formats if f not in OUTPUT_FORMATS]
        if invalid or not formats:
            console.print(f"[bold red]Invalid format:[/bold red] {format}")
            raise typer.Exit(code=2)
        cfg.output.formats = formats
    if output:
        cfg.output.directory = output
    cfg.stages.disable.extend(disable)

    # --- Build stages ---
    try:
        registry = build_registry(cfg, repo_root)
    except StageSetupError as exc:
        console.print(f"[bold red]Stage error:[/bold red] {exc}")
        raise typer.Exit(code=2) from exc
    stages = registry.enabled_stages()

    # --- Parse diff ---
    parser = DiffParser(cfg.parser.extensions)
    try:
        if file is not None:
            diff = parser.parse_file(file)
        elif from_ref:
            diff = parser.parse_range(repo_root, from_ref, to_ref or "HEAD")
        else:
            diff = parser.parse_commit(repo_root, commit)
    except DiffUnreadable as exc:
        console.print(f"[bold red]Error:[/bold red] {exc}")
        raise typer.Exit(code=2) from exc

    if diff.is_empty:
        console.print("[yellow]No supported files found in diff — nothing to review.[/yellow]")
        raise typer.Exit(code=0)

    console.print(f"[green]✓[/green] Parsed {len(diff.files)} file(s): {diff.summary}")

    if dry_run:
        console.print(f"[bold]Dry run — {len(diff.files)} files would be reviewed:[/bold]")
        for f in diff.files:
            console.print(f"  {f.path} [dim]({f.status.value}, +{f.additions} -{f.deletions})[/dim]")
        console.print(f"[bold]Stages ({len(stages)}):[/bold]")
        for stage in stages:
            console.print(f"  {stage.name}")
        raise typer.Exit(code=0)

    # --- Run pipeline ---
    result = PipelineExecutor().execute(diff, stages, cfg.output)
    if not result.success or result.report is None:
        console.print(f"[bold red]Review failed:[/bold red] {result.error}")
        raise typer.Exit(code=1)

    terminal.render(result.report, result.outputs, console=console)
    raise typer.Exit(code=0)


# ── extract ───────────────────────────────────────────────────────────────────


@app.command()
def extract(
    report: Path = typer.Argument(..., help="Rendered Markdown report with ticked findings"),
    format: str = typer.Option("markdown", "--format", "-f", help="Output format: markdown | json"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write to file instead of stdout"),
) -> None:
    """Extract the findings ticked in a rendered report."""
    from diffreview.extract import extract_file, format_findings_json, format_findings_markdown

    if format not in ("markdown", "json"):
        console.print(f"[bold red]Invalid format:[/bold red] {format}")
        raise typer.Exit(code=2)

    try:
        findings = extract_file(report)
    except OSError as exc:
        console.print(f"[bold red]Error:[/bold red] cannot read {report}: {exc}")
        raise typer.Exit(code=2) from exc

    text = (
        format_findings_json(findings)
        if format == "json"
        else format_findings_markdown(findings)
    )

    if output is not None:
        output.write_text(text, encoding="utf-8")
        console.print(f"[green]✓[/green] {len(findings)} finding(s) written to {output}")
    else:
        print(text)


# ── init ──────────────────────────────────────────────────────────────────────


@app.command()
def init(
    with_stages: bool = typer.Option(False, "--stages", help="Also create an example stage definition"),
) -> None:
    """Generate a starter .diffreview.toml in the repo root."""
    from diffreview.config.defaults import DEFAULT_TOML, EXAMPLE_STAGES_YAML
    from diffreview.config.loader import CONFIG_FILENAME

    repo_root = _resolve_repo_root()
    config_path = repo_root / CONFIG_FILENAME

    if config_path.exists():
        console.print(f"[yellow]⚠[/yellow]  {CONFIG_FILENAME} already exists at {config_path}")
        raise typer.Exit(code=1)

    config_path.write_text(DEFAULT_TOML, encoding="utf-8")
    console.print(f"[green]✓[/green] Created {config_path}")

    if with_stages:
        stages_path = repo_root / ".diffreview-stages" / "stages.yaml"
        if stages_path.exists():
            console.print(f"[yellow]⚠[/yellow]  {stages_path} already exists, left untouched")
        else:
            stages_path.parent.mkdir(parents=True, exist_ok=True)
            stages_path.write_text(EXAMPLE_STAGES_YAML, encoding="utf-8")
            console.print(f"[green]✓[/green] Created {stages_path}")


# ── version ───────────────────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        print(f"diffreview {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        False, "--version", "-V", callback=_version_callback,
        is_eager=True, help="Show version and exit",
    ),
) -> None:
    """diffreview — structured diffs, staged analysis, one report."""
