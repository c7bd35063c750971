"""CLI entry point for docweaver."""

from __future__ import annotations

import asyncio
import difflib
from pathlib import Path
from typing import Annotated

import typer
import yaml
from rich import print as rprint
from rich.panel import Panel
from rich.syntax import Syntax
from rich.table import Table

from docweaver.batch import BatchResult
from docweaver.config import DocweaverConfig, load_config
from docweaver.config.loader import DEFAULT_CONFIG_TEMPLATE
from docweaver.errors import DocweaverError
from docweaver.extractor import JavaSyntaxView, collect_declarations
from docweaver.log import configure_logging
from docweaver.pipeline import DocPipeline, line_of

app = typer.Typer(
    name="docweaver",
    help="Generate Javadoc comments for Java sources with an LLM.",
)

config_app = typer.Typer(help="Manage docweaver configuration.")
app.add_typer(config_app, name="config")

# Global state
_config: DocweaverConfig | None = None

_STATUS_STYLES = {
    "applied": "green",
    "skipped": "yellow",
    "failed": "red",
    "cancelled": "magenta",
}


def _get_config() -> DocweaverConfig:
    if _config is None:
        return load_config()
    return _config


@app.callback()
def main(
    config: Annotated[
        str | None, typer.Option("--config", "-c", help="Path to docweaver.yaml")
    ] = None,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Debug logging")] = False,
) -> None:
    """Global options."""
    global _config
    try:
        _config = load_config(config)
    except ValueError as e:
        rprint(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)
    configure_logging("debug" if verbose else _config.log_level, _config.log_format)


def _read_source(path: Path) -> str:
    # newline="" keeps CRLF line endings intact.
    with open(path, encoding="utf-8", newline="") as f:
        return f.read()


def _write_source(path: Path, text: str) -> None:
    with open(path, "w", encoding="utf-8", newline="") as f:
        f.write(text)


def _make_pipeline(cfg: DocweaverConfig) -> DocPipeline:
    try:
        return DocPipeline(cfg)
    except ValueError as e:
        rprint(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)


def _display_outcomes(result: BatchResult) -> None:
    table = Table(title=f"Declarations ({result.total})")
    table.add_column("Declaration", style="cyan")
    table.add_column("Status")
    table.add_column("Detail", style="dim")
    for outcome in result.outcomes:
        style = _STATUS_STYLES[outcome.status]
        detail = outcome.message or ""
        if outcome.error_kind and outcome.status == "failed":
            detail = f"{outcome.error_kind}: {detail}"
        table.add_row(outcome.label, f"[{style}]{outcome.status}[/{style}]", detail)
    rprint(table)


@app.command()
def document(
    file: Path = typer.Argument(..., help="Java source file to document"),
    line: Annotated[
        int | None, typer.Option("--line", "-l", help="Only the declaration on this line")
    ] = None,
    overwrite: bool = typer.Option(False, "--overwrite", help="Replace existing comments"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Show a diff without writing"),
) -> None:
    """Generate documentation comments for a source file."""
    cfg = _get_config()
    if overwrite:
        cfg = cfg.model_copy(
            update={"generation": cfg.generation.model_copy(update={"overwrite_existing": True})}
        )
    if not file.is_file():
        rprint(f"[red]Error:[/red] {file} is not a file")
        raise typer.Exit(1)

    source = _read_source(file)
    pipeline = _make_pipeline(cfg)
    view = JavaSyntaxView(source)

    nodes = None
    if line is not None:
        try:
            nodes = [pipeline.declaration_at_line(source, line, view)]
        except DocweaverError as e:
            rprint(f"[red]Error:[/red] {e.message}")
            raise typer.Exit(1)

    rprint(f"[bold]Documenting[/bold] {file} (llm: {cfg.llm.provider}/{cfg.llm.model})...")
    result, new_source = asyncio.run(pipeline.document_source(source, nodes, view))
    _display_outcomes(result)

    if new_source == source:
        rprint("[dim]No changes.[/dim]")
    elif dry_run:
        diff = difflib.unified_diff(
            source.splitlines(keepends=True),
            new_source.splitlines(keepends=True),
            fromfile=str(file),
            tofile=str(file),
        )
        rprint(Syntax("".join(diff), "diff", theme="monokai"))
    else:
        _write_source(file, new_source)
        rprint(
            Panel(
                f"[dim]File:[/dim]      {file}\n"
                f"[dim]Applied:[/dim]   {result.applied}\n"
                f"[dim]Skipped:[/dim]   {result.skipped}\n"
                f"[dim]Failed:[/dim]    {result.failed}\n"
                f"[dim]Duration:[/dim]  {result.duration_seconds:.2f}s",
                title="Documentation Complete",
                border_style="green",
            )
        )

    if result.failed:
        raise typer.Exit(1)


@app.command("list")
def list_declarations(
    file: Path = typer.Argument(..., help="Java source file to inspect"),
) -> None:
    """List documentable declarations in a source file."""
    cfg = _get_config()
    if not file.is_file():
        rprint(f"[red]Error:[/red] {file} is not a file")
        raise typer.Exit(1)

    source = _read_source(file)
    nodes = collect_declarations(source, JavaSyntaxView(source), cfg.generation)
    if not nodes:
        rprint("[yellow]No documentable declarations found.[/yellow]")
        return

    table = Table(title=f"{file} ({len(nodes)})")
    table.add_column("Line", justify="right")
    table.add_column("Kind", style="green")
    table.add_column("Name", style="cyan")
    table.add_column("Enclosing type")
    table.add_column("Documented")
    for node in nodes:
        table.add_row(
            str(line_of(source, node.range.start)),
            node.kind.value,
            node.name,
            node.enclosing_type or "-",
            "yes" if node.doc_comment_range else "[yellow]no[/yellow]",
        )
    rprint(table)


@app.command()
def check() -> None:
    """Verify that the configured LLM provider is reachable."""
    cfg = _get_config()
    pipeline = _make_pipeline(cfg)
    rprint(f"[bold]Checking[/bold] {cfg.llm.provider} ({cfg.llm.model})...")
    try:
        model = asyncio.run(pipeline.check_connection())
    except DocweaverError as e:
        rprint(f"[red]Connection failed[/red] ({e.kind}): {e.message}")
        raise typer.Exit(1)
    rprint(f"[green]OK[/green] model {model} responded")


# ---------------------------------------------------------------------------
# Config commands
# ---------------------------------------------------------------------------


@config_app.command("show")
def config_show() -> None:
    """Show current resolved configuration."""
    cfg = _get_config()
    rprint(Syntax(yaml.dump(cfg.model_dump(mode="json"), default_flow_style=False), "yaml"))


@config_app.command("init")
def config_init(
    force: bool = typer.Option(False, "--force", help="Overwrite existing config"),
) -> None:
    """Create default docweaver.yaml in current directory."""
    target = Path("docweaver.yaml")
    if target.exists() and not force:
        rprint("[yellow]docweaver.yaml already exists.[/yellow] Use --force to overwrite.")
        raise typer.Exit(1)
    target.write_text(DEFAULT_CONFIG_TEMPLATE)
    rprint(f"[green]Created[/green] {target}")
