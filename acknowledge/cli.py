"""CLI entry point for acknowledge."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Annotated

import typer
import yaml
from rich import print as rprint
from rich.logging import RichHandler
from rich.panel import Panel
from rich.syntax import Syntax
from rich.table import Table

from acknowledge.cache import create_cache
from acknowledge.config import AcknowledgeConfig, Breadth, OutputFormat, load_config
from acknowledge.config.loader import DEFAULT_CONFIG_TEMPLATE
from acknowledge.engine import AcknowledgementEngine, RunResult
from acknowledge.errors import AcknowledgeError, AuthFetchError, ConfigurationError
from acknowledge.output import (
    DocumentWriter,
    default_output_path,
    render_markdown,
    render_template,
)
from acknowledge.runlog import RunWarning

app = typer.Typer(
    name="acknowledge",
    help="Thank the people behind your Rust dependencies.",
)

config_app = typer.Typer(help="Manage acknowledge configuration.")
app.add_typer(config_app, name="config")

LOG_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "error": logging.ERROR,
}

# Global state
_config: AcknowledgeConfig | None = None


def _get_config() -> AcknowledgeConfig:
    if _config is None:
        return load_config()
    return _config


def _setup_logging(level: str) -> None:
    logging.basicConfig(
        level=LOG_LEVELS.get(level, logging.INFO),
        format="%(name)s: %(message)s",
        handlers=[RichHandler(show_path=False)],
    )


@app.callback()
def main(
    config: Annotated[
        str | None, typer.Option("--config", "-c", help="Path to acknowledge.yaml")
    ] = None,
) -> None:
    """Global options."""
    global _config
    try:
        _config = load_config(config)
    except ValueError as e:
        rprint(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)
    _setup_logging(_config.log_level)


def _apply_overrides(
    cfg: AcknowledgeConfig,
    *,
    output_format: OutputFormat | None,
    breadth: Breadth | None,
    threshold: int | None,
    mention: bool | None,
    template: str | None,
    sources: list[str] | None,
    no_cache: bool,
) -> AcknowledgeConfig:
    """Layer command-line flags on top of the loaded configuration."""
    output_update: dict = {}
    if output_format is not None:
        output_update["format"] = output_format
    if mention is not None:
        output_update["mention"] = mention
    if template is not None:
        output_update["template"] = template

    update: dict = {}
    if output_update:
        update["output"] = cfg.output.model_copy(update=output_update)
    if breadth is not None:
        update["breadth"] = breadth
    if threshold is not None:
        if threshold < 0:
            raise ValueError("--contributions-threshold must not be negative")
        update["contributions_threshold"] = threshold
    if sources:
        update["sources"] = [*cfg.sources, *sources]
    if no_cache:
        update["cache"] = cfg.cache.model_copy(update={"enabled": False})
    return cfg.model_copy(update=update) if update else cfg


def _display_warnings(warnings: list[RunWarning]) -> None:
    if not warnings:
        return
    table = Table(title=f"Warnings ({len(warnings)})")
    table.add_column("Stage", style="yellow")
    table.add_column("Subject", style="cyan")
    table.add_column("Message")
    for w in warnings:
        table.add_row(w.stage, w.subject, w.message)
    rprint(table)


def _display_summary(result: RunResult, dest: Path) -> None:
    s = result.stats
    lines = [
        f"[dim]File:[/dim]          {dest}",
        f"[dim]Dependencies:[/dim]  {s.dependencies}",
        f"[dim]Repositories:[/dim]  {s.repositories}",
        f"[dim]From cache:[/dim]    {s.cache_hits}",
        f"[dim]Fetched:[/dim]       {s.network_fetches}",
        f"[dim]Failed:[/dim]        {s.failed}",
        f"[dim]Contributors:[/dim]  {s.contributors}",
    ]
    rprint(Panel("\n".join(lines), title="Acknowledgements", border_style="green"))


async def _run_engine(
    cfg: AcknowledgeConfig, path: str, github_token: str | None, gitlab_token: str | None
) -> RunResult:
    engine = AcknowledgementEngine(cfg, github_token=github_token, gitlab_token=gitlab_token)
    try:
        return await engine.run(path)
    finally:
        await engine.aclose()


@app.command()
def generate(
    path: str = typer.Argument(".", help="Cargo project directory or Cargo.toml"),
    github_token: Annotated[
        str | None,
        typer.Option("--github-token", help="GitHub access token (defaults to $GITHUB_TOKEN)"),
    ] = None,
    gitlab_token: Annotated[
        str | None,
        typer.Option("--gitlab-token", help="GitLab access token (defaults to $GITLAB_TOKEN)"),
    ] = None,
    output: Annotated[
        str | None, typer.Option("--output", "-o", help="Where to write ACKNOWLEDGEMENTS.md")
    ] = None,
    output_format: Annotated[
        OutputFormat | None, typer.Option("--format", "-f", help="Document layout")
    ] = None,
    breadth: Annotated[
        Breadth | None, typer.Option("--breadth", "-b", help="Which dependency kinds to include")
    ] = None,
    threshold: Annotated[
        int | None,
        typer.Option(
            "--contributions-threshold", "-t", help="Minimum contributions to be listed by name"
        ),
    ] = None,
    mention: Annotated[
        bool | None, typer.Option("--mention/--no-mention", help="Prefix logins with @")
    ] = None,
    template: Annotated[
        str | None,
        typer.Option("--template", help="jinja2 template to render instead of the built-in layout"),
    ] = None,
    sources: Annotated[
        list[str] | None,
        typer.Option("--source", "-s", help="Extra repository URL to acknowledge (repeatable)"),
    ] = None,
    no_cache: Annotated[bool, typer.Option("--no-cache", help="Skip the local cache")] = False,
    dry_run: bool = typer.Option(False, "--dry-run", help="Print instead of writing"),
) -> None:
    """Generate ACKNOWLEDGEMENTS.md for a Cargo project."""
    try:
        cfg = _apply_overrides(
            _get_config(),
            output_format=output_format,
            breadth=breadth,
            threshold=threshold,
            mention=mention,
            template=template,
            sources=sources,
            no_cache=no_cache,
        )
    except ValueError as e:
        rprint(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    rprint(f"[bold]Acknowledging[/bold] dependencies of {path} (breadth: {cfg.breadth.value})...")

    try:
        result = asyncio.run(_run_engine(cfg, path, github_token, gitlab_token))
    except ConfigurationError as e:
        rprint(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)
    except AuthFetchError as e:
        rprint(f"[red]Authentication failed:[/red] {e}")
        raise typer.Exit(1)
    except AcknowledgeError as e:
        rprint(f"[red]Run failed:[/red] {e}")
        raise typer.Exit(1)

    _display_warnings(result.warnings)
    if cfg.output.template:
        try:
            document = render_template(result.model, cfg.output.template)
        except ConfigurationError as e:
            rprint(f"[red]Error:[/red] {e}")
            raise typer.Exit(1)
    else:
        document = render_markdown(result.model)

    target = Path(output) if output else (
        Path(cfg.output.path) if cfg.output.path else default_output_path(path)
    )
    if dry_run:
        rprint(Syntax(document, "markdown", theme="monokai"))
        rprint(f"[yellow](dry run, would write {target})[/yellow]")
    try:
        dest = DocumentWriter(target).write(document, dry_run=dry_run)
    except OSError as e:
        rprint(f"[red]Error:[/red] could not write {target}: {e}")
        raise typer.Exit(1)
    _display_summary(result, dest)


@app.command("clear-cache")
def clear_cache() -> None:
    """Delete every cached contributor list and registry lookup."""
    cfg = _get_config()
    if not cfg.cache.enabled:
        rprint("[yellow]Cache is disabled in the configuration.[/yellow]")
        return
    removed = create_cache(cfg.cache).clear()
    rprint(f"[green]Cleared[/green] {removed} cache entr{'y' if removed == 1 else 'ies'}")


@config_app.command("show")
def config_show() -> None:
    """Show current resolved configuration."""
    cfg = _get_config()
    rprint(Syntax(yaml.dump(cfg.model_dump(mode="json"), default_flow_style=False), "yaml"))


@config_app.command("init")
def config_init(
    force: bool = typer.Option(False, "--force", help="Overwrite existing config"),
) -> None:
    """Create default acknowledge.yaml in current directory."""
    target = Path("acknowledge.yaml")
    if target.exists() and not force:
        rprint("[yellow]acknowledge.yaml already exists.[/yellow] Use --force to overwrite.")
        raise typer.Exit(1)
    target.write_text(DEFAULT_CONFIG_TEMPLATE)
    rprint(f"[green]Created[/green] {target}")
