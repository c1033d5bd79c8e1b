"""CLI entry points for SecOps Warden.

Commands:
    secops-warden serve         Run the dashboard with scheduled activities
    secops-warden activities    Show configured activities and their intervals
    secops-warden query         Run one query through the query adapter
    secops-warden call          Call one action endpoint through the action adapter
    secops-warden config-path   Print the config file location
    secops-warden init-config   Write the built-in defaults to the config file
    secops-warden render        Print a template after parameter substitution
"""

from __future__ import annotations

import asyncio
import logging

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

import secops_warden
from secops_warden.activities.schedule import is_valid_schedule, parse_schedule
from secops_warden.config import ConfigManager
from secops_warden.service import build_action_tool, build_query_tool
from secops_warden.templating import render as render_template
from secops_warden.tools.executor import ToolOutput

console = Console()
app = typer.Typer(
    name="secops-warden",
    help="Scheduled security analysis with a human approval queue.",
    no_args_is_help=True,
)

logger = logging.getLogger(__name__)


def _setup_logging(verbose: bool = False, level_name: str = "info") -> None:
    """Configure root logging for CLI output."""
    level = logging.DEBUG if verbose else getattr(logging, level_name.upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _print_output(result: ToolOutput) -> None:
    if result.success:
        console.print(result.output, markup=False, highlight=False, soft_wrap=True)
        return
    console.print(f"[red]Error:[/red] {escape(result.output)}", highlight=False, soft_wrap=True)
    raise typer.Exit(1)


# ------------------------------------------------------------------
# secops-warden serve
# ------------------------------------------------------------------


@app.command()
def serve(
    host: str | None = typer.Option(None, "--host", help="Bind address (default from config)"),
    port: int | None = typer.Option(None, "--port", help="Bind port (default from config)"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    """Run the dashboard; enabled activities start with it."""
    import uvicorn

    from secops_warden.dashboard.app import create_app
    from secops_warden.service import SecOpsService

    config = ConfigManager().load()
    _setup_logging(verbose, config.service.log_level)

    bind_host = host or config.service.host
    bind_port = port or config.service.port
    console.print(
        f"[bold cyan]SecOps Warden {secops_warden.__version__}[/bold cyan] "
        f"on http://{bind_host}:{bind_port}"
    )
    uvicorn.run(
        create_app(SecOpsService(config)),
        host=bind_host,
        port=bind_port,
        log_level="debug" if verbose else config.service.log_level,
    )


# ------------------------------------------------------------------
# secops-warden activities
# ------------------------------------------------------------------


@app.command()
def activities() -> None:
    """Show configured activities, their parsed interval, and mode."""
    config = ConfigManager().load()

    table = Table(title="Activities", border_style="cyan")
    table.add_column("Name", style="bold")
    table.add_column("Schedule")
    table.add_column("Interval")
    table.add_column("Mode")
    table.add_column("Enabled")

    for name, cfg in config.secops.activities.items():
        interval = str(parse_schedule(cfg.schedule))
        if not is_valid_schedule(cfg.schedule):
            interval += " [yellow](default)[/yellow]"
        enabled = "[green]yes[/green]" if cfg.enabled else "[dim]no[/dim]"
        table.add_row(name, cfg.schedule or "-", interval, cfg.mode, enabled)

    console.print()
    console.print(table)
    if not config.secops.enabled:
        console.print("[dim]SecOps is disabled in config; no activity will run.[/dim]")
    console.print()


# ------------------------------------------------------------------
# secops-warden query / call
# ------------------------------------------------------------------


@app.command()
def query(
    sql_id: str = typer.Argument("", help="SQL template ID"),
    params: str = typer.Option("", "--params", "-p", help="key1=value1,key2=value2"),
    raw_sql: str = typer.Option("", "--raw-sql", help="Run this SQL instead of a template"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    """Run a single query and print the formatted rows."""
    _setup_logging(verbose, "warning")
    tool = build_query_tool(ConfigManager().load())

    async def _run() -> ToolOutput:
        try:
            return await tool.execute(sql_id=sql_id, params=params, raw_sql=raw_sql)
        finally:
            await tool.aclose()

    _print_output(asyncio.run(_run()))


@app.command()
def call(
    api: str = typer.Argument(..., help="Endpoint ID"),
    params: str = typer.Option("", "--params", "-p", help="key1=value1,key2=value2"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    """Call a single action endpoint and print the response."""
    _setup_logging(verbose, "warning")
    tool = build_action_tool(ConfigManager().load())

    async def _run() -> ToolOutput:
        try:
            return await tool.execute(api=api, params=params)
        finally:
            await tool.aclose()

    _print_output(asyncio.run(_run()))


# ------------------------------------------------------------------
# secops-warden config-path / init-config / render
# ------------------------------------------------------------------


@app.command("config-path")
def config_path() -> None:
    """Print the config file location."""
    manager = ConfigManager()
    path = manager.get_config_path()
    console.print(str(path), markup=False, highlight=False, soft_wrap=True)
    if not manager.exists():
        console.print("[dim]File does not exist yet; built-in defaults are used.[/dim]")


@app.command("init-config")
def init_config(
    force: bool = typer.Option(False, "--force", help="Overwrite an existing file"),
) -> None:
    """Write the built-in defaults to the config file."""
    manager = ConfigManager()
    path = manager.get_config_path()
    if not manager.write_defaults(force=force):
        console.print(f"[yellow]Config already exists:[/yellow] {escape(str(path))}")
        console.print("Use --force to overwrite it.")
        raise typer.Exit(1)
    console.print(f"[green]Wrote default config to[/green] {escape(str(path))}")


@app.command()
def render(
    template: str = typer.Argument(..., help="Template text with {{.key}}, {{key}} or $key"),
    params: str = typer.Option("", "--params", "-p", help="key1=value1,key2=value2"),
) -> None:
    """Print *template* with parameters substituted."""
    text = render_template(template, params)
    console.print(text, markup=False, highlight=False, soft_wrap=True)


if __name__ == "__main__":
    app()
