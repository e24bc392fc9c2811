"""StatusWatch CLI entry point."""

from __future__ import annotations

import asyncio
from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

app = typer.Typer(
    name="statuswatch",
    help="StatusWatch — real-time health dashboard for HTTP services",
    no_args_is_help=True,
)
console = Console()

_STATUS_STYLES = {"healthy": "green", "warning": "yellow", "down": "red"}


def _resolve_services_file(services: Path | None) -> Path:
    from statuswatch.config.loader import apply_env_overrides, load_config
    from statuswatch.config.models import AppConfig

    if services is not None:
        return services
    try:
        config = load_config()
    except FileNotFoundError:
        config = apply_env_overrides(AppConfig())
    except ValueError as exc:
        console.print(f"[red]{escape(str(exc))}[/red]")
        raise typer.Exit(1)
    return Path(config.services_file)


@app.command()
def status(
    services: Path | None = typer.Option(None, "--services", "-s", help="Path to the services JSON document"),
) -> None:
    """Check every configured service once and print the results."""
    from statuswatch.config.store import JsonConfigStore
    from statuswatch.monitor.probe import check_all

    store = JsonConfigStore(_resolve_services_file(services))
    loaded = store.load()
    if not loaded.ok:
        console.print(f"[red]{escape(loaded.message)}[/red]")
        raise typer.Exit(1)

    document = loaded.document
    if not document.services:
        console.print("[red]No services configured[/red]")
        return

    results = asyncio.run(check_all(document.services, document.settings))

    table = Table(title="StatusWatch Service Status")
    table.add_column("Service", style="bold")
    table.add_column("Status")
    table.add_column("Response")
    table.add_column("Message")

    for r in results:
        style = _STATUS_STYLES[r.status.value]
        table.add_row(
            r.name,
            f"[{style}]{r.status.value}[/{style}]",
            f"{r.response_time:.0f}ms",
            r.message or "—",
        )

    console.print(table)
    down = sum(1 for r in results if r.status.value == "down")
    if down:
        console.print(f"\n[red bold]{down} service(s) down.[/red bold]")


@app.command()
def serve(
    host: str = typer.Option("0.0.0.0", help="Bind host"),
    port: int = typer.Option(3000, help="Bind port"),
    log_level: str = typer.Option("info", help="Server log level"),
) -> None:
    """Start the StatusWatch API server and poller."""
    import logging

    import uvicorn

    logging.basicConfig(
        level=log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    console.print(f"[bold]StatusWatch[/bold] starting on http://{host}:{port}")
    uvicorn.run("statuswatch.api.app:app", host=host, port=port, reload=False, log_level=log_level)


config_app = typer.Typer(name="config", help="Configuration commands")
app.add_typer(config_app)


@config_app.command("validate")
def config_validate(
    services: Path | None = typer.Option(None, "--services", "-s", help="Path to the services JSON document"),
) -> None:
    """Validate the services document."""
    from statuswatch.config.store import JsonConfigStore

    path = _resolve_services_file(services)
    result = JsonConfigStore(path).load()
    if not result.ok:
        console.print(f"[red]✗ {escape(result.message)}[/red]")
        raise typer.Exit(1)
    console.print("[green]✓[/green] JSON parses correctly")
    console.print("[green]✓[/green] Pydantic validation passes")

    document = result.document
    settings = document.settings
    if not settings.thresholds_ordered:
        console.print(
            f"[yellow]! warningThreshold ({settings.warning_threshold}ms) is not below "
            f"timeoutThreshold ({settings.timeout_threshold}ms)[/yellow]"
        )
    intervals = sorted({settings.interval_for(d) for d in document.services})
    console.print(f"[green]✓[/green] {len(document.services)} service(s) in {len(intervals)} poll group(s)")
    console.print("\n[green bold]Configuration is valid.[/green bold]")


@config_app.command("show")
def config_show(
    path: Path | None = typer.Option(None, "--path", "-p", help="Path to .statuswatch.yaml"),
) -> None:
    """Print resolved app configuration."""
    from statuswatch.config.loader import load_config

    try:
        config = load_config(path=path)
    except FileNotFoundError as exc:
        console.print(f"[red]{escape(str(exc))}[/red]")
        raise typer.Exit(1)
    except ValueError as exc:
        console.print(f"[red]{escape(str(exc))}[/red]")
        raise typer.Exit(1)

    console.print(f"[bold]{config.name}[/bold] v{config.version}\n")
    console.print(f"  Services file: {config.services_file}")
    console.print(f"  Server: {config.server.host}:{config.server.port}")
    console.print(f"  CORS origins: {', '.join(config.cors_origins) or 'none'}")


services_app = typer.Typer(name="services", help="Service list commands")
app.add_typer(services_app)


@services_app.command("list")
def services_list(
    services: Path | None = typer.Option(None, "--services", "-s", help="Path to the services JSON document"),
) -> None:
    """List configured services grouped by poll interval."""
    from statuswatch.config.store import JsonConfigStore

    result = JsonConfigStore(_resolve_services_file(services)).load()
    if not result.ok:
        console.print(f"[red]{escape(result.message)}[/red]")
        raise typer.Exit(1)

    document = result.document
    if not document.services:
        console.print("No services configured")
        return

    table = Table(title="Configured Services")
    table.add_column("ID", style="bold")
    table.add_column("Name")
    table.add_column("Endpoint")
    table.add_column("Type")
    table.add_column("Interval")
    for d in sorted(document.services, key=document.settings.interval_for):
        critical = " [red]*[/red]" if d.critical_service else ""
        table.add_row(d.id, f"{d.name}{critical}", d.endpoint, d.type, f"{document.settings.interval_for(d)}s")
    console.print(table)


def main() -> None:
    app()
