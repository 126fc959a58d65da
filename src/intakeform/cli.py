from __future__ import annotations

import logging

import typer

from intakeform.config import Settings, configure_logging
from intakeform.errors import ConfigError, StoreError

logger = logging.getLogger(__name__)

cli = typer.Typer(add_completion=False, help="Intake form service")


def run_server(host: str | None, port: int | None) -> None:
    import uvicorn

    from intakeform.app import create_app

    try:
        settings = Settings()
        configure_logging(settings.log_level)
        app = create_app(settings)
    except (ConfigError, StoreError) as exc:
        logger.error("Startup failed: %s", exc)
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1)

    resolved_host = host or settings.host
    resolved_port = port if port is not None else settings.port
    logger.info("Serving on http://%s:%d", resolved_host, resolved_port)
    uvicorn.run(app, host=resolved_host, port=resolved_port, log_config=None)


@cli.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    host: str | None = typer.Option(None, help="Address to bind"),
    port: int | None = typer.Option(None, help="Port to bind"),
) -> None:
    ctx.obj = {"host": host, "port": port}
    if ctx.invoked_subcommand is None:
        run_server(host, port)


@cli.command()
def run(
    ctx: typer.Context,
    host: str | None = typer.Option(None, help="Address to bind"),
    port: int | None = typer.Option(None, help="Port to bind"),
) -> None:
    base = ctx.obj or {}
    resolved_host = host or base.get("host")
    resolved_port = port if port is not None else base.get("port")
    run_server(resolved_host, resolved_port)


@cli.command("check-config")
def check_config() -> None:
    """Validate the environment without starting the server."""
    try:
        settings = Settings()
        backend = settings.storage_backend
        path = settings.database_path
    except ConfigError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1)
    typer.echo(f"storage: {backend} ({path})")
    typer.echo(f"uploads: {settings.upload_dir}")
