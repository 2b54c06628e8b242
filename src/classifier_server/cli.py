"""Classifier server command-line interface."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Annotated, NoReturn

import httpx
import typer
import uvicorn

from . import __version__
from .client import ClassifierClient
from .config import Config, ConfigError, ServerConfig, load_config, resolve_config_path
from .logging import configure_logging
from .pidfile import PidFile, PidFileError, running_server
from .plugins import build_plugin_registry
from .server import create_app

app = typer.Typer(help="Classifier registry and dispatch service.")
DEFAULT_PID_NAME = "classifier-server.pid"
LOGGER = logging.getLogger(__name__)


@dataclass
class CLIState:
    """Stores shared CLI options."""

    config_path: Path | None


@app.callback()
def _classifier_server(
    ctx: typer.Context,
    config: Annotated[
        Path | None,
        typer.Option(
            "-c",
            "--config",
            help=(
                "Path to config (env CLASSIFIER_SERVER_CONFIG or "
                "~/.config/classifier-server/config.yaml)."
            ),
        ),
    ] = None,
) -> None:
    """Capture global CLI options."""

    resolved = config.expanduser() if config else None
    ctx.obj = CLIState(config_path=resolved)


@app.command()
def serve(
    ctx: typer.Context,
    host: Annotated[
        str | None,
        typer.Option("--host", help="Override the configured bind address."),
    ] = None,
    port: Annotated[
        int | None,
        typer.Option("--port", help="Override the configured port."),
    ] = None,
    pid_file: Annotated[
        Path | None,
        typer.Option(
            "--pid-file",
            help="Override PID file location (defaults to <root>/classifier-server.pid).",
        ),
    ] = None,
) -> None:
    """Run the classifier service in the foreground."""

    config = _load_config(_state(ctx).config_path)
    try:
        configure_logging(config.logging, config.root_dir)
    except ConfigError as exc:
        _config_failure(exc)
    server = ServerConfig(
        host=host or config.server.host,
        port=port or config.server.port,
    )
    pid_path = _pid_file_path(pid_file, config)
    try:
        PidFile.ensure_can_start(pid_path)
    except PidFileError as exc:
        typer.secho(str(exc), fg=typer.colors.RED, err=True)
        raise typer.Exit(1) from exc

    application = create_app(config)
    with PidFile(pid_path, url=server.url):
        LOGGER.info("Serving classifier services on %s", server.url)
        uvicorn.run(application, host=server.host, port=server.port, log_config=None)


@app.command()
def status(
    ctx: typer.Context,
    pid_file: Annotated[
        Path | None,
        typer.Option("--pid-file", help="Override PID file location."),
    ] = None,
) -> None:
    """Display configuration and server status."""

    state = _state(ctx)
    config = _load_config(state.config_path)
    record = running_server(_pid_file_path(pid_file, config))

    typer.echo("→ Classifier Server Status")
    typer.echo(f"Version: {__version__}")
    typer.echo(f"Config path: {resolve_config_path(state.config_path)}")
    typer.echo(f"Root dir: {config.root_dir}")
    typer.echo(f"Models dir: {config.resolved_models_dir}")
    if record is None:
        typer.echo("Server: ○ Stopped")
        return
    typer.echo(f"Server: ● Running (PID {record.pid})")
    url = record.url or config.server.url
    typer.echo(f"Endpoint: {url}")
    try:
        with ClassifierClient(url, timeout=5.0) as client:
            listing = client.list_classifiers()
    except httpx.HTTPError as exc:
        typer.secho(f"Failed to query server: {exc}", fg=typer.colors.YELLOW, err=True)
        return
    typer.echo("")
    typer.echo(f"Classifiers: {len(listing.classifiers)}")
    for info in listing.classifiers:
        typer.echo(f"  - {info.identifier}: {info.class_type} ({info.state.value})")


@app.command()
def plugins(ctx: typer.Context) -> None:
    """List the class types the server can instantiate."""

    config = _load_config(_state(ctx).config_path)
    try:
        registry = build_plugin_registry(
            config.plugins.paths,
            entry_points=config.plugins.entry_points,
        )
    except Exception as exc:
        typer.secho(f"Failed to load classifier plugins: {exc}", fg=typer.colors.RED, err=True)
        raise typer.Exit(1) from exc
    for token in registry.tokens():
        typer.echo(token)


def _state(ctx: typer.Context) -> CLIState:
    state = ctx.obj
    if not isinstance(state, CLIState):
        raise RuntimeError("CLI state missing from context.")
    return state


def _load_config(path: Path | None) -> Config:
    try:
        return load_config(path)
    except ConfigError as exc:
        _config_failure(exc)


def _config_failure(exc: ConfigError) -> NoReturn:
    typer.secho(f"Configuration error: {exc}", fg=typer.colors.RED, err=True)
    raise typer.Exit(2) from exc


def _pid_file_path(pid_file: Path | None, config: Config) -> Path:
    if pid_file:
        return pid_file.expanduser()
    return (config.root_dir / DEFAULT_PID_NAME).expanduser()


def main() -> None:  # pragma: no cover - delegated to Typer
    app()


__all__ = ["app", "main"]
