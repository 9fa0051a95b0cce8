"""chatrelay CLI entry point.

Provides ``chatrelay serve`` and ``chatrelay version``.
"""

from __future__ import annotations

import logging
from importlib.metadata import version as pkg_version
from pathlib import Path
from typing import Annotated

import click
import typer
import uvicorn

from chatrelay.config import load_config
from chatrelay.server.app import create_app
from chatrelay.server.state import create_state

app = typer.Typer(help="chatrelay: real-time message relay with offline delivery.")

LOG_FORMAT = "[%(asctime)s] %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str) -> None:
    """Send all log records to stderr at *level*."""
    logging.basicConfig(level=level, format=LOG_FORMAT, force=True)


@app.command()
def version() -> None:
    """Print the chatrelay version."""
    print(f"chatrelay {pkg_version('chatrelay')}")


@app.command()
def serve(
    host: Annotated[
        str | None,
        typer.Option(help="Interface to bind. Default: 127.0.0.1."),
    ] = None,
    port: Annotated[
        int | None,
        typer.Option(help="Port for HTTP and WebSocket traffic. Default: $PORT or 3000."),
    ] = None,
    config: Annotated[
        Path | None,
        typer.Option(help="TOML config file. Default: ./chatrelay.toml if present."),
    ] = None,
    log_level: Annotated[
        str | None,
        typer.Option(
            help="Log level.",
            click_type=click.Choice(
                ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"], case_sensitive=False
            ),
        ),
    ] = None,
) -> None:
    """Start the chatrelay server."""
    resolved = load_config(
        host_override=host,
        port_override=port,
        log_level_override=log_level,
        config_path=config,
    )
    cfg = resolved.config
    configure_logging(cfg.log_level)
    state = create_state(cfg)
    asgi_app = create_app(state)

    print(f"Starting chatrelay on ws://{cfg.host}:{cfg.port}/?userId=<id>")
    print(f"  GET http://{cfg.host}:{cfg.port}/messages?user1=A&user2=B")
    print(f"  GET http://{cfg.host}:{cfg.port}/health")
    uvicorn.run(
        asgi_app,
        host=cfg.host,
        port=cfg.port,
        log_level=cfg.log_level.lower(),
        log_config=None,
    )


if __name__ == "__main__":
    app()
