"""Command-line entry point: load configuration and serve the endpoints."""

from __future__ import annotations

from pathlib import Path

import structlog
import typer
import uvicorn

from .app import create_app
from .config import ConfigError, load_config
from .logs import configure_logging
from .state import ServiceState

cli = typer.Typer(
    name="lightning-address",
    help="Lightning Address (LUD-16) server backed by Nostr Wallet Connect wallets",
    add_completion=False,
)


@cli.command()
def serve(
    config_path: Path = typer.Argument(Path("config.toml"), help="Path to the TOML configuration"),
) -> None:
    """Serve /.well-known/lnurlp and /lnurlp for the configured users."""
    typer.echo(f"loading configuration from {config_path}")
    try:
        config = load_config(config_path)
    except ConfigError as exc:
        typer.echo(f"error: {exc}", err=True)
        raise typer.Exit(code=1)

    configure_logging(config.server.log_dir)
    logger = structlog.get_logger(__name__)

    try:
        state = ServiceState.from_config(config)
    except ValueError as exc:
        logger.error("invalid wallet configuration", error=str(exc))
        raise typer.Exit(code=1)

    host, port = config.server.bind
    logger.info("listening", listen_addr=config.server.listen_addr, users=len(state.users))
    uvicorn.run(create_app(state), host=host, port=port, log_config=None)


def main() -> None:
    cli()
