#!/usr/bin/env python3
"""
contact-relay CLI
"""
import asyncio
import logging
import sys
from typing import Optional

import click
from rich.console import Console

from contact_relay.config import ConfigurationError, Settings
from contact_relay.version import __version__

console = Console()


def _load_settings() -> Settings:
    """Load settings or exit with status 1"""
    try:
        return Settings.from_env()
    except ConfigurationError as e:
        console.print(f"[red]✗ {e}[/red]")
        sys.exit(1)


@click.group()
@click.version_option(version=__version__, prog_name="contact-relay")
def main():
    """Contact form API with real-time notifications"""


@main.command()
@click.option("--host", default=None, help="Interface to bind (default: HOST or 0.0.0.0)")
@click.option("--port", type=int, default=None, help="Port to listen on (default: PORT or 4000)")
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default=None,
    help="Logging level (default: LOG_LEVEL or INFO)",
)
def serve(host: Optional[str], port: Optional[int], log_level: Optional[str]):
    """Run the API server"""
    import uvicorn

    from contact_relay.api.app import create_app

    settings = _load_settings()
    host = host or settings.host
    port = port or settings.port
    log_level = (log_level or settings.log_level).upper()

    logging.getLogger().setLevel(log_level)

    console.print(f"[bold cyan]Contact API running:[/bold cyan] http://localhost:{port}")
    console.print(f"[bold cyan]Swagger UI:[/bold cyan]         http://localhost:{port}/docs")

    uvicorn.run(
        create_app(settings),
        host=host,
        port=port,
        log_level=log_level.lower(),
    )


@main.command("init-db")
def init_db():
    """Create the contact_messages table if it does not exist"""
    from contact_relay.api.errors import StorageError
    from contact_relay.api.storage import ContactStore

    settings = _load_settings()
    store = ContactStore.from_url(settings.database_url)

    async def _run() -> None:
        try:
            await store.create_schema()
        finally:
            await store.dispose()

    try:
        asyncio.run(_run())
    except StorageError as e:
        console.print(f"[red]✗ Schema creation failed: {e.__cause__ or e}[/red]")
        sys.exit(1)

    console.print("[green]✓ contact_messages table is ready[/green]")


if __name__ == "__main__":
    main()
