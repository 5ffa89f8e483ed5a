"""Command-line interface for Wayfarer.

This module provides the CLI commands for running and maintaining
the Wayfarer authentication service.
"""

import asyncio
import json
import sys
from typing import NoReturn

import click

from wayfarer import __version__
from wayfarer.core.config import get_settings
from wayfarer.core.logging import configure_logging, get_logger


@click.group()
@click.version_option(version=__version__, prog_name="Wayfarer")
def cli() -> None:
    """Wayfarer - authentication and credential lifecycle service.

    Settings are read from WAYFARER_* environment variables and .env.
    """


@cli.command()
@click.option("--host", type=str, default=None, help="Host to bind to (overrides config)")
@click.option("--port", type=int, default=None, help="Port to bind to (overrides config)")
@click.option(
    "--workers",
    type=int,
    default=None,
    help="Number of worker processes (overrides config)",
)
@click.option(
    "--reload",
    is_flag=True,
    default=False,
    help="Enable auto-reload for development",
)
def serve(host: str | None, port: int | None, workers: int | None, reload: bool) -> None:
    """Start the Wayfarer server."""
    import uvicorn

    settings = get_settings()

    bind_host = host or settings.host
    bind_port = port or settings.port
    bind_workers = workers or settings.workers

    if bind_workers > 1 and settings.database_url.startswith("sqlite"):
        click.echo(
            "Error: SQLite does not support multiple worker processes. "
            "Use --workers 1 or switch to PostgreSQL.",
            err=True,
        )
        sys.exit(1)

    configure_logging(settings)
    logger = get_logger(__name__)
    logger.info(
        "Starting Wayfarer server",
        host=bind_host,
        port=bind_port,
        workers=bind_workers,
        reload=reload,
        environment=settings.environment,
    )

    uvicorn.run(
        "wayfarer.infrastructure.api.app:app",
        host=bind_host,
        port=bind_port,
        workers=1 if reload else bind_workers,
        reload=reload,
        log_level=settings.log_level.lower(),
        access_log=True,
    )


@cli.command()
@click.option("--force", is_flag=True, help="Skip confirmation prompt")
def init_db(force: bool) -> None:
    """Create all database tables.

    Use this only in development. In production, run the Alembic
    migrations instead.
    """
    from wayfarer.infrastructure.persistence import models  # noqa: F401
    from wayfarer.infrastructure.persistence.database import get_db_manager

    settings = get_settings()
    configure_logging(settings)

    if settings.is_production and not force:
        click.echo(
            "ERROR: Running in production mode. Use migrations instead of init-db.",
            err=True,
        )
        sys.exit(1)

    if not force:
        click.confirm("This will create all database tables. Continue?", abort=True, default=False)

    async def initialize() -> None:
        db = get_db_manager()
        try:
            await db.create_tables()
            click.echo("Database initialized successfully.")
        finally:
            await db.disconnect()

    asyncio.run(initialize())


@cli.command()
def cleanup() -> None:
    """Remove expired tokens and stale login attempt records once."""
    from wayfarer.domain.services import TokenCleanupService
    from wayfarer.infrastructure.auth import token_blacklist
    from wayfarer.infrastructure.persistence.database import get_db_manager

    settings = get_settings()
    configure_logging(settings)

    async def run() -> dict[str, int]:
        db = get_db_manager()
        try:
            async with db.session() as session:
                service = TokenCleanupService(session, token_blacklist, settings)
                return await service.perform_manual_cleanup()
        finally:
            await db.disconnect()

    results = asyncio.run(run())
    click.echo(json.dumps(results, indent=2))


def main() -> NoReturn:
    """Main entry point for the CLI.

    This function is called when the `wayfarer` command is run
    or when using `python -m wayfarer`.
    """
    cli()


if __name__ == "__main__":
    main()
