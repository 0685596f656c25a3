"""Command line interface for the authgate service."""

import asyncio
import sys

import click

from authgate.config import get_settings
from authgate.core.exceptions import UserNotFoundException
from authgate.infrastructure.database.init_db import (
    get_database_info,
    init_database,
    revoke_user_sessions,
    run_alembic_migrations,
    sweep_expired_state,
    unlock_user,
)
from authgate.utils.logging import setup_logging


@click.group()
def cli():
    """Authgate CLI."""
    setup_logging()


@cli.command()
def init_db():
    """Create database tables without running migrations."""
    click.echo("Initializing database...")
    asyncio.run(init_database())
    click.echo("Database initialized successfully!")


@cli.command()
def migrate():
    """Run database migrations to the latest version."""
    click.echo("Running database migrations...")
    run_alembic_migrations()
    click.echo("Migrations completed successfully!")


@cli.command()
def check_db():
    """Check database connectivity and show row counts."""
    click.echo("Checking database health...")
    counts = asyncio.run(get_database_info())
    click.echo("Database connection is healthy")
    for table, count in counts.items():
        click.echo(f"  - {table}: {count} records")


@cli.command()
def sweep():
    """Delete expired refresh tokens, blacklist entries and rate limit windows."""
    removed = asyncio.run(sweep_expired_state())
    for store, count in removed.items():
        click.echo(f"  - {store}: {count} removed")


@cli.command()
@click.argument("user_id", type=int)
def revoke_user(user_id: int):
    """Revoke every refresh token of USER_ID (log out everywhere)."""
    revoked = asyncio.run(revoke_user_sessions(user_id))
    click.echo(f"Revoked {revoked} refresh token(s) for user {user_id}")


@cli.command(name="unlock-user")
@click.argument("user_id", type=int)
def unlock_user_command(user_id: int):
    """Clear the lockout of USER_ID."""
    try:
        asyncio.run(unlock_user(user_id))
    except UserNotFoundException:
        click.echo(f"User {user_id} not found", err=True)
        sys.exit(1)
    click.echo(f"User {user_id} unlocked")


@cli.command()
@click.option("--reload", is_flag=True, help="Reload on code changes")
def run(reload: bool):
    """Serve the API with uvicorn."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "authgate.main:app",
        host=settings.host,
        port=settings.port,
        reload=reload or settings.debug,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    cli()
