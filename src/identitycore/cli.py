"""identitycore command line.

``identitycore serve`` runs the API under uvicorn; the other commands prepare
the database and inspect configuration.
"""

import asyncio

import click

from identitycore import __version__
from identitycore.core.config import Settings, get_settings
from identitycore.core.logging import configure_logging, get_logger


@click.group()
@click.version_option(version=__version__, prog_name="identitycore")
def cli() -> None:
    """identitycore - identity and credential lifecycle service.

    Settings are read from IDENTITYCORE_* environment variables and .env.
    """


@cli.command()
@click.option("--host", type=str, default=None, help="Bind address (default from settings)")
@click.option("--port", type=int, default=None, help="Bind port (default from settings)")
@click.option("--workers", type=int, default=None, help="Worker processes (default from settings)")
@click.option(
    "--reload/--no-reload",
    default=None,
    help="Restart on code changes (default: on in development)",
)
def serve(host: str | None, port: int | None, workers: int | None, reload: bool | None) -> None:
    """Run the API server."""
    import uvicorn

    settings = get_settings()
    if reload is None:
        reload = settings.is_development
    options = {
        "host": host or settings.host,
        "port": port or settings.port,
        # uvicorn cannot combine reload with multiple workers
        "workers": 1 if reload else (workers or settings.workers),
        "reload": reload,
    }

    configure_logging(settings)
    get_logger(__name__).info("Starting server", environment=settings.environment, **options)

    uvicorn.run(
        "identitycore.infrastructure.api.app:app",
        log_level=settings.log_level.lower(),
        access_log=True,
        **options,
    )


@cli.command()
@click.option("--force", is_flag=True, help="Do not ask for confirmation")
def init_db(force: bool) -> None:
    """Create the database tables (development only)."""
    from identitycore.infrastructure.persistence.database import get_db_manager, init_database

    settings = get_settings()
    configure_logging(settings)

    if settings.is_production:
        click.echo("ERROR: Running in production mode. Use migrations instead of init-db.", err=True)
        raise SystemExit(1)
    if not force:
        click.confirm("Create all database tables?", abort=True, default=False)

    async def run() -> None:
        try:
            await init_database()
        finally:
            await get_db_manager().disconnect()

    asyncio.run(run())
    click.echo("Database initialized.")


@cli.command()
@click.option("--email", type=str, default=None, help="Admin email (prompted if omitted)")
@click.option("--password", type=str, default=None, help="Admin password (prompted if omitted)")
@click.option("--first-name", type=str, default="Admin", show_default=True)
@click.option("--last-name", type=str, default="User", show_default=True)
def create_admin(email: str | None, password: str | None, first_name: str, last_name: str) -> None:
    """Create a verified admin account."""
    from identitycore.domain.exceptions import IdentityError, ValidationError
    from identitycore.domain.services import create_admin_account
    from identitycore.infrastructure.persistence.database import get_db_manager

    configure_logging(get_settings())
    email = email or click.prompt("Admin email", type=str)
    password = password or click.prompt("Admin password", hide_input=True, confirmation_prompt=True)

    async def run():
        db = get_db_manager()
        try:
            await db.create_tables()
            async with db.session() as session:
                return await create_admin_account(
                    session, email, password, first_name=first_name, last_name=last_name
                )
        finally:
            await db.disconnect()

    try:
        account = asyncio.run(run())
    except ValidationError as e:
        for error in e.errors:
            click.echo(f"Error: {error.field}: {error.message}", err=True)
        raise SystemExit(1)
    except IdentityError as e:
        click.echo(f"Error: {e.message}", err=True)
        raise SystemExit(1)

    click.echo(f"Admin created successfully: {account.email} ({account.id})")


def _info_sections(settings: Settings) -> list[tuple[str, list[tuple[str, object]]]]:
    retired = len(settings.previous_secret_keys)
    return [
        (
            "Application",
            [
                ("Environment", settings.environment),
                ("Debug", settings.debug),
                ("API Prefix", settings.api_prefix),
                ("App URL", settings.app_url),
            ],
        ),
        ("Server", [("Host", settings.host), ("Port", settings.port), ("Workers", settings.workers)]),
        ("Database", [("URL", settings.database_url), ("Echo", settings.db_echo)]),
        (
            "Tokens",
            [
                ("Signing Key", f"{settings.secret_key_id} (+{retired} retired)"),
                ("Access TTL", f"{settings.access_token_expire_minutes} minutes"),
                ("Refresh TTL", f"{settings.refresh_token_expire_days} days"),
                ("Reset TTL", f"{settings.password_reset_token_expire_minutes} minutes"),
            ],
        ),
        (
            "Email",
            [
                ("Provider", settings.email_provider),
                ("From", f"{settings.email_from_name} <{settings.email_from_address}>"),
            ],
        ),
        ("Logging", [("Level", settings.log_level), ("Format", settings.log_format)]),
    ]


@cli.command()
def info() -> None:
    """Print the effective configuration. Secrets are never shown."""
    settings = get_settings()
    click.echo(f"identitycore v{settings.app_version}")
    click.echo("=" * 40)
    for title, rows in _info_sections(settings):
        click.echo(f"\n{title}:")
        for label, value in rows:
            click.echo(f"  {label + ':':<14}{value}")


def main() -> None:
    """Entry point for the ``identitycore`` script and ``python -m identitycore``."""
    cli()


if __name__ == "__main__":
    main()
