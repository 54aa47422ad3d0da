"""Command line entry points for migrating and checking the users table."""

import logging

import click

from userschema.backend import create_connection_pool
from userschema.backend.errors import ConfigurationError, DatabaseError, UnsupportedBackendError
from userschema.binding.connection import BoundConnection
from userschema.config import get_database_url
from userschema.contract import SchemaContractChecker, format_report
from userschema.migration import MigrationError, migrate

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR"]


def _database_url(ctx: click.Context) -> str:
    url = ctx.obj.get("database_url")
    if url:
        return url
    try:
        return get_database_url()
    except ConfigurationError as x:
        raise click.UsageError(f"{x} or pass --database-url")


@click.group()
@click.option("--database-url", default=None, help="Connection URL, defaults to $USERSCHEMA_DATABASE_URL.")
@click.option("--log-level", type=click.Choice(LOG_LEVELS, case_sensitive=False), default="WARNING", show_default=True)
@click.pass_context
def cli(ctx: click.Context, database_url: str, log_level: str):
    """Migrate and check the users table."""
    logging.basicConfig(level=log_level.upper(), format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    ctx.ensure_object(dict)
    ctx.obj["database_url"] = database_url


@cli.command("migrate")
@click.option("--table", default="users", show_default=True)
@click.option("--schema", default=None, help="Schema holding the table, defaults to the current schema.")
@click.pass_context
def migrate_command(ctx: click.Context, table: str, schema: str):
    """Add the migrated columns to the users table, skipping those already present."""
    try:
        added = migrate(_database_url(ctx), table, schema)
    except (ConfigurationError, UnsupportedBackendError, MigrationError) as x:
        raise click.ClickException(str(x))
    if added:
        click.echo(f"Added column(s) to '{table}': {', '.join(added)}")
    else:
        click.echo(f"'{table}' is already migrated")


@cli.command("check")
@click.option("--table", default="users", show_default=True)
@click.option("--schema", default=None, help="Schema holding the table, defaults to the current schema.")
@click.option("--rows/--no-rows", default=False, help="Also run the row checks, these TRUNCATE the table.")
@click.option("--yes", is_flag=True, help="Do not ask before running the row checks.")
@click.pass_context
def check_command(ctx: click.Context, table: str, schema: str, rows: bool, yes: bool):
    """Check the users table against its schema contract, exits non-zero when a check fails."""
    if rows and not yes:
        click.confirm(f"The row checks delete every row of '{table}'. Continue?", abort=True)
    try:
        pool = create_connection_pool(_database_url(ctx))
    except (ConfigurationError, UnsupportedBackendError) as x:
        raise click.ClickException(str(x))
    try:
        with pool.connection() as cnx:
            checker = SchemaContractChecker(BoundConnection(cnx, pool.mung_symbol), table, schema=schema)
            results = checker.check_all(include_rows=rows)
    except DatabaseError as x:
        raise click.ClickException(f"Checking '{table}' failed: {x}")
    finally:
        pool.dispose()
    click.echo(format_report(results))
    if not all(r.passed for r in results):
        ctx.exit(1)
