"""Applies the users table migration."""

import logging
from typing import List, Optional

from userschema.backend import create_connection_pool
from userschema.backend.errors import DatabaseError
from userschema.binding.connection import BoundConnection
from userschema.contract.fields import NEW_FIELDS
from userschema.contract.introspection import fetch_columns
from userschema.migration.add_user_fields import upgrade
from userschema.migration.errors import MigrationError

logger = logging.getLogger(__name__)


def apply_migration(cnx: BoundConnection, table: str = "users", schema: Optional[str] = None) -> List[str]:
    """Add the missing migrated columns to the table in a single transaction.

    Columns the table already has are left untouched, so applying the migration to a migrated table changes
    nothing and returns an empty list.

    :param cnx: the connection to migrate with
    :param table: the unqualified table name
    :param schema: the schema holding the table, defaults to the connection's current schema
    :returns: the names of the columns that were added
    :raises MigrationError: if the table does not exist or the database rejects the change
    """
    columns = fetch_columns(cnx, table, schema)
    if not columns:
        raise MigrationError(f"Table '{table}' does not exist")
    pending = [field.name for field in NEW_FIELDS if field.name not in columns]
    if not pending:
        logger.info(f"Table '{table}' is already migrated")
        return []
    logger.info(f"Adding column(s) {', '.join(pending)} to '{table}'")
    try:
        upgrade(cnx, f"{schema}.{table}" if schema else table)
        cnx.commit()
    except DatabaseError as x:
        cnx.rollback()
        raise MigrationError(f"Migration of '{table}' failed: {x}") from x
    return pending


def migrate(db_url: str, table: str = "users", schema: Optional[str] = None) -> List[str]:
    """Apply the migration to the database at the given URL.

    The connection is released and the pool disposed whether or not the migration succeeds.

    :param db_url: the database connection URL, see ``create_connection_pool``
    :param table: the unqualified table name
    :param schema: the schema holding the table, defaults to the connection's current schema
    :returns: the names of the columns that were added
    :raises MigrationError: if the table does not exist or the database rejects the change
    """
    pool = create_connection_pool(db_url)
    try:
        with pool.connection() as cnx:
            return apply_migration(BoundConnection(cnx, pool.mung_symbol), table, schema)
    finally:
        pool.dispose()
