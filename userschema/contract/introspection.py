"""Reads column metadata for a table from the information schema."""

import logging
from dataclasses import dataclass
from typing import Dict, Optional

from userschema.binding.connection import BoundConnection
from userschema.binding.mappers import ClassRowMapper

logger = logging.getLogger(__name__)

SELECT_COLUMNS = (
    "SELECT column_name AS name, data_type, is_nullable = 'YES' AS is_nullable, "
    "column_default, character_maximum_length "
    "FROM information_schema.columns "
    "WHERE table_name = #{table} AND table_schema = COALESCE(#{schema}, current_schema()) "
    "ORDER BY ordinal_position"
)


@dataclass
class ColumnInfo:
    """One column of a table as described by ``information_schema.columns``."""

    name: str
    data_type: str
    is_nullable: bool = True
    column_default: Optional[str] = None
    character_maximum_length: Optional[int] = None


def fetch_columns(cnx: BoundConnection, table: str, schema: Optional[str] = None) -> Dict[str, ColumnInfo]:
    """Fetch the columns of a table, keyed by name in ordinal order.

    The table and schema names are bound as parameters.

    :param cnx: the connection to query with
    :param table: the unqualified table name
    :param schema: the schema holding the table, defaults to the connection's current schema
    :returns: a dictionary of column name to ``ColumnInfo``, empty if the table does not exist
    """
    rows = cnx.query(SELECT_COLUMNS, mapper=ClassRowMapper(ColumnInfo), table=table, schema=schema)
    logger.debug(f"Table '{table}' has {len(rows)} column(s)")
    return {column.name: column for column in rows}
