"""Data access for the users table."""

import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import List, Optional

from userschema.binding.connection import BoundConnection
from userschema.binding.mappers import ClassRowMapper, SingleValueRowMapper
from userschema.binding.statements import InsertStatement, UpdateStatement

logger = logging.getLogger(__name__)


@dataclass
class User:
    """A row of the users table."""

    email: str
    username: Optional[str] = None
    birthdate: Optional[date] = None
    city: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    password: Optional[str] = None
    enabled: Optional[bool] = None
    last_access_time: Optional[datetime] = None


class UsersTable:
    """Reads and writes rows of the users table through bound parameters only."""

    def __init__(self, cnx: BoundConnection, table: str = "users"):
        """Construct the table accessor.

        :param cnx: the connection statements are issued on
        :param table: the (optionally schema qualified) table name
        """
        self._cnx = cnx
        self._table = table
        self._mapper = ClassRowMapper(User)

    @property
    def table(self) -> str:
        """Return the table name."""
        return self._table

    def insert(self, **values) -> int:
        """Insert a row, returning the affected row count.

        :param values: column values of the new row
        :raises: DatabaseError when the database rejects the row
        """
        return self._cnx.execute_statement(InsertStatement(self._table, values))

    def insert_returning(self, **values) -> User:
        """Insert a row and return it as stored, defaults included.

        :param values: column values of the new row
        :raises: DatabaseError when the database rejects the row
        """
        rows = self._cnx.query_statement(InsertStatement(self._table, values, returning=["*"]), self._mapper)
        return rows[0]

    def update(self, email: str, **values) -> Optional[User]:
        """Update the row with the given email, returning it as stored.

        :param email: the email identifying the row
        :param values: column values to set, ``None`` sets NULL
        :returns: the updated row or None if no row has that email
        :raises: DatabaseError when the database rejects the new values
        """
        statement = UpdateStatement(self._table, values, where={"email": email}, returning=["*"])
        rows = self._cnx.query_statement(statement, self._mapper)
        return rows[0] if rows else None

    def find(self, email: str) -> Optional[User]:
        """Read the row with the given email.

        :param email: the email identifying the row
        :returns: the row or None
        """
        sql = "SELECT * FROM !{table} WHERE email = #{email}"
        rows = self._cnx.query(sql, self._mapper, table=self._table, email=email)
        return rows[0] if rows else None

    def select_all(self) -> List[User]:
        """Read every row of the table."""
        return self._cnx.query("SELECT * FROM !{table}", self._mapper, table=self._table)

    def count(self) -> int:
        """Count the rows of the table."""
        return self._cnx.query("SELECT COUNT(*) FROM !{table}", SingleValueRowMapper(), table=self._table)[0]

    def truncate(self):
        """Remove every row of the table."""
        logger.debug(f"Truncating {self._table}")
        self._cnx.execute("TRUNCATE !{table}", table=self._table)
