"""Connection wrapper providing templated SQL and statement builder execution."""

from typing import List, Optional

from userschema.backend.base import Connection
from userschema.binding.mappers import DictRowMapper, RowMapper
from userschema.binding.statements import Statement
from userschema.binding.templating import Template


class BoundConnection:
    """Wraps a ``Connection`` with template rendering so every value reaches the database as a bound parameter.

    Provides ``execute`` and ``query`` methods that accept SQL templates with ``#{var}`` and ``!{var}``
    syntax, and ``execute_statement`` / ``query_statement`` for the statement builders, rendering them with the
    pool's mung symbol before delegating to the underlying connection.
    """

    def __init__(self, cnx: Connection, mung_symbol: str):
        """Construct a bound connection.

        :param cnx: the underlying database connection
        :param mung_symbol: the driver's parameter placeholder, see ``ConnectionPool.mung_symbol``
        """
        self._cnx = cnx
        self._mung_symbol = mung_symbol
        self._dict_mapper = DictRowMapper()

    @property
    def connection(self) -> Connection:
        """Return the underlying database connection.

        :returns: the wrapped ``Connection``
        """
        return self._cnx

    def commit(self):
        """Commit the current transaction of the underlying connection."""
        self._cnx.commit()

    def rollback(self):
        """Roll back the current transaction of the underlying connection."""
        self._cnx.rollback()

    def execute(self, sql_template: str, commit: bool = None, **kwargs) -> int:
        """Render and execute a SQL template, returning the affected row count.

        :param sql_template: a SQL template string
        :param commit: commit after execution, defaults to the connection's autocommit setting
        :param kwargs: template parameter values
        :returns: number of rows affected
        """
        sql, params = Template(sql_template).render(self._mung_symbol, kwargs)
        return self._cnx.execute(sql, params or None, commit=commit)

    def query(self, sql_template: str, mapper: Optional[RowMapper] = None, **kwargs) -> List:
        """Render and execute a SQL template, returning the mapped rows.

        :param sql_template: a SQL template string
        :param mapper: maps each row, defaults to a dictionary of column names to values
        :param kwargs: template parameter values
        :returns: list of mapped rows
        """
        sql, params = Template(sql_template).render(self._mung_symbol, kwargs)
        return self._fetch(sql, params, mapper)

    def execute_statement(self, statement: Statement, commit: bool = None) -> int:
        """Execute a built statement, returning the affected row count.

        :param statement: the statement to execute
        :param commit: commit after execution, defaults to the connection's autocommit setting
        :returns: number of rows affected
        """
        sql, params = statement.render(self._mung_symbol)
        return self._cnx.execute(sql, params or None, commit=commit)

    def query_statement(self, statement: Statement, mapper: Optional[RowMapper] = None) -> List:
        """Execute a built statement with a ``RETURNING`` clause, returning the mapped rows.

        :param statement: the statement to execute
        :param mapper: maps each row, defaults to a dictionary of column names to values
        :returns: list of mapped rows
        """
        sql, params = statement.render(self._mung_symbol)
        return self._fetch(sql, params, mapper)

    def _fetch(self, sql: str, params: tuple, mapper: Optional[RowMapper]) -> List:
        mapper = mapper or self._dict_mapper
        with self._cnx.query(sql, params or None) as results:
            return [mapper(row, results.description) for row in results.fetchall()]
