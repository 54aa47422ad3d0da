"""Builders turning a mapping of column names to values into bound-parameter SQL statements.

Column names only ever reach the SQL text as validated, quoted identifiers and values only ever as bound
parameters, so a builder is safe to use with untrusted values::

    >>> UpdateStatement("users", {"first_name": "John", "enabled": False}, where={"email": "a@b.io"}).render("%s")
    ('UPDATE "users" SET "first_name" = %s, "enabled" = %s WHERE "email" = %s', ('John', False, 'a@b.io'))
"""

from abc import ABC, abstractmethod
from typing import Any, List, Mapping, Optional, Sequence, Tuple

from userschema.binding.errors import StatementError
from userschema.binding.templating import Template


class Statement(ABC):
    """Base for statements built against a single table."""

    def __init__(self, table: str, returning: Optional[Sequence[str]] = None):
        """Construct a statement.

        :param table: the (optionally schema qualified) table the statement targets
        :param returning: columns to return from the affected rows, ``["*"]`` returns every column
        """
        self._table = table
        self._returning = tuple(returning or ())
        self._arguments = {"table": table}
        self._template = None

    def _bind(self, prefix: str, values: Mapping[str, Any]) -> List[Tuple[str, str]]:
        """Register columns and their values as template arguments.

        :param prefix: a prefix keeping the generated argument names of different clauses apart
        :param values: the column to value mapping
        :returns: (column placeholder, value placeholder) pairs in the mapping's order
        """
        placeholders = []
        for index, (column, value) in enumerate(values.items()):
            column_arg = f"{prefix}_column_{index}"
            value_arg = f"{prefix}_value_{index}"
            self._arguments[column_arg] = column
            self._arguments[value_arg] = value
            placeholders.append((f"!{{{column_arg}}}", f"#{{{value_arg}}}"))
        return placeholders

    def _returning_clause(self) -> str:
        if not self._returning:
            return ""
        if self._returning == ("*",):
            return " RETURNING *"
        columns = []
        for index, column in enumerate(self._returning):
            self._arguments[f"returning_{index}"] = column
            columns.append(f"!{{returning_{index}}}")
        return f" RETURNING {', '.join(columns)}"

    @abstractmethod
    def _build(self) -> str:
        """Build the SQL template text for this statement."""
        pass  # pragma: no cover

    @property
    def template(self) -> Template:
        """Return the parsed template for this statement."""
        if self._template is None:
            self._template = Template(self._build())
        return self._template

    @property
    def returns_rows(self) -> bool:
        """Whether executing the statement produces a result set."""
        return bool(self._returning)

    def render(self, mung_symbol: str) -> Tuple[str, tuple]:
        """Render the statement to SQL and its positional parameters.

        :param mung_symbol: the driver's parameter placeholder
        :returns: the SQL text and a tuple of parameters in placeholder order
        :raises: TemplateError if a table or column name is not a plain identifier
        """
        template = self.template
        return template.render(mung_symbol, self._arguments)


class InsertStatement(Statement):
    """An ``INSERT`` of a single row."""

    def __init__(self, table: str, values: Mapping[str, Any], returning: Optional[Sequence[str]] = None):
        """Construct an insert statement.

        :param table: the table to insert into
        :param values: column name to value mapping for the new row
        :param returning: columns to return from the inserted row
        :raises: StatementError if no values are given
        """
        super().__init__(table, returning)
        if not values:
            raise StatementError("An insert requires at least one column value")
        self._values = dict(values)

    def _build(self) -> str:
        pairs = self._bind("set", self._values)
        columns = ", ".join(c for c, _ in pairs)
        values = ", ".join(v for _, v in pairs)
        return f"INSERT INTO !{{table}} ({columns}) VALUES ({values}){self._returning_clause()}"


class UpdateStatement(Statement):
    """An ``UPDATE`` setting columns on the rows matching an equality filter."""

    def __init__(
        self,
        table: str,
        values: Mapping[str, Any],
        where: Mapping[str, Any],
        returning: Optional[Sequence[str]] = None,
    ):
        """Construct an update statement.

        :param table: the table to update
        :param values: column name to new value mapping, ``None`` sets the column to NULL
        :param where: column name to value mapping, rows matching every pair are updated
        :param returning: columns to return from the updated rows
        :raises: StatementError if no values or no filter are given
        """
        super().__init__(table, returning)
        if not values:
            raise StatementError("An update requires at least one column value")
        if not where:
            raise StatementError("An update requires a filter, refusing to update every row")
        self._values = dict(values)
        self._where = dict(where)

    def _build(self) -> str:
        assignments = ", ".join(f"{c} = {v}" for c, v in self._bind("set", self._values))
        conditions = " AND ".join(f"{c} = {v}" for c, v in self._bind("where", self._where))
        return f"UPDATE !{{table}} SET {assignments} WHERE {conditions}{self._returning_clause()}"
