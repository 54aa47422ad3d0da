"""Defines common errors raised from database backend code."""

from typing import Optional


class UnsupportedBackendError(Exception):
    """Raised when an unsupported backend is specified."""

    pass


class ConfigurationError(Exception):
    """Raised when there is a backend configuration connection error."""

    pass


class BackendNotInstalledError(Exception):
    """Raised when a backend engine is not installed."""

    pass


class DatabaseError(Exception):
    """Raised when the database rejects a statement.

    Wraps the driver specific exception so callers can inspect the failure without importing the driver.
    """

    def __init__(
        self,
        message: str,
        sqlstate: Optional[str] = None,
        constraint_name: Optional[str] = None,
        column_name: Optional[str] = None,
    ):
        """Construct a database error.

        :param message: the primary error message reported by the server
        :param sqlstate: the five character SQLSTATE code, if known
        :param constraint_name: the name of the violated constraint, if any
        :param column_name: the name of the offending column, if any
        """
        super().__init__(message)
        self.message = message
        self.sqlstate = sqlstate
        self.constraint_name = constraint_name
        self.column_name = column_name
