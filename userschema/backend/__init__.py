"""Functionality abstracting the primitive database backend interface."""

from typing import Tuple
from urllib.parse import urlparse

from userschema.backend.base import Connection, ConnectionPool, ResultSet
from userschema.backend.errors import ConfigurationError, DatabaseError, UnsupportedBackendError
from userschema.backend.postgres import ConnectionPoolPSQLPsycopg2, ConnectionPoolPSQLPsycopg3


ENGINE_DEFAULTS = {"postgresql": "psycopg2"}
BACKEND_ALIASES = {"postgres": "postgresql"}


def _parse_scheme(scheme: str) -> Tuple[str, str]:
    """Split a URL scheme such as ``postgresql+psycopg`` into its backend and engine.

    :param scheme: the scheme portion of a database URL
    :returns: a tuple of (backend, engine), engine falls back to the backend's default
    :raises: ConfigurationError
    """
    if not scheme:
        raise ConfigurationError("No database backend specified")
    parts = scheme.split("+")
    backend = BACKEND_ALIASES.get(parts[0], parts[0])
    engine = ENGINE_DEFAULTS.get(backend) if len(parts) == 1 else parts[1]
    return backend, engine


def create_connection_pool(db_url: str) -> ConnectionPool:
    """Create a connection pool for the given database connection URL.

    The db_url is expected to be in the following format::

        "{db_backend}+{driver}://{username}:{password}@{hostname}:{port}/{db_name}"

    Only PostgreSQL is supported, through either the ``psycopg2`` (default) or the ``psycopg`` driver. The
    ``postgres://`` scheme is accepted as an alias of ``postgresql://``.

    :returns: A connection pool based on the given database URL.
    :raises: ConfigurationError, UnsupportedBackendError
    """
    parsed_url = urlparse(db_url)
    backend, engine = _parse_scheme(parsed_url.scheme)
    if backend == "postgresql" and engine == "psycopg2":
        return ConnectionPoolPSQLPsycopg2(db_url)
    if backend == "postgresql" and engine == "psycopg":
        return ConnectionPoolPSQLPsycopg3(db_url)
    raise UnsupportedBackendError(f"The backend+engine '{parsed_url.scheme}' is not supported")


__all__ = [
    "Connection",
    "ConnectionPool",
    "DatabaseError",
    "ResultSet",
    "create_connection_pool",
    "errors",
]
