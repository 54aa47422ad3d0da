"""Implementation of PostgreSQL backend using psycopg2."""

from userschema.backend.errors import BackendNotInstalledError
from userschema.backend.postgres.base import ConnectionPoolPSQL


class ConnectionPoolPSQLPsycopg2(ConnectionPoolPSQL):
    """Implementation of ConnectionPool for psycopg2."""

    def __init__(self, db_url: str):
        """Construct a connection pool for the given connection URL.

        The db_url is expected to be in the following format::

            "postgresql+psycopg2://{username}:{password}@{hostname}:{port}/{db_name}?{optional_args}"

        In addition to common PostgreSQL optional_args, psycopg2 supports:

            * pool_threaded, a boolean specifying a threaded pool should be used, defaults to False

        :param db_url: a url with the described format
        :raises: ConfigurationError, BackendNotInstalledError
        """
        super().__init__(db_url)
        try:
            import psycopg2  # pylint: disable=import-outside-toplevel
            import psycopg2.pool  # pylint: disable=import-outside-toplevel
        except ModuleNotFoundError:  # pragma: no cover
            issue = "Module psycopg2 not installed, cannot create connection pool"
            raise BackendNotInstalledError(issue)
        self._driver_error = psycopg2.Error
        pool_class = psycopg2.pool.SimpleConnectionPool
        if self._get_arg("pool_threaded", bool, False):
            pool_class = psycopg2.pool.ThreadedConnectionPool
        self._raise_for_unexpected_args()
        self._pool = pool_class(
            minconn=self._pool_min_conn,
            maxconn=self._pool_max_conn,
            **self._cnx_kwargs,
        )

    def dispose(self):  # noqa: D102
        if not self._pool.closed:
            self._pool.closeall()
