"""Implementation of PostgreSQL backends."""

from userschema.backend.postgres.base import ConnectionPSQL, ConnectionPoolPSQL
from userschema.backend.postgres.psycopg2 import ConnectionPoolPSQLPsycopg2
from userschema.backend.postgres.psycopg3 import ConnectionPoolPSQLPsycopg3

__all__ = [
    "ConnectionPSQL",
    "ConnectionPoolPSQL",
    "ConnectionPoolPSQLPsycopg2",
    "ConnectionPoolPSQLPsycopg3",
]
