"""Helpful fixtures for testing against a throwaway PostgreSQL database.

The server is configured with the ``USERSCHEMA_TEST_PSQL_*`` environment variables, tests needing it are skipped when
it cannot be reached.
"""

import os
import uuid

import pytest

from tests.backend import postgres_test_sql as test_sql


def _psql_settings() -> dict:
    return {
        "dbname": os.environ.get("USERSCHEMA_TEST_PSQL_DB", "postgres"),
        "host": os.environ.get("USERSCHEMA_TEST_PSQL_HOST", "localhost"),
        "user": os.environ.get("USERSCHEMA_TEST_PSQL_USER", "psql_test_user"),
        "password": os.environ.get("USERSCHEMA_TEST_PSQL_PASS", "psql_test_pass"),
        "port": int(os.getenv("USERSCHEMA_TEST_PSQL_PORT", 15432)),
    }


def _tmp_database(engine: str):
    """Create a randomly named database, yield a URL for it using the given engine and drop it afterwards."""
    psycopg2 = pytest.importorskip("psycopg2")
    settings = _psql_settings()
    db_name = f"test_{str(uuid.uuid4()).replace('-', '')}"
    try:
        cnx = psycopg2.connect(connect_timeout=5, **settings)
    except psycopg2.OperationalError as x:
        pytest.skip(f"PostgreSQL test server is unreachable: {x}")
    cnx.autocommit = True
    cursor = cnx.cursor()
    cursor.execute(f"CREATE DATABASE {db_name}")
    credentials = f"{settings['user']}:{settings['password']}"
    yield f"postgresql+{engine}://{credentials}@{settings['host']}:{settings['port']}/{db_name}"
    cursor.execute(test_sql.TERMINATE_DB_CONNS, (db_name,))
    cursor.execute(f"DROP DATABASE {db_name}")
    cursor.close()
    cnx.close()


@pytest.fixture()
def tmp_psql_db_url() -> str:
    """Provide a psycopg2 DB Connection Pool URL for a fresh database on the test postgres instance."""
    yield from _tmp_database("psycopg2")


@pytest.fixture()
def tmp_psycopg3_db_url() -> str:
    """Provide a psycopg (v3) DB Connection Pool URL for a fresh database on the test postgres instance."""
    yield from _tmp_database("psycopg")


@pytest.fixture(scope="module")
def module_psql_db_url() -> str:
    """Provide a psycopg2 DB Connection Pool URL for a database shared by every test in a module."""
    yield from _tmp_database("psycopg2")
