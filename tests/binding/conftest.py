"""Helpful fixtures for testing userschema.binding functionality."""

from userschema.binding import BoundConnection

import pytest

from tests.binding.mocks import MockConnectionPool


@pytest.fixture()
def bound_and_pool(request):
    """Fixture that yields a BoundConnection (and its MockedConnectionPool) initialized with a set of mock results.

    .. note::
        Can use the `indirect` parametrize functionality in fixture to specify the mocked results.
    """
    result_stack = []
    if hasattr(request, "param"):
        result_stack = request.param
    pool = MockConnectionPool(result_stack)
    cnx = pool.lease()
    yield BoundConnection(cnx, pool.mung_symbol), pool
    pool.release(cnx)
    pool.dispose()
