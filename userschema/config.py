"""Resolves the database connection URL from the environment."""

import os
from typing import Mapping, Optional

from userschema.backend.errors import ConfigurationError

URL_VARIABLES = ("USERSCHEMA_DATABASE_URL", "DATABASE_URL")


def get_database_url(environ: Optional[Mapping[str, str]] = None) -> str:
    """Return the database connection URL.

    ``USERSCHEMA_DATABASE_URL`` takes precedence over ``DATABASE_URL``.

    :param environ: the environment to read, defaults to ``os.environ``
    :returns: the connection URL
    :raises: ConfigurationError if neither variable is set
    """
    environ = os.environ if environ is None else environ
    for variable in URL_VARIABLES:
        value = environ.get(variable, "").strip()
        if value:
            return value
    raise ConfigurationError(f"No database URL configured, set one of: {', '.join(URL_VARIABLES)}")
