"""Migration and schema contract checks for the users table."""

from userschema.__version__ import __version__

__all__ = ["__version__"]
