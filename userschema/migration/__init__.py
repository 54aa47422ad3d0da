"""The users table migration."""

from userschema.migration.apply import apply_migration, migrate
from userschema.migration.errors import MigrationError

__all__ = ["MigrationError", "apply_migration", "migrate"]
