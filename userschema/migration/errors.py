"""Migration-specific exception classes."""


class MigrationError(Exception):
    """Raised when applying the migration fails, the transaction has been rolled back."""

    pass
