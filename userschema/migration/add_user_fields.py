"""Adds the profile, credential and access tracking columns to the users table.

Each column addition is guarded with ``IF NOT EXISTS`` so applying the migration again is a no-op.
"""

from userschema.binding.connection import BoundConnection

ADD_USER_FIELDS = (
    "ALTER TABLE !{table} "
    'ADD COLUMN IF NOT EXISTS "updated_at" timestamptz NULL, '
    'ADD COLUMN IF NOT EXISTS "first_name" character varying(50) NULL, '
    'ADD COLUMN IF NOT EXISTS "last_name" character varying(50) NULL, '
    'ADD COLUMN IF NOT EXISTS "password" character varying(100) NULL, '
    'ADD COLUMN IF NOT EXISTS "enabled" boolean NOT NULL DEFAULT true, '
    'ADD COLUMN IF NOT EXISTS "last_access_time" timestamptz NULL'
)


def upgrade(cnx: BoundConnection, table: str = "users"):
    """Add the columns without committing, the caller owns the transaction."""
    cnx.execute(ADD_USER_FIELDS, commit=False, table=table)
