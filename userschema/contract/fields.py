"""Declared column expectations for the users table."""

from dataclasses import dataclass


@dataclass(frozen=True)
class FieldExpectation:
    """A column a table must expose, with its declared type as reported by ``information_schema.columns``.

    :param name: the column name
    :param type: the engine native type name, e.g. ``character varying`` or ``timestamp with time zone``
    """

    name: str
    type: str


BASE_FIELDS = (
    FieldExpectation("email", "character varying"),
    FieldExpectation("username", "character varying"),
    FieldExpectation("birthdate", "date"),
    FieldExpectation("city", "character varying"),
    FieldExpectation("created_at", "timestamp with time zone"),
)

NEW_FIELDS = (
    FieldExpectation("updated_at", "timestamp with time zone"),
    FieldExpectation("first_name", "character varying"),
    FieldExpectation("last_name", "character varying"),
    FieldExpectation("password", "character varying"),
    FieldExpectation("enabled", "boolean"),
    FieldExpectation("last_access_time", "timestamp with time zone"),
)

EXPECTED_FIELDS = BASE_FIELDS + NEW_FIELDS
