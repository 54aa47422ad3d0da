"""Tests for the bound-parameter statement builders."""

from datetime import datetime, timezone

from userschema.binding.errors import StatementError, TemplateError
from userschema.binding.statements import InsertStatement, UpdateStatement

import pytest


def test_insert_statement():
    """Tests an insert binds every value in column order."""
    statement = InsertStatement("users", {"email": "user@example.com", "city": "La Plata"})
    sql, params = statement.render("%s")
    assert sql == 'INSERT INTO "users" ("email", "city") VALUES (%s, %s)'
    assert params == ("user@example.com", "La Plata")
    assert not statement.returns_rows


def test_insert_statement_returning_all():
    """Tests an insert can return the whole stored row."""
    statement = InsertStatement("public.users", {"email": "user@example.com"}, returning=["*"])
    sql, params = statement.render("%s")
    assert sql == 'INSERT INTO "public"."users" ("email") VALUES (%s) RETURNING *'
    assert params == ("user@example.com",)
    assert statement.returns_rows


def test_update_statement():
    """Tests an update binds values first, then the filter values."""
    when = datetime(9999, 12, 31, 23, 59, 59, tzinfo=timezone.utc)
    statement = UpdateStatement(
        "users",
        {"updated_at": when, "first_name": None, "enabled": False},
        where={"email": "test@example.com"},
        returning=["email", "enabled"],
    )
    sql, params = statement.render("%s")
    assert sql == (
        'UPDATE "users" SET "updated_at" = %s, "first_name" = %s, "enabled" = %s '
        'WHERE "email" = %s RETURNING "email", "enabled"'
    )
    assert params == (when, None, False, "test@example.com")


def test_update_statement_multiple_filters():
    """Tests every filter pair is combined with AND."""
    statement = UpdateStatement("users", {"enabled": True}, where={"email": "a@b.io", "city": "La Plata"})
    sql, params = statement.render("%s")
    assert sql == 'UPDATE "users" SET "enabled" = %s WHERE "email" = %s AND "city" = %s'
    assert params == (True, "a@b.io", "La Plata")


def test_values_are_never_rendered():
    """Tests values carrying SQL only ever appear as parameters."""
    hostile = "'; TRUNCATE users; --"
    statement = UpdateStatement("users", {"password": hostile}, where={"email": hostile})
    sql, params = statement.render("%s")
    assert hostile not in sql
    assert params == (hostile, hostile)


def test_render_is_repeatable():
    """Tests rendering twice yields the same statement."""
    statement = InsertStatement("users", {"email": "user@example.com"})
    assert statement.render("%s") == statement.render("%s")


@pytest.mark.parametrize(
    "build",
    [
        lambda: InsertStatement("users", {"email; DROP TABLE users": "x"}),
        lambda: InsertStatement("users; DROP TABLE users", {"email": "x"}),
        lambda: UpdateStatement("users", {"enabled": True}, where={"1=1 OR email": "x"}),
        lambda: InsertStatement("users", {"email": "x"}, returning=["email, password"]),
    ],
)
def test_invalid_identifiers_rejected(build):
    """Tests table and column names must be plain identifiers."""
    with pytest.raises(TemplateError, match="Invalid identifier"):
        build().render("%s")


@pytest.mark.parametrize(
    "build, match",
    [
        (lambda: InsertStatement("users", {}), "at least one column"),
        (lambda: UpdateStatement("users", {}, where={"email": "x"}), "at least one column"),
        (lambda: UpdateStatement("users", {"enabled": True}, where={}), "requires a filter"),
    ],
)
def test_empty_statements_rejected(build, match):
    """Tests statements without values or without a filter are refused."""
    with pytest.raises(StatementError, match=match):
        build()
