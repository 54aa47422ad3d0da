"""Tests for the schema contract checker against mocked database results."""

from datetime import datetime, timedelta, timezone

from userschema.backend.errors import DatabaseError
from userschema.contract import SchemaContractChecker
from userschema.contract.checker import SCRATCH_USER, VALID_USER
from userschema.contract.fields import EXPECTED_FIELDS, FieldExpectation

import pytest

from tests.contract.mocks import (
    affected,
    base_columns_cursor,
    bound,
    columns_cursor,
    empty_cursor,
    rejected,
    user_cursor,
)


def _statements(cnx):
    return [sql for sql, _ in cnx.connection.query_stack]


def migrated(results):
    """Bind a mock connection to a migrated table, its column lookup precedes the given results."""
    return bound([columns_cursor(), *results])


def test_presence_and_types_pass():
    """Tests a migrated table passes every structural check."""
    cnx = bound([columns_cursor()])
    checker = SchemaContractChecker(cnx)
    results = checker.check_presence() + checker.check_types()
    assert len(results) == 2 * len(EXPECTED_FIELDS)
    assert all(r.passed for r in results)
    # Columns are read once and cached
    assert len(cnx.connection.query_stack) == 1
    sql, params = cnx.connection.query_stack[0]
    assert "information_schema.columns" in sql
    assert params == ("users", None)


def test_presence_reports_missing_fields():
    """Tests a table without the migrated fields fails the presence check of each of them."""
    checker = SchemaContractChecker(bound([base_columns_cursor()]))
    failed = [r for r in checker.check_presence() if not r.passed]
    assert [r.field for r in failed] == [
        "updated_at",
        "first_name",
        "last_name",
        "password",
        "enabled",
        "last_access_time",
    ]
    assert failed[0].message == "column 'updated_at' is missing from 'users'"
    assert failed[0].name == "field updated_at is present"


def test_types_report_mismatch():
    """Tests a column with the wrong declared type fails with the expected and actual type."""
    checker = SchemaContractChecker(bound([columns_cursor(enabled="integer")]))
    failed = [r for r in checker.check_types() if not r.passed]
    assert len(failed) == 1
    assert failed[0].name == 'field enabled is type "boolean"'
    assert (failed[0].expected, failed[0].actual) == ("boolean", "integer")


def test_types_report_missing_column():
    """Tests a missing column fails its type check with no actual type."""
    expectations = [FieldExpectation("enabled", "boolean")]
    checker = SchemaContractChecker(bound([base_columns_cursor()]), expectations=expectations)
    (result,) = checker.check_types()
    assert not result.passed
    assert result.actual is None


def test_refresh_reads_columns_again():
    """Tests refresh drops the cached columns."""
    cnx = bound([base_columns_cursor(), columns_cursor()])
    checker = SchemaContractChecker(cnx)
    assert "enabled" not in checker.columns
    checker.refresh()
    assert "enabled" in checker.columns


def test_schema_qualified_table():
    """Tests a schema is bound in the information schema query and qualifies row statements."""
    cnx = bound([columns_cursor(), affected(0)])
    checker = SchemaContractChecker(cnx, schema="accounts")
    checker.check_presence()
    with checker.isolated():
        pass
    assert cnx.connection.query_stack[0][1] == ("users", "accounts")
    assert cnx.connection.query_stack[1] == ('TRUNCATE "accounts"."users"', None)


def test_insert_accepted():
    """Tests a valid insert passes when one row is affected and created_at is today in UTC."""
    stored = user_cursor(**VALID_USER, created_at=datetime.now(timezone.utc))
    cnx = migrated([affected(1), stored, affected(0)])
    result = SchemaContractChecker(cnx).check_insert_accepted("insert a valid user", VALID_USER)
    assert result.passed, result.message
    statements = _statements(cnx)
    assert statements[1].startswith('INSERT INTO "users"')
    assert statements[-1] == 'TRUNCATE "users"'


def test_insert_accepted_wrong_created_at():
    """Tests a created_at outside the current UTC date fails the check."""
    stale = datetime.now(timezone.utc) - timedelta(days=3)
    cnx = migrated([affected(1), user_cursor(**VALID_USER, created_at=stale), affected(0)])
    result = SchemaContractChecker(cnx).check_insert_accepted("insert a valid user", VALID_USER)
    assert not result.passed
    assert result.field == "created_at"
    assert result.actual == stale.date()
    assert _statements(cnx)[-1] == 'TRUNCATE "users"'


def test_insert_accepted_wrong_row_count():
    """Tests an insert affecting an unexpected number of rows fails the check."""
    cnx = migrated([affected(0), affected(0)])
    result = SchemaContractChecker(cnx).check_insert_accepted("insert a valid user", VALID_USER)
    assert not result.passed
    assert result.message == "expected 1 affected row, got 0"


def test_insert_rejected():
    """Tests a rejection whose message names the constraint passes and the table is still cleared."""
    violation = rejected('new row for relation "users" violates check constraint "users_email_check"', "23514")
    cnx = migrated([violation, affected(0)])
    checker = SchemaContractChecker(cnx)
    result = checker.check_insert_rejected("invalid email", {**VALID_USER, "email": "user"}, "users_email_check")
    assert result.passed
    assert cnx.connection.rollbacks == 1
    assert _statements(cnx)[-1] == 'TRUNCATE "users"'


def test_insert_rejected_with_other_error():
    """Tests a rejection for a different reason fails and reports the received error."""
    cnx = migrated([rejected('null value in column "city"'), affected(0)])
    result = SchemaContractChecker(cnx).check_insert_rejected("invalid email", VALID_USER, "users_email_check")
    assert not result.passed
    assert result.actual == 'null value in column "city"'
    assert "users_email_check" in result.message


def test_insert_rejected_but_accepted():
    """Tests a row the database accepts fails a rejection check."""
    cnx = migrated([affected(1), affected(1)])
    result = SchemaContractChecker(cnx).check_insert_rejected("invalid email", VALID_USER, "users_email_check")
    assert not result.passed
    assert result.message == "row was accepted, expected an error containing 'users_email_check'"


def test_default():
    """Tests the default check reads the column from the inserted row."""
    cnx = migrated([user_cursor(**SCRATCH_USER, enabled=True), affected(0)])
    result = SchemaContractChecker(cnx).check_default("enabled defaults to true", "enabled", True)
    assert result.passed
    sql = _statements(cnx)[1]
    assert sql.startswith('INSERT INTO "users"') and sql.endswith("RETURNING *")
    assert "enabled" not in sql


def test_default_mismatch():
    """Tests a column without the expected default fails."""
    cnx = migrated([user_cursor(**SCRATCH_USER, enabled=None), affected(0)])
    result = SchemaContractChecker(cnx).check_default("enabled defaults to true", "enabled", True)
    assert not result.passed
    assert result.message == "'enabled': expected True, got None"


def test_round_trip():
    """Tests each step is applied as one update and re-read before the next."""
    email = SCRATCH_USER["email"]
    updated = user_cursor(email=email, password="x")
    cleared = [user_cursor(email=email, password=None), user_cursor(email=email, password=None)]
    cnx = migrated([affected(1), updated, user_cursor(**SCRATCH_USER, password="x"), *cleared, affected(0)])
    result = SchemaContractChecker(cnx).check_round_trip("password set to NULL", {"password": "x"}, {"password": None})
    assert result.passed, result.message
    assert result.field == "password"
    statements = _statements(cnx)
    assert statements[2] == 'UPDATE "users" SET "password" = %s WHERE "email" = %s RETURNING *'
    assert cnx.connection.query_stack[4][1] == (None, SCRATCH_USER["email"])
    assert statements[-1] == 'TRUNCATE "users"'


def test_round_trip_mismatch():
    """Tests a value read back differently fails with the field, expected and actual value."""
    cut = "A" * 49
    updated = user_cursor(email=SCRATCH_USER["email"], first_name=cut)
    cnx = migrated([affected(1), updated, user_cursor(**SCRATCH_USER, first_name=cut), affected(0)])
    result = SchemaContractChecker(cnx).check_round_trip("names of 50 characters", {"first_name": "A" * 50})
    assert not result.passed
    assert (result.field, result.expected, result.actual) == ("first_name", "A" * 50, cut)


def test_round_trip_missing_row():
    """Tests an update matching no row fails the check."""
    cnx = migrated([affected(1), empty_cursor("email"), affected(0)])
    result = SchemaContractChecker(cnx).check_round_trip("enabled set to false", {"enabled": False})
    assert not result.passed
    assert result.message == "row to update was not found"


def test_update_rejected():
    """Tests an update rejected with the expected error passes."""
    too_long = rejected("value too long for type character varying(50)", "22001")
    cnx = migrated([affected(1), too_long, affected(0)])
    checker = SchemaContractChecker(cnx)
    result = checker.check_update_rejected("first_name over 50", {"first_name": "A" * 51}, "value too long")
    assert result.passed
    assert _statements(cnx)[-1] == 'TRUNCATE "users"'


def test_update_rejected_but_accepted():
    """Tests an update the database accepts fails a rejection check."""
    cnx = migrated([affected(1), user_cursor(email=SCRATCH_USER["email"], first_name="A" * 51), affected(0)])
    result = SchemaContractChecker(cnx).check_update_rejected("first_name over 50", {"first_name": "A" * 51}, "long")
    assert not result.passed
    assert result.message.startswith("update was accepted")


def test_unexpected_error_propagates():
    """Tests errors a check did not ask for propagate after the table is cleared."""
    cnx = migrated([affected(1), rejected("permission denied for table users", "42501"), affected(0)])
    with pytest.raises(DatabaseError, match="permission denied"):
        SchemaContractChecker(cnx).check_round_trip("enabled set to false", {"enabled": False})
    assert _statements(cnx)[-1] == 'TRUNCATE "users"'


def test_check_all_structure_only(caplog):
    """Tests structural checks run without touching rows and failures are logged."""
    cnx = bound([columns_cursor(enabled="integer")])
    with caplog.at_level("INFO"):
        results = SchemaContractChecker(cnx).check_all(include_rows=False)
    assert len(results) == 2 * len(EXPECTED_FIELDS)
    assert [r.field for r in results if not r.passed] == ["enabled"]
    assert len(cnx.connection.query_stack) == 1
    assert "Check failed" in caplog.text
    assert f"{len(results) - 1} of {len(results)} check(s) passed" in caplog.text


def test_check_all_unmigrated_table():
    """Tests the row checks of a table lacking the migrated columns fail by name and the whole report is returned."""
    cnx = bound(
        [
            base_columns_cursor(),
            affected(1),
            user_cursor(**VALID_USER, created_at=datetime.now(timezone.utc)),
            affected(0),
            rejected('new row for relation "users" violates check constraint "users_email_check"', "23514"),
            affected(0),
            rejected('invalid input syntax for type date: "invalid_date"', "22007"),
            affected(0),
            rejected('null value in column "city" of relation "users" violates not-null constraint', "23502"),
            affected(0),
        ]
    )
    results = SchemaContractChecker(cnx).check_all(include_rows=True)
    by_name = {r.name: r for r in results}
    assert all(by_name[name].passed for name in ("insert a valid user", "insert a user without city"))
    assert len(results) == 2 * len(EXPECTED_FIELDS) + 4 + 21
    assert len([r for r in results if not r.passed]) == 6 + 6 + 21
    default = by_name["enabled defaults to true"]
    assert (default.field, default.actual) == ("enabled", None)
    assert default.message == "column 'enabled' is missing from 'users'"
    assert by_name["first_name and last_name set"].field == "first_name"
    # Only the column lookup and the insert checks reach the database
    assert len(cnx.connection.query_stack) == 10
    assert cnx.connection.cursor_stack == []
