"""Verifies a live table's structure and constraint behaviour against declared field expectations.

Structural checks (presence, type) only read the information schema. Row checks insert, update and re-read a
scratch row and clear the table with ``TRUNCATE`` after each check, whether it passed or not, so they must only
be pointed at a database whose users table may be emptied.
"""

import logging
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Mapping, Optional

from userschema.backend.errors import DatabaseError
from userschema.binding.connection import BoundConnection
from userschema.contract.fields import EXPECTED_FIELDS, FieldExpectation
from userschema.contract.introspection import ColumnInfo, fetch_columns
from userschema.contract.results import CheckResult
from userschema.users import UsersTable

logger = logging.getLogger(__name__)

VALID_USER = {"email": "user@example.com", "username": "user", "birthdate": "2024-01-02", "city": "La Plata"}
SCRATCH_USER = {"email": "test@example.com", "username": "testuser", "birthdate": "2000-01-01", "city": "Test City"}

FAR_FUTURE = datetime(9999, 12, 31, 23, 59, 59, tzinfo=timezone.utc)
FAR_PAST = datetime(1900, 1, 1, tzinfo=timezone.utc)
LONG_NAME = "A" * 50
LONG_PASSWORD = ("P@ssw0rd" * 13)[:100]
SPECIAL_NAME = "José Núñez-O'Brien"
SPECIAL_PASSWORD = "!@#$-_+.'\"%;--"

INVALID_DATE_ERROR = "invalid input syntax for type date"
VALUE_TOO_LONG_ERROR = "value too long for type character varying"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SchemaContractChecker:
    """Checks a table against a list of field expectations and the users table's constraint contract.

    Every check returns a :class:`CheckResult`; a failing check never prevents the next one from running. Errors
    other than the constraint rejections a check asks for propagate.

    Row checks that touch a column the table lacks fail without issuing any statement.

    The connection must be in auto commit mode so a rejected statement leaves it usable.
    """

    def __init__(
        self,
        cnx: BoundConnection,
        table: str = "users",
        expectations: Iterable[FieldExpectation] = EXPECTED_FIELDS,
        schema: Optional[str] = None,
    ):
        """Construct a checker.

        :param cnx: the connection checks are issued on
        :param table: the unqualified table name
        :param expectations: the fields the table must expose
        :param schema: the schema holding the table, defaults to the connection's current schema
        """
        self._cnx = cnx
        self._table = table
        self._schema = schema
        self._expectations = tuple(expectations)
        self._users = UsersTable(cnx, f"{schema}.{table}" if schema else table)
        self._columns = None

    @property
    def users(self) -> UsersTable:
        """Return the accessor used for row checks."""
        return self._users

    @property
    def columns(self) -> Dict[str, ColumnInfo]:
        """Return the table's columns, read once from the information schema."""
        if self._columns is None:
            self._columns = fetch_columns(self._cnx, self._table, self._schema)
        return self._columns

    def refresh(self):
        """Forget the cached columns so the next check reads them again."""
        self._columns = None

    # Structure

    def check_presence(self) -> List[CheckResult]:
        """Check every expected field is a column of the table."""
        results = []
        for field in self._expectations:
            name = f"field {field.name} is present"
            if field.name in self.columns:
                results.append(CheckResult.success(name, field.name))
                continue
            message = f"column '{field.name}' is missing from '{self._table}'"
            results.append(CheckResult.failure(name, field.name, sorted(self.columns), field.name, message))
        return results

    def check_types(self) -> List[CheckResult]:
        """Check every expected field's declared type equals the expectation exactly."""
        results = []
        for field in self._expectations:
            name = f'field {field.name} is type "{field.type}"'
            column = self.columns.get(field.name)
            actual = column.data_type if column else None
            if actual == field.type:
                results.append(CheckResult.success(name, field.name))
            else:
                results.append(CheckResult.failure(name, field.type, actual, field.name))
        return results

    # Rows

    def _missing_column(self, name: str, fields: Iterable[str]) -> Optional[CheckResult]:
        """Return a failure for the first of the fields that is not a column of the table, None if all are."""
        for field in fields:
            if field not in self.columns:
                message = f"column '{field}' is missing from '{self._table}'"
                return CheckResult.failure(name, field, None, field, message)
        return None

    @contextmanager
    def isolated(self):
        """Run a block against the table and clear it afterwards, even when the block raises."""
        try:
            yield self._users
        finally:
            self._users.truncate()

    def check_insert_accepted(self, name: str, values: Mapping[str, Any]) -> CheckResult:
        """Check a row is accepted, affects one row and gets a ``created_at`` on the current UTC date.

        :param name: the check name to report
        :param values: column values of the row, must include ``email``
        """
        missing = self._missing_column(name, [*values, "created_at"])
        if missing:
            return missing
        with self.isolated() as users:
            before = _utcnow().date()
            affected = users.insert(**values)
            after = _utcnow().date()
            if affected != 1:
                return CheckResult.failure(name, 1, affected, message=f"expected 1 affected row, got {affected}")
            stored = users.find(values["email"])
            if stored is None:
                return CheckResult.failure(name, values["email"], None, "email", "inserted row could not be read")
            created = stored.created_at.astimezone(timezone.utc).date() if stored.created_at else None
            if created not in (before, after):
                return CheckResult.failure(name, before, created, "created_at")
        return CheckResult.success(name)

    def check_insert_rejected(self, name: str, values: Mapping[str, Any], match: str) -> CheckResult:
        """Check the database rejects a row with an error whose message contains ``match``.

        :param name: the check name to report
        :param values: column values of the row
        :param match: text the error message must contain
        """
        missing = self._missing_column(name, values)
        if missing:
            return missing
        try:
            with self.isolated() as users:
                users.insert(**values)
        except DatabaseError as x:
            if match in x.message:
                return CheckResult.success(name)
            message = f"expected an error containing {match!r}, got {x.message!r}"
            return CheckResult.failure(name, match, x.message, message=message)
        message = f"row was accepted, expected an error containing {match!r}"
        return CheckResult.failure(name, match, None, message=message)

    def check_default(self, name: str, field: str, expected: Any) -> CheckResult:
        """Check a column takes the expected value when a row is inserted without it.

        :param name: the check name to report
        :param field: the column to read
        :param expected: the value the default must produce
        """
        missing = self._missing_column(name, [*SCRATCH_USER, field])
        if missing:
            return missing
        with self.isolated() as users:
            stored = users.insert_returning(**SCRATCH_USER)
            actual = getattr(stored, field)
        if actual != expected:
            return CheckResult.failure(name, expected, actual, field)
        return CheckResult.success(name, field)

    def check_round_trip(self, name: str, *steps: Mapping[str, Any]) -> CheckResult:
        """Check updates persist exactly, applying each step as one update and re-reading the row after it.

        :param name: the check name to report
        :param steps: column to value mappings, each applied in a single ``UPDATE``
        """
        missing = self._missing_column(name, [*SCRATCH_USER, *(f for step in steps for f in step)])
        if missing:
            return missing
        email = SCRATCH_USER["email"]
        with self.isolated() as users:
            users.insert(**SCRATCH_USER)
            for changes in steps:
                if users.update(email, **changes) is None:
                    return CheckResult.failure(name, email, None, "email", "row to update was not found")
                stored = users.find(email)
                for field, expected in changes.items():
                    actual = getattr(stored, field)
                    if actual != expected:
                        return CheckResult.failure(name, expected, actual, field)
        return CheckResult.success(name, ", ".join(sorted({f for step in steps for f in step})))

    def check_update_rejected(self, name: str, changes: Mapping[str, Any], match: str) -> CheckResult:
        """Check the database rejects an update with an error whose message contains ``match``.

        :param name: the check name to report
        :param changes: column to value mapping applied in one ``UPDATE``
        :param match: text the error message must contain
        """
        missing = self._missing_column(name, [*SCRATCH_USER, *changes])
        if missing:
            return missing
        try:
            with self.isolated() as users:
                users.insert(**SCRATCH_USER)
                users.update(SCRATCH_USER["email"], **changes)
        except DatabaseError as x:
            if match in x.message:
                return CheckResult.success(name)
            message = f"expected an error containing {match!r}, got {x.message!r}"
            return CheckResult.failure(name, match, x.message, message=message)
        message = f"update was accepted, expected an error containing {match!r}"
        return CheckResult.failure(name, match, None, message=message)

    def check_insert_constraints(self) -> List[CheckResult]:
        """Check the insert contract: one valid row accepted, invalid email, date and missing city rejected."""
        without_city = {k: v for k, v in VALID_USER.items() if k != "city"}
        return [
            self.check_insert_accepted("insert a valid user", VALID_USER),
            self.check_insert_rejected(
                "insert a user with an invalid email",
                {**VALID_USER, "email": "user"},
                f"{self._table}_email_check",
            ),
            self.check_insert_rejected(
                "insert a user with an invalid birthdate",
                {**VALID_USER, "birthdate": "invalid_date"},
                INVALID_DATE_ERROR,
            ),
            self.check_insert_rejected("insert a user without city", without_city, 'null value in column "city"'),
        ]

    def check_update_semantics(self) -> List[CheckResult]:
        """Check the update contract of the six migrated fields."""
        now = _utcnow()
        names = {"first_name": "John", "last_name": "Doe"}
        no_names = {"first_name": None, "last_name": None}
        special_names = {"first_name": SPECIAL_NAME, "last_name": SPECIAL_NAME}
        password = {"password": "securePassword123!"}
        too_long = VALUE_TOO_LONG_ERROR
        no_access = {"last_access_time": None}
        everything = {
            "updated_at": now,
            "first_name": "John",
            "last_name": "Doe",
            "password": "securePassword123!",
            "enabled": False,
            "last_access_time": now,
        }
        return [
            self.check_round_trip("updated_at set to the current time", {"updated_at": now}),
            self.check_round_trip("updated_at set to NULL", {"updated_at": now}, {"updated_at": None}),
            self.check_round_trip("updated_at far future date", {"updated_at": FAR_FUTURE}),
            self.check_round_trip("first_name and last_name set", names),
            self.check_round_trip("names of 50 characters", {"first_name": LONG_NAME, "last_name": LONG_NAME}),
            self.check_round_trip("names with special characters", special_names),
            self.check_round_trip("names set to NULL", names, no_names),
            self.check_update_rejected("first_name over 50 characters", {"first_name": LONG_NAME + "A"}, too_long),
            self.check_update_rejected("last_name over 50 characters", {"last_name": LONG_NAME + "A"}, too_long),
            self.check_round_trip("password set", password),
            self.check_round_trip("password of 100 characters", {"password": LONG_PASSWORD}),
            self.check_round_trip("password with special characters", {"password": SPECIAL_PASSWORD}),
            self.check_round_trip("password set to NULL", password, {"password": None}),
            self.check_update_rejected("password over 100 characters", {"password": LONG_PASSWORD + "P"}, too_long),
            self.check_default("enabled defaults to true", "enabled", True),
            self.check_round_trip("enabled set to false", {"enabled": False}),
            self.check_round_trip("enabled set back to true", {"enabled": False}, {"enabled": True}),
            self.check_round_trip("last_access_time set to the current time", {"last_access_time": now}),
            self.check_round_trip("last_access_time set to NULL", {"last_access_time": now}, no_access),
            self.check_round_trip("last_access_time far past date", {"last_access_time": FAR_PAST}),
            self.check_round_trip("all new fields in a single update", everything),
        ]

    def check_all(self, include_rows: bool = True) -> List[CheckResult]:
        """Run every check.

        :param include_rows: also run the row checks, which truncate the table
        :returns: the results of every check in order
        """
        self.refresh()
        results = self.check_presence() + self.check_types()
        if include_rows:
            results += self.check_insert_constraints() + self.check_update_semantics()
        failed = [r for r in results if not r.passed]
        for result in failed:
            logger.warning(f"Check failed: {result}")
        logger.info(f"{len(results) - len(failed)} of {len(results)} check(s) passed for '{self._table}'")
        return results
