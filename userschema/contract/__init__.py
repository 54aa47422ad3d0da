"""Schema contract checks for the users table."""

from userschema.contract.checker import SchemaContractChecker
from userschema.contract.fields import BASE_FIELDS, EXPECTED_FIELDS, NEW_FIELDS, FieldExpectation
from userschema.contract.introspection import ColumnInfo, fetch_columns
from userschema.contract.results import CheckResult, CheckStatus, format_report

__all__ = [
    "BASE_FIELDS",
    "CheckResult",
    "CheckStatus",
    "ColumnInfo",
    "EXPECTED_FIELDS",
    "FieldExpectation",
    "NEW_FIELDS",
    "SchemaContractChecker",
    "fetch_columns",
    "format_report",
]
