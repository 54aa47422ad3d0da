"""Outcome types reported by the schema contract checker."""

import enum
from dataclasses import dataclass
from typing import Any, Iterable, Optional


class CheckStatus(str, enum.Enum):
    """Outcome of a single check."""

    PASS = "PASS"
    FAIL = "FAIL"


@dataclass
class CheckResult:
    """The outcome of one check, naming the field and, on failure, what was expected and what was found."""

    name: str
    status: CheckStatus
    field: Optional[str] = None
    expected: Any = None
    actual: Any = None
    message: str = ""

    @property
    def passed(self) -> bool:
        """Whether the check passed."""
        return self.status is CheckStatus.PASS

    @classmethod
    def success(cls, name: str, field: Optional[str] = None, message: str = "") -> "CheckResult":
        """Build a passing result."""
        return cls(name=name, status=CheckStatus.PASS, field=field, message=message)

    @classmethod
    def failure(cls, name: str, expected: Any, actual: Any, field: Optional[str] = None, message: str = ""):
        """Build a failing result, the message defaults to an expected vs actual description."""
        if not message:
            subject = f"'{field}': " if field else ""
            message = f"{subject}expected {expected!r}, got {actual!r}"
        return cls(
            name=name,
            status=CheckStatus.FAIL,
            field=field,
            expected=expected,
            actual=actual,
            message=message,
        )

    def __str__(self) -> str:
        """Render the result as a single report line."""
        line = f"{self.status.value} {self.name}"
        return f"{line}: {self.message}" if self.message else line


def format_report(results: Iterable[CheckResult]) -> str:
    """Render results as one line per check followed by a summary line.

    :param results: the check results to report
    :returns: the report text
    """
    results = list(results)
    failed = sum(1 for r in results if not r.passed)
    lines = [str(r) for r in results]
    lines.append(f"{len(results) - failed} passed, {failed} failed")
    return "\n".join(lines)
