"""
import_engine.validator - Validate raw rows and normalise them.

Required: project name, mentor name, mentor email.  The mentee is
optional; a missing or placeholder mentee email becomes a warning and
the row is imported without a mentee.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field

import config
from import_engine.column_resolver import resolve_field

logger = logging.getLogger(__name__)

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

# Cell values people type when there is "no value"
PLACEHOLDERS = frozenset({"", "-", "—", "_", "na", "n/a"})


@dataclass
class NormalizedRow:
    project_name: str
    mentor_name: str
    mentor_email: str
    mentee_name: str
    mentee_email: str
    project_details: str
    project_status: str
    duration_raw: str
    row_number: int

    @property
    def has_mentee(self) -> bool:
        return bool(self.mentee_email)


@dataclass
class ValidationResult:
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    valid_rows: list[NormalizedRow] = field(default_factory=list)


def is_emptyish(value) -> bool:
    if value is None:
        return True
    return str(value).strip().lower() in PLACEHOLDERS


def is_valid_email(value: str) -> bool:
    return bool(EMAIL_RE.match(value))


def local_part(email: str) -> str:
    return email.split("@", 1)[0]


def validate(rows: list[dict]) -> ValidationResult:
    result = ValidationResult()
    if not rows:
        result.errors.append("File is empty")
        return result

    logger.debug("Validating %d rows, columns=%s", len(rows), list(rows[0].keys()))

    for row_number, row in enumerate(rows, start=1):
        normalized = _validate_row(row, row_number, result)
        if normalized is not None:
            result.valid_rows.append(normalized)

    logger.info(
        "Validation: %d rows, %d valid, %d errors, %d warnings",
        len(rows), len(result.valid_rows), len(result.errors), len(result.warnings),
    )
    return result


def _validate_row(row: dict, row_number: int, result: ValidationResult) -> NormalizedRow | None:
    row_errors: list[str] = []

    project_name = resolve_field(row, "project_name")
    mentor_name = resolve_field(row, "mentor_name")
    mentor_email = resolve_field(row, "mentor_email")
    duration_raw = resolve_field(row, "duration")
    mentee_name = resolve_field(row, "mentee_name")
    mentee_email = resolve_field(row, "mentee_email")

    if not project_name:
        row_errors.append("Project Name is required")
    if not mentor_name:
        row_errors.append("Mentor Name is required")
    if not mentor_email:
        row_errors.append("Mentor Email is required")

    if is_emptyish(mentee_email):
        result.warnings.append(
            f"Row {row_number}: No Mentee Email provided. "
            "Project will be imported without a mentee."
        )
        mentee_email = ""
    if is_emptyish(mentee_name):
        mentee_name = local_part(mentee_email) if mentee_email else ""

    if mentor_email and not is_valid_email(mentor_email):
        row_errors.append("Invalid Mentor Email format")
    if mentee_email and not is_valid_email(mentee_email):
        row_errors.append("Invalid Mentee Email format")

    if row_errors:
        logger.warning("Row %d validation failed: %s", row_number, row_errors)
        result.errors.append(f"Row {row_number}: {', '.join(row_errors)}")
        return None

    return NormalizedRow(
        project_name=project_name,
        mentor_name=mentor_name,
        mentor_email=mentor_email.lower(),
        mentee_name=mentee_name,
        mentee_email=mentee_email.lower(),
        project_details=resolve_field(row, "project_details") or config.DEFAULT_PROJECT_DETAILS,
        project_status=resolve_field(row, "project_status") or config.DEFAULT_PROJECT_STATUS,
        duration_raw=duration_raw,
        row_number=row_number,
    )
