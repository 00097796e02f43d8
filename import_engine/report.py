"""
import_engine.report - Structured result of an import run.
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class RowOutcome:
    """Progress tick emitted once per processed row, in file order."""
    row_number: int
    ok: bool
    percent: float
    skipped: bool = False


@dataclass
class ImportReport:
    total_rows: int = 0
    valid_rows: int = 0
    success: int = 0
    failed: int = 0
    skipped_duplicates: int = 0
    precreated_users: int = 0
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    created_projects: list[dict] = field(default_factory=list)
    created_mentors: list[dict] = field(default_factory=list)
    created_mentees: list[dict] = field(default_factory=list)
    assigned_mentees: list[dict] = field(default_factory=list)

    def add_error(self, row: int, reason: str):
        self.errors.append(f"Row {row}: {reason}")
        self.failed += 1

    def add_warning(self, row: int, reason: str):
        self.warnings.append(f"Row {row}: {reason}")

    @property
    def ok(self) -> bool:
        return self.success > 0

    def to_dict(self) -> dict:
        return {
            "ok": self.ok,
            "total_rows": self.total_rows,
            "valid_rows": self.valid_rows,
            "success": self.success,
            "failed": self.failed,
            "skipped_duplicates": self.skipped_duplicates,
            "precreated_users": self.precreated_users,
            "errors": self.errors,
            "warnings": self.warnings,
            "created_projects": self.created_projects,
            "created_mentors": self.created_mentors,
            "created_mentees": self.created_mentees,
            "assigned_mentees": self.assigned_mentees,
        }
