"""
import_engine.row_processor - Write one validated row to the store.

Single-responsibility: given a normalised row and its resolved mentor /
mentee profiles, insert the project, its assignment record and the
mentee link.  Only a failed project insert fails the row; the other two
writes degrade to warnings.
"""

from __future__ import annotations

import logging
import re
from datetime import datetime, timezone

import config
from db.store import Store, StoreError
from import_engine.report import ImportReport
from services.academic_years import visible_sessions_for

logger = logging.getLogger(__name__)

SEMESTER_COUNTS = (1, 2, 3, 4)
MONTH_COUNTS = (6, 12, 18, 24)

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


class RowError(Exception):
    """Raised when a row cannot be imported."""
    pass


def duration_months(raw) -> int:
    """
    1-4 are semester counts (×6), 6/12/18/24 are already months,
    anything else falls back to the default of 12.
    """
    m = _LEADING_INT.match(str(raw if raw is not None else ""))
    if not m:
        return config.DEFAULT_DURATION_MONTHS
    value = int(m.group(1))
    if value in SEMESTER_COUNTS:
        return value * 6
    if value in MONTH_COUNTS:
        return value
    return config.DEFAULT_DURATION_MONTHS


class RowProcessor:
    """
    Stateless apart from the run-wide settings: who is importing, which
    academic years exist, and whether duplicates are skipped.
    """

    def __init__(
        self,
        store: Store,
        report: ImportReport,
        *,
        coordinator_id: str | None,
        years: list[dict] | None = None,
        dedupe: bool = False,
    ):
        self.store = store
        self.report = report
        self.coordinator_id = coordinator_id
        self.years = years or []
        self.dedupe = dedupe

    def process(self, row, mentor: dict | None, mentee: dict | None) -> dict | None:
        """
        Insert project → assignment → mentee link.
        Returns the new project dict, or None if skipped as a duplicate.
        Raises RowError if the project itself cannot be written.
        """
        mentee_ids = [mentee["id"]] if mentee and mentee.get("id") else []

        if self.dedupe and self._is_duplicate(row, mentee_ids):
            logger.info("Row %d: duplicate of an existing project, skipped", row.row_number)
            self.report.skipped_duplicates += 1
            return None

        project = self._insert_project(row, mentor, mentee_ids)
        self.report.created_projects.append(project)

        assignment = self._insert_assignment(row, project, mentor)
        if mentee and mentee.get("id") and assignment:
            self._link_mentee(row, project, assignment, mentee)
        return project

    # ── Private helpers ────────────────────────────────────────────────

    def _insert_project(self, row, mentor: dict | None, mentee_ids: list[str]) -> dict:
        now = datetime.now(timezone.utc)
        values = {
            "name": row.project_name,
            "details": row.project_details,
            "status": row.project_status,
            "mentor_id": mentor["id"] if mentor else None,
            "mentor_email": row.mentor_email,
            "mentees": mentee_ids,
            "assigned_by": self.coordinator_id,
            "duration_months": duration_months(row.duration_raw),
            "assigned_at": now,
        }
        values["visible_sessions"] = visible_sessions_for(values, self.years)
        try:
            return self.store.insert("projects", values)
        except StoreError as exc:
            raise RowError(f"Failed to create project: {exc}") from exc

    def _insert_assignment(self, row, project: dict, mentor: dict | None) -> dict | None:
        try:
            return self.store.insert("project_assignments", {
                "project_id": project["id"],
                "project_name": row.project_name,
                "mentor_id": mentor["id"] if mentor else None,
                "mentor_name": row.mentor_name or (mentor or {}).get("name") or None,
                "mentor_email": row.mentor_email,
                "created_by": self.coordinator_id,
                "status": row.project_status,
            })
        except StoreError as exc:
            logger.warning("Row %d: failed to create assignment record: %s", row.row_number, exc)
            self.report.add_warning(row.row_number, "Assignment record creation failed.")
            return None

    def _link_mentee(self, row, project: dict, assignment: dict, mentee: dict) -> None:
        try:
            self.store.insert("project_assignment_mentees", {
                "assignment_id": assignment["id"],
                "mentee_id": mentee["id"],
                "mentee_name": row.mentee_name or mentee.get("name") or None,
                "mentee_email": row.mentee_email,
            })
        except StoreError as exc:
            logger.warning("Row %d: failed to link mentee: %s", row.row_number, exc)
            self.report.add_warning(row.row_number, "Mentee link failed.")
            return
        self.report.assigned_mentees.append(
            {"project_id": project["id"], "mentee": mentee, "row": row.row_number}
        )

    def _is_duplicate(self, row, mentee_ids: list[str]) -> bool:
        try:
            existing = self.store.select(
                "projects", eq={"name": row.project_name, "mentor_email": row.mentor_email},
            )
        except StoreError as exc:
            raise RowError(f"Failed to check for duplicates: {exc}") from exc
        wanted = sorted(mentee_ids)
        return any(sorted(p.get("mentees") or []) == wanted for p in existing)
