"""
services.stats_service - Aggregate numbers for the HOD dashboard.
"""

from __future__ import annotations

from collections import Counter

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from db.models import Project, Submission
from services.academic_years import is_project_in_year
from services.user_service import UserService


def department_stats(session: Session, year=None) -> dict:
    """
    Global project counts plus a per-year breakdown when *year* is given.
    *year* is an AcademicYear row or dict (None = every project).
    """
    total = session.scalar(select(func.count()).select_from(Project)) or 0
    active = session.scalar(
        select(func.count()).select_from(Project).where(Project.status != "draft")
    ) or 0

    projects = [p for p in session.scalars(select(Project)) if is_project_in_year(p, year)]
    by_status = Counter(p.status or "unknown" for p in projects)
    unassigned = sum(1 for p in projects if not p.mentor_id)
    without_mentee = sum(1 for p in projects if not p.mentees)
    mentees_assigned = {m for p in projects for m in (p.mentees or [])}

    per_mentor = Counter(p.mentor_email for p in projects if p.mentor_email)
    sub_counts = Counter(
        s for (s,) in session.execute(select(Submission.status))
    )

    return {
        "total_projects": total,
        "active_projects": active,
        "year": year.get("name") if isinstance(year, dict) else getattr(year, "name", None),
        "projects_in_year": len(projects),
        "by_status": dict(by_status),
        "unassigned_projects": unassigned,
        "projects_without_mentee": without_mentee,
        "mentors": len(UserService.list_by_role(session, "mentor")),
        "mentees": len(UserService.list_by_role(session, "mentee")),
        "mentees_with_projects": len(mentees_assigned),
        "projects_per_mentor": dict(per_mentor.most_common()),
        "submissions": dict(sub_counts),
    }
