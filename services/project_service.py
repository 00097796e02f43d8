"""
services.project_service - Projects, coordinator assignments and reviews.

All session management is the caller's responsibility (open before,
close/commit after).  This keeps the service testable and allows
the caller to batch multiple operations in one transaction.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from sqlalchemy import or_, select
from sqlalchemy.orm import Session

import config
from db.models import (
    AssignmentMentee, Project, ProjectAssignment, Review, User,
)
from services.academic_years import is_project_in_year, list_years, visible_sessions_for
from services.user_service import UserService

logger = logging.getLogger(__name__)


class ProjectError(Exception):
    """Raised for invalid project operations (bad input, missing people)."""
    pass


class ProjectService:

    # ── Create ─────────────────────────────────────────────────────────

    @staticmethod
    def create(session: Session, data: dict, created_by: str | None = None) -> Project:
        """
        Create a project from a dict.
        Required key: name (or title).  Mentor is looked up by mentor_email.
        """
        name = str(data.get("name") or data.get("title") or "").strip()
        if not name:
            raise ProjectError("Project name is required")

        mentor_email = str(data.get("mentor_email") or "").strip().lower()
        mentor = UserService.get_by_email(session, mentor_email) if mentor_email else None

        mentee_ids = []
        for email in data.get("mentee_emails") or []:
            mentee = UserService.get_by_email(session, email)
            if mentee is None:
                raise ProjectError(f"Mentee not found: {email}")
            mentee_ids.append(mentee.id)

        deadline = data.get("deadline")
        if isinstance(deadline, str) and deadline:
            try:
                deadline = datetime.fromisoformat(deadline)
            except ValueError:
                raise ProjectError(f"Invalid deadline: {deadline}") from None
        else:
            deadline = None

        try:
            duration = int(data.get("duration_months") or config.DEFAULT_DURATION_MONTHS)
        except (TypeError, ValueError):
            raise ProjectError("duration_months must be a number") from None

        project = Project(
            name=name,
            details=str(data.get("details") or data.get("description") or "").strip(),
            status=str(data.get("status") or config.DEFAULT_PROJECT_STATUS),
            mentor_id=mentor.id if mentor else None,
            mentor_email=mentor_email,
            mentees=mentee_ids,
            assigned_by=created_by,
            duration_months=duration,
            assigned_at=datetime.now(timezone.utc),
            deadline=deadline,
        )
        project.visible_sessions = visible_sessions_for(project, list_years(session))
        session.add(project)
        session.flush()
        return project

    @staticmethod
    def assign(session: Session, project_name: str, mentor_email: str,
               mentee_email: str, coordinator_id: str | None) -> Project:
        """
        Coordinator assignment of one existing mentor and one existing
        mentee to a new project, with its assignment record and link.
        """
        if not (project_name and mentor_email and mentee_email):
            raise ProjectError("project_name, mentor_email and mentee_email are required")

        mentor = UserService.get_by_email(session, mentor_email)
        if mentor is None or "mentor" not in mentor.all_roles():
            raise ProjectError("Mentor not found with the provided email")
        mentee = UserService.get_by_email(session, mentee_email)
        if mentee is None or "mentee" not in mentee.all_roles():
            raise ProjectError("Mentee not found with the provided email")

        project = ProjectService.create(session, {
            "name": project_name,
            "mentor_email": mentor.email,
            "mentee_emails": [mentee.email],
            "status": "in_progress",
        }, created_by=coordinator_id)

        assignment = ProjectAssignment(
            project_id=project.id,
            project_name=project.name,
            mentor_id=mentor.id,
            mentor_name=mentor.name,
            mentor_email=mentor.email,
            created_by=coordinator_id,
            status=project.status,
        )
        assignment.mentee_links.append(AssignmentMentee(
            mentee_id=mentee.id, mentee_name=mentee.name, mentee_email=mentee.email,
        ))
        session.add(assignment)
        session.flush()
        logger.info("Assigned %s → %s / %s", project.name, mentor.email, mentee.email)
        return project

    # ── Read ───────────────────────────────────────────────────────────

    @staticmethod
    def get(session: Session, project_id: str) -> Project | None:
        return session.get(Project, project_id)

    @staticmethod
    def list(session: Session, search: str = "", year=None,
             mentor_id: str | None = None, mentee_id: str | None = None) -> list[Project]:
        stmt = select(Project).order_by(Project.created_at.desc())
        if search.strip():
            like = f"%{search.strip()}%"
            stmt = stmt.where(or_(Project.name.ilike(like), Project.details.ilike(like)))
        if mentor_id:
            stmt = stmt.where(Project.mentor_id == mentor_id)
        projects = list(session.scalars(stmt))
        if mentee_id:
            projects = [p for p in projects if mentee_id in (p.mentees or [])]
        if year is not None:
            projects = [p for p in projects if is_project_in_year(p, year)]
        return projects

    @staticmethod
    def mentee_profiles(session: Session, project: Project) -> list[dict]:
        ids = list(project.mentees or [])
        if not ids:
            return []
        users = {u.id: u for u in session.scalars(select(User).where(User.id.in_(ids)))}
        return [
            {"id": u.id, "name": u.name or u.email, "email": u.email}
            for u in (users.get(i) for i in ids) if u is not None
        ]

    @staticmethod
    def can_view(project: Project, user_id: str, roles: list[str]) -> bool:
        if {"hod", "coordinator"} & set(roles):
            return True
        return user_id in (project.mentor_id, project.assigned_by) or \
            user_id in (project.mentees or [])

    # ── Reviews ────────────────────────────────────────────────────────

    @staticmethod
    def reviews(session: Session, project_id: str) -> list[Review]:
        return list(session.scalars(
            select(Review).where(Review.project_id == project_id)
            .order_by(Review.created_at.desc())
        ))

    @staticmethod
    def add_review(session: Session, project: Project, rating, comment: str = "",
                   reviewer_id: str | None = None) -> Review:
        """Store a 1..5 rating and update the project's rolling average."""
        try:
            rating = int(rating)
        except (TypeError, ValueError):
            raise ProjectError("Rating must be between 1 and 5") from None
        if not 1 <= rating <= 5:
            raise ProjectError("Rating must be between 1 and 5")

        review = Review(project_id=project.id, reviewer_id=reviewer_id,
                        rating=rating, comment=comment or "")
        session.add(review)

        count = (project.ratings_count or 0) + 1
        total = (project.avg_rating or 0.0) * (project.ratings_count or 0) + rating
        project.ratings_count = count
        project.avg_rating = round(total / count, 2)
        session.flush()
        return review
