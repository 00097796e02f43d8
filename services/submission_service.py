"""
services.submission_service - Deliverables handed in by mentees and
reviewed by the project's mentor.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.orm import Session

from db.models import Project, Submission

REVIEW_STATUSES = ("approved", "changes_requested")


class SubmissionError(Exception):
    pass


class SubmissionService:

    @staticmethod
    def submit(session: Session, project: Project, mentee_id: str, data: dict) -> Submission:
        if mentee_id not in (project.mentees or []):
            raise SubmissionError("Only mentees of this project can submit")
        title = str(data.get("title") or "").strip()
        if not title:
            raise SubmissionError("Submission title is required")

        sub = Submission(
            project_id=project.id,
            mentee_id=mentee_id,
            title=title,
            content=str(data.get("content") or ""),
            link=str(data.get("link") or ""),
        )
        session.add(sub)
        session.flush()
        return sub

    @staticmethod
    def get(session: Session, submission_id: str) -> Submission | None:
        return session.get(Submission, submission_id)

    @staticmethod
    def list_for_project(session: Session, project_id: str) -> list[Submission]:
        return list(session.scalars(
            select(Submission).where(Submission.project_id == project_id)
            .order_by(Submission.created_at.desc())
        ))

    @staticmethod
    def review(session: Session, submission: Submission, reviewer_id: str,
               status: str, feedback: str = "") -> Submission:
        project = session.get(Project, submission.project_id)
        if project is None or project.mentor_id != reviewer_id:
            raise SubmissionError("Only the project's mentor can review submissions")
        if status not in REVIEW_STATUSES:
            raise SubmissionError(f"Status must be one of: {', '.join(REVIEW_STATUSES)}")

        submission.status = status
        submission.feedback = feedback or ""
        submission.reviewed_by = reviewer_id
        submission.reviewed_at = datetime.now(timezone.utc)
        session.flush()
        return submission
