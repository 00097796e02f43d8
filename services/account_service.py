"""
services.account_service - Delete an account and everything it owns.

Order matters: dependants first (links → assignments → reviews /
submissions → projects), then the user.
"""

from __future__ import annotations

import logging

from sqlalchemy import delete, or_, select
from sqlalchemy.orm import Session

from db.models import (
    AssignmentMentee, Project, ProjectAssignment, Review, Submission, User,
)

logger = logging.getLogger(__name__)


def delete_account(session: Session, user: User) -> dict:
    """Returns counts of deleted rows per table."""
    user_id = user.id
    project_ids = list(session.scalars(
        select(Project.id).where(or_(Project.assigned_by == user_id,
                                     Project.mentor_id == user_id))
    ))

    counts = {"projects": len(project_ids)}
    if project_ids:
        assignment_ids = list(session.scalars(
            select(ProjectAssignment.id).where(ProjectAssignment.project_id.in_(project_ids))
        ))
        if assignment_ids:
            counts["project_assignment_mentees"] = session.execute(
                delete(AssignmentMentee).where(AssignmentMentee.assignment_id.in_(assignment_ids))
            ).rowcount
        counts["project_assignments"] = len(assignment_ids)
        session.execute(delete(ProjectAssignment).where(ProjectAssignment.id.in_(assignment_ids)))
        counts["reviews"] = session.execute(
            delete(Review).where(Review.project_id.in_(project_ids))
        ).rowcount
        counts["submissions"] = session.execute(
            delete(Submission).where(Submission.project_id.in_(project_ids))
        ).rowcount
        session.execute(delete(Project).where(Project.id.in_(project_ids)))

    # the user's own deliverables on other people's projects
    counts["submissions"] = counts.get("submissions", 0) + session.execute(
        delete(Submission).where(Submission.mentee_id == user_id)
    ).rowcount

    # drop the user from mentee lists of projects that survive
    for project in session.scalars(select(Project)):
        if user_id in (project.mentees or []):
            project.mentees = [m for m in project.mentees if m != user_id]
    session.execute(delete(AssignmentMentee).where(AssignmentMentee.mentee_id == user_id))

    session.delete(user)
    session.flush()
    logger.info("Deleted account %s (%s)", user.email, counts)
    return counts
