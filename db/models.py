"""
db.models - SQLAlchemy ORM declarations.

Tables
------
users                       - one row per account, email unique (lowercase).
projects                    - one row per project.  Mentee ids are kept as a
                              JSON list on the row, the same way the import
                              writes them.
project_assignments         - coordinator assignment record for a project.
project_assignment_mentees  - mentee links of an assignment.
academic_years              - "2024-2025" style sessions with date bounds.
reviews                     - 1..5 star ratings of a project.
submissions                 - deliverables handed in by mentees.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    Column, String, Integer, Float, Date, DateTime, Text, JSON,
    ForeignKey, Index,
)
from sqlalchemy.orm import DeclarativeBase, relationship


def _uuid() -> str:
    return str(uuid.uuid4())


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _iso(value) -> str | None:
    return value.isoformat() if value else None


class Base(DeclarativeBase):
    pass


class User(Base):
    __tablename__ = "users"

    id            = Column(String(36), primary_key=True, default=_uuid)
    email         = Column(String(320), unique=True, nullable=False, index=True)
    name          = Column(String(200), default="")
    role          = Column(String(20), nullable=False, default="mentee", index=True)
    roles         = Column(JSON, default=list)          # every role the user may act as
    password_hash = Column(String(300), nullable=True)  # null for imported accounts
    created_at    = Column(DateTime, default=_now)

    def all_roles(self) -> list[str]:
        roles = list(self.roles or [])
        if self.role and self.role not in roles:
            roles.insert(0, self.role)
        return roles

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "email": self.email,
            "name": self.name or "",
            "role": self.role,
            "roles": self.all_roles(),
            "created_at": _iso(self.created_at),
        }


class Project(Base):
    __tablename__ = "projects"

    id               = Column(String(36), primary_key=True, default=_uuid)
    name             = Column(String(300), nullable=False, index=True)
    details          = Column(Text, default="")
    status           = Column(String(30), default="pending")

    # ── People ─────────────────────────────────────────────────────────
    mentor_id        = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"),
                              nullable=True, index=True)
    mentor_email     = Column(String(320), default="", index=True)
    mentees          = Column(JSON, default=list)       # [user id]
    assigned_by      = Column(String(36), nullable=True, index=True)

    # ── Schedule ───────────────────────────────────────────────────────
    duration_months  = Column(Integer, default=12)
    assigned_at      = Column(DateTime, nullable=True)
    deadline         = Column(DateTime, nullable=True)
    visible_sessions = Column(JSON, default=list)       # academic-year names

    # ── Ratings ────────────────────────────────────────────────────────
    avg_rating       = Column(Float, default=0.0)
    ratings_count    = Column(Integer, default=0)

    created_at       = Column(DateTime, default=_now)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "details": self.details or "",
            "status": self.status,
            "mentor_id": self.mentor_id,
            "mentor_email": self.mentor_email or "",
            "mentees": list(self.mentees or []),
            "assigned_by": self.assigned_by,
            "duration_months": self.duration_months,
            "assigned_at": _iso(self.assigned_at),
            "deadline": _iso(self.deadline),
            "visible_sessions": list(self.visible_sessions or []),
            "avg_rating": self.avg_rating or 0.0,
            "ratings_count": self.ratings_count or 0,
            "created_at": _iso(self.created_at),
        }


class ProjectAssignment(Base):
    __tablename__ = "project_assignments"

    id           = Column(String(36), primary_key=True, default=_uuid)
    project_id   = Column(String(36), ForeignKey("projects.id", ondelete="CASCADE"),
                          nullable=False, index=True)
    project_name = Column(String(300), default="")
    mentor_id    = Column(String(36), nullable=True)
    mentor_name  = Column(String(200), nullable=True)
    mentor_email = Column(String(320), default="")
    created_by   = Column(String(36), nullable=True)
    status       = Column(String(30), default="pending")
    created_at   = Column(DateTime, default=_now)

    mentee_links = relationship(
        "AssignmentMentee", back_populates="assignment",
        cascade="all, delete-orphan", lazy="selectin",
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "project_id": self.project_id,
            "project_name": self.project_name or "",
            "mentor_id": self.mentor_id,
            "mentor_name": self.mentor_name,
            "mentor_email": self.mentor_email or "",
            "created_by": self.created_by,
            "status": self.status,
            "created_at": _iso(self.created_at),
        }


class AssignmentMentee(Base):
    __tablename__ = "project_assignment_mentees"

    id            = Column(Integer, primary_key=True, autoincrement=True)
    assignment_id = Column(String(36),
                           ForeignKey("project_assignments.id", ondelete="CASCADE"),
                           nullable=False, index=True)
    mentee_id     = Column(String(36), nullable=False, index=True)
    mentee_name   = Column(String(200), nullable=True)
    mentee_email  = Column(String(320), default="")

    assignment = relationship("ProjectAssignment", back_populates="mentee_links")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "assignment_id": self.assignment_id,
            "mentee_id": self.mentee_id,
            "mentee_name": self.mentee_name,
            "mentee_email": self.mentee_email or "",
        }


class AcademicYear(Base):
    __tablename__ = "academic_years"

    id         = Column(Integer, primary_key=True, autoincrement=True)
    name       = Column(String(20), unique=True, nullable=False)   # "2024-2025"
    start_date = Column(Date, nullable=False)
    end_date   = Column(Date, nullable=False)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "start_date": _iso(self.start_date),
            "end_date": _iso(self.end_date),
        }


class Review(Base):
    __tablename__ = "reviews"

    id          = Column(String(36), primary_key=True, default=_uuid)
    project_id  = Column(String(36), ForeignKey("projects.id", ondelete="CASCADE"),
                         nullable=False, index=True)
    reviewer_id = Column(String(36), nullable=True)
    rating      = Column(Integer, nullable=False)
    comment     = Column(Text, default="")
    created_at  = Column(DateTime, default=_now)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "project_id": self.project_id,
            "reviewer_id": self.reviewer_id,
            "rating": self.rating,
            "comment": self.comment or "",
            "created_at": _iso(self.created_at),
        }


class Submission(Base):
    __tablename__ = "submissions"

    id          = Column(String(36), primary_key=True, default=_uuid)
    project_id  = Column(String(36), ForeignKey("projects.id", ondelete="CASCADE"),
                         nullable=False, index=True)
    mentee_id   = Column(String(36), nullable=False, index=True)
    title       = Column(String(300), nullable=False)
    content     = Column(Text, default="")
    link        = Column(Text, default="")
    status      = Column(String(30), default="submitted")
    feedback    = Column(Text, default="")
    reviewed_by = Column(String(36), nullable=True)
    created_at  = Column(DateTime, default=_now)
    reviewed_at = Column(DateTime, nullable=True)

    __table_args__ = (
        Index("ix_submission_project_mentee", "project_id", "mentee_id"),
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "project_id": self.project_id,
            "mentee_id": self.mentee_id,
            "title": self.title,
            "content": self.content or "",
            "link": self.link or "",
            "status": self.status,
            "feedback": self.feedback or "",
            "reviewed_by": self.reviewed_by,
            "created_at": _iso(self.created_at),
            "reviewed_at": _iso(self.reviewed_at),
        }


# table name → model, used by the table-style store
TABLES: dict[str, type[Base]] = {
    m.__tablename__: m
    for m in (User, Project, ProjectAssignment, AssignmentMentee,
              AcademicYear, Review, Submission)
}
