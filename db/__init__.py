"""
db - Database layer.

Public API:
    init_db()       → create engine + tables
    get_session()   → new Session
    Store           → table-style access (select/insert/update/delete/upsert/invoke)
    User, Project … → ORM models
"""

from db.engine import init_db, get_session          # noqa: F401
from db.models import (                              # noqa: F401
    Base, User, Project, ProjectAssignment, AssignmentMentee,
    AcademicYear, Review, Submission,
)
from db.store import Store, StoreError, register_function   # noqa: F401
