"""
services - Business-logic layer sitting between API and DB.
"""

from services.user_service import UserService, UserExistsError                 # noqa: F401
from services.project_service import ProjectService, ProjectError              # noqa: F401
from services.submission_service import SubmissionService, SubmissionError     # noqa: F401
from services.stats_service import department_stats                            # noqa: F401
from services.account_service import delete_account                            # noqa: F401
from services.academic_years import (                                          # noqa: F401
    DuplicateYearError, add_next_year, is_project_in_year, list_years,
)
