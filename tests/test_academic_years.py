from datetime import date, datetime

import pytest
from sqlalchemy import select

from db import AcademicYear, Project
from services import DuplicateYearError, add_next_year, is_project_in_year, list_years
from services.academic_years import (
    add_months, next_year_name, project_bounds, visible_sessions_for, year_bounds,
)

YEAR = {"name": "2024-2025", "start_date": "2024-07-01", "end_date": "2025-06-30"}


def test_no_year_selected_shows_everything():
    assert is_project_in_year({"assigned_at": "1999-01-01"}, None)


@pytest.mark.parametrize("project, expected", [
    # starts on the last day of the year
    ({"assigned_at": "2025-06-30T10:00:00Z", "duration_months": 6}, True),
    # ends on the first day of the year
    ({"assigned_at": "2024-01-01", "deadline": "2024-07-01"}, True),
    # ends on the last day of the year
    ({"assigned_at": "2025-01-01", "deadline": "2025-06-30"}, True),
    # ends the day before
    ({"assigned_at": "2023-01-01", "deadline": "2024-06-30"}, False),
    # starts the day after
    ({"assigned_at": "2025-07-01", "duration_months": 12}, False),
    # fully spans the year
    ({"created_at": "2023-09-01", "duration_months": 24}, True),
])
def test_overlap_is_inclusive(project, expected):
    assert is_project_in_year(project, YEAR) is expected


def test_visible_sessions_override_dates():
    in_range = {"assigned_at": "2024-09-01", "visible_sessions": ["2025-2026"]}
    assert not is_project_in_year(in_range, YEAR)
    out_of_range = {"assigned_at": "2020-01-01", "visible_sessions": ["2024-2025"]}
    assert is_project_in_year(out_of_range, YEAR)


def test_empty_visible_sessions_fall_back_to_dates():
    assert is_project_in_year({"assigned_at": "2024-09-01", "visible_sessions": []}, YEAR)


def test_bounds_fall_back_to_duration_text():
    start, end = project_bounds({"assigned_at": "2024-01-31", "duration": "2 semesters"})
    assert start == date(2024, 1, 31)
    assert end == date(2025, 1, 31)


def test_bounds_without_dates_use_now():
    start, end = project_bounds({}, now=date(2025, 3, 1))
    assert (start, end) == (date(2025, 3, 1), date(2026, 3, 1))


def test_add_months_clamps_day():
    assert add_months(date(2024, 1, 31), 1) == date(2024, 2, 29)
    assert add_months(date(2024, 11, 15), 3) == date(2025, 2, 15)


def test_next_year_name():
    assert next_year_name("2024-2025") == "2025-2026"
    assert next_year_name(None) == "2025-2026"
    assert next_year_name("garbage") == "2025-2026"
    assert year_bounds("2025-2026") == (date(2025, 7, 1), date(2026, 6, 30))


def test_visible_sessions_for():
    years = [
        YEAR,
        {"name": "2025-2026", "start_date": "2025-07-01", "end_date": "2026-06-30"},
    ]
    project = {"assigned_at": datetime(2025, 1, 15), "duration_months": 12}
    assert visible_sessions_for(project, years) == ["2024-2025", "2025-2026"]


def test_add_next_year_and_stale_snapshot(db_session):
    first = add_next_year(db_session)
    assert first.name == "2025-2026"
    assert (first.start_date, first.end_date) == (date(2025, 7, 1), date(2026, 6, 30))

    # a caller still looking at the old list computes the same name again
    with pytest.raises(DuplicateYearError):
        add_next_year(db_session, ["2024-2025"])

    second = add_next_year(db_session)
    assert second.name == "2026-2027"
    assert [y.name for y in list_years(db_session)] == ["2025-2026", "2026-2027"]


def test_add_next_year_backfills_projects(db_session):
    inside = Project(name="Inside", assigned_at=datetime(2025, 9, 1), duration_months=6)
    outside = Project(name="Outside", assigned_at=datetime(2020, 9, 1), duration_months=6)
    db_session.add_all([inside, outside])
    db_session.flush()

    add_next_year(db_session)

    by_name = {p.name: p for p in db_session.scalars(select(Project))}
    assert by_name["Inside"].visible_sessions == ["2025-2026"]
    assert by_name["Outside"].visible_sessions in (None, [])
    assert db_session.scalars(select(AcademicYear)).one().name == "2025-2026"
