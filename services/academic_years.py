"""
services.academic_years - Academic-year sessions and project overlap.

A project is "in" a year when its active date range overlaps the year's
range, both ends inclusive.  Projects normally carry the answer
precomputed in ``visible_sessions``; it is filled in here whenever a
project is created or a new year is added.

All session management is the caller's responsibility.
"""

from __future__ import annotations

import calendar
import logging
from datetime import date, datetime, timezone

from sqlalchemy import select
from sqlalchemy.orm import Session

import config
from db.models import AcademicYear, Project

logger = logging.getLogger(__name__)


class DuplicateYearError(Exception):
    """Raised when the next academic year already exists."""
    pass


# ── Date helpers ───────────────────────────────────────────────────────

def _get(obj, key, default=None):
    if obj is None:
        return default
    if isinstance(obj, dict):
        return obj.get(key, default)
    return getattr(obj, key, default)


def to_date(value) -> date | None:
    """date / datetime / ISO-8601 string → date (None if empty or unparseable)."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text).date()
    except ValueError:
        try:
            return date.fromisoformat(text[:10])
        except ValueError:
            logger.warning("Unparseable date %r", value)
            return None


def add_months(d: date, months: int) -> date:
    """Calendar month arithmetic; the day is clamped to the target month's end."""
    idx = d.month - 1 + months
    year, month = d.year + idx // 12, idx % 12 + 1
    day = min(d.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def project_duration(project) -> int:
    months = _get(project, "duration_months")
    if months:
        return int(months)
    text = str(_get(project, "duration") or "").strip().lower()
    if text.endswith(("semester", "semesters")):
        head = text.split()[0]
        if head.isdigit():
            return int(head) * 6
    return config.DEFAULT_DURATION_MONTHS


def project_bounds(project, now: date | None = None) -> tuple[date, date]:
    """(start, end) of a project's active period."""
    start = (
        to_date(_get(project, "assigned_at"))
        or to_date(_get(project, "created_at"))
        or now
        or datetime.now(timezone.utc).date()
    )
    end = to_date(_get(project, "deadline")) or add_months(start, project_duration(project))
    return start, end


# ── Overlap ────────────────────────────────────────────────────────────

def overlaps_year(project, year, now: date | None = None) -> bool:
    start, end = project_bounds(project, now)
    year_start = to_date(_get(year, "start_date"))
    year_end = to_date(_get(year, "end_date"))
    if year_start is None or year_end is None:
        return False
    return start <= year_end and end >= year_start


def is_project_in_year(project, year, now: date | None = None) -> bool:
    """
    With no year selected everything is visible.  A non-empty
    ``visible_sessions`` list is authoritative; otherwise fall back to
    the date-range overlap.
    """
    if year is None:
        return True
    sessions = _get(project, "visible_sessions")
    if sessions:
        return _get(year, "name") in sessions
    return overlaps_year(project, year, now)


def visible_sessions_for(project, years, now: date | None = None) -> list[str]:
    """Names of every year the project's date range overlaps."""
    return [_get(y, "name") for y in years if overlaps_year(project, y, now)]


# ── Year generation ────────────────────────────────────────────────────

def next_year_name(latest_name: str | None) -> str:
    """"2024-2025" → "2025-2026".  Malformed or missing names use the base year."""
    base_end = int(config.ACADEMIC_YEAR_BASE.split("-")[1])
    end = base_end
    if latest_name:
        parts = latest_name.split("-")
        if len(parts) == 2 and parts[1].strip().isdigit():
            end = int(parts[1])
        else:
            logger.warning("Malformed academic year name %r, using %s", latest_name,
                           config.ACADEMIC_YEAR_BASE)
    return f"{end}-{end + 1}"


def year_bounds(name: str) -> tuple[date, date]:
    start_year, end_year = (int(p) for p in name.split("-"))
    (sm, sd), (em, ed) = config.ACADEMIC_YEAR_START, config.ACADEMIC_YEAR_END
    return date(start_year, sm, sd), date(end_year, em, ed)


def list_years(session: Session) -> list[AcademicYear]:
    return list(session.scalars(select(AcademicYear).order_by(AcademicYear.name)))


def add_next_year(session: Session, known_years=None) -> AcademicYear:
    """
    Create the year after the latest one.

    *known_years* is the caller's view of the existing years (names,
    dicts or AcademicYear rows); when omitted, the stored years are used.
    Raises DuplicateYearError if the computed year is already stored.
    """
    if known_years is None:
        known_years = list_years(session)
    names = sorted(n if isinstance(n, str) else _get(n, "name") for n in known_years)
    name = next_year_name(names[-1] if names else None)

    exists = session.scalars(select(AcademicYear).where(AcademicYear.name == name)).first()
    if exists is not None:
        raise DuplicateYearError(f"Academic year {name} already exists")

    start, end = year_bounds(name)
    year = AcademicYear(name=name, start_date=start, end_date=end)
    session.add(year)
    session.flush()

    tagged = backfill_year(session, year)
    logger.info("Created academic year %s (%d projects tagged)", name, tagged)
    return year


def backfill_year(session: Session, year: AcademicYear) -> int:
    """Append *year* to ``visible_sessions`` of every project overlapping it."""
    count = 0
    for project in session.scalars(select(Project)):
        if not overlaps_year(project, year):
            continue
        sessions = list(project.visible_sessions or [])
        if year.name not in sessions:
            project.visible_sessions = sessions + [year.name]
            count += 1
    session.flush()
    return count
