"""
import_engine.column_resolver - Loose header-name → canonical field mapping.

Spreadsheets arrive with headers like "Mentor Email", "mentor_email" or
"MENTOR-E-mail".  ``find_column_value`` tries each candidate name against
the row's keys with progressively looser comparisons and returns the
first non-empty cell.
"""

from __future__ import annotations

import logging
import re

logger = logging.getLogger(__name__)

# Canonical field → header candidates, most specific first
FIELD_ALIASES: dict[str, list[str]] = {
    "project_name":    ["Project Name", "project name", "project_name"],
    "mentor_name":     ["Mentor Name", "mentor name", "mentor_name"],
    "mentor_email":    ["Mentor Email", "mentor email", "mentor_email"],
    "mentee_name":     ["Mentee Name", "mentee name", "mentee_name"],
    "mentee_email":    ["Mentee Email", "mentee email", "mentee_email"],
    "duration":        ["Duration", "duration"],
    "project_details": ["Project Details", "project details", "project_details"],
    "project_status":  ["Project Status", "project status", "project_status"],
}

_WS = re.compile(r"\s+")
_NON_ALNUM = re.compile(r"[^a-z0-9]")


def _no_space(s: str) -> str:
    return _WS.sub("", s.lower())


def _underscored(s: str) -> str:
    return _WS.sub("_", s.lower())


def _alnum(s: str) -> str:
    return _NON_ALNUM.sub("", s.lower())


# Comparisons in the order they are tried; exact match is handled first
_MATCHERS = (
    str.lower,
    _no_space,
    _underscored,
    _alnum,
)


def _cell(row: dict, key) -> str:
    val = row.get(key)
    if val is None:
        return ""
    return str(val).strip()


def find_column_value(row: dict, candidates: list[str]) -> str:
    """
    Return the trimmed value of the first candidate column found in *row*,
    or "" if none matches (or every match is empty).
    """
    keys = [k for k in row.keys() if isinstance(k, str)]

    for name in candidates:
        # 1) exact key
        val = _cell(row, name)
        if val:
            return val

        # 2..5) case-insensitive, no whitespace, underscores, alphanumeric only
        for norm in _MATCHERS:
            target = norm(name)
            if not target:
                continue
            key = next((k for k in keys if norm(k) == target), None)
            if key is not None:
                val = _cell(row, key)
                if val:
                    return val

    logger.warning(
        "Could not find column matching any of: %s. Available columns: %s",
        ", ".join(candidates), ", ".join(keys),
    )
    return ""


def resolve_field(row: dict, field: str) -> str:
    """Shorthand for ``find_column_value(row, FIELD_ALIASES[field])``."""
    return find_column_value(row, FIELD_ALIASES[field])
