"""
api.routes_years - /api/v1/academic-years.
"""

from flask import request, jsonify

from api import api_bp
from api.auth import require_role
from db import get_session
from services import add_next_year, list_years


@api_bp.route("/academic-years")
@require_role()
def academic_years():
    session = get_session()
    try:
        return jsonify({"success": True,
                        "data": [y.to_dict() for y in list_years(session)]})
    finally:
        session.close()


@api_bp.route("/academic-years/next", methods=["POST"])
@require_role("coordinator")
def academic_year_next():
    """
    POST /api/v1/academic-years/next  {known_years?: ["2024-2025", ...]}

    known_years is the caller's current list; a stale list that would
    recreate an existing year is rejected with 409.
    """
    data = request.get_json(silent=True) or {}
    known = data.get("known_years")
    session = get_session()
    try:
        year = add_next_year(session, known if isinstance(known, list) else None)
        session.commit()
        return jsonify({"success": True, "data": year.to_dict()}), 201
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
