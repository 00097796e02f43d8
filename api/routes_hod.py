"""
api.routes_hod - Department-head overview: people and aggregate stats.
"""

from flask import jsonify

from api import api_bp
from api.auth import require_role
from api.routes_projects import year_from_args
from db import get_session
from services import UserService, department_stats


@api_bp.route("/hod/mentors")
@require_role("hod", "coordinator")
def list_mentors():
    session = get_session()
    try:
        users = UserService.list_by_role(session, "mentor")
        return jsonify({"success": True, "data": [u.to_dict() for u in users]})
    finally:
        session.close()


@api_bp.route("/hod/mentees")
@require_role("hod", "coordinator")
def list_mentees():
    session = get_session()
    try:
        users = UserService.list_by_role(session, "mentee")
        return jsonify({"success": True, "data": [u.to_dict() for u in users]})
    finally:
        session.close()


@api_bp.route("/hod/stats")
@require_role("hod")
def stats():
    """GET /api/v1/hod/stats?year=2025-2026"""
    session = get_session()
    try:
        return jsonify({"success": True,
                        "data": department_stats(session, year_from_args(session))})
    finally:
        session.close()
