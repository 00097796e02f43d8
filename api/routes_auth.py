"""
api.routes_auth - /api/v1/auth/* endpoints.
"""

from flask import request, jsonify

from api import api_bp
from api.auth import current_session, issue_token
from api.errors import ApiError
from db import get_session
from services import UserService


@api_bp.route("/auth/signup", methods=["POST"])
def signup():
    """POST /api/v1/auth/signup  {email, password, role, name?}"""
    data = request.get_json(silent=True) or {}
    email = str(data.get("email") or "").strip()
    password = str(data.get("password") or "")
    role = str(data.get("role") or "").strip()
    if not email or not password or not role:
        raise ApiError(400, "email, password and role are required")

    session = get_session()
    try:
        try:
            user = UserService.signup(session, email, password, role,
                                      name=str(data.get("name") or ""))
        except ValueError as exc:
            raise ApiError(400, str(exc)) from exc
        session.commit()
        return jsonify({"success": True, "message": "User registered successfully",
                        "user_id": user.id}), 201
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


@api_bp.route("/auth/login", methods=["POST"])
def login():
    """POST /api/v1/auth/login  {email, password} → bearer token"""
    data = request.get_json(silent=True) or {}
    session = get_session()
    try:
        user = UserService.authenticate(session, data.get("email", ""),
                                        str(data.get("password") or ""))
        if user is None:
            raise ApiError(400, "Invalid credentials")
        return jsonify({
            "success": True,
            "token": issue_token(user.id),
            "user_id": user.id,
            "role": user.role,
            "roles": user.all_roles(),
        })
    finally:
        session.close()


@api_bp.route("/auth/me")
def me():
    """GET /api/v1/auth/me - the current request session"""
    return jsonify({"success": True, "data": current_session().to_dict()})
