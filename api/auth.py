"""
api.auth - Per-request session.

Clients send ``Authorization: Bearer <token>`` (issued by /auth/login)
and optionally ``X-Active-Role``.  Before every API request the token is
verified, the user reloaded, and the requested role checked against the
roles stored for that user.  Routes read the result from
``current_session()``; nothing role-related is trusted from the client.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from functools import wraps

from flask import g, request
from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer

import config
from api import api_bp
from api.errors import ApiError
from db import get_session
from services import UserService

logger = logging.getLogger(__name__)

_TOKEN_SALT = "pmportal-auth"


@dataclass
class PortalSession:
    user_id: str
    email: str
    name: str
    roles: list[str] = field(default_factory=list)
    active_role: str = ""

    def to_dict(self) -> dict:
        return {
            "user_id": self.user_id,
            "email": self.email,
            "name": self.name,
            "roles": self.roles,
            "active_role": self.active_role,
        }


def _serializer() -> URLSafeTimedSerializer:
    return URLSafeTimedSerializer(config.SECRET, salt=_TOKEN_SALT)


def issue_token(user_id: str) -> str:
    return _serializer().dumps({"uid": user_id})


def read_token(token: str) -> str | None:
    """Return the user id inside a valid token, else None."""
    try:
        data = _serializer().loads(token, max_age=config.TOKEN_MAX_AGE)
    except SignatureExpired:
        logger.info("Expired token presented")
        return None
    except BadSignature:
        return None
    return data.get("uid") if isinstance(data, dict) else None


@api_bp.before_request
def load_session():
    g.portal_session = None
    header = request.headers.get("Authorization", "")
    if not header.startswith("Bearer "):
        return None

    user_id = read_token(header[len("Bearer "):].strip())
    if not user_id:
        raise ApiError(401, "Invalid or expired token")

    session = get_session()
    try:
        user = UserService.get(session, user_id)
        if user is None:
            raise ApiError(401, "Invalid or expired token")
        roles = user.all_roles()
        active = request.headers.get("X-Active-Role", "").strip() or user.role
        if active not in roles:
            raise ApiError(403, f"Role '{active}' is not granted to this account")
        g.portal_session = PortalSession(
            user_id=user.id, email=user.email, name=user.name or "",
            roles=roles, active_role=active,
        )
    finally:
        session.close()
    return None


def current_session() -> PortalSession:
    sess = getattr(g, "portal_session", None)
    if sess is None:
        raise ApiError(401, "Authentication required")
    return sess


def require_role(*roles: str):
    """Decorator: the caller must be signed in and acting as one of *roles*."""
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            sess = current_session()
            if roles and sess.active_role not in roles:
                raise ApiError(403, f"Requires role: {', '.join(roles)}")
            return fn(*args, **kwargs)
        return wrapper
    return decorator
