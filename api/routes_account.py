"""
api.routes_account - DELETE /api/v1/account.
"""

from flask import jsonify

from api import api_bp
from api.auth import current_session, require_role
from api.errors import ApiError
from db import get_session
from services import UserService, delete_account


@api_bp.route("/account", methods=["DELETE"])
@require_role()
def delete_own_account():
    sess = current_session()
    session = get_session()
    try:
        user = UserService.get(session, sess.user_id)
        if user is None:
            raise ApiError(404, "Account not found")
        counts = delete_account(session, user)
        session.commit()
        return jsonify({"success": True, "message": "Account deleted successfully",
                        "deleted": counts})
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
