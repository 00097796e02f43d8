"""
api.errors - JSON error handlers for the API blueprint.

Routes raise ApiError(status, message); everything renders as
{"success": false, "message": ...}.
"""

import logging

from flask import jsonify

from api import api_bp
from import_engine import ImportParseError
from services import (
    DuplicateYearError, ProjectError, SubmissionError, UserExistsError,
)

logger = logging.getLogger(__name__)


class ApiError(Exception):
    def __init__(self, status: int, message: str):
        super().__init__(message)
        self.status = status
        self.message = message


def _fail(status: int, message: str):
    return jsonify({"success": False, "message": message}), status


@api_bp.errorhandler(ApiError)
def api_error(e: ApiError):
    return _fail(e.status, e.message)


@api_bp.errorhandler(ProjectError)
@api_bp.errorhandler(SubmissionError)
@api_bp.errorhandler(UserExistsError)
@api_bp.errorhandler(ImportParseError)
def api_domain_error(e):
    return _fail(400, str(e))


@api_bp.errorhandler(DuplicateYearError)
def api_conflict(e):
    return _fail(409, str(e))


@api_bp.errorhandler(404)
def api_not_found(_e):
    return _fail(404, "not found")


@api_bp.errorhandler(400)
def api_bad_request(_e):
    return _fail(400, "bad request")


@api_bp.errorhandler(405)
def api_method_not_allowed(_e):
    return _fail(405, "method not allowed")


@api_bp.errorhandler(500)
def api_server_error(e):
    logger.error("Unhandled API error: %s", getattr(e, "original_exception", e))
    return _fail(500, "internal server error")
