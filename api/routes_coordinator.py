"""
api.routes_coordinator - Project assignment and bulk import.

The import accepts CSV or XLSX via multipart file upload, or a raw CSV
request body.
"""

from flask import request, jsonify

import config
from api import api_bp
from api.auth import current_session, require_role
from api.errors import ApiError
from db import get_session
from import_engine import run_import
from services import ProjectService


@api_bp.route("/coordinator/assign", methods=["POST"])
@require_role("coordinator")
def assign_project():
    """POST /api/v1/coordinator/assign  {project_name, mentor_email, mentee_email}"""
    data = request.get_json(silent=True) or {}
    session = get_session()
    try:
        project = ProjectService.assign(
            session,
            str(data.get("project_name") or "").strip(),
            str(data.get("mentor_email") or "").strip(),
            str(data.get("mentee_email") or "").strip(),
            coordinator_id=current_session().user_id,
        )
        session.commit()
        return jsonify({"success": True, "message": "Project assigned successfully",
                        "data": project.to_dict()}), 201
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


@api_bp.route("/coordinator/import", methods=["POST"])
@require_role("coordinator")
def import_projects():
    """
    POST /api/v1/coordinator/import?dedupe=0|1

    Multipart: field name 'file' (.csv / .xlsx)
    Or: raw CSV as request body (Content-Type: text/csv).
    """
    dedupe = request.args.get("dedupe", "0") == "1"

    if request.content_type and "multipart" in request.content_type:
        f = request.files.get("file")
        if not f:
            raise ApiError(400, "no file in upload")
        content, filename = f.read(), f.filename or "upload.csv"
    else:
        content, filename = request.get_data(), "upload.csv"

    if not content:
        raise ApiError(400, "empty body")
    if len(content) > config.MAX_IMPORT_BYTES:
        raise ApiError(413, f"File too large (max {config.MAX_IMPORT_BYTES} bytes)")

    report = run_import(content, filename,
                        coordinator_id=current_session().user_id, dedupe=dedupe)
    return jsonify({"success": report.ok, "data": report.to_dict()})
