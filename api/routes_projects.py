"""
api.routes_projects - /api/v1/projects CRUD, reviews, submissions and
mentor views.
"""

from flask import request, jsonify
from sqlalchemy import select

from api import api_bp
from api.auth import current_session, require_role
from api.errors import ApiError
from db import get_session, AcademicYear
from services import ProjectService, SubmissionService


def year_from_args(session):
    """Resolve ?year=<name> to an AcademicYear (None when absent)."""
    name = request.args.get("year", "").strip()
    if not name:
        return None
    year = session.scalars(select(AcademicYear).where(AcademicYear.name == name)).first()
    if year is None:
        raise ApiError(404, f"Unknown academic year {name}")
    return year


def _project_or_404(session, project_id: str):
    project = ProjectService.get(session, project_id)
    if project is None:
        raise ApiError(404, "Project not found")
    return project


def _visible_project(session, project_id: str):
    sess = current_session()
    project = _project_or_404(session, project_id)
    if not ProjectService.can_view(project, sess.user_id, [sess.active_role]):
        raise ApiError(403, "Not authorized to access this project")
    return project


@api_bp.route("/projects")
@require_role("coordinator", "hod")
def list_projects():
    """GET /api/v1/projects?search=&year=2025-2026"""
    session = get_session()
    try:
        projects = ProjectService.list(
            session, search=request.args.get("search", ""), year=year_from_args(session),
        )
        return jsonify({"success": True, "data": [p.to_dict() for p in projects]})
    finally:
        session.close()


@api_bp.route("/projects/mine")
@require_role("mentor", "mentee")
def my_projects():
    """GET /api/v1/projects/mine?year= - projects of the signed-in mentor/mentee"""
    sess = current_session()
    session = get_session()
    try:
        kwargs = ({"mentor_id": sess.user_id} if sess.active_role == "mentor"
                  else {"mentee_id": sess.user_id})
        projects = ProjectService.list(session, year=year_from_args(session), **kwargs)
        return jsonify({"success": True, "data": [p.to_dict() for p in projects]})
    finally:
        session.close()


@api_bp.route("/projects/<project_id>")
@require_role()
def get_project(project_id: str):
    """GET /api/v1/projects/{id} - includes resolved mentee profiles"""
    session = get_session()
    try:
        project = _visible_project(session, project_id)
        data = project.to_dict()
        data["mentee_profiles"] = ProjectService.mentee_profiles(session, project)
        return jsonify({"success": True, "data": data})
    finally:
        session.close()


@api_bp.route("/projects", methods=["POST"])
@require_role("coordinator")
def create_project():
    """
    POST /api/v1/projects

    JSON body: {name, details?, mentor_email?, mentee_emails?, duration_months?, deadline?}
    """
    data = request.get_json(silent=True) or {}
    session = get_session()
    try:
        project = ProjectService.create(session, data, created_by=current_session().user_id)
        session.commit()
        return jsonify({"success": True, "message": "Project created",
                        "data": project.to_dict()}), 201
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


# ── Reviews ────────────────────────────────────────────────────────────

@api_bp.route("/projects/<project_id>/reviews")
@require_role()
def list_reviews(project_id: str):
    session = get_session()
    try:
        _visible_project(session, project_id)
        reviews = ProjectService.reviews(session, project_id)
        return jsonify({"success": True, "data": [r.to_dict() for r in reviews]})
    finally:
        session.close()


@api_bp.route("/projects/<project_id>/reviews", methods=["POST"])
@require_role("mentor", "coordinator", "hod")
def create_review(project_id: str):
    """POST /api/v1/projects/{id}/reviews  {rating: 1..5, comment?}"""
    data = request.get_json(silent=True) or {}
    session = get_session()
    try:
        project = _visible_project(session, project_id)
        review = ProjectService.add_review(
            session, project, data.get("rating"), data.get("comment", ""),
            reviewer_id=current_session().user_id,
        )
        session.commit()
        return jsonify({"success": True, "data": review.to_dict(),
                        "avg_rating": project.avg_rating,
                        "ratings_count": project.ratings_count}), 201
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


# ── Submissions ────────────────────────────────────────────────────────

@api_bp.route("/projects/<project_id>/submissions")
@require_role()
def list_submissions(project_id: str):
    session = get_session()
    try:
        _visible_project(session, project_id)
        subs = SubmissionService.list_for_project(session, project_id)
        return jsonify({"success": True, "data": [s.to_dict() for s in subs]})
    finally:
        session.close()


@api_bp.route("/projects/<project_id>/submissions", methods=["POST"])
@require_role("mentee")
def create_submission(project_id: str):
    """POST /api/v1/projects/{id}/submissions  {title, content?, link?}"""
    data = request.get_json(silent=True) or {}
    session = get_session()
    try:
        project = _project_or_404(session, project_id)
        sub = SubmissionService.submit(session, project, current_session().user_id, data)
        session.commit()
        return jsonify({"success": True, "data": sub.to_dict()}), 201
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


@api_bp.route("/submissions/<submission_id>/review", methods=["POST"])
@require_role("mentor")
def review_submission(submission_id: str):
    """POST /api/v1/submissions/{id}/review  {status: approved|changes_requested, feedback?}"""
    data = request.get_json(silent=True) or {}
    session = get_session()
    try:
        sub = SubmissionService.get(session, submission_id)
        if sub is None:
            raise ApiError(404, "Submission not found")
        SubmissionService.review(session, sub, current_session().user_id,
                                 str(data.get("status") or ""), data.get("feedback", ""))
        session.commit()
        return jsonify({"success": True, "data": sub.to_dict()})
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


# ── Mentor view ────────────────────────────────────────────────────────

@api_bp.route("/mentor/<mentor_id>/projects")
@require_role("mentor", "hod")
def mentor_projects(mentor_id: str):
    """GET /api/v1/mentor/{mentor_id}/projects - that mentor, or an HOD"""
    sess = current_session()
    if sess.active_role != "hod" and sess.user_id != mentor_id:
        raise ApiError(403, "Not authorized to access these projects")
    session = get_session()
    try:
        projects = ProjectService.list(session, mentor_id=mentor_id,
                                       year=year_from_args(session))
        return jsonify({"success": True, "data": [p.to_dict() for p in projects]})
    finally:
        session.close()
