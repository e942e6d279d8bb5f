"""
Workspace administration API.

Endpoints:
    Workspaces:
        GET    /api/v1/workspaces                                   - List
        POST   /api/v1/workspaces                                   - Create
        GET    /api/v1/workspaces/<id>                              - Detail

    Members:
        GET    /api/v1/workspaces/<id>/members                      - List
        POST   /api/v1/workspaces/<id>/members                      - Create

    Report layouts:
        GET    /api/v1/workspaces/<id>/report-templates             - List
        POST   /api/v1/workspaces/<id>/report-templates             - Create

    Form templates:
        GET    /api/v1/workspaces/<id>/form-templates               - List
        POST   /api/v1/workspaces/<id>/form-templates               - Create

    Form assignments:
        POST   /api/v1/workspaces/<id>/members/<mid>/assign-form    - Assign
        GET    /api/v1/workspaces/<id>/members/<mid>/assignments    - List for member
        PATCH  /api/v1/workspaces/<id>/assignments/<aid>            - isActive / dueDate / review
"""

import logging

from flask import Blueprint, jsonify, request

from orgdesk.blueprints import paginate_query
from orgdesk.core.exceptions import NotFoundError, ValidationError
from orgdesk.models import db
from orgdesk.models.forms import FormAssignment, FormTemplate
from orgdesk.models.workspace import Member, ReportTemplate, Workspace
from orgdesk.services import workspace_service
from orgdesk.services.form_assignment_service import update_assignment
from orgdesk.utils.errors import E, api_error
from orgdesk.utils.helpers import db_commit_or_error, get_or_404

logger = logging.getLogger(__name__)

workspace_bp = Blueprint("workspace_bp", __name__, url_prefix="/api/v1/workspaces")


@workspace_bp.errorhandler(ValidationError)
def _handle_validation(error: ValidationError):
    db.session.rollback()
    return api_error(E.VALIDATION_REQUIRED, str(error), details=error.details)


@workspace_bp.errorhandler(NotFoundError)
def _handle_not_found(error: NotFoundError):
    db.session.rollback()
    return api_error(E.NOT_FOUND, f"{error.resource} not found")


# ── Helpers ──────────────────────────────────────────────────────────────────


def _json_body() -> dict:
    body = request.get_json(silent=True)
    return body if isinstance(body, dict) else {}


def _get_member_in_workspace_or_404(workspace: Workspace, member_id: int):
    member = db.session.get(Member, member_id)
    if member is None or member.workspace_id != workspace.id:
        return None, api_error(E.NOT_FOUND, "Member not found")
    return member, None


def _assignment_dict(assignment: FormAssignment) -> dict:
    d = assignment.to_dict()
    d["public_url"] = f"/forms/assignments/{assignment.public_slug}"
    return d


# ═════════════════════════════════════════════════════════════════════════════
# Workspaces
# ═════════════════════════════════════════════════════════════════════════════


@workspace_bp.route("", methods=["GET"])
def list_workspaces():
    workspaces, total = paginate_query(Workspace.query.order_by(Workspace.id))
    return jsonify({"items": [w.to_dict() for w in workspaces], "total": total}), 200


@workspace_bp.route("", methods=["POST"])
def create_workspace():
    workspace = workspace_service.create_workspace(_json_body())
    err = db_commit_or_error()
    if err:
        return err
    return jsonify(workspace.to_dict()), 201


@workspace_bp.route("/<int:workspace_id>", methods=["GET"])
def get_workspace(workspace_id):
    workspace, err = get_or_404(Workspace, workspace_id)
    if err:
        return err
    d = workspace.to_dict()
    d["registration_fields"] = workspace.registration_fields or []
    d["member_count"] = workspace.members.count()
    return jsonify(d), 200


# ═════════════════════════════════════════════════════════════════════════════
# Members
# ═════════════════════════════════════════════════════════════════════════════


@workspace_bp.route("/<int:workspace_id>/members", methods=["GET"])
def list_members(workspace_id):
    workspace, err = get_or_404(Workspace, workspace_id)
    if err:
        return err
    members, total = paginate_query(workspace.members.order_by(Member.id))
    return jsonify({"items": [m.to_dict() for m in members], "total": total}), 200


@workspace_bp.route("/<int:workspace_id>/members", methods=["POST"])
def create_member(workspace_id):
    workspace, err = get_or_404(Workspace, workspace_id)
    if err:
        return err
    member = workspace_service.create_member(workspace, _json_body())
    err = db_commit_or_error()
    if err:
        return err
    return jsonify(member.to_dict()), 201


# ═════════════════════════════════════════════════════════════════════════════
# Report layouts
# ═════════════════════════════════════════════════════════════════════════════


@workspace_bp.route("/<int:workspace_id>/report-templates", methods=["GET"])
def list_report_templates(workspace_id):
    workspace, err = get_or_404(Workspace, workspace_id)
    if err:
        return err
    templates, total = paginate_query(workspace.report_templates.order_by(ReportTemplate.id))
    return jsonify({"items": [t.to_dict() for t in templates], "total": total}), 200


@workspace_bp.route("/<int:workspace_id>/report-templates", methods=["POST"])
def create_report_template(workspace_id):
    workspace, err = get_or_404(Workspace, workspace_id)
    if err:
        return err
    template = workspace_service.create_report_template(workspace, _json_body())
    err = db_commit_or_error()
    if err:
        return err
    return jsonify(template.to_dict()), 201


# ═════════════════════════════════════════════════════════════════════════════
# Form templates
# ═════════════════════════════════════════════════════════════════════════════


@workspace_bp.route("/<int:workspace_id>/form-templates", methods=["GET"])
def list_form_templates(workspace_id):
    workspace, err = get_or_404(Workspace, workspace_id)
    if err:
        return err
    templates, total = paginate_query(
        FormTemplate.query.filter_by(workspace_id=workspace.id).order_by(FormTemplate.id)
    )
    return jsonify({"items": [t.to_dict() for t in templates], "total": total}), 200


@workspace_bp.route("/<int:workspace_id>/form-templates", methods=["POST"])
def create_form_template(workspace_id):
    workspace, err = get_or_404(Workspace, workspace_id)
    if err:
        return err
    template = workspace_service.create_form_template(workspace, _json_body())
    err = db_commit_or_error()
    if err:
        return err
    return jsonify(template.to_dict()), 201


# ═════════════════════════════════════════════════════════════════════════════
# Form assignments
# ═════════════════════════════════════════════════════════════════════════════


@workspace_bp.route("/<int:workspace_id>/members/<int:member_id>/assign-form", methods=["POST"])
def assign_form(workspace_id, member_id):
    workspace, err = get_or_404(Workspace, workspace_id)
    if err:
        return err
    assignment = workspace_service.assign_form(workspace, member_id, _json_body())
    err = db_commit_or_error()
    if err:
        return err
    return jsonify({
        "success": True,
        "assignment": _assignment_dict(assignment),
        "publicUrl": f"/forms/assignments/{assignment.public_slug}",
    }), 201


@workspace_bp.route("/<int:workspace_id>/members/<int:member_id>/assignments", methods=["GET"])
def list_member_assignments(workspace_id, member_id):
    workspace, err = get_or_404(Workspace, workspace_id)
    if err:
        return err
    member, err = _get_member_in_workspace_or_404(workspace, member_id)
    if err:
        return err
    assignments, total = paginate_query(member.assignments.order_by(FormAssignment.id))
    return jsonify({"items": [_assignment_dict(a) for a in assignments], "total": total}), 200


@workspace_bp.route("/<int:workspace_id>/assignments/<int:assignment_id>", methods=["PATCH"])
def patch_assignment(workspace_id, assignment_id):
    workspace, err = get_or_404(Workspace, workspace_id)
    if err:
        return err
    assignment = db.session.get(FormAssignment, assignment_id)
    if assignment is None or assignment.member.workspace_id != workspace.id:
        return api_error(E.NOT_FOUND, "Form assignment not found")

    data = _json_body()
    try:
        update_assignment(assignment, data, reviewer=data.get("reviewedBy"))
    except ValidationError as exc:
        db.session.rollback()
        return api_error(E.VALIDATION_CONSTRAINT, str(exc), details=exc.details)

    err = db_commit_or_error()
    if err:
        return err
    return jsonify(_assignment_dict(assignment)), 200
