"""
Unauthenticated endpoints, addressed only by public slug.

    GET  /api/v1/public/forms/assignments/<slug>          assignment + template + history
    POST /api/v1/public/forms/assignments/<slug>/submit   {responses, status?}
    GET  /api/v1/public/profiles/<slug>                   sanitised member profile

Responses never contain internal integer ids.
"""

import logging

from flask import Blueprint, jsonify, request

from orgdesk.core.exceptions import AccessDeniedError, ConflictError, NotFoundError, ValidationError
from orgdesk.models import db
from orgdesk.models.workspace import Member
from orgdesk.services.form_assignment_service import (
    get_public_assignment,
    public_assignment_view,
    submit_assignment,
)
from orgdesk.services.profile_service import (
    format_field_name,
    format_field_value,
    organize_profile_data,
    sanitize_profile_data,
)
from orgdesk.utils.errors import E, api_error
from orgdesk.utils.helpers import db_commit_or_error, get_by_slug_or_404

logger = logging.getLogger(__name__)

public_forms_bp = Blueprint("public_forms_bp", __name__, url_prefix="/api/v1/public")


@public_forms_bp.errorhandler(NotFoundError)
def _handle_not_found(error: NotFoundError):
    return api_error(E.NOT_FOUND, f"{error.resource} not found")


@public_forms_bp.errorhandler(AccessDeniedError)
def _handle_forbidden(error: AccessDeniedError):
    return api_error(E.FORBIDDEN, str(error))


@public_forms_bp.errorhandler(ValidationError)
def _handle_validation(error: ValidationError):
    db.session.rollback()
    return api_error(E.VALIDATION_INVALID, str(error), details=error.details)


@public_forms_bp.errorhandler(ConflictError)
def _handle_conflict(error: ConflictError):
    db.session.rollback()
    return api_error(E.CONFLICT_STATE, "This form assignment has already been reviewed")


# ═════════════════════════════════════════════════════════════════════════
# Form assignments
# ═════════════════════════════════════════════════════════════════════════


@public_forms_bp.route("/forms/assignments/<slug>", methods=["GET"])
def get_assignment(slug):
    assignment = get_public_assignment(slug)
    return jsonify(public_assignment_view(assignment)), 200


@public_forms_bp.route("/forms/assignments/<slug>/submit", methods=["POST"])
def submit(slug):
    assignment = get_public_assignment(slug)
    body = request.get_json(silent=True)
    if not isinstance(body, dict):
        body = {}

    assignment, message = submit_assignment(assignment, body.get("responses"), body.get("status"))
    err = db_commit_or_error()
    if err:
        return err

    return jsonify({
        "success": True,
        "message": message,
        "assignment": public_assignment_view(assignment),
    }), 200


# ═════════════════════════════════════════════════════════════════════════
# Member profiles
# ═════════════════════════════════════════════════════════════════════════


@public_forms_bp.route("/profiles/<slug>", methods=["GET"])
def get_profile(slug):
    member, err = get_by_slug_or_404(Member, slug, "Profile")
    if err:
        return err

    profile = sanitize_profile_data(member.profile_data)
    return jsonify({
        "name": member.name,
        "public_slug": member.public_slug,
        "role": member.role,
        "workspace": {"name": member.workspace.name, "slug": member.workspace.slug},
        "profile_data": profile,
        "sections": organize_profile_data(profile),
        "display": [
            {"label": format_field_name(key), "value": format_field_value(value)}
            for key, value in profile.items()
        ],
    }), 200
