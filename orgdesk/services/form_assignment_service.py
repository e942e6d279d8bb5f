"""Form assignment lifecycle.

Transaction policy: methods use flush() for ID generation, never commit().
Caller (route handler) is responsible for db.session.commit().

    PENDING → IN_PROGRESS → SUBMITTED → APPROVED | REJECTED

- Drafts (status IN_PROGRESS) only store responses.
- A submit on a single-use assignment closes it (SUBMITTED).
- A submit on an allow_multiple assignment appends a FormSubmission, clears
  the working responses and resets to PENDING so the form can be reused.
- Reviewed assignments (APPROVED / REJECTED) accept no further submissions.
"""
import logging
from datetime import datetime, timezone

from orgdesk.core.exceptions import AccessDeniedError, ConflictError, NotFoundError, ValidationError
from orgdesk.models import db
from orgdesk.models.forms import (
    REVIEW_STATUSES,
    STATUS_IN_PROGRESS,
    STATUS_PENDING,
    STATUS_SUBMITTED,
    FormAssignment,
    FormSubmission,
)
from orgdesk.services.profile_service import sanitize_profile_data
from orgdesk.utils.helpers import parse_date, parse_flag

logger = logging.getLogger(__name__)

MSG_SUBMITTED = "Form submitted successfully!"
MSG_SAVED = "Progress saved successfully!"


def get_public_assignment(slug: str) -> FormAssignment:
    """Look up an active assignment by public slug.

    Raises:
        NotFoundError: unknown slug.
        AccessDeniedError: the assignment was deactivated.
    """
    assignment = FormAssignment.query.filter_by(public_slug=slug).first()
    if assignment is None:
        raise NotFoundError(resource="Form assignment")
    if not assignment.is_active:
        raise AccessDeniedError("This form assignment is no longer active")
    return assignment


def public_assignment_view(assignment: FormAssignment) -> dict:
    """Serialise an assignment for unauthenticated access: slugs only, no ids."""
    member = assignment.member
    workspace = member.workspace
    return {
        "public_slug": assignment.public_slug,
        "status": assignment.status,
        "allow_multiple": bool(assignment.allow_multiple),
        "due_date": assignment.due_date.isoformat() if assignment.due_date else None,
        "submitted_at": assignment.submitted_at.isoformat() if assignment.submitted_at else None,
        "responses": assignment.responses or {},
        "template": assignment.template.to_public_dict(),
        "member": {
            "name": member.name,
            "public_slug": member.public_slug,
            "profile_data": sanitize_profile_data(member.profile_data),
        },
        "workspace": {
            "name": workspace.name,
            "slug": workspace.slug,
            "logo_url": workspace.logo_url,
            "primary_color": workspace.primary_color,
        },
        "history": [s.to_public_dict() for s in assignment.submissions],
        "created_at": assignment.created_at.isoformat() if assignment.created_at else None,
        "updated_at": assignment.updated_at.isoformat() if assignment.updated_at else None,
    }


def submit_assignment(assignment: FormAssignment, responses, status=None):
    """Apply a public submit or draft save.

    Returns:
        (assignment, message) - assignment already flushed.
    """
    if assignment.status in REVIEW_STATUSES:
        raise ConflictError("FormAssignment", "status", assignment.status)
    if responses is not None and not isinstance(responses, dict):
        raise ValidationError("responses must be an object")
    if status not in (None, STATUS_IN_PROGRESS, STATUS_SUBMITTED):
        raise ValidationError(
            f"Invalid status: {status}",
            details={"allowed": [STATUS_IN_PROGRESS, STATUS_SUBMITTED]},
        )

    responses = responses or {}
    now = datetime.now(timezone.utc)

    if status == STATUS_IN_PROGRESS:
        assignment.responses = responses
        assignment.status = STATUS_IN_PROGRESS
        db.session.flush()
        return assignment, MSG_SAVED

    if assignment.allow_multiple:
        db.session.add(FormSubmission(assignment_id=assignment.id, responses=responses, submitted_at=now))
        assignment.responses = {}
        assignment.status = STATUS_PENDING
    else:
        assignment.responses = responses
        assignment.status = STATUS_SUBMITTED
    assignment.submitted_at = now
    db.session.flush()

    logger.info(
        "Form assignment submitted slug=%s allow_multiple=%s",
        assignment.public_slug, assignment.allow_multiple,
    )
    return assignment, MSG_SUBMITTED


def update_assignment(assignment: FormAssignment, data: dict, reviewer=None) -> FormAssignment:
    """Admin update: ``isActive``, ``dueDate`` and review ``status``.

    Only SUBMITTED → APPROVED | REJECTED is accepted as a status change.

    Returns:
        FormAssignment instance (already flushed).
    """
    if "isActive" in data:
        assignment.is_active = parse_flag(data, "isActive", default=assignment.is_active)

    if "dueDate" in data:
        if data["dueDate"]:
            due = parse_date(data["dueDate"])
            if due is None:
                raise ValidationError("Invalid dueDate", details={"dueDate": data["dueDate"]})
            assignment.due_date = due
        else:
            assignment.due_date = None

    new_status = data.get("status")
    if new_status and new_status != assignment.status:
        if new_status not in REVIEW_STATUSES or assignment.status != STATUS_SUBMITTED:
            raise ValidationError(
                f"Invalid status transition: {assignment.status} → {new_status}",
                details={"from": assignment.status, "to": new_status},
            )
        assignment.status = new_status
        assignment.reviewed_by = reviewer
        assignment.reviewed_at = datetime.now(timezone.utc)

    db.session.flush()
    return assignment
