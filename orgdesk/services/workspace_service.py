"""Workspace service layer.

Transaction policy: methods use flush() for ID generation, never commit().
Caller (route handler) is responsible for db.session.commit().

Operations:
- Workspace creation with a deduplicated slug
- Member creation with a public profile slug
- Report layout (ReportTemplate) registration, at most one default
- Form template creation with a template slug
- Form assignment to a member
"""
import logging

from orgdesk.core.exceptions import NotFoundError, ValidationError
from orgdesk.models import db
from orgdesk.models.forms import STATUS_PENDING, FormAssignment, FormTemplate
from orgdesk.models.workspace import (
    VALID_MEMBER_ROLES,
    VALID_WORKSPACE_TYPES,
    Member,
    ReportTemplate,
    Workspace,
)
from orgdesk.services.report_types import ReportType
from orgdesk.services.slug_service import (
    generate_form_assignment_slug,
    generate_form_template_slug,
    generate_public_slug,
    generate_workspace_slug,
)
from orgdesk.utils.helpers import parse_date, parse_flag

logger = logging.getLogger(__name__)

_BRANDING_FIELDS = {
    "logoUrl": "logo_url",
    "stampUrl": "stamp_url",
    "primaryColor": "primary_color",
    "address": "address",
    "motto": "motto",
    "description": "description",
}


def _workspace_slug_taken(slug: str) -> bool:
    return db.session.query(Workspace.id).filter_by(slug=slug).first() is not None


def create_workspace(data: dict) -> Workspace:
    """Create a workspace.

    Returns:
        Workspace instance (already flushed).
    """
    name = (data.get("name") or "").strip()
    ws_type = (data.get("type") or "").strip().upper()
    if not name or not ws_type:
        raise ValidationError("Name and type are required")
    if ws_type not in VALID_WORKSPACE_TYPES:
        raise ValidationError(
            f"Invalid workspace type: {ws_type}",
            details={"allowed": sorted(VALID_WORKSPACE_TYPES)},
        )
    registration_fields = data.get("registrationFields")
    if registration_fields is not None and not isinstance(registration_fields, list):
        raise ValidationError("registrationFields must be a list")

    workspace = Workspace(
        name=name,
        slug=generate_workspace_slug(name, _workspace_slug_taken),
        type=ws_type,
        registration_fields=registration_fields or [],
    )
    for key, attr in _BRANDING_FIELDS.items():
        if data.get(key):
            setattr(workspace, attr, data[key])

    db.session.add(workspace)
    db.session.flush()
    logger.info("Workspace created slug=%s", workspace.slug, extra={"workspace_id": workspace.id})
    return workspace


def create_member(workspace: Workspace, data: dict) -> Member:
    """Add a member to ``workspace``.

    Returns:
        Member instance (already flushed).
    """
    name = (data.get("name") or "").strip()
    email = (data.get("email") or "").strip()
    if not name or not email:
        raise ValidationError("Name and email are required")
    role = (data.get("role") or "MEMBER").upper()
    if role not in VALID_MEMBER_ROLES:
        raise ValidationError(
            f"Invalid role: {role}",
            details={"allowed": sorted(VALID_MEMBER_ROLES)},
        )
    profile_data = data.get("profileData")
    if profile_data is not None and not isinstance(profile_data, dict):
        raise ValidationError("profileData must be an object")

    member = Member(
        workspace_id=workspace.id,
        name=name,
        email=email,
        phone=data.get("phone") or None,
        role=role,
        profile_data=profile_data or {},
        public_slug=generate_public_slug(name),
    )
    db.session.add(member)
    db.session.flush()
    return member


def create_report_template(workspace: Workspace, data: dict) -> ReportTemplate:
    """Register a report layout; ``isDefault`` demotes any existing default.

    Returns:
        ReportTemplate instance (already flushed).
    """
    name = (data.get("name") or "").strip()
    if not name or not data.get("templateType"):
        raise ValidationError("Name and templateType are required")
    template_type = ReportType.parse(data["templateType"])
    if template_type is None:
        raise ValidationError(
            f"Invalid templateType: {data['templateType']}",
            details={"allowed": [t.value for t in ReportType]},
        )

    is_default = parse_flag(data, "isDefault")
    if is_default:
        ReportTemplate.query.filter_by(workspace_id=workspace.id, is_default=True).update(
            {"is_default": False},
        )

    template = ReportTemplate(
        workspace_id=workspace.id,
        name=name,
        template_type=template_type.value,
        is_default=is_default,
    )
    db.session.add(template)
    db.session.flush()
    return template


def create_form_template(workspace: Workspace, data: dict) -> FormTemplate:
    """Create a form template with a public slug.

    Returns:
        FormTemplate instance (already flushed).
    """
    name = (data.get("name") or "").strip()
    if not name:
        raise ValidationError("Name is required")
    fields = data.get("fields") or []
    if not isinstance(fields, list):
        raise ValidationError("fields must be a list")

    template = FormTemplate(
        workspace_id=workspace.id,
        name=name,
        slug=generate_form_template_slug(name),
        description=data.get("description") or None,
        fields=fields,
        submit_label=data.get("submitLabel") or "Submit",
        is_active=parse_flag(data, "isActive", default=True),
    )
    db.session.add(template)
    db.session.flush()
    return template


def assign_form(workspace: Workspace, member_id: int, data: dict) -> FormAssignment:
    """Assign a form template to a member of ``workspace``.

    Returns:
        FormAssignment instance (already flushed).
    """
    template_id = data.get("templateId")
    assigned_by = data.get("assignedBy")
    if not template_id or not assigned_by:
        raise ValidationError("Template ID and assignedBy are required")

    member = db.session.get(Member, member_id)
    if member is None or member.workspace_id != workspace.id:
        raise NotFoundError(resource="Member", resource_id=member_id)

    try:
        template = db.session.get(FormTemplate, int(template_id))
    except (TypeError, ValueError):
        template = None
    if template is None or template.workspace_id != workspace.id:
        raise NotFoundError(resource="Form template", resource_id=template_id)

    due_date = None
    if data.get("dueDate"):
        due_date = parse_date(data["dueDate"])
        if due_date is None:
            raise ValidationError("Invalid dueDate", details={"dueDate": data["dueDate"]})

    assignment = FormAssignment(
        template_id=template.id,
        member_id=member.id,
        assigned_by=assigned_by,
        public_slug=generate_form_assignment_slug(member.name, template.name),
        status=STATUS_PENDING,
        is_active=True,
        allow_multiple=parse_flag(data, "allowMultiple"),
        due_date=due_date,
    )
    db.session.add(assignment)
    db.session.flush()
    logger.info(
        "Form assigned slug=%s template=%s", assignment.public_slug, template.slug,
        extra={"workspace_id": workspace.id},
    )
    return assignment
