"""
Orgdesk - Form Models.

Models:
    - FormTemplate: configurable form definition owned by a workspace
    - FormAssignment: per-member instance of a template awaiting a response
    - FormSubmission: append-only record of one submission cycle

Assignment lifecycle:
    PENDING → IN_PROGRESS → SUBMITTED → APPROVED | REJECTED

    allow_multiple=True keeps the assignment open: every submit stores a
    FormSubmission, clears FormAssignment.responses and resets to PENDING.
"""

from datetime import datetime, timezone

from orgdesk.models import db

# ── Constants ─────────────────────────────────────────────────────────────────

STATUS_PENDING = "PENDING"
STATUS_IN_PROGRESS = "IN_PROGRESS"
STATUS_SUBMITTED = "SUBMITTED"
STATUS_APPROVED = "APPROVED"
STATUS_REJECTED = "REJECTED"

REVIEW_STATUSES = frozenset({STATUS_APPROVED, STATUS_REJECTED})


class FormTemplate(db.Model):
    """Form definition: an ordered list of field descriptors."""

    __tablename__ = "form_templates"

    id = db.Column(db.Integer, primary_key=True)
    workspace_id = db.Column(
        db.Integer, db.ForeignKey("workspaces.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    name = db.Column(db.String(200), nullable=False)
    slug = db.Column(db.String(80), unique=True, nullable=False, index=True)
    description = db.Column(db.Text, nullable=True)
    fields = db.Column(db.JSON, nullable=True, comment="[{id, label, type, required, ...}]")
    submit_label = db.Column(db.String(100), default="Submit")
    is_active = db.Column(db.Boolean, default=True)
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))

    def to_public_dict(self):
        return {
            "name": self.name,
            "slug": self.slug,
            "description": self.description,
            "fields": self.fields or [],
            "submit_label": self.submit_label,
        }

    def to_dict(self):
        d = self.to_public_dict()
        d.update({
            "id": self.id,
            "workspace_id": self.workspace_id,
            "is_active": self.is_active,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        })
        return d


class FormAssignment(db.Model):
    """One member's copy of a form template, reachable by public slug."""

    __tablename__ = "form_assignments"

    id = db.Column(db.Integer, primary_key=True)
    template_id = db.Column(
        db.Integer, db.ForeignKey("form_templates.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    member_id = db.Column(
        db.Integer, db.ForeignKey("members.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    assigned_by = db.Column(db.String(200), nullable=False)
    public_slug = db.Column(db.String(80), unique=True, nullable=False, index=True)
    status = db.Column(db.String(20), nullable=False, default=STATUS_PENDING)
    is_active = db.Column(db.Boolean, default=True)
    allow_multiple = db.Column(db.Boolean, default=False)
    responses = db.Column(db.JSON, nullable=True)
    due_date = db.Column(db.Date, nullable=True)
    submitted_at = db.Column(db.DateTime, nullable=True)
    reviewed_by = db.Column(db.String(200), nullable=True)
    reviewed_at = db.Column(db.DateTime, nullable=True)
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = db.Column(
        db.DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    template = db.relationship("FormTemplate")
    member = db.relationship("Member", back_populates="assignments")
    submissions = db.relationship(
        "FormSubmission", back_populates="assignment", lazy="dynamic",
        order_by="FormSubmission.submitted_at.desc()",
        cascade="all, delete-orphan",
    )

    def to_dict(self):
        return {
            "id": self.id,
            "template_id": self.template_id,
            "member_id": self.member_id,
            "assigned_by": self.assigned_by,
            "public_slug": self.public_slug,
            "status": self.status,
            "is_active": self.is_active,
            "allow_multiple": self.allow_multiple,
            "responses": self.responses or {},
            "due_date": self.due_date.isoformat() if self.due_date else None,
            "submitted_at": self.submitted_at.isoformat() if self.submitted_at else None,
            "reviewed_by": self.reviewed_by,
            "reviewed_at": self.reviewed_at.isoformat() if self.reviewed_at else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }

    def __repr__(self):
        return f"<FormAssignment {self.id}: {self.public_slug} [{self.status}]>"


class FormSubmission(db.Model):
    """Append-only: one row per submit cycle of a multi-submission assignment."""

    __tablename__ = "form_submissions"

    id = db.Column(db.Integer, primary_key=True)
    assignment_id = db.Column(
        db.Integer, db.ForeignKey("form_assignments.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    responses = db.Column(db.JSON, nullable=True)
    submitted_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))

    assignment = db.relationship("FormAssignment", back_populates="submissions")

    def to_public_dict(self):
        return {
            "responses": self.responses or {},
            "submitted_at": self.submitted_at.isoformat() if self.submitted_at else None,
        }
