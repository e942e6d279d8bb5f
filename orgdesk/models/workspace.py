"""
Orgdesk - Workspace & Member Models.

Models:
    - Workspace: tenant organization owning members, templates and branding
    - Member: a user's role/profile within one workspace
    - ReportTemplate: per-workspace report layout preference (default type)
"""

from datetime import datetime, timezone

from orgdesk.models import db

VALID_WORKSPACE_TYPES = frozenset({"MINISTRY", "CONSTRUCTION", "TRAINING", "GENERAL"})

VALID_MEMBER_ROLES = frozenset({"OWNER", "ADMIN", "MEMBER", "GUEST"})


class Workspace(db.Model):
    """Tenant organization. Branding columns feed the report pipeline."""

    __tablename__ = "workspaces"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(200), nullable=False)
    slug = db.Column(db.String(120), unique=True, nullable=False, index=True)
    type = db.Column(
        db.String(30), nullable=False, default="GENERAL",
        comment="MINISTRY | CONSTRUCTION | TRAINING | GENERAL",
    )
    description = db.Column(db.Text, nullable=True)
    logo_url = db.Column(db.String(1000), nullable=True)
    stamp_url = db.Column(db.String(1000), nullable=True)
    primary_color = db.Column(db.String(20), nullable=True)
    address = db.Column(db.String(500), nullable=True)
    motto = db.Column(db.String(300), nullable=True)
    registration_fields = db.Column(
        db.JSON, nullable=True,
        comment="[{id, label, type, ...}] - decodes Member.profile_data keys",
    )
    is_active = db.Column(db.Boolean, default=True)
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = db.Column(
        db.DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    members = db.relationship(
        "Member", back_populates="workspace", lazy="dynamic",
        cascade="all, delete-orphan",
    )
    report_templates = db.relationship(
        "ReportTemplate", back_populates="workspace", lazy="dynamic",
        cascade="all, delete-orphan",
    )

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "slug": self.slug,
            "type": self.type,
            "description": self.description,
            "logo_url": self.logo_url,
            "stamp_url": self.stamp_url,
            "primary_color": self.primary_color,
            "address": self.address,
            "motto": self.motto,
            "is_active": self.is_active,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }

    def __repr__(self):
        return f"<Workspace {self.id}: {self.slug}>"


class Member(db.Model):
    """A person's role and profile inside one workspace."""

    __tablename__ = "members"

    id = db.Column(db.Integer, primary_key=True)
    workspace_id = db.Column(
        db.Integer, db.ForeignKey("workspaces.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    name = db.Column(db.String(200), nullable=False)
    email = db.Column(db.String(200), nullable=False)
    phone = db.Column(db.String(50), nullable=True)
    role = db.Column(db.String(20), default="MEMBER")
    status = db.Column(db.String(20), default="ACTIVE")
    profile_data = db.Column(db.JSON, nullable=True)
    public_slug = db.Column(db.String(80), unique=True, nullable=False, index=True)
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = db.Column(
        db.DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    workspace = db.relationship("Workspace", back_populates="members")
    assignments = db.relationship(
        "FormAssignment", back_populates="member", lazy="dynamic",
        cascade="all, delete-orphan",
    )

    def to_dict(self):
        return {
            "id": self.id,
            "workspace_id": self.workspace_id,
            "name": self.name,
            "email": self.email,
            "phone": self.phone,
            "role": self.role,
            "status": self.status,
            "profile_data": self.profile_data or {},
            "public_slug": self.public_slug,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f"<Member {self.id}: {self.public_slug}>"


class ReportTemplate(db.Model):
    """Report layout configured for a workspace; one may be the default."""

    __tablename__ = "report_templates"

    id = db.Column(db.Integer, primary_key=True)
    workspace_id = db.Column(
        db.Integer, db.ForeignKey("workspaces.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    name = db.Column(db.String(200), nullable=False)
    template_type = db.Column(
        db.String(30), nullable=False, default="GENERIC",
        comment="TRANSCRIPT | CERTIFICATE | RECEIPT | ATTENDANCE | GENERIC",
    )
    is_default = db.Column(db.Boolean, default=False)
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))

    workspace = db.relationship("Workspace", back_populates="report_templates")

    def to_dict(self):
        return {
            "id": self.id,
            "workspace_id": self.workspace_id,
            "name": self.name,
            "template_type": self.template_type,
            "is_default": self.is_default,
        }
