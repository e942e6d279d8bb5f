"""
Orgdesk - Issued Report registry.

Every generated PDF gets one Report row keyed by its reference number so
that the QR code printed on the document can be checked at /verify/<ref>.
Rows are written once and never updated.
"""

from datetime import datetime, timezone

from orgdesk.models import db


class Report(db.Model):
    """Immutable record of an issued report."""

    __tablename__ = "reports"

    id = db.Column(db.Integer, primary_key=True)
    reference_number = db.Column(db.String(20), unique=True, nullable=False, index=True)
    type = db.Column(
        db.String(30), nullable=False,
        comment="TRANSCRIPT | CERTIFICATE | RECEIPT | ATTENDANCE | GENERIC",
    )
    template_name = db.Column(db.String(200), nullable=False)
    verification_url = db.Column(db.String(500), nullable=True)
    workspace_id = db.Column(
        db.Integer, db.ForeignKey("workspaces.id", ondelete="SET NULL"),
        nullable=True, index=True,
    )
    member_id = db.Column(
        db.Integer, db.ForeignKey("members.id", ondelete="SET NULL"),
        nullable=True, index=True,
        comment="NULL for aggregated (attendance) or ad-hoc exports",
    )
    issued_to = db.Column(db.String(200), nullable=True)
    generated_by = db.Column(db.String(200), nullable=True)
    is_verified = db.Column(db.Boolean, default=True)
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))

    workspace = db.relationship("Workspace")
    member = db.relationship("Member")

    def to_public_dict(self):
        """Verification view - no internal ids."""
        workspace = self.workspace
        return {
            "reference_number": self.reference_number,
            "type": self.type,
            "template_name": self.template_name,
            "is_verified": bool(self.is_verified),
            "issued_to": self.member.name if self.member else self.issued_to,
            "organization": {
                "name": workspace.name,
                "address": workspace.address,
                "logo_url": workspace.logo_url,
            } if workspace else None,
            "generated_at": self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f"<Report {self.reference_number} [{self.type}]>"
