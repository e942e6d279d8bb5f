"""
Value objects flowing through the report pipeline.

    ReportType         TRANSCRIPT | CERTIFICATE | RECEIPT | ATTENDANCE | GENERIC
    WorkspaceBranding  read-only branding snapshot taken at generation time
    ReportMetadata     reference number + QR, created once per report
    ReportRequest      transient input built from the ``reportData`` JSON body
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import datetime


class ReportType(str, enum.Enum):
    TRANSCRIPT = "TRANSCRIPT"
    CERTIFICATE = "CERTIFICATE"
    RECEIPT = "RECEIPT"
    ATTENDANCE = "ATTENDANCE"
    GENERIC = "GENERIC"

    @classmethod
    def parse(cls, value) -> ReportType | None:
        """Case/whitespace-insensitive lookup; None for unknown or empty."""
        if isinstance(value, cls):
            return value
        if not value:
            return None
        try:
            return cls(str(value).strip().upper())
        except ValueError:
            return None


@dataclass(frozen=True)
class WorkspaceBranding:
    name: str = "Organization"
    type: str = "GENERAL"
    logo_url: str | None = None
    stamp_url: str | None = None
    primary_color: str | None = None
    address: str | None = None
    motto: str | None = None

    @classmethod
    def from_dict(cls, data: dict | None) -> WorkspaceBranding | None:
        """Accepts camelCase (API) or snake_case (model) keys."""
        if not data:
            return None

        def pick(*keys):
            for key in keys:
                if data.get(key):
                    return data[key]
            return None

        return cls(
            name=pick("name") or "Organization",
            type=pick("type") or "GENERAL",
            logo_url=pick("logoUrl", "logo_url"),
            stamp_url=pick("stampUrl", "stamp_url"),
            primary_color=pick("primaryColor", "primary_color"),
            address=pick("address"),
            motto=pick("motto"),
        )

    @classmethod
    def from_model(cls, workspace) -> WorkspaceBranding:
        return cls(
            name=workspace.name,
            type=workspace.type or "GENERAL",
            logo_url=workspace.logo_url or None,
            stamp_url=workspace.stamp_url or None,
            primary_color=workspace.primary_color or None,
            address=workspace.address or None,
            motto=workspace.motto or None,
        )


@dataclass(frozen=True)
class ReportMetadata:
    reference_number: str
    generated_at: datetime
    qr_code_data_url: str
    verification_url: str


# Keys of ``reportData`` that are not template payload.
_ENVELOPE_KEYS = frozenset({
    "templateName", "templateType", "submittedBy", "submittedByEmail",
    "submittedAt", "status", "responses", "workspace", "member",
})

REQUIRED_FIELDS = ("templateName", "submittedBy", "submittedByEmail")


@dataclass
class ReportRequest:
    template_name: str
    submitted_by: str
    submitted_by_email: str
    template_type: ReportType | None = None
    raw_template_type: str | None = None
    payload: dict = field(default_factory=dict)
    responses: dict = field(default_factory=dict)
    workspace: WorkspaceBranding | None = None
    submitted_at: str | None = None
    status: str = "SUBMITTED"

    @classmethod
    def from_dict(cls, data: dict) -> ReportRequest:
        """Build a request from the API ``reportData`` object.

        Required-field presence is checked by the orchestrator, not here.
        """
        data = data or {}
        raw_type = data.get("templateType")
        responses = data.get("responses")
        return cls(
            template_name=str(data.get("templateName") or "").strip(),
            submitted_by=str(data.get("submittedBy") or "").strip(),
            submitted_by_email=str(data.get("submittedByEmail") or "").strip(),
            template_type=ReportType.parse(raw_type),
            raw_template_type=str(raw_type) if raw_type else None,
            payload={k: v for k, v in data.items() if k not in _ENVELOPE_KEYS},
            responses=responses if isinstance(responses, dict) else {},
            workspace=WorkspaceBranding.from_dict(data.get("workspace")),
            submitted_at=data.get("submittedAt"),
            status=data.get("status") or "SUBMITTED",
        )

    def missing_fields(self) -> list[str]:
        values = {
            "templateName": self.template_name,
            "submittedBy": self.submitted_by,
            "submittedByEmail": self.submitted_by_email,
        }
        return [name for name in REQUIRED_FIELDS if not values[name]]
