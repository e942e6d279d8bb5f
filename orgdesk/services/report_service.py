"""Report pipeline orchestration.

Transaction policy: methods use flush() for ID generation, never commit().
Caller (route handler) is responsible for db.session.commit().

Pipeline (generate_report_pdf):
    1. required fields       templateName, submittedBy, submittedByEmail
    2. branding              workspace row when workspace_id is given, else
                             caller override, else defaults; lookup failure
                             is logged and tolerated
    3. metadata              reference number + QR of the verification URL
    4. renderer              selected by resolved report type
    5. document shell
    6. HTML → PDF            empty output is a ConversionError
"""
import logging
import re
from dataclasses import dataclass
from datetime import datetime, timezone

from sqlalchemy.exc import SQLAlchemyError

from orgdesk.core.exceptions import ConversionError, ValidationError
from orgdesk.models import db
from orgdesk.models.report import Report
from orgdesk.models.workspace import ReportTemplate, Workspace
from orgdesk.services.asset_service import inline_branding_assets
from orgdesk.services.html_renderer import render_document
from orgdesk.services.qr_service import build_verification_url, generate_qr_code
from orgdesk.services.reference_service import generate_reference_number
from orgdesk.services.report_templates import select_template
from orgdesk.services.report_types import (
    ReportMetadata,
    ReportRequest,
    ReportType,
    WorkspaceBranding,
)

logger = logging.getLogger(__name__)

# Layout used when neither the request nor a default ReportTemplate names one.
WORKSPACE_TYPE_LAYOUTS = {
    "TRAINING": ReportType.CERTIFICATE,
    "MINISTRY": ReportType.GENERIC,
    "CONSTRUCTION": ReportType.GENERIC,
    "GENERAL": ReportType.GENERIC,
}

_FILENAME_UNSAFE = re.compile(r"[^a-z0-9]", re.IGNORECASE)


@dataclass(frozen=True)
class BrandingLookup:
    """Outcome of a workspace branding lookup; never raises."""

    branding: WorkspaceBranding | None = None
    default_type: ReportType | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.branding is not None


@dataclass(frozen=True)
class GeneratedReport:
    pdf: bytes
    metadata: ReportMetadata
    html: str
    template_type: ReportType
    branding: WorkspaceBranding

    @property
    def size(self) -> int:
        return len(self.pdf)


# ── Branding ─────────────────────────────────────────────────────────────


def lookup_workspace_branding(workspace_id) -> BrandingLookup:
    """Load branding and the default report layout for ``workspace_id``."""
    try:
        pk = int(workspace_id)
    except (TypeError, ValueError):
        return BrandingLookup(error=f"Invalid workspace id {workspace_id!r}")

    try:
        workspace = db.session.get(Workspace, pk)
        if workspace is None:
            return BrandingLookup(error=f"Workspace id={pk} not found")
        default_template = (
            ReportTemplate.query
            .filter_by(workspace_id=pk, is_default=True)
            .order_by(ReportTemplate.id)
            .first()
        )
    except SQLAlchemyError as exc:
        db.session.rollback()
        return BrandingLookup(error=f"Workspace lookup failed: {exc.__class__.__name__}")

    return BrandingLookup(
        branding=WorkspaceBranding.from_model(workspace),
        default_type=ReportType.parse(default_template.template_type) if default_template else None,
    )


def resolve_template_type(request: ReportRequest, branding: WorkspaceBranding,
                          workspace_default: ReportType | None = None) -> ReportType:
    """Explicit request type → workspace default → workspace-type layout → GENERIC.

    A type that was given but is not recognised resolves to GENERIC; it does
    not fall through to workspace defaults.
    """
    if request.template_type is not None:
        return request.template_type
    if request.raw_template_type:
        logger.info("Unrecognised templateType %r, using generic layout", request.raw_template_type)
        return ReportType.GENERIC
    if workspace_default is not None:
        return workspace_default
    return WORKSPACE_TYPE_LAYOUTS.get((branding.type or "").upper(), ReportType.GENERIC)


# ── Metadata ─────────────────────────────────────────────────────────────


def create_report_metadata(report_type: ReportType, base_url: str, now=None) -> ReportMetadata:
    generated_at = now or datetime.now(timezone.utc)
    reference_number = generate_reference_number(report_type.value, now=generated_at)
    verification_url = build_verification_url(base_url, reference_number)
    return ReportMetadata(
        reference_number=reference_number,
        generated_at=generated_at,
        qr_code_data_url=generate_qr_code(verification_url),
        verification_url=verification_url,
    )


def _render_data(request: ReportRequest) -> dict:
    data = dict(request.payload)
    data.update({
        "templateName": request.template_name,
        "submittedBy": request.submitted_by,
        "submittedByEmail": request.submitted_by_email,
        "submittedAt": request.submitted_at,
        "status": request.status,
        "responses": request.responses,
    })
    return data


# ── Pipeline ─────────────────────────────────────────────────────────────


def generate_report_pdf(
    request: ReportRequest,
    *,
    workspace_id=None,
    base_url: str,
    converter,
    inline_assets: bool = False,
    asset_hosts=(),
    now=None,
) -> GeneratedReport:
    """Run the full pipeline for one report.

    Raises:
        ValidationError: a required field is missing (``details["missing"]``).
        ConversionError: the converter failed or returned no bytes.
    """
    missing = request.missing_fields()
    if missing:
        raise ValidationError("Missing required report fields", details={"missing": missing})

    branding = request.workspace or WorkspaceBranding()
    workspace_default = None
    if workspace_id is not None:
        lookup = lookup_workspace_branding(workspace_id)
        if lookup.ok:
            branding = lookup.branding
            workspace_default = lookup.default_type
        else:
            logger.warning(
                "Branding lookup failed, using request defaults: %s",
                lookup.error,
                extra={"workspace_id": workspace_id},
            )

    template_type = resolve_template_type(request, branding, workspace_default)
    return render_report(
        template_type,
        branding,
        _render_data(request),
        title=request.template_name,
        base_url=base_url,
        converter=converter,
        inline_assets=inline_assets,
        asset_hosts=asset_hosts,
        now=now,
        workspace_id=workspace_id,
    )


def render_report(
    template_type: ReportType,
    branding: WorkspaceBranding,
    data: dict,
    *,
    title: str,
    base_url: str,
    converter,
    inline_assets: bool = False,
    asset_hosts=(),
    now=None,
    workspace_id=None,
) -> GeneratedReport:
    """Steps 3–6 of the pipeline for an already-resolved type and branding."""
    if inline_assets:
        branding = inline_branding_assets(branding, base_url=base_url, allowed_hosts=asset_hosts)

    metadata = create_report_metadata(template_type, base_url, now=now)

    render = select_template(template_type)
    html = render_document(render(branding, metadata, data), title=title)

    pdf = converter.convert(html)
    if not pdf:
        raise ConversionError("PDF conversion failed", details="Generated PDF is empty")

    logger.info(
        "Report generated type=%s bytes=%d",
        template_type.value, len(pdf),
        extra={"reference_number": metadata.reference_number, "workspace_id": workspace_id},
    )
    return GeneratedReport(
        pdf=pdf,
        metadata=metadata,
        html=html,
        template_type=template_type,
        branding=branding,
    )


def record_report(generated: GeneratedReport, *, template_name, workspace_id=None,
                  member_id=None, issued_to=None, generated_by=None) -> Report:
    """Add the issued-report row for ``generated``.

    Returns:
        Report instance (already flushed).
    """
    try:
        workspace_pk = int(workspace_id) if workspace_id is not None else None
    except (TypeError, ValueError):
        workspace_pk = None
    if workspace_pk is not None and db.session.get(Workspace, workspace_pk) is None:
        workspace_pk = None

    report = Report(
        reference_number=generated.metadata.reference_number,
        type=generated.template_type.value,
        template_name=template_name,
        verification_url=generated.metadata.verification_url,
        workspace_id=workspace_pk,
        member_id=member_id,
        issued_to=issued_to,
        generated_by=generated_by,
        is_verified=True,
        created_at=generated.metadata.generated_at,
    )
    db.session.add(report)
    db.session.flush()
    return report


def default_filename(template_name: str, today=None) -> str:
    """``Annual Report`` → ``annual_report_2025-03-01.pdf``."""
    day = today or datetime.now(timezone.utc).date()
    stem = _FILENAME_UNSAFE.sub("_", template_name or "report").lower()
    return f"{stem}_{day.isoformat()}.pdf"


def get_report_by_reference(reference_number: str) -> Report | None:
    return Report.query.filter_by(reference_number=reference_number).first()
