"""Batch report generation for workspace members.

Transaction policy: methods use flush() for ID generation, never commit().
Caller (route handler) is responsible for db.session.commit().

    ATTENDANCE                         one roster PDF for all selected members
    TRANSCRIPT | CERTIFICATE | RECEIPT one PDF per member

Every PDF gets a Report row.  Packaging (single PDF vs. ZIP) is left to the
caller.
"""
import io
import logging
import re
import zipfile
from dataclasses import dataclass

from orgdesk.core.exceptions import NotFoundError, ValidationError
from orgdesk.models.workspace import Member
from orgdesk.services.profile_service import sanitize_profile_data
from orgdesk.services.report_mapping import attendance_payload, label_profile, map_member_payload
from orgdesk.services.report_service import GeneratedReport, record_report, render_report
from orgdesk.services.report_types import ReportType, WorkspaceBranding

logger = logging.getLogger(__name__)

BATCH_REPORT_TYPES = (
    ReportType.TRANSCRIPT,
    ReportType.CERTIFICATE,
    ReportType.RECEIPT,
    ReportType.ATTENDANCE,
)

ATTENDANCE_TEMPLATE_NAME = "Attendance Sheet"

_FILENAME_UNSAFE = re.compile(r"[^a-zA-Z0-9]")


@dataclass(frozen=True)
class BatchFile:
    filename: str
    generated: GeneratedReport


def parse_batch_type(raw_type) -> ReportType:
    if not raw_type or not str(raw_type).strip():
        raise ValidationError("Report type is required")
    report_type = ReportType.parse(raw_type)
    if report_type not in BATCH_REPORT_TYPES:
        supported = ", ".join(t.value for t in BATCH_REPORT_TYPES)
        raise ValidationError(
            f"Unsupported report type: {raw_type}. Supported types: {supported}",
            details={"supported": [t.value for t in BATCH_REPORT_TYPES]},
        )
    return report_type


def _safe_name(value: str) -> str:
    return _FILENAME_UNSAFE.sub("_", value or "report")


def generate_workspace_reports(
    workspace,
    raw_type,
    member_ids,
    template_data=None,
    *,
    base_url: str,
    converter,
    generated_by=None,
    inline_assets: bool = False,
    asset_hosts=(),
) -> list[BatchFile]:
    """Render and record reports for ``member_ids`` of ``workspace``.

    Raises:
        ValidationError: no member ids, missing or unsupported report type.
        NotFoundError: none of the ids belong to the workspace.
        ConversionError: a PDF could not be produced (the whole batch fails).
    """
    if not isinstance(member_ids, list) or not member_ids:
        raise ValidationError("At least one member ID is required")
    report_type = parse_batch_type(raw_type)
    if template_data is not None and not isinstance(template_data, dict):
        raise ValidationError("templateData must be an object")

    members = (
        Member.query
        .filter(Member.workspace_id == workspace.id, Member.id.in_(member_ids))
        .order_by(Member.id)
        .all()
    )
    if not members:
        raise NotFoundError(resource="Member")

    branding = WorkspaceBranding.from_model(workspace)
    render_kwargs = {
        "base_url": base_url,
        "converter": converter,
        "inline_assets": inline_assets,
        "asset_hosts": asset_hosts,
        "workspace_id": workspace.id,
    }

    if report_type == ReportType.ATTENDANCE:
        generated = render_report(
            report_type, branding, attendance_payload(members, template_data),
            title=ATTENDANCE_TEMPLATE_NAME, **render_kwargs,
        )
        record_report(
            generated,
            template_name=ATTENDANCE_TEMPLATE_NAME,
            workspace_id=workspace.id,
            generated_by=generated_by,
        )
        return [BatchFile(f"{_safe_name(workspace.name)}_Attendance.pdf", generated)]

    files = []
    for member in members:
        profile = label_profile(sanitize_profile_data(member.profile_data), workspace.registration_fields)
        payload = map_member_payload(report_type, member.name, profile, template_data)
        generated = render_report(
            report_type, branding, payload, title=f"{report_type.value} - {member.name}", **render_kwargs,
        )
        record_report(
            generated,
            template_name=report_type.value,
            workspace_id=workspace.id,
            member_id=member.id,
            issued_to=member.name,
            generated_by=generated_by,
        )
        files.append(BatchFile(f"{_safe_name(member.name)}_{report_type.value}.pdf", generated))

    logger.info(
        "Batch generated type=%s count=%d", report_type.value, len(files),
        extra={"workspace_id": workspace.id},
    )
    return files


def build_zip(files: list[BatchFile]) -> bytes:
    """Pack batch PDFs into one archive; duplicate names get a numeric suffix."""
    buf = io.BytesIO()
    seen = {}
    with zipfile.ZipFile(buf, "w", compression=zipfile.ZIP_DEFLATED) as archive:
        for item in files:
            name = item.filename
            count = seen.get(name, 0)
            seen[name] = count + 1
            if count:
                stem, _, ext = name.rpartition(".")
                name = f"{stem}_{count}.{ext}"
            archive.writestr(name, item.generated.pdf)
    return buf.getvalue()
