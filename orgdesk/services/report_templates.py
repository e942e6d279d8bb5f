"""
Report layouts, one per report type.

    select_template(template_type) -> RenderFn
    RenderFn(workspace: WorkspaceBranding, report: ReportMetadata, data: dict) -> Markup

Each renderer turns caller data into a view model and fills the matching
Jinja2 template from ``orgdesk/templates/reports``.  Autoescaping is on, so
caller strings never reach the document as markup.

Unknown or missing types fall back to the generic layout.
"""

from __future__ import annotations

import json
import logging
import re
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from types import MappingProxyType
from typing import Callable

from jinja2 import Environment, PackageLoader, select_autoescape
from markupsafe import Markup

from orgdesk.services.report_types import ReportMetadata, ReportType, WorkspaceBranding
from orgdesk.utils.helpers import parse_date

logger = logging.getLogger(__name__)

RenderFn = Callable[[WorkspaceBranding, ReportMetadata, dict], Markup]

DEFAULT_COLORS = MappingProxyType({
    ReportType.TRANSCRIPT: "#000",
    ReportType.CERTIFICATE: "#1a365d",
    ReportType.RECEIPT: "#000",
    ReportType.ATTENDANCE: "#000",
    ReportType.GENERIC: "#6C5DD3",
})

# Ordered candidate keys; the first present value wins.
TRANSCRIPT_ROW_ALIASES = MappingProxyType({
    "code": ("code", "courseCode"),
    "title": ("title", "courseName"),
    "credits": ("credits", "credit"),
    "points": ("points", "gradePoint"),
})

_IMAGE_VALUE = re.compile(r"\.(jpg|jpeg|png|gif|webp)(\?.*)?$", re.IGNORECASE)

_env = Environment(
    loader=PackageLoader("orgdesk", "templates/reports"),
    autoescape=select_autoescape(["html"]),
    trim_blocks=True,
    lstrip_blocks=True,
)


# ── Value helpers ────────────────────────────────────────────────────────


def first_present(record, keys, default=None):
    """Return the value of the first key in ``keys`` that is set on ``record``.

    None and empty strings count as absent; ``0`` and ``False`` do not.
    """
    if not isinstance(record, dict):
        return default
    for key in keys:
        value = record.get(key)
        if value is not None and value != "":
            return value
    return default


def format_number(value) -> str:
    """``3.0`` → ``3``; other values unchanged."""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def format_amount(value) -> str:
    """Group thousands: ``1500`` → ``1,500``, ``1234.5`` → ``1,234.50``."""
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError):
        return str(value)
    if not amount.is_finite():
        return str(value)
    if amount == amount.to_integral_value():
        return f"{int(amount):,}"
    return f"{amount:,.2f}"


def format_long_date(value=None) -> str:
    """``2025-03-01`` → ``March 1, 2025``; unparseable input is returned as-is."""
    if value is None:
        d = datetime.now(timezone.utc).date()
    else:
        d = parse_date(value)
        if d is None:
            return str(value)
    return f"{d:%B} {d.day}, {d.year}"


def _color(workspace: WorkspaceBranding, report_type: ReportType) -> str:
    return workspace.primary_color or DEFAULT_COLORS[report_type]


def _custom_fields(data: dict) -> dict:
    fields = data.get("customFields")
    return fields if isinstance(fields, dict) else {}


def _render(template_file: str, **context) -> Markup:
    return Markup(_env.get_template(template_file).render(**context))


# ── Renderers ────────────────────────────────────────────────────────────


def render_transcript(workspace, report, data) -> Markup:
    student = data.get("student") if isinstance(data.get("student"), dict) else {}
    rows = []
    for result in data.get("results") or []:
        if not isinstance(result, dict):
            continue
        rows.append({
            "code": first_present(result, TRANSCRIPT_ROW_ALIASES["code"], "-"),
            "title": first_present(result, TRANSCRIPT_ROW_ALIASES["title"], "Unknown Course"),
            "credits": format_number(first_present(result, TRANSCRIPT_ROW_ALIASES["credits"], 0)),
            "grade": first_present(result, ("grade",), "-"),
            "points": format_number(first_present(result, TRANSCRIPT_ROW_ALIASES["points"], 0)),
        })

    # gpa / totalCredits are displayed as supplied, never recomputed
    total_credits = first_present(data, ("totalCredits",))
    gpa = first_present(data, ("gpa",))

    return _render(
        "transcript.html",
        workspace=workspace,
        report=report,
        color=_color(workspace, ReportType.TRANSCRIPT),
        student={
            "full_name": first_present(student, ("fullName", "name"), "-"),
            "reg_number": first_present(student, ("regNumber",), "-"),
            "program": first_present(student, ("program",), "-"),
            "intake_year": first_present(student, ("intakeYear",), "-"),
        },
        rows=rows,
        total_credits=format_number(total_credits) if total_credits is not None else "-",
        gpa=format_number(gpa) if gpa is not None else "-",
        custom_fields=_custom_fields(data),
        generated_date=format_long_date(report.generated_at),
    )


def render_certificate(workspace, report, data) -> Markup:
    return _render(
        "certificate.html",
        workspace=workspace,
        report=report,
        color=_color(workspace, ReportType.CERTIFICATE),
        recipient_name=first_present(data, ("recipientName",), ""),
        program_name=first_present(data, ("programName",), ""),
        completion_date=format_long_date(first_present(data, ("completionDate",), report.generated_at)),
        description=first_present(data, ("description",)),
        signatory=first_present(data, ("signatory",)),
        custom_fields=_custom_fields(data),
    )


def render_receipt(workspace, report, data) -> Markup:
    items = []
    raw_items = data.get("items")
    if isinstance(raw_items, list):
        for item in raw_items:
            if not isinstance(item, dict):
                continue
            items.append({
                "label": first_present(item, ("name", "description"), ""),
                "amount": first_present(item, ("amount",), ""),
            })

    return _render(
        "receipt.html",
        workspace=workspace,
        report=report,
        color=_color(workspace, ReportType.RECEIPT),
        recipient_name=first_present(data, ("recipientName",), ""),
        payment_method=first_present(data, ("paymentMethod",), ""),
        transaction_id=first_present(data, ("transactionId",), ""),
        currency=first_present(data, ("currency",), ""),
        amount=format_amount(first_present(data, ("amount",), 0)),
        description=first_present(data, ("description",), ""),
        items=items,
        generated_date=format_long_date(report.generated_at),
    )


def render_attendance(workspace, report, data) -> Markup:
    attendees = []
    for member in data.get("members") or []:
        if not isinstance(member, dict):
            continue
        attendees.append({
            "name": first_present(member, ("name",), ""),
            "email": first_present(member, ("email",), ""),
            "phone": first_present(member, ("phone",), ""),
        })

    return _render(
        "attendance.html",
        workspace=workspace,
        report=report,
        color=_color(workspace, ReportType.ATTENDANCE),
        purpose=first_present(data, ("purpose",), ""),
        attendees=attendees,
        generated_date=first_present(data, ("generatedDate",)) or format_long_date(report.generated_at),
    )


def _generic_value(value):
    if value is None:
        return "N/A", False
    if isinstance(value, bool):
        return ("Yes" if value else "No"), False
    if isinstance(value, (list, tuple)):
        return ", ".join(str(v) for v in value), False
    if isinstance(value, dict):
        return json.dumps(value, indent=2, ensure_ascii=False), False
    text = str(value)
    return text, bool(_IMAGE_VALUE.search(text) or text.startswith("data:image"))


def render_generic(workspace, report, data) -> Markup:
    fields = []
    responses = data.get("responses")
    for label, value in (responses.items() if isinstance(responses, dict) else ()):
        text, is_image = _generic_value(value)
        fields.append({"label": label, "value": text, "is_image": is_image})

    submitted_at = data.get("submittedAt")
    return _render(
        "generic.html",
        workspace=workspace,
        report=report,
        color=_color(workspace, ReportType.GENERIC),
        template_name=data.get("templateName") or "Report",
        submitted_by=data.get("submittedBy") or "",
        submitted_by_email=data.get("submittedByEmail") or "",
        submitted_date=format_long_date(submitted_at) if submitted_at else format_long_date(report.generated_at),
        status=data.get("status") or "SUBMITTED",
        fields=fields,
        generated_date=format_long_date(report.generated_at),
    )


TEMPLATE_REGISTRY = MappingProxyType({
    ReportType.TRANSCRIPT: render_transcript,
    ReportType.CERTIFICATE: render_certificate,
    ReportType.RECEIPT: render_receipt,
    ReportType.ATTENDANCE: render_attendance,
    ReportType.GENERIC: render_generic,
})


def select_template(template_type) -> RenderFn:
    """Return the renderer for ``template_type``; generic when unknown."""
    report_type = ReportType.parse(template_type)
    if report_type is None:
        if template_type:
            logger.info("Unknown report type %r, using generic layout", template_type)
        return render_generic
    return TEMPLATE_REGISTRY[report_type]
