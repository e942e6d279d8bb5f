"""
Member profile → report payload mapping for batch generation.

Profile data is free-form (keys are form field ids or whatever the workspace
registration form used), so values are located with ordered candidate keys:

    1. exact match on the key or its normalised form (``reg_no`` → ``regno``)
    2. substring match on any profile key, for candidates longer than 3 chars

Registration field ids are first copied to their labels so ``field_17`` can
be found as ``Registration Number``.
"""

import re
from datetime import datetime, timezone

from orgdesk.services.reference_service import generate_reference_number
from orgdesk.services.report_types import ReportType

_NON_ALNUM = re.compile(r"[^a-z0-9]")

REG_NUMBER_KEYS = ("regNumber", "registrationNumber", "regNo", "studentId", "idNumber", "matricNumber")
PROGRAM_KEYS = ("program", "course", "degree", "department", "major")
INTAKE_KEYS = ("intakeYear", "year", "admissionYear", "cohort")

CERT_PROGRAM_KEYS = ("programName", "program", "course", "training", "workshop")
CERT_DATE_KEYS = ("completionDate", "date", "finishedAt")
CERT_DESCRIPTION_KEYS = ("description", "summary", "details")

AMOUNT_KEYS = ("amount", "total", "price", "cost")
CURRENCY_KEYS = ("currency", "code")
METHOD_KEYS = ("paymentMethod", "method", "type")
TRANSACTION_KEYS = ("transactionId", "txnId", "reference")
RECEIPT_DESCRIPTION_KEYS = ("description", "for", "reason")

# Keys consumed by a layout; everything else scalar becomes a custom field.
_STANDARD_KEYS = {
    ReportType.TRANSCRIPT: REG_NUMBER_KEYS + PROGRAM_KEYS + INTAKE_KEYS + ("results", "gpa", "totalCredits"),
    ReportType.CERTIFICATE: CERT_PROGRAM_KEYS + CERT_DATE_KEYS + CERT_DESCRIPTION_KEYS + ("signatory",),
    ReportType.RECEIPT: AMOUNT_KEYS + CURRENCY_KEYS + METHOD_KEYS + TRANSACTION_KEYS
    + RECEIPT_DESCRIPTION_KEYS + ("items",),
}

DEFAULT_ATTENDANCE_PURPOSE = "Attendance Record"
DEFAULT_CURRENCY = "RWF"
DEFAULT_PAYMENT_METHOD = "Cash"
DEFAULT_RECEIPT_DESCRIPTION = "Payment received"
DEFAULT_PROGRAM_NAME = "Program"


def normalize_key(key) -> str:
    return _NON_ALNUM.sub("", str(key).lower())


def _present(value) -> bool:
    return value is not None and value != ""


def get_value(data: dict, candidates):
    """Return the first value found for ``candidates``; None when nothing matches."""
    for key in candidates:
        for lookup_key in (normalize_key(key), key):
            if _present(data.get(lookup_key)):
                return data[lookup_key]

    fuzzy = [c.lower() for c in candidates if len(c) > 3]
    for key, value in data.items():
        lower_key = str(key).lower()
        if _present(value) and any(c in lower_key for c in fuzzy):
            return value
    return None


def label_profile(profile, registration_fields) -> dict:
    """Copy field-id keyed values under their label and normalised label."""
    labelled = dict(profile) if isinstance(profile, dict) else {}
    labels = {
        f["id"]: f["label"]
        for f in registration_fields or []
        if isinstance(f, dict) and f.get("id") and f.get("label")
    }
    for key, value in list(labelled.items()):
        label = labels.get(key)
        if label:
            labelled[label] = value
            labelled[normalize_key(label)] = value
    return labelled


def _custom_fields(data: dict, report_type: ReportType) -> dict:
    standard = [normalize_key(k) for k in _STANDARD_KEYS[report_type]]
    custom = {}
    for key, value in data.items():
        if str(key).startswith("field_"):
            continue
        if any(sk in normalize_key(key) for sk in standard):
            continue
        if isinstance(value, (dict, list)):
            continue
        custom[key] = value
    return custom


def map_member_payload(report_type: ReportType, member_name: str, profile: dict,
                       template_data: dict | None = None, now=None) -> dict:
    """Build the renderer payload for one member.

    ``template_data`` (shared across the batch) overrides profile values.
    """
    now = now or datetime.now(timezone.utc)
    data = {**(profile or {}), **(template_data or {})}

    if report_type == ReportType.TRANSCRIPT:
        return {
            "student": {
                "fullName": member_name,
                "regNumber": get_value(data, REG_NUMBER_KEYS) or "N/A",
                "program": get_value(data, PROGRAM_KEYS) or "N/A",
                "intakeYear": get_value(data, INTAKE_KEYS) or str(now.year),
            },
            "results": data.get("results") or [],
            "gpa": data.get("gpa"),
            "totalCredits": data.get("totalCredits"),
            "customFields": _custom_fields(data, report_type),
        }

    if report_type == ReportType.CERTIFICATE:
        return {
            "recipientName": member_name,
            "programName": get_value(data, CERT_PROGRAM_KEYS) or DEFAULT_PROGRAM_NAME,
            "completionDate": get_value(data, CERT_DATE_KEYS) or now.isoformat(),
            "description": get_value(data, CERT_DESCRIPTION_KEYS),
            "signatory": data.get("signatory"),
            "customFields": _custom_fields(data, report_type),
        }

    if report_type == ReportType.RECEIPT:
        return {
            "recipientName": member_name,
            "amount": get_value(data, AMOUNT_KEYS) or 0,
            "currency": get_value(data, CURRENCY_KEYS) or DEFAULT_CURRENCY,
            "paymentMethod": get_value(data, METHOD_KEYS) or DEFAULT_PAYMENT_METHOD,
            "transactionId": get_value(data, TRANSACTION_KEYS) or generate_reference_number("TX", now=now),
            "description": get_value(data, RECEIPT_DESCRIPTION_KEYS) or DEFAULT_RECEIPT_DESCRIPTION,
            "items": data.get("items"),
            "customFields": _custom_fields(data, report_type),
        }

    return data


def attendance_payload(members, template_data: dict | None = None) -> dict:
    """One roster for all ``members``."""
    template_data = template_data or {}
    return {
        "purpose": template_data.get("purpose") or DEFAULT_ATTENDANCE_PURPOSE,
        "members": [
            {
                "name": m.name or "Unknown",
                "email": m.email or "No Email",
                "phone": m.phone or "N/A",
            }
            for m in members
        ],
    }
