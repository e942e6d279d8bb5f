"""
Member profile helpers for public (unauthenticated) display.

sanitize_profile_data drops keys that look sensitive.  Only top-level keys
are inspected; a sensitive value nested inside an object is passed through.
"""

import json
import re

SENSITIVE_FIELDS = (
    "password",
    "ssn",
    "social_security",
    "tax_id",
    "bank_account",
    "credit_card",
    "internal_id",
    "employee_id",
)

PERSONAL_FIELDS = (
    "name", "first_name", "last_name", "full_name",
    "date_of_birth", "dob", "age", "gender",
)
CONTACT_FIELDS = (
    "email", "phone", "mobile", "address", "city",
    "state", "country", "zip", "postal_code",
)

_CAMEL_BOUNDARY = re.compile(r"([A-Z])")
_SEPARATORS = re.compile(r"[_-]")


def _matches(key: str, needles) -> bool:
    lower_key = key.lower()
    return any(needle in lower_key for needle in needles)


def sanitize_profile_data(profile_data) -> dict:
    """Return a copy of ``profile_data`` without sensitive top-level keys."""
    if not isinstance(profile_data, dict):
        return {}
    return {
        key: value
        for key, value in profile_data.items()
        if not _matches(str(key), SENSITIVE_FIELDS)
    }


def organize_profile_data(profile_data: dict) -> dict:
    """Group profile fields into ``personal``, ``contact`` and ``additional``."""
    personal, contact, additional = {}, {}, {}
    for key, value in (profile_data or {}).items():
        if _matches(key, PERSONAL_FIELDS):
            personal[key] = value
        elif _matches(key, CONTACT_FIELDS):
            contact[key] = value
        else:
            additional[key] = value
    return {"personal": personal, "contact": contact, "additional": additional}


def format_field_name(field_name: str) -> str:
    """``first_name`` / ``firstName`` → ``First Name``."""
    spaced = _CAMEL_BOUNDARY.sub(r" \1", field_name or "")
    spaced = _SEPARATORS.sub(" ", spaced)
    words = [w[:1].upper() + w[1:].lower() for w in spaced.split(" ") if w]
    return " ".join(words)


def format_field_value(value) -> str:
    if value is None:
        return "Not provided"
    if isinstance(value, bool):
        return "Yes" if value else "No"
    if isinstance(value, (list, tuple)):
        return ", ".join(str(v) for v in value)
    if isinstance(value, dict):
        return json.dumps(value, indent=2, ensure_ascii=False)
    return str(value)
