"""
Report reference numbers.

Format: ``AA-YYYY-XXXXXX``
    AA      first two letters of the report type, upper-cased
    YYYY    current calendar year
    XXXXXX  six random base-36 characters, upper-cased

Example: ``TR-2025-A3F9K2``

Uniqueness is probabilistic only; issued numbers are not checked against
the Report table before use.
"""

from __future__ import annotations

import re
import secrets
import string
from datetime import datetime, timezone

REFERENCE_PATTERN = re.compile(r"^[A-Z]{2}-\d{4}-[A-Z0-9]{6}$")

_BASE36 = string.digits + string.ascii_lowercase
_SUFFIX_LEN = 6
_PREFIX_FILL = "X"


def _prefix(report_type: str) -> str:
    letters = [c for c in (report_type or "") if c.isascii() and c.isalpha()]
    return "".join(letters[:2]).upper().ljust(2, _PREFIX_FILL)


def _random_suffix(length: int = _SUFFIX_LEN) -> str:
    raw = "".join(secrets.choice(_BASE36) for _ in range(length))
    return raw.upper().ljust(length, "0")


def generate_reference_number(report_type: str, now: datetime | None = None) -> str:
    """Return a fresh reference number for a report of ``report_type``.

    Non-letter characters in ``report_type`` are skipped; fewer than two
    letters are padded with ``X`` so the result always validates.
    """
    year = (now or datetime.now(timezone.utc)).year
    return f"{_prefix(report_type)}-{year:04d}-{_random_suffix()}"


def is_valid_reference_number(reference_number) -> bool:
    """True when ``reference_number`` has the ``AA-YYYY-XXXXXX`` shape."""
    if not isinstance(reference_number, str):
        return False
    return REFERENCE_PATTERN.match(reference_number) is not None
