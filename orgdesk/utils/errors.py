"""Standardised API error responses.

Usage
-----
    from orgdesk.utils.errors import api_error, E

    return api_error(E.NOT_FOUND, "Form assignment not found")
    return api_error(E.VALIDATION_REQUIRED, "Missing required report fields")
    return api_error(E.CONVERSION, "Failed to generate PDF", details="...")
"""

from __future__ import annotations

from flask import jsonify


# ── Error code constants ──────────────────────────────────────────────
class E:
    """Machine-readable error code constants (``ERR_`` prefix)."""

    # Validation – HTTP 400
    VALIDATION_REQUIRED = "ERR_VALIDATION_REQUIRED"
    VALIDATION_INVALID = "ERR_VALIDATION_INVALID"

    # Business rule – HTTP 422
    VALIDATION_CONSTRAINT = "ERR_VALIDATION_CONSTRAINT"

    # Not-found – HTTP 404
    NOT_FOUND = "ERR_NOT_FOUND"

    # Inactive resource – HTTP 403
    FORBIDDEN = "ERR_FORBIDDEN"

    # Conflict – HTTP 409
    CONFLICT_STATE = "ERR_CONFLICT_STATE"

    # Server – HTTP 500
    CONVERSION = "ERR_CONVERSION"
    DATABASE = "ERR_DATABASE"
    INTERNAL = "ERR_INTERNAL"


# ── Default HTTP status mapping ───────────────────────────────────────
_DEFAULT_STATUS: dict[str, int] = {
    E.VALIDATION_REQUIRED: 400,
    E.VALIDATION_INVALID: 400,
    E.VALIDATION_CONSTRAINT: 422,
    E.NOT_FOUND: 404,
    E.FORBIDDEN: 403,
    E.CONFLICT_STATE: 409,
    E.CONVERSION: 500,
    E.DATABASE: 500,
    E.INTERNAL: 500,
}


def api_error(
    code: str,
    message: str,
    *,
    status: int | None = None,
    details=None,
):
    """Return a standard JSON error response.

    Parameters
    ----------
    code : str
        Machine-readable error code (use ``E.*`` constants).
    message : str
        Human-readable explanation, returned as ``error``.
    status : int, optional
        HTTP status override.  Falls back to ``_DEFAULT_STATUS[code]``,
        then to ``400``.
    details : dict | str, optional
        Extra payload (field breakdown, short conversion failure reason).

    Returns
    -------
    tuple[Response, int]
        ``(jsonify(body), http_status)`` – drop-in for Flask views.
    """
    http_status = status or _DEFAULT_STATUS.get(code, 400)

    body: dict = {
        "error": message,
        "code": code,
    }
    if details:
        body["details"] = details

    return jsonify(body), http_status
