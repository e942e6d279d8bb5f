"""Shared blueprint helpers.

get_or_404:          tuple-return lookup by primary key
get_by_slug_or_404:  tuple-return lookup by public slug
parse_date:          lenient date parsing (None on bad input)
parse_flag:          strict JSON boolean fields
db_commit_or_error:  commit with uniform error responses
"""
import logging
from datetime import date, datetime

from flask import jsonify

from orgdesk.core.exceptions import ValidationError
from orgdesk.models import db

logger = logging.getLogger(__name__)


def get_or_404(model, pk, label=None):
    """Fetch a model instance by primary key or return a 404 error tuple.

    - Success: (obj, None)
    - Failure: (None, (jsonify_response, 404))

        obj, err = get_or_404(Workspace, workspace_id)
        if err:
            return err
    """
    label = label or model.__name__
    obj = db.session.get(model, pk)
    if not obj:
        return None, (jsonify({"error": f"{label} not found"}), 404)
    return obj, None


def get_by_slug_or_404(model, slug, label=None):
    """Same contract as get_or_404, keyed on ``public_slug``."""
    label = label or model.__name__
    obj = model.query.filter_by(public_slug=slug).first()
    if not obj:
        return None, (jsonify({"error": f"{label} not found"}), 404)
    return obj, None


def parse_date(value):
    """Parse a date string (ISO or DD.MM.YYYY) to a date object.

    Returns None for empty/invalid input. Supports:
    - YYYY-MM-DD
    - YYYY-MM-DDTHH:MM:SS (datetime ISO → .date())
    - DD.MM.YYYY
    """
    if not value:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value))
    except (ValueError, TypeError):
        pass
    try:
        return datetime.fromisoformat(str(value).replace("Z", "+00:00")).date()
    except (ValueError, TypeError):
        pass
    try:
        return datetime.strptime(str(value), "%d.%m.%Y").date()
    except (ValueError, TypeError):
        return None


def parse_flag(data, key, default=False):
    """Read a JSON boolean from ``data``; None/absent gives ``default``.

    Raises:
        ValidationError: the value is present but not a boolean
            (``"false"`` or ``0`` would otherwise be misread).
    """
    value = data.get(key)
    if value is None:
        return default
    if not isinstance(value, bool):
        raise ValidationError(f"{key} must be a boolean", details={key: value})
    return value


def db_commit_or_error():
    """Commit the current session, returning an error response on failure.

    Returns:
        None on success.
        (response, status_code) tuple on failure - ready for ``return``.

    IntegrityError → 409 (duplicate slug / reference number)
    OperationalError → 500
    """
    from sqlalchemy.exc import IntegrityError, OperationalError

    try:
        db.session.commit()
        return None
    except IntegrityError as exc:
        db.session.rollback()
        logger.warning("Integrity error on commit: %s", exc.orig)
        return jsonify({"error": "Duplicate or constraint violation"}), 409
    except OperationalError:
        db.session.rollback()
        logger.exception("Database operational error on commit")
        return jsonify({"error": "Database error"}), 500
