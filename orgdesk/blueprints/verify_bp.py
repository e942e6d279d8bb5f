"""
Report verification - the target of every QR code.

    GET /verify/<reference_number>          HTML page (404 page when unknown
                                            or malformed)
    GET /api/v1/verify/<reference_number>   JSON: 400 malformed, 404 unknown

Only the public report view is exposed; internal ids never leave here.
"""

import logging

from flask import Blueprint, jsonify, render_template

from orgdesk.services.reference_service import is_valid_reference_number
from orgdesk.services.report_service import get_report_by_reference
from orgdesk.services.report_templates import format_long_date
from orgdesk.utils.errors import E, api_error

logger = logging.getLogger(__name__)

verify_page_bp = Blueprint("verify_page_bp", __name__)
verify_bp = Blueprint("verify_bp", __name__, url_prefix="/api/v1")


def _not_found_page(reference_number=None):
    return render_template("verify_not_found.html", reference_number=reference_number), 404


@verify_page_bp.route("/verify/<reference_number>", methods=["GET"])
def verify_page(reference_number):
    if not is_valid_reference_number(reference_number):
        return _not_found_page()
    report = get_report_by_reference(reference_number)
    if report is None:
        logger.info("Verification miss", extra={"reference_number": reference_number})
        return _not_found_page(reference_number)

    public = report.to_public_dict()
    return render_template(
        "verify.html",
        report=public,
        generated_on=format_long_date(report.created_at) if report.created_at else "-",
    )


@verify_bp.route("/verify/<reference_number>", methods=["GET"])
def verify_report(reference_number):
    if not is_valid_reference_number(reference_number):
        return api_error(E.VALIDATION_INVALID, "Invalid reference number format")
    report = get_report_by_reference(reference_number)
    if report is None:
        return api_error(E.NOT_FOUND, "Report not found")
    return jsonify(report.to_public_dict()), 200
