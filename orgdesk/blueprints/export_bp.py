"""
Single-report PDF export.

    POST /api/v1/export-pdf
        body: {reportData: {...}, filename?: str, workspaceId?: int}
        200:  {success, filename, pdf (base64), size, referenceNumber}
        400:  reportData missing, or templateName / submittedBy /
              submittedByEmail missing
        500:  {error: "Failed to generate PDF", details}

The generated document is recorded in the Report registry so its QR code
resolves at /verify/<reference_number>.
"""

import base64
import logging

from flask import Blueprint, current_app, g, jsonify, request
from werkzeug.exceptions import HTTPException

from orgdesk.core.exceptions import ConversionError, ValidationError
from orgdesk.services.pdf_service import get_pdf_converter
from orgdesk.services.report_service import default_filename, generate_report_pdf, record_report
from orgdesk.services.report_types import ReportRequest
from orgdesk.utils.errors import E, api_error
from orgdesk.utils.helpers import db_commit_or_error

logger = logging.getLogger(__name__)

export_bp = Blueprint("export_bp", __name__, url_prefix="/api/v1")


@export_bp.errorhandler(ValidationError)
def _handle_validation(error: ValidationError):
    logger.warning("PDF export rejected: %s %s", error, error.details)
    return api_error(E.VALIDATION_REQUIRED, str(error), details=error.details)


@export_bp.errorhandler(ConversionError)
def _handle_conversion(error: ConversionError):
    return api_error(E.CONVERSION, "Failed to generate PDF", details=error.details)


@export_bp.errorhandler(Exception)
def _handle_unexpected(error: Exception):
    if isinstance(error, HTTPException):
        return error
    logger.exception("Unexpected error in export_bp endpoint=%s", request.endpoint)
    return api_error(E.INTERNAL, "Failed to generate PDF", details="Unexpected server error")


@export_bp.route("/export-pdf", methods=["POST"])
def export_pdf():
    body = request.get_json(silent=True)
    if not isinstance(body, dict):
        body = {}
    report_data = body.get("reportData")
    if not isinstance(report_data, dict) or not report_data:
        return api_error(E.VALIDATION_REQUIRED, "Report data is required")

    report_request = ReportRequest.from_dict(report_data)
    workspace_id = body.get("workspaceId")

    generated = generate_report_pdf(
        report_request,
        workspace_id=workspace_id,
        base_url=current_app.config["PUBLIC_BASE_URL"],
        converter=get_pdf_converter(current_app),
        inline_assets=current_app.config.get("REPORT_INLINE_ASSETS", False),
        asset_hosts=current_app.config.get("REPORT_ASSET_HOSTS", ()),
    )
    g.reference_number = generated.metadata.reference_number

    record_report(
        generated,
        template_name=report_request.template_name,
        workspace_id=workspace_id,
        issued_to=report_request.submitted_by,
        generated_by=report_request.submitted_by_email,
    )
    err = db_commit_or_error()
    if err:
        return err

    filename = body.get("filename") or default_filename(report_request.template_name)
    return jsonify({
        "success": True,
        "filename": filename,
        "pdf": base64.b64encode(generated.pdf).decode("ascii"),
        "size": generated.size,
        "referenceNumber": generated.metadata.reference_number,
    }), 200
