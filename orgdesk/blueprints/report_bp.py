"""
Batch report generation for workspace members.

    POST /api/v1/workspaces/<workspace_id>/reports/generate
        body: {reportType, memberIds: [int], templateData?: {...}}

        one report    → application/pdf
        several       → application/zip (one PDF per member)

    ATTENDANCE produces a single roster for all selected members.
"""

import logging

from flask import Blueprint, Response, current_app, request
from werkzeug.exceptions import HTTPException

from orgdesk.core.exceptions import ConversionError, NotFoundError, ValidationError
from orgdesk.models import db
from orgdesk.models.workspace import Workspace
from orgdesk.services.batch_report_service import build_zip, generate_workspace_reports
from orgdesk.services.pdf_service import get_pdf_converter
from orgdesk.utils.errors import E, api_error
from orgdesk.utils.helpers import db_commit_or_error, get_or_404

logger = logging.getLogger(__name__)

report_bp = Blueprint("report_bp", __name__, url_prefix="/api/v1")


@report_bp.errorhandler(ValidationError)
def _handle_validation(error: ValidationError):
    return api_error(E.VALIDATION_REQUIRED, str(error), details=error.details)


@report_bp.errorhandler(NotFoundError)
def _handle_not_found(error: NotFoundError):
    db.session.rollback()
    return api_error(E.NOT_FOUND, f"No {error.resource.lower()}s found")


@report_bp.errorhandler(ConversionError)
def _handle_conversion(error: ConversionError):
    db.session.rollback()
    return api_error(E.CONVERSION, "Failed to generate reports", details=error.details)


@report_bp.errorhandler(Exception)
def _handle_unexpected(error: Exception):
    if isinstance(error, HTTPException):
        return error
    db.session.rollback()
    logger.exception("Unexpected error in report_bp endpoint=%s", request.endpoint)
    return api_error(E.INTERNAL, "Failed to generate reports", details="Unexpected server error")


def _attachment(body: bytes, mimetype: str, filename: str) -> Response:
    return Response(
        body,
        mimetype=mimetype,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@report_bp.route("/workspaces/<int:workspace_id>/reports/generate", methods=["POST"])
def generate_reports(workspace_id):
    workspace, err = get_or_404(Workspace, workspace_id)
    if err:
        return err

    body = request.get_json(silent=True)
    if not isinstance(body, dict):
        body = {}

    files = generate_workspace_reports(
        workspace,
        body.get("reportType"),
        body.get("memberIds"),
        body.get("templateData"),
        base_url=current_app.config["PUBLIC_BASE_URL"],
        converter=get_pdf_converter(current_app),
        generated_by=body.get("generatedBy"),
        inline_assets=current_app.config.get("REPORT_INLINE_ASSETS", False),
        asset_hosts=current_app.config.get("REPORT_ASSET_HOSTS", ()),
    )
    err = db_commit_or_error()
    if err:
        return err

    if len(files) == 1:
        return _attachment(files[0].generated.pdf, "application/pdf", files[0].filename)

    report_type = str(body.get("reportType")).strip().upper()
    return _attachment(build_zip(files), "application/zip", f"{report_type}_Reports.zip")
