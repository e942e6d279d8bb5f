"""
Tests - POST /api/v1/export-pdf.
"""

import base64
from unittest.mock import patch

from orgdesk.core.exceptions import ConversionError
from orgdesk.models.report import Report
from orgdesk.services.reference_service import is_valid_reference_number


def _report_data(**overrides):
    data = {
        "templateName": "Health Assessment",
        "submittedBy": "Jane Uwase",
        "submittedByEmail": "jane@example.com",
        "responses": {"Hours of sleep": 7, "Notes": "Fine"},
    }
    data.update(overrides)
    return data


class TestExportPdf:
    def test_success(self, client, pdf_converter):
        res = client.post("/api/v1/export-pdf", json={"reportData": _report_data()})
        assert res.status_code == 200
        body = res.get_json()

        assert body["success"] is True
        assert base64.b64decode(body["pdf"]) == b"%PDF-1.4 fake"
        assert body["size"] == len(b"%PDF-1.4 fake")
        assert body["filename"].startswith("health_assessment_")
        assert body["filename"].endswith(".pdf")
        assert is_valid_reference_number(body["referenceNumber"])
        assert "Hours of sleep" in pdf_converter.documents[0]

    def test_report_recorded(self, client):
        res = client.post("/api/v1/export-pdf", json={"reportData": _report_data()})
        ref = res.get_json()["referenceNumber"]

        report = Report.query.filter_by(reference_number=ref).one()
        assert report.type == "GENERIC"
        assert report.template_name == "Health Assessment"
        assert report.issued_to == "Jane Uwase"
        assert report.generated_by == "jane@example.com"
        assert report.verification_url == f"https://verify.test/verify/{ref}"

    def test_custom_filename(self, client):
        res = client.post("/api/v1/export-pdf", json={"reportData": _report_data(), "filename": "mine.pdf"})
        assert res.get_json()["filename"] == "mine.pdf"

    def test_workspace_branding(self, client, workspace, pdf_converter):
        res = client.post("/api/v1/export-pdf", json={
            "reportData": _report_data(templateType="CERTIFICATE", recipientName="Jane Uwase"),
            "workspaceId": workspace["id"],
        })
        assert res.status_code == 200
        html = pdf_converter.documents[0]
        assert "Kigali Coding Academy" in html
        assert "#123456" in html
        assert res.get_json()["referenceNumber"].startswith("CE-")

        report = Report.query.one()
        assert report.workspace_id == workspace["id"]

    def test_unknown_workspace_still_renders(self, client):
        res = client.post("/api/v1/export-pdf", json={"reportData": _report_data(), "workspaceId": 999})
        assert res.status_code == 200
        assert Report.query.one().workspace_id is None

    def test_report_data_required(self, client):
        res = client.post("/api/v1/export-pdf", json={})
        assert res.status_code == 400
        assert res.get_json()["error"] == "Report data is required"

    def test_missing_required_fields(self, client, pdf_converter):
        res = client.post("/api/v1/export-pdf", json={"reportData": {"templateName": "X"}})
        assert res.status_code == 400
        body = res.get_json()
        assert body["details"]["missing"] == ["submittedBy", "submittedByEmail"]
        assert pdf_converter.documents == []
        assert Report.query.count() == 0

    def test_conversion_failure(self, client, app):
        class Broken:
            def convert(self, html):
                raise ConversionError("PDF conversion failed", details="Timeout 30000ms exceeded.")

        app.extensions["pdf_converter"] = Broken()
        res = client.post("/api/v1/export-pdf", json={"reportData": _report_data()})
        assert res.status_code == 500
        assert res.get_json() == {
            "error": "Failed to generate PDF",
            "code": "ERR_CONVERSION",
            "details": "Timeout 30000ms exceeded.",
        }
        assert Report.query.count() == 0

    def test_empty_pdf(self, client, pdf_converter):
        pdf_converter.result = b""
        res = client.post("/api/v1/export-pdf", json={"reportData": _report_data()})
        assert res.status_code == 500
        assert res.get_json()["details"] == "Generated PDF is empty"

    def test_non_json_rejected(self, client):
        res = client.post("/api/v1/export-pdf", data="reportData", content_type="text/plain")
        assert res.status_code == 415

    def test_request_id_header(self, client):
        res = client.post("/api/v1/export-pdf", json={"reportData": _report_data()})
        assert res.headers.get("X-Request-ID")
        assert res.headers.get("X-Request-Duration-Ms")

    def test_generic_layout_without_type(self, client, pdf_converter):
        res = client.post("/api/v1/export-pdf", json={"reportData": {
            "templateName": "Site Visit",
            "submittedBy": "Jane Uwase",
            "submittedByEmail": "jane@example.com",
        }})
        assert res.status_code == 200
        assert res.get_json()["referenceNumber"].startswith("GE-")
        assert 'class="report-title"' in pdf_converter.documents[0]

    def test_unknown_type_uses_generic_layout(self, client, pdf_converter):
        res = client.post("/api/v1/export-pdf", json={
            "reportData": _report_data(templateType="MINISTRY_REPORT"),
        })
        assert res.status_code == 200
        assert Report.query.one().type == "GENERIC"
        assert "Health Assessment" in pdf_converter.documents[0]


class TestExportBrandingImages:
    def test_foreign_logo_never_fetched(self, client, app, pdf_converter):
        app.config["REPORT_INLINE_ASSETS"] = True
        try:
            with patch("orgdesk.services.asset_service.requests.get") as fetch:
                res = client.post("/api/v1/export-pdf", json={"reportData": _report_data(
                    workspace={"name": "Acme", "logoUrl": "http://169.254.169.254/latest/meta-data/"},
                )})
        finally:
            app.config["REPORT_INLINE_ASSETS"] = False

        assert res.status_code == 200
        fetch.assert_not_called()
        assert "http://169.254.169.254/latest/meta-data/" in pdf_converter.documents[0]
