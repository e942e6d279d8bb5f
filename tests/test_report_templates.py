"""
Tests - report layouts and the document shell.

Covers:
    - Renderer selection with generic fallback
    - Transcript rows, defaults, supplied totals, custom fields
    - Certificate recipient/program/stamp
    - Receipt amount grouping and items
    - Attendance roster numbering and count
    - Generic responses (booleans, lists, images, empty)
    - HTML escaping of caller strings
    - Document shell styling
"""

from datetime import datetime, timezone

import pytest

from orgdesk.services.html_renderer import render_document
from orgdesk.services.report_templates import (
    DEFAULT_COLORS,
    first_present,
    format_amount,
    format_long_date,
    format_number,
    render_attendance,
    render_certificate,
    render_generic,
    render_receipt,
    render_transcript,
    select_template,
)
from orgdesk.services.report_types import ReportMetadata, ReportType, WorkspaceBranding

QR = "data:image/png;base64,iVBORw0KGgo="


@pytest.fixture()
def metadata():
    return ReportMetadata(
        reference_number="TR-2025-ABC123",
        generated_at=datetime(2025, 3, 1, 9, 30, tzinfo=timezone.utc),
        qr_code_data_url=QR,
        verification_url="https://verify.test/verify/TR-2025-ABC123",
    )


@pytest.fixture()
def branding():
    return WorkspaceBranding(
        name="Kigali Coding Academy",
        type="TRAINING",
        logo_url="https://cdn.test/logo.png",
        stamp_url="https://cdn.test/stamp.png",
        address="KG 7 Ave",
        motto="Learn by building",
    )


# ═════════════════════════════════════════════════════════════════════════════
# HELPERS
# ═════════════════════════════════════════════════════════════════════════════


class TestHelpers:
    def test_first_present_skips_blank(self):
        assert first_present({"a": "", "b": None, "c": 0}, ("a", "b", "c"), "x") == 0
        assert first_present({}, ("a",), "x") == "x"

    def test_format_number(self):
        assert format_number(3.0) == "3"
        assert format_number(3.5) == "3.5"
        assert format_number("A") == "A"

    @pytest.mark.parametrize("raw,expected", [
        (1500, "1,500"),
        ("250000", "250,000"),
        (1234.5, "1,234.50"),
        ("n/a", "n/a"),
    ])
    def test_format_amount(self, raw, expected):
        assert format_amount(raw) == expected

    def test_format_long_date(self):
        assert format_long_date("2025-03-01") == "March 1, 2025"
        assert format_long_date(datetime(2024, 12, 25)) == "December 25, 2024"
        assert format_long_date("soon") == "soon"


class TestSelection:
    @pytest.mark.parametrize("value,fn", [
        ("TRANSCRIPT", render_transcript),
        ("certificate", render_certificate),
        (ReportType.RECEIPT, render_receipt),
        ("ATTENDANCE", render_attendance),
        ("GENERIC", render_generic),
        ("UNKNOWN_TYPE", render_generic),
        (None, render_generic),
    ])
    def test_select(self, value, fn):
        assert select_template(value) is fn


# ═════════════════════════════════════════════════════════════════════════════
# LAYOUTS
# ═════════════════════════════════════════════════════════════════════════════


class TestTranscript:
    def test_rows_and_totals(self, branding, metadata):
        html = render_transcript(branding, metadata, {
            "student": {"fullName": "Jane Uwase", "regNumber": "REG-1", "program": "SE", "intakeYear": "2024"},
            "results": [
                {"code": "CS101", "title": "Intro", "credits": 3, "grade": "A", "points": 4.0},
                {"courseCode": "CS102", "courseName": "Data", "credit": 4, "grade": "B", "gradePoint": 3},
            ],
            "gpa": 3.5,
            "totalCredits": 7,
        })
        assert html.count('class="result-row"') == 2
        assert "CS102" in html and "Data" in html
        assert "Academic Transcript" in html
        assert "Jane Uwase" in html
        assert '<td class="total-credits" style="text-align: center;">7</td>' in html
        assert '<td class="gpa" style="text-align: center;">3.5</td>' in html
        assert "March 1, 2025" in html
        assert "TR-2025-ABC123" in html
        assert QR in html

    def test_missing_fields_default(self, branding, metadata):
        html = render_transcript(branding, metadata, {"results": [{}]})
        assert "Unknown Course" in html
        assert '<td class="gpa" style="text-align: center;">-</td>' in html

    def test_empty_results(self, branding, metadata):
        html = render_transcript(branding, metadata, {})
        assert "No results recorded." in html
        assert "result-row" not in html

    def test_gpa_not_recomputed(self, branding, metadata):
        html = render_transcript(branding, metadata, {
            "results": [{"credits": 3, "points": 4}],
            "gpa": 2.1,
        })
        assert ">2.1<" in html

    def test_custom_fields(self, branding, metadata):
        html = render_transcript(branding, metadata, {"customFields": {"Mentor": "Eric"}})
        assert "Mentor:" in html and "Eric" in html

    def test_primary_color(self, metadata):
        html = render_transcript(WorkspaceBranding(primary_color="#abcdef"), metadata, {})
        assert "#abcdef" in html


class TestCertificate:
    def test_content(self, branding, metadata):
        html = render_certificate(branding, metadata, {
            "recipientName": "Jane Uwase",
            "programName": "Full-Stack Bootcamp",
            "completionDate": "2025-02-28",
            "signatory": "Dr. Mugisha",
        })
        assert "Certificate of Completion" in html
        assert "Jane Uwase" in html
        assert "Full-Stack Bootcamp" in html
        assert "Completed on: February 28, 2025" in html
        assert "Dr. Mugisha" in html
        assert 'class="stamp"' in html
        assert "ID: TR-2025-ABC123" in html

    def test_default_color_and_no_stamp(self, metadata):
        html = render_certificate(WorkspaceBranding(), metadata, {})
        assert DEFAULT_COLORS[ReportType.CERTIFICATE] in html
        assert 'class="stamp"' not in html


class TestReceipt:
    def test_amount_and_items(self, branding, metadata):
        html = render_receipt(branding, metadata, {
            "recipientName": "Jane Uwase",
            "amount": 150000,
            "currency": "RWF",
            "paymentMethod": "Mobile Money",
            "transactionId": "TX-1",
            "items": [{"name": "Tuition", "amount": 100000}, {"description": "Books", "amount": 50000}],
        })
        assert "RWF 150,000" in html
        assert html.count('class="item-row"') == 2
        assert "Books" in html
        assert "Mobile Money" in html
        assert "#TR-2025-ABC123" in html
        assert "Thank you for your payment!" in html

    def test_items_absent(self, branding, metadata):
        html = render_receipt(branding, metadata, {"amount": 10, "items": "oops"})
        assert 'class="items"' not in html


class TestAttendance:
    def test_roster(self, branding, metadata):
        html = render_attendance(branding, metadata, {
            "purpose": "Weekly Standup",
            "members": [
                {"name": "Jane", "email": "jane@example.com", "phone": "1"},
                {"name": "Eric", "email": "eric@example.com", "phone": "2"},
            ],
        })
        assert html.count('class="attendee-row"') == 2
        assert "<td>2</td>" in html
        assert "<strong>Total Attendees:</strong> 2" in html
        assert "Weekly Standup" in html


class TestGeneric:
    def test_responses(self, branding, metadata):
        html = render_generic(branding, metadata, {
            "templateName": "Health Check",
            "submittedBy": "Jane",
            "submittedByEmail": "jane@example.com",
            "responses": {
                "Vaccinated": True,
                "Symptoms": ["cough", "fever"],
                "Photo": "https://cdn.test/p.jpg",
                "Notes": None,
            },
        })
        assert 'class="report-title"' in html and "Health Check" in html
        assert "Yes" in html
        assert "cough, fever" in html
        assert '<img src="https://cdn.test/p.jpg" alt="Image">' in html
        assert "N/A" in html
        assert html.count('class="field-row"') == 4

    def test_no_responses(self, branding, metadata):
        html = render_generic(branding, metadata, {"templateName": "Empty"})
        assert "No data submitted." in html

    def test_caller_strings_escaped(self, branding, metadata):
        html = render_generic(branding, metadata, {
            "templateName": "<script>alert(1)</script>",
            "responses": {"x": "<b>bold</b>"},
        })
        assert "<script>" not in html
        assert "&lt;script&gt;" in html
        assert "&lt;b&gt;bold&lt;/b&gt;" in html


class TestDocumentShell:
    def test_wraps_markup(self, branding, metadata):
        body = render_certificate(branding, metadata, {"recipientName": "Jane"})
        doc = render_document(body, title="Certificate")
        assert doc.lstrip().lower().startswith("<!doctype html>")
        assert "<title>Certificate</title>" in doc
        assert "Times New Roman" in doc
        assert "1px solid #000" in doc
        assert 'class="report certificate"' in doc

    def test_plain_string_escaped(self):
        doc = render_document("<p>raw</p>")
        assert "&lt;p&gt;raw&lt;/p&gt;" in doc
