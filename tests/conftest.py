"""
Shared pytest fixtures for the Orgdesk test suite.

Provides:
    - app: Flask application (session-scoped)
    - _setup_db: Database table creation/teardown (session-scoped)
    - session: Per-test app context + table recreate (autouse)
    - pdf_converter: in-memory converter registered on the app (autouse)
    - client: Flask test client (function-scoped)
    - workspace / member / form_template / assignment: API-created entities

No test launches a browser unless ORGDESK_CHROMIUM_TESTS=1.
"""

import pytest

from orgdesk import create_app
from orgdesk.models import db as _db

FAKE_PDF = b"%PDF-1.4 fake"


class FakeConverter:
    """Stands in for PdfConverter; keeps every document it was given."""

    timeout_ms = 1000

    def __init__(self, result=FAKE_PDF):
        self.result = result
        self.documents = []

    def convert(self, html):
        self.documents.append(html)
        return self.result


# ── App & DB fixtures ────────────────────────────────────────────────────


@pytest.fixture(scope="session")
def app():
    """Create the Flask application once per test session."""
    return create_app("testing")


@pytest.fixture(scope="session")
def _setup_db(app):
    """Create all tables at session start, drop at end."""
    with app.app_context():
        _db.create_all()
    yield
    with app.app_context():
        _db.drop_all()


@pytest.fixture(autouse=True)
def session(app, _setup_db):
    """Per-test: open app context, rollback after test, recreate tables."""
    with app.app_context():
        yield
        _db.session.rollback()
        _db.drop_all()
        _db.create_all()


@pytest.fixture(autouse=True)
def pdf_converter(app):
    converter = FakeConverter()
    original = app.extensions.get("pdf_converter")
    app.extensions["pdf_converter"] = converter
    yield converter
    app.extensions["pdf_converter"] = original


@pytest.fixture()
def client(app):
    """Flask test client."""
    return app.test_client()


# ── Convenience fixtures ─────────────────────────────────────────────────


@pytest.fixture()
def workspace(client):
    """Create and return a TRAINING workspace via the API."""
    res = client.post("/api/v1/workspaces", json={
        "name": "Kigali Coding Academy",
        "type": "TRAINING",
        "address": "KG 7 Ave, Kigali",
        "motto": "Learn by building",
        "primaryColor": "#123456",
        "registrationFields": [
            {"id": "field_1", "label": "Registration Number", "type": "text"},
            {"id": "field_2", "label": "Program", "type": "text"},
        ],
    })
    assert res.status_code == 201
    return res.get_json()


@pytest.fixture()
def member(client, workspace):
    res = client.post(f"/api/v1/workspaces/{workspace['id']}/members", json={
        "name": "Jane Uwase",
        "email": "jane@example.com",
        "phone": "+250 788 000 111",
        "profileData": {
            "field_1": "REG-2024-001",
            "field_2": "Software Engineering",
            "intakeYear": "2024",
            "password": "hunter2",
            "favouriteColour": "green",
        },
    })
    assert res.status_code == 201
    return res.get_json()


@pytest.fixture()
def form_template(client, workspace):
    res = client.post(f"/api/v1/workspaces/{workspace['id']}/form-templates", json={
        "name": "Health Assessment",
        "description": "Weekly check-in",
        "fields": [
            {"id": "sleep", "label": "Hours of sleep", "type": "number", "required": True},
            {"id": "notes", "label": "Notes", "type": "textarea"},
        ],
    })
    assert res.status_code == 201
    return res.get_json()


@pytest.fixture()
def assign_form(client, workspace, member, form_template):
    """Factory: assign the form template to the member; kwargs extend the body."""

    def _assign(**kw):
        payload = {"templateId": form_template["id"], "assignedBy": "admin@example.com"}
        payload.update(kw)
        res = client.post(
            f"/api/v1/workspaces/{workspace['id']}/members/{member['id']}/assign-form",
            json=payload,
        )
        assert res.status_code == 201, res.get_json()
        return res.get_json()["assignment"]

    return _assign


@pytest.fixture()
def assignment(assign_form):
    return assign_form()
