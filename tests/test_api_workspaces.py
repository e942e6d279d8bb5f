"""
Tests - workspace administration API.
"""

import re

from orgdesk.models.workspace import ReportTemplate


class TestWorkspaces:
    def test_create(self, workspace):
        assert workspace["slug"] == "kigali-coding-academy"
        assert workspace["type"] == "TRAINING"
        assert workspace["primary_color"] == "#123456"

    def test_slug_deduplicated(self, client, workspace):
        res = client.post("/api/v1/workspaces", json={"name": "Kigali Coding Academy", "type": "GENERAL"})
        assert res.status_code == 201
        assert res.get_json()["slug"] == "kigali-coding-academy-1"

    def test_detail(self, client, workspace, member):
        res = client.get(f"/api/v1/workspaces/{workspace['id']}")
        assert res.status_code == 200
        body = res.get_json()
        assert body["member_count"] == 1
        assert body["registration_fields"][0]["label"] == "Registration Number"

    def test_list(self, client, workspace):
        res = client.get("/api/v1/workspaces")
        body = res.get_json()
        assert body["total"] == 1
        assert [w["slug"] for w in body["items"]] == ["kigali-coding-academy"]

    def test_name_and_type_required(self, client):
        res = client.post("/api/v1/workspaces", json={"name": "X"})
        assert res.status_code == 400
        assert res.get_json()["error"] == "Name and type are required"

    def test_invalid_type(self, client):
        res = client.post("/api/v1/workspaces", json={"name": "X", "type": "CIRCUS"})
        assert res.status_code == 400
        assert "CIRCUS" in res.get_json()["error"]

    def test_not_found(self, client):
        assert client.get("/api/v1/workspaces/999").status_code == 404


class TestMembers:
    def test_create(self, member):
        assert re.match(r"^jane-uwase-[a-z0-9]{6}$", member["public_slug"])
        assert member["role"] == "MEMBER"

    def test_required(self, client, workspace):
        res = client.post(f"/api/v1/workspaces/{workspace['id']}/members", json={"name": "No Email"})
        assert res.status_code == 400
        assert res.get_json()["error"] == "Name and email are required"

    def test_list(self, client, workspace, member):
        res = client.get(f"/api/v1/workspaces/{workspace['id']}/members")
        assert [m["name"] for m in res.get_json()["items"]] == ["Jane Uwase"]


class TestReportTemplates:
    def test_single_default(self, client, workspace):
        url = f"/api/v1/workspaces/{workspace['id']}/report-templates"
        first = client.post(url, json={"name": "A", "templateType": "transcript", "isDefault": True})
        second = client.post(url, json={"name": "B", "templateType": "RECEIPT", "isDefault": True})
        assert first.status_code == 201 and second.status_code == 201
        assert first.get_json()["template_type"] == "TRANSCRIPT"

        defaults = ReportTemplate.query.filter_by(workspace_id=workspace["id"], is_default=True).all()
        assert [t.name for t in defaults] == ["B"]

    def test_default_layout_used_by_export(self, client, workspace):
        client.post(f"/api/v1/workspaces/{workspace['id']}/report-templates",
                    json={"name": "Receipts", "templateType": "RECEIPT", "isDefault": True})
        res = client.post("/api/v1/export-pdf", json={
            "reportData": {"templateName": "Fees", "submittedBy": "J", "submittedByEmail": "j@example.com"},
            "workspaceId": workspace["id"],
        })
        assert res.get_json()["referenceNumber"].startswith("RE-")

    def test_invalid_type(self, client, workspace):
        res = client.post(f"/api/v1/workspaces/{workspace['id']}/report-templates",
                          json={"name": "A", "templateType": "POSTER"})
        assert res.status_code == 400


class TestAssignForm:
    def test_assign(self, client, workspace, member, form_template):
        res = client.post(
            f"/api/v1/workspaces/{workspace['id']}/members/{member['id']}/assign-form",
            json={"templateId": form_template["id"], "assignedBy": "admin@example.com", "dueDate": "2025-06-30"},
        )
        assert res.status_code == 201
        body = res.get_json()
        slug = body["assignment"]["public_slug"]
        assert slug.startswith("jane-uwase-health-assessment-")
        assert body["publicUrl"] == f"/forms/assignments/{slug}"
        assert body["assignment"]["status"] == "PENDING"
        assert body["assignment"]["due_date"] == "2025-06-30"

    def test_required(self, client, workspace, member):
        res = client.post(
            f"/api/v1/workspaces/{workspace['id']}/members/{member['id']}/assign-form",
            json={"assignedBy": "admin@example.com"},
        )
        assert res.status_code == 400
        assert res.get_json()["error"] == "Template ID and assignedBy are required"

    def test_unknown_member(self, client, workspace, form_template):
        res = client.post(
            f"/api/v1/workspaces/{workspace['id']}/members/999/assign-form",
            json={"templateId": form_template["id"], "assignedBy": "admin@example.com"},
        )
        assert res.status_code == 404
        assert res.get_json()["error"] == "Member not found"

    def test_member_assignments(self, client, workspace, member, assignment):
        res = client.get(f"/api/v1/workspaces/{workspace['id']}/members/{member['id']}/assignments")
        body = res.get_json()
        assert body["total"] == 1
        assert [a["public_slug"] for a in body["items"]] == [assignment["public_slug"]]

    def test_member_assignments_paginated(self, client, workspace, member, assign_form):
        first = assign_form(allowMultiple=True)
        second = assign_form()
        url = f"/api/v1/workspaces/{workspace['id']}/members/{member['id']}/assignments"

        body = client.get(f"{url}?limit=1&offset=1").get_json()
        assert body["total"] == 2
        assert [a["id"] for a in body["items"]] == [second["id"]]
        assert first["allow_multiple"] is True

    def test_allow_multiple_must_be_boolean(self, client, workspace, member, form_template):
        res = client.post(
            f"/api/v1/workspaces/{workspace['id']}/members/{member['id']}/assign-form",
            json={"templateId": form_template["id"], "assignedBy": "admin@example.com", "allowMultiple": "yes"},
        )
        assert res.status_code == 400
        assert res.get_json()["error"] == "allowMultiple must be a boolean"

    def test_patch_is_active_string_rejected(self, client, workspace, assignment):
        res = client.patch(
            f"/api/v1/workspaces/{workspace['id']}/assignments/{assignment['id']}",
            json={"isActive": "false"},
        )
        assert res.status_code == 422
        assert res.get_json()["details"] == {"isActive": "false"}


class TestFormTemplates:
    def test_is_active_string_rejected(self, client, workspace):
        res = client.post(f"/api/v1/workspaces/{workspace['id']}/form-templates",
                          json={"name": "Intake", "isActive": "false"})
        assert res.status_code == 400
        assert res.get_json()["error"] == "isActive must be a boolean"

    def test_is_active_false(self, client, workspace):
        res = client.post(f"/api/v1/workspaces/{workspace['id']}/form-templates",
                          json={"name": "Intake", "isActive": False})
        assert res.status_code == 201
        assert res.get_json()["is_active"] is False

    def test_list_paginated(self, client, workspace, form_template):
        url = f"/api/v1/workspaces/{workspace['id']}/form-templates"
        client.post(url, json={"name": "Exit Survey"})

        body = client.get(f"{url}?limit=1").get_json()
        assert body["total"] == 2
        assert [t["name"] for t in body["items"]] == ["Health Assessment"]


class TestReportTemplateList:
    def test_list_paginated(self, client, workspace):
        url = f"/api/v1/workspaces/{workspace['id']}/report-templates"
        client.post(url, json={"name": "A", "templateType": "TRANSCRIPT"})
        client.post(url, json={"name": "B", "templateType": "RECEIPT"})

        body = client.get(f"{url}?offset=1").get_json()
        assert body["total"] == 2
        assert [t["name"] for t in body["items"]] == ["B"]

    def test_is_default_must_be_boolean(self, client, workspace):
        res = client.post(f"/api/v1/workspaces/{workspace['id']}/report-templates",
                          json={"name": "A", "templateType": "TRANSCRIPT", "isDefault": "true"})
        assert res.status_code == 400
