"""
HTTP endpoint tests
"""

import asyncio

import httpx
import pytest
from fastapi.testclient import TestClient

from fibq_certify.auth import hash_password
from fibq_certify.database import get_database
from fibq_certify.main import create_app
from fibq_certify.schemas.certificate import CertificateData
from fibq_certify.services.export_service import ExportService
from fibq_certify.services.rasterizer import CanvasRasterizer

from conftest import StubImageLoader

CERTIFICATE = {
    "certificateNumber": "FIBQ-A1B2-C3D4",
    "traineeName": "John Smith",
    "trainingProgramName": "Advanced Fire Safety",
    "dateOfIssue": "2024-06-15",
    "certificateType": "trainee",
}


class FakeDatabase:
    def __init__(self, users):
        self.users = users
        self.executed = []

    async def fetch_one(self, query, values=None):
        return self.users.get(values["email"])

    async def execute(self, query, values=None):
        self.executed.append((query, values))


@pytest.fixture
def issued(client, admin_headers):
    response = client.post("/admin/certificates", json=CERTIFICATE, headers=admin_headers)
    assert response.status_code == 201
    return response.json()


@pytest.fixture
def custom_template(client, admin_headers):
    response = client.post(
        "/admin/templates",
        json={"name": "Ceremony", "borderStyle": "ornate"},
        headers=admin_headers,
    )
    assert response.status_code == 201
    return response.json()


def test_health(client):
    response = client.get("/api/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_verify_issued_certificate(client, issued):
    response = client.get("/verify", params={"number": " fibq-a1b2-c3d4 "})

    assert response.status_code == 200
    body = response.json()
    assert body["certificateNumber"] == "FIBQ-A1B2-C3D4"
    assert body["isValid"] is True
    assert body["verificationUrl"].endswith("/verify?number=FIBQ-A1B2-C3D4")
    assert body["certificateTypeLabel"] == "Trainee Certificate"
    assert body["certificate"]["traineeName"] == "John Smith"


def test_verify_errors(client):
    assert client.get("/verify", params={"number": "   "}).status_code == 400
    assert client.get("/verify", params={"number": "garbage"}).status_code == 404
    assert client.get("/verify", params={"number": "FIBQ-ZZZZ-9999"}).status_code == 404


def test_revoked_certificate_reports_invalid(client, issued, admin_headers):
    response = client.patch(
        f"/admin/certificates/{issued['id']}/status",
        json={"status": "revoked"},
        headers=admin_headers,
    )
    assert response.status_code == 200

    body = client.get("/verify", params={"number": "FIBQ-A1B2-C3D4"}).json()
    assert body["status"] == "revoked"
    assert body["isValid"] is False


def test_admin_routes_require_a_token(client, user_headers):
    assert client.get("/admin/templates").status_code in (401, 403)
    assert client.get("/admin/templates", headers=user_headers).status_code == 403
    assert client.get(
        "/admin/templates", headers={"Authorization": "Bearer not-a-token"}
    ).status_code == 401


def test_list_templates(client, admin_headers):
    response = client.get("/admin/templates", headers=admin_headers)

    assert response.status_code == 200
    body = response.json()
    assert body["total"] == 4
    assert body["defaultTemplateId"] == "classic-gold"
    assert body["templates"][0]["showQRCode"] is True


def test_placeholders_route_is_not_a_template_id(client, admin_headers):
    response = client.get("/admin/templates/placeholders", headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["certificateTypes"]["trainer"] == "Certified Trainer Certificate"


def test_system_template_cannot_be_deleted(client, admin_headers):
    response = client.delete("/admin/templates/classic-gold", headers=admin_headers)
    assert response.status_code == 403


def test_user_template_can_be_deleted(client, admin_headers, custom_template, activity_log):
    response = client.delete(f"/admin/templates/{custom_template['id']}", headers=admin_headers)
    assert response.status_code == 204
    assert client.get(f"/admin/templates/{custom_template['id']}", headers=admin_headers).status_code == 404
    assert [e["action"] for e in activity_log.entries] == ["create_template", "delete_template"]


def test_editor_add_and_drag(client, admin_headers, custom_template):
    template_id = custom_template["id"]

    added = client.post(
        f"/admin/templates/{template_id}/elements", json={"type": "seal"}, headers=admin_headers
    )
    assert added.status_code == 201
    body = added.json()
    element_id = body["selectedElementId"]
    assert "cursor: grab" in body["canvasHtml"]

    # Default editor display scale is 0.7: 56 screen px is 10% of 800 design px
    dragged = client.post(
        f"/admin/templates/{template_id}/elements/{element_id}/drag",
        json={"startX": 100, "startY": 100, "endX": 156, "endY": 100},
        headers=admin_headers,
    )
    assert dragged.status_code == 200
    moved = [e for e in dragged.json()["template"]["elements"] if e["id"] == element_id][0]
    assert moved["x"] == pytest.approx(60)
    assert moved["y"] == pytest.approx(50)

    stored = client.get(f"/admin/templates/{template_id}", headers=admin_headers).json()
    assert [e for e in stored["elements"] if e["id"] == element_id][0]["x"] == pytest.approx(60)


def test_editor_update_duplicate_delete(client, admin_headers, custom_template):
    template_id = custom_template["id"]

    updated = client.patch(
        f"/admin/templates/{template_id}/elements/trainee-name",
        json={"fontSize": 32, "color": "#8B4513"},
        headers=admin_headers,
    )
    assert updated.status_code == 200
    name = [e for e in updated.json()["template"]["elements"] if e["id"] == "trainee-name"][0]
    assert name["fontSize"] == 32

    invalid = client.patch(
        f"/admin/templates/{template_id}/elements/trainee-name",
        json={"fontWeight": "heavy"},
        headers=admin_headers,
    )
    assert invalid.status_code == 422

    duplicated = client.post(
        f"/admin/templates/{template_id}/elements/trainee-name/duplicate", headers=admin_headers
    ).json()
    copy_id = duplicated["selectedElementId"]
    assert copy_id != "trainee-name"

    deleted = client.delete(f"/admin/templates/{template_id}/elements/{copy_id}", headers=admin_headers)
    assert deleted.status_code == 200
    assert deleted.json()["selectedElementId"] is None
    assert copy_id not in [e["id"] for e in deleted.json()["template"]["elements"]]


def test_editor_on_system_template_is_refused(client, admin_headers):
    response = client.post(
        "/admin/templates/classic-gold/elements", json={"type": "text"}, headers=admin_headers
    )
    assert response.status_code == 403


def test_editor_canvas_html(client, admin_headers):
    response = client.get(
        "/admin/templates/classic-gold/editor",
        params={"selected": "seal", "displayScale": 0.5},
        headers=admin_headers,
    )
    assert response.status_code == 200
    assert 'data-mode="edit"' in response.text
    assert "scale(0.5)" in response.text
    assert "outline: 2px solid #3B82F6" in response.text


def test_invalid_certificate_is_rejected(client, admin_headers):
    response = client.post(
        "/admin/certificates",
        json={**CERTIFICATE, "certificateNumber": "FIBQ-12"},
        headers=admin_headers,
    )
    assert response.status_code == 422


def test_duplicate_certificate_number(client, admin_headers, issued):
    response = client.post("/admin/certificates", json=CERTIFICATE, headers=admin_headers)
    assert response.status_code == 409


def test_generated_codes(client, admin_headers):
    number = client.get("/admin/certificates/generate-number", headers=admin_headers).json()["value"]
    atc = client.get("/admin/certificates/generate-atc", headers=admin_headers).json()["value"]
    assert number.startswith("FIBQ-")
    assert atc.startswith("ATC-")


def test_dashboard(client, admin_headers, issued):
    response = client.get("/admin/dashboard", headers=admin_headers)
    assert response.status_code == 200
    body = response.json()
    assert body["totalCertificates"] == 1
    assert body["activeTemplates"] == 4
    assert body["recentCertificates"][0]["certificateNumber"] == "FIBQ-A1B2-C3D4"
    assert body["recentActivity"][0]["action"] == "create_certificate"


def test_public_preview_html(client, issued):
    response = client.get("/certificates/FIBQ-A1B2-C3D4/preview")
    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/html")
    assert response.headers["cache-control"] == "no-cache, no-store, must-revalidate"
    assert 'data-mode="preview"' in response.text
    assert "John Smith" in response.text
    assert "15 / 06 / 2024" in response.text


def test_png_download(client, issued):
    response = client.get("/certificates/FIBQ-A1B2-C3D4/export.png")
    assert response.status_code == 200
    assert response.headers["content-type"] == "image/png"
    assert response.headers["content-disposition"] == 'attachment; filename="certificate-FIBQ-A1B2-C3D4.png"'
    assert response.content[:8] == b"\x89PNG\r\n\x1a\n"


def test_pdf_download(client, issued):
    response = client.get("/certificates/FIBQ-A1B2-C3D4/export.pdf")
    assert response.status_code == 200
    assert response.headers["content-type"] == "application/pdf"
    assert response.content.startswith(b"%PDF")


def test_qr_code_png(client, issued):
    response = client.get("/certificates/FIBQ-A1B2-C3D4/qrcode.png", params={"size": 120})
    assert response.status_code == 200
    assert response.headers["content-type"] == "image/png"


def test_draft_preview_requires_admin(client, admin_headers):
    assert client.post("/preview", json=CERTIFICATE).status_code in (401, 403)
    response = client.post("/preview", json={"traineeName": "Draft Person"}, headers=admin_headers)
    assert response.status_code == 200
    assert "Draft Person" in response.text


def test_export_with_unloadable_photo(template_store, certificate_store, activity_log, admin_headers):
    exporter = ExportService(image_loader=StubImageLoader(fail=True), rasterizer=CanvasRasterizer(scale=1))
    client = TestClient(create_app(
        template_store=template_store,
        certificate_store=certificate_store,
        export_service=exporter,
        activity_log=activity_log,
    ))

    response = client.post(
        "/export/png",
        json={**CERTIFICATE, "traineePhoto": "https://elsewhere.example/photo.jpg"},
        headers=admin_headers,
    )

    assert response.status_code == 502
    assert "content-disposition" not in response.headers
    assert len(exporter.stage) == 0


def test_login(app, client):
    database = FakeDatabase({
        "admin@fibq.org": {
            "id": "admin-1",
            "email": "admin@fibq.org",
            "password_hash": hash_password("correct horse"),
            "full_name": "Admin",
            "is_admin": True,
            "is_active": True,
        }
    })

    async def override_database():
        return database

    app.dependency_overrides[get_database] = override_database

    bad = client.post("/auth/login", json={"email": "admin@fibq.org", "password": "wrong"})
    assert bad.status_code == 401

    good = client.post("/auth/login", json={"email": "admin@fibq.org", "password": "correct horse"})
    assert good.status_code == 200
    token = good.json()["access_token"]
    assert good.json()["is_admin"] is True
    assert len(database.executed) == 1

    me = client.get("/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert me.json() == {"email": "admin@fibq.org", "user_id": "admin-1", "is_admin": True}


def test_activity_logs(client, admin_headers, issued, custom_template):
    response = client.get("/admin/activity-logs", headers=admin_headers)
    assert response.status_code == 200
    body = response.json()
    assert body["total"] == 2
    assert body["has_more"] is False
    assert [log["action"] for log in body["logs"]] == ["create_template", "create_certificate"]
    assert body["logs"][1]["details"] == {"certificate_number": "FIBQ-A1B2-C3D4"}

    filtered = client.get(
        "/admin/activity-logs", params={"action": "create_template", "limit": 1}, headers=admin_headers
    ).json()
    assert filtered["total"] == 1
    assert filtered["logs"][0]["resource_id"] == custom_template["id"]


def test_externally_numbered_certificate_can_be_downloaded(client, certificate_store):
    certificate_store.certificates["legacy-1"] = CertificateData(
        id="legacy-1", certificate_number="LEGACY-0001", trainee_name="Ada Obi"
    )

    assert client.get("/verify", params={"number": "legacy-0001"}).json()["certificateNumber"] == "LEGACY-0001"
    response = client.get("/certificates/LEGACY-0001/export.png")
    assert response.status_code == 200
    assert response.headers["content-disposition"] == 'attachment; filename="certificate-LEGACY-0001.png"'


async def test_concurrent_public_downloads_both_succeed(app, certificate_store):
    await certificate_store.save(CertificateData(certificate_number="FIBQ-A1B2-C3D4", trainee_name="John Smith"))

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as http:
        responses = await asyncio.gather(
            http.get("/certificates/FIBQ-A1B2-C3D4/export.png"),
            http.get("/certificates/FIBQ-A1B2-C3D4/export.pdf"),
        )

    assert [r.status_code for r in responses] == [200, 200]
    assert responses[1].content.startswith(b"%PDF")


def test_template_values_that_escape_inline_styles_are_rejected(client, admin_headers):
    response = client.post(
        "/admin/templates",
        json={"name": "Sneaky", "backgroundImage": "x.png'); background: url('https://evil.example/"},
        headers=admin_headers,
    )
    assert response.status_code == 422

    response = client.post(
        "/admin/templates",
        json={"name": "Sneaky", "accentColor": "#000; position: fixed"},
        headers=admin_headers,
    )
    assert response.status_code == 422
