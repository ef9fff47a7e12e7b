"""
Test Fixtures
In-memory stores and fakes so the app runs without a database or network
"""

import uuid
from datetime import datetime
from typing import Dict, List, Optional

import pytest
from fastapi.testclient import TestClient
from PIL import Image

from fibq_certify.auth import create_access_token
from fibq_certify.main import create_app
from fibq_certify.schemas.certificate import CertificateData, CertificateStatus
from fibq_certify.schemas.presets import default_elements
from fibq_certify.schemas.template import CertificateTemplate
from fibq_certify.services.activity_log_service import ActivityLogService
from fibq_certify.services.errors import ImageLoadError
from fibq_certify.services.export_service import ExportService
from fibq_certify.services.image_loader import ImageLoader
from fibq_certify.services.rasterizer import CanvasRasterizer
from fibq_certify.services.record_store import CertificateStore, TemplateStore


class InMemoryTemplateStore(TemplateStore):
    def __init__(self, templates: List[CertificateTemplate] = None):
        self.templates: Dict[str, CertificateTemplate] = {t.id: t for t in templates or []}
        self.default_id: Optional[str] = None
        self.fail_saves = False
        self.fail_deletes = False

    async def get(self, template_id):
        return self.templates.get(template_id)

    async def list(self):
        return list(self.templates.values())

    async def save(self, template):
        if self.fail_saves:
            raise RuntimeError("store unavailable")
        self.templates[template.id] = template
        return template

    async def delete(self, template_id):
        if self.fail_deletes:
            raise RuntimeError("store unavailable")
        return self.templates.pop(template_id, None) is not None

    async def set_default(self, template_id):
        self.default_id = template_id

    async def get_default_id(self):
        return self.default_id


class InMemoryCertificateStore(CertificateStore):
    def __init__(self):
        self.certificates: Dict[str, CertificateData] = {}

    async def get(self, number_or_id):
        wanted = number_or_id.strip().upper()
        for certificate in self.certificates.values():
            if certificate.id == number_or_id or (certificate.certificate_number or "").upper() == wanted:
                return certificate
        return None

    async def list(self, search=None, limit=50, offset=0):
        certificates = list(self.certificates.values())
        if search:
            needle = search.strip().lower()
            certificates = [
                c for c in certificates
                if needle in (c.certificate_number or "").lower()
                or needle in (c.trainee_name or "").lower()
                or needle in (c.training_program_name or "").lower()
            ]
        return certificates[offset:offset + limit], len(certificates)

    async def save(self, certificate):
        if not certificate.id:
            certificate = certificate.model_copy(update={
                "id": str(uuid.uuid4()),
                "created_at": datetime.utcnow(),
            })
        self.certificates[certificate.id] = certificate
        return certificate

    async def delete(self, certificate_id):
        return self.certificates.pop(certificate_id, None) is not None

    async def update_status(self, certificate_id, status):
        certificate = self.certificates.get(certificate_id)
        if certificate is None:
            return None
        certificate = certificate.model_copy(update={"status": CertificateStatus(status)})
        self.certificates[certificate_id] = certificate
        return certificate

    async def count(self, since=None):
        if since is None:
            return len(self.certificates)
        return sum(
            1 for c in self.certificates.values()
            if c.created_at is not None and c.created_at >= since
        )


class FakeActivityLog(ActivityLogService):
    def __init__(self):
        super().__init__(database=None)
        self.entries: List[dict] = []

    async def log_activity(self, admin_id, action, resource_type=None, resource_id=None,
                           details=None, ip_address=None):
        entry = {
            "id": str(uuid.uuid4()),
            "admin_id": admin_id,
            "action": action,
            "resource_type": resource_type,
            "resource_id": resource_id,
            "details": details,
            "ip_address": ip_address,
            "created_at": datetime.utcnow(),
        }
        self.entries.append(entry)
        return entry["id"]

    async def get_recent_activity(self, limit=50, offset=0, action_filter=None, days=30):
        entries = [e for e in reversed(self.entries) if not action_filter or e["action"] == action_filter]
        return entries[offset:offset + limit], len(entries)


class StubImageLoader(ImageLoader):
    """Serves a solid swatch for every source, or fails every load"""

    def __init__(self, fail: bool = False):
        super().__init__()
        self.fail = fail
        self.requested: List[str] = []

    async def load(self, source):
        self.requested.append(source)
        if self.fail:
            raise ImageLoadError(f"Image could not be fetched: {source}")
        return Image.new("RGBA", (40, 60), (30, 120, 200, 255))


@pytest.fixture
def template_store():
    return InMemoryTemplateStore()


@pytest.fixture
def certificate_store():
    return InMemoryCertificateStore()


@pytest.fixture
def activity_log():
    return FakeActivityLog()


@pytest.fixture
def image_loader():
    return StubImageLoader()


@pytest.fixture
def export_service(image_loader):
    return ExportService(image_loader=image_loader, rasterizer=CanvasRasterizer(scale=1))


@pytest.fixture
def user_template():
    return CertificateTemplate(
        id="custom-1690000000000",
        name="Board Room",
        accent_color="#1E3A5F",
        elements=default_elements(),
    )


@pytest.fixture
def sample_certificate():
    return CertificateData(
        certificate_number="FIBQ-A1B2-C3D4",
        trainee_name="John Smith",
        training_program_name="Advanced Fire Safety",
        date_of_issue="2024-06-15",
        atc_code="ATC-0042",
    )


@pytest.fixture
def app(template_store, certificate_store, export_service, activity_log):
    return create_app(
        template_store=template_store,
        certificate_store=certificate_store,
        export_service=export_service,
        activity_log=activity_log,
    )


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def admin_headers():
    token = create_access_token({
        "email": "admin@fibq.org",
        "user_id": "admin-1",
        "is_admin": True,
    })
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def user_headers():
    token = create_access_token({
        "email": "viewer@fibq.org",
        "user_id": "viewer-1",
        "is_admin": False,
    })
    return {"Authorization": f"Bearer {token}"}
