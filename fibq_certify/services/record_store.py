"""
Record Stores
Persistence for templates and certificates behind small async interfaces

The services only talk to these interfaces, so tests and scripts can swap
the database-backed stores for in-memory ones.
"""

import json
import uuid
from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional, Tuple

from databases import Database

from fibq_certify.schemas.certificate import CertificateData, CertificateStatus
from fibq_certify.schemas.template import CertificateTemplate

TEMPLATE_COLUMNS = (
    "id", "name", "background_color", "accent_color", "background_image",
    "border_style", "width", "height", "show_seal", "show_qr_code",
    "elements", "is_system", "is_default",
)

CERTIFICATE_COLUMNS = (
    "id", "certificate_number", "certificate_type", "status",
    "trainee_name", "trainee_photo", "trainer_name", "trainer_photo",
    "center_name", "center_logo", "certificate_title", "training_program_name",
    "atc_code", "date_of_issue", "place_of_issue", "expiry_date",
    "chairperson_name", "chairperson_title", "legal_disclaimer",
    "show_seal", "show_qr_code", "template_id",
)


class TemplateStore(ABC):
    @abstractmethod
    async def get(self, template_id: str) -> Optional[CertificateTemplate]:
        ...

    @abstractmethod
    async def list(self) -> List[CertificateTemplate]:
        ...

    @abstractmethod
    async def save(self, template: CertificateTemplate) -> CertificateTemplate:
        """Insert or replace the whole template"""

    @abstractmethod
    async def delete(self, template_id: str) -> bool:
        ...

    @abstractmethod
    async def set_default(self, template_id: str) -> None:
        ...

    @abstractmethod
    async def get_default_id(self) -> Optional[str]:
        ...


class CertificateStore(ABC):
    @abstractmethod
    async def get(self, number_or_id: str) -> Optional[CertificateData]:
        ...

    @abstractmethod
    async def list(
        self, search: Optional[str] = None, limit: int = 50, offset: int = 0
    ) -> Tuple[List[CertificateData], int]:
        ...

    @abstractmethod
    async def save(self, certificate: CertificateData) -> CertificateData:
        """Insert, or update when a certificate with the same id exists"""

    @abstractmethod
    async def delete(self, certificate_id: str) -> bool:
        ...

    @abstractmethod
    async def update_status(self, certificate_id: str, status: CertificateStatus) -> Optional[CertificateData]:
        ...

    @abstractmethod
    async def count(self, since: Optional[datetime] = None) -> int:
        ...


def _parse_json(value) -> list:
    if isinstance(value, str):
        try:
            return json.loads(value)
        except json.JSONDecodeError:
            return []
    return value or []


def template_from_row(row) -> CertificateTemplate:
    data = dict(row)
    data["elements"] = _parse_json(data.get("elements"))
    return CertificateTemplate.model_validate(data)


def template_to_params(template: CertificateTemplate) -> dict:
    params = template.model_dump(mode="json", exclude={"elements"})
    params["elements"] = json.dumps(
        [element.model_dump(mode="json", by_alias=True) for element in template.elements]
    )
    return {column: params.get(column) for column in TEMPLATE_COLUMNS}


class DatabaseTemplateStore(TemplateStore):
    def __init__(self, database: Database):
        self.database = database

    async def get(self, template_id: str) -> Optional[CertificateTemplate]:
        row = await self.database.fetch_one(
            f"SELECT {', '.join(TEMPLATE_COLUMNS)} FROM certificate_templates WHERE id = :id",
            {"id": template_id}
        )
        return template_from_row(row) if row else None

    async def list(self) -> List[CertificateTemplate]:
        rows = await self.database.fetch_all(
            f"SELECT {', '.join(TEMPLATE_COLUMNS)} FROM certificate_templates ORDER BY created_at ASC"
        )
        return [template_from_row(row) for row in rows]

    async def save(self, template: CertificateTemplate) -> CertificateTemplate:
        params = template_to_params(template)
        existing = await self.database.fetch_one(
            "SELECT id FROM certificate_templates WHERE id = :id", {"id": template.id}
        )
        if existing:
            assignments = ", ".join(f"{column} = :{column}" for column in TEMPLATE_COLUMNS if column != "id")
            await self.database.execute(
                f"UPDATE certificate_templates SET {assignments}, updated_at = CURRENT_TIMESTAMP WHERE id = :id",
                params
            )
        else:
            await self.database.execute(
                f"""
                INSERT INTO certificate_templates ({', '.join(TEMPLATE_COLUMNS)})
                VALUES ({', '.join(':' + column for column in TEMPLATE_COLUMNS)})
                """,
                params
            )
        return template

    async def delete(self, template_id: str) -> bool:
        existing = await self.database.fetch_one(
            "SELECT id FROM certificate_templates WHERE id = :id", {"id": template_id}
        )
        if not existing:
            return False
        await self.database.execute(
            "DELETE FROM certificate_templates WHERE id = :id", {"id": template_id}
        )
        return True

    async def set_default(self, template_id: str) -> None:
        async with self.database.transaction():
            await self.database.execute(
                "UPDATE certificate_templates SET is_default = :off WHERE is_default = :on",
                {"off": False, "on": True}
            )
            await self.database.execute(
                "UPDATE certificate_templates SET is_default = :on WHERE id = :id",
                {"on": True, "id": template_id}
            )

    async def get_default_id(self) -> Optional[str]:
        row = await self.database.fetch_one(
            "SELECT id FROM certificate_templates WHERE is_default = :on", {"on": True}
        )
        return row["id"] if row else None


def certificate_from_row(row) -> CertificateData:
    return CertificateData.model_validate(dict(row))


class DatabaseCertificateStore(CertificateStore):
    SELECT = f"SELECT {', '.join(CERTIFICATE_COLUMNS)}, created_at, updated_at FROM certificates"

    def __init__(self, database: Database):
        self.database = database

    async def get(self, number_or_id: str) -> Optional[CertificateData]:
        row = await self.database.fetch_one(
            f"{self.SELECT} WHERE id = :value OR UPPER(certificate_number) = :number",
            {"value": number_or_id, "number": number_or_id.strip().upper()}
        )
        return certificate_from_row(row) if row else None

    async def list(
        self, search: Optional[str] = None, limit: int = 50, offset: int = 0
    ) -> Tuple[List[CertificateData], int]:
        where_clause = "1 = 1"
        params = {}
        if search:
            where_clause = (
                "(LOWER(certificate_number) LIKE :search OR LOWER(trainee_name) LIKE :search"
                " OR LOWER(training_program_name) LIKE :search)"
            )
            params["search"] = f"%{search.strip().lower()}%"

        count_result = await self.database.fetch_one(
            f"SELECT COUNT(*) as count FROM certificates WHERE {where_clause}", params
        )
        total = count_result["count"] if count_result else 0

        rows = await self.database.fetch_all(
            f"{self.SELECT} WHERE {where_clause} ORDER BY created_at DESC LIMIT :limit OFFSET :offset",
            {**params, "limit": limit, "offset": offset}
        )
        return [certificate_from_row(row) for row in rows], total

    async def save(self, certificate: CertificateData) -> CertificateData:
        if not certificate.id:
            certificate = certificate.model_copy(update={"id": str(uuid.uuid4())})
        params = certificate.model_dump(mode="json")
        params = {column: params.get(column) for column in CERTIFICATE_COLUMNS}

        existing = await self.database.fetch_one(
            "SELECT id FROM certificates WHERE id = :id", {"id": certificate.id}
        )
        if existing:
            assignments = ", ".join(f"{column} = :{column}" for column in CERTIFICATE_COLUMNS if column != "id")
            await self.database.execute(
                f"UPDATE certificates SET {assignments}, updated_at = CURRENT_TIMESTAMP WHERE id = :id",
                params
            )
        else:
            await self.database.execute(
                f"""
                INSERT INTO certificates ({', '.join(CERTIFICATE_COLUMNS)})
                VALUES ({', '.join(':' + column for column in CERTIFICATE_COLUMNS)})
                """,
                params
            )
        return await self.get(certificate.id)

    async def delete(self, certificate_id: str) -> bool:
        existing = await self.database.fetch_one(
            "SELECT id FROM certificates WHERE id = :id", {"id": certificate_id}
        )
        if not existing:
            return False
        await self.database.execute("DELETE FROM certificates WHERE id = :id", {"id": certificate_id})
        return True

    async def update_status(self, certificate_id: str, status: CertificateStatus) -> Optional[CertificateData]:
        await self.database.execute(
            "UPDATE certificates SET status = :status, updated_at = CURRENT_TIMESTAMP WHERE id = :id",
            {"status": CertificateStatus(status).value, "id": certificate_id}
        )
        return await self.get(certificate_id)

    async def count(self, since: Optional[datetime] = None) -> int:
        if since is None:
            row = await self.database.fetch_one("SELECT COUNT(*) as count FROM certificates")
        else:
            row = await self.database.fetch_one(
                "SELECT COUNT(*) as count FROM certificates WHERE created_at >= :since",
                {"since": since}
            )
        return row["count"] if row else 0
