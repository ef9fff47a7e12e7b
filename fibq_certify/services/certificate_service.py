"""
Certificate Service
Business logic for issuing, editing and verifying certificates
"""

import logging
import secrets
import string
from datetime import datetime
from typing import Optional

from fastapi import HTTPException, status

from fibq_certify.schemas.certificate import (
    CertificateCreateRequest,
    CertificateData,
    CertificateListResponse,
    CertificateStatus,
)
from fibq_certify.schemas.presets import default_certificate_data
from fibq_certify.services.record_store import CertificateStore

logger = logging.getLogger(__name__)

NUMBER_ALPHABET = string.ascii_uppercase + string.digits

# Text fields a new certificate inherits from the defaults when left empty
DEFAULTED_FIELDS = (
    "certificate_title",
    "chairperson_name",
    "chairperson_title",
    "legal_disclaimer",
    "place_of_issue",
    "template_id",
)


def generate_certificate_number() -> str:
    """Random FIBQ-XXXX-XXXX number, always uppercase"""
    first = "".join(secrets.choice(NUMBER_ALPHABET) for _ in range(4))
    second = "".join(secrets.choice(NUMBER_ALPHABET) for _ in range(4))
    return f"FIBQ-{first}-{second}"


def generate_atc_code() -> str:
    return f"ATC-{secrets.randbelow(10000):04d}"


def with_defaults(data: CertificateCreateRequest) -> CertificateData:
    defaults = default_certificate_data()
    updates = {
        name: getattr(defaults, name)
        for name in DEFAULTED_FIELDS
        if not getattr(data, name)
    }
    return CertificateData.model_validate(data.model_dump()).model_copy(update=updates)


class CertificateService:
    """Service for certificate records"""

    def __init__(self, store: CertificateStore):
        self.store = store

    async def _call_store(self, action: str, coroutine):
        try:
            return await coroutine
        except HTTPException:
            raise
        except Exception:
            logger.exception("Failed to %s certificate", action)
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Failed to {action} certificate"
            )

    async def _ensure_number_free(self, number: str, certificate_id: Optional[str] = None) -> None:
        existing = await self._call_store("load", self.store.get(number))
        if existing and existing.id != certificate_id:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=f"Certificate number {number} already exists"
            )

    async def create_certificate(self, data: CertificateCreateRequest) -> CertificateData:
        await self._ensure_number_free(data.certificate_number)
        certificate = with_defaults(data).model_copy(update={"id": None, "status": CertificateStatus.VALID})
        saved = await self._call_store("create", self.store.save(certificate))
        logger.info("Issued certificate %s", saved.certificate_number)
        return saved

    async def get_certificate(self, certificate_id: str) -> CertificateData:
        certificate = await self._call_store("load", self.store.get(certificate_id))
        if not certificate:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Certificate not found"
            )
        return certificate

    async def list_certificates(
        self, search: Optional[str] = None, limit: int = 50, offset: int = 0
    ) -> CertificateListResponse:
        certificates, total = await self._call_store("list", self.store.list(search, limit, offset))
        return CertificateListResponse(total=total, certificates=certificates)

    async def update_certificate(self, certificate_id: str, data: CertificateCreateRequest) -> CertificateData:
        existing = await self.get_certificate(certificate_id)
        await self._ensure_number_free(data.certificate_number, existing.id)
        certificate = CertificateData.model_validate(data.model_dump()).model_copy(update={
            "id": existing.id,
            "status": existing.status,
            "created_at": existing.created_at,
        })
        return await self._call_store("update", self.store.save(certificate))

    async def delete_certificate(self, certificate_id: str) -> None:
        existing = await self.get_certificate(certificate_id)
        await self._call_store("delete", self.store.delete(existing.id))
        logger.info("Deleted certificate %s", existing.certificate_number)

    async def update_status(self, certificate_id: str, new_status: CertificateStatus) -> CertificateData:
        existing = await self.get_certificate(certificate_id)
        return await self._call_store("update", self.store.update_status(existing.id, new_status))

    async def verify(self, number: str) -> CertificateData:
        """
        Public lookup by certificate number

        Input is trimmed and upper-cased, so numbers typed in lower case or
        with stray whitespace still verify. Any non-empty number is looked up;
        only generated numbers are guaranteed to follow FIBQ-XXXX-XXXX.
        """
        number = (number or "").strip().upper()
        if not number:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Certificate number is required"
            )
        certificate = await self._call_store("load", self.store.get(number))
        if not certificate or (certificate.certificate_number or "").upper() != number:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Certificate not found"
            )
        return certificate

    async def count_certificates(self) -> int:
        return await self._call_store("count", self.store.count())

    async def count_this_month(self, now: datetime = None) -> int:
        now = now or datetime.utcnow()
        month_start = now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
        return await self._call_store("count", self.store.count(since=month_start))
