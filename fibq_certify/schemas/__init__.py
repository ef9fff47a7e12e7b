"""
Pydantic schemas for request/response validation
"""

from fibq_certify.schemas.certificate import (
    CertificateData,
    CertificateCreateRequest,
    CertificateListResponse,
)
from fibq_certify.schemas.template import (
    CertificateTemplate,
    CreateTemplateRequest,
    UpdateTemplateRequest,
    TemplateListResponse,
)

__all__ = [
    "CertificateData",
    "CertificateCreateRequest",
    "CertificateListResponse",
    "CertificateTemplate",
    "CreateTemplateRequest",
    "UpdateTemplateRequest",
    "TemplateListResponse",
]
