"""
Public Request/Response Models
Certificate verification for QR scans and the public verify page
"""

from typing import Optional

from fibq_certify.schemas.certificate import CertificateData, CertificateStatus
from fibq_certify.schemas.template import CamelModel


class CertificateVerifyResponse(CamelModel):
    """Result of looking up a certificate number"""
    certificate_number: str
    status: CertificateStatus
    is_valid: bool
    verification_url: str
    certificate_type_label: Optional[str] = None
    certificate: CertificateData
