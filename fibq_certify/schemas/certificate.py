"""
Certificate Request/Response Models
The record whose fields template placeholders resolve against
"""

from pydantic import Field, field_validator
from typing import List, Optional
from datetime import date, datetime
from enum import Enum
import re

from fibq_certify.schemas.template import CamelModel

CERTIFICATE_NUMBER_PATTERN = re.compile(r"^FIBQ-[A-Z0-9]{4}-[A-Z0-9]{4}$", re.IGNORECASE)
ATC_CODE_PATTERN = re.compile(r"^ATC-\d{4}$", re.IGNORECASE)


class CertificateType(str, Enum):
    """Who the certificate is issued to"""
    TRAINEE = "trainee"
    ACCREDITED_CENTER = "accredited-center"
    TRAINER = "trainer"


class CertificateStatus(str, Enum):
    """Display-only classification, set by administrators"""
    VALID = "valid"
    REVOKED = "revoked"
    EXPIRED = "expired"


class CertificateData(CamelModel):
    """
    Certificate record as seen by the renderer

    Every field is optional so that a half-filled form can still be previewed.
    show_seal / show_qr_code override the template defaults when not None.
    """
    id: Optional[str] = None
    certificate_number: Optional[str] = None

    # Subject
    trainee_name: Optional[str] = None
    trainee_photo: Optional[str] = None
    trainer_name: Optional[str] = None
    trainer_photo: Optional[str] = None
    center_name: Optional[str] = None
    center_logo: Optional[str] = None

    # Descriptive
    certificate_title: Optional[str] = None
    training_program_name: Optional[str] = None
    atc_code: Optional[str] = None
    date_of_issue: Optional[str] = None
    place_of_issue: Optional[str] = None
    expiry_date: Optional[str] = None

    # Issuer
    chairperson_name: Optional[str] = None
    chairperson_title: Optional[str] = None
    legal_disclaimer: Optional[str] = None

    # Flags
    show_seal: Optional[bool] = None
    show_qr_code: Optional[bool] = Field(default=None, alias="showQRCode")

    template_id: Optional[str] = None
    status: CertificateStatus = CertificateStatus.VALID
    certificate_type: Optional[CertificateType] = None

    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("date_of_issue", "expiry_date", mode="before")
    @classmethod
    def dates_as_iso_strings(cls, value):
        if isinstance(value, (date, datetime)):
            return value.isoformat()
        return value


class CertificateCreateRequest(CertificateData):
    """Certificate submitted from the admin form; required fields are enforced here"""
    certificate_number: str = Field(..., min_length=1, max_length=20)
    trainee_name: str = Field(..., min_length=1, max_length=200)
    training_program_name: str = Field(..., min_length=1, max_length=300)
    date_of_issue: str = Field(...)

    @field_validator("certificate_number")
    @classmethod
    def certificate_number_format(cls, value: str) -> str:
        value = value.strip()
        if not CERTIFICATE_NUMBER_PATTERN.match(value):
            raise ValueError("Certificate number must look like FIBQ-XXXX-XXXX")
        return value.upper()

    @field_validator("atc_code")
    @classmethod
    def atc_code_format(cls, value: Optional[str]) -> Optional[str]:
        if not value:
            return None
        value = value.strip()
        if not ATC_CODE_PATTERN.match(value):
            raise ValueError("ATC code must look like ATC-0000")
        return value.upper()

    @field_validator("trainee_name", "training_program_name")
    @classmethod
    def not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("This field is required")
        return value.strip()

    @field_validator("date_of_issue")
    @classmethod
    def date_of_issue_is_iso(cls, value: str) -> str:
        try:
            date.fromisoformat(value[:10])
        except ValueError:
            raise ValueError("Date of issue must be an ISO date (YYYY-MM-DD)")
        return value[:10]


class CertificateStatusUpdate(CamelModel):
    status: CertificateStatus


class CertificateListResponse(CamelModel):
    total: int
    certificates: List[CertificateData]


class GeneratedCodeResponse(CamelModel):
    value: str
