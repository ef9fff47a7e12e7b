"""
Placeholder Resolver
Turns a template element plus a certificate record into a displayable value
"""

from dataclasses import dataclass
from datetime import date
from typing import Optional
from urllib.parse import quote

from fibq_certify.config import settings
from fibq_certify.schemas.certificate import CertificateData
from fibq_certify.schemas.placeholders import CERTIFICATE_TYPE_LABELS
from fibq_certify.schemas.template import (
    ImageElement,
    LineElement,
    LogoElement,
    QrCodeElement,
    SealElement,
    TextElement,
)

# field -> (record attributes tried in order, literal fallback)
TEXT_FALLBACK_CHAINS = {
    "traineeName": (("trainee_name", "trainer_name", "center_name"), "Name"),
    "certificateTitle": (("certificate_title",), "Certificate Title"),
    "trainingProgramName": (("training_program_name",), "Training Program"),
    "certificateNumber": (("certificate_number",), "FIBQ-XXXX-XXXX"),
    "atcCode": (("atc_code",), "ATC-XXXX"),
    "placeOfIssue": (("place_of_issue",), "Place of Issue"),
    "chairpersonName": (("chairperson_name",), "Chairperson Name"),
    "chairpersonTitle": (("chairperson_title",), "Chairperson Title"),
    "legalDisclaimer": (("legal_disclaimer",), "Legal Disclaimer"),
    "centerName": (("center_name",), "Center Name"),
}

IMAGE_SOURCES = {
    "traineePhoto": ("trainee_photo", "trainer_photo"),
    "centerLogo": ("center_logo",),
}

DATE_FALLBACK = "DD / MM / YYYY"
CERTIFICATE_TYPE_FALLBACK = "Certificate"
PREVIEW_NUMBER = "PREVIEW"


@dataclass(frozen=True)
class Resolved:
    """
    A resolved element value

    kind is one of text, image, qrcode, seal, line. value is the text, the
    image URL, the QR payload or the line colour; an image with value None
    renders nothing.
    """
    kind: str
    value: Optional[str] = None


def first_truthy(data: CertificateData, sources, fallback=None):
    """Return the first non-empty attribute of data named in sources"""
    for name in sources:
        value = getattr(data, name, None)
        if value:
            return value
    return fallback


def format_issue_date(value: Optional[str]) -> str:
    """ISO date -> 'DD / MM / YYYY'"""
    if not value:
        return DATE_FALLBACK
    try:
        parsed = date.fromisoformat(str(value)[:10])
    except ValueError:
        return str(value)
    return f"{parsed.day:02d} / {parsed.month:02d} / {parsed.year:04d}"


def verification_url(certificate_number: Optional[str], origin: Optional[str] = None) -> str:
    """Link printed into QR codes; previously printed codes depend on this format"""
    base = (origin or settings.APP_URL).rstrip("/")
    number = certificate_number or PREVIEW_NUMBER
    return f"{base}/verify?number={quote(number, safe='-')}"


def resolve_text_placeholder(placeholder: str, data: CertificateData) -> str:
    if placeholder in TEXT_FALLBACK_CHAINS:
        sources, fallback = TEXT_FALLBACK_CHAINS[placeholder]
        return first_truthy(data, sources, fallback)
    if placeholder == "dateOfIssue":
        return format_issue_date(data.date_of_issue)
    if placeholder == "certificateTypeLabel":
        if not data.certificate_type:
            return CERTIFICATE_TYPE_FALLBACK
        return CERTIFICATE_TYPE_LABELS.get(data.certificate_type.value, CERTIFICATE_TYPE_FALLBACK)
    return placeholder


def resolve_image_placeholder(placeholder: Optional[str], data: CertificateData) -> Optional[str]:
    sources = IMAGE_SOURCES.get(placeholder or "")
    if not sources:
        return None
    return first_truthy(data, sources)


def resolve(element, data: CertificateData, origin: Optional[str] = None) -> Optional[Resolved]:
    """
    Resolve an element against a certificate record

    Returns None when the element is suppressed (QR code or seal switched
    off, logo without a source). Never raises for unknown placeholders and
    never mutates its arguments.
    """
    if isinstance(element, TextElement):
        if element.placeholder:
            return Resolved("text", resolve_text_placeholder(element.placeholder, data))
        return Resolved("text", element.content or "")

    if isinstance(element, ImageElement):
        return Resolved("image", resolve_image_placeholder(element.placeholder, data))

    if isinstance(element, QrCodeElement):
        if data.show_qr_code is False:
            return None
        return Resolved("qrcode", verification_url(data.certificate_number, origin))

    if isinstance(element, SealElement):
        if data.show_seal is False:
            return None
        return Resolved("seal")

    if isinstance(element, LogoElement):
        if not data.center_logo:
            return None
        return Resolved("image", data.center_logo)

    if isinstance(element, LineElement):
        return Resolved("line", element.color)

    raise TypeError(f"Unsupported element type: {type(element).__name__}")
