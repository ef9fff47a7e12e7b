"""
Seed Data
System templates, the starter element set and default certificate values
"""

from typing import List

from fibq_certify.schemas.certificate import CertificateData, CertificateStatus
from fibq_certify.schemas.template import (
    BorderStyle,
    CertificateTemplate,
    ImageElement,
    LineElement,
    LogoElement,
    QrCodeElement,
    SealElement,
    TextElement,
)

DEFAULT_TEMPLATE_ID = "classic-gold"

DEFAULT_TEMPLATE_ELEMENTS = [
    TextElement(
        id="type-label", placeholder="certificateTypeLabel", x=50, y=11, width=60,
        font_size=14, font_family="Inter", font_weight="semibold", color="#6B7280",
    ),
    TextElement(
        id="heading", content="Certificate of Accreditation", x=50, y=18, width=70,
        font_size=30, font_family="Playfair Display", font_weight="bold", color="#1F2937",
    ),
    TextElement(
        id="certificate-title", placeholder="certificateTitle", x=50, y=27, width=62,
        font_size=13, font_style="italic", color="#4B5563",
    ),
    TextElement(
        id="trainee-name", placeholder="traineeName", x=50, y=37, width=60,
        font_size=28, font_family="Playfair Display", font_weight="bold", color="#111827",
    ),
    TextElement(
        id="training-program", placeholder="trainingProgramName", x=50, y=46, width=60,
        font_size=16, font_weight="semibold", color="#1F2937",
    ),
    ImageElement(id="trainee-photo", placeholder="traineePhoto", x=14, y=38, width=12, height=24),
    LogoElement(id="center-logo", x=86, y=15, width=10, height=14),
    TextElement(
        id="certificate-number", placeholder="certificateNumber", x=28, y=60, width=30,
        font_size=12, font_family="monospace", color="#374151",
    ),
    TextElement(
        id="atc-code", placeholder="atcCode", x=72, y=60, width=30,
        font_size=12, font_family="monospace", color="#374151",
    ),
    TextElement(
        id="date-of-issue", placeholder="dateOfIssue", x=28, y=67, width=30,
        font_size=12, color="#374151",
    ),
    TextElement(
        id="place-of-issue", placeholder="placeOfIssue", x=72, y=67, width=30,
        font_size=12, color="#374151",
    ),
    LineElement(id="signature-line", x=50, y=77, width=24),
    TextElement(
        id="chairperson-name", placeholder="chairpersonName", x=50, y=81, width=40,
        font_size=14, font_weight="semibold", color="#111827",
    ),
    TextElement(
        id="chairperson-title", placeholder="chairpersonTitle", x=50, y=85.5, width=40,
        font_size=11, color="#4B5563",
    ),
    SealElement(id="seal", x=84, y=80, width=12, height=18),
    QrCodeElement(id="qr-code", x=16, y=80, width=12, height=20),
    TextElement(
        id="legal-disclaimer", placeholder="legalDisclaimer", x=50, y=94, width=80,
        font_size=9, font_style="italic", color="#6B7280",
    ),
]


def default_elements() -> list:
    """Fresh copy of the starter element set"""
    return [element.model_copy(deep=True) for element in DEFAULT_TEMPLATE_ELEMENTS]


def _system_template(template_id, name, background_color, border_style, accent_color, show_seal=True):
    return CertificateTemplate(
        id=template_id,
        name=name,
        background_color=background_color,
        border_style=border_style,
        accent_color=accent_color,
        show_seal=show_seal,
        show_qr_code=True,
        elements=default_elements(),
        is_system=True,
    )


def system_templates() -> List[CertificateTemplate]:
    """The fixed, non-deletable presets"""
    return [
        _system_template("classic-gold", "Classic Gold", "#FFFEF7", BorderStyle.CLASSIC, "#C9A227"),
        _system_template("modern-navy", "Modern Navy", "#F8FAFC", BorderStyle.MODERN, "#1E3A5F"),
        _system_template("minimal-elegant", "Minimal Elegant", "#FFFFFF", BorderStyle.MINIMAL, "#2D3748", show_seal=False),
        _system_template("ornate-traditional", "Ornate Traditional", "#FDF8F3", BorderStyle.ORNATE, "#8B4513"),
    ]


SYSTEM_TEMPLATE_IDS = frozenset(t.id for t in system_templates())


def default_certificate_data() -> CertificateData:
    """Values pre-filled on a new certificate"""
    return CertificateData(
        certificate_title=(
            "This certificate is proudly presented for successfully completing "
            "the accredited training program"
        ),
        chairperson_name="Dr. Marie Laurent",
        chairperson_title="Chairperson of the Accreditation Board",
        legal_disclaimer=(
            "Issued by a private accreditation body. "
            "Validity subject to official verification."
        ),
        place_of_issue="French Republic",
        show_seal=True,
        show_qr_code=True,
        template_id=DEFAULT_TEMPLATE_ID,
        status=CertificateStatus.VALID,
    )
