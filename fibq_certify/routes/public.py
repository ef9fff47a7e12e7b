"""
Public Endpoints
Certificate verification, preview and download
"""

from io import BytesIO
from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import HTMLResponse, StreamingResponse

from fibq_certify.auth import get_admin
from fibq_certify.config import settings
from fibq_certify.dependencies import (
    get_certificate_service,
    get_export_service,
    get_template_catalog,
)
from fibq_certify.schemas.certificate import CertificateData, CertificateStatus
from fibq_certify.schemas.placeholders import CERTIFICATE_TYPE_LABELS
from fibq_certify.schemas.public import CertificateVerifyResponse
from fibq_certify.services.certificate_service import CertificateService
from fibq_certify.services.errors import RenderError
from fibq_certify.services.export_service import ExportResult, ExportService
from fibq_certify.services.html_renderer import render_canvas_html
from fibq_certify.services.layout_renderer import RenderMode, render
from fibq_certify.services.placeholder_resolver import verification_url
from fibq_certify.services.qr_service import qr_png_bytes
from fibq_certify.services.template_service import TemplateCatalog

router = APIRouter()


def export_filename(certificate_number: Optional[str]) -> str:
    return f"certificate-{certificate_number or 'preview'}"


def file_response(result: ExportResult) -> StreamingResponse:
    return StreamingResponse(
        BytesIO(result.content),
        media_type=result.media_type,
        headers=result.headers
    )


async def render_certificate(
    data: CertificateData,
    catalog: TemplateCatalog,
    mode: RenderMode,
):
    template = await catalog.resolve_template(data.template_id)
    return render(template, data, mode, origin=settings.APP_URL)


async def run_export(
    exporter: ExportService, canvas, filename: str, kind: str, wait: bool = False
) -> StreamingResponse:
    try:
        if kind == "pdf":
            result = await exporter.export_pdf(canvas, filename, wait=wait)
        else:
            result = await exporter.export_image(canvas, filename, wait=wait)
    except RenderError as e:
        raise e.to_http()
    return file_response(result)


@router.get("/verify", response_model=CertificateVerifyResponse)
async def verify_certificate(
    number: str = Query(..., min_length=1, description="Certificate number, e.g. FIBQ-A1B2-C3D4"),
    certificates: CertificateService = Depends(get_certificate_service)
):
    """
    Verify a certificate number

    This is the target of the QR code printed on every certificate.
    """
    certificate = await certificates.verify(number)
    type_label = None
    if certificate.certificate_type:
        type_label = CERTIFICATE_TYPE_LABELS.get(certificate.certificate_type.value)

    return CertificateVerifyResponse(
        certificate_number=certificate.certificate_number,
        status=certificate.status,
        is_valid=certificate.status == CertificateStatus.VALID,
        verification_url=verification_url(certificate.certificate_number, settings.APP_URL),
        certificate_type_label=type_label,
        certificate=certificate,
    )


@router.get("/certificates/{number}/preview", response_class=HTMLResponse)
async def preview_certificate(
    number: str,
    certificates: CertificateService = Depends(get_certificate_service),
    catalog: TemplateCatalog = Depends(get_template_catalog)
):
    """Read-only HTML preview of an issued certificate"""
    certificate = await certificates.verify(number)
    canvas = await render_certificate(certificate, catalog, RenderMode.PREVIEW)
    return HTMLResponse(render_canvas_html(canvas))


@router.get("/certificates/{number}/export.png")
async def download_certificate_png(
    number: str,
    certificates: CertificateService = Depends(get_certificate_service),
    catalog: TemplateCatalog = Depends(get_template_catalog),
    exporter: ExportService = Depends(get_export_service)
):
    certificate = await certificates.verify(number)
    canvas = await render_certificate(certificate, catalog, RenderMode.EXPORT)
    return await run_export(
        exporter, canvas, export_filename(certificate.certificate_number), "png", wait=True
    )


@router.get("/certificates/{number}/export.pdf")
async def download_certificate_pdf(
    number: str,
    certificates: CertificateService = Depends(get_certificate_service),
    catalog: TemplateCatalog = Depends(get_template_catalog),
    exporter: ExportService = Depends(get_export_service)
):
    certificate = await certificates.verify(number)
    canvas = await render_certificate(certificate, catalog, RenderMode.EXPORT)
    return await run_export(
        exporter, canvas, export_filename(certificate.certificate_number), "pdf", wait=True
    )


@router.get("/certificates/{number}/qrcode.png")
async def certificate_qr_code(
    number: str,
    size: int = Query(default=240, ge=60, le=1200),
    certificates: CertificateService = Depends(get_certificate_service)
):
    """QR code pointing at the verification URL"""
    certificate = await certificates.verify(number)
    payload = verification_url(certificate.certificate_number, settings.APP_URL)
    return StreamingResponse(BytesIO(qr_png_bytes(payload, size)), media_type="image/png")


@router.post("/preview", response_class=HTMLResponse)
async def preview_draft(
    data: CertificateData,
    catalog: TemplateCatalog = Depends(get_template_catalog),
    current_admin: dict = Depends(get_admin)
):
    """Preview unsaved certificate data, as shown beside the admin form"""
    canvas = await render_certificate(data, catalog, RenderMode.PREVIEW)
    return HTMLResponse(render_canvas_html(canvas))


@router.post("/export/png")
async def export_draft_png(
    data: CertificateData,
    catalog: TemplateCatalog = Depends(get_template_catalog),
    exporter: ExportService = Depends(get_export_service),
    current_admin: dict = Depends(get_admin)
):
    canvas = await render_certificate(data, catalog, RenderMode.EXPORT)
    return await run_export(exporter, canvas, export_filename(data.certificate_number), "png")


@router.post("/export/pdf")
async def export_draft_pdf(
    data: CertificateData,
    catalog: TemplateCatalog = Depends(get_template_catalog),
    exporter: ExportService = Depends(get_export_service),
    current_admin: dict = Depends(get_admin)
):
    canvas = await render_certificate(data, catalog, RenderMode.EXPORT)
    return await run_export(exporter, canvas, export_filename(data.certificate_number), "pdf")
