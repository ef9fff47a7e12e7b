"""
Admin Routes
Endpoints for admins to manage templates, edit layouts and issue certificates
"""

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Query, Request, status
from fastapi.responses import HTMLResponse

from fibq_certify.auth import get_admin
from fibq_certify.config import settings
from fibq_certify.dependencies import (
    client_ip,
    get_activity_log,
    get_certificate_service,
    get_template_catalog,
)
from fibq_certify.schemas.activity_log import ActivityLogEntry, ActivityLogResponse
from fibq_certify.schemas.admin import AdminDashboardResponse
from fibq_certify.schemas.certificate import (
    CertificateCreateRequest,
    CertificateData,
    CertificateListResponse,
    CertificateStatusUpdate,
    GeneratedCodeResponse,
)
from fibq_certify.schemas.presets import default_certificate_data
from fibq_certify.schemas.template import (
    AddElementRequest,
    CertificateTemplate,
    CreateTemplateRequest,
    DragElementRequest,
    EditorResponse,
    PlaceholderListResponse,
    TemplateListResponse,
    UpdateTemplateRequest,
)
from fibq_certify.services.activity_log_service import ActivityLogService
from fibq_certify.services.certificate_service import (
    CertificateService,
    generate_atc_code,
    generate_certificate_number,
)
from fibq_certify.services.html_renderer import render_canvas_html
from fibq_certify.services.layout_renderer import RenderMode, render
from fibq_certify.services.template_editor import EditorState, TemplateEditor
from fibq_certify.services.template_service import TemplateCatalog, placeholder_options

logger = logging.getLogger(__name__)

router = APIRouter()


# Dashboard

@router.get("/dashboard", response_model=AdminDashboardResponse)
async def get_admin_dashboard(
    certificates: CertificateService = Depends(get_certificate_service),
    catalog: TemplateCatalog = Depends(get_template_catalog),
    activity_log: ActivityLogService = Depends(get_activity_log),
    current_admin: dict = Depends(get_admin)
):
    """Certificate counters, template count and recent activity"""
    recent = await certificates.list_certificates(limit=5)
    templates = await catalog.list_templates()

    try:
        logs, _ = await activity_log.get_recent_activity(limit=10)
        recent_activity = [ActivityLogEntry.model_validate(log) for log in logs]
    except Exception as e:
        logger.warning("Could not load recent activity: %s", e)
        recent_activity = []

    return AdminDashboardResponse(
        total_certificates=await certificates.count_certificates(),
        this_month=await certificates.count_this_month(),
        active_templates=templates.total,
        default_template_id=templates.default_template_id,
        recent_certificates=recent.certificates,
        recent_activity=recent_activity,
    )


@router.get("/activity-logs", response_model=ActivityLogResponse)
async def get_activity_logs(
    skip: int = Query(0, ge=0, description="Number of records to skip"),
    limit: int = Query(50, ge=1, le=500, description="Number of records to return"),
    action: Optional[str] = Query(None, description="Filter by action type"),
    days: int = Query(30, ge=1, le=365, description="Number of days to include"),
    activity_log: ActivityLogService = Depends(get_activity_log),
    current_admin: dict = Depends(get_admin)
):
    """
    Get the admin audit trail

    Template and certificate writes, newest first.
    """
    logs, total = await activity_log.get_recent_activity(
        limit=limit,
        offset=skip,
        action_filter=action,
        days=days
    )

    return ActivityLogResponse(
        logs=logs,
        total=total,
        limit=limit,
        offset=skip,
        has_more=(skip + limit) < total
    )


# Templates

@router.get("/templates", response_model=TemplateListResponse)
async def list_templates(
    catalog: TemplateCatalog = Depends(get_template_catalog),
    current_admin: dict = Depends(get_admin)
):
    """All templates, system presets first, with the current default"""
    return await catalog.list_templates()


@router.post("/templates", response_model=CertificateTemplate, status_code=status.HTTP_201_CREATED)
async def create_template(
    data: CreateTemplateRequest,
    request: Request,
    catalog: TemplateCatalog = Depends(get_template_catalog),
    activity_log: ActivityLogService = Depends(get_activity_log),
    current_admin: dict = Depends(get_admin)
):
    """
    Create a user template

    - **name**: Template name (required)
    - **borderStyle**, **accentColor**, **backgroundColor**, **backgroundImage**: canvas look
    - **elements**: Positioned elements; omitted means start from the starter layout
    """
    template = await catalog.create_template(data)
    await activity_log.record(
        current_admin.get("user_id"), "create_template",
        resource_type="template", resource_id=template.id,
        details={"name": template.name}, ip_address=client_ip(request)
    )
    return template


@router.get("/templates/placeholders", response_model=PlaceholderListResponse)
async def list_placeholders(current_admin: dict = Depends(get_admin)):
    """Text and image fields an element can be bound to"""
    return placeholder_options()


@router.get("/templates/{template_id}", response_model=CertificateTemplate)
async def get_template(
    template_id: str,
    catalog: TemplateCatalog = Depends(get_template_catalog),
    current_admin: dict = Depends(get_admin)
):
    return await catalog.get_template(template_id)


@router.put("/templates/{template_id}", response_model=CertificateTemplate)
async def update_template(
    template_id: str,
    data: UpdateTemplateRequest,
    request: Request,
    catalog: TemplateCatalog = Depends(get_template_catalog),
    activity_log: ActivityLogService = Depends(get_activity_log),
    current_admin: dict = Depends(get_admin)
):
    """Replace a user template, as saved from the editor"""
    template = await catalog.update_template(template_id, data)
    await activity_log.record(
        current_admin.get("user_id"), "update_template",
        resource_type="template", resource_id=template_id, ip_address=client_ip(request)
    )
    return template


@router.delete("/templates/{template_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_template(
    template_id: str,
    request: Request,
    catalog: TemplateCatalog = Depends(get_template_catalog),
    activity_log: ActivityLogService = Depends(get_activity_log),
    current_admin: dict = Depends(get_admin)
):
    """Delete a user template; system templates are protected"""
    await catalog.delete_template(template_id)
    await activity_log.record(
        current_admin.get("user_id"), "delete_template",
        resource_type="template", resource_id=template_id, ip_address=client_ip(request)
    )


@router.post("/templates/{template_id}/default", response_model=CertificateTemplate)
async def set_default_template(
    template_id: str,
    catalog: TemplateCatalog = Depends(get_template_catalog),
    current_admin: dict = Depends(get_admin)
):
    return await catalog.set_default(template_id)


# Template editor

def editor_response(editor: TemplateEditor) -> EditorResponse:
    canvas = render(
        editor.template,
        default_certificate_data(),
        RenderMode.EDIT,
        selected_element_id=editor.state.selected_element_id,
        is_dragging=editor.state.is_dragging,
        origin=settings.APP_URL,
        display_scale=editor.state.display_scale,
    )
    return EditorResponse(
        template=editor.template,
        selected_element_id=editor.state.selected_element_id,
        is_dragging=editor.state.is_dragging,
        canvas_html=render_canvas_html(canvas),
    )


async def open_editor(
    template_id: str,
    catalog: TemplateCatalog,
    selected_element_id: Optional[str] = None,
    display_scale: Optional[float] = None,
) -> TemplateEditor:
    template = await catalog.get_template(template_id)
    state = EditorState(display_scale=display_scale or settings.EDITOR_DISPLAY_SCALE)
    editor = TemplateEditor(template, state)
    editor.select_element(selected_element_id)
    return editor


@router.get("/templates/{template_id}/editor", response_class=HTMLResponse)
async def template_editor_canvas(
    template_id: str,
    selected: Optional[str] = Query(default=None, description="Selected element id"),
    display_scale: Optional[float] = Query(default=None, alias="displayScale", gt=0, le=4),
    catalog: TemplateCatalog = Depends(get_template_catalog),
    current_admin: dict = Depends(get_admin)
):
    """Edit-mode canvas HTML with selection outline and drag cursor"""
    editor = await open_editor(template_id, catalog, selected, display_scale)
    return HTMLResponse(editor_response(editor).canvas_html)


@router.post(
    "/templates/{template_id}/elements",
    response_model=EditorResponse,
    status_code=status.HTTP_201_CREATED
)
async def add_template_element(
    template_id: str,
    data: AddElementRequest,
    catalog: TemplateCatalog = Depends(get_template_catalog),
    current_admin: dict = Depends(get_admin)
):
    """Add an element at the canvas center and select it"""
    editor = await open_editor(template_id, catalog)
    editor.add_element(data.type)
    await catalog.save_template(editor.template)
    return editor_response(editor)


@router.patch("/templates/{template_id}/elements/{element_id}", response_model=EditorResponse)
async def update_template_element(
    template_id: str,
    element_id: str,
    fields: Dict[str, Any] = Body(..., description="Element fields to change, camelCase or snake_case"),
    catalog: TemplateCatalog = Depends(get_template_catalog),
    current_admin: dict = Depends(get_admin)
):
    """Merge fields into one element; an unknown element id changes nothing"""
    editor = await open_editor(template_id, catalog, element_id)
    try:
        updated = editor.update_element(element_id, **fields)
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=str(e)
        )
    if updated is not None:
        await catalog.save_template(editor.template)
    return editor_response(editor)


@router.delete("/templates/{template_id}/elements/{element_id}", response_model=EditorResponse)
async def delete_template_element(
    template_id: str,
    element_id: str,
    catalog: TemplateCatalog = Depends(get_template_catalog),
    current_admin: dict = Depends(get_admin)
):
    editor = await open_editor(template_id, catalog)
    if editor.delete_element(element_id):
        await catalog.save_template(editor.template)
    return editor_response(editor)


@router.post("/templates/{template_id}/elements/{element_id}/duplicate", response_model=EditorResponse)
async def duplicate_template_element(
    template_id: str,
    element_id: str,
    catalog: TemplateCatalog = Depends(get_template_catalog),
    current_admin: dict = Depends(get_admin)
):
    """Copy an element, offset by 5% on both axes, and select the copy"""
    editor = await open_editor(template_id, catalog)
    if editor.duplicate_element(element_id) is not None:
        await catalog.save_template(editor.template)
    return editor_response(editor)


@router.post("/templates/{template_id}/elements/{element_id}/drag", response_model=EditorResponse)
async def drag_template_element(
    template_id: str,
    element_id: str,
    data: DragElementRequest,
    catalog: TemplateCatalog = Depends(get_template_catalog),
    current_admin: dict = Depends(get_admin)
):
    """
    Apply a completed drag gesture

    Pointer coordinates are screen pixels on a canvas shown at displayScale
    (the editor default when omitted). The element's center moves by the
    pointer delta converted to design pixels, clamped to the canvas.
    """
    editor = await open_editor(template_id, catalog, display_scale=data.display_scale)
    moved = editor.drag(element_id, data.start_x, data.start_y, data.end_x, data.end_y)
    if moved is not None:
        await catalog.save_template(editor.template)
    return editor_response(editor)


# Certificates

@router.get("/certificates", response_model=CertificateListResponse)
async def list_certificates(
    search: Optional[str] = Query(default=None, description="Number, trainee or program"),
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
    certificates: CertificateService = Depends(get_certificate_service),
    current_admin: dict = Depends(get_admin)
):
    return await certificates.list_certificates(search, limit, offset)


@router.post("/certificates", response_model=CertificateData, status_code=status.HTTP_201_CREATED)
async def create_certificate(
    data: CertificateCreateRequest,
    request: Request,
    certificates: CertificateService = Depends(get_certificate_service),
    activity_log: ActivityLogService = Depends(get_activity_log),
    current_admin: dict = Depends(get_admin)
):
    """
    Issue a certificate

    Number, trainee name, training program and date of issue are required;
    the number must look like FIBQ-XXXX-XXXX.
    """
    certificate = await certificates.create_certificate(data)
    await activity_log.record(
        current_admin.get("user_id"), "create_certificate",
        resource_type="certificate", resource_id=certificate.id,
        details={"certificate_number": certificate.certificate_number},
        ip_address=client_ip(request)
    )
    return certificate


@router.get("/certificates/generate-number", response_model=GeneratedCodeResponse)
async def generate_number(current_admin: dict = Depends(get_admin)):
    return GeneratedCodeResponse(value=generate_certificate_number())


@router.get("/certificates/generate-atc", response_model=GeneratedCodeResponse)
async def generate_atc(current_admin: dict = Depends(get_admin)):
    return GeneratedCodeResponse(value=generate_atc_code())


@router.get("/certificates/{certificate_id}", response_model=CertificateData)
async def get_certificate(
    certificate_id: str,
    certificates: CertificateService = Depends(get_certificate_service),
    current_admin: dict = Depends(get_admin)
):
    return await certificates.get_certificate(certificate_id)


@router.put("/certificates/{certificate_id}", response_model=CertificateData)
async def update_certificate(
    certificate_id: str,
    data: CertificateCreateRequest,
    request: Request,
    certificates: CertificateService = Depends(get_certificate_service),
    activity_log: ActivityLogService = Depends(get_activity_log),
    current_admin: dict = Depends(get_admin)
):
    certificate = await certificates.update_certificate(certificate_id, data)
    await activity_log.record(
        current_admin.get("user_id"), "update_certificate",
        resource_type="certificate", resource_id=certificate.id, ip_address=client_ip(request)
    )
    return certificate


@router.delete("/certificates/{certificate_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_certificate(
    certificate_id: str,
    request: Request,
    certificates: CertificateService = Depends(get_certificate_service),
    activity_log: ActivityLogService = Depends(get_activity_log),
    current_admin: dict = Depends(get_admin)
):
    await certificates.delete_certificate(certificate_id)
    await activity_log.record(
        current_admin.get("user_id"), "delete_certificate",
        resource_type="certificate", resource_id=certificate_id, ip_address=client_ip(request)
    )


@router.patch("/certificates/{certificate_id}/status", response_model=CertificateData)
async def update_certificate_status(
    certificate_id: str,
    data: CertificateStatusUpdate,
    request: Request,
    certificates: CertificateService = Depends(get_certificate_service),
    activity_log: ActivityLogService = Depends(get_activity_log),
    current_admin: dict = Depends(get_admin)
):
    """Mark a certificate valid, revoked or expired"""
    certificate = await certificates.update_status(certificate_id, data.status)
    await activity_log.record(
        current_admin.get("user_id"), "update_certificate_status",
        resource_type="certificate", resource_id=certificate_id,
        details={"status": data.status.value}, ip_address=client_ip(request)
    )
    return certificate
