"""
Service Dependencies
Per-application service instances, looked up from app.state by the routes
"""

from fastapi import Request

from fibq_certify.services.activity_log_service import ActivityLogService
from fibq_certify.services.certificate_service import CertificateService
from fibq_certify.services.export_service import ExportService
from fibq_certify.services.template_service import TemplateCatalog


def get_template_catalog(request: Request) -> TemplateCatalog:
    return request.app.state.template_catalog


def get_certificate_service(request: Request) -> CertificateService:
    return request.app.state.certificate_service


def get_export_service(request: Request) -> ExportService:
    return request.app.state.export_service


def get_activity_log(request: Request) -> ActivityLogService:
    return request.app.state.activity_log


def client_ip(request: Request):
    return request.client.host if request and request.client else None
